"""Remote helpdesk API client — authoritative ticket list + department directory.

Endpoints consumed:
    GET  /tickets?page=N&pageSize=M  → {"items": [...], "total": int}
    GET  /departments                → {"data": [{"id": int, "name": str}, ...]}

``sync_tickets`` is the only path by which remote records reach the store;
it goes through ``TicketStore.replace_all`` so a resync never interleaves
with local create/update calls.
"""

from __future__ import annotations

import logging

import httpx

from helpdesk.config import (
    REMOTE_API_URL,
    REMOTE_MAX_PAGES,
    REMOTE_PAGE_SIZE,
    REMOTE_TIMEOUT_SECONDS,
)
from helpdesk.schemas import Department, Ticket
from helpdesk.store.ticket_store import TicketStore

logger = logging.getLogger(__name__)


class RemoteHelpdeskClient:
    """Thin synchronous wrapper around the remote helpdesk REST API.

    Parameters
    ----------
    base_url : str
        API root, e.g. ``http://localhost:5140/api``.
    token : str | None
        Bearer token added to every request when given.
    page_size : int
        Items requested per ticket page.
    max_pages : int
        Upper bound on ticket page requests per fetch.
    client : httpx.Client | None
        Pre-built client (tests inject one with a ``MockTransport``).
    """

    def __init__(
        self,
        base_url: str = REMOTE_API_URL,
        *,
        token: str | None = None,
        page_size: int = REMOTE_PAGE_SIZE,
        max_pages: int = REMOTE_MAX_PAGES,
        client: httpx.Client | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(
            base_url=base_url, headers=headers, timeout=REMOTE_TIMEOUT_SECONDS,
        )
        self.page_size = page_size
        self.max_pages = max_pages

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteHelpdeskClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ── Public API ───────────────────────────────────────────────────

    def fetch_tickets(self) -> list[Ticket]:
        """Walk every page until ``total`` items (or a short page) arrive.

        Also stops when a page repeats the previous one (a server ignoring
        ``page``) or after ``max_pages`` requests.
        """
        tickets: list[Ticket] = []
        previous_ids: list[str] | None = None
        page = 1
        while True:
            resp = self._client.get("/tickets", params={"page": page, "pageSize": self.page_size})
            resp.raise_for_status()
            body = resp.json()
            items = [Ticket.model_validate(item) for item in body.get("items") or []]

            page_ids = [t.id for t in items]
            if page_ids and page_ids == previous_ids:
                logger.warning("Remote page %d repeats page %d; stopping", page, page - 1)
                break
            tickets.extend(items)
            previous_ids = page_ids

            total = body.get("total")
            if not items or len(items) < self.page_size:
                break
            if total is not None and len(tickets) >= total:
                break
            if page >= self.max_pages:
                logger.warning("Stopped after %d remote pages (max_pages)", page)
                break
            page += 1

        logger.info("Fetched %d remote tickets in %d page(s)", len(tickets), page)
        return tickets

    def fetch_departments(self) -> list[Department]:
        resp = self._client.get("/departments")
        resp.raise_for_status()
        return [Department.model_validate(d) for d in resp.json().get("data") or []]

    def sync_tickets(self, store: TicketStore) -> int:
        """Replace the store's collection with the remote list; return its size."""
        tickets = self.fetch_tickets()
        store.replace_all(tickets)
        return len(tickets)
