"""Ticket store — in-process collection mirrored to a durable slot.

The in-memory list is the source of truth for the session.  After every
mutation the whole collection is serialized and written to the slot named
``STORAGE_KEY``; at construction it is rehydrated from that slot.

A single re-entrant lock guards both the collection and the mirror write,
so a reader never observes a half-applied mutation.  A failed mirror write
is logged and handed to ``on_persist_error`` but the in-memory change stands.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Mapping

from pydantic import TypeAdapter

from helpdesk.config import STORAGE_KEY, TICKET_ID_PREFIX, TICKET_SEQUENCE_WIDTH
from helpdesk.schemas import (
    Priority,
    Ticket,
    TicketCreate,
    TicketDetail,
    TicketPatch,
    TicketStatus,
)
from helpdesk.store.storage import SlotStorage

logger = logging.getLogger(__name__)

_TICKET_LIST = TypeAdapter(list[Ticket])
_TICK = timedelta(microseconds=1)

# Patch fields that may be cleared by sending an explicit null
_NULLABLE_FIELDS = frozenset({"sla_deadline"})

# Detail fields the store sets itself when merging
_STORE_OWNED_FIELDS = frozenset({"id", "updated_at", "has_full_detail"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TicketStore:
    """Owned, durably-mirrored ticket collection.

    Parameters
    ----------
    storage : SlotStorage
        Durable mirror backend.
    key : str
        Slot name holding the serialized collection.
    clock : callable
        Returns the current timezone-aware time.
    on_persist_error : callable
        Receives the exception when a mirror write fails.
    """

    def __init__(
        self,
        storage: SlotStorage,
        *,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] | None = None,
        on_persist_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._clock = clock or _utcnow
        self._on_persist_error = on_persist_error
        self._lock = threading.RLock()
        self._tickets: list[Ticket] = self._load()

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def storage(self) -> SlotStorage:
        return self._storage

    def now(self) -> datetime:
        """Current time on the store's clock."""
        return self._clock()

    def get(self, ticket_id: str) -> Ticket | None:
        with self._lock:
            ticket = self._find(ticket_id)
            return ticket.model_copy(deep=True) if ticket else None

    def snapshot(self) -> list[Ticket]:
        """Copy of the current collection, in store order."""
        with self._lock:
            return [t.model_copy(deep=True) for t in self._tickets]

    def __len__(self) -> int:
        with self._lock:
            return len(self._tickets)

    def __contains__(self, ticket_id: object) -> bool:
        with self._lock:
            return any(t.id == ticket_id for t in self._tickets)

    # ── Mutations ────────────────────────────────────────────────────

    def create(self, data: TicketCreate) -> Ticket:
        """Open a new ticket with a fresh ``HD-<year>-NNNN`` id."""
        with self._lock:
            now = self._clock()
            ticket = Ticket(
                id=self._next_id(now.year),
                title=data.title,
                description=data.description,
                category=data.category,
                priority=data.priority,
                status=TicketStatus.OPEN,
                requester=data.requester,
                department=data.department,
                created_at=now,
                updated_at=now,
                sla_deadline=data.sla_deadline,
            )
            self._tickets.append(ticket)
            self._persist()
            logger.info("Created ticket %s  dept=%s  priority=%s",
                        ticket.id, ticket.department or "-", ticket.priority.value)
            return ticket.model_copy(deep=True)

    def update(self, ticket_id: str, patch: TicketPatch) -> Ticket | None:
        """Apply the fields set on *patch*; ``None`` when the id is unknown."""
        with self._lock:
            ticket = self._find(ticket_id)
            if ticket is None:
                logger.debug("Update skipped, unknown ticket %s", ticket_id)
                return None

            for name in patch.set_fields():
                value = getattr(patch, name)
                if value is None and name not in _NULLABLE_FIELDS:
                    continue
                setattr(ticket, name, value)
            self._touch(ticket)
            self._persist()
            return ticket.model_copy(deep=True)

    def upsert_detail(self, detail: TicketDetail) -> Ticket:
        """Merge authoritative detail into a ticket, inserting it if unknown.

        Blank values never overwrite existing ones.  Either way the result
        is marked ``has_full_detail``.
        """
        with self._lock:
            ticket = self._find(detail.id)
            if ticket is None:
                ticket = self._shell_from_detail(detail)
                self._tickets.append(ticket)
                logger.info("Inserted remote ticket %s from detail", ticket.id)
            else:
                for name in detail.set_fields():
                    if name in _STORE_OWNED_FIELDS:
                        continue
                    value = getattr(detail, name)
                    if _is_blank(value):
                        continue
                    setattr(ticket, name, value)
                ticket.has_full_detail = True
                self._touch(ticket)
            self._persist()
            return ticket.model_copy(deep=True)

    def remove(self, ticket_id: str) -> bool:
        with self._lock:
            ticket = self._find(ticket_id)
            if ticket is None:
                return False
            self._tickets.remove(ticket)
            self._persist()
            logger.info("Removed ticket %s", ticket_id)
            return True

    def replace_all(self, records: Iterable[Ticket | Mapping]) -> None:
        """Make the collection exactly *records* (resync from a remote source).

        Raises ``ValueError`` when two records share an id; the collection is
        left unchanged.
        """
        incoming = [
            r.model_copy(deep=True) if isinstance(r, Ticket) else Ticket.model_validate(r)
            for r in records
        ]
        counts = Counter(t.id for t in incoming)
        duplicates = sorted(i for i, n in counts.items() if n > 1)
        if duplicates:
            raise ValueError(f"Duplicate ticket ids: {', '.join(duplicates)}")
        with self._lock:
            self._tickets = incoming
            self._persist()
            logger.info("Replaced ticket collection (%d records)", len(incoming))

    # ── Internal ─────────────────────────────────────────────────────

    def _find(self, ticket_id: str) -> Ticket | None:
        return next((t for t in self._tickets if t.id == ticket_id), None)

    def _next_id(self, year: int) -> str:
        pattern = re.compile(rf"^{re.escape(TICKET_ID_PREFIX)}-{year}-(\d+)$")
        highest = 0
        for t in self._tickets:
            m = pattern.match(t.id)
            if m:
                highest = max(highest, int(m.group(1)))
        return f"{TICKET_ID_PREFIX}-{year}-{highest + 1:0{TICKET_SEQUENCE_WIDTH}d}"

    def _touch(self, ticket: Ticket) -> None:
        # updated_at strictly increases and never precedes created_at
        floor = max(ticket.updated_at, ticket.created_at) + _TICK
        ticket.updated_at = max(self._clock(), floor)

    def _shell_from_detail(self, detail: TicketDetail) -> Ticket:
        now = self._clock()
        created = detail.created_at or now
        return Ticket(
            id=detail.id,
            title=detail.title or "",
            description=detail.description or "",
            category=detail.category or "",
            priority=detail.priority or Priority.MEDIUM,
            status=detail.status or TicketStatus.OPEN,
            requester=detail.requester or "",
            department=detail.department or "",
            created_at=created,
            updated_at=max(detail.updated_at or now, created),
            sla_deadline=detail.sla_deadline,
            has_full_detail=True,
        )

    def _load(self) -> list[Ticket]:
        # ValueError covers undecodable bytes and malformed or invalid JSON;
        # backend connection errors propagate.
        try:
            raw = self._storage.read(self._key)
            if raw is None:
                return []
            tickets = _TICKET_LIST.validate_json(raw)
        except ValueError as exc:
            logger.warning("Ignoring unreadable ticket mirror %r: %s", self._key, exc)
            return []
        logger.info("Rehydrated %d tickets from %r", len(tickets), self._key)
        return tickets

    def _persist(self) -> None:
        payload = _TICKET_LIST.dump_json(self._tickets, by_alias=True).decode("utf-8")
        try:
            self._storage.write(self._key, payload)
        except Exception as exc:
            logger.error("Mirror write to %r failed: %s", self._key, exc)
            if self._on_persist_error is not None:
                self._on_persist_error(exc)
