"""Tests for the remote helpdesk client, driven by httpx.MockTransport."""

import httpx
import pytest
from pydantic import ValidationError

from helpdesk.sync.remote import RemoteHelpdeskClient


def remote_ticket(n: int) -> dict:
    return {
        "id": f"HD-2024-{n:04d}",
        "title": f"Remoto {n}",
        "description": "",
        "category": "Incidente",
        "priority": "Baixa",
        "status": "Aberto",
        "requester": "remote",
        "department": "T.I",
        "createdAt": "2024-01-01T08:00:00Z",
        "updatedAt": "2024-01-01T08:00:00Z",
    }


def make_client(handler, page_size=2, token=None):
    http = httpx.Client(base_url="http://remote.test/api", transport=httpx.MockTransport(handler))
    return RemoteHelpdeskClient(page_size=page_size, token=token, client=http)


def paged_handler(records, total=True, calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if request.url.path == "/api/departments":
            return httpx.Response(200, json={"data": [{"id": 1, "name": "T.I"}, {"id": 2, "name": "RH"}]})
        page = int(request.url.params["page"])
        size = int(request.url.params["pageSize"])
        body = {"items": records[(page - 1) * size: page * size]}
        if total:
            body["total"] = len(records)
        return httpx.Response(200, json=body)
    return handler


class TestFetchTickets:

    def test_walks_all_pages(self):
        calls = []
        records = [remote_ticket(n) for n in range(1, 6)]
        with make_client(paged_handler(records, calls=calls)) as remote:
            tickets = remote.fetch_tickets()
        assert [t.id for t in tickets] == [r["id"] for r in records]
        assert [c.url.params["page"] for c in calls] == ["1", "2", "3"]

    def test_stops_at_total_on_full_last_page(self):
        calls = []
        records = [remote_ticket(n) for n in range(1, 5)]
        with make_client(paged_handler(records, calls=calls)) as remote:
            assert len(remote.fetch_tickets()) == 4
        assert len(calls) == 2

    def test_stops_on_empty_page_without_total(self):
        calls = []
        records = [remote_ticket(n) for n in range(1, 5)]
        with make_client(paged_handler(records, total=False, calls=calls)) as remote:
            assert len(remote.fetch_tickets()) == 4
        assert len(calls) == 3

    def test_stops_when_server_ignores_page(self):
        calls = []
        records = [remote_ticket(1), remote_ticket(2)]

        def same_page(request):
            calls.append(request)
            return httpx.Response(200, json={"items": records})

        with make_client(same_page) as remote:
            tickets = remote.fetch_tickets()
        assert [t.id for t in tickets] == ["HD-2024-0001", "HD-2024-0002"]
        assert len(calls) == 2

    def test_stops_at_max_pages(self):
        calls = []

        def endless(request):
            calls.append(request)
            page = int(request.url.params["page"])
            return httpx.Response(200, json={"items": [remote_ticket(2 * page - 1), remote_ticket(2 * page)]})

        http = httpx.Client(base_url="http://remote.test/api", transport=httpx.MockTransport(endless))
        with RemoteHelpdeskClient(page_size=2, max_pages=3, client=http) as remote:
            assert len(remote.fetch_tickets()) == 6
        assert len(calls) == 3

    def test_invalid_record_raises_validation_error(self):
        with make_client(lambda request: httpx.Response(200, json={"items": [{"id": "x"}], "total": 1})) as remote:
            with pytest.raises(ValidationError):
                remote.fetch_tickets()

    def test_http_error_propagates(self):
        with make_client(lambda request: httpx.Response(503)) as remote:
            with pytest.raises(httpx.HTTPStatusError):
                remote.fetch_tickets()


def test_fetch_departments():
    with make_client(paged_handler([])) as remote:
        departments = remote.fetch_departments()
    assert [d.name for d in departments] == ["T.I", "RH"]


def test_token_sets_bearer_header():
    # headers are only applied to clients the wrapper builds itself
    remote = RemoteHelpdeskClient("http://remote.test/api", token="secret")
    try:
        assert remote._client.headers["Authorization"] == "Bearer secret"
    finally:
        remote.close()


def test_sync_tickets_replaces_store(store, new_ticket):
    store.create(new_ticket())
    store.create(new_ticket())
    records = [remote_ticket(7)]
    with make_client(paged_handler(records)) as remote:
        assert remote.sync_tickets(store) == 1
    assert [t.id for t in store.snapshot()] == ["HD-2024-0007"]
