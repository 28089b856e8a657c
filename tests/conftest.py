"""Shared fixtures: a manually advanced clock and in-memory storage."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.schemas import Department, TicketCreate
from helpdesk.store.storage import MemorySlotStorage
from helpdesk.store.ticket_store import TicketStore


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return MemorySlotStorage()


@pytest.fixture
def store(storage, clock):
    return TicketStore(storage, clock=clock)


@pytest.fixture
def departments():
    return [
        Department(id=1, name="T.I"),
        Department(id=2, name="Financeiro"),
        Department(id=3, name="RH"),
        Department(id=4, name="Producao"),
    ]


@pytest.fixture
def new_ticket():
    def _make(**overrides) -> TicketCreate:
        fields = {
            "title": "Falha no servidor",
            "description": "Servidor reinicia sozinho",
            "category": "Incidente",
            "priority": "Alta",
            "requester": "alice",
            "department": "T.I",
        }
        fields.update(overrides)
        return TicketCreate(**fields)
    return _make
