"""Pydantic schemas for tickets, patches and departments.

Python attributes are snake_case; the serialized form (durable mirror,
HTTP payloads, remote API) is camelCase, e.g. ``createdAt``, ``slaDeadline``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Priority(str, Enum):
    LOW = "Baixa"
    MEDIUM = "Média"
    HIGH = "Alta"
    CRITICAL = "Crítica"


class TicketStatus(str, Enum):
    OPEN = "Aberto"
    IN_PROGRESS = "Em Andamento"
    PENDING = "Pendente"
    RESOLVED = "Resolvido"
    CLOSED = "Fechado"


CLOSED_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})


class SlaStatus(str, Enum):
    NORMAL = "Normal"
    CRITICAL = "Crítico"
    BREACHED = "Vencido"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── records ───────────────────────────────────────────────────────────────────

class Department(_CamelModel):
    id: int
    name: str


class Ticket(_CamelModel):
    id: str = Field(..., min_length=1)
    title: str
    description: str
    category: str
    priority: Priority
    status: TicketStatus = TicketStatus.OPEN
    requester: str
    department: str
    created_at: datetime
    updated_at: datetime
    sla_deadline: Optional[datetime] = None
    has_full_detail: bool = False

    timestamps_utc = field_validator("created_at", "updated_at", "sla_deadline")(_as_utc)


# ── inputs ────────────────────────────────────────────────────────────────────

class TicketCreate(_CamelModel):
    """Fields supplied by whoever opens a ticket."""
    title:        str = Field(..., min_length=1, max_length=500, examples=["Servidor fora do ar"])
    description:  str = Field("", max_length=10_000)
    category:     str = ""
    priority:     Priority = Priority.MEDIUM
    requester:    str = ""
    department:   str = ""   # blank → classifier may fill it in
    sla_deadline: Optional[datetime] = None

    deadline_utc = field_validator("sla_deadline")(_as_utc)


class TicketPatch(_CamelModel):
    """Partial update: only the fields the caller sets are applied."""
    model_config = ConfigDict(extra="forbid")

    title:        Optional[str] = None
    description:  Optional[str] = None
    category:     Optional[str] = None
    priority:     Optional[Priority] = None
    status:       Optional[TicketStatus] = None
    requester:    Optional[str] = None
    department:   Optional[str] = None
    sla_deadline: Optional[datetime] = None

    deadline_utc = field_validator("sla_deadline")(_as_utc)

    def set_fields(self) -> list[str]:
        """Names of explicitly provided fields, in declaration order."""
        return [name for name in type(self).model_fields if name in self.model_fields_set]


class TicketDetail(TicketPatch):
    """Authoritative detail for one ticket, merged by id.

    Accepts a full serialized ``Ticket`` as well as a partial one.
    """
    id:              str = Field(..., min_length=1)
    created_at:      Optional[datetime] = None
    updated_at:      Optional[datetime] = None
    has_full_detail: Optional[bool] = None

    stamps_utc = field_validator("created_at", "updated_at")(_as_utc)


# ── outputs ───────────────────────────────────────────────────────────────────

class ClassifyIn(_CamelModel):
    title:       str = ""
    description: str = ""
    departments: Optional[list[Department]] = None


class ClassifyOut(_CamelModel):
    department: Optional[Department] = None
