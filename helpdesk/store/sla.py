"""SLA status — derived on read from a ticket's deadline, never stored."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from helpdesk.config import CRITICAL_WINDOW_HOURS, SLA_HOURS_BY_PRIORITY
from helpdesk.schemas import CLOSED_STATUSES, Priority, SlaStatus, Ticket

_HOUR = timedelta(hours=1)

# Display tone per status (low = calm, high = warning, critical = breached)
_TONES = {
    SlaStatus.NORMAL: "low",
    SlaStatus.CRITICAL: "high",
    SlaStatus.BREACHED: "critical",
}


@dataclass(frozen=True)
class SlaResult:
    status: SlaStatus
    hours_until_deadline: float | None = None
    tone: str = "low"


def compute_sla_status(ticket: Ticket, now: datetime | None = None) -> SlaResult:
    """Three-tier SLA status: Normal, Crítico (< 2 h left) or Vencido (past due)."""
    if ticket.sla_deadline is None:
        return SlaResult(SlaStatus.NORMAL, None, _TONES[SlaStatus.NORMAL])

    now = now or datetime.now(timezone.utc)
    hours = (ticket.sla_deadline - now) / _HOUR

    if hours < 0:
        status = SlaStatus.BREACHED
    elif hours < CRITICAL_WINDOW_HOURS:
        status = SlaStatus.CRITICAL
    else:
        status = SlaStatus.NORMAL
    return SlaResult(status, hours, _TONES[status])


def default_sla_deadline(priority: Priority, start: datetime) -> datetime:
    """Deadline from the per-priority SLA table."""
    return start + timedelta(hours=SLA_HOURS_BY_PRIORITY[priority.value])


def upcoming_by_sla(tickets: Iterable[Ticket], limit: int = 5) -> list[Ticket]:
    """Open tickets ordered by deadline; tickets without one sort first."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    open_tickets = [t for t in tickets if t.status not in CLOSED_STATUSES]
    open_tickets.sort(key=lambda t: t.sla_deadline or epoch)
    return open_tickets[:limit]
