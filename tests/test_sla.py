"""Tests for derived SLA status and deadline ordering."""

from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.schemas import Priority, SlaStatus, Ticket, TicketStatus
from helpdesk.store.sla import compute_sla_status, default_sla_deadline, upcoming_by_sla

NOW = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def make_ticket(ticket_id="HD-2024-0001", deadline=None, status=TicketStatus.OPEN):
    return Ticket(
        id=ticket_id,
        title="Chamado",
        description="",
        category="",
        priority=Priority.MEDIUM,
        status=status,
        requester="",
        department="",
        created_at=NOW - timedelta(days=1),
        updated_at=NOW - timedelta(days=1),
        sla_deadline=deadline,
    )


class TestComputeSlaStatus:

    def test_no_deadline_is_normal(self):
        result = compute_sla_status(make_ticket(), now=NOW)
        assert result.status is SlaStatus.NORMAL
        assert result.hours_until_deadline is None
        assert result.tone == "low"

    @pytest.mark.parametrize("offset,expected,tone", [
        (timedelta(hours=-1), SlaStatus.BREACHED, "critical"),
        (timedelta(seconds=-1), SlaStatus.BREACHED, "critical"),
        (timedelta(0), SlaStatus.CRITICAL, "high"),
        (timedelta(hours=1), SlaStatus.CRITICAL, "high"),
        (timedelta(hours=2), SlaStatus.NORMAL, "low"),
        (timedelta(hours=5), SlaStatus.NORMAL, "low"),
    ])
    def test_tiers(self, offset, expected, tone):
        result = compute_sla_status(make_ticket(deadline=NOW + offset), now=NOW)
        assert result.status is expected
        assert result.tone == tone
        assert result.hours_until_deadline == pytest.approx(offset / timedelta(hours=1))

    def test_status_values_are_display_strings(self):
        assert SlaStatus.CRITICAL.value == "Crítico"
        assert SlaStatus.BREACHED.value == "Vencido"

    def test_defaults_to_wall_clock(self):
        far = datetime.now(timezone.utc) + timedelta(days=30)
        assert compute_sla_status(make_ticket(deadline=far)).status is SlaStatus.NORMAL


def test_default_sla_deadline_by_priority():
    assert default_sla_deadline(Priority.CRITICAL, NOW) == NOW + timedelta(hours=2)
    assert default_sla_deadline(Priority.HIGH, NOW) == NOW + timedelta(hours=8)
    assert default_sla_deadline(Priority.LOW, NOW) == NOW + timedelta(hours=72)


class TestUpcomingBySla:

    def test_orders_open_tickets_by_deadline(self):
        tickets = [
            make_ticket("a", NOW + timedelta(hours=5)),
            make_ticket("b", NOW + timedelta(hours=1)),
            make_ticket("c", NOW - timedelta(hours=1)),
            make_ticket("d", NOW + timedelta(hours=2), status=TicketStatus.RESOLVED),
            make_ticket("e", NOW, status=TicketStatus.CLOSED),
        ]
        assert [t.id for t in upcoming_by_sla(tickets)] == ["c", "b", "a"]

    def test_missing_deadline_first_and_limit(self):
        tickets = [
            make_ticket("a", NOW + timedelta(hours=5)),
            make_ticket("b"),
            make_ticket("c", NOW + timedelta(hours=1)),
        ]
        assert [t.id for t in upcoming_by_sla(tickets, limit=2)] == ["b", "c"]

    def test_in_progress_and_pending_count_as_open(self):
        tickets = [
            make_ticket("a", NOW, status=TicketStatus.IN_PROGRESS),
            make_ticket("b", NOW, status=TicketStatus.PENDING),
        ]
        assert len(upcoming_by_sla(tickets)) == 2
