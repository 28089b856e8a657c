"""Tests for the ticket creation flow (department pre-fill + default SLA)."""

from datetime import datetime, timedelta, timezone

from helpdesk.routing.router import create_ticket, prefill_department


def test_prefill_fills_blank_department(new_ticket, departments):
    payload = new_ticket(title="Impressora sem rede", description="", department="")
    assert prefill_department(payload, departments).department == "T.I"
    # input is left untouched
    assert payload.department == ""


def test_prefill_keeps_explicit_department(new_ticket, departments):
    payload = new_ticket(title="Boleto vencido", department="RH")
    assert prefill_department(payload, departments) is payload


def test_prefill_leaves_blank_when_nothing_matches(new_ticket, departments):
    payload = new_ticket(title="Pedido generico", description="", department="  ")
    assert prefill_department(payload, departments).department == "  "


def test_create_ticket_classifies_and_stores(store, new_ticket, departments):
    ticket = create_ticket(
        store,
        new_ticket(title="Linha de produção parada", description="Máquina quebrada", department=""),
        departments,
        apply_default_sla=False,
    )
    assert ticket.department == "Producao"
    assert ticket.sla_deadline is None
    assert store.get(ticket.id).department == "Producao"


def test_create_ticket_applies_default_sla(store, clock, new_ticket, departments):
    ticket = create_ticket(store, new_ticket(priority="Alta"), departments, apply_default_sla=True)
    assert ticket.sla_deadline == clock() + timedelta(hours=8)


def test_explicit_deadline_wins_over_default(store, new_ticket, departments):
    deadline = datetime(2024, 1, 5, tzinfo=timezone.utc)
    ticket = create_ticket(
        store, new_ticket(sla_deadline=deadline), departments, apply_default_sla=True,
    )
    assert ticket.sla_deadline == deadline
