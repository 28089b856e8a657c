"""Ticket creation flow — pre-fill the department, then hand off to the store."""

from __future__ import annotations

import logging
from typing import Sequence

from helpdesk.config import APPLY_DEFAULT_SLA
from helpdesk.routing.department_classifier import classify
from helpdesk.schemas import Department, Ticket, TicketCreate
from helpdesk.store.sla import default_sla_deadline
from helpdesk.store.ticket_store import TicketStore

logger = logging.getLogger(__name__)


def prefill_department(payload: TicketCreate, departments: Sequence[Department]) -> TicketCreate:
    """Return *payload* with a classified department when it was left blank.

    An explicit department is kept as is; when the classifier finds nothing
    the department stays blank for manual selection.
    """
    if payload.department.strip():
        return payload
    guess = classify(payload.title, payload.description, departments)
    if guess is None:
        return payload
    logger.info("Department pre-filled as %s for %r", guess.name, payload.title)
    return payload.model_copy(update={"department": guess.name})


def create_ticket(
    store: TicketStore,
    payload: TicketCreate,
    departments: Sequence[Department],
    *,
    apply_default_sla: bool = APPLY_DEFAULT_SLA,
) -> Ticket:
    """Classify (if needed) and create a ticket.

    Parameters
    ----------
    store:
        Target store.
    payload:
        Requester input.
    departments:
        Known department directory used by the classifier.
    apply_default_sla:
        Derive a deadline from the priority when none was supplied.
    """
    payload = prefill_department(payload, departments)
    if apply_default_sla and payload.sla_deadline is None:
        deadline = default_sla_deadline(payload.priority, store.now())
        payload = payload.model_copy(update={"sla_deadline": deadline})
    return store.create(payload)
