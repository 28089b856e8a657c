"""
helpdesk/api/main.py — Helpdesk ticket store + department classifier REST API

Tickets:
    GET    /tickets                → current snapshot
    POST   /tickets                → 201  create (department pre-filled when blank)
    PUT    /tickets                → replace the whole collection
    GET    /tickets/upcoming       → open tickets ordered by SLA deadline
    GET    /tickets/{id}           → one ticket
    PATCH  /tickets/{id}           → partial update
    DELETE /tickets/{id}           → 204
    GET    /tickets/{id}/sla       → derived SLA status
    POST   /tickets/detail         → merge authoritative detail (insert if unknown)

Departments / classification:
    GET    /departments            → known department directory
    POST   /classify               → best department for a title + description

Remote:
    POST   /sync                   → pull tickets + departments from the remote API

Shared:
    GET    /health                 → liveness + store size

Run API:      uvicorn helpdesk.api.main:app --reload

Set optional env vars in .env:
    HELPDESK_STORAGE_BACKEND=file|redis|memory
    HELPDESK_STORAGE_DIR=./data
    REDIS_URL=redis://localhost:6379/0
    HELPDESK_API_URL=http://localhost:5140/api
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from dotenv import load_dotenv

load_dotenv()

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from helpdesk.config import DEFAULT_DEPARTMENTS, STORAGE_KEY
from helpdesk.routing.department_classifier import classify
from helpdesk.routing.router import create_ticket
from helpdesk.schemas import (
    ClassifyIn,
    ClassifyOut,
    Department,
    SlaStatus,
    Ticket,
    TicketCreate,
    TicketDetail,
    TicketPatch,
)
from helpdesk.store.sla import compute_sla_status, upcoming_by_sla
from helpdesk.store.storage import SlotStorage, storage_from_config
from helpdesk.store.ticket_store import TicketStore
from helpdesk.sync.remote import RemoteHelpdeskClient

# ── logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)


# ── Response schemas ─────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    tickets: int
    storage: str
    departments: int


class SlaResponse(BaseModel):
    ticket_id: str
    status: SlaStatus
    hours_until_deadline: Optional[float] = None
    tone: str


class ReplaceResponse(BaseModel):
    count: int


class SyncResponse(BaseModel):
    tickets: int
    departments: int


# ── app factory ──────────────────────────────────────────────────────────────

def create_app(
    storage: SlotStorage | None = None,
    *,
    departments: list[Department] | None = None,
    clock: Callable | None = None,
    remote_factory: Callable[[], RemoteHelpdeskClient] | None = None,
) -> FastAPI:
    """Build the API around an explicitly owned ``TicketStore``.

    Everything is injectable so tests can run on in-memory storage, a fixed
    clock and a mocked remote client.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        backend = storage if storage is not None else storage_from_config()
        app.state.store = TicketStore(
            backend,
            key=STORAGE_KEY,
            clock=clock,
        )
        app.state.departments = list(departments) if departments is not None else [
            Department.model_validate(d) for d in DEFAULT_DEPARTMENTS
        ]
        app.state.remote_factory = remote_factory or RemoteHelpdeskClient
        logger.info("Ticket store ready (%d tickets, backend=%s).",
                    len(app.state.store), type(backend).__name__)
        yield
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="Helpdesk Ticket Store",
        description="Ticket store with derived SLA status and department classifier.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_routes(app)
    return app


# ── dependencies ─────────────────────────────────────────────────────────────

def get_store(request: Request) -> TicketStore:
    return request.app.state.store


def get_departments(request: Request) -> list[Department]:
    return request.app.state.departments


def _not_found(ticket_id: str) -> HTTPException:
    logger.warning("Ticket %s not found.", ticket_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Ticket {ticket_id} not found.")


# ═════════════════════════════════════════════════════════════════════════════
# ROUTES
# ═════════════════════════════════════════════════════════════════════════════

def _register_routes(app: FastAPI) -> None:

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request, store: TicketStore = Depends(get_store)) -> HealthResponse:
        return HealthResponse(
            status="ok",
            tickets=len(store),
            storage=type(store.storage).__name__,
            departments=len(request.app.state.departments),
        )

    # ── tickets ──────────────────────────────────────────────────────────────

    @app.get("/tickets", response_model=list[Ticket], tags=["Tickets"])
    def list_tickets(store: TicketStore = Depends(get_store)) -> list[Ticket]:
        return store.snapshot()

    @app.post(
        "/tickets",
        response_model=Ticket,
        status_code=status.HTTP_201_CREATED,
        tags=["Tickets"],
        summary="Open a ticket",
    )
    def open_ticket(
        payload: TicketCreate,
        store: TicketStore = Depends(get_store),
        departments: list[Department] = Depends(get_departments),
    ) -> Ticket:
        return create_ticket(store, payload, departments)

    @app.put("/tickets", response_model=ReplaceResponse, tags=["Tickets"], summary="Replace all tickets")
    def replace_tickets(records: list[Ticket], store: TicketStore = Depends(get_store)) -> ReplaceResponse:
        try:
            store.replace_all(records)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        return ReplaceResponse(count=len(records))

    @app.get("/tickets/upcoming", response_model=list[Ticket], tags=["Tickets"])
    def upcoming_tickets(
        limit: int = Query(5, ge=1, le=100),
        store: TicketStore = Depends(get_store),
    ) -> list[Ticket]:
        return upcoming_by_sla(store.snapshot(), limit=limit)

    @app.post("/tickets/detail", response_model=Ticket, tags=["Tickets"], summary="Merge ticket detail")
    def merge_detail(detail: TicketDetail, store: TicketStore = Depends(get_store)) -> Ticket:
        return store.upsert_detail(detail)

    @app.get("/tickets/{ticket_id}", response_model=Ticket, tags=["Tickets"])
    def read_ticket(ticket_id: str, store: TicketStore = Depends(get_store)) -> Ticket:
        ticket = store.get(ticket_id)
        if ticket is None:
            raise _not_found(ticket_id)
        return ticket

    @app.patch("/tickets/{ticket_id}", response_model=Ticket, tags=["Tickets"])
    def patch_ticket(ticket_id: str, patch: TicketPatch, store: TicketStore = Depends(get_store)) -> Ticket:
        ticket = store.update(ticket_id, patch)
        if ticket is None:
            raise _not_found(ticket_id)
        return ticket

    @app.delete("/tickets/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Tickets"])
    def delete_ticket(ticket_id: str, store: TicketStore = Depends(get_store)) -> Response:
        if not store.remove(ticket_id):
            raise _not_found(ticket_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/tickets/{ticket_id}/sla", response_model=SlaResponse, tags=["Tickets"])
    def ticket_sla(ticket_id: str, store: TicketStore = Depends(get_store)) -> SlaResponse:
        ticket = store.get(ticket_id)
        if ticket is None:
            raise _not_found(ticket_id)
        sla = compute_sla_status(ticket, now=store.now())
        return SlaResponse(
            ticket_id=ticket.id,
            status=sla.status,
            hours_until_deadline=sla.hours_until_deadline,
            tone=sla.tone,
        )

    # ── departments / classification ─────────────────────────────────────────

    @app.get("/departments", response_model=list[Department], tags=["Departments"])
    def list_departments(departments: list[Department] = Depends(get_departments)) -> list[Department]:
        return departments

    @app.post("/classify", response_model=ClassifyOut, tags=["Departments"])
    def classify_text(
        payload: ClassifyIn,
        departments: list[Department] = Depends(get_departments),
    ) -> ClassifyOut:
        candidates = payload.departments if payload.departments is not None else departments
        return ClassifyOut(department=classify(payload.title, payload.description, candidates))

    # ── remote sync ──────────────────────────────────────────────────────────

    @app.post("/sync", response_model=SyncResponse, tags=["Remote"])
    def sync_remote(request: Request, store: TicketStore = Depends(get_store)) -> SyncResponse:
        try:
            with request.app.state.remote_factory() as remote:
                departments = remote.fetch_departments()
                count = remote.sync_tickets(store)
        except httpx.HTTPError as exc:
            logger.warning("Remote sync failed: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Remote helpdesk API unavailable: {exc}",
            ) from exc
        except ValueError as exc:
            # non-JSON body, invalid records or duplicate ids
            logger.warning("Remote sync returned unusable data: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Remote helpdesk API returned invalid data: {exc}",
            ) from exc

        if departments:
            request.app.state.departments = departments
        logger.info("Synced %d tickets and %d departments.", count, len(departments))
        return SyncResponse(tickets=count, departments=len(departments))


app = create_app()
