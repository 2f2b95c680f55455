"""
Workflow board endpoints.

Generic actions (advance, flag, reset) work on every pipeline. The ticket
inspector and donation table routes are registered ahead of them so that
``/tickets/inbox`` is not read as an entity id.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ...boards import PIPELINES, BoardStore, get_pipeline
from ...domains import donations, tickets
from ...domains.donations import SortState
from ..dependencies import get_boards, get_now
from ..schemas import FlagRequest

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boards", tags=["boards"])


@router.get("")
def list_pipelines() -> Dict[str, Any]:
    return {
        "pipelines": [
            {
                "name": pipeline.name,
                "title": pipeline.title,
                "stages": pipeline.tracker.stage_model.to_list(),
            }
            for pipeline in PIPELINES.values()
        ]
    }


# Ticket inspector

@router.get("/tickets/inbox")
def ticket_inbox(
    tab: str = Query("incoming"),
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    """One inspector tab plus the pipeline counts and KPIs shown above it."""
    items = boards.board("tickets").entities
    return {
        "tab": tab,
        "tickets": [t.model_dump(mode="json") for t in tickets.filter_tickets(items, tab)],
        "counts": tickets.pipeline_counts(items),
        "kpis": tickets.ticket_kpis(items, now),
    }


@router.get("/tickets/analytics")
def ticket_analytics(
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    return tickets.ticket_analytics(boards.board("tickets").entities, now)


@router.post("/tickets/{ticket_id}/dispatch")
def dispatch_ticket(
    ticket_id: str,
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    ticket = boards.board("tickets").apply(ticket_id, lambda t: tickets.confirm_and_dispatch(t, now))
    return ticket.model_dump(mode="json")


@router.post("/tickets/{ticket_id}/reassign")
def reassign_ticket(
    ticket_id: str,
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    ticket = boards.board("tickets").apply(ticket_id, lambda t: tickets.reassign_ticket(t, now=now))
    return ticket.model_dump(mode="json")


@router.post("/tickets/{ticket_id}/review")
def review_ticket(ticket_id: str, boards: BoardStore = Depends(get_boards)) -> Dict[str, Any]:
    ticket = boards.board("tickets").apply(ticket_id, tickets.flag_for_review)
    return ticket.model_dump(mode="json")


@router.post("/tickets/{ticket_id}/resolve")
def resolve_ticket(
    ticket_id: str,
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    ticket = boards.board("tickets").apply(ticket_id, lambda t: tickets.resolve_exception(t, now))
    return ticket.model_dump(mode="json")


@router.delete("/tickets/{ticket_id}")
def dismiss_ticket(ticket_id: str, boards: BoardStore = Depends(get_boards)) -> Dict[str, Any]:
    remaining = boards.board("tickets").transform(lambda items: tickets.dismiss_ticket(items, ticket_id))
    log.info(f"Dismissed ticket {ticket_id}, {len(remaining)} left")
    return {"dismissed": ticket_id}


# Donation table and feed

@router.get("/donations/table")
def donation_table(
    status: str = Query("all"),
    sort: str = Query("date"),
    direction: str = Query("desc"),
    toggle: Optional[str] = Query(None, description="Column header clicked; flips or switches the sort"),
    boards: BoardStore = Depends(get_boards),
) -> Dict[str, Any]:
    state = SortState(sort, direction)
    if toggle:
        state = donations.toggle_sort(state, toggle)
    items = boards.board("donations").entities
    rows = donations.filter_and_sort_donations(items, status, state)
    return {
        "status": status,
        "sort": {"field": state.field, "direction": state.direction},
        "donations": [d.model_dump(mode="json") for d in rows],
        "stats": donations.donation_stats(items),
    }


@router.get("/donations/feed")
def donation_feed(boards: BoardStore = Depends(get_boards)) -> Dict[str, Any]:
    events = donations.activity_feed(boards.board("donations").entities)
    return {"events": [e.model_dump(mode="json") for e in events]}


# Generic pipeline actions

@router.get("/{pipeline}")
def board_view(
    pipeline: str,
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    return boards.board(pipeline).view(now)


@router.post("/{pipeline}/reset")
def reset_board(
    pipeline: str,
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    return boards.reset(pipeline).view(now)


@router.get("/{pipeline}/{entity_id}")
def entity_detail(pipeline: str, entity_id: str, boards: BoardStore = Depends(get_boards)) -> Dict[str, Any]:
    return boards.board(pipeline).get(entity_id).model_dump(mode="json")


@router.post("/{pipeline}/{entity_id}/advance")
def advance_entity(
    pipeline: str,
    entity_id: str,
    boards: BoardStore = Depends(get_boards),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    tracker = get_pipeline(pipeline).tracker
    entity = boards.board(pipeline).apply(entity_id, lambda e: tracker.advance(e, now))
    return entity.model_dump(mode="json")


@router.post("/{pipeline}/{entity_id}/flag")
def flag_entity(
    pipeline: str,
    entity_id: str,
    body: Optional[FlagRequest] = None,
    boards: BoardStore = Depends(get_boards),
) -> Dict[str, Any]:
    tracker = get_pipeline(pipeline).tracker
    reason = body.reason if body else None
    entity = boards.board(pipeline).apply(entity_id, lambda e: tracker.toggle_flag(e, reason))
    return entity.model_dump(mode="json")
