"""
In-memory boards.

A board holds one pipeline's entities for the lifetime of the process. Every
action swaps the stored entity for the new one returned by the domain
operation; nothing is persisted. Each board guards its list with a lock
because the API runs sync endpoints in a thread pool.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .domains import billing, donations, tickets, vouchers
from .models import TrackedEntity
from .utils.config import SETTINGS, Settings
from .utils.exceptions import ErrorContext, NotFoundError
from .workflow import PipelineTracker

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pipeline:
    """How to build, operate on and summarise one kind of board."""
    name: str
    title: str
    tracker: PipelineTracker
    generate: Callable[[Settings, datetime], List[TrackedEntity]]
    stats: Callable[[List[TrackedEntity], datetime], Dict[str, float]]


def _billing_stats(runs: List[TrackedEntity], now: datetime) -> Dict[str, float]:
    return billing.billing_stats(runs[0]) if runs else {}


PIPELINES: Dict[str, Pipeline] = {
    "vouchers": Pipeline(
        name="vouchers",
        title="Voucher Fulfillment",
        tracker=vouchers.TRACKER,
        generate=lambda s, now: vouchers.generate_orders(s.voucher_count, s.voucher_seed, now),
        stats=vouchers.voucher_stats,
    ),
    "tickets": Pipeline(
        name="tickets",
        title="Traffic Tickets",
        tracker=tickets.TRACKER,
        generate=lambda s, now: tickets.generate_tickets(s.ticket_count, s.ticket_seed, now),
        stats=tickets.ticket_kpis,
    ),
    "donations": Pipeline(
        name="donations",
        title="Donation Workflow",
        tracker=donations.TRACKER,
        generate=lambda s, now: donations.generate_donations(s.donation_count, s.donation_seed, now),
        stats=lambda entities, now: donations.donation_stats(entities),
    ),
    "billing": Pipeline(
        name="billing",
        title="Billing Run",
        tracker=billing.TRACKER,
        generate=lambda s, now: [billing.create_billing_run(
            period=s.billing_period,
            customers=billing.generate_customers(s.billing_customer_count),
            now=now,
        )],
        stats=_billing_stats,
    ),
}


def get_pipeline(name: str) -> Pipeline:
    try:
        return PIPELINES[name]
    except KeyError:
        raise NotFoundError(
            f"Unknown pipeline '{name}'",
            details={"pipeline": name, "available": list(PIPELINES)}
        ) from None


class Board:
    """One pipeline's entities with lock-protected replacement."""

    def __init__(self, pipeline: Pipeline, entities: List[TrackedEntity]):
        self.pipeline = pipeline
        self._entities = list(entities)
        self._lock = threading.Lock()

    @property
    def entities(self) -> List[TrackedEntity]:
        with self._lock:
            return list(self._entities)

    def _position(self, entity_id: str) -> int:
        for position, entity in enumerate(self._entities):
            if entity.id == entity_id:
                return position
        raise NotFoundError(
            f"{self.pipeline.name}: {entity_id} not found",
            details={"pipeline": self.pipeline.name, "entity_id": entity_id}
        )

    def get(self, entity_id: str) -> TrackedEntity:
        with self._lock:
            return self._entities[self._position(entity_id)]

    def apply(self, entity_id: str, action: Callable[[TrackedEntity], TrackedEntity]) -> TrackedEntity:
        """Run ``action`` on the stored entity and store what it returns in its place."""
        with self._lock:
            position = self._position(entity_id)
            updated = action(self._entities[position])
            self._entities[position] = updated
            return updated

    def transform(self, action: Callable[[List[TrackedEntity]], List[TrackedEntity]]) -> List[TrackedEntity]:
        """Replace the whole list with what ``action`` returns for it; used for removals."""
        with self._lock:
            self._entities = list(action(list(self._entities)))
            return list(self._entities)

    def replace_all(self, entities: List[TrackedEntity]) -> None:
        with self._lock:
            self._entities = list(entities)

    def view(self, now: Optional[datetime] = None) -> Dict[str, object]:
        """Stage columns, per-stage counts and the pipeline's header figures."""
        now = now or datetime.now()
        entities = self.entities
        stage_model = self.pipeline.tracker.stage_model
        grouped = self.pipeline.tracker.group_by_stage(entities)
        return {
            "pipeline": self.pipeline.name,
            "title": self.pipeline.title,
            "columns": [
                {
                    "key": key,
                    "label": stage_model.label(key),
                    "count": len(members),
                    "entities": [e.model_dump(mode="json") for e in members],
                }
                for key, members in grouped.items()
            ],
            "counts": {key: len(members) for key, members in grouped.items()},
            "stats": self.pipeline.stats(entities, now),
        }


class BoardStore:
    """All boards for one application instance."""

    def __init__(self, settings: Optional[Settings] = None, clock: Callable[[], datetime] = datetime.now):
        self.settings = settings or SETTINGS
        self._clock = clock
        self._boards: Dict[str, Board] = {}
        for name in PIPELINES:
            self._boards[name] = Board(PIPELINES[name], self._generate(name))

    def _generate(self, name: str) -> List[TrackedEntity]:
        with ErrorContext(f"generate the {name} board", log):
            entities = PIPELINES[name].generate(self.settings, self._clock())
        log.debug(f"Loaded {len(entities)} entities onto the {name} board")
        return entities

    def board(self, name: str) -> Board:
        get_pipeline(name)
        return self._boards[name]

    def reset(self, name: str) -> Board:
        """Regenerate a board from its configured seed."""
        board = self.board(name)
        board.replace_all(self._generate(name))
        log.info(f"Reset {name} board")
        return board

    def names(self) -> List[str]:
        return list(self._boards)


def create_boards(settings: Optional[Settings] = None, clock: Callable[[], datetime] = datetime.now) -> BoardStore:
    return BoardStore(settings, clock)
