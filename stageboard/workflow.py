"""
Generic linear stage tracker.

Every workflow board (vouchers, tickets, donations, billing) is the same
shape: a fixed ordered list of stages, an operation that moves one entity to
the next stage while recording history, a flag toggle, and a grouped view by
stage. ``StageModel`` holds the stage list; ``PipelineTracker`` implements the
operations for any ``TrackedEntity`` subclass.

All operations return new entity objects and leave their input untouched.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from .models import StageDefinition, StageEntry, TrackedEntity
from .utils.exceptions import UnknownStageError, ValidationError

log = logging.getLogger(__name__)

E = TypeVar('E', bound=TrackedEntity)

StageKey = Union[str, Enum]

# Hook signature: (entity being advanced, stage being entered, stage index) -> extra field updates
EnterHook = Callable[[TrackedEntity, str, int], Dict[str, object]]


def _key(stage: StageKey) -> str:
    return stage.value if isinstance(stage, Enum) else stage


class StageModel:
    """Fixed, ordered list of named stages with constant-time index lookup."""

    def __init__(self, stages: Sequence[StageDefinition]):
        if not stages:
            raise ValidationError("A stage model needs at least one stage")

        self._stages = tuple(stages)
        self._index: Dict[str, int] = {}
        for position, stage in enumerate(self._stages):
            if stage.key in self._index:
                raise ValidationError(f"Duplicate stage key: {stage.key}")
            self._index[stage.key] = position

    @classmethod
    def from_enum(cls, enum_cls: Type[Enum], labels: Mapping[Enum, str]) -> "StageModel":
        """Build a model from an Enum whose definition order is the stage order."""
        return cls([StageDefinition(key=member.value, label=labels[member]) for member in enum_cls])

    @property
    def stages(self) -> tuple:
        return self._stages

    @property
    def keys(self) -> List[str]:
        return [stage.key for stage in self._stages]

    @property
    def labels(self) -> Dict[str, str]:
        return {stage.key: stage.label for stage in self._stages}

    @property
    def initial(self) -> str:
        return self._stages[0].key

    @property
    def terminal(self) -> str:
        return self._stages[-1].key

    def __len__(self) -> int:
        return len(self._stages)

    def __contains__(self, stage: StageKey) -> bool:
        return _key(stage) in self._index

    def index(self, stage: StageKey) -> int:
        key = _key(stage)
        try:
            return self._index[key]
        except KeyError:
            raise UnknownStageError(
                f"Unknown stage '{key}'",
                details={"stage": key, "known": self.keys}
            ) from None

    def label(self, stage: StageKey) -> str:
        return self._stages[self.index(stage)].label

    def is_terminal(self, stage: StageKey) -> bool:
        return self.index(stage) == len(self._stages) - 1

    def next_key(self, stage: StageKey) -> Optional[str]:
        """Key of the stage after ``stage``, or None at the terminal stage."""
        position = self.index(stage) + 1
        if position >= len(self._stages):
            return None
        return self._stages[position].key

    def to_list(self) -> List[Dict[str, str]]:
        return [{"key": stage.key, "label": stage.label} for stage in self._stages]


class PipelineTracker:
    """
    Stage operations for one pipeline.

    Args:
        stage_model: Ordered stages for the pipeline
        default_flag_reason: Reason recorded when an entity is flagged without one
        on_enter: Optional hook returning extra field updates when a stage is entered
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        stage_model: StageModel,
        default_flag_reason: Optional[str] = None,
        on_enter: Optional[EnterHook] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.stage_model = stage_model
        self.default_flag_reason = default_flag_reason
        self._on_enter = on_enter
        self._clock = clock

    def initial_history(self, timestamp: datetime) -> List[StageEntry]:
        return [StageEntry(
            stage=self.stage_model.initial,
            timestamp=timestamp,
            completed=len(self.stage_model) == 1
        )]

    def advance(self, entity: E, now: Optional[datetime] = None) -> E:
        """
        Move ``entity`` to the next stage.

        At the terminal stage this is a no-op and returns ``entity`` itself.
        Otherwise the left stage's history entry is marked completed and a new
        entry is appended, completed only if the new stage is terminal.
        """
        current_index = self.stage_model.index(entity.current_stage)
        next_index = current_index + 1
        if next_index >= len(self.stage_model):
            log.debug(f"{entity.id} already at terminal stage {entity.current_stage}")
            return entity

        next_stage = self.stage_model.stages[next_index].key
        timestamp = now or self._clock()

        history = [
            entry.model_copy(update={"completed": True})
            if entry.stage == entity.current_stage else entry.model_copy()
            for entry in entity.stage_history
        ]
        history.append(StageEntry(
            stage=next_stage,
            timestamp=timestamp,
            completed=next_index == len(self.stage_model) - 1
        ))

        updates: Dict[str, object] = {"current_stage": next_stage, "stage_history": history}
        if self._on_enter is not None:
            updates.update(self._on_enter(entity, next_stage, next_index))

        log.debug(f"{entity.id}: {entity.current_stage} -> {next_stage}")
        return entity.model_copy(update=updates, deep=True)

    def advance_to(self, entity: E, target: StageKey, now: Optional[datetime] = None) -> E:
        """Advance one stage at a time until ``entity`` reaches ``target``. Never moves backwards."""
        target_index = self.stage_model.index(target)
        while self.stage_model.index(entity.current_stage) < target_index:
            entity = self.advance(entity, now)
        return entity

    def toggle_flag(self, entity: E, reason: Optional[str] = None) -> E:
        """Flip the flag; set the reason when flagging, clear it when unflagging."""
        flagged = not entity.flagged
        flag_reason = (reason or self.default_flag_reason) if flagged else None
        log.debug(f"{entity.id}: flagged={flagged} reason={flag_reason!r}")
        return entity.model_copy(update={"flagged": flagged, "flag_reason": flag_reason}, deep=True)

    def group_by_stage(self, entities: Iterable[E]) -> Dict[str, List[E]]:
        """Partition entities by current stage, newest ``created_at`` first within each stage."""
        grouped: Dict[str, List[E]] = {key: [] for key in self.stage_model.keys}
        for entity in entities:
            grouped[self.stage_model.keys[self.stage_model.index(entity.current_stage)]].append(entity)
        for members in grouped.values():
            members.sort(key=lambda e: e.created_at, reverse=True)
        return grouped

    def progress(self, entity: TrackedEntity) -> float:
        """Fraction of the pipeline completed, 0.0 at the first stage and 1.0 at the last."""
        if len(self.stage_model) == 1:
            return 1.0
        return self.stage_model.index(entity.current_stage) / (len(self.stage_model) - 1)

    def validate_history(self, entity: TrackedEntity) -> None:
        """
        Check the history invariants.

        Raises:
            ValidationError: if the history is not a prefix of the stage list or
                does not end at ``current_stage``
        """
        stages = [entry.stage for entry in entity.stage_history]
        expected = self.stage_model.keys[:len(stages)]
        if stages != expected:
            raise ValidationError(
                f"{entity.id}: history {stages} is not a prefix of {self.stage_model.keys}",
                details={"entity": entity.id, "history": stages}
            )
        if not stages or stages[-1] != entity.current_stage:
            raise ValidationError(
                f"{entity.id}: current stage '{entity.current_stage}' does not match history",
                details={"entity": entity.id}
            )
        for entry in entity.stage_history[:-1]:
            if not entry.completed:
                raise ValidationError(
                    f"{entity.id}: stage '{entry.stage}' was left but is not completed",
                    details={"entity": entity.id, "stage": entry.stage}
                )
