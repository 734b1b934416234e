import logging
from typing import Iterable, List, Optional

from ..models.recipe import Step

log = logging.getLogger(__name__)


class StepSequence:
    """
    Ordered steps with completion flags. Sequence order is list position,
    not numeric id. This is the only place a step's `completed` changes.
    """

    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: List[Step] = list(steps)

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def position(self, step_id: int) -> Optional[int]:
        for idx, step in enumerate(self._steps):
            if step.id == step_id:
                return idx
        return None

    def get(self, step_id: int) -> Optional[Step]:
        idx = self.position(step_id)
        return None if idx is None else self._steps[idx]

    def can_complete(self, step_id: int) -> bool:
        """True iff every step before `step_id` is completed."""
        idx = self.position(step_id)
        if idx is None:
            return False
        return all(step.completed for step in self._steps[:idx])

    def next_after(self, step_id: int) -> Optional[Step]:
        idx = self.position(step_id)
        if idx is None or idx + 1 >= len(self._steps):
            return None
        return self._steps[idx + 1]

    def mark(self, step_id: int, completed: bool) -> None:
        idx = self.position(step_id)
        if idx is None:
            log.debug(f"Ignoring mark for unknown step {step_id}")
            return
        self._steps[idx] = self._steps[idx].model_copy(update={"completed": completed})

    def reset(self) -> None:
        self._steps = [step.model_copy(update={"completed": False}) for step in self._steps]

    def replace(self, steps: Iterable[Step]) -> None:
        self._steps = list(steps)

    @property
    def completed_count(self) -> int:
        return sum(1 for step in self._steps if step.completed)

    @property
    def current_step(self) -> Optional[Step]:
        return next((step for step in self._steps if not step.completed), None)
