import logging

from .steps import StepSequence
from .timer_manager import TimerManager

log = logging.getLogger(__name__)


class ChainingController:
    """Completes a step and decides, in the same transition, whether the next step's timer starts."""

    def __init__(self, steps: StepSequence, timers: TimerManager):
        self.steps = steps
        self.timers = timers

    def complete(self, step_id: int) -> None:
        self.steps.mark(step_id, True)

        nxt = self.steps.next_after(step_id)
        if nxt is not None and not nxt.completed and nxt.has_timer:
            log.info(f"Step {step_id} done, chaining into timer for step {nxt.id}")
            self.timers.start(nxt.id, nxt.timer_duration_seconds)
        else:
            self.timers.reset()
