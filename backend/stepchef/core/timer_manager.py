import logging
from typing import Callable, Optional

from ..models.timer import TimerMode, TimerState
from .clock import Clock, ScheduledHandle, Scheduler, cancel_handle

log = logging.getLogger(__name__)


class TimerManager:
    """
    Owns the single active countdown.

    While running, remaining time is always `anchor_end_time - now`, never a
    counter decremented per tick, so throttled or suspended loops cannot
    make it drift.
    """

    def __init__(
        self,
        clock: Clock,
        scheduler: Scheduler,
        tick_interval: float = 0.25,
        on_tick: Optional[Callable[[], None]] = None,
        on_expiry: Optional[Callable[[int], None]] = None,
    ):
        self.clock = clock
        self.scheduler = scheduler
        self.tick_interval = tick_interval
        self.on_tick = on_tick
        self.on_expiry = on_expiry
        self.state = TimerState()
        self._handle: Optional[ScheduledHandle] = None

    @property
    def mode(self) -> TimerMode:
        return self.state.mode

    def start(self, step_id: int, duration: float) -> bool:
        if duration is None or duration <= 0:
            log.warning(f"Rejected timer for step {step_id}: duration {duration!r} is not positive")
            return False

        self._cancel_ticks()
        self.state = TimerState(
            active_step_id=step_id,
            remaining_seconds=float(duration),
            total_duration_seconds=float(duration),
            mode=TimerMode.RUNNING,
            anchor_end_time=self.clock.now() + duration,
        )
        self._schedule_ticks()
        log.info(f"Timer started for step {step_id}: {duration}s")
        return True

    def pause(self) -> bool:
        if self.state.mode != TimerMode.RUNNING:
            log.debug(f"Ignoring pause while {self.state.mode.value}")
            return False

        remaining = max(0.0, self.state.anchor_end_time - self.clock.now())
        if remaining <= 0:
            # reached zero on the way in
            self.tick()
            return False

        self._cancel_ticks()
        self.state = self.state.model_copy(update={
            "remaining_seconds": remaining,
            "mode": TimerMode.PAUSED,
            "anchor_end_time": None,
        })
        log.info(f"Timer paused with {self.state.remaining_seconds:.2f}s left")
        return True

    def resume(self) -> bool:
        if self.state.mode != TimerMode.PAUSED:
            log.debug(f"Ignoring resume while {self.state.mode.value}")
            return False

        self.state = self.state.model_copy(update={
            "mode": TimerMode.RUNNING,
            "anchor_end_time": self.clock.now() + self.state.remaining_seconds,
        })
        self._schedule_ticks()
        log.info(f"Timer resumed with {self.state.remaining_seconds:.2f}s left")
        return True

    def tick(self) -> None:
        if self.state.mode != TimerMode.RUNNING:
            return

        remaining = max(0.0, self.state.anchor_end_time - self.clock.now())
        if remaining > 0:
            self.state = self.state.model_copy(update={"remaining_seconds": remaining})
            if self.on_tick:
                self.on_tick()
            return

        step_id = self.state.active_step_id
        self._cancel_ticks()
        self.state = self.state.model_copy(update={
            "remaining_seconds": 0.0,
            "mode": TimerMode.ALARMING,
            "anchor_end_time": None,
        })
        log.info(f"Timer for step {step_id} expired")
        if self.on_expiry:
            self.on_expiry(step_id)

    def reset(self) -> None:
        self._cancel_ticks()
        if self.state.mode != TimerMode.IDLE:
            log.info(f"Timer for step {self.state.active_step_id} reset")
        self.state = TimerState()

    def view(self) -> TimerState:
        """Current state with remaining time recomputed from the anchor."""
        if self.state.mode != TimerMode.RUNNING:
            return self.state
        remaining = max(0.0, self.state.anchor_end_time - self.clock.now())
        return self.state.model_copy(update={"remaining_seconds": remaining})

    def restore(self, state: TimerState) -> None:
        """Adopt a persisted state; a running countdown picks up from its anchor."""
        self._cancel_ticks()
        self.state = state
        if state.mode == TimerMode.RUNNING:
            self._schedule_ticks()
            self.tick()

    def close(self) -> None:
        self._cancel_ticks()

    def _schedule_ticks(self) -> None:
        self._cancel_ticks()
        self._handle = self.scheduler.call_every(self.tick_interval, self.tick)

    def _cancel_ticks(self) -> None:
        cancel_handle(self._handle)
        self._handle = None
