import logging
from typing import Callable, List, Optional, Protocol

from .alarm_sound import ALARM, CHIME
from .clock import ScheduledHandle, Scheduler, cancel_handle

log = logging.getLogger(__name__)


class AlertSink(Protocol):
    """Where audible, haptic and system alerts go. Every call is best-effort."""

    def play_sound(self, name: str) -> None: ...

    def vibrate(self, pattern: List[int]) -> None: ...

    def notify(self, title: str, body: str) -> None: ...

    def silence(self) -> None: ...


class NullAlertSink:
    def play_sound(self, name: str) -> None:
        pass

    def vibrate(self, pattern: List[int]) -> None:
        pass

    def notify(self, title: str, body: str) -> None:
        pass

    def silence(self) -> None:
        pass


class Alarm:
    """
    Sticky post-expiry alert. Once armed it rings every `repeat_interval`
    seconds until dismissed; it never resolves on its own.
    """

    def __init__(
        self,
        sink: AlertSink,
        scheduler: Scheduler,
        repeat_interval: float = 0.9,
        vibration_pattern: Optional[List[int]] = None,
        notification_title: str = "Timer Complete!",
        notifications_enabled: bool = True,
        sound_enabled: bool = True,
    ):
        self.sink = sink
        self.scheduler = scheduler
        self.repeat_interval = repeat_interval
        self.vibration_pattern = vibration_pattern or [400, 200, 400, 200, 400, 600]
        self.notification_title = notification_title
        self.notifications_enabled = notifications_enabled
        self.sound_enabled = sound_enabled
        self.step_id: Optional[int] = None
        self._handle: Optional[ScheduledHandle] = None

    @property
    def active(self) -> bool:
        return self.step_id is not None

    def on_expiry(self, step_id: int, description: str = "Your cooking step is done.") -> None:
        self._cancel()
        self.step_id = step_id
        log.info(f"Alarm ringing for step {step_id}")

        self._ring()
        self._handle = self.scheduler.call_every(self.repeat_interval, self._ring)
        if self.notifications_enabled:
            self._safely(self.sink.notify, self.notification_title, description)

    def dismiss(self, step_id: int) -> bool:
        """Silence the alarm for `step_id`. False when nothing was ringing for it."""
        if self.step_id != step_id:
            log.debug(f"No alarm ringing for step {step_id}")
            return False
        self.stop()
        return True

    def stop(self) -> None:
        was_active = self.active
        self._cancel()
        self.step_id = None
        if was_active:
            self._safely(self.sink.silence)
            log.info("Alarm stopped")

    def chime(self) -> None:
        if self.sound_enabled:
            self._safely(self.sink.play_sound, CHIME)

    def _ring(self) -> None:
        self._safely(self.sink.play_sound, ALARM)
        self._safely(self.sink.vibrate, self.vibration_pattern)

    def _cancel(self) -> None:
        cancel_handle(self._handle)
        self._handle = None

    @staticmethod
    def _safely(fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            log.warning(f"Alert output {getattr(fn, '__name__', fn)} failed: {e}")
