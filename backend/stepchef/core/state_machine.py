import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..models.preferences import Preferences
from ..models.recipe import Recipe
from ..models.timer import CookingSnapshot, TimerMode, TimerState
from ..services.storage import KeyValueStore
from .alarm import Alarm, AlertSink, NullAlertSink
from .chaining import ChainingController
from .clock import Clock, Scheduler
from .config import Settings, get_settings
from .steps import StepSequence
from .timer_manager import TimerManager

log = logging.getLogger(__name__)

Subscriber = Callable[[CookingSnapshot], None]


class CookingSession:
    """
    The single state container for a cooking session.

    Every user operation is a synchronous transition. Once a transition has
    settled, subscribers receive one snapshot and the store is written, so an
    intermediate state (step done, next timer not yet decided) is never
    observable.
    """

    def __init__(
        self,
        clock: Clock,
        scheduler: Scheduler,
        alert_sink: Optional[AlertSink] = None,
        store: Optional[KeyValueStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.recipe_id: Optional[str] = None
        self.steps = StepSequence()
        self.timers = TimerManager(
            clock,
            scheduler,
            tick_interval=self.settings.tick_interval_seconds,
            on_tick=self._on_tick,
            on_expiry=self._on_expiry,
        )
        self.preferences = Preferences(
            sound_enabled=self.settings.sound_enabled,
            notifications_enabled=self.settings.notifications_enabled,
        )
        self.alarm = Alarm(
            alert_sink or NullAlertSink(),
            scheduler,
            repeat_interval=self.settings.alarm_repeat_seconds,
            vibration_pattern=list(self.settings.vibration_pattern),
            notification_title=self.settings.notification_title,
            notifications_enabled=self.preferences.notifications_enabled,
            sound_enabled=self.preferences.sound_enabled,
        )
        self.chain = ChainingController(self.steps, self.timers)
        self._subscribers: List[Subscriber] = []

    def snapshot(self) -> CookingSnapshot:
        return CookingSnapshot(recipe_id=self.recipe_id, steps=self.steps.steps, timer=self.timers.view())

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def can_complete(self, step_id: int) -> bool:
        return self.steps.can_complete(step_id)

    def toggle(self, step_id: int) -> None:
        step = self.steps.get(step_id)
        if step is None:
            log.debug(f"Ignoring toggle for unknown step {step_id}")
            return

        if not step.completed:
            if not self.steps.can_complete(step_id):
                log.debug(f"Step {step_id} is gated behind an incomplete earlier step")
                return
            self.chain.complete(step_id)
            self.alarm.chime()
        else:
            self.steps.mark(step_id, False)
            self._drop_timer_from(step_id)

        self._commit()

    def pause(self) -> None:
        if self.timers.pause():
            self._commit()

    def resume(self) -> None:
        if self.timers.resume():
            self._commit()

    def reset_timer(self) -> None:
        if self.timers.mode == TimerMode.IDLE:
            return
        self.timers.reset()
        self._commit()

    def dismiss_alarm(self, step_id: int) -> None:
        state = self.timers.state
        if state.mode != TimerMode.ALARMING or state.active_step_id != step_id:
            # nothing ringing for this step; silence any stray output and stop
            self.alarm.dismiss(step_id)
            return

        self.alarm.dismiss(step_id)
        self.chain.complete(step_id)
        self._commit()

    def reset_all(self) -> None:
        self.steps.reset()
        self.timers.reset()
        log.info("All steps reset")
        self._commit()

    def load_recipe(self, recipe: Recipe) -> None:
        """Switch recipes; progress starts over."""
        self.timers.reset()
        self.steps.replace(step.model_copy(update={"completed": False}) for step in recipe.steps)
        self.recipe_id = recipe.id
        log.info(f"Loaded recipe '{recipe.id}' with {len(recipe.steps)} steps")
        self._commit()

    def clear_recipe(self) -> None:
        self.timers.reset()
        self.steps.replace([])
        self.recipe_id = None
        self._commit()

    def update_preferences(self, preferences: Preferences) -> Preferences:
        """Apply new alert toggles; the next chime or alarm already follows them."""
        self._apply_preferences(preferences)
        log.info(f"Preferences updated: sound {preferences.sound_enabled}, notifications {preferences.notifications_enabled}")
        if self.store is not None:
            try:
                self.store.write(self.settings.preferences_storage_key, preferences.model_dump(mode="json"))
            except Exception as e:
                log.error(f"Could not persist preferences: {e}")
        return self.preferences

    def on_visible(self) -> None:
        """Host regained the foreground: recompute the countdown now."""
        self.timers.tick()

    def restore(self) -> bool:
        """Resume from the stored snapshot, if any. Called once at startup."""
        if self.store is None:
            return False

        self._restore_preferences()
        try:
            raw = self.store.read(self.settings.storage_key)
        except Exception as e:
            log.error(f"Could not read stored session: {e}")
            return False
        if raw is None:
            log.info("No stored session, starting fresh")
            return False

        try:
            snap = CookingSnapshot.model_validate(raw)
        except ValidationError as e:
            log.error(f"Discarding invalid stored session: {e}")
            return False

        timer = snap.timer
        if timer.active_step_id is not None and all(s.id != timer.active_step_id for s in snap.steps):
            log.warning(f"Stored timer points at missing step {timer.active_step_id}, resetting it")
            timer = TimerState()

        self.recipe_id = snap.recipe_id
        self.steps.replace(snap.steps)
        self.timers.restore(timer)
        if self.timers.mode == TimerMode.ALARMING and not self.alarm.active:
            self._arm_alarm(self.timers.state.active_step_id)

        log.info(f"Restored session: {self.steps.completed_count}/{len(self.steps)} steps done, timer {self.timers.mode.value}")
        self._commit()
        return True

    def close(self) -> None:
        self.timers.close()
        self.alarm.stop()

    def _restore_preferences(self) -> None:
        try:
            raw = self.store.read(self.settings.preferences_storage_key)
            if raw is not None:
                self._apply_preferences(Preferences.model_validate(raw))
        except ValidationError as e:
            log.error(f"Ignoring invalid stored preferences: {e}")
        except Exception as e:
            log.error(f"Could not read stored preferences: {e}")

    def _apply_preferences(self, preferences: Preferences) -> None:
        self.preferences = preferences
        self.alarm.sound_enabled = preferences.sound_enabled
        self.alarm.notifications_enabled = preferences.notifications_enabled

    def _drop_timer_from(self, step_id: int) -> None:
        """Un-completing a step invalidates a timer at the same or a later position."""
        active = self.timers.state.active_step_id
        if active is None:
            return
        active_pos = self.steps.position(active)
        if active_pos is None or active_pos >= self.steps.position(step_id):
            self.timers.reset()

    def _arm_alarm(self, step_id: int) -> None:
        step = self.steps.get(step_id)
        if step is not None:
            self.alarm.on_expiry(step_id, step.description)
        else:
            self.alarm.on_expiry(step_id)

    def _on_expiry(self, step_id: int) -> None:
        self._arm_alarm(step_id)
        self._commit()

    def _on_tick(self) -> None:
        # the anchor is already stored, so countdown ticks are not persisted
        self._publish(self.snapshot())

    def _commit(self) -> None:
        if self.timers.mode != TimerMode.ALARMING and self.alarm.active:
            self.alarm.stop()
        snap = self.snapshot()
        self._publish(snap)
        self._persist()

    def _publish(self, snap: CookingSnapshot) -> None:
        for callback in list(self._subscribers):
            try:
                callback(snap)
            except Exception as e:
                log.error(f"Snapshot subscriber {callback!r} failed: {e}")

    def _persist(self) -> None:
        if self.store is None:
            return
        snap = CookingSnapshot(recipe_id=self.recipe_id, steps=self.steps.steps, timer=self.timers.state)
        try:
            self.store.write(self.settings.storage_key, snap.model_dump(mode="json"))
        except Exception as e:
            log.error(f"Could not persist session: {e}")
