import pytest

from backend.stepchef.core.config import Settings
from backend.stepchef.core.state_machine import CookingSession
from backend.stepchef.models.recipe import Recipe, Step
from backend.stepchef.services.storage import MemoryStore


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.t = start

    def now(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class FakeHandle:
    def __init__(self, scheduler, interval, callback):
        self.scheduler = scheduler
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Records recurring callbacks; tests fire them by hand."""

    def __init__(self):
        self.handles = []

    def call_every(self, interval, callback):
        handle = FakeHandle(self, interval, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self):
        return [h for h in self.handles if not h.cancelled]

    def fire(self, times: int = 1):
        for _ in range(times):
            for handle in self.live:
                handle.callback()


class RecordingSink:
    def __init__(self):
        self.events = []

    def play_sound(self, name):
        self.events.append(("sound", name))

    def vibrate(self, pattern):
        self.events.append(("vibrate", list(pattern)))

    def notify(self, title, body):
        self.events.append(("notify", title, body))

    def silence(self):
        self.events.append(("silence",))

    def count(self, kind, *args):
        return sum(1 for e in self.events if e[0] == kind and e[1:1 + len(args)] == args)


class BrokenSink:
    def play_sound(self, name):
        raise RuntimeError("autoplay blocked")

    def vibrate(self, pattern):
        raise RuntimeError("no vibration motor")

    def notify(self, title, body):
        raise PermissionError("notifications denied")

    def silence(self):
        raise RuntimeError("audio context closed")


def make_recipe(*durations, recipe_id="test-recipe") -> Recipe:
    steps = [
        Step(id=idx, description=f"step {idx}", timer_duration_seconds=d)
        for idx, d in enumerate(durations, 1)
    ]
    return Recipe(id=recipe_id, name="Test", steps=steps)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(storage_path=str(tmp_path / "storage.json"))


@pytest.fixture
def session(clock, scheduler, sink, store, settings):
    s = CookingSession(clock=clock, scheduler=scheduler, alert_sink=sink, store=store, settings=settings)
    yield s
    s.close()
