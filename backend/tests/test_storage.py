import asyncio

from backend.stepchef.models.recipe import Recipe, Step
from backend.stepchef.services.recipe_library import CHICKEN_CURRY, RecipeLibrary
from backend.stepchef.services.storage import BackgroundStore, JsonFileStore, MemoryStore


def test_missing_file_means_no_state(tmp_path):
    store = JsonFileStore(tmp_path / "nothing.json")
    assert store.read("cooking-storage") is None


def test_keys_are_independent(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    store = JsonFileStore(path)
    store.write("cooking-storage", {"steps": []})
    store.write("recipe-library", {"recipes": []})

    reopened = JsonFileStore(path)
    assert reopened.read("cooking-storage") == {"steps": []}
    assert reopened.read("recipe-library") == {"recipes": []}
    assert reopened.read("other") is None


def test_corrupt_file_is_treated_as_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)
    assert store.read("cooking-storage") is None

    store.write("cooking-storage", {"ok": True})
    assert store.read("cooking-storage") == {"ok": True}


def test_library_seeded_with_builtin_recipe():
    library = RecipeLibrary()
    assert [r.id for r in library.list()] == [CHICKEN_CURRY.id]
    timed = [s.id for s in CHICKEN_CURRY.steps if s.has_timer]
    assert timed == [9, 10, 12, 15]


def test_library_persists_imports_and_deletes():
    store = MemoryStore()
    library = RecipeLibrary(store)
    library.add(Recipe(id="toast", name="Toast", steps=[Step(id=1, description="Toast bread.", timer_duration_seconds=120)]))
    library.delete(CHICKEN_CURRY.id)

    reloaded = RecipeLibrary(store)
    reloaded.load()
    assert [r.id for r in reloaded.list()] == ["toast"]
    assert reloaded.get("toast").steps[0].timer_duration_seconds == 120
    assert not reloaded.delete("missing")


def test_library_skips_invalid_stored_recipes():
    store = MemoryStore()
    store.write("recipe-library", {"recipes": [{"id": "bad"}, CHICKEN_CURRY.model_dump(mode="json")]})
    library = RecipeLibrary(store)
    library.load()
    assert [r.id for r in library.list()] == [CHICKEN_CURRY.id]


class RecordingStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.writes = []

    def write(self, key, data):
        self.writes.append((key, data))
        super().write(key, data)


def test_background_store_writes_off_the_loop_in_order():
    inner = RecordingStore()
    store = BackgroundStore(inner)

    async def run():
        store.write("cooking-storage", {"n": 1})
        store.write("recipe-library", {"recipes": []})
        store.write("cooking-storage", {"n": 2})
        # queued but not yet written; reads still see the newest value
        assert inner.writes == []
        assert store.read("cooking-storage") == {"n": 2}
        await store.flush()

    asyncio.run(run())
    assert inner.writes == [("recipe-library", {"recipes": []}), ("cooking-storage", {"n": 2})]
    assert store.read("cooking-storage") == {"n": 2}


def test_background_store_writes_through_without_a_loop():
    inner = RecordingStore()
    store = BackgroundStore(inner)
    store.write("cooking-storage", {"n": 1})
    assert inner.writes == [("cooking-storage", {"n": 1})]


def test_background_store_logs_failed_writes_and_keeps_going():
    class FlakyStore(RecordingStore):
        def write(self, key, data):
            if key == "bad":
                raise OSError("disk full")
            super().write(key, data)

    inner = FlakyStore()
    store = BackgroundStore(inner)

    async def run():
        store.write("bad", {})
        store.write("good", {"ok": True})
        await store.flush()

    asyncio.run(run())
    assert inner.read("good") == {"ok": True}
