"""
Key-scoped JSON persistence. One file holds every key; a missing file or
key simply means there is no prior state.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

log = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def read(self, key: str) -> Optional[Any]: ...

    def write(self, key: str, data: Any) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}

    def read(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def write(self, key: str, data: Any) -> None:
        self.data[key] = data


class JsonFileStore:
    def __init__(self, path: os.PathLike):
        self.path = Path(path)

    def _load_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error(f"Could not read {self.path}: {e}. Starting without stored state.")
            return {}
        if not isinstance(data, dict):
            log.error(f"Ignoring {self.path}: expected a JSON object, got {type(data).__name__}")
            return {}
        return data

    def read(self, key: str) -> Optional[Any]:
        return self._load_all().get(key)

    def write(self, key: str, data: Any) -> None:
        everything = self._load_all()
        everything[key] = data

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(everything, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)
        log.debug(f"Wrote '{key}' to {self.path}")


class BackgroundStore:
    """
    Moves writes off the event loop. Writes queue up and a single drain task
    hands them to a worker thread one at a time, so they land in order;
    a key written again before its turn only keeps the newest value. Reads
    see queued values first. Outside a running loop writes go straight
    through.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._queued: Dict[str, Any] = {}
        self._inflight: Optional[Tuple[str, Any]] = None
        self._drain_task: Optional[asyncio.Task] = None

    def read(self, key: str) -> Optional[Any]:
        if key in self._queued:
            return self._queued[key]
        if self._inflight is not None and self._inflight[0] == key:
            return self._inflight[1]
        return self.store.read(key)

    def write(self, key: str, data: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.store.write(key, data)
            return

        self._queued.pop(key, None)
        self._queued[key] = data
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())

    async def flush(self) -> None:
        """Wait until every queued write has reached the store."""
        while self._drain_task is not None and not self._drain_task.done():
            await self._drain_task

    async def _drain(self) -> None:
        loop = asyncio.get_running_loop()
        while self._queued:
            key = next(iter(self._queued))
            self._inflight = (key, self._queued.pop(key))
            try:
                await loop.run_in_executor(None, self.store.write, key, self._inflight[1])
            except Exception as e:
                log.error(f"Background write of '{key}' failed: {e}")
            finally:
                self._inflight = None
