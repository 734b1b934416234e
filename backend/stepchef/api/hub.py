import asyncio
import logging
from typing import Any, Dict, List, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from ..models.timer import CookingSnapshot

log = logging.getLogger(__name__)


class ConnectionHub:
    """Fans JSON events out to every connected client without blocking the caller."""

    def __init__(self) -> None:
        self.connections: Set[WebSocket] = set()
        self._pending: Set[asyncio.Task] = set()

    def add(self, ws: WebSocket) -> None:
        self.connections.add(ws)
        log.info(f"Client connected ({len(self.connections)} total)")

    def remove(self, ws: WebSocket) -> None:
        self.connections.discard(ws)
        log.info(f"Client disconnected ({len(self.connections)} total)")

    def publish(self, payload: Dict[str, Any]) -> None:
        if not self.connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.debug(f"No event loop, dropping {payload.get('type')} event")
            return
        task = loop.create_task(self._send_all(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def publish_snapshot(self, snap: CookingSnapshot) -> None:
        self.publish({"type": "snapshot", "session": snap.model_dump(mode="json")})

    async def _send_all(self, payload: Dict[str, Any]) -> None:
        for ws in list(self.connections):
            if ws.application_state != WebSocketState.CONNECTED:
                self.connections.discard(ws)
                continue
            try:
                await ws.send_json(payload)
            except Exception as e:
                log.warning(f"Dropping client after failed send: {e}")
                self.connections.discard(ws)


class WebSocketAlertSink:
    """Alert output rendered by connected clients (audio, vibration, notifications)."""

    def __init__(self, hub: ConnectionHub):
        self.hub = hub

    def play_sound(self, name: str) -> None:
        self.hub.publish({"type": "alert", "event": "sound", "name": name, "url": f"/api/v1/sounds/{name}.wav"})

    def vibrate(self, pattern: List[int]) -> None:
        self.hub.publish({"type": "alert", "event": "vibrate", "pattern": pattern})

    def notify(self, title: str, body: str) -> None:
        self.hub.publish({"type": "alert", "event": "notification", "title": title, "body": body})

    def silence(self) -> None:
        self.hub.publish({"type": "alert", "event": "silence"})
