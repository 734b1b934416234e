from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

from ..core.state_machine import CookingSession
from .hub import ConnectionHub

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


def handle_command(session: CookingSession, message: dict) -> bool:
    """Apply one client command. Returns False for anything unrecognised."""
    action = message.get("action")
    step_id = message.get("step_id")

    if action in ("toggle", "dismiss_alarm"):
        if not isinstance(step_id, int) or isinstance(step_id, bool):
            return False
        if action == "toggle":
            session.toggle(step_id)
        else:
            session.dismiss_alarm(step_id)
    elif action == "pause":
        session.pause()
    elif action == "resume":
        session.resume()
    elif action == "reset_timer":
        session.reset_timer()
    elif action == "reset_all":
        session.reset_all()
    elif action == "visible":
        session.on_visible()
    else:
        return False
    return True


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    """Pushes snapshot and alert events; accepts `{"action": ..., "step_id": ...}` commands."""
    session: CookingSession = ws.app.state.session
    hub: ConnectionHub = ws.app.state.hub

    await ws.accept()
    hub.add(ws)
    try:
        await ws.send_json({"type": "snapshot", "session": session.snapshot().model_dump(mode="json")})
        while True:
            try:
                message = await ws.receive_json()
            except (KeyError, ValueError):
                await ws.send_json({"type": "error", "message": "expected a JSON object"})
                continue

            if not isinstance(message, dict) or not handle_command(session, message):
                log.debug(f"Unknown command: {message!r}")
                await ws.send_json({"type": "error", "message": f"unknown command {message!r}"})
    except WebSocketDisconnect:
        log.info("WebSocket client disconnected")
    finally:
        hub.remove(ws)
