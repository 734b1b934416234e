import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, ValidationError

from ..core.alarm_sound import get_sounds
from ..core.state_machine import CookingSession
from ..models.preferences import Preferences
from ..services.recipe_library import RecipeLibrary
from ..services.recipe_parser import RecipeParser

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


class Visibility(BaseModel):
    visible: bool


def get_session(request: Request) -> CookingSession:
    return request.app.state.session


def get_library(request: Request) -> RecipeLibrary:
    return request.app.state.library


def _state(session: CookingSession) -> Dict[str, Any]:
    return session.snapshot().model_dump(mode="json")


@router.get("/session")
async def read_session(session: CookingSession = Depends(get_session)):
    return _state(session)


@router.post("/steps/{step_id}/toggle")
async def toggle_step(step_id: int, session: CookingSession = Depends(get_session)):
    session.toggle(step_id)
    return _state(session)


@router.post("/timer/pause")
async def pause_timer(session: CookingSession = Depends(get_session)):
    session.pause()
    return _state(session)


@router.post("/timer/resume")
async def resume_timer(session: CookingSession = Depends(get_session)):
    session.resume()
    return _state(session)


@router.post("/timer/reset")
async def reset_timer(session: CookingSession = Depends(get_session)):
    session.reset_timer()
    return _state(session)


@router.post("/alarm/{step_id}/dismiss")
async def dismiss_alarm(step_id: int, session: CookingSession = Depends(get_session)):
    session.dismiss_alarm(step_id)
    return _state(session)


@router.post("/reset")
async def reset_all(session: CookingSession = Depends(get_session)):
    session.reset_all()
    return _state(session)


@router.post("/visibility")
async def visibility(body: Visibility, session: CookingSession = Depends(get_session)):
    if body.visible:
        session.on_visible()
    return _state(session)


@router.get("/settings")
async def read_preferences(session: CookingSession = Depends(get_session)):
    return session.preferences.model_dump()


@router.put("/settings")
async def update_preferences(body: Preferences, session: CookingSession = Depends(get_session)):
    return session.update_preferences(body).model_dump()


@router.get("/recipes")
async def list_recipes(library: RecipeLibrary = Depends(get_library)):
    return [recipe.model_dump(mode="json") for recipe in library.list()]


@router.post("/recipes", status_code=201)
async def import_recipe(request: Request, library: RecipeLibrary = Depends(get_library)):
    """Body is recipe JSON or numbered plain-text steps."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    try:
        recipe = await RecipeParser.parse(raw)
    except ValidationError as e:
        log.warning(f"Rejected recipe import: {e.error_count()} error(s)")
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    library.add(recipe)
    log.info(f"Imported recipe '{recipe.id}' with {len(recipe.steps)} steps")
    return recipe.model_dump(mode="json")


@router.delete("/recipes/{recipe_id}")
async def delete_recipe(
    recipe_id: str,
    library: RecipeLibrary = Depends(get_library),
    session: CookingSession = Depends(get_session),
):
    if not library.delete(recipe_id):
        raise HTTPException(status_code=404, detail=f"Unknown recipe '{recipe_id}'")
    if session.recipe_id == recipe_id:
        session.clear_recipe()
    return {"deleted": recipe_id}


@router.post("/recipes/{recipe_id}/select")
async def select_recipe(
    recipe_id: str,
    library: RecipeLibrary = Depends(get_library),
    session: CookingSession = Depends(get_session),
):
    recipe = library.get(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Unknown recipe '{recipe_id}'")
    session.load_recipe(recipe)
    return _state(session)


@router.get("/sounds/{name}.wav")
async def sound(name: str):
    wav = get_sounds().get(name)
    if wav is None:
        raise HTTPException(status_code=404, detail=f"Unknown sound '{name}'")
    return Response(content=wav, media_type="audio/wav")
