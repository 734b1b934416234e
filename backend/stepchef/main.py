from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .api.hub import ConnectionHub, WebSocketAlertSink
from .api.routes import router as api_router
from .api.websocket import router as ws_router
from .core.clock import AsyncioScheduler, SystemClock
from .core.config import Settings, get_settings
from .core.state_machine import CookingSession
from .services.recipe_library import RecipeLibrary
from .services.storage import BackgroundStore, JsonFileStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

log = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = BackgroundStore(JsonFileStore(settings.storage_path))
        hub = ConnectionHub()

        library = RecipeLibrary(store, key=settings.library_storage_key)
        library.load()

        session = CookingSession(
            clock=SystemClock(),
            scheduler=AsyncioScheduler(),
            alert_sink=WebSocketAlertSink(hub),
            store=store,
            settings=settings,
        )
        session.subscribe(hub.publish_snapshot)
        session.restore()

        app.state.hub = hub
        app.state.library = library
        app.state.session = session
        log.info(f"stepchef ready, state in {settings.storage_path}")
        try:
            yield
        finally:
            session.close()
            await store.flush()
            log.info("stepchef stopped")

    app = FastAPI(title="stepchef", version="0.1.0", description="Step-by-step cooking timer service", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(ws_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "message": "stepchef API is running"}

    return app


app = create_app()
