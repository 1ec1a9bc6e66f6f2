import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exchange_server import __version__
from exchange_server.core.config import get_settings
from exchange_server.core.container import get_container
from exchange_server.infrastructure.database.session import dispose_engine, init_db
from exchange_server.interfaces.http.errors import register_error_handlers
from exchange_server.interfaces.http.routers import create_api_router
from exchange_server.interfaces.ws import router as websocket_router
from exchange_server.interfaces.ws.manager import get_connection_manager

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    container = get_container()
    logger.info("%s %s started (%s)", settings.project_name, __version__, settings.environment)
    yield
    await get_connection_manager().close_all()
    await container.shutdown()
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Currency exchange order engine with a reserve ledger",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(websocket_router.router)

    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
