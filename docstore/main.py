import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.exceptions import HTTPException

from docstore import __version__
from docstore.api.http import health_router, stores_router, system_router
from docstore.core.config import Settings, settings as default_settings
from docstore.core.db import create_engine_from_settings, create_session_factory, init_schema
from docstore.core.logging import setup_logging
from docstore.db.repositories.document_repository import utcnow

logger = logging.getLogger(__name__)


class SPAStaticFiles(StaticFiles):
    """Статика фронтенда: пути без расширения отдают index.html"""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404 or os.path.splitext(path)[1]:
                raise
            return await super().get_response("index.html", scope)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
    clock=utcnow
) -> FastAPI:
    """Сборка приложения: движок БД, роутеры, CORS и статика"""
    settings = settings or default_settings
    setup_logging(settings.log_level)
    engine = engine or create_engine_from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ошибка схемы не останавливает процесс: сервис стартует в деградированном режиме
        try:
            await init_schema(engine)
            logger.info("Database schema verified")
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Database initialization failed: {e}")
        yield
        await engine.dispose()

    app = FastAPI(
        title="DocStore",
        description="Multi-tenant JSON document store",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.clock = clock

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Access-Control-Allow-Private-Network"],
    )

    # Порядок важен: /api/health и /api/system/* раньше /api/{store}
    app.include_router(health_router)
    app.include_router(system_router)
    app.include_router(stores_router)

    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", SPAStaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


def run() -> None:
    """Запуск сервера через uvicorn"""
    import uvicorn

    setup_logging(default_settings.log_level)
    logger.info(f"Backend starting on {default_settings.host}:{default_settings.port}")
    uvicorn.run(
        "docstore.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port
    )
