import ssl
from typing import Any, AsyncIterator, Dict

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from docstore.core.config import Settings

# Базовый класс для моделей
Base = declarative_base()


def _ssl_context(policy: str):
    if policy == "disable":
        return None
    if policy == "verify":
        return ssl.create_default_context()
    # require: шифрование без проверки сертификата (управляемые облачные БД)
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def _is_memory_sqlite(url) -> bool:
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Параметры движка: пул, таймауты и TLS в зависимости от драйвера"""
    url = make_url(settings.database_url)
    options: Dict[str, Any] = {"echo": settings.db_echo, "future": True}

    pool_options: Dict[str, Any] = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
    }

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": settings.db_query_timeout}
        # база в памяти живет на StaticPool, размеры пула к нему не применимы
        if not _is_memory_sqlite(url):
            options.update(pool_options)
        return options

    connect_args: Dict[str, Any] = {}
    if url.get_driver_name() == "asyncpg":
        connect_args["timeout"] = settings.db_pool_timeout
        connect_args["command_timeout"] = settings.db_query_timeout
        connect_args["server_settings"] = {
            "statement_timeout": str(int(settings.db_query_timeout * 1000)),
        }
        context = _ssl_context(settings.tls_policy)
        if context is not None:
            connect_args["ssl"] = context

    options.update(
        pool_options,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    return options


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_async_engine(settings.database_url, **engine_options(settings))


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def init_schema(engine: AsyncEngine) -> None:
    """Создание таблиц и индексов, если их еще нет"""
    # импорт регистрирует модели в Base.metadata
    from docstore.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Функция для dependency injection в FastAPI
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session
