import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy import delete, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docstore.core.db import Base
from docstore.core.exceptions import StorageError
from docstore.db.models.document import StoredDocument
from docstore.domains.documents.entities import Document

logger = logging.getLogger(__name__)

# Диалекты с атомарным INSERT .. ON CONFLICT
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_STORAGE_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRepository:
    """Репозиторий для работы с документами.

    Все документы лежат в одной таблице ``documents`` с ключом ``id``;
    имя хранилища (``store_name``) - обычная индексированная колонка.
    Ошибки драйвера и пула переводятся в ``StorageError``, сессия при этом
    откатывается.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    @asynccontextmanager
    async def _storage_errors(self, operation: str):
        try:
            yield
        except _STORAGE_FAILURES as exc:
            logger.error(f"Storage operation '{operation}' failed: {exc!r}")
            await self._rollback()
            raise StorageError(f"{operation} failed") from exc

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except _STORAGE_FAILURES as exc:
            logger.warning(f"Rollback failed: {exc!r}")

    async def ensure_schema(self) -> None:
        """Создание таблицы и индекса, если их нет"""
        async with self._storage_errors("ensure schema"):
            await self.session.run_sync(
                lambda sync_session: Base.metadata.create_all(sync_session.connection())
            )
            await self.session.commit()

    async def ping(self) -> None:
        """Пустой запрос для проверки доступности БД"""
        async with self._storage_errors("ping"):
            await self.session.execute(text("SELECT 1"))

    async def read_store(self, store: str) -> List[Any]:
        """Содержимое всех документов хранилища, новые первыми"""
        if not store:
            return []
        async with self._storage_errors("read store"):
            result = await self.session.execute(
                select(StoredDocument.content)
                .where(StoredDocument.store_name == store)
                .order_by(StoredDocument.updated_at.desc())
            )
            return list(result.scalars().all())

    async def read_document(self, store: str, document_id: str) -> Optional[Any]:
        """Содержимое документа, если он существует в этом хранилище"""
        async with self._storage_errors("read document"):
            result = await self.session.execute(
                select(StoredDocument.content).where(
                    StoredDocument.id == document_id,
                    StoredDocument.store_name == store
                )
            )
            return result.scalar_one_or_none()

    async def read_all(self) -> List[Tuple[str, Any]]:
        """Все пары (store_name, content) без гарантии порядка"""
        async with self._storage_errors("bulk read"):
            result = await self.session.execute(
                select(StoredDocument.store_name, StoredDocument.content)
            )
            return [(row.store_name, row.content) for row in result.all()]

    async def upsert(self, store: str, content: Any, commit: bool = True) -> Document:
        """Атомарная вставка или замена документа по id.

        Проверка id выполняется до обращения к БД. При конфликте по id
        заменяются store_name, content и updated_at (побеждает последняя
        запись).
        """
        document = Document.from_content(store, content, updated_at=self.clock())

        dialect = self.session.bind.dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise StorageError(f"Upsert is not supported for dialect '{dialect}'")

        stmt = insert(StoredDocument).values(
            id=document.id,
            store_name=document.store,
            content=document.content,
            updated_at=document.updated_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StoredDocument.id],
            set_={
                "store_name": stmt.excluded.store_name,
                "content": stmt.excluded.content,
                "updated_at": stmt.excluded.updated_at,
            }
        )

        async with self._storage_errors("upsert"):
            await self.session.execute(stmt)
            if commit:
                await self.session.commit()
        return document

    async def delete(self, document_id: str) -> bool:
        """Удаление документа по id; отсутствие документа не ошибка"""
        async with self._storage_errors("delete"):
            result = await self.session.execute(
                delete(StoredDocument).where(StoredDocument.id == document_id)
            )
            await self.session.commit()
        return result.rowcount > 0

    async def commit(self) -> None:
        async with self._storage_errors("commit"):
            await self.session.commit()
