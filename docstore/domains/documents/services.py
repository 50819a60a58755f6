import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docstore.core.exceptions import ExportError, StorageError, ValidationError
from docstore.db.repositories.document_repository import DocumentRepository, utcnow
from docstore.domains.documents.entities import extract_document_id
from docstore.domains.documents.schemas import ImportResult, Snapshot

logger = logging.getLogger(__name__)

EXPORT_TIP = (
    'Check if the database server has enough memory or if the table "documents" exists.'
)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 в UTC с миллисекундами и суффиксом Z"""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DocumentService:
    """Сервис для работы с документами"""

    def __init__(self, session: AsyncSession, clock=utcnow):
        self.session = session
        self.document_repository = DocumentRepository(session, clock=clock)

    async def read_store(self, store: str) -> List[Any]:
        """Все документы хранилища, новые первыми"""
        return await self.document_repository.read_store(store)

    async def get_document(self, store: str, document_id: str) -> Optional[Any]:
        """Получение документа по id"""
        return await self.document_repository.read_document(store, document_id)

    async def save_document(self, store: str, content: Any) -> str:
        """Сохранение документа (upsert); возвращает id"""
        document = await self.document_repository.upsert(store, content)
        logger.debug(f"Document {document.id} saved to store '{store}'")
        return document.id

    async def delete_document(self, document_id: str) -> None:
        """Удаление документа"""
        deleted = await self.document_repository.delete(document_id)
        if not deleted:
            logger.debug(f"Delete of missing document {document_id} ignored")

    async def health_check(self) -> str:
        """Проверка доступности БД: ok или degraded"""
        try:
            await self.document_repository.ping()
        except StorageError:
            return "degraded"
        return "ok"


class SnapshotService:
    """Экспорт и импорт снимков всей БД"""

    def __init__(self, session: AsyncSession, version: str, clock=utcnow):
        self.session = session
        self.version = version
        self.clock = clock
        self.document_repository = DocumentRepository(session, clock=clock)

    async def export_all(self) -> Snapshot:
        """Полный экспорт: все документы, сгруппированные по хранилищам"""
        start_time = time.monotonic()
        logger.info("Initiating full system data export")

        try:
            await self.document_repository.ensure_schema()
        except StorageError as e:
            logger.warning(f"Schema verification before export failed: {e}")

        try:
            rows = await self.document_repository.read_all()
        except StorageError as e:
            raise ExportError(str(e), tip=EXPORT_TIP) from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(f"Database fetched {len(rows)} items in {elapsed_ms}ms")

        data: Dict[str, List[Any]] = {}
        for store_name, content in rows:
            data.setdefault(store_name, []).append(content)

        snapshot = Snapshot(
            version=self.version,
            timestamp=iso_timestamp(self.clock()),
            data=data,
            record_count=len(rows)
        )
        if logger.isEnabledFor(logging.INFO):
            size_kb = round(len(snapshot.model_dump_json(by_alias=True)) / 1024)
            logger.info(f"Backup serialization complete. Size: {size_kb} KB")
        return snapshot

    async def import_snapshot(self, snapshot: Snapshot) -> ImportResult:
        """Импорт снимка: upsert каждого документа, без удаления отсутствующих.

        Все id проверяются до первой записи, сами записи идут одной
        транзакцией, поэтому неудачный импорт не оставляет частичных данных.
        """
        if snapshot.version != self.version:
            logger.info(
                f"Importing snapshot version '{snapshot.version}' "
                f"(local version '{self.version}')"
            )

        for store, documents in snapshot.data.items():
            for position, content in enumerate(documents):
                try:
                    extract_document_id(content)
                except ValidationError as e:
                    raise ValidationError(
                        f"{e} in store '{store}' at position {position}"
                    ) from e

        record_count = 0
        for store, documents in snapshot.data.items():
            for content in documents:
                await self.document_repository.upsert(store, content, commit=False)
                record_count += 1
        await self.document_repository.commit()

        logger.info(
            f"Imported {record_count} documents into {len(snapshot.data)} stores"
        )
        return ImportResult(stores=len(snapshot.data), record_count=record_count)
