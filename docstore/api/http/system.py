import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from docstore.api.http.deps import get_clock, get_settings
from docstore.core.config import Settings
from docstore.core.db import get_db
from docstore.core.exceptions import ExportError, StorageError, ValidationError
from docstore.domains.documents.schemas import ImportResult, Snapshot
from docstore.domains.documents.services import SnapshotService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/export", response_model=Snapshot)
async def export_snapshot(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock=Depends(get_clock)
):
    """Полный экспорт данных для резервного копирования"""
    snapshot_service = SnapshotService(db, version=settings.snapshot_version, clock=clock)

    try:
        return await snapshot_service.export_all()
    except ExportError as e:
        logger.exception("Export endpoint failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Export Failed", "reason": str(e), "tip": e.tip}
        )


@router.post("/import", response_model=ImportResult)
async def import_snapshot(
    payload: Any = Body(None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock=Depends(get_clock)
):
    """Восстановление данных из снимка (слияние, без удаления)"""
    try:
        snapshot = Snapshot.model_validate(payload)
    except SchemaValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid Snapshot", "reason": str(e.errors()[0]["msg"])}
        )

    snapshot_service = SnapshotService(db, version=settings.snapshot_version, clock=clock)

    try:
        return await snapshot_service.import_snapshot(snapshot)
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": str(e)}
        )
    except StorageError as e:
        logger.exception("Import endpoint failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Import Failed", "reason": str(e)}
        )
