from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docstore.api.http.deps import get_clock
from docstore.core.db import get_db
from docstore.domains.documents.schemas import HealthResponse
from docstore.domains.documents.services import DocumentService, iso_timestamp

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Проверка доступности сервиса и БД"""
    document_service = DocumentService(db, clock=clock)

    if await document_service.health_check() != "ok":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=HealthResponse(
                status="error",
                database="disconnected",
                message="Database is unreachable"
            ).model_dump(exclude_none=True)
        )

    return HealthResponse(
        status="ok",
        database="connected",
        timestamp=iso_timestamp(clock())
    )
