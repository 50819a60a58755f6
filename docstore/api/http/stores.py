from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docstore.api.http.deps import get_clock
from docstore.core.db import get_db
from docstore.core.exceptions import StorageError, ValidationError
from docstore.domains.documents.schemas import SuccessResponse
from docstore.domains.documents.services import DocumentService

router = APIRouter(prefix="/api", tags=["stores"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/{store}")
async def read_store(
    store: str,
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Все документы хранилища, новые первыми"""
    document_service = DocumentService(db, clock=clock)

    try:
        return await document_service.read_store(store)
    except StorageError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Read Error")


@router.get("/{store}/{document_id}")
async def read_document(
    store: str,
    document_id: str,
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Получение документа по id"""
    document_service = DocumentService(db, clock=clock)

    try:
        content = await document_service.get_document(store, document_id)
    except StorageError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Read Error")

    if content is None:
        return _error(status.HTTP_404_NOT_FOUND, "Not Found")
    return content


@router.post("/{store}", response_model=SuccessResponse)
async def save_document(
    store: str,
    content: Any = Body(None),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Создание или замена документа; id берется из тела запроса"""
    document_service = DocumentService(db, clock=clock)

    try:
        await document_service.save_document(store, content)
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except StorageError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Write Error")

    return SuccessResponse()


@router.delete("/{store}/{document_id}", response_model=SuccessResponse)
async def delete_document(
    store: str,
    document_id: str,
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Удаление документа; ключ удаления - только id"""
    document_service = DocumentService(db, clock=clock)

    try:
        await document_service.delete_document(document_id)
    except StorageError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Delete Error")

    return SuccessResponse()
