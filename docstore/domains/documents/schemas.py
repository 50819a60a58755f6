from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Snapshot(BaseModel):
    """Версионированный снимок всей БД, сгруппированный по хранилищам"""
    version: str
    timestamp: str
    data: Dict[str, List[Any]] = Field(default_factory=dict)
    record_count: int = Field(0, alias="recordCount", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class ImportResult(BaseModel):
    """Схема для ответа об импорте снимка"""
    success: bool = True
    stores: int
    record_count: int = Field(..., alias="recordCount")

    model_config = ConfigDict(populate_by_name=True)


class SuccessResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: Optional[str] = None
    message: Optional[str] = None
