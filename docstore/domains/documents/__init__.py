from docstore.domains.documents.entities import Document, extract_document_id
from docstore.domains.documents.schemas import (
    Snapshot, ImportResult, SuccessResponse, HealthResponse
)

__all__ = [
    "Document", "extract_document_id",
    "Snapshot", "ImportResult", "SuccessResponse", "HealthResponse"
]
