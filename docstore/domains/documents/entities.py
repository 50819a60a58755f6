from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from docstore.core.exceptions import ValidationError

# Произвольное JSON-значение: структура содержимого хранилищу не важна
JSONValue = Any


def extract_document_id(content: JSONValue) -> str:
    """Извлечение id документа из его содержимого.

    Единственное структурное требование к содержимому: объект с непустым
    полем ``id``. Строки и целые числа допустимы, в таблице хранится
    строковое представление.
    """
    if not isinstance(content, dict):
        raise ValidationError("Missing ID")

    raw_id = content.get("id")
    if isinstance(raw_id, bool) or raw_id is None:
        raise ValidationError("Missing ID")
    if isinstance(raw_id, int):
        return str(raw_id)
    if isinstance(raw_id, str) and raw_id.strip():
        return raw_id
    raise ValidationError("Missing ID")


@dataclass
class Document:
    """Документ хранилища"""
    id: str
    store: str
    content: JSONValue
    updated_at: Optional[datetime] = None

    @classmethod
    def from_content(
        cls,
        store: str,
        content: JSONValue,
        updated_at: Optional[datetime] = None
    ) -> "Document":
        """Создание документа из тела запроса"""
        return cls(
            id=extract_document_id(content),
            store=store,
            content=content,
            updated_at=updated_at
        )
