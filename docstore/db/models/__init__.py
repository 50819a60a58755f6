from docstore.db.models.document import StoredDocument

__all__ = [
    "StoredDocument",
]
