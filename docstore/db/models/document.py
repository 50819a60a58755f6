from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB

from docstore.core.db import Base


class StoredDocument(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True)
    store_name = Column(String, nullable=False)
    # JSONB в PostgreSQL, JSON-текст в остальных СУБД
    content = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_store_name", "store_name"),)
