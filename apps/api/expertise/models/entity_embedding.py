from datetime import datetime
from typing import List, Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import BigInteger, DateTime, Float, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from expertise.core.config import settings
from expertise.db.base import Base
from expertise.db.catalog import INDEXES


class EntityEmbedding(Base):
    """
    Mapping used by the services that read and write embeddings.

    The table itself is owned by ``expertise.db.init_db``; this mapping is never
    used to emit DDL.
    """

    __tablename__ = "entity_embeddings"
    __table_args__ = (
        *(Index(spec.name, *spec.columns) for spec in INDEXES),
        {"schema": settings.database_schema},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    entity_uri: Mapped[str] = mapped_column(String(1000), nullable=False)
    order_id: Mapped[int] = mapped_column(Integer, nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50))
    metric_type: Mapped[Optional[str]] = mapped_column(String(50))
    rating_value: Mapped[Optional[float]] = mapped_column(Float(precision=53))
    strategy: Mapped[Optional[str]] = mapped_column(String(20))
    embedding: Mapped[Optional[List[float]]] = mapped_column(Vector(settings.embedding_dimensions))
    dimensions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=settings.embedding_dimensions,
        server_default=text(str(settings.embedding_dimensions)),
    )
    model_name: Mapped[Optional[str]] = mapped_column(String(100))
    character_length: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, onupdate=func.now())

    def __repr__(self) -> str:
        return f"EntityEmbedding(id={self.id}, entity_uri={self.entity_uri!r}, order_id={self.order_id})"
