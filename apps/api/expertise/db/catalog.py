from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_SCHEMA = "public"
TABLE_NAME = "entity_embeddings"
EMBEDDING_COLUMN = "embedding"
DEFAULT_DIMENSIONS = 4096


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    sql_type: str
    nullable: bool = True
    default: Optional[str] = None
    primary_key: bool = False
    reconciled: bool = True

    def definition(self) -> str:
        parts = [self.name, self.sql_type]
        if self.primary_key:
            parts.append("PRIMARY KEY")
        elif not self.nullable:
            parts.append("NOT NULL")
        if self.default is not None:
            parts.append(f"DEFAULT {self.default}")
        return " ".join(parts)


@dataclass(frozen=True)
class IndexSpec:
    name: str
    columns: Tuple[str, ...]

    def create_sql(self, qualified_table: str) -> str:
        return f"CREATE INDEX IF NOT EXISTS {self.name} ON {qualified_table} ({', '.join(self.columns)})"


@dataclass(frozen=True)
class TargetSchema:
    """
    Desired shape of the embeddings table. Column order only affects the
    readability of the generated CREATE TABLE statement.
    """

    dimensions: int
    columns: Tuple[ColumnSpec, ...]
    indexes: Tuple[IndexSpec, ...]
    schema: str = DEFAULT_SCHEMA
    table_name: str = TABLE_NAME
    embedding_column: str = field(default=EMBEDDING_COLUMN)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table_name}"

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def reconciled_columns(self) -> Tuple[ColumnSpec, ...]:
        return tuple(column for column in self.columns if column.reconciled)

    def column(self, name: str) -> ColumnSpec:
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(name)

    def create_table_sql(self) -> str:
        body = ",\n".join(f"    {column.definition()}" for column in self.columns)
        return f"CREATE TABLE IF NOT EXISTS {self.qualified_name} (\n{body}\n)"

    def add_column_sql(self, column: ColumnSpec) -> str:
        return f"ALTER TABLE {self.qualified_name} ADD COLUMN {column.definition()}"

    def drop_table_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.qualified_name}"


def build_columns(dimensions: int) -> Tuple[ColumnSpec, ...]:
    # id, entity_uri, order_id, model_name and character_length only exist
    # through CREATE TABLE; they are never back-filled on an existing table.
    return (
        ColumnSpec("id", "BIGSERIAL", nullable=False, primary_key=True, reconciled=False),
        ColumnSpec("entity_uri", "VARCHAR(1000)", nullable=False, reconciled=False),
        ColumnSpec("order_id", "INTEGER", nullable=False, reconciled=False),
        ColumnSpec("entity_type", "VARCHAR(50)"),
        ColumnSpec("metric_type", "VARCHAR(50)"),
        ColumnSpec("rating_value", "DOUBLE PRECISION"),
        ColumnSpec("strategy", "VARCHAR(20)"),
        ColumnSpec(EMBEDDING_COLUMN, f"VECTOR({dimensions})"),
        ColumnSpec("dimensions", "INTEGER", nullable=False, default=str(dimensions)),
        ColumnSpec("model_name", "VARCHAR(100)", reconciled=False),
        ColumnSpec("character_length", "INTEGER", reconciled=False),
        ColumnSpec("created_at", "TIMESTAMP", nullable=False, default="NOW()"),
        ColumnSpec("updated_at", "TIMESTAMP"),
    )


INDEXES: Tuple[IndexSpec, ...] = (
    IndexSpec("idx_entity_uri", ("entity_uri",)),
    IndexSpec("idx_order_id", ("order_id",)),
    IndexSpec("idx_entity_type", ("entity_type",)),
    IndexSpec("idx_metric_type", ("metric_type",)),
    IndexSpec("idx_rating_value", ("rating_value",)),
    IndexSpec("idx_strategy", ("strategy",)),
    IndexSpec("idx_order_metric_strategy", ("order_id", "metric_type", "strategy")),
)


def build_target_schema(dimensions: int = DEFAULT_DIMENSIONS, schema: str = DEFAULT_SCHEMA) -> TargetSchema:
    if dimensions <= 0:
        raise ValueError("Embedding dimensions must be positive.")
    return TargetSchema(
        dimensions=dimensions,
        columns=build_columns(dimensions),
        indexes=INDEXES,
        schema=schema,
    )
