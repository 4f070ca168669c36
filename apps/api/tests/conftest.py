"""
In-memory stand-in for a PostgreSQL + pgvector database.

``FakeDatabase`` understands exactly the statements the reconciliation issues
(extension install, information_schema lookups, format_type, CREATE TABLE,
ALTER TABLE ADD COLUMN, DROP TABLE, CREATE INDEX) and keeps a log of every
statement so tests can assert which DDL ran.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pytest
from sqlalchemy.exc import ProgrammingError

from expertise.db.catalog import build_target_schema

CREATE_EXTENSION = re.compile(r"^CREATE EXTENSION IF NOT EXISTS (\w+)$")
VECTOR_PROBE = re.compile(r"^SELECT vector_dims\('\[([\d,]*)\]'::vector\)$")
CREATE_TABLE = re.compile(r"^CREATE TABLE IF NOT EXISTS (\w+)\.(\w+) \(")
ADD_COLUMN = re.compile(r"^ALTER TABLE (\w+)\.(\w+) ADD COLUMN (\w+) (.+)$")
DROP_TABLE = re.compile(r"^DROP TABLE IF EXISTS (\w+)\.(\w+)$")
CREATE_INDEX = re.compile(r"^CREATE INDEX IF NOT EXISTS (\w+) ON (\w+)\.(\w+) \((.+)\)$")
CONSTRAINT_SPLIT = re.compile(r" (?:PRIMARY KEY|NOT NULL|DEFAULT)\b")

DDL_PREFIXES = ("CREATE TABLE", "ALTER TABLE", "DROP TABLE", "CREATE INDEX")


def _column_type(definition: str) -> Tuple[str, str]:
    name, rest = definition.strip().split(" ", 1)
    sql_type = CONSTRAINT_SPLIT.split(rest, maxsplit=1)[0]
    return name, sql_type.strip().lower()


@dataclass
class FakeTable:
    columns: Dict[str, str]
    rows: int = 0


class FakeResult:
    def __init__(self, value: Any = None, rows: Optional[List[Any]] = None) -> None:
        self._value = value
        self._rows = rows or []

    def scalar(self) -> Any:
        return self._value

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> List[Any]:
        return list(self._rows)


class FakeDatabase:
    def __init__(self, extension_available: bool = True, extension_installed: bool = False, schema: str = "public") -> None:
        self.extension_available = extension_available
        self.extension_installed = extension_installed
        self.schema = schema
        self.tables: Dict[str, FakeTable] = {}
        self.indexes: Dict[str, Tuple[str, Tuple[str, ...]]] = {}
        self.statements: List[str] = []
        self._failures: List[re.Pattern] = []
        self.probe_result: Optional[int] = None

    def fail_on(self, pattern: str) -> None:
        self._failures.append(re.compile(pattern))

    def add_table(self, name: str, columns: Dict[str, str], rows: int = 0) -> FakeTable:
        table = FakeTable(columns=dict(columns), rows=rows)
        self.tables[name] = table
        return table

    @property
    def ddl(self) -> List[str]:
        return [statement for statement in self.statements if statement.startswith(DDL_PREFIXES)]

    def reset_log(self) -> None:
        self.statements.clear()

    def _error(self, statement: str, params: Any, message: str) -> ProgrammingError:
        return ProgrammingError(statement, params, Exception(message))

    def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> FakeResult:
        params = params or {}
        normalized = " ".join(sql.split())
        self.statements.append(normalized)

        for pattern in self._failures:
            if pattern.search(normalized):
                raise self._error(normalized, params, f"injected failure for {pattern.pattern}")

        if match := CREATE_EXTENSION.match(normalized):
            if not self.extension_available:
                raise self._error(normalized, params, f'extension "{match.group(1)}" is not available')
            self.extension_installed = True
            return FakeResult()

        if match := VECTOR_PROBE.match(normalized):
            if not self.extension_installed:
                raise self._error(normalized, params, 'type "vector" does not exist')
            if self.probe_result is not None:
                return FakeResult(self.probe_result)
            return FakeResult(len([item for item in match.group(1).split(",") if item]))

        if "FROM information_schema.tables" in normalized:
            return FakeResult(self._table(params) is not None)

        if normalized.startswith("SELECT EXISTS ( SELECT FROM information_schema.columns"):
            table = self._table(params)
            return FakeResult(table is not None and params["column"] in table.columns)

        if normalized.startswith("SELECT column_name FROM information_schema.columns"):
            table = self._table(params)
            return FakeResult(rows=list(table.columns) if table else [])

        if "format_type(" in normalized:
            table = self._table(params)
            if table is None:
                return FakeResult(None)
            return FakeResult(table.columns.get(params["column"]))

        if "FROM pg_extension" in normalized:
            return FakeResult(self.extension_installed and params.get("name") == "vector")

        if match := CREATE_TABLE.match(normalized):
            self._require_vector(normalized, params, normalized)
            if match.group(2) not in self.tables:
                body = sql[sql.index("(\n") + 2 : sql.rindex("\n)")]
                columns = dict(_column_type(definition) for definition in body.split(",\n"))
                self.add_table(match.group(2), columns)
            return FakeResult()

        if match := ADD_COLUMN.match(normalized):
            _, table_name, column, definition = match.groups()
            self._require_vector(normalized, params, definition)
            table = self.tables.get(table_name)
            if table is None:
                raise self._error(normalized, params, f'relation "{table_name}" does not exist')
            if column in table.columns:
                raise self._error(normalized, params, f'column "{column}" already exists')
            if "NOT NULL" in definition and "DEFAULT" not in definition and table.rows:
                raise self._error(normalized, params, f'column "{column}" contains null values')
            table.columns[column] = _column_type(f"{column} {definition}")[1]
            return FakeResult()

        if match := DROP_TABLE.match(normalized):
            table_name = match.group(2)
            self.tables.pop(table_name, None)
            self.indexes = {name: spec for name, spec in self.indexes.items() if spec[0] != table_name}
            return FakeResult()

        if match := CREATE_INDEX.match(normalized):
            name, _, table_name, column_list = match.groups()
            table = self.tables.get(table_name)
            if table is None:
                raise self._error(normalized, params, f'relation "{table_name}" does not exist')
            columns = tuple(column.strip() for column in column_list.split(","))
            for column in columns:
                if column not in table.columns:
                    raise self._error(normalized, params, f'column "{column}" does not exist')
            self.indexes.setdefault(name, (table_name, columns))
            return FakeResult()

        raise AssertionError(f"Unexpected statement: {normalized}")

    def _table(self, params: Dict[str, Any]) -> Optional[FakeTable]:
        if params.get("schema") != self.schema:
            return None
        return self.tables.get(params.get("table"))

    def _require_vector(self, statement: str, params: Any, definition: str) -> None:
        if "VECTOR(" in definition.upper() and not self.extension_installed:
            raise self._error(statement, params, 'type "vector" does not exist')


class FakeConnection:
    def __init__(self, database: FakeDatabase) -> None:
        self._database = database

    async def execute(self, statement, parameters: Optional[Dict[str, Any]] = None) -> FakeResult:
        return self._database.execute(str(statement), parameters)


class FakeEngine:
    def __init__(self, database: FakeDatabase) -> None:
        self.database = database

    @asynccontextmanager
    async def begin(self):
        yield FakeConnection(self.database)


def catalog_columns(dimensions: int = 4096, exclude: Tuple[str, ...] = ()) -> Dict[str, str]:
    """
    Live column types of a table built from the catalog, minus ``exclude``.
    """

    schema = build_target_schema(dimensions)
    return {column.name: column.sql_type.lower() for column in schema.columns if column.name not in exclude}


@pytest.fixture
def table_columns():
    return catalog_columns


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_engine(fake_db: FakeDatabase) -> FakeEngine:
    return FakeEngine(fake_db)
