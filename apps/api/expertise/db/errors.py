from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from expertise.db.report import ReconciliationReport


class SchemaReconciliationError(RuntimeError):
    """
    Fatal failure that aborts a reconciliation run.
    """


class VectorExtensionUnavailableError(SchemaReconciliationError):
    """
    The pgvector extension could not be installed or failed its probe query.
    """


class TableCreationError(SchemaReconciliationError):
    """
    The embeddings table could not be created, leaving no baseline shape.

    ``report`` carries whatever the run had done before the failure, including
    whether the table had just been dropped for a dimension reset.
    """

    def __init__(self, message: str, report: Optional["ReconciliationReport"] = None) -> None:
        super().__init__(message)
        self.report = report
