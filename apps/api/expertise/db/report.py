from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ReconciliationState(str, Enum):
    UNCHECKED = "unchecked"
    EXTENSION_VERIFIED = "extension_verified"
    TABLE_ABSENT = "table_absent"
    TABLE_PRESENT = "table_present"
    COLUMNS_RECONCILED = "columns_reconciled"
    DIMENSION_RECONCILED = "dimension_reconciled"
    INDEXES_READY = "indexes_ready"
    DONE = "done"


@dataclass
class ReconciliationIssue:
    step: str
    subject: str
    message: str


@dataclass
class ReconciliationReport:
    """
    Recoverable outcome of a reconciliation step or of a whole run.

    Issues describe problems that were logged and skipped; fatal problems are
    raised as ``SchemaReconciliationError`` instead of being recorded here.
    """

    states: List[ReconciliationState] = field(default_factory=list)
    table_created: bool = False
    table_recreated: bool = False
    table_dropped: bool = False
    columns_added: List[str] = field(default_factory=list)
    indexes_ensured: List[str] = field(default_factory=list)
    detected_dimension: Optional[int] = None
    extension_present: Optional[bool] = None
    issues: List[ReconciliationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def state(self) -> ReconciliationState:
        return self.states[-1] if self.states else ReconciliationState.UNCHECKED

    def enter(self, state: ReconciliationState) -> None:
        self.states.append(state)

    def record(self, step: str, subject: str, message: str) -> None:
        self.issues.append(ReconciliationIssue(step=step, subject=subject, message=message))

    def merge(self, other: "ReconciliationReport") -> "ReconciliationReport":
        self.table_created = self.table_created or other.table_created
        self.table_recreated = self.table_recreated or other.table_recreated
        self.table_dropped = self.table_dropped or other.table_dropped
        self.columns_added.extend(other.columns_added)
        self.indexes_ensured.extend(other.indexes_ensured)
        if other.detected_dimension is not None:
            self.detected_dimension = other.detected_dimension
        if other.extension_present is not None:
            self.extension_present = other.extension_present
        self.issues.extend(other.issues)
        return self

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["states"] = [state.value for state in self.states]
        payload["state"] = self.state.value
        payload["ok"] = self.ok
        return payload
