"""
Configuration reconciliation.

Reads the current on-chain configuration, compares it with the target,
plans the writes that close the gap and submits them per authority.
"""

from .builder import TransactionBuilder, require_address
from .defaults import FIELD_DEFAULTS, REQUIRED, ReadField
from .differ import Differencer, ReconciliationPlan, RejectedTask
from .executor import (
    ExecutionResult,
    LaneError,
    LaneProgress,
    LaneState,
    Reconciler,
    check_dependencies,
    group_by_authority,
)
from .modules import ModuleLayout
from .reader import RemoteCoinState, StateReader
from .report import CSV_COLUMNS, ProgressBoard, Reporter, csv_row
from .runner import RunOutcome, RunReport, prompt_to_proceed, reconcile
from .tasks import (
    DOMAIN_AUTHORITY,
    Authority,
    CallDescriptor,
    Domain,
    FieldDiff,
    ReconciliationTask,
    task_key,
)

__all__ = [
    # Tasks
    "Authority",
    "CallDescriptor",
    "DOMAIN_AUTHORITY",
    "Domain",
    "FieldDiff",
    "ReconciliationTask",
    "task_key",
    # Reading
    "FIELD_DEFAULTS",
    "ModuleLayout",
    "REQUIRED",
    "ReadField",
    "RemoteCoinState",
    "StateReader",
    # Planning
    "Differencer",
    "ReconciliationPlan",
    "RejectedTask",
    "TransactionBuilder",
    "require_address",
    # Execution
    "ExecutionResult",
    "LaneError",
    "LaneProgress",
    "LaneState",
    "Reconciler",
    "check_dependencies",
    "group_by_authority",
    # Reporting and driver
    "CSV_COLUMNS",
    "ProgressBoard",
    "Reporter",
    "RunOutcome",
    "RunReport",
    "csv_row",
    "prompt_to_proceed",
    "reconcile",
]
