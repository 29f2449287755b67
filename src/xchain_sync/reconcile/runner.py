"""
Run driver.

One reconciliation from start to finish:

1. Plan every task against the ledger.
2. Export the plan to CSV, changed or not.
3. Preview the pending calls.
4. Stop if nothing needs to change, or if this is a dry run.
5. Ask the operator to confirm.
6. Submit, one lane per authority, with a live progress board.
7. Summarize.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from rich.prompt import Confirm

from xchain_sync.chain import LedgerClient, Signer
from xchain_sync.config import TargetConfig
from xchain_sync.settings import ReconcileSettings

from .builder import TransactionBuilder
from .differ import Differencer, ReconciliationPlan
from .executor import ExecutionResult, Reconciler
from .modules import ModuleLayout
from .reader import StateReader
from .report import Reporter
from .tasks import Authority

logger = logging.getLogger(__name__)


class RunOutcome(StrEnum):
    """How a run ended."""

    NO_CHANGES = "no_changes"
    DRY_RUN = "dry_run"
    DECLINED = "declined"
    APPLIED = "applied"

    PARTIAL = "partial"
    """Some calls failed or some tasks were rejected while planning."""


@dataclass(frozen=True, slots=True)
class RunReport:
    """Everything a run produced."""

    outcome: RunOutcome
    plan: ReconciliationPlan
    csv_path: Path
    result: ExecutionResult | None = None


ConfirmCallback = Callable[[ReconciliationPlan], bool]
"""Returns whether to submit the planned calls."""


def prompt_to_proceed(plan: ReconciliationPlan) -> bool:
    """Ask at the terminal whether to submit the pending calls."""
    return Confirm.ask(f"Submit {len(plan.pending())} calls?", default=False)


async def reconcile(
    client: LedgerClient,
    target: TargetConfig,
    signers: Mapping[Authority, Signer],
    settings: ReconcileSettings | None = None,
    reporter: Reporter | None = None,
    confirm: ConfirmCallback = prompt_to_proceed,
) -> RunReport:
    """
    Bring the ledger to `target`.

    Declining the confirmation is a normal outcome, not an error.

    Raises:
        NotFoundOnChain: If a required setting is missing while planning.
        ConfigurationInvariantViolation: If a pending authority has no signer.
    """
    settings = settings if settings is not None else ReconcileSettings()
    reporter = reporter if reporter is not None else Reporter()

    layout = ModuleLayout.from_target(target)
    reader = StateReader(
        client,
        layout,
        call_timeout=settings.call_timeout,
        max_concurrent_reads=settings.max_concurrent_reads,
    )
    builder = TransactionBuilder(layout, chain_address_size=target.msglib.address_size)
    plan = await Differencer(reader, builder, target).plan()

    csv_path = reporter.export_csv(plan.tasks, settings.transactions_csv)
    reporter.preview(plan)

    # Checked over every authority together: one authority with pending
    # calls means the run goes ahead for all of them.
    if not plan.need_change:
        reporter.summary(plan)
        outcome = RunOutcome.PARTIAL if plan.rejected else RunOutcome.NO_CHANGES
        return RunReport(outcome, plan, csv_path)

    if settings.dry_run:
        logger.info("Dry run, %d calls not submitted", len(plan.pending()))
        reporter.summary(plan)
        return RunReport(RunOutcome.DRY_RUN, plan, csv_path)

    if settings.prompt and not confirm(plan):
        logger.info("Operator declined %d calls", len(plan.pending()))
        reporter.summary(plan)
        return RunReport(RunOutcome.DECLINED, plan, csv_path)

    with reporter.progress_board() as board:
        reconciler = Reconciler(
            client,
            signers,
            call_timeout=settings.call_timeout,
            on_progress=board.update,
        )
        result = await reconciler.execute(plan.tasks)

    reporter.summary(plan, result)
    applied = result.succeeded and not plan.rejected
    outcome = RunOutcome.APPLIED if applied else RunOutcome.PARTIAL
    return RunReport(outcome, plan, csv_path, result)
