"""
Operator-facing output.

- CSV audit export of every planned task.
- Preview tables, one per authority.
- Live progress board while lanes run.
- Final summary.

Terminal rendering uses rich. The CSV is written with the standard `csv`
module, every field quoted, objects as compact JSON.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Any

from rich.console import Console
from rich.live import Live
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .differ import ReconciliationPlan
from .executor import ExecutionResult, LaneProgress, LaneState
from .tasks import Authority, ReconciliationTask

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "authority",
    "needChange",
    "chainId",
    "remoteChainId",
    "module",
    "function",
    "args",
    "diff",
    "payload",
)
"""Column order of the audit export."""

_S_AUTHORITY = Style(color="#3fa9f5", bold=True)
_S_CHANGE = Style(color="#f5c842")
_S_OK = Style(color="#40c463")
_S_FAIL = Style(color="#f55f5f", bold=True)
_S_MUTED = Style(color="#7f8aa3")

_STATE_STYLES = {
    LaneState.IDLE: _S_MUTED,
    LaneState.RUNNING: _S_CHANGE,
    LaneState.DONE: _S_OK,
    LaneState.FAILED: _S_FAIL,
}


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


def csv_row(task: ReconciliationTask) -> dict[str, str]:
    """
    Render one task as an audit row.

    Absent values become empty strings. Booleans are written lowercase.
    """
    diff = task.diff_dict()
    return {
        "authority": str(task.authority),
        "needChange": "true" if task.need_change else "false",
        "chainId": str(task.chain_id),
        "remoteChainId": "" if task.remote_chain_id is None else str(task.remote_chain_id),
        "module": task.module,
        "function": task.function,
        "args": _compact_json(list(task.args)),
        "diff": "" if diff is None else _compact_json(diff),
        "payload": _compact_json(task.payload.to_dict()),
    }


class ProgressBoard:
    """
    Live table of lane progress.

    Lanes publish snapshots through `update`. The board is the only place
    they are merged.
    """

    def __init__(self, console: Console) -> None:
        self._lanes: dict[Authority, LaneProgress] = {}
        self._live = Live(self._render(), console=console, auto_refresh=False)

    def __enter__(self) -> ProgressBoard:
        self._live.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._live.update(self._render(), refresh=True)
        self._live.stop()

    @property
    def lanes(self) -> dict[Authority, LaneProgress]:
        """Latest snapshot of each lane seen so far."""
        return dict(self._lanes)

    def update(self, progress: LaneProgress) -> None:
        self._lanes[progress.authority] = progress
        self._live.update(self._render(), refresh=True)

    def _render(self) -> Table:
        table = Table(title="Progress", expand=False)
        table.add_column("authority", style=_S_AUTHORITY)
        table.add_column("state")
        table.add_column("requests", justify="right")
        table.add_column("current")
        table.add_column("last result")
        for authority in Authority:
            lane = self._lanes.get(authority)
            if lane is None:
                continue
            if lane.error:
                last = Text(lane.error, style=_S_FAIL)
            else:
                last = Text(lane.last_hash, style=_S_MUTED)
            table.add_row(
                str(authority),
                Text(str(lane.state), style=_STATE_STYLES[lane.state]),
                lane.requests,
                lane.current,
                last,
            )
        return table


class Reporter:
    """Writes the audit export and everything the operator sees."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console if console is not None else Console()

    # -------------------------------------------------------------------------
    # Audit export
    # -------------------------------------------------------------------------

    def export_csv(self, tasks: Sequence[ReconciliationTask], path: Path) -> Path:
        """Write every planned task, changed or not, to `path`."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_ALL)
            writer.writeheader()
            for task in tasks:
                writer.writerow(csv_row(task))
        logger.info("Wrote %d tasks to %s", len(tasks), path)
        return path

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def preview(self, plan: ReconciliationPlan) -> None:
        """Show the pending calls of each authority."""
        for authority, tasks in plan.by_authority().items():
            pending = [task for task in tasks if task.need_change]
            if not pending:
                self.console.print(Text(f"{authority}: no change needed", style=_S_MUTED))
                continue

            table = Table(title=Text(f"{authority} ({len(pending)} calls)", style=_S_AUTHORITY))
            table.add_column("#", justify="right")
            table.add_column("remote", justify="right")
            table.add_column("call")
            table.add_column("diff")
            for index, task in enumerate(pending, start=1):
                remote = "" if task.remote_chain_id is None else str(task.remote_chain_id)
                table.add_row(
                    str(index),
                    remote,
                    f"{task.module}.{task.function}",
                    _compact_json(task.diff_dict()),
                )
            self.console.print(table)

        for rejected in plan.rejected:
            self.console.print(Text(f"skipped {rejected.key}: {rejected.error}", style=_S_FAIL))

    def progress_board(self) -> ProgressBoard:
        """Live board to pass lane snapshots to while executing."""
        return ProgressBoard(self.console)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def summary(self, plan: ReconciliationPlan, result: ExecutionResult | None = None) -> str:
        """
        Print and return the one-line outcome of the run.

        Without an execution result the run wrote nothing. Rejected tasks
        count against the run even when every submitted call went through.
        """
        pending = len(plan.pending())
        rejected = len(plan.rejected)
        if pending == 0 and rejected == 0:
            line, style = "No change needed", _S_OK
        elif pending == 0:
            line, style = "Nothing to submit", _S_FAIL
        elif result is None:
            line, style = f"{pending} calls planned, none submitted", _S_CHANGE
        elif result.succeeded and rejected == 0:
            line, style = f"All {result.confirmed} calls confirmed", _S_OK
        else:
            line = f"Partial: {result.confirmed} of {pending} calls confirmed"
            if result.errors:
                failed = ", ".join(str(error.authority) for error in result.errors)
                line += f", failed lanes: {failed}"
            style = _S_FAIL
        if rejected:
            line += f", {rejected} rejected"

        if result is not None:
            for error in result.errors:
                self.console.print(Text(f"{error.authority}: {error.error}", style=_S_FAIL))
        self.console.print(Text(line, style=style))
        return line
