"""
Reconciler.

Submits the planned writes. Each authority gets one lane:

- Within a lane, calls run strictly in plan order, one at a time.
- Lanes run concurrently and never wait on each other.
- A lane stops at its first failed call. Other lanes carry on.

No call is retried. A failed lane is reported and the operator re-runs the
reconciliation, which re-plans from the ledger.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from xchain_sync.chain import LedgerClient, Signer
from xchain_sync.metrics import lane_duration, transactions_failed, transactions_submitted
from xchain_sync.types import ConfigurationInvariantViolation, TransactionRejected

from .tasks import Authority, ReconciliationTask

logger = logging.getLogger(__name__)


class LaneState(StrEnum):
    """Lifecycle of an authority lane."""

    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class LaneProgress:
    """Progress of one lane. Only the lane itself writes to it."""

    authority: Authority
    total: int
    state: LaneState = LaneState.IDLE
    completed: int = 0
    current: str = ""
    """`module.function` of the call in flight, or the last one."""

    last_hash: str = ""
    """Hash of the last confirmed call."""

    error: str = ""

    @property
    def requests(self) -> str:
        """Calls confirmed out of calls planned, e.g. `3/5`."""
        return f"{self.completed}/{self.total}"

    def snapshot(self) -> LaneProgress:
        """Copy safe to hand to another component."""
        return LaneProgress(
            authority=self.authority,
            total=self.total,
            state=self.state,
            completed=self.completed,
            current=self.current,
            last_hash=self.last_hash,
            error=self.error,
        )


@dataclass(frozen=True, slots=True)
class LaneError:
    """Why a lane stopped."""

    authority: Authority
    error: TransactionRejected


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of every lane of a run."""

    lanes: dict[Authority, LaneProgress] = field(default_factory=dict)
    errors: tuple[LaneError, ...] = ()

    @property
    def succeeded(self) -> bool:
        """Whether every lane confirmed all of its calls."""
        return not self.errors

    @property
    def confirmed(self) -> int:
        """Calls confirmed across all lanes."""
        return sum(lane.completed for lane in self.lanes.values())


ProgressCallback = Callable[[LaneProgress], None]
"""Receives a snapshot every time a lane changes."""


def group_by_authority(
    tasks: Sequence[ReconciliationTask],
) -> dict[Authority, list[ReconciliationTask]]:
    """Tasks needing change, one list per authority, in plan order."""
    lanes: dict[Authority, list[ReconciliationTask]] = {}
    for task in tasks:
        if task.need_change:
            lanes.setdefault(task.authority, []).append(task)
    return lanes


def check_dependencies(tasks: Sequence[ReconciliationTask]) -> None:
    """
    Verify every pending task runs after what it depends on.

    A dependency is met when it is already satisfied on chain (planned
    without change) or runs earlier in the same lane.

    Raises:
        ConfigurationInvariantViolation: On an unknown dependency, one in
            another lane, or one scheduled later.
    """
    planned = {task.key: task for task in tasks}
    position: dict[str, int] = {}
    for lane in group_by_authority(tasks).values():
        for index, task in enumerate(lane):
            position[task.key] = index

    for task in tasks:
        if not task.need_change:
            continue
        for dep in task.depends_on:
            required = planned.get(dep)
            if required is None:
                raise ConfigurationInvariantViolation(f"{task.key} depends on unknown task {dep}")
            if not required.need_change:
                continue
            if required.authority != task.authority:
                raise ConfigurationInvariantViolation(
                    f"{task.key} depends on {dep} from the {required.authority} lane"
                )
            if position[dep] >= position[task.key]:
                raise ConfigurationInvariantViolation(f"{task.key} is scheduled before {dep}")


class Reconciler:
    """Submits pending tasks, one lane per authority."""

    def __init__(
        self,
        client: LedgerClient,
        signers: Mapping[Authority, Signer],
        *,
        call_timeout: float = 30.0,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """
        Args:
            client: Ledger to submit to.
            signers: Signing identity of each authority.
            call_timeout: Deadline in seconds for each submitted call.
            on_progress: Called with a snapshot whenever a lane changes.
        """
        self._client = client
        self._signers = dict(signers)
        self._call_timeout = call_timeout
        self._on_progress = on_progress

    async def execute(self, tasks: Sequence[ReconciliationTask]) -> ExecutionResult:
        """
        Submit every task that needs change.

        Preconditions are all checked before the first write.

        Raises:
            ConfigurationInvariantViolation: If an authority with pending
                tasks has no signer, or dependencies are out of order.
        """
        lanes = group_by_authority(tasks)
        missing = [str(authority) for authority in lanes if authority not in self._signers]
        if missing:
            raise ConfigurationInvariantViolation(f"No signer for {', '.join(missing)}")
        check_dependencies(tasks)

        progress = {
            authority: LaneProgress(authority=authority, total=len(lane))
            for authority, lane in lanes.items()
        }
        for slot in progress.values():
            self._publish(slot)

        async with asyncio.TaskGroup() as tg:
            runs = {
                authority: tg.create_task(self._run_lane(lane, progress[authority]))
                for authority, lane in lanes.items()
            }

        errors = tuple(error for run in runs.values() if (error := run.result()) is not None)
        return ExecutionResult(lanes=progress, errors=errors)

    async def _run_lane(
        self,
        lane: list[ReconciliationTask],
        progress: LaneProgress,
    ) -> LaneError | None:
        """Submit one lane in order. Never raises: failures end the lane."""
        authority = progress.authority
        signer = self._signers[authority]
        started = time.perf_counter()
        progress.state = LaneState.RUNNING
        self._publish(progress)

        try:
            for task in lane:
                progress.current = f"{task.module}.{task.function}"
                self._publish(progress)
                try:
                    tx_hash = await self._submit(signer, task)
                except TransactionRejected as exc:
                    transactions_failed.labels(authority=authority).inc()
                    progress.state = LaneState.FAILED
                    progress.error = exc.reason
                    self._publish(progress)
                    logger.error(
                        "Stopped at %s: %s", task.key, exc.reason, extra={"authority": authority}
                    )
                    return LaneError(authority=authority, error=exc)

                transactions_submitted.labels(authority=authority).inc()
                progress.completed += 1
                progress.last_hash = tx_hash
                self._publish(progress)
                logger.info(
                    "%s confirmed as %s", task.key, tx_hash, extra={"authority": authority}
                )
        finally:
            lane_duration.labels(authority=authority).observe(time.perf_counter() - started)

        progress.state = LaneState.DONE
        self._publish(progress)
        return None

    async def _submit(self, signer: Signer, task: ReconciliationTask) -> str:
        """Submit one call under the deadline, mapping every failure to a rejection."""
        function = task.payload.function
        try:
            return await asyncio.wait_for(
                self._client.submit(signer, task.payload),
                timeout=self._call_timeout,
            )
        except TransactionRejected:
            raise
        except TimeoutError as exc:
            reason = f"no confirmation within {self._call_timeout}s"
            raise TransactionRejected(function, reason) from exc
        except Exception as exc:
            raise TransactionRejected(function, str(exc) or type(exc).__name__) from exc

    def _publish(self, progress: LaneProgress) -> None:
        if self._on_progress is not None:
            self._on_progress(progress.snapshot())
