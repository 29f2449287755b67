"""Tests for a full reconciliation run."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from tests.xchain_sync.helpers import (
    ARBITRUM,
    ETHEREUM,
    PEER_ARBITRUM,
    make_ledger,
    make_signers,
    make_target,
    make_task,
)
from xchain_sync.reconcile import (
    Authority,
    ReconciliationPlan,
    Reporter,
    RunOutcome,
    prompt_to_proceed,
    reconcile,
    runner,
)
from xchain_sync.settings import ReconcileSettings
from xchain_sync.types import ConfigurationInvariantViolation

TARGET = make_target()
WIDE_PEER = "0x" + "ab" * 21


@pytest.fixture
def reporter() -> Reporter:
    return Reporter(Console(file=io.StringIO(), width=200))


def settings_for(tmp_path: Path, **overrides: object) -> ReconcileSettings:
    return ReconcileSettings(transactions_csv=tmp_path / "transactions.csv", **overrides)


def never_asked(plan: ReconciliationPlan) -> bool:
    raise AssertionError("confirmation must not be requested")


class TestOutcomes:
    @pytest.mark.anyio
    async def test_apply_then_nothing_left(self, tmp_path: Path, reporter: Reporter) -> None:
        client = make_ledger(TARGET)
        settings = settings_for(tmp_path, prompt=False)

        first = await reconcile(client, TARGET, make_signers(), settings, reporter, never_asked)
        second = await reconcile(client, TARGET, make_signers(), settings, reporter, never_asked)

        assert first.outcome == RunOutcome.APPLIED
        assert first.result is not None and first.result.confirmed == len(first.plan.pending())
        assert second.outcome == RunOutcome.NO_CHANGES
        assert second.result is None
        assert second.csv_path.exists()

    @pytest.mark.anyio
    async def test_dry_run_submits_nothing(self, tmp_path: Path, reporter: Reporter) -> None:
        client = make_ledger(TARGET)
        settings = settings_for(tmp_path, dry_run=True)

        report = await reconcile(client, TARGET, make_signers(), settings, reporter, never_asked)

        assert report.outcome == RunOutcome.DRY_RUN
        assert client.submitted == []
        assert len(report.csv_path.read_text(encoding="utf-8").splitlines()) == 1 + 35

    @pytest.mark.anyio
    async def test_declined(self, tmp_path: Path, reporter: Reporter) -> None:
        client = make_ledger(TARGET)
        asked: list[int] = []

        def decline(plan: ReconciliationPlan) -> bool:
            asked.append(len(plan.pending()))
            return False

        report = await reconcile(
            client, TARGET, make_signers(), settings_for(tmp_path), reporter, decline
        )

        assert report.outcome == RunOutcome.DECLINED
        assert asked == [35]
        assert client.submitted == []

    @pytest.mark.anyio
    async def test_confirmed(self, tmp_path: Path, reporter: Reporter) -> None:
        client = make_ledger(TARGET)

        report = await reconcile(
            client, TARGET, make_signers(), settings_for(tmp_path), reporter, lambda plan: True
        )

        assert report.outcome == RunOutcome.APPLIED
        assert len(client.submitted) == 35

    @pytest.mark.anyio
    async def test_partial(self, tmp_path: Path, reporter: Reporter) -> None:
        client = make_ledger(TARGET)
        client.fail_on("oracle::set_threshold", "ENOT_ADMIN")
        settings = settings_for(tmp_path, prompt=False)

        report = await reconcile(client, TARGET, make_signers(), settings, reporter, never_asked)

        assert report.outcome == RunOutcome.PARTIAL
        assert report.result is not None
        assert [e.authority for e in report.result.errors] == [Authority.ORACLE]
        assert report.result.lanes[Authority.BRIDGE].completed == 12

        # A re-run plans only what is still missing.
        retry = await reconcile(
            client, TARGET, make_signers(), settings_for(tmp_path, dry_run=True), reporter
        )
        assert [t.key for t in retry.plan.pending()] == [
            "oracle_threshold",
            "oracle_fee/10121",
            "oracle_fee/10143",
        ]

    @pytest.mark.anyio
    async def test_rejected_task_is_not_no_changes(
        self, tmp_path: Path, reporter: Reporter
    ) -> None:
        client = make_ledger(TARGET)
        settings = settings_for(tmp_path, prompt=False)
        await reconcile(client, TARGET, make_signers(), settings, reporter, never_asked)
        target = make_target(remote_bridges={ETHEREUM: WIDE_PEER, ARBITRUM: PEER_ARBITRUM})

        report = await reconcile(client, target, make_signers(), settings, reporter, never_asked)

        assert report.outcome == RunOutcome.PARTIAL
        assert report.result is None
        assert [r.key for r in report.plan.rejected] == [f"remote_bridge/{ETHEREUM}"]
        assert reporter.summary(report.plan) == "Nothing to submit, 1 rejected"

    @pytest.mark.anyio
    async def test_rejected_task_with_confirmed_calls(
        self, tmp_path: Path, reporter: Reporter
    ) -> None:
        target = make_target(remote_bridges={ETHEREUM: WIDE_PEER, ARBITRUM: PEER_ARBITRUM})
        settings = settings_for(tmp_path, prompt=False)

        report = await reconcile(
            make_ledger(target), target, make_signers(), settings, reporter, never_asked
        )

        assert report.outcome == RunOutcome.PARTIAL
        assert report.result is not None and report.result.succeeded
        assert reporter.summary(report.plan, report.result) == (
            "Partial: 34 of 34 calls confirmed, 1 rejected"
        )

    @pytest.mark.anyio
    async def test_missing_signer(self, tmp_path: Path, reporter: Reporter) -> None:
        signers = make_signers()
        del signers[Authority.EXECUTOR]

        with pytest.raises(ConfigurationInvariantViolation, match="executor"):
            await reconcile(
                make_ledger(TARGET),
                TARGET,
                signers,
                settings_for(tmp_path, prompt=False),
                reporter,
                never_asked,
            )


def test_prompt_defaults_to_no(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, bool]] = []

    def ask(prompt: str, default: bool = True) -> bool:
        calls.append((prompt, default))
        return default

    monkeypatch.setattr(runner.Confirm, "ask", ask)
    plan = ReconciliationPlan(tasks=(make_task(Authority.ORACLE, "oracle/a"),))

    assert prompt_to_proceed(plan) is False
    assert calls == [("Submit 1 calls?", False)]
