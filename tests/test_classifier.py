"""Tests for rollout classification."""

from datetime import datetime, timedelta, timezone

import pytest

from rollout_agent.classifier import classify, detect_issues
from rollout_agent.errors import TargetNotFoundError
from rollout_agent.models import (
    DeploymentRecord,
    OperationLogSnapshot,
    OperationSummary,
    RolloutState,
    ServiceRolloutSnapshot,
)


class TestServiceRollout:
    """Service-rollout snapshots."""

    def test_completed_without_pending_succeeds(self, make_snapshot):
        result = classify(make_snapshot("COMPLETED", desired=2, running=2))
        assert result.state == RolloutState.SUCCEEDED
        assert result.reason is None

    @pytest.mark.parametrize(
        "events",
        [(), ("service web has reached a steady state.",), ("task failed ELB health checks",)],
    )
    def test_success_ignores_event_content(self, make_snapshot, events):
        result = classify(make_snapshot("COMPLETED", events=events))
        assert result.state == RolloutState.SUCCEEDED

    def test_completed_with_other_deployment_in_progress(self, make_snapshot):
        draining = DeploymentRecord(id="ecs-svc/0", status="ACTIVE", rollout_state="IN_PROGRESS")
        result = classify(make_snapshot("COMPLETED", extra_deployments=[draining]))
        assert result.state == RolloutState.IN_PROGRESS

    def test_failed_uses_reason(self, make_snapshot):
        result = classify(make_snapshot("FAILED", reason="ECS deployment circuit breaker"))
        assert result.state == RolloutState.FAILED
        assert result.reason == "ECS deployment circuit breaker"

    def test_failed_without_reason(self, make_snapshot):
        result = classify(make_snapshot("FAILED"))
        assert result.state == RolloutState.FAILED
        assert result.reason == "unknown reason"

    def test_in_progress_reports_progress(self, make_snapshot):
        result = classify(make_snapshot("IN_PROGRESS", desired=4, running=1))
        assert result.state == RolloutState.IN_PROGRESS
        assert result.progress == 0.25

    def test_progress_with_zero_desired(self, make_snapshot):
        result = classify(make_snapshot("IN_PROGRESS", desired=0, running=0))
        assert result.state == RolloutState.IN_PROGRESS
        assert result.progress == 0.0

    def test_no_primary_is_unknown(self):
        snapshot = ServiceRolloutSnapshot(
            location="cluster/web",
            deployments=(DeploymentRecord(id="d", status="ACTIVE", rollout_state="COMPLETED"),),
        )
        assert classify(snapshot).state == RolloutState.UNKNOWN

    def test_missing_service_raises(self):
        with pytest.raises(TargetNotFoundError):
            classify(ServiceRolloutSnapshot(location="cluster/web", found=False))

    def test_classify_is_deterministic(self, make_snapshot):
        snapshot = make_snapshot("IN_PROGRESS", events=("unable to place task",))
        assert classify(snapshot) == classify(snapshot)


class TestIssueDetection:
    """Advisory keyword scan of recent events."""

    @pytest.mark.parametrize(
        "message",
        [
            "(service web) has task abc UNHEALTHY",
            "task stopped: Essential container Failed",
            "CannotPullContainerError: pull access denied",
            "service web was Unable to Place Task because no container instance met requirements",
        ],
    )
    def test_keywords_flag_issue(self, make_snapshot, message):
        result = classify(make_snapshot("IN_PROGRESS", events=(message,)))
        assert result.issue_detected is True
        assert result.state == RolloutState.IN_PROGRESS
        assert message in result.issue_messages

    def test_clean_events_do_not_flag(self, make_snapshot):
        result = classify(make_snapshot(events=("service web has started 1 tasks",)))
        assert result.issue_detected is False
        assert result.issue_messages == ()

    def test_only_five_most_recent_are_scanned(self, make_snapshot):
        events = ["registered 1 targets"] * 5 + ["task failed to start"]
        result = classify(make_snapshot(events=events))
        assert result.issue_detected is False

    def test_issue_never_forces_failure(self, make_snapshot):
        result = classify(make_snapshot("COMPLETED", events=("error error error",)))
        assert result.state == RolloutState.SUCCEEDED
        assert result.issue_detected is True

    def test_detect_issues_returns_window(self):
        events = tuple(f"event {i}" for i in range(4)) + ("unhealthy",) + ("late error",)
        assert detect_issues(events) == events[:5]


class TestOperationLog:
    """Operation-log snapshots."""

    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def _snapshot(self, *operations):
        return OperationLogSnapshot(location="arn:svc", operations=tuple(operations))

    def test_empty_is_unknown(self):
        assert classify(self._snapshot()).state == RolloutState.UNKNOWN

    def test_other_operation_types_ignored(self):
        snapshot = self._snapshot(
            OperationSummary(type="PAUSE_SERVICE", started_at=self.now, status="SUCCEEDED")
        )
        assert classify(snapshot).state == RolloutState.UNKNOWN

    def test_latest_start_wins(self):
        snapshot = self._snapshot(
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now - timedelta(hours=1), status="SUCCEEDED"),
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now, status="FAILED", id="op-2"),
        )
        result = classify(snapshot)
        assert result.state == RolloutState.FAILED
        assert "op-2" in result.reason

    def test_latest_succeeded(self):
        snapshot = self._snapshot(
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now, status="SUCCEEDED"),
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now - timedelta(days=1), status="FAILED"),
        )
        assert classify(snapshot).state == RolloutState.SUCCEEDED

    @pytest.mark.parametrize("status", ["IN_PROGRESS", "PENDING", None])
    def test_non_terminal_status_is_unknown(self, status):
        snapshot = self._snapshot(
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now, status=status)
        )
        assert classify(snapshot).state == RolloutState.UNKNOWN

    def test_tie_keeps_first_listed(self):
        snapshot = self._snapshot(
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now, status="SUCCEEDED"),
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now, status="FAILED"),
        )
        assert classify(snapshot).state == RolloutState.SUCCEEDED

    def test_missing_start_time_sorts_oldest(self):
        snapshot = self._snapshot(
            OperationSummary(type="START_DEPLOYMENT", started_at=None, status="FAILED"),
            OperationSummary(type="START_DEPLOYMENT", started_at=self.now, status="SUCCEEDED"),
        )
        assert classify(snapshot).state == RolloutState.SUCCEEDED


def test_unknown_snapshot_type():
    with pytest.raises(TypeError):
        classify({"status": "COMPLETED"})
