"""Map raw status snapshots to canonical rollout states.

Classification is a pure function of the snapshot. Event-message keyword
matches are reported as an advisory signal and never change the state.
"""

from typing import Tuple

from .errors import TargetNotFoundError
from .models import (
    Classification,
    OperationLogSnapshot,
    RawStatusSnapshot,
    RolloutState,
    ServiceRolloutSnapshot,
)

# ECS rolloutState sentinels
SERVICE_SUCCESS = "COMPLETED"
SERVICE_FAILURE = "FAILED"
SERVICE_IN_PROGRESS = "IN_PROGRESS"

# App Runner operation status sentinels
OPERATION_SUCCESS = "SUCCEEDED"
OPERATION_FAILURE = "FAILED"

ISSUE_KEYWORDS = ("unhealthy", "failed", "error", "unable to place task")
ISSUE_EVENT_WINDOW = 5


def classify(snapshot: RawStatusSnapshot) -> Classification:
    """Classify a snapshot.

    Raises:
        TargetNotFoundError: service-rollout snapshot for a missing service
        TypeError: snapshot is not a known variant
    """
    if isinstance(snapshot, ServiceRolloutSnapshot):
        return _classify_service(snapshot)
    if isinstance(snapshot, OperationLogSnapshot):
        return _classify_operations(snapshot)
    raise TypeError(f"Unsupported snapshot type: {type(snapshot).__name__}")


def detect_issues(events: Tuple[str, ...]) -> Tuple[str, ...]:
    """Return the recent event messages that look like trouble, newest first."""
    recent = events[:ISSUE_EVENT_WINDOW]
    if any(_has_issue_keyword(message) for message in recent):
        return tuple(recent)
    return ()


def _has_issue_keyword(message: str) -> bool:
    lowered = (message or "").lower()
    return any(keyword in lowered for keyword in ISSUE_KEYWORDS)


def _classify_service(snapshot: ServiceRolloutSnapshot) -> Classification:
    if not snapshot.found:
        raise TargetNotFoundError(snapshot.location)

    issues = detect_issues(snapshot.events)
    primary = snapshot.primary
    if primary is None:
        return Classification(
            state=RolloutState.UNKNOWN,
            issue_detected=bool(issues),
            issue_messages=issues,
        )

    in_progress = any(
        d.rollout_state == SERVICE_IN_PROGRESS for d in snapshot.deployments
    )

    if primary.rollout_state == SERVICE_SUCCESS and not in_progress:
        state, reason = RolloutState.SUCCEEDED, None
    elif primary.rollout_state == SERVICE_FAILURE:
        state = RolloutState.FAILED
        reason = primary.rollout_state_reason or "unknown reason"
    else:
        state, reason = RolloutState.IN_PROGRESS, None

    progress = None
    if state == RolloutState.IN_PROGRESS:
        progress = (
            primary.running_count / primary.desired_count
            if primary.desired_count > 0
            else 0.0
        )

    return Classification(
        state=state,
        issue_detected=bool(issues),
        reason=reason,
        progress=progress,
        issue_messages=issues,
    )


def _classify_operations(snapshot: OperationLogSnapshot) -> Classification:
    matching = [
        op for op in snapshot.operations if op.type == snapshot.operation_type
    ]
    if not matching:
        return Classification(state=RolloutState.UNKNOWN)

    # Latest start wins; on equal timestamps the first listed entry wins.
    # Entries without a start time sort as oldest.
    latest = matching[0]
    for op in matching[1:]:
        if _started_key(op) > _started_key(latest):
            latest = op

    if latest.status == OPERATION_SUCCESS:
        return Classification(state=RolloutState.SUCCEEDED)
    if latest.status == OPERATION_FAILURE:
        return Classification(
            state=RolloutState.FAILED,
            reason=f"operation {latest.id or latest.type} status FAILED",
        )
    return Classification(state=RolloutState.UNKNOWN)


def _started_key(op) -> float:
    return op.started_at.timestamp() if op.started_at else float("-inf")
