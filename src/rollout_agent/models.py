"""Data model shared by sources, watchers and the orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel

from .errors import ConfigurationError


class TargetKind(str, Enum):
    """How a target reports rollout status."""

    SERVICE_ROLLOUT = "service-rollout"
    OPERATION_LOG = "operation-log"


class RolloutState(str, Enum):
    """Canonical rollout state, independent of target kind."""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (RolloutState.SUCCEEDED, RolloutState.FAILED)


class OverallStatus(str, Enum):
    """Aggregate status of a rollout session."""

    SUCCESS = "Success"
    FAILURE = "Failure"


class NotificationKind(str, Enum):
    """Orchestration events delivered to the notification sink."""

    STARTED = "started"
    FINISHED = "finished"


class TargetSpec(BaseModel):
    """One independently deployed unit of a rollout session."""

    kind: TargetKind
    location: str  # "cluster/service" for ECS, service ARN for App Runner
    image: str
    container_name: Optional[str] = None
    task_definition_path: Optional[str] = None
    skip_verification: bool = False
    name: Optional[str] = None

    class Config:
        frozen = True

    @property
    def identifier(self) -> str:
        """Human readable target identifier used in logs and reasons."""
        return self.name or self.location


@dataclass(frozen=True)
class WatchConfig:
    """Poll budget for a single watcher."""

    max_attempts: int
    interval: float  # seconds

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be at least 1 (got {self.max_attempts})"
            )
        if self.interval < 0:
            raise ConfigurationError(
                f"interval must not be negative (got {self.interval})"
            )

    @classmethod
    def for_kind(cls, kind: TargetKind) -> "WatchConfig":
        """Default poll budget for a target kind.

        Service rollouts take minutes to stabilize, so they poll often with
        a large budget. Operation logs resolve quickly or not at all.
        """
        if kind == TargetKind.SERVICE_ROLLOUT:
            return cls(max_attempts=60, interval=5.0)
        return cls(max_attempts=6, interval=60.0)


@dataclass(frozen=True)
class DeploymentRecord:
    """One deployment entry of a long running service."""

    id: str
    status: str  # PRIMARY / ACTIVE / INACTIVE
    rollout_state: Optional[str] = None
    rollout_state_reason: Optional[str] = None
    desired_count: int = 0
    running_count: int = 0


@dataclass(frozen=True)
class ServiceRolloutSnapshot:
    """Service description with its deployments and recent events."""

    location: str
    deployments: Tuple[DeploymentRecord, ...] = ()
    events: Tuple[str, ...] = ()  # newest first
    found: bool = True

    @property
    def primary(self) -> Optional[DeploymentRecord]:
        for deployment in self.deployments:
            if deployment.status == "PRIMARY":
                return deployment
        return None


@dataclass(frozen=True)
class OperationSummary:
    """One asynchronous operation listed by an operation-log source."""

    type: str
    started_at: Optional[datetime] = None
    status: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class OperationLogSnapshot:
    """Recent operations of a service, in the order the source listed them."""

    location: str
    operations: Tuple[OperationSummary, ...] = ()
    operation_type: str = "START_DEPLOYMENT"


RawStatusSnapshot = Union[ServiceRolloutSnapshot, OperationLogSnapshot]


@dataclass(frozen=True)
class Classification:
    """Result of classifying one snapshot."""

    state: RolloutState
    issue_detected: bool = False
    reason: Optional[str] = None
    progress: Optional[float] = None
    issue_messages: Tuple[str, ...] = ()


@dataclass
class Outcome:
    """Terminal result of one target."""

    target: str
    state: RolloutState
    reason: Optional[str] = None
    polls: int = 0
    elapsed: float = 0.0  # seconds
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == RolloutState.SUCCEEDED


@dataclass
class AggregateResult:
    """Overall result of a rollout session."""

    status: OverallStatus
    outcomes: List[Outcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[Outcome]) -> "AggregateResult":
        """All-or-nothing: any outcome other than Succeeded fails the session."""
        status = (
            OverallStatus.SUCCESS
            if all(o.succeeded for o in outcomes)
            else OverallStatus.FAILURE
        )
        return cls(status=status, outcomes=list(outcomes))

    @property
    def succeeded(self) -> bool:
        return self.status == OverallStatus.SUCCESS

    @property
    def failures(self) -> List[Outcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def outcome_for(self, target: str) -> Optional[Outcome]:
        for outcome in self.outcomes:
            if outcome.target == target:
                return outcome
        return None

    def summary(self) -> str:
        """One line per failing target, for exit messages and notifications."""
        return "; ".join(
            f"{o.target}: {o.state.value} ({o.reason or 'no reason given'})"
            for o in self.failures
        )
