"""Roll a pinned container image out to managed compute services."""

from .classifier import classify
from .models import (
    AggregateResult,
    Outcome,
    OverallStatus,
    RolloutState,
    TargetKind,
    TargetSpec,
    WatchConfig,
)
from .orchestrator import DeploymentOrchestrator
from .watcher import RolloutWatcher

__all__ = [
    "AggregateResult",
    "DeploymentOrchestrator",
    "Outcome",
    "OverallStatus",
    "RolloutState",
    "RolloutWatcher",
    "TargetKind",
    "TargetSpec",
    "WatchConfig",
    "classify",
]
