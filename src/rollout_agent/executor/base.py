"""Base trigger interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import structlog

from ..models import TargetSpec

logger = structlog.get_logger()


@dataclass
class TriggerResult:
    """Result of pointing a target at a new image."""

    status: str  # "success" or "failed"
    handle: Optional[str] = None  # e.g. new task definition ARN
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class BaseTrigger(ABC):
    """Base class for update triggers."""

    @abstractmethod
    async def trigger(self, spec: TargetSpec) -> TriggerResult:
        """Start the rollout of spec.image on the target.

        Args:
            spec: Target to update

        Returns:
            TriggerResult
        """
        pass


class PollOnlyTrigger(BaseTrigger):
    """No-op trigger for targets that update themselves.

    App Runner services with automatic deployments pick up a pushed image on
    their own; only the watcher has work to do.
    """

    async def trigger(self, spec: TargetSpec) -> TriggerResult:
        logger.info(
            "trigger.poll_only",
            target=spec.identifier,
            image=spec.image,
        )
        return TriggerResult(
            status="success",
            message="Update is driven externally; polling only",
        )
