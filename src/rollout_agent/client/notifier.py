"""Notification sink interface for orchestration events."""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from ..models import NotificationKind, OverallStatus


class NotificationContext(BaseModel):
    """Everything a sink may render for a start or finish event."""

    environment: str
    target: str
    image_ref: str
    status: Optional[OverallStatus] = None  # finish only
    summary: Optional[str] = None
    repository: str = "<repo>"
    branch: str = "<branch>"
    actor: str = "<actor>"
    run_url: Optional[str] = None


class NotificationSink(ABC):
    """Receives orchestration start and finish events."""

    @abstractmethod
    async def notify(self, kind: NotificationKind, context: NotificationContext):
        """Deliver one event. Failures are the caller's to log."""
        pass

    async def close(self):
        pass


class NullNotifier(NotificationSink):
    """Sink used when notifications are disabled."""

    async def notify(self, kind: NotificationKind, context: NotificationContext):
        return None
