"""Base status source interface."""

from abc import ABC, abstractmethod

from ..models import RawStatusSnapshot


class StatusSource(ABC):
    """Read-only adapter returning one raw status snapshot per call.

    Implementations must be safe to call repeatedly and concurrently and
    must never mutate the target.
    """

    @abstractmethod
    async def fetch(self, location: str) -> RawStatusSnapshot:
        """Fetch the current status of a target.

        Args:
            location: Opaque target location from the TargetSpec

        Returns:
            Snapshot for the source's target kind

        Raises:
            SourceTransportError: the source could not be reached
            TargetNotFoundError: the target does not exist
        """
        pass
