"""Error types raised by rollout agent components."""


class RolloutError(Exception):
    """Base class for rollout agent errors."""

    pass


class ConfigurationError(RolloutError):
    """Invalid configuration detected before any target is touched."""

    pass


class TargetNotFoundError(RolloutError):
    """The status source cannot locate the target at all."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"target not found: {location}")


class TriggerError(RolloutError):
    """Updating a target failed before polling began."""

    pass


class SourceTransportError(RolloutError):
    """A single status fetch could not reach the status source."""

    pass
