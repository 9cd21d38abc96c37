"""Status sources for rollout targets."""

from .apprunner import AppRunnerStatusSource
from .base import StatusSource
from .ecs import EcsStatusSource, ecs_location, parse_ecs_location

__all__ = [
    "AppRunnerStatusSource",
    "EcsStatusSource",
    "StatusSource",
    "ecs_location",
    "parse_ecs_location",
]
