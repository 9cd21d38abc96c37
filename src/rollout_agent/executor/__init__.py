"""Update triggers for rollout targets."""

from .base import BaseTrigger, PollOnlyTrigger, TriggerResult
from .ecs import EcsTaskDefinitionTrigger

__all__ = [
    "BaseTrigger",
    "EcsTaskDefinitionTrigger",
    "PollOnlyTrigger",
    "TriggerResult",
]
