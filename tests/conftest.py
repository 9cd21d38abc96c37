"""Shared fixtures: scripted status sources and triggers."""

from typing import List, Optional

import pytest

from rollout_agent.errors import SourceTransportError
from rollout_agent.executor.base import BaseTrigger, TriggerResult
from rollout_agent.models import (
    DeploymentRecord,
    ServiceRolloutSnapshot,
    TargetKind,
    TargetSpec,
)
from rollout_agent.source.base import StatusSource

IMAGE = "123456789012.dkr.ecr.us-east-1.amazonaws.com/app@sha256:abc123"


def service_snapshot(
    rollout_state: Optional[str] = "IN_PROGRESS",
    reason: Optional[str] = None,
    events=(),
    desired: int = 2,
    running: int = 1,
    extra_deployments=(),
    location: str = "cluster/web",
) -> ServiceRolloutSnapshot:
    primary = DeploymentRecord(
        id="ecs-svc/1",
        status="PRIMARY",
        rollout_state=rollout_state,
        rollout_state_reason=reason,
        desired_count=desired,
        running_count=running,
    )
    return ServiceRolloutSnapshot(
        location=location,
        deployments=(primary,) + tuple(extra_deployments),
        events=tuple(events),
    )


class ScriptedSource(StatusSource):
    """Returns snapshots per location in order, repeating the last one.

    An Exception instance in the script is raised instead of returned.
    """

    def __init__(self, scripts):
        self.scripts = {loc: list(items) for loc, items in scripts.items()}
        self.calls: List[str] = []

    async def fetch(self, location: str):
        self.calls.append(location)
        script = self.scripts[location]
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, Exception):
            raise item
        return item

    def polls(self, location: str) -> int:
        return self.calls.count(location)


class RecordingTrigger(BaseTrigger):
    """Succeeds unless the target identifier is listed in failures."""

    def __init__(self, failures=None):
        self.failures = dict(failures or {})
        self.triggered: List[str] = []

    async def trigger(self, spec: TargetSpec) -> TriggerResult:
        self.triggered.append(spec.identifier)
        if spec.identifier in self.failures:
            return TriggerResult(status="failed", error=self.failures[spec.identifier])
        return TriggerResult(status="success", handle=f"arn:{spec.identifier}")


def ecs_target(service: str, skip: bool = False) -> TargetSpec:
    return TargetSpec(
        kind=TargetKind.SERVICE_ROLLOUT,
        location=f"cluster/{service}",
        image=IMAGE,
        container_name="web",
        task_definition_path=f"/tmp/{service}.json",
        skip_verification=skip,
        name=service,
    )


@pytest.fixture
def make_snapshot():
    return service_snapshot


@pytest.fixture
def make_target():
    return ecs_target


@pytest.fixture
def scripted_source():
    return ScriptedSource


@pytest.fixture
def recording_trigger():
    return RecordingTrigger


@pytest.fixture
def transport_error():
    return SourceTransportError("connection reset")
