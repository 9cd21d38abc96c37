"""ECS service-rollout status source."""

import asyncio
from typing import Tuple

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ConfigurationError, SourceTransportError, TargetNotFoundError
from ..models import DeploymentRecord, ServiceRolloutSnapshot
from .base import StatusSource

logger = structlog.get_logger()


def ecs_location(cluster: str, service: str) -> str:
    """Build the opaque location string for an ECS service."""
    return f"{cluster}/{service}"


def parse_ecs_location(location: str) -> Tuple[str, str]:
    """Split "cluster/service" into its parts."""
    cluster, sep, service = location.partition("/")
    if not sep or not cluster or not service:
        raise ConfigurationError(
            f"ECS location must look like 'cluster/service' (got {location!r})"
        )
    return cluster, service


class EcsStatusSource(StatusSource):
    """Describes an ECS service and its deployments."""

    def __init__(self, client):
        """Initialize ECS status source.

        Args:
            client: boto3 ECS client, shared across watchers
        """
        self.client = client

    async def fetch(self, location: str) -> ServiceRolloutSnapshot:
        cluster, service = parse_ecs_location(location)

        try:
            response = await asyncio.to_thread(
                self.client.describe_services,
                cluster=cluster,
                services=[service],
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("ClusterNotFoundException", "ServiceNotFoundException"):
                raise TargetNotFoundError(location) from e
            raise SourceTransportError(f"DescribeServices failed: {e}") from e
        except BotoCoreError as e:
            raise SourceTransportError(f"DescribeServices failed: {e}") from e

        services = response.get("services") or []
        if not services:
            logger.error(
                "ecs.service_not_found",
                location=location,
                failures=response.get("failures"),
            )
            return ServiceRolloutSnapshot(location=location, found=False)

        return self._to_snapshot(location, services[0])

    @staticmethod
    def _to_snapshot(location: str, svc: dict) -> ServiceRolloutSnapshot:
        deployments = tuple(
            DeploymentRecord(
                id=d.get("id", ""),
                status=d.get("status", ""),
                rollout_state=d.get("rolloutState"),
                rollout_state_reason=d.get("rolloutStateReason"),
                desired_count=d.get("desiredCount") or 0,
                running_count=d.get("runningCount") or 0,
            )
            for d in svc.get("deployments") or []
        )
        # ECS returns events newest first
        events = tuple(e.get("message", "") for e in svc.get("events") or [])
        return ServiceRolloutSnapshot(
            location=location,
            deployments=deployments,
            events=events,
        )
