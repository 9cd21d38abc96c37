"""ECS trigger: register a new task definition and update the service."""

import asyncio
import copy
import json
from pathlib import Path
from typing import Any, Dict

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import TriggerError
from ..models import TargetSpec
from ..source.ecs import parse_ecs_location
from .base import BaseTrigger, TriggerResult

logger = structlog.get_logger()

# Fields DescribeTaskDefinition returns that RegisterTaskDefinition rejects
READ_ONLY_TASK_DEF_FIELDS = (
    "taskDefinitionArn",
    "revision",
    "status",
    "requiresAttributes",
    "compatibilities",
    "registeredAt",
    "registeredBy",
    "deregisteredAt",
)


def load_task_definition(path: str) -> Dict[str, Any]:
    """Read a task definition JSON file.

    Accepts both a bare task definition and the
    {"taskDefinition": {...}} envelope written by DescribeTaskDefinition.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise TriggerError(f"Cannot read task definition {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise TriggerError(f"Task definition {path} is not valid JSON: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("taskDefinition"), dict):
        data = data["taskDefinition"]
    if not isinstance(data, dict):
        raise TriggerError(f"Task definition {path} must be a JSON object")
    return data


def update_container_image(
    task_definition: Dict[str, Any], container_name: str, image: str
) -> Dict[str, Any]:
    """Return a copy of the task definition with one container's image replaced.

    Raises:
        TriggerError: no container with that name exists
    """
    updated = copy.deepcopy(task_definition)
    for field in READ_ONLY_TASK_DEF_FIELDS:
        updated.pop(field, None)

    for container in updated.get("containerDefinitions") or []:
        if container.get("name") == container_name:
            container["image"] = image
            return updated

    raise TriggerError(f"Container '{container_name}' not found in task def")


class EcsTaskDefinitionTrigger(BaseTrigger):
    """Registers a task definition revision with the pinned image."""

    def __init__(self, client):
        """Initialize ECS trigger.

        Args:
            client: boto3 ECS client
        """
        self.client = client

    async def trigger(self, spec: TargetSpec) -> TriggerResult:
        """Register the new revision and point the service at it.

        Args:
            spec: ECS target with task_definition_path and container_name

        Returns:
            TriggerResult whose handle is the new task definition ARN
        """
        log = logger.bind(target=spec.identifier)

        try:
            cluster, service = parse_ecs_location(spec.location)
            if not spec.task_definition_path:
                raise TriggerError("No task definition path configured")

            base = load_task_definition(spec.task_definition_path)
            task_def = update_container_image(
                base, spec.container_name or "web", spec.image
            )
        except Exception as e:
            log.error("ecs.trigger.prepare_failed", error=str(e))
            return TriggerResult(
                status="failed",
                message="Could not prepare task definition",
                error=str(e),
            )

        log.info(
            "ecs.trigger.starting",
            cluster=cluster,
            service=service,
            family=task_def.get("family"),
            container=spec.container_name,
            image=spec.image,
        )

        try:
            registered = await asyncio.to_thread(
                self.client.register_task_definition, **task_def
            )
            arn = (registered.get("taskDefinition") or {}).get("taskDefinitionArn")
            if not arn:
                return TriggerResult(
                    status="failed",
                    message="Task definition registration returned no ARN",
                    error="Failed to register new task definition",
                )
            log.info("ecs.task_definition_registered", arn=arn)

            await asyncio.to_thread(
                self.client.update_service,
                cluster=cluster,
                service=service,
                taskDefinition=arn,
            )
        except (ClientError, BotoCoreError) as e:
            log.error("ecs.trigger.failed", error=str(e))
            return TriggerResult(
                status="failed",
                message="ECS update rejected",
                error=str(e),
            )

        log.info("ecs.service_updated", cluster=cluster, service=service, arn=arn)
        return TriggerResult(
            status="success",
            handle=arn,
            message=f"Service {service} updated to {arn}",
        )
