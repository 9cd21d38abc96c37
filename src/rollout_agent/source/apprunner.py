"""App Runner operation-log status source."""

import asyncio

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import SourceTransportError, TargetNotFoundError
from ..models import OperationLogSnapshot, OperationSummary
from .base import StatusSource

logger = structlog.get_logger()

START_DEPLOYMENT = "START_DEPLOYMENT"


class AppRunnerStatusSource(StatusSource):
    """Lists recent App Runner operations of a service."""

    def __init__(self, client, operation_type: str = START_DEPLOYMENT):
        """Initialize App Runner status source.

        Args:
            client: boto3 App Runner client, shared across watchers
            operation_type: Operation type to monitor
        """
        self.client = client
        self.operation_type = operation_type

    async def fetch(self, location: str) -> OperationLogSnapshot:
        try:
            response = await asyncio.to_thread(
                self.client.list_operations,
                ServiceArn=location,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code == "ResourceNotFoundException":
                raise TargetNotFoundError(location) from e
            raise SourceTransportError(f"ListOperations failed: {e}") from e
        except BotoCoreError as e:
            raise SourceTransportError(f"ListOperations failed: {e}") from e

        operations = tuple(
            OperationSummary(
                id=op.get("Id"),
                type=op.get("Type", ""),
                started_at=op.get("StartedAt"),
                status=op.get("Status"),
            )
            for op in response.get("OperationSummaryList") or []
        )
        logger.debug(
            "apprunner.operations_listed",
            service_arn=location,
            count=len(operations),
        )
        return OperationLogSnapshot(
            location=location,
            operations=operations,
            operation_type=self.operation_type,
        )
