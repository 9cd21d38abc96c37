"""boto3 client construction from explicit credentials."""

from dataclasses import dataclass
from typing import Optional

import boto3
import structlog
from botocore.config import Config

logger = structlog.get_logger()


@dataclass(frozen=True)
class AwsCredentials:
    """Region and optional static credentials for AWS clients.

    When the keys are omitted boto3 falls back to its default provider
    chain. The process environment is never modified.
    """

    region: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    request_timeout: float = 30.0

    @property
    def has_static_keys(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


def create_client(service_name: str, credentials: AwsCredentials):
    """Create a boto3 client for one AWS service.

    boto3 clients are thread safe, so one client per service is shared by
    every watcher and trigger of that kind.

    Args:
        service_name: boto3 service name ("ecs", "apprunner")
        credentials: Region, keys and request timeout

    Returns:
        boto3 client
    """
    session_kwargs = {"region_name": credentials.region}
    if credentials.has_static_keys:
        session_kwargs["aws_access_key_id"] = credentials.access_key_id
        session_kwargs["aws_secret_access_key"] = credentials.secret_access_key
        if credentials.session_token:
            session_kwargs["aws_session_token"] = credentials.session_token

    session = boto3.session.Session(**session_kwargs)
    client = session.client(
        service_name,
        config=Config(
            connect_timeout=credentials.request_timeout,
            read_timeout=credentials.request_timeout,
            retries={"max_attempts": 3, "mode": "standard"},
        ),
    )
    logger.debug(
        "aws.client_created",
        service=service_name,
        region=credentials.region,
        static_keys=credentials.has_static_keys,
    )
    return client
