"""Configuration module for Rollout Agent."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .client.aws import AwsCredentials
from .errors import ConfigurationError
from .models import TargetKind, TargetSpec, WatchConfig
from .source.ecs import ecs_location


class DeploymentTarget(str, Enum):
    """Compute service the image is rolled out to."""
    ECS = "ecs"
    APPRUNNER = "apprunner"


class AgentConfig(BaseSettings):
    """Agent configuration from environment variables."""

    target: DeploymentTarget = Field(
        default=DeploymentTarget.ECS,
        description="Deployment target (ecs or apprunner)"
    )
    image_ref: str = Field(
        default="",
        description="Pinned image reference (registry/repo@sha256:...)"
    )

    # AWS
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region"
    )
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="Static access key (default credential chain if unset)"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="Static secret key"
    )
    aws_session_token: Optional[str] = Field(
        default=None,
        description="Session token for temporary credentials"
    )
    request_timeout: float = Field(
        default=30.0,
        description="Connect/read timeout for each AWS API call in seconds"
    )

    # ECS services
    ecs_cluster: Optional[str] = Field(
        default=None,
        description="ECS cluster name"
    )
    ecs_service_web: Optional[str] = Field(
        default=None,
        description="Web service name"
    )
    task_def_web_path: Optional[str] = Field(
        default=None,
        description="Web task definition JSON path"
    )
    container_web_name: str = Field(
        default="web",
        description="Container to update in the web task definition"
    )
    ecs_service_worker: Optional[str] = Field(
        default=None,
        description="Worker service name"
    )
    task_def_worker_path: Optional[str] = Field(
        default=None,
        description="Worker task definition JSON path"
    )
    container_worker_name: str = Field(
        default="sidekiq",
        description="Container to update in the worker task definition"
    )
    ecs_service_admin: Optional[str] = Field(
        default=None,
        description="Admin service name (optional)"
    )
    task_def_admin_path: Optional[str] = Field(
        default=None,
        description="Admin task definition JSON path"
    )
    container_admin_name: str = Field(
        default="web",
        description="Container to update in the admin task definition"
    )

    # App Runner
    apprunner_service_arn: Optional[str] = Field(
        default=None,
        description="App Runner service ARN"
    )

    # Watch budgets
    ecs_poll_interval: float = Field(
        default=5.0,
        description="ECS poll interval in seconds"
    )
    ecs_max_attempts: int = Field(
        default=60,
        description="ECS poll attempts before timing out"
    )
    apprunner_poll_interval: float = Field(
        default=60.0,
        description="App Runner poll interval in seconds"
    )
    apprunner_max_attempts: int = Field(
        default=6,
        description="App Runner poll attempts before timing out"
    )
    skip_health_check: bool = Field(
        default=False,
        description="Trust the update step without watching the rollout"
    )

    # Notifications
    slack_token: Optional[str] = Field(
        default=None,
        description="Slack bot token"
    )
    slack_channel_id: Optional[str] = Field(
        default=None,
        description="Slack channel for rollout events"
    )
    skip_slack_notify: bool = Field(
        default=False,
        description="Disable Slack notifications"
    )
    environment_name: str = Field(
        default="Staging",
        description="Environment name shown in notifications"
    )
    repository: Optional[str] = Field(default=None, description="Source repository")
    branch: Optional[str] = Field(default=None, description="Source branch")
    actor: Optional[str] = Field(default=None, description="Who started the rollout")
    run_url: Optional[str] = Field(default=None, description="CI run URL")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="console",
        description="Log renderer (console or json)"
    )

    class Config:
        """Pydantic config."""
        env_prefix = "ROLLOUT_AGENT_"
        case_sensitive = False

    @property
    def aws_credentials(self) -> AwsCredentials:
        """Explicit AWS settings handed to client construction."""
        return AwsCredentials(
            region=self.aws_region,
            access_key_id=self.aws_access_key_id,
            secret_access_key=self.aws_secret_access_key,
            session_token=self.aws_session_token,
            request_timeout=self.request_timeout,
        )

    @property
    def notifications_enabled(self) -> bool:
        return bool(
            self.slack_token and self.slack_channel_id and not self.skip_slack_notify
        )

    @property
    def run_metadata(self) -> Dict[str, str]:
        metadata = {
            "target": self.target.value,
            "repository": self.repository,
            "branch": self.branch,
            "actor": self.actor,
            "run_url": self.run_url,
        }
        return {key: value for key, value in metadata.items() if value}

    def watch_configs(self) -> Dict[TargetKind, WatchConfig]:
        """Poll budgets per target kind.

        Raises:
            ConfigurationError: zero attempts or a negative interval
        """
        return {
            TargetKind.SERVICE_ROLLOUT: WatchConfig(
                max_attempts=self.ecs_max_attempts,
                interval=self.ecs_poll_interval,
            ),
            TargetKind.OPERATION_LOG: WatchConfig(
                max_attempts=self.apprunner_max_attempts,
                interval=self.apprunner_poll_interval,
            ),
        }

    def build_targets(self) -> List[TargetSpec]:
        """Build the target list for the configured deployment target.

        Raises:
            ConfigurationError: required inputs are missing
        """
        if not self.image_ref:
            raise ConfigurationError("image_ref is required")

        if self.target == DeploymentTarget.APPRUNNER:
            if not self.apprunner_service_arn:
                raise ConfigurationError("App Runner input missing: apprunner_service_arn")
            return [
                TargetSpec(
                    kind=TargetKind.OPERATION_LOG,
                    location=self.apprunner_service_arn,
                    image=self.image_ref,
                    skip_verification=self.skip_health_check,
                    name="apprunner",
                )
            ]

        if not (self.ecs_cluster and self.ecs_service_web and self.task_def_web_path):
            raise ConfigurationError(
                "ECS inputs missing: ecs_cluster, ecs_service_web, task_def_web_path "
                "(and optionally worker)"
            )

        services = [
            (self.ecs_service_web, self.task_def_web_path, self.container_web_name),
            (self.ecs_service_worker, self.task_def_worker_path, self.container_worker_name),
            (self.ecs_service_admin, self.task_def_admin_path, self.container_admin_name),
        ]
        return [
            TargetSpec(
                kind=TargetKind.SERVICE_ROLLOUT,
                location=ecs_location(self.ecs_cluster, service),
                image=self.image_ref,
                container_name=container,
                task_definition_path=task_def_path,
                skip_verification=self.skip_health_check,
                name=service,
            )
            for service, task_def_path, container in services
            if service and task_def_path
        ]
