"""Main agent implementation."""

import asyncio
import signal
from typing import Dict, Optional

import structlog

from .client.aws import create_client
from .client.notifier import NotificationSink, NullNotifier
from .client.slack import SlackNotifier
from .config import AgentConfig, DeploymentTarget
from .executor.base import BaseTrigger, PollOnlyTrigger
from .executor.ecs import EcsTaskDefinitionTrigger
from .models import AggregateResult, TargetKind
from .orchestrator import DeploymentOrchestrator
from .source.apprunner import AppRunnerStatusSource
from .source.base import StatusSource
from .source.ecs import EcsStatusSource

logger = structlog.get_logger()


class RolloutAgent:
    """Runs one rollout session of a pinned image."""

    def __init__(
        self,
        config: AgentConfig,
        triggers: Optional[Dict[TargetKind, BaseTrigger]] = None,
        sources: Optional[Dict[TargetKind, StatusSource]] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        """Initialize agent.

        Targets and watch budgets are validated here, before any service is
        touched.

        Args:
            config: Agent configuration
            triggers: Override the AWS triggers (tests)
            sources: Override the AWS status sources (tests)
            notifier: Override the notification sink

        Raises:
            ConfigurationError: invalid or incomplete configuration
        """
        self.config = config
        self.targets = config.build_targets()
        watch_configs = config.watch_configs()

        if triggers is None or sources is None:
            default_triggers, default_sources = self._aws_adapters()
            triggers = triggers if triggers is not None else default_triggers
            sources = sources if sources is not None else default_sources

        self.cancel_event = asyncio.Event()
        self.orchestrator = DeploymentOrchestrator(
            triggers=triggers,
            sources=sources,
            watch_configs=watch_configs,
            environment=config.environment_name,
            run_metadata=config.run_metadata,
            cancel_event=self.cancel_event,
        )
        self.orchestrator.validate(self.targets, config.image_ref)

        # Slack client is created only for a valid target list
        if notifier is None:
            if config.notifications_enabled:
                notifier = SlackNotifier(config.slack_token, config.slack_channel_id)
            else:
                notifier = NullNotifier()
        self.notifier = notifier
        self.orchestrator.notifier = notifier

        logger.info(
            "agent.initialized",
            target=config.target.value,
            region=config.aws_region,
            services=[spec.identifier for spec in self.targets],
            notifications=config.notifications_enabled,
        )

    def _aws_adapters(self):
        credentials = self.config.aws_credentials
        if self.config.target == DeploymentTarget.ECS:
            ecs = create_client("ecs", credentials)
            return (
                {TargetKind.SERVICE_ROLLOUT: EcsTaskDefinitionTrigger(ecs)},
                {TargetKind.SERVICE_ROLLOUT: EcsStatusSource(ecs)},
            )
        apprunner = create_client("apprunner", credentials)
        return (
            {TargetKind.OPERATION_LOG: PollOnlyTrigger()},
            {TargetKind.OPERATION_LOG: AppRunnerStatusSource(apprunner)},
        )

    async def start(self) -> AggregateResult:
        """Run the rollout session to completion, timeout or cancellation."""
        logger.info("agent.starting", image=self.config.image_ref)

        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._handle_shutdown)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                logger.debug("agent.signal_handler_unavailable", signal=sig.name)

        try:
            result = await self.orchestrator.run(self.config.image_ref, self.targets)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            await self.notifier.close()

        logger.info("agent.stopped", status=result.status.value)
        return result

    def _handle_shutdown(self):
        """Handle shutdown signals."""
        logger.warning("agent.shutdown_requested")
        self.cancel_event.set()


def exit_code(result: AggregateResult) -> int:
    """Process exit status for a rollout session."""
    return 0 if result.succeeded else 1
