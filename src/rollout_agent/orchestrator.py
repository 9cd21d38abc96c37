"""Fan a pinned image out to several targets and aggregate the outcomes."""

import asyncio
from typing import Dict, List, Optional, Sequence

import structlog

from .client.notifier import NotificationContext, NotificationSink, NullNotifier
from .errors import ConfigurationError
from .executor.base import BaseTrigger, TriggerResult
from .models import (
    AggregateResult,
    NotificationKind,
    Outcome,
    RolloutState,
    TargetKind,
    TargetSpec,
    WatchConfig,
)
from .source.base import StatusSource
from .watcher import RolloutWatcher

logger = structlog.get_logger()


class DeploymentOrchestrator:
    """Triggers every target, watches them concurrently and joins the results.

    Targets are independent: one target failing never cancels another, and
    the overall status is computed only once every target is terminal.
    """

    def __init__(
        self,
        triggers: Dict[TargetKind, BaseTrigger],
        sources: Dict[TargetKind, StatusSource],
        watch_configs: Optional[Dict[TargetKind, WatchConfig]] = None,
        notifier: Optional[NotificationSink] = None,
        environment: str = "Staging",
        run_metadata: Optional[Dict[str, str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """Initialize orchestrator.

        Args:
            triggers: Update trigger per target kind
            sources: Status source per target kind, shared by its watchers
            watch_configs: Poll budget per target kind (defaults per kind)
            notifier: Sink for the start and finish events
            environment: Environment name shown in notifications
            run_metadata: repository/branch/actor/run_url for notifications
            cancel_event: Upstream cancellation signal
        """
        self.triggers = dict(triggers)
        self.sources = dict(sources)
        self.watch_configs = {kind: WatchConfig.for_kind(kind) for kind in TargetKind}
        for kind, config in (watch_configs or {}).items():
            if not isinstance(config, WatchConfig):
                raise ConfigurationError(f"Invalid watch config for {kind}: {config!r}")
            self.watch_configs[kind] = config
        self.notifier = notifier or NullNotifier()
        self.environment = environment
        self.run_metadata = dict(run_metadata or {})
        self.cancel_event = cancel_event or asyncio.Event()

    def validate(self, targets: Sequence[TargetSpec], image_ref: Optional[str] = None):
        """Reject target lists this orchestrator cannot drive.

        Raises:
            ConfigurationError: no targets, a target deploying another image,
                or a kind without trigger/source
        """
        if not targets:
            raise ConfigurationError("At least one target is required")

        seen = set()
        for spec in targets:
            if spec.identifier in seen:
                raise ConfigurationError(f"Duplicate target: {spec.identifier}")
            seen.add(spec.identifier)

            if image_ref is not None and spec.image != image_ref:
                raise ConfigurationError(
                    f"Target {spec.identifier} deploys {spec.image}, "
                    f"not the pinned image {image_ref}"
                )

            if spec.kind not in self.triggers:
                raise ConfigurationError(f"No trigger configured for {spec.kind.value}")
            if not spec.skip_verification and spec.kind not in self.sources:
                raise ConfigurationError(
                    f"No status source configured for {spec.kind.value}"
                )

    async def run(self, image_ref: str, targets: Sequence[TargetSpec]) -> AggregateResult:
        """Roll image_ref out to every target.

        Args:
            image_ref: Pinned image reference shared by all targets
            targets: Targets to update, triggered in this order

        Returns:
            AggregateResult with one outcome per target, in target order
        """
        targets = list(targets)
        self.validate(targets, image_ref)

        log = logger.bind(image=image_ref, targets=len(targets))
        log.info("orchestrator.starting")
        await self._notify(NotificationKind.STARTED, self._context(image_ref, targets))

        outcomes: List[Optional[Outcome]] = [None] * len(targets)
        watches: Dict[int, asyncio.Task] = {}

        for index, spec in enumerate(targets):
            if self.cancel_event.is_set():
                outcomes[index] = Outcome(
                    target=spec.identifier,
                    state=RolloutState.UNKNOWN,
                    reason=f"{spec.identifier}: cancelled before update",
                    cancelled=True,
                )
                continue

            result = await self._trigger(spec)
            if not result.ok:
                outcomes[index] = Outcome(
                    target=spec.identifier,
                    state=RolloutState.FAILED,
                    reason=(
                        f"{spec.identifier}: update failed: "
                        f"{result.error or result.message or 'unknown error'}"
                    ),
                )
                continue

            if spec.skip_verification:
                log.warning(
                    "orchestrator.verification_skipped",
                    target=spec.identifier,
                )
                outcomes[index] = Outcome(
                    target=spec.identifier,
                    state=RolloutState.SUCCEEDED,
                    reason=f"{spec.identifier}: update triggered, verification skipped",
                )
                continue

            watches[index] = asyncio.create_task(
                self._watch(spec), name=f"watch:{spec.identifier}"
            )

        if watches:
            results = await asyncio.gather(*watches.values(), return_exceptions=True)
            for (index, _), result in zip(watches.items(), results):
                spec = targets[index]
                if isinstance(result, BaseException):
                    log.error(
                        "orchestrator.watcher_error",
                        target=spec.identifier,
                        error=repr(result),
                    )
                    outcomes[index] = Outcome(
                        target=spec.identifier,
                        state=RolloutState.FAILED,
                        reason=f"{spec.identifier}: watcher error: {result!r}",
                    )
                else:
                    outcomes[index] = result

        aggregate = AggregateResult.from_outcomes(outcomes)
        for outcome in aggregate.outcomes:
            log.info(
                "orchestrator.target_outcome",
                target=outcome.target,
                state=outcome.state.value,
                polls=outcome.polls,
                elapsed=round(outcome.elapsed, 1),
                reason=outcome.reason,
            )
        log.info("orchestrator.finished", status=aggregate.status.value)

        context = self._context(image_ref, targets)
        context.status = aggregate.status
        context.summary = aggregate.summary() or None
        await self._notify(NotificationKind.FINISHED, context)
        return aggregate

    async def _trigger(self, spec: TargetSpec) -> TriggerResult:
        trigger = self.triggers[spec.kind]
        try:
            result = await trigger.trigger(spec)
        except Exception as e:
            logger.error(
                "orchestrator.trigger_error",
                target=spec.identifier,
                error=str(e),
                exc_info=True,
            )
            return TriggerResult(status="failed", error=str(e))

        if result.ok:
            logger.info(
                "orchestrator.triggered",
                target=spec.identifier,
                handle=result.handle,
            )
        else:
            logger.error(
                "orchestrator.trigger_failed",
                target=spec.identifier,
                error=result.error,
                message=result.message,
            )
        return result

    async def _watch(self, spec: TargetSpec) -> Outcome:
        watcher = RolloutWatcher(
            source=self.sources[spec.kind],
            config=self.watch_configs[spec.kind],
            cancel_event=self.cancel_event,
        )
        return await watcher.watch(spec)

    def _context(self, image_ref: str, targets: List[TargetSpec]) -> NotificationContext:
        kinds = sorted({spec.kind.value for spec in targets})
        return NotificationContext(
            environment=self.environment,
            target=self.run_metadata.get("target") or ", ".join(kinds),
            image_ref=image_ref,
            **{
                key: value
                for key, value in self.run_metadata.items()
                if key in ("repository", "branch", "actor", "run_url") and value
            },
        )

    async def _notify(self, kind: NotificationKind, context: NotificationContext):
        try:
            await self.notifier.notify(kind, context)
        except Exception as e:
            logger.warning("orchestrator.notify_failed", kind=kind.value, error=str(e))
