"""Poll loop for a single rollout target."""

import asyncio
import time
from typing import Optional

import structlog

from .classifier import classify
from .errors import SourceTransportError, TargetNotFoundError
from .models import (
    Classification,
    Outcome,
    RolloutState,
    TargetSpec,
    WatchConfig,
)
from .source.base import StatusSource

logger = structlog.get_logger()


class RolloutWatcher:
    """Polls one target until it succeeds, fails, times out or is cancelled.

    Polls are strictly sequential. A terminal classification returns at
    once without waiting out the interval. Transport errors count as an
    Unknown poll and consume one attempt from the same budget.
    """

    def __init__(
        self,
        source: StatusSource,
        config: WatchConfig,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """Initialize watcher.

        Args:
            source: Status source for the target's kind
            config: Attempt budget and poll interval
            cancel_event: Set to abandon polling and report Unknown
        """
        self.source = source
        self.config = config
        self.cancel_event = cancel_event or asyncio.Event()

    async def watch(self, spec: TargetSpec) -> Outcome:
        """Watch a target and return its terminal outcome.

        Args:
            spec: Target to watch

        Returns:
            Outcome with state Succeeded, Failed or Unknown
        """
        log = logger.bind(target=spec.identifier, location=spec.location)
        started = time.monotonic()
        max_attempts = self.config.max_attempts

        def outcome(state, reason=None, polls=0, cancelled=False) -> Outcome:
            return Outcome(
                target=spec.identifier,
                state=state,
                reason=reason,
                polls=polls,
                elapsed=time.monotonic() - started,
                cancelled=cancelled,
            )

        log.info(
            "watcher.started",
            max_attempts=max_attempts,
            interval=self.config.interval,
        )

        attempt = 1
        while True:
            if self.cancel_event.is_set():
                log.warning("watcher.cancelled", polls=attempt - 1)
                return outcome(
                    RolloutState.UNKNOWN,
                    f"{spec.identifier}: cancelled after {attempt - 1} attempts",
                    polls=attempt - 1,
                    cancelled=True,
                )

            try:
                snapshot = await self.source.fetch(spec.location)
                result = classify(snapshot)
            except TargetNotFoundError:
                log.error("watcher.target_not_found", attempt=attempt)
                return outcome(
                    RolloutState.FAILED,
                    f"{spec.identifier}: target not found",
                    polls=attempt,
                )
            except SourceTransportError as e:
                log.warning(
                    "watcher.fetch_failed",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(e),
                )
                result = Classification(state=RolloutState.UNKNOWN)

            log.info(
                "watcher.poll",
                attempt=attempt,
                max_attempts=max_attempts,
                state=result.state.value,
            )

            if result.state == RolloutState.SUCCEEDED:
                log.info("watcher.succeeded", polls=attempt)
                return outcome(RolloutState.SUCCEEDED, polls=attempt)

            if result.state == RolloutState.FAILED:
                reason = result.reason or "unknown reason"
                log.error("watcher.failed", polls=attempt, reason=reason)
                return outcome(
                    RolloutState.FAILED,
                    f"{spec.identifier}: rollout failed: {reason}",
                    polls=attempt,
                )

            if result.progress is not None:
                log.info(
                    "watcher.progress",
                    percent=int(result.progress * 100),
                )

            if result.issue_detected:
                log.warning(
                    "watcher.possible_issue",
                    attempt=attempt,
                    events=list(result.issue_messages),
                )

            if attempt >= max_attempts:
                log.warning("watcher.timed_out", polls=attempt)
                return outcome(
                    RolloutState.UNKNOWN,
                    f"{spec.identifier}: timed out after {attempt} attempts",
                    polls=attempt,
                )

            if await self._pause():
                log.warning("watcher.cancelled", polls=attempt)
                return outcome(
                    RolloutState.UNKNOWN,
                    f"{spec.identifier}: cancelled after {attempt} attempts",
                    polls=attempt,
                    cancelled=True,
                )
            attempt += 1

    async def _pause(self) -> bool:
        """Sleep for one interval.

        Returns:
            True if the cancel event was set while sleeping
        """
        try:
            await asyncio.wait_for(
                self.cancel_event.wait(), timeout=self.config.interval
            )
            return True
        except asyncio.TimeoutError:
            return False
