"""Delivery of one email through several notifier channels at once."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from snapsend.interfaces import Notifier
from snapsend.models.notification import EmailMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifierEntry:
    """A configured notifier and the label used for it in logs."""

    name: str
    notifier: Notifier


class MultiplexNotifier(Notifier):
    """Send each message through every configured notifier concurrently.

    A message counts as delivered when at least one channel accepts it;
    channels that fail are logged. ``send`` raises only when every channel
    failed, so the trigger reports the invocation as failed.
    """

    def __init__(self, entries: list[NotifierEntry]) -> None:
        if not entries:
            raise ValueError("MultiplexNotifier requires at least one notifier")
        self._entries = tuple(entries)
        self._shutdown_called = False

    async def send(self, message: EmailMessage) -> None:
        if self._shutdown_called:
            raise RuntimeError("Notifier has been shut down")

        outcomes = await self._fan_out(lambda notifier: notifier.send(message))
        failed = {name: err for name, err in outcomes.items() if isinstance(err, BaseException)}
        for name, err in failed.items():
            logger.error(
                "Delivery failed: notifier=%s ref_code=%s object=%s error=%s",
                name,
                message.ref_code,
                message.object_name,
                err,
                exc_info=err,
            )

        if len(failed) == len(self._entries):
            summary = "; ".join(f"{name}={type(err).__name__}: {err}" for name, err in failed.items())
            raise RuntimeError(f"All notifiers failed: {summary}") from next(iter(failed.values()))
        if failed:
            logger.warning(
                "Delivered through %d of %d notifiers: ref_code=%s",
                len(self._entries) - len(failed),
                len(self._entries),
                message.ref_code,
            )

    async def ping(self) -> bool:
        """True only when every channel is reachable."""
        if self._shutdown_called:
            return False

        outcomes = await self._fan_out(lambda notifier: notifier.ping())
        unhealthy = [name for name, result in outcomes.items() if result is not True]
        for name in unhealthy:
            logger.warning("Notifier unreachable: notifier=%s result=%s", name, outcomes[name])
        return not unhealthy

    async def shutdown(self, timeout: float | None = None) -> None:
        if self._shutdown_called:
            return
        self._shutdown_called = True

        outcomes = await self._fan_out(lambda notifier: notifier.shutdown(timeout))
        for name, result in outcomes.items():
            if isinstance(result, BaseException):
                logger.warning("Notifier close failed: notifier=%s error=%s", name, result)

    async def _fan_out(
        self, call: Callable[[Notifier], Awaitable[object]]
    ) -> dict[str, object | BaseException]:
        results = await asyncio.gather(
            *(call(entry.notifier) for entry in self._entries), return_exceptions=True
        )
        return {entry.name: result for entry, result in zip(self._entries, results, strict=True)}
