"""Single-flight periodic polling loop.

A :class:`Poller` fetches from one source immediately after :meth:`start`
and then on every ``interval`` tick.  Ticks that fire while the previous
fetch is still outstanding are dropped and counted in
:attr:`Poller.statistics` rather than queued.  Failures are logged and
leave the last applied state untouched; cancellation is silent.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from ..errors import OcularMonitorError

__all__ = ["DEFAULT_POLL_INTERVAL", "Poller", "PollerState"]


logger = logging.getLogger(__name__)


DEFAULT_POLL_INTERVAL = 5.0

T = TypeVar("T")


class PollerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    APPLYING = "applying"
    FAILED = "failed"


class Poller(Generic[T]):
    """Drive ``fetch`` periodically and hand each result to ``apply``."""

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        apply: Callable[[T], None],
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        on_error: Optional[Callable[[BaseException], None]] = None,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.name = name
        self.interval = float(interval)
        self._fetch = fetch
        self._apply = apply
        self._on_error = on_error
        self._stop_event = stop_event if stop_event is not None else asyncio.Event()
        self._runner: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[bool] | None = None
        self._state = PollerState.IDLE
        self._last_error: BaseException | None = None
        self._statistics = {"fetches": 0, "applied": 0, "failures": 0, "skipped": 0}

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    @property
    def statistics(self) -> dict[str, int]:
        return dict(self._statistics)

    async def poll_once(self) -> bool:
        """Run one fetch/apply cycle and return whether a result was applied."""

        self._state = PollerState.FETCHING
        self._statistics["fetches"] += 1
        try:
            result = await self._fetch()
            self._state = PollerState.APPLYING
            self._apply(result)
        except asyncio.CancelledError:
            self._state = PollerState.IDLE
            logger.debug(
                "Poll cancelled.", extra={"event": "poller.cancelled", "poller": self.name}
            )
            raise
        except OcularMonitorError as exc:
            self._fail(exc)
            logger.warning(
                "Poll failed; keeping previous state.",
                extra={"event": "poller.failed", "poller": self.name, "error": str(exc)},
            )
            return False
        except Exception as exc:
            self._fail(exc)
            logger.exception(
                "Unexpected error while polling; keeping previous state.",
                extra={"event": "poller.error", "poller": self.name},
            )
            return False
        self._statistics["applied"] += 1
        self._last_error = None
        self._state = PollerState.IDLE
        return True

    async def poll_now(self) -> bool:
        """Poll immediately, joining the outstanding fetch if there is one.

        Unlike :meth:`poll_once` this honours the single-flight rule shared
        with the background loop.
        """

        inflight = self._inflight
        if inflight is None or inflight.done():
            inflight = self._spawn()
        return await inflight

    def _fail(self, exc: BaseException) -> None:
        self._state = PollerState.FAILED
        self._statistics["failures"] += 1
        self._last_error = exc
        if self._on_error is not None:
            self._on_error(exc)

    def start(self) -> None:
        """Schedule the polling loop on the running event loop."""

        if self.running:
            return
        self._stop_event.clear()
        self._runner = asyncio.get_running_loop().create_task(
            self._run(), name=f"poller:{self.name}"
        )

    async def stop(self) -> None:
        """Stop ticking, abort any in-flight fetch and wait for the loop to exit."""

        self._stop_event.set()
        tasks = [task for task in (self._inflight, self._runner) if task is not None]
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._runner = None
        self._inflight = None
        self._state = PollerState.IDLE

    async def _run(self) -> None:
        logger.info(
            "Poller started.",
            extra={"event": "poller.started", "poller": self.name, "interval": self.interval},
        )
        try:
            while not self._stop_event.is_set():
                self._tick()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            inflight = self._inflight
            if inflight is not None and not inflight.done():
                inflight.cancel()
                await asyncio.gather(inflight, return_exceptions=True)
            logger.info("Poller stopped.", extra={"event": "poller.stopped", "poller": self.name})

    def _tick(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._statistics["skipped"] += 1
            logger.debug(
                "Skipping tick while a fetch is outstanding.",
                extra={"event": "poller.skipped", "poller": self.name},
            )
            return
        self._spawn()

    def _spawn(self) -> asyncio.Task[bool]:
        self._inflight = asyncio.get_running_loop().create_task(
            self.poll_once(), name=f"poll:{self.name}"
        )
        return self._inflight
