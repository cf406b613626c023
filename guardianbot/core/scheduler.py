"""Fixed-interval job scheduler with cooperative shutdown.

A tick runs every job in order. All jobs of a run share one stop event; a
job checks it (see :func:`raise_if_stopped`) and raises
:class:`JobCancelled` to end the tick early. The scheduler never interrupts
a running job, so awaiting :meth:`Scheduler.run` after :meth:`Scheduler.stop`
also waits for whatever the current tick spawned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

Job = Callable[[asyncio.Event], Awaitable[object]]


class JobCancelled(Exception):
    """Raised by a job that noticed shutdown was requested."""


def raise_if_stopped(stop: asyncio.Event) -> None:
    if stop.is_set():
        raise JobCancelled("shutdown requested")


def job_name(job: Job) -> str:
    return str(
        getattr(job, "name", None)
        or getattr(job, "__name__", None)
        or type(job).__name__
    )


class Scheduler:
    """Runs an ordered list of jobs every ``interval`` seconds until stopped."""

    def __init__(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.interval = interval
        self._stop = asyncio.Event()
        self._running = False

        # Health reporting
        self.tick_count = 0
        self.last_tick_started: datetime | None = None
        self.last_tick_finished: datetime | None = None
        self.last_errors: dict[str, str] = {}

    @property
    def stop_event(self) -> asyncio.Event:
        return self._stop

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Request shutdown. Running jobs finish; no new tick starts."""
        if not self._stop.is_set():
            logger.info("Scheduler stop requested")
        self._stop.set()

    async def run(self, *jobs: Job) -> None:
        """Tick immediately, then every ``interval`` seconds, until :meth:`stop`.

        A tick that overruns the interval is followed by the next one right
        away; missed ticks are not replayed.
        """
        if self._running:
            raise RuntimeError("Scheduler is already running")

        self._running = True
        loop = asyncio.get_running_loop()
        names = ", ".join(job_name(j) for j in jobs)
        logger.info(f"Scheduler started: every {self.interval}s -> [{names}]")

        try:
            while not self._stop.is_set():
                started = loop.time()
                await self.tick(*jobs)

                remaining = self.interval - (loop.time() - started)
                if remaining <= 0:
                    continue
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info(f"Scheduler stopped after {self.tick_count} tick(s)")

    async def tick(self, *jobs: Job) -> None:
        """Run every job once, in order.

        ``JobCancelled`` skips the remaining jobs of this tick. Any other
        exception is logged and the next job still runs.
        """
        self.tick_count += 1
        self.last_tick_started = datetime.now(timezone.utc)

        for job in jobs:
            name = job_name(job)
            try:
                await job(self._stop)
            except JobCancelled:
                logger.info(f"Tick {self.tick_count} cancelled in {name}, skipping remaining jobs")
                break
            except Exception as e:
                self.last_errors[name] = f"{type(e).__name__}: {e}"
                logger.exception(f"Errored running scheduled job {name}: {e}")
            else:
                self.last_errors.pop(name, None)

        self.last_tick_finished = datetime.now(timezone.utc)
