"""Detached index mutations with bounded run time and logged failures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from searchsync.core.errors import InternalError

logger = structlog.get_logger()

ErrorCallback = Callable[[str, BaseException], None]


@dataclass
class TaskStatus:
    """Current background task status."""

    pending: int
    failures: int
    last_error: str | None = None


@dataclass
class BackgroundTasks:
    """
    Fire-and-forget runner for index mutations.

    Design:
    - Lifecycle handlers return without awaiting index work
    - Every task runs under ``asyncio.timeout(timeout_sec)``; expiry counts as a failure
    - Failures are logged under the event name given at spawn time and passed
      to ``on_error``; they never propagate to the spawning handler
    - Strong references are kept until completion so tasks are not collected
    """

    timeout_sec: float = 30.0
    on_error: ErrorCallback | None = None

    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)
    _failures: int = field(default=0, init=False)
    _last_error: str | None = field(default=None, init=False)

    def spawn(
        self,
        work: Awaitable[None],
        *,
        failure_event: str,
        **context: Any,
    ) -> asyncio.Task[None]:
        """Schedule ``work`` on the running loop and return immediately."""
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(work, failure_event, context), name=failure_event)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self, work: Awaitable[None], failure_event: str, context: dict[str, Any]
    ) -> None:
        try:
            async with asyncio.timeout(self.timeout_sec):
                await work
        except TimeoutError as e:
            err = InternalError.timeout(failure_event, self.timeout_sec)
            self._record_failure(failure_event, err, context, cause=e)
        except Exception as e:
            self._record_failure(failure_event, e, context)

    def _record_failure(
        self,
        failure_event: str,
        error: BaseException,
        context: dict[str, Any],
        cause: BaseException | None = None,
    ) -> None:
        self._failures += 1
        self._last_error = str(error)
        logger.error(failure_event, error=str(error), **context)
        if self.on_error is not None:
            try:
                self.on_error(failure_event, cause or error)
            except Exception as e:
                logger.warning("error_callback_failed", error=str(e))

    async def drain(self) -> None:
        """Wait for every in-flight task, including ones spawned meanwhile.

        Tasks cancelled by their holder are skipped rather than re-raised.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel in-flight tasks (shutdown)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def status(self) -> TaskStatus:
        return TaskStatus(
            pending=len(self._tasks),
            failures=self._failures,
            last_error=self._last_error,
        )
