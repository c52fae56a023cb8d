from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable

from quantum_jobs.errors import OperationCancelled, WaitTimeout
from quantum_jobs.models import JobDetails, JobStatus, is_terminal

if TYPE_CHECKING:
    from quantum_jobs.client import Workspace

logger = logging.getLogger(__name__)

MIN_POLL_INTERVAL = 0.01


class CloudJob:
    """Client-side handle on one job in a workspace.

    The handle keeps the last :class:`JobDetails` snapshot it saw; the remote
    workspace stays the source of truth and ``refresh`` re-reads it.
    """

    def __init__(self, workspace: Workspace, details: JobDetails) -> None:
        self.workspace = workspace
        self.details = details

    def __repr__(self) -> str:
        return f"CloudJob(id={self.id!r}, status={self.status!r})"

    @property
    def id(self) -> str:
        return self.details.id

    @property
    def status(self) -> str | None:
        return self.details.status

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def in_progress(self) -> bool:
        return not self.is_terminal

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == JobStatus.FAILED

    @property
    def cancelled(self) -> bool:
        return self.status == JobStatus.CANCELLED

    async def refresh(self) -> CloudJob:
        self.details = await self.workspace.transport.get_job(self.id)
        return self

    async def wait_until_terminal(
        self,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
        poll_interval: float | None = None,
    ) -> CloudJob:
        """Poll until the job is finished.

        Returns the handle once the status is terminal, whichever terminal
        status that is. Raises :class:`WaitTimeout` when ``timeout`` seconds
        pass first and :class:`OperationCancelled` when ``cancel_event`` is
        set first, even while a refresh is still in flight. Neither touches
        the remote job.
        """
        interval = max(
            poll_interval if poll_interval is not None else self.workspace.poll_interval,
            MIN_POLL_INTERVAL,
        )
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelled(f"wait for job {self.id} was cancelled")
            await self._until(self.refresh(), deadline, cancel_event, timeout)
            logger.debug("job %s is %s", self.id, self.status)
            if self.is_terminal:
                return self
            await self._until(asyncio.sleep(interval), deadline, cancel_event, timeout)

    async def _until(
        self,
        operation: Awaitable[object],
        deadline: float | None,
        cancel_event: asyncio.Event | None,
        timeout: float | None,
    ) -> None:
        """Await ``operation`` unless the deadline passes or the event fires first."""
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(operation)
        stop = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
        waiters = {task} if stop is None else {task, stop}
        remaining = None if deadline is None else max(deadline - loop.time(), 0)
        try:
            done, _ = await asyncio.wait(
                waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()
        if task in done:
            task.result()
        elif stop is not None and stop in done:
            raise OperationCancelled(f"wait for job {self.id} was cancelled")
        else:
            raise WaitTimeout(f"job {self.id} still {self.status} after {timeout}s")

    async def cancel(self) -> CloudJob:
        """Ask the workspace to cancel the job.

        A job the server has already finished raises
        :class:`~quantum_jobs.errors.Conflict` and the snapshot is kept as is.
        """
        await self.workspace.transport.cancel_job(self.id)
        logger.info("cancellation requested for job %s", self.id)
        return await self.refresh()
