"""Pull-mode completion detection."""

import logging
from typing import Awaitable, Callable, Optional

from videobg.errors import PollError, ProcessingFailedError, ProviderError
from videobg.jobs.models import JobSnapshot, JobStatus, UpdateSource
from videobg.jobs.provider import VideoProvider
from videobg.jobs.scheduler import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0

StatusCallback = Callable[[JobSnapshot], Awaitable[None]]


class StatusPoller:
    """Re-queries a job's status until it is done or failed.

    One query goes out immediately, then one per ``interval`` seconds,
    each only after the previous one has resolved. There is no attempt
    limit and query failures are not retried: the first failure raises
    ``PollError``. To abandon a sequence, cancel the task awaiting
    ``poll`` (or wrap it in ``asyncio.wait_for``).
    """

    def __init__(
        self,
        provider: VideoProvider,
        scheduler: Scheduler,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self._provider = provider
        self._scheduler = scheduler
        self.interval = interval

    async def check(self, job_id: str) -> JobSnapshot:
        """Issue a single status query."""
        try:
            video = await self._provider.get_video(job_id)
        except ProviderError as exc:
            raise PollError(job_id, str(exc)) from exc

        status = video.status
        if status == JobStatus.DONE and not video.attributes.result_url:
            raise PollError(job_id, "job reported done without a result_url")
        return video.to_snapshot(UpdateSource.POLL)

    async def poll(self, job_id: str, on_status: Optional[StatusCallback] = None) -> str:
        """Poll until terminal. Returns the result URL of a finished job."""
        attempt = 0
        while True:
            attempt += 1
            snapshot = await self.check(job_id)
            logger.debug("Job %s poll #%d: %s", job_id, attempt, snapshot.status.value)

            if on_status is not None:
                await on_status(snapshot)

            if snapshot.status == JobStatus.DONE:
                logger.info("Job %s done after %d status queries", job_id, attempt)
                return snapshot.result_url
            if snapshot.status == JobStatus.FAILED:
                logger.info("Job %s failed after %d status queries", job_id, attempt)
                raise ProcessingFailedError(job_id)

            await self._scheduler.sleep(self.interval)
