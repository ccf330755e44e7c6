"""Submission flow and completion detection.

Ties the submitter, the poller and the push path together around the job
record store. Push and pull results both land in the store through
``JobRecordStore.upsert``; waiting for completion is always bounded by
``wait_timeout``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from videobg.errors import ProcessingFailedError
from videobg.jobs.models import (
    Job,
    JobRecord,
    JobSnapshot,
    JobStatus,
    NotificationMode,
    ProviderVideoList,
    UpdateSource,
)
from videobg.jobs.notifications import NotificationRouter
from videobg.jobs.poller import StatusPoller
from videobg.jobs.provider import VideoProvider
from videobg.jobs.submitter import JobSubmitter, SubmissionRequest
from videobg.storage.job_records import JobRecordStore

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """Either a finished job (``redirect_url`` set) or one still pending."""
    job: Job
    status: JobStatus
    redirect_url: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.redirect_url is not None


class JobOrchestrator:

    def __init__(
        self,
        provider: VideoProvider,
        submitter: JobSubmitter,
        poller: StatusPoller,
        store: JobRecordStore,
        wait_timeout: float = 300.0,
    ):
        self._provider = provider
        self._submitter = submitter
        self._poller = poller
        self.store = store
        self.wait_timeout = wait_timeout

    @property
    def notification_mode(self) -> NotificationMode:
        """Mode the next submission would use."""
        return self._submitter.router.route().mode

    def update_callback_base(self, callback_base: Optional[str]) -> None:
        """Swap the callback address for future submissions only."""
        self._submitter.router = NotificationRouter(callback_base)
        logger.info("Notification mode for new jobs is now %s", self.notification_mode.value)

    async def submit(self, request: SubmissionRequest, wait: Optional[bool] = None) -> SubmissionOutcome:
        """Submit a job and optionally wait for it.

        By default push-mode submissions wait for the callback and
        pull-mode submissions return at once for client-side polling.
        ``wait=True`` in pull mode polls server-side instead.
        """
        job = await self._submitter.submit(request)
        result = await self.store.upsert(
            JobSnapshot(
                id=job.id,
                status=job.status,
                result_url=job.result_url,
                output_format=job.output_format,
                created_at=job.created_at,
                source=UpdateSource.SUBMISSION,
            ),
            notification_mode=job.notification_mode,
        )

        # a callback may already have finished the job before creation returned
        record = result.record
        if record.status == JobStatus.DONE:
            return SubmissionOutcome(job=job, status=record.status, redirect_url=record.result_url)
        if record.status == JobStatus.FAILED:
            raise ProcessingFailedError(job.id)

        if wait is None:
            wait = job.notification_mode == NotificationMode.PUSH
        if not wait:
            return SubmissionOutcome(job=job, status=record.status)

        try:
            if job.notification_mode == NotificationMode.PUSH:
                result_url = await asyncio.wait_for(self._wait_for_callback(job.id), self.wait_timeout)
            else:
                result_url = await asyncio.wait_for(
                    self._poller.poll(job.id, on_status=self._record_poll), self.wait_timeout
                )
        except asyncio.TimeoutError:
            record = self.store.get(job.id)
            status = record.status if record else job.status
            logger.info(
                "Job %s not finished after %.0fs, handing over to client polling (status=%s)",
                job.id, self.wait_timeout, status.value,
            )
            return SubmissionOutcome(job=job, status=status)

        return SubmissionOutcome(job=job, status=JobStatus.DONE, redirect_url=result_url)

    async def check_status(self, job_id: str) -> JobRecord:
        """One status query; the observation is recorded and the stored view returned."""
        snapshot = await self._poller.check(job_id)
        result = await self.store.upsert(snapshot)
        return result.record

    async def record(self, snapshot: JobSnapshot) -> JobRecord:
        result = await self.store.upsert(snapshot)
        return result.record

    def list_records(self) -> List[JobRecord]:
        return self.store.list_newest_first()

    async def list_provider_videos(self) -> ProviderVideoList:
        return await self._provider.list_videos()

    async def _wait_for_callback(self, job_id: str) -> str:
        record = await self.store.wait_for_terminal(job_id)
        if record.status == JobStatus.FAILED:
            raise ProcessingFailedError(job_id)
        return record.result_url

    async def _record_poll(self, snapshot: JobSnapshot) -> None:
        await self.store.upsert(snapshot)
