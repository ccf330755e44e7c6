"""Push-mode completion: provider callbacks."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from videobg.jobs.models import JobRecord, JobStatus, ProviderVideo, UpdateSource
from videobg.storage.job_records import JobRecordStore

logger = logging.getLogger(__name__)


@dataclass
class PushReceipt:
    """Outcome of one callback. Every callback is acknowledged."""
    received: bool
    job_id: Optional[str] = None
    known: bool = False
    applied: bool = False
    record: Optional[JobRecord] = None


class PushReceiver:
    """Applies provider callbacks to the job record store.

    Unknown job ids and malformed bodies are logged, never rejected, so the
    provider does not keep retrying. A terminal callback for an id not yet
    recorded is stored anyway, since it may arrive before the creation
    response does. Repeated terminal callbacks are no-ops.
    """

    def __init__(self, store: JobRecordStore):
        self._store = store

    async def receive(self, payload: Any) -> PushReceipt:
        try:
            video = ProviderVideo.model_validate(payload).data
            snapshot = video.to_snapshot(UpdateSource.PUSH)
        except (ValidationError, ValueError) as exc:
            logger.warning("Ignoring malformed webhook payload: %s", exc)
            return PushReceipt(received=False)

        logger.info("Webhook received for job %s: %s", video.id, snapshot.status.value)

        known = video.id in self._store
        if not known:
            if not snapshot.status.is_terminal:
                logger.warning("Webhook for unknown job %s acknowledged and ignored", video.id)
                return PushReceipt(received=True, job_id=video.id)
            # the callback can beat the creation response; keep the result
            logger.info("Recording %s for job %s ahead of its submission", snapshot.status.value, video.id)

        result = await self._store.upsert(snapshot)
        if snapshot.status == JobStatus.DONE and result.applied:
            logger.info("Processing complete for job %s: %s", video.id, snapshot.result_url)
        elif not result.applied:
            logger.debug("Webhook for job %s changed nothing (at %s)", video.id, result.record.status.value)

        return PushReceipt(
            received=True,
            job_id=video.id,
            known=known,
            applied=result.applied,
            record=result.record,
        )
