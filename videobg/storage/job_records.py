"""Job record store: one summary per job, upserted from either notification path."""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from videobg.jobs.models import JobRecord, JobSnapshot, JobStatus, NotificationMode, utcnow

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    record: JobRecord
    applied: bool
    created: bool = False


class JobRecordStore:
    """Keeps the latest known state of every job.

    - ``upsert`` is the only write path; push callbacks, poll observations
      and client reports all go through it
    - status only moves forward; terminal records are never changed
    - optional JSON-lines file: each applied upsert appends one line, and
      the file is replayed on construction with the same forward-only rule
    """

    def __init__(self, path: Optional[str] = None):
        self._records: Dict[str, JobRecord] = {}
        self._waiters: Dict[str, List[asyncio.Future]] = {}
        self._lock = asyncio.Lock()
        self._path = path
        if path:
            self._load()

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._records.get(job_id)

    def list(self) -> List[JobRecord]:
        """All records in insertion order."""
        return list(self._records.values())

    def list_newest_first(self) -> List[JobRecord]:
        return sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)

    async def upsert(
        self,
        snapshot: JobSnapshot,
        notification_mode: Optional[NotificationMode] = None,
    ) -> UpsertResult:
        async with self._lock:
            existing = self._records.get(snapshot.id)

            if existing is None:
                now = utcnow()
                record = JobRecord(
                    id=snapshot.id,
                    output_format=snapshot.output_format,
                    status=snapshot.status,
                    result_url=snapshot.result_url,
                    notification_mode=notification_mode,
                    source=snapshot.source,
                    created_at=snapshot.created_at or now,
                    updated_at=now,
                )
                result = UpsertResult(record=record, applied=True, created=True)
            elif not _advances(existing, snapshot.status):
                if snapshot.status != existing.status:
                    logger.info(
                        "Ignoring %s update (%s) for job %s already at %s",
                        snapshot.source.value, snapshot.status.value,
                        snapshot.id, existing.status.value,
                    )
                # a late submission can still fill in what an early callback lacked
                backfill = _missing_details(existing, snapshot, notification_mode)
                if not backfill:
                    return UpsertResult(record=existing, applied=False)
                record = existing.model_copy(update=backfill)
                result = UpsertResult(record=record, applied=False)
            else:
                record = existing.model_copy(update={
                    "status": snapshot.status,
                    "result_url": snapshot.result_url,
                    "source": snapshot.source,
                    "output_format": existing.output_format or snapshot.output_format,
                    "notification_mode": existing.notification_mode or notification_mode,
                    "updated_at": utcnow(),
                })
                result = UpsertResult(record=record, applied=True)

            self._records[record.id] = record
            logger.debug("Job %s recorded as %s via %s", record.id, record.status.value, record.source.value)

            if result.applied and record.status.is_terminal:
                self._wake(record)

        # replay on load is order-independent, so the write can leave the lock
        if self._path:
            await asyncio.to_thread(self._append, record)
        return result

    async def wait_for_terminal(self, job_id: str) -> JobRecord:
        """Wait until the job's record reaches done or failed.

        Returns immediately if it already has. Cancelling the caller
        (e.g. via ``asyncio.wait_for``) removes the waiter.
        """
        record = self._records.get(job_id)
        if record is not None and record.status.is_terminal:
            return record

        future = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(job_id, []).append(future)
        try:
            return await future
        finally:
            waiters = self._waiters.get(job_id)
            if waiters and future in waiters:
                waiters.remove(future)
                if not waiters:
                    del self._waiters[job_id]

    def _wake(self, record: JobRecord) -> None:
        for future in self._waiters.pop(record.id, []):
            if not future.done():
                future.set_result(record)

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    def _append(self, record: JobRecord) -> None:
        with open(self._path, "a", encoding="utf-8") as fh:
            fh.write(record.model_dump_json() + "\n")

    def _load(self) -> None:
        if not os.path.exists(self._path):
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            return

        with open(self._path, encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = JobRecord.model_validate_json(line)
                except ValueError as exc:
                    logger.warning("Skipping bad job record at %s:%d: %s", self._path, lineno, exc)
                    continue
                existing = self._records.get(record.id)
                if existing is None or _advances(existing, record.status):
                    self._records[record.id] = record
                    continue
                details = {
                    key: getattr(record, key)
                    for key in ("output_format", "notification_mode")
                    if getattr(existing, key) is None and getattr(record, key) is not None
                }
                if details:
                    self._records[record.id] = existing.model_copy(update=details)
        logger.info("Loaded %d job record(s) from %s", len(self._records), self._path)


def _advances(existing: JobRecord, status: JobStatus) -> bool:
    """Status only moves forward and never leaves a terminal state."""
    return not existing.status.is_terminal and status.rank > existing.status.rank


def _missing_details(
    existing: JobRecord,
    snapshot: JobSnapshot,
    notification_mode: Optional[NotificationMode],
) -> Dict[str, object]:
    details: Dict[str, object] = {}
    if existing.output_format is None and snapshot.output_format is not None:
        details["output_format"] = snapshot.output_format
    if existing.notification_mode is None and notification_mode is not None:
        details["notification_mode"] = notification_mode
    return details
