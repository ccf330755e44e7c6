"""Job history: local records plus a passthrough to the provider's listing."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from videobg.jobs.models import JobRecord, JobSnapshot, JobStatus, OutputFormat, UpdateSource

router = APIRouter()

# Wired in during lifespan
_orchestrator = None


def set_orchestrator(orchestrator):
    global _orchestrator
    _orchestrator = orchestrator


class RecordUpdateRequest(BaseModel):
    status: JobStatus
    result_url: Optional[str] = None
    format: Optional[OutputFormat] = None
    created_at: Optional[datetime] = None


def _serialize(record: JobRecord) -> dict:
    return {
        "id": record.id,
        "format": record.output_format.value if record.output_format else None,
        "status": record.status.value,
        "result_url": record.result_url,
        "notification_mode": record.notification_mode.value if record.notification_mode else None,
        "source": record.source.value,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
    }


@router.get("/videos")
async def list_videos():
    """All known job records, newest first."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")

    records = _orchestrator.list_records()
    return {"data": [_serialize(r) for r in records], "count": len(records)}


@router.get("/videos/provider")
async def list_provider_videos():
    """The provider's own listing for this API key."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")

    listing = await _orchestrator.list_provider_videos()
    return listing.model_dump(mode="json")


@router.put("/videos/{job_id}")
async def upsert_video(job_id: str, request: RecordUpdateRequest):
    """Record a status a client observed while polling."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")

    try:
        snapshot = JobSnapshot(
            id=job_id,
            status=request.status,
            result_url=request.result_url,
            output_format=request.format,
            created_at=request.created_at,
            source=UpdateSource.CLIENT,
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False))

    record = await _orchestrator.record(snapshot)
    return _serialize(record)
