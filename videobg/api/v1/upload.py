"""Browser-facing submission and status API.

Keeps the paths the front-end already uses:
  POST /api/upload              — file or URL plus format, start a job
  GET  /api/jobs/{job_id}/status — one status check for client-side polling

The upload answer is either ``{"redirectUrl": ...}`` when the server
waited for the result, or ``{"id", "status", "notification_mode"}`` when
the client should poll.
"""

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from videobg.jobs.models import OutputFormat
from videobg.jobs.submitter import SubmissionRequest

router = APIRouter()

# Wired in during lifespan
_orchestrator = None


def set_orchestrator(orchestrator):
    global _orchestrator
    _orchestrator = orchestrator


@router.post("/upload")
async def upload_video(
    format: OutputFormat = Form(...),
    video: Optional[UploadFile] = File(None),
    url: Optional[str] = Form(None),
    wait: Optional[bool] = Form(None),
):
    """Submit a video for background removal."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")

    video_bytes = None
    filename = None
    if video is not None:
        video_bytes = await video.read()
        filename = video.filename

    outcome = await _orchestrator.submit(
        SubmissionRequest(
            output_format=format,
            video_bytes=video_bytes,
            filename=filename,
            video_url=url,
        ),
        wait=wait,
    )

    if outcome.finished:
        return {"redirectUrl": outcome.redirect_url}
    return {
        "id": outcome.job.id,
        "status": outcome.status.value,
        "notification_mode": outcome.job.notification_mode.value,
    }


@router.get("/jobs/{job_id}/status")
async def get_job_status(job_id: str):
    """Query the provider once and return the recorded view of the job."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not ready")

    record = await _orchestrator.check_status(job_id)
    response = {
        "id": record.id,
        "status": record.status.value,
        "terminal": record.status.is_terminal,
    }
    if record.result_url:
        response["result_url"] = record.result_url
    return response
