"""Job submission to the provider."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from videobg.errors import ProviderError, SubmissionError
from videobg.jobs.models import InputKind, Job, JobStatus, OutputFormat, utcnow
from videobg.jobs.notifications import NotificationRouter
from videobg.jobs.provider import CreateVideoRequest, VideoProvider

logger = logging.getLogger(__name__)


@dataclass
class SubmissionRequest:
    """What the user supplied: a file or a URL, plus the output format."""
    output_format: OutputFormat
    video_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    video_url: Optional[str] = None

    @property
    def has_file(self) -> bool:
        return bool(self.video_bytes)

    @property
    def has_url(self) -> bool:
        return bool(self.video_url and self.video_url.strip())


def upload_filename(filename: Optional[str]) -> str:
    """Name the uploaded part ``original<ext>``, keeping the user's extension."""
    ext = os.path.splitext(filename or "")[1]
    return f"original{ext}"


class JobSubmitter:
    """Builds the creation request and sends it to the provider.

    If both a file and a URL are given, the file wins and the URL is
    dropped (logged). Nothing is recorded locally until the provider's
    answer has been parsed.
    """

    def __init__(self, provider: VideoProvider, router: NotificationRouter):
        self._provider = provider
        self.router = router

    async def submit(self, request: SubmissionRequest) -> Job:
        if not request.has_file and not request.has_url:
            raise SubmissionError("Either a video file or a video URL must be provided")

        create = CreateVideoRequest(
            output_format=request.output_format,
            background_color=request.output_format.background_color,
        )
        if request.has_file:
            if request.has_url:
                logger.warning(
                    "Both a file and a URL were submitted; using the file and ignoring %s",
                    request.video_url,
                )
            create.video_bytes = request.video_bytes
            create.filename = upload_filename(request.filename)
            input_kind = InputKind.FILE
        else:
            create.video_url = request.video_url.strip()
            input_kind = InputKind.URL

        plan = self.router.route()
        create.webhook_url = plan.callback_url
        if plan.callback_url:
            logger.info("Callback address configured, using webhooks (%s)", plan.callback_url)
        else:
            logger.info("No callback address configured, using polling")

        try:
            video = await self._provider.create_video(create)
        except ProviderError as exc:
            raise SubmissionError(f"Provider rejected the job: {exc}", status_code=exc.status_code or 502) from exc

        status = video.status
        try:
            job = Job(
                id=video.id,
                input_kind=input_kind,
                output_format=request.output_format,
                status=status,
                result_url=video.attributes.result_url if status == JobStatus.DONE else None,
                created_at=utcnow(),
                notification_mode=plan.mode,
            )
        except ValueError as exc:
            raise SubmissionError(f"Provider returned an unusable job: {exc}", status_code=502) from exc

        logger.info(
            "Submitted job %s (format=%s, input=%s, mode=%s, status=%s)",
            job.id, job.output_format.value, input_kind.value, job.notification_mode.value, job.status.value,
        )
        return job
