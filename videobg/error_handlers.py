"""Map orchestration errors to HTTP responses."""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from videobg.errors import PollError, ProcessingFailedError, ProviderError, SubmissionError

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, detail: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})


async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    logger.warning("Submission failed: %s", exc)
    if exc.rejected_by_provider:
        return _error(status.HTTP_502_BAD_GATEWAY, "submission_failed", str(exc))
    return _error(status.HTTP_400_BAD_REQUEST, "submission_failed", str(exc))


async def poll_error_handler(request: Request, exc: PollError) -> JSONResponse:
    logger.warning("Status query failed: %s", exc)
    return _error(status.HTTP_502_BAD_GATEWAY, "status_check_failed", str(exc))


async def processing_failed_handler(request: Request, exc: ProcessingFailedError) -> JSONResponse:
    logger.info("Reporting failed job %s", exc.job_id)
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "processing_failed", "Video processing failed")


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    logger.warning("Provider request failed: %s", exc)
    return _error(status.HTTP_502_BAD_GATEWAY, "provider_unavailable", str(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_request", jsonable_encoder(detail))


def install_error_handlers(app: Any) -> None:
    """Install error handlers on the FastAPI app."""
    app.add_exception_handler(SubmissionError, submission_error_handler)
    app.add_exception_handler(PollError, poll_error_handler)
    app.add_exception_handler(ProcessingFailedError, processing_failed_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
