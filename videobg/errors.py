"""Error kinds surfaced by the orchestration core.

Transport errors from the provider never leave the submitter, poller or
push receiver; they are turned into one of the kinds below.
"""

from typing import Optional


class VideoBgError(Exception):
    """base exception for videobg-specific errors"""
    pass


class ProviderError(VideoBgError):
    """raised by the provider client for transport, HTTP or payload failures"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SubmissionError(VideoBgError):
    """raised when a job cannot be created (bad input or provider rejection)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def rejected_by_provider(self) -> bool:
        return self.status_code is not None


class PollError(VideoBgError):
    """raised when a status query fails; the poll sequence stops"""

    def __init__(self, job_id: str, message: str):
        super().__init__(f"status query for {job_id} failed: {message}")
        self.job_id = job_id


class ProcessingFailedError(VideoBgError):
    """raised when the provider reports a job as failed"""

    def __init__(self, job_id: str):
        super().__init__(f"processing failed for job {job_id}")
        self.job_id = job_id
