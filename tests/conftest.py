from collections import deque
from typing import Deque, Dict, List, Optional

import pytest

from videobg.errors import ProviderError
from videobg.jobs.models import ProviderVideo, ProviderVideoData, ProviderVideoList
from videobg.jobs.provider import CreateVideoRequest, VideoProvider


def video_doc(video_id: str, status: str, result_url: Optional[str] = None, fmt: str = "mp4") -> dict:
    """Provider JSON:API document for one video."""
    attributes = {"status": status, "format": fmt, "created_at": "2024-05-01T10:00:00Z"}
    if result_url is not None:
        attributes["result_url"] = result_url
    return {
        "data": {
            "id": video_id,
            "type": "videos",
            "attributes": attributes,
            "links": {"self": f"https://api.unscreen.com/v1.0/videos/{video_id}"},
        }
    }


class FakeProvider(VideoProvider):
    """Scripted provider: creation answers with ``created_status`` and
    each status query pops the next entry of the job's script."""

    def __init__(self, job_id: str = "vid-1", created_status: str = "queued"):
        self.job_id = job_id
        self.created_status = created_status
        self.create_calls: List[CreateVideoRequest] = []
        self.status_calls: List[str] = []
        self.scripts: Dict[str, Deque] = {}
        self.create_error: Optional[Exception] = None
        self.closed = False

    def script(self, job_id: str, *steps) -> None:
        """Steps are status strings, (status, result_url) tuples or exceptions."""
        self.scripts[job_id] = deque(steps)

    async def create_video(self, request: CreateVideoRequest) -> ProviderVideoData:
        self.create_calls.append(request)
        if self.create_error is not None:
            raise self.create_error
        return ProviderVideo.model_validate(video_doc(self.job_id, self.created_status)).data

    async def get_video(self, video_id: str) -> ProviderVideoData:
        self.status_calls.append(video_id)
        steps = self.scripts.get(video_id)
        if not steps:
            raise ProviderError(f"no scripted status for {video_id}", status_code=404)
        step = steps.popleft() if len(steps) > 1 else steps[0]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, tuple):
            status, result_url = step
        else:
            status, result_url = step, None
        return ProviderVideo.model_validate(video_doc(video_id, status, result_url)).data

    async def list_videos(self) -> ProviderVideoList:
        return ProviderVideoList.model_validate(
            {"data": [video_doc(self.job_id, "done", "https://cdn.example/out.mp4")["data"]]}
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
