"""Provider interface and the Unscreen HTTP implementation."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from videobg.errors import ProviderError
from videobg.jobs.models import OutputFormat, ProviderVideoData, ProviderVideo, ProviderVideoList

logger = logging.getLogger(__name__)


@dataclass
class CreateVideoRequest:
    """Fields of one provider job-creation call."""
    output_format: OutputFormat
    video_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    video_url: Optional[str] = None
    background_color: Optional[str] = None
    webhook_url: Optional[str] = None


class VideoProvider(ABC):
    """Abstract interface to the background-removal provider."""

    @abstractmethod
    async def create_video(self, request: CreateVideoRequest) -> ProviderVideoData:
        """Create a job. Returns the provider's video document."""
        ...

    @abstractmethod
    async def get_video(self, video_id: str) -> ProviderVideoData:
        """Fetch the current state of a job."""
        ...

    @abstractmethod
    async def list_videos(self) -> ProviderVideoList:
        """List jobs known to the provider for this API key."""
        ...

    async def close(self) -> None:
        return None


class UnscreenProvider(VideoProvider):
    """Talks to the Unscreen v1.0 videos API over httpx."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not base_url:
            raise ValueError("provider base URL is required")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"X-Api-Key": api_key},
            timeout=timeout,
        )

    async def create_video(self, request: CreateVideoRequest) -> ProviderVideoData:
        # Plain fields go in as (None, value) parts so the body is always
        # multipart, with or without a file attached.
        fields = {"format": (None, request.output_format.value)}
        if request.video_bytes is not None:
            fields["video_file"] = (request.filename or "original", request.video_bytes)
        elif request.video_url:
            fields["video_url"] = (None, request.video_url)
        if request.background_color:
            fields["background_color"] = (None, request.background_color)
        if request.webhook_url:
            fields["webhook_url"] = (None, request.webhook_url)

        payload = await self._request("POST", "/videos", files=fields)
        return self._parse(ProviderVideo, payload).data

    async def get_video(self, video_id: str) -> ProviderVideoData:
        payload = await self._request("GET", f"/videos/{video_id}")
        return self._parse(ProviderVideo, payload).data

    async def list_videos(self) -> ProviderVideoList:
        payload = await self._request("GET", "/videos")
        return self._parse(ProviderVideoList, payload)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            logger.warning(
                "Provider answered %s %s with HTTP %d: %s",
                method, path, response.status_code, response.text[:200],
            )
            raise ProviderError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _parse(model, payload):
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ProviderError(f"unexpected provider payload: {exc.error_count()} error(s)") from exc
