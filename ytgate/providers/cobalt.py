"""cobalt provider: metadata from YouTube oEmbed, media via the cobalt API."""

import logging
from typing import Optional

import httpx

from ..config import Settings
from ..errors import ProviderMalformedResponse, ProviderUnavailable
from ..models import MediaDescriptor, RenditionSelector
from ..resolver import VideoReference
from .base import HttpMediaStream

logger = logging.getLogger(__name__)

OEMBED_URL = "https://www.youtube.com/oembed"


def cobalt_request(reference: VideoReference, selector: RenditionSelector) -> dict:
    return {
        "url": reference.watch_url,
        "vCodec": "h264",
        # Explicit renditions map onto cobalt's quality setting
        "vQuality": selector.id or "1080",
        "aFormat": "mp3",
        "isAudioOnly": selector.is_audio,
        "filenamePattern": "basic",
    }


def media_url_from_reply(data) -> str:
    """Pick the media URL out of a cobalt JSON reply"""
    if not isinstance(data, dict):
        raise ProviderMalformedResponse("Unexpected response from cobalt")

    status = data.get("status")
    if status == "error":
        raise ProviderUnavailable(data.get("text") or "Download failed")
    if status in ("redirect", "stream") and data.get("url"):
        return data["url"]
    if status == "picker":
        picker = data.get("picker") or []
        url = (picker[0].get("url") if picker and isinstance(picker[0], dict) else None) or data.get("audio")
        if url:
            return url
    raise ProviderMalformedResponse("Unexpected response from cobalt")


class CobaltProvider:
    """Hosted conversion API; the service does no extraction of its own"""

    name = "cobalt"

    def __init__(self, settings: Settings,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = settings.cobalt_api_url
        self.timeout = settings.metadata_timeout
        self.chunk_size = settings.chunk_size
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def fetch_metadata(self, reference: VideoReference) -> MediaDescriptor:
        params = {"url": reference.watch_url, "format": "json"}
        try:
            async with self._client() as client:
                resp = await client.get(OEMBED_URL, params=params)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Could not fetch video info: {e}")

        if resp.is_error:
            raise ProviderUnavailable(f"Could not fetch video info (HTTP {resp.status_code})")
        try:
            info = resp.json()
        except ValueError:
            raise ProviderMalformedResponse("oEmbed returned invalid JSON")
        if not isinstance(info, dict) or not info.get("title"):
            raise ProviderMalformedResponse("oEmbed returned no title")

        return MediaDescriptor(
            title=info["title"],
            author=info.get("author_name") or "Unknown",
            thumbnail_url=reference.thumbnail_url,
        )

    async def resolve_media_url(self, reference: VideoReference,
                                selector: RenditionSelector) -> str:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        try:
            async with self._client() as client:
                resp = await client.post(self.api_url, json=cobalt_request(reference, selector),
                                         headers=headers)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Could not reach cobalt: {e}")
        try:
            data = resp.json()
        except ValueError:
            raise ProviderMalformedResponse(f"cobalt returned invalid JSON (HTTP {resp.status_code})")
        return media_url_from_reply(data)

    async def open_stream(self, reference: VideoReference,
                          selector: RenditionSelector) -> HttpMediaStream:
        url = await self.resolve_media_url(reference, selector)
        logger.info("Forwarding %s (%s) from cobalt", reference.video_id, selector.kind)
        stream = HttpMediaStream(url, self.chunk_size,
                                 connect_timeout=self.timeout,
                                 transport=self.transport)
        return await stream.open()
