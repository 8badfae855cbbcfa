"""Proxy gateway: validates input, asks the provider, shapes the response.

The gateway is written against the two-operation provider interface only
(``fetch_metadata`` and ``open_stream``), so swapping yt-dlp for pytube or the
cobalt API never touches this module.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

import anyio

from .config import Settings
from .errors import ProviderError, ProviderUnavailable, StreamInterrupted
from .models import MediaDescriptor, RenditionSelector
from .providers.base import Provider
from .resolver import VideoReference, parse_reference

logger = logging.getLogger(__name__)

FILENAME_LIMIT = 50
DEFAULT_FILENAME = "video"
FALLBACK_TITLE = "Unknown Title"
FALLBACK_AUTHOR = "Unknown"

# ASCII word class keeps the header latin-1 safe
_NON_WORD = re.compile(r"[^\w\s]+", re.ASCII)
_SPACES = re.compile(r"\s+")


def sanitize_filename(title: Optional[str], limit: int = FILENAME_LIMIT) -> str:
    """Remove non-word characters from a title and cap its length"""
    if not title:
        return DEFAULT_FILENAME
    cleaned = _NON_WORD.sub(" ", title)
    cleaned = _SPACES.sub(" ", cleaned).strip()
    cleaned = cleaned[:limit].strip()
    return cleaned or DEFAULT_FILENAME


def media_type_for(selector: RenditionSelector):
    """Return (extension, content type) for the selected media"""
    if selector.is_audio:
        return "mp3", "audio/mpeg"
    return "mp4", "video/mp4"


@dataclass
class Download:
    """Everything needed to start the response before the first byte is sent"""
    filename: str
    content_type: str
    body: AsyncIterator[bytes]
    content_length: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.headers.setdefault("Content-Disposition", f'attachment; filename="{self.filename}"')
        if self.content_length:
            self.headers.setdefault("Content-Length", str(self.content_length))


class Gateway:
    def __init__(self, provider: Provider, settings: Optional[Settings] = None):
        self.provider = provider
        self.settings = settings or Settings()

    async def _metadata(self, reference: VideoReference) -> MediaDescriptor:
        timeout = self.settings.metadata_timeout
        try:
            return await asyncio.wait_for(self.provider.fetch_metadata(reference), timeout)
        except asyncio.TimeoutError:
            raise ProviderUnavailable(f"Timed out fetching video info after {timeout:g}s")

    def degraded_info(self, reference: VideoReference) -> dict:
        """Generic metadata with a thumbnail derived from the video ID alone"""
        return {
            "title": FALLBACK_TITLE,
            "author": FALLBACK_AUTHOR,
            "thumbnail": reference.thumbnail_url,
            "duration": None,
            "videoFormats": [],
            "audioFormats": [],
            "videoId": reference.video_id,
            "url": reference.raw_input,
            "degraded": True,
        }

    async def get_info(self, raw_url: Optional[str]) -> dict:
        reference = parse_reference(raw_url)
        try:
            descriptor = await self._metadata(reference)
        except ProviderError as e:
            if not self.settings.info_fallback:
                raise
            logger.warning("Metadata fetch failed for %s, answering with thumbnail only: %s",
                           reference.video_id, e.message)
            return self.degraded_info(reference)
        return descriptor.to_payload(reference)

    async def _filename(self, reference: VideoReference, extension: str) -> str:
        try:
            descriptor = await self._metadata(reference)
            base = sanitize_filename(descriptor.title)
        except ProviderError as e:
            logger.warning("No title for %s, using generic filename: %s",
                           reference.video_id, e.message)
            base = DEFAULT_FILENAME
        return f"{base}.{extension}"

    async def download(self, raw_url: Optional[str],
                       selector: Optional[RenditionSelector] = None) -> Download:
        """Open the provider stream and read its first chunk.

        Failures up to and including the first chunk raise, so the caller can
        still answer with a JSON error. Later failures only end the stream.
        """
        reference = parse_reference(raw_url)
        selector = selector or RenditionSelector.video()
        extension, content_type = media_type_for(selector)
        filename = await self._filename(reference, extension)

        stream = await self.provider.open_stream(reference, selector)
        try:
            first = await stream.__anext__()
        except StopAsyncIteration:
            await stream.aclose()
            raise ProviderUnavailable("Provider returned an empty stream")
        except BaseException:
            await stream.aclose()
            raise

        logger.info("Download started: %s as %s", reference.video_id, filename)
        return Download(
            filename=filename,
            content_type=content_type,
            body=self._forward(stream, first, filename),
            content_length=getattr(stream, "content_length", None),
        )

    async def _forward(self, stream, first: bytes, filename: str) -> AsyncIterator[bytes]:
        sent = len(first)
        try:
            yield first
            async for chunk in stream:
                sent += len(chunk)
                yield chunk
        except ProviderError as e:
            # Headers are committed; the stream just ends
            interrupted = StreamInterrupted(f"{filename}: provider failed after {sent} bytes: {e.message}")
            logger.warning("Stream interrupted: %s", interrupted.message)
        except (asyncio.CancelledError, GeneratorExit):
            logger.info("Client disconnected from %s after %d bytes", filename, sent)
            raise
        else:
            logger.info("Download finished: %s (%d bytes)", filename, sent)
        finally:
            with anyio.CancelScope(shield=True):
                await stream.aclose()
