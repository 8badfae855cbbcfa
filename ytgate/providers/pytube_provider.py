"""pytube provider: extraction runs in-process, media is forwarded over HTTP."""

import asyncio
import logging
from typing import List, Optional

import httpx
from pytube import YouTube
from pytube.exceptions import AgeRestrictedError, PytubeError, VideoUnavailable

from ..config import Settings
from ..errors import ProviderMalformedResponse, ProviderUnavailable
from ..models import AUDIO, MediaDescriptor, Rendition, RenditionSelector
from ..resolver import VideoReference
from .base import HttpMediaStream

logger = logging.getLogger(__name__)


def stream_to_rendition(stream) -> Rendition:
    has_video = bool(stream.includes_video_track)
    if has_video:
        quality = stream.resolution or "unknown"
    else:
        quality = stream.abr or "audio"
    return Rendition(
        id=str(stream.itag),
        quality=quality,
        container=stream.subtype or "mp4",
        has_video=has_video,
        has_audio=bool(stream.includes_audio_track),
    )


def pick_stream(streams, selector: RenditionSelector):
    """Choose the pytube Stream matching ``selector``, or None"""
    if selector.id:
        try:
            return streams.get_by_itag(int(selector.id))
        except ValueError:
            return None
    if selector.kind == AUDIO:
        return streams.filter(only_audio=True).order_by("abr").desc().first()
    return streams.filter(progressive=True, file_extension="mp4").get_highest_resolution()


class PytubeProvider:
    """Extracts with pytube; calls are blocking so they run in a worker thread"""

    name = "pytube"

    def __init__(self, settings: Settings,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 youtube_factory=YouTube):
        self.timeout = settings.metadata_timeout
        self.chunk_size = settings.chunk_size
        self.transport = transport
        self.youtube_factory = youtube_factory

    def _describe(self, reference: VideoReference) -> MediaDescriptor:
        yt = self.youtube_factory(reference.watch_url)
        title = yt.title
        if not title:
            raise ProviderMalformedResponse("pytube returned no title")
        renditions: List[Rendition] = [stream_to_rendition(s) for s in yt.streams]
        return MediaDescriptor(
            title=title,
            author=yt.author or "Unknown",
            thumbnail_url=yt.thumbnail_url or reference.thumbnail_url,
            duration_seconds=yt.length,
            renditions=renditions,
        )

    def _stream_url(self, reference: VideoReference, selector: RenditionSelector) -> str:
        yt = self.youtube_factory(reference.watch_url)
        stream = pick_stream(yt.streams, selector)
        if stream is None:
            raise ProviderUnavailable("No stream found for requested format")
        return stream.url

    async def _in_thread(self, func, *args):
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), self.timeout)
        except asyncio.TimeoutError:
            raise ProviderUnavailable(f"pytube timed out after {self.timeout:g}s")
        except AgeRestrictedError:
            raise ProviderUnavailable("This video is age restricted and cannot be downloaded")
        except VideoUnavailable:
            raise ProviderUnavailable("Video is unavailable or private")
        except PytubeError as e:
            raise ProviderUnavailable(f"YouTube API error: {e}")
        except OSError as e:
            # urllib errors from pytube's own requests
            raise ProviderUnavailable(f"Could not reach YouTube: {e}")
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderMalformedResponse(f"Unexpected pytube response: {e}")

    async def fetch_metadata(self, reference: VideoReference) -> MediaDescriptor:
        return await self._in_thread(self._describe, reference)

    async def open_stream(self, reference: VideoReference,
                          selector: RenditionSelector) -> HttpMediaStream:
        url = await self._in_thread(self._stream_url, reference, selector)
        logger.info("Forwarding %s (%s) from googlevideo", reference.video_id, selector.kind)
        stream = HttpMediaStream(url, self.chunk_size,
                                 connect_timeout=self.timeout,
                                 transport=self.transport)
        return await stream.open()
