"""yt-dlp provider: shells out to the yt-dlp binary for metadata and media."""

import json
import logging
from typing import Any, Dict, List

from ..config import Settings
from ..errors import ProviderMalformedResponse
from ..models import AUDIO, VIDEO, MediaDescriptor, Rendition, RenditionSelector
from ..resolver import VideoReference
from .process import ProcessStream, run_command

logger = logging.getLogger(__name__)

FORMAT_EXPRESSIONS = {
    AUDIO: "bestaudio[ext=m4a]/bestaudio",
    # Progressive only: merged formats cannot be written to a pipe
    VIDEO: "best[ext=mp4][vcodec!=none][acodec!=none]/best",
}


def _quality(fmt: Dict[str, Any], has_video: bool) -> str:
    if has_video:
        if fmt.get("height"):
            return f"{fmt['height']}p"
        return fmt.get("format_note") or fmt.get("resolution") or "unknown"
    if fmt.get("abr"):
        return f"{round(fmt['abr'])}kbps"
    return fmt.get("format_note") or "audio"


def parse_renditions(formats: List[Dict[str, Any]]) -> List[Rendition]:
    renditions = []
    for f in formats or []:
        if not isinstance(f, dict) or not f.get("format_id"):
            continue
        has_video = f.get("vcodec") not in (None, "none")
        has_audio = f.get("acodec") not in (None, "none")

        # Storyboards and other non-media entries
        if not has_video and not has_audio:
            continue

        renditions.append(Rendition(
            id=str(f["format_id"]),
            quality=_quality(f, has_video),
            container=f.get("ext") or "unknown",
            has_video=has_video,
            has_audio=has_audio,
            size_bytes=f.get("filesize") or f.get("filesize_approx") or None,
        ))
    return renditions


def parse_metadata(raw: bytes, reference: VideoReference) -> MediaDescriptor:
    """Turn ``yt-dlp -J`` output into a MediaDescriptor"""
    try:
        info = json.loads(raw)
    except ValueError as e:
        raise ProviderMalformedResponse(f"yt-dlp returned invalid JSON: {e}")

    if not isinstance(info, dict) or not info.get("title"):
        raise ProviderMalformedResponse("yt-dlp returned no video metadata")

    duration = info.get("duration")
    return MediaDescriptor(
        title=info["title"],
        author=info.get("uploader") or info.get("channel") or "Unknown",
        thumbnail_url=info.get("thumbnail") or reference.thumbnail_url,
        duration_seconds=int(duration) if duration is not None else None,
        renditions=parse_renditions(info.get("formats")),
    )


class YtDlpProvider:
    """Runs one yt-dlp process per request"""

    name = "ytdlp"

    def __init__(self, settings: Settings):
        self.binary = settings.ytdlp_path
        self.cookies = settings.ytdlp_cookies
        self.timeout = settings.metadata_timeout
        self.chunk_size = settings.chunk_size

    def _base_args(self) -> List[str]:
        args = [self.binary, "--no-playlist", "--no-warnings"]
        if self.cookies:
            args += ["--cookies", self.cookies]
        return args

    def metadata_command(self, reference: VideoReference) -> List[str]:
        return self._base_args() + ["-J", reference.watch_url]

    def stream_command(self, reference: VideoReference,
                       selector: RenditionSelector) -> List[str]:
        fmt = selector.id if selector.id else FORMAT_EXPRESSIONS[selector.kind]
        return self._base_args() + ["--quiet", "-f", fmt, "-o", "-", reference.watch_url]

    async def fetch_metadata(self, reference: VideoReference) -> MediaDescriptor:
        raw = await run_command(self.metadata_command(reference), self.timeout)
        return parse_metadata(raw, reference)

    async def open_stream(self, reference: VideoReference,
                          selector: RenditionSelector) -> ProcessStream:
        argv = self.stream_command(reference, selector)
        logger.info("Streaming %s with format %s", reference.video_id, argv[argv.index("-f") + 1])
        return await ProcessStream(argv, self.chunk_size).start()
