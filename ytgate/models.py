"""Request-scoped data models for video metadata and rendition choice."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

AUDIO = "audio"
VIDEO = "video"
EXPLICIT = "explicit"


@dataclass(frozen=True)
class Rendition:
    """One encoded variant of a video (resolution/container/codec, or audio only)."""
    id: str
    quality: str          # e.g. "720p" or "128kbps"
    container: str        # e.g. "mp4", "webm", "m4a"
    has_video: bool
    has_audio: bool
    size_bytes: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "quality": self.quality,
            "container": self.container,
            "hasVideo": self.has_video,
            "hasAudio": self.has_audio,
            "size": self.size_bytes,
        }


@dataclass(frozen=True)
class MediaDescriptor:
    """Metadata for a single video, as reported by a provider."""
    title: str
    author: str
    thumbnail_url: str
    duration_seconds: Optional[int] = None
    renditions: Tuple[Rendition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any sequence but never keep a mutable one around
        object.__setattr__(self, "renditions", tuple(self.renditions))

    @property
    def video_formats(self) -> List[Rendition]:
        return [r for r in self.renditions if r.has_video]

    @property
    def audio_formats(self) -> List[Rendition]:
        return [r for r in self.renditions if r.has_audio and not r.has_video]

    def to_payload(self, reference) -> Dict[str, Any]:
        """Shape the descriptor as the /api/info response body."""
        return {
            "title": self.title,
            "author": self.author,
            "thumbnail": self.thumbnail_url,
            "duration": self.duration_seconds,
            "videoFormats": [r.to_payload() for r in self.video_formats],
            "audioFormats": [r.to_payload() for r in self.audio_formats],
            "videoId": reference.video_id,
            "url": reference.raw_input,
        }


@dataclass(frozen=True)
class RenditionSelector:
    """Which media the caller wants: best audio, best video, or a given rendition."""
    kind: str
    id: Optional[str] = None

    def __post_init__(self):
        if self.kind not in (AUDIO, VIDEO, EXPLICIT):
            raise ValueError(f"Unknown rendition kind: {self.kind!r}")
        if self.kind == EXPLICIT and not self.id:
            raise ValueError("An explicit rendition needs an id")

    @classmethod
    def audio(cls) -> "RenditionSelector":
        return cls(AUDIO)

    @classmethod
    def video(cls) -> "RenditionSelector":
        return cls(VIDEO)

    @classmethod
    def explicit(cls, rendition_id: str) -> "RenditionSelector":
        return cls(EXPLICIT, str(rendition_id))

    @classmethod
    def from_request(cls, type: Optional[str] = None,
                     format_id: Optional[str] = None) -> "RenditionSelector":
        if format_id is not None and str(format_id).strip():
            return cls.explicit(str(format_id).strip())
        if type is not None and type.strip().lower() == AUDIO:
            return cls.audio()
        return cls.video()

    @property
    def is_audio(self) -> bool:
        return self.kind == AUDIO
