import re
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidUrl, MissingInput

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")

_ID = r"([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"

# Order matters: first match wins
PATTERNS = [
    re.compile(r"/watch/?\?(?:[^#]*&)?v=" + _ID),
    re.compile(r"youtu\.be/" + _ID),
    re.compile(r"/(?:embed|v|shorts)/" + _ID),
    re.compile(r"^" + _ID + r"$"),
]


def extract_video_id(url: str) -> Optional[str]:
    """Extract YouTube video ID from various URL formats"""
    if not isinstance(url, str):
        return None
    text = url.strip()
    for pattern in PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


@dataclass(frozen=True)
class VideoReference:
    """A request's ``url`` parameter together with the video ID it names"""

    raw_input: str
    video_id: str

    def __post_init__(self):
        if not VIDEO_ID_RE.match(self.video_id):
            raise ValueError(f"Not a YouTube video ID: {self.video_id!r}")

    @property
    def watch_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"

    @property
    def thumbnail_url(self) -> str:
        return f"https://img.youtube.com/vi/{self.video_id}/maxresdefault.jpg"


def parse_reference(raw: Optional[str]) -> VideoReference:
    """Validate the ``url`` parameter; raises MissingInput or InvalidUrl"""
    if raw is None or not str(raw).strip():
        raise MissingInput()
    video_id = extract_video_id(raw)
    if not video_id:
        raise InvalidUrl("Invalid YouTube URL. Please provide a valid YouTube URL or Video ID")
    return VideoReference(raw_input=raw, video_id=video_id)
