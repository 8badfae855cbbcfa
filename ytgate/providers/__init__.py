"""Metadata/download providers behind a common two-operation interface"""

from ..config import Settings
from .base import HttpMediaStream, MediaStream, Provider
from .cobalt import CobaltProvider
from .process import ProcessStream
from .pytube_provider import PytubeProvider
from .ytdlp import YtDlpProvider

PROVIDER_CLASSES = {
    "ytdlp": YtDlpProvider,
    "pytube": PytubeProvider,
    "cobalt": CobaltProvider,
}


def build_provider(settings: Settings) -> Provider:
    try:
        cls = PROVIDER_CLASSES[settings.provider]
    except KeyError:
        raise ValueError(f"Unknown provider: {settings.provider!r}")
    return cls(settings)


__all__ = [
    "Provider",
    "MediaStream",
    "HttpMediaStream",
    "ProcessStream",
    "YtDlpProvider",
    "PytubeProvider",
    "CobaltProvider",
    "build_provider",
]
