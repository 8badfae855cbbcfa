import pytest
from fastapi.testclient import TestClient

from ytgate.app import create_app
from ytgate.config import Settings
from ytgate.errors import ProviderUnavailable
from ytgate.models import MediaDescriptor, Rendition
from ytgate.providers.base import MediaStream

VIDEO_ID = "dQw4w9WgXcQ"

DESCRIPTOR = MediaDescriptor(
    title="Foo: Bar/Baz!!",
    author="Rick Astley",
    thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
    duration_seconds=212,
    renditions=[
        Rendition("18", "360p", "mp4", True, True, 1000),
        Rendition("137", "1080p", "mp4", True, False),
        Rendition("140", "129kbps", "m4a", False, True, 3400),
    ],
)


class ListStream(MediaStream):
    """Serves fixed chunks, optionally failing once they run out"""

    def __init__(self, chunks, fail_at_end=False):
        super().__init__()
        self.chunks = list(chunks)
        self.fail_at_end = fail_at_end
        self.released = 0

    async def _next_chunk(self):
        if self.chunks:
            return self.chunks.pop(0)
        if self.fail_at_end:
            raise ProviderUnavailable("connection reset")
        return None

    async def _release(self):
        self.released += 1


class StubProvider:
    name = "stub"

    def __init__(self, descriptor=DESCRIPTOR, chunks=(b"abc", b"def"),
                 metadata_error=None, stream_error=None, fail_at_end=False):
        self.descriptor = descriptor
        self.chunks = chunks
        self.metadata_error = metadata_error
        self.stream_error = stream_error
        self.fail_at_end = fail_at_end
        self.metadata_calls = []
        self.stream_calls = []
        self.streams = []

    async def fetch_metadata(self, reference):
        self.metadata_calls.append(reference)
        if self.metadata_error:
            raise self.metadata_error
        return self.descriptor

    async def open_stream(self, reference, selector):
        self.stream_calls.append((reference, selector))
        if self.stream_error:
            raise self.stream_error
        stream = ListStream(self.chunks, fail_at_end=self.fail_at_end)
        self.streams.append(stream)
        return stream


@pytest.fixture
def settings(tmp_path):
    return Settings(static_dir=tmp_path, metadata_timeout=2)


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
def client(settings, provider):
    app = create_app(settings, provider=provider)
    with TestClient(app) as c:
        yield c
