"""Provider contract consumed by the gateway.

The gateway depends only on :class:`Provider` and :class:`MediaStream`; the
concrete adapters (yt-dlp subprocess, pytube, cobalt API) satisfy the
protocol structurally.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from ..errors import ProviderUnavailable
from ..models import MediaDescriptor, RenditionSelector
from ..resolver import VideoReference

logger = logging.getLogger(__name__)


class MediaStream:
    """Async iterator of media chunks with a single, idempotent release path.

    Subclasses implement ``_next_chunk`` and ``_release``. Exhausting the
    stream, a provider error and an explicit :meth:`aclose` all end in
    ``_release`` exactly once.
    """

    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        try:
            chunk = await self._next_chunk()
        except BaseException:
            await self.aclose()
            raise
        if chunk is None:
            await self.aclose()
            raise StopAsyncIteration
        return chunk

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._release()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _next_chunk(self) -> Optional[bytes]:
        """Return the next chunk, or None at end of stream"""
        raise NotImplementedError

    async def _release(self) -> None:
        raise NotImplementedError


class Provider(Protocol):
    """Contract for metadata/download backends.

    Implementations must map backend-specific exceptions to
    :class:`~ytgate.errors.ProviderError` subclasses.
    """

    async def fetch_metadata(self, reference: VideoReference) -> MediaDescriptor:
        ...  # pragma: no cover

    async def open_stream(self, reference: VideoReference,
                          selector: RenditionSelector) -> MediaStream:
        ...  # pragma: no cover


class HttpMediaStream(MediaStream):
    """Forwards a remote media URL chunk by chunk without buffering it"""

    def __init__(self, url: str, chunk_size: int = 64 * 1024,
                 headers: Optional[dict] = None,
                 connect_timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__()
        self.url = url
        self.chunk_size = chunk_size
        self.headers = headers or {}
        # No read timeout: the streaming path is bounded only by the client
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(None, connect=connect_timeout),
            transport=transport,
        )
        self._response: Optional[httpx.Response] = None
        self._chunks = None

    async def open(self) -> "HttpMediaStream":
        request = self._client.build_request("GET", self.url, headers=self.headers)
        try:
            self._response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            await self.aclose()
            raise ProviderUnavailable(f"Could not reach media server: {e}")

        if self._response.is_error:
            status = self._response.status_code
            await self.aclose()
            raise ProviderUnavailable(f"Media server returned HTTP {status}")

        self._chunks = self._response.aiter_bytes(self.chunk_size)
        return self

    @property
    def content_length(self) -> Optional[int]:
        if self._response is None:
            return None
        # Decoded bytes are forwarded, so an encoded length would not match
        if self._response.headers.get("content-encoding", "identity").lower() != "identity":
            return None
        value = self._response.headers.get("content-length")
        return int(value) if value and value.isdigit() else None

    async def _next_chunk(self) -> Optional[bytes]:
        if self._chunks is None:
            return None
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Media transfer failed: {e}")

    async def _release(self) -> None:
        if self._response is not None:
            await self._response.aclose()
        await self._client.aclose()
