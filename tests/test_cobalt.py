import asyncio
import json

import httpx
import pytest

from ytgate.config import Settings
from ytgate.errors import ProviderMalformedResponse, ProviderUnavailable
from ytgate.models import RenditionSelector
from ytgate.providers.cobalt import CobaltProvider, cobalt_request, media_url_from_reply
from ytgate.resolver import parse_reference

REF = parse_reference("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
API = "https://cobalt.example/api/json"


def make_provider(cobalt_reply, oembed_status=200, media_status=200):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == "www.youtube.com":
            if oembed_status != 200:
                return httpx.Response(oembed_status, text="Not Found")
            return httpx.Response(200, json={
                "title": "Never Gonna Give You Up",
                "author_name": "Rick Astley",
                "thumbnail_url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
            })
        if str(request.url) == API:
            return httpx.Response(200, json=cobalt_reply)
        if request.url.host == "media.example":
            return httpx.Response(media_status, content=b"0123456789" * 10)
        return httpx.Response(404)

    settings = Settings(provider="cobalt", cobalt_api_url=API, chunk_size=16)
    return CobaltProvider(settings, transport=httpx.MockTransport(handler)), seen


def test_metadata_from_oembed():
    provider, seen = make_provider({})
    descriptor = asyncio.run(provider.fetch_metadata(REF))

    assert descriptor.title == "Never Gonna Give You Up"
    assert descriptor.author == "Rick Astley"
    assert descriptor.thumbnail_url == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"
    assert descriptor.duration_seconds is None
    assert descriptor.renditions == ()
    assert seen[0].url.params["url"] == REF.watch_url


def test_metadata_failure():
    provider, _ = make_provider({}, oembed_status=404)
    with pytest.raises(ProviderUnavailable):
        asyncio.run(provider.fetch_metadata(REF))


def test_stream_follows_redirect_reply():
    provider, seen = make_provider({"status": "redirect", "url": "https://media.example/file.mp4"})

    async def run():
        stream = await provider.open_stream(REF, RenditionSelector.audio())
        return b"".join([chunk async for chunk in stream]), stream

    body, stream = asyncio.run(run())
    assert body == b"0123456789" * 10
    assert stream.closed

    sent = json.loads(seen[0].content)
    assert sent["url"] == REF.watch_url
    assert sent["isAudioOnly"] is True
    assert sent["aFormat"] == "mp3"


def test_stream_media_server_error():
    provider, _ = make_provider({"status": "stream", "url": "https://media.example/x"}, media_status=403)
    with pytest.raises(ProviderUnavailable, match="403"):
        asyncio.run(provider.open_stream(REF, RenditionSelector.video()))


def test_stream_error_reply():
    provider, _ = make_provider({"status": "error", "text": "i couldn't process your request :("})
    with pytest.raises(ProviderUnavailable, match="couldn't process"):
        asyncio.run(provider.open_stream(REF, RenditionSelector.video()))


def test_request_body():
    body = cobalt_request(REF, RenditionSelector.video())
    assert body["vQuality"] == "1080"
    assert body["isAudioOnly"] is False
    assert cobalt_request(REF, RenditionSelector.explicit("720"))["vQuality"] == "720"


def test_picker_reply():
    reply = {"status": "picker", "picker": [{"url": "https://media.example/a"}, {"url": "https://media.example/b"}]}
    assert media_url_from_reply(reply) == "https://media.example/a"
    assert media_url_from_reply({"status": "picker", "picker": [], "audio": "https://media.example/audio"}) \
        == "https://media.example/audio"


@pytest.mark.parametrize("reply", [None, [], {"status": "rate-limit"}, {"status": "redirect"}])
def test_malformed_reply(reply):
    with pytest.raises(ProviderMalformedResponse):
        media_url_from_reply(reply)
