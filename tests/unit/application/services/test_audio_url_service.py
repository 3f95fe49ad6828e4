"""Unit tests for AudioUrlResolver."""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from talebox.application.services import AudioUrlResolver
from talebox.config import PlaybackSettings, Settings, StorageSettings
from talebox.infrastructure.integrations import StorageClient

from tests.conftest import AUDIO_PREFIX, DEMO_URL


def resolver_with(handler, settings: Settings) -> AudioUrlResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AudioUrlResolver(settings, StorageClient(settings.storage, client))


class TestResolveAudioUrl:
    """Path → URL."""

    def test_object_key_becomes_public_url(self, resolver):
        assert resolver.resolve_audio_url("tolkien/the-hobbit.mp3") == f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3"

    def test_keys_are_url_encoded(self, resolver):
        url = resolver.resolve_audio_url("/tolkien/the hobbit.mp3")
        assert url == f"{AUDIO_PREFIX}tolkien/the%20hobbit.mp3"

    @pytest.mark.parametrize("url", ["https://cdn.example.com/a.mp3", "http://cdn.example.com/b.mp3"])
    def test_absolute_urls_pass_through(self, resolver, url):
        assert resolver.resolve_audio_url(url) == url
        assert resolver.resolve_audio_url(url, is_mobile_device=True) == url

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_path_resolves_to_empty(self, resolver, path):
        assert resolver.resolve_audio_url(path) == ""

    def test_mobile_gets_cache_busting_params(self, resolver):
        url = resolver.resolve_audio_url("tolkien/the-hobbit.mp3", is_mobile_device=True)

        parts = urlsplit(url)
        params = parse_qs(parts.query)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3"
        assert params["mobile"] == ["1"]
        assert params["t"][0].isdigit()

    def test_unconfigured_storage_resolves_to_empty(self, http_client):
        settings = Settings(_env_file=None, storage=StorageSettings(backend_url=""))
        resolver = AudioUrlResolver(settings, StorageClient(settings.storage, http_client))

        assert resolver.resolve_audio_url("a.mp3") == ""


class TestFallbackUrl:
    """The demo asset."""

    def test_self_hosted_by_default(self, resolver):
        assert resolver.fallback_audio_url() == DEMO_URL

    def test_configured_url_wins(self, http_client):
        settings = Settings(
            _env_file=None,
            playback=PlaybackSettings(fallback_audio_url="https://assets.example.com/demo.mp3"),
        )
        resolver = AudioUrlResolver(settings, StorageClient(settings.storage, http_client))

        assert resolver.fallback_audio_url() == "https://assets.example.com/demo.mp3"


class TestCheckReachable:
    """Preflight probe: HEAD, then GET, never raises."""

    async def test_empty_url_is_unreachable(self, resolver):
        assert await resolver.check_reachable("") is False

    async def test_head_success(self, settings):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.method)
            return httpx.Response(200)

        assert await resolver_with(handler, settings).check_reachable("https://x.test/a.mp3") is True
        assert seen == ["HEAD"]

    async def test_head_rejected_get_succeeds(self, settings):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.method)
            return httpx.Response(405 if request.method == "HEAD" else 206)

        assert await resolver_with(handler, settings).check_reachable("https://x.test/a.mp3") is True
        assert seen == ["HEAD", "GET"]

    async def test_head_error_then_get_succeeds(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "HEAD":
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200)

        assert await resolver_with(handler, settings).check_reachable("https://x.test/a.mp3") is True

    async def test_both_fail_is_unreachable(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403)

        assert await resolver_with(handler, settings).check_reachable("https://x.test/a.mp3") is False

    async def test_timeout_is_unreachable_not_raised(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        assert await resolver_with(handler, settings).check_reachable("https://x.test/a.mp3") is False

    async def test_probe_timeout_is_applied(self, settings):
        resolver = resolver_with(lambda request: httpx.Response(200), settings)
        resolver.storage.head = AsyncMock(return_value=200)

        await resolver.check_reachable("https://x.test/a.mp3")

        resolver.storage.head.assert_awaited_once_with(
            "https://x.test/a.mp3", timeout=settings.playback.probe_timeout
        )
