"""Audio URL resolution and reachability checks.

Hey future me - a storage public URL can be well-formed and STILL point at a missing or
access-denied object. The browser's audio element then just sits there, stuck. So we
resolve → probe → (maybe) fall back to the demo asset BEFORE the player gets the URL.

Probe rules:
1. HEAD first (cheap)
2. Non-2xx or exception → GET (streamed, body never read) - some backends reject HEAD
3. Any exception on the GET → unreachable. NEVER raise out of check_reachable().
Both requests are bounded by playback.probe_timeout so a dead CDN can't keep the
loading spinner up forever.
"""

import logging
import time
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from talebox.config import Settings
from talebox.domain.exceptions import DomainException
from talebox.infrastructure.integrations.storage_client import StorageClient

logger = logging.getLogger(__name__)

ABSOLUTE_URL_SCHEMES = ("http://", "https://")

# Anything the transport can throw at us during a probe means "unreachable"
PROBE_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class AudioUrlResolver:
    """Turns a logical audio path into a confirmed-reachable URL (or the fallback)."""

    def __init__(self, settings: Settings, storage: StorageClient) -> None:
        self.settings = settings
        self.storage = storage

    def resolve_audio_url(self, path: str, is_mobile_device: bool = False) -> str:
        """Resolve an audio path to a playable URL.

        Absolute http(s) URLs are returned unchanged. Anything else is an object key in
        the audio bucket. On mobile, storage URLs get cache-busting parameters (t=<ms>,
        mobile=1) - mobile browsers love to cache a failed range response.

        Returns:
            The URL, or "" when the path is empty or the storage URL can't be built
        """
        if not path or not path.strip():
            logger.error("[AUDIO_URL] Audio path is empty")
            return ""

        path = path.strip()
        if path.lower().startswith(ABSOLUTE_URL_SCHEMES):
            logger.debug("[AUDIO_URL] Audio path is already a full URL: %s", path)
            return path

        try:
            url = self.storage.public_url(self.settings.storage.audio_bucket, path)
        except DomainException as e:
            logger.error("[AUDIO_URL] Error generating public URL for %s: %s", path, e.message)
            return ""

        if is_mobile_device:
            url = _with_query_params(url, {"t": str(int(time.time() * 1000)), "mobile": "1"})

        logger.debug("[AUDIO_URL] Generated audio URL: %s", url)
        return url

    async def check_reachable(self, url: str) -> bool:
        """Preflight check that url serves something. Never raises."""
        if not url:
            return False

        timeout = self.settings.playback.probe_timeout

        try:
            status = await self.storage.head(url, timeout=timeout)
            if _is_success(status):
                return True
            logger.info("[AUDIO_URL] HEAD %s returned %d, retrying with GET", url, status)
        except PROBE_ERRORS as e:
            logger.info("[AUDIO_URL] HEAD %s failed (%s), retrying with GET", url, type(e).__name__)

        try:
            status = await self.storage.get_status(url, timeout=timeout)
        except PROBE_ERRORS as e:
            logger.warning("[AUDIO_URL] Audio URL unreachable: %s (%s)", url, type(e).__name__)
            return False

        if not _is_success(status):
            logger.warning("[AUDIO_URL] Audio URL unreachable: %s (HTTP %d)", url, status)
            return False
        return True

    def fallback_audio_url(self) -> str:
        """The always-available demo asset.

        Self-hosted in our own audio bucket unless an explicit URL is configured,
        so its availability doesn't hinge on some third party's uptime.
        """
        configured = self.settings.playback.fallback_audio_url
        if configured:
            return configured
        storage = self.settings.storage
        public_path = "/" + storage.public_path.strip("/")
        key = self.settings.playback.fallback_audio_key.lstrip("/")
        return f"{storage.backend_url}{public_path}/{storage.audio_bucket}/{key}"


def _with_query_params(url: str, params: dict[str, str]) -> str:
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    query.update(params)
    return urlunsplit(parts._replace(query=urlencode(query)))
