"""Caching relay between API callers and the OpenWeather provider."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from owm_relay.cache import FreshnessCache
from owm_relay.descriptors import RequestDescriptor
from owm_relay.errors import ConfigurationError, RelayError, TransportError, UpstreamError
from owm_relay.relay_types import ContentKind, RelayResult, UpstreamResponse
from owm_relay.upstream import UpstreamClient
from utils.logging_utils import get_tagged_logger

if TYPE_CHECKING:
    from owm_relay.config import Settings

logger = get_tagged_logger(__name__, tag="relay/gateway")

CREDENTIAL_PARAM = "appid"
MISSING_CREDENTIAL_MESSAGE = "OPENWEATHER_KEY missing"


def require_credential(api_key: str | None) -> str:
    """Return the stripped credential or raise ConfigurationError."""
    if not api_key or not api_key.strip():
        raise ConfigurationError(MISSING_CREDENTIAL_MESSAGE)
    return api_key.strip()


def relay_failure(resp: UpstreamResponse) -> UpstreamError:
    """Wrap a non-2xx upstream answer, keeping JSON bodies structured when possible."""
    try:
        return UpstreamError(resp.status, resp.json(), ContentKind.JSON)
    except ValueError:
        return UpstreamError(resp.status, resp.text(), ContentKind.TEXT)


class RelayGateway:
    """Validates requests, serves fresh cache hits, and forwards misses upstream.

    Only successful (2xx), fully parsed upstream responses are cached. Upstream
    failures are relayed with their status and body and retried naturally on
    the next request. Concurrent misses for one key may each reach upstream;
    the last writer wins.
    """

    def __init__(
        self,
        upstream: UpstreamClient,
        cache: FreshnessCache,
        *,
        api_key: str | None,
        api_base_url: str = "https://api.openweathermap.org",
        tile_base_url: str = "https://tile.openweathermap.org",
    ) -> None:
        self.upstream = upstream
        self.cache = cache
        self.api_key = api_key
        self.api_base_url = api_base_url.rstrip("/")
        self.tile_base_url = tile_base_url.rstrip("/")

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        upstream: UpstreamClient | None = None,
        cache: FreshnessCache | None = None,
    ) -> "RelayGateway":
        """Build a gateway wired to the configured provider."""
        return cls(
            upstream or UpstreamClient(timeout=settings.upstream_timeout_seconds),
            cache if cache is not None else FreshnessCache(max_entries=settings.cache_max_entries),
            api_key=settings.openweather_key,
            api_base_url=settings.api_base_url,
            tile_base_url=settings.tile_base_url,
        )

    def handle(self, descriptor: RequestDescriptor) -> RelayResult:
        """Resolve one request to a (status, body, content kind) result."""
        try:
            api_key = require_credential(self.api_key)
            descriptor.validate()
            key = descriptor.cache_key()

            entry = self.cache.get(key)
            if entry is not None:
                logger.debug("Cache hit %s", key)
                return RelayResult(200, entry.payload, entry.content_kind, from_cache=True)

            logger.debug("Cache miss %s", key)
            return self._forward(descriptor, key, api_key)
        except RelayError as exc:
            if isinstance(exc, ConfigurationError):
                logger.error("Refusing to relay %s: %s", descriptor.category.value, exc.message)
            elif isinstance(exc, TransportError):
                logger.error("Relay of %s failed: %s", descriptor.category.value, exc.message)
            return exc.to_result()
        except Exception:
            logger.exception("Unexpected failure relaying %s", descriptor.category.value)
            return TransportError().to_result()

    def _forward(self, descriptor: RequestDescriptor, key: str, api_key: str) -> RelayResult:
        spec = descriptor.spec
        params = descriptor.upstream_params()
        params[CREDENTIAL_PARAM] = api_key

        resp = self.upstream.get(
            descriptor.upstream_url(self.api_base_url, self.tile_base_url),
            params=params,
        )
        if not resp.ok:
            logger.warning(
                "Upstream rejected %s with %d; not caching", descriptor.category.value, resp.status,
            )
            if spec.content_kind is ContentKind.IMAGE:
                raise UpstreamError(resp.status, resp.text(), ContentKind.TEXT)
            raise relay_failure(resp)

        payload: Any
        if spec.content_kind is ContentKind.IMAGE:
            payload = resp.body
        else:
            try:
                payload = resp.json()
            except ValueError as exc:
                raise TransportError(f"malformed JSON from upstream: {exc}") from exc

        self.cache.put(key, payload, spec.content_kind, spec.ttl_seconds)
        return RelayResult(resp.status, payload, spec.content_kind)
