"""Thin client for the OpenWeather HTTP API and its tile server."""

import time
from typing import Any, Mapping, Optional

import requests

from owm_relay.errors import TransportError
from owm_relay.relay_types import UpstreamResponse
from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="relay/upstream_client")

DEFAULT_TIMEOUT_SECONDS = 15.0


class UpstreamClient:
    """Issues outbound requests and returns raw status, body bytes and content type.

    Non-2xx answers are returned, not raised; only transport failures raise
    TransportError.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def get(self, url: str, *, params: Optional[Mapping[str, str]] = None,
            headers: Optional[Mapping[str, str]] = None) -> UpstreamResponse:
        """GET `url` with query `params`."""
        return self._send("GET", url, params=params, headers=headers)

    def post_json(self, url: str, payload: Any, *,
                  headers: Optional[Mapping[str, str]] = None) -> UpstreamResponse:
        """POST `payload` as a JSON body."""
        return self._send("POST", url, json=payload, headers=headers)

    def _send(self, method: str, url: str, **kwargs) -> UpstreamResponse:
        started = time.monotonic()
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            logger.warning(
                "Upstream %s %s failed: %s",
                method, mask_url_secrets(url), exc.__class__.__name__,
            )
            raise TransportError(f"upstream request failed: {exc.__class__.__name__}") from exc

        elapsed = time.monotonic() - started
        logger.info(
            "Upstream %s %s -> %d (%.2fs)",
            method, mask_url_secrets(r.url or url), r.status_code, elapsed,
        )
        return UpstreamResponse(
            status=r.status_code,
            body=r.content or b"",
            content_type=r.headers.get("Content-Type", ""),
        )
