"""Non-caching relay for multi-turn assistant conversations."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

from owm_relay.errors import RelayError, TransportError, ValidationError
from owm_relay.gateway import relay_failure, require_credential
from owm_relay.relay_types import ContentKind, RelayResult
from owm_relay.upstream import UpstreamClient
from utils.logging_utils import get_tagged_logger

if TYPE_CHECKING:
    from owm_relay.config import Settings

logger = get_tagged_logger(__name__, tag="relay/session_relay")

CREDENTIAL_HEADER = "X-Api-Key"


class SessionRelay:
    """Forwards assistant prompts upstream; the provider owns conversation memory.

    Every call is live. The relay never stores the session id; callers carry it
    between turns (see AssistantSession).
    """

    def __init__(self, upstream: UpstreamClient, *, api_key: str | None,
                 api_base_url: str = "https://api.openweathermap.org") -> None:
        self.upstream = upstream
        self.api_key = api_key
        self.api_base_url = api_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: "Settings", upstream: UpstreamClient | None = None) -> "SessionRelay":
        return cls(
            upstream or UpstreamClient(timeout=settings.upstream_timeout_seconds),
            api_key=settings.openweather_key,
            api_base_url=settings.api_base_url,
        )

    def start(self, prompt: str | None) -> RelayResult:
        """Open a conversation; the upstream reply carries `session_id` and `answer`."""
        return self._relay(f"{self.api_base_url}/assistant/session", None, prompt)

    def resume(self, session_id: str | None, prompt: str | None) -> RelayResult:
        """Continue the conversation identified by `session_id`."""
        session_id = (session_id or "").strip()
        url = f"{self.api_base_url}/assistant/session/{quote(session_id, safe='')}"
        return self._relay(url, session_id, prompt)

    def _relay(self, url: str, session_id: Optional[str], prompt: str | None) -> RelayResult:
        try:
            api_key = require_credential(self.api_key)
            if session_id is not None and not session_id:
                raise ValidationError("session_id required")
            prompt = (prompt or "").strip()
            if not prompt:
                raise ValidationError("prompt required")

            resp = self.upstream.post_json(
                url,
                {"prompt": prompt},
                headers={"Content-Type": "application/json", CREDENTIAL_HEADER: api_key},
            )
            if not resp.ok:
                raise relay_failure(resp)
            try:
                body = resp.json()
            except ValueError as exc:
                raise TransportError(f"malformed JSON from assistant: {exc}") from exc
            return RelayResult(resp.status, body, ContentKind.JSON)
        except RelayError as exc:
            if exc.status_code >= 500:
                logger.error("Assistant relay failed: %s", exc.message)
            return exc.to_result()
        except Exception:
            logger.exception("Unexpected failure relaying assistant prompt")
            return TransportError().to_result()


@dataclass
class AssistantSession:
    """Caller-held conversation state: no id until the provider assigns one."""
    relay: SessionRelay
    session_id: Optional[str] = None

    @property
    def started(self) -> bool:
        return bool(self.session_id)

    def ask(self, prompt: str) -> RelayResult:
        """Send `prompt`, starting the conversation first if no id is held yet."""
        if not self.started:
            result = self.relay.start(prompt)
            if result.ok and isinstance(result.body, dict) and result.body.get("session_id"):
                self.session_id = str(result.body["session_id"])
            return result
        result = self.relay.resume(self.session_id, prompt)
        if result.status == 404:
            # provider expired the conversation; the next ask starts a new one
            logger.info("Assistant session %s expired upstream; dropping it", self.session_id)
            self.reset()
        return result

    def reset(self) -> None:
        """Forget the current conversation."""
        self.session_id = None
