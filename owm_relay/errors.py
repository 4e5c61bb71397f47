"""Error kinds raised inside the relay and their mapping to relay results."""

from typing import Any

from owm_relay.relay_types import ContentKind, RelayResult


class RelayError(Exception):
    """Base class; every relay error is terminal for the request that raised it."""
    status_code: int = 500
    public_message: str | None = None

    def __init__(self, message: str = "server error") -> None:
        super().__init__(message)
        self.message = message

    def to_result(self) -> RelayResult:
        """Render the error as the `{error: message}` body the API returns."""
        return RelayResult(
            status=self.status_code,
            body={"error": self.public_message or self.message},
            content_kind=ContentKind.JSON,
        )


class ValidationError(RelayError):
    """Missing/empty required parameter or a disallowed value."""
    status_code = 400


class ConfigurationError(RelayError):
    """The provider credential is absent or blank."""
    status_code = 500


class TransportError(RelayError):
    """Network failure, timeout, or an unparseable upstream response."""
    status_code = 500
    # internal detail stays in the logs
    public_message = "server error"


class UpstreamError(RelayError):
    """The upstream answered with a non-2xx status; relayed as-is."""

    def __init__(self, status: int, body: Any, content_kind: ContentKind = ContentKind.JSON) -> None:
        super().__init__(f"upstream responded with status {status}")
        self.status_code = status
        self.body = body
        self.content_kind = content_kind

    def to_result(self) -> RelayResult:
        return RelayResult(status=self.status_code, body=self.body, content_kind=self.content_kind)
