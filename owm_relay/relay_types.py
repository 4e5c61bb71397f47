"""Shared dataclasses and lightweight types used across relay modules."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ContentKind(str, Enum):
    """Discriminator for how a payload is stored and served."""
    JSON = "json"
    IMAGE = "image"
    TEXT = "text"


@dataclass(frozen=True)
class UpstreamResponse:
    """Raw outcome of one upstream HTTP call."""
    status: int
    body: bytes
    content_type: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Parse the body as JSON; an empty body parses to an empty object."""
        if not self.body.strip():
            return {}
        return json.loads(self.body)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class RelayResult:
    """What the relay hands back to the HTTP layer for one request."""
    status: int
    body: Any
    content_kind: ContentKind = ContentKind.JSON
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
