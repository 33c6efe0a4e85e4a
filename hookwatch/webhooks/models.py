"""Webhook event models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any
from uuid import uuid4

UNKNOWN = "unknown"


def freeze(value: Any) -> Any:
    """Read-only copy of a JSON-like value: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Plain dict/list copy of a frozen value, ready for JSON encoding."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class Event:
    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    repository: str = UNKNOWN
    sender: str = UNKNOWN
    delivery_id: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        # Stored events are shared between readers, so nothing below may change
        object.__setattr__(self, "payload", freeze(self.payload))

    @property
    def summary(self) -> Mapping[str, Any] | None:
        return self.payload.get("summary")

    def to_dict(self) -> dict[str, Any]:
        """JSON form served to the dashboard."""
        return {
            "id": self.id,
            "type": self.type,
            "payload": thaw(self.payload),
            "timestamp": self.timestamp.isoformat(),
            "repository": self.repository,
            "sender": self.sender,
            "deliveryId": self.delivery_id,
        }
