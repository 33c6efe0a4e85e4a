"""Webhook ingestion: verification, normalization, storage and HTTP endpoints."""

from hookwatch.webhooks.models import Event
from hookwatch.webhooks.normalizer import normalize, sanitize_payload
from hookwatch.webhooks.server import WebhookServer
from hookwatch.webhooks.store import EventStore
from hookwatch.webhooks.verifier import compute_signature, verify_signature

__all__ = [
    "Event",
    "EventStore",
    "WebhookServer",
    "compute_signature",
    "normalize",
    "sanitize_payload",
    "verify_signature",
]
