"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

import json
from typing import Any

from aiohttp import web
from structlog.contextvars import bound_contextvars

from hookwatch.config import WebhooksConfig
from hookwatch.utils.logging import get_logger
from hookwatch.webhooks.models import UNKNOWN, Event
from hookwatch.webhooks.normalizer import normalize
from hookwatch.webhooks.store import EventStore
from hookwatch.webhooks.verifier import verify_signature, verify_token

log = get_logger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
EVENT_TYPE_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
ADMIN_TOKEN_HEADER = "X-Admin-Token"


def _error(status: int, message: str, **extra: Any) -> web.Response:
    return web.json_response({"message": message, **extra}, status=status)


def _method_not_allowed(request: web.Request) -> web.Response:
    return _error(405, f"Method not allowed: {request.method}")


def _ack(message: str, event: Event, **extra: Any) -> web.Response:
    return web.json_response({
        "message": message,
        "event_id": event.id,
        "event_type": event.type,
        "timestamp": event.timestamp.isoformat(),
        **extra,
    })


class WebhookServer:
    """Receives provider webhooks into an EventStore and serves the log back."""

    def __init__(self, config: WebhooksConfig, store: EventStore | None = None) -> None:
        self._config = config
        self._store = store if store is not None else EventStore(config.capacity)
        self._runner: web.AppRunner | None = None

    @property
    def store(self) -> EventStore:
        return self._store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if not self._config.secret:
            log.warning(
                "webhook_no_secret",
                path=self._config.ingest_path,
                msg="No webhook secret configured; all deliveries will be rejected. Set a secret in config.",
            )
        if not self._config.require_signature:
            log.warning(
                "webhook_signature_optional",
                msg="Unsigned deliveries will be accepted. Enable require_signature outside development.",
            )
        app = self.build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
            capacity=self._store.capacity,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped", stored=self._store.count())

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def build_app(self) -> web.Application:
        app = web.Application()
        events_path = self._config.events_path.rstrip("/")
        app.router.add_route("*", self._config.ingest_path, self._handle_ingest)
        app.router.add_route("*", f"{events_path}/stats", self._handle_stats)
        app.router.add_route("*", events_path or "/", self._handle_events)
        return app

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def _handle_ingest(self, request: web.Request) -> web.Response:
        if request.method != "POST":
            return _method_not_allowed(request)

        # Every log line for this delivery carries its type and id
        with bound_contextvars(
            event_type=request.headers.get(EVENT_TYPE_HEADER) or UNKNOWN,
            delivery_id=request.headers.get(DELIVERY_HEADER, ""),
        ):
            return await self._ingest(request)

    async def _ingest(self, request: web.Request) -> web.Response:
        event_type = request.headers.get(EVENT_TYPE_HEADER) or UNKNOWN
        delivery_id = request.headers.get(DELIVERY_HEADER, "")
        signature = request.headers.get(SIGNATURE_HEADER, "")

        if not self._config.secret:
            log.error("webhook_rejected", reason="secret_not_configured")
            return _error(500, "Webhook secret not configured")

        body = await request.read()

        if signature:
            if not verify_signature(body, signature, self._config.secret):
                log.warning("webhook_rejected", reason="invalid_signature")
                return _error(401, "Invalid signature")
        elif self._config.require_signature:
            log.warning("webhook_rejected", reason="missing_signature")
            return _error(401, "Missing signature")
        else:
            log.warning("webhook_unsigned")

        # Parse the verified bytes; the declared charset is not trusted
        try:
            payload = json.loads(body)
        except ValueError:
            log.warning("webhook_rejected", reason="invalid_json", size=len(body))
            return _error(400, "Invalid JSON payload")
        if not isinstance(payload, dict):
            log.warning("webhook_rejected", reason="not_an_object")
            return _error(400, "Payload must be a JSON object")

        try:
            event = normalize(event_type, payload, delivery_id)
            duplicate = self._store_event(event)
        except Exception as exc:
            log.exception("webhook_error")
            return _error(500, "Internal server error", error=str(exc))

        if duplicate is not None:
            log.info("webhook_duplicate", event_id=duplicate.id)
            return _ack("Duplicate delivery ignored", duplicate, duplicate=True)

        log.info(
            "webhook_received",
            event_id=event.id,
            repository=event.repository,
            sender=event.sender,
            signed=bool(signature),
        )
        return _ack("Webhook received successfully", event)

    def _store_event(self, event: Event) -> Event | None:
        if self._config.deduplicate_deliveries:
            return self._store.add_unique(event)
        self._store.add(event)
        return None

    # ------------------------------------------------------------------
    # Query / admin
    # ------------------------------------------------------------------

    async def _handle_events(self, request: web.Request) -> web.Response:
        if request.method not in ("GET", "DELETE"):
            return _method_not_allowed(request)
        if not self._authorize_admin(request):
            return _error(401, "Invalid admin token")

        if request.method == "DELETE":
            cleared = self._store.clear()
            log.info("events_cleared", count=cleared)
            return web.json_response({"message": "All events cleared", "cleared": cleared})

        try:
            events = self._query(request.query)
        except ValueError:
            return _error(400, "limit must be an integer")
        return web.json_response([event.to_dict() for event in events])

    async def _handle_stats(self, request: web.Request) -> web.Response:
        if request.method != "GET":
            return _method_not_allowed(request)
        if not self._authorize_admin(request):
            return _error(401, "Invalid admin token")
        return web.json_response({
            "count": self._store.count(),
            "capacity": self._store.capacity,
            "by_type": self._store.stats(),
        })

    def _query(self, query: Any) -> list[Event]:
        event_type = query.get("type")
        repository = query.get("repository")
        limit = query.get("limit")

        if event_type:
            events = self._store.filter_by_type(event_type)
        elif repository:
            events = self._store.filter_by_repository(repository)
        else:
            events = self._store.list()

        # Both filters given: type first, then narrow by repository
        if event_type and repository:
            events = [e for e in events if e.repository == repository]
        if limit is not None:
            events = events[: max(int(limit), 0)]
        return events

    def _authorize_admin(self, request: web.Request) -> bool:
        if not self._config.admin_token:
            return True
        provided = request.headers.get(ADMIN_TOKEN_HEADER, "")
        return verify_token(provided, self._config.admin_token)
