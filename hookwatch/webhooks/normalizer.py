"""Payload sanitization and event normalization."""

from __future__ import annotations

import copy
from typing import Any, Callable

from hookwatch.utils.logging import get_logger
from hookwatch.webhooks.models import UNKNOWN, Event

log = get_logger(__name__)

# Dotted paths stripped from every stored payload
SENSITIVE_FIELDS: tuple[str, ...] = (
    "installation.access_tokens_url",
    "installation.repositories_url",
    "sender.gravatar_id",
    "repository.ssh_url",
    "repository.clone_url",
    "repository.git_url",
    "repository.private_clone_url",
)

Summarizer = Callable[[dict[str, Any]], dict[str, Any]]

_SUMMARIZERS: dict[str, Summarizer] = {}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dig(data: Any, *keys: str, default: Any = None) -> Any:
    """Walk nested mappings, returning ``default`` at the first gap."""
    for key in keys:
        if not isinstance(data, dict) or key not in data:
            return default
        data = data[key]
    return data


def _logins(items: Any, key: str) -> list[Any]:
    if not isinstance(items, list):
        return []
    return [item.get(key) for item in items if isinstance(item, dict)]


# ---------------------------------------------------------------------------
# Sanitization and common fields
# ---------------------------------------------------------------------------

def sanitize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of ``payload`` with sensitive fields removed."""
    sanitized = copy.deepcopy(payload)
    for path in SENSITIVE_FIELDS:
        *parents, leaf = path.split(".")
        node = _dig(sanitized, *parents)
        if isinstance(node, dict):
            node.pop(leaf, None)
    return sanitized


def extract_repository(payload: dict[str, Any]) -> str:
    return _dig(payload, "repository", "full_name") or UNKNOWN


def extract_sender(payload: dict[str, Any]) -> str:
    return _dig(payload, "sender", "login") or UNKNOWN


# ---------------------------------------------------------------------------
# Type-specific summaries
# ---------------------------------------------------------------------------

def register_summarizer(*event_types: str) -> Callable[[Summarizer], Summarizer]:
    """Register a summary builder for one or more event types."""

    def decorator(func: Summarizer) -> Summarizer:
        for event_type in event_types:
            _SUMMARIZERS[event_type] = func
        return func

    return decorator


def summarize(event_type: str, payload: dict[str, Any]) -> dict[str, Any] | None:
    """Build the display summary for ``event_type``, or None for unknown types."""
    summarizer = _SUMMARIZERS.get(event_type)
    if summarizer is None:
        return None
    return summarizer(payload)


@register_summarizer("pull_request")
def _summarize_pull_request(payload: dict[str, Any]) -> dict[str, Any]:
    pr = _dig(payload, "pull_request", default={})
    number = payload.get("number")
    if number is None:
        number = _dig(pr, "number")
    return {
        "action": payload.get("action"),
        "number": number,
        "title": _dig(pr, "title"),
        "state": _dig(pr, "state"),
        "draft": _dig(pr, "draft"),
        "user": _dig(pr, "user", "login"),
        "head_branch": _dig(pr, "head", "ref"),
        "base_branch": _dig(pr, "base", "ref"),
        "mergeable": _dig(pr, "mergeable"),
        "mergeable_state": _dig(pr, "mergeable_state"),
        "commits": _dig(pr, "commits"),
        "additions": _dig(pr, "additions"),
        "deletions": _dig(pr, "deletions"),
        "changed_files": _dig(pr, "changed_files"),
        "requested_reviewers": _logins(_dig(pr, "requested_reviewers"), "login"),
        "labels": _logins(_dig(pr, "labels"), "name"),
        "milestone": _dig(pr, "milestone", "title"),
        "html_url": _dig(pr, "html_url"),
        "diff_url": _dig(pr, "diff_url"),
        "patch_url": _dig(pr, "patch_url"),
        "created_at": _dig(pr, "created_at"),
        "updated_at": _dig(pr, "updated_at"),
    }


@register_summarizer("push")
def _summarize_push(payload: dict[str, Any]) -> dict[str, Any]:
    ref = payload.get("ref") or ""
    commits = payload.get("commits")
    return {
        "branch": ref.removeprefix("refs/heads/") if isinstance(ref, str) else None,
        "commits": len(commits) if isinstance(commits, list) else 0,
        "forced": bool(payload.get("forced", False)),
        "pusher": _dig(payload, "pusher", "name"),
    }


@register_summarizer("issues")
def _summarize_issue(payload: dict[str, Any]) -> dict[str, Any]:
    issue = _dig(payload, "issue", default={})
    return {
        "action": payload.get("action"),
        "number": _dig(issue, "number"),
        "title": _dig(issue, "title"),
        "state": _dig(issue, "state"),
        "user": _dig(issue, "user", "login"),
    }


@register_summarizer("pull_request_review")
def _summarize_review(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "action": payload.get("action"),
        "number": _dig(payload, "pull_request", "number"),
        "state": _dig(payload, "review", "state"),
        "reviewer": _dig(payload, "review", "user", "login"),
    }


@register_summarizer("star")
def _summarize_star(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "action": payload.get("action"),
        "starred_at": payload.get("starred_at"),
    }


@register_summarizer("watch")
def _summarize_watch(payload: dict[str, Any]) -> dict[str, Any]:
    return {"action": payload.get("action")}


@register_summarizer("release")
def _summarize_release(payload: dict[str, Any]) -> dict[str, Any]:
    release = _dig(payload, "release", default={})
    return {
        "action": payload.get("action"),
        "name": _dig(release, "name"),
        "tag": _dig(release, "tag_name"),
        "prerelease": _dig(release, "prerelease"),
    }


@register_summarizer("security_advisory")
def _summarize_advisory(payload: dict[str, Any]) -> dict[str, Any]:
    advisory = _dig(payload, "security_advisory", default={})
    return {
        "action": payload.get("action"),
        "advisory_id": _dig(advisory, "ghsa_id"),
        "severity": _dig(advisory, "severity"),
    }


@register_summarizer("repository_vulnerability_alert")
def _summarize_vulnerability_alert(payload: dict[str, Any]) -> dict[str, Any]:
    alert = _dig(payload, "alert", default={})
    return {
        "action": payload.get("action"),
        "number": _dig(alert, "number"),
        "state": _dig(alert, "state"),
    }


@register_summarizer("ping")
def _summarize_ping(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "zen": payload.get("zen"),
        "hook_id": payload.get("hook_id"),
    }


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize(event_type: str, raw_payload: dict[str, Any], delivery_id: str = "") -> Event:
    """Convert a raw webhook body into a canonical Event.

    The input is never mutated. Unknown event types and missing sub-fields
    fall back to defaults instead of failing.
    """
    payload = sanitize_payload(raw_payload)

    try:
        summary = summarize(event_type, payload)
    except (AttributeError, TypeError) as exc:
        log.warning(
            "webhook_summary_failed",
            event_type=event_type,
            delivery_id=delivery_id,
            error=str(exc),
        )
        summary = None

    if summary is not None:
        payload["summary"] = summary

    return Event(
        type=event_type,
        payload=payload,
        repository=extract_repository(payload),
        sender=extract_sender(payload),
        delivery_id=delivery_id,
    )
