"""Parsing and filtering of incoming GitHub webhook deliveries."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List
from urllib.parse import parse_qs

from pydantic import BaseModel, Field, ValidationError

from ..errors import PayloadError

ACTIONABLE_EVENT = "pull_request"
ACTIONABLE_ACTIONS = frozenset({"opened", "synchronize"})
BOT_TITLE_PREFIX = "📚 Update documentation"


class Label(BaseModel):
    name: str = ""


class PullRequestPayload(BaseModel):
    number: int
    title: str = ""
    labels: List[Label] = Field(default_factory=list)


class Owner(BaseModel):
    login: str


class Repository(BaseModel):
    name: str
    owner: Owner


class PullRequestEvent(BaseModel):
    """The fields of a pull_request delivery that drive an update run."""

    action: str
    pull_request: PullRequestPayload
    repository: Repository
    config: Dict[str, Any] = Field(default_factory=dict)

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.pull_request.labels]


def decode_body(raw: bytes, content_type: str | None) -> Dict[str, Any]:
    """Decode a JSON or form-encoded (``payload=<json>``) webhook body."""
    content_type = (content_type or "").lower()
    if "application/json" in content_type:
        return _loads(raw.decode("utf-8"))
    if "application/x-www-form-urlencoded" in content_type:
        fields = parse_qs(raw.decode("utf-8"))
        payload = fields.get("payload")
        if payload:
            return _loads(payload[0])
        raise PayloadError("Form-encoded webhook is missing the payload field")
    raise PayloadError("Unsupported content type")


def parse_pull_request_event(data: Dict[str, Any]) -> PullRequestEvent:
    try:
        event = PullRequestEvent.model_validate(data)
    except ValidationError as exc:
        raise PayloadError(f"Invalid webhook payload: {exc.error_count()} error(s)") from exc
    if event.pull_request.number <= 0 or not event.action:
        raise PayloadError("Invalid webhook payload")
    if not event.repository.name or not event.repository.owner.login:
        raise PayloadError("Invalid webhook payload")
    return event


def is_bot_pull(event: PullRequestEvent, labels: Iterable[str] = ("documentation",)) -> bool:
    """True for pull requests this service opened itself."""
    if event.pull_request.title.startswith(BOT_TITLE_PREFIX):
        return True
    own_labels = set(labels)
    return any(name in own_labels for name in event.label_names)


def is_actionable(event_name: str, action: str) -> bool:
    return event_name == ACTIONABLE_EVENT and action in ACTIONABLE_ACTIONS


def _loads(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Webhook body is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PayloadError("Webhook body must be a JSON object")
    return data


__all__ = [
    "PullRequestEvent",
    "decode_body",
    "is_actionable",
    "is_bot_pull",
    "parse_pull_request_event",
]
