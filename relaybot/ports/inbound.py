"""Inbound port — transport-agnostic message representation."""

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

TEXT_PLAIN = "text/plain"


@dataclass
class BodyPart:
    type: str
    value: str


@dataclass
class IncomingMessage:
    """One decrypted relay message, reduced to what the bot needs."""

    source: str
    distribution_expression: str
    thread_id: str
    body: List[BodyPart] = field(default_factory=list)
    source_device: Optional[int] = None
    message_id: Optional[str] = None

    @property
    def text(self) -> Optional[str]:
        """Value of the first text/plain part, if any."""
        for part in self.body:
            if part.type == TEXT_PLAIN:
                return part.value
        return None


def _text_value(value: Any) -> str:
    # null or non-string values carry no text
    return value if isinstance(value, str) else ""


def parse_envelope(
    source: str,
    body: str,
    source_device: Optional[int] = None,
) -> IncomingMessage:
    """Parse a relay message body (JSON array, first element is the message).

    Raises ValueError when the body is not a message exchange payload.
    """
    try:
        exchange = json.loads(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"message body is not JSON: {e}") from e
    if not isinstance(exchange, list) or not exchange:
        raise ValueError("message body is not a non-empty JSON array")
    msg = exchange[0]
    if not isinstance(msg, Mapping):
        raise ValueError("message exchange entry is not an object")

    distribution = msg.get("distribution") or {}
    if not isinstance(distribution, Mapping):
        raise ValueError("message distribution is not an object")
    expression = distribution.get("expression")
    if not expression or not isinstance(expression, str):
        raise ValueError("message has no distribution expression")

    data = msg.get("data") or {}
    if not isinstance(data, Mapping):
        raise ValueError("message data is not an object")
    parts = [
        BodyPart(type=str(p.get("type") or ""), value=_text_value(p.get("value")))
        for p in (data.get("body") or [])
        if isinstance(p, Mapping)
    ]
    return IncomingMessage(
        source=source,
        distribution_expression=expression,
        thread_id=str(msg.get("threadId", "")),
        body=parts,
        source_device=source_device,
        message_id=msg.get("messageId"),
    )


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def parse_message_event(event: Any) -> IncomingMessage:
    """Parse a transport message event: ``{source, sourceDevice, message: {body}}``.

    Accepts either a mapping or an object exposing the same attributes
    (optionally wrapped in a ``data`` attribute, as relay events are).
    """
    data = _get(event, "data") or event
    message = _get(data, "message") or {}
    body = _get(message, "body")
    if not isinstance(body, str):
        raise ValueError("message event has no body")
    return parse_envelope(
        source=str(_get(data, "source") or ""),
        body=body,
        source_device=_get(data, "sourceDevice"),
    )
