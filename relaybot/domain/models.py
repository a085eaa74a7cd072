"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional


@dataclass(frozen=True)
class Tag:
    id: str
    slug: str


@dataclass(frozen=True)
class Org:
    id: str
    slug: str


@dataclass(frozen=True)
class BotIdentity:
    """Snapshot of the bot's directory user record.

    Frozen so a snapshot handed to a handler can never change under it;
    updates produce a new instance (see IdentityStore).
    """

    id: str
    first_name: str
    tag: Tag
    org: Org
    middle_name: str = ""
    last_name: str = ""

    @property
    def handle(self) -> str:
        return f"@{self.tag.slug}:{self.org.slug}"

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.middle_name, self.last_name)
        return " ".join(p for p in parts if p)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BotIdentity":
        """Build from a directory user payload."""
        tag = data.get("tag") or {}
        org = data.get("org") or {}
        return cls(
            id=str(data["id"]),
            first_name=data.get("first_name") or "",
            middle_name=data.get("middle_name") or "",
            last_name=data.get("last_name") or "",
            tag=Tag(id=str(tag.get("id", "")), slug=tag.get("slug", "")),
            org=Org(id=str(org.get("id", "")), slug=org.get("slug", "")),
        )


@dataclass(frozen=True)
class Distribution:
    """Resolved recipient set of a distribution expression."""

    expression: str
    members: FrozenSet[str]
    pretty: str = ""

    def as_payload(self) -> Dict[str, Any]:
        return {
            "expression": self.expression,
            "pretty": self.pretty,
            "userids": sorted(self.members),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_expression: str = "") -> "Distribution":
        """Build from a payload-shaped mapping (``userids`` or ``members``)."""
        members = data.get("userids")
        if members is None:
            members = data.get("members") or ()
        return cls(
            expression=str(data.get("expression") or default_expression),
            members=frozenset(str(m) for m in members),
            pretty=str(data.get("pretty") or ""),
        )


@dataclass
class NluResult:
    """Structured NLU output for one query."""

    action: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    speech: str = ""


@dataclass
class ResponseMessage:
    """Outgoing reply, built once per qualifying message."""

    distribution: Distribution
    thread_id: str
    text: str = ""
    html: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merge(self, fields: Mapping[str, Any]) -> None:
        """Overlay handler-provided fields; unknown keys land in ``extra``."""
        for key, value in fields.items():
            if key in ("text", "html"):
                setattr(self, key, value)
            elif key == "distribution":
                if isinstance(value, Mapping):
                    value = Distribution.from_dict(value, self.distribution.expression)
                if not isinstance(value, Distribution):
                    raise TypeError(f"distribution must be a mapping or Distribution, got {type(value).__name__}")
                self.distribution = value
            elif key in ("thread_id", "threadId"):
                self.thread_id = value
            else:
                self.extra[key] = value

    def as_payload(self) -> Dict[str, Any]:
        """Transport-shaped dict (camelCase keys as the relay expects)."""
        payload: Dict[str, Any] = {
            "distribution": self.distribution.as_payload(),
            "threadId": self.thread_id,
            "text": self.text,
        }
        if self.html is not None:
            payload["html"] = self.html
        payload.update(self.extra)
        return payload
