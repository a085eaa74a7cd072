"""Identity intent handlers — get, change, and delete the bot's names.

Every handler takes the NLU parameters and returns reply text, a dict of
response fields, or None to keep the NLU's own fulfillment text.
"""

import random
import re
import sys
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from relaybot.domain.identity import IdentityStore

FIRST = "first name"
MIDDLE = "middle name"
LAST = "last name"
TAG = "tag"

# NLU `type` parameter -> BotIdentity / directory field
NAME_FIELDS: Dict[str, str] = {
    FIRST: "first_name",
    MIDDLE: "middle_name",
    LAST: "last_name",
}

_WHITESPACE_RE = re.compile(r"\s+")


def _log(msg: str):
    print(msg, file=sys.stderr)


def slugify(name: str) -> str:
    """'New  Name' -> 'new.name'"""
    return _WHITESPACE_RE.sub(".", name.strip()).lower()


def split_name(name: str) -> Dict[str, str]:
    """Assign up to three whitespace-separated tokens to first/middle/last."""
    names = name.split(None, 2)
    if not names:
        return {}
    fields = {"first_name": names[0]}
    if len(names) == 2:
        fields["last_name"] = names[1]
    elif len(names) == 3:
        fields["middle_name"] = names[1]
        fields["last_name"] = names[2]
    return fields


class NameHandlers:
    """Handlers for the ``name.agent.*`` intents."""

    def __init__(self, identity: IdentityStore, rng: Optional[random.Random] = None):
        self._identity = identity
        self._rng = rng or random.Random()

    def capabilities(self) -> List[Tuple[str, Callable]]:
        """Statically declared capability names for the intent router."""
        return [
            ("HandleNameAgentGet", self.get_name),
            ("HandleNameAgentChange", self.change_name),
            ("HandleNameAgentDelete", self.delete_name),
        ]

    def _confirm(self) -> str:
        return f"Okay, I'm now {self._identity.current.full_name}"

    def get_name(self, params: Mapping[str, Any]) -> Optional[str]:
        bot = self._identity.current
        kind = params.get("type")
        if kind:
            if kind in NAME_FIELDS:
                return getattr(bot, NAME_FIELDS[kind]) or f"I don't have a {kind}."
            if kind == TAG:
                return bot.handle
            _log(f"[handlers] unhandled name type for get: {kind!r}")
            return None

        chance = self._rng.random()
        if chance < 0.33:
            return f"You can call me {bot.first_name}"
        elif chance < 0.66:
            return f"You are speaking with {bot.first_name} {bot.last_name}".rstrip()
        return f"My tag is {bot.handle}"

    async def change_name(self, params: Mapping[str, Any]) -> str:
        _log(f"[handlers] name change request: {dict(params)}")
        kind = params.get("type")
        name = (params.get("name") or "").strip()
        if not name:
            return "To what?"

        if kind:
            if kind == TAG:
                tag = await self._identity.patch_tag({"slug": slugify(name)})
                return f"Okay, my tag is now @{tag.slug}:{self._identity.current.org.slug}"
            if kind not in NAME_FIELDS:
                _log(f"[handlers] unhandled name type for change: {kind!r}")
                updates = {}
            else:
                updates = {NAME_FIELDS[kind]: name}
        else:
            updates = split_name(name)

        await self._identity.patch_user(updates)
        return self._confirm()

    async def delete_name(self, params: Mapping[str, Any]) -> str:
        kind = params.get("type")
        if not kind:
            return "I can't delete my whole name silly."
        if kind == FIRST:
            return "I must have a first name!"
        if kind == LAST:
            return "I must have a last name!"
        if kind == TAG:
            return "I must have a tag!"
        updates = {"middle_name": ""}
        if kind != MIDDLE:
            _log(f"[handlers] unhandled name type for delete: {kind!r}")
            updates = {}

        await self._identity.patch_user(updates)
        return self._confirm()
