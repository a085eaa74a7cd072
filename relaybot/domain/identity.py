"""IdentityStore — single owner of the bot's directory identity.

The directory is authoritative: every successful patch replaces the
in-memory snapshot with what the server returned.
"""

from __future__ import annotations

import asyncio
import dataclasses
import sys
from typing import TYPE_CHECKING, Any, Dict

from relaybot.domain.models import BotIdentity, Tag

if TYPE_CHECKING:
    from relaybot.ports.outbound import DirectoryPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class IdentityStore:
    def __init__(self, directory: DirectoryPort, identity: BotIdentity):
        self._directory = directory
        self._identity = identity
        self._write_lock = asyncio.Lock()

    @property
    def current(self) -> BotIdentity:
        return self._identity

    async def patch_user(self, fields: Dict[str, Any]) -> BotIdentity:
        """PATCH the bot user and adopt the returned record."""
        async with self._write_lock:
            data = await self._directory.patch_user(self._identity.id, fields)
            self._identity = BotIdentity.from_dict(data)
        _log(f"[identity] user updated: {sorted(fields)}")
        return self._identity

    async def patch_tag(self, fields: Dict[str, Any]) -> Tag:
        """PATCH the bot's tag and swap it into the snapshot."""
        async with self._write_lock:
            data = await self._directory.patch_tag(self._identity.tag.id, fields)
            tag = Tag(id=str(data.get("id", self._identity.tag.id)), slug=data["slug"])
            self._identity = dataclasses.replace(self._identity, tag=tag)
        _log(f"[identity] tag updated: {tag.slug}")
        return tag
