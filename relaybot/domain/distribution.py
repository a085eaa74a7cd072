"""Distribution cache — memoized expression resolution.

Entries are never evicted or invalidated for the lifetime of the process.
Expressions are low-cardinality per deployment, and a membership change
in an existing thread is only picked up after a restart.
"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Dict

from relaybot.domain.errors import ResolutionError
from relaybot.domain.models import Distribution

if TYPE_CHECKING:
    from relaybot.ports.outbound import DistributionPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class DistributionCache:
    """Resolve distribution expressions once per process."""

    def __init__(self, resolver: DistributionPort):
        self._resolver = resolver
        self._cache: Dict[str, Distribution] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, expression: str) -> bool:
        return expression in self._cache

    async def resolve(self, expression: str) -> Distribution:
        cached = self._cache.get(expression)
        if cached is not None:
            return cached

        # One in-flight resolution per expression; later waiters hit the cache.
        lock = self._locks.setdefault(expression, asyncio.Lock())
        async with lock:
            cached = self._cache.get(expression)
            if cached is not None:
                return cached
            try:
                distribution = await self._resolver.resolve_expression(expression)
            except ResolutionError:
                raise
            except Exception as e:
                raise ResolutionError(f"Failed to resolve {expression!r}: {e}") from e
            self._cache[expression] = distribution
            _log(f"[dist] resolved {expression!r} -> {len(distribution.members)} member(s)")
        self._locks.pop(expression, None)
        return distribution
