"""Intent router — NLU action name -> handler.

The dispatch table is built once from an explicit list of capability
names; it is read-only afterwards.
"""

import inspect
import re
import sys
from types import MappingProxyType
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from relaybot.domain.errors import HandlerError

HandlerResult = Union[str, Mapping[str, Any], None]
Handler = Callable[[Mapping[str, Any]], Any]

CAPABILITY_PREFIX = "handle."

_WORD_BOUNDARY_RE = re.compile(r"([A-Z])")


def _log(msg: str):
    print(msg, file=sys.stderr)


def intent_key(capability_name: str) -> str:
    """'HandleNameAgentGet' -> 'name.agent.get'"""
    dotted = _WORD_BOUNDARY_RE.sub(lambda m: "." + m.group(1).lower(), capability_name)
    dotted = dotted.lstrip(".")
    if dotted.startswith(CAPABILITY_PREFIX):
        dotted = dotted[len(CAPABILITY_PREFIX):]
    return dotted


class IntentRouter:
    """Exact-match lookup from intent name to handler."""

    def __init__(self, capabilities: Iterable[Tuple[str, Handler]]):
        table = {}
        for name, handler in capabilities:
            key = intent_key(name)
            if key in table:
                raise ValueError(f"Duplicate handler for intent {key!r}")
            table[key] = handler
        self._handlers: Mapping[str, Handler] = MappingProxyType(table)

    @property
    def intents(self) -> List[str]:
        return sorted(self._handlers)

    def find_handler(self, intent: str) -> Optional[Handler]:
        handler = self._handlers.get(intent)
        if handler is not None:
            _log(f"[router] using handler {getattr(handler, '__name__', handler)} for {intent!r}")
        else:
            _log(f"[router] no handler for {intent!r}")
        return handler

    async def dispatch(self, handler: Handler, params: Mapping[str, Any]) -> HandlerResult:
        """Run a handler (sync or async); any failure surfaces as HandlerError."""
        try:
            result = handler(params)
            if inspect.isawaitable(result):
                result = await result
        except HandlerError:
            raise
        except Exception as e:
            raise HandlerError(str(e) or type(e).__name__) from e
        return result
