"""BotBrain — message pipeline, no transport dependencies.

inbound message -> addressing gate -> NLU -> intent router -> handler
-> response composer -> send.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any, Dict, Optional

from relaybot.domain import composer
from relaybot.domain.addressing import needs_response
from relaybot.domain.distribution import DistributionCache
from relaybot.domain.errors import HandlerError, NluRequestError, ResolutionError
from relaybot.domain.identity import IdentityStore
from relaybot.domain.models import ResponseMessage
from relaybot.domain.router import IntentRouter
from relaybot.ports.inbound import IncomingMessage

if TYPE_CHECKING:
    from relaybot.ports.outbound import NluPort, SenderPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class BotBrain:
    """Message pipeline over ports, exercised with mock ports in tests.

    Handles:
    - Addressing (should I respond?)
    - NLU invocation via NluPort
    - Intent dispatch and reply composition
    - Identity key change acceptance

    Every per-message failure is contained here; the caller's event loop
    never sees an exception from on_message.
    """

    def __init__(
        self,
        identity: IdentityStore,
        distributions: DistributionCache,
        nlu: NluPort,
        router: IntentRouter,
        sender: Optional[SenderPort] = None,
    ):
        self.identity = identity
        self.distributions = distributions
        self.nlu = nlu
        self.router = router
        self._sender = sender
        self._stats: Dict[str, int] = {
            "received": 0,
            "ignored": 0,
            "dropped": 0,
            "answered": 0,
            "handler_errors": 0,
        }

    @property
    def name(self) -> str:
        return self.identity.current.handle

    def wire(self, sender: SenderPort):
        """Attach the reply sender. Called by the relay listener."""
        self._sender = sender

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    async def on_message(self, msg: IncomingMessage) -> Optional[ResponseMessage]:
        """Handle one incoming message; returns the reply that was sent, if any."""
        self._stats["received"] += 1
        text = msg.text
        if not text:
            _log(f"[{self.name}] empty message (no text) from {msg.source}")
            self._stats["ignored"] += 1
            return None

        try:
            distribution = await self.distributions.resolve(msg.distribution_expression)
        except ResolutionError as e:
            _log(f"[{self.name}] dropping message: {e}")
            self._stats["dropped"] += 1
            return None

        if not needs_response(self.identity.current, msg.source, distribution, text):
            _log(f"[{self.name}] ignoring message not for me: {text[:80]!r}")
            self._stats["ignored"] += 1
            return None

        try:
            result = await self.nlu.query(text, msg.thread_id)
        except NluRequestError as e:
            _log(f"[{self.name}] NLU request failed, no reply sent: {e}")
            self._stats["dropped"] += 1
            return None

        resp = composer.new_response(distribution, msg.thread_id, result)
        handler = self.router.find_handler(result.action)
        if handler is not None:
            try:
                outcome = await self.router.dispatch(handler, result.parameters)
                composer.apply_outcome(resp, outcome)
            except HandlerError as e:
                cause = e.__cause__ or e
                _log(f"[{self.name}] intent handler error ({result.action}): {cause!r}")
                self._stats["handler_errors"] += 1
                composer.apply_failure(resp, e)
        composer.finalize(resp, result.action)

        if not await self._send(resp):
            self._stats["dropped"] += 1
            return None
        self._stats["answered"] += 1
        return resp

    async def _send(self, resp: ResponseMessage) -> bool:
        if self._sender is None:
            _log(f"[{self.name}] no sender wired, reply discarded")
            return False
        try:
            await self._sender.send(resp)
        except Exception as e:
            _log(f"[{self.name}] failed to send reply: {e}")
            return False
        return True

    async def on_keychange(self, event: Any, direction: str = "recv"):
        """Trust a peer's new identity key."""
        addr = getattr(event, "addr", None) or "?"
        _log(f"[{self.name}] auto-accepting new identity key ({direction}): {addr}")
        await event.accept()
