"""Relay adapter — bridges a relay transport's event stream to BotBrain.

The transport (encryption, sessions, delivery) lives outside this
package. Anything with this shape plugs in:

    receiver.add_event_listener(name, callback)   # "message", "keychange"
    await receiver.connect()
    sender.add_event_listener(name, callback)     # "keychange"
    await sender.send(payload: dict)
"""

import inspect
import sys
from typing import Any

from relaybot.domain.agent import BotBrain
from relaybot.domain.models import ResponseMessage
from relaybot.ports.inbound import parse_message_event


def _log(msg: str):
    print(msg, file=sys.stderr)


class RelaySender:
    """SenderPort implementation over a relay message sender."""

    def __init__(self, sender: Any):
        self._sender = sender

    async def send(self, message: ResponseMessage) -> None:
        result = self._sender.send(message.as_payload())
        if inspect.isawaitable(result):
            await result


class KeyChange:
    """Normalizes relay key change events (``keyError.addr`` + ``accept()``)."""

    def __init__(self, event: Any):
        self._event = event
        key_error = getattr(event, "keyError", None) or getattr(event, "key_error", None)
        self.addr = getattr(key_error, "addr", None) or getattr(event, "addr", None) or "?"

    async def accept(self) -> None:
        result = self._event.accept()
        if inspect.isawaitable(result):
            await result


class RelayListener:
    """Registers the brain's callbacks on a relay receiver/sender pair."""

    def __init__(self, brain: BotBrain, receiver: Any, sender: Any):
        self._brain = brain
        self._receiver = receiver
        self._sender = sender
        self._attached = False

    def attach(self):
        if self._attached:
            return
        self._brain.wire(RelaySender(self._sender))
        self._receiver.add_event_listener("message", self.on_message)
        self._receiver.add_event_listener("keychange", self.on_receiver_keychange)
        self._sender.add_event_listener("keychange", self.on_sender_keychange)
        self._attached = True

    async def on_message(self, event: Any):
        try:
            msg = parse_message_event(event)
        except ValueError as e:
            _log(f"[relay] skipping unparseable message: {e}")
            return
        await self._brain.on_message(msg)

    async def on_receiver_keychange(self, event: Any):
        await self._brain.on_keychange(KeyChange(event), direction="recv")

    async def on_sender_keychange(self, event: Any):
        await self._brain.on_keychange(KeyChange(event), direction="send")

    async def run(self):
        """Attach callbacks and connect the receiver."""
        self.attach()
        _log(f"[relay] starting message listener for: {self._brain.name}")
        result = self._receiver.connect()
        if inspect.isawaitable(result):
            await result
