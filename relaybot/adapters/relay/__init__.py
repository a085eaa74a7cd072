"""Relay transport glue and process launcher."""

from relaybot.adapters.relay.listener import KeyChange, RelayListener, RelaySender

__all__ = ["KeyChange", "RelayListener", "RelaySender"]
