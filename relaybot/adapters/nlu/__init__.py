"""NLU adapters."""

from relaybot.adapters.nlu.client import NluClient

__all__ = ["NluClient"]
