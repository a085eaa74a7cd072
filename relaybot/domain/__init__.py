"""Domain layer — pure Python, no framework dependencies."""

from relaybot.domain.models import (
    BotIdentity,
    Distribution,
    NluResult,
    Org,
    ResponseMessage,
    Tag,
)
from relaybot.domain.errors import (
    ConfigError,
    DirectoryError,
    HandlerError,
    NluRequestError,
    RelayBotError,
    ResolutionError,
)
from relaybot.domain.addressing import needs_response
from relaybot.domain.distribution import DistributionCache
from relaybot.domain.identity import IdentityStore
from relaybot.domain.handlers import NameHandlers
from relaybot.domain.router import IntentRouter, intent_key
from relaybot.domain.agent import BotBrain

__all__ = [
    "BotIdentity",
    "Distribution",
    "NluResult",
    "Org",
    "ResponseMessage",
    "Tag",
    "ConfigError",
    "DirectoryError",
    "HandlerError",
    "NluRequestError",
    "RelayBotError",
    "ResolutionError",
    "needs_response",
    "DistributionCache",
    "IdentityStore",
    "NameHandlers",
    "IntentRouter",
    "intent_key",
    "BotBrain",
]
