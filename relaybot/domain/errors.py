"""Error taxonomy for per-message failures.

None of these are fatal to the process; the brain isolates each failure
to the message being handled.
"""


class RelayBotError(Exception):
    """Base error for the bot."""


class ConfigError(RelayBotError):
    """Required configuration is missing or invalid."""


class ResolutionError(RelayBotError):
    """A distribution expression could not be resolved."""


class NluRequestError(RelayBotError):
    """The NLU service reported an error or the connection dropped."""


class DirectoryError(RelayBotError):
    """A directory (user/tag) request failed."""


class HandlerError(RelayBotError):
    """An intent handler failed; the message is shown to the user."""
