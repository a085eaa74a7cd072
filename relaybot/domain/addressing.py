"""Addressing policy — does an incoming message call for a reply?

Pure Python, no I/O.
"""

import re

from relaybot.domain.models import BotIdentity, Distribution


def _mentions(text: str, name: str) -> bool:
    # Empty names would match every message.
    if not name:
        return False
    return re.search(re.escape(name), text, re.IGNORECASE) is not None


def is_direct(bot: BotIdentity, sender_id: str, distribution: Distribution) -> bool:
    """True when nobody but the bot and the sender is in the distribution."""
    others = set(distribution.members) - {bot.id, sender_id}
    return not others


def needs_response(
    bot: BotIdentity,
    sender_id: str,
    distribution: Distribution,
    text: str,
) -> bool:
    """Direct messages always get a reply; group messages only when the bot is named."""
    if is_direct(bot, sender_id, distribution):
        return True
    return any(
        _mentions(text, name)
        for name in (bot.first_name, bot.last_name, bot.tag.slug)
    )
