"""Port interfaces (Hexagonal Architecture)."""

from relaybot.ports.inbound import BodyPart, IncomingMessage, parse_envelope, parse_message_event
from relaybot.ports.outbound import (
    DirectoryPort,
    DistributionPort,
    KeyChangeEvent,
    NluPort,
    SenderPort,
)

__all__ = [
    "BodyPart",
    "IncomingMessage",
    "parse_envelope",
    "parse_message_event",
    "DirectoryPort",
    "DistributionPort",
    "KeyChangeEvent",
    "NluPort",
    "SenderPort",
]
