"""relaybot — conversational identity bot for the relay messaging network."""

__version__ = "0.1.0"
