"""Atlas directory adapters."""

from relaybot.adapters.atlas.client import AtlasClient

__all__ = ["AtlasClient"]
