"""Configuration and shared state."""

import os
import sys
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        return float(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return float(default)


CONFIG = {
    # NLU (API.AI query endpoint)
    "api_ai_token": os.getenv("API_AI_TOKEN", ""),
    "api_ai_url": os.getenv("API_AI_URL", "https://api.api.ai/v1").rstrip("/"),
    "api_ai_version": os.getenv("API_AI_VERSION", "20150910"),
    "api_ai_lang": os.getenv("API_AI_LANG", "en"),
    # Atlas directory service
    "atlas_url": os.getenv("ATLAS_URL", "https://atlas.forsta.io").rstrip("/"),
    "atlas_token": os.getenv("ATLAS_TOKEN", ""),
    # Relay transport
    "bot_addr": os.getenv("RELAY_BOT_ADDR", ""),
    "transport": os.getenv("RELAY_TRANSPORT", ""),
    # Per-request timeout for the HTTP adapters
    "http_timeout": _float_env("HTTP_TIMEOUT_SECONDS", "30"),
}


# ── Typed config ────────────────────────────────────────────


@dataclass
class NluConfig:
    token: str = ""
    base_url: str = "https://api.api.ai/v1"
    protocol_version: str = "20150910"
    lang: str = "en"


@dataclass
class AtlasConfig:
    base_url: str = "https://atlas.forsta.io"
    token: str = ""


@dataclass
class RelayConfig:
    bot_addr: str = ""
    transport: str = ""


@dataclass
class AppConfig:
    """Typed view over CONFIG."""

    http_timeout: float = 30.0
    nlu: NluConfig = field(default_factory=NluConfig)
    atlas: AtlasConfig = field(default_factory=AtlasConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            http_timeout=CONFIG["http_timeout"],
            nlu=NluConfig(
                token=CONFIG["api_ai_token"],
                base_url=CONFIG["api_ai_url"],
                protocol_version=CONFIG["api_ai_version"],
                lang=CONFIG["api_ai_lang"],
            ),
            atlas=AtlasConfig(
                base_url=CONFIG["atlas_url"],
                token=CONFIG["atlas_token"],
            ),
            relay=RelayConfig(
                bot_addr=CONFIG["bot_addr"],
                transport=CONFIG["transport"],
            ),
        )

    def missing(self) -> List[str]:
        """Names of required environment variables that are not set."""
        required = [
            ("API_AI_TOKEN", self.nlu.token),
            ("ATLAS_TOKEN", self.atlas.token),
            ("RELAY_BOT_ADDR", self.relay.bot_addr),
            ("RELAY_TRANSPORT", self.relay.transport),
        ]
        return [name for name, value in required if not value]
