"""Launcher — builds the bot from configuration and runs the relay listener.

The relay transport is loaded from ``RELAY_TRANSPORT=module:callable``.
The callable receives the AppConfig and returns (or resolves to) a
``(receiver, sender)`` pair; ``receiver.connect()`` is expected to run
until the connection closes. Login and device registration are done by
the transport's own tooling before the bot starts.
"""

import argparse
import asyncio
import importlib
import inspect
import sys
from typing import Any, Callable, Optional, Tuple

from relaybot.adapters.atlas.client import AtlasClient
from relaybot.adapters.nlu.client import NluClient
from relaybot.adapters.relay.listener import RelayListener
from relaybot.config import AppConfig
from relaybot.domain.agent import BotBrain
from relaybot.domain.distribution import DistributionCache
from relaybot.domain.errors import ConfigError, DirectoryError
from relaybot.domain.handlers import NameHandlers
from relaybot.domain.identity import IdentityStore
from relaybot.domain.models import BotIdentity
from relaybot.domain.router import IntentRouter


def _log(msg: str):
    print(msg, file=sys.stderr)


def load_transport_factory(path: str) -> Callable[..., Any]:
    """Import ``package.module:callable``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"RELAY_TRANSPORT must look like 'module:callable', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import relay transport module {module_name!r}: {e}") from e
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigError(f"{path!r} is not a callable")
    return factory


async def create_transport(factory: Callable[..., Any], config: AppConfig) -> Tuple[Any, Any]:
    result = factory(config)
    if inspect.isawaitable(result):
        result = await result
    receiver, sender = result
    return receiver, sender


async def load_identity(atlas: AtlasClient, addr: str) -> BotIdentity:
    users = await atlas.get_users([addr])
    if not users:
        raise DirectoryError(f"Bot user {addr} not found in directory")
    return BotIdentity.from_dict(users[0])


async def log_devices(atlas: AtlasClient):
    try:
        devices = await atlas.get_devices()
    except DirectoryError as e:
        _log(f"Could not list devices: {e}")
        return
    _log(f"{len(devices)} device(s) registered to this account")
    for d in devices:
        _log(f"    {d.get('id')} {d.get('name', '')}")


def build_brain(
    identity: IdentityStore,
    atlas: AtlasClient,
    nlu: NluClient,
) -> BotBrain:
    handlers = NameHandlers(identity)
    return BotBrain(
        identity=identity,
        distributions=DistributionCache(atlas),
        nlu=nlu,
        router=IntentRouter(handlers.capabilities()),
    )


async def launch(config: Optional[AppConfig] = None):
    """Build everything and run until the transport disconnects."""
    config = config or AppConfig.from_env()
    missing = config.missing()
    if missing:
        raise ConfigError(f"Missing configuration: {', '.join(missing)}")

    factory = load_transport_factory(config.relay.transport)
    atlas = AtlasClient(
        token=config.atlas.token,
        base_url=config.atlas.base_url,
        timeout=config.http_timeout,
    )
    nlu = NluClient(
        token=config.nlu.token,
        base_url=config.nlu.base_url,
        protocol_version=config.nlu.protocol_version,
        lang=config.nlu.lang,
        timeout=config.http_timeout,
    )

    bot = await load_identity(atlas, config.relay.bot_addr)
    await log_devices(atlas)
    identity = IdentityStore(atlas, bot)
    brain = build_brain(identity, atlas, nlu)
    _log(f"Registered intents: {', '.join(brain.router.intents)}")

    receiver, sender = await create_transport(factory, config)
    listener = RelayListener(brain, receiver, sender)
    try:
        await listener.run()
    finally:
        _log(f"Listener stopped: {brain.stats()}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the relay identity bot")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only validate configuration, don't start the bot",
    )
    args = parser.parse_args(argv)

    config = AppConfig.from_env()
    if args.check:
        missing = config.missing()
        if missing:
            _log(f"Missing configuration: {', '.join(missing)}")
            sys.exit(1)
        _log("Configuration is valid")
        return

    try:
        asyncio.run(launch(config))
    except KeyboardInterrupt:
        _log("Stopped by user")
    except (ConfigError, DirectoryError) as e:
        _log(f"Cannot start bot: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
