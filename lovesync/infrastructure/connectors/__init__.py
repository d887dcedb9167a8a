"""Service connectors for music platforms that keep a loved-tracks list."""

import importlib
import pkgutil
import sys
from typing import TYPE_CHECKING

from lovesync.config import get_logger
from lovesync.infrastructure.connectors.lastfm import LastFMConnector
from lovesync.infrastructure.connectors.listenbrainz import ListenBrainzConnector
from lovesync.infrastructure.connectors.protocols import ConnectorConfig
from lovesync.infrastructure.connectors.spotify import SpotifyConnector
from lovesync.infrastructure.connectors.subsonic import SubsonicConnector

if TYPE_CHECKING:
    from lovesync.config.settings import Settings
    from lovesync.domain.interfaces import TrackSource

logger = get_logger(__name__)

# Connector registry cache
_CONNECTORS: dict[str, ConnectorConfig] = {}


def discover_connectors() -> dict[str, ConnectorConfig]:
    """Discover and register connector configurations.

    Loads every module in this package that implements
    `get_connector_config()`, keyed by module name. The module name is the
    service name used on the command line.

    Returns:
        dict[str, ConnectorConfig]: Connector names mapped to their configurations
    """
    if _CONNECTORS:
        return _CONNECTORS

    module = sys.modules[__name__]
    for _, name, ispkg in pkgutil.iter_modules(
        module.__path__,
        prefix=f"{module.__name__}.",
    ):
        if ispkg:
            continue

        connector_module = importlib.import_module(name)
        if hasattr(connector_module, "get_connector_config"):
            module_name = name.rsplit(".", 1)[-1]
            _CONNECTORS[module_name] = connector_module.get_connector_config()
            logger.debug(f"Registered connector: {module_name}")

    logger.debug(
        f"Discovered {len(_CONNECTORS)} connectors: {', '.join(_CONNECTORS.keys())}",
    )
    return _CONNECTORS


def build_sources(config: "Settings") -> dict[str, "TrackSource"]:
    """Instantiate every connector whose credentials are configured."""
    sources: dict[str, TrackSource] = {}
    for name, connector in discover_connectors().items():
        source = connector["factory"](config)
        if source is None:
            logger.debug(f"Connector {name} not configured, skipping")
            continue
        sources[name] = source
    return sources


__all__ = [
    "ConnectorConfig",
    "LastFMConnector",
    "ListenBrainzConnector",
    "SpotifyConnector",
    "SubsonicConnector",
    "build_sources",
    "discover_connectors",
]
