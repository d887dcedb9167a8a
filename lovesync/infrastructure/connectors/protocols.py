"""Service connector configuration types.

Each connector module exposes `get_connector_config()` returning a
ConnectorConfig, which is how the connector package discovers services
without a hard-coded list.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from lovesync.config.settings import Settings
    from lovesync.domain.interfaces import TrackSource


class ConnectorConfig(TypedDict):
    """Type definition for connector configuration.

    Attributes:
        description: Short human-readable name of the service
        factory: Builds the connector from settings, or returns None when the
            credentials it needs are not configured
    """

    description: str
    factory: Callable[["Settings"], "TrackSource | None"]
