"""zcpublish announces local audio endpoints over DNS-SD (zeroconf).

One service record is kept per sink and source exposed by the owning
application, plus one for the server itself. Records follow endpoint changes,
are renamed on name collisions, and are withdrawn and republished as the
connection to the directory service comes and goes.
"""

from zcpublish._version import __version__
from zcpublish.announce import ServerInfo, ServiceRegistry
from zcpublish.config import ConfigurationError, PublisherConfig
from zcpublish.directory import ClientState, EntryGroupState, ZeroconfDirectoryClient
from zcpublish.endpoints import (
    ChannelMap,
    Endpoint,
    EndpointId,
    EndpointKind,
    InMemoryEndpointInventory,
    SampleFormat,
    SampleSpec,
)
from zcpublish.publisher import ZeroconfPublisher, initialize, teardown

__all__ = [
    "__version__",
    "ChannelMap",
    "ClientState",
    "ConfigurationError",
    "Endpoint",
    "EndpointId",
    "EndpointKind",
    "EntryGroupState",
    "InMemoryEndpointInventory",
    "PublisherConfig",
    "SampleFormat",
    "SampleSpec",
    "ServerInfo",
    "ServiceRegistry",
    "ZeroconfDirectoryClient",
    "ZeroconfPublisher",
    "initialize",
    "teardown",
]
