"""Connection to the DNS-SD directory service that records are published to.

`DirectoryClient` is the contract the announcement logic relies on;
`ZeroconfDirectoryClient` implements it with python-zeroconf.
"""

from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.directory_client import (
    DirectoryClient,
    DirectoryError,
    EntryGroupCallback,
    EntryGroupHandle,
)
from zcpublish.directory.service_description import (
    SERVICE_TYPE_SERVER,
    SERVICE_TYPE_SINK,
    SERVICE_TYPE_SOURCE,
    ServiceDescription,
)
from zcpublish.directory.zeroconf_directory_client import ZeroconfDirectoryClient

__all__ = [
    "ClientState",
    "DirectoryClient",
    "DirectoryError",
    "EntryGroupCallback",
    "EntryGroupHandle",
    "EntryGroupState",
    "SERVICE_TYPE_SERVER",
    "SERVICE_TYPE_SINK",
    "SERVICE_TYPE_SOURCE",
    "ServiceDescription",
    "ZeroconfDirectoryClient",
]
