"""TXT record contents attached to every announcement."""

import dataclasses
import secrets

from zcpublish._version import __version__
from zcpublish.endpoints.endpoint import Endpoint
from zcpublish.util.host_info import get_fqdn, get_user_name

SERVER_VERSION = f"zcpublish {__version__}"


@dataclasses.dataclass(frozen=True)
class ServerInfo:
    """Server-scoped metadata, identical for every record of one process.

    Attributes:
        version: Server name and version string.
        user_name: Local user the server runs as.
        fqdn: Fully-qualified domain name of the host.
        cookie: 32-bit session cookie identifying this server instance.
    """

    version: str
    user_name: str
    fqdn: str
    cookie: int

    def __post_init__(self) -> None:
        if self.cookie < 0 or self.cookie > 0xFFFFFFFF:
            raise ValueError(f"cookie must fit in 32 bits, got {self.cookie}.")

    @classmethod
    def collect(
        cls, version: str = SERVER_VERSION, cookie: int | None = None
    ) -> "ServerInfo":
        """Gathers the server metadata of the running process.

        A fresh random cookie is drawn unless |cookie| is given.
        """
        return cls(
            version=version,
            user_name=get_user_name(),
            fqdn=get_fqdn(),
            cookie=secrets.randbits(32) if cookie is None else cookie,
        )


def make_server_txt(server: ServerInfo) -> dict[str, str]:
    """TXT entries of the main service record."""
    return {
        "server-version": server.version,
        "user-name": server.user_name,
        "fqdn": server.fqdn,
        "cookie": f"0x{server.cookie:08x}",
    }


def make_endpoint_txt(server: ServerInfo, endpoint: Endpoint) -> dict[str, str]:
    """TXT entries of an endpoint record: the server entries plus the device's."""
    txt = make_server_txt(server)
    txt["device"] = endpoint.name
    txt["rate"] = str(endpoint.sample_spec.rate)
    txt["channels"] = str(endpoint.sample_spec.channels)
    txt["format"] = str(endpoint.sample_spec.format)
    txt["channel_map"] = str(endpoint.channel_map)
    return txt
