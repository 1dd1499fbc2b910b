"""Entry points used by the owning application to load and unload publishing."""

import logging

from zcpublish.announce.txt_record import ServerInfo
from zcpublish.config.publisher_config import parse_module_arguments
from zcpublish.directory.directory_client import DirectoryClient
from zcpublish.directory.zeroconf_directory_client import ZeroconfDirectoryClient
from zcpublish.endpoints.endpoint_inventory import EndpointInventory
from zcpublish.publisher.zeroconf_publisher import ZeroconfPublisher

_logger = logging.getLogger(__name__)


async def initialize(
    argument: str | None,
    inventory: EndpointInventory,
    *,
    client: DirectoryClient | None = None,
    server_info: ServerInfo | None = None,
    host_name: str | None = None,
) -> ZeroconfPublisher:
    """Creates and starts a publisher for |inventory|.

    Must be awaited on the event loop the owning application runs on.

    Args:
        argument: Module argument string, e.g. "port=4713".
        inventory: Endpoints to announce.
        client: Directory client to publish through. Defaults to a
            `ZeroconfDirectoryClient`.
        server_info: Server metadata for the TXT records. Collected from the
            running process by default.
        host_name: Host name used in service names. Defaults to the local
            host name.

    Raises:
        ConfigurationError: If |argument| is invalid. Nothing is left running.
    """
    config = parse_module_arguments(argument)

    publisher = ZeroconfPublisher(
        config,
        inventory,
        client if client is not None else ZeroconfDirectoryClient(),
        server_info if server_info is not None else ServerInfo.collect(),
        host_name=host_name,
    )
    try:
        publisher.start()
    except Exception:
        _logger.error("Failed to start zeroconf publisher.", exc_info=True)
        await teardown(publisher)
        raise

    _logger.debug("Zeroconf publisher started on port %d.", config.port)
    return publisher


async def teardown(publisher: ZeroconfPublisher | None) -> None:
    """Withdraws all announcements of |publisher| and releases it.

    Accepts None and partially started publishers; calling it twice is a
    no-op the second time.
    """
    if publisher is None:
        return
    await publisher.close()
