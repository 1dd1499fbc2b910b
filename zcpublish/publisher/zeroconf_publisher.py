"""ZeroconfPublisher: keeps announcements in sync with endpoints and the client."""

import logging

from zcpublish.announce.service_registry import ServiceRegistry
from zcpublish.announce.txt_record import ServerInfo
from zcpublish.config.publisher_config import PublisherConfig
from zcpublish.directory.client_state import ClientState
from zcpublish.directory.directory_client import DirectoryClient
from zcpublish.endpoints.endpoint import Endpoint
from zcpublish.endpoints.endpoint_inventory import EndpointInventory

_logger = logging.getLogger(__name__)


class ZeroconfPublisher(DirectoryClient.Observer, EndpointInventory.Observer):
    """Reacts to endpoint lifecycle hooks and directory client state changes.

    Endpoint added / description changed: make sure the endpoint has a record
    and commit it. Endpoint removed: evict its record.
    Client RUNNING: publish everything. COLLISION: reset everything, keeping
    the records for a later commit. DISCONNECTED: release everything and
    recreate the connection.

    All callbacks are expected on the single event loop thread.
    """

    def __init__(
        self,
        config: PublisherConfig,
        inventory: EndpointInventory,
        client: DirectoryClient,
        server_info: ServerInfo,
        *,
        host_name: str | None = None,
    ) -> None:
        """Initializes the publisher. Nothing is announced before `start()`.

        Args:
            config: Module configuration; its port goes into every record.
            inventory: Endpoints to announce and the source of their
                lifecycle hooks.
            client: Directory client the records are published through.
                The publisher owns it and closes it in `close()`.
            server_info: Server facts for names and TXT records.
            host_name: Host name used in service names. Defaults to the
                local host name.
        """
        if config is None:
            raise ValueError("config cannot be None for ZeroconfPublisher.")
        if inventory is None:
            raise ValueError("inventory cannot be None for ZeroconfPublisher.")
        if client is None:
            raise ValueError("client cannot be None for ZeroconfPublisher.")

        self.__config = config
        self.__inventory: EndpointInventory | None = inventory
        self.__client: DirectoryClient | None = client
        self.__registry: ServiceRegistry | None = ServiceRegistry(
            client,
            inventory,
            server_info,
            config.port,
            host_name=host_name,
        )
        self.__is_hooked = False

    @property
    def config(self) -> PublisherConfig:
        return self.__config

    @property
    def registry(self) -> ServiceRegistry | None:
        """The registry, or None once the publisher has been closed."""
        return self.__registry

    @property
    def client(self) -> DirectoryClient | None:
        """The directory client, or None once the publisher has been closed."""
        return self.__client

    def start(self) -> None:
        """Hooks into the inventory and connects the directory client."""
        if self.__inventory is None or self.__client is None:
            raise RuntimeError("ZeroconfPublisher has already been closed.")

        self.__inventory.connect(self)
        self.__is_hooked = True
        self.__client.start(self)

    async def close(self) -> None:
        """Withdraws every announcement and releases the client.

        Safe to call on a publisher that was never started, and more than once.
        """
        if self.__inventory is not None and self.__is_hooked:
            self.__inventory.disconnect(self)
        self.__is_hooked = False
        self.__inventory = None

        if self.__registry is not None:
            self.__registry.clear()
            self.__registry = None

        client = self.__client
        self.__client = None
        if client is not None:
            await client.close()

    # --- EndpointInventory.Observer ---

    def on_endpoint_added(self, endpoint: Endpoint) -> None:
        self.__publish_endpoint(endpoint)

    def on_endpoint_description_changed(self, endpoint: Endpoint) -> None:
        self.__publish_endpoint(endpoint)

    def on_endpoint_removed(self, endpoint: Endpoint) -> None:
        if self.__registry is None:
            return
        self.__registry.remove(endpoint.id)

    # --- DirectoryClient.Observer ---

    def _on_client_state_changed(self, state: ClientState) -> None:
        if self.__registry is None or self.__client is None:
            return

        if state == ClientState.RUNNING:
            self.__registry.publish_all()

        elif state == ClientState.COLLISION:
            _logger.debug("Host name collision")
            self.__registry.unpublish_all(hard=False)

        elif state == ClientState.DISCONNECTED:
            _logger.debug("Directory service disconnected.")
            self.__registry.unpublish_all(hard=True)
            self.__client.restart()

    def __publish_endpoint(self, endpoint: Endpoint) -> None:
        if self.__registry is None:
            return
        record = self.__registry.refresh(endpoint)
        record.entry_group.commit(force=True)
