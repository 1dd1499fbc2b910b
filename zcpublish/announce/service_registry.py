"""ServiceRegistry: the set of announcements kept in sync with the endpoints."""

import logging
from collections.abc import Iterator

from zcpublish.announce.entry_group import EntryGroup
from zcpublish.announce.service_record import ServiceRecord
from zcpublish.announce.txt_record import (
    ServerInfo,
    make_endpoint_txt,
    make_server_txt,
)
from zcpublish.directory.directory_client import DirectoryClient
from zcpublish.directory.service_description import (
    SERVICE_TYPE_SERVER,
    SERVICE_TYPE_SINK,
    SERVICE_TYPE_SOURCE,
    ServiceDescription,
)
from zcpublish.directory.service_name import (
    make_endpoint_service_name,
    make_server_service_name,
)
from zcpublish.endpoints.endpoint import Endpoint, EndpointId, EndpointKind
from zcpublish.endpoints.endpoint_inventory import EndpointInventory
from zcpublish.util.host_info import get_host_name

_logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Maps endpoints to their `ServiceRecord` and owns the main service record.

    Holds at most one record per endpoint. A record whose commit fails is
    evicted; it is only published again once its endpoint triggers a new
    commit.
    """

    def __init__(
        self,
        client: DirectoryClient,
        inventory: EndpointInventory,
        server_info: ServerInfo,
        port: int,
        *,
        host_name: str | None = None,
    ) -> None:
        """Initializes an empty registry.

        Args:
            client: Directory client all records are published through.
            inventory: The endpoints to announce; resolves endpoint ids.
            server_info: Server metadata attached to every record.
            port: Port announced by every record.
            host_name: Host name used in service names. Defaults to the local
                host name.
        """
        if client is None:
            raise ValueError("client cannot be None for ServiceRegistry.")
        if inventory is None:
            raise ValueError("inventory cannot be None for ServiceRegistry.")

        self.__client = client
        self.__inventory = inventory
        self.__server_info = server_info
        self.__port = port
        self.__host_name = host_name if host_name is not None else get_host_name()

        self.__records: dict[EndpointId, ServiceRecord] = {}
        self.__main_group = EntryGroup(
            client,
            make_server_service_name(server_info.user_name, self.__host_name),
            self.__describe_server,
        )

    @property
    def main_group(self) -> EntryGroup:
        """Entry group of the record announcing the server itself."""
        return self.__main_group

    def __len__(self) -> int:
        return len(self.__records)

    def __contains__(self, endpoint_id: object) -> bool:
        return endpoint_id in self.__records

    def records(self) -> Iterator[ServiceRecord]:
        return iter(list(self.__records.values()))

    def get(self, endpoint_id: EndpointId) -> ServiceRecord | None:
        return self.__records.get(endpoint_id)

    def derive_name(self, endpoint: Endpoint) -> str:
        """Returns the service name |endpoint| is announced under by default."""
        return make_endpoint_service_name(
            self.__server_info.user_name, self.__host_name, endpoint
        )

    def get_or_create(self, endpoint: Endpoint) -> ServiceRecord:
        """Returns the record of |endpoint|, creating an uncommitted one if needed."""
        record = self.__records.get(endpoint.id)
        if record is not None:
            return record

        endpoint_id = endpoint.id
        name = self.derive_name(endpoint)
        entry_group = EntryGroup(
            self.__client,
            name,
            lambda n: self.__describe_endpoint(endpoint_id, n),
            on_failure=lambda g: self.__on_record_failed(endpoint_id, g),
        )
        record = ServiceRecord(endpoint_id, name, entry_group)
        self.__records[endpoint_id] = record
        return record

    def refresh(self, endpoint: Endpoint) -> ServiceRecord:
        """Returns the record of |endpoint|, renamed if its description changed."""
        record = self.get_or_create(endpoint)
        if record.rebase(self.derive_name(endpoint)):
            _logger.debug(
                "Description of %s changed, now announced as %s.",
                endpoint.id,
                record.display_name,
            )
        return record

    def remove(self, endpoint_id: EndpointId) -> bool:
        """Withdraws and evicts the record of |endpoint_id|.

        Returns:
            False if there was no such record.
        """
        record = self.__records.pop(endpoint_id, None)
        if record is None:
            return False

        record.entry_group.withdraw()
        return True

    def publish_all(self) -> None:
        """Commits every endpoint in the inventory and the main service record.

        Records that are already registering or established are skipped.
        """
        _logger.debug("Publishing services in Zeroconf")

        for endpoint in list(self.__inventory.endpoints()):
            self.get_or_create(endpoint).entry_group.commit()

        self.__main_group.commit()

    def unpublish_all(self, hard: bool) -> None:
        """Withdraws every announcement while keeping the records tracked.

        Args:
            hard: Release the handles (used when the connection is going
                away). Otherwise they are only reset and reused later.
        """
        _logger.debug("Unpublishing services in Zeroconf")

        groups = [record.entry_group for record in self.__records.values()]
        groups.append(self.__main_group)
        for group in groups:
            if hard:
                group.withdraw()
            else:
                group.reset()

    def clear(self) -> None:
        """Withdraws and forgets every record, including the main one."""
        while self.__records:
            endpoint_id = next(iter(self.__records))
            self.remove(endpoint_id)
        self.__main_group.withdraw()

    def __describe_endpoint(
        self, endpoint_id: EndpointId, name: str
    ) -> ServiceDescription:
        endpoint = self.__inventory.get(endpoint_id)
        if endpoint is None:
            raise LookupError(f"Endpoint {endpoint_id} no longer exists.")

        return ServiceDescription(
            name=name,
            service_type=(
                SERVICE_TYPE_SINK
                if endpoint.kind == EndpointKind.SINK
                else SERVICE_TYPE_SOURCE
            ),
            port=self.__port,
            txt=make_endpoint_txt(self.__server_info, endpoint),
        )

    def __describe_server(self, name: str) -> ServiceDescription:
        return ServiceDescription(
            name=name,
            service_type=SERVICE_TYPE_SERVER,
            port=self.__port,
            txt=make_server_txt(self.__server_info),
        )

    def __on_record_failed(self, endpoint_id: EndpointId, group: EntryGroup) -> None:
        record = self.__records.get(endpoint_id)
        if record is None or record.entry_group is not group:
            return
        del self.__records[endpoint_id]
        _logger.debug(
            "Dropped service %s of %s after a failed commit.",
            record.display_name,
            endpoint_id,
        )
