"""An EndpointInventory backed by a plain dictionary."""

import dataclasses
import logging
from collections.abc import Iterable

from zcpublish.endpoints.endpoint import Endpoint, EndpointId, EndpointKind
from zcpublish.endpoints.endpoint_inventory import EndpointInventory

_logger = logging.getLogger(__name__)


class InMemoryEndpointInventory(EndpointInventory):
    """Keeps endpoints in memory and fires the lifecycle hooks on mutation.

    Used by applications that manage their own endpoint list, and by tests.
    """

    def __init__(self, endpoints: Iterable[Endpoint] | None = None) -> None:
        self.__endpoints: dict[EndpointId, Endpoint] = {}
        self.__observers: list[EndpointInventory.Observer] = []

        for endpoint in endpoints or []:
            if endpoint.id in self.__endpoints:
                raise ValueError(f"Duplicate endpoint {endpoint.id}.")
            self.__endpoints[endpoint.id] = endpoint

    def endpoints(self) -> list[Endpoint]:
        sinks = [
            e for e in self.__endpoints.values() if e.kind == EndpointKind.SINK
        ]
        sources = [
            e for e in self.__endpoints.values() if e.kind == EndpointKind.SOURCE
        ]
        return sinks + sources

    def get(self, endpoint_id: EndpointId) -> Endpoint | None:
        return self.__endpoints.get(endpoint_id)

    def connect(self, observer: EndpointInventory.Observer) -> None:
        if observer is None:
            raise ValueError("observer cannot be None.")
        if observer not in self.__observers:
            self.__observers.append(observer)

    def disconnect(self, observer: EndpointInventory.Observer) -> None:
        if observer in self.__observers:
            self.__observers.remove(observer)

    def add(self, endpoint: Endpoint) -> None:
        """Adds |endpoint| and notifies observers.

        Raises:
            ValueError: If an endpoint with the same id already exists.
        """
        if endpoint.id in self.__endpoints:
            raise ValueError(f"Endpoint {endpoint.id} already exists.")
        self.__endpoints[endpoint.id] = endpoint
        _logger.debug("Endpoint %s (%s) added.", endpoint.id, endpoint.name)
        for observer in list(self.__observers):
            observer.on_endpoint_added(endpoint)

    def set_description(
        self, endpoint_id: EndpointId, description: str | None
    ) -> Endpoint:
        """Replaces the description of an endpoint and notifies observers.

        Returns:
            The updated endpoint snapshot.

        Raises:
            KeyError: If no such endpoint exists.
        """
        current = self.__endpoints[endpoint_id]
        if current.description == description:
            return current

        updated = dataclasses.replace(current, description=description)
        self.__endpoints[endpoint_id] = updated
        for observer in list(self.__observers):
            observer.on_endpoint_description_changed(updated)
        return updated

    def remove(self, endpoint_id: EndpointId) -> None:
        """Notifies observers, then forgets the endpoint. No-op if unknown."""
        endpoint = self.__endpoints.get(endpoint_id)
        if endpoint is None:
            return

        for observer in list(self.__observers):
            observer.on_endpoint_removed(endpoint)
        del self.__endpoints[endpoint_id]
        _logger.debug("Endpoint %s (%s) removed.", endpoint_id, endpoint.name)
