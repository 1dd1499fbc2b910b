"""EndpointInventory ABC and observer interface for endpoint lifecycle hooks."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from zcpublish.endpoints.endpoint import Endpoint, EndpointId


class EndpointInventory(ABC):
    """The owning application's set of sinks and sources.

    Exposes the current endpoints and delivers lifecycle notifications to
    connected observers, synchronously and on the event loop thread.
    """

    class Observer(ABC):
        """Interface for objects reacting to endpoint lifecycle hooks."""

        @abstractmethod
        def on_endpoint_added(self, endpoint: Endpoint) -> None:
            """Called once a new endpoint is fully set up."""
            raise NotImplementedError()

        @abstractmethod
        def on_endpoint_description_changed(self, endpoint: Endpoint) -> None:
            """Called after the description of |endpoint| changed."""
            raise NotImplementedError()

        @abstractmethod
        def on_endpoint_removed(self, endpoint: Endpoint) -> None:
            """Called while |endpoint| is being unlinked.

            The endpoint is still resolvable through `EndpointInventory.get`
            for the duration of this call.
            """
            raise NotImplementedError()

    @abstractmethod
    def endpoints(self) -> Iterable[Endpoint]:
        """Returns all current endpoints, sinks first and then sources."""
        raise NotImplementedError()

    @abstractmethod
    def get(self, endpoint_id: EndpointId) -> Endpoint | None:
        """Returns the current snapshot of the endpoint, or None if unknown."""
        raise NotImplementedError()

    @abstractmethod
    def connect(self, observer: "EndpointInventory.Observer") -> None:
        """Starts delivering lifecycle notifications to |observer|."""
        raise NotImplementedError()

    @abstractmethod
    def disconnect(self, observer: "EndpointInventory.Observer") -> None:
        """Stops delivering notifications to |observer|. No-op if unknown."""
        raise NotImplementedError()
