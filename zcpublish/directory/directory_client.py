"""DirectoryClient ABC: the contract of a connection to a DNS-SD directory."""

import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable

from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.service_description import ServiceDescription

_handle_serials = itertools.count(1)


class DirectoryError(RuntimeError):
    """Raised when a directory client rejects a record-level operation."""


class EntryGroupHandle:
    """Opaque token naming one entry group of a directory client.

    Handles compare by identity. A handle is only meaningful to the client that
    created it, and only until it is freed or the client restarts.
    """

    __slots__ = ("__serial",)

    def __init__(self) -> None:
        self.__serial = next(_handle_serials)

    def __repr__(self) -> str:
        return f"EntryGroupHandle({self.__serial})"


EntryGroupCallback = Callable[[EntryGroupHandle, EntryGroupState], None]


class DirectoryClient(ABC):
    """A single connection to the directory service.

    All record-level operations are fire-and-forget: their outcome is reported
    later, on the event loop, through the callback given to
    `new_entry_group`. No record-level operation may be attempted while
    `state` is not `ClientState.RUNNING`.
    """

    class Observer(ABC):
        """Interface for the single consumer of client state changes."""

        @abstractmethod
        def _on_client_state_changed(self, state: ClientState) -> None:
            """Called whenever the underlying connection changes state."""
            raise NotImplementedError(
                "DirectoryClient.Observer._on_client_state_changed must be "
                "implemented by subclasses."
            )

    @property
    @abstractmethod
    def state(self) -> ClientState:
        """Current state of the connection."""
        raise NotImplementedError()

    @abstractmethod
    def start(self, observer: "DirectoryClient.Observer") -> None:
        """Registers |observer| and creates the connection.

        Never raises for connection problems: if the connection cannot be
        created, the failure is logged and the state becomes OTHER_FAILURE.
        """
        raise NotImplementedError()

    @abstractmethod
    def restart(self) -> None:
        """Replaces the current connection with a freshly created one.

        All entry group handles of the old connection become invalid. If the
        new connection cannot be created, the state becomes OTHER_FAILURE.
        """
        raise NotImplementedError()

    @abstractmethod
    def new_entry_group(self, callback: EntryGroupCallback) -> EntryGroupHandle:
        """Allocates an empty entry group.

        Raises:
            DirectoryError: If the group cannot be created.
        """
        raise NotImplementedError()

    @abstractmethod
    def commit(
        self, handle: EntryGroupHandle, description: ServiceDescription
    ) -> None:
        """Replaces the content of the group with |description| and commits it.

        Raises:
            DirectoryError: If the service is rejected or cannot be committed.
        """
        raise NotImplementedError()

    @abstractmethod
    def reset(self, handle: EntryGroupHandle) -> None:
        """Withdraws whatever the group announced. The handle stays valid."""
        raise NotImplementedError()

    @abstractmethod
    def free(self, handle: EntryGroupHandle) -> None:
        """Withdraws the group and invalidates |handle|. No-op if unknown."""
        raise NotImplementedError()

    @abstractmethod
    async def close(self) -> None:
        """Frees every group and closes the connection."""
        raise NotImplementedError()
