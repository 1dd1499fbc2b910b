"""A scriptable DirectoryClient for tests of the announcement logic."""

import dataclasses

from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.directory_client import (
    DirectoryClient,
    DirectoryError,
    EntryGroupCallback,
    EntryGroupHandle,
)
from zcpublish.directory.service_description import ServiceDescription


@dataclasses.dataclass
class FakeEntryGroup:
    __test__ = False

    callback: EntryGroupCallback
    description: ServiceDescription | None = None
    commit_count: int = 0
    reset_count: int = 0


class FakeDirectoryClient(DirectoryClient):
    """Records every call and lets the test decide what the directory answers.

    Notifications are delivered synchronously, when the test calls
    `set_state` or `respond`.
    """

    __test__ = False

    def __init__(self, initial_state: ClientState = ClientState.RUNNING) -> None:
        self.__state = ClientState.CONNECTING
        self.__initial_state = initial_state
        self.__observer: DirectoryClient.Observer | None = None

        self.groups: dict[EntryGroupHandle, FakeEntryGroup] = {}
        self.freed: list[EntryGroupHandle] = []
        self.commits: list[tuple[EntryGroupHandle, ServiceDescription]] = []
        self.restart_count = 0
        self.closed = False

        self.fail_new_entry_group = False
        self.fail_commit = False
        self.restart_state = ClientState.RUNNING

    @property
    def state(self) -> ClientState:
        return self.__state

    @property
    def live_handles(self) -> list[EntryGroupHandle]:
        return list(self.groups.keys())

    def start(self, observer: DirectoryClient.Observer) -> None:
        self.__observer = observer
        self.set_state(self.__initial_state)

    def restart(self) -> None:
        self.restart_count += 1
        self.groups.clear()
        self.set_state(self.restart_state)

    def new_entry_group(self, callback: EntryGroupCallback) -> EntryGroupHandle:
        if self.__state != ClientState.RUNNING:
            raise DirectoryError("not running")
        if self.fail_new_entry_group:
            raise DirectoryError("entry group creation failed")
        handle = EntryGroupHandle()
        self.groups[handle] = FakeEntryGroup(callback)
        return handle

    def commit(
        self, handle: EntryGroupHandle, description: ServiceDescription
    ) -> None:
        group = self.groups.get(handle)
        if group is None:
            raise DirectoryError(f"unknown {handle!r}")
        if self.fail_commit:
            raise DirectoryError("commit failed")
        group.description = description
        group.commit_count += 1
        self.commits.append((handle, description))

    def reset(self, handle: EntryGroupHandle) -> None:
        group = self.groups.get(handle)
        if group is not None:
            group.description = None
            group.reset_count += 1

    def free(self, handle: EntryGroupHandle) -> None:
        if self.groups.pop(handle, None) is not None:
            self.freed.append(handle)

    async def close(self) -> None:
        self.closed = True
        self.groups.clear()
        self.__state = ClientState.DISCONNECTED

    # --- Test controls ---

    def set_state(self, state: ClientState) -> None:
        """Moves the connection to |state| and notifies the observer."""
        self.__state = state
        if self.__observer is not None:
            self.__observer._on_client_state_changed(state)

    def respond(self, handle: EntryGroupHandle, state: EntryGroupState) -> None:
        """Delivers |state| for |handle|, as long as the handle is still live."""
        group = self.groups.get(handle)
        if group is not None:
            group.callback(handle, state)

    def respond_stale(
        self,
        handle: EntryGroupHandle,
        callback: EntryGroupCallback,
        state: EntryGroupState,
    ) -> None:
        """Delivers |state| even though |handle| may already be freed."""
        callback(handle, state)

    def handle_named(self, name: str) -> EntryGroupHandle:
        """Returns the live handle currently holding a service called |name|."""
        for handle, group in self.groups.items():
            if group.description is not None and group.description.name == name:
                return handle
        raise KeyError(name)

    def published_names(self) -> list[str]:
        return sorted(
            group.description.name
            for group in self.groups.values()
            if group.description is not None
        )
