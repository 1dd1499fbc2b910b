"""EntryGroup: the publication state machine of a single announcement."""

import logging
from collections.abc import Callable

from zcpublish.announce.group_slot import (
    Committed,
    GroupSlot,
    NoHandle,
    Pending,
    slot_handle,
)
from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.directory_client import (
    DirectoryClient,
    DirectoryError,
    EntryGroupHandle,
)
from zcpublish.directory.service_description import ServiceDescription
from zcpublish.directory.service_name import alternative_service_name

_logger = logging.getLogger(__name__)

DescribeFunc = Callable[[str], ServiceDescription]


class EntryGroup:
    """Drives one announcement through the directory client.

    States move UNCOMMITTED -> REGISTERING -> ESTABLISHED. From REGISTERING
    the directory may report:
    - COLLISION: the name is taken. The group renames itself with
      `alternative_service_name` and commits again right away. Every rename
      yields a new name, so the loop ends once a free name is found.
    - FAILURE: the handle is released and the owner's `on_failure` hook runs.
      Nothing is retried until the owner commits again.

    `reset()` withdraws the announcement but keeps the handle for the next
    commit. `withdraw()` releases the handle altogether. Notifications for any
    handle other than the current one are ignored.
    """

    def __init__(
        self,
        client: DirectoryClient,
        name: str,
        describe: DescribeFunc,
        *,
        on_failure: Callable[["EntryGroup"], None] | None = None,
    ) -> None:
        """Initializes an uncommitted EntryGroup.

        Args:
            client: Directory client the group is published through.
            name: Initial service instance name.
            describe: Builds the service to commit for a given name. May raise
                `LookupError` when the described object no longer exists.
            on_failure: Called after a commit failed and the handle was
                released.
        """
        if client is None:
            raise ValueError("client cannot be None for EntryGroup.")
        if not name:
            raise ValueError("name cannot be empty for EntryGroup.")
        if describe is None:
            raise ValueError("describe cannot be None for EntryGroup.")

        self.__client = client
        self.__name = name
        self.__describe = describe
        self.__on_failure = on_failure

        self.__state = EntryGroupState.UNCOMMITTED
        self.__slot: GroupSlot = NoHandle()

    @property
    def name(self) -> str:
        return self.__name

    @name.setter
    def name(self, value: str) -> None:
        if not value:
            raise ValueError("name cannot be empty for EntryGroup.")
        self.__name = value

    @property
    def state(self) -> EntryGroupState:
        return self.__state

    @property
    def slot(self) -> GroupSlot:
        return self.__slot

    @property
    def handle(self) -> EntryGroupHandle | None:
        return slot_handle(self.__slot)

    @property
    def is_established(self) -> bool:
        return isinstance(self.__slot, Committed)

    def commit(self, force: bool = False) -> bool:
        """Announces the group under its current name.

        Does nothing while the directory client is not running. Unless |force|
        is set, a group that is already registering or established is left
        alone.

        Returns:
            True if a commit was issued to the directory client.
        """
        if self.__client.state != ClientState.RUNNING:
            _logger.debug(
                "Directory client is %s, not publishing %s.",
                self.__client.state.name,
                self.__name,
            )
            return False

        if (
            not force
            and self.handle is not None
            and self.__state
            in (EntryGroupState.REGISTERING, EntryGroupState.ESTABLISHED)
        ):
            return False

        try:
            description = self.__describe(self.__name)
            handle = self.handle
            if handle is None:
                handle = self.__client.new_entry_group(self.__on_group_state)
                self.__slot = Pending(handle)
            self.__client.commit(handle, description)
        except (DirectoryError, LookupError) as e:
            _logger.error("Failed to publish %s: %s", self.__name, e)
            self.__fail()
            return False

        self.__slot = Pending(handle)
        self.__state = EntryGroupState.REGISTERING
        _logger.debug("Successfully created entry group for %s.", self.__name)
        return True

    def reset(self) -> None:
        """Withdraws the announcement, keeping the handle for a later commit."""
        handle = self.handle
        if handle is None or (
            isinstance(self.__slot, Pending)
            and self.__state == EntryGroupState.UNCOMMITTED
        ):
            return

        self.__client.reset(handle)
        self.__slot = Pending(handle)
        self.__state = EntryGroupState.UNCOMMITTED
        _logger.debug("Resetting entry group for %s.", self.__name)

    def withdraw(self) -> None:
        """Releases the handle. The group may be committed again later."""
        handle = self.handle
        if handle is None:
            return

        _logger.debug("Removing entry group for %s.", self.__name)
        self.__client.free(handle)
        self.__slot = NoHandle()
        self.__state = EntryGroupState.UNCOMMITTED

    def __fail(self) -> None:
        handle = self.handle
        if handle is not None:
            self.__client.free(handle)
        self.__slot = NoHandle()
        self.__state = EntryGroupState.FAILURE
        if self.__on_failure is not None:
            self.__on_failure(self)

    def __on_group_state(
        self, handle: EntryGroupHandle, state: EntryGroupState
    ) -> None:
        if handle is not self.handle:
            _logger.debug(
                "Ignoring %s for stale entry group of %s.", state.name, self.__name
            )
            return

        if state == EntryGroupState.ESTABLISHED:
            self.__slot = Committed(handle)
            self.__state = state
            _logger.info("Successfully established service %s.", self.__name)

        elif state == EntryGroupState.COLLISION:
            new_name = alternative_service_name(self.__name)
            _logger.info(
                "Name collision, renaming %s to %s.", self.__name, new_name
            )
            self.__name = new_name
            self.__state = state
            self.commit(force=True)

        elif state == EntryGroupState.FAILURE:
            _logger.error("Failed to register service %s.", self.__name)
            self.__fail()

        elif isinstance(self.__slot, Pending):
            self.__state = state
