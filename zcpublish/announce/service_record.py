"""Defines ServiceRecord, the announcement of one local endpoint."""

from zcpublish.announce.entry_group import EntryGroup
from zcpublish.directory.client_state import EntryGroupState
from zcpublish.endpoints.endpoint import EndpointId


class ServiceRecord:
    """One endpoint's announcement.

    The record only keeps the endpoint's identity; the endpoint itself is
    resolved through the inventory whenever its metadata is needed.
    """

    def __init__(
        self, endpoint_id: EndpointId, base_name: str, entry_group: EntryGroup
    ) -> None:
        self.__endpoint_id = endpoint_id
        self.__base_name = base_name
        self.__entry_group = entry_group

    @property
    def endpoint_id(self) -> EndpointId:
        return self.__endpoint_id

    @property
    def base_name(self) -> str:
        """Name derived from the endpoint, before any collision renames."""
        return self.__base_name

    @property
    def display_name(self) -> str:
        """Name currently announced, including collision renames."""
        return self.__entry_group.name

    @property
    def entry_group(self) -> EntryGroup:
        return self.__entry_group

    @property
    def state(self) -> EntryGroupState:
        return self.__entry_group.state

    def rebase(self, base_name: str) -> bool:
        """Switches to a newly derived name, dropping collision renames.

        Returns:
            True if the name changed.
        """
        if base_name == self.__base_name:
            return False
        self.__base_name = base_name
        self.__entry_group.name = base_name
        return True

    def __repr__(self) -> str:
        return (
            f"ServiceRecord({self.__endpoint_id}, {self.display_name!r}, "
            f"{self.state.name})"
        )
