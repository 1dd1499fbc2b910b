"""Tagged variant describing what an entry group holds in the directory."""

import dataclasses

from zcpublish.directory.directory_client import EntryGroupHandle


@dataclasses.dataclass(frozen=True)
class NoHandle:
    """Nothing is allocated in the directory."""


@dataclasses.dataclass(frozen=True)
class Pending:
    """A handle is allocated but the announcement is not confirmed.

    Either a commit is in flight, or the group was reset and waits for the next
    commit.
    """

    handle: EntryGroupHandle


@dataclasses.dataclass(frozen=True)
class Committed:
    """The directory confirmed the announcement held by |handle|."""

    handle: EntryGroupHandle


GroupSlot = NoHandle | Pending | Committed


def slot_handle(slot: GroupSlot) -> EntryGroupHandle | None:
    """Returns the handle held by |slot|, or None for `NoHandle`."""
    if isinstance(slot, (Pending, Committed)):
        return slot.handle
    return None
