"""States reported by a directory client and by its entry groups."""

from enum import Enum


class ClientState(Enum):
    """Connection state of a directory client.

    Attributes:
        CONNECTING: The connection is being set up; nothing may be published.
        RUNNING: The connection is up and records may be committed.
        COLLISION: The host's own identity collides on the network. Records
            stay tracked but must be withdrawn until it is settled.
        DISCONNECTED: The link to the directory service was lost for good.
            The connection has to be recreated.
        OTHER_FAILURE: Any other failure, including failure to create the
            connection at all.
    """

    CONNECTING = 0
    RUNNING = 1
    COLLISION = 2
    DISCONNECTED = 3
    OTHER_FAILURE = 4


class EntryGroupState(Enum):
    """Publication state of a single entry group."""

    UNCOMMITTED = 0
    REGISTERING = 1
    ESTABLISHED = 2
    COLLISION = 3
    FAILURE = 4
