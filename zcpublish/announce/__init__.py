"""Announcement bookkeeping: records, their state machines and the registry."""

from zcpublish.announce.entry_group import EntryGroup
from zcpublish.announce.group_slot import Committed, GroupSlot, NoHandle, Pending
from zcpublish.announce.service_record import ServiceRecord
from zcpublish.announce.service_registry import ServiceRegistry
from zcpublish.announce.txt_record import (
    ServerInfo,
    make_endpoint_txt,
    make_server_txt,
)

__all__ = [
    "Committed",
    "EntryGroup",
    "GroupSlot",
    "NoHandle",
    "Pending",
    "ServerInfo",
    "ServiceRecord",
    "ServiceRegistry",
    "make_endpoint_txt",
    "make_server_txt",
]
