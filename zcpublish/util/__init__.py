"""Utility functions for zcpublish."""

from zcpublish.util.host_info import get_fqdn, get_host_name, get_user_name
from zcpublish.util.ip import get_all_address_strings, get_all_addresses

__all__ = [
    "get_all_address_strings",
    "get_all_addresses",
    "get_fqdn",
    "get_host_name",
    "get_user_name",
]
