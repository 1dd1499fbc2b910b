"""Utilities for the network addresses attached to published records."""

import socket

import psutil  # type: ignore[import-untyped]


def get_all_address_strings(include_loopback: bool = False) -> list[str]:
    """Retrieves the IPv4 address strings of all local network interfaces.

    Args:
        include_loopback: Whether addresses in 127.0.0.0/8 are reported. They
            are skipped by default since remote discoverers cannot use them.

    Returns:
        A list of IPv4 address strings, in interface order. Empty if no
        IPv4 addresses were found.
    """
    addresses: list[str] = []
    for _, interface_addresses in psutil.net_if_addrs().items():
        for address in interface_addresses:
            if address.family != socket.AF_INET:
                continue
            if not include_loopback and address.address.startswith("127."):
                continue
            if address.address not in addresses:
                addresses.append(address.address)
    return addresses


def get_all_addresses(include_loopback: bool = False) -> list[bytes]:
    """Retrieves the local IPv4 addresses packed for a zeroconf `ServiceInfo`.

    Falls back to the loopback addresses when the host has no other IPv4
    address, so that a record is still announced on an isolated machine.
    """
    address_strings = get_all_address_strings(include_loopback)
    if not address_strings and not include_loopback:
        address_strings = get_all_address_strings(include_loopback=True)
    return [socket.inet_aton(a) for a in address_strings]
