import socket

from zcpublish.util import ip as ip_util


# Helper to create a mock address object
def create_mock_address(mocker, family, address):
    mock_addr = mocker.MagicMock()
    mock_addr.family = family
    mock_addr.address = address
    return mock_addr


class TestIpUtils:

    def test_no_interfaces(self, mocker):
        mocker.patch("psutil.net_if_addrs", return_value={})

        assert ip_util.get_all_address_strings() == []
        assert ip_util.get_all_addresses() == []

    def test_only_ipv4_is_reported(self, mocker):
        mocker.patch(
            "psutil.net_if_addrs",
            return_value={
                "eth0": [
                    create_mock_address(mocker, socket.AF_INET6, "fe80::1"),
                    create_mock_address(mocker, socket.AF_INET, "192.168.1.10"),
                ],
                "wlan0": [
                    create_mock_address(mocker, socket.AF_INET, "10.0.0.5"),
                ],
            },
        )

        assert ip_util.get_all_address_strings() == ["192.168.1.10", "10.0.0.5"]

    def test_loopback_is_skipped_unless_requested(self, mocker):
        mocker.patch(
            "psutil.net_if_addrs",
            return_value={
                "lo": [create_mock_address(mocker, socket.AF_INET, "127.0.0.1")],
                "eth0": [
                    create_mock_address(mocker, socket.AF_INET, "192.168.1.10")
                ],
            },
        )

        assert ip_util.get_all_address_strings() == ["192.168.1.10"]
        assert ip_util.get_all_address_strings(include_loopback=True) == [
            "127.0.0.1",
            "192.168.1.10",
        ]

    def test_duplicates_are_reported_once(self, mocker):
        mocker.patch(
            "psutil.net_if_addrs",
            return_value={
                "eth0": [create_mock_address(mocker, socket.AF_INET, "10.0.0.5")],
                "br0": [create_mock_address(mocker, socket.AF_INET, "10.0.0.5")],
            },
        )

        assert ip_util.get_all_address_strings() == ["10.0.0.5"]

    def test_addresses_are_packed(self, mocker):
        mocker.patch(
            "psutil.net_if_addrs",
            return_value={
                "eth0": [
                    create_mock_address(mocker, socket.AF_INET, "192.168.1.10")
                ],
            },
        )

        assert ip_util.get_all_addresses() == [b"\xc0\xa8\x01\x0a"]

    def test_isolated_host_falls_back_to_loopback(self, mocker):
        mocker.patch(
            "psutil.net_if_addrs",
            return_value={
                "lo": [create_mock_address(mocker, socket.AF_INET, "127.0.0.1")],
            },
        )

        assert ip_util.get_all_addresses() == [b"\x7f\x00\x00\x01"]
