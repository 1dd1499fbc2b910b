import pytest

from zcpublish.announce.txt_record import ServerInfo
from zcpublish.endpoints.in_memory_endpoint_inventory import (
    InMemoryEndpointInventory,
)
from zcpublish.test.fake_directory_client import FakeDirectoryClient


@pytest.fixture
def server_info() -> ServerInfo:
    return ServerInfo(
        version="zcpublish 0.1.0",
        user_name="alice",
        fqdn="host.example.com",
        cookie=0x1234ABCD,
    )


@pytest.fixture
def fake_client() -> FakeDirectoryClient:
    return FakeDirectoryClient()


@pytest.fixture
def inventory() -> InMemoryEndpointInventory:
    return InMemoryEndpointInventory()
