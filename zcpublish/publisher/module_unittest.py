import pytest

from zcpublish.config.publisher_config import ConfigurationError
from zcpublish.directory.client_state import ClientState
from zcpublish.directory.zeroconf_directory_client import ZeroconfDirectoryClient
from zcpublish.publisher.module import initialize, teardown
from zcpublish.test.endpoint_fixtures import make_endpoint


@pytest.mark.asyncio
async def test_initialize_starts_publishing(fake_client, inventory, server_info):
    inventory.add(make_endpoint(0, description="Speakers"))

    publisher = await initialize(
        "port=4714",
        inventory,
        client=fake_client,
        server_info=server_info,
        host_name="host",
    )

    assert publisher.config.port == 4714
    assert fake_client.published_names() == ["alice@host", "alice@host: Speakers"]
    assert all(d.port == 4714 for _, d in fake_client.commits)

    await teardown(publisher)
    assert fake_client.closed


@pytest.mark.asyncio
async def test_initialize_rejects_bad_port(fake_client, inventory, server_info):
    with pytest.raises(ConfigurationError):
        await initialize(
            "port=0", inventory, client=fake_client, server_info=server_info
        )
    assert fake_client.commits == []


@pytest.mark.asyncio
async def test_initialize_tears_down_on_start_failure(
    fake_client, inventory, server_info, mocker
):
    mocker.patch.object(fake_client, "start", side_effect=RuntimeError("boom"))

    with pytest.raises(RuntimeError, match="boom"):
        await initialize(
            None, inventory, client=fake_client, server_info=server_info
        )

    assert fake_client.closed
    inventory.add(make_endpoint(0))
    assert fake_client.commits == []


@pytest.mark.asyncio
async def test_initialize_defaults_to_zeroconf_client(inventory, server_info, mocker):
    zc_factory = mocker.patch(
        "zcpublish.directory.zeroconf_directory_client._default_zeroconf_factory",
        side_effect=OSError("no network"),
    )

    publisher = await initialize(None, inventory, server_info=server_info)

    assert isinstance(publisher.client, ZeroconfDirectoryClient)
    zc_factory.assert_called_once()
    assert publisher.client.state == ClientState.OTHER_FAILURE

    await teardown(publisher)


@pytest.mark.asyncio
async def test_teardown_accepts_none():
    await teardown(None)
