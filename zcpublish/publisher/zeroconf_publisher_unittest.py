import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from zeroconf import NonUniqueNameException, NotRunningException
from zeroconf.asyncio import AsyncZeroconf

from zcpublish.config.publisher_config import PublisherConfig
from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.zeroconf_directory_client import ZeroconfDirectoryClient
from zcpublish.publisher.zeroconf_publisher import ZeroconfPublisher
from zcpublish.test.endpoint_fixtures import make_endpoint
from zcpublish.test.fake_directory_client import FakeDirectoryClient


@pytest.fixture
def publisher(fake_client, inventory, server_info) -> ZeroconfPublisher:
    return ZeroconfPublisher(
        PublisherConfig(port=4713),
        inventory,
        fake_client,
        server_info,
        host_name="host",
    )


def _establish_all(client: FakeDirectoryClient) -> None:
    for handle in client.live_handles:
        client.respond(handle, EntryGroupState.ESTABLISHED)


class TestZeroconfPublisher:

    def test_start_publishes_existing_endpoints(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0, description="Speakers"))

        publisher.start()

        assert fake_client.published_names() == [
            "alice@host",
            "alice@host: Speakers",
        ]

    def test_added_endpoint_is_published(self, publisher, inventory, fake_client):
        publisher.start()

        endpoint = make_endpoint(
            7, description="Built-in Audio", rate=44100, channels=2
        )
        inventory.add(endpoint)

        record = publisher.registry.get(endpoint.id)
        assert record.display_name == "alice@host: Built-in Audio"
        handle = record.entry_group.handle
        description = fake_client.groups[handle].description
        assert description.txt["rate"] == "44100"
        assert description.txt["channels"] == "2"
        assert description.txt["channel_map"] == "front-left,front-right"
        assert description.port == 4713

        fake_client.respond(handle, EntryGroupState.ESTABLISHED)
        assert record.state == EntryGroupState.ESTABLISHED

    def test_endpoint_added_before_running_is_published_once_running(
        self, inventory, server_info
    ):
        client = FakeDirectoryClient(initial_state=ClientState.CONNECTING)
        publisher = ZeroconfPublisher(
            PublisherConfig(), inventory, client, server_info, host_name="host"
        )
        publisher.start()

        endpoint = make_endpoint(7)
        inventory.add(endpoint)
        assert client.commits == []
        assert endpoint.id in publisher.registry

        client.set_state(ClientState.RUNNING)

        assert len(publisher.registry) == 1
        assert "alice@host: Built-in Audio" in client.published_names()

    def test_description_change_recommits_under_new_name(
        self, publisher, inventory, fake_client
    ):
        publisher.start()
        endpoint = make_endpoint(0, description="Speakers")
        inventory.add(endpoint)
        _establish_all(fake_client)
        record = publisher.registry.get(endpoint.id)
        handle = record.entry_group.handle

        inventory.set_description(endpoint.id, "Headphones")

        assert publisher.registry.get(endpoint.id) is record
        assert record.entry_group.handle is handle
        assert record.state == EntryGroupState.REGISTERING
        assert fake_client.groups[handle].commit_count == 2
        assert fake_client.groups[handle].description.name == (
            "alice@host: Headphones"
        )

    def test_removed_endpoint_is_evicted(self, publisher, inventory, fake_client):
        publisher.start()
        endpoint = make_endpoint(0)
        inventory.add(endpoint)
        handle = publisher.registry.get(endpoint.id).entry_group.handle

        inventory.remove(endpoint.id)

        assert endpoint.id not in publisher.registry
        assert handle in fake_client.freed

    def test_removal_during_pending_commit_is_not_resurrected(
        self, publisher, inventory, fake_client
    ):
        publisher.start()
        endpoint = make_endpoint(0)
        inventory.add(endpoint)
        handle = publisher.registry.get(endpoint.id).entry_group.handle
        callback = fake_client.groups[handle].callback
        commits_before = len(fake_client.commits)

        inventory.remove(endpoint.id)
        fake_client.respond_stale(handle, callback, EntryGroupState.COLLISION)
        fake_client.respond_stale(handle, callback, EntryGroupState.ESTABLISHED)
        fake_client.respond_stale(handle, callback, EntryGroupState.FAILURE)

        assert endpoint.id not in publisher.registry
        assert len(publisher.registry) == 0
        assert len(fake_client.commits) == commits_before

    def test_collision_convergence(self, publisher, inventory, fake_client):
        publisher.start()
        endpoint = make_endpoint(0, description="Speakers")
        inventory.add(endpoint)
        record = publisher.registry.get(endpoint.id)

        names = {record.display_name}
        for _ in range(10):
            fake_client.respond(
                record.entry_group.handle, EntryGroupState.COLLISION
            )
            names.add(record.display_name)
        fake_client.respond(record.entry_group.handle, EntryGroupState.ESTABLISHED)

        assert len(names) == 11
        assert record.state == EntryGroupState.ESTABLISHED
        assert len(publisher.registry) == 1

    def test_running_twice_does_not_recommit(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0))
        publisher.start()
        _establish_all(fake_client)
        commits = len(fake_client.commits)

        fake_client.set_state(ClientState.RUNNING)

        assert len(fake_client.commits) == commits

    def test_host_collision_resets_and_recommits(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0))
        publisher.start()
        _establish_all(fake_client)
        handles = set(fake_client.live_handles)

        fake_client.set_state(ClientState.COLLISION)

        assert fake_client.published_names() == []
        assert set(fake_client.live_handles) == handles
        assert len(publisher.registry) == 1

        fake_client.set_state(ClientState.RUNNING)

        assert len(fake_client.published_names()) == 2
        assert set(fake_client.live_handles) == handles

    def test_disconnect_reconnect_round_trip(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0, description="Speakers"))
        inventory.add(make_endpoint(1, description="USB"))
        publisher.start()
        speakers = publisher.registry.get(make_endpoint(0).id)
        fake_client.respond(speakers.entry_group.handle, EntryGroupState.COLLISION)
        _establish_all(fake_client)
        names_before = fake_client.published_names()

        fake_client.restart_state = ClientState.CONNECTING
        fake_client.set_state(ClientState.DISCONNECTED)

        assert fake_client.restart_count == 1
        assert fake_client.live_handles == []
        assert all(
            r.entry_group.handle is None for r in publisher.registry.records()
        )
        assert publisher.registry.main_group.handle is None
        assert len(publisher.registry) == 2

        fake_client.set_state(ClientState.RUNNING)

        assert fake_client.published_names() == names_before
        assert "alice@host: Speakers #2" in names_before

    def test_failed_restart_leaves_nothing_published(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0))
        publisher.start()

        fake_client.restart_state = ClientState.OTHER_FAILURE
        fake_client.set_state(ClientState.DISCONNECTED)

        assert fake_client.state == ClientState.OTHER_FAILURE
        assert fake_client.live_handles == []
        assert len(publisher.registry) == 1

    def test_other_failure_takes_no_action(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0))
        publisher.start()
        handles = fake_client.live_handles

        fake_client.set_state(ClientState.OTHER_FAILURE)

        assert fake_client.live_handles == handles
        assert fake_client.restart_count == 0

    def test_record_failure_drops_only_that_record(
        self, publisher, inventory, fake_client
    ):
        first = make_endpoint(0)
        second = make_endpoint(1)
        inventory.add(first)
        inventory.add(second)
        publisher.start()

        fake_client.respond(
            publisher.registry.get(first.id).entry_group.handle,
            EntryGroupState.FAILURE,
        )

        assert first.id not in publisher.registry
        assert second.id in publisher.registry

        inventory.set_description(first.id, "Renamed")
        assert first.id in publisher.registry

    @pytest.mark.asyncio
    async def test_close_withdraws_everything(
        self, publisher, inventory, fake_client
    ):
        inventory.add(make_endpoint(0))
        publisher.start()
        commits = len(fake_client.commits)

        await publisher.close()
        await publisher.close()

        assert fake_client.closed
        assert fake_client.live_handles == []
        assert publisher.registry is None
        assert publisher.client is None

        inventory.add(make_endpoint(1))
        assert len(fake_client.commits) == commits

    @pytest.mark.asyncio
    async def test_close_without_start(self, publisher, fake_client):
        await publisher.close()
        assert fake_client.closed


_SINK_TYPE = "._pulse-sink._tcp.local."
_SERVER_TYPE = "._pulse-server._tcp.local."


def _mock_zeroconf(
    taken: frozenset[str] = frozenset(), stopped: frozenset[str] = frozenset()
) -> AsyncMock:
    """An AsyncZeroconf that refuses |taken| names and announced ones.

    Registering any of |stopped| fails as if zeroconf had been shut down.
    """
    zc = AsyncMock(spec=AsyncZeroconf)
    announced: set[str] = set()

    async def register(info, allow_name_change):
        await asyncio.sleep(0)
        if info.name in stopped:
            raise NotRunningException()
        if info.name in taken or info.name in announced:
            raise NonUniqueNameException()
        announced.add(info.name)

    async def unregister(info):
        announced.discard(info.name)

    zc.async_register_service.side_effect = register
    zc.async_unregister_service.side_effect = unregister
    return zc


def _registered_names(zc: AsyncMock) -> list[str]:
    return sorted(
        call.args[0].name for call in zc.async_register_service.await_args_list
    )


async def _drain() -> None:
    for _ in range(20):
        await asyncio.sleep(0)


def _make_publisher(inventory, server_info, *zeroconfs) -> ZeroconfPublisher:
    client = ZeroconfDirectoryClient(
        zeroconf_factory=MagicMock(side_effect=list(zeroconfs)),
        addresses_func=lambda: [b"\x7f\x00\x00\x01"],
    )
    return ZeroconfPublisher(
        PublisherConfig(), inventory, client, server_info, host_name="host"
    )


class TestZeroconfPublisherOnZeroconf:

    @pytest.mark.asyncio
    async def test_name_conflict_is_renamed_and_established(
        self, inventory, server_info
    ):
        zc = _mock_zeroconf(taken=frozenset({"alice@host: Speakers" + _SINK_TYPE}))
        endpoint = make_endpoint(0, description="Speakers")
        inventory.add(endpoint)
        publisher = _make_publisher(inventory, server_info, zc)

        publisher.start()
        await _drain()

        record = publisher.registry.get(endpoint.id)
        assert record.display_name == "alice@host: Speakers #2"
        assert record.state == EntryGroupState.ESTABLISHED
        assert publisher.registry.main_group.state == EntryGroupState.ESTABLISHED
        assert _registered_names(zc) == sorted(
            [
                "alice@host" + _SERVER_TYPE,
                "alice@host: Speakers" + _SINK_TYPE,
                "alice@host: Speakers #2" + _SINK_TYPE,
            ]
        )
        await publisher.close()

    @pytest.mark.asyncio
    async def test_quick_description_change_keeps_name(
        self, inventory, server_info
    ):
        zc = _mock_zeroconf()
        publisher = _make_publisher(inventory, server_info, zc)
        publisher.start()
        await _drain()

        endpoint = make_endpoint(0, name="hw0", description=None)
        inventory.add(endpoint)
        inventory.set_description(endpoint.id, "hw0")
        await _drain()

        record = publisher.registry.get(endpoint.id)
        assert record.display_name == "alice@host: hw0"
        assert record.state == EntryGroupState.ESTABLISHED
        assert _registered_names(zc) == sorted(
            ["alice@host" + _SERVER_TYPE, "alice@host: hw0" + _SINK_TYPE]
        )
        await publisher.close()

    @pytest.mark.asyncio
    async def test_stopped_zeroconf_is_replaced_and_republished(
        self, inventory, server_info
    ):
        first = _mock_zeroconf(
            taken=frozenset({"alice@host: Speakers" + _SINK_TYPE}),
            stopped=frozenset({"alice@host: Mic" + _SINK_TYPE}),
        )
        second = _mock_zeroconf()
        inventory.add(make_endpoint(0, description="Speakers"))
        publisher = _make_publisher(inventory, server_info, first, second)
        publisher.start()
        await _drain()

        inventory.add(make_endpoint(1, description="Mic"))
        await _drain()

        first.async_close.assert_awaited_once()
        assert publisher.client.state == ClientState.RUNNING
        assert _registered_names(second) == sorted(
            [
                "alice@host" + _SERVER_TYPE,
                "alice@host: Mic" + _SINK_TYPE,
                "alice@host: Speakers #2" + _SINK_TYPE,
            ]
        )
        assert all(
            record.state == EntryGroupState.ESTABLISHED
            for record in publisher.registry.records()
        )
        assert publisher.registry.main_group.state == EntryGroupState.ESTABLISHED
        await publisher.close()
