import pytest

from zcpublish.announce.group_slot import NoHandle
from zcpublish.announce.service_registry import ServiceRegistry
from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.service_description import (
    SERVICE_TYPE_SERVER,
    SERVICE_TYPE_SINK,
    SERVICE_TYPE_SOURCE,
)
from zcpublish.endpoints.endpoint import EndpointKind
from zcpublish.test.endpoint_fixtures import make_endpoint
from zcpublish.test.fake_directory_client import FakeDirectoryClient


class _NullObserver(FakeDirectoryClient.Observer):
    def _on_client_state_changed(self, state: ClientState) -> None:
        pass


@pytest.fixture
def client(fake_client) -> FakeDirectoryClient:
    fake_client.start(_NullObserver())
    return fake_client


@pytest.fixture
def registry(client, inventory, server_info) -> ServiceRegistry:
    return ServiceRegistry(client, inventory, server_info, 4713, host_name="host")


def _establish_all(client: FakeDirectoryClient) -> None:
    for handle in client.live_handles:
        client.respond(handle, EntryGroupState.ESTABLISHED)


class TestServiceRegistry:

    def test_get_or_create_is_idempotent(self, registry, inventory):
        endpoint = make_endpoint(7)
        inventory.add(endpoint)

        first = registry.get_or_create(endpoint)
        second = registry.get_or_create(endpoint)

        assert first is second
        assert len(registry) == 1
        assert endpoint.id in registry
        assert first.display_name == "alice@host: Built-in Audio"
        assert first.state == EntryGroupState.UNCOMMITTED

    def test_sink_and_source_with_same_index_are_distinct(
        self, registry, inventory
    ):
        sink = make_endpoint(1, kind=EndpointKind.SINK)
        source = make_endpoint(1, kind=EndpointKind.SOURCE)
        inventory.add(sink)
        inventory.add(source)

        assert registry.get_or_create(sink) is not registry.get_or_create(source)
        assert len(registry) == 2

    def test_publish_all_commits_endpoints_and_main_record(
        self, registry, inventory, client
    ):
        inventory.add(make_endpoint(0, description="Speakers"))
        inventory.add(
            make_endpoint(0, kind=EndpointKind.SOURCE, description="Microphone")
        )

        registry.publish_all()

        by_name = {d.name: d for _, d in client.commits}
        assert set(by_name) == {
            "alice@host: Speakers",
            "alice@host: Microphone",
            "alice@host",
        }
        assert by_name["alice@host: Speakers"].service_type == SERVICE_TYPE_SINK
        assert (
            by_name["alice@host: Microphone"].service_type == SERVICE_TYPE_SOURCE
        )
        assert by_name["alice@host"].service_type == SERVICE_TYPE_SERVER
        assert "device" not in by_name["alice@host"].txt
        assert by_name["alice@host: Speakers"].txt["device"] == "alsa_sink.0"
        assert all(d.port == 4713 for d in by_name.values())

    def test_publish_all_is_idempotent(self, registry, inventory, client):
        inventory.add(make_endpoint(0))
        inventory.add(make_endpoint(1, description="USB"))

        registry.publish_all()
        registry.publish_all()
        assert len(client.commits) == 3

        _establish_all(client)
        registry.publish_all()
        assert len(client.commits) == 3

    def test_unpublish_all_soft_resets_and_keeps_records(
        self, registry, inventory, client
    ):
        inventory.add(make_endpoint(0))
        registry.publish_all()
        _establish_all(client)
        handles = client.live_handles

        registry.unpublish_all(hard=False)
        registry.unpublish_all(hard=False)

        assert len(registry) == 1
        assert client.live_handles == handles
        assert all(client.groups[h].reset_count == 1 for h in handles)
        assert registry.main_group.state == EntryGroupState.UNCOMMITTED

        registry.publish_all()
        assert {h for h, _ in client.commits[-2:]} == set(handles)

    def test_unpublish_all_hard_releases_every_handle(
        self, registry, inventory, client
    ):
        inventory.add(make_endpoint(0))
        inventory.add(make_endpoint(1))
        registry.publish_all()

        registry.unpublish_all(hard=True)

        assert client.live_handles == []
        assert len(registry) == 2
        assert all(r.entry_group.slot == NoHandle() for r in registry.records())
        assert registry.main_group.slot == NoHandle()

    def test_remove(self, registry, inventory, client):
        endpoint = make_endpoint(0)
        inventory.add(endpoint)
        record = registry.get_or_create(endpoint)
        record.entry_group.commit()
        handle = record.entry_group.handle

        assert registry.remove(endpoint.id)
        assert not registry.remove(endpoint.id)

        assert endpoint.id not in registry
        assert client.freed == [handle]

    def test_failed_record_is_evicted(self, registry, inventory, client):
        first = make_endpoint(0)
        second = make_endpoint(1)
        inventory.add(first)
        inventory.add(second)
        registry.publish_all()

        client.respond(
            registry.get(first.id).entry_group.handle, EntryGroupState.FAILURE
        )

        assert first.id not in registry
        assert second.id in registry
        assert registry.get(second.id).state == EntryGroupState.REGISTERING

    def test_main_record_failure_keeps_it(self, registry, client):
        registry.publish_all()
        client.respond(registry.main_group.handle, EntryGroupState.FAILURE)

        assert registry.main_group.slot == NoHandle()
        assert registry.main_group.state == EntryGroupState.FAILURE

        registry.publish_all()
        assert registry.main_group.state == EntryGroupState.REGISTERING

    def test_commit_of_unknown_endpoint_drops_record(self, registry, client):
        endpoint = make_endpoint(3)
        record = registry.get_or_create(endpoint)

        assert not record.entry_group.commit()
        assert endpoint.id not in registry

    def test_refresh_renames_on_description_change(self, registry, inventory):
        endpoint = make_endpoint(0, description="Speakers")
        inventory.add(endpoint)
        record = registry.get_or_create(endpoint)

        updated = inventory.set_description(endpoint.id, "Headphones")

        assert registry.refresh(updated) is record
        assert record.display_name == "alice@host: Headphones"
        assert record.base_name == "alice@host: Headphones"

    def test_refresh_keeps_collision_name_when_description_unchanged(
        self, registry, inventory, client
    ):
        endpoint = make_endpoint(0, description="Speakers")
        inventory.add(endpoint)
        record = registry.get_or_create(endpoint)
        record.entry_group.commit()
        client.respond(record.entry_group.handle, EntryGroupState.COLLISION)

        registry.refresh(endpoint)

        assert record.display_name == "alice@host: Speakers #2"

    def test_clear(self, registry, inventory, client):
        inventory.add(make_endpoint(0))
        inventory.add(make_endpoint(1))
        registry.publish_all()

        registry.clear()

        assert len(registry) == 0
        assert client.live_handles == []
        assert registry.main_group.slot == NoHandle()
