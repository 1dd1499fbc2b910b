import pytest

from zcpublish.announce.entry_group import EntryGroup
from zcpublish.announce.group_slot import Committed, NoHandle, Pending
from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.service_description import ServiceDescription
from zcpublish.test.fake_directory_client import FakeDirectoryClient


class FakeOwner:
    __test__ = False

    def __init__(self):
        self.failed: list[EntryGroup] = []
        self.missing = False

    def describe(self, name: str) -> ServiceDescription:
        if self.missing:
            raise LookupError("gone")
        return ServiceDescription(
            name=name,
            service_type="_pulse-sink._tcp",
            port=4713,
            txt={"rate": "44100"},
        )

    def on_failure(self, group: EntryGroup) -> None:
        self.failed.append(group)


@pytest.fixture
def client() -> FakeDirectoryClient:
    client = FakeDirectoryClient()
    client.start(_NullObserver())
    return client


class _NullObserver(FakeDirectoryClient.Observer):
    def _on_client_state_changed(self, state: ClientState) -> None:
        pass


@pytest.fixture
def owner() -> FakeOwner:
    return FakeOwner()


@pytest.fixture
def group(client, owner) -> EntryGroup:
    return EntryGroup(
        client, "alice@host: Speakers", owner.describe, on_failure=owner.on_failure
    )


class TestEntryGroup:

    def test_starts_uncommitted(self, group):
        assert group.state == EntryGroupState.UNCOMMITTED
        assert group.slot == NoHandle()
        assert group.handle is None

    def test_commit_registers(self, group, client):
        assert group.commit()

        assert group.state == EntryGroupState.REGISTERING
        assert isinstance(group.slot, Pending)
        handle, description = client.commits[-1]
        assert handle is group.handle
        assert description.name == "alice@host: Speakers"
        assert description.port == 4713

    def test_established(self, group, client):
        group.commit()
        client.respond(group.handle, EntryGroupState.ESTABLISHED)

        assert group.state == EntryGroupState.ESTABLISHED
        assert group.slot == Committed(group.handle)
        assert group.is_established

    def test_commit_is_skipped_while_client_not_running(self, group, client):
        client.set_state(ClientState.CONNECTING)

        assert not group.commit()
        assert client.commits == []
        assert group.slot == NoHandle()

    def test_commit_skips_registering_and_established_unless_forced(
        self, group, client
    ):
        group.commit()
        assert not group.commit()
        client.respond(group.handle, EntryGroupState.ESTABLISHED)
        assert not group.commit()
        assert len(client.commits) == 1

        handle = group.handle
        assert group.commit(force=True)
        assert len(client.commits) == 2
        assert group.handle is handle
        assert group.state == EntryGroupState.REGISTERING

    def test_collision_renames_and_recommits(self, group, client):
        group.commit()
        names = [group.name]
        for _ in range(5):
            client.respond(group.handle, EntryGroupState.COLLISION)
            names.append(group.name)
            assert group.state == EntryGroupState.REGISTERING

        client.respond(group.handle, EntryGroupState.ESTABLISHED)

        assert len(set(names)) == 6
        assert names[1] == "alice@host: Speakers #2"
        assert names[-1] == "alice@host: Speakers #6"
        assert [d.name for _, d in client.commits] == names
        assert group.state == EntryGroupState.ESTABLISHED

    def test_collision_while_client_stopped_waits_for_next_commit(
        self, group, client
    ):
        group.commit()
        handle = group.handle
        client.set_state(ClientState.COLLISION)
        client.respond(handle, EntryGroupState.COLLISION)

        assert group.state == EntryGroupState.COLLISION
        assert group.name == "alice@host: Speakers #2"
        assert len(client.commits) == 1

        client.set_state(ClientState.RUNNING)
        assert group.commit()
        assert client.commits[-1][1].name == "alice@host: Speakers #2"

    def test_failure_releases_handle_and_notifies_owner(
        self, group, client, owner
    ):
        group.commit()
        handle = group.handle
        client.respond(handle, EntryGroupState.FAILURE)

        assert group.state == EntryGroupState.FAILURE
        assert group.slot == NoHandle()
        assert handle in client.freed
        assert owner.failed == [group]

    def test_immediate_commit_error_is_a_failure(self, group, client, owner):
        client.fail_commit = True

        assert not group.commit()

        assert group.state == EntryGroupState.FAILURE
        assert group.slot == NoHandle()
        assert client.live_handles == []
        assert owner.failed == [group]

    def test_entry_group_creation_error_is_a_failure(self, group, client, owner):
        client.fail_new_entry_group = True

        assert not group.commit()
        assert owner.failed == [group]

    def test_missing_described_object_is_a_failure(self, group, client, owner):
        owner.missing = True

        assert not group.commit()
        assert owner.failed == [group]
        assert client.live_handles == []

    def test_reset_keeps_handle(self, group, client):
        group.commit()
        handle = group.handle
        client.respond(handle, EntryGroupState.ESTABLISHED)

        group.reset()

        assert group.state == EntryGroupState.UNCOMMITTED
        assert group.slot == Pending(handle)
        assert client.groups[handle].reset_count == 1

        group.commit()
        assert client.commits[-1][0] is handle

    def test_reset_twice_is_a_single_reset(self, group, client):
        group.commit()
        handle = group.handle
        group.reset()
        group.reset()
        assert client.groups[handle].reset_count == 1

    def test_withdraw_releases_handle(self, group, client):
        group.commit()
        handle = group.handle

        group.withdraw()
        group.withdraw()

        assert group.slot == NoHandle()
        assert group.state == EntryGroupState.UNCOMMITTED
        assert client.freed == [handle]

        group.commit()
        assert group.handle is not handle

    def test_notification_for_stale_handle_is_ignored(self, group, client, owner):
        group.commit()
        handle = group.handle
        callback = client.groups[handle].callback
        group.withdraw()

        client.respond_stale(handle, callback, EntryGroupState.COLLISION)
        client.respond_stale(handle, callback, EntryGroupState.FAILURE)
        client.respond_stale(handle, callback, EntryGroupState.ESTABLISHED)

        assert group.name == "alice@host: Speakers"
        assert group.state == EntryGroupState.UNCOMMITTED
        assert owner.failed == []
        assert len(client.commits) == 1

    def test_rename(self, group):
        group.name = "other"
        assert group.name == "other"
        with pytest.raises(ValueError):
            group.name = ""

    def test_constructor_validation(self, client, owner):
        with pytest.raises(ValueError):
            EntryGroup(None, "n", owner.describe)  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            EntryGroup(client, "", owner.describe)
