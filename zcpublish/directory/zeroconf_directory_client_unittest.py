import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from zeroconf import NonUniqueNameException, NotRunningException, ServiceInfo
from zeroconf.asyncio import AsyncZeroconf

from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.directory_client import (
    DirectoryClient,
    DirectoryError,
    EntryGroupHandle,
)
from zcpublish.directory.service_description import ServiceDescription
from zcpublish.directory.zeroconf_directory_client import ZeroconfDirectoryClient


class RecordingObserver(DirectoryClient.Observer):
    __test__ = False

    def __init__(self) -> None:
        self.states: list[ClientState] = []

    def _on_client_state_changed(self, state: ClientState) -> None:
        self.states.append(state)


class RecordingGroupCallback:
    __test__ = False

    def __init__(self) -> None:
        self.calls: list[tuple[EntryGroupHandle, EntryGroupState]] = []

    def __call__(self, handle: EntryGroupHandle, state: EntryGroupState) -> None:
        self.calls.append((handle, state))

    @property
    def states(self) -> list[EntryGroupState]:
        return [state for _, state in self.calls]


async def _drain() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


def _description(name: str = "alice@host: Speakers") -> ServiceDescription:
    return ServiceDescription(
        name=name,
        service_type="_pulse-sink._tcp",
        port=4713,
        txt={"rate": "44100", "channels": "2"},
    )


def _make_client(*zeroconfs: AsyncZeroconf) -> ZeroconfDirectoryClient:
    return ZeroconfDirectoryClient(
        zeroconf_factory=MagicMock(side_effect=list(zeroconfs)),
        addresses_func=lambda: [b"\x7f\x00\x00\x01"],
    )


@pytest.fixture
def mock_zc() -> AsyncMock:
    return AsyncMock(spec=AsyncZeroconf)


@pytest.mark.asyncio
async def test_start_reports_running(mock_zc):
    client = _make_client(mock_zc)
    observer = RecordingObserver()

    client.start(observer)
    assert observer.states == []  # Delivered asynchronously.
    await _drain()

    assert client.state == ClientState.RUNNING
    assert observer.states == [ClientState.CONNECTING, ClientState.RUNNING]
    await client.close()


@pytest.mark.asyncio
async def test_start_failure_reports_other_failure():
    client = ZeroconfDirectoryClient(
        zeroconf_factory=MagicMock(side_effect=OSError("no interfaces"))
    )
    observer = RecordingObserver()

    client.start(observer)
    await _drain()

    assert client.state == ClientState.OTHER_FAILURE
    assert observer.states[-1] == ClientState.OTHER_FAILURE
    with pytest.raises(DirectoryError):
        client.new_entry_group(RecordingGroupCallback())
    await client.close()


@pytest.mark.asyncio
async def test_start_twice_is_rejected(mock_zc):
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    with pytest.raises(RuntimeError):
        client.start(RecordingObserver())
    await client.close()


@pytest.mark.asyncio
async def test_commit_registers_service(mock_zc):
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)

    client.commit(handle, _description())
    await _drain()

    assert callback.calls == [
        (handle, EntryGroupState.REGISTERING),
        (handle, EntryGroupState.ESTABLISHED),
    ]
    mock_zc.async_register_service.assert_awaited_once()
    args, kwargs = mock_zc.async_register_service.call_args
    info = args[0]
    assert isinstance(info, ServiceInfo)
    assert info.type == "_pulse-sink._tcp.local."
    assert info.name == "alice@host: Speakers._pulse-sink._tcp.local."
    assert info.port == 4713
    assert info.properties[b"rate"] == b"44100"
    assert info.properties[b"channels"] == b"2"
    assert kwargs["allow_name_change"] is False
    await client.close()


@pytest.mark.asyncio
async def test_name_conflict_reports_collision(mock_zc):
    mock_zc.async_register_service.side_effect = NonUniqueNameException()
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)

    client.commit(handle, _description())
    await _drain()

    assert callback.states == [
        EntryGroupState.REGISTERING,
        EntryGroupState.COLLISION,
    ]
    await client.close()


@pytest.mark.asyncio
async def test_socket_error_reports_failure(mock_zc):
    mock_zc.async_register_service.side_effect = OSError("send failed")
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)

    client.commit(handle, _description())
    await _drain()

    assert callback.states[-1] == EntryGroupState.FAILURE
    await client.close()


@pytest.mark.asyncio
async def test_stopped_zeroconf_reports_disconnect(mock_zc):
    mock_zc.async_register_service.side_effect = NotRunningException()
    client = _make_client(mock_zc)
    observer = RecordingObserver()
    client.start(observer)
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)

    client.commit(handle, _description())
    await _drain()

    assert client.state == ClientState.DISCONNECTED
    assert observer.states[-1] == ClientState.DISCONNECTED
    assert EntryGroupState.ESTABLISHED not in callback.states
    await client.close()


@pytest.mark.asyncio
async def test_freed_group_gets_no_notifications_and_is_not_registered(mock_zc):
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)

    client.commit(handle, _description())
    client.free(handle)
    await _drain()

    assert callback.calls == []
    mock_zc.async_register_service.assert_not_awaited()
    mock_zc.async_unregister_service.assert_not_awaited()
    with pytest.raises(DirectoryError):
        client.commit(handle, _description())
    await client.close()


@pytest.mark.asyncio
async def test_reset_unregisters_and_keeps_handle(mock_zc):
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)
    client.commit(handle, _description())
    await _drain()

    client.reset(handle)
    await _drain()

    mock_zc.async_unregister_service.assert_awaited_once()
    unregistered = mock_zc.async_unregister_service.call_args.args[0]
    assert unregistered.name == "alice@host: Speakers._pulse-sink._tcp.local."

    client.commit(handle, _description("alice@host: Speakers #2"))
    await _drain()
    assert callback.states[-1] == EntryGroupState.ESTABLISHED
    assert mock_zc.async_register_service.await_count == 2
    await client.close()


@pytest.mark.asyncio
async def test_recommit_replaces_registered_service(mock_zc):
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    handle = client.new_entry_group(RecordingGroupCallback())
    client.commit(handle, _description())
    await _drain()

    client.commit(handle, _description("alice@host: Headphones"))
    await _drain()

    mock_zc.async_unregister_service.assert_awaited_once()
    assert mock_zc.async_register_service.await_count == 2
    await client.close()


@pytest.mark.asyncio
async def test_recommit_cancels_in_flight_registration(mock_zc):
    release = asyncio.Event()
    started: list[str] = []
    cancelled: list[str] = []

    async def register(info, allow_name_change):
        started.append(info.name)
        if len(started) > 1:
            return
        try:
            await release.wait()
        except asyncio.CancelledError:
            cancelled.append(info.name)
            raise

    mock_zc.async_register_service.side_effect = register
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)
    name = "alice@host: Speakers._pulse-sink._tcp.local."

    client.commit(handle, _description())
    await _drain()
    assert started == [name]

    client.commit(handle, _description())
    await _drain()

    assert cancelled == [name]
    assert started == [name, name]
    assert callback.states == [
        EntryGroupState.REGISTERING,
        EntryGroupState.REGISTERING,
        EntryGroupState.ESTABLISHED,
    ]
    mock_zc.async_unregister_service.assert_not_awaited()
    await client.close()


@pytest.mark.asyncio
async def test_commit_pending_at_restart_is_dropped():
    first = AsyncMock(spec=AsyncZeroconf)
    second = AsyncMock(spec=AsyncZeroconf)
    client = _make_client(first, second)
    client.start(RecordingObserver())
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)

    client.commit(handle, _description())
    client.restart()
    await _drain()

    first.async_register_service.assert_not_awaited()
    second.async_register_service.assert_not_awaited()
    assert callback.calls == []
    await client.close()


def test_handles_are_distinct():
    first = EntryGroupHandle()
    second = EntryGroupHandle()

    assert first != second
    assert repr(first) != repr(second)
    assert repr(first).startswith("EntryGroupHandle(")


@pytest.mark.asyncio
async def test_restart_replaces_connection():
    first = AsyncMock(spec=AsyncZeroconf)
    second = AsyncMock(spec=AsyncZeroconf)
    client = _make_client(first, second)
    observer = RecordingObserver()
    client.start(observer)
    await _drain()
    handle = client.new_entry_group(RecordingGroupCallback())

    client.restart()
    await _drain()

    first.async_close.assert_awaited_once()
    assert client.state == ClientState.RUNNING
    assert observer.states[-1] == ClientState.RUNNING
    with pytest.raises(DirectoryError):
        client.commit(handle, _description())

    new_handle = client.new_entry_group(RecordingGroupCallback())
    client.commit(new_handle, _description())
    await _drain()
    second.async_register_service.assert_awaited_once()
    first.async_register_service.assert_not_awaited()
    await client.close()


@pytest.mark.asyncio
async def test_failed_restart_reports_other_failure(mock_zc):
    client = ZeroconfDirectoryClient(
        zeroconf_factory=MagicMock(side_effect=[mock_zc, OSError("gone")]),
        addresses_func=lambda: [],
    )
    observer = RecordingObserver()
    client.start(observer)
    await _drain()

    client.restart()
    await _drain()

    assert client.state == ClientState.OTHER_FAILURE
    assert observer.states[-1] == ClientState.OTHER_FAILURE
    await client.close()


@pytest.mark.asyncio
async def test_close_closes_zeroconf_and_silences_observer(mock_zc):
    client = _make_client(mock_zc)
    observer = RecordingObserver()
    client.start(observer)
    await _drain()
    callback = RecordingGroupCallback()
    handle = client.new_entry_group(callback)
    client.commit(handle, _description())

    await client.close()
    await _drain()

    mock_zc.async_close.assert_awaited_once()
    assert EntryGroupState.ESTABLISHED not in callback.states
    assert observer.states == [ClientState.CONNECTING, ClientState.RUNNING]


@pytest.mark.asyncio
async def test_invalid_service_type_raises_directory_error(mock_zc):
    client = _make_client(mock_zc)
    client.start(RecordingObserver())
    await _drain()
    handle = client.new_entry_group(RecordingGroupCallback())

    with pytest.raises(DirectoryError):
        client.commit(
            handle,
            ServiceDescription(
                name="x", service_type="_bad--type._tcp", port=1
            ),
        )
    await client.close()
