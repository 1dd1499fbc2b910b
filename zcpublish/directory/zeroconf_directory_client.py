"""DirectoryClient implementation on top of python-zeroconf."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from zeroconf import (
    Error as ZeroconfError,
    IPVersion,
    NonUniqueNameException,
    NotRunningException,
    ServiceInfo,
)
from zeroconf.asyncio import AsyncZeroconf

from zcpublish.directory.client_state import ClientState, EntryGroupState
from zcpublish.directory.directory_client import (
    DirectoryClient,
    DirectoryError,
    EntryGroupCallback,
    EntryGroupHandle,
)
from zcpublish.directory.service_description import ServiceDescription
from zcpublish.util.ip import get_all_addresses

_logger = logging.getLogger(__name__)


def _default_zeroconf_factory() -> AsyncZeroconf:
    return AsyncZeroconf(ip_version=IPVersion.V4Only)


class _EntryGroup:
    """Bookkeeping for one entry group handed out by the client."""

    __slots__ = ("callback", "generation", "info", "registration")

    def __init__(self, callback: EntryGroupCallback) -> None:
        self.callback = callback
        # Bumped on every commit, reset and free, so results of superseded
        # registrations can be recognized and dropped.
        self.generation = 0
        # The ServiceInfo currently registered with zeroconf, if any.
        self.info: ServiceInfo | None = None
        # In-flight registration task, cancelled when the group is withdrawn.
        self.registration: asyncio.Task[None] | None = None


class ZeroconfDirectoryClient(DirectoryClient):
    """Publishes entry groups as services of an `AsyncZeroconf` instance.

    Each entry group maps to at most one registered `ServiceInfo`. Commits are
    scheduled as tasks on the event loop `start()` was called from; their
    outcome is reported through the group's callback:
    - ESTABLISHED once zeroconf accepted the service,
    - COLLISION if another host already announces the same name,
    - FAILURE for any other zeroconf or socket error.
    If zeroconf reports it is no longer running, the client itself moves to
    DISCONNECTED and the owner is expected to `restart()` it.

    A registration still in progress is cancelled when its group is committed
    again, reset or freed, and when the connection is replaced.
    """

    def __init__(
        self,
        *,
        zeroconf_factory: Callable[[], AsyncZeroconf] | None = None,
        addresses_func: Callable[[], list[bytes]] | None = None,
    ) -> None:
        """Initializes the client. No connection is made before `start()`.

        Args:
            zeroconf_factory: Creates the `AsyncZeroconf` instance used as the
                connection. Defaults to an IPv4-only instance.
            addresses_func: Returns the packed addresses to announce. Defaults
                to all local IPv4 addresses.
        """
        self.__zeroconf_factory = zeroconf_factory or _default_zeroconf_factory
        self.__addresses_func = addresses_func or get_all_addresses

        self.__observer: DirectoryClient.Observer | None = None
        self.__loop: asyncio.AbstractEventLoop | None = None
        self.__zc: AsyncZeroconf | None = None
        self.__state = ClientState.CONNECTING
        self.__groups: dict[EntryGroupHandle, _EntryGroup] = {}
        self.__tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ClientState:
        return self.__state

    def start(self, observer: DirectoryClient.Observer) -> None:
        """Creates the zeroconf connection. Must be called on the event loop.

        Raises:
            ValueError: If |observer| is None.
            RuntimeError: If called twice or outside of a running event loop.
        """
        if observer is None:
            raise ValueError("observer cannot be None.")
        if self.__observer is not None:
            raise RuntimeError("ZeroconfDirectoryClient already started.")

        self.__loop = asyncio.get_running_loop()
        self.__observer = observer
        self.__connect()

    def restart(self) -> None:
        if self.__loop is None:
            raise RuntimeError("restart() called before start().")

        _logger.debug("Recreating zeroconf connection.")
        self.__disconnect()
        self.__connect()

    def new_entry_group(self, callback: EntryGroupCallback) -> EntryGroupHandle:
        if callback is None:
            raise ValueError("callback cannot be None.")
        self.__check_running()

        handle = EntryGroupHandle()
        self.__groups[handle] = _EntryGroup(callback)
        return handle

    def commit(
        self, handle: EntryGroupHandle, description: ServiceDescription
    ) -> None:
        group = self.__groups.get(handle)
        if group is None:
            raise DirectoryError(f"Unknown entry group {handle!r}.")
        self.__check_running()
        zc = self.__zc
        assert zc is not None

        self.__withdraw(group)
        service_type = f"{description.service_type}.local."
        try:
            info = ServiceInfo(
                type_=service_type,
                name=f"{description.name}.{service_type}",
                addresses=self.__addresses_func(),
                port=description.port,
                properties={
                    key.encode("utf-8"): value.encode("utf-8")
                    for key, value in description.txt.items()
                },
            )
        except (ZeroconfError, ValueError) as e:
            raise DirectoryError(
                f"Invalid service '{description.name}': {e}"
            ) from e

        generation = group.generation
        # Scheduled ahead of the registration task so REGISTERING is always
        # delivered before its outcome.
        assert self.__loop is not None
        self.__loop.call_soon(
            self.__deliver,
            handle,
            group,
            generation,
            EntryGroupState.REGISTERING,
        )
        group.registration = self.__spawn(
            self.__register(handle, group, zc, info, generation)
        )

    def reset(self, handle: EntryGroupHandle) -> None:
        group = self.__groups.get(handle)
        if group is not None:
            self.__withdraw(group)

    def free(self, handle: EntryGroupHandle) -> None:
        group = self.__groups.pop(handle, None)
        if group is not None:
            self.__withdraw(group)

    async def close(self) -> None:
        """Withdraws all groups, cancels pending work and closes zeroconf."""
        self.__observer = None
        self.__invalidate_groups()
        pending = [task for task in self.__tasks if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        zc = self.__zc
        self.__zc = None
        self.__state = ClientState.DISCONNECTED
        if zc is not None:
            await self.__close_zeroconf(zc)

    def __connect(self) -> None:
        self.__set_state(ClientState.CONNECTING)
        try:
            self.__zc = self.__zeroconf_factory()
        except Exception as e:  # pylint: disable=broad-exception-caught
            _logger.error(
                "Failed to create zeroconf connection: %s", e, exc_info=True
            )
            self.__zc = None
            self.__set_state(ClientState.OTHER_FAILURE)
            return

        self.__set_state(ClientState.RUNNING)

    def __disconnect(self) -> None:
        self.__invalidate_groups()

        zc = self.__zc
        self.__zc = None
        if zc is not None:
            self.__spawn(self.__close_zeroconf(zc))

    def __set_state(self, state: ClientState) -> None:
        self.__state = state
        assert self.__loop is not None
        self.__loop.call_soon(self.__notify_state, state)

    def __notify_state(self, state: ClientState) -> None:
        if self.__observer is not None:
            self.__observer._on_client_state_changed(state)

    def __check_running(self) -> None:
        if self.__state != ClientState.RUNNING or self.__zc is None:
            raise DirectoryError(
                f"Zeroconf connection is not running (state: {self.__state.name})."
            )

    def __invalidate_groups(self) -> None:
        for group in self.__groups.values():
            group.generation += 1
            self.__cancel_registration(group)
        self.__groups.clear()

    def __cancel_registration(self, group: _EntryGroup) -> None:
        task = group.registration
        group.registration = None
        # A registration reporting its own outcome may cause a recommit.
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def __withdraw(self, group: _EntryGroup) -> None:
        group.generation += 1
        self.__cancel_registration(group)
        if group.info is not None:
            info = group.info
            group.info = None
            if self.__zc is not None:
                self.__spawn(self.__unregister(self.__zc, info))

    def __deliver(
        self,
        handle: EntryGroupHandle,
        group: _EntryGroup,
        generation: int,
        state: EntryGroupState,
    ) -> None:
        if self.__groups.get(handle) is not group or group.generation != generation:
            _logger.debug(
                "Dropping %s notification for withdrawn %r.", state.name, handle
            )
            return
        group.callback(handle, state)

    def __spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        assert self.__loop is not None
        task = self.__loop.create_task(coro)
        self.__tasks.add(task)
        task.add_done_callback(self.__tasks.discard)
        return task

    async def __register(
        self,
        handle: EntryGroupHandle,
        group: _EntryGroup,
        zc: AsyncZeroconf,
        info: ServiceInfo,
        generation: int,
    ) -> None:
        try:
            await zc.async_register_service(info, allow_name_change=False)
        except NonUniqueNameException:
            self.__deliver(handle, group, generation, EntryGroupState.COLLISION)
            return
        except NotRunningException:
            self.__on_connection_lost(zc, info.name)
            return
        except (ZeroconfError, OSError) as e:
            _logger.error("Failed to register service %s: %s", info.name, e)
            self.__deliver(handle, group, generation, EntryGroupState.FAILURE)
            return

        if (
            self.__groups.get(handle) is not group
            or group.generation != generation
        ):
            _logger.warning(
                "Registration of %s completed after it was withdrawn, "
                "unregistering it again.",
                info.name,
            )
            # A replaced connection sends goodbyes for all of its services when
            # it is closed.
            if self.__zc is zc:
                await self.__unregister(zc, info)
            return

        group.info = info
        self.__deliver(handle, group, generation, EntryGroupState.ESTABLISHED)

    async def __unregister(self, zc: AsyncZeroconf, info: ServiceInfo) -> None:
        try:
            await zc.async_unregister_service(info)
            _logger.debug("Service %s unregistered.", info.name)
        except NotRunningException:
            _logger.debug(
                "Zeroconf no longer running, %s was not unregistered.", info.name
            )
        except (ZeroconfError, OSError) as e:
            _logger.error("Failed to unregister service %s: %s", info.name, e)

    async def __close_zeroconf(self, zc: AsyncZeroconf) -> None:
        try:
            await zc.async_close()
        except (ZeroconfError, OSError) as e:
            _logger.error("Error while closing zeroconf connection: %s", e)

    def __on_connection_lost(self, zc: AsyncZeroconf, service_name: str) -> None:
        if zc is not self.__zc or self.__state == ClientState.DISCONNECTED:
            return
        _logger.warning(
            "Zeroconf stopped running while registering %s.", service_name
        )
        self.__set_state(ClientState.DISCONNECTED)
