import pytest

from zcpublish.endpoints.endpoint import Endpoint, EndpointId, EndpointKind
from zcpublish.endpoints.endpoint_inventory import EndpointInventory
from zcpublish.endpoints.in_memory_endpoint_inventory import (
    InMemoryEndpointInventory,
)
from zcpublish.endpoints.sample_spec import ChannelMap, SampleFormat, SampleSpec
from zcpublish.test.endpoint_fixtures import make_endpoint


class RecordingObserver(EndpointInventory.Observer):
    __test__ = False

    def __init__(self, inventory: EndpointInventory) -> None:
        self.inventory = inventory
        self.events: list[tuple[str, Endpoint]] = []
        self.resolvable_on_remove: list[bool] = []

    def on_endpoint_added(self, endpoint: Endpoint) -> None:
        self.events.append(("added", endpoint))

    def on_endpoint_description_changed(self, endpoint: Endpoint) -> None:
        self.events.append(("changed", endpoint))

    def on_endpoint_removed(self, endpoint: Endpoint) -> None:
        self.events.append(("removed", endpoint))
        self.resolvable_on_remove.append(
            self.inventory.get(endpoint.id) is not None
        )


@pytest.fixture
def observer(inventory) -> RecordingObserver:
    observer = RecordingObserver(inventory)
    inventory.connect(observer)
    return observer


class TestInMemoryEndpointInventory:

    def test_lifecycle_hooks(self, inventory, observer):
        endpoint = make_endpoint(3, description="Speakers")

        inventory.add(endpoint)
        updated = inventory.set_description(endpoint.id, "Headphones")
        inventory.remove(endpoint.id)

        assert [kind for kind, _ in observer.events] == [
            "added",
            "changed",
            "removed",
        ]
        assert updated.description == "Headphones"
        assert observer.events[1][1] == updated
        assert observer.resolvable_on_remove == [True]
        assert inventory.get(endpoint.id) is None

    def test_unchanged_description_fires_nothing(self, inventory, observer):
        endpoint = make_endpoint(3, description="Speakers")
        inventory.add(endpoint)

        inventory.set_description(endpoint.id, "Speakers")

        assert len(observer.events) == 1

    def test_remove_unknown_is_noop(self, inventory, observer):
        inventory.remove(EndpointId(EndpointKind.SINK, 42))
        assert observer.events == []

    def test_duplicate_add_is_rejected(self, inventory):
        inventory.add(make_endpoint(1))
        with pytest.raises(ValueError):
            inventory.add(make_endpoint(1))

    def test_endpoints_lists_sinks_first(self):
        source = make_endpoint(0, kind=EndpointKind.SOURCE)
        sink = make_endpoint(5)
        inventory = InMemoryEndpointInventory([source, sink])

        assert inventory.endpoints() == [sink, source]

    def test_disconnected_observer_gets_nothing(self, inventory, observer):
        inventory.disconnect(observer)
        inventory.disconnect(observer)
        inventory.add(make_endpoint(1))
        assert observer.events == []


class TestEndpoint:

    def test_display_description_falls_back_to_name(self):
        assert make_endpoint(1, name="hw0", description=None).display_description == "hw0"
        assert make_endpoint(1, name="hw0", description="").display_description == "hw0"

    def test_channel_map_must_match_channels(self):
        with pytest.raises(ValueError):
            Endpoint(
                index=0,
                kind=EndpointKind.SINK,
                name="hw0",
                sample_spec=SampleSpec(SampleFormat.S16LE, 44100, 2),
                channel_map=ChannelMap.default(1),
            )

    def test_default_channel_maps(self):
        assert str(ChannelMap.default(1)) == "mono"
        assert str(ChannelMap.default(2)) == "front-left,front-right"
        assert str(ChannelMap.default(3)) == "aux0,aux1,aux2"

    def test_sample_spec_validation(self):
        with pytest.raises(ValueError):
            SampleSpec(SampleFormat.S16LE, 0, 2)
        with pytest.raises(ValueError):
            SampleSpec(SampleFormat.S16LE, 44100, 0)
        with pytest.raises(TypeError):
            SampleSpec("s16le", 44100, 2)  # type: ignore[arg-type]

    def test_endpoint_id_str(self):
        assert str(EndpointId(EndpointKind.SOURCE, 4)) == "source#4"
