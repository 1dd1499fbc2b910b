"""Types describing the local audio endpoints that get announced."""

from zcpublish.endpoints.endpoint import Endpoint, EndpointId, EndpointKind
from zcpublish.endpoints.endpoint_inventory import EndpointInventory
from zcpublish.endpoints.in_memory_endpoint_inventory import (
    InMemoryEndpointInventory,
)
from zcpublish.endpoints.sample_spec import ChannelMap, SampleFormat, SampleSpec

__all__ = [
    "ChannelMap",
    "Endpoint",
    "EndpointId",
    "EndpointInventory",
    "EndpointKind",
    "InMemoryEndpointInventory",
    "SampleFormat",
    "SampleSpec",
]
