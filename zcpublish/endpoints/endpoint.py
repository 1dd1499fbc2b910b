"""Defines the Endpoint type exposed by the owning application's registry."""

import dataclasses
from enum import Enum

from zcpublish.endpoints.sample_spec import ChannelMap, SampleSpec


class EndpointKind(Enum):
    """Whether an endpoint plays audio (sink) or records it (source)."""

    SINK = 0
    SOURCE = 1


@dataclasses.dataclass(frozen=True)
class EndpointId:
    """Stable identity of an endpoint, unique across sinks and sources."""

    kind: EndpointKind
    index: int

    def __str__(self) -> str:
        return f"{self.kind.name.lower()}#{self.index}"


@dataclasses.dataclass(frozen=True)
class Endpoint:
    """Snapshot of a locally exposed audio endpoint.

    Endpoints are owned by the application's registry. Publication code only
    keeps their `EndpointId` and resolves it again whenever the current
    metadata is needed.
    """

    index: int
    kind: EndpointKind
    name: str
    sample_spec: SampleSpec
    channel_map: ChannelMap
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Endpoint name cannot be empty.")
        if len(self.channel_map) != self.sample_spec.channels:
            raise ValueError(
                f"Channel map of '{self.name}' has {len(self.channel_map)} "
                f"positions but the sample spec has {self.sample_spec.channels} "
                "channels."
            )

    @property
    def id(self) -> EndpointId:
        return EndpointId(self.kind, self.index)

    @property
    def display_description(self) -> str:
        """The description, or the bare name if the endpoint has none."""
        return self.description if self.description else self.name
