"""Factories for endpoints used across tests."""

from zcpublish.endpoints.endpoint import Endpoint, EndpointKind
from zcpublish.endpoints.sample_spec import ChannelMap, SampleFormat, SampleSpec


def make_endpoint(
    index: int = 0,
    *,
    kind: EndpointKind = EndpointKind.SINK,
    name: str | None = None,
    description: str | None = "Built-in Audio",
    rate: int = 44100,
    channels: int = 2,
    sample_format: SampleFormat = SampleFormat.S16LE,
) -> Endpoint:
    if name is None:
        prefix = "sink" if kind == EndpointKind.SINK else "source"
        name = f"alsa_{prefix}.{index}"
    return Endpoint(
        index=index,
        kind=kind,
        name=name,
        description=description,
        sample_spec=SampleSpec(sample_format, rate, channels),
        channel_map=ChannelMap.default(channels),
    )
