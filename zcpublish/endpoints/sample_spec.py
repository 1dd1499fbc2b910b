"""Sample and channel layout metadata of an audio endpoint."""

import dataclasses
from enum import Enum


class SampleFormat(Enum):
    """Sample formats an endpoint may run at.

    The values are the names remote discoverers expect in the `format` TXT
    entry.
    """

    U8 = "u8"
    ALAW = "aLaw"
    ULAW = "uLaw"
    S16LE = "s16le"
    S16BE = "s16be"
    FLOAT32LE = "float32le"
    FLOAT32BE = "float32be"
    S32LE = "s32le"
    S32BE = "s32be"
    S24LE = "s24le"
    S24BE = "s24be"
    S24_32LE = "s24-32le"
    S24_32BE = "s24-32be"

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True)
class SampleSpec:
    """Format, rate and channel count of an endpoint."""

    format: SampleFormat
    rate: int
    channels: int

    def __post_init__(self) -> None:
        if not isinstance(self.format, SampleFormat):
            raise TypeError(
                f"format must be SampleFormat, got {type(self.format).__name__}."
            )
        if self.rate <= 0:
            raise ValueError(f"rate must be positive, got {self.rate}.")
        if self.channels <= 0:
            raise ValueError(f"channels must be positive, got {self.channels}.")


@dataclasses.dataclass(frozen=True)
class ChannelMap:
    """Ordered channel positions of an endpoint (e.g. front-left, front-right)."""

    positions: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.positions:
            raise ValueError("ChannelMap requires at least one position.")

    @classmethod
    def default(cls, channels: int) -> "ChannelMap":
        """Returns the default layout for |channels| channels.

        Mono and stereo get their named positions, anything else is mapped to
        auxiliary channels.
        """
        if channels == 1:
            return cls(("mono",))
        if channels == 2:
            return cls(("front-left", "front-right"))
        return cls(tuple(f"aux{i}" for i in range(channels)))

    def __len__(self) -> int:
        return len(self.positions)

    def __str__(self) -> str:
        return ",".join(self.positions)
