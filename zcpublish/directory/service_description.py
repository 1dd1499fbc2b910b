"""Defines ServiceDescription, the payload of an entry group commit."""

import dataclasses

SERVICE_TYPE_SINK = "_pulse-sink._tcp"
SERVICE_TYPE_SOURCE = "_pulse-source._tcp"
SERVICE_TYPE_SERVER = "_pulse-server._tcp"


@dataclasses.dataclass(frozen=True)
class ServiceDescription:
    """One DNS-SD service to announce.

    Attributes:
        name: Service instance name (e.g. "alice@host: Built-in Audio").
        service_type: Service type without domain (e.g. "_pulse-sink._tcp").
        port: Port the service is reachable on.
        txt: Ordered TXT record key/value pairs.
    """

    name: str
    service_type: str
    port: int
    txt: dict[str, str] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Service name cannot be empty.")
        if not self.service_type.startswith("_"):
            raise ValueError(
                f"Service type must start with an underscore (e.g. "
                f"'_pulse-sink._tcp'), got '{self.service_type}'."
            )
        if self.port <= 0 or self.port > 0xFFFF:
            raise ValueError(f"port must be in range 1..65535, got {self.port}.")
