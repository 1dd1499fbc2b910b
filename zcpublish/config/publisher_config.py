"""Configuration of the service publisher and module argument parsing."""

import logging
import shlex
from dataclasses import dataclass

_logger = logging.getLogger(__name__)

# Port of the native protocol, announced when no port argument is given.
DEFAULT_PORT = 4713

VALID_MODULE_ARGUMENTS = ("port",)


class ConfigurationError(ValueError):
    """Raised when the publisher is given invalid module arguments."""


@dataclass(frozen=True)
class PublisherConfig:
    """Settings the publisher is initialized with.

    Attributes:
        port: Port announced in every published record. 1..65535.
    """

    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ConfigurationError(
                f"port must be int, got {type(self.port).__name__}."
            )
        if self.port <= 0 or self.port > 0xFFFF:
            raise ConfigurationError(
                f"port must be in range 1..65535, got {self.port}."
            )


def parse_module_arguments(argument: str | None) -> PublisherConfig:
    """Parses a module argument string such as `port=4713`.

    Arguments are whitespace separated `key=value` pairs, values may be
    quoted. Only the keys in `VALID_MODULE_ARGUMENTS` are accepted.

    Raises:
        ConfigurationError: If the string cannot be parsed, contains an unknown
            or repeated key, or carries an invalid port.
    """
    if argument is None or not argument.strip():
        return PublisherConfig()

    try:
        tokens = shlex.split(argument)
    except ValueError as e:
        _logger.error("Failed to parse module arguments '%s': %s", argument, e)
        raise ConfigurationError(f"failed to parse module arguments: {e}") from e

    values: dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"malformed module argument '{token}'.")
        if key not in VALID_MODULE_ARGUMENTS:
            raise ConfigurationError(f"unknown module argument '{key}'.")
        if key in values:
            raise ConfigurationError(f"module argument '{key}' given twice.")
        values[key] = value

    if "port" not in values:
        return PublisherConfig()

    try:
        port = int(values["port"], 10)
    except ValueError as e:
        _logger.error("invalid port specified: '%s'", values["port"])
        raise ConfigurationError(
            f"invalid port specified: '{values['port']}'."
        ) from e

    return PublisherConfig(port=port)
