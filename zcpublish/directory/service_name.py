"""Service instance naming: label limits, derived names and collision renames."""

import re

from zcpublish.endpoints.endpoint import Endpoint

# Maximum length of a DNS label in bytes, which bounds service instance names.
LABEL_MAX = 63

_NUMBERED_NAME = re.compile(r"^(?P<base>.*) #(?P<number>[1-9][0-9]*)$", re.DOTALL)


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Truncates |text| to at most |max_bytes| UTF-8 bytes.

    Never splits a multi-byte character.
    """
    if max_bytes < 0:
        raise ValueError(f"max_bytes must be non-negative, got {max_bytes}.")
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def alternative_service_name(name: str) -> str:
    """Returns the name to retry with after |name| collided.

    "Speakers" becomes "Speakers #2", "Speakers #2" becomes "Speakers #3" and
    so on. The prefix is shortened when needed so the result still fits in a
    label. The result always differs from |name|.
    """
    match = _NUMBERED_NAME.match(name)
    if match:
        base = match.group("base")
        number = int(match.group("number")) + 1
    else:
        base = name
        number = 2

    suffix = f" #{number}"
    base = truncate_utf8(base, LABEL_MAX - len(suffix.encode("utf-8")))
    return base + suffix


def make_server_service_name(user_name: str, host_name: str) -> str:
    """Name of the main service record, `user@host`."""
    return truncate_utf8(f"{user_name}@{host_name}", LABEL_MAX)


def make_endpoint_service_name(
    user_name: str, host_name: str, endpoint: Endpoint
) -> str:
    """Name of an endpoint record, `user@host: description`.

    Falls back to the endpoint's bare name when it has no description.
    """
    return truncate_utf8(
        f"{user_name}@{host_name}: {endpoint.display_description}", LABEL_MAX
    )
