"""Host and user identity helpers used to name and describe announcements."""

import getpass
import logging
import socket

_logger = logging.getLogger(__name__)


def get_user_name() -> str:
    """Returns the login name of the user owning this process.

    Falls back to "unknown" when no name can be determined (e.g. a uid
    without a passwd entry inside a container).
    """
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        _logger.warning("Could not determine local user name: %s", e)
        return "unknown"


def get_host_name() -> str:
    """Returns the short host name of this machine."""
    return socket.gethostname()


def get_fqdn() -> str:
    """Returns the fully-qualified domain name of this machine.

    `socket.getfqdn` returns the plain host name when no better name can be
    resolved, which is what remote discoverers should see in that case too.
    """
    return socket.getfqdn()
