"""Publisher lifecycle: event handlers plus initialize/teardown entry points."""

from zcpublish.publisher.module import initialize, teardown
from zcpublish.publisher.zeroconf_publisher import ZeroconfPublisher

__all__ = ["ZeroconfPublisher", "initialize", "teardown"]
