"""Exception hierarchy for mongo-drift.

Fatal errors (``FilterParseError``, ``ConnectionFailedError``,
``DeadlineExceededError``, ``ProfileNotFoundError``) abort a run.
``DriverError`` and ``IndexDecodeError`` are recoverable: callers log them
and move on to the next collection or index.
"""


class MongoDriftError(Exception):
    """Base class for all mongo-drift errors."""


class DriverError(MongoDriftError):
    """A collection driver call failed (count, list, create or drop)."""


class DeadlineExceededError(DriverError):
    """The shared run deadline elapsed while a driver call was in flight."""


class IndexDecodeError(MongoDriftError):
    """A raw index record could not be turned into an ``IndexDefinition``."""


class FilterParseError(MongoDriftError):
    """A document filter is not a valid Extended JSON object."""


class ConnectionFailedError(MongoDriftError):
    """Connecting to or pinging a MongoDB deployment failed."""


class ProfileNotFoundError(MongoDriftError):
    """A requested configuration profile does not exist."""
