"""
Errors raised by the SCF benchmark scripts.

Everything raised on purpose derives from BenchError so the entry points
can report it and exit with status 1.
"""


class BenchError(Exception):
    pass


class ConfigError(BenchError):
    """Missing credentials or invalid run options."""


class PackagingError(BenchError):
    """The deployment package could not be built."""


class StorageError(BenchError):
    """Uploading to COS failed."""


class RemoteServiceError(BenchError):
    """An SCF API call failed."""

    def __init__(self, message, code=None, request_id=None):
        super().__init__(message)
        self.code = code
        self.request_id = request_id


class NotFoundError(RemoteServiceError):
    """The function to update (or query) does not exist."""


class AlreadySealedError(BenchError, RuntimeError):
    """A checkpoint was added to a timer after stop()."""
