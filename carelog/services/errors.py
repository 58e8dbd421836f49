"""
Service Errors
==============
Error kinds raised by the schedule/appointment services.

- ValidationError: bad caller input, raised before any storage call.
- NotFoundError: the thing to act on does not exist (e.g. nothing to undo).
- StorageError: the database failed; carries the driver's message.

Controllers map them to 400 / 404 / 500.
"""


class CarelogError(Exception):
    """Base class for errors surfaced to API callers."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(CarelogError, ValueError):
    pass


class NotFoundError(CarelogError):
    pass


class StorageError(CarelogError):
    pass
