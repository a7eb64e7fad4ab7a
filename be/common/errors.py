"""Errors raised by the file store. Each carries the HTTP status it maps to."""


class StoreError(Exception):
    """Base class for file store failures."""

    status = 500

    def __init__(self, message: str = '') -> None:
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


class UnsupportedMediaType(StoreError):
    """Filetype is outside the whitelist."""

    status = 415


class InvalidRequest(StoreError):
    """Malformed filename, content hash or request field."""

    status = 400


class OwnershipConflict(StoreError):
    """Caller does not own the record stored under the requested identity."""

    status = 403


class NotFound(StoreError):
    status = 404


class StoreInitError(StoreError):
    """A write was attempted before the file identity was resolved."""

    status = 500


class WriteFailure(StoreError):
    """The physical write or the index upsert did not complete."""

    status = 500
