"""Exceptions raised by relmap."""


class RelmapError(Exception):
    """Base class for relmap errors."""


class MetadataError(RelmapError):
    """Schema metadata is malformed or incomplete."""


class ConnectionFailedError(RelmapError):
    """The database could not be reached after all retries."""
