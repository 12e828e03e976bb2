class BadgingError(Exception):
    """Base class for errors raised by the badging application."""


class ValidationError(BadgingError):
    """Rejected input, e.g. a registration without name or email."""


class AttendeeNotFound(BadgingError):
    """No attendee matches the requested id or barcode."""

    def __init__(self, key):
        super().__init__(f"Attendee {key!r} not found")
        self.key = key


class StorageError(BadgingError):
    """The attendee database could not complete an operation."""


class LayoutSaveError(BadgingError):
    """The layout document could not be persisted."""


class RasterizeError(BadgingError):
    """A barcode or QR image could not be generated."""
