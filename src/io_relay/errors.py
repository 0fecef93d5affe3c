"""Exceptions raised by io_relay."""


class IoError(Exception):
    """Base class for io_relay errors."""

    pass


class IoConfigurationError(IoError):
    """Raised when a client or config is constructed with invalid settings."""

    pass


class NotConnectedError(IoError):
    """Raised when sending without a live socket."""

    pass
