"""Exceptions raised by the status pages server."""


class StatusPagesError(Exception):
    """Base class for status pages errors."""


class UnknownServiceError(StatusPagesError):
    """Raised when a request names a service that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"unknown service name {name!r}")
        self.name = name


class RenderError(StatusPagesError):
    """Raised when one of the built-in templates fails to render."""
