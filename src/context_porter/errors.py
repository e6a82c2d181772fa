"""Exception types raised by context-porter."""


class ExportError(Exception):
    """Base class for all context-porter errors."""


class UnsupportedFormatError(ExportError, ValueError):
    """Raised when an export is requested in a format no exporter handles."""

    def __init__(self, requested: object, supported: list[str]) -> None:
        self.requested = requested
        self.supported = supported
        super().__init__(
            f"Unsupported export format: {requested!r}. Use: {', '.join(supported)}"
        )


class ValidationError(ExportError, ValueError):
    """Raised when an input entity is malformed."""


class BundleError(ExportError):
    """Raised when a project bundle cannot be read or parsed."""


class HandoffError(ExportError):
    """Raised when a handoff prompt cannot be generated."""
