"""Exception types raised by corecare."""


class CoreCareError(Exception):
    """Base class for corecare errors."""


class NoReadingsError(CoreCareError):
    """A computation that requires data was given an empty period."""

    def __init__(self, message: str = "No readings for period") -> None:
        super().__init__(message)


class InvalidInputError(CoreCareError, ValueError):
    """Input rejected at the boundary before any metric is computed."""
