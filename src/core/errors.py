"""Exceptions that abort a runtime comparison run."""


class EmptyJobSetError(ValueError):
    """Raised when the base or the PR side has no job records at all."""

    def __init__(self, side: str) -> None:
        self.side = side
        super().__init__(f"No {side} jobs found")


class FetchError(RuntimeError):
    """Raised when job or workflow data could not be retrieved from the CI provider."""
