"""Error taxonomy shared by adapters, services and the API layer."""


class ClipforgeError(Exception):
    """Base class for all clipforge errors."""

    pass


class ValidationError(ClipforgeError):
    """Raised when input is missing or malformed, or a stage precondition is unmet.

    Always raised before any external call is made.
    """

    pass


class NotFoundError(ClipforgeError):
    """Raised when a creative unit or task does not exist."""

    pass


class ProviderError(ClipforgeError):
    """Raised when a provider answers with an application-level failure code."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"{self.message} (code {self.code})"


class TransportError(ClipforgeError):
    """Raised when a collaborator cannot be reached or returns an unreadable response."""

    pass


class MaterializationError(ClipforgeError):
    """Raised when a finished video cannot be downloaded or written locally."""

    pass


class StageConflictError(ValidationError):
    """Raised when a stage is resubmitted while its task is still running."""

    pass
