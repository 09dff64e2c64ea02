"""Custom exceptions for the cfwatch application."""


class CodeforcesError(Exception):
    """Base exception for all cfwatch errors."""

    def __init__(self, message: str = "An error occurred while talking to Codeforces") -> None:
        self.message = message
        super().__init__(self.message)


class RemoteApiError(CodeforcesError):
    """Raised when the Codeforces API answers with a non-OK status."""

    def __init__(
        self,
        comment: str | None = None,
        method: str | None = None,
        fallback: str = "Codeforces API request failed",
    ) -> None:
        super().__init__(comment or fallback)
        self.comment = comment
        self.method = method


class TransportError(CodeforcesError):
    """Raised when the API can't be reached or the body can't be decoded."""

    def __init__(self, message: str = "Could not reach Codeforces") -> None:
        super().__init__(message)


class ValidationError(CodeforcesError):
    """Raised when a successful response has an unexpected shape."""

    def __init__(self, message: str = "Unexpected response from Codeforces", field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ConfigError(CodeforcesError):
    """Raised when configuration values are out of range."""

    def __init__(self, message: str = "Invalid configuration") -> None:
        super().__init__(message)
