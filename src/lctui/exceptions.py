"""Custom exceptions for the lctui application."""


class LeetCodeError(Exception):
    """Base exception for all lctui errors."""

    def __init__(self, message: str = "An error occurred with LeetCode TUI") -> None:
        self.message = message
        super().__init__(self.message)


class TransportError(LeetCodeError):
    """Raised when LeetCode is unreachable or returns a malformed response."""

    def __init__(self, message: str = "Could not reach leetcode.com") -> None:
        super().__init__(message)


class SessionExpiredError(LeetCodeError):
    """Raised when LeetCode rejects the stored session (401/403)."""

    def __init__(
        self, message: str = "Session expired. Log into leetcode.com in your browser and login again."
    ) -> None:
        super().__init__(message)


class AuthenticationRequiredError(LeetCodeError):
    """Raised before any request when no credentials are configured."""

    def __init__(
        self,
        message: str = "Authentication required.\nPress S for settings, or use Ctrl+L in settings for auto-login.",
    ) -> None:
        super().__init__(message)


class ProblemNotFoundError(LeetCodeError):
    """Raised when a problem slug doesn't exist."""

    def __init__(self, slug: str | None = None) -> None:
        if slug:
            message = f"Problem not found: {slug}"
        else:
            message = "Problem not found"
        super().__init__(message)
        self.slug = slug


class SolutionNotFoundError(LeetCodeError):
    """Raised when the local solution file is missing or unreadable."""

    def __init__(self, path: object, reason: str | None = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Failed to read code from {path}{detail}\nScaffold the problem first with 'o'"
        )
        self.path = path


class CookieError(LeetCodeError):
    """Raised when LeetCode cookies can't be read from any browser."""

    def __init__(
        self, message: str = "Failed to read LeetCode cookies. Log into leetcode.com in your browser."
    ) -> None:
        super().__init__(message)


class SubmissionError(LeetCodeError):
    """Raised when LeetCode rejects a run or submission."""

    def __init__(self, message: str = "Submission failed") -> None:
        super().__init__(message)


class StorageError(LeetCodeError):
    """Raised when config, cache, or scaffold files can't be read or written."""

    def __init__(self, message: str = "Local storage error") -> None:
        super().__init__(message)
