"""Error taxonomy shared by every platform client.

Every concrete failure maps to exactly one of these kinds. Clients never
retry; retry policy belongs to the sync engine.
"""

from __future__ import annotations


class PlatformError(Exception):
    """Base class for parser and platform-client failures."""

    message = "Platform request failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class InvalidFormat(PlatformError):
    """User input does not match any recognised repository pattern."""

    message = "Unrecognised repository format. Use a URL, an SSH remote or owner/name."


class InvalidURL(PlatformError):
    message = "Invalid repository URL."


class NetworkError(PlatformError):
    """Transport-level failure (DNS, connection reset, timeout)."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}" if str(cause) else type(cause).__name__)


class InvalidResponse(PlatformError):
    message = "Invalid response from server."


class RateLimited(PlatformError):
    """Platform rate limit exhausted (primary or secondary)."""

    message = "API rate limit exceeded."

    def __init__(self, retry_after: int | None = None) -> None:
        self.retry_after = retry_after
        text = self.message
        if retry_after is not None:
            text = f"{text} Retry in {retry_after}s."
        super().__init__(text)


class NotFound(PlatformError):
    message = "Repository not found."


class InvalidToken(PlatformError):
    message = "Invalid access token."


class UnsupportedPlatform(PlatformError):
    """Operation is not available on this platform yet."""

    def __init__(self, platform_name: str | None = None, operation: str | None = None) -> None:
        self.platform_name = platform_name
        self.operation = operation
        if platform_name and operation:
            text = f"{operation} is not available for {platform_name} yet."
        elif platform_name:
            text = f"{platform_name} is not supported yet."
        else:
            text = "This platform is not supported."
        super().__init__(text)


class HttpError(PlatformError):
    """Catch-all for unrecognised status codes."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        self.detail = message
        if message:
            text = f"HTTP {status}: {message}"
        else:
            text = f"HTTP {status} error."
        super().__init__(text)
