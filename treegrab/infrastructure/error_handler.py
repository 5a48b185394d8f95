"""
Error taxonomy and HTTP error translation for TreeGrab.

Every failure the library reports derives from ``TreeGrabError`` so callers
can decide on retry or backoff policies themselves. Nothing in here retries.
"""

import functools
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar

import httpx

from .logger import logger


T = TypeVar("T")


####
##      RATE LIMIT METADATA
#####
@dataclass
class RateLimitInfo:
    """Rate limit state reported by the GitHub API headers."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    used: Optional[int] = None
    reset_time: Optional[datetime] = None
    retry_after: Optional[float] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo":
        """Parse ``x-ratelimit-*`` and ``retry-after`` headers."""

        def _int(name: str) -> Optional[int]:
            value = headers.get(name)
            if value is None:
                return None
            try:
                return int(value)
            except ValueError:
                return None

        reset = _int("x-ratelimit-reset")
        retry_after = _int("retry-after")

        return cls(
            limit=_int("x-ratelimit-limit"),
            remaining=_int("x-ratelimit-remaining"),
            used=_int("x-ratelimit-used"),
            reset_time=datetime.fromtimestamp(reset) if reset is not None else None,
            retry_after=float(retry_after) if retry_after is not None else None,
        )

    @property
    def is_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    @property
    def reset_in_seconds(self) -> float:
        """Seconds until the primary quota resets, never negative."""

        if not self.reset_time:
            return 0.0
        return max(0.0, (self.reset_time - datetime.now()).total_seconds())


####
##      EXCEPTIONS
#####
class TreeGrabError(Exception):
    """Base exception for all TreeGrab failures."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (Original: {self.original_error})"
        return self.message


class NotFoundError(TreeGrabError):
    """Repository, ref or path does not exist."""


class NotAFileError(TreeGrabError):
    """A blob operation was attempted on a directory entry."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Not a file: {path}")


class RateLimitError(TreeGrabError):
    """The API signalled that a (secondary) rate limit was hit."""

    def __init__(
        self,
        message: str,
        rate_limit: Optional[RateLimitInfo] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message, original_error)
        self.rate_limit = rate_limit or RateLimitInfo()

    @property
    def retry_after(self) -> Optional[float]:
        return self.rate_limit.retry_after

    @property
    def reset_at(self) -> Optional[datetime]:
        return self.rate_limit.reset_time


class TransportError(TreeGrabError):
    """Network, connection or unexpected HTTP status failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message, original_error)
        self.status_code = status_code


class AuthenticationError(TransportError):
    """The token was rejected or lacks access to the resource."""


class MalformedResponseError(TreeGrabError):
    """An API payload could not be parsed into the expected shape."""


class LocalIOError(TreeGrabError):
    """Writing to local storage failed."""

    def __init__(self, message: str, path: Any = None, original_error: Optional[BaseException] = None):
        super().__init__(message, original_error)
        self.path = path


class InvalidPathError(TreeGrabError, ValueError):
    """A relative path escapes the repository root."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path escapes the repository root: {path!r}")


class PartialDownloadError(TreeGrabError):
    """One or more selected files failed to download."""

    def __init__(self, failures: Dict[str, TreeGrabError]):
        self.failures = dict(failures)
        details = "; ".join(f"{path}: {error}" for path, error in self.failures.items())
        super().__init__(f"{len(self.failures)} file(s) failed to download: {details}")


####
##      HTTP RESPONSE TRANSLATION
#####
def _response_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase

    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase


def raise_for_response(response: httpx.Response) -> None:
    """
    Raise the matching TreeGrab error for a non-successful response.

    Args:
        response: Response returned by the GitHub API

    Raises:
        RateLimitError: 429, or 403 carrying rate limit signals
        AuthenticationError: 401, or 403 without rate limit signals
        NotFoundError: 404, or 409 for an empty repository
        TransportError: Any other non-2xx status
    """
    if response.is_success:
        return

    status = response.status_code
    message = _response_message(response)
    rate_limit = RateLimitInfo.from_headers(response.headers)

    if status == 429 or (
        status == 403 and (
            "rate limit" in message.lower()
            or rate_limit.is_exhausted
            or rate_limit.retry_after is not None
        )
    ):
        raise RateLimitError(f"Rate limit exceeded: {message}", rate_limit=rate_limit)

    if status in (401, 403):
        raise AuthenticationError(f"Access denied ({status}): {message}", status_code=status)

    if status in (404, 409):
        raise NotFoundError(f"Not found: {message}")

    raise TransportError(f"GitHub API returned {status}: {message}", status_code=status)


def handle_api_error(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Decorator translating httpx failures of an async API call into
    TreeGrab errors. TreeGrab errors pass through untouched.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)

        except TreeGrabError:
            raise

        except httpx.TimeoutException as e:
            logger.debug(f"Timeout in {func.__name__}: {e}")
            raise TransportError("Request timed out", original_error=e) from e

        except httpx.HTTPError as e:
            text = str(e)
            if "429" in text or "rate limit" in text.lower():
                raise RateLimitError("Rate limit exceeded", original_error=e) from e
            logger.debug(f"Transport failure in {func.__name__}: {e}")
            raise TransportError("HTTP transport error", original_error=e) from e

    return wrapper


__all__ = [
    "RateLimitInfo",
    "TreeGrabError",
    "NotFoundError",
    "NotAFileError",
    "RateLimitError",
    "TransportError",
    "AuthenticationError",
    "MalformedResponseError",
    "LocalIOError",
    "InvalidPathError",
    "PartialDownloadError",
    "raise_for_response",
    "handle_api_error",
]
