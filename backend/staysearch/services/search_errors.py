"""Search error taxonomy and upstream failure classification."""

import asyncio
import re

import httpx

MSG_INVALID_PARAMS = (
    "Something's missing in your search. Please check destination, dates, "
    "and guests and try again."
)
MSG_NO_RATES = (
    "We don't have availability for these dates in this area. Try changing "
    "your dates or looking at a nearby area."
)
MSG_TIMEOUT = (
    "The search is taking longer than usual. Try again in a moment, or adjust "
    "your dates or destination."
)
MSG_SEARCH_FAILED = (
    "We couldn't load results right now. Please check your connection and try again."
)

_TIMEOUT_PATTERN = re.compile(r"timeout|timed out", re.IGNORECASE)


class LiteApiError(Exception):
    """Non-2xx (or error-bodied) response from LiteAPI."""

    def __init__(self, message: str, status: int | None = None, code: int | str | None = None):
        super().__init__(message)
        self.status = status
        self.code = code


class SearchError(Exception):
    code = "SEARCH_FAILED"
    status = 500
    default_message = MSG_SEARCH_FAILED

    def __init__(self, message: str | None = None, status: int | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status is not None:
            self.status = status

    def to_dict(self) -> dict:
        return {"error": {"message": self.message, "code": self.code}}


class InvalidParamsError(SearchError):
    code = "INVALID_PARAMS"
    status = 400
    default_message = MSG_INVALID_PARAMS


class NoRatesError(SearchError):
    code = "NO_RATES"
    status = 404
    default_message = MSG_NO_RATES


class SearchTimeoutError(SearchError):
    code = "TIMEOUT"
    status = 408
    default_message = MSG_TIMEOUT


class SearchFailedError(SearchError):
    pass


def classify_upstream_error(exc: BaseException) -> SearchError:
    """Map a failed primary rates call to TIMEOUT, INVALID_PARAMS or SEARCH_FAILED."""
    if isinstance(exc, SearchError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return SearchTimeoutError()

    status = getattr(exc, "status", None)
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code

    if status in (408, 504) or _TIMEOUT_PATTERN.search(str(exc)):
        return SearchTimeoutError()
    if isinstance(status, int) and 400 <= status < 500:
        return InvalidParamsError(status=status)
    if isinstance(status, int) and status >= 500:
        return SearchFailedError(status=status)
    return SearchFailedError()
