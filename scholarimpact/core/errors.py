"""
error taxonomy for scholarimpact.
every failure the core can raise, plus the one place that turns them
into the short messages a user is allowed to see.
"""

from typing import Optional


class ErrorMessages:
    """fixed user-facing messages."""
    NETWORK = "Network error occurred. Please check your connection."
    API_ERROR = "Error fetching data from the server."
    NO_RESULTS = "No results found for your search."
    RATE_LIMIT = "Too many requests. Please wait a moment and try again."
    VALIDATION = "Invalid input data provided."
    UNKNOWN = "An unexpected error occurred."


class ScholarImpactError(Exception):
    """base error; carries a machine-readable code."""
    code = "UNKNOWN"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self):
        return f"[{self.code}] {self.message}"


class ValidationError(ScholarImpactError):
    """bad caller input (e.g. empty search query)."""
    code = "VALIDATION"

    def __init__(self, message: str = ErrorMessages.VALIDATION):
        super().__init__(message)


class NoResultsError(ScholarImpactError):
    """well-formed request, nothing usable came back."""
    code = "NO_RESULTS"

    def __init__(self, message: str = ErrorMessages.NO_RESULTS):
        super().__init__(message)


class UpstreamError(ScholarImpactError):
    """non-2xx response; status is the last one observed."""
    code = "UPSTREAM_ERROR"

    def __init__(self, status: int, message: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message or f"HTTP error! status: {status}")
        self.status = status
        self.url = url

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429


class NetworkError(ScholarImpactError):
    """transport failure - connection refused, dns, timeout, reset."""
    code = "NETWORK"

    def __init__(self, message: str = "Failed to fetch"):
        super().__init__(message)


class StepFailed(ScholarImpactError):
    """an agent step failed; message is already a fixed user-facing one."""

    def __init__(self, step: str, code: str, message: str):
        super().__init__(message, code)
        self.step = step


def is_rate_limit(error: BaseException) -> bool:
    """429 status, or a message that mentions it."""
    if isinstance(error, UpstreamError):
        return error.is_rate_limited
    return "429" in str(error)


def is_network_failure(error: BaseException) -> bool:
    if isinstance(error, NetworkError):
        return True
    return "Failed to fetch" in str(error)


def user_message(error: BaseException) -> str:
    """
    map any error to one of the fixed user-facing messages.
    callers must route every core failure through here.
    """
    if isinstance(error, StepFailed):
        return error.message
    if is_network_failure(error):
        return ErrorMessages.NETWORK
    if is_rate_limit(error):
        return ErrorMessages.RATE_LIMIT
    if isinstance(error, NoResultsError):
        return ErrorMessages.NO_RESULTS
    if isinstance(error, ValidationError):
        return ErrorMessages.VALIDATION
    if isinstance(error, UpstreamError):
        return ErrorMessages.API_ERROR
    return ErrorMessages.UNKNOWN
