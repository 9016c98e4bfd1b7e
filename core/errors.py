# =============================================================================
# core/errors.py  -  Error Taxonomy for Every Adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the five kinds of failure an adapter can hit.  Every per-call
#   failure ends up as one of these, and the tool layer turns each of them
#   into an error-flagged text payload for the caller.
#
# THE FIVE FAILURES:
#   - ToolValidationError  → caller sent arguments of the wrong shape
#   - RateLimitExceeded    → local quota for the operation is used up
#   - RequestTimeout       → the upstream call ran past its deadline
#   - UpstreamError        → the third-party API said no (or sent garbage)
#   - FatalStartupError    → configuration is missing at process start
#
# RETRYABILITY:
#   Each class carries a `retryable` flag.  The adapters never retry on
#   their own; the flag is surfaced to the caller who decides.
#
#   Only FatalStartupError may stop the process, and only at startup.
# =============================================================================

from typing import Optional


class AdapterError(Exception):
    """Base class for every failure an adapter reports to its caller."""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ToolValidationError(AdapterError):
    """Caller-supplied arguments do not match the declared shape.

    Raised before any quota is consumed or any request is sent.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            message = f"Invalid argument '{field}': {message}"
        super().__init__(message)
        self.field = field


class RateLimitExceeded(AdapterError):
    """The local fixed-window quota for an operation category is exhausted."""

    retryable = True

    def __init__(self, category: str, limit_label: str):
        super().__init__(
            f"Rate limit exceeded for {category} ({limit_label}). "
            f"Please try again in a moment."
        )
        self.category = category
        self.limit_label = limit_label


class RequestTimeout(AdapterError):
    """The bounded call did not settle before its deadline."""

    retryable = True

    def __init__(self, timeout_ms: int):
        super().__init__(f"Operation timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class UpstreamError(AdapterError):
    """The third-party API returned a failure status or a malformed body."""

    def __init__(self, status: Optional[int], reason: str, detail: str = ""):
        head = f"API error: {status} {reason}" if status is not None else f"API error: {reason}"
        message = f"{head}\n{detail}" if detail else head
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.detail = detail


class FatalStartupError(AdapterError):
    """Required configuration is missing or invalid at process start."""
