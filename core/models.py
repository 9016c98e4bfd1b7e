# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every piece of state the adapters
# keep or pass around.  They carry almost no behavior.
#
# THE NOUNS:
#   - RateLimit      → one configured quota: N calls per window
#   - RateWindow     → the live counter for one (category, quota) pair
#   - AdapterSettings → startup configuration of one adapter process
#   - ToolOutcome    → what a tool call hands back to the MCP caller
# =============================================================================

from dataclasses import dataclass


# -----------------------------------------------------------------------------
# RateLimit  -  a fixed quota per fixed window
# -----------------------------------------------------------------------------
# Examples taken from the upstream APIs' published limits:
#   RateLimit(5, 1.0)          → 5 calls per second (Slack, Ploomes)
#   RateLimit(500, 100.0)      → 500 calls per 100 seconds (Google Calendar)
#   RateLimit(15000, 2592000)  → 15000 calls per 30 days (Brave)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class RateLimit:
    """At most `max_calls` admitted calls per `window` seconds."""

    max_calls: int
    window: float                      # Window length in seconds
    label: str = ""                    # e.g. "5/1s", used in error messages

    def __post_init__(self):
        if self.max_calls <= 0:
            raise ValueError("max_calls must be positive")
        if self.window <= 0:
            raise ValueError("window must be positive")
        if not self.label:
            object.__setattr__(self, "label", f"{self.max_calls}/{self.window:g}s")


# -----------------------------------------------------------------------------
# RateWindow  -  mutable counter, one per (category, RateLimit)
# -----------------------------------------------------------------------------
# Created lazily the first time a category is seen and kept for the life
# of the process.  `count` never exceeds the limit's max_calls.
# -----------------------------------------------------------------------------
@dataclass
class RateWindow:
    """Fixed-window counter state."""

    limit: RateLimit
    window_start: float                # Clock reading when the window opened
    count: int = 0

    def expired(self, now: float) -> bool:
        return now - self.window_start > self.limit.window

    def reset(self, now: float) -> None:
        self.count = 0
        self.window_start = now

    @property
    def exhausted(self) -> bool:
        return self.count >= self.limit.max_calls


@dataclass(frozen=True)
class AdapterSettings:
    """Startup configuration for one adapter process.

    `per_operation` decides how calls are bucketed: True gives every tool its
    own quota, False makes all tools of the adapter share one quota named
    after the adapter (the upstream limit is per account, not per endpoint).
    """

    name: str
    rate_limits: tuple[RateLimit, ...]
    timeout_ms: int = 15000
    per_operation: bool = False

    def category(self, operation: str) -> str:
        return operation if self.per_operation else self.name


# -----------------------------------------------------------------------------
# ToolOutcome  -  success text or error text, never both
# -----------------------------------------------------------------------------
@dataclass
class ToolOutcome:
    """Serialized result of one tool invocation."""

    text: str
    is_error: bool = False
