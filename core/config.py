# =============================================================================
# core/config.py  -  Startup Configuration for the Adapter Processes
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns environment variables into AdapterSettings and credentials.
#   Entry points call load_dotenv() first, so a local .env file works too.
#
# RATE LIMIT OVERRIDES:
#   Each adapter ships with the quotas its upstream API publishes.  A
#   deployment can replace them without touching code:
#
#     SLACK_RATE_LIMITS="5/1s,80/60s"     → 5 per second AND 80 per minute
#     BRAVE_RATE_LIMITS="1/1s,15000/30d"  → 1 per second AND 15000 per 30 days
#     PLOOMES_TIMEOUT_MS=30000            → 30 second deadline per call
#
#   Units: ms, s, m, h, d.  A bare number means seconds.
#
# MISSING CONFIGURATION:
#   Anything required but absent raises FatalStartupError, the one error
#   that is allowed to end the process (and only while it is starting).
# =============================================================================

import os
import re
import sys
from typing import Mapping, Optional

from core.errors import FatalStartupError
from core.models import AdapterSettings, RateLimit

# --- Adapter registry ---
# name → (env prefix, default limits, default timeout ms, one quota per tool?)
ADAPTER_DEFAULTS: dict[str, tuple[str, str, int, bool]] = {
    "google-calendar": ("GOOGLE_CALENDAR", "500/100s", 15000, True),
    "brave-search": ("BRAVE", "1/1s,15000/30d", 15000, False),
    "slack": ("SLACK", "5/1s,80/60s", 15000, False),
    "ploomes-crm": ("PLOOMES", "5/1s,300/60s", 30000, False),
    "brasil-api": ("BRASIL_API", "2/1s,60/60s", 15000, False),
}

# Credentials each adapter needs before it can start.  google-calendar accepts
# either of two variables, so it is handled separately below.
ADAPTER_CREDENTIALS: dict[str, tuple[str, ...]] = {
    "google-calendar": (),
    "brave-search": ("BRAVE_API_KEY",),
    "slack": ("SLACK_BOT_TOKEN", "SLACK_USER_TOKEN", "SLACK_TEAM_ID"),
    "ploomes-crm": ("PLOOMES_API_KEY",),
    "brasil-api": (),
}

_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, "d": 86400.0}
_LIMIT_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$")


def parse_rate_limits(value: str) -> tuple[RateLimit, ...]:
    """Parse "5/1s,80/60s" into RateLimit objects.

    Raises:
        FatalStartupError: if any entry is malformed or non-positive.
    """
    limits = []
    for part in value.split(","):
        if not part.strip():
            continue
        match = _LIMIT_RE.match(part)
        if not match:
            raise FatalStartupError(f"Invalid rate limit '{part.strip()}' (expected e.g. '5/1s')")
        count, length, unit = match.groups()
        unit = unit or "s"
        seconds = float(length) * _UNIT_SECONDS[unit]
        if int(count) <= 0 or seconds <= 0:
            raise FatalStartupError(f"Rate limit '{part.strip()}' must be positive")
        limits.append(RateLimit(int(count), seconds, label=f"{count}/{length}{unit}"))
    if not limits:
        raise FatalStartupError("At least one rate limit is required")
    return tuple(limits)


def load_adapter_settings(name: str, env: Optional[Mapping[str, str]] = None) -> AdapterSettings:
    """Build AdapterSettings for `name`, applying environment overrides."""
    env = os.environ if env is None else env
    if name not in ADAPTER_DEFAULTS:
        raise FatalStartupError(f"Unknown adapter '{name}'")
    prefix, limits, timeout_ms, per_operation = ADAPTER_DEFAULTS[name]

    limits = env.get(f"{prefix}_RATE_LIMITS") or limits
    raw_timeout = env.get(f"{prefix}_TIMEOUT_MS")
    if raw_timeout:
        try:
            timeout_ms = int(raw_timeout)
        except ValueError:
            raise FatalStartupError(f"{prefix}_TIMEOUT_MS must be an integer, got '{raw_timeout}'") from None
        if timeout_ms <= 0:
            raise FatalStartupError(f"{prefix}_TIMEOUT_MS must be positive")

    return AdapterSettings(
        name=name,
        rate_limits=parse_rate_limits(limits),
        timeout_ms=timeout_ms,
        per_operation=per_operation,
    )


def require_env(*names: str, env: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Return the named variables, or fail listing every missing one."""
    env = os.environ if env is None else env
    missing = [n for n in names if not env.get(n)]
    if missing:
        raise FatalStartupError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )
    return {n: env[n] for n in names}


def cli_option(flag: str, argv: Optional[list[str]] = None) -> Optional[str]:
    """Find `--flag=value` in argv (used for e.g. --api-key=...)."""
    argv = sys.argv[1:] if argv is None else argv
    prefix = f"--{flag}="
    for arg in argv:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


def available_adapters(env: Optional[Mapping[str, str]] = None) -> list[str]:
    """Adapters whose credentials are present in the environment."""
    env = os.environ if env is None else env
    ready = []
    for name, names in ADAPTER_CREDENTIALS.items():
        if name == "google-calendar":
            if env.get("CREDENTIALS") or env.get("GOOGLE_ACCESS_TOKEN"):
                ready.append(name)
        elif all(env.get(n) for n in names):
            ready.append(name)
    return ready


def adapter_launch_command(name: str) -> tuple[str, list[str]]:
    """(command, args) that start the adapter's MCP server over stdio."""
    if name not in ADAPTER_DEFAULTS:
        raise FatalStartupError(f"Unknown adapter '{name}'")
    module = "tools." + name.replace("-", "_") + "_server"
    return sys.executable, ["-m", module]
