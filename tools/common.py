# =============================================================================
# tools/common.py  -  What every adapter server shares
# =============================================================================
#
# WHAT THIS FILE DOES:
#   1. Logging setup and the coloured request / status / response helpers
#   2. execute_tool(): the per-call pipeline every tool runs through
#   3. serve(): process entry point with signal and crash safety nets
#
# THE PER-CALL PIPELINE (execute_tool):
#
#     validate args ──▶ governor.check_limit ──▶ governor.with_timeout ──▶ serialize
#          │                    │                         │                    │
#          ▼                    ▼                         ▼                    ▼
#   ToolValidationError  RateLimitExceeded        RequestTimeout /        text payload
#                                                   UpstreamError
#
#   Whatever goes wrong, the caller gets a ToolOutcome with is_error=True and
#   a readable message.  Nothing escapes to crash the server.
#
# LOGGING GOES TO STDERR:
#   The MCP stdio transport owns STDOUT.  A log line printed there would
#   corrupt the JSON-RPC stream, so everything is logged to STDERR.
# =============================================================================

import asyncio
import json
import logging
import os
import signal
import sys
from typing import Any, Callable, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from core.errors import AdapterError, FatalStartupError, ToolValidationError
from core.governor import RequestGovernor
from core.models import AdapterSettings, ToolOutcome

logger = logging.getLogger("tools")

# ANSI color codes for terminal output
_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status / rejections
_RED = "\033[31m"      # Errors
_RESET = "\033[0m"

# Responses can be whole channel histories; the log only needs a glimpse.
_MAX_LOGGED_CHARS = 600

# Parameter names whose values never reach the log.
_SECRET_PARAMS = {"api_key", "token", "password"}


def configure_logging(adapter_label: str) -> None:
    """Send log lines to stderr, tagged with the adapter name."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format=f"%(asctime)s [{adapter_label}] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _shorten(text: str) -> str:
    if len(text) <= _MAX_LOGGED_CHARS:
        return text
    return text[:_MAX_LOGGED_CHARS] + f"... ({len(text)} chars)"


def log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(
        f"{k}={'***' if k in _SECRET_PARAMS else repr(v)}" for k, v in params.items()
    )
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def log_response(tool_name: str, outcome: ToolOutcome) -> ToolOutcome:
    """Log the tool outcome (GREEN for success, RED for errors), then return it."""
    color = _RED if outcome.is_error else _GREEN
    compact = _shorten(outcome.text.replace("\n", " "))
    logger.info(f"{color}  ← {tool_name} response: {compact}{_RESET}")
    return outcome


# =============================================================================
# Serialization
# =============================================================================
def to_text(result: Any) -> str:
    """Strings pass through; everything else becomes pretty JSON."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def _describe_validation(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        where = ".".join(str(p) for p in error.get("loc", ())) or "arguments"
        parts.append(f"{where}: {error.get('msg')}")
    return "Invalid arguments: " + "; ".join(parts)


# =============================================================================
# The per-call pipeline
# =============================================================================
async def execute_tool(
    tool_name: str,
    governor: RequestGovernor,
    category: str,
    operation: Callable[[], Any],
    validate: Optional[Callable[[], None]] = None,
    timeout_ms: Optional[int] = None,
) -> ToolOutcome:
    """Run one tool call through validation, quota and deadline.

    Args:
        tool_name: Used only for logging.
        governor: The process-wide RequestGovernor.
        category: Operation category the quota is tracked under.
        operation: Zero-arg callable returning the awaitable upstream call.
        validate: Optional zero-arg callable raising ToolValidationError (or a
            pydantic ValidationError) when arguments are unusable.
        timeout_ms: Overrides the governor's default deadline.

    Returns:
        A ToolOutcome.  Never raises for per-call failures.
    """
    try:
        if validate is not None:
            validate()
        result = await governor.governed(category, operation, timeout_ms)
        outcome = ToolOutcome(text=to_text(result))
    except ValidationError as exc:
        outcome = ToolOutcome(text=_describe_validation(exc), is_error=True)
    except AdapterError as exc:
        retry = " (retryable)" if exc.retryable else ""
        log_status(f"{type(exc).__name__}{retry}: {exc.message.splitlines()[0]}")
        outcome = ToolOutcome(text=exc.message, is_error=True)
    except Exception as exc:
        # httpx transport errors, unexpected payload shapes, bugs.
        logger.exception("Unexpected failure in %s", tool_name)
        outcome = ToolOutcome(
            text=f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
            is_error=True,
        )
    return log_response(tool_name, outcome)


def respond(outcome: ToolOutcome) -> str:
    """Hand an outcome to FastMCP: text on success, ToolError otherwise.

    FastMCP reports a ToolError to the client as a result with isError set
    and the message as its text content.
    """
    if outcome.is_error:
        raise ToolError(outcome.text)
    return outcome.text


def not_blank(**values: Optional[str]) -> Callable[[], None]:
    """Validator rejecting empty or whitespace-only string arguments."""
    def validate():
        for name, value in values.items():
            if not (value or "").strip():
                raise ToolValidationError("must not be empty", field=name)
    return validate


def make_governor(settings: AdapterSettings) -> RequestGovernor:
    return RequestGovernor(settings.rate_limits, timeout_ms=settings.timeout_ms)


# =============================================================================
# Process entry point
# =============================================================================
def _loop_exception_handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    logger.error("Unhandled error in event loop: %s", context.get("message"), exc_info=exc)


async def _serve(mcp: FastMCP, adapter_label: str) -> None:
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_loop_exception_handler)

    main_task = asyncio.current_task()

    def _shutdown(signame: str) -> None:
        logger.info(f"{adapter_label} received {signame}, shutting down...")
        main_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown, sig.name)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support add_signal_handler.
            pass

    logger.info(f"{adapter_label} MCP server running on stdio")
    await mcp.run_async(transport="stdio")


def serve(build: Callable[[], FastMCP], adapter_label: str) -> None:
    """Build the server and run it until a signal arrives.

    `build` may raise FatalStartupError (missing credentials, bad limits);
    that is logged and the process exits with status 1.
    """
    configure_logging(adapter_label)
    try:
        mcp = build()
    except FatalStartupError as exc:
        logger.error(f"Error: {exc}")
        sys.exit(1)

    try:
        asyncio.run(_serve(mcp, adapter_label))
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    logger.info(f"{adapter_label} MCP server stopped")
