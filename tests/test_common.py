"""Tests for the per-call pipeline shared by every adapter."""

import asyncio

import pytest
from fastmcp.exceptions import ToolError

from core.errors import ToolValidationError, UpstreamError
from core.governor import RequestGovernor
from core.models import RateLimit, ToolOutcome
from tools.common import execute_tool, respond, to_text


@pytest.fixture
def governor():
    return RequestGovernor([RateLimit(1, 60.0, label="1/60s")], timeout_ms=1000)


class TestExecuteTool:
    @pytest.mark.asyncio
    async def test_success_serializes_to_json(self, governor):
        async def op():
            return {"nome": "São Paulo", "uf": "SP"}

        outcome = await execute_tool("tool", governor, "cat", op)

        assert outcome.is_error is False
        assert '"nome": "São Paulo"' in outcome.text

    @pytest.mark.asyncio
    async def test_validation_runs_before_quota(self, governor):
        def validate():
            raise ToolValidationError("must not be empty", field="query")

        async def op():
            return "never"

        outcome = await execute_tool("tool", governor, "cat", op, validate)

        assert outcome.is_error is True
        assert outcome.text == "Invalid argument 'query': must not be empty"
        assert governor.snapshot() == {}

    @pytest.mark.asyncio
    async def test_rate_limited_call_is_an_error_outcome(self, governor):
        calls = []

        async def op():
            calls.append(1)
            return "ok"

        await execute_tool("tool", governor, "cat", op)
        outcome = await execute_tool("tool", governor, "cat", op)

        assert outcome.is_error is True
        assert outcome.text.startswith("Rate limit exceeded for cat (1/60s)")
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_timeout_is_an_error_outcome(self, governor):
        outcome = await execute_tool(
            "tool", governor, "cat", lambda: asyncio.sleep(5), timeout_ms=20
        )

        assert outcome.is_error is True
        assert outcome.text == "Operation timed out after 20ms"

    @pytest.mark.asyncio
    async def test_upstream_error_keeps_status_and_detail(self, governor):
        async def op():
            raise UpstreamError(503, "Service Unavailable", "try later")

        outcome = await execute_tool("tool", governor, "cat", op)

        assert outcome.is_error is True
        assert outcome.text == "API error: 503 Service Unavailable\ntry later"

    @pytest.mark.asyncio
    async def test_unexpected_exception_does_not_escape(self, governor):
        async def op():
            raise RuntimeError("socket closed")

        outcome = await execute_tool("tool", governor, "cat", op)

        assert outcome.is_error is True
        assert outcome.text == "RuntimeError: socket closed"


def test_to_text_passes_strings_through():
    assert to_text("Title: x") == "Title: x"
    assert to_text([1, 2]) == "[\n  1,\n  2\n]"


def test_respond_raises_tool_error_for_errors():
    assert respond(ToolOutcome(text="fine")) == "fine"
    with pytest.raises(ToolError, match="API error: 404 Not Found"):
        respond(ToolOutcome(text="API error: 404 Not Found", is_error=True))


class RecordingGovernor(RequestGovernor):
    def __init__(self):
        super().__init__([RateLimit(5, 1.0)], timeout_ms=1000)
        self.calls = []

    async def governed(self, category, operation, timeout_ms=None):
        self.calls.append((category, timeout_ms))
        return await super().governed(category, operation, timeout_ms)


@pytest.mark.asyncio
async def test_execute_tool_goes_through_governed():
    governor = RecordingGovernor()

    async def op():
        return "ok"

    outcome = await execute_tool("tool", governor, "cat", op, timeout_ms=250)

    assert outcome.text == "ok"
    assert governor.calls == [("cat", 250)]
    assert governor.peek("cat") == {"5/1s": 1}
