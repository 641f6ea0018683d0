#!/usr/bin/env python3
"""
Tests for tools/tool_executor.py
"""

import asyncio
import json
import pytest

from llm_client import ToolCall
from tools.tool_registry import ToolRegistry, Handoff
from tools.tool_executor import ToolExecutor, ToolOutcome, normalize_tool_call


def add(a: int, b: int):
    return a + b


async def slow_echo(text: str, delay: float = 0.0):
    await asyncio.sleep(delay)
    return text


def explode():
    raise RuntimeError("disk full")


@pytest.fixture
def registry():
    registry = ToolRegistry()
    registry.register("add", add)
    registry.register("slow_echo", slow_echo)
    registry.register("explode", explode)
    registry.register("handoff", lambda: Handoff(agent_id="agent-2", context_variables={"ticket": 7}))
    return registry


class TestNormalizeToolCall:
    """Test tool call normalization"""

    def test_tool_call_passthrough(self):
        call = ToolCall(name="add", arguments={"a": 1}, id="c1")
        assert normalize_tool_call(call) is call

    def test_flat_dict(self):
        call = normalize_tool_call({"name": "add", "arguments": {"a": 1}}, index=3)
        assert call.name == "add"
        assert call.arguments == {"a": 1}
        assert call.id == "call_3"

    def test_openai_nested_dict(self):
        call = normalize_tool_call({
            "id": "call_abc",
            "type": "function",
            "function": {"name": "add", "arguments": '{"a": 1, "b": 2}'},
        })
        assert call.id == "call_abc"
        assert call.name == "add"
        assert call.arguments == '{"a": 1, "b": 2}'


class TestToolOutcome:
    """Test ToolOutcome rendering"""

    def test_success_to_dict(self):
        outcome = ToolOutcome(tool_call_id="c1", name="add", result=3)
        assert outcome.success
        assert outcome.to_dict() == {"name": "add", "result": 3}

    def test_error_to_dict(self):
        outcome = ToolOutcome(tool_call_id="c1", name="add", error="boom")
        assert not outcome.success
        assert outcome.to_dict() == {"name": "add", "error": "boom"}

    def test_handoff_rendering(self):
        outcome = ToolOutcome(tool_call_id="c1", name="transfer_to_X", result=Handoff(agent_id="x"))
        assert outcome.handoff.agent_id == "x"
        assert outcome.to_dict() == {"name": "transfer_to_X", "result": {"handoff": "x"}}
        json.dumps(outcome.to_dict())


class TestExecuteBatch:
    """Test batch execution"""

    @pytest.mark.asyncio
    async def test_sync_and_async_tools(self, registry):
        executor = ToolExecutor()
        outcomes = await executor.execute_batch([
            {"name": "add", "arguments": {"a": 2, "b": 3}},
            {"name": "slow_echo", "arguments": {"text": "hi"}},
        ], registry)

        assert [o.result for o in outcomes] == [5, "hi"]
        assert all(o.success for o in outcomes)

    @pytest.mark.asyncio
    async def test_string_arguments_are_decoded(self, registry):
        outcomes = await ToolExecutor().execute_batch(
            [ToolCall(name="add", arguments='{"a": 1, "b": 1}', id="c1")],
            registry,
        )
        assert outcomes[0].result == 2
        assert outcomes[0].tool_call_id == "c1"

    @pytest.mark.asyncio
    async def test_one_failure_is_isolated(self, registry):
        outcomes = await ToolExecutor().execute_batch([
            {"name": "add", "arguments": {"a": 1, "b": 2}},
            {"name": "explode", "arguments": {}},
            {"name": "slow_echo", "arguments": {"text": "ok"}},
        ], registry)

        assert outcomes[0].to_dict() == {"name": "add", "result": 3}
        assert outcomes[1].to_dict() == {"name": "explode", "error": "disk full"}
        assert outcomes[2].to_dict() == {"name": "slow_echo", "result": "ok"}

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        outcomes = await ToolExecutor().execute_batch([{"name": "missing", "arguments": {}}], registry)
        assert outcomes[0].error == "Tool not found: missing"

    @pytest.mark.asyncio
    async def test_invalid_json_arguments(self, registry):
        outcomes = await ToolExecutor().execute_batch(
            [ToolCall(name="add", arguments="{not json", id="c1")],
            registry,
        )
        assert not outcomes[0].success

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, registry):
        outcomes = await ToolExecutor().execute_batch(
            [ToolCall(name="add", arguments="[1, 2]", id="c1")],
            registry,
        )
        assert "must be an object" in outcomes[0].error

    @pytest.mark.asyncio
    async def test_timeout(self, registry):
        executor = ToolExecutor(timeout_per_call=0.05)
        outcomes = await executor.execute_batch(
            [{"name": "slow_echo", "arguments": {"text": "late", "delay": 1.0}}],
            registry,
        )
        assert outcomes[0].error == "Timeout after 0.05s"

    @pytest.mark.asyncio
    async def test_results_keep_call_order(self, registry):
        outcomes = await ToolExecutor(max_concurrent=3).execute_batch([
            {"name": "slow_echo", "arguments": {"text": "first", "delay": 0.05}},
            {"name": "slow_echo", "arguments": {"text": "second", "delay": 0.0}},
            {"name": "slow_echo", "arguments": {"text": "third", "delay": 0.02}},
        ], registry)
        assert [o.result for o in outcomes] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_handoff_outcome(self, registry):
        outcomes = await ToolExecutor().execute_batch([{"name": "handoff", "arguments": {}}], registry)
        handoff = outcomes[0].handoff
        assert handoff.agent_id == "agent-2"
        assert handoff.context_variables == {"ticket": 7}

    @pytest.mark.asyncio
    async def test_stats(self, registry):
        executor = ToolExecutor()
        await executor.execute_batch([
            {"name": "add", "arguments": {"a": 1, "b": 2}},
            {"name": "explode", "arguments": {}},
        ], registry)
        assert executor.get_stats() == {"completed_calls": 1, "failed_calls": 1}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
