#!/usr/bin/env python3
"""
Tool Executor

Runs a batch of tool calls against one agent's registry with:
- Semaphore-based concurrency control
- Optional per-call timeout
- Error isolation (one failure doesn't stop others)
- Results returned in the same order as the calls

Tool callables receive the call's arguments as keyword arguments.
Coroutine functions are awaited; plain callables run in the default
executor. A tool returning a Handoff marks its outcome as a handoff.

Example:
    from tools import ToolExecutor

    executor = ToolExecutor(max_concurrent=10)

    outcomes = await executor.execute_batch(
        tool_calls=[
            {"name": "run_tests", "arguments": {"path": "tests/"}},
            {"name": "lint", "arguments": {"path": "src/"}},
        ],
        registry=agent.tools,
    )
"""

import asyncio
import functools
import inspect
import json
from typing import List, Dict, Any, Optional, Union
from dataclasses import dataclass
from datetime import datetime
import logging

from config import DEFAULT_TOOL_CONFIG
from llm_client import ToolCall
from .tool_registry import ToolRegistry, Handoff

logger = logging.getLogger(__name__)


@dataclass
class ToolOutcome:
    """Result of a single tool execution"""
    tool_call_id: str
    name: str
    result: Any = None
    error: Optional[str] = None
    execution_time_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def handoff(self) -> Optional[Handoff]:
        """The requested handoff, if the tool returned one"""
        if self.success and isinstance(self.result, Handoff):
            return self.result
        return None

    def to_dict(self) -> Dict[str, Any]:
        """{"name", "result"} on success, {"name", "error"} on failure"""
        if self.error is not None:
            return {"name": self.name, "error": self.error}
        if isinstance(self.result, Handoff):
            return {"name": self.name, "result": {"handoff": self.result.agent_id}}
        return {"name": self.name, "result": self.result}


def normalize_tool_call(call: Union[ToolCall, Dict[str, Any]], index: int = 0) -> ToolCall:
    """Accept ToolCall objects, flat dicts and OpenAI nested function dicts"""
    if isinstance(call, ToolCall):
        return call
    function = call.get("function") or {}
    return ToolCall(
        id=call.get("id") or f"call_{index}",
        name=call.get("name") or function.get("name", ""),
        arguments=call.get("arguments", function.get("arguments", {})),
    )


class ToolExecutor:
    """
    Execute an agent's tool calls with concurrency control.

    Every call yields exactly one ToolOutcome. Failures are captured
    into the outcome's error field and never abort sibling calls.
    """

    def __init__(
        self,
        max_concurrent: int = DEFAULT_TOOL_CONFIG.max_concurrent_calls,
        timeout_per_call: Optional[float] = DEFAULT_TOOL_CONFIG.tool_timeout,
    ):
        """
        Initialize the executor.

        Args:
            max_concurrent: Maximum concurrent tool calls in one batch
            timeout_per_call: Timeout for each call in seconds (None disables)
        """
        self.max_concurrent = max(1, max_concurrent)
        self.timeout_per_call = timeout_per_call

        # Statistics
        self._completed_calls = 0
        self._failed_calls = 0

    async def execute_batch(
        self,
        tool_calls: List[Union[ToolCall, Dict[str, Any]]],
        registry: ToolRegistry,
    ) -> List[ToolOutcome]:
        """
        Execute a batch of tool calls.

        Args:
            tool_calls: ToolCall objects or dicts with 'name' and 'arguments'
            registry: The calling agent's tool registry

        Returns:
            One ToolOutcome per call, in input order
        """
        calls = [normalize_tool_call(tc, i) for i, tc in enumerate(tool_calls)]
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def run_one(call: ToolCall) -> ToolOutcome:
            async with semaphore:
                return await self._execute_single(call, registry)

        return list(await asyncio.gather(*[run_one(call) for call in calls]))

    async def _execute_single(self, call: ToolCall, registry: ToolRegistry) -> ToolOutcome:
        """Execute a single tool call, capturing any failure"""
        start_time = datetime.now()

        tool = registry.get(call.name)
        if tool is None:
            self._failed_calls += 1
            return ToolOutcome(
                tool_call_id=call.id,
                name=call.name,
                error=f"Tool not found: {call.name}",
            )

        try:
            arguments = call.arguments
            if isinstance(arguments, str):
                arguments = json.loads(arguments) if arguments.strip() else {}
            if not isinstance(arguments, dict):
                raise TypeError(f"Arguments for {call.name} must be an object")

            invocation = self._invoke(tool.func, arguments)
            if self.timeout_per_call:
                result = await asyncio.wait_for(invocation, timeout=self.timeout_per_call)
            else:
                result = await invocation

        except asyncio.TimeoutError:
            error = f"Timeout after {self.timeout_per_call}s"
        except Exception as e:
            error = str(e) or e.__class__.__name__
        else:
            self._completed_calls += 1
            return ToolOutcome(
                tool_call_id=call.id,
                name=call.name,
                result=result,
                execution_time_ms=(datetime.now() - start_time).total_seconds() * 1000,
            )

        logger.warning(f"Tool {call.name} failed: {error}")
        self._failed_calls += 1
        return ToolOutcome(
            tool_call_id=call.id,
            name=call.name,
            error=error,
            execution_time_ms=(datetime.now() - start_time).total_seconds() * 1000,
        )

    async def _invoke(self, func, arguments: Dict[str, Any]) -> Any:
        """Call a tool, handling both sync and async functions"""
        if inspect.iscoroutinefunction(func):
            return await func(**arguments)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, functools.partial(func, **arguments))
        if inspect.isawaitable(result):
            result = await result
        return result

    def get_stats(self) -> Dict[str, int]:
        """Get execution statistics"""
        return {
            "completed_calls": self._completed_calls,
            "failed_calls": self._failed_calls,
        }
