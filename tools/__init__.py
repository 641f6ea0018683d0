"""
Agent Tools Module

Per-agent tool management and execution:
- ToolRegistry: ordered registry of an agent's tools and handoffs
- ToolExecutor: error-isolated batch execution, results in call order

Example:
    from tools import ToolRegistry, ToolExecutor

    registry = ToolRegistry()
    registry.register("search_docs", search_docs, "Search the project docs")

    executor = ToolExecutor(max_concurrent=10)
    outcomes = await executor.execute_batch(tool_calls, registry)
"""

from .tool_registry import ToolRegistry, Tool, Handoff, HANDOFF_PREFIX
from .tool_executor import ToolExecutor, ToolOutcome, normalize_tool_call

__all__ = [
    "ToolRegistry",
    "Tool",
    "Handoff",
    "HANDOFF_PREFIX",
    "ToolExecutor",
    "ToolOutcome",
    "normalize_tool_call",
]
