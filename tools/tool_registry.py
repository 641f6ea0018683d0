#!/usr/bin/env python3
"""
Agent Tool Registry

Each agent owns an ordered registry of tools:
- Tool registration with schema inference from signatures
- Handoff tools that transfer control to another agent
- Export to OpenAI function calling format

Registration order is kept. Registering a second tool under an existing
name does not remove the first one; lookups return the most recent.

Example:
    from tools import ToolRegistry

    registry = ToolRegistry()

    registry.register(
        name="run_tests",
        func=run_tests,
        description="Run the project's test suite",
        parameters={
            "type": "object",
            "required": ["path"],
            "properties": {
                "path": {"type": "string"}
            }
        }
    )

    tools = registry.get_openai_tools()
"""

from typing import Dict, List, Any, Optional, Callable, Iterator
from dataclasses import dataclass, field
import inspect
import logging

logger = logging.getLogger(__name__)


HANDOFF_PREFIX = "transfer_to_"

# Python annotation -> JSON schema type
JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


@dataclass
class Handoff:
    """
    Returned by a tool to transfer control to another agent.

    The target is referenced by agent id and resolved through the swarm's
    membership when the handoff is applied.
    """
    agent_id: str
    context_variables: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Tool:
    """Representation of a registered tool"""
    name: str
    func: Callable
    description: str
    parameters: Dict[str, Any]
    handoff_target: Optional[str] = None

    @property
    def is_handoff(self) -> bool:
        return self.handoff_target is not None

    def to_openai_schema(self) -> Dict[str, Any]:
        """Convert to OpenAI function calling schema"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters
            }
        }

    def __call__(self, *args, **kwargs):
        """Make the tool callable"""
        return self.func(*args, **kwargs)


class ToolRegistry:
    """
    Ordered registry of the tools available to one agent.

    Features:
    - Register tools with schemas (inferred when omitted)
    - Register handoffs to other agents
    - Name lookup where the latest registration shadows earlier ones
    - Export to OpenAI format
    """

    def __init__(self):
        """Initialize empty registry"""
        self._tools: List[Tool] = []

    def register(
        self,
        name: str,
        func: Callable,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
        handoff_target: Optional[str] = None,
    ) -> Tool:
        """
        Register a new tool.

        Args:
            name: Tool name
            func: Callable invoked with the call's arguments as keywords
            description: Tool description (first docstring line if not provided)
            parameters: JSON schema for parameters (inferred if not provided)
            handoff_target: Agent id when this tool is a handoff

        Returns:
            Registered Tool object
        """
        if not description:
            description = func.__doc__ or f"Execute {name}"
            description = description.strip().split("\n")[0]

        if parameters is None:
            parameters = self._infer_parameters(func)

        if name in self:
            logger.debug(f"Tool {name} registered again, latest registration shadows the earlier one")

        tool = Tool(
            name=name,
            func=func,
            description=description,
            parameters=parameters,
            handoff_target=handoff_target,
        )
        self._tools.append(tool)

        logger.debug(f"Registered tool: {name}")
        return tool

    def _infer_parameters(self, func: Callable) -> Dict[str, Any]:
        """JSON schema from the signature; unannotated parameters are strings"""
        try:
            sig = inspect.signature(func)
        except (TypeError, ValueError):
            return {"type": "object", "properties": {}, "required": []}

        schema: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}
        for param_name, param in sig.parameters.items():
            if param_name in ("self", "cls") or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            json_type = JSON_TYPES.get(param.annotation, "string") if isinstance(param.annotation, type) else "string"
            schema["properties"][param_name] = {"type": json_type, "description": f"Parameter: {param_name}"}
            if param.default is param.empty:
                schema["required"].append(param_name)
        return schema

    def get(self, name: str) -> Optional[Tool]:
        """Get the most recently registered tool with this name"""
        for tool in reversed(self._tools):
            if tool.name == name:
                return tool
        return None

    def remove(self, name: str) -> bool:
        """Remove every tool registered under a name"""
        before = len(self._tools)
        self._tools = [t for t in self._tools if t.name != name]
        return len(self._tools) != before

    def list_tools(self) -> List[str]:
        """List tool names in registration order"""
        return [t.name for t in self._tools]

    def handoffs(self) -> List[Tool]:
        """Get the handoff tools"""
        return [t for t in self._tools if t.is_handoff]

    def get_openai_tools(self) -> List[Dict[str, Any]]:
        """
        Get tools in OpenAI function calling format.

        A shadowed name is exported once, with its latest definition.

        Returns:
            List of tool schemas for OpenAI API
        """
        seen = set()
        tools = []
        for tool in reversed(self._tools):
            if tool.name in seen:
                continue
            seen.add(tool.name)
            tools.append(tool.to_openai_schema())
        tools.reverse()
        return tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools)

    def __getitem__(self, index: int) -> Tool:
        return self._tools[index]

    def __contains__(self, name: str) -> bool:
        return any(t.name == name for t in self._tools)
