#!/usr/bin/env python3
"""
Swarm Agent

An agent wraps a model call with an identity, a capability set and a
private tool registry. Each agent:
- Keeps its own status, usage statistics and working context
- Can hand control to another agent through a transfer_to_<Name> tool
- Converts model failures into a failed AgentResult instead of raising

Example:
    from swarm.agents import Agent

    reviewer = Agent(name="Reviewer", role="reviewer", capabilities=["code-review"])
    coder = Agent(name="Coder", role="coder", instructions="Write clean code.")
    coder.add_tool("read_file", read_file, "Read a file from the workspace")
    coder.add_handoff(reviewer)

    result = await coder.execute([{"role": "user", "content": "Add a CLI flag"}])
"""

import time
import uuid
from typing import List, Dict, Any, Optional, Callable
from dataclasses import dataclass, field
import logging

from config import AgentStatus, DEFAULT_MODEL
from llm_client import ToolCall, create_client
from tools.tool_registry import ToolRegistry, Handoff, HANDOFF_PREFIX

logger = logging.getLogger(__name__)


# Defaults for the pre-built agent roles
ROLE_PRESETS: Dict[str, Dict[str, Any]] = {
    "coder": {
        "name": "Coder",
        "instructions": """You are an expert software developer. Write clean, well-documented code.
Follow best practices and consider edge cases.
When you complete a task, hand off to the reviewer for code review.""",
        "capabilities": ["coding", "debugging", "refactoring", "testing"],
    },
    "reviewer": {
        "name": "Reviewer",
        "instructions": """You are a code reviewer. Analyze code for bugs, security issues, and style violations.
Provide constructive feedback. If code looks good, approve it.""",
        "capabilities": ["code-review", "security-audit", "style-check"],
    },
    "tester": {
        "name": "Tester",
        "instructions": """You are a QA engineer. Write comprehensive tests and verify functionality.
Report any bugs found with clear reproduction steps.""",
        "capabilities": ["unit-testing", "integration-testing", "e2e-testing"],
    },
    "architect": {
        "name": "Architect",
        "instructions": """You are a system architect. Design scalable, maintainable systems.
Make technology decisions and define interfaces between components.""",
        "capabilities": ["system-design", "tech-selection", "api-design"],
    },
    "security": {
        "name": "Security",
        "instructions": """You are a security specialist. Identify vulnerabilities and suggest fixes.
Follow OWASP guidelines and security best practices.""",
        "capabilities": ["vulnerability-scanning", "penetration-testing", "compliance"],
    },
}


@dataclass
class AgentStats:
    """Usage statistics, updated after every execution and never reset"""
    tasks_completed: int = 0
    tasks_failed: int = 0
    total_tokens_used: int = 0
    avg_response_time_ms: float = 0.0

    def record_success(self, duration_ms: float, tokens: int = 0):
        self.tasks_completed += 1
        # Running average over completed executions
        self.avg_response_time_ms += (duration_ms - self.avg_response_time_ms) / self.tasks_completed
        self.total_tokens_used += tokens

    def record_failure(self):
        self.tasks_failed += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks_completed": self.tasks_completed,
            "tasks_failed": self.tasks_failed,
            "total_tokens_used": self.total_tokens_used,
            "avg_response_time_ms": self.avg_response_time_ms,
        }


@dataclass
class AgentResult:
    """
    Result of one agent execution.

    content is the unit compared by the consensus algorithms. The
    producing agent is referenced by id, with its name and capabilities
    captured at execution time.
    """
    success: bool
    agent_id: str
    agent_name: str = ""
    capabilities: List[str] = field(default_factory=list)
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    context_variables: Dict[str, Any] = field(default_factory=dict)
    usage: Optional[Dict[str, int]] = None
    error: Optional[str] = None
    duration_ms: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class Agent:
    """
    A single swarm member.

    Status is owned by the agent: it is BUSY during execute(), IDLE after
    a success and ERROR after a failure.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        role: str = "general",
        instructions: str = "",
        capabilities: Optional[List[str]] = None,
        client: Optional[Any] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        metadata: Optional[Dict[str, Any]] = None,
        agent_id: Optional[str] = None,
    ):
        """
        Initialize an agent.

        Args:
            name: Display name (defaults to Agent-<id prefix>)
            role: Free-form role tag, e.g. "coder"
            instructions: System prompt for the model
            capabilities: Free-form capability tags (weights weighted consensus)
            client: Model-call client (see llm_client)
            model: Model requested from the client
            temperature: Sampling temperature
            max_tokens: Completion token limit
            metadata: Arbitrary caller data
            agent_id: Fixed id (auto-generated if not provided)
        """
        self._id = agent_id or str(uuid.uuid4())
        self.name = name or f"Agent-{self._id[:8]}"
        self.role = role
        self.instructions = instructions
        self.capabilities = list(capabilities or [])
        self.client = client or create_client()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.metadata = metadata or {}

        self.tools = ToolRegistry()

        # Runtime state
        self.status = AgentStatus.IDLE
        self.context: Dict[str, Any] = {}
        self.stats = AgentStats()

        logger.debug(f"Initialized agent {self.name} ({self._id}) with role {role}")

    @property
    def id(self) -> str:
        return self._id

    def add_tool(
        self,
        name: str,
        func: Callable,
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
    ) -> "Agent":
        """Register a tool. Returns the agent for chaining."""
        self.tools.register(name, func, description, parameters)
        return self

    def add_handoff(
        self,
        target: "Agent",
        context_variables: Optional[Dict[str, Any]] = None,
    ) -> "Agent":
        """
        Register a transfer_to_<target name> tool.

        Only the target's id is kept; the swarm resolves it through its
        membership when the handoff is invoked.
        """
        target_id = target.id
        handoff_context = dict(context_variables or {})

        def transfer(**kwargs) -> Handoff:
            return Handoff(agent_id=target_id, context_variables=dict(handoff_context))

        self.tools.register(
            f"{HANDOFF_PREFIX}{target.name}",
            transfer,
            f"Transfer control to {target.name}",
            {"type": "object", "properties": {}, "required": []},
            handoff_target=target_id,
        )
        return self

    def build_system_prompt(self) -> str:
        """Instructions followed by the tool list"""
        prompt = self.instructions
        if len(self.tools) > 0:
            prompt += "\n\nYou have access to the following tools:\n"
            for tool in self.tools:
                prompt += f"- {tool.name}: {tool.description}\n"
            prompt += "\nUse the tools by calling them when needed."
        return prompt

    def _result(self, success: bool, **kwargs) -> AgentResult:
        return AgentResult(
            success=success,
            agent_id=self._id,
            agent_name=self.name,
            capabilities=list(self.capabilities),
            **kwargs
        )

    async def execute(
        self,
        messages: List[Dict[str, Any]],
        context_variables: Optional[Dict[str, Any]] = None,
    ) -> AgentResult:
        """
        Run one model call over the message history.

        Args:
            messages: Non-empty ordered list of role/content messages
            context_variables: Merged into the agent's working context

        Returns:
            AgentResult; model failures are captured, never raised
        """
        if not messages:
            raise ValueError("messages must be a non-empty sequence")

        if self.status == AgentStatus.BUSY:
            logger.warning(f"Agent {self.name} is busy, rejecting execution")
            return self._result(
                False,
                error=f"Agent {self.name} is busy",
                metadata={"rejected": "busy"},
            )

        start_time = time.monotonic()
        self.status = AgentStatus.BUSY
        self.context.update(context_variables or {})

        try:
            response = await self.client.call(
                self.build_system_prompt(),
                self.tools.get_openai_tools(),
                list(messages),
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                agent_name=self.name,
            )
            content = response.content
            tool_calls = list(response.tool_calls or [])
            usage = response.usage
            tokens = response.total_tokens
        except Exception as e:
            self.status = AgentStatus.ERROR
            self.stats.record_failure()
            logger.error(f"Agent {self.name} failed: {e}")
            return self._result(
                False,
                error=str(e),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )

        duration_ms = (time.monotonic() - start_time) * 1000
        self.stats.record_success(duration_ms, tokens)
        self.status = AgentStatus.IDLE

        return self._result(
            True,
            content=content,
            tool_calls=tool_calls,
            context_variables=dict(self.context),
            usage=usage,
            duration_ms=duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Summary used in run history and swarm status"""
        return {
            "id": self._id,
            "name": self.name,
            "role": self.role,
            "status": self.status.value,
            "capabilities": list(self.capabilities),
            "stats": self.stats.to_dict(),
        }

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, role={self.role!r}, id={self._id!r})"


def create_agent(preset: str, **kwargs) -> Agent:
    """
    Factory function to create an agent with role defaults.

    Args:
        preset: Role name; known roles (see ROLE_PRESETS) get a default
            name, instructions and capabilities. Also the agent's role
            unless role is passed explicitly
        **kwargs: Agent arguments, overriding the role defaults

    Returns:
        Configured Agent instance
    """
    options = dict(ROLE_PRESETS.get(preset, {}))
    options["capabilities"] = list(options.get("capabilities", []))
    options.update({k: v for k, v in kwargs.items() if v is not None})
    options.setdefault("role", preset)
    return Agent(**options)
