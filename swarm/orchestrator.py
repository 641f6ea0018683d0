#!/usr/bin/env python3
"""
Swarm Orchestrator

The swarm owns agent membership and topology and drives execution:
1. Membership - capacity-bounded registry of agents, queen election
2. Single-agent runs - a turn-bounded loop with tool calls and handoffs
3. Parallel runs - fan out one input to many agents, join on consensus
4. Lifecycle events - observers react to membership, topology and task changes

Execution model:
- run() is an explicit state machine. Each turn executes the current
  agent; tool calls are executed and fed back; a handoff tool (or a
  "HANDOFF: <Name>" marker in the content) switches the current agent;
  a turn without tool calls completes the task.
  Reaching max_turns first fails the run with TurnLimitError.
- run_parallel() executes every agent concurrently, keeps results in
  input order and passes them to the configured consensus algorithm.
- stop() is cooperative: in-flight executions finish, new runs are refused.

Example Usage:
    from swarm import Swarm

    swarm = Swarm(topology="hierarchical", consensus_type="byzantine")
    swarm.init()

    coder = Swarm.create_coder_agent()
    reviewer = Swarm.create_reviewer_agent()
    coder.add_handoff(reviewer)
    swarm.add_agent(coder).add_agent(reviewer)

    result = await swarm.run(
        agent=coder,
        messages=[{"role": "user", "content": "Write a slugify helper"}],
        max_turns=5,
    )
    print(result.turns, result.final_agent["name"])

    decision = await swarm.run_parallel(
        agents=[coder, reviewer],
        messages=[{"role": "user", "content": "Approve this migration? yes/no"}],
    )
    print(decision.consensus.winner)
"""

import json
import re
import asyncio
import time
import uuid
from typing import List, Dict, Any, Optional, Callable, Union, AsyncGenerator
from dataclasses import dataclass, field
from datetime import datetime
import logging

from config import (
    Topology, ConsensusType, AgentStatus, SwarmConfig,
    parse_topology, parse_consensus_type,
)
from tools.tool_executor import ToolExecutor, ToolOutcome, normalize_tool_call
from swarm.agents.base_agent import Agent, AgentResult, create_agent
from swarm.consensus import (
    ConsensusDecision,
    gather_consensus,
    majority_consensus,
    weighted_consensus,
    byzantine_consensus,
    leader_consensus,
)
from swarm.events import EventChannel, SwarmEvent
from swarm.exceptions import (
    AgentExecutionError,
    CapacityError,
    SwarmNotRunningError,
    SwarmValidationError,
    TurnLimitError,
)
from swarm.metering import (
    UsageMeter,
    SWARM_TASK_STARTED,
    SWARM_TASK_COMPLETED,
    SWARM_TASK_FAILED,
    SWARM_PARALLEL_COMPLETED,
)

logger = logging.getLogger(__name__)


@dataclass
class TurnRecord:
    """One iteration of the execution loop"""
    turn: int
    agent: Dict[str, Any]
    result: AgentResult
    tool_outcomes: List[ToolOutcome] = field(default_factory=list)
    handoff_to: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RunResult:
    """Final result of a completed run()"""
    task_id: str
    turns: int
    history: List[TurnRecord]
    messages: List[Dict[str, Any]]
    context_variables: Dict[str, Any]
    final_agent: Dict[str, Any]
    duration_ms: float

    @property
    def content(self) -> Optional[str]:
        """Output of the terminal turn"""
        return self.history[-1].result.content if self.history else None


@dataclass
class ParallelResult:
    """Results of run_parallel(), in input agent order, and their consensus"""
    results: List[AgentResult]
    consensus: ConsensusDecision
    consensus_type: ConsensusType


# Agents can also hand off in plain text: "HANDOFF: Reviewer"
TEXT_HANDOFF_PATTERN = re.compile(r"HANDOFF:\s*(\w+)")


def _validated(parser: Callable, value: Any):
    try:
        return parser(value)
    except ValueError as e:
        raise SwarmValidationError(str(e))


class Swarm:
    """
    Coordinator of a set of agents.

    Every swarm is an independent object with its own membership,
    configuration and observers.
    """

    def __init__(
        self,
        config: Optional[SwarmConfig] = None,
        topology: Optional[Union[Topology, str]] = None,
        consensus_type: Optional[Union[ConsensusType, str]] = None,
        max_agents: Optional[int] = None,
        meter: Optional[UsageMeter] = None,
        tool_executor: Optional[ToolExecutor] = None,
    ):
        """
        Initialize the swarm.

        Args:
            config: Swarm configuration (defaults: hierarchical, leader, 10 agents)
            topology: Override config.topology
            consensus_type: Override config.consensus_type
            max_agents: Override config.max_agents
            meter: Usage meter receiving swarm task events
            tool_executor: Executor used for agents' tool calls
        """
        self.config = config or SwarmConfig()
        self.topology = _validated(parse_topology, topology if topology is not None else self.config.topology)
        self.consensus_type = _validated(
            parse_consensus_type,
            consensus_type if consensus_type is not None else self.config.consensus_type,
        )
        self.max_agents = max_agents if max_agents is not None else self.config.max_agents
        if self.max_agents < 1:
            raise SwarmValidationError(f"max_agents must be positive, got {self.max_agents}")

        self.agents: Dict[str, Agent] = {}
        self._queen_id: Optional[str] = None

        self.is_running = False
        self.tasks: Dict[str, Dict[str, Any]] = {}

        self.events = EventChannel()
        self.meter = meter or UsageMeter()
        self.tool_executor = tool_executor or ToolExecutor()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self) -> "Swarm":
        """Start accepting runs"""
        logger.info(f"Initializing swarm ({self.topology.value} topology)")
        self.is_running = True
        self.events.emit(SwarmEvent.INITIALIZED)
        return self

    def stop(self) -> None:
        """Refuse new runs. In-flight executions are not cancelled."""
        logger.info("Stopping swarm")
        self.is_running = False
        self.events.emit(SwarmEvent.STOPPED)

    def on(self, event: Union[SwarmEvent, str], handler: Callable[[Any], None]) -> "Swarm":
        """Subscribe to a lifecycle event"""
        self.events.on(event, handler)
        return self

    def off(self, event: Union[SwarmEvent, str], handler: Callable[[Any], None]) -> bool:
        """Unsubscribe from a lifecycle event"""
        return self.events.off(event, handler)

    def _require_running(self, operation: str):
        if not self.is_running:
            raise SwarmNotRunningError(f"Swarm is not running, call init() before {operation}()")

    # =========================================================================
    # Membership
    # =========================================================================

    @property
    def queen(self) -> Optional[Agent]:
        """The coordinator agent, resolved through membership"""
        if self._queen_id is None:
            return None
        return self.agents.get(self._queen_id)

    def add_agent(self, agent: Agent, is_queen: bool = False) -> "Swarm":
        """
        Add an agent to the swarm.

        Under hierarchical topology the agent becomes queen when no queen
        is set. is_queen=True always makes it the queen.

        Raises:
            CapacityError: The swarm already holds max_agents agents
            SwarmValidationError: An agent with the same id is a member
        """
        if len(self.agents) >= self.max_agents:
            raise CapacityError(f"Swarm at capacity ({self.max_agents} agents)")
        if agent.id in self.agents:
            raise SwarmValidationError(f"Agent {agent.name} ({agent.id}) is already in the swarm")

        self.agents[agent.id] = agent

        if is_queen or (self.topology == Topology.HIERARCHICAL and self.queen is None):
            self._queen_id = agent.id
            logger.info(f"{agent.name} set as queen")

        logger.info(f"Added agent {agent.name} ({agent.role}) to swarm")
        self.events.emit(SwarmEvent.AGENT_ADDED, agent)
        return self

    def remove_agent(self, agent_id: str) -> bool:
        """Remove an agent. Removing the queen leaves the swarm without one."""
        agent = self.agents.pop(agent_id, None)
        if agent is None:
            return False

        if self._queen_id == agent_id:
            self._queen_id = None
            logger.info(f"Queen {agent.name} removed, swarm has no queen")

        self.events.emit(SwarmEvent.AGENT_REMOVED, {"agent_id": agent_id})
        return True

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self.agents.get(agent_id)

    def get_agents_by_role(self, role: str) -> List[Agent]:
        return [a for a in self.agents.values() if a.role == role]

    def get_available_agents(self) -> List[Agent]:
        """Members that are idle"""
        return [a for a in self.agents.values() if a.status == AgentStatus.IDLE]

    # =========================================================================
    # Topology & consensus configuration
    # =========================================================================

    def set_topology(self, topology: Union[Topology, str]) -> None:
        """Change the topology. Raises SwarmValidationError for unknown values."""
        self.topology = _validated(parse_topology, topology)
        logger.info(f"Swarm topology set to {self.topology.value}")
        self.events.emit(SwarmEvent.TOPOLOGY_CHANGED, {"topology": self.topology})

    def set_consensus_type(self, consensus_type: Union[ConsensusType, str]) -> None:
        """Change the consensus algorithm. Raises SwarmValidationError for unknown values."""
        self.consensus_type = _validated(parse_consensus_type, consensus_type)
        logger.info(f"Swarm consensus set to {self.consensus_type.value}")
        self.events.emit(SwarmEvent.CONSENSUS_CHANGED, {"consensus_type": self.consensus_type})

    # =========================================================================
    # Single-agent execution
    # =========================================================================

    async def run(
        self,
        agent: Agent,
        messages: List[Dict[str, Any]],
        context_variables: Optional[Dict[str, Any]] = None,
        max_turns: Optional[int] = None,
        debug: bool = False,
    ) -> RunResult:
        """
        Run a task starting with one agent.

        Args:
            agent: Agent handling the first turn
            messages: Initial conversation (copied, never mutated)
            context_variables: Initial task context
            max_turns: Hard ceiling on turns (default: config.max_turns)
            debug: Log every turn and handoff at INFO level

        Returns:
            RunResult of the terminal turn

        Raises:
            SwarmNotRunningError: init() was not called or stop() was
            AgentExecutionError: An agent returned a failed result
            TurnLimitError: max_turns reached before a terminal turn
            SwarmValidationError: max_turns is below 1
        """
        self._require_running("run")
        if max_turns is None:
            max_turns = self.config.max_turns
        if max_turns < 1:
            raise SwarmValidationError(f"max_turns must be positive, got {max_turns}")

        task_id = str(uuid.uuid4())
        task = {
            "id": task_id,
            "agent_id": agent.id,
            "messages": list(messages),
            "context_variables": dict(context_variables or {}),
            "history": [],
            "turn_count": 0,
            "start_time": time.monotonic(),
        }
        self.tasks[task_id] = task

        logger.info(f"Swarm task started: {task_id}")
        self.meter.record_event(SWARM_TASK_STARTED, {
            "task_id": task_id,
            "agent_id": agent.id,
            "agent_role": agent.role,
        })

        try:
            result = await self._run_turns(task, agent, max_turns, debug)
        except Exception as e:
            duration_ms = (time.monotonic() - task["start_time"]) * 1000
            logger.error(f"Swarm task {task_id} failed: {e}")
            self.meter.record_event(SWARM_TASK_FAILED, {
                "task_id": task_id,
                "duration_ms": duration_ms,
                "turns": task["turn_count"],
                "error": str(e),
            })
            self.events.emit(SwarmEvent.TASK_ERROR, {"task_id": task_id, "error": e})
            raise
        finally:
            self.tasks.pop(task_id, None)

        self.meter.record_event(SWARM_TASK_COMPLETED, {
            "task_id": task_id,
            "duration_ms": result.duration_ms,
            "turns": result.turns,
            "agent_id": result.final_agent["id"],
        })
        self.events.emit(SwarmEvent.TASK_COMPLETE, result)
        return result

    async def _run_turns(
        self,
        task: Dict[str, Any],
        agent: Agent,
        max_turns: int,
        debug: bool,
    ) -> RunResult:
        """The turn loop: ACTIVE(agent, turn) until COMPLETE or the turn ceiling"""
        messages = task["messages"]
        context = task["context_variables"]
        history: List[TurnRecord] = task["history"]
        log_turn = logger.info if debug else logger.debug
        current = agent

        while task["turn_count"] < max_turns:
            task["turn_count"] += 1
            turn = task["turn_count"]
            log_turn(f"Turn {turn}: {current.name} ({current.role})")

            result = await current.execute(messages, context)

            if not result.success:
                history.append(TurnRecord(turn=turn, agent=current.to_dict(), result=result))
                raise AgentExecutionError(
                    f"Agent {current.name} failed: {result.error}",
                    agent_id=current.id,
                )

            context.update(result.context_variables)

            named = self._detect_text_handoff(result.content)
            if named is not None:
                messages.append({"role": "assistant", "content": result.content})
                history.append(TurnRecord(
                    turn=turn,
                    agent=current.to_dict(),
                    result=result,
                    handoff_to=named.id,
                ))
                log_turn(f"Handoff: {current.name} -> {named.name}")
                current = named
                continue

            if not result.tool_calls:
                messages.append({"role": "assistant", "content": result.content})
                history.append(TurnRecord(turn=turn, agent=current.to_dict(), result=result))
                return RunResult(
                    task_id=task["id"],
                    turns=turn,
                    history=history,
                    messages=messages,
                    context_variables=context,
                    final_agent=current.to_dict(),
                    duration_ms=(time.monotonic() - task["start_time"]) * 1000,
                )

            tool_calls = [normalize_tool_call(tc, i) for i, tc in enumerate(result.tool_calls)]
            messages.append({
                "role": "assistant",
                "content": result.content or "",
                "tool_calls": [tc.to_openai() for tc in tool_calls],
            })

            outcomes = await self.execute_tools(current, tool_calls)
            next_agent = self._apply_handoffs(outcomes, context)

            for outcome in outcomes:
                messages.append({
                    "role": "tool",
                    "tool_call_id": outcome.tool_call_id,
                    "name": outcome.name,
                    "content": json.dumps(outcome.to_dict(), default=str),
                })

            history.append(TurnRecord(
                turn=turn,
                agent=current.to_dict(),
                result=result,
                tool_outcomes=outcomes,
                handoff_to=next_agent.id if next_agent else None,
            ))

            if next_agent is not None:
                log_turn(f"Handoff: {current.name} -> {next_agent.name}")
                current = next_agent

        raise TurnLimitError(max_turns, task_id=task["id"])

    def _apply_handoffs(
        self,
        outcomes: List[ToolOutcome],
        context: Dict[str, Any],
    ) -> Optional[Agent]:
        """Resolve the first handoff in a batch through membership"""
        next_agent = None
        for outcome in outcomes:
            handoff = outcome.handoff
            if handoff is None:
                continue
            if next_agent is not None:
                logger.debug(f"Ignoring additional handoff {outcome.name} in the same turn")
                continue

            target = self.agents.get(handoff.agent_id)
            if target is None:
                outcome.result = None
                outcome.error = f"Handoff target {handoff.agent_id} is not a member of this swarm"
                logger.warning(outcome.error)
                continue

            context.update(handoff.context_variables)
            next_agent = target
        return next_agent

    def _detect_text_handoff(self, content: Optional[str]) -> Optional[Agent]:
        """Member named by a HANDOFF: <Name> marker in the content, if any"""
        match = TEXT_HANDOFF_PATTERN.search(content or "")
        if not match:
            return None
        name = match.group(1)
        for candidate in self.agents.values():
            if candidate.name == name:
                return candidate
        logger.debug(f"HANDOFF marker names {name}, which is not a member; ignoring")
        return None

    async def run_stream(
        self,
        agent: Agent,
        messages: List[Dict[str, Any]],
        **kwargs
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Run a task and yield each turn's output, then a completion entry.

        Accepts the same keyword arguments as run().
        """
        result = await self.run(agent=agent, messages=messages, **kwargs)

        for entry in result.history:
            yield {
                "turn": entry.turn,
                "agent": entry.agent,
                "content": entry.result.content,
                "timestamp": entry.timestamp,
            }

        yield {
            "type": "complete",
            "task_id": result.task_id,
            "context_variables": result.context_variables,
            "final_agent": result.final_agent,
        }

    # =========================================================================
    # Tools
    # =========================================================================

    async def execute_tools(self, agent: Agent, tool_calls: List[Any]) -> List[ToolOutcome]:
        """
        Execute tool calls against an agent's registry.

        Returns one ToolOutcome per call in input order. A failing call
        only sets its own outcome's error.
        """
        return await self.tool_executor.execute_batch(tool_calls, agent.tools)

    # =========================================================================
    # Parallel execution & consensus
    # =========================================================================

    async def run_parallel(
        self,
        agents: List[Agent],
        messages: List[Dict[str, Any]],
        context_variables: Optional[Dict[str, Any]] = None,
        consensus_type: Optional[Union[ConsensusType, str]] = None,
    ) -> ParallelResult:
        """
        Execute every agent on the same input concurrently and decide by consensus.

        Args:
            agents: Agents to fan out to
            messages: Input shared by all agents
            context_variables: Merged into every agent's context
            consensus_type: Override the swarm's consensus algorithm

        Returns:
            ParallelResult with results in input agent order
        """
        self._require_running("run_parallel")
        if not messages:
            raise ValueError("messages must be a non-empty sequence")

        if consensus_type is None:
            consensus_type = self.consensus_type
        else:
            consensus_type = _validated(parse_consensus_type, consensus_type)

        logger.info(f"Running parallel consensus ({consensus_type.value}) with {len(agents)} agents")

        outcomes = await asyncio.gather(
            *[agent.execute(messages, context_variables) for agent in agents],
            return_exceptions=True
        )

        results = []
        for agent, outcome in zip(agents, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Agent {agent.name} raised during parallel run: {outcome}")
                results.append(AgentResult(
                    success=False,
                    agent_id=agent.id,
                    agent_name=agent.name,
                    capabilities=list(agent.capabilities),
                    error=str(outcome),
                ))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        consensus = self.gather_consensus(results, consensus_type)
        parallel_result = ParallelResult(
            results=results,
            consensus=consensus,
            consensus_type=consensus_type,
        )

        self.meter.record_event(SWARM_PARALLEL_COMPLETED, {
            "agents": len(agents),
            "consensus_type": consensus_type.value,
            "decided": consensus.decided,
        })
        self.events.emit(SwarmEvent.PARALLEL_COMPLETE, parallel_result)
        return parallel_result

    def gather_consensus(
        self,
        results: List[AgentResult],
        consensus_type: Optional[Union[ConsensusType, str]] = None,
    ) -> ConsensusDecision:
        """Apply the swarm's (or the given) consensus algorithm"""
        if consensus_type is None:
            consensus_type = self.consensus_type
        else:
            consensus_type = _validated(parse_consensus_type, consensus_type)
        return gather_consensus(results, consensus_type, leader=self.queen)

    def majority_consensus(self, results: List[AgentResult]) -> ConsensusDecision:
        return majority_consensus(results)

    def weighted_consensus(self, results: List[AgentResult]) -> ConsensusDecision:
        return weighted_consensus(results)

    def byzantine_consensus(self, results: List[AgentResult]) -> ConsensusDecision:
        return byzantine_consensus(results)

    def leader_consensus(self, results: List[AgentResult]) -> ConsensusDecision:
        return leader_consensus(results, self.queen)

    # =========================================================================
    # Status
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of configuration and membership"""
        queen = self.queen
        return {
            "topology": self.topology.value,
            "consensus_type": self.consensus_type.value,
            "is_running": self.is_running,
            "agent_count": len(self.agents),
            "max_agents": self.max_agents,
            "agents": [a.to_dict() for a in self.agents.values()],
            "queen": queen.to_dict() if queen else None,
            "active_tasks": len(self.tasks),
        }

    # =========================================================================
    # Pre-built agent factories
    # =========================================================================

    @staticmethod
    def create_coder_agent(**kwargs) -> Agent:
        return create_agent("coder", **kwargs)

    @staticmethod
    def create_reviewer_agent(**kwargs) -> Agent:
        return create_agent("reviewer", **kwargs)

    @staticmethod
    def create_tester_agent(**kwargs) -> Agent:
        return create_agent("tester", **kwargs)

    @staticmethod
    def create_architect_agent(**kwargs) -> Agent:
        return create_agent("architect", **kwargs)

    @staticmethod
    def create_security_agent(**kwargs) -> Agent:
        return create_agent("security", **kwargs)
