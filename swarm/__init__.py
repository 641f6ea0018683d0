"""
Agent Swarm Module

Multi-agent coordination: a swarm holds a bounded set of agents,
routes a task through them turn by turn, or fans one input out to
many agents and reduces their outputs by consensus.

Capabilities:
- Agents with tools and handoffs to other agents
- Hierarchical (queen-led), mesh, ring and star topologies
- Leader, majority, weighted and Byzantine fault-tolerant consensus
- Lifecycle events for observers

Architecture:
    ┌─────────────────────────────────────────────┐
    │                   SWARM                     │
    │  - Membership & queen                       │
    │  - Turn loop with handoffs                  │
    │  - Parallel fan-out & consensus             │
    └────────────────┬────────────────────────────┘
                     │
         ┌───────────┼───────────┐
         │           │           │
    ┌────▼────┐ ┌────▼────┐ ┌────▼────┐
    │  Coder  │ │Reviewer │ │ Tester  │
    │ (queen) │ │  Agent  │ │  Agent  │
    └────┬────┘ └────┬────┘ └────┬────┘
         │           │           │
    ┌────▼───────────▼───────────▼────┐
    │     TOOL EXECUTION & CONSENSUS  │
    └─────────────────────────────────┘

Example Usage:
    from swarm import Swarm

    swarm = Swarm(consensus_type="majority")
    swarm.init()
    swarm.add_agent(Swarm.create_coder_agent())
    swarm.add_agent(Swarm.create_reviewer_agent())

    decision = await swarm.run_parallel(
        agents=list(swarm.agents.values()),
        messages=[{"role": "user", "content": "Ship it? yes/no"}],
    )
"""

from .orchestrator import (
    Swarm,
    RunResult,
    TurnRecord,
    ParallelResult,
)

from .agents.base_agent import (
    Agent,
    AgentResult,
    AgentStats,
    ROLE_PRESETS,
    create_agent,
)

from .consensus import ConsensusDecision, gather_consensus
from .events import EventChannel, SwarmEvent
from .metering import UsageMeter
from .exceptions import (
    SwarmError,
    SwarmValidationError,
    CapacityError,
    SwarmNotRunningError,
    TurnLimitError,
    AgentExecutionError,
)

__all__ = [
    "Swarm",
    "RunResult",
    "TurnRecord",
    "ParallelResult",
    "Agent",
    "AgentResult",
    "AgentStats",
    "ROLE_PRESETS",
    "create_agent",
    "ConsensusDecision",
    "gather_consensus",
    "EventChannel",
    "SwarmEvent",
    "UsageMeter",
    "SwarmError",
    "SwarmValidationError",
    "CapacityError",
    "SwarmNotRunningError",
    "TurnLimitError",
    "AgentExecutionError",
]
