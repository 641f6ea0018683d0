#!/usr/bin/env python3
"""
Agent Swarm Configuration Module

Centralized configuration for swarm orchestration:
- Topologies, consensus algorithms and agent status values
- Model API endpoints and authentication
- Default limits for swarms, runs and tool execution

Environment variables (a local .env file is loaded automatically):
- SWARM_API_KEY / OPENAI_API_KEY: key for the OpenAI-compatible endpoint
- SWARM_API_BASE_URL, SWARM_API_TIMEOUT, SWARM_API_MAX_RETRIES
- SWARM_MODEL: default model for new agents
- SWARM_TOPOLOGY, SWARM_CONSENSUS, SWARM_MAX_AGENTS, SWARM_MAX_TURNS
"""

import os
from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Topology(Enum):
    """
    Structural relationship between agents in a swarm.

    HIERARCHICAL: One queen coordinates workers
    MESH: Peer-to-peer collaboration
    RING: Circular message passing
    STAR: Central hub
    """
    HIERARCHICAL = "hierarchical"
    MESH = "mesh"
    RING = "ring"
    STAR = "star"


class ConsensusType(Enum):
    """Algorithms for reducing divergent agent outputs to one decision"""
    LEADER = "leader"          # Queen decides
    MAJORITY = "majority"      # Simple majority vote
    WEIGHTED = "weighted"      # Weighted by agent capabilities
    BYZANTINE = "byzantine"    # Fault-tolerant 2/3 quorum


class AgentStatus(Enum):
    """Execution state of a single agent"""
    IDLE = "idle"
    BUSY = "busy"
    ERROR = "error"


# Defaults
DEFAULT_TOPOLOGY = Topology.HIERARCHICAL
DEFAULT_CONSENSUS = ConsensusType.LEADER
DEFAULT_MAX_AGENTS = 10
DEFAULT_MAX_TURNS = 10
DEFAULT_MODEL = os.getenv("SWARM_MODEL", "gpt-4o-mini")
DEFAULT_BASE_URL = "https://api.openai.com/v1"


def parse_topology(value: Union[Topology, str]) -> Topology:
    """Resolve a Topology member from an enum or its string value"""
    if isinstance(value, Topology):
        return value
    try:
        return Topology(str(value).lower())
    except ValueError:
        raise ValueError(f"Invalid topology: {value}")


def parse_consensus_type(value: Union[ConsensusType, str]) -> ConsensusType:
    """Resolve a ConsensusType member from an enum or its string value"""
    if isinstance(value, ConsensusType):
        return value
    try:
        return ConsensusType(str(value).lower())
    except ValueError:
        raise ValueError(f"Invalid consensus type: {value}")


@dataclass
class APIConfig:
    """API configuration for the model-call client"""
    base_url: str
    api_key: str
    timeout: int = 120
    max_retries: int = 3

    @classmethod
    def from_env(cls, base_url: Optional[str] = None) -> "APIConfig":
        """Create APIConfig from environment variables"""
        api_key = os.getenv("SWARM_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "SWARM_API_KEY environment variable not set "
                "(OPENAI_API_KEY is also accepted)"
            )
        return cls(
            base_url=base_url or os.getenv("SWARM_API_BASE_URL", DEFAULT_BASE_URL),
            api_key=api_key,
            timeout=int(os.getenv("SWARM_API_TIMEOUT", "120")),
            max_retries=int(os.getenv("SWARM_API_MAX_RETRIES", "3")),
        )


@dataclass
class ToolConfig:
    """Configuration for tool calling operations"""
    max_concurrent_calls: int = 10
    tool_timeout: Optional[float] = 60.0


@dataclass
class SwarmConfig:
    """Configuration for a swarm"""
    topology: Topology = DEFAULT_TOPOLOGY
    consensus_type: ConsensusType = DEFAULT_CONSENSUS
    max_agents: int = DEFAULT_MAX_AGENTS
    max_turns: int = DEFAULT_MAX_TURNS

    def __post_init__(self):
        self.topology = parse_topology(self.topology)
        self.consensus_type = parse_consensus_type(self.consensus_type)
        if self.max_agents < 1:
            raise ValueError(f"max_agents must be positive, got {self.max_agents}")
        if self.max_turns < 1:
            raise ValueError(f"max_turns must be positive, got {self.max_turns}")

    @classmethod
    def from_env(cls) -> "SwarmConfig":
        """Create SwarmConfig from environment variables"""
        return cls(
            topology=os.getenv("SWARM_TOPOLOGY", DEFAULT_TOPOLOGY.value),
            consensus_type=os.getenv("SWARM_CONSENSUS", DEFAULT_CONSENSUS.value),
            max_agents=int(os.getenv("SWARM_MAX_AGENTS", str(DEFAULT_MAX_AGENTS))),
            max_turns=int(os.getenv("SWARM_MAX_TURNS", str(DEFAULT_MAX_TURNS))),
        )


DEFAULT_TOOL_CONFIG = ToolConfig()


def validate_api_key() -> bool:
    """Check if a model API key is configured"""
    return bool(os.getenv("SWARM_API_KEY") or os.getenv("OPENAI_API_KEY"))
