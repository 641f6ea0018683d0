"""
Swarm Agents

Agent building blocks and role presets:
- coder, reviewer, tester, architect, security
"""

from .base_agent import Agent, AgentResult, AgentStats, ROLE_PRESETS, create_agent

__all__ = [
    "Agent",
    "AgentResult",
    "AgentStats",
    "ROLE_PRESETS",
    "create_agent",
]
