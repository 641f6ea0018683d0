"""Exception hierarchy for the agent swarm.

All swarm exceptions inherit from SwarmError, making it easy to catch
every orchestration error in one place.

Exception Hierarchy:
    SwarmError (base)
    ├── SwarmValidationError - Invalid topology, consensus type or membership
    ├── CapacityError - Swarm already holds max_agents agents
    ├── SwarmNotRunningError - Orchestration requested before init() or after stop()
    ├── TurnLimitError - run() exhausted max_turns without completing
    └── AgentExecutionError - An agent failed during run()

Agent failures are normally converted into data (AgentResult) rather
than raised, and a failing tool call only sets ToolOutcome.error.
A consensus without a winner is reported as ConsensusDecision.winner = None,
never as an exception.
"""

from typing import Optional


class SwarmError(Exception):
    """Base exception for all swarm errors.

    Catch this to handle any orchestration failure:
        try:
            result = await swarm.run(agent=coder, messages=messages)
        except SwarmError as e:
            logger.error(f"Swarm error: {e}")
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{super().__str__()} (caused by: {self.cause})"
        return super().__str__()


class SwarmValidationError(SwarmError, ValueError):
    """Rejected configuration or membership change.

    Raised for an unknown topology or consensus type and for adding an
    agent whose id is already a member. State is left unchanged.
    """

    pass


class CapacityError(SwarmError):
    """Raised when add_agent() is called on a full swarm."""

    pass


class SwarmNotRunningError(SwarmError):
    """Raised when run() or run_parallel() is called on a swarm that is not running."""

    pass


class TurnLimitError(SwarmError):
    """The execution loop reached max_turns without a terminal turn."""

    def __init__(self, max_turns: int, task_id: Optional[str] = None):
        super().__init__(f"Maximum turns ({max_turns}) reached")
        self.max_turns = max_turns
        self.task_id = task_id


class AgentExecutionError(SwarmError):
    """An agent returned a failed result inside run()."""

    def __init__(self, message: str, agent_id: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.agent_id = agent_id
