"""Lifecycle observer channel for swarms.

External code subscribes to swarm events instead of polling:

    swarm.on(SwarmEvent.TASK_COMPLETE, lambda result: print(result.task_id))

Handlers are plain callables run synchronously, in subscription order,
on the swarm's flow of control. A handler that raises is logged and
skipped; it never affects the swarm or the other handlers.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Union
import logging

logger = logging.getLogger(__name__)


class SwarmEvent(str, Enum):
    """Events published by a Swarm, with their payload."""

    INITIALIZED = "initialized"              # None
    STOPPED = "stopped"                      # None
    AGENT_ADDED = "agent_added"              # Agent
    AGENT_REMOVED = "agent_removed"          # {"agent_id": str}
    TOPOLOGY_CHANGED = "topology_changed"    # {"topology": Topology}
    CONSENSUS_CHANGED = "consensus_changed"  # {"consensus_type": ConsensusType}
    TASK_COMPLETE = "task_complete"          # RunResult
    TASK_ERROR = "task_error"                # {"task_id": str, "error": Exception}
    PARALLEL_COMPLETE = "parallel_complete"  # ParallelResult


EventHandler = Callable[[Any], None]


class EventChannel:
    """In-process publish/subscribe for swarm lifecycle events."""

    def __init__(self):
        self._handlers: Dict[SwarmEvent, List[EventHandler]] = {}

    def on(self, event: Union[SwarmEvent, str], handler: EventHandler) -> None:
        """Subscribe a handler to an event"""
        self._handlers.setdefault(SwarmEvent(event), []).append(handler)

    def off(self, event: Union[SwarmEvent, str], handler: EventHandler) -> bool:
        """Unsubscribe a handler. Returns False if it was not subscribed."""
        handlers = self._handlers.get(SwarmEvent(event), [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(self, event: SwarmEvent, payload: Any = None) -> None:
        """Deliver an event to every subscribed handler"""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Error in {event.value} handler: {e}")

    def listener_count(self, event: Union[SwarmEvent, str]) -> int:
        return len(self._handlers.get(SwarmEvent(event), []))

    def clear(self) -> None:
        """Remove every subscription"""
        self._handlers.clear()
