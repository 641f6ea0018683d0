"""In-memory usage metering for swarm operations.

Records named usage events (task started/completed/failed, parallel
rounds) with their data. Nothing is persisted; the log is capped and
keeps the newest half once the cap is exceeded.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


# Swarm event names
SWARM_TASK_STARTED = "swarm.task.started"
SWARM_TASK_COMPLETED = "swarm.task.completed"
SWARM_TASK_FAILED = "swarm.task.failed"
SWARM_PARALLEL_COMPLETED = "swarm.parallel.completed"


@dataclass
class MeterEvent:
    """A single recorded usage event"""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class UsageMeter:
    """Collects usage events for the lifetime of the process."""

    def __init__(self, max_events: int = 1000):
        self._events: List[MeterEvent] = []
        self._max_events = max_events

    def record_event(self, name: str, data: Optional[Dict[str, Any]] = None) -> MeterEvent:
        """Record a usage event"""
        event = MeterEvent(name=name, data=dict(data or {}))
        self._events.append(event)
        if len(self._events) > self._max_events:
            self._events = self._events[-self._max_events // 2:]
        logger.debug(f"Metered {name}: {event.data}")
        return event

    def get_events(self, name: Optional[str] = None) -> List[MeterEvent]:
        """Get recorded events, optionally only those with a given name"""
        if name is None:
            return list(self._events)
        return [e for e in self._events if e.name == name]

    def summary(self) -> Dict[str, int]:
        """Count of recorded events per name"""
        counts: Dict[str, int] = {}
        for event in self._events:
            counts[event.name] = counts.get(event.name, 0) + 1
        return counts

    def clear(self) -> None:
        self._events = []
