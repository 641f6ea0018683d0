#!/usr/bin/env python3
"""
Swarm Consensus

Reduces the divergent outputs of several agents to one decision. Four
algorithms, all pure functions over a list of AgentResult:

- majority:  largest group of identical contents wins
- weighted:  groups scored by the producers' capability counts
- byzantine: largest group must reach ceil(2(n-1)/3) votes, tolerating
             up to (n-1)//3 faulty or dissenting agents
- leader:    the queen's output wins

Failed results count toward the totals but never join a group, so they
act as non-matching votes. Ties go to the group seen first. A decision
without a winner (winner is None) always carries an error string and
means "no decision".

Example:
    from swarm.consensus import gather_consensus
    from config import ConsensusType

    decision = gather_consensus(results, ConsensusType.BYZANTINE)
    if decision.winner is None:
        print(decision.error)
"""

import math
from typing import Any, Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field, fields
import logging

from config import ConsensusType
from .agents.base_agent import Agent, AgentResult

logger = logging.getLogger(__name__)

NO_RESULTS_ERROR = "No results to reach consensus on"


@dataclass
class ConsensusDecision:
    """Outcome of a consensus round. Unused fields stay None."""
    algorithm: ConsensusType
    winner: Optional[str] = None
    total: int = 0
    votes: Optional[int] = None
    agreement: Optional[float] = None
    weighted_votes: Optional[int] = None
    total_weight: Optional[int] = None
    required: Optional[int] = None
    max_faulty: Optional[int] = None
    byzantine_safe: Optional[bool] = None
    leader: Optional[str] = None
    tallies: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def decided(self) -> bool:
        return self.winner is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (f.name == "tallies" and not value):
                continue
            data[f.name] = value.value if isinstance(value, ConsensusType) else value
        data["winner"] = self.winner
        return data


def _voted(result: AgentResult) -> bool:
    return result.success and result.content is not None


def _tally(
    results: List[AgentResult],
    weight: Callable[[AgentResult], int],
) -> Tuple[Dict[str, int], int]:
    """Sum weights per content in first-seen order; also return the overall weight"""
    tallies: Dict[str, int] = {}
    total_weight = 0
    for result in results:
        w = weight(result)
        total_weight += w
        if _voted(result):
            tallies[result.content] = tallies.get(result.content, 0) + w
    return tallies, total_weight


def _leading(tallies: Dict[str, int]) -> Tuple[Optional[str], int]:
    if not tallies:
        return None, 0
    # max() keeps the first maximal item, which is the first-seen group
    return max(tallies.items(), key=lambda item: item[1])


def capability_weight(result: AgentResult) -> int:
    """Weight of a vote: number of capabilities of its producer, at least 1"""
    return max(1, len(result.capabilities or []))


def byzantine_quorum(n: int) -> int:
    """Matching votes required among n participants: ceil(2(n-1)/3)"""
    return math.ceil(2 * (n - 1) / 3) if n > 0 else 0


def majority_consensus(results: List[AgentResult]) -> ConsensusDecision:
    """Simple majority vote on identical contents"""
    if not results:
        return ConsensusDecision(ConsensusType.MAJORITY, error=NO_RESULTS_ERROR)

    tallies, total = _tally(results, lambda r: 1)
    winner, votes = _leading(tallies)

    decision = ConsensusDecision(
        ConsensusType.MAJORITY,
        winner=winner,
        votes=votes,
        total=total,
        agreement=votes / total,
        tallies=tallies,
    )
    if winner is None:
        decision.error = "No successful results to vote on"
    return decision


def weighted_consensus(results: List[AgentResult]) -> ConsensusDecision:
    """Vote weighted by the capability count of each producing agent"""
    if not results:
        return ConsensusDecision(ConsensusType.WEIGHTED, error=NO_RESULTS_ERROR)

    tallies, total_weight = _tally(results, capability_weight)
    winner, weighted_votes = _leading(tallies)

    decision = ConsensusDecision(
        ConsensusType.WEIGHTED,
        winner=winner,
        total=len(results),
        weighted_votes=weighted_votes,
        total_weight=total_weight,
        agreement=weighted_votes / total_weight,
        tallies=tallies,
    )
    if winner is None:
        decision.error = "No successful results to vote on"
    return decision


def byzantine_consensus(results: List[AgentResult]) -> ConsensusDecision:
    """
    Byzantine fault-tolerant agreement.

    The largest group of identical contents must reach the quorum
    ceil(2(n-1)/3). Otherwise there is no decision.
    """
    n = len(results)
    if n == 0:
        return ConsensusDecision(
            ConsensusType.BYZANTINE,
            byzantine_safe=False,
            required=0,
            error=NO_RESULTS_ERROR,
        )

    required = byzantine_quorum(n)
    tallies, _ = _tally(results, lambda r: 1)
    leading, votes = _leading(tallies)

    if leading is not None and votes >= required:
        return ConsensusDecision(
            ConsensusType.BYZANTINE,
            winner=leading,
            votes=votes,
            total=n,
            required=required,
            max_faulty=(n - 1) // 3,
            byzantine_safe=True,
            tallies=tallies,
        )

    logger.warning(f"No Byzantine consensus: {votes}/{n} matching votes, {required} required")
    return ConsensusDecision(
        ConsensusType.BYZANTINE,
        winner=None,
        votes=votes,
        total=n,
        required=required,
        max_faulty=(n - 1) // 3,
        byzantine_safe=False,
        tallies=tallies,
        error=f"No Byzantine consensus reached ({votes} matching votes, {required} required)",
    )


def leader_consensus(results: List[AgentResult], leader: Optional[Agent]) -> ConsensusDecision:
    """The leader's (queen's) output wins regardless of the other votes"""
    total = len(results)
    if leader is None:
        return ConsensusDecision(
            ConsensusType.LEADER,
            total=total,
            error="No leader set for leader consensus",
        )

    leader_result = next((r for r in results if r.agent_id == leader.id), None)
    if leader_result is None:
        return ConsensusDecision(
            ConsensusType.LEADER,
            total=total,
            leader=leader.name,
            error=f"Leader {leader.name} produced no result",
        )

    if not _voted(leader_result):
        return ConsensusDecision(
            ConsensusType.LEADER,
            total=total,
            leader=leader.name,
            error=f"Leader {leader.name} failed: {leader_result.error}",
        )

    return ConsensusDecision(
        ConsensusType.LEADER,
        winner=leader_result.content,
        votes=1,
        total=total,
        leader=leader.name,
    )


def gather_consensus(
    results: List[AgentResult],
    consensus_type: ConsensusType,
    leader: Optional[Agent] = None,
) -> ConsensusDecision:
    """Dispatch to the algorithm selected by consensus_type"""
    if consensus_type == ConsensusType.MAJORITY:
        return majority_consensus(results)
    if consensus_type == ConsensusType.WEIGHTED:
        return weighted_consensus(results)
    if consensus_type == ConsensusType.BYZANTINE:
        return byzantine_consensus(results)
    if consensus_type == ConsensusType.LEADER:
        return leader_consensus(results, leader)
    raise ValueError(f"Invalid consensus type: {consensus_type}")
