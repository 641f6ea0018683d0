#!/usr/bin/env python3
"""
Agent Swarm Demo

Builds a small development swarm (coder as queen, reviewer, tester) and
either runs a task through the coder with handoffs, or asks every agent
in parallel and decides by consensus.

Without SWARM_API_KEY / OPENAI_API_KEY the agents use the offline
EchoClient, so the demo runs anywhere.

Usage:
    # Single-agent run starting with the coder
    python run_swarm_demo.py --task "Write a slugify helper"

    # Parallel run decided by Byzantine consensus
    python run_swarm_demo.py --parallel --consensus byzantine

    # Log every turn and handoff
    python run_swarm_demo.py --verbose
"""

import asyncio
import argparse
import logging

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from config import ConsensusType, Topology, validate_api_key
from swarm import Swarm, SwarmEvent, SwarmError, RunResult, ParallelResult

logger = logging.getLogger(__name__)

console = Console()


def build_swarm(topology: str, consensus: str, max_turns: int) -> Swarm:
    """Create the default development swarm"""
    swarm = Swarm(topology=topology, consensus_type=consensus)
    swarm.config.max_turns = max_turns
    swarm.on(SwarmEvent.AGENT_ADDED, lambda agent: console.print(f"  [yellow]+[/yellow] {agent.name} joined"))
    swarm.on(SwarmEvent.TASK_ERROR, lambda data: console.print(f"[red]Task {data['task_id'][:8]} failed: {data['error']}[/red]"))

    coder = Swarm.create_coder_agent()
    reviewer = Swarm.create_reviewer_agent()
    tester = Swarm.create_tester_agent()

    coder.add_handoff(reviewer)
    reviewer.add_handoff(tester)

    swarm.add_agent(coder, is_queen=True)
    swarm.add_agent(reviewer)
    swarm.add_agent(tester)
    return swarm


def print_status(swarm: Swarm):
    """Print membership and configuration"""
    status = swarm.get_status()

    table = Table(title="Swarm Status", box=box.ROUNDED)
    table.add_column("Agent", style="cyan")
    table.add_column("Role", style="magenta")
    table.add_column("Status", style="yellow")
    table.add_column("Completed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Avg ms", justify="right")

    queen_id = status["queen"]["id"] if status["queen"] else None
    for agent in status["agents"]:
        name = agent["name"] + (" (queen)" if agent["id"] == queen_id else "")
        stats = agent["stats"]
        table.add_row(
            name,
            agent["role"],
            agent["status"],
            str(stats["tasks_completed"]),
            str(stats["tasks_failed"]),
            f"{stats['avg_response_time_ms']:.1f}",
        )

    console.print(table)
    console.print(
        f"[dim]Topology: {status['topology']} | Consensus: {status['consensus_type']} | "
        f"Agents: {status['agent_count']}/{status['max_agents']}[/dim]"
    )


def print_run_result(result: RunResult):
    table = Table(title="Turns", box=box.ROUNDED)
    table.add_column("#", style="cyan", width=4)
    table.add_column("Agent", style="magenta")
    table.add_column("Tools", style="yellow")
    table.add_column("Handoff", style="green")

    for entry in result.history:
        table.add_row(
            str(entry.turn),
            entry.agent["name"],
            ", ".join(o.name for o in entry.tool_outcomes) or "-",
            "yes" if entry.handoff_to else "-",
        )

    console.print(table)
    console.print(Panel(
        result.content or "(no content)",
        title=f"Final answer from {result.final_agent['name']} ({result.duration_ms:.0f} ms)",
        border_style="green",
    ))


def print_parallel_result(result: ParallelResult):
    table = Table(title="Votes", box=box.ROUNDED)
    table.add_column("Agent", style="cyan")
    table.add_column("OK", width=4)
    table.add_column("Output", style="white")

    for agent_result in result.results:
        output = agent_result.content if agent_result.success else agent_result.error
        table.add_row(
            agent_result.agent_name,
            "[green]yes[/green]" if agent_result.success else "[red]no[/red]",
            (output or "")[:80],
        )

    console.print(table)

    decision = result.consensus
    if decision.decided:
        console.print(Panel(decision.winner, title=f"Consensus ({result.consensus_type.value})", border_style="green"))
    else:
        console.print(Panel(decision.error or "No decision", title="No consensus", border_style="red"))

    details = {k: v for k, v in decision.to_dict().items() if k not in ("winner", "tallies", "algorithm")}
    console.print(f"[dim]{details}[/dim]")


async def run_demo(
    task: str,
    parallel: bool = False,
    topology: str = Topology.HIERARCHICAL.value,
    consensus: str = ConsensusType.MAJORITY.value,
    max_turns: int = 5,
):
    """
    Run the demo.

    Args:
        task: User request sent to the swarm
        parallel: Ask all agents concurrently instead of a single-agent run
        topology: Swarm topology
        consensus: Consensus algorithm for parallel runs
        max_turns: Turn ceiling for single-agent runs
    """
    console.print(Panel(
        f"[bold]Agent Swarm Demo[/bold]\n\n"
        f"Task: {task}\n"
        f"Mode: {'parallel' if parallel else 'single-agent'}\n"
        f"Model: {'configured API' if validate_api_key() else 'offline echo client'}",
        title="Swarm Initialization",
        border_style="cyan"
    ))

    swarm = build_swarm(topology, consensus, max_turns)
    swarm.init()

    messages = [{"role": "user", "content": task}]
    try:
        if parallel:
            result = await swarm.run_parallel(list(swarm.agents.values()), messages)
            print_parallel_result(result)
        else:
            result = await swarm.run(swarm.queen, messages, debug=True)
            print_run_result(result)
    finally:
        swarm.stop()

    print_status(swarm)


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Agent Swarm Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_swarm_demo.py --task "Design a rate limiter"
    python run_swarm_demo.py --parallel --consensus weighted
        """
    )

    parser.add_argument(
        "--task", "-t",
        default="Implement input validation for the signup form",
        help="Task for the swarm"
    )
    parser.add_argument(
        "--parallel", "-p",
        action="store_true",
        help="Ask every agent in parallel and decide by consensus"
    )
    parser.add_argument(
        "--topology",
        choices=[t.value for t in Topology],
        default=Topology.HIERARCHICAL.value,
        help="Swarm topology (default: hierarchical)"
    )
    parser.add_argument(
        "--consensus", "-c",
        choices=[c.value for c in ConsensusType],
        default=ConsensusType.MAJORITY.value,
        help="Consensus algorithm (default: majority)"
    )
    parser.add_argument(
        "--max-turns",
        type=int,
        default=5,
        help="Turn ceiling for single-agent runs (default: 5)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every turn and handoff"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        asyncio.run(run_demo(
            task=args.task,
            parallel=args.parallel,
            topology=args.topology,
            consensus=args.consensus,
            max_turns=args.max_turns,
        ))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
    except SwarmError as e:
        console.print(f"\n[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
