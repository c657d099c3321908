"""Run one swarm from the command line.

Agents are loaded by import path, the master task is read from a JSON file,
and the swarm result is printed as JSON.

Example:
    python scripts/run_swarm.py task.json \
        --agent validator=mypkg.agents:validate_quote \
        --agent price_analyzer=mypkg.agents:PriceAnalyzer \
        --types validator,price_analyzer \
        --event-log outputs/events.jsonl

Exit codes:
- 0: every agent succeeded
- 1: at least one agent failed
- 2: usage or input error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple


def _parse_agent_spec(raw: str) -> Tuple[str, str]:
    agent_type, sep, import_path = raw.partition("=")
    if not sep or not agent_type.strip() or not import_path.strip():
        raise ValueError(f"Invalid --agent value '{raw}', expected TYPE=module:attribute")
    return agent_type.strip(), import_path.strip()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a swarm of agents over one master task")
    parser.add_argument("task_file", help="Path to a JSON file holding the master task object")
    parser.add_argument(
        "--agent",
        action="append",
        default=[],
        metavar="TYPE=module:attribute",
        help="Register an agent implementation (repeatable)",
    )
    parser.add_argument(
        "--types",
        default=None,
        help="Comma-separated agent types to dispatch (default: every registered type)",
    )
    parser.add_argument("--event-log", default=None, help="Append orchestrator events to this JSONL file")
    parser.add_argument("--timeout", type=float, default=None, help="Per-attempt timeout in seconds")
    parser.add_argument("--retries", type=int, default=None, help="Retries after the first attempt")
    parser.add_argument("--metrics", action="store_true", help="Also print orchestrator metrics")

    args = parser.parse_args(argv)

    # Allow running this script directly without requiring installation.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    from agent_swarm.agents import SwarmOrchestrator, SwarmUsageError
    from agent_swarm.events import JsonlEventLog

    try:
        with open(args.task_file, "r", encoding="utf-8") as f:
            master_task = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Failed to read task file {args.task_file}: {e}", file=sys.stderr)
        return 2

    overrides = {}
    if args.timeout is not None:
        overrides["timeout_seconds"] = args.timeout
    if args.retries is not None:
        overrides["retries"] = args.retries

    event_sink = JsonlEventLog(args.event_log) if args.event_log else None
    orchestrator = SwarmOrchestrator(event_sink=event_sink)

    try:
        for raw in args.agent:
            agent_type, import_path = _parse_agent_spec(raw)
            orchestrator.register_agent_from_path(agent_type, import_path, overrides or None)
    except (ValueError, ImportError, AttributeError, TypeError) as e:
        print(f"Failed to register agent: {e}", file=sys.stderr)
        return 2

    if args.types:
        agent_types = [t.strip() for t in args.types.split(",") if t.strip()]
    else:
        agent_types = orchestrator.registry.list_types()

    try:
        result = asyncio.run(orchestrator.execute_swarm(master_task, agent_types))
    except SwarmUsageError as e:
        print(str(e), file=sys.stderr)
        return 2

    output = result.to_dict()
    if args.metrics:
        output["metrics"] = orchestrator.get_metrics()
    print(json.dumps(output, indent=2, default=str))

    return 0 if result.all_succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
