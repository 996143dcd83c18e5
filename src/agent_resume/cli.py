"""Command-line front end: resolve a pane's session or preview a launch resume plan."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from agent_resume.models import AGENT_FAMILIES, RESUME_POLICIES
from agent_resume.pane_registry import PaneRegistry
from agent_resume.resume_planner import resolve_launch_resume_plan
from agent_resume.session_resolver import SessionResolver
from agent_resume.utils import install_hooks


async def _cmd_resolve(args: argparse.Namespace) -> int:
    registry = PaneRegistry()
    await registry.refresh()
    pane = registry.get_detail(args.pane)
    if pane is None:
        print(f"Error: pane '{args.pane}' not found", file=sys.stderr)
        return 1
    resolved = await SessionResolver().resolve(pane, args.agent)
    print(json.dumps(resolved.to_dict(), indent=2))
    return 0 if resolved.ok else 1


async def _cmd_plan(args: argparse.Namespace) -> int:
    registry = PaneRegistry()
    if args.pane is not None:
        await registry.refresh()
    plan = await resolve_launch_resume_plan(
        request_agent=args.agent,
        pane_lookup=registry.get_detail,
        resume_session_id=args.session_id,
        resume_from_pane_id=args.pane,
        resume_policy=args.policy,
    )
    print(json.dumps(plan.to_dict(), indent=2))
    return 1 if plan.error else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agent-resume", description="Find the agent session a pane should resume")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve the session running in a pane")
    resolve.add_argument("--pane", required=True, help="tmux pane id, e.g. %%2")
    resolve.add_argument("--agent", required=True, choices=AGENT_FAMILIES)

    plan = sub.add_parser("plan", help="Preview the resume plan for a launch")
    plan.add_argument("--agent", required=True, choices=AGENT_FAMILIES)
    plan.add_argument("--session-id", default=None, help="Session id to resume directly")
    plan.add_argument("--pane", default=None, help="Pane whose session should be resumed")
    plan.add_argument("--policy", default=None, choices=RESUME_POLICIES)

    sub.add_parser("install-hooks", help="Install the session-id hook into Claude settings")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "install-hooks":
        changed = install_hooks()
        print("Hooks installed" if changed else "Hooks already present")
        return 0
    if args.command == "resolve":
        return asyncio.run(_cmd_resolve(args))
    return asyncio.run(_cmd_plan(args))


if __name__ == "__main__":
    sys.exit(main())
