"""FastAPI server exposing pane session resolution to the launch flow."""

from __future__ import annotations

import argparse
import logging

from fastapi import FastAPI

from agent_resume.models import AGENT_FAMILIES, RESUME_POLICIES
from agent_resume.pane_registry import PaneRegistry
from agent_resume.resume_planner import resolve_launch_resume_plan
from agent_resume.session_resolver import SessionResolver

log = logging.getLogger(__name__)

app = FastAPI(title="Agent Resume")
registry = PaneRegistry()
resolver = SessionResolver()


def _optional_text(body: dict, key: str) -> str | None:
    value = body.get(key)
    return value if isinstance(value, str) else None


# ── REST Endpoints ──────────────────────────────────────────────────────────


@app.post("/api/panes/{pane_id}/hook")
async def record_pane_hook(pane_id: str, body: dict):
    """Record the session id an agent hook reported for a pane."""
    session_id = str(body.get("session_id") or "").strip()
    if not session_id:
        return {"error": "session_id is required"}
    agent = body.get("agent") or "claude"
    if agent not in AGENT_FAMILIES:
        return {"error": f"Unknown agent '{agent}'"}
    report = registry.record_hook(
        pane_id, session_id, agent=agent, cwd=_optional_text(body, "cwd"),
    )
    log.debug("Hook %s for pane %s: %s", body.get("hook_event_name"), pane_id, session_id)
    return {"ok": True, "pane_id": pane_id, "session_id": report.session_id}


@app.get("/api/panes/{pane_id}/resume-session")
async def get_pane_resume_session(pane_id: str, agent: str = "claude"):
    """Resolve which session the pane's agent was running."""
    if agent not in AGENT_FAMILIES:
        return {"error": f"Unknown agent '{agent}'"}
    await registry.refresh()
    pane = registry.get_detail(pane_id)
    if pane is None:
        return {"error": f"Pane '{pane_id}' not found"}
    resolved = await resolver.resolve(pane, agent)
    return resolved.to_dict()


@app.post("/api/launch/resume-plan")
async def post_launch_resume_plan(body: dict):
    """Compute the resume plan for a launch request."""
    agent = body.get("agent")
    if agent not in AGENT_FAMILIES:
        return {"error": f"Unknown agent '{agent}'"}
    policy = body.get("resumePolicy") or None
    if policy is not None and policy not in RESUME_POLICIES:
        return {"error": f"Unknown resumePolicy '{policy}'"}

    pane_ref = _optional_text(body, "resumeFromPaneId")
    if pane_ref is not None:
        await registry.refresh()

    plan = await resolve_launch_resume_plan(
        request_agent=agent,
        pane_lookup=registry.get_detail,
        resume_session_id=_optional_text(body, "resumeSessionId"),
        resume_from_pane_id=pane_ref,
        resume_policy=policy,
        resolver=resolver,
    )
    return plan.to_dict()


# ── Entry Point ──────────────────────────────────────────────────────────────


def main():
    import uvicorn

    parser = argparse.ArgumentParser(description="Agent Resume server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8421, help="Port to bind to (default: 8421)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    uvicorn.run(
        "agent_resume.web_server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
