"""Pane registry — tmux pane discovery merged with hook-reported session ids."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from agent_resume.models import PaneContext
from agent_resume.scorer import parse_event_time
from agent_resume.utils import run_cmd, normalize_absolute_path

log = logging.getLogger(__name__)

# The path goes last since it is the only field that may contain "|"
TMUX_PANE_FORMAT = "#{pane_id}|#{pane_pid}|#{pane_activity}|#{pane_current_command}|#{pane_current_path}"


def detect_agent(command: str) -> str:
    """Map a pane's foreground command to an agent family."""
    name = os.path.basename(command.strip()).lower()
    if name.startswith("claude"):
        return "claude"
    if name.startswith("codex"):
        return "codex"
    return "unknown"


async def list_tmux_panes() -> list[dict[str, Any]]:
    """List all tmux panes with their id, pid, last activity, command and working directory.

    ``last_activity`` is tmux's ``pane_activity`` epoch converted to ISO-8601 UTC,
    or None when tmux did not report one.
    """
    rc, stdout, stderr = await run_cmd("tmux", "list-panes", "-a", "-F", TMUX_PANE_FORMAT, timeout=3.0)
    if rc != 0:
        log.debug("tmux list-panes failed (rc=%s): %s", rc, stderr)
        return []

    results = []
    for line in stdout.splitlines():
        parts = line.split("|", 4)
        if len(parts) != 5:
            continue
        pane_id, pid_text, activity_text, command, current_path = parts
        try:
            pane_pid: int | None = int(pid_text)
        except ValueError:
            pane_pid = None
        results.append({
            "pane_id": pane_id,
            "pane_pid": pane_pid,
            "last_activity": _activity_to_iso(activity_text),
            "current_path": current_path,
            "current_command": command,
        })
    return results


def _activity_to_iso(text: str) -> str | None:
    try:
        epoch = int(text.strip())
    except ValueError:
        return None
    if epoch <= 0:
        return None
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()


def _latest_event_at(*values: str | None) -> str | None:
    """Pick the most recent of several ISO-8601 timestamps, ignoring unparseable ones."""
    latest: tuple[float, str] | None = None
    for value in values:
        ts = parse_event_time(value)
        if ts is not None and (latest is None or ts > latest[0]):
            latest = (ts, value)
    return latest[1] if latest else None


@dataclass
class HookReport:
    session_id: str
    last_event_at: str
    agent: str = "claude"
    cwd: str | None = None


@dataclass
class PaneRegistry:
    """In-memory view of panes, refreshed from tmux and annotated by hooks."""

    panes: dict[str, dict[str, Any]] = field(default_factory=dict)
    hooks: dict[str, HookReport] = field(default_factory=dict)

    async def refresh(self) -> int:
        panes = await list_tmux_panes()
        self.panes = {p["pane_id"]: p for p in panes}
        # Forget hook reports for panes that no longer exist
        if self.panes:
            for pane_id in list(self.hooks):
                if pane_id not in self.panes:
                    del self.hooks[pane_id]
        return len(self.panes)

    def record_hook(
        self,
        pane_id: str,
        session_id: str,
        agent: str = "claude",
        cwd: str | None = None,
        event_at: str | None = None,
    ) -> HookReport:
        report = HookReport(
            session_id=session_id.strip(),
            last_event_at=event_at or datetime.now(timezone.utc).isoformat(),
            agent=agent,
            cwd=normalize_absolute_path(cwd),
        )
        self.hooks[pane_id] = report
        return report

    def get_detail(self, pane_id: str) -> PaneContext | None:
        pane = self.panes.get(pane_id)
        report = self.hooks.get(pane_id)
        if pane is None and report is None:
            return None

        agent = detect_agent(pane["current_command"]) if pane else "unknown"
        if agent == "unknown" and report is not None:
            # Fall back to the agent the hook reported
            agent = report.agent
        current_path = pane["current_path"] if pane else None
        return PaneContext(
            pane_id=pane_id,
            agent=agent,
            current_path=current_path or (report.cwd if report else None),
            last_event_at=_latest_event_at(
                report.last_event_at if report else None,
                pane.get("last_activity") if pane else None,
            ),
            pane_pid=pane["pane_pid"] if pane else None,
            agent_session_id=report.session_id if report and agent == "claude" else None,
        )
