"""Resolve which agent conversation a pane was running."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from agent_resume.jsonl_reader import read_session_header
from agent_resume.models import PaneContext, ResolvedSession, SessionCandidate
from agent_resume.scorer import (
    HISTORY_BASE_SCORE,
    LSOF_BASE_SCORE,
    choose_best_candidate,
    score_candidate,
)
from agent_resume.session_scanner import (
    scan_history_files,
    scan_open_session_files,
    stat_mtime,
)
from agent_resume.utils import SESSION_LOG_EXT, normalize_absolute_path

log = logging.getLogger(__name__)


class SessionResolver:
    """Maps a pane to a :class:`ResolvedSession`.

    Holds no state between calls; the directories are injectable so tests
    can point it at temporary trees.
    """

    def __init__(
        self,
        claude_projects_dir: Path | None = None,
        codex_sessions_dir: Path | None = None,
    ) -> None:
        self._claude_projects_dir = claude_projects_dir
        self._codex_sessions_dir = codex_sessions_dir

    async def resolve(self, pane: PaneContext, request_agent: str) -> ResolvedSession:
        if pane.agent not in ("claude", "codex"):
            return ResolvedSession.failed("unsupported", "unknown")
        if pane.agent != request_agent:
            return ResolvedSession.failed("invalid_input", pane.agent)

        if pane.agent == "claude":
            hook_session_id = (pane.agent_session_id or "").strip()
            if hook_session_id:
                return ResolvedSession.found(hook_session_id, "hook", "high", "claude")
            return await self._resolve_from_history(pane)

        return await self._resolve_from_open_files(pane)

    async def _resolve_from_history(self, pane: PaneContext) -> ResolvedSession:
        cwd = normalize_absolute_path(pane.current_path)
        if not cwd:
            return ResolvedSession.failed("invalid_input", "claude")

        scan = await asyncio.to_thread(scan_history_files, cwd, self._claude_projects_dir)
        if scan.status != "found":
            log.debug("History scan for pane %s: %s", pane.pane_id, scan.status)
            return ResolvedSession.failed("not_found", "claude")

        candidates = []
        for path in sorted(scan.files):
            session_id = os.path.basename(path)[: -len(SESSION_LOG_EXT)].strip()
            if not session_id:
                continue
            header = await asyncio.to_thread(read_session_header, path)
            score = score_candidate(
                HISTORY_BASE_SCORE,
                header.cwd if header else None,
                cwd,
                await stat_mtime(path),
                pane.last_event_at,
            )
            candidates.append(SessionCandidate(session_id, score))

        return self._select(candidates, "history", "claude")

    async def _resolve_from_open_files(self, pane: PaneContext) -> ResolvedSession:
        scan = await scan_open_session_files(pane.pane_pid, self._codex_sessions_dir)
        if scan.status != "found":
            log.debug("Open-file scan for pane %s: %s", pane.pane_id, scan.status)
            return ResolvedSession.failed("not_found", "codex")

        cwd = normalize_absolute_path(pane.current_path)
        candidates = []
        for path in sorted(scan.files):
            header = await asyncio.to_thread(read_session_header, path)
            # Without a session_meta header there is no id to resume
            if header is None or not header.is_session_meta or not header.session_id:
                continue
            score = score_candidate(
                LSOF_BASE_SCORE,
                header.cwd,
                cwd,
                await stat_mtime(path),
                pane.last_event_at,
            )
            candidates.append(SessionCandidate(header.session_id, score))

        return self._select(candidates, "lsof", "codex")

    @staticmethod
    def _select(candidates: list[SessionCandidate], source: str, agent: str) -> ResolvedSession:
        best = choose_best_candidate(candidates)
        if not best.ok:
            return ResolvedSession.failed(best.reason, agent)
        return ResolvedSession.found(
            best.candidate.session_id, source, best.candidate.confidence, agent,
        )


async def resolve_session_by_pane(
    pane: PaneContext, request_agent: str, resolver: SessionResolver | None = None,
) -> ResolvedSession:
    """Resolve *pane* with the default directories unless *resolver* is given."""
    return await (resolver or SessionResolver()).resolve(pane, request_agent)
