"""Locate candidate session logs for a pane.

Two strategies, one per agent family:

* history scan – list ``~/.claude/projects/<encoded cwd>/*.jsonl``
* open-file scan – ask ``lsof`` which ``~/.codex/sessions/**/*.jsonl`` files
  the pane's process tree currently holds open

Both return a :class:`ScanResult` and never raise. ``inconclusive`` means an
error was absorbed (missing tool, unreadable directory) and the empty result
should not be read as proof that no session exists.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from agent_resume.process_tree import load_descendant_pids
from agent_resume.utils import (
    CLAUDE_PROJECTS_DIR,
    CMD_NOT_FOUND,
    CODEX_SESSIONS_DIR,
    LSOF_PID_BATCH_SIZE,
    LSOF_TIMEOUT,
    SESSION_LOG_EXT,
    normalize_absolute_path,
    run_cmd,
)

log = logging.getLogger(__name__)

ScanStatus = Literal["found", "not_found", "inconclusive"]


@dataclass
class ScanResult:
    status: ScanStatus
    files: set[str] = field(default_factory=set)

    @classmethod
    def from_files(cls, files: set[str], errors: bool = False) -> "ScanResult":
        if files:
            return cls("found", files)
        return cls("inconclusive" if errors else "not_found", set())


# ── History scan ────────────────────────────────────────────────────────────


def encode_project_dir(cwd: str) -> str:
    """Encode a working directory the way Claude names its project folders."""
    return cwd.replace("/", "-")


def encode_project_dir_legacy(cwd: str) -> str:
    """Older Claude releases also replaced dots."""
    return cwd.replace("/", "-").replace(".", "-")


def project_dir_names(cwd: str) -> list[str]:
    primary = encode_project_dir(cwd)
    legacy = encode_project_dir_legacy(cwd)
    return [primary] if primary == legacy else [primary, legacy]


def _list_session_files(project_dir: Path) -> set[str]:
    files = set()
    with os.scandir(project_dir) as entries:
        for entry in entries:
            if entry.name.endswith(SESSION_LOG_EXT) and entry.is_file():
                files.add(os.path.join(str(project_dir), entry.name))
    return files


def scan_history_files(cwd: str, projects_dir: Path | None = None) -> ScanResult:
    """Collect ``*.jsonl`` files from every encoding variant of *cwd*.

    *cwd* must already be normalized. Missing project directories are
    skipped silently; other OS errors mark the result inconclusive.
    """
    base = Path(projects_dir) if projects_dir is not None else CLAUDE_PROJECTS_DIR
    files: set[str] = set()
    errors = False
    for name in project_dir_names(cwd):
        project_dir = base / name
        try:
            files |= _list_session_files(project_dir)
        except FileNotFoundError:
            continue
        except OSError as e:
            log.debug("Could not list %s: %s", project_dir, e)
            errors = True
    return ScanResult.from_files(files, errors)


# ── Open-file scan ──────────────────────────────────────────────────────────


def parse_lsof_session_path(line: str, sessions_dir: Path | str) -> str | None:
    """Return the session log path from an ``lsof -Fn`` name line, else None."""
    if not line.startswith("n"):
        return None
    candidate = line[1:].strip()
    if not candidate.endswith(SESSION_LOG_EXT):
        return None
    path = normalize_absolute_path(candidate)
    if path is None:
        return None
    root = normalize_absolute_path(str(sessions_dir))
    if root is None or not path.startswith(root.rstrip("/") + "/"):
        return None
    return path


def batch_pids(pids: list[int], size: int = LSOF_PID_BATCH_SIZE) -> list[list[int]]:
    return [pids[i:i + size] for i in range(0, len(pids), size)]


async def scan_open_session_files(
    root_pid: int | None, sessions_dir: Path | None = None,
) -> ScanResult:
    """Find session logs held open by *root_pid* or any of its descendants.

    Batches are queried one after another. If ``lsof`` is not installed the
    scan stops at once; a batch that fails otherwise is skipped.
    """
    if not isinstance(root_pid, int) or isinstance(root_pid, bool) or root_pid <= 0:
        return ScanResult("not_found")

    base = Path(sessions_dir) if sessions_dir is not None else CODEX_SESSIONS_DIR
    pids = await load_descendant_pids(root_pid)

    files: set[str] = set()
    errors = False
    for batch in batch_pids(pids):
        args = ["lsof", "-Fn"]
        for pid in batch:
            args.extend(["-p", str(pid)])
        rc, stdout, stderr = await run_cmd(*args, timeout=LSOF_TIMEOUT)
        if rc == CMD_NOT_FOUND:
            log.debug("lsof is not available; skipping open-file scan")
            return ScanResult("inconclusive")
        if not stdout:
            # lsof exits 1 when a pid holds no files, so only empty output is a failure
            if rc != 0 and rc != 1:
                log.debug("lsof batch failed (rc=%s): %s", rc, stderr)
                errors = True
            continue
        for line in stdout.splitlines():
            path = parse_lsof_session_path(line, base)
            if path:
                files.add(path)
    return ScanResult.from_files(files, errors)


async def stat_mtime(path: str) -> float | None:
    """Modification time in epoch seconds, or None if the file is gone."""
    try:
        st = await asyncio.to_thread(os.stat, path)
    except OSError:
        return None
    return st.st_mtime
