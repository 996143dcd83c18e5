"""Generic utilities and configuration for agent-resume."""

from __future__ import annotations

import asyncio
import json
import os
import posixpath
import subprocess
from pathlib import Path
from typing import Tuple

# Configuration Constants
CLAUDE_PROJECTS_DIR = Path(os.environ.get("CLAUDE_PROJECTS_DIR", Path.home() / ".claude" / "projects"))
CODEX_HOME = Path(os.environ.get("CODEX_HOME", Path.home() / ".codex"))
CODEX_SESSIONS_DIR = CODEX_HOME / "sessions"
API_BASE = os.environ.get("AGENT_RESUME_API", "http://127.0.0.1:8421").rstrip("/")

SESSION_LOG_EXT = ".jsonl"
FIRST_JSON_LINE_MAX_BYTES = 64 * 1024
FIRST_JSON_LINE_CHUNK_BYTES = 4096
LSOF_PID_BATCH_SIZE = 256
PS_TIMEOUT = 2.0
LSOF_TIMEOUT = 3.0

# Return code reported by run_cmd when the executable does not exist
CMD_NOT_FOUND = 127

HOOK_COMMAND = "agent-resume-hook"


def normalize_absolute_path(value: str | None) -> str | None:
    """Collapse an absolute path to canonical form, or None if it is blank/relative."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or not text.startswith("/"):
        return None
    normalized = posixpath.normpath(text)
    # normpath keeps a leading "//" per POSIX
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def _hook_entry_exists(matcher_groups: list, command: str) -> bool:
    """Check if a hook command already exists in a list of matcher groups."""
    for group in matcher_groups:
        for hook in group.get("hooks", []):
            if hook.get("command") == command:
                return True
    return False


def install_hooks(settings_path: Path | str | None = None) -> bool:
    """Ensure the session-id reporting hook is installed in Claude's settings.

    Defaults to ``~/.claude/settings.local.json``. Existing user hooks are
    kept; an entry is only added when its command is not already present.

    Returns True when the settings file was modified.
    """
    if settings_path is None:
        settings_path = Path.home() / ".claude" / "settings.local.json"
    settings_path = Path(settings_path)
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    if settings_path.exists():
        settings = json.loads(settings_path.read_text())
    else:
        settings = {}

    hooks = settings.setdefault("hooks", {})

    desired = [
        ("SessionStart", {"hooks": [{"type": "command", "command": HOOK_COMMAND}]}),
        ("UserPromptSubmit", {"hooks": [{"type": "command", "command": HOOK_COMMAND}]}),
    ]

    modified = False
    for event, group in desired:
        event_list = hooks.setdefault(event, [])
        if not _hook_entry_exists(event_list, HOOK_COMMAND):
            event_list.append(group)
            modified = True

    if modified:
        settings_path.write_text(json.dumps(settings, indent=2) + "\n")
    return modified


async def run_cmd(*args: str, timeout: float | None = None) -> Tuple[int, str, str]:
    """Execute a subprocess command asynchronously.

    Never raises. A missing executable yields ``CMD_NOT_FOUND``; a timeout
    or any other failure yields ``-1``.

    Returns:
        Tuple of (returncode, stdout, stderr).
    """
    proc = None
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )

        if timeout is not None:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        else:
            stdout, stderr = await proc.communicate()

        return (
            proc.returncode or 0,
            stdout.decode(errors="replace").strip(),
            stderr.decode(errors="replace").strip(),
        )
    except FileNotFoundError:
        return CMD_NOT_FOUND, "", f"{args[0]}: command not found"
    except asyncio.TimeoutError:
        # If timeout, try to terminate the process
        if proc:
            try:
                proc.terminate()
                await asyncio.wait_for(proc.wait(), timeout=1.0)
            except (ProcessLookupError, asyncio.TimeoutError):
                pass
        return -1, "", "Command timed out"
    except OSError as e:
        return -1, "", str(e)
