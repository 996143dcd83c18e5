"""Bounded reads of the header line of agent session JSONL files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from agent_resume.utils import (
    FIRST_JSON_LINE_CHUNK_BYTES,
    FIRST_JSON_LINE_MAX_BYTES,
    normalize_absolute_path,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionHeader:
    """The parts of a session's first line that matter for scoring."""

    session_id: str | None
    cwd: str | None
    is_session_meta: bool


def read_first_json_line(path: str | Path) -> dict[str, Any] | None:
    """Parse the first line of *path* as a JSON object.

    Reads at most ``FIRST_JSON_LINE_MAX_BYTES`` in ``FIRST_JSON_LINE_CHUNK_BYTES``
    chunks, stopping at the first newline. Returns None if the file can't be
    opened, has no parseable first line, or the value isn't an object.
    Never raises.
    """
    chunks: list[bytes] = []
    total = 0
    complete = False
    try:
        with open(path, "rb") as f:
            while total < FIRST_JSON_LINE_MAX_BYTES:
                want = min(FIRST_JSON_LINE_CHUNK_BYTES, FIRST_JSON_LINE_MAX_BYTES - total)
                chunk = f.read(want)
                if not chunk:
                    # EOF: a single unterminated line is still a line
                    complete = True
                    break
                total += len(chunk)
                newline = chunk.find(b"\n")
                if newline >= 0:
                    chunks.append(chunk[:newline])
                    complete = True
                    break
                chunks.append(chunk)
    except OSError:
        return None

    if not complete:
        log.debug("Header line of %s exceeds %d bytes", path, FIRST_JSON_LINE_MAX_BYTES)
        return None

    line = b"".join(chunks).decode("utf-8", errors="replace")
    if line.endswith("\r"):
        line = line[:-1]
    if not line:
        return None
    try:
        parsed = json.loads(line)
    except (json.JSONDecodeError, RecursionError):
        log.debug("Unparseable header line in %s", path)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def read_session_header(path: str | Path) -> SessionHeader | None:
    """Extract session id and cwd from the header line of *path*.

    Codex rollouts open with ``{"type": "session_meta", "payload": {"id", "cwd"}}``.
    Claude transcripts carry a top-level ``cwd`` on their entries instead.
    """
    first = read_first_json_line(path)
    if first is None:
        return None

    payload = first.get("payload")
    if first.get("type") == "session_meta" and isinstance(payload, dict):
        session_id = str(payload.get("id") or "").strip() or None
        return SessionHeader(
            session_id=session_id,
            cwd=normalize_absolute_path(str(payload.get("cwd") or "")),
            is_session_meta=True,
        )

    cwd = first.get("cwd")
    return SessionHeader(
        session_id=None,
        cwd=normalize_absolute_path(cwd) if isinstance(cwd, str) else None,
        is_session_meta=False,
    )
