"""Walk the OS process table to find every descendant of a pane's process."""

from __future__ import annotations

import logging
import re
from collections import deque

from agent_resume.utils import PS_TIMEOUT, run_cmd

log = logging.getLogger(__name__)

_PROCESS_EDGE_RE = re.compile(r"^(\d+)\s+(\d+)$")


def parse_process_edge(line: str) -> tuple[int, int] | None:
    """Parse one ``pid ppid`` line from ps. Returns None for anything else."""
    m = _PROCESS_EDGE_RE.match(line.strip())
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def build_children_map(ps_output: str) -> dict[int, list[int]]:
    children: dict[int, list[int]] = {}
    for line in ps_output.splitlines():
        edge = parse_process_edge(line)
        if edge is None:
            continue
        pid, ppid = edge
        children.setdefault(ppid, []).append(pid)
    return children


def walk_descendants(root_pid: int, children: dict[int, list[int]]) -> list[int]:
    """Breadth-first walk from *root_pid*; the root is always first."""
    visited = {root_pid}
    order = [root_pid]
    queue = deque([root_pid])
    while queue:
        current = queue.popleft()
        for child in children.get(current, []):
            if child in visited:
                continue
            visited.add(child)
            order.append(child)
            queue.append(child)
    return order


async def load_descendant_pids(root_pid: int) -> list[int]:
    """Return *root_pid* plus all of its descendants.

    Process enumeration is best-effort: if ``ps`` fails, times out or is
    missing, the result degrades to ``[root_pid]``.
    """
    rc, stdout, stderr = await run_cmd("ps", "-ax", "-o", "pid=,ppid=", timeout=PS_TIMEOUT)
    if rc != 0:
        log.debug("ps failed (rc=%s): %s", rc, stderr)
        return [root_pid]
    return walk_descendants(root_pid, build_children_map(stdout))
