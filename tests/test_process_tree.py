"""Tests for process-table walking."""

import pytest

import agent_resume.process_tree as pt
from agent_resume.process_tree import (
    build_children_map,
    load_descendant_pids,
    parse_process_edge,
    walk_descendants,
)

PS_OUTPUT = """\
    1     0
  100     1
  200   100
  201   100
  300   200
  999     1
garbage line
  400   300 extra
"""


def test_parse_process_edge():
    assert parse_process_edge("  200   100 ") == (200, 100)
    assert parse_process_edge("abc 1") is None
    assert parse_process_edge("") is None
    assert parse_process_edge("1 2 3") is None


def test_walk_is_breadth_first_and_includes_root():
    children = build_children_map(PS_OUTPUT)
    assert walk_descendants(100, children) == [100, 200, 201, 300]


def test_walk_leaf_process():
    children = build_children_map(PS_OUTPUT)
    assert walk_descendants(300, children) == [300]


def test_walk_survives_cycles():
    children = {1: [2], 2: [3], 3: [1, 2]}
    assert walk_descendants(1, children) == [1, 2, 3]


@pytest.mark.asyncio
async def test_load_descendants_uses_ps(monkeypatch):
    calls = []

    async def fake_run_cmd(*args, timeout=None):
        calls.append((args, timeout))
        return 0, PS_OUTPUT, ""

    monkeypatch.setattr(pt, "run_cmd", fake_run_cmd)
    assert sorted(await load_descendant_pids(100)) == [100, 200, 201, 300]
    assert calls[0][0] == ("ps", "-ax", "-o", "pid=,ppid=")
    assert calls[0][1] is not None


@pytest.mark.asyncio
async def test_load_descendants_degrades_on_ps_failure(monkeypatch):
    async def failing_run_cmd(*args, timeout=None):
        return 1, "", "ps: boom"

    monkeypatch.setattr(pt, "run_cmd", failing_run_cmd)
    assert await load_descendant_pids(4242) == [4242]


@pytest.mark.asyncio
async def test_load_descendants_degrades_on_timeout(monkeypatch):
    async def timed_out(*args, timeout=None):
        return -1, "", "Command timed out"

    monkeypatch.setattr(pt, "run_cmd", timed_out)
    assert await load_descendant_pids(7) == [7]
