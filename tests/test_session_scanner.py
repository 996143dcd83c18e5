"""Tests for the history and open-file scanning strategies."""

import pytest

import agent_resume.session_scanner as scanner
from agent_resume.session_scanner import (
    batch_pids,
    parse_lsof_session_path,
    project_dir_names,
    scan_history_files,
    scan_open_session_files,
)
from agent_resume.utils import CMD_NOT_FOUND


# ── History scan ────────────────────────────────────────────────────────────


def test_project_dir_names_single_variant():
    assert project_dir_names("/home/me/repo") == ["-home-me-repo"]


def test_project_dir_names_with_legacy_variant():
    assert project_dir_names("/home/me/my.repo") == ["-home-me-my.repo", "-home-me-my-repo"]


def test_history_scan_collects_all_variants(tmp_path):
    primary = tmp_path / "-w-my.repo"
    legacy = tmp_path / "-w-my-repo"
    primary.mkdir()
    legacy.mkdir()
    (primary / "aaa.jsonl").write_text("{}\n")
    (legacy / "bbb.jsonl").write_text("{}\n")
    (primary / "notes.txt").write_text("ignored")
    (primary / "sub.jsonl").mkdir()

    result = scan_history_files("/w/my.repo", projects_dir=tmp_path)
    assert result.status == "found"
    assert result.files == {str(primary / "aaa.jsonl"), str(legacy / "bbb.jsonl")}


def test_history_scan_missing_dirs_is_not_found(tmp_path):
    result = scan_history_files("/nowhere", projects_dir=tmp_path)
    assert result.status == "not_found"
    assert result.files == set()


def test_history_scan_dir_without_logs(tmp_path):
    (tmp_path / "-w").mkdir()
    assert scan_history_files("/w", projects_dir=tmp_path).status == "not_found"


# ── Open-file scan ──────────────────────────────────────────────────────────


def test_parse_lsof_session_path(tmp_path):
    sessions = tmp_path / "sessions"
    good = f"n{sessions}/2026/10/18/rollout-1.jsonl"
    assert parse_lsof_session_path(good, sessions) == f"{sessions}/2026/10/18/rollout-1.jsonl"
    assert parse_lsof_session_path(f"p{sessions}/x.jsonl", sessions) is None
    assert parse_lsof_session_path(f"n{sessions}/x.log", sessions) is None
    assert parse_lsof_session_path("n/tmp/elsewhere/x.jsonl", sessions) is None
    assert parse_lsof_session_path(f"n{sessions}-other/x.jsonl", sessions) is None


def test_batch_pids_is_stable():
    pids = list(range(600))
    batches = batch_pids(pids)
    assert [len(b) for b in batches] == [256, 256, 88]
    assert [pid for b in batches for pid in b] == pids


@pytest.mark.asyncio
async def test_open_file_scan_without_pid_runs_nothing(monkeypatch):
    async def explode(*args, **kwargs):
        raise AssertionError("no external command expected")

    monkeypatch.setattr(scanner, "run_cmd", explode)
    monkeypatch.setattr(scanner, "load_descendant_pids", explode)
    for pid in (None, 0, -3):
        result = await scan_open_session_files(pid)
        assert result.status == "not_found"
        assert result.files == set()


@pytest.mark.asyncio
async def test_open_file_scan_collects_across_batches(monkeypatch, tmp_path):
    sessions = tmp_path / "sessions"
    pids = list(range(1, 301))
    calls = []

    async def fake_descendants(root_pid):
        return pids

    async def fake_run_cmd(*args, timeout=None):
        calls.append(args)
        first_pid = args[3]
        lines = [f"p{first_pid}", "fcwd", f"n{sessions}/2026/rollout-{first_pid}.jsonl", "n/dev/null"]
        return 0, "\n".join(lines), ""

    monkeypatch.setattr(scanner, "load_descendant_pids", fake_descendants)
    monkeypatch.setattr(scanner, "run_cmd", fake_run_cmd)

    result = await scan_open_session_files(1, sessions_dir=sessions)
    assert len(calls) == 2
    assert calls[0][:2] == ("lsof", "-Fn")
    assert calls[0].count("-p") == 256
    assert calls[1].count("-p") == 44
    assert result.status == "found"
    assert result.files == {
        f"{sessions}/2026/rollout-1.jsonl",
        f"{sessions}/2026/rollout-257.jsonl",
    }


@pytest.mark.asyncio
async def test_open_file_scan_stops_when_lsof_missing(monkeypatch, tmp_path):
    calls = []

    async def fake_descendants(root_pid):
        return list(range(1, 600))

    async def missing(*args, timeout=None):
        calls.append(args)
        return CMD_NOT_FOUND, "", "lsof: command not found"

    monkeypatch.setattr(scanner, "load_descendant_pids", fake_descendants)
    monkeypatch.setattr(scanner, "run_cmd", missing)

    result = await scan_open_session_files(1, sessions_dir=tmp_path)
    assert len(calls) == 1
    assert result.status == "inconclusive"
    assert result.files == set()


@pytest.mark.asyncio
async def test_open_file_scan_skips_failed_batch(monkeypatch, tmp_path):
    sessions = tmp_path / "sessions"
    outcomes = [
        (-1, "", "Command timed out"),
        (1, f"p300\nn{sessions}/rollout-b.jsonl", ""),
    ]

    async def fake_descendants(root_pid):
        return list(range(1, 301))

    async def fake_run_cmd(*args, timeout=None):
        return outcomes.pop(0)

    monkeypatch.setattr(scanner, "load_descendant_pids", fake_descendants)
    monkeypatch.setattr(scanner, "run_cmd", fake_run_cmd)

    result = await scan_open_session_files(1, sessions_dir=sessions)
    assert result.status == "found"
    assert result.files == {f"{sessions}/rollout-b.jsonl"}


@pytest.mark.asyncio
async def test_open_file_scan_all_batches_failed_is_inconclusive(monkeypatch, tmp_path):
    async def fake_descendants(root_pid):
        return [1]

    async def fake_run_cmd(*args, timeout=None):
        return -1, "", "Command timed out"

    monkeypatch.setattr(scanner, "load_descendant_pids", fake_descendants)
    monkeypatch.setattr(scanner, "run_cmd", fake_run_cmd)

    result = await scan_open_session_files(1, sessions_dir=tmp_path)
    assert result.status == "inconclusive"
