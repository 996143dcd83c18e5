"""Tests for candidate scoring and selection."""

from datetime import datetime, timedelta, timezone

import pytest

from agent_resume.models import SessionCandidate, confidence_from_score
from agent_resume.scorer import (
    HISTORY_BASE_SCORE,
    LSOF_BASE_SCORE,
    choose_best_candidate,
    parse_event_time,
    score_by_event_time,
    score_candidate,
)

EVENT_AT = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _mtime(delta: timedelta) -> float:
    return (EVENT_AT + delta).timestamp()


def test_confidence_tiers():
    assert confidence_from_score(135) == "high"
    assert confidence_from_score(100) == "high"
    assert confidence_from_score(99) == "medium"
    assert confidence_from_score(30) == "medium"
    assert confidence_from_score(29) == "low"
    assert confidence_from_score(1) == "low"


def test_parse_event_time_variants():
    assert parse_event_time("2026-10-18T12:00:00Z") == EVENT_AT.timestamp()
    assert parse_event_time("2026-10-18T12:00:00+00:00") == EVENT_AT.timestamp()
    assert parse_event_time("2026-10-18T12:00:00") == EVENT_AT.timestamp()
    assert parse_event_time("2026-10-18T12:00:00.5Z") == EVENT_AT.timestamp() + 0.5
    assert parse_event_time("2026-10-18T12:00:00.12Z") == pytest.approx(EVENT_AT.timestamp() + 0.12)
    assert parse_event_time("yesterday") is None
    assert parse_event_time(None) is None
    assert parse_event_time("") is None


def test_recency_windows():
    iso = EVENT_AT.isoformat()
    assert score_by_event_time(_mtime(timedelta(minutes=-10)), iso) == 30
    assert score_by_event_time(_mtime(timedelta(minutes=11)), iso) == 10
    assert score_by_event_time(_mtime(timedelta(minutes=-30)), iso) == 10
    assert score_by_event_time(_mtime(timedelta(minutes=31)), iso) == 0
    assert score_by_event_time(None, iso) == 0
    assert score_by_event_time(_mtime(timedelta()), None) == 0
    assert score_by_event_time(_mtime(timedelta()), "garbage") == 0


def test_cwd_match_and_recent_is_high_confidence():
    score = score_candidate(
        HISTORY_BASE_SCORE, "/w/repo", "/w/repo", _mtime(timedelta(minutes=3)), EVENT_AT.isoformat(),
    )
    assert score >= 130
    assert confidence_from_score(score) == "high"


def test_live_process_base_outranks_history_base():
    history = score_candidate(HISTORY_BASE_SCORE, None, "/w", None, None)
    lsof = score_candidate(LSOF_BASE_SCORE, None, "/w", None, None)
    assert lsof > history


def test_unparsed_header_still_scores():
    assert score_candidate(HISTORY_BASE_SCORE, None, "/w/repo", None, None) == HISTORY_BASE_SCORE
    assert score_candidate(HISTORY_BASE_SCORE, "/other", "/w/repo", None, None) == HISTORY_BASE_SCORE


def test_no_candidates_is_not_found():
    best = choose_best_candidate([])
    assert not best.ok
    assert best.reason == "not_found"


def test_tie_is_ambiguous_regardless_of_order():
    a = SessionCandidate("a", 101)
    b = SessionCandidate("b", 101)
    for order in ([a, b], [b, a]):
        best = choose_best_candidate(order)
        assert not best.ok
        assert best.reason == "ambiguous"


def test_tie_below_the_top_does_not_matter():
    best = choose_best_candidate([
        SessionCandidate("low1", 1),
        SessionCandidate("top", 131),
        SessionCandidate("low2", 1),
    ])
    assert best.ok
    assert best.candidate.session_id == "top"
    assert best.candidate.confidence == "high"


def test_duplicate_ids_keep_highest_score():
    best = choose_best_candidate([
        SessionCandidate("same", 5),
        SessionCandidate("same", 35),
        SessionCandidate("other", 10),
    ])
    assert best.ok
    assert best.candidate == SessionCandidate("same", 35)
    assert best.candidate.confidence == "medium"


def test_duplicate_ids_are_not_a_tie():
    best = choose_best_candidate([SessionCandidate("same", 105), SessionCandidate("same", 105)])
    assert best.ok
    assert best.candidate.session_id == "same"
