"""Rank candidate session logs against what is known about a pane."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Literal

from agent_resume.models import SessionCandidate

# LSOF_BASE_SCORE must stay above HISTORY_BASE_SCORE
HISTORY_BASE_SCORE = 1
LSOF_BASE_SCORE = 5
CWD_MATCH_BONUS = 100
RECENT_BONUS = 30
NEARBY_BONUS = 10
RECENT_WINDOW_SECONDS = 10 * 60
NEARBY_WINDOW_SECONDS = 30 * 60


@dataclass(frozen=True)
class BestCandidate:
    """Selection outcome: a candidate, or a ``not_found``/``ambiguous`` reason."""

    candidate: SessionCandidate | None
    reason: Literal["not_found", "ambiguous"] | None = None

    @property
    def ok(self) -> bool:
        return self.candidate is not None


def parse_event_time(value: str | None) -> float | None:
    """Parse an ISO-8601 timestamp into epoch seconds. Naive values are UTC.

    Relies on the Python 3.11 `datetime.fromisoformat`, which accepts fractional
    seconds of any precision (3.10 rejects e.g. ``12:00:00.12``).
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def score_by_event_time(file_mtime: float | None, last_event_at: str | None) -> int:
    if file_mtime is None:
        return 0
    event_at = parse_event_time(last_event_at)
    if event_at is None:
        return 0
    diff = abs(file_mtime - event_at)
    if diff <= RECENT_WINDOW_SECONDS:
        return RECENT_BONUS
    if diff <= NEARBY_WINDOW_SECONDS:
        return NEARBY_BONUS
    return 0


def score_candidate(
    base: int,
    header_cwd: str | None,
    pane_cwd: str | None,
    file_mtime: float | None,
    last_event_at: str | None,
) -> int:
    """Score one candidate file. Both cwd values must already be normalized."""
    score = base
    if header_cwd and pane_cwd and header_cwd == pane_cwd:
        score += CWD_MATCH_BONUS
    score += score_by_event_time(file_mtime, last_event_at)
    return score


def dedupe_candidates(candidates: Iterable[SessionCandidate]) -> list[SessionCandidate]:
    """Keep the highest-scoring occurrence of each session id."""
    best: dict[str, SessionCandidate] = {}
    for candidate in candidates:
        prev = best.get(candidate.session_id)
        if prev is None or candidate.score > prev.score:
            best[candidate.session_id] = candidate
    return list(best.values())


def choose_best_candidate(candidates: Iterable[SessionCandidate]) -> BestCandidate:
    """Pick the top scorer. A tie for first place is ambiguous, never broken by order."""
    ranked = sorted(dedupe_candidates(candidates), key=lambda c: c.score, reverse=True)
    if not ranked:
        return BestCandidate(None, "not_found")
    if len(ranked) > 1 and ranked[0].score == ranked[1].score:
        return BestCandidate(None, "ambiguous")
    return BestCandidate(ranked[0])
