"""Data types shared by the session resolver and the resume planner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

AgentFamily = Literal["claude", "codex"]
ResolveSource = Literal["hook", "lsof", "history"]
ResumeSource = Literal["manual", "hook", "lsof", "history"]
Confidence = Literal["high", "medium", "low"]
FailureReason = Literal["not_found", "ambiguous", "unsupported", "invalid_input"]
ResumePolicy = Literal["required", "best_effort"]

AGENT_FAMILIES: tuple[str, ...] = ("claude", "codex")
RESUME_POLICIES: tuple[str, ...] = ("required", "best_effort")
FAILURE_REASONS: tuple[str, ...] = ("not_found", "ambiguous", "unsupported", "invalid_input")


def confidence_from_score(score: int) -> Confidence:
    if score >= 100:
        return "high"
    if score >= 30:
        return "medium"
    return "low"


@dataclass(frozen=True)
class PaneContext:
    """What the pane/session-detail side knows about a terminal pane."""

    pane_id: str
    agent: str = "unknown"
    current_path: Optional[str] = None
    last_event_at: Optional[str] = None
    pane_pid: Optional[int] = None
    # Only the claude family reports this, via its SessionStart hook
    agent_session_id: Optional[str] = None


@dataclass(frozen=True)
class SessionCandidate:
    session_id: str
    score: int

    @property
    def confidence(self) -> Confidence:
        return confidence_from_score(self.score)


@dataclass(frozen=True)
class ResolvedSession:
    """Outcome of resolving a pane: either a session id or a failure reason."""

    ok: bool
    agent: str
    session_id: Optional[str] = None
    source: Optional[ResolveSource] = None
    confidence: Optional[Confidence] = None
    reason: Optional[FailureReason] = None

    @classmethod
    def found(
        cls, session_id: str, source: ResolveSource, confidence: Confidence, agent: str,
    ) -> "ResolvedSession":
        return cls(ok=True, agent=agent, session_id=session_id, source=source, confidence=confidence)

    @classmethod
    def failed(cls, reason: FailureReason, agent: str) -> "ResolvedSession":
        return cls(ok=False, agent=agent, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {
                "ok": True,
                "sessionId": self.session_id,
                "source": self.source,
                "confidence": self.confidence,
                "agent": self.agent,
            }
        return {"ok": False, "reason": self.reason, "agent": self.agent}


@dataclass
class ResumeMeta:
    """Explains to the launch caller what happened to its resume request."""

    policy: ResumePolicy
    reused: bool = False
    session_id: Optional[str] = None
    source: Optional[ResumeSource] = None
    confidence: str = "none"
    fallback_reason: Optional[FailureReason] = None
    failure_reason: Optional[FailureReason] = None
    requested: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "requested": self.requested,
            "reused": self.reused,
            "sessionId": self.session_id,
            "source": self.source,
            "confidence": self.confidence,
            "policy": self.policy,
        }
        if self.fallback_reason is not None:
            data["fallbackReason"] = self.fallback_reason
        if self.failure_reason is not None:
            data["failureReason"] = self.failure_reason
        return data


@dataclass
class ResumePlan:
    """Result of planning a launch's resume behaviour.

    ``state`` is one of ``not_requested``, ``resolved``, ``fallback`` or
    ``failed``. Only ``failed`` carries an ``error``.
    """

    state: Literal["not_requested", "resolved", "fallback", "failed"]
    effective_policy: Optional[ResumePolicy] = None
    resolved_session_id: Optional[str] = None
    meta: Optional[ResumeMeta] = None
    error: Optional[dict[str, str]] = field(default=None)

    @property
    def requested(self) -> bool:
        return self.state != "not_requested"

    def to_dict(self) -> dict[str, Any]:
        return {
            "requested": self.requested,
            "state": self.state,
            "effectivePolicy": self.effective_policy,
            "resolvedSessionId": self.resolved_session_id,
            "meta": self.meta.to_dict() if self.meta else None,
            "error": self.error,
        }
