"""Decide whether and how a launch resumes a previous agent conversation.

A plan moves from *not requested* or *resolving* to one of three terminal
states:

* ``resolved`` – a session id was found (manually supplied or from a pane)
* ``fallback`` – resolution failed under ``best_effort``; launch fresh and
  report ``fallbackReason``
* ``failed`` – resolution failed under ``required``; the launch is blocked
  with one of the ``RESUME_*`` error codes
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from agent_resume.models import (
    FailureReason,
    PaneContext,
    ResumeMeta,
    ResumePlan,
    ResumePolicy,
)
from agent_resume.session_resolver import SessionResolver

log = logging.getLogger(__name__)

PaneLookup = Callable[[str], Optional[PaneContext]]

RESUME_ERROR_CODES: dict[str, str] = {
    "not_found": "RESUME_NOT_FOUND",
    "ambiguous": "RESUME_AMBIGUOUS",
    "unsupported": "RESUME_UNSUPPORTED",
    "invalid_input": "RESUME_INVALID_INPUT",
}


def build_error(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def resolve_resume_error_code(reason: FailureReason) -> str:
    return RESUME_ERROR_CODES[reason]


def resolve_requested_resume_policy(
    resume_policy: ResumePolicy | None = None,
    resume_session_id: str | None = None,
    resume_from_pane_id: str | None = None,
) -> ResumePolicy | None:
    """Effective policy, or None when no resume input was supplied at all.

    Without an explicit policy a manual id implies ``required`` and a pane
    reference alone implies ``best_effort``.
    """
    if resume_session_id is None and resume_from_pane_id is None:
        return None
    if resume_policy:
        return resume_policy
    if resume_session_id is not None:
        return "required"
    return "best_effort"


def _resolved(policy: ResumePolicy, session_id: str, source: str, confidence: str) -> ResumePlan:
    return ResumePlan(
        state="resolved",
        effective_policy=policy,
        resolved_session_id=session_id,
        meta=ResumeMeta(
            policy=policy,
            reused=True,
            session_id=session_id,
            source=source,
            confidence=confidence,
        ),
    )


def _failed(policy: ResumePolicy, reason: FailureReason, message: str) -> ResumePlan:
    log.info("Resume failed (%s, policy=%s)", reason, policy)
    return ResumePlan(
        state="failed",
        effective_policy=policy,
        meta=ResumeMeta(policy=policy, failure_reason=reason),
        error=build_error(resolve_resume_error_code(reason), message),
    )


def _fallback(policy: ResumePolicy, reason: FailureReason) -> ResumePlan:
    log.info("Resume skipped, launching fresh (%s)", reason)
    return ResumePlan(
        state="fallback",
        effective_policy=policy,
        meta=ResumeMeta(policy=policy, fallback_reason=reason),
    )


async def resolve_launch_resume_plan(
    request_agent: str,
    pane_lookup: PaneLookup,
    resume_session_id: str | None = None,
    resume_from_pane_id: str | None = None,
    resume_policy: ResumePolicy | None = None,
    resolver: SessionResolver | None = None,
) -> ResumePlan:
    """Plan the resume half of a launch request.

    Resolution failures become errors only under ``required``; under
    ``best_effort`` the caller always gets a plan it can launch with.
    """
    policy = resolve_requested_resume_policy(resume_policy, resume_session_id, resume_from_pane_id)
    if policy is None:
        return ResumePlan(state="not_requested")

    manual_reason: FailureReason | None = None
    if resume_session_id is not None:
        manual_id = resume_session_id.strip()
        if manual_id:
            # Manual ids are trusted as-is and never cross-checked against a pane
            return _resolved(policy, manual_id, "manual", "high")
        manual_reason = "invalid_input"
        if policy == "required":
            return _failed(policy, manual_reason, "failed to resolve resume session")

    if resume_from_pane_id is not None:
        pane_id = resume_from_pane_id.strip()
        pane = pane_lookup(pane_id) if pane_id else None
        if pane is None:
            reason = "invalid_input"
        else:
            resolved = await (resolver or SessionResolver()).resolve(pane, request_agent)
            if resolved.ok:
                return _resolved(policy, resolved.session_id, resolved.source, resolved.confidence)
            reason = resolved.reason
        if policy == "required":
            return _failed(policy, reason, "failed to resolve resume session from pane")
        return _fallback(policy, reason)

    reason = manual_reason or "not_found"
    if policy == "required":
        return _failed(policy, reason, "failed to resolve resume session")
    return _fallback(policy, reason)
