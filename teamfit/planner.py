"""Candidate selection and work assignment for a single role."""
from __future__ import annotations

import math
from collections.abc import Sequence

from teamfit.models import (
    AssignedWorkItem,
    Candidate,
    CandidateScoreDetail,
    RolePlanningDraft,
    RoleMatchReport,
    WorkItemDraft,
)
from teamfit.utils import finite_or, round_half_up, unique

STRONG_FIT_THRESHOLD = 0.85
PARTIAL_FIT_THRESHOLD = 0.6

STRONG_FIT_COMMENT = "Covers the core skills of the role well"
PARTIAL_FIT_COMMENT = "Core competencies are covered, but there are growth areas"
WEAK_FIT_COMMENT = "Notable skill gaps for the role"


def _fit_comment(skill_score: float, risks: Sequence[str]) -> str:
    if skill_score >= STRONG_FIT_THRESHOLD:
        parts = [STRONG_FIT_COMMENT]
    elif skill_score >= PARTIAL_FIT_THRESHOLD:
        parts = [PARTIAL_FIT_COMMENT]
    else:
        parts = [WEAK_FIT_COMMENT]
    if risks:
        parts.append(risks[0])
    return ". ".join(parts).rstrip(".") + "."


def build_candidates(report: RoleMatchReport) -> list[Candidate]:
    """UI-facing candidate records, in ranking order.

    Score details use a uniform per-skill weight for display, regardless of
    the requirement weights used for scoring.
    """
    if not report.matches:
        return []

    skill_count = len(report.matches[0].explanation.skill_coverage)
    skill_weight = round(1 / skill_count, 2) if skill_count else 0.0

    candidates: list[Candidate] = []
    for match in report.matches:
        explanation = match.explanation
        candidates.append(Candidate(
            person_id=match.person.id,
            score=min(100, max(0, round_half_up(explanation.total_score * 100))),
            fit_comment=_fit_comment(explanation.normalized_skill_score, explanation.risks),
            risk_tags=unique(explanation.risks),
            score_details=[
                CandidateScoreDetail(
                    criterion=coverage.skill.name,
                    weight=skill_weight,
                    value=1.0 if coverage.has_skill else 0.0,
                    comment=coverage.gaps[0] if coverage.gaps else None,
                )
                for coverage in explanation.skill_coverage
            ],
        ))
    return candidates


def select_pinned(candidates: Sequence[Candidate], required: float) -> list[str]:
    """Ids of the top ``max(1, round(required))`` candidates, deduplicated.

    A non-finite *required* takes every candidate.
    """
    if not candidates:
        return []
    needed = max(1, round_half_up(required)) if math.isfinite(required) else len(candidates)
    return unique(candidate.person_id for candidate in candidates[:needed])


def estimate_required_fte(role: RolePlanningDraft) -> float:
    """Headcount estimate from work items: total effort over the covered time span.

    Never below ``role.required``.  Falls back to ``role.required`` when the
    work items carry non-finite numbers; a non-finite ``required`` counts as 1.
    """
    required = finite_or(role.required, 1)
    if not role.work_items:
        return max(1, required)

    numbers = [v for item in role.work_items for v in (item.start_day, item.duration_days, item.effort_days)]
    if not all(math.isfinite(v) for v in numbers):
        return required

    starts = [max(0, round_half_up(item.start_day)) for item in role.work_items]
    ends = [max(0, round_half_up(item.start_day + item.duration_days)) for item in role.work_items]
    total_effort = sum(float(max(0, round_half_up(item.effort_days))) for item in role.work_items)

    span = max(max(ends) - min(starts), 1)
    calculated = total_effort / span
    return max(required, finite_or(calculated, required))


def assign_to_work_items(work_items: Sequence[WorkItemDraft], pinned_ids: Sequence[str]) -> list[AssignedWorkItem]:
    """Round-robin the pinned people over the work items, in order."""
    return [
        AssignedWorkItem(
            **item.model_dump(),
            assigned_person_id=pinned_ids[index % len(pinned_ids)] if pinned_ids else None,
        )
        for index, item in enumerate(work_items)
    ]
