"""Planning flow shared by the API: sanitize drafts, match roles, build plans."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from teamfit.catalog import SkillCatalog
from teamfit.evidence import to_matchable_person
from teamfit.models import (
    InitiativeMatchReport,
    InitiativePlan,
    InitiativePlanningRequest,
    PersonProfile,
    RoleMatchReport,
    RolePlan,
    RolePlanningDraft,
    WorkItemDraft,
)
from teamfit.normalizer import build_role_requirement
from teamfit.planner import assign_to_work_items, build_candidates, estimate_required_fte, select_pinned
from teamfit.scorer import ScoringPolicy, rank_role, summarize_role_reports
from teamfit.utils import finite_or, round_half_up

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Draft sanitizing
# ---------------------------------------------------------------------------


def _sanitize_work_item(item: WorkItemDraft, role_id: str, index: int) -> WorkItemDraft:
    return WorkItemDraft(
        id=item.id.strip() or f"{role_id}-work-{index + 1}",
        title=item.title.strip() or f"Work item {index + 1}",
        description=item.description.strip(),
        start_day=max(0, round_half_up(finite_or(item.start_day, 0))),
        duration_days=max(1, round_half_up(finite_or(item.duration_days, 1))),
        effort_days=max(1, round_half_up(finite_or(item.effort_days, 1))),
        tasks=[task.strip() for task in item.tasks if task.strip()],
    )


def sanitize_role_draft(draft: RolePlanningDraft, index: int, initiative_id: str) -> RolePlanningDraft:
    role_id = draft.id.strip() or f"{initiative_id or 'initiative'}-role-{index + 1}"
    return RolePlanningDraft(
        id=role_id,
        role=draft.role.strip() or f"Role {index + 1}",
        required=max(1, round_half_up(finite_or(draft.required, 1))),
        skills=draft.skills,
        work_items=[_sanitize_work_item(item, role_id, i) for i, item in enumerate(draft.work_items)],
    )


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def build_role_match_reports(
    roles: Sequence[RolePlanningDraft],
    people: Sequence[PersonProfile],
    catalog: SkillCatalog,
    now: datetime,
    policy: ScoringPolicy | None = None,
    half_life_days: float | None = None,
) -> list[RoleMatchReport]:
    """One ranked report per role, in role order."""
    requirements = [build_role_requirement(role, catalog, half_life_days) for role in roles]
    if not people:
        return [RoleMatchReport(requirement=requirement) for requirement in requirements]
    matchable = [to_matchable_person(person, catalog, now) for person in people]
    return [rank_role(requirement, matchable, policy) for requirement in requirements]


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


def plan_role(draft: RolePlanningDraft, report: RoleMatchReport) -> RolePlan:
    candidates = build_candidates(report)
    pinned = select_pinned(candidates, draft.required)
    return RolePlan(
        id=draft.id,
        role=draft.role,
        required=draft.required,
        required_fte=estimate_required_fte(draft),
        pinned_person_ids=pinned,
        candidates=candidates,
        work_items=assign_to_work_items(draft.work_items, pinned),
    )


# ---------------------------------------------------------------------------
# Initiatives
# ---------------------------------------------------------------------------


def _prepare_initiative(
    request: InitiativePlanningRequest, catalog: SkillCatalog,
) -> tuple[str, str, list[RolePlanningDraft]]:
    initiative_id = request.initiative_id.strip() or "initiative"
    initiative_name = request.name.strip() or catalog.initiative_names.get(initiative_id, initiative_id)
    roles = [sanitize_role_draft(role, i, initiative_id) for i, role in enumerate(request.roles)]
    return initiative_id, initiative_name, roles


def match_initiative(
    request: InitiativePlanningRequest,
    people: Sequence[PersonProfile],
    catalog: SkillCatalog,
    now: datetime,
    policy: ScoringPolicy | None = None,
    half_life_days: float | None = None,
) -> InitiativeMatchReport:
    initiative_id, initiative_name, roles = _prepare_initiative(request, catalog)
    reports = build_role_match_reports(roles, people, catalog, now, policy, half_life_days)
    return summarize_role_reports(initiative_id, initiative_name, reports)


def plan_initiative(
    request: InitiativePlanningRequest,
    people: Sequence[PersonProfile],
    catalog: SkillCatalog,
    now: datetime,
    policy: ScoringPolicy | None = None,
    half_life_days: float | None = None,
) -> InitiativePlan:
    initiative_id, initiative_name, roles = _prepare_initiative(request, catalog)
    reports = build_role_match_reports(roles, people, catalog, now, policy, half_life_days)
    plans = [plan_role(role, report) for role, report in zip(roles, reports)]
    summary = summarize_role_reports(initiative_id, initiative_name, reports)

    log.info(
        "Planned initiative %s: %d role(s), %d people, overall score %.2f",
        initiative_id, len(plans), len(people), summary.overall_score,
    )
    return InitiativePlan(
        initiative_id=initiative_id,
        initiative_name=initiative_name,
        roles=plans,
        report=summary,
    )
