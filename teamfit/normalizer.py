"""Skill requirement normalizer.

Turns a role draft's explicit skill list and the skill tags of its work-item
tasks into a deduplicated, equally weighted ``SkillRequirement`` list.

Resolution of a single token happens in two tiers:

1. catalog: exact id, case-insensitive id, case-insensitive name;
2. fallback: an id-like slug (letters, digits, hyphens) keeps a lowercased id
   and gets a title-cased name, anything else is kept as free text with no id.

The list is never empty: role-type defaults from the catalog and, failing
that, a synthetic ``"Expertise: <role>"`` requirement fill the gap.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from teamfit.catalog import SkillCatalog, slug_to_title
from teamfit.config import DEFAULT_FRESHNESS_HALF_LIFE_DAYS
from teamfit.models import NormalizedSkill, RolePlanningDraft, RoleRequirement, SkillRequirement
from teamfit.planner import estimate_required_fte

log = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9-]+$")

PLACEHOLDER_PREFIX = "Expertise: "


def placeholder_skill_name(role: str) -> str:
    """``"Expertise: <role>"``, or just ``"Expertise"`` for a blank role name."""
    role = role.strip()
    return f"{PLACEHOLDER_PREFIX}{role}" if role else PLACEHOLDER_PREFIX.rstrip(": ")


def _from_catalog(catalog: SkillCatalog, token: str) -> NormalizedSkill | None:
    entry = catalog.lookup(token)
    if entry is None:
        return None
    return NormalizedSkill(id=entry.id, name=entry.name, source="catalog")


def normalize_skill_token(token: str | NormalizedSkill, catalog: SkillCatalog) -> NormalizedSkill | None:
    """Resolve one skill token; ``None`` for blank input."""
    if isinstance(token, NormalizedSkill):
        skill_id = (token.id or "").strip()
        name = token.name.strip()
        if not skill_id and not name:
            return None
        if skill_id:
            return _from_catalog(catalog, skill_id) or NormalizedSkill(
                id=skill_id, name=name or slug_to_title(skill_id), source="slug",
            )
        return _from_catalog(catalog, name) or NormalizedSkill(name=name, source="free_text")

    trimmed = token.strip()
    if not trimmed:
        return None
    resolved = _from_catalog(catalog, trimmed)
    if resolved:
        return resolved
    if _IDENTIFIER_RE.match(trimmed):
        return NormalizedSkill(id=trimmed.lower(), name=slug_to_title(trimmed), source="slug")
    return NormalizedSkill(name=trimmed, source="free_text")


def _dedup_key(skill: NormalizedSkill) -> str:
    return skill.id.lower() if skill.id else skill.name.lower()


def normalize_skill_list(
    tokens: Iterable[str | NormalizedSkill], catalog: SkillCatalog,
) -> list[NormalizedSkill]:
    """Normalize tokens and drop duplicates; first occurrence wins, order is kept."""
    seen: set[str] = set()
    result: list[NormalizedSkill] = []
    for token in tokens:
        skill = normalize_skill_token(token, catalog)
        if skill is None:
            continue
        key = _dedup_key(skill)
        if key in seen:
            continue
        seen.add(key)
        result.append(skill)
    return result


def build_skill_requirements(
    role: RolePlanningDraft,
    catalog: SkillCatalog,
    half_life_days: float | None = None,
) -> list[SkillRequirement]:
    explicit = normalize_skill_list(role.skills, catalog)
    from_tasks = normalize_skill_list((task for work in role.work_items for task in work.tasks), catalog)
    provided = normalize_skill_list([*explicit, *from_tasks], catalog)

    skills = provided
    if not skills:
        defaults = [
            NormalizedSkill(id=entry.id, name=entry.name, source="catalog")
            for entry in catalog.skills_for_role(role.role)
        ]
        skills = normalize_skill_list(defaults, catalog)
    if not skills:
        log.debug("Role %r has no skills and no catalog defaults, using a placeholder", role.role)
        skills = [NormalizedSkill(name=placeholder_skill_name(role.role))]

    weight = 1 / len(skills)
    level = catalog.level_for_role(role.role)
    half_life = half_life_days if half_life_days is not None else DEFAULT_FRESHNESS_HALF_LIFE_DAYS
    return [
        SkillRequirement(
            id=skill.id,
            name=skill.name,
            weight=weight,
            required_level=level,
            freshness_half_life_days=half_life,
        )
        for skill in skills
    ]


def build_role_requirement(
    role: RolePlanningDraft,
    catalog: SkillCatalog,
    half_life_days: float | None = None,
) -> RoleRequirement:
    return RoleRequirement(
        role_id=role.id,
        role_name=role.role,
        required_fte=estimate_required_fte(role),
        skills=build_skill_requirements(role, catalog, half_life_days),
    )
