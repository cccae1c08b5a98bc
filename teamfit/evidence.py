"""Skill evidence extraction.

Converts the raw skill records of the expert registry into the normalized
``SkillEvidence`` tuples the scorer works with, and offers a few queries over
raw records (last use, latest freshness, status filters).
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from teamfit.catalog import SkillCatalog, slug_to_title
from teamfit.models import (
    MatchablePerson,
    PersonProfile,
    PersonSkillRecord,
    SkillEvidence,
    SkillLevel,
)
from teamfit.utils import as_utc, parse_date, round_half_up, unique

log = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
STALE_DAYS = 365

LEVEL_CODE_MAP: dict[str, SkillLevel] = {
    "A": "novice",
    "W": "intermediate",
    "P": "advanced",
    "Ad": "expert",
    "E": "expert",
}


def skill_last_used_date(record: PersonSkillRecord) -> str | None:
    """Return the raw date string describing when the skill was last used.

    The end of the usage window wins over its start, which wins over the
    record's creation date.  The first candidate that parses is returned;
    if none parses, the first non-empty one is.
    """
    if record.usage is None:
        return record.created_at
    candidates = [v for v in (record.usage.to, record.usage.from_, record.created_at) if v]
    if not candidates:
        return None
    return next((v for v in candidates if parse_date(v) is not None), candidates[0])


def latest_skill_freshness(person: PersonProfile) -> str | None:
    """Most recent valid last-use date across all of a person's skills."""
    dated: list[tuple[datetime, str]] = []
    for record in person.skills:
        raw = skill_last_used_date(record)
        parsed = parse_date(raw)
        if raw and parsed is not None:
            dated.append((parsed, raw))
    if not dated:
        return None
    return max(dated, key=lambda item: item[0])[1]


def _record_statuses(record: PersonSkillRecord) -> set[str]:
    return {record.proof_status, *(entry.status for entry in record.evidence)}


def filter_skills_by_status(
    records: Iterable[PersonSkillRecord], status: str | Iterable[str],
) -> list[PersonSkillRecord]:
    """Keep records whose proof status or any evidence status is in *status*."""
    wanted = {status} if isinstance(status, str) else set(status)
    return [r for r in records if _record_statuses(r) & wanted]


def person_has_skills_with_status(person: PersonProfile, status: str | Iterable[str]) -> bool:
    return bool(filter_skills_by_status(person.skills, status))


def _days_since(raw: str | None, now: datetime) -> int | None:
    parsed = parse_date(raw)
    if parsed is None:
        return None
    elapsed = (as_utc(now) - parsed).total_seconds() / SECONDS_PER_DAY
    return max(0, round_half_up(elapsed))


def to_skill_evidence(record: PersonSkillRecord, catalog: SkillCatalog, now: datetime) -> SkillEvidence:
    name = catalog.skill_name(record.id) or slug_to_title(record.id)

    days_ago = _days_since(skill_last_used_date(record), now)
    if days_ago is None:
        days_ago = STALE_DAYS

    level = LEVEL_CODE_MAP.get(record.level)
    if level is None:
        log.debug("Unknown proficiency code %r for skill %s, treating as novice", record.level, record.id)
        level = "novice"

    initiative_ids = unique(
        entry.initiative_id.strip()
        for entry in record.evidence
        if entry.initiative_id and entry.initiative_id.strip()
    )

    return SkillEvidence(
        id=record.id,
        name=name,
        level=level,
        last_used_days_ago=days_ago,
        status=record.proof_status,
        source_initiatives=[catalog.initiative_label(i) for i in initiative_ids],
    )


def extract_evidence(
    records: Iterable[PersonSkillRecord], catalog: SkillCatalog, now: datetime,
) -> list[SkillEvidence]:
    return [to_skill_evidence(record, catalog, now) for record in records]


def to_matchable_person(person: PersonProfile, catalog: SkillCatalog, now: datetime) -> MatchablePerson:
    total_fte = sum(max(0.0, record.available_fte) for record in person.skills)
    return MatchablePerson(
        id=person.id,
        full_name=person.full_name,
        competencies=person.competencies,
        consulting_skills=person.consulting_skills,
        soft_skills=person.soft_skills,
        focus_areas=person.focus_areas,
        availability=person.availability,
        skill_evidence=extract_evidence(person.skills, catalog, now),
        fte_capacity=min(1.0, total_fte) if total_fte > 0 else None,
    )
