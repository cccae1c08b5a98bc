"""Expert profile import from an ``.xlsx`` workbook.

Expected sheets:

- ``Profile``: two columns ``Field | Value``;
- ``Skills``: one row per skill, headers in the first row;
- ``Evidence``: optional, one row per evidence entry attached to a skill.

Problems are collected instead of raised so the caller can show all of them at
once: rows that cannot be used go to ``errors``, recoverable oddities go to
``warnings``.
"""
from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from pathlib import Path

import openpyxl

from teamfit.catalog import EVIDENCE_STATUSES, SKILL_LEVEL_CODES, SkillCatalog, slugify_skill_id
from teamfit.models import EvidenceRecord, PersonImportResult, PersonProfile, PersonSkillRecord, SkillUsage
from teamfit.utils import split_multivalue

log = logging.getLogger(__name__)

PROFILE_SHEET = "Profile"
SKILLS_SHEET = "Skills"
EVIDENCE_SHEET = "Evidence"

# Profile field label -> PersonProfile attribute
_PROFILE_FIELDS = {
    "Expert ID": "id",
    "Full Name": "full_name",
    "Title": "title",
    "Availability": "availability",
    "Availability Comment": "availability_comment",
    "Competencies": "competencies",
    "Consulting Skills": "consulting_skills",
    "Soft Skills": "soft_skills",
    "Focus Areas": "focus_areas",
}
_LIST_FIELDS = {"competencies", "consulting_skills", "soft_skills", "focus_areas"}

_AVAILABILITY = {
    "available": "available",
    "partial": "partial",
    "partially available": "partial",
    "busy": "busy",
}
_INTEREST = {"high": "high", "medium": "medium", "low": "low"}

_LEVELS = {code.lower(): code for code in SKILL_LEVEL_CODES}
_LEVELS.update({label.lower(): code for code, label in SKILL_LEVEL_CODES.items()})

_STATUSES = {status: status for status in EVIDENCE_STATUSES}
_STATUSES.update({label.lower(): status for status, label in EVIDENCE_STATUSES.items()})


def _s(value: object) -> str:
    """Safely coerce cell value to stripped string; dates become ISO strings."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _col(row: tuple, idx: int | None) -> object:
    """Safely get a column value from a row tuple."""
    if idx is None:
        return None
    return row[idx] if idx < len(row) else None


def _f(value: object) -> float:
    """Safely coerce cell value to a non-negative float."""
    if value is None:
        return 0.0
    try:
        return max(0.0, float(value))
    except (ValueError, TypeError):
        return 0.0


def _header_rows(ws) -> tuple[dict[str, int], list[tuple]]:
    """Return the header -> column index map and the data rows below it."""
    rows = list(ws.iter_rows(values_only=True))
    if not rows:
        return {}, []
    header = {_s(name): idx for idx, name in enumerate(rows[0]) if _s(name)}
    return header, rows[1:]


# ---------------------------------------------------------------------------
# Sheet parsers
# ---------------------------------------------------------------------------


def _parse_profile(ws) -> dict[str, str]:
    values: dict[str, str] = {}
    for idx, row in enumerate(ws.iter_rows(values_only=True)):
        label = _s(_col(row, 0))
        if not label or (idx == 0 and label == "Field"):
            continue
        values[label] = _s(_col(row, 1))
    return values


def _parse_skills(
    ws, catalog: SkillCatalog, created_at: str, errors: list[str], warnings: list[str],
) -> dict[str, PersonSkillRecord]:
    header, rows = _header_rows(ws)
    skills: dict[str, PersonSkillRecord] = {}

    for offset, row in enumerate(rows):
        row_number = offset + 2
        raw_id = _s(_col(row, header.get("Skill ID")))
        name = _s(_col(row, header.get("Skill Name")))
        if not raw_id and not name:
            continue
        label = name or raw_id

        level = _LEVELS.get(_s(_col(row, header.get("Level"))).lower())
        if level is None:
            errors.append(f'{SKILLS_SHEET} row {row_number}: invalid skill level for "{label}".')
            continue

        status = _STATUSES.get(_s(_col(row, header.get("Proof Status"))).lower())
        if status is None:
            errors.append(f'{SKILLS_SHEET} row {row_number}: invalid proof status for "{label}".')
            continue

        entry = catalog.lookup(raw_id) if raw_id else None
        if entry is None and name:
            entry = catalog.find_by_name(name)
        if entry is not None:
            skill_id = entry.id
        else:
            skill_id = raw_id or slugify_skill_id(name, existing=skills)
            warnings.append(f'{SKILLS_SHEET} row {row_number}: skill "{label}" is not in the catalog.')

        usage_from = _s(_col(row, header.get("Usage From")))
        usage_to = _s(_col(row, header.get("Usage To")))
        usage_description = _s(_col(row, header.get("Usage Description")))
        usage = None
        if usage_from or usage_to or usage_description:
            usage = SkillUsage(
                from_=usage_from or None, to=usage_to or None, description=usage_description or None,
            )

        if skill_id in skills:
            warnings.append(
                f'{SKILLS_SHEET} row {row_number}: skill "{label}" is listed more than once; the later row wins.'
            )
        skills[skill_id] = PersonSkillRecord(
            id=skill_id,
            level=level,
            proof_status=status,
            usage=usage,
            created_at=created_at,
            artifacts=split_multivalue(_s(_col(row, header.get("Artifacts")))),
            interest=_INTEREST.get(_s(_col(row, header.get("Interest"))).lower(), "medium"),
            available_fte=_f(_col(row, header.get("Available FTE"))),
        )
    return skills


def _attach_evidence(
    ws, catalog: SkillCatalog, skills: dict[str, PersonSkillRecord], warnings: list[str],
) -> None:
    header, rows = _header_rows(ws)
    for offset, row in enumerate(rows):
        skill_id = _s(_col(row, header.get("Skill ID")))
        status = _STATUSES.get(_s(_col(row, header.get("Status"))).lower())
        if not skill_id or status is None:
            continue
        skill = skills.get(skill_id)
        if skill is None:
            entry = catalog.lookup(skill_id)
            skill = skills.get(entry.id) if entry else None
        if skill is None:
            warnings.append(
                f'{EVIDENCE_SHEET} row {offset + 2}: skill "{skill_id}" is not in the profile and was skipped.'
            )
            continue
        skill.evidence.append(EvidenceRecord(
            status=status,
            initiative_id=_s(_col(row, header.get("Initiative ID"))) or None,
            artifact_ids=split_multivalue(_s(_col(row, header.get("Artifacts")))),
            comment=_s(_col(row, header.get("Comment"))) or None,
        ))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def import_person_xlsx(
    file_path: str | Path, catalog: SkillCatalog, now: datetime | None = None,
) -> PersonImportResult:
    """Read one expert profile from the workbook at *file_path*."""
    file_path = Path(file_path)
    created_at = (now or datetime.now(UTC)).isoformat()
    errors: list[str] = []
    warnings: list[str] = []

    wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
    try:
        profile = _parse_profile(wb[PROFILE_SHEET]) if PROFILE_SHEET in wb.sheetnames else {}
        skills = (
            _parse_skills(wb[SKILLS_SHEET], catalog, created_at, errors, warnings)
            if SKILLS_SHEET in wb.sheetnames else {}
        )
        if EVIDENCE_SHEET in wb.sheetnames:
            _attach_evidence(wb[EVIDENCE_SHEET], catalog, skills, warnings)
    finally:
        wb.close()

    fields: dict[str, object] = {}
    for label, attr in _PROFILE_FIELDS.items():
        value = profile.get(label, "")
        fields[attr] = split_multivalue(value) if attr in _LIST_FIELDS else value

    if not fields["full_name"]:
        errors.append("The workbook does not specify the expert's full name.")

    availability = _AVAILABILITY.get(str(fields["availability"]).lower())
    if availability is None:
        errors.append(f'Invalid availability value "{fields["availability"]}".')
        availability = "available"
    fields["availability"] = availability

    if not fields["id"]:
        fields["id"] = slugify_skill_id(str(fields["full_name"])) if fields["full_name"] else "expert"

    person = PersonProfile(**fields, skills=list(skills.values()))
    if errors:
        log.warning("Imported %s with %d error(s)", file_path.name, len(errors))
    else:
        log.info("Imported expert %s (%d skills) from %s", person.id, len(person.skills), file_path.name)
    return PersonImportResult(person=person, errors=errors, warnings=warnings)
