"""Scoring engine: per-skill coverage, per-role ranking, per-initiative aggregation.

Architecture
------------
Every person is scored against every skill requirement of a role:

- **Coverage**: how well attested the skill is.  Structured evidence gives a
  status confidence (claimed … validated); a mention in the person's free-text
  competency lists counts as a bare claim.  ``coverage_score`` is
  ``weight * confidence``.
- **Quality**: level ratio and freshness decay are computed for usable
  evidence but only surface as gap messages; they do not discount the score.
- **Ranking**: coverage is normalized by the total requirement weight and
  multiplied by the availability and FTE factors of a ``ScoringPolicy``
  (identity by default).  Matches are sorted with a stable sort so that ties
  keep input order.
- **Initiative**: the mean of each role's best score, ignoring roles nobody
  qualifies for.

All functions are pure and total: malformed or missing data degrades to a
zero score plus an explanatory gap, never to an exception.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from teamfit.config import DEFAULT_FRESHNESS_HALF_LIFE_DAYS
from teamfit.models import (
    CoverageSource,
    InitiativeMatchReport,
    InitiativeRequirement,
    MatchablePerson,
    RoleMatchExplanation,
    RoleMatchReport,
    RoleMatchResult,
    RoleRequirement,
    SkillCoverageReport,
    SkillEvidence,
    SkillLevel,
    SkillRequirement,
)
from teamfit.utils import unique

# ---------------------------------------------------------------------------
# Fixed tables
# ---------------------------------------------------------------------------

LEVEL_WEIGHTS: dict[SkillLevel, float] = {
    "novice": 0.4,
    "intermediate": 0.7,
    "advanced": 0.9,
    "expert": 1.0,
}

STATUS_CONFIDENCE: dict[str, float] = {
    "claimed": 0.35,
    "screened": 0.55,
    "observed": 0.75,
    "validated": 1.0,
    "refuted": 0.0,
}

DEFAULT_REQUIRED_LEVEL: SkillLevel = "expert"
UNKNOWN_RECENCY_FRESHNESS = 0.75
STALE_FRESHNESS_THRESHOLD = 0.6
# Level/freshness stand-ins when the skill is only mentioned in the profile.
PROFILE_LEVEL_FACTOR = 0.65
PROFILE_FRESHNESS_FACTOR = 0.6

_LN2 = math.log(2)


# ---------------------------------------------------------------------------
# Policy seam
# ---------------------------------------------------------------------------


class ScoringPolicy:
    """Availability and FTE multipliers applied on top of the skill score.

    The default implementation is the identity: both factors are ``1.0``.
    Subclass it to plug in workload-aware scoring without touching the
    coverage or ranking code.
    """

    def availability_multiplier(self, person: MatchablePerson, requirement: RoleRequirement) -> float:
        return 1.0

    def fte_saturation(self, person: MatchablePerson, requirement: RoleRequirement) -> float:
        return 1.0


DEFAULT_POLICY = ScoringPolicy()


# ---------------------------------------------------------------------------
# Gap messages
# ---------------------------------------------------------------------------


def _initiative_suffix(initiatives: Sequence[str]) -> str:
    if not initiatives:
        return ""
    if len(initiatives) == 1:
        return f" (initiative {initiatives[0]})"
    return f" (initiatives: {', '.join(initiatives)})"


def _status_gap(skill_name: str, status: str, initiatives: Sequence[str]) -> str | None:
    suffix = _initiative_suffix(initiatives)
    if status == "claimed":
        return f'Skill "{skill_name}" is only claimed, with no confirmation yet{suffix}.'
    if status == "screened":
        return f'Skill "{skill_name}" is at the screening stage{suffix}; observation or validation is required.'
    if status == "observed":
        return f'Skill "{skill_name}" is confirmed by observation{suffix}; collecting artifacts is recommended.'
    if status == "refuted":
        return f'Skill "{skill_name}" was refuted{suffix}.'
    return None


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _requirement_targets(requirement: SkillRequirement) -> set[str]:
    return {value.lower() for value in (requirement.id, requirement.name) if value}


def find_evidence(person: MatchablePerson, requirement: SkillRequirement) -> SkillEvidence | None:
    """First evidence entry whose id or name matches the requirement, case-insensitively."""
    targets = _requirement_targets(requirement)
    if not targets:
        return None
    for item in person.skill_evidence:
        if any(value.lower() in targets for value in (item.id, item.name) if value):
            return item
    return None


def has_profile_skill(person: MatchablePerson, requirement: SkillRequirement) -> bool:
    """Whether the skill is mentioned in the person's free-text skill lists."""
    targets = _requirement_targets(requirement)
    if not targets:
        return False
    return any(skill.lower() in targets for skill in person.free_text_skills())


def freshness_factor(last_used_days_ago: int | float | None, half_life_days: float) -> float:
    """Exponential decay: 1 when used today, 0.5 after one half-life."""
    if last_used_days_ago is None:
        return UNKNOWN_RECENCY_FRESHNESS
    if last_used_days_ago <= 0:
        return 1.0
    return math.exp(-_LN2 * last_used_days_ago / max(half_life_days, 1))


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


def score_skill_coverage(requirement: SkillRequirement, person: MatchablePerson) -> SkillCoverageReport:
    evidence = find_evidence(person, requirement)
    in_profile = has_profile_skill(person, requirement)

    required_level = requirement.required_level or DEFAULT_REQUIRED_LEVEL
    gaps: list[str] = []
    confidence = 0.0
    usable = evidence
    source: CoverageSource = "none"

    if evidence is not None:
        source = "evidence"
        confidence = STATUS_CONFIDENCE.get(evidence.status, 0.0)
        gap = _status_gap(requirement.name, evidence.status, evidence.source_initiatives)
        if gap:
            gaps.append(gap)
        if evidence.status == "refuted":
            usable = None

    if evidence is None and in_profile:
        source = "profile"
        confidence = max(confidence, STATUS_CONFIDENCE["claimed"])
        gaps.append(f'Skill "{requirement.name}" is listed in the profile, but its level and freshness are unverified')

    if usable is None and confidence == 0 and not in_profile:
        gaps.append(f'No confirmed skill "{requirement.name}".')

    level_factor = 0.0
    fresh_factor = 0.0
    if usable is not None:
        level_ratio = min(LEVEL_WEIGHTS[usable.level] / LEVEL_WEIGHTS[required_level], 1.0)
        half_life = requirement.freshness_half_life_days
        if half_life is None:
            half_life = DEFAULT_FRESHNESS_HALF_LIFE_DAYS
        base_freshness = freshness_factor(usable.last_used_days_ago, half_life)

        level_factor = level_ratio * confidence
        fresh_factor = base_freshness * confidence

        if level_ratio < 1:
            gaps.append(
                f'Proficiency in "{requirement.name}" is below the required level '
                f"({usable.level} < {required_level})"
            )
        if base_freshness < STALE_FRESHNESS_THRESHOLD:
            gaps.append(
                f'Skill "{requirement.name}" may be outdated '
                f"(last used {usable.last_used_days_ago} days ago)"
            )
    elif confidence > 0:
        level_factor = PROFILE_LEVEL_FACTOR * confidence
        fresh_factor = PROFILE_FRESHNESS_FACTOR * confidence

    # Level and freshness only feed gaps, never the score.
    coverage_score = requirement.weight * min(confidence, 1.0)

    return SkillCoverageReport(
        skill=requirement,
        has_skill=coverage_score > 0,
        coverage_score=coverage_score,
        level_factor=level_factor,
        freshness_factor=fresh_factor,
        source=source,
        gaps=unique(gaps),
    )


# ---------------------------------------------------------------------------
# Role ranking
# ---------------------------------------------------------------------------


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def score_person_for_role(
    requirement: RoleRequirement,
    person: MatchablePerson,
    policy: ScoringPolicy | None = None,
) -> RoleMatchResult:
    policy = policy or DEFAULT_POLICY
    coverage = [score_skill_coverage(skill, person) for skill in requirement.skills]

    total_weight = sum(skill.weight for skill in requirement.skills)
    if total_weight == 0:
        normalized = 1.0
    else:
        normalized = _clamp(sum(report.coverage_score for report in coverage) / total_weight)

    availability = policy.availability_multiplier(person, requirement)
    saturation = policy.fte_saturation(person, requirement)

    return RoleMatchResult(
        person=person,
        explanation=RoleMatchExplanation(
            total_score=_clamp(normalized * availability * saturation),
            normalized_skill_score=normalized,
            availability_multiplier=availability,
            fte_saturation=saturation,
            skill_coverage=coverage,
            risks=unique(gap for report in coverage for gap in report.gaps),
        ),
    )


def rank_role(
    requirement: RoleRequirement,
    people: Iterable[MatchablePerson],
    policy: ScoringPolicy | None = None,
) -> RoleMatchReport:
    # sorted() is stable: equal scores keep the order people were given in.
    matches = sorted(
        (score_person_for_role(requirement, person, policy) for person in people),
        key=lambda match: match.explanation.total_score,
        reverse=True,
    )
    average = sum(m.explanation.total_score for m in matches) / len(matches) if matches else 0.0
    return RoleMatchReport(
        requirement=requirement,
        matches=matches,
        top_match=matches[0] if matches else None,
        average_score=average,
    )


# ---------------------------------------------------------------------------
# Initiative aggregation
# ---------------------------------------------------------------------------


def summarize_role_reports(
    initiative_id: str,
    initiative_name: str,
    role_reports: list[RoleMatchReport],
) -> InitiativeMatchReport:
    """Combine already ranked role reports into an initiative report."""
    top_scores = [
        report.top_match.explanation.total_score
        for report in role_reports
        if report.top_match is not None and report.top_match.explanation.total_score > 0
    ]
    overall = sum(top_scores) / len(top_scores) if top_scores else 0.0
    risks = unique(
        risk
        for report in role_reports
        if report.top_match is not None
        for risk in report.top_match.explanation.risks
    )
    return InitiativeMatchReport(
        initiative_id=initiative_id,
        initiative_name=initiative_name,
        role_reports=role_reports,
        overall_score=overall,
        overall_risks=risks,
    )


def aggregate_initiative(
    initiative: InitiativeRequirement,
    people: Sequence[MatchablePerson],
    policy: ScoringPolicy | None = None,
) -> InitiativeMatchReport:
    role_reports = [rank_role(role, people, policy) for role in initiative.roles]
    return summarize_role_reports(initiative.initiative_id, initiative.initiative_name, role_reports)
