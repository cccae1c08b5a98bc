"""Domain models for the matching engine.

Raw inputs (person profiles, role drafts) come from external collaborators and
are validated leniently: codes and statuses are plain strings so that unknown
values reach the engine and get mapped to conservative defaults there instead
of failing validation.  Everything derived (evidence, coverage, reports, plans)
is recomputed from scratch on every call.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SkillLevel = Literal["novice", "intermediate", "advanced", "expert"]
SkillSource = Literal["catalog", "slug", "free_text"]
CoverageSource = Literal["evidence", "profile", "none"]


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class SkillCatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    associated_roles: tuple[str, ...] = ()
    description: str = ""
    category: str = "hard"  # hard | soft | domain
    recommended_level: str = "P"


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


class NormalizedSkill(BaseModel):
    """A skill token after catalog resolution.

    ``source`` records which tier produced it: a catalog hit, an id-like slug
    that the catalog does not know, or plain free text.
    """
    id: str | None = None
    name: str
    source: SkillSource = "free_text"


class SkillRequirement(BaseModel):
    id: str | None = None
    name: str
    weight: float = 1.0
    required_level: SkillLevel | None = None
    freshness_half_life_days: float | None = None


class RoleRequirement(BaseModel):
    role_id: str
    role_name: str
    required_fte: float = 1.0
    skills: list[SkillRequirement] = []


class InitiativeRequirement(BaseModel):
    initiative_id: str
    initiative_name: str
    roles: list[RoleRequirement] = []


class WorkItemDraft(BaseModel):
    id: str = ""
    title: str = ""
    description: str = ""
    start_day: float = 0
    duration_days: float = 1
    effort_days: float = 1
    tasks: list[str] = []


class RolePlanningDraft(BaseModel):
    id: str = ""
    role: str = ""
    required: float = 1
    skills: list[str | NormalizedSkill] = []
    work_items: list[WorkItemDraft] = []


class InitiativePlanningRequest(BaseModel):
    initiative_id: str = ""
    name: str = ""
    roles: list[RolePlanningDraft] = []


# ---------------------------------------------------------------------------
# People (raw, owned by the expert registry)
# ---------------------------------------------------------------------------


class EvidenceRecord(BaseModel):
    status: str = "claimed"
    initiative_id: str | None = None
    artifact_ids: list[str] = []
    comment: str | None = None


class SkillUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    description: str | None = None


class PersonSkillRecord(BaseModel):
    id: str
    level: str = ""  # A | W | P | Ad | E
    proof_status: str = "claimed"
    evidence: list[EvidenceRecord] = []
    usage: SkillUsage | None = None
    created_at: str | None = None
    artifacts: list[str] = []
    interest: str = "medium"
    available_fte: float = 0.0


class PersonProfile(BaseModel):
    id: str
    full_name: str = ""
    title: str = ""
    competencies: list[str] = []
    consulting_skills: list[str] = []
    soft_skills: list[str] = []
    focus_areas: list[str] = []
    availability: str = "available"  # available | partial | busy
    availability_comment: str = ""
    skills: list[PersonSkillRecord] = []


# ---------------------------------------------------------------------------
# Derived
# ---------------------------------------------------------------------------


class SkillEvidence(BaseModel):
    id: str
    name: str
    level: SkillLevel = "novice"
    last_used_days_ago: int | None = None
    status: str = "claimed"
    source_initiatives: list[str] = []


class MatchablePerson(BaseModel):
    id: str
    full_name: str = ""
    competencies: list[str] = []
    consulting_skills: list[str] = []
    soft_skills: list[str] = []
    focus_areas: list[str] = []
    availability: str = "available"
    skill_evidence: list[SkillEvidence] = []
    fte_capacity: float | None = None

    def free_text_skills(self) -> list[str]:
        return [*self.competencies, *self.consulting_skills, *self.soft_skills, *self.focus_areas]


class SkillCoverageReport(BaseModel):
    skill: SkillRequirement
    has_skill: bool
    coverage_score: float
    level_factor: float
    freshness_factor: float
    source: CoverageSource = "none"
    gaps: list[str] = []


class RoleMatchExplanation(BaseModel):
    total_score: float
    normalized_skill_score: float
    availability_multiplier: float = 1.0
    fte_saturation: float = 1.0
    skill_coverage: list[SkillCoverageReport] = []
    risks: list[str] = []


class RoleMatchResult(BaseModel):
    person: MatchablePerson
    explanation: RoleMatchExplanation


class RoleMatchReport(BaseModel):
    requirement: RoleRequirement
    matches: list[RoleMatchResult] = []
    top_match: RoleMatchResult | None = None
    average_score: float = 0.0


class InitiativeMatchReport(BaseModel):
    initiative_id: str
    initiative_name: str
    role_reports: list[RoleMatchReport] = []
    overall_score: float = 0.0
    overall_risks: list[str] = []


# ---------------------------------------------------------------------------
# Planning outputs
# ---------------------------------------------------------------------------


class CandidateScoreDetail(BaseModel):
    criterion: str
    weight: float
    value: float
    comment: str | None = None


class Candidate(BaseModel):
    person_id: str
    score: int
    fit_comment: str
    risk_tags: list[str] = []
    score_details: list[CandidateScoreDetail] = []


class AssignedWorkItem(WorkItemDraft):
    assigned_person_id: str | None = None


class RolePlan(BaseModel):
    id: str
    role: str
    required: float
    required_fte: float
    pinned_person_ids: list[str] = []
    candidates: list[Candidate] = []
    work_items: list[AssignedWorkItem] = []


class InitiativePlan(BaseModel):
    initiative_id: str
    initiative_name: str
    roles: list[RolePlan] = []
    report: InitiativeMatchReport


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


class PersonImportResult(BaseModel):
    person: PersonProfile
    errors: list[str] = []
    warnings: list[str] = []
