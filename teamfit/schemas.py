"""Pydantic request/response schemas for the teamfit API."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from teamfit.models import (
    Candidate,
    InitiativePlanningRequest,
    PersonProfile,
    RoleMatchReport,
    RolePlanningDraft,
    SkillCatalogEntry,
    SkillLevel,
)


class CatalogOut(BaseModel):
    skills: list[SkillCatalogEntry]
    role_levels: dict[str, SkillLevel]
    roles: list[str]
    initiatives: dict[str, str]
    level_codes: dict[str, str]
    evidence_statuses: dict[str, str]


class RequirementsRequest(BaseModel):
    role: RolePlanningDraft
    half_life_days: float | None = None


class RoleMatchRequest(BaseModel):
    role: RolePlanningDraft
    people: list[PersonProfile] = []
    # Scoring clock; the server time is used when omitted.
    now: datetime | None = None


class RoleMatchResponse(BaseModel):
    report: RoleMatchReport
    candidates: list[Candidate] = []


class InitiativeMatchRequest(BaseModel):
    initiative: InitiativePlanningRequest
    people: list[PersonProfile] = []
    now: datetime | None = None
