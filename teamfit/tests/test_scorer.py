"""Tests for coverage scoring, role ranking and initiative aggregation."""
from __future__ import annotations

import math

import pytest

from teamfit.catalog import SkillCatalog
from teamfit.models import (
    InitiativeRequirement,
    MatchablePerson,
    RolePlanningDraft,
    RoleRequirement,
    SkillEvidence,
    SkillRequirement,
)
from teamfit.normalizer import build_role_requirement
from teamfit.scorer import (
    ScoringPolicy,
    aggregate_initiative,
    find_evidence,
    freshness_factor,
    rank_role,
    score_person_for_role,
    score_skill_coverage,
)

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _req(name: str, weight: float = 1.0, level: str | None = "advanced",
         half_life: float | None = 180, skill_id: str | None = None) -> SkillRequirement:
    return SkillRequirement(
        id=skill_id, name=name, weight=weight, required_level=level, freshness_half_life_days=half_life,
    )


def _role(*skills: SkillRequirement, role_id: str = "role-1") -> RoleRequirement:
    return RoleRequirement(role_id=role_id, role_name="Engineer", skills=list(skills))


def _evidence(name: str, status: str = "validated", level: str = "expert",
              days: int | None = 0, skill_id: str | None = None, initiatives=()) -> SkillEvidence:
    return SkillEvidence(
        id=skill_id or name.lower(), name=name, level=level, last_used_days_ago=days,
        status=status, source_initiatives=list(initiatives),
    )


def _person(person_id: str, *evidence: SkillEvidence, **free_text) -> MatchablePerson:
    return MatchablePerson(id=person_id, full_name=person_id.title(), skill_evidence=list(evidence), **free_text)


class HalfAvailability(ScoringPolicy):
    def availability_multiplier(self, person, requirement):
        return 0.5


# ---------------------------------------------------------------------------
# Freshness
# ---------------------------------------------------------------------------


class TestFreshness:
    def test_half_life_halves(self):
        assert freshness_factor(180, 180) == pytest.approx(0.5)

    def test_used_today_is_fresh(self):
        assert freshness_factor(0, 180) == 1.0
        assert freshness_factor(-5, 180) == 1.0

    def test_unknown_recency(self):
        assert freshness_factor(None, 180) == 0.75

    def test_half_life_floor_of_one_day(self):
        assert freshness_factor(1, 0) == pytest.approx(0.5)

    def test_decay(self):
        assert freshness_factor(30, 180) == pytest.approx(math.exp(-math.log(2) * 30 / 180))


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


class TestSkillCoverage:
    def test_validated_expert_evidence(self):
        report = score_skill_coverage(_req("TypeScript"), _person("p", _evidence("TypeScript", days=30)))
        assert report.coverage_score == 1.0
        assert report.has_skill
        assert report.source == "evidence"
        assert report.level_factor == 1.0
        assert report.gaps == []

    def test_claimed_evidence(self):
        report = score_skill_coverage(_req("Go"), _person("p", _evidence("Go", status="claimed")))
        assert report.coverage_score == pytest.approx(0.35)
        assert report.gaps == ['Skill "Go" is only claimed, with no confirmation yet.']

    def test_status_gap_names_initiatives(self):
        one = _evidence("Go", status="screened", initiatives=["Digital well pad (initiative-digital-pad)"])
        report = score_skill_coverage(_req("Go"), _person("p", one))
        assert report.gaps[0] == (
            'Skill "Go" is at the screening stage (initiative Digital well pad (initiative-digital-pad)); '
            "observation or validation is required."
        )

        two = _evidence("Go", status="observed", initiatives=["a", "b"])
        report = score_skill_coverage(_req("Go"), _person("p", two))
        assert report.gaps[0] == (
            'Skill "Go" is confirmed by observation (initiatives: a, b); collecting artifacts is recommended.'
        )
        assert report.coverage_score == pytest.approx(0.75)

    def test_refuted_evidence(self):
        report = score_skill_coverage(_req("Go"), _person("p", _evidence("Go", status="refuted")))
        assert report.coverage_score == 0
        assert not report.has_skill
        assert report.level_factor == 0
        assert report.gaps == ['Skill "Go" was refuted.', 'No confirmed skill "Go".']

    def test_unknown_status_has_zero_confidence(self):
        report = score_skill_coverage(_req("Go"), _person("p", _evidence("Go", status="rumoured")))
        assert report.coverage_score == 0
        assert report.source == "evidence"

    def test_profile_only_skill(self):
        person = _person("p", competencies=["typescript"])
        report = score_skill_coverage(_req("TypeScript"), person)
        assert report.source == "profile"
        assert report.coverage_score == pytest.approx(0.35)
        assert report.level_factor == pytest.approx(0.65 * 0.35)
        assert report.freshness_factor == pytest.approx(0.6 * 0.35)
        assert report.gaps == [
            'Skill "TypeScript" is listed in the profile, but its level and freshness are unverified'
        ]

    def test_no_skill(self):
        report = score_skill_coverage(_req("Rust"), _person("p", soft_skills=["Mentoring"]))
        assert report.coverage_score == 0
        assert report.source == "none"
        assert report.gaps == ['No confirmed skill "Rust".']

    def test_level_below_required_only_adds_gap(self):
        person = _person("p", _evidence("Go", level="intermediate"))
        report = score_skill_coverage(_req("Go", level="expert"), person)
        assert report.coverage_score == 1.0
        assert report.level_factor == pytest.approx(0.7)
        assert report.gaps == ['Proficiency in "Go" is below the required level (intermediate < expert)']

    def test_missing_required_level_means_expert(self):
        person = _person("p", _evidence("Go", level="advanced"))
        report = score_skill_coverage(_req("Go", level=None), person)
        assert report.level_factor == pytest.approx(0.9)

    def test_stale_skill_only_adds_gap(self):
        person = _person("p", _evidence("Go", days=400))
        report = score_skill_coverage(_req("Go"), person)
        assert report.coverage_score == 1.0
        assert report.gaps == ['Skill "Go" may be outdated (last used 400 days ago)']

    def test_unknown_recency_is_not_stale(self):
        report = score_skill_coverage(_req("Go"), _person("p", _evidence("Go", days=None)))
        assert report.freshness_factor == 0.75
        assert report.gaps == []

    def test_evidence_matched_by_id_case_insensitively(self):
        person = _person("p", _evidence("Typescript language", skill_id="TypeScript"))
        requirement = _req("TS", skill_id="typescript")
        assert find_evidence(person, requirement) is not None
        assert score_skill_coverage(requirement, person).coverage_score == 1.0

    def test_weight_scales_coverage(self):
        report = score_skill_coverage(_req("Go", weight=0.25), _person("p", _evidence("Go", status="observed")))
        assert report.coverage_score == pytest.approx(0.25 * 0.75)


# ---------------------------------------------------------------------------
# Role ranking
# ---------------------------------------------------------------------------


class TestRoleRanking:
    def test_single_validated_skill_scores_one(self):
        role = _role(_req("TypeScript"))
        match = score_person_for_role(role, _person("p", _evidence("TypeScript", days=30)))
        assert match.explanation.normalized_skill_score == 1.0
        assert match.explanation.total_score == 1.0

    def test_half_of_two_skills(self):
        role = _role(_req("Python", weight=0.5), _req("Airflow", weight=0.5))
        match = score_person_for_role(role, _person("p", _evidence("Python")))
        assert match.explanation.normalized_skill_score == pytest.approx(0.5)
        assert match.explanation.total_score == pytest.approx(0.5)
        assert match.explanation.risks == ['No confirmed skill "Airflow".']

    def test_no_overlap_scores_zero(self):
        role = _role(_req("Python"), _req("Airflow"))
        match = score_person_for_role(role, _person("p", _evidence("Excel"), competencies=["Accounting"]))
        assert match.explanation.total_score == 0

    def test_zero_total_weight(self):
        match = score_person_for_role(_role(_req("Python", weight=0)), _person("p"))
        assert match.explanation.normalized_skill_score == 1.0

    def test_scores_stay_in_unit_interval(self):
        role = _role(_req("Python", weight=0.3), _req("Go", weight=0.3))
        person = _person("p", _evidence("Python"), _evidence("python", status="claimed"), competencies=["Go"])
        match = score_person_for_role(role, person)
        assert 0 <= match.explanation.normalized_skill_score <= 1
        assert 0 <= match.explanation.total_score <= 1

    def test_default_policy_is_identity(self):
        match = score_person_for_role(_role(_req("Go")), _person("p", _evidence("Go")))
        assert match.explanation.availability_multiplier == 1.0
        assert match.explanation.fte_saturation == 1.0

    def test_custom_policy(self):
        match = score_person_for_role(_role(_req("Go")), _person("p", _evidence("Go")), HalfAvailability())
        assert match.explanation.normalized_skill_score == 1.0
        assert match.explanation.total_score == pytest.approx(0.5)

    def test_sorted_descending_and_stable(self):
        role = _role(_req("Go"))
        people = [
            _person("first", _evidence("Go", status="claimed")),
            _person("second", _evidence("Go", status="claimed")),
            _person("best", _evidence("Go")),
            _person("none"),
        ]
        report = rank_role(role, people)
        assert [m.person.id for m in report.matches] == ["best", "first", "second", "none"]
        assert report.top_match.person.id == "best"
        assert report.average_score == pytest.approx((1 + 0.35 + 0.35 + 0) / 4)

    def test_no_people(self):
        report = rank_role(_role(_req("Go")), [])
        assert report.matches == []
        assert report.top_match is None
        assert report.average_score == 0

    def test_placeholder_requirement_for_unknown_role(self):
        draft = RolePlanningDraft(id="r1", role="Chief Alchemist")
        requirement = build_role_requirement(draft, SkillCatalog.empty())
        assert [s.name for s in requirement.skills] == ["Expertise: Chief Alchemist"]
        assert requirement.skills[0].weight == 1.0

        match = score_person_for_role(requirement, _person("p", competencies=["Python"]))
        assert match.explanation.total_score == 0


# ---------------------------------------------------------------------------
# Initiative aggregation
# ---------------------------------------------------------------------------


class RoleAtNinety(ScoringPolicy):
    def availability_multiplier(self, person, requirement):
        return 0.9 if requirement.role_id == "a" else 1.0


class TestInitiativeAggregation:
    def test_mean_of_positive_top_scores(self):
        initiative = InitiativeRequirement(
            initiative_id="init-1",
            initiative_name="Pilot",
            roles=[
                _role(_req("Go"), role_id="a"),
                _role(_req("Go"), role_id="b"),
                _role(_req("Cobol"), role_id="c"),
            ],
        )
        report = aggregate_initiative(initiative, [_person("p", _evidence("Go"))], RoleAtNinety())
        assert [r.top_match.explanation.total_score for r in report.role_reports] == pytest.approx([0.9, 1.0, 0])
        assert report.overall_score == pytest.approx(0.95)
        assert report.overall_risks == ['No confirmed skill "Cobol".']

    def test_nobody_qualifies(self):
        initiative = InitiativeRequirement(
            initiative_id="init-1", initiative_name="Pilot", roles=[_role(_req("Cobol"))],
        )
        report = aggregate_initiative(initiative, [_person("p")])
        assert report.overall_score == 0

    def test_no_people(self):
        initiative = InitiativeRequirement(
            initiative_id="init-1", initiative_name="Pilot", roles=[_role(_req("Go"))],
        )
        report = aggregate_initiative(initiative, [])
        assert report.overall_score == 0
        assert report.overall_risks == []
        assert report.role_reports[0].top_match is None
