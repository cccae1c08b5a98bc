from __future__ import annotations

import logging
import math
from datetime import UTC, datetime

import pytest

from teamfit import services
from teamfit.catalog import SkillCatalog
from teamfit.models import (
    InitiativePlanningRequest,
    PersonProfile,
    PersonSkillRecord,
    RolePlanningDraft,
    SkillUsage,
    WorkItemDraft,
)

NOW = datetime(2024, 6, 30, tzinfo=UTC)


@pytest.fixture()
def catalog() -> SkillCatalog:
    return SkillCatalog.from_mapping({
        "skills": [
            {"id": "python", "name": "Python", "roles": ["Backend"]},
            {"id": "airflow", "name": "Apache Airflow", "roles": ["Backend"]},
        ],
        "role_levels": {"Backend": "advanced"},
        "initiatives": {"init-1": "Remote operations center"},
    })


@pytest.fixture()
def people() -> list[PersonProfile]:
    recent = SkillUsage(to="2024-06-01")
    return [
        PersonProfile(id="junior", full_name="Jun", skills=[
            PersonSkillRecord(id="python", level="W", proof_status="claimed", usage=recent),
        ]),
        PersonProfile(id="senior", full_name="Sen", skills=[
            PersonSkillRecord(id="python", level="E", proof_status="validated", usage=recent),
            PersonSkillRecord(id="airflow", level="P", proof_status="validated", usage=recent),
        ]),
    ]


class TestSanitizeRoleDraft:
    def test_defaults(self):
        draft = RolePlanningDraft(
            role="  ", required=0,
            work_items=[WorkItemDraft(start_day=-3, duration_days=0, effort_days=2.6, tasks=[" python ", " "])],
        )
        role = services.sanitize_role_draft(draft, 1, "init-1")
        assert role.id == "init-1-role-2"
        assert role.role == "Role 2"
        assert role.required == 1
        [item] = role.work_items
        assert item.id == "init-1-role-2-work-1"
        assert item.title == "Work item 1"
        assert (item.start_day, item.duration_days, item.effort_days) == (0, 1, 3)
        assert item.tasks == ["python"]

    def test_keeps_given_values(self):
        draft = RolePlanningDraft(
            id="backend", role=" Backend ", required=2.4, skills=["python"],
            work_items=[WorkItemDraft(id="w1", title="Ingest", start_day=4, duration_days=5, effort_days=10)],
        )
        role = services.sanitize_role_draft(draft, 0, "init-1")
        assert (role.id, role.role, role.required, role.skills) == ("backend", "Backend", 2, ["python"])
        assert role.work_items[0].id == "w1"
        assert role.work_items[0].title == "Ingest"

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_numbers_use_defaults(self, value):
        draft = RolePlanningDraft(
            role="Backend", required=value,
            work_items=[WorkItemDraft(start_day=value, duration_days=value, effort_days=value)],
        )
        role = services.sanitize_role_draft(draft, 0, "init-1")
        assert role.required == 1
        [item] = role.work_items
        assert (item.start_day, item.duration_days, item.effort_days) == (0, 1, 1)


class TestMatchReports:
    def test_no_people(self, catalog):
        roles = [RolePlanningDraft(id="r1", role="Backend")]
        [report] = services.build_role_match_reports(roles, [], catalog, NOW)
        assert report.matches == []
        assert report.top_match is None
        assert [s.id for s in report.requirement.skills] == ["python", "airflow"]

    def test_ranked_per_role(self, catalog, people):
        roles = [RolePlanningDraft(id="r1", role="Backend"), RolePlanningDraft(id="r2", role="Backend", skills=["python"])]
        reports = services.build_role_match_reports(roles, people, catalog, NOW)
        assert [r.requirement.role_id for r in reports] == ["r1", "r2"]
        assert [m.person.id for m in reports[0].matches] == ["senior", "junior"]
        assert reports[0].top_match.explanation.total_score == pytest.approx(1.0)


class TestMatchInitiative:
    def test_summary(self, catalog, people):
        request = InitiativePlanningRequest(
            initiative_id=" init-1 ",
            roles=[RolePlanningDraft(role="Backend"), RolePlanningDraft(role="Backend", skills=["Rust"])],
        )
        report = services.match_initiative(request, people, catalog, NOW)
        assert report.initiative_id == "init-1"
        assert report.initiative_name == "Remote operations center"
        assert [r.requirement.role_id for r in report.role_reports] == ["init-1-role-1", "init-1-role-2"]
        assert report.overall_score == pytest.approx(1.0)
        assert 'No confirmed skill "Rust".' in report.overall_risks

    def test_name_falls_back_to_id(self, catalog):
        report = services.match_initiative(InitiativePlanningRequest(initiative_id="x-9"), [], catalog, NOW)
        assert report.initiative_name == "x-9"
        assert report.role_reports == []
        assert report.overall_score == 0


class TestPlanInitiative:
    def test_plan(self, catalog, people, caplog):
        request = InitiativePlanningRequest(
            initiative_id="init-1",
            roles=[RolePlanningDraft(
                role="Backend", required=1, skills=["Python", "airflow"],
                work_items=[
                    WorkItemDraft(title="Ingest", start_day=0, duration_days=5, effort_days=5),
                    WorkItemDraft(title="Schedule", start_day=5, duration_days=5, effort_days=5),
                ],
            )],
        )
        with caplog.at_level(logging.INFO, logger="teamfit.services"):
            plan = services.plan_initiative(request, people, catalog, NOW)

        assert plan.initiative_name == "Remote operations center"
        [role] = plan.roles
        assert role.id == "init-1-role-1"
        assert role.required_fte == pytest.approx(1.0)
        assert [c.person_id for c in role.candidates] == ["senior", "junior"]
        assert role.candidates[0].score == 100
        assert role.pinned_person_ids == ["senior"]
        assert [w.assigned_person_id for w in role.work_items] == ["senior", "senior"]
        assert plan.report.overall_score == pytest.approx(1.0)
        assert "Planned initiative init-1" in caplog.text

    def test_plan_without_people(self, catalog):
        request = InitiativePlanningRequest(name="Pilot", roles=[RolePlanningDraft(role="Backend")])
        plan = services.plan_initiative(request, [], catalog, NOW)
        assert plan.initiative_id == "initiative"
        assert plan.initiative_name == "Pilot"
        assert plan.roles[0].candidates == []
        assert plan.roles[0].pinned_person_ids == []
        assert plan.report.overall_score == 0
