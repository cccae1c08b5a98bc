from __future__ import annotations

import logging
import tempfile
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from zipfile import BadZipFile

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from openpyxl.utils.exceptions import InvalidFileException

from teamfit import services
from teamfit.catalog import EVIDENCE_STATUSES, SKILL_LEVEL_CODES, SkillCatalog, load_catalog
from teamfit.config import Settings, get_settings
from teamfit.importer import import_person_xlsx
from teamfit.models import (
    InitiativeMatchReport,
    InitiativePlan,
    PersonImportResult,
    RoleRequirement,
    SkillCatalogEntry,
)
from teamfit.normalizer import build_role_requirement
from teamfit.planner import build_candidates
from teamfit.schemas import (
    CatalogOut,
    InitiativeMatchRequest,
    RequirementsRequest,
    RoleMatchRequest,
    RoleMatchResponse,
)

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.catalog = load_catalog(settings=get_settings())
    yield


app = FastAPI(
    title="teamfit",
    version="0.1.0",
    description=(
        "Expert-to-role matching API. Normalizes role skill requirements, "
        "scores people against them with explainable coverage, and drafts "
        "initiative staffing plans. Stateless: every request carries its own "
        "people and roles. All endpoints return JSON."
    ),
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Catalog", "description": "Skill catalog and role defaults."},
        {"name": "Matching", "description": "Score and rank people against roles and initiatives."},
        {"name": "Planning", "description": "Candidate selection and work assignment."},
        {"name": "Import", "description": "Read expert profiles from XLSX workbooks."},
    ],
)


# ---------------------------------------------------------------------------
# Dependencies & Helpers
# ---------------------------------------------------------------------------


def get_catalog(request: Request) -> SkillCatalog:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        catalog = request.app.state.catalog = load_catalog()
    return catalog


def _scoring_time(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


# ---------------------------------------------------------------------------
# Routes: Catalog
# ---------------------------------------------------------------------------


@app.get("/api/catalog", response_model=CatalogOut,
         tags=["Catalog"], summary="List catalog skills and role defaults")
async def get_catalog_overview(catalog: SkillCatalog = Depends(get_catalog)):
    return CatalogOut(
        skills=list(catalog.skills.values()),
        role_levels=catalog.role_levels,
        roles=catalog.known_roles(),
        initiatives=catalog.initiative_names,
        level_codes=SKILL_LEVEL_CODES,
        evidence_statuses=EVIDENCE_STATUSES,
    )


@app.get("/api/catalog/skills/{skill_id}", response_model=SkillCatalogEntry,
         tags=["Catalog"], summary="Get one catalog skill")
async def get_catalog_skill(skill_id: str, catalog: SkillCatalog = Depends(get_catalog)):
    entry = catalog.get(skill_id)
    if entry is None:
        raise HTTPException(404, "Skill not found")
    return entry


# ---------------------------------------------------------------------------
# Routes: Matching
# ---------------------------------------------------------------------------


@app.post("/api/requirements", response_model=RoleRequirement,
          tags=["Matching"], summary="Normalize a role draft into skill requirements")
async def normalize_requirements(
    body: RequirementsRequest,
    catalog: SkillCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    half_life = body.half_life_days if body.half_life_days is not None else settings.freshness_half_life_days
    return build_role_requirement(body.role, catalog, half_life)


@app.post("/api/match/role", response_model=RoleMatchResponse,
          tags=["Matching"], summary="Rank people for a single role")
async def match_role(
    body: RoleMatchRequest,
    catalog: SkillCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    role = services.sanitize_role_draft(body.role, 0, "")
    report = services.build_role_match_reports(
        [role], body.people, catalog, _scoring_time(body.now),
        half_life_days=settings.freshness_half_life_days,
    )[0]
    return RoleMatchResponse(report=report, candidates=build_candidates(report))


@app.post("/api/match/initiative", response_model=InitiativeMatchReport,
          tags=["Matching"], summary="Rank people for every role of an initiative")
async def match_initiative(
    body: InitiativeMatchRequest,
    catalog: SkillCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    return services.match_initiative(
        body.initiative, body.people, catalog, _scoring_time(body.now),
        half_life_days=settings.freshness_half_life_days,
    )


# ---------------------------------------------------------------------------
# Routes: Planning
# ---------------------------------------------------------------------------


@app.post("/api/plan", response_model=InitiativePlan,
          tags=["Planning"], summary="Draft a staffing plan for an initiative")
async def plan(
    body: InitiativeMatchRequest,
    catalog: SkillCatalog = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    return services.plan_initiative(
        body.initiative, body.people, catalog, _scoring_time(body.now),
        half_life_days=settings.freshness_half_life_days,
    )


# ---------------------------------------------------------------------------
# Routes: Import
# ---------------------------------------------------------------------------


@app.post("/api/import/person", response_model=PersonImportResult,
          tags=["Import"], summary="Import an expert profile from an XLSX workbook")
async def import_person(file: UploadFile = File(...), catalog: SkillCatalog = Depends(get_catalog)):
    if not file.filename or not file.filename.endswith(".xlsx"):
        raise HTTPException(400, "Only .xlsx files are supported")
    content = await file.read()
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False) as f:
            tmp_path = Path(f.name)
            f.write(content)
        return import_person_xlsx(tmp_path, catalog)
    except (InvalidFileException, BadZipFile) as exc:
        raise HTTPException(400, "Could not read the workbook") from exc
    finally:
        if tmp_path:
            tmp_path.unlink(missing_ok=True)


def main():
    import uvicorn
    settings = get_settings()
    uvicorn.run("teamfit.app:app", host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
