"""Skill catalog: immutable reference data injected into the engine.

The catalog answers three questions for the normalizer and the evidence
extractor:

- which canonical skill a free-text token or id refers to,
- which skills a role type needs by default and at what level,
- how an initiative id should be labelled in evidence provenance.

It is loaded once (usually from ``data/catalog.yaml``) and passed around as a
value.  Nothing in the engine mutates it.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from teamfit.config import Settings, get_settings
from teamfit.models import SkillCatalogEntry, SkillLevel

log = logging.getLogger(__name__)

DEFAULT_ROLE_LEVEL: SkillLevel = "advanced"
VALID_LEVELS: frozenset[str] = frozenset({"novice", "intermediate", "advanced", "expert"})

# Raw proficiency codes used by the expert registry: (code, label)
SKILL_LEVEL_CODES: dict[str, str] = {
    "A": "Awareness",
    "W": "Working",
    "P": "Practitioner",
    "Ad": "Advanced",
    "E": "Expert",
}

EVIDENCE_STATUSES: dict[str, str] = {
    "claimed": "Claimed",
    "screened": "Screened",
    "observed": "Observed",
    "validated": "Validated",
    "refuted": "Refuted",
}

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]+")


def slug_to_title(slug: str) -> str:
    """``"data-normalization"`` -> ``"Data Normalization"``."""
    return " ".join(chunk[0].upper() + chunk[1:] for chunk in slug.split("-") if chunk)


def slugify_skill_id(name: str, existing: Iterable[str] = ()) -> str:
    """Build a slug id for an ad-hoc skill name, suffixing ``-1``, ``-2`` on collision."""
    normalized = name.strip().lower()
    base = _SLUG_STRIP_RE.sub("", normalized).replace("_", "").strip()
    base = re.sub(r"-+", "-", re.sub(r"\s+", "-", base))
    fallback = base or "skill"

    taken = set(existing)
    candidate = fallback
    counter = 1
    while candidate in taken:
        candidate = f"{fallback}-{counter}"
        counter += 1
    return candidate


class SkillCatalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    skills: dict[str, SkillCatalogEntry] = {}
    role_levels: dict[str, SkillLevel] = {}
    initiative_names: dict[str, str] = {}

    @classmethod
    def empty(cls) -> SkillCatalog:
        return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SkillCatalog:
        """Build a catalog from the parsed YAML layout, skipping malformed entries."""
        skills: dict[str, SkillCatalogEntry] = {}
        raw_skills = data.get("skills") or []
        if isinstance(raw_skills, Mapping):
            entries = []
            for key, value in raw_skills.items():
                if value is not None and not isinstance(value, Mapping):
                    log.warning("Skipping catalog skill entry %r: not a mapping", key)
                    continue
                entries.append({"id": key, **(value or {})})
            raw_skills = entries
        for raw in raw_skills if isinstance(raw_skills, list) else []:
            if not isinstance(raw, Mapping):
                log.warning("Skipping catalog skill entry %r: not a mapping", raw)
                continue
            payload = dict(raw)
            roles = payload.pop("roles", payload.get("associated_roles", ())) or ()
            payload["associated_roles"] = (roles,) if isinstance(roles, str) else roles
            try:
                entry = SkillCatalogEntry(**payload)
            except ValidationError as exc:
                log.warning("Skipping catalog skill entry %r: %s", raw.get("id"), exc.errors()[0]["msg"])
                continue
            skills.setdefault(entry.id, entry)

        role_levels: dict[str, SkillLevel] = {}
        raw_levels = data.get("role_levels") or {}
        for role, level in raw_levels.items() if isinstance(raw_levels, Mapping) else ():
            if not isinstance(level, str) or level not in VALID_LEVELS:
                log.warning("Ignoring unknown level %r for role %r", level, role)
                continue
            role_levels[str(role)] = level

        raw_initiatives = data.get("initiatives") or {}
        initiative_names = (
            {str(k): str(v) for k, v in raw_initiatives.items()}
            if isinstance(raw_initiatives, Mapping) else {}
        )
        return cls(skills=skills, role_levels=role_levels, initiative_names=initiative_names)

    # -- lookups ------------------------------------------------------------

    def get(self, skill_id: str) -> SkillCatalogEntry | None:
        return self.skills.get(skill_id)

    def find_by_name(self, name: str) -> SkillCatalogEntry | None:
        needle = name.strip().lower()
        if not needle:
            return None
        return next((s for s in self.skills.values() if s.name.lower() == needle), None)

    def lookup(self, token: str) -> SkillCatalogEntry | None:
        """Resolve a token: exact id, then case-insensitive id, then case-insensitive name."""
        trimmed = token.strip()
        if not trimmed:
            return None
        direct = self.skills.get(trimmed)
        if direct:
            return direct
        lower_id = self.skills.get(trimmed.lower())
        if lower_id:
            return lower_id
        return self.find_by_name(trimmed)

    def skill_name(self, skill_id: str) -> str | None:
        entry = self.skills.get(skill_id)
        return entry.name if entry else None

    def skills_for_role(self, role: str) -> list[SkillCatalogEntry]:
        return [s for s in self.skills.values() if role in s.associated_roles]

    def level_for_role(self, role: str) -> SkillLevel:
        return self.role_levels.get(role, DEFAULT_ROLE_LEVEL)

    def initiative_label(self, initiative_id: str) -> str:
        name = self.initiative_names.get(initiative_id)
        return f"{name} ({initiative_id})" if name else initiative_id

    def known_roles(self) -> list[str]:
        roles = set(self.role_levels)
        for entry in self.skills.values():
            roles.update(entry.associated_roles)
        return sorted(roles, key=str.casefold)


def load_catalog(path: str | Path | None = None, settings: Settings | None = None) -> SkillCatalog:
    """Load the skill catalog from YAML. A missing file yields an empty catalog."""
    cfg = settings or get_settings()
    catalog_path = Path(path) if path is not None else cfg.catalog_file
    if not catalog_path.exists():
        log.warning("Skill catalog %s not found, using an empty catalog", catalog_path)
        return SkillCatalog.empty()
    catalog = SkillCatalog.from_mapping(cfg.load_yaml(catalog_path))
    log.info(
        "Loaded skill catalog %s (%d skills, %d role defaults)",
        catalog_path, len(catalog.skills), len(catalog.role_levels),
    )
    return catalog
