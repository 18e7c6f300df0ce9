"""Affix content loader."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from ...config import settings
from ...core.affix import Affix
from ...core.run_affix import RunAffixEntry
from ..models.affix_content import AffixModel

logger = logging.getLogger(__name__)


# Get the data directory path
DATA_DIR = settings.DATA_DIR
DICE_AFFIXES_FILE = DATA_DIR / "affixes" / "dice_affixes.json"
ITEM_AFFIXES_FILE = DATA_DIR / "affixes" / "item_affixes.json"
RUN_AFFIX_EFFECTS_FILE = DATA_DIR / "affixes" / "run_affix_effects.json"
RUN_AFFIX_CATALOG_FILE = DATA_DIR / "run_affixes" / "catalog.json"


def _parse_affix(affix_data: dict) -> Affix:
    """Parse an affix template from JSON data.

    Args:
        affix_data: Dictionary containing affix data.

    Returns:
        Affix object.

    Raises:
        pydantic.ValidationError: If the data does not match the content model.
    """
    return AffixModel.model_validate(affix_data).to_affix()


def load_affixes_from_file(path: Path) -> list[Affix]:
    """Load affix templates from a JSON file with an "affixes" list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return [_parse_affix(affix) for affix in data.get("affixes", [])]


@lru_cache(maxsize=1)
def _load_dice_affixes() -> tuple[Affix, ...]:
    return tuple(load_affixes_from_file(DICE_AFFIXES_FILE))


@lru_cache(maxsize=1)
def _load_item_affixes() -> tuple[Affix, ...]:
    return tuple(load_affixes_from_file(ITEM_AFFIXES_FILE))


@lru_cache(maxsize=1)
def _load_run_affix_effects() -> tuple[Affix, ...]:
    return tuple(load_affixes_from_file(RUN_AFFIX_EFFECTS_FILE))


def load_dice_affixes() -> list[Affix]:
    """Load dice affix templates (copies; the cache is never exposed)."""
    return [a.duplicate() for a in _load_dice_affixes()]


def load_item_affixes() -> list[Affix]:
    """Load item affix templates."""
    return [a.duplicate() for a in _load_item_affixes()]


def load_run_affix_effects() -> list[Affix]:
    """Load the affixes granted by run affix picks."""
    return [a.duplicate() for a in _load_run_affix_effects()]


def load_affix_templates() -> dict[str, Affix]:
    """All affix templates keyed by id."""
    templates: dict[str, Affix] = {}
    for affix in load_dice_affixes() + load_item_affixes() + load_run_affix_effects():
        if affix.id in templates:
            logger.warning("Duplicate affix id %r; keeping the later definition", affix.id)
        templates[affix.id] = affix
    return templates


def get_affix_template(affix_id: str) -> Optional[Affix]:
    """Get a fresh copy of an affix template by id."""
    for affix in _load_dice_affixes() + _load_item_affixes() + _load_run_affix_effects():
        if affix.id == affix_id:
            return affix.duplicate()
    return None


@lru_cache(maxsize=1)
def _load_run_affix_catalog() -> tuple[RunAffixEntry, ...]:
    with open(RUN_AFFIX_CATALOG_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)

    return tuple(RunAffixEntry.model_validate(entry) for entry in data["run_affixes"])


def load_run_affix_catalog() -> list[RunAffixEntry]:
    """Load the run affix offer catalog.

    Returns:
        List of RunAffixEntry objects.
    """
    return list(_load_run_affix_catalog())


def get_run_affix_entry(affix_id: str) -> Optional[RunAffixEntry]:
    """Get a catalog entry by affix id."""
    for entry in _load_run_affix_catalog():
        if entry.affix_id == affix_id:
            return entry
    return None


def validate_content() -> list[str]:
    """
    Validate every authored affix and catalog entry.

    Returns:
        Authoring warnings (also logged); empty when the content is clean.
    """
    warnings: list[str] = []
    templates = load_affix_templates()
    for affix in templates.values():
        warnings.extend(affix.validate())

    for entry in load_run_affix_catalog():
        warnings.extend(entry.validate())
        if entry.affix_id not in templates:
            warnings.append(f"{entry.affix_id}: catalog entry has no affix template")

    for warning in warnings:
        logger.warning("Content: %s", warning)
    return warnings
