# Data Loaders
from .affix_loader import (
    load_affixes_from_file,
    load_dice_affixes,
    load_item_affixes,
    load_run_affix_effects,
    load_affix_templates,
    get_affix_template,
    load_run_affix_catalog,
    get_run_affix_entry,
    validate_content,
)

__all__ = [
    "load_affixes_from_file",
    "load_dice_affixes",
    "load_item_affixes",
    "load_run_affix_effects",
    "load_affix_templates",
    "get_affix_template",
    "load_run_affix_catalog",
    "get_run_affix_entry",
    "validate_content",
]
