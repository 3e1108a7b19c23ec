from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


COMMONLY_HARVESTED = "commonly_harvested"
NOT_ADVISABLE = "not_advisable"
HIGHLY_NOT_ADVISABLE = "highly_not_advisable"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class EdibilityInfo:
    category: str
    description: str


_DESCRIPTIONS: Dict[str, str] = {
    COMMONLY_HARVESTED: "Edible — Commonly Harvested",
    NOT_ADVISABLE: "Edible — Not Advisable",
    HIGHLY_NOT_ADVISABLE: "Highly Not Advisable!",
    UNKNOWN: "Unknown Edibility",
}

_SPECIES_CATEGORY: Dict[str, str] = {
    "Paddy Field Frog": COMMONLY_HARVESTED,
    "East Asian Bullfrog": COMMONLY_HARVESTED,
    "Asian Painted Frog": NOT_ADVISABLE,
    "Common Southeast Asian Tree Frog": NOT_ADVISABLE,
    "Cane Toad": HIGHLY_NOT_ADVISABLE,
    "Wood Frog": HIGHLY_NOT_ADVISABLE,
}


def classify_edibility(species: str) -> EdibilityInfo:
    """Map a detected species label to its edibility category."""
    category = _SPECIES_CATEGORY.get(species.strip(), UNKNOWN)
    return EdibilityInfo(category=category, description=_DESCRIPTIONS[category])
