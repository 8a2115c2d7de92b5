from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from rapidfuzz.distance import Levenshtein

from models import KnownCategory


@dataclass(frozen=True)
class Known:
    category: KnownCategory

    @property
    def label(self) -> str:
        return self.category.value


@dataclass(frozen=True)
class Custom:
    name: str

    @property
    def label(self) -> str:
        return self.name


Category = Union[Known, Custom]

_KNOWN_BY_LOWER = {member.value.lower(): member for member in KnownCategory}


def _closest_known(value_lower: str) -> Optional[KnownCategory]:
    best_distance: Optional[int] = None
    best: list[KnownCategory] = []
    for member in KnownCategory:
        dist = int(Levenshtein.distance(value_lower, member.value.lower()))
        if best_distance is None or dist < best_distance:
            best_distance = dist
            best = [member]
        elif dist == best_distance:
            best.append(member)
    if best_distance is not None and best_distance <= 1 and len(best) == 1:
        return best[0]
    return None


def parse_category(raw: Optional[str], *, fuzzy: bool = False) -> Category:
    """Resolve free text to a known category, or keep it as a custom one.

    With ``fuzzy`` a single known category within one edit also matches;
    ambiguous near-matches stay custom.
    """
    value = (raw or "").strip()
    if not value:
        raise ValueError("Category is required")
    known = _KNOWN_BY_LOWER.get(value.lower())
    if known is not None:
        return Known(known)
    if fuzzy:
        closest = _closest_known(value.lower())
        if closest is not None:
            return Known(closest)
    return Custom(value)


def category_label(raw: Optional[str], *, fuzzy: bool = False) -> str:
    return parse_category(raw, fuzzy=fuzzy).label
