"""
Specification matcher.

Scores how well a candidate product's spec set fits a source item's spec
set. The application gate is absolute: a needle never scores against a
glove, no matter how many other attributes line up.

Score layout:
- 0       gate failed
- 40      gate passed, source has no comparable attributes
- 40-95   base 40 plus up to 55 for weighted attribute agreement
96-100 is left to code-verified tiers.
"""

from typing import Optional

from models.match_builder import AlignmentStatus, SpecAlignmentRow, SpecChip
from services.spec_extractor import (
    APPLICATION, GAUGE, LENGTH, SIZE, VOLUME, MATERIAL, COUNT, TYPE, FOR_USE_WITH,
    SpecSet,
)

BASE_SCORE = 40
MAX_BONUS = 55
MAX_SCORE = 95

# Ordered (attribute, weight)
ATTRIBUTE_WEIGHTS: list[tuple[str, int]] = [
    (GAUGE, 20),
    (LENGTH, 10),
    (SIZE, 20),
    (VOLUME, 15),
    (MATERIAL, 10),
    (COUNT, 10),
]

SPEC_LABELS = {
    APPLICATION: "Product Type",
    GAUGE: "Gauge",
    LENGTH: "Length",
    SIZE: "Size",
    VOLUME: "Volume",
    MATERIAL: "Material",
    TYPE: "Type",
    FOR_USE_WITH: "For Use With",
    COUNT: "Count/Pack",
}

CHIP_ATTRIBUTES: list[tuple[str, str]] = [
    (APPLICATION, "Type"),
    (GAUGE, "Gauge"),
    (SIZE, "Size"),
    (MATERIAL, "Material"),
    (VOLUME, "Volume"),
    (LENGTH, "Length"),
    (COUNT, "Count"),
]


def _overlaps(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def applications_compatible(source: SpecSet, candidate: SpecSet) -> bool:
    """Both sides name an application and one contains the other."""
    left = source.get(APPLICATION)
    right = candidate.get(APPLICATION)
    if not left or not right:
        return False
    return _overlaps(left, right)


def _attribute_matches(key: str, source_value: str, candidate_value: Optional[str]) -> bool:
    if not candidate_value:
        return False
    if key == LENGTH:
        left = "".join(source_value.split())
        right = "".join(candidate_value.split())
        return left in right or right in left
    return source_value == candidate_value


def matched_attributes(source: SpecSet, candidate: SpecSet) -> list[str]:
    """Weighted attributes the source specifies and the candidate agrees on."""
    return [
        key for key, _ in ATTRIBUTE_WEIGHTS
        if source.get(key) and _attribute_matches(key, source[key], candidate.get(key))
    ]


def score_spec_match(source: SpecSet, candidate: SpecSet) -> int:
    """
    Score a candidate spec set against a source spec set.

    Args:
        source: Specs of the external item
        candidate: Specs of the internal product

    Returns:
        0 when the application gate fails, otherwise 40-95
    """
    if not applications_compatible(source, candidate):
        return 0

    possible = 0
    earned = 0
    for key, weight in ATTRIBUTE_WEIGHTS:
        source_value = source.get(key)
        if not source_value:
            continue
        possible += weight
        if _attribute_matches(key, source_value, candidate.get(key)):
            earned += weight

    if possible == 0:
        return BASE_SCORE

    # Half-up rounding
    bonus = int(earned * MAX_BONUS / possible + 0.5)
    return min(BASE_SCORE + bonus, MAX_SCORE)


# ===================
# REVIEW HELPERS
# ===================

def spec_alignment(source: SpecSet, candidate: SpecSet) -> list[SpecAlignmentRow]:
    """Per-attribute comparison over the union of both key sets."""
    keys = list(source.keys())
    keys.extend(key for key in candidate.keys() if key not in source)

    rows = []
    for key in keys:
        source_value = source.get(key) or None
        candidate_value = candidate.get(key) or None

        if source_value and candidate_value:
            status = (
                AlignmentStatus.MATCH
                if _overlaps(source_value, candidate_value)
                else AlignmentStatus.MISMATCH
            )
        elif source_value or candidate_value:
            status = AlignmentStatus.PARTIAL
        else:
            status = AlignmentStatus.MISSING

        rows.append(SpecAlignmentRow(
            key=key,
            label=SPEC_LABELS.get(key, key),
            source_value=source_value,
            candidate_value=candidate_value,
            status=status,
        ))
    return rows


def matched_chips(source: SpecSet, candidate: SpecSet) -> list[SpecChip]:
    """Badges for attributes present on both sides."""
    chips = []
    for key, label in CHIP_ATTRIBUTES:
        source_value = source.get(key)
        candidate_value = candidate.get(key)
        if source_value and candidate_value:
            chips.append(SpecChip(
                label=label,
                value=candidate_value,
                match=_overlaps(source_value, candidate_value),
            ))
    return chips
