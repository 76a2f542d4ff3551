"""
Packaging hierarchy utilities.

Reads nested pack notation such as "200/BX 10BX/CS" out of product text
and answers unit-count questions about it:
- "200/BX 10BX/CS" → 200 per box, 10 boxes per case, 2000 per case
- "2DZ/BX"         → 24 per box (dozens converted)
"""

from dataclasses import dataclass
from typing import Optional
import re


# Alias → canonical UOM. Unknown tokens pass through lower-cased.
UOM_CANONICAL = {
    "ea": "ea", "each": "ea",
    "bx": "bx", "box": "bx",
    "cs": "cs", "case": "cs",
    "pk": "pk", "pack": "pk", "pkg": "pk", "package": "pk",
    "bg": "bg", "bag": "bg",
    "kt": "kt", "kit": "kt",
    "tu": "tu", "tube": "tu", "tb": "tu",
    "rl": "rl", "roll": "rl",
    "ct": "ct", "count": "ct",
    "bt": "bt", "btl": "bt", "bottle": "bt",
    "sp": "sp",
    "pr": "pr", "pair": "pr",
    "vl": "vl", "vial": "vl",
    "dz": "dz", "dozen": "dz",
    "sy": "sy", "syringe": "sy",
    "cn": "cn", "can": "cn",
}

# <count>[dz][letters]/<uom>, e.g. "200/BX", "10BX/CS", "2dz/bx", "30TESTS/KT"
_LEVEL_PATTERN = re.compile(
    r"(\d+)\s*(dz)?\s*[a-z]*\s*/\s*(bx|cs|pk|bg|kt|tu|rl|ct|sp|ea|bt|vl|pr|cn)",
    re.IGNORECASE
)

DOZEN = 12


@dataclass(frozen=True)
class PackagingLevel:
    """One level of a packaging hierarchy: `count` units per `uom`."""
    count: int
    uom: str


@dataclass(frozen=True)
class QtyConversion:
    """Quantity re-expressed in another UOM."""
    converted_qty: float
    ratio: float


def canonical_uom(uom: Optional[str]) -> Optional[str]:
    """
    Canonicalize a unit of measure.

    Args:
        uom: Raw UOM, e.g. "Box", " CS ", "pkg"

    Returns:
        Canonical short form ("bx", "cs", "pk"), the lower-cased input when
        unrecognized, or None for empty input
    """
    if uom is None:
        return None
    key = str(uom).strip().lower()
    if not key:
        return None
    return UOM_CANONICAL.get(key, key)


def parse_packaging_hierarchy(text: Optional[str]) -> list[PackagingLevel]:
    """
    Parse packaging levels from product text, innermost first.

    Examples:
        "200/BX 10BX/CS" → [PackagingLevel(200, "bx"), PackagingLevel(10, "cs")]
        "50/PK"          → [PackagingLevel(50, "pk")]
        "2DZ/BX"         → [PackagingLevel(24, "bx")]

    Args:
        text: Product description or packing text

    Returns:
        Levels in the order they appear in the text (empty if none)
    """
    if not text:
        return []

    levels = []
    for match in _LEVEL_PATTERN.finditer(text):
        count = int(match.group(1))
        if match.group(2):
            count *= DOZEN
        levels.append(PackagingLevel(count=count, uom=canonical_uom(match.group(3))))
    return levels


def get_units_per_uom(text: Optional[str], uom: Optional[str]) -> Optional[int]:
    """
    Total individual units inside one of the given UOM.

    For "200/BX 10BX/CS": BX → 200, CS → 2000.
    A UOM that is not in the hierarchy gets the product of all levels.

    Returns:
        Unit count, or None when there is no hierarchy (or it implies a single unit)
    """
    hierarchy = parse_packaging_hierarchy(text)
    if not hierarchy:
        return None

    target = canonical_uom(uom)
    if not target:
        return None

    units = 1
    for level in hierarchy:
        units *= level.count
        if level.uom == target:
            return units

    return units if units > 1 else None


def _total_units(text: Optional[str]) -> Optional[int]:
    """Units per outermost packaging level."""
    hierarchy = parse_packaging_hierarchy(text)
    if not hierarchy:
        return None
    units = 1
    for level in hierarchy:
        units *= level.count
    return units


def _units_in(text: Optional[str], uom: str) -> Optional[int]:
    """Units per `uom`, where "each" is the base unit unless the text packs it."""
    if uom == "ea" and all(level.uom != "ea" for level in parse_packaging_hierarchy(text)):
        return 1
    return get_units_per_uom(text, uom)


def _format_money(value: float, decimals: int) -> str:
    """Format with up to `decimals` places, never fewer than two."""
    formatted = f"{value:.{decimals}f}"
    whole, _, fraction = formatted.partition(".")
    fraction = fraction.rstrip("0").ljust(2, "0")
    return f"{whole}.{fraction}"


def format_unit_price(price: Optional[float], text: Optional[str], uom: Optional[str] = None) -> Optional[str]:
    """
    Per-unit price string for a packaged price.

    Precision scales with magnitude: up to 4 places under $0.01,
    up to 3 under $1, otherwise 2.

    Example:
        format_unit_price(100, "200/BX 10BX/CS", "CS") → "$0.05/ea (2000 units)"

    Args:
        price: Price for one of `uom` (or of the outermost level if no uom)
        text: Product text containing packaging notation
        uom: Optional UOM the price refers to

    Returns:
        Formatted string, or None when fewer than 2 units are implied
    """
    if not price:
        return None

    units = get_units_per_uom(text, uom) if uom else _total_units(text)
    if not units or units <= 1:
        return None

    per_unit = float(price) / units
    if per_unit < 0.01:
        formatted = _format_money(per_unit, 4)
    elif per_unit < 1:
        formatted = _format_money(per_unit, 3)
    else:
        formatted = _format_money(per_unit, 2)

    return f"${formatted}/ea ({units} units)"


def convert_qty(
    qty: float,
    from_uom: Optional[str],
    to_uom: Optional[str],
    text: Optional[str]
) -> Optional[QtyConversion]:
    """
    Convert a quantity between two UOMs using a product's packaging hierarchy.

    For "200/BX 10BX/CS":
        convert_qty(4, "BX", "CS", text) → 0.4 cases
        convert_qty(1, "CS", "BX", text) → 10 boxes

    Returns:
        QtyConversion, or None when either side cannot be resolved.
        Callers must treat None as "cannot compare", never as 1:1.
    """
    from_canon = canonical_uom(from_uom)
    to_canon = canonical_uom(to_uom)

    if not from_canon or not to_canon:
        return None

    if from_canon == to_canon:
        return QtyConversion(converted_qty=qty, ratio=1.0)

    from_units = _units_in(text, from_canon)
    to_units = _units_in(text, to_canon)

    if not from_units or not to_units:
        return None

    # Both counts are in base units (EA)
    ratio = from_units / to_units
    return QtyConversion(converted_qty=qty * ratio, ratio=ratio)
