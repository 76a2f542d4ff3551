"""
Specification extractor.

Turns product text or a catalog attribute map into a normalized spec set:
a sparse dict of attribute key → normalized string value.

    parse_specs_from_text("18G x 1 inch hypodermic needle")
    → {"application": "needle", "gauge": "18", "length": "1 inch"}

Detection cascades (product type, material) are first-match-wins, so the
order of the pattern lists below is significant.
"""

import re
from typing import Any, Mapping, Optional

# ===================
# SPEC KEYS
# ===================

APPLICATION = "application"
GAUGE = "gauge"
LENGTH = "length"
SIZE = "size"
VOLUME = "volume"
MATERIAL = "material"
COUNT = "count"
TYPE = "type"
FOR_USE_WITH = "for_use_with"

SPEC_KEYS = (APPLICATION, GAUGE, LENGTH, SIZE, VOLUME, MATERIAL, COUNT, TYPE, FOR_USE_WITH)

SpecSet = dict[str, str]


# ===================
# TEXT DETECTORS
# ===================

# Product type: (pattern, label), highest priority first
APPLICATION_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\bneedles?\b|\bhypodermic\b"), "needle"),
    (re.compile(r"\bsyringes?\b"), "syringe"),
    (re.compile(r"\bgloves?\b"), "glove"),
    (re.compile(r"\bcatheters?\b"), "catheter"),
    (re.compile(r"\blancets?\b"), "lancet"),
    (re.compile(r"\bsutures?\b"), "suture"),
    (re.compile(r"\bscalpels?\b|\bblades?\b"), "scalpel"),
    (re.compile(r"\bgauze\b"), "gauze"),
    (re.compile(r"\bsponges?\b"), "sponge"),
    (re.compile(r"\bbandages?\b|\bband-aids?\b"), "bandage"),
    (re.compile(r"\bdressings?\b"), "dressing"),
    (re.compile(r"\btapes?\b"), "tape"),
    (re.compile(r"\bprep pads?\b|\balcohol pads?\b"), "prep pad"),
    (re.compile(r"\bswabs?\b|\bswabsticks?\b|\bapplicators?\b"), "swab"),
    (re.compile(r"\bwipes?\b"), "wipe"),
    (re.compile(r"\bmasks?\b|\brespirators?\b"), "mask"),
    (re.compile(r"\bgowns?\b"), "gown"),
    (re.compile(r"\bdrapes?\b"), "drape"),
    (re.compile(r"\bunderpads?\b|\bchux\b"), "underpad"),
    (re.compile(r"\bbriefs?\b|\bdiapers?\b"), "brief"),
    (re.compile(r"\bspecimen\b|\burine cups?\b"), "specimen container"),
    (re.compile(r"\bblood collection\b|\bvacutainer\b|\bcollection tubes?\b"), "blood collection tube"),
    (re.compile(r"\biv sets?\b|\badministration sets?\b|\bextension sets?\b"), "iv set"),
    (re.compile(r"\belectrodes?\b"), "electrode"),
    (re.compile(r"\bthermometers?\b|\bprobe covers?\b"), "thermometer"),
    (re.compile(r"\btongue depressors?\b"), "tongue depressor"),
    (re.compile(r"\bsplints?\b|\bcast\b"), "splint"),
    (re.compile(r"\bcotton balls?\b|\bcotton tipped\b"), "cotton"),
    (re.compile(r"\bsharps\b"), "sharps container"),
    (re.compile(r"\bsanitizers?\b|\bdisinfectants?\b"), "disinfectant"),
    (re.compile(r"\btest strips?\b|\btest kits?\b|\brapid tests?\b"), "test"),
]

# Material keywords, highest priority first
MATERIAL_KEYWORDS: list[str] = [
    "nitrile",
    "latex",
    "vinyl",
    "silicone",
    "polyester",
    "nylon",
    "stainless steel",
    "polypropylene",
]

# "18G", "25 ga", "18 gauge 1 inch"; not part of a longer number or fraction
_GAUGE_PATTERN = re.compile(r"(?<![\d./])(\d{1,2})\s*(?:gauge|ga|g)\b(?![\d/])")

# "1 inch", '1-1/2"', "5/8 in", "1.5in"
_LENGTH_PATTERN = re.compile(
    r"(?<![\d./])(\d+(?:\.\d+)?(?:\s*-\s*\d+/\d+)?|\d+/\d+)\s*(?:inches|inch|in\b|\"|'')"
)

_SIZE_PATTERN = re.compile(
    r"(?:^|[\s,(/])"
    r"(xx-large|x-large|extra large|xxl|xl|small|medium|large|sm|med|lg|s|m|l)"
    r"(?=$|[\s,)/.;])"
)

SIZE_ALIASES = {
    "s": "small", "sm": "small", "small": "small",
    "m": "medium", "med": "medium", "medium": "medium",
    "l": "large", "lg": "large", "large": "large",
    "xl": "x-large", "x-large": "x-large", "extra large": "x-large",
    "xxl": "xx-large", "xx-large": "xx-large",
}

_VOLUME_PATTERN = re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*(oz|ml|cc|liter|litre|gal)\b")

_COUNT_PATTERN = re.compile(r"(?<![\d.])(\d+)\s*/\s*(bx|cs|pk|bg|kt|bt|rl)\b")


def _detect_application(text: str) -> Optional[str]:
    for pattern, label in APPLICATION_PATTERNS:
        if pattern.search(text):
            return label
    return None


def _detect_material(text: str) -> Optional[str]:
    for keyword in MATERIAL_KEYWORDS:
        if keyword in text:
            return keyword
    return None


def _normalize_length(raw: str) -> str:
    return re.sub(r"\s+", "", raw) + " inch"


def parse_specs_from_text(text: Optional[str]) -> SpecSet:
    """
    Extract a spec set from free product text.

    Args:
        text: Description, name, packing text (any case)

    Returns:
        Sparse spec set; empty for empty input
    """
    if not text:
        return {}

    lower = str(text).lower()
    specs: SpecSet = {}

    application = _detect_application(lower)
    if application:
        specs[APPLICATION] = application

    gauge = _GAUGE_PATTERN.search(lower)
    if gauge:
        specs[GAUGE] = str(int(gauge.group(1)))

    length = _LENGTH_PATTERN.search(lower)
    if length:
        specs[LENGTH] = _normalize_length(length.group(1))

    size = _SIZE_PATTERN.search(lower)
    if size:
        specs[SIZE] = SIZE_ALIASES[size.group(1)]

    volume = _VOLUME_PATTERN.search(lower)
    if volume:
        specs[VOLUME] = f"{volume.group(1)}{volume.group(2)}"

    count = _COUNT_PATTERN.search(lower)
    if count:
        specs[COUNT] = f"{int(count.group(1))}/{count.group(2)}"

    material = _detect_material(lower)
    if material:
        specs[MATERIAL] = material

    return specs


# ===================
# CATALOG ATTRIBUTES
# ===================

# Catalog attribute name (lower-cased) → spec key
CATALOG_KEYS = {
    "application": APPLICATION,
    "gauge": GAUGE,
    "length": LENGTH,
    "size": SIZE,
    "volume": VOLUME,
    "material": MATERIAL,
    "type": TYPE,
    "for use with": FOR_USE_WITH,
}

_FIRST_INTEGER = re.compile(r"\d+")
_LENGTH_SUFFIX = re.compile(r"\s*length\s*$")


def _normalize_catalog_value(key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None)

    text = str(value).strip().lower()
    if not text:
        return None

    if key == GAUGE:
        digits = _FIRST_INTEGER.search(text)
        return str(int(digits.group(0))) if digits else None
    if key == LENGTH:
        return _LENGTH_SUFFIX.sub("", text).strip() or None
    return text


def parse_specs_from_catalog(attributes: Optional[Mapping[str, Any]]) -> SpecSet:
    """
    Extract a spec set from a catalog attribute map.

    Args:
        attributes: e.g. {"Gauge": "18 Gauge", "Length": "1 Inch Length"}

    Returns:
        Sparse spec set, e.g. {"gauge": "18", "length": "1 inch"}
    """
    if not attributes:
        return {}

    specs: SpecSet = {}
    for name, value in attributes.items():
        key = CATALOG_KEYS.get(str(name).strip().lower())
        if key is None:
            continue
        normalized = _normalize_catalog_value(key, value)
        if normalized:
            specs[key] = normalized
    return specs


def build_spec_set(
    attributes: Optional[Mapping[str, Any]] = None,
    text: Optional[str] = None
) -> SpecSet:
    """
    Combine both extraction modes.

    Catalog attributes are used as-is when they name an application.
    Otherwise the text is parsed too; catalog values still win field by
    field and text values fill whatever the catalog left empty.
    """
    try:
        catalog_specs = parse_specs_from_catalog(attributes)
    except (TypeError, AttributeError, ValueError):
        catalog_specs = {}

    if catalog_specs.get(APPLICATION):
        return catalog_specs

    text_specs = parse_specs_from_text(text)
    return {**text_specs, **catalog_specs}
