"""Regex fallback extraction strategy.

Used when no model backend is configured. Mirrors the shape of the
model-backed output so the parsing pipeline stays backend-agnostic.

Scope flag defaults are asymmetric: ceilings are painted unless explicitly
excluded; doors, trim, windows and primer are excluded unless explicitly
included.
"""

import re
from typing import Dict, Any, List, Optional, Tuple

import structlog

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.models.contractor_context import ContractorContext
from paintquote.models.quote_data import ParsedQuoteData, coerce_number
from paintquote.services.extraction_strategy import ExtractionStrategy

logger = structlog.get_logger()


# =============================================================================
# Building blocks
# =============================================================================

# A number not followed by more digits; a trailing sentence period is allowed
NUM = r"(\d+(?:\.\d+)?)(?!\.?\d)"
AREA_NUM = r"(?<![\d.,$])(\d[\d,]*(?:\.\d+)?)(?!\.?\d)"
SQFT_UNIT = r"(?:sqft|sq\.?\s*ft|square\s*(?:feet|foot|ft))"
NOT_PER_GALLON = r"(?!\s*(?:/|per|a|an)\s*gal)"

NAME = r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)"
STREET_SUFFIX = (
    r"(?:Street|St|Avenue|Ave|Drive|Dr|Road|Rd|Lane|Ln|Boulevard|Blvd|Way|Court|Ct|"
    r"Circle|Cir|Place|Pl|Terrace|Ter|Parkway|Pkwy)"
)

BRAND = r"(?i:sh[ei]rwin(?:[\s-]*williams?)?|benjamin[\s-]*moore|behr|kilz|zinsser|valspar|ppg)"
PRODUCT_WORDS = r"((?:\s+[A-Z][A-Za-z]*)*)"

_BRAND_NAMES = (
    ("sherwin", "Sherwin Williams"),
    ("shirwin", "Sherwin Williams"),
    ("benjamin", "Benjamin Moore"),
    ("behr", "Behr"),
    ("kilz", "Kilz"),
    ("zinsser", "Zinsser"),
    ("valspar", "Valspar"),
    ("ppg", "PPG"),
)

SURFACE_KEYS = {"wall": "walls", "ceiling": "ceilings", "trim": "trim"}


# =============================================================================
# Patterns
# =============================================================================

NAME_PATTERNS = [
    re.compile(r"(?i:customer|client)(?:'s)?(?:\s+(?i:name))?\s*(?:(?i:is)|:)\s*" + NAME),
    re.compile(r"\b(?i:name)\s*(?:(?i:is)|:)\s*" + NAME),
    re.compile(r"\b" + NAME + r"\s+at\s+\d"),
    re.compile(r"\b" + NAME + r"\s*,\s*\d"),
    re.compile(r"(?i:\bfor|customer:|name:)\s*" + NAME),
]

STREET_ADDRESS_RE = re.compile(
    r"\b(\d+\s+(?:[A-Z0-9][A-Za-z0-9]*\s+){0,4}?" + STREET_SUFFIX + r")\b"
)
LABELED_ADDRESS_RE = re.compile(r"\baddress\s*(?:is|:)?\s*([^,.!?\n]+)", re.IGNORECASE)

WALL_AREA_PATTERNS = [
    re.compile(AREA_NUM + r"\s*" + SQFT_UNIT + r"\s+(?:of\s+)?walls?\b", re.IGNORECASE),
    re.compile(r"\bwalls?\s*(?:are|is|:|=|total(?:ing)?)?\s*" + AREA_NUM + r"\s*" + SQFT_UNIT, re.IGNORECASE),
]
CEILING_AREA_PATTERNS = [
    re.compile(AREA_NUM + r"\s*" + SQFT_UNIT + r"\s+(?:of\s+)?ceilings?\b", re.IGNORECASE),
    re.compile(r"\bceilings?\s*(?:are|is|:|=|total(?:ing)?)?\s*" + AREA_NUM + r"\s*" + SQFT_UNIT, re.IGNORECASE),
]
TRIM_AREA_PATTERNS = [
    re.compile(AREA_NUM + r"\s*" + SQFT_UNIT + r"\s+(?:of\s+)?trim\b", re.IGNORECASE),
]
GENERIC_AREA_RE = re.compile(AREA_NUM + r"\s*" + SQFT_UNIT, re.IGNORECASE)
OTHER_SURFACE_AFTER_RE = re.compile(r"\s*(?:of\s+)?(?:ceilings?|trim)\b", re.IGNORECASE)
COVERAGE_CONTEXT_RE = re.compile(r"(?:spread|coverage|covers?|per\s+gallon)", re.IGNORECASE)

LINEAR_FEET_RE = re.compile(AREA_NUM + r"\s*(?:linear|lin\.?)\s*(?:feet|foot|ft)", re.IGNORECASE)
TRIM_AFTER_RE = re.compile(r"\s*(?:of\s+)?(?:trim|baseboards?)\b", re.IGNORECASE)

WALL_HEIGHT_PATTERNS = [
    re.compile(NUM + r"\s*(?:feet|foot|ft|')\s*(?:tall|high|height|ceilings?)", re.IGNORECASE),
    re.compile(
        r"\b(?:ceilings?|walls?)\s+(?:are|is)\s+" + NUM + r"\s*(?:feet|foot|ft|')(?!\s*(?:sq|square|linear))",
        re.IGNORECASE
    ),
]

PAINT_COST_RE = re.compile(r"\$" + NUM + r"\s*(?:per|a|an|/)\s*gal", re.IGNORECASE)
SPREAD_RATE_RE = re.compile(
    r"(?:spread(?:\s*rate)?|coverage(?:\s*rate)?|covers?)\s*(?:is|of|:|=|at)?\s*(?:about\s+)?" + AREA_NUM,
    re.IGNORECASE
)
PRIMER_COST_RE = re.compile(
    r"prim(?:er|ing)[^.!?$,;]*?\$" + NUM + r"\s*(?:per|/)\s*" + SQFT_UNIT,
    re.IGNORECASE
)

LABOR_PATTERNS = [
    re.compile(
        r"\$" + NUM + r"\s*(?:per|/)\s*" + SQFT_UNIT + r"\s*(?:of\s+)?(?:labor|labour|all[\s-]*in)",
        re.IGNORECASE
    ),
    re.compile(r"(?:labor|labour)[^.$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE),
]

WALL_RATE_PATTERNS = [
    re.compile(
        r"\bwalls?\s+(?:painting\s+|labor\s+|rate\s+)?(?:at|@|is|for|=|:)?\s*\$" + NUM + NOT_PER_GALLON,
        re.IGNORECASE
    ),
    re.compile(r"\$" + NUM + r"\s*(?:/\s*" + SQFT_UNIT + r"\s*)?(?:for|on)\s+(?:the\s+)?walls?\b", re.IGNORECASE),
]
CEILING_RATE_PATTERNS = [
    re.compile(
        r"\bceilings?\s+(?:painting\s+|labor\s+|rate\s+)?(?:at|@|is|for|=|:)?\s*\$" + NUM + NOT_PER_GALLON,
        re.IGNORECASE
    ),
    re.compile(r"\$" + NUM + r"\s*(?:/\s*" + SQFT_UNIT + r"\s*)?(?:for|on)\s+(?:the\s+)?ceilings?\b", re.IGNORECASE),
]

MARKUP_PATTERNS = [
    re.compile(NUM + r"\s*%\s*(?:markup|mark-up|margin)", re.IGNORECASE),
    re.compile(r"(?:markup|mark-up)\s*(?:of|is|at|:|=)?\s*" + NUM + r"\s*%", re.IGNORECASE),
]

DOORS_COUNT_RE = re.compile(r"\b(\d+)\s+(?:interior\s+|exterior\s+)?doors?\b", re.IGNORECASE)
WINDOWS_COUNT_RE = re.compile(r"\b(\d+)\s+windows?\b", re.IGNORECASE)

SHEEN_RE = re.compile(
    r"\b(eggshell|satin|semi[\s-]?gloss|high[\s-]?gloss|gloss|matte|flat(?!\s+(?:rate|fee)))\b",
    re.IGNORECASE
)
BRAND_RE = re.compile(BRAND)
BRAND_PRODUCT_RE = re.compile(BRAND + r"\s+([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+)*)")

# Scope flags: exclusion wins over inclusion
_EXCLUDE = r"\b(?:not|no|excluding|exclude|without|skip(?:ping)?|except)\s+(?:(?!with\b|including\b|include\b|but\b|plus\b)\w+,?\s+){0,5}?"
_INCLUDE = r"\b(?:including|include|includes|with|plus)\s+(?:(?!not\b|no\b|but\b|without\b|except\b)[\w-]+,?\s+){0,5}?"
SCOPE_SURFACES = {
    "ceiling_included": r"ceilings?\b",
    "doors_included": r"doors?\b",
    "trim_included": r"trim\b",
    "windows_included": r"windows?\b",
    "primer_included": r"prim(?:er|ing)\b",
}
SCOPE_EXCLUDE_RES = {
    flag: re.compile(_EXCLUDE + surface, re.IGNORECASE) for flag, surface in SCOPE_SURFACES.items()
}
SCOPE_INCLUDE_RES = {
    flag: re.compile(_INCLUDE + surface, re.IGNORECASE) for flag, surface in SCOPE_SURFACES.items()
}
PRIMER_REQUIRED_PATTERNS = [
    re.compile(r"prim(?:er|ing)\s+(?:is\s+|will\s+be\s+)?(?:required|needed|necessary|included)", re.IGNORECASE),
    re.compile(r"\b(?:needs?|requires?|add)\s+(?:\w+\s+)?prim(?:er|ing)\b", re.IGNORECASE),
]

INTERIOR_RE = re.compile(r"\b(?:interior|inside|indoor)\b", re.IGNORECASE)
EXTERIOR_RE = re.compile(r"\b(?:exterior|outside|outdoor)\b", re.IGNORECASE)
BOTH_RE = re.compile(r"\b(?:both|in\s+and\s+out|inside\s+and\s+out(?:side)?)\b", re.IGNORECASE)

PRODUCT_CHANGE_PATTERNS = [
    # "Switch to Benjamin Moore for walls", "Use Behr Premium Plus for ceilings instead"
    re.compile(
        r"\b(?i:switch|change|use|go)(?:\s+(?i:to|with))?\s+(" + BRAND + r")" + PRODUCT_WORDS
        + r"\s+(?i:instead\s+)?(?i:for|on)\s+(?i:the\s+)?(?i:(walls?|ceilings?|trim))"
    ),
    # "change wall paint to Sherwin ProClassic"
    re.compile(
        r"\b(?i:(wall|ceiling|trim))s?\s+(?i:paint)\s+(?i:to)\s+(?:(" + BRAND + r")\s*)?([A-Z][A-Za-z]*(?:\s+[A-Z][A-Za-z]*)*)?"
    ),
    # "switch to Sherwin Williams" (no surface: walls)
    re.compile(r"\b(?i:switch|change|use|go)\s+(?i:to\s+)?(" + BRAND + r")" + PRODUCT_WORDS + r"(?:\s+(?i:instead))?"),
]

RATE_ADJUSTMENT_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"(?:wall\s+rate|\bwalls?)[^.!?,;$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE), "wall_rate"),
    (re.compile(r"(?:ceiling\s+rate|\bceilings?)[^.!?,;$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE), "ceiling_rate"),
    (re.compile(r"(?:trim\s+rate|\btrim)[^.!?,;$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE), "trim_rate"),
    (re.compile(r"(?:door\s+rate|\bdoors?)[^.!?,;$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE), "door_rate"),
    (re.compile(r"(?:window\s+rate|\bwindows?)[^.!?,;$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE), "window_rate"),
    (re.compile(r"(?:prim(?:ing|er)\s+rate|\bprim(?:ing|er))[^.!?,;$]*?\$" + NUM + NOT_PER_GALLON, re.IGNORECASE), "priming_rate"),
]

# Short-answer customer info ("John and the address is 123 Main St")
CUSTOMER_INFO_PATTERNS = [
    re.compile(
        r"^(?:(?:the|client|customer)\s+)?name\s+is\s+(.+?)\s+and\s+(?:the\s+)?address\s+is\s+([^!?\n]+?)[.!]?$",
        re.IGNORECASE
    ),
    re.compile(r"^(.+?)\s+and\s+(?:the\s+)?address\s+is\s+([^!?\n]+?)[.!]?$", re.IGNORECASE),
    re.compile(r"^(.+?)\s+at\s+([^!?\n]+?)[.!]?$", re.IGNORECASE),
    re.compile(r"^([^,]+?),\s*(?:address\s*(?:is|:)?\s*)?([^!?\n]+?)[.!]?$", re.IGNORECASE),
]
NAME_IS_RE = re.compile(r"(?:(?:the|my|client|customer)\s+)?name\s+is\s+([^,.!?\n]+)", re.IGNORECASE)
LEAD_IN_RE = re.compile(r"^(?:it'?s\s+for|this\s+is\s+for|for|customer\s+is|client\s+is)\s+", re.IGNORECASE)
STREET_WORD_RE = re.compile(r"\d+.*\b(?:street|st|avenue|ave|road|rd|drive|dr|lane|ln|way|boulevard|blvd|court|ct)\b", re.IGNORECASE)

PRICE_UPDATE_PATTERNS = [
    re.compile(
        r"(?i:update|change|set|raise|lower|bump)\s+(?:(?i:the|my)\s+)?(?i:price|cost)\s+(?i:of|for|on)\s+"
        r"(.+?)(?:\s+(?i:from)\s+\$" + NUM + r")?\s+(?i:to)\s+\$" + NUM
    ),
    re.compile(
        r"(?i:update|change|set|raise|lower|bump)\s+(?:(?i:the|my)\s+)?(.+?)\s+(?i:price|cost)(?:\s+(?i:per)\s+(?i:gallon))?"
        r"(?:\s+(?i:from)\s+\$" + NUM + r")?\s+(?i:to)\s+\$" + NUM
    ),
]
FAVORITE_RE = re.compile(r"\b(?:save|add)\b[^.!?]*\bfavou?rites?\b|\bfavou?rites?\b[^.!?]*\b(?:save|add)\b", re.IGNORECASE)
SAVE_SUBJECT_RE = re.compile(r"(?i:save|add)\s+(?:(?i:the|a|an)\s+)?([A-Z][\w-]*(?:\s+[A-Z][\w-]*)*)")
ANY_PRICE_RE = re.compile(r"\$" + NUM)


# =============================================================================
# Field helpers
# =============================================================================


def canonical_brand(raw: str) -> str:
    """Normalize a matched brand name ("sherwin williams" -> "Sherwin Williams")."""
    lowered = raw.lower()
    for prefix, name in _BRAND_NAMES:
        if lowered.startswith(prefix):
            return name
    return raw.strip()


def _search_number(patterns, text: str) -> Optional[float]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return coerce_number(match.group(1))
    return None


def _is_coverage_context(text: str, start: int) -> bool:
    return bool(COVERAGE_CONTEXT_RE.search(text[max(0, start - 25):start]))


def _find_area(patterns, text: str) -> Optional[float]:
    for pattern in patterns:
        for match in pattern.finditer(text):
            if _is_coverage_context(text, match.start()):
                continue
            return coerce_number(match.group(1))
    return None


def extract_customer_name(text: str) -> str:
    for pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return ""


def extract_address(text: str) -> str:
    match = STREET_ADDRESS_RE.search(text)
    if match:
        return match.group(1).strip()
    match = LABELED_ADDRESS_RE.search(text)
    if match:
        return match.group(1).strip()
    return ""


def extract_walls_sqft(text: str) -> Optional[float]:
    """Wall area: surface-labeled first, then any unlabeled sqft figure."""
    labeled = _find_area(WALL_AREA_PATTERNS, text)
    if labeled is not None:
        return labeled
    for match in GENERIC_AREA_RE.finditer(text):
        if _is_coverage_context(text, match.start()):
            continue
        if OTHER_SURFACE_AFTER_RE.match(text, match.end()):
            continue
        return coerce_number(match.group(1))
    return None


def extract_linear_feet(text: str) -> Optional[float]:
    for match in LINEAR_FEET_RE.finditer(text):
        if TRIM_AFTER_RE.match(text, match.end()):
            continue
        return coerce_number(match.group(1))
    return None


def extract_brand(text: str) -> Optional[str]:
    match = BRAND_RE.search(text)
    return canonical_brand(match.group(0)) if match else None


def extract_product(text: str) -> Optional[str]:
    match = BRAND_PRODUCT_RE.search(text)
    return match.group(1).strip() if match else None


def extract_sheen(text: str) -> Optional[str]:
    match = SHEEN_RE.search(text)
    if not match:
        return None
    sheen = re.sub(r"[\s-]+", "-", match.group(1).lower())
    return sheen


def detect_scope_flags(text: str) -> Dict[str, Optional[bool]]:
    """Explicitly stated scope flags: True, False, or None when not mentioned."""
    flags: Dict[str, Optional[bool]] = {}
    for flag in SCOPE_SURFACES:
        if SCOPE_EXCLUDE_RES[flag].search(text):
            flags[flag] = False
        elif SCOPE_INCLUDE_RES[flag].search(text):
            flags[flag] = True
        else:
            flags[flag] = None

    if flags["primer_included"] is None and any(p.search(text) for p in PRIMER_REQUIRED_PATTERNS):
        flags["primer_included"] = True
    return flags


def classify_project_type(text: str) -> Optional[str]:
    """interior/exterior/both from keywords, None when not mentioned."""
    has_interior = bool(INTERIOR_RE.search(text))
    has_exterior = bool(EXTERIOR_RE.search(text))
    if (has_interior and has_exterior) or BOTH_RE.search(text):
        return "both"
    if has_exterior:
        return "exterior"
    if has_interior:
        return "interior"
    return None


def detect_product_changes(text: str) -> Optional[Dict[str, Dict[str, Any]]]:
    """Per-surface product change requests, or None."""
    changes: Dict[str, Dict[str, Any]] = {}
    for index, pattern in enumerate(PRODUCT_CHANGE_PATTERNS):
        # The surface-less form only applies when no surface was named
        if index == 2 and changes:
            break
        for match in pattern.finditer(text):
            if index == 0:
                brand, product, surface = match.group(1), match.group(2), match.group(3)
            elif index == 1:
                surface, brand, product = match.group(1), match.group(2), match.group(3)
            else:
                brand, product, surface = match.group(1), match.group(2), "walls"

            key = SURFACE_KEYS[surface.lower().rstrip("s")]
            if key in changes:
                continue
            product = (product or "").strip() or None
            if not brand and not product:
                continue
            changes[key] = {
                "brand": canonical_brand(brand) if brand else None,
                "product": product,
                "cost": None
            }
    return changes or None


def detect_rate_adjustments(text: str) -> Optional[Dict[str, float]]:
    """Rate overrides; each pattern is tested independently."""
    adjustments = {}
    for pattern, rate_type in RATE_ADJUSTMENT_PATTERNS:
        match = pattern.search(text)
        if match:
            adjustments[rate_type] = coerce_number(match.group(1))
    return adjustments or None


_NOT_NAME_WORDS = {
    "wall", "walls", "ceiling", "ceilings", "trim", "door", "doors", "window", "windows",
    "paint", "primer", "labor", "labour", "interior", "exterior", "quote", "rate", "price",
    "cost", "save", "add", "update", "change", "switch", "use", "set", "favorite", "favourite",
}


def _looks_like_name(candidate: str) -> bool:
    if not candidate or len(candidate) > 50:
        return False
    if not re.fullmatch(r"[A-Za-z][A-Za-z .'-]*", candidate):
        return False
    words = candidate.lower().split()
    return len(words) <= 4 and not any(word in _NOT_NAME_WORDS for word in words)


def parse_customer_info(text: str) -> Dict[str, str]:
    """Customer name/address from a short answer.

    Tries "name and address is", "name at address" and "name, address"
    before falling back to street-address detection.
    """
    message = LEAD_IN_RE.sub("", text.strip())
    if not message:
        return {}

    for index, pattern in enumerate(CUSTOMER_INFO_PATTERNS):
        match = pattern.match(message)
        if not match:
            continue
        name, address = match.group(1).strip(), match.group(2).strip()
        if not _looks_like_name(name):
            continue
        # "name at X" and "name, X" only count when X looks like a street address
        if index >= 2 and not STREET_WORD_RE.search(address):
            continue
        return {"customer_name": name, "property_address": address}

    result = {}
    name_match = NAME_IS_RE.search(message)
    if name_match:
        result["customer_name"] = name_match.group(1).strip()
    address = extract_address(message)
    if address and STREET_WORD_RE.search(address):
        result["property_address"] = address
    return result


def detect_price_update(text: str) -> Optional[Dict[str, Any]]:
    """Price change request, e.g. "update ProClassic price to $52"."""
    for pattern in PRICE_UPDATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        product = match.group(1).strip()
        if not product or re.search(r"\brate\b", product, re.IGNORECASE):
            continue
        update = {"product": product, "new_price": coerce_number(match.group(3))}
        old_price = coerce_number(match.group(2))
        if old_price is not None:
            update["old_price"] = old_price
        return update
    return None


def _paint_category(text: str) -> str:
    lowered = text.lower()
    if "ceiling" in lowered:
        return "ceiling_paint"
    if "trim" in lowered:
        return "trim_paint"
    if "primer" in lowered:
        return "primer"
    return "wall_paint"


def detect_new_favorite(text: str) -> Optional[Dict[str, Any]]:
    """New favorite request, e.g. "save Behr Premium Plus at $38/gal as a favorite"."""
    if not FAVORITE_RE.search(text):
        return None

    brand_match = BRAND_PRODUCT_RE.search(text) or BRAND_RE.search(text)
    if brand_match:
        brand = canonical_brand(BRAND_RE.search(brand_match.group(0)).group(0))
        product = brand_match.group(1).strip() if brand_match.re is BRAND_PRODUCT_RE else None
    else:
        subject = SAVE_SUBJECT_RE.search(text)
        if not subject:
            return None
        words = subject.group(1).split()
        brand, product = words[0], " ".join(words[1:]) or None

    cost_match = PAINT_COST_RE.search(text) or ANY_PRICE_RE.search(text)
    return {
        "brand": brand,
        "product": product,
        "cost": coerce_number(cost_match.group(1)) if cost_match else None,
        "category": _paint_category(text)
    }


def extract_quote_fields(text: str) -> Dict[str, Any]:
    """Full regex extraction into the ParsedQuoteData field set."""
    flags = detect_scope_flags(text)

    doors_count = _search_number([DOORS_COUNT_RE], text)
    windows_count = _search_number([WINDOWS_COUNT_RE], text)
    doors_count = int(doors_count) if doors_count is not None else None
    windows_count = int(windows_count) if windows_count is not None else None

    data: Dict[str, Any] = {
        "customer_name": extract_customer_name(text),
        "property_address": extract_address(text),
        "ceiling_included": flags["ceiling_included"] is not False,
        "doors_included": bool(flags["doors_included"]) or (flags["doors_included"] is None and bool(doors_count)),
        "trim_included": bool(flags["trim_included"]),
        "windows_included": bool(flags["windows_included"]) or (flags["windows_included"] is None and bool(windows_count)),
        "primer_included": bool(flags["primer_included"]),
        "linear_feet": extract_linear_feet(text),
        "wall_height_ft": _search_number(WALL_HEIGHT_PATTERNS, text),
        "walls_sqft": extract_walls_sqft(text),
        "ceilings_sqft": _find_area(CEILING_AREA_PATTERNS, text),
        "trim_sqft": _find_area(TRIM_AREA_PATTERNS, text),
        "doors_count": doors_count,
        "windows_count": windows_count,
        "paint_brand": extract_brand(text),
        "paint_product": extract_product(text),
        "paint_sheen": extract_sheen(text),
        "spread_rate_sqft_per_gallon": _search_number([SPREAD_RATE_RE], text),
        "paint_cost_per_gallon": _search_number([PAINT_COST_RE], text),
        "primer_cost_per_sqft": _search_number([PRIMER_COST_RE], text),
        "wall_labor_rate": _search_number(WALL_RATE_PATTERNS, text),
        "ceiling_labor_rate": _search_number(CEILING_RATE_PATTERNS, text),
        "labor_cost_per_sqft": _search_number(LABOR_PATTERNS, text),
        "markup_percent": _search_number(MARKUP_PATTERNS, text),
        "product_changes": detect_product_changes(text),
        "rate_adjustments": detect_rate_adjustments(text),
        "project_type": classify_project_type(text) or "interior",
        "project_scope_notes": "",
    }
    return data


# =============================================================================
# Strategy
# =============================================================================


class RegexExtractionStrategy(ExtractionStrategy):
    """Deterministic extraction used when no model backend is configured."""

    name = "regex"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    @property
    def is_model_backed(self) -> bool:
        return False

    async def extract_quote_data(self, raw_text: str) -> Dict[str, Any]:
        return extract_quote_fields(raw_text)

    async def validate_quote_data(self, raw_text: str, extracted: Dict[str, Any]) -> Dict[str, Any]:
        # No independent validator without a model
        return extracted

    async def extract_fields(
        self,
        user_input: str,
        instruction: str,
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        lowered = (instruction or "").lower()
        if "name" in lowered or "address" in lowered:
            return parse_customer_info(user_input or "")
        if "interior" in lowered or "exterior" in lowered or "project type" in lowered:
            project_type = classify_project_type(user_input or "")
            return {"project_type": project_type} if project_type else {}
        logger.debug("field_extraction_unknown_instruction", instruction=instruction[:80] if instruction else "")
        return {}

    async def extract_conversation_data(
        self,
        user_input: str,
        existing: Dict[str, Any],
        context: Optional[ContractorContext] = None
    ) -> Dict[str, Any]:
        """Only fields the message actually states; scope defaults are not reported."""
        text = (user_input or "")[:self.settings.max_input_chars]
        if not text.strip():
            return {}

        fields = extract_quote_fields(text)
        update: Dict[str, Any] = {}

        for key in ParsedQuoteData.model_fields:
            if key in SCOPE_SURFACES or key in ("project_type", "project_scope_notes"):
                continue
            value = fields.get(key)
            if value not in (None, "", {}):
                update[key] = value

        for flag, value in detect_scope_flags(text).items():
            if value is not None:
                update[flag] = value

        project_type = classify_project_type(text)
        if project_type:
            update["project_type"] = project_type

        known = {**(existing or {}), **update}
        if "customer_name" not in known or "property_address" not in known:
            for key, value in parse_customer_info(text).items():
                if key not in known:
                    update[key] = value

        price_update = detect_price_update(text)
        if price_update:
            update["price_update"] = price_update
        favorite = detect_new_favorite(text)
        if favorite:
            update["save_new_favorite"] = favorite

        return update
