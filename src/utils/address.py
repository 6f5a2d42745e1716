import re
from typing import Optional

# Whole-word replacements applied after punctuation and whitespace cleanup
ADDRESS_ABBREVIATIONS = {
    'street': 'st',
    'avenue': 'ave',
    'road': 'rd',
    'boulevard': 'blvd',
    'drive': 'dr',
    'lane': 'ln',
    'court': 'ct',
    'place': 'pl',
    'terrace': 'ter',
    'parkway': 'pkwy',
    'apartment': 'apt',
    'suite': 'ste',
    'floor': 'fl',
    'building': 'bldg',
    'north': 'n',
    'south': 's',
    'east': 'e',
    'west': 'w',
}

# Tokens that only announce a unit number ("Apt 4B", "Unit 4B", "#4B")
UNIT_DESIGNATORS = ('apt', 'unit', 'ste', '#')

_PUNCTUATION_RE = re.compile(r'[.,;:!?\'"]')
_WHITESPACE_RE = re.compile(r'\s+')
_ABBREVIATION_RE = re.compile(
    r'\b(' + '|'.join(ADDRESS_ABBREVIATIONS) + r')\b'
)


def normalize_address(raw: Optional[str]) -> str:
    """
    Canonicalize a street or unit string for comparison.

    Lower-cases, strips punctuation (hyphens are kept so "4-B" stays
    distinct from "4b"), collapses whitespace and abbreviates street-type
    and directional words. Safe to apply repeatedly.

    Args:
        raw (str): Free-text address fragment, may be None

    Returns:
        str: Normalized form, empty string for empty input
    """
    if not raw or not isinstance(raw, str):
        return ''

    normalized = raw.lower().strip()
    normalized = _PUNCTUATION_RE.sub('', normalized)
    normalized = _WHITESPACE_RE.sub(' ', normalized)
    normalized = _ABBREVIATION_RE.sub(
        lambda match: ADDRESS_ABBREVIATIONS[match.group(1)], normalized
    )
    return normalized.strip()


def normalize_unit(raw: Optional[str]) -> Optional[str]:
    """Normalize a unit number, dropping leading designators like "apt" or "#".

    Returns None when there is no unit at all, so a unit-less address never
    compares equal to one that has a unit.
    """
    normalized = normalize_address(raw)

    changed = True
    while changed and normalized:
        changed = False
        for designator in UNIT_DESIGNATORS:
            if normalized == designator:
                normalized = ''
                changed = True
            elif normalized.startswith(designator + ' '):
                normalized = normalized[len(designator) + 1:]
                changed = True
            elif designator == '#' and normalized.startswith('#'):
                normalized = normalized[1:].lstrip()
                changed = True

    return normalized or None
