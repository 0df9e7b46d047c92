"""
Card name canonicalization and shared line helpers.

Every dialect decorates card names differently:
    1x Alesha, Who Smiles at Death *CMDR*
    1 Sol Ring (C21) 263 *F*
    1 Delver of Secrets // Insectile Aberration (ISD) 51
    1 Sol Ring (foil) {1}

canonicalize() strips all of that down to the name the card database knows.
"""

import re

# Applied in this order; each pattern removes one kind of annotation
_QUANTITY_PREFIX = re.compile(r"^\d+x?\s+", re.IGNORECASE)
_ALTERNATE_FACE = re.compile(r"\s*//.*$")
_ASTERISK_FLAGS = re.compile(r"\s*\*.*\*\s*$")
_FOIL_OR_COMMANDER = re.compile(r"\s*\((?:foil|commander)\)", re.IGNORECASE)
# "(C21) 263", "(plst) 2XM-309", "(NEO) 290a"
_SET_AND_COLLECTOR = re.compile(r"\s*\([^)]*\)\s*[A-Za-z0-9\-]*\d+[a-z]*\s*$")
_PARENTHESIZED = re.compile(r"\s*\([^)]*\)")
_BRACED = re.compile(r"\s*\{[^}]*\}")
_WHITESPACE = re.compile(r"\s+")

_CANONICAL_STEPS = (
    _QUANTITY_PREFIX,
    _ALTERNATE_FACE,
    _ASTERISK_FLAGS,
    _FOIL_OR_COMMANDER,
    _SET_AND_COLLECTOR,
    _PARENTHESIZED,
    _BRACED,
)

# Pattern: "4 Lightning Bolt" or "4x Lightning Bolt" or "4X Lightning Bolt"
# Groups: (quantity, rest_of_line)
QUANTITY_LINE_PATTERN = re.compile(r"^(\d+)x?\s+(.+)$", re.IGNORECASE)

_COMMANDER_MARKERS = re.compile(r"\(commander\)|\*cmdr\*|\[commander\b|\{commander\}", re.IGNORECASE)

_COMMENT_PREFIXES = ("//", "#")


def _canonicalize_once(name: str) -> str:
    for pattern in _CANONICAL_STEPS:
        name = pattern.sub("", name)
    return _WHITESPACE.sub(" ", name).strip()


def canonicalize(raw: str) -> str:
    """
    Strip export annotations from a raw card token.

    Idempotent: canonicalize(canonicalize(x)) == canonicalize(x). Passes
    repeat until nothing changes, so annotations uncovered by an earlier
    removal (e.g. flags before a set code) are caught too.

    Args:
        raw: Card token, with or without quantity prefix

    Returns:
        Canonical card name. Empty string if nothing is left.
    """
    name = raw
    while True:
        cleaned = _canonicalize_once(name)
        if cleaned == name:
            return cleaned
        name = cleaned


def parse_quantity_line(line: str) -> tuple[int, str] | None:
    """
    Split "<integer>[x] <name...>" into (quantity, remainder).

    Returns None for lines of any other shape or with a zero quantity.
    """
    match = QUANTITY_LINE_PATTERN.match(line.strip())
    if not match:
        return None
    quantity = int(match.group(1))
    if quantity < 1:
        return None
    return quantity, match.group(2).strip()


def has_commander_marker(line: str) -> bool:
    """
    True if a line carries an explicit commander marker.

    Recognised: "(commander)", "*CMDR*", "[Commander]" / "[Commander{top}]",
    "{commander}". Case-insensitive.
    """
    return bool(_COMMANDER_MARKERS.search(line))


def is_comment(line: str) -> bool:
    return line.startswith(_COMMENT_PREFIXES)


def non_blank_lines(text: str) -> list[str]:
    """Stripped, non-empty lines of text."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def extract_deck_name(text: str) -> str | None:
    """
    Find a deck name in a comment line.

    Returns the first "//" or "#" comment that does not mention the
    commander, or None.
    """
    for line in non_blank_lines(text):
        if not is_comment(line):
            continue
        name = line.lstrip("/#").strip()
        if name and "commander" not in name.lower():
            return name
    return None
