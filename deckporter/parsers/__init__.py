from deckporter.parsers.canonical import (
    canonicalize,
    extract_deck_name,
    has_commander_marker,
    parse_quantity_line,
)
from deckporter.parsers.dialects import PARSERS, parse_by_format
from deckporter.parsers.format_detector import DIALECTS, detect_format, select_dialect

__all__ = [
    "DIALECTS",
    "PARSERS",
    "canonicalize",
    "detect_format",
    "extract_deck_name",
    "has_commander_marker",
    "parse_by_format",
    "parse_quantity_line",
    "select_dialect",
]
