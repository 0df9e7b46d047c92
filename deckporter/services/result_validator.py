"""
Import result validation.

Errors block saving the deck; warnings are informational. Never raises.
"""

from deckporter.config import MAX_DECK_SIZE, MIN_DECK_SIZE
from deckporter.models.import_result import ImportResult, ValidationReport


def validate_import_result(result: ImportResult) -> ValidationReport:
    """
    Check an assembled import for blocking and non-blocking issues.

    Errors:
        - no commander
        - no resolved cards

    Warnings:
        - unresolved cards
        - fuzzy-match suggestions
        - deck size outside the conventional Commander band
        - parser warnings carried on the result
    """
    errors: list[str] = []
    warnings: list[str] = []

    if result.commander is None:
        errors.append("No commander found in import")

    if not result.main_deck:
        errors.append("No cards found in import")

    if result.unresolved:
        warnings.append(f"{len(result.unresolved)} cards could not be resolved")

    if result.suggestions:
        warnings.append(f"{len(result.suggestions)} suggestions available for better matches")

    total = result.total_cards()
    if total < MIN_DECK_SIZE:
        warnings.append(f"Deck has fewer than {MIN_DECK_SIZE} cards (typical minimum for Commander)")
    if total > MAX_DECK_SIZE:
        warnings.append(f"Deck has more than {MAX_DECK_SIZE} cards (typical maximum for Commander)")

    warnings.extend(result.warnings)

    return ValidationReport(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )
