"""
Deck legality rules.

The single rule set shared by the server-side deck endpoints and the
interactive deck draft. Everything here is pure: no I/O, no clock, no
banlist lookups beyond the status passed in.

Rule order for a submitted deck:
1. Name length in [3, 50]
2. Every entry has a positive integer id and an integer count in [1, 3]
3. At most 60 distinct main deck entries
4. At most 15 distinct extra deck entries
5. Main deck total copies in [40, 60]
6. Extra deck total copies <= 15

Rules 1-4 come from one pass over the payload and are reported together.
Rules 5 and 6 run only when 1-4 pass, and the first failure stops the check.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ygodeck.models.card import BanStatus, DeckSection
from ygodeck.models.failure import DeckValidationError, FieldError

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 50

MIN_COPIES = 1
MAX_COPIES = 3

MIN_MAIN_DECK = 40
MAX_MAIN_DECK = 60
MAX_EXTRA_DECK = 15

MAX_MAIN_ENTRIES = 60
MAX_EXTRA_ENTRIES = 15

# Closed list. A new extra deck frame in the catalog must be added here.
EXTRA_DECK_TYPES = frozenset(
    {
        "Fusion Monster",
        "Synchro Monster",
        "XYZ Monster",
        "Link Monster",
    }
)

_COPY_LIMITS: dict[BanStatus, int] = {
    BanStatus.FORBIDDEN: 0,
    BanStatus.LIMITED: 1,
    BanStatus.SEMI_LIMITED: 2,
    BanStatus.UNLIMITED: MAX_COPIES,
}

_SECTION_CAPS: dict[DeckSection, int] = {
    DeckSection.MAIN: MAX_MAIN_DECK,
    DeckSection.EXTRA: MAX_EXTRA_DECK,
}

INVALID_DECK_MESSAGE = "Invalid deck data."


class DeckRule(str, Enum):
    """Machine-readable codes for each deck rule."""

    NAME_TOO_SHORT = "name_too_short"
    NAME_TOO_LONG = "name_too_long"
    NAME_NOT_STRING = "name_not_string"
    ENTRY_NOT_OBJECT = "entry_not_object"
    ENTRY_ID = "entry_id"
    ENTRY_COUNT = "entry_count"
    SECTION_NOT_LIST = "section_not_list"
    MAIN_TOO_MANY_ENTRIES = "main_too_many_entries"
    EXTRA_TOO_MANY_ENTRIES = "extra_too_many_entries"
    MAIN_TOO_FEW = "main_too_few"
    MAIN_TOO_MANY = "main_too_many"
    EXTRA_TOO_MANY = "extra_too_many"


@dataclass(frozen=True, slots=True)
class Violation:
    """One broken rule, located by a dotted path into the payload."""

    path: str
    rule: DeckRule
    message: str

    def to_field_error(self) -> FieldError:
        return FieldError(path=self.path, message=self.message)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate_deck. Empty violations means the deck is legal."""

    violations: tuple[Violation, ...] = field(default_factory=tuple)
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.violations

    def raise_for_violations(self) -> None:
        """Raise DeckValidationError if any rule was broken."""
        if self.violations:
            raise DeckValidationError(
                self.message,
                details=[violation.to_field_error() for violation in self.violations],
            )


def is_extra_deck_type(type_label: str | None) -> bool:
    """True if a card of this type label belongs in the extra deck."""
    return type_label in EXTRA_DECK_TYPES


def section_for_type(type_label: str | None) -> DeckSection:
    """Deck section a card belongs to, decided by its type label alone."""
    return DeckSection.EXTRA if is_extra_deck_type(type_label) else DeckSection.MAIN


def section_cap(section: DeckSection) -> int:
    """Maximum total copies allowed in a deck section."""
    return _SECTION_CAPS[section]


def copy_limit(status: BanStatus, include_forbidden: bool = False) -> int:
    """
    Maximum copies of one card allowed by its banlist status.

    Forbidden cards allow zero copies unless the caller opted in to them,
    in which case only the global per-card cap applies.
    """
    if status is BanStatus.FORBIDDEN and include_forbidden:
        return MAX_COPIES
    return _COPY_LIMITS[status]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _entry_fields(entry: Any) -> Mapping[str, Any] | None:
    if isinstance(entry, Mapping):
        return entry
    as_dict = getattr(entry, "as_dict", None)
    if callable(as_dict):
        return as_dict()
    return None


def _check_name(name: Any) -> list[Violation]:
    if not isinstance(name, str):
        return [Violation("name", DeckRule.NAME_NOT_STRING, "Deck name must be a string")]
    if len(name) < MIN_NAME_LENGTH:
        return [
            Violation(
                "name",
                DeckRule.NAME_TOO_SHORT,
                f"Deck name must be at least {MIN_NAME_LENGTH} characters",
            )
        ]
    if len(name) > MAX_NAME_LENGTH:
        return [
            Violation(
                "name",
                DeckRule.NAME_TOO_LONG,
                f"Deck name must be at most {MAX_NAME_LENGTH} characters",
            )
        ]
    return []


def _check_entries(path: str, entries: Any, max_entries: int, rule: DeckRule) -> list[Violation]:
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
        return [Violation(path, DeckRule.SECTION_NOT_LIST, f"{path} must be a list of cards")]

    violations: list[Violation] = []
    for index, entry in enumerate(entries):
        fields = _entry_fields(entry)
        if fields is None:
            violations.append(
                Violation(
                    f"{path}.{index}",
                    DeckRule.ENTRY_NOT_OBJECT,
                    "Card entry must be an object",
                )
            )
            continue

        card_id = fields.get("id")
        if not _is_int(card_id) or card_id <= 0:
            violations.append(
                Violation(
                    f"{path}.{index}.id",
                    DeckRule.ENTRY_ID,
                    "Card id must be a positive integer",
                )
            )

        count = fields.get("count")
        if not _is_int(count) or not MIN_COPIES <= count <= MAX_COPIES:
            violations.append(
                Violation(
                    f"{path}.{index}.count",
                    DeckRule.ENTRY_COUNT,
                    f"Copy count must be an integer between {MIN_COPIES} and {MAX_COPIES}",
                )
            )

    if len(entries) > max_entries:
        section = "Main" if rule is DeckRule.MAIN_TOO_MANY_ENTRIES else "Extra"
        violations.append(
            Violation(
                path,
                rule,
                f"{section} deck cannot exceed {max_entries} distinct cards, got {len(entries)}",
            )
        )
    return violations


def total_copies(entries: Sequence[Any]) -> int:
    """Sum of copy counts across entries."""
    total = 0
    for entry in entries:
        fields = _entry_fields(entry)
        if fields is not None:
            total += fields["count"]
    return total


def validate_deck(name: Any, main_deck: Any, extra_deck: Any) -> ValidationResult:
    """
    Validate a deck save payload against the deck rules.

    Args:
        name: Deck name
        main_deck: Main deck entries, each with id, name and count
        extra_deck: Extra deck entries, same shape

    Returns:
        ValidationResult listing violations in evaluation order.
    """
    structural = [
        *_check_name(name),
        *_check_entries("mainDeck", main_deck, MAX_MAIN_ENTRIES, DeckRule.MAIN_TOO_MANY_ENTRIES),
        *_check_entries(
            "extraDeck", extra_deck, MAX_EXTRA_ENTRIES, DeckRule.EXTRA_TOO_MANY_ENTRIES
        ),
    ]
    if structural:
        return ValidationResult(violations=tuple(structural), message=INVALID_DECK_MESSAGE)

    main_total = total_copies(main_deck)
    if main_total < MIN_MAIN_DECK or main_total > MAX_MAIN_DECK:
        rule = DeckRule.MAIN_TOO_FEW if main_total < MIN_MAIN_DECK else DeckRule.MAIN_TOO_MANY
        message = (
            f"Main deck must have between {MIN_MAIN_DECK} and {MAX_MAIN_DECK} cards, "
            f"got {main_total}"
        )
        return ValidationResult(violations=(Violation("mainDeck", rule, message),), message=message)

    extra_total = total_copies(extra_deck)
    if extra_total > MAX_EXTRA_DECK:
        message = f"Extra deck cannot exceed {MAX_EXTRA_DECK} cards, got {extra_total}"
        return ValidationResult(
            violations=(Violation("extraDeck", DeckRule.EXTRA_TOO_MANY, message),),
            message=message,
        )

    return ValidationResult()
