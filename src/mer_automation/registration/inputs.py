"""Parsing of free-text row-number and email-address input."""

import re

from mer_automation.common.exceptions import ValidationError

FIRST_DATA_ROW = 2

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_EMAIL_SEPARATORS = re.compile(r"[^a-zA-Z0-9.+_@-]+")


def parse_row_numbers(
    text: str, smallest: int = FIRST_DATA_ROW, largest: int | None = None,
) -> list[int]:
    """``"2-4, 7"`` -> [2, 3, 4, 7]; every row must lie in [smallest, largest]."""

    def check(number: int) -> int:
        if number < smallest or (largest is not None and number > largest):
            upper = largest if largest is not None else "the last row"
            raise ValidationError(
                f"Invalid row number: {number}. Row numbers must be between "
                f"{smallest} and {upper}."
            )
        return number

    rows: set[int] = set()
    for part in re.sub(r"\s+", "", text or "").split(","):
        if not part:
            continue
        try:
            if "-" in part:
                start, end = sorted(int(n) for n in part.split("-", 1))
                rows.update(check(n) for n in range(start, end + 1))
            else:
                rows.add(check(int(part)))
        except ValueError:
            raise ValidationError(f"Invalid row number: {part!r}") from None
    if not rows:
        raise ValidationError("No row numbers given")
    return sorted(rows)


def parse_email_addresses(text: str) -> list[str]:
    """Unique, well-formed addresses from free text, in input order."""
    found = [
        candidate for candidate in _EMAIL_SEPARATORS.split(text or "")
        if candidate and _EMAIL.match(candidate)
    ]
    return list(dict.fromkeys(found))
