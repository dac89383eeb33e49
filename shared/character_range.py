"""
Character range expressions — framework-agnostic, pure functions.

A range expression is a comma separated list where every item is either a
single character or an inclusive code-point range in brackets::

    1,a,[4-9],q,[b-f]

Uses the ``regex`` library because the item pattern needs a variable-width
look-behind (start of string OR a comma), which ``re`` does not support.
"""

from __future__ import annotations

import regex

from errors import InvalidRangeFormatError

_ITEM_PATTERN = regex.compile(r"(?<=^|,)(?:([^,])|\[(.)-(.)\])(?=,|$)")

_FORMAT_HINT = (
    "Supported format: comma separated list of values - "
    "\"[character-character]\" or \"character\". Example: 1,[a-d],e."
)


def expand_character_range(expression: str) -> frozenset[str]:
    """Expand a range *expression* into the set of characters it denotes.

    Duplicates across items collapse silently and order is not significant.

    Raises:
        InvalidRangeFormatError: the expression is blank, an item does not
            match the grammar, or a bracketed range is empty (start > end).
    """
    if not expression or expression.isspace():
        raise InvalidRangeFormatError("Character range string must not be empty.")

    segments = expression.split(",")
    characters: set[str] = set()
    matched = 0
    for match in _ITEM_PATTERN.finditer(expression):
        matched += 1
        single, start, end = match.groups()
        if single is not None:
            characters.add(single)
            continue
        if ord(start) > ord(end):
            raise InvalidRangeFormatError(
                f"Empty character range [{start}-{end}] in: {expression}",
                details={"expression": expression},
            )
        characters.update(chr(code) for code in range(ord(start), ord(end) + 1))

    # Every comma separated segment must be consumed by exactly one match
    if matched != len(segments):
        raise InvalidRangeFormatError(
            f"{_FORMAT_HINT} Yours: {expression}",
            details={"expression": expression},
        )
    return frozenset(characters)
