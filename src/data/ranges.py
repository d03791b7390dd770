"""Parse loosely formatted weight/height strings into numeric ranges."""

from __future__ import annotations

import re

from src.data.schemas import NumericRange

_PAIR_PATTERN = re.compile(r"(\d+)\s*-\s*(\d+)")
_SINGLE_PATTERN = re.compile(r"(\d+)")


def parse_range(text: str | None) -> NumericRange | None:
    """Extract a ``{min, max}`` range from a measurement string.

    ``"23 - 29"`` gives min 23, max 29 in the order written. A lone number
    gives a degenerate range. Anything without digits gives None.

    Args:
        text: Raw measurement text from the breed feed, e.g. ``"3 - 6"``.

    Returns:
        NumericRange, or None when no integer can be found.
    """
    if not isinstance(text, str):
        return None

    try:
        pair = _PAIR_PATTERN.search(text)
        if pair:
            return NumericRange(min=int(pair.group(1)), max=int(pair.group(2)))

        single = _SINGLE_PATTERN.search(text)
        if single:
            value = int(single.group(1))
            return NumericRange(min=value, max=value)
    except ValueError:
        # digit runs past the interpreter's int conversion limit
        return None

    return None
