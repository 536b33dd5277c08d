"""Read-boundary conversion of numeric-looking text.

SQLite hands back TEXT for anything stored in a TEXT column, so a CTCSS tone
such as ``"88.5"`` or a system identifier such as ``"1234"`` arrives as a
string.  Repositories pass every row through :func:`coerce_row` exactly once;
nothing downstream parses numbers out of strings.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

_NUMERIC = re.compile(r"^-?\d*\.?\d+$")


def coerce_value(value: Any) -> Any:
    """Turn numeric-looking text into ``int``/``float``.

    Conversion only happens when the number prints back as the exact same
    text.  ``"88.5"`` becomes ``88.5`` but ``"88.50"``, ``"023"`` (a DCS code)
    and ``".5"`` stay text, so a value never changes shape on a round trip
    through the store.  Looser parsing that would read ``"88.50"`` as ``88.5``
    is deliberately not done; callers that want a number must store one.
    """
    if not isinstance(value, str) or not _NUMERIC.match(value):
        return value
    number: int | float = float(value) if "." in value else int(value)
    if str(number) != value:
        return value
    return number


def coerce_row(
    row: Mapping[str, Any],
    keep_text: Iterable[str] = (),
) -> dict[str, Any]:
    """Apply :func:`coerce_value` to every column except ``keep_text``."""
    skip: Optional[set[str]] = set(keep_text) or None
    return {
        key: value if skip and key in skip else coerce_value(value)
        for key, value in row.items()
    }
