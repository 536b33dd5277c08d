"""Minimal CSV rendering shared by every CSV export."""

from __future__ import annotations

from typing import Any, Iterable, Sequence


def _cell(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    # commas are quoted; embedded quotes are passed through as-is
    if isinstance(value, str) and "," in text:
        return f'"{text}"'
    return text


def generate_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header line plus one line per row, joined with ``\\n`` (no trailing newline)."""
    lines = [",".join(headers)]
    lines.extend(",".join(_cell(c) for c in row) for row in rows)
    return "\n".join(lines)
