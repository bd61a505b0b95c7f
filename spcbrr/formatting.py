"""Text formatting helpers for byte data and source spans."""

from __future__ import annotations

from typing import Iterable, Optional

_ROW_LENGTH = 16


def pretty_hex(data: Iterable[int], emphasis: Optional[int] = None) -> str:
    """Format bytes as hexadecimal rows of 16, like a hex editor.

    The byte at index ``emphasis``, if given, is wrapped in brackets.
    """
    values = bytes(data)
    lines = []
    for row_start in range(0, len(values), _ROW_LENGTH):
        row = values[row_start : row_start + _ROW_LENGTH]
        cells = (
            f" [{byte:02X}]" if row_start + column == emphasis else f" {byte:02X}"
            for column, byte in enumerate(row)
        )
        lines.append("".join(cells) + "\n")
    return "".join(lines)


def span_to_string(offset: int, length: int) -> str:
    """Format a source span given by its offset and length as ``(start-end)``."""
    return f"({offset:<4}-{offset + length:<4})"


def byte_vec_to_string(values: Optional[Iterable[int]]) -> str:
    """Describe expected output bytes, or return an empty string when there are none."""
    if values is None:
        return ""
    return "(expected " + " ".join(f"{value:02X}" for value in values) + ")"