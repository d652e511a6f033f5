# row_parser.py: text row-table parser
import json
import re
from typing import Any, List, Sequence, Tuple

from models import Row, RowTableError, RowTableParseError, build_rows

_BRACES_RE = re.compile(r"[{}]")
_LINE_SPLIT_RE = re.compile(r"\r?\n")

_DECODER = json.JSONDecoder()


def _strip_braces(text: str) -> str:
    return _BRACES_RE.sub("", text or "")


def _non_blank_lines(text: str) -> List[str]:
    return [ln for ln in _LINE_SPLIT_RE.split(text) if ln.strip()]


def _decode_line(line: str, line_number: int) -> Tuple[Any, ...]:
    # Anything after the closing bracket (",", "<- note") is ignored.
    body = line.lstrip()
    try:
        value, _end = _DECODER.raw_decode(body)
    except json.JSONDecodeError as e:
        raise RowTableParseError(line_number, f"not a JSON array ({e.msg})") from e
    if not isinstance(value, list):
        raise RowTableParseError(line_number, "expected a JSON array")
    for col, cell in enumerate(value):
        if isinstance(cell, (list, dict)):
            raise RowTableParseError(line_number, f"cell {col} is not a scalar value")
    return tuple(value)


def parse_row_table(text: str) -> Tuple[Row, ...]:
    """
    Parse a textual row table into rows, preserving order and null/present.

    Each non-blank line holds one JSON array, e.g. ``[ "a1", null, "a3" ],``.
    Curly braces anywhere in the text are dropped first, so a table wrapped in
    ``{ ... }`` parses the same as a bare one.
    """
    lines = _non_blank_lines(_strip_braces(text))
    return build_rows(_decode_line(ln, n) for n, ln in enumerate(lines, start=1))


def coerce_rows(maybe: Any) -> Tuple[Row, ...]:
    """
    Convert a variety of inbound shapes into rows.
    Accepts:
      - a text table (str)
      - a sequence of Row objects
      - a sequence of cell sequences, e.g. [["a1", None], [None, "b2"]]
    """
    if isinstance(maybe, str):
        return parse_row_table(maybe)
    if maybe is None:
        return ()
    if not isinstance(maybe, Sequence):
        try:
            maybe = list(maybe)
        except TypeError:
            raise RowTableError(f"Cannot read rows from {type(maybe).__name__}") from None

    rows: List[Row] = []
    for idx, item in enumerate(maybe):
        if isinstance(item, Row):
            rows.append(Row(idx, item.cells))
        elif isinstance(item, (list, tuple)):
            rows.append(Row(idx, tuple(item)))
        else:
            raise RowTableParseError(idx + 1, f"expected a list of cells, got {type(item).__name__}")
    return tuple(rows)


__all__ = ["parse_row_table", "coerce_rows"]
