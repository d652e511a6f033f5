from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

# Masks are plain ints: arbitrary precision, so column count is unbounded.
OccupancyMask = int


class RowTableError(ValueError):
    """Structural defect in the input rows; aborts the run before searching."""


class EmptyInput(RowTableError):
    def __init__(self, detail: str = "No elements in array"):
        super().__init__(detail)


class InconsistentColumnCount(RowTableError):
    def __init__(self, row_index: int, found: int, expected: int):
        self.row_index = row_index
        self.found = found
        self.expected = expected
        super().__init__(
            f"Line {row_index}: specified number of elements ({found}) does not "
            f"match number of elements in previous lines ({expected})"
        )


class RowTableParseError(RowTableError):
    def __init__(self, line_number: int, detail: str):
        self.line_number = line_number
        self.detail = detail
        super().__init__(f"Line {line_number}: {detail}")


@dataclass(frozen=True)
class Row:
    index: int
    cells: Tuple[Optional[Any], ...]

    @property
    def width(self) -> int:
        return len(self.cells)

    @property
    def mask(self) -> OccupancyMask:
        return compute_mask(self.cells)

    def is_present(self, col: int) -> bool:
        return self.cells[col] is not None


@dataclass(frozen=True)
class ComplementGroup:
    indices: Tuple[int, ...]  # sorted, 0-based
    merged: Tuple[Any, ...]

    def line_numbers(self) -> Tuple[int, ...]:
        return tuple(i + 1 for i in self.indices)


def _cells_of(row: Union[Row, Sequence[Any]]) -> Sequence[Any]:
    if isinstance(row, Row):
        return row.cells
    return row


def validate_column_count(rows: Sequence[Union[Row, Sequence[Any]]]) -> int:
    """Return the common row length.

    Raises ``InconsistentColumnCount`` at the first row whose length differs
    from row 0, and ``EmptyInput`` when there are no rows or no columns.
    """
    if not rows:
        raise EmptyInput("No rows in input")
    expected = len(_cells_of(rows[0]))
    for idx, row in enumerate(rows):
        found = len(_cells_of(row))
        if found != expected:
            raise InconsistentColumnCount(idx, found, expected)
    if expected == 0:
        raise EmptyInput()
    return expected


def compute_mask(row: Union[Row, Sequence[Any]]) -> OccupancyMask:
    # for cells   None, "e2", "e3", None
    # the mask is 0b0110 (bit i <-> column i)
    mask = 0
    for i, value in enumerate(_cells_of(row)):
        if value is not None:
            mask |= 1 << i
    return mask


def compute_reference_mask(column_count: int) -> OccupancyMask:
    if column_count <= 0:
        return 0
    return (1 << column_count) - 1


def masks_disjoint(a: OccupancyMask, b: OccupancyMask) -> bool:
    return (a & b) == 0


def merge_rows(rows: Sequence[Union[Row, Sequence[Any]]], indices: Iterable[int]) -> Tuple[Any, ...]:
    """Overlay the present cells of ``rows[i]`` for each ``i`` in ``indices``.

    Columns no member covers stay ``None``.
    """
    merged: Optional[list] = None
    for idx in indices:
        cells = _cells_of(rows[idx])
        if merged is None:
            merged = list(cells)
            continue
        for col, value in enumerate(cells):
            if value is not None:
                merged[col] = value
    return tuple(merged or ())


def build_rows(raw_rows: Iterable[Sequence[Any]]) -> Tuple[Row, ...]:
    return tuple(Row(i, tuple(cells)) for i, cells in enumerate(raw_rows))
