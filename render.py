import html
import json
import random
from typing import Dict, List, Optional, Sequence

from models import ComplementGroup, Row

RESULTS_HEADER = "Complementary lines results:"
NO_RESULTS = "No results."


def _color(row_index: int) -> str:
    rng = random.Random(row_index * 2654435761 & 0xFFFFFFFF)
    r = rng.randint(120, 230)
    g = rng.randint(120, 230)
    b = rng.randint(120, 230)
    return f"rgb({r},{g},{b})"


def format_cells(cells: Sequence[object]) -> str:
    return json.dumps(list(cells), ensure_ascii=False, separators=(",", ":"))


def format_group_line(group: ComplementGroup) -> str:
    numbers = "".join(f" {n}" for n in group.line_numbers())
    return f"{format_cells(group.merged)}; <-- lines: {numbers}"


def render_results_text(groups: Sequence[ComplementGroup]) -> str:
    lines = [RESULTS_HEADER]
    if groups:
        lines.extend(format_group_line(g) for g in groups)
    else:
        lines.append(NO_RESULTS)
    return "\n".join(lines) + "\n"


def _column_sources(group: ComplementGroup, rows: Sequence[Row], width: int) -> List[Optional[int]]:
    sources: List[Optional[int]] = [None] * width
    for idx in group.indices:
        for col in range(width):
            if rows[idx].is_present(col):
                sources[col] = idx
    return sources


def render_results_html(groups: Sequence[ComplementGroup], rows: Sequence[Row]):
    """Return (table_html, legend_html); each merged cell is tinted by its source row."""
    width = rows[0].width if rows else 0
    palette: Dict[int, str] = {}
    for g in groups:
        for idx in g.indices:
            palette.setdefault(idx, _color(idx))

    head = "".join(f"<th>{c + 1}</th>" for c in range(width))
    body: List[str] = []
    for g in groups:
        sources = _column_sources(g, rows, width)
        cells = []
        for col, value in enumerate(g.merged):
            src = sources[col]
            style = f' style="background:{palette[src]}"' if src is not None else ""
            text = "null" if value is None else html.escape(str(value))
            cells.append(f"<td{style}>{text}</td>")
        lines = " ".join(str(n) for n in g.line_numbers())
        body.append(f"<tr><th>{html.escape(lines)}</th>{''.join(cells)}</tr>")

    table = (
        f"<table class='results'><thead><tr><th>lines</th>{head}</tr></thead>"
        f"<tbody>{''.join(body)}</tbody></table>"
    )
    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>line {i + 1}: "
        f"{html.escape(format_cells(rows[i].cells))}</li>"
        for i, c in sorted(palette.items())
    )
    return table, legend
