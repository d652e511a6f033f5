"""Helpers for writing search results to disk."""

from __future__ import annotations

import html
import os
from typing import Sequence

from config import CFG
from models import ComplementGroup
from render import render_results_text


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_results(groups: Sequence[ComplementGroup], base_dir: str) -> str:
    """Write the rendered result lines to the configured text file."""

    path = _resolve_output_path(base_dir, CFG.RESULTS_OUT, "results.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(render_results_text(groups))
    return path


def write_results_view_html(table_html: str, legend_html: str, base_dir: str, *, summary: str = "") -> str:
    """Write the rendered result table/legend to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.RESULTS_HTML, "results_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>Complementary Lines</title>
<link rel='stylesheet' href='/styles.css'></head>
<body class='container'>
<h1>Complementary Lines</h1>
<p>{html.escape(summary)}</p>
<section class='card'>{table_html}</section>
<section class='card'><h3>Source lines</h3><ul>{legend_html}</ul></section>
</body></html>"""
        )
    return path


__all__ = ["write_results", "write_results_view_html"]
