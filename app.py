# app.py: web front end for the complementary-lines search
from __future__ import annotations
import os
import time
from typing import Any, Dict, List, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from solver.orchestrator import find_complements
from row_parser import coerce_rows
from config import CFG
from io_files import write_results, write_results_view_html
from models import ComplementGroup, RowTableError
from render import render_results_html, format_cells

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    set_status, set_done, set_result_url,
    _fmt_elapsed,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_RESULTS_FULL_PATH, RESULTS_DIR, RESULTS_FILENAME = _resolve_output_paths(
    CFG.RESULTS_OUT, "results.txt"
)
_HTML_FULL_PATH, HTML_DIR, HTML_FILENAME = _resolve_output_paths(
    CFG.RESULTS_HTML, "results_view.html"
)


def _blank_result() -> Dict[str, Any]:
    return {
        "ok": False,
        "summary": "No search run yet.",
        "rows": 0,
        "columns": 0,
        "engine": "",
        "nodes": 0,
        "elapsed_str": "0s",
        "groups": [],
        "table": "",
        "legend": "",
        "results_filename": RESULTS_FILENAME,
        "html_filename": HTML_FILENAME,
    }


LAST_RESULT: Dict[str, Any] = _blank_result()

app = Flask(__name__, static_folder=None, template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template("index.html")


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


@app.route("/results.json")
def results_json():
    payload = {k: v for k, v in LAST_RESULT.items() if k not in ("table", "legend")}
    return jsonify(payload)


@app.route("/styles.css")
def styles_css():
    return send_from_directory(BASE_DIR, "styles.css")


def _extract_rows_payload() -> Any:
    """Pull the row table out of a JSON body, a form field, or raw text."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        if payload.get("rows") is not None:
            return payload["rows"]
        if payload.get("text") is not None:
            return str(payload["text"])
    elif isinstance(payload, list):
        return payload

    text = request.form.get("rows")
    if text is not None:
        return text
    return request.get_data(as_text=True) or ""


def _group_dicts(groups: List[ComplementGroup]) -> List[Dict[str, Any]]:
    return [
        {
            "lines": list(g.line_numbers()),
            "merged": list(g.merged),
            "merged_text": format_cells(g.merged),
        }
        for g in groups
    ]


def _finalize_solver_progress(ok_flag: bool, summary_text: str) -> None:
    """Write the terminal status without clobbering failure states."""

    set_status("Solved" if ok_flag else "error")
    set_done(ok_flag, reason=summary_text)


def _fail(summary: str, t0: float):
    _finalize_solver_progress(False, summary)
    LAST_RESULT.clear()
    LAST_RESULT.update(_blank_result())
    LAST_RESULT.update({
        "summary": summary,
        "elapsed_str": _fmt_elapsed(time.time() - t0),
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT), 400


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    t0 = time.time()

    try:
        rows = coerce_rows(_extract_rows_payload())
    except RowTableError as e:
        return _fail(f"Bad input: {e}", t0)

    try:
        ok_flag, groups, summary, meta = find_complements(rows)
    except RowTableError as e:
        return _fail(f"Bad input: {e}", t0)
    except Exception as e:
        return _fail(f"orchestrator exception: {type(e).__name__}: {e}", t0)

    _finalize_solver_progress(ok_flag, summary)

    table_html, legend_html = render_results_html(groups, rows)
    results_name = RESULTS_FILENAME
    html_name = HTML_FILENAME
    try:
        results_name = os.path.basename(write_results(groups, BASE_DIR)) or RESULTS_FILENAME
    except OSError:
        app.logger.warning("could not write %s", RESULTS_FILENAME, exc_info=True)
    try:
        html_path = write_results_view_html(table_html, legend_html, BASE_DIR, summary=summary)
        html_name = os.path.basename(html_path) or HTML_FILENAME
    except OSError:
        app.logger.warning("could not write %s", HTML_FILENAME, exc_info=True)

    LAST_RESULT.clear()
    LAST_RESULT.update({
        "ok": ok_flag,
        "summary": summary,
        "rows": meta.get("row_count", len(rows)),
        "columns": meta.get("column_count", 0),
        "engine": meta.get("engine", ""),
        "nodes": meta.get("nodes", 0),
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "groups": _group_dicts(groups),
        "table": table_html,
        "legend": legend_html,
        "results_filename": results_name,
        "html_filename": html_name,
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/download/results")
def download_results():
    return send_from_directory(RESULTS_DIR, RESULTS_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(HTML_DIR, HTML_FILENAME, as_attachment=True)


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
