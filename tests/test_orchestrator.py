import pytest

pytest.importorskip("ortools")

import progress
from config import CFG
from models import EmptyInput, InconsistentColumnCount, RowTableParseError
from solver import orchestrator
from solver.orchestrator import find_complements, find_complements_string

SAMPLE_WIDE = (
    '[ "a1",   "a2",   "a3",   "a4"   ],     <- first line\n'
    ' \t[ "b1",   null,   null,   "b4"   ],     \n'
    ' \t[ null,   "c2",   "c3",   null   ],\n'
    ' \t[ "d1",   null,   null,   "d4"   ],\n'
    ' \t[ null,   "e2",   "e3",   null   ],\n'
    ' \t[ null,   "f2",   "f3",   "f4"   ],\n'
    ' \t[ "h1",   null ,  null,   null   ],\n'
    ' \t[ "g1",   null ,  null,   null   ]'
)

SAMPLE_BRACED = (
    '{ \t[ "a1",   null,   null,   null   ],\n'
    ' \t[ null,   "b2",   null,   "b4"   ],     \n'
    ' \t[ null,   null,   "c3",   null   ]\n}'
)


@pytest.fixture(autouse=True)
def _in_process_cp_sat(monkeypatch):
    monkeypatch.setattr(CFG, "CP_ISOLATE", False, raising=False)
    monkeypatch.setattr(CFG, "CROSS_CHECK", False, raising=False)
    monkeypatch.setattr(CFG, "ENGINE", "backtracking", raising=False)
    monkeypatch.setattr(CFG, "SEARCH_NODE_LIMIT", 0, raising=False)
    monkeypatch.setattr(CFG, "SEARCH_MAX_SECONDS", 0, raising=False)
    progress.reset()


def test_wide_sample_groups_and_merged_rows():
    ok, groups, reason, meta = find_complements_string(SAMPLE_WIDE)
    assert ok
    assert reason == "7 complementary group(s)"
    assert [g.indices for g in groups] == [
        (0,), (1, 2), (1, 4), (2, 3), (3, 4), (5, 6), (5, 7),
    ]
    merged = {g.indices: g.merged for g in groups}
    assert merged[(0,)] == ("a1", "a2", "a3", "a4")
    assert merged[(1, 4)] == ("b1", "e2", "e3", "b4")
    assert merged[(5, 7)] == ("g1", "f2", "f3", "f4")
    assert meta["column_count"] == 4
    assert meta["row_count"] == 8
    assert meta["reference_mask"] == 0b1111
    assert meta["masks"][1] == 0b1001
    assert meta["complete"] is True
    assert meta["cross_check"] == "skipped"


def test_merged_rows_have_no_absent_cells():
    _ok, groups, _reason, _meta = find_complements_string(SAMPLE_WIDE)
    for g in groups:
        assert None not in g.merged


def test_braced_sample_single_group():
    ok, groups, _reason, _meta = find_complements_string(SAMPLE_BRACED)
    assert ok
    assert len(groups) == 1
    assert groups[0].indices == (0, 1, 2)
    assert groups[0].line_numbers() == (1, 2, 3)
    assert groups[0].merged == ("a1", "b2", "c3", "b4")


def test_accepts_structured_rows():
    ok, groups, _reason, _meta = find_complements([["a1", "a2"], ["b1", None], [None, "c2"]])
    assert ok
    assert [g.indices for g in groups] == [(0,), (1, 2)]


def test_no_results_reason():
    ok, groups, reason, _meta = find_complements([[None, None], [None, None]])
    assert ok
    assert groups == []
    assert reason == "No results."


def test_empty_input_raises_before_search():
    with pytest.raises(EmptyInput):
        find_complements_string("")
    snap = progress.snapshot()
    assert snap["done"] is True
    assert snap["ok"] is False


def test_zero_width_rows_raise():
    with pytest.raises(EmptyInput):
        find_complements("[]\n[]")


def test_inconsistent_width_reports_row():
    with pytest.raises(InconsistentColumnCount) as exc:
        find_complements('["a", "b"]\n["c"]')
    assert exc.value.row_index == 1


def test_parse_error_propagates():
    with pytest.raises(RowTableParseError):
        find_complements('["a", "b"]\n{oops')


def test_unknown_engine_rejected():
    with pytest.raises(ValueError):
        find_complements([["a"]], engine="simplex")


def test_cp_sat_engine_matches_backtracking():
    ok_bt, groups_bt, _, _ = find_complements_string(SAMPLE_WIDE, engine="backtracking")
    ok_cp, groups_cp, _, meta = find_complements_string(SAMPLE_WIDE, engine="cp_sat")
    assert ok_bt and ok_cp
    assert groups_bt == groups_cp
    assert meta["engine"] == "cp_sat"


def test_cross_check_match(monkeypatch):
    monkeypatch.setattr(CFG, "CROSS_CHECK", True, raising=False)
    ok, _groups, _reason, meta = find_complements_string(SAMPLE_WIDE)
    assert ok
    assert meta["cross_check"] == "match"


def test_cross_check_skipped_for_large_inputs(monkeypatch):
    monkeypatch.setattr(CFG, "CROSS_CHECK", True, raising=False)
    monkeypatch.setattr(CFG, "CROSS_CHECK_MAX_ROWS", 3, raising=False)
    _ok, _groups, _reason, meta = find_complements_string(SAMPLE_WIDE)
    assert meta["cross_check"] == "skipped"


def test_cross_check_mismatch_is_reported(monkeypatch):
    monkeypatch.setattr(CFG, "CROSS_CHECK", True, raising=False)
    monkeypatch.setattr(
        orchestrator, "_run_cp_sat", lambda masks, column_count: (True, [(0,)], None)
    )
    ok, groups, _reason, meta = find_complements_string(SAMPLE_WIDE)
    assert ok
    assert len(groups) == 7
    assert meta["cross_check"] == "mismatch"
    assert (1, 2) in meta["cross_check_extra"]
    assert meta["cross_check_missing"] == []


def test_node_limit_triggers_cp_sat_rescue(monkeypatch):
    monkeypatch.setattr(CFG, "SEARCH_NODE_LIMIT", 3, raising=False)
    monkeypatch.setattr(CFG, "CP_RESCUE", True, raising=False)
    ok, groups, reason, meta = find_complements_string(SAMPLE_WIDE)
    assert ok
    assert len(groups) == 7
    assert meta["engine"] == "cp_sat (rescue)"
    assert reason == "7 complementary group(s)"


def test_node_limit_without_rescue_returns_partial(monkeypatch):
    monkeypatch.setattr(CFG, "SEARCH_NODE_LIMIT", 3, raising=False)
    monkeypatch.setattr(CFG, "CP_RESCUE", False, raising=False)
    ok, groups, reason, meta = find_complements_string(SAMPLE_WIDE)
    assert not ok
    assert [g.indices for g in groups] == [(0,)]
    assert meta["complete"] is False
    assert reason.startswith("Search budget exhausted")
    assert "node limit" in reason
    assert progress.snapshot()["status"] == "Error"


def test_failed_rescue_keeps_partial_groups(monkeypatch):
    monkeypatch.setattr(CFG, "SEARCH_NODE_LIMIT", 3, raising=False)
    monkeypatch.setattr(CFG, "CP_RESCUE", True, raising=False)
    monkeypatch.setattr(
        orchestrator,
        "_run_cp_sat",
        lambda masks, column_count: (False, [(1, 2)], "CP-SAT stopped before solution (timebox)"),
    )
    ok, groups, reason, _meta = find_complements_string(SAMPLE_WIDE)
    assert not ok
    assert [g.indices for g in groups] == [(0,), (1, 2)]
    assert "timebox" in reason


def test_progress_reflects_finished_run():
    find_complements_string(SAMPLE_WIDE)
    snap = progress.snapshot()
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["status"] == "Solved"
    assert snap["rows"] == 8
    assert snap["columns"] == 4
    assert snap["groups_found"] == 7
    assert snap["nodes"] > 0
    assert snap["phase"] == "merge"


def test_cp_sat_engine_failure_in_process_returns_reason(monkeypatch):
    from solver import cp_sat

    class _BrokenSolver:
        def __init__(self):
            raise RuntimeError("solver unavailable")

    monkeypatch.setattr(cp_sat._cp, "CpSolver", _BrokenSolver)
    ok, groups, reason, meta = find_complements_string(SAMPLE_BRACED, engine="cp_sat")
    assert not ok
    assert groups == []
    assert "CP-SAT error: solver unavailable" in reason
