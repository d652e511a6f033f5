from progress import (
    reset, set_status, set_done, set_result_url, set_nodes, set_shape,
    set_groups_found, set_progress_pct, snapshot, start_timer,
)


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["percent"] == 100.0
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["result_url"] == ""


def test_set_done_failure_records_reason():
    reset()
    set_status("Solving")
    set_done(False, reason="boom")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["percent"] == 100.0
    assert snap["message"] == "boom"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_set_result_url_tracks_navigation_target():
    reset()
    set_result_url("/result/latest")
    snap = snapshot()
    assert snap["result_url"] == "/result/latest"
    assert snap["done"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert second == first + 1


def test_counters_are_tolerant():
    reset()
    set_shape("8", 4)
    set_nodes(-5)
    set_groups_found("not a number")
    set_progress_pct(250)
    snap = snapshot()
    assert snap["rows"] == 8
    assert snap["columns"] == 4
    assert snap["nodes"] == 0
    assert snap["groups_found"] == 0
    assert snap["percent"] == 100.0


def test_elapsed_freezes_when_done():
    reset()
    start_timer()
    set_done(True)
    first = snapshot()["elapsed"]
    second = snapshot()["elapsed"]
    assert first == second
    assert "elapsed_start" not in snapshot()
