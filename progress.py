from __future__ import annotations

import logging
import os
import time
import threading
from pathlib import Path
from typing import Any, Dict, Optional

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_file_path() -> Path:
    configured = os.environ.get("PROGRESS_LOG_FILE")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "search_runs.log"


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("complements.search_log")
    if logger.handlers:
        return logger

    log_path = _log_file_path()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except Exception:
        # If the logger cannot be initialised we silently continue; progress
        # tracking should not break the search.
        logger.handlers.clear()
    return logger


SEARCH_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(SEARCH_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except Exception:
        return None


def _emit_log(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    try:
        if extras:
            SEARCH_LOGGER.log(level, "%s | %s", event, " ".join(extras))
        else:
            SEARCH_LOGGER.log(level, "%s", event)
    except Exception:
        # Logging failures must never bubble back to callers.
        pass


def log_attempt_detail(event: str, **fields: Any) -> None:
    _emit_log(event, **fields)


def log_attempt_warning(event: str, **fields: Any) -> None:
    _emit_log(event, level=logging.WARNING, **fields)


LOG_STATE: Dict[str, Any] = {
    "run_start": None,
    "phase": "",
    "phase_start": None,
}


def _log_phase_transition_locked(new_phase: str) -> None:
    prev_phase = LOG_STATE.get("phase") or ""
    if new_phase == prev_phase:
        return
    now = _now()
    if prev_phase and LOG_STATE.get("phase_start"):
        duration = max(0.0, now - float(LOG_STATE["phase_start"]))
        _emit_log(
            "Phase finished",
            phase=prev_phase,
            duration=_fmt_seconds(duration),
        )
    LOG_STATE["phase"] = new_phase
    LOG_STATE["phase_start"] = now
    if new_phase:
        _emit_log("Phase started", phase=new_phase)

# Single source of truth for the progress endpoint
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # validate | search | cp_sat | cross_check | merge
    "engine": "",              # backtracking | cp_sat
    "rows": 0,                 # input rows
    "columns": 0,              # common row width
    "nodes": 0,                # search nodes visited
    "groups_found": 0,         # accepted groups so far
    "percent": 0.0,            # 0..100 float
    "elapsed_start": None,     # t0 (float) when solving started
    "elapsed": 0.0,            # seconds snapshot
    "message": "",             # optional note
    "done": False,             # run completed
    "ok": None,                # success flag if known
    "result_url": "",          # optional navigation target
    "run_id": 0,               # monotonically increasing identifier
}

# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()

def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"

def _to_count(n: Any) -> int:
    try:
        return max(0, int(n))
    except Exception:
        return 0

def reset() -> None:
    with PROGRESS_LOCK:
        try:
            current_run_id = int(PROGRESS.get("run_id", 0))
        except Exception:
            current_run_id = 0
        PROGRESS.update({
            "status": "Idle",
            "phase": "",
            "engine": "",
            "rows": 0,
            "columns": 0,
            "nodes": 0,
            "groups_found": 0,
            "percent": 0.0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "result_url": "",
            "run_id": current_run_id + 1,
        })
        LOG_STATE.update({
            "phase": "",
            "phase_start": None,
            "run_start": None,
        })
        _emit_log("Progress reset")

def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        LOG_STATE["run_start"] = now
        _emit_log("Run timer started")

def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)

# ------------------------------
# Setters (tolerant)
# ------------------------------

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)

def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        phase_str = "" if v is None else str(v)
        PROGRESS["phase"] = phase_str
        _log_phase_transition_locked(phase_str)

def set_engine(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["engine"] = "" if v is None else str(v)

def set_shape(rows: Any, columns: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["rows"] = _to_count(rows)
        PROGRESS["columns"] = _to_count(columns)

def set_nodes(n: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["nodes"] = _to_count(n)
        _touch_elapsed_locked()

def set_groups_found(n: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["groups_found"] = _to_count(n)

def set_progress_pct(pct: Any) -> None:
    try:
        f = float(pct)
    except Exception:
        f = 0.0
    f = max(0.0, min(100.0, f))
    with PROGRESS_LOCK:
        PROGRESS["percent"] = f
        _touch_elapsed_locked()

def set_elapsed(seconds: Any) -> None:
    try:
        f = float(seconds)
    except Exception:
        f = 0.0
    with PROGRESS_LOCK:
        PROGRESS["elapsed"] = max(0.0, f)

def set_result_url(url: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["result_url"] = "" if url is None else str(url)

def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    The boolean flag controls the final status when provided; otherwise the
    status is left unchanged (defaulting to ``"Solved"`` from an idle state).
    Any supplied ``reason``/``message`` is surfaced via the ``message`` field.
    """

    final_status: Optional[str] = None
    ok_flag: Optional[bool] = None
    if ok is not None:
        ok_flag = bool(ok)
        final_status = "Solved" if ok_flag else "Error"

    final_message = message if message is not None else reason

    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        PROGRESS["elapsed_start"] = None  # freeze the elapsed counter
        now = _now()
        if final_status is not None:
            PROGRESS["status"] = final_status
        elif PROGRESS.get("status") in ("", "Idle", None):
            PROGRESS["status"] = "Solved"
            ok_flag = True
        PROGRESS["percent"] = 100.0
        if final_message is not None:
            PROGRESS["message"] = str(final_message)
        PROGRESS["done"] = True
        if ok_flag is not None:
            PROGRESS["ok"] = ok_flag
        run_start = LOG_STATE.get("run_start")
        if isinstance(run_start, (int, float)):
            total = max(0.0, now - float(run_start))
        else:
            total = None
        _log_phase_transition_locked("")
        LOG_STATE["run_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS.get("status"),
            ok=PROGRESS.get("ok"),
            duration=_fmt_seconds(total),
            groups=PROGRESS.get("groups_found"),
            nodes=PROGRESS.get("nodes"),
            message=PROGRESS.get("message"),
        )

# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        out["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return out

def as_json() -> Dict[str, Any]:
    # Alias used by /progress
    return snapshot()
