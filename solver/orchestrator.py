# Orchestrator: validate rows, run the cover search, merge accepted groups
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import CFG
from models import (
    ComplementGroup, Row, RowTableError,
    compute_mask, compute_reference_mask, merge_rows, validate_column_count,
)
from row_parser import coerce_rows
from progress import (
    set_status, set_phase, set_engine, set_shape, set_nodes, set_groups_found,
    set_progress_pct, set_elapsed, set_done, start_timer,
    log_attempt_detail, log_attempt_warning,
)
from solver.cover_search import find_complement_groups
from solver.cp_isolate import run_cp_sat_isolated
from solver.cp_sat import enumerate_exact_covers, group_size_histogram

GroupKey = Tuple[int, ...]

ENGINES = ("backtracking", "cp_sat")


# ---------- helpers ----------

def _resolve_engine(engine: Optional[str]) -> str:
    name = (engine or getattr(CFG, "ENGINE", "") or "backtracking").strip().lower()
    if name in ("cp-sat", "cpsat"):
        name = "cp_sat"
    if name not in ENGINES:
        raise ValueError(f"Unknown engine {engine!r} (expected one of {', '.join(ENGINES)})")
    return name


def _run_cp_sat(masks: Sequence[int], column_count: int) -> Tuple[bool, List[GroupKey], Optional[str]]:
    seconds = float(getattr(CFG, "CP_MAX_SECONDS", 30.0))
    cap = int(getattr(CFG, "CP_MAX_SOLUTIONS", 100000))
    if getattr(CFG, "CP_ISOLATE", True):
        ok, groups, reason, crash_note = run_cp_sat_isolated(masks, column_count, seconds, cap)
        if crash_note:
            log_attempt_warning("CP-SAT child failed", note=crash_note, reason=reason)
        return ok, groups, reason
    return enumerate_exact_covers(masks, column_count, max_seconds=seconds, max_solutions=cap)


def _should_cross_check(row_count: int) -> bool:
    if not getattr(CFG, "CROSS_CHECK", False):
        return False
    limit = int(getattr(CFG, "CROSS_CHECK_MAX_ROWS", 24))
    return limit <= 0 or row_count <= limit


def _summarize(groups: Sequence[ComplementGroup], complete: bool, note: Optional[str]) -> str:
    if not complete:
        text = f"Search budget exhausted; {len(groups)} complementary group(s) found so far"
        if note:
            text = f"{text} ({note})"
        return text
    if groups:
        return f"{len(groups)} complementary group(s)"
    return "No results."


def _build_groups(rows: Sequence[Row], keys: Sequence[GroupKey]) -> List[ComplementGroup]:
    out: List[ComplementGroup] = []
    for key in sorted(set(tuple(sorted(k)) for k in keys)):
        out.append(ComplementGroup(key, merge_rows(rows, key)))
    return out


# ---------- public API ----------

def find_complements(
    rows_or_text: Any,
    *,
    engine: Optional[str] = None,
) -> Tuple[bool, List[ComplementGroup], str, Dict[str, Any]]:
    """
    Find every group of rows that fills each column exactly once.

    ``rows_or_text`` is a text row table or a list of rows (see
    :func:`row_parser.coerce_rows`).  Input defects raise ``RowTableError``
    before any search starts.

    Returns ``(ok, groups, reason, meta)``; ``ok`` is ``True`` when the
    enumeration is known to be exhaustive.
    """
    engine_name = _resolve_engine(engine)
    t0 = time.time()
    start_timer()
    set_status("Solving")
    set_engine(engine_name)

    set_phase("validate")
    try:
        rows = coerce_rows(rows_or_text)
        column_count = validate_column_count(rows)
    except RowTableError as e:
        log_attempt_warning("Input rejected", error=type(e).__name__, detail=str(e))
        set_done(False, reason=str(e))
        raise

    masks = [compute_mask(r) for r in rows]
    reference = compute_reference_mask(column_count)
    set_shape(len(rows), column_count)
    log_attempt_detail(
        "Rows loaded",
        rows=len(rows),
        columns=column_count,
        engine=engine_name,
    )

    meta: Dict[str, Any] = {
        "row_count": len(rows),
        "column_count": column_count,
        "reference_mask": reference,
        "masks": masks,
        "engine": engine_name,
        "nodes": 0,
        "complete": True,
        "cross_check": "skipped",
    }
    note: Optional[str] = None

    if engine_name == "cp_sat":
        set_phase("cp_sat")
        complete, keys, note = _run_cp_sat(masks, column_count)
    else:
        set_phase("search")
        outcome = find_complement_groups(
            masks,
            reference,
            node_limit=getattr(CFG, "SEARCH_NODE_LIMIT", 0),
            max_seconds=getattr(CFG, "SEARCH_MAX_SECONDS", 0),
        )
        set_nodes(outcome.nodes)
        meta["nodes"] = outcome.nodes
        meta["pruned"] = outcome.pruned
        keys = list(outcome.groups)
        complete = outcome.complete
        log_attempt_detail(
            "Backtracking finished",
            nodes=outcome.nodes,
            pruned=outcome.pruned,
            groups=len(keys),
            limit_hit=outcome.limit_hit or None,
            timed_out=outcome.timed_out or None,
        )

        if not complete:
            note = "node limit" if outcome.limit_hit else "time limit"
            if getattr(CFG, "CP_RESCUE", False):
                set_phase("cp_sat")
                set_progress_pct(50)
                cp_ok, cp_keys, cp_reason = _run_cp_sat(masks, column_count)
                log_attempt_detail(
                    "CP-SAT rescue finished",
                    ok=cp_ok,
                    groups=len(cp_keys),
                    reason=cp_reason,
                )
                if cp_ok:
                    keys, complete, note = cp_keys, True, None
                    meta["engine"] = "cp_sat (rescue)"
                else:
                    # Both partial lists hold only valid groups.
                    keys = list(set(keys) | set(cp_keys))
                    note = cp_reason or note
        elif _should_cross_check(len(rows)):
            set_phase("cross_check")
            cp_ok, cp_keys, cp_reason = _run_cp_sat(masks, column_count)
            if not cp_ok:
                meta["cross_check"] = "failed"
                log_attempt_warning("Cross-check incomplete", reason=cp_reason)
            elif set(cp_keys) == set(keys):
                meta["cross_check"] = "match"
            else:
                meta["cross_check"] = "mismatch"
                missing = sorted(set(cp_keys) - set(keys))
                extra = sorted(set(keys) - set(cp_keys))
                meta["cross_check_missing"] = missing
                meta["cross_check_extra"] = extra
                log_attempt_warning(
                    "Cross-check mismatch",
                    missing=missing[:10],
                    extra=extra[:10],
                )

    set_phase("merge")
    groups = _build_groups(rows, keys)
    set_groups_found(len(groups))

    elapsed = time.time() - t0
    reason = _summarize(groups, complete, note)
    meta["complete"] = complete
    meta["elapsed"] = elapsed
    meta["group_sizes"] = group_size_histogram([g.indices for g in groups])
    set_elapsed(elapsed)
    set_done(complete, reason=reason)
    return complete, groups, reason, meta


def find_complements_string(text: str, **kwargs: Any):
    """Parse a text row table and search it."""
    return find_complements(str(text or ""), **kwargs)


__all__ = ["find_complements", "find_complements_string", "ENGINES"]
