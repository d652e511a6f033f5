# solver/cp_isolate.py
import multiprocessing as mp
import queue
import traceback
from typing import List, Optional, Sequence, Tuple

# Worker must be top-level (picklable on Windows spawn)
def _enumerate_worker(q, masks: List[int], column_count: int, max_seconds: float, max_solutions: int):
    try:
        from solver.cp_sat import enumerate_exact_covers  # import inside child
        ok, groups, reason = enumerate_exact_covers(
            masks, column_count, max_seconds=max_seconds, max_solutions=max_solutions
        )
        q.put(("ok", ok, groups, reason))
    except MemoryError:
        q.put(("err", False, [], "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", False, [], f"{e}\n{traceback.format_exc()}"))

def run_cp_sat_isolated(
    masks: Sequence[int],
    column_count: int,
    max_seconds: float,
    max_solutions: int,
) -> Tuple[bool, List[Tuple[int, ...]], Optional[str], Optional[str]]:
    """
    Returns (ok, groups, reason, crash_note).
    crash_note is non-empty only if the child crashed/was killed/timed out.
    """
    ctx = mp.get_context("spawn")  # safest on Windows
    q = ctx.Queue()
    p = ctx.Process(
        target=_enumerate_worker,
        args=(q, [int(m) for m in masks], int(column_count), float(max_seconds), int(max_solutions)),
    )
    p.daemon = True
    p.start()

    # Allow a small buffer beyond model time for teardown
    timeout = float(max_seconds) + 5.0
    # Drain before join: a large group list can block the child on a full pipe.
    try:
        tag, ok, groups, reason = q.get(timeout=timeout)
    except queue.Empty:
        tag = None
    p.join(2.0)

    if p.is_alive():
        p.terminate()
        p.join(2.0)
        if tag is None:
            return False, [], "Stopped before solution (timebox)", "killed: timeout"

    if tag is None:
        if p.exitcode not in (0, None):
            return False, [], f"Stopped before solution (child exit {p.exitcode})", "child crashed"
        return False, [], "No result from child process", "no-result"

    groups = [tuple(g) for g in groups]
    if tag == "ok":
        return ok, groups, reason, None
    elif tag == "err":
        return False, [], reason, None
    else:  # "exc"
        return False, [], reason, None
