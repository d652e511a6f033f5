from typing import Dict, List, Optional, Sequence, Tuple
from ortools.sat.python import cp_model as _cp

from config import CFG

GroupKey = Tuple[int, ...]

# ---------------- helpers ----------------

def _column_members(masks: Sequence[int], column_count: int) -> List[List[int]]:
    members: List[List[int]] = [[] for _ in range(column_count)]
    for row_idx, mask in enumerate(masks):
        m = int(mask)
        col = 0
        while m and col < column_count:
            if m & 1:
                members[col].append(row_idx)
            m >>= 1
            col += 1
    return members


class _GroupCollector(_cp.CpSolverSolutionCallback):
    def __init__(self, picks: Sequence[_cp.IntVar], max_solutions: int):
        super().__init__()
        self._picks = list(picks)
        self._max_solutions = max_solutions
        self.groups: List[GroupKey] = []
        self.capped = False

    def on_solution_callback(self) -> None:
        chosen = tuple(i for i, var in enumerate(self._picks) if self.Value(var))
        self.groups.append(chosen)
        if self._max_solutions > 0 and len(self.groups) >= self._max_solutions:
            self.capped = True
            self.StopSearch()


def enumerate_exact_covers(
    masks: Sequence[int],
    column_count: int,
    *,
    max_seconds: Optional[float] = None,
    max_solutions: Optional[int] = None,
) -> Tuple[bool, List[GroupKey], Optional[str]]:
    """Enumerate all complementary groups with CP-SAT.

    One Boolean per row; every column must be covered by exactly one chosen
    row.  Rows with an empty mask appear in no constraint, so they are free
    and show up in every combination alongside each cover.

    Returns ``(ok, groups, reason)``; ``ok`` is ``False`` when the
    enumeration stopped early (time box, solution cap, or model error) and
    ``groups`` then holds what was collected.
    """
    n = len(masks)
    if n == 0 or column_count <= 0:
        return True, [], None

    seconds = float(max_seconds if max_seconds is not None else CFG.CP_MAX_SECONDS)
    cap = int(max_solutions if max_solutions is not None else CFG.CP_MAX_SOLUTIONS)

    try:
        members = _column_members(masks, column_count)
        if any(not rows for rows in members):
            # Some column is absent in every row: no cover exists.
            return True, [], None

        m = _cp.CpModel()
        picks = [m.NewBoolVar(f"row_{i}") for i in range(n)]
        for col, rows in enumerate(members):
            m.Add(sum(picks[r] for r in rows) == 1)

        solver = _cp.CpSolver()
        # All-solutions enumeration only runs single-threaded.
        solver.parameters.enumerate_all_solutions = True
        solver.parameters.keep_all_feasible_solutions_in_presolve = True
        solver.parameters.num_workers = 1
        solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
        solver.parameters.log_search_progress = False
        if seconds > 0:
            solver.parameters.max_time_in_seconds = seconds

        collector = _GroupCollector(picks, cap)
        res = solver.Solve(m, collector)
    except Exception as e:
        return False, [], f"CP-SAT error: {e}"

    groups = sorted(set(collector.groups))
    if collector.capped:
        return False, groups, f"CP-SAT stopped after {cap} groups (solution cap)"
    if res in (_cp.OPTIMAL, _cp.INFEASIBLE):
        return True, groups, None
    if res == _cp.FEASIBLE:
        return False, groups, "CP-SAT stopped before enumerating every group (timebox)"
    if res == _cp.MODEL_INVALID:
        return False, groups, "CP-SAT rejected the model"
    return False, groups, "CP-SAT stopped before solution (timebox)"


def group_size_histogram(groups: Sequence[GroupKey]) -> Dict[int, int]:
    """Histogram of group sizes, for logging."""
    hist: Dict[int, int] = {}
    for g in groups:
        hist[len(g)] = hist.get(len(g), 0) + 1
    return hist
