# solver/cover_search.py
import sys
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from models import masks_disjoint

GroupKey = Tuple[int, ...]


@dataclass
class CoverSearchOutcome:
    groups: List[GroupKey] = field(default_factory=list)
    nodes: int = 0
    pruned: int = 0
    limit_hit: bool = False
    timed_out: bool = False

    @property
    def complete(self) -> bool:
        return not (self.limit_hit or self.timed_out)


def _ensure_recursion_headroom(depth: int) -> None:
    needed = depth + 200
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


def find_complement_groups(
    masks: Sequence[int],
    reference_mask: int,
    *,
    node_limit: Optional[int] = None,
    max_seconds: Optional[float] = None,
) -> CoverSearchOutcome:
    """Enumerate every group of rows whose masks are pairwise disjoint and
    together equal ``reference_mask``.

    The search starts once from every row and only ever extends a partial
    group with a higher row index, so each combination is built in ascending
    order.  A group is recorded as soon as its accumulated mask reaches the
    reference, and the branch keeps extending afterwards: an all-absent row
    never conflicts, so ``{complete group} + {empty row}`` is a distinct,
    equally valid result.

    ``node_limit`` caps the number of extension attempts and ``max_seconds``
    the wall-clock time; values ``<= 0`` (or ``None``) disable a guard.  When
    a guard fires the outcome holds whatever was found so far and
    ``complete`` is ``False``.
    """

    n = len(masks)
    outcome = CoverSearchOutcome()

    try:
        node_limit_cfg = int(node_limit) if node_limit is not None else 0
    except (TypeError, ValueError):
        node_limit_cfg = 0
    try:
        time_limit = float(max_seconds) if max_seconds is not None else None
    except (TypeError, ValueError):
        time_limit = None
    if time_limit is not None and time_limit <= 0:
        time_limit = None

    stats: Dict[str, object] = {
        "rows": n,
        "node_limit": node_limit_cfg,
        "time_limit": time_limit,
        "nodes": 0,
        "pruned": 0,
        "groups": 0,
        "limit_hit": False,
        "timed_out": False,
    }
    setattr(find_complement_groups, "last_stats", dict(stats))

    if n == 0 or reference_mask == 0:
        return outcome

    _ensure_recursion_headroom(n)

    deadline = (time.time() + time_limit) if time_limit is not None else None
    results: Set[GroupKey] = set()
    group: List[int] = []
    in_group: List[bool] = [False] * n

    def _budget_exhausted() -> bool:
        if node_limit_cfg > 0 and outcome.nodes >= node_limit_cfg:
            outcome.limit_hit = True
            return True
        if deadline is not None and time.time() >= deadline:
            outcome.timed_out = True
            return True
        return False

    def _try_extend(accumulated: int, candidate: int) -> None:
        if _budget_exhausted():
            return
        outcome.nodes += 1

        candidate_mask = masks[candidate]
        if accumulated & candidate_mask:
            outcome.pruned += 1
            return

        # disjoint, so xor == or
        new_mask = accumulated ^ candidate_mask
        group.append(candidate)
        in_group[candidate] = True

        if new_mask == reference_mask:
            results.add(tuple(sorted(group)))

        for other in range(candidate + 1, n):
            if outcome.limit_hit or outcome.timed_out:
                break
            if not in_group[other]:
                _try_extend(new_mask, other)

        in_group[candidate] = False
        group.pop()

    for start in range(n):
        if outcome.limit_hit or outcome.timed_out:
            break
        _try_extend(0, start)

    outcome.groups = sorted(results)
    stats.update({
        "nodes": outcome.nodes,
        "pruned": outcome.pruned,
        "groups": len(outcome.groups),
        "limit_hit": outcome.limit_hit,
        "timed_out": outcome.timed_out,
    })
    setattr(find_complement_groups, "last_stats", dict(stats))
    return outcome


def is_exact_cover(masks: Sequence[int], indices: Sequence[int], reference_mask: int) -> bool:
    """Check a group independently of the search: disjoint members, full union."""
    acc = 0
    for idx in indices:
        if not masks_disjoint(acc, masks[idx]):
            return False
        acc |= masks[idx]
    return acc == reference_mask
