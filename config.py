# config.py
import os

# ======= Backtracking search guards =======
# A limit <= 0 disables the guard; the search is then exhaustive.
SEARCH_NODE_LIMIT  = int(os.getenv("CF_SEARCH_NODE_LIMIT", "5000000"))
SEARCH_MAX_SECONDS = float(os.getenv("CF_SEARCH_MAX_SECONDS", "0"))

# ======= Engine selection =======
# "backtracking" (default) or "cp_sat"
ENGINE = os.getenv("CF_ENGINE", "backtracking").strip().lower()

# Re-run the enumeration with CP-SAT when the backtracking guards fire.
CP_RESCUE = int(os.getenv("CF_CP_RESCUE", "1")) != 0

# Compare a complete backtracking run against CP-SAT (small inputs only).
CROSS_CHECK          = int(os.getenv("CF_CROSS_CHECK", "0")) != 0
CROSS_CHECK_MAX_ROWS = int(os.getenv("CF_CROSS_CHECK_MAX_ROWS", "24"))

# ======= CP-SAT knobs =======
CP_MAX_SECONDS   = float(os.getenv("CF_CP_MAX_SECONDS", "30"))
CP_MAX_SOLUTIONS = int(os.getenv("CF_CP_MAX_SOLUTIONS", "100000"))
CP_ISOLATE       = int(os.getenv("CF_CP_ISOLATE", "1")) != 0
MAX_MEMORY_MB    = int(os.getenv("CF_MAX_MEMORY_MB", "2048"))

# ======= Output names =======
RESULTS_OUT  = os.getenv("CF_RESULTS_OUT", "results.txt")
RESULTS_HTML = os.getenv("CF_RESULTS_HTML", "results_view.html")

class CFG:
    SEARCH_NODE_LIMIT  = SEARCH_NODE_LIMIT
    SEARCH_MAX_SECONDS = SEARCH_MAX_SECONDS

    ENGINE    = ENGINE
    CP_RESCUE = CP_RESCUE

    CROSS_CHECK          = CROSS_CHECK
    CROSS_CHECK_MAX_ROWS = CROSS_CHECK_MAX_ROWS

    CP_MAX_SECONDS   = CP_MAX_SECONDS
    CP_MAX_SOLUTIONS = CP_MAX_SOLUTIONS
    CP_ISOLATE       = CP_ISOLATE
    MAX_MEMORY_MB    = MAX_MEMORY_MB

    RESULTS_OUT  = RESULTS_OUT
    RESULTS_HTML = RESULTS_HTML

__all__ = ["CFG"]
