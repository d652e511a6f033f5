"""Complementary-row search engines (backtracking and CP-SAT) and the orchestrator."""
