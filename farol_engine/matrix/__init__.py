"""
Matrix layer — orchestration over schools, periods and targets.

Modules
-------
builder  ``build_matrix()`` / ``build_matrix_from_bundle()``: one row per
         school, one cell per metric.
summary  Network-wide and regional KPI cells.
ranking  Gap-to-target leaderboards, attention list, farol distribution.
"""
