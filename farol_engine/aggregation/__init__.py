"""
Aggregation layer — reduce one entity's records for a period to one value.

Modules
-------
aggregators  Per-metric reductions (sum-first, mean, OR, all-of, worst-of)
             returning a classified ``Aggregate``.
series       Per-fortnight / per-month buckets for dashboard charts.
"""
