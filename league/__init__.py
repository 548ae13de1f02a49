"""
Table-tennis league core: players, tournaments, single-elimination brackets
and the per-category points ranking.
"""
