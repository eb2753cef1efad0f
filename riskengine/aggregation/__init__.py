"""
Aggregation Module — Person to Unit Rollups

Public API:
- unit_readiness: Mean/minimum blended unit readiness
- summarize_units: Per-unit UnitSummary from person scores and alert state
"""

from .unit import UnitSummary, unit_readiness, summarize_units, MEAN_WEIGHT, MIN_WEIGHT

__all__ = [
    "UnitSummary",
    "unit_readiness",
    "summarize_units",
    "MEAN_WEIGHT",
    "MIN_WEIGHT",
]
