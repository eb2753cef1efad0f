"""
Scoring Module — Numeric Models

Public API:
- Sample schemas: VitalSample, SleepSample, RecoverySample, EnvironmentSample
- Physiological models: sleep_score, recovery_score, fatigue_score,
  readiness_index, max_heart_rate, vital_status
- Environmental models: heat_index, wbgt, enrich_environment,
  compute_environment_frame
- PersonScorer: Per-person score orchestrator
"""

from .schemas import (
    VitalSample,
    SleepSample,
    RecoverySample,
    EnvironmentSample,
    Location,
    VitalStatus,
    PersonSnapshot,
    PersonScores,
)
from .calculator import (
    round_half_up,
    sleep_score,
    recovery_score,
    recovery_recommendation,
    fatigue_score,
    readiness_index,
    max_heart_rate,
    heart_rate_percent_of_max,
    vital_status,
)
from .environment import heat_index, wbgt, enrich_environment, compute_environment_frame
from .engine import PersonScorer

__all__ = [
    "VitalSample",
    "SleepSample",
    "RecoverySample",
    "EnvironmentSample",
    "Location",
    "VitalStatus",
    "PersonSnapshot",
    "PersonScores",
    "round_half_up",
    "sleep_score",
    "recovery_score",
    "recovery_recommendation",
    "fatigue_score",
    "readiness_index",
    "max_heart_rate",
    "heart_rate_percent_of_max",
    "vital_status",
    "heat_index",
    "wbgt",
    "enrich_environment",
    "compute_environment_frame",
    "PersonScorer",
]
