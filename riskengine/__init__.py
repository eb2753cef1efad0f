"""
Readiness Risk Engine

Turns physiological and environmental telemetry into risk scores,
readiness indices and alert state transitions.
"""

from .cycle import CycleResult, EvaluationCycle
from .exceptions import (
    DataQualityError,
    InvalidStateError,
    RiskEngineError,
    RuleConfigurationError,
)

__version__ = "1.0.0"

__all__ = [
    "CycleResult",
    "EvaluationCycle",
    "DataQualityError",
    "InvalidStateError",
    "RiskEngineError",
    "RuleConfigurationError",
]
