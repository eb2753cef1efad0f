"""
Rules Module — Risk Classification + Alert Conditions

Public API:
- RiskLevel: low < medium < high < critical
- heat_risk / environmental_risk / fatigue_risk: Score-to-risk classifiers
- AlertRule / AlertCondition: Rule configuration schemas
- evaluate: Stateless threshold/duration condition check
"""

from .assessor import (
    RiskLevel,
    max_risk,
    heat_risk,
    environmental_risk,
    fatigue_risk,
    environmental_severity,
    physiological_strain,
    classify_score,
)
from .conditions import (
    Operator,
    AlertSeverity,
    AlertType,
    ActionType,
    AlertAction,
    AlertCondition,
    AlertRule,
    parse_operator,
    validate_rule,
    compare,
    duration_reached,
    evaluate,
)

__all__ = [
    "RiskLevel",
    "max_risk",
    "heat_risk",
    "environmental_risk",
    "fatigue_risk",
    "environmental_severity",
    "physiological_strain",
    "classify_score",
    "Operator",
    "AlertSeverity",
    "AlertType",
    "ActionType",
    "AlertAction",
    "AlertCondition",
    "AlertRule",
    "parse_operator",
    "validate_rule",
    "compare",
    "duration_reached",
    "evaluate",
]
