"""
Alert Conditions & Rules — Threshold Evaluation

Rules are configuration owned and versioned outside the engine. They are
accepted loosely (operator as a raw string, any float threshold) so that
a malformed rule reaches the engine, is reported, and is skipped for one
tick instead of failing the whole batch at parse time.

evaluate() is stateless: the sustained-duration accumulator is kept by
the alert engine and passed in explicitly.
"""

import math
import operator as op
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from riskengine.exceptions import RuleConfigurationError


class Operator(str, Enum):
    """Comparison applied as `value <op> threshold`."""
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    EQ = "eq"
    NEQ = "neq"


_COMPARATORS: Dict[Operator, Callable[[float, float], bool]] = {
    Operator.GT: op.gt,
    Operator.LT: op.lt,
    Operator.GTE: op.ge,
    Operator.LTE: op.le,
    Operator.EQ: op.eq,
    Operator.NEQ: op.ne,
}


class AlertSeverity(str, Enum):
    """Alert severity, ordered info < warning < critical < emergency."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def step_up(self) -> "AlertSeverity":
        """Next band up, capped at EMERGENCY."""
        return _SEVERITY_ORDER[min(self.rank + 1, len(_SEVERITY_ORDER) - 1)]


_SEVERITY_ORDER = [
    AlertSeverity.INFO,
    AlertSeverity.WARNING,
    AlertSeverity.CRITICAL,
    AlertSeverity.EMERGENCY,
]


class AlertType(str, Enum):
    """What an alert is about."""
    HEAT_STRESS = "heat_stress"
    FATIGUE = "fatigue"
    VITAL_ABNORMAL = "vital_abnormal"
    DEVICE = "device"
    ENVIRONMENTAL = "environmental"


class ActionType(str, Enum):
    NOTIFY = "notify"
    ESCALATE = "escalate"
    LOG = "log"


class AlertAction(BaseModel):
    """Something the hosting service should do when a rule fires."""
    type: ActionType
    target: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class AlertCondition(BaseModel):
    """
    One threshold check against the (entity, parameter) stream.

    duration is the sustain time in seconds; 0 means instantaneous.
    """
    parameter: str = Field(..., min_length=1)
    operator: str = Field(..., description="One of gt, lt, gte, lte, eq, neq")
    value: float = Field(..., description="Threshold")
    duration: float = Field(0.0, ge=0, description="Required sustain duration (seconds)")


class AlertRule(BaseModel):
    """
    AND-combination of conditions that raises one alert per entity.
    """
    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    enabled: bool = True
    conditions: List[AlertCondition] = Field(..., min_length=1)
    actions: List[AlertAction] = Field(default_factory=list)
    priority: int = 0
    severity: AlertSeverity = AlertSeverity.WARNING
    alert_type: AlertType = AlertType.VITAL_ABNORMAL
    escalate_after: Optional[float] = Field(
        None, gt=0,
        description="Seconds a condition may persist before escalating; engine default when None"
    )


def parse_operator(raw: Union[str, Operator], rule_id: Optional[str] = None) -> Operator:
    """
    Resolve a raw operator string.

    Raises:
        RuleConfigurationError: unknown operator
    """
    try:
        return Operator(raw)
    except ValueError:
        raise RuleConfigurationError(rule_id, f"unknown operator '{raw}'") from None


def validate_rule(rule: Union[AlertRule, Dict[str, Any]]) -> AlertRule:
    """
    Parse and check a rule definition.

    Returns:
        The validated AlertRule

    Raises:
        RuleConfigurationError: schema failure, unknown operator or
            non-finite threshold
    """
    if isinstance(rule, dict):
        try:
            rule = AlertRule.model_validate(rule)
        except ValidationError as e:
            raise RuleConfigurationError(
                rule.get("id"), f"invalid definition ({e.error_count()} errors)"
            ) from e

    for index, condition in enumerate(rule.conditions):
        parse_operator(condition.operator, rule.id)
        if not math.isfinite(condition.value):
            raise RuleConfigurationError(
                rule.id, f"condition {index} has non-finite threshold {condition.value}"
            )
        if not math.isfinite(condition.duration):
            raise RuleConfigurationError(
                rule.id, f"condition {index} has non-finite duration {condition.duration}"
            )
    return rule


# Absolute slack when comparing summed tick intervals against a duration
DURATION_TOLERANCE = 1e-9


def duration_reached(accumulated: float, required: float) -> bool:
    """accumulated >= required, allowing for float drift in summed intervals."""
    return accumulated >= required or math.isclose(
        accumulated, required, rel_tol=DURATION_TOLERANCE, abs_tol=DURATION_TOLERANCE
    )


def compare(value: float, operator: Union[str, Operator], threshold: float) -> bool:
    """Instantaneous `value <operator> threshold`."""
    return _COMPARATORS[parse_operator(operator)](value, threshold)


def evaluate(
    value: float,
    operator: Union[str, Operator],
    threshold: float,
    required_duration: float = 0.0,
    accumulated_duration: float = 0.0,
) -> bool:
    """
    Evaluate one condition.

    With required_duration > 0 the comparison must hold now AND have held
    for at least required_duration; otherwise only the comparison counts.

    Raises:
        RuleConfigurationError: unknown operator or non-finite threshold
    """
    if not math.isfinite(threshold):
        raise RuleConfigurationError(None, f"non-finite threshold {threshold}")

    condition_met = compare(value, operator, threshold)

    if required_duration > 0:
        return condition_met and duration_reached(accumulated_duration, required_duration)
    return condition_met
