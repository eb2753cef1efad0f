"""
Condition Evaluator Tests

Tests verify:
- Every operator
- required_duration = 0 ignores the accumulated duration
- Sustained conditions need both the comparison and the duration
- Malformed definitions raise RuleConfigurationError
- Severity ordering and step-up
"""

import math

import pytest

from riskengine.exceptions import RuleConfigurationError
from riskengine.rules.conditions import (
    AlertCondition,
    AlertRule,
    AlertSeverity,
    Operator,
    duration_reached,
    evaluate,
    parse_operator,
    validate_rule,
)


class TestOperators:
    """Test instantaneous comparisons."""

    @pytest.mark.parametrize("operator,value,expected", [
        ("gt", 11, True), ("gt", 10, False),
        ("lt", 9, True), ("lt", 10, False),
        ("gte", 10, True), ("gte", 9, False),
        ("lte", 10, True), ("lte", 11, False),
        ("eq", 10, True), ("eq", 10.5, False),
        ("neq", 10.5, True), ("neq", 10, False),
    ])
    def test_operator(self, operator, value, expected):
        assert evaluate(value, operator, 10) is expected

    def test_enum_accepted(self):
        assert evaluate(11, Operator.GT, 10) is True

    def test_unknown_operator_raises(self):
        with pytest.raises(RuleConfigurationError):
            evaluate(11, "between", 10)

    def test_parse_operator_reports_rule(self):
        with pytest.raises(RuleConfigurationError) as exc_info:
            parse_operator(">>", rule_id="r-1")
        assert exc_info.value.rule_id == "r-1"


class TestDuration:
    """Test sustain-duration semantics."""

    def test_zero_duration_is_instantaneous(self):
        for accumulated in [0, 5, 999]:
            assert evaluate(10, "gt", 5, 0, accumulated) is True
            assert evaluate(1, "gt", 5, 0, accumulated) is False

    def test_duration_not_yet_met(self):
        assert evaluate(10, "gt", 5, required_duration=30, accumulated_duration=29) is False

    def test_duration_met(self):
        assert evaluate(10, "gt", 5, required_duration=30, accumulated_duration=30) is True

    def test_comparison_must_hold_now(self):
        assert evaluate(1, "gt", 5, required_duration=30, accumulated_duration=120) is False

    def test_summed_fractional_intervals_reach_duration(self):
        accumulated = 0.7 + 0.7 + 0.7
        assert accumulated < 2.1
        assert duration_reached(accumulated, 2.1) is True
        assert evaluate(10, "gt", 5, required_duration=2.1, accumulated_duration=accumulated) is True

    def test_duration_reached_short(self):
        assert duration_reached(1.4, 2.1) is False

    def test_non_finite_threshold_raises(self):
        with pytest.raises(RuleConfigurationError):
            evaluate(10, "gt", math.nan)
        with pytest.raises(RuleConfigurationError):
            evaluate(10, "gt", math.inf)


class TestValidateRule:
    """Test rule definition checks."""

    def test_valid_dict(self):
        rule = validate_rule({
            "id": "hr-high",
            "conditions": [{"parameter": "heart_rate", "operator": "gt", "value": 120}],
        })
        assert isinstance(rule, AlertRule)
        assert rule.enabled is True
        assert rule.severity == AlertSeverity.WARNING

    def test_bad_operator_in_dict(self):
        with pytest.raises(RuleConfigurationError) as exc_info:
            validate_rule({
                "id": "bad",
                "conditions": [{"parameter": "spo2", "operator": "between", "value": 90}],
            })
        assert exc_info.value.rule_id == "bad"

    def test_schema_failure(self):
        with pytest.raises(RuleConfigurationError) as exc_info:
            validate_rule({"id": "empty", "conditions": []})
        assert exc_info.value.rule_id == "empty"

    def test_non_finite_threshold_in_model(self):
        rule = AlertRule(
            id="nan-rule",
            conditions=[AlertCondition(parameter="spo2", operator="lt", value=float("nan"))],
        )
        with pytest.raises(RuleConfigurationError):
            validate_rule(rule)


class TestSeverity:
    """Test alert severity ordering."""

    def test_rank(self):
        assert AlertSeverity.INFO.rank < AlertSeverity.WARNING.rank
        assert AlertSeverity.WARNING.rank < AlertSeverity.CRITICAL.rank
        assert AlertSeverity.CRITICAL.rank < AlertSeverity.EMERGENCY.rank

    def test_step_up(self):
        assert AlertSeverity.WARNING.step_up() == AlertSeverity.CRITICAL
        assert AlertSeverity.EMERGENCY.step_up() == AlertSeverity.EMERGENCY
