"""
Unit Aggregation Tests

Tests verify:
- Readiness blend of 70% mean and 30% minimum
- Empty unit readiness is 0
- Risk rollups take the maximum level
- Open and critical alert counts per unit
"""

from datetime import datetime, timezone

from riskengine.aggregation.unit import summarize_units, unit_readiness
from riskengine.events.schemas import AlertInstance, AlertState, EngineState, entity_rule_key
from riskengine.rules.assessor import RiskLevel
from riskengine.rules.conditions import AlertSeverity, AlertType
from riskengine.scoring.schemas import PersonScores


NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_scores(person_id, unit_id, readiness, heat=RiskLevel.LOW, fatigue=RiskLevel.LOW, online=True):
    return PersonScores(
        person_id=person_id,
        unit_id=unit_id,
        is_online=online,
        timestamp=NOW,
        readiness_index=readiness,
        heat_risk=heat,
        fatigue_risk=fatigue,
    )


def make_alert(entity_id, rule_id, severity, state=AlertState.ACTIVE) -> AlertInstance:
    return AlertInstance(
        rule_id=rule_id,
        alert_type=AlertType.HEAT_STRESS,
        entity_id=entity_id,
        severity=severity,
        state=state,
        created_at=NOW,
    )


class TestUnitReadiness:
    """Test the mean/min blend."""

    def test_empty_is_zero(self):
        assert unit_readiness([]) == 0

    def test_single_member(self):
        assert unit_readiness([72]) == 72

    def test_two_members(self):
        """70 * 0.7 + 60 * 0.3 = 67."""
        assert unit_readiness([80, 60]) == 67

    def test_weakest_member_pulls_down(self):
        """70 * 0.7 + 30 * 0.3 = 58."""
        assert unit_readiness([90, 90, 30]) == 58

    def test_returns_int(self):
        assert isinstance(unit_readiness([81, 77]), int)


class TestSummarizeUnits:
    """Test unit summaries."""

    def create_state(self) -> EngineState:
        state = EngineState()
        critical = make_alert("A-1", "heat", AlertSeverity.CRITICAL)
        warning = make_alert("A-2", "hr-high", AlertSeverity.WARNING, state=AlertState.ACKNOWLEDGED)
        resolved = make_alert("B-1", "heat", AlertSeverity.EMERGENCY, state=AlertState.RESOLVED)

        for alert in (critical, warning, resolved):
            state.alerts[alert.id] = alert
        state.open_alerts[entity_rule_key("A-1", "heat")] = critical.id
        state.open_alerts[entity_rule_key("A-2", "hr-high")] = warning.id
        return state

    def create_scores(self):
        return [
            make_scores("A-1", "alpha", 80, heat=RiskLevel.CRITICAL),
            make_scores("A-2", "alpha", 60, fatigue=RiskLevel.MEDIUM, online=False),
            make_scores("B-1", "bravo", 90),
        ]

    def test_one_summary_per_unit(self):
        units = summarize_units(self.create_scores(), now=NOW)

        assert [u.unit_id for u in units] == ["alpha", "bravo"]
        alpha = units[0]
        assert alpha.personnel_count == 2
        assert alpha.online_count == 1
        assert alpha.readiness_index == 67
        assert alpha.last_update == NOW

    def test_risk_is_maximum(self):
        alpha, bravo = summarize_units(self.create_scores(), now=NOW)

        assert alpha.heat_risk == RiskLevel.CRITICAL
        assert alpha.fatigue_risk == RiskLevel.MEDIUM
        assert bravo.heat_risk == RiskLevel.LOW

    def test_alert_counts(self):
        alpha, bravo = summarize_units(self.create_scores(), self.create_state(), now=NOW)

        assert alpha.active_alerts == 2
        assert alpha.critical_alerts == 1
        # Resolved alerts are not counted
        assert bravo.active_alerts == 0
        assert bravo.critical_alerts == 0

    def test_unit_names(self):
        units = summarize_units(self.create_scores(), unit_names={"alpha": "Alpha Company"}, now=NOW)

        assert units[0].unit_name == "Alpha Company"
        assert units[1].unit_name == "bravo"

    def test_empty_input(self):
        assert summarize_units([], EngineState(), now=NOW) == []

    def test_missing_readiness_skipped(self):
        scores = [
            make_scores("A-1", "alpha", None),
            make_scores("A-2", "alpha", 70),
        ]
        units = summarize_units(scores, now=NOW)
        assert units[0].readiness_index == 70

    def test_all_readiness_missing(self):
        scores = [make_scores("A-1", "alpha", None), make_scores("A-2", "alpha", None)]
        units = summarize_units(scores, now=NOW)
        assert units[0].readiness_index == 0
