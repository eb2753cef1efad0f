"""
Alert Rule Engine — Tick-Driven Alert Lifecycle

Core architectural rule: EVENTS ARE TRANSITIONS, NOT STATES.
A tick reports a transition only when an alert changes state, never a
duplicate for the same sustained condition.

Per (entity, rule):
    inactive -> active        conditions first hold together (after sustain)
    active/acknowledged       persist while conditions hold
    open -> escalated         conditions persist past the escalation interval
    open -> resolved          conditions clear (auto) or operator resolves

The engine itself is stateless. Each tick takes the previous EngineState,
works on a copy (EngineState.evolve) and returns the new one, so a single state object is
the single writer for all of its (entity, rule) keys.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from riskengine.config import settings
from riskengine.exceptions import InvalidStateError, RuleConfigurationError
from riskengine.rules.conditions import (
    ActionType,
    AlertRule,
    compare,
    duration_reached,
    evaluate,
    validate_rule,
)

from .schemas import (
    AlertInstance,
    AlertState,
    AlertTransition,
    ConditionAccumulator,
    EngineState,
    Observation,
    RuleTracker,
    SkippedRule,
    TickResult,
    accumulator_key,
    entity_rule_key,
    observation_key,
    rule_of_accumulator_key,
    rule_of_tracker_key,
)

logger = logging.getLogger(__name__)


RuleInput = Union[AlertRule, Dict[str, Any]]


def _describe_conditions(rule: AlertRule, values: Dict[str, float]) -> str:
    parts = []
    for condition in rule.conditions:
        observed = values.get(condition.parameter)
        text = f"{condition.parameter} {condition.operator} {condition.value:g}"
        if observed is not None:
            text += f" (observed {observed:g})"
        if condition.duration > 0:
            text += f" for {condition.duration:g}s"
        parts.append(text)
    return "; ".join(parts)


class AlertRuleEngine:
    """
    Evaluates alert rules against observation streams.

    Usage:
        engine = AlertRuleEngine()
        result = engine.tick(observations, rules, state)
        state = result.state
        state = engine.acknowledge(state, alert_id, note="on it")
    """

    def __init__(
        self,
        tick_interval: Optional[float] = None,
        escalation_after: Optional[float] = None,
        max_escalation_level: Optional[int] = None,
        auto_resolve: Optional[bool] = None,
    ):
        """
        Initialize the engine.

        Args:
            tick_interval: Seconds added to a holding condition per tick
            escalation_after: Default seconds before an open alert escalates
            max_escalation_level: Escalation stops at this level
            auto_resolve: Resolve open alerts when their conditions clear

        Unset arguments fall back to riskengine.config.settings.
        """
        self.tick_interval = (
            tick_interval if tick_interval is not None else settings.TICK_INTERVAL_SECONDS
        )
        self.escalation_after = (
            escalation_after if escalation_after is not None else settings.ESCALATION_AFTER_SECONDS
        )
        self.max_escalation_level = (
            max_escalation_level if max_escalation_level is not None else settings.MAX_ESCALATION_LEVEL
        )
        self.auto_resolve = auto_resolve if auto_resolve is not None else settings.AUTO_RESOLVE

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(
        self,
        observations: Iterable[Observation],
        rules: Iterable[RuleInput],
        state: Optional[EngineState] = None,
        now: Optional[datetime] = None,
        interval: Optional[float] = None,
    ) -> TickResult:
        """
        Run one evaluation tick.

        Args:
            observations: Ordered batch; later readings of the same
                (entity, parameter) win
            rules: Rule definitions (models or raw dicts)
            state: State returned by the previous tick (None on first tick)
            now: Evaluation timestamp (defaults to now, UTC)
            interval: Seconds since the previous tick (defaults to
                tick_interval)

        Returns:
            TickResult with the new state, every transition since the
            previous tick and any rules skipped as malformed.
        """
        now = now or datetime.now(timezone.utc)
        interval = self.tick_interval if interval is None else interval

        state = (state or EngineState()).evolve()
        transitions = list(state.pending_transitions)
        state.pending_transitions = []

        for observation in observations:
            key = observation_key(observation.entity_id, observation.parameter)
            state.latest_values[key] = observation.value

        active_rules, skipped = self._load_rules(rules)
        self._drop_unevaluated(state, {rule.id for rule in active_rules})
        entities = state.entities()

        for rule in active_rules:
            for entity_id in entities:
                transitions.extend(
                    self._evaluate_rule(state, rule, entity_id, now, interval)
                )

        state.last_tick_at = now

        if transitions:
            logger.info(
                f"[AlertEngine] Tick at {now.isoformat()}: {len(transitions)} transition(s), "
                f"{len(state.open_alerts)} open alert(s)"
            )

        return TickResult(
            state=state,
            transitions=transitions,
            skipped_rules=skipped,
            evaluated_at=now,
        )

    def _load_rules(self, rules: Iterable[RuleInput]):
        """Validate rules, dropping malformed and disabled ones."""
        active: List[AlertRule] = []
        skipped: List[SkippedRule] = []

        for raw in rules:
            try:
                rule = validate_rule(raw)
            except RuleConfigurationError as e:
                logger.warning(f"[AlertEngine] Skipping rule this tick: {e}")
                skipped.append(SkippedRule(rule_id=e.rule_id, reason=str(e)))
                continue
            if rule.enabled:
                active.append(rule)

        # Higher priority first so its transitions are reported first
        active.sort(key=lambda r: r.priority, reverse=True)
        return active, skipped

    @staticmethod
    def _drop_unevaluated(state: EngineState, rule_ids) -> None:
        """
        Forget duration and edge tracking for rules not evaluated this tick.

        A skipped or disabled rule saw none of this tick's values, so its
        continuity is broken and it starts over when evaluated again.
        Open alerts of such rules stay open, untouched, until the rule is
        evaluated again or an operator resolves them.
        """
        for key in [k for k in state.accumulators if rule_of_accumulator_key(k) not in rule_ids]:
            del state.accumulators[key]
        for key in [k for k in state.trackers if rule_of_tracker_key(k) not in rule_ids]:
            del state.trackers[key]

    def _evaluate_rule(
        self,
        state: EngineState,
        rule: AlertRule,
        entity_id: str,
        now: datetime,
        interval: float,
    ) -> List[AlertTransition]:
        """Advance accumulators and the lifecycle for one (entity, rule)."""
        satisfied = True
        values: Dict[str, float] = {}

        # Every condition's accumulator advances, even after one fails
        for index, condition in enumerate(rule.conditions):
            key = accumulator_key(entity_id, rule.id, index)
            value = state.latest(entity_id, condition.parameter)
            holds = value is not None and compare(value, condition.operator, condition.value)

            if holds:
                accumulator = state.accumulators.get(key)
                if accumulator is None:
                    accumulator = ConditionAccumulator(holding=True, elapsed=0.0)
                else:
                    accumulator.elapsed += interval
                state.accumulators[key] = accumulator
                met = evaluate(
                    value, condition.operator, condition.value,
                    condition.duration, accumulator.elapsed,
                )
                values[condition.parameter] = value
            else:
                state.accumulators.pop(key, None)
                met = False

            logger.debug(
                f"[AlertEngine] {entity_id}/{rule.id}[{index}]: holds={holds} met={met}"
            )
            satisfied = satisfied and met

        tracker_key = entity_rule_key(entity_id, rule.id)
        tracker = state.trackers.get(tracker_key) or RuleTracker()
        open_id = state.open_alerts.get(tracker_key)
        alert = state.alerts.get(open_id) if open_id else None

        transitions: List[AlertTransition] = []

        if alert is None:
            # Edge-triggered: only the tick where the AND first becomes true
            if satisfied and not tracker.satisfied:
                alert = self._create_alert(state, rule, entity_id, values, now)
                tracker.since_escalation = 0.0
                transitions.append(self._transition(
                    alert, None, now, "Conditions met",
                    [a for a in rule.actions if a.type != ActionType.ESCALATE],
                ))
        elif satisfied:
            tracker.since_escalation += interval
            escalate_after = rule.escalate_after or self.escalation_after
            if (
                duration_reached(tracker.since_escalation, escalate_after)
                and alert.escalation_level < self.max_escalation_level
            ):
                previous = alert.state
                self._escalate(alert, now)
                tracker.since_escalation = 0.0
                transitions.append(self._transition(
                    alert, previous, now,
                    f"Condition persisted {escalate_after:g}s past last escalation",
                    [a for a in rule.actions if a.type == ActionType.ESCALATE],
                ))
        elif self.auto_resolve:
            previous = alert.state
            alert.state = AlertState.RESOLVED
            alert.resolved_at = now
            alert.auto_resolved = True
            state.open_alerts.pop(tracker_key, None)
            transitions.append(self._transition(alert, previous, now, "Conditions cleared"))
            logger.info(f"[AlertEngine] {entity_id}: {rule.id} auto-resolved at {now.isoformat()}")

        tracker.satisfied = satisfied
        if tracker.satisfied or tracker_key in state.open_alerts:
            state.trackers[tracker_key] = tracker
        else:
            state.trackers.pop(tracker_key, None)

        return transitions

    def _create_alert(
        self,
        state: EngineState,
        rule: AlertRule,
        entity_id: str,
        values: Dict[str, float],
        now: datetime,
    ) -> AlertInstance:
        alert = AlertInstance(
            rule_id=rule.id,
            alert_type=rule.alert_type,
            entity_id=entity_id,
            severity=rule.severity,
            title=rule.name or rule.id,
            message=_describe_conditions(rule, values),
            data=dict(values),
            created_at=now,
        )
        state.alerts[alert.id] = alert
        state.open_alerts[entity_rule_key(entity_id, rule.id)] = alert.id
        logger.warning(
            f"[AlertEngine] {entity_id}: {rule.id} ACTIVE ({alert.severity.value}) "
            f"at {now.isoformat()}: {alert.message}"
        )
        return alert

    def _escalate(self, alert: AlertInstance, now: datetime) -> None:
        alert.state = AlertState.ESCALATED
        alert.escalation_level += 1
        alert.severity = alert.severity.step_up()
        alert.escalated_at = now
        logger.warning(
            f"[AlertEngine] {alert.entity_id}: {alert.rule_id} ESCALATED to level "
            f"{alert.escalation_level} ({alert.severity.value})"
        )

    @staticmethod
    def _transition(
        alert: AlertInstance,
        from_state: Optional[AlertState],
        at: datetime,
        reason: str,
        actions=None,
    ) -> AlertTransition:
        return AlertTransition(
            alert_id=alert.id,
            rule_id=alert.rule_id,
            entity_id=alert.entity_id,
            from_state=from_state,
            to_state=alert.state,
            severity=alert.severity,
            escalation_level=alert.escalation_level,
            at=at,
            reason=reason,
            actions=list(actions or []),
        )

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def acknowledge(
        self,
        state: EngineState,
        alert_id: str,
        note: Optional[str] = None,
        by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EngineState:
        """
        Acknowledge an open alert.

        Duration tracking and escalation continue; escalation_level is
        not reset.

        Raises:
            InvalidStateError: alert missing or already resolved
        """
        self._require_open(state, alert_id)
        now = now or datetime.now(timezone.utc)

        new_state = state.evolve()
        alert = new_state.alerts[alert_id]
        previous = alert.state
        alert.state = AlertState.ACKNOWLEDGED
        alert.acknowledged_at = now
        alert.acknowledged_by = by
        alert.acknowledgement_note = note

        new_state.pending_transitions.append(
            self._transition(alert, previous, now, note or "Acknowledged by operator")
        )
        logger.info(f"[AlertEngine] {alert.entity_id}: alert {alert_id} acknowledged by {by or 'operator'}")
        return new_state

    def resolve(
        self,
        state: EngineState,
        alert_id: str,
        resolution_reason: str,
        by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EngineState:
        """
        Resolve an open alert on operator request.

        The alert is never reopened; if its conditions clear and trigger
        again a new instance is created.

        Raises:
            InvalidStateError: alert missing or already resolved
        """
        self._require_open(state, alert_id)
        now = now or datetime.now(timezone.utc)

        new_state = state.evolve()
        alert = new_state.alerts[alert_id]
        previous = alert.state
        alert.state = AlertState.RESOLVED
        alert.resolved_at = now
        alert.resolved_by = by
        alert.resolution_reason = resolution_reason
        alert.auto_resolved = False
        new_state.open_alerts.pop(entity_rule_key(alert.entity_id, alert.rule_id), None)

        new_state.pending_transitions.append(
            self._transition(alert, previous, now, resolution_reason)
        )
        logger.info(f"[AlertEngine] {alert.entity_id}: alert {alert_id} resolved ({resolution_reason})")
        return new_state

    @staticmethod
    def _require_open(state: EngineState, alert_id: str) -> AlertInstance:
        alert = state.alerts.get(alert_id)
        if alert is None:
            raise InvalidStateError(alert_id, "does not exist")
        if not alert.is_open:
            raise InvalidStateError(alert_id, f"is {alert.state.value}")
        return alert


def open_alerts(state: EngineState, entity_id: Optional[str] = None) -> List[AlertInstance]:
    """Open alerts in a state, optionally for one entity."""
    alerts = [state.alerts[alert_id] for alert_id in state.open_alerts.values()]
    if entity_id is not None:
        alerts = [a for a in alerts if a.entity_id == entity_id]
    return alerts
