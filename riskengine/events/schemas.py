"""
Alert Lifecycle Schemas — Observations, Instances, Transitions, State

EngineState is the only thing the alert engine carries between ticks.
It is passed in and handed back explicitly; nothing lives in module
globals, so any number of independent states (one per shard) can coexist.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from riskengine.rules.conditions import AlertAction, AlertSeverity, AlertType


KEY_SEPARATOR = "|"


def entity_rule_key(entity_id: str, rule_id: str) -> str:
    return f"{entity_id}{KEY_SEPARATOR}{rule_id}"


def accumulator_key(entity_id: str, rule_id: str, condition_index: int) -> str:
    return f"{entity_id}{KEY_SEPARATOR}{rule_id}{KEY_SEPARATOR}{condition_index}"


def observation_key(entity_id: str, parameter: str) -> str:
    return f"{entity_id}{KEY_SEPARATOR}{parameter}"


def rule_of_tracker_key(key: str) -> str:
    return key.split(KEY_SEPARATOR, 1)[1]


def rule_of_accumulator_key(key: str) -> str:
    return key.split(KEY_SEPARATOR, 1)[1].rsplit(KEY_SEPARATOR, 1)[0]


class AlertState(str, Enum):
    """Alert lifecycle states. RESOLVED is terminal."""
    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    ESCALATED = "escalated"
    RESOLVED = "resolved"

    @property
    def is_open(self) -> bool:
        return self is not AlertState.RESOLVED


class Observation(BaseModel):
    """One numeric reading on an (entity, parameter) stream."""
    entity_id: str = Field(..., min_length=1)
    parameter: str = Field(..., min_length=1)
    value: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('timestamp')
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class AlertInstance(BaseModel):
    """
    One occurrence of a rule firing for an entity.

    Never deleted: resolution is a state. escalation_level only grows.
    """
    id: str = Field(default_factory=lambda: str(uuid4()))
    rule_id: str
    alert_type: AlertType
    entity_id: str
    severity: AlertSeverity
    state: AlertState = AlertState.ACTIVE
    escalation_level: int = Field(0, ge=0)
    title: str = ""
    message: str = ""
    data: Dict[str, float] = Field(default_factory=dict)

    created_at: datetime
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    acknowledgement_note: Optional[str] = None
    escalated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolution_reason: Optional[str] = None
    auto_resolved: bool = False

    @property
    def is_open(self) -> bool:
        return self.state.is_open


class AlertTransition(BaseModel):
    """A single state change, reported to the hosting service."""
    alert_id: str
    rule_id: str
    entity_id: str
    from_state: Optional[AlertState] = Field(None, description="None when the alert was created")
    to_state: AlertState
    severity: AlertSeverity
    escalation_level: int = 0
    at: datetime
    reason: str = ""
    actions: List[AlertAction] = Field(default_factory=list)


class ConditionAccumulator(BaseModel):
    """How long one condition's comparison has held continuously."""
    holding: bool = False
    elapsed: float = Field(0.0, ge=0, description="Seconds held since first true tick")


class RuleTracker(BaseModel):
    """Edge-detection memory for one (entity, rule)."""
    satisfied: bool = False
    since_escalation: float = Field(0.0, ge=0, description="Seconds persisted since creation or last escalation")


class EngineState(BaseModel):
    """
    Everything the alert engine retains across ticks.

    Keys are composite strings (see *_key helpers) so the state
    serializes to JSON as-is.
    """
    latest_values: Dict[str, float] = Field(default_factory=dict)
    accumulators: Dict[str, ConditionAccumulator] = Field(default_factory=dict)
    trackers: Dict[str, RuleTracker] = Field(default_factory=dict)
    alerts: Dict[str, AlertInstance] = Field(default_factory=dict)
    open_alerts: Dict[str, str] = Field(
        default_factory=dict, description="entity|rule -> id of the open alert"
    )
    pending_transitions: List[AlertTransition] = Field(
        default_factory=list, description="Operator transitions not yet reported by a tick"
    )
    last_tick_at: Optional[datetime] = None

    def entities(self) -> List[str]:
        """Entities that have reported at least one observation."""
        seen = {key.split(KEY_SEPARATOR, 1)[0] for key in self.latest_values}
        return sorted(seen)

    def latest(self, entity_id: str, parameter: str) -> Optional[float]:
        return self.latest_values.get(observation_key(entity_id, parameter))

    def evolve(self) -> "EngineState":
        """
        Copy for the next tick or operator action.

        Mutable parts (accumulators, trackers, open alerts) are copied;
        resolved alerts are terminal and shared with this state.
        """
        alerts = dict(self.alerts)
        for alert_id in self.open_alerts.values():
            alerts[alert_id] = alerts[alert_id].model_copy()
        return self.model_copy(update={
            "latest_values": dict(self.latest_values),
            "accumulators": {k: v.model_copy() for k, v in self.accumulators.items()},
            "trackers": {k: v.model_copy() for k, v in self.trackers.items()},
            "alerts": alerts,
            "open_alerts": dict(self.open_alerts),
            "pending_transitions": list(self.pending_transitions),
        })


class SkippedRule(BaseModel):
    """A rule left out of a tick because its definition is malformed."""
    rule_id: Optional[str] = None
    reason: str


class TickResult(BaseModel):
    """Output of one evaluation tick."""
    state: EngineState
    transitions: List[AlertTransition] = Field(default_factory=list)
    skipped_rules: List[SkippedRule] = Field(default_factory=list)
    evaluated_at: datetime

    @property
    def alerts(self) -> List[AlertInstance]:
        return list(self.state.alerts.values())

    @property
    def open_alerts(self) -> List[AlertInstance]:
        return [self.state.alerts[alert_id] for alert_id in self.state.open_alerts.values()]

    def summary(self) -> Dict[str, Any]:
        return {
            "evaluated_at": self.evaluated_at.isoformat(),
            "transitions": len(self.transitions),
            "open_alerts": len(self.state.open_alerts),
            "skipped_rules": [s.rule_id for s in self.skipped_rules],
        }
