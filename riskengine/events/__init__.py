"""
Events Module — Alert Lifecycle State Machine

Public API:
- AlertRuleEngine: Tick-driven, transition-based alert evaluation
- EngineState: Explicit cross-tick state (accumulators, alerts)
- Observation / AlertInstance / AlertTransition / TickResult
"""

from .engine import AlertRuleEngine, open_alerts
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
)

__all__ = [
    "AlertRuleEngine",
    "open_alerts",
    "AlertInstance",
    "AlertState",
    "AlertTransition",
    "ConditionAccumulator",
    "EngineState",
    "Observation",
    "RuleTracker",
    "SkippedRule",
    "TickResult",
    "accumulator_key",
    "entity_rule_key",
    "observation_key",
]
