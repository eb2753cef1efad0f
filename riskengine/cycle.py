"""
Evaluation Cycle — One Tick of the Whole Engine

scores -> derived observations -> alert rules -> unit rollups

Derived scores are fed back as observations on the person's stream so
rules can be written against them (e.g. readiness_index lt 50).
Ordinal risk levels are fed as their rank (low=0 ... critical=3).
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from riskengine.aggregation.unit import UnitSummary, summarize_units
from riskengine.events.engine import AlertRuleEngine, RuleInput
from riskengine.events.schemas import EngineState, Observation, TickResult
from riskengine.scoring.engine import PersonScorer
from riskengine.scoring.schemas import PersonScores, PersonSnapshot

logger = logging.getLogger(__name__)


# Observation parameter names for derived scores
DERIVED_PARAMETERS = (
    "readiness_index",
    "fatigue_score",
    "recovery_score",
    "sleep_score",
    "wbgt",
    "heat_index",
)
HEAT_RISK_PARAMETER = "heat_risk"
VITAL_STATUS_PARAMETER = "vital_status"


class CycleResult(BaseModel):
    """Everything one evaluation cycle produces."""
    evaluated_at: datetime
    scores: Dict[str, PersonScores] = Field(default_factory=dict)
    tick: TickResult
    units: List[UnitSummary] = Field(default_factory=list)

    @property
    def state(self) -> EngineState:
        return self.tick.state


def derived_observations(scores: PersonScores, now: datetime) -> List[Observation]:
    """Turn a person's scores into observations on their own stream."""
    observations = []
    for parameter in DERIVED_PARAMETERS:
        value = getattr(scores, parameter)
        if value is not None:
            observations.append(Observation(
                entity_id=scores.person_id, parameter=parameter, value=float(value), timestamp=now,
            ))
    if scores.heat_risk is not None:
        observations.append(Observation(
            entity_id=scores.person_id, parameter=HEAT_RISK_PARAMETER,
            value=float(scores.heat_risk.rank), timestamp=now,
        ))
    if scores.vital_status is not None:
        observations.append(Observation(
            entity_id=scores.person_id, parameter=VITAL_STATUS_PARAMETER,
            value=float(scores.vital_status.status.rank), timestamp=now,
        ))
    return observations


class EvaluationCycle:
    """
    Runs scoring, alert evaluation and unit aggregation for one tick.

    Holds no state between runs; the caller keeps the EngineState from
    CycleResult.state and passes it to the next run.
    """

    def __init__(
        self,
        alert_engine: Optional[AlertRuleEngine] = None,
        scorer: Optional[PersonScorer] = None,
        unit_names: Optional[Dict[str, str]] = None,
    ):
        self.alert_engine = alert_engine or AlertRuleEngine()
        self.scorer = scorer or PersonScorer()
        self.unit_names = unit_names or {}

    def run(
        self,
        observations: Iterable[Observation],
        rules: Iterable[RuleInput],
        state: Optional[EngineState] = None,
        personnel: Iterable[PersonSnapshot] = (),
        now: Optional[datetime] = None,
        interval: Optional[float] = None,
    ) -> CycleResult:
        """
        Run one cycle.

        Args:
            observations: Raw telemetry batch for this tick
            rules: Alert rules in force this tick
            state: EngineState from the previous cycle
            personnel: Snapshots of the people to score and roll up
            now: Evaluation timestamp (defaults to now, UTC)
            interval: Seconds since the previous tick

        Returns:
            CycleResult with per-person scores, the tick result and
            unit summaries
        """
        now = now or datetime.now(timezone.utc)

        scores: Dict[str, PersonScores] = {}
        batch = list(observations)
        for snapshot in personnel:
            person_scores = self.scorer.score(snapshot, now=now)
            scores[snapshot.person_id] = person_scores
            batch.extend(derived_observations(person_scores, now))

        tick = self.alert_engine.tick(batch, rules, state, now=now, interval=interval)
        units = summarize_units(scores.values(), tick.state, self.unit_names, now=now)

        logger.info(
            f"[Cycle] {now.isoformat()}: scored {len(scores)} person(s), "
            f"{len(tick.transitions)} transition(s), {len(units)} unit(s)"
        )

        return CycleResult(evaluated_at=now, scores=scores, tick=tick, units=units)
