"""
Unit Aggregation — Person to Unit Rollups

Unit readiness is bounded by its weakest member: the blend weights the
minimum as well as the mean so one depleted member pulls the unit down.

UnitSummary is derived: rebuilt from person scores every cycle, never
mutated on its own.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field

from riskengine.events.schemas import EngineState
from riskengine.rules.assessor import RiskLevel, max_risk
from riskengine.rules.conditions import AlertSeverity
from riskengine.scoring.calculator import round_half_up
from riskengine.scoring.schemas import PersonScores


MEAN_WEIGHT = 0.7
MIN_WEIGHT = 0.3


class UnitSummary(BaseModel):
    """Readiness and risk rollup for one unit."""
    unit_id: str
    unit_name: str
    personnel_count: int = Field(..., ge=0)
    online_count: int = Field(..., ge=0)
    readiness_index: int = Field(..., ge=0)
    active_alerts: int = Field(0, ge=0)
    critical_alerts: int = Field(0, ge=0)
    heat_risk: RiskLevel = RiskLevel.LOW
    fatigue_risk: RiskLevel = RiskLevel.LOW
    last_update: datetime


def unit_readiness(personnel_scores: Sequence[float]) -> int:
    """
    Blend 70% mean and 30% minimum readiness, rounded.

    A unit with no personnel has readiness 0.
    """
    scores = np.asarray(list(personnel_scores), dtype=float)
    if scores.size == 0:
        return 0
    blended = scores.mean() * MEAN_WEIGHT + scores.min() * MIN_WEIGHT
    return int(round_half_up(float(blended)))


def _alert_counts(state: Optional[EngineState], person_to_unit: Dict[str, str]) -> pd.DataFrame:
    rows = []
    if state is not None:
        for alert_id in state.open_alerts.values():
            alert = state.alerts[alert_id]
            unit_id = person_to_unit.get(alert.entity_id)
            if unit_id is None:
                continue
            rows.append({
                "unit_id": unit_id,
                "critical": alert.severity.rank >= AlertSeverity.CRITICAL.rank,
            })
    if not rows:
        return pd.DataFrame(columns=["active_alerts", "critical_alerts"])
    alerts = pd.DataFrame(rows)
    return alerts.groupby("unit_id").agg(
        active_alerts=("critical", "size"),
        critical_alerts=("critical", "sum"),
    )


def summarize_units(
    scores: Iterable[PersonScores],
    state: Optional[EngineState] = None,
    unit_names: Optional[Dict[str, str]] = None,
    now: Optional[datetime] = None,
) -> List[UnitSummary]:
    """
    Build one UnitSummary per unit present in `scores`.

    Args:
        scores: Person scores for this cycle
        state: Alert engine state, for open/critical alert counts
        unit_names: Optional display names by unit_id
        now: Summary timestamp (defaults to now, UTC)

    Returns:
        Summaries ordered by unit_id
    """
    now = now or datetime.now(timezone.utc)
    unit_names = unit_names or {}

    records = [
        {
            "person_id": s.person_id,
            "unit_id": s.unit_id,
            "is_online": s.is_online,
            "readiness_index": s.readiness_index,
            "heat_risk": s.heat_risk,
            "fatigue_risk": s.fatigue_risk,
        }
        for s in scores
    ]
    if not records:
        return []

    df = pd.DataFrame(records)
    person_to_unit = dict(zip(df["person_id"], df["unit_id"]))
    alert_counts = _alert_counts(state, person_to_unit)

    summaries = []
    for unit_id, group in df.groupby("unit_id", sort=True):
        readiness = group["readiness_index"].dropna().astype(float).tolist()
        active = critical = 0
        if unit_id in alert_counts.index:
            active = int(alert_counts.loc[unit_id, "active_alerts"])
            critical = int(alert_counts.loc[unit_id, "critical_alerts"])

        summaries.append(UnitSummary(
            unit_id=unit_id,
            unit_name=unit_names.get(unit_id, unit_id),
            personnel_count=len(group),
            online_count=int(group["is_online"].sum()),
            readiness_index=unit_readiness(readiness),
            active_alerts=active,
            critical_alerts=critical,
            heat_risk=max_risk(group["heat_risk"].dropna()),
            fatigue_risk=max_risk(group["fatigue_risk"].dropna()),
            last_update=now,
        ))

    return summaries
