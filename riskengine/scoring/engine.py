"""
Person Scorer — Score Orchestration for One Person

Stateless, idempotent: same snapshot always yields the same scores.
Each model runs only when its inputs are present. A DataQualityError
from one model is logged and recorded, leaving that score None so the
caller can substitute a default; the other scores are still produced.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from riskengine.exceptions import DataQualityError
from riskengine.rules.assessor import fatigue_risk, heat_risk

from .calculator import (
    fatigue_score,
    heart_rate_percent_of_max,
    max_heart_rate,
    readiness_index,
    recovery_recommendation,
    recovery_score,
    round_half_up,
    sleep_score,
    vital_status,
)
from .environment import enrich_environment
from .schemas import PersonScores, PersonSnapshot

logger = logging.getLogger(__name__)


class PersonScorer:
    """
    Computes readiness, fatigue, heat risk and vital status for a person.
    """

    def score(self, snapshot: PersonSnapshot, now: Optional[datetime] = None) -> PersonScores:
        """
        Score one person.

        Args:
            snapshot: Latest samples for the person
            now: Timestamp stamped on the result (defaults to now, UTC)

        Returns:
            PersonScores; scores whose inputs are missing or invalid are None
        """
        result = PersonScores(
            person_id=snapshot.person_id,
            unit_id=snapshot.unit_id,
            is_online=snapshot.is_online,
            timestamp=now or datetime.now(timezone.utc),
        )

        def record(error: DataQualityError) -> None:
            logger.warning(f"[PersonScorer] {snapshot.person_id}: {error.field}: {error}")
            result.data_quality_issues.append(f"{error.field}: {error}")

        if snapshot.age is not None:
            result.max_heart_rate = max_heart_rate(snapshot.age)

        # Sleep: measured staging wins over an externally supplied score
        if snapshot.sleep is not None:
            try:
                result.sleep_score = sleep_score(snapshot.sleep)
            except DataQualityError as e:
                record(e)
        if result.sleep_score is None and snapshot.recovery and snapshot.recovery.sleep_score is not None:
            result.sleep_score = int(round_half_up(snapshot.recovery.sleep_score))

        recovery = snapshot.recovery
        if recovery is not None and result.sleep_score is not None:
            try:
                result.recovery_score = recovery_score(
                    recovery.hrv, recovery.resting_hr, result.sleep_score, recovery.hydration_level
                )
                result.recommendation = recovery_recommendation(result.recovery_score)
            except DataQualityError as e:
                record(e)

        if recovery is not None and result.sleep_score is not None:
            result.readiness_index = readiness_index(
                recovery.hrv, result.sleep_score, snapshot.training_load, snapshot.heat_exposure
            )

        if recovery is not None and result.max_heart_rate is not None and result.sleep_score is not None:
            try:
                result.fatigue_score = fatigue_score(
                    recovery.resting_hr,
                    result.max_heart_rate,
                    result.sleep_score,
                    snapshot.activity_load,
                )
                result.fatigue_risk = fatigue_risk(result.fatigue_score)
            except DataQualityError as e:
                record(e)

        if snapshot.vitals is not None:
            result.vital_status = vital_status(snapshot.vitals)

        if snapshot.environment is not None:
            environment = enrich_environment(snapshot.environment)
            result.wbgt = environment.wbgt
            result.heat_index = environment.heat_index
            result.heat_risk = self._heat_risk(snapshot, result, record)

        return result

    @staticmethod
    def _heat_risk(snapshot: PersonSnapshot, result: PersonScores, record):
        # Missing environmental index contributes nothing to its band
        wbgt = result.wbgt if result.wbgt is not None else float("-inf")
        hi = result.heat_index if result.heat_index is not None else float("-inf")

        hr_percent = 0.0
        if snapshot.vitals is not None and result.max_heart_rate is not None:
            try:
                hr_percent = heart_rate_percent_of_max(
                    snapshot.vitals.heart_rate, result.max_heart_rate
                )
            except DataQualityError as e:
                record(e)

        return heat_risk(wbgt, hi, hr_percent, snapshot.activity_level)
