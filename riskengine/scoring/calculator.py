"""
Physiological Score Calculator — Pure Numeric Models

All calculations are stateless, deterministic and idempotent.
Invalid denominators raise DataQualityError instead of yielding NaN/Infinity.

Rounding is half-up (0.5 -> 1), not Python's round-half-to-even.
"""

import logging
import math

from riskengine.exceptions import DataQualityError
from riskengine.rules.assessor import RiskLevel, max_risk

from .schemas import SleepSample, VitalSample, VitalStatus

logger = logging.getLogger(__name__)


# Sleep targets
SLEEP_TARGET_MINUTES = 480.0
DEEP_SLEEP_TARGET_PCT = 20.0
REM_SLEEP_TARGET_PCT = 20.0
FRAGMENTATION_PENALTY_PER_WAKE = 2.0

# Recovery baselines
BASELINE_HRV_MS = 60.0
BASELINE_RESTING_HR = 60.0

# Readiness reference HRV (ms) for a full hrv component
READINESS_HRV_REFERENCE_MS = 100.0

# Fatigue scale bounds
FATIGUE_MIN = 0.0
FATIGUE_MAX = 5.0

# Recovery recommendation bands, highest first
RECOVERY_RECOMMENDATIONS = (
    (85, "Excellent recovery. Ready for high-intensity training."),
    (70, "Good recovery. Suitable for moderate to high intensity."),
    (55, "Fair recovery. Consider light to moderate activity."),
    (40, "Poor recovery. Rest or very light activity recommended."),
)
RECOVERY_DEFICIT_RECOMMENDATION = "Critical recovery deficit. Rest required. Consult medical staff."


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to `digits` decimals with ties going up."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def sleep_score(sample: SleepSample) -> int:
    """
    Score one night of sleep (0-100).

    Components:
    - Duration vs 480 min target (max 30)
    - Deep sleep % vs 20% target (max 25)
    - REM % vs 20% target (max 20)
    - 25 minus 2 points per fragmentation (min 0)

    Raises:
        DataQualityError: total_minutes is zero
    """
    total = sample.total_minutes
    if total <= 0:
        raise DataQualityError("total_minutes", "Sleep sample has no recorded duration")

    if not sample.is_consistent:
        logger.warning(
            f"[Sleep] Staged minutes ({sample.staged_minutes:.0f}) exceed total "
            f"({total:.0f}); stage components are capped"
        )

    duration_score = min(30.0, (total / SLEEP_TARGET_MINUTES) * 30.0)

    deep_pct = (sample.deep_minutes / total) * 100.0
    deep_score = min(25.0, (deep_pct / DEEP_SLEEP_TARGET_PCT) * 25.0)

    rem_pct = (sample.rem_minutes / total) * 100.0
    rem_score = min(20.0, (rem_pct / REM_SLEEP_TARGET_PCT) * 20.0)

    penalty = min(25.0, sample.fragmentations * FRAGMENTATION_PENALTY_PER_WAKE)
    fragmentation_score = 25.0 - penalty

    return int(round_half_up(duration_score + deep_score + rem_score + fragmentation_score))


def recovery_score(
    hrv: float,
    resting_hr: float,
    sleep_score: float,
    hydration: float,
) -> int:
    """
    Score daily recovery.

    Not clamped above: inputs beyond baseline may push it past 100.
    Callers clamp for display.

    Raises:
        DataQualityError: resting_hr is not positive
    """
    if resting_hr <= 0:
        raise DataQualityError("resting_hr", "Resting heart rate must be positive")

    hrv_component = min(30.0, (hrv / BASELINE_HRV_MS) * 30.0)
    hr_component = min(25.0, (BASELINE_RESTING_HR / resting_hr) * 25.0)
    sleep_component = (sleep_score / 100.0) * 25.0
    hydration_component = (hydration / 100.0) * 20.0

    return int(round_half_up(hrv_component + hr_component + sleep_component + hydration_component))


def recovery_recommendation(score: float) -> str:
    """Advisory text for a recovery score."""
    for floor, text in RECOVERY_RECOMMENDATIONS:
        if score >= floor:
            return text
    return RECOVERY_DEFICIT_RECOMMENDATION


def fatigue_score(
    resting_hr: float,
    max_hr: float,
    sleep_quality: float,
    activity_load: float,
) -> float:
    """
    Fatigue on a 0-5 scale, one decimal.

    Sum of heart-rate-reserve stress, poor-sleep factor and activity load.

    Raises:
        DataQualityError: max_hr is zero
    """
    if max_hr == 0:
        raise DataQualityError("max_hr", "Max heart rate must be non-zero")

    hr_stress = ((resting_hr / max_hr) * 100.0 - 50.0) / 10.0
    sleep_factor = (100.0 - sleep_quality) / 20.0
    load_factor = activity_load / 20.0

    score = round_half_up(hr_stress + sleep_factor + load_factor, 1)
    return max(FATIGUE_MIN, min(FATIGUE_MAX, score))


def readiness_index(
    hrv: float,
    sleep_score: float,
    training_load: float,
    heat_exposure: float,
) -> int:
    """
    Composite fitness-for-duty index (0-100).

    Components:
    - HRV vs 100 ms reference (max 30)
    - Sleep score (max 30)
    - Training load, 25 minus 5 per unit (min 0)
    - Heat exposure, 15 minus 3 per unit (min 0)
    """
    hrv_component = min(30.0, (hrv / READINESS_HRV_REFERENCE_MS) * 30.0)
    sleep_component = min(30.0, (sleep_score / 100.0) * 30.0)
    training_component = max(0.0, 25.0 - training_load * 5.0)
    heat_component = max(0.0, 15.0 - heat_exposure * 3.0)

    total = hrv_component + sleep_component + training_component + heat_component
    return int(max(0.0, min(100.0, round_half_up(total))))


def max_heart_rate(age: float) -> int:
    """Age-predicted max heart rate (Tanaka: 208 - 0.7 * age)."""
    return int(round_half_up(208.0 - 0.7 * age))


def heart_rate_percent_of_max(heart_rate: float, max_hr: float) -> float:
    """
    Current heart rate as % of max.

    Raises:
        DataQualityError: max_hr is zero
    """
    if max_hr == 0:
        raise DataQualityError("max_hr", "Max heart rate must be non-zero")
    return (heart_rate / max_hr) * 100.0


def vital_status(sample: VitalSample) -> VitalStatus:
    """
    Evaluate every vital-sign band.

    All four bands are always checked so the issue list is complete;
    the status is the worst band.
    """
    issues = []
    risks = []

    hr = sample.heart_rate
    if hr > 100:
        issues.append("Elevated heart rate")
        risks.append(RiskLevel.HIGH if hr > 120 else RiskLevel.MEDIUM)
    elif hr < 50:
        issues.append("Low heart rate")
        risks.append(RiskLevel.MEDIUM)

    if sample.spo2 < 95:
        issues.append("Low oxygen saturation")
        risks.append(RiskLevel.CRITICAL if sample.spo2 < 90 else RiskLevel.HIGH)

    rr = sample.respiratory_rate
    if rr > 20:
        issues.append("Elevated respiratory rate")
        risks.append(RiskLevel.MEDIUM)
    elif rr < 12:
        issues.append("Low respiratory rate")
        risks.append(RiskLevel.MEDIUM)

    if sample.skin_temp > 38:
        issues.append("Elevated skin temperature")
        risks.append(RiskLevel.HIGH if sample.skin_temp > 39 else RiskLevel.MEDIUM)

    if not issues:
        return VitalStatus(status=RiskLevel.LOW, message="All vitals normal")

    return VitalStatus(status=max_risk(risks), message=", ".join(issues), issues=issues)
