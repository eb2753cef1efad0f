"""
Risk Classification — Convert Scores to Ordinal Risk Levels

This is where RULES live. Numeric models output scores; this module
assigns meaning.

Constraints:
- Stateless and deterministic: same input = same output
- Named threshold constants (no magic numbers)
- Heat risk is monotonic in WBGT and heat index
- Heart rate alone never inflates heat risk (joint HR AND activity term)
"""

from typing import Iterable
from enum import Enum


# ============================================================================
# THRESHOLD CONSTANTS — Explicit, Named, No Magic Numbers
# ============================================================================

# Environmental severity bands (°C). Calibrated to the WBGT blend in
# scoring.environment.wbgt.
WBGT_EXTREME = 32.0
WBGT_HIGH = 29.0
WBGT_MODERATE = 26.0

HEAT_INDEX_EXTREME = 40.0
HEAT_INDEX_HIGH = 35.0
HEAT_INDEX_MODERATE = 32.0

# Physiological strain bands: (% of max heart rate, activity level 0-1)
STRAIN_SEVERE = (85.0, 0.7)
STRAIN_ELEVATED = (75.0, 0.5)

# Summed score -> risk level
SCORE_CRITICAL = 4
SCORE_HIGH = 3
SCORE_MEDIUM = 2

# Fatigue score (0-5 scale) bands
FATIGUE_CRITICAL = 4.0
FATIGUE_HIGH = 3.0
FATIGUE_MEDIUM = 2.0


# ============================================================================
# Risk Level
# ============================================================================

class RiskLevel(str, Enum):
    """Risk classification levels, totally ordered low < medium < high < critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER[self]

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_ORDER = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


def max_risk(levels: Iterable[RiskLevel]) -> RiskLevel:
    """Highest risk under the total order. Empty input is LOW."""
    return max(levels, key=lambda level: level.rank, default=RiskLevel.LOW)


# ============================================================================
# Classifiers
# ============================================================================

def environmental_severity(wbgt: float, heat_index: float) -> int:
    """
    Environmental contribution to heat risk (0-3).

    Either index crossing a band is enough.
    """
    if wbgt >= WBGT_EXTREME or heat_index >= HEAT_INDEX_EXTREME:
        return 3
    if wbgt >= WBGT_HIGH or heat_index >= HEAT_INDEX_HIGH:
        return 2
    if wbgt >= WBGT_MODERATE or heat_index >= HEAT_INDEX_MODERATE:
        return 1
    return 0


def physiological_strain(hr_percent_of_max: float, activity_level: float) -> int:
    """
    Physiological contribution to heat risk (0-2).

    Requires elevated heart rate AND concurrent exertion.
    """
    severe_hr, severe_activity = STRAIN_SEVERE
    elevated_hr, elevated_activity = STRAIN_ELEVATED

    if hr_percent_of_max > severe_hr and activity_level > severe_activity:
        return 2
    if hr_percent_of_max > elevated_hr and activity_level > elevated_activity:
        return 1
    return 0


def classify_score(risk_score: int) -> RiskLevel:
    """Map a summed integer risk score to a risk level."""
    if risk_score >= SCORE_CRITICAL:
        return RiskLevel.CRITICAL
    elif risk_score >= SCORE_HIGH:
        return RiskLevel.HIGH
    elif risk_score >= SCORE_MEDIUM:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def heat_risk(
    wbgt: float,
    heat_index: float,
    hr_percent_of_max: float,
    activity_level: float,
) -> RiskLevel:
    """
    Classify heat risk for a person in an environment.

    Args:
        wbgt: Wet-bulb globe temperature (°C)
        heat_index: Apparent temperature (°C)
        hr_percent_of_max: Current heart rate as % of max heart rate
        activity_level: Activity intensity on a 0-1 scale

    Returns:
        Risk level classification
    """
    risk_score = (
        environmental_severity(wbgt, heat_index)
        + physiological_strain(hr_percent_of_max, activity_level)
    )
    return classify_score(risk_score)


def environmental_risk(wbgt: float, heat_index: float) -> RiskLevel:
    """Heat risk of an environment on its own (no physiological strain)."""
    return classify_score(environmental_severity(wbgt, heat_index))


def fatigue_risk(fatigue_score: float) -> RiskLevel:
    """Classify a 0-5 fatigue score."""
    if fatigue_score >= FATIGUE_CRITICAL:
        return RiskLevel.CRITICAL
    elif fatigue_score >= FATIGUE_HIGH:
        return RiskLevel.HIGH
    elif fatigue_score >= FATIGUE_MEDIUM:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW
