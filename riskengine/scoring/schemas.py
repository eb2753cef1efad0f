"""
Telemetry Schemas — Sample and Score Models

Samples are produced by the sensor collaborator and consumed read-only,
so every sample model is frozen.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from riskengine.rules.assessor import RiskLevel


def _ensure_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class VitalSample(BaseModel):
    """Point-in-time physiological reading from a wearable."""
    model_config = ConfigDict(frozen=True)

    heart_rate: float = Field(..., gt=0, description="Heart rate (bpm)")
    respiratory_rate: float = Field(..., gt=0, description="Respiratory rate (breaths/min)")
    spo2: float = Field(..., ge=0, le=100, description="Blood oxygen saturation (%)")
    skin_temp: float = Field(..., description="Skin temperature (°C)")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('timestamp')
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class SleepSample(BaseModel):
    """
    One night of sleep staging.

    deep + light + rem should not exceed total, but devices do report
    inconsistent staging; that is tolerated and logged, never trusted.
    """
    model_config = ConfigDict(frozen=True)

    total_minutes: float = Field(..., ge=0)
    deep_minutes: float = Field(0.0, ge=0)
    light_minutes: float = Field(0.0, ge=0)
    rem_minutes: float = Field(0.0, ge=0)
    awake_minutes: float = Field(0.0, ge=0)
    fragmentations: int = Field(0, ge=0, description="Number of wake-ups")
    recorded_on: Optional[date] = None

    @property
    def staged_minutes(self) -> float:
        return self.deep_minutes + self.light_minutes + self.rem_minutes

    @property
    def is_consistent(self) -> bool:
        return self.staged_minutes <= self.total_minutes


class RecoverySample(BaseModel):
    """Daily recovery inputs."""
    model_config = ConfigDict(frozen=True)

    hrv: float = Field(..., ge=0, description="Heart-rate variability (ms)")
    resting_hr: float = Field(..., description="Resting heart rate (bpm)")
    sleep_score: Optional[float] = Field(
        None, ge=0, le=100,
        description="Externally supplied sleep score; computed from SleepSample when absent"
    )
    hydration_level: float = Field(..., ge=0, le=100)
    recorded_on: Optional[date] = None


class Location(BaseModel):
    """Where an environment reading was taken."""
    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None


class EnvironmentSample(BaseModel):
    """
    Environmental reading.

    Either the full bulb set (dry, wet, globe) or ambient temperature and
    humidity may be present. wbgt / heat_index are computed by
    scoring.environment.enrich_environment when not supplied.
    """
    model_config = ConfigDict(frozen=True)

    dry_bulb_temp: Optional[float] = Field(None, description="Dry-bulb (air) temperature (°C)")
    wet_bulb_temp: Optional[float] = Field(None, description="Natural wet-bulb temperature (°C)")
    globe_temp: Optional[float] = Field(None, description="Black-globe temperature (°C)")
    temperature: Optional[float] = Field(None, description="Ambient temperature (°C)")
    humidity: Optional[float] = Field(None, ge=0, le=100, description="Relative humidity (%)")
    indoors: bool = False
    wbgt: Optional[float] = None
    heat_index: Optional[float] = None
    noise_level: Optional[float] = Field(None, ge=0, description="Noise level (dB)")
    location: Optional[Location] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('timestamp')
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @property
    def air_temperature(self) -> Optional[float]:
        """Ambient temperature, falling back to the dry bulb."""
        return self.temperature if self.temperature is not None else self.dry_bulb_temp


class VitalStatus(BaseModel):
    """Worst-band status across all vital signs plus every issue found."""
    status: RiskLevel
    message: str
    issues: List[str] = Field(default_factory=list)


class PersonSnapshot(BaseModel):
    """
    Everything known about one person at evaluation time.

    Any input may be missing; the scores that depend on it are then None.
    """
    person_id: str = Field(..., min_length=1)
    pseudonym_id: Optional[str] = None
    unit_id: str = Field(..., min_length=1)
    age: Optional[float] = Field(None, gt=0)
    is_online: bool = True
    battery_level: Optional[float] = Field(None, ge=0, le=100)

    vitals: Optional[VitalSample] = None
    sleep: Optional[SleepSample] = None
    recovery: Optional[RecoverySample] = None
    environment: Optional[EnvironmentSample] = None

    training_load: float = Field(0.0, ge=0, description="Recent training load (units)")
    heat_exposure: float = Field(0.0, ge=0, description="Recent heat exposure (units)")
    activity_level: float = Field(0.0, ge=0, le=1, description="Current activity intensity (0-1)")
    activity_load: float = Field(0.0, ge=0, description="Activity load for fatigue (0-100)")


class PersonScores(BaseModel):
    """Scores derived for one person in one evaluation cycle."""
    person_id: str
    unit_id: str
    is_online: bool = True
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    max_heart_rate: Optional[int] = None
    sleep_score: Optional[int] = None
    recovery_score: Optional[int] = None
    recommendation: Optional[str] = None
    readiness_index: Optional[int] = None
    fatigue_score: Optional[float] = None
    fatigue_risk: Optional[RiskLevel] = None
    heat_risk: Optional[RiskLevel] = None
    vital_status: Optional[VitalStatus] = None
    wbgt: Optional[float] = None
    heat_index: Optional[float] = None

    data_quality_issues: List[str] = Field(default_factory=list)
