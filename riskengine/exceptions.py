"""
Engine Errors

Every failure the engine signals derives from RiskEngineError so hosting
services can catch the whole family at one seam.
"""

from typing import Optional


class RiskEngineError(Exception):
    """Base class for all engine errors."""
    pass


class DataQualityError(RiskEngineError):
    """
    Raised when a sample cannot be scored (zero or invalid denominator).

    The caller substitutes a default or drops the sample; models never
    return NaN or Infinity in its place.
    """

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Invalid value for '{field}'")


class RuleConfigurationError(RiskEngineError):
    """Raised when an alert rule definition is malformed."""

    def __init__(self, rule_id: Optional[str], message: str):
        self.rule_id = rule_id
        super().__init__(f"Rule {rule_id or '<unknown>'}: {message}")


class InvalidStateError(RiskEngineError):
    """Raised when an operator action targets a missing or resolved alert."""

    def __init__(self, alert_id: str, message: str):
        self.alert_id = alert_id
        super().__init__(f"Alert {alert_id}: {message}")
