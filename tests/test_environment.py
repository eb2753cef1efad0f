"""
Environmental Model Tests — Heat Index & WBGT

Tests verify:
- Heat index passthrough below 27 °C
- Rothfusz regression against published NWS output
- Simple-estimate branch below 80 °F
- Low- and high-humidity NWS adjustments
- WBGT weights sum to 1.0 (indoor and outdoor)
- Enrichment keeps supplied values
- Frame computation matches the scalar functions
"""

import math

import numpy as np
import pandas as pd
import pytest

from riskengine.scoring.environment import (
    compute_environment_frame,
    enrich_environment,
    heat_index,
    wbgt,
)
from riskengine.scoring.schemas import EnvironmentSample


def c_to_f(temp_c: float) -> float:
    return temp_c * 9.0 / 5.0 + 32.0


def f_to_c(temp_f: float) -> float:
    return (temp_f - 32.0) * 5.0 / 9.0


def rothfusz_f(t: float, rh: float) -> float:
    """NWS Rothfusz regression (°F), without adjustments."""
    return (
        -42.379 + 2.04901523 * t + 10.14333127 * rh
        - 0.22475541 * t * rh - 0.00683783 * t * t - 0.05481717 * rh * rh
        + 0.00122874 * t * t * rh + 0.00085282 * t * rh * rh
        - 0.00000199 * t * t * rh * rh
    )


class TestHeatIndex:
    """Test NWS heat index."""

    def test_below_threshold_returns_temperature(self):
        assert heat_index(25.0, 90.0) == 25.0
        assert heat_index(-5.0, 30.0) == -5.0

    def test_matches_nws_regression(self):
        """32 °C / 70% RH is ~105 °F (40.4 °C) in the NWS table."""
        assert abs(heat_index(32.0, 70.0) - 40.4) <= 0.1

    def test_simple_estimate_branch(self):
        """27.5 °C at 10% RH stays under 80 °F: simple estimate is used."""
        assert heat_index(27.5, 10.0) == pytest.approx(26.6)

    def test_rounded_to_one_decimal(self):
        """Unrounded regression output has more digits than one decimal."""
        value = heat_index(33.0, 60.0)
        assert value * 10 == pytest.approx(round(value * 10), abs=1e-9)
        assert value != pytest.approx(f_to_c(rothfusz_f(c_to_f(33.0), 60.0)), abs=1e-6)

    def test_humidity_raises_apparent_temperature(self):
        assert heat_index(35.0, 80.0) > heat_index(35.0, 40.0)

    def test_deterministic(self):
        assert heat_index(31.0, 65.0) == heat_index(31.0, 65.0)


class TestHeatIndexAdjustments:
    """Test the published NWS low- and high-humidity adjustments."""

    def test_low_humidity_subtraction(self):
        """43.3 °C / 10% RH: ~104.3 °F (40.2 °C) after the dry-air correction."""
        t = c_to_f(43.3)
        raw = rothfusz_f(t, 10.0)
        adjustment = ((13.0 - 10.0) / 4.0) * math.sqrt((17.0 - abs(t - 95.0)) / 17.0)

        value = heat_index(43.3, 10.0)

        assert abs(value - 40.2) <= 0.1
        assert value == pytest.approx(f_to_c(raw - adjustment), abs=0.05)
        assert value < f_to_c(raw)

    def test_high_humidity_addition(self):
        """29 °C / 90% RH: ~99.0 °F (37.2 °C) after the humid-air correction."""
        t = c_to_f(29.0)
        raw = rothfusz_f(t, 90.0)
        adjustment = ((90.0 - 85.0) / 10.0) * ((87.0 - t) / 5.0)

        value = heat_index(29.0, 90.0)

        assert abs(value - 37.2) <= 0.1
        assert value == pytest.approx(f_to_c(raw + adjustment), abs=0.05)
        assert value > f_to_c(raw)

    def test_no_adjustment_in_mid_humidity(self):
        t = c_to_f(32.0)
        assert heat_index(32.0, 50.0) == pytest.approx(f_to_c(rothfusz_f(t, 50.0)), abs=0.05)


class TestWBGT:
    """Test WBGT blends."""

    def test_outdoor_weights_sum_to_one(self):
        assert wbgt(30.0, 30.0, 30.0, indoors=False) == 30.0

    def test_indoor_weights_sum_to_one(self):
        assert wbgt(10.0, 30.0, 30.0, indoors=True) == pytest.approx(30.0)

    def test_indoor_ignores_dry_bulb(self):
        assert wbgt(10.0, 25.0, 40.0, indoors=True) == wbgt(50.0, 25.0, 40.0, indoors=True)

    def test_outdoor_blend(self):
        """0.7 * 27 + 0.2 * 45 + 0.1 * 34 = 31.3."""
        assert wbgt(34.0, 27.0, 45.0) == pytest.approx(31.3)


class TestEnrichEnvironment:
    """Test computed environment fields."""

    def test_computes_both_indices(self):
        sample = EnvironmentSample(
            dry_bulb_temp=34.0, wet_bulb_temp=27.0, globe_temp=45.0, humidity=55.0
        )
        enriched = enrich_environment(sample)

        assert enriched.wbgt == pytest.approx(31.3)
        assert enriched.heat_index == heat_index(34.0, 55.0)

    def test_supplied_values_kept(self):
        sample = EnvironmentSample(
            dry_bulb_temp=34.0, wet_bulb_temp=27.0, globe_temp=45.0,
            humidity=55.0, wbgt=29.0, heat_index=38.0,
        )
        enriched = enrich_environment(sample)

        assert enriched.wbgt == 29.0
        assert enriched.heat_index == 38.0

    def test_missing_inputs_leave_none(self):
        sample = EnvironmentSample(temperature=30.0)
        enriched = enrich_environment(sample)

        assert enriched.wbgt is None
        assert enriched.heat_index is None

    def test_input_sample_not_modified(self):
        sample = EnvironmentSample(temperature=30.0, humidity=50.0)
        enrich_environment(sample)
        assert sample.heat_index is None


class TestEnvironmentFrame:
    """Test vectorized frame computation."""

    def create_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "dry_bulb_temp": [34.0, 25.0, 30.0],
            "wet_bulb_temp": [27.0, 20.0, 26.0],
            "globe_temp": [45.0, 30.0, 38.0],
            "humidity": [55.0, 40.0, np.nan],
            "indoors": [False, True, False],
        })

    def test_matches_scalar_functions(self):
        df = self.create_frame()
        out = compute_environment_frame(df)

        for i, row in df.iterrows():
            expected = wbgt(row.dry_bulb_temp, row.wet_bulb_temp, row.globe_temp, bool(row.indoors))
            assert out.loc[i, "wbgt"] == pytest.approx(expected)

        assert out.loc[0, "heat_index"] == heat_index(34.0, 55.0)
        assert out.loc[1, "heat_index"] == heat_index(25.0, 40.0)

    def test_missing_humidity_is_nan(self):
        out = compute_environment_frame(self.create_frame())
        assert math.isnan(out.loc[2, "heat_index"])

    def test_indoors_override(self):
        out = compute_environment_frame(self.create_frame(), indoors=True)
        assert out.loc[0, "wbgt"] == pytest.approx(wbgt(34.0, 27.0, 45.0, indoors=True))

    def test_input_not_modified(self):
        df = self.create_frame()
        compute_environment_frame(df)
        assert "wbgt" not in df.columns
        assert "heat_index" not in df.columns
