"""
Environmental Heat-Stress Models — Heat Index & WBGT

Scalar formulas plus a vectorized frame variant for batches of readings.
No clamping: out-of-range inputs yield whatever the formula yields;
flagging them is a risk-classification concern.
"""

import math
from typing import Optional

import numpy as np
import pandas as pd

from .calculator import round_half_up
from .schemas import EnvironmentSample


# Below this air temperature (°C) heat index equals air temperature
HEAT_INDEX_MIN_TEMP_C = 27.0

# NWS: the Rothfusz regression applies once the simple estimate reaches 80 °F
ROTHFUSZ_MIN_F = 80.0

# WBGT blend weights (each set sums to 1.0; downstream bands depend on them)
WBGT_INDOOR_WEIGHTS = {"wet_bulb": 0.7, "globe": 0.3}
WBGT_OUTDOOR_WEIGHTS = {"wet_bulb": 0.7, "globe": 0.2, "dry_bulb": 0.1}


def _c_to_f(temp_c: float) -> float:
    return temp_c * 9.0 / 5.0 + 32.0


def _f_to_c(temp_f: float) -> float:
    return (temp_f - 32.0) * 5.0 / 9.0


def heat_index(temp_c: float, humidity_pct: float) -> float:
    """
    Apparent temperature (°C) per the NWS heat index algorithm.

    Below 27 °C the temperature is returned unchanged. Otherwise the
    simple Steadman estimate is used until it reaches 80 °F, then the
    Rothfusz regression with the published low- and high-humidity
    adjustments. Result rounded to 0.1 °C.
    """
    if temp_c < HEAT_INDEX_MIN_TEMP_C:
        return temp_c

    t = _c_to_f(temp_c)
    rh = humidity_pct

    hi = 0.5 * (t + 61.0 + ((t - 68.0) * 1.2) + (rh * 0.094))

    if hi >= ROTHFUSZ_MIN_F:
        hi = (
            -42.379
            + 2.04901523 * t
            + 10.14333127 * rh
            - 0.22475541 * t * rh
            - 0.00683783 * t * t
            - 0.05481717 * rh * rh
            + 0.00122874 * t * t * rh
            + 0.00085282 * t * rh * rh
            - 0.00000199 * t * t * rh * rh
        )

        if rh < 13 and 80.0 <= t <= 112.0:
            hi -= ((13.0 - rh) / 4.0) * math.sqrt((17.0 - abs(t - 95.0)) / 17.0)
        elif rh > 85 and 80.0 <= t <= 87.0:
            hi += ((rh - 85.0) / 10.0) * ((87.0 - t) / 5.0)

    return round_half_up(_f_to_c(hi), 1)


def wbgt(
    dry_bulb: float,
    wet_bulb: float,
    globe: float,
    indoors: bool = False,
) -> float:
    """
    Wet-bulb globe temperature (°C).

    Indoor:  0.7 * wet + 0.3 * globe
    Outdoor: 0.7 * wet + 0.2 * globe + 0.1 * dry
    """
    if indoors:
        w = WBGT_INDOOR_WEIGHTS
        return w["wet_bulb"] * wet_bulb + w["globe"] * globe
    w = WBGT_OUTDOOR_WEIGHTS
    return w["wet_bulb"] * wet_bulb + w["globe"] * globe + w["dry_bulb"] * dry_bulb


def enrich_environment(sample: EnvironmentSample) -> EnvironmentSample:
    """
    Fill in wbgt and heat_index where they can be computed.

    Supplied values are kept. WBGT needs wet bulb and globe (plus dry bulb
    outdoors); heat index needs air temperature and humidity.
    """
    updates = {}

    if sample.wbgt is None and sample.wet_bulb_temp is not None and sample.globe_temp is not None:
        dry = sample.dry_bulb_temp if sample.dry_bulb_temp is not None else sample.temperature
        if sample.indoors or dry is not None:
            updates["wbgt"] = wbgt(dry or 0.0, sample.wet_bulb_temp, sample.globe_temp, sample.indoors)

    air = sample.air_temperature
    if sample.heat_index is None and air is not None and sample.humidity is not None:
        updates["heat_index"] = heat_index(air, sample.humidity)

    if not updates:
        return sample
    return sample.model_copy(update=updates)


def compute_environment_frame(
    df: pd.DataFrame,
    indoors: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Add 'wbgt' and 'heat_index' columns to a frame of readings.

    Expects columns dry_bulb_temp, wet_bulb_temp, globe_temp for WBGT and
    temperature (or dry_bulb_temp), humidity for heat index. Missing inputs
    give NaN. An 'indoors' column is honoured per row unless `indoors`
    overrides it. Values equal the scalar functions row by row.

    Returns:
        A new DataFrame; the input is not modified.
    """
    out = df.copy()
    n = len(out)

    def column(name: str) -> pd.Series:
        if name in out.columns:
            return out[name].astype(float)
        return pd.Series(np.nan, index=out.index)

    dry = column("dry_bulb_temp")
    wet = column("wet_bulb_temp")
    globe = column("globe_temp")

    if indoors is not None:
        indoor_mask = np.full(n, bool(indoors))
    elif "indoors" in out.columns:
        indoor_mask = out["indoors"].fillna(False).astype(bool).to_numpy()
    else:
        indoor_mask = np.zeros(n, dtype=bool)

    indoor_wbgt = WBGT_INDOOR_WEIGHTS["wet_bulb"] * wet + WBGT_INDOOR_WEIGHTS["globe"] * globe
    outdoor_wbgt = (
        WBGT_OUTDOOR_WEIGHTS["wet_bulb"] * wet
        + WBGT_OUTDOOR_WEIGHTS["globe"] * globe
        + WBGT_OUTDOOR_WEIGHTS["dry_bulb"] * dry
    )
    out["wbgt"] = np.where(indoor_mask, indoor_wbgt, outdoor_wbgt)

    air = column("temperature").fillna(dry)
    humidity = column("humidity")
    valid = air.notna() & humidity.notna()

    out["heat_index"] = np.nan
    if valid.any():
        out.loc[valid, "heat_index"] = np.vectorize(heat_index, otypes=[float])(
            air[valid].to_numpy(), humidity[valid].to_numpy()
        )

    return out
