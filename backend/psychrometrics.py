"""
Derived air metrics computed from temperature (°C) and relative humidity (%).

Dew point uses the Magnus-type approximation with the Arden Buck
constants; heat index uses the Rothfusz regression with coefficients
converted to Celsius. See https://en.wikipedia.org/wiki/Dew_point and
https://en.wikipedia.org/wiki/Heat_index.
"""

import math

ABSOLUTE_ZERO_C = -273.15

# Arden Buck constants
A_MBAR = 6.1121
B = 18.678
C_DEG = 257.14

# Rothfusz regression, Celsius coefficients
HEAT_INDEX_COEFFS = (
    -8.78469475556,
    1.61139411,
    2.33854883889,
    -0.14611605,
    -0.012308094,
    -0.016424827778,
    0.002211732,
    0.00072546,
    -0.000003582,
)


def _gamma(t: float, h: float) -> float:
    return math.log(h / 100.0) + (B * t) / (C_DEG + t)


def dew_point(t: float, h: float) -> float:
    """Dew point temperature in °C. `h` must be > 0."""

    g = _gamma(t, h)
    return C_DEG * g / (B - g)


def saturated_vapor_pressure(t: float) -> float:
    """Saturated water vapor pressure in mbar."""

    return A_MBAR * math.exp((B * t) / (C_DEG + t))


def actual_vapor_pressure(t: float, h: float) -> float:
    return (h / 100.0) * saturated_vapor_pressure(t)


def heat_index(t: float, h: float) -> float:
    """Apparent temperature in °C."""

    c1, c2, c3, c4, c5, c6, c7, c8, c9 = HEAT_INDEX_COEFFS
    t2 = t * t
    h2 = h * h
    return (
        c1 + c2 * t + c3 * h + c4 * t * h + c5 * t2 + c6 * h2
        + c7 * t2 * h + c8 * t * h2 + c9 * t2 * h2
    )


def truncate_hundredths(x: float) -> float:
    """Drop everything past the second decimal, toward zero."""

    return math.trunc(x * 100) / 100


def fill_air_metrics(reading: dict) -> dict:
    """Fill a missing `dewPoint`/`heatIndex` on an air reading document.

    Only acts when both temperature and a positive humidity are present and
    the temperature is above absolute zero (and above the Magnus pole at
    -257.14 °C). Submitted values are kept as is; results that overflow
    are left out.
    """

    t = reading.get("temperature")
    h = reading.get("humidity")
    if t is None or h is None or h <= 0 or t <= max(ABSOLUTE_ZERO_C, -C_DEG):
        return reading

    derived = {}
    if "dewPoint" not in reading:
        derived["dewPoint"] = dew_point(t, h)
    if "heatIndex" not in reading:
        derived["heatIndex"] = heat_index(t, h)
    for name, value in derived.items():
        if math.isfinite(value * 100):
            reading[name] = truncate_hundredths(value)
    return reading
