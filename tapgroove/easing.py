"""Easing functions for parameter ramps and the energy drop.

Easing functions map a normalised progress value *t* in [0, 1] to an eased
output in [0, 1].  Ramp commands carry the shape name so a backend can
reproduce the same curve:

    tapgroove.easing.get_easing("ease_out")(0.5)   # 0.75

Available shapes:

    "linear"      Constant rate (default).
    "ease_in"     Slow start, accelerates.
    "ease_out"    Fast start, decelerates; used by the energy drop.
    "exponential" Very slow start, rapid end (cubic); used by filter sweeps.

All functions satisfy f(0) = 0 and f(1) = 1 and are monotonically non-decreasing.
"""

from __future__ import annotations

import typing


EasingFn = typing.Callable[[float], float]


# ─── Easing functions ─────────────────────────────────────────────────────────


def linear (t: float) -> float:
    """No transformation."""
    return t


def ease_in (t: float) -> float:
    """Quadratic ease-in: slow start, accelerates toward the end."""
    return t * t


def ease_out (t: float) -> float:
    """Quadratic ease-out: fast start, decelerates toward the end."""
    return 1.0 - (1.0 - t) * (1.0 - t)


def exponential (t: float) -> float:
    """Cubic ease-in.

    Approximates a perceptually even sweep for frequency parameters, where the
    ear hears ratios rather than differences.
    """
    return t * t * t


# ─── Registry ─────────────────────────────────────────────────────────────────


_EASING_FUNCTIONS: typing.Dict[str, EasingFn] = {
    "linear": linear,
    "ease_in": ease_in,
    "ease_out": ease_out,
    "exponential": exponential,
}


def get_easing (shape: typing.Union[str, EasingFn]) -> EasingFn:

    """Return an easing function by name, or pass a callable through unchanged.

    Raises:
        ValueError: If *shape* is a string that does not match any known easing.
    """

    if callable(shape):
        return shape

    if shape not in _EASING_FUNCTIONS:
        available = ", ".join(sorted(_EASING_FUNCTIONS))
        raise ValueError(f"Unknown easing shape {shape!r}. Available: {available}")

    return _EASING_FUNCTIONS[shape]


def clamp (value: float, low: float = 0.0, high: float = 1.0) -> float:

    """Clamp *value* into [low, high]."""

    return max(low, min(high, value))


def lerp (start: float, end: float, t: float) -> float:

    """Linear interpolation that returns the endpoints exactly at t = 0 and t = 1."""

    if t <= 0.0:
        return start

    if t >= 1.0:
        return end

    return start * (1.0 - t) + end * t


def map_value (start: float, end: float, t: float, shape: typing.Union[str, EasingFn] = "linear") -> float:

    """Ease progress *t* (clamped to [0, 1]) and map it onto [start, end]."""

    return lerp(start, end, get_easing(shape)(clamp(t)))
