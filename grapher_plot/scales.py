from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import numpy as np

from grapher_plot.config import AxisConfig


@dataclass(frozen=True)
class Bounds:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_tuple(cls, bounds: tuple[float, float, float, float]) -> "Bounds":
        x, y, width, height = bounds
        return cls(x=float(x), y=float(y), width=float(width), height=float(height))

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def pad_left(self, amount: float) -> "Bounds":
        amount = min(amount, self.width)
        return Bounds(self.x + amount, self.y, self.width - amount, self.height)

    def pad_right(self, amount: float) -> "Bounds":
        return Bounds(self.x, self.y, max(0.0, self.width - amount), self.height)

    def pad_top(self, amount: float) -> "Bounds":
        amount = min(amount, self.height)
        return Bounds(self.x, self.y + amount, self.width, self.height - amount)

    def pad_bottom(self, amount: float) -> "Bounds":
        return Bounds(self.x, self.y, self.width, max(0.0, self.height - amount))


@dataclass(frozen=True)
class LinearAxis:
    """Maps a numeric domain onto a pixel range.

    Vertical axes are ``inverted``: the domain minimum lands on the larger
    pixel coordinate, since screen y grows downward.
    """

    domain: tuple[float, float]
    range: tuple[float, float]
    inverted: bool = False

    @classmethod
    def with_user_settings(
        cls,
        default_domain: tuple[float, float],
        pixel_range: tuple[float, float],
        config: AxisConfig | None = None,
        *,
        inverted: bool = False,
    ) -> "LinearAxis":
        lo, hi = default_domain
        if config is not None:
            if config.min is not None:
                lo = float(config.min)
            if config.max is not None:
                hi = float(config.max)
        return cls(domain=(float(lo), float(hi)), range=(float(pixel_range[0]), float(pixel_range[1])), inverted=inverted)

    @property
    def range_size(self) -> float:
        return abs(self.range[1] - self.range[0])

    @property
    def range_min(self) -> float:
        return min(self.range)

    @property
    def range_max(self) -> float:
        return max(self.range)

    def place(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        span = d1 - d0
        if span == 0 or not np.isfinite(span):
            return r1 if self.inverted else r0
        frac = (float(value) - d0) / span
        if self.inverted:
            return r1 - frac * (r1 - r0)
        return r0 + frac * (r1 - r0)

    def ticks(self, target: int = 5) -> np.ndarray:
        lo, hi = sorted(self.domain)
        if not np.isfinite(lo) or not np.isfinite(hi):
            return np.asarray([], dtype=np.float64)
        ticks = generate_nice_ticks(lo, hi, target)
        eps = max(1e-12, (hi - lo) * 1e-9)
        return ticks[(ticks >= lo - eps) & (ticks <= hi + eps)]


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    tick_min = np.floor(vmin / step) * step
    tick_max = np.ceil(vmax / step) * step

    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e9 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.4e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    # Only trim trailing zeros for fractional values (preserve integer zeros like 30, 40).
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
