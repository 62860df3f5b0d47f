from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np


@dataclass(frozen=True)
class DomainCorrection:
    factor: float
    below_one_pixel_count: int
    below_one_pixel_sum: float


def compute_domain_correction(x_values: Iterable[float], width_in_pixels: float) -> DomainCorrection:
    """Correct the x domain for entities that get rounded up to one pixel.

    Rounding every entity up to at least one pixel overshoots the axis when
    many entities are individually narrower than a pixel. The one-pixel
    threshold is recomputed after each boosted entity because every boost
    takes one pixel out of the budget left for the rest. Removing a value
    below the threshold can only raise the threshold, so once a value clears
    it every larger value does too.

    Multiplying each x value by the returned factor before placing it on the
    uncorrected axis makes the boosted entities and the proportionally placed
    remainder add up to the axis width.
    """
    values = np.sort(np.asarray(list(x_values), dtype=np.float64))
    if values.size == 0 or width_in_pixels <= 0:
        return DomainCorrection(factor=1.0, below_one_pixel_count=0, below_one_pixel_sum=0.0)
    total = float(np.sum(values))
    if not np.isfinite(total) or total <= 0:
        return DomainCorrection(factor=1.0, below_one_pixel_count=0, below_one_pixel_sum=0.0)

    one_pixel_value = total / width_in_pixels
    count = 0
    removed = 0.0
    for value in values.tolist():
        if value >= one_pixel_value:
            break
        count += 1
        removed += value
        pixels_left = width_in_pixels - count
        if pixels_left <= 0:
            # Every pixel is taken by a boosted entity.
            break
        one_pixel_value = (total - removed) / pixels_left

    denominator = total - removed
    if denominator <= 0:
        return DomainCorrection(factor=1.0, below_one_pixel_count=count, below_one_pixel_sum=removed)
    numerator = max(0.0, total - count * (total / width_in_pixels))
    return DomainCorrection(factor=numerator / denominator, below_one_pixel_count=count, below_one_pixel_sum=removed)


def domain_correction_factor(x_values: Iterable[float], width_in_pixels: float) -> float:
    return compute_domain_correction(x_values, width_in_pixels).factor
