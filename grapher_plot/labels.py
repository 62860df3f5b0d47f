from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable, Collection, Iterable, Mapping, Sequence

from grapher_plot.config import LABEL_BUDGET_DIVISOR, LABEL_PADDING_PX, MAX_LABELS_TO_ADD
from grapher_plot.raster.draw_text import line_height, text_size


TextMeasure = Callable[[str, float], tuple[float, float]]


def measure_text(text: str, font_size: float) -> tuple[float, float]:
    # Height follows the font, not the glyphs, so every label gets the same slot.
    w, _ = text_size(text, font_size_px=font_size)
    return float(w), float(line_height(font_size_px=font_size))


@dataclass(frozen=True)
class TextBounds:
    width: float
    height: float


@dataclass
class LabelCandidate:
    entity_id: str
    x_value: float
    y_sort_value: float | None
    bounds: TextBounds
    is_picked: bool = False
    is_selected: bool = False


def make_label_candidates(
    x_rows: Iterable[tuple[str, float]],
    y_sort_values: Mapping[str, float],
    *,
    font_size: float,
    selected: Collection[str] = (),
    measure: TextMeasure = measure_text,
) -> list[LabelCandidate]:
    candidates = []
    for entity_id, x_value in x_rows:
        width, height = measure(entity_id, font_size)
        is_selected = entity_id in selected
        candidates.append(
            LabelCandidate(
                entity_id=entity_id,
                x_value=float(x_value),
                y_sort_value=y_sort_values.get(entity_id),
                bounds=TextBounds(width=width, height=height),
                is_picked=is_selected,
                is_selected=is_selected,
            )
        )
    return candidates


def sort_label_candidates(candidates: Sequence[LabelCandidate]) -> list[LabelCandidate]:
    """Descending by y sort value; candidates without one keep their order at the end."""
    defined = [c for c in candidates if c.y_sort_value is not None]
    undefined = [c for c in candidates if c.y_sort_value is None]
    defined.sort(key=lambda c: c.y_sort_value, reverse=True)
    return defined + undefined


def num_labels_to_add(available_pixels: float, label_height: float, padding: float = LABEL_PADDING_PX) -> int:
    slot = label_height + padding
    if available_pixels <= 0 or slot <= 0:
        return 0
    return int(math.floor(min(available_pixels / slot / LABEL_BUDGET_DIVISOR, MAX_LABELS_TO_ADD)))


def split_into_equal_domain_size_chunks(
    candidates: Sequence[LabelCandidate], num_chunks: int
) -> list[list[LabelCandidate]]:
    """Split candidates, in order, into chunks of roughly equal summed x value.

    A chunk is closed once its running sum exceeds the per-chunk threshold;
    the overshoot is carried into the next chunk so large entities can span
    several thresholds.
    """
    if not candidates:
        return []
    if num_chunks <= 0:
        return [list(candidates)]
    total = sum(c.x_value for c in candidates)
    threshold = math.ceil(total / num_chunks) if total > 0 else 0
    if threshold <= 0:
        return [list(candidates)]

    chunks: list[list[LabelCandidate]] = []
    current: list[LabelCandidate] = []
    domain_size = 0.0
    for candidate in candidates:
        while domain_size > threshold:
            chunks.append(current)
            current = []
            domain_size -= threshold
        domain_size += candidate.x_value
        current.append(candidate)
    chunks.append(current)
    return [chunk for chunk in chunks if chunk]


def pick_label_candidates(
    candidates: Sequence[LabelCandidate],
    available_pixels: float,
    *,
    padding: float = LABEL_PADDING_PX,
) -> list[LabelCandidate]:
    """Pick an evenly spread subset of labels that fits the available width.

    Always picked: selected entities, the largest entity by y, the first and
    last candidates by y and by input order, and the largest entity by x.
    The rest come from chunks of equal x mass, one per chunk unless the
    chunk already holds a forced pick. Returned in y-sorted order, as copies;
    the input candidates are left untouched.
    """
    if not candidates:
        return []
    candidates = [replace(c, is_picked=c.is_selected) for c in candidates]
    ordered = sort_label_candidates(candidates)

    first_defined = next((c for c in ordered if c.y_sort_value is not None), None)
    if first_defined is not None:
        first_defined.is_picked = True
    ordered[0].is_picked = True
    ordered[-1].is_picked = True
    candidates[0].is_picked = True
    candidates[-1].is_picked = True
    max(candidates, key=lambda c: c.x_value).is_picked = True

    label_height = ordered[0].bounds.height
    num_labels = num_labels_to_add(available_pixels, label_height, padding)
    if num_labels > 0:
        for chunk in split_into_equal_domain_size_chunks(candidates, num_labels):
            if any(c.is_picked for c in chunk):
                continue
            max(chunk, key=lambda c: c.x_value).is_picked = True

    return [c for c in ordered if c.is_picked]
