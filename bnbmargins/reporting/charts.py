"""Chart geometry for hand-drawn PDF charts.

Functions here only compute coordinates; drawing lives in ``pdf_report``.
Degenerate input (no values, non-positive max or total, NaN/inf) yields an
empty shape list so the caller draws nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float


def _clean(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0 or not np.all(np.isfinite(arr)):
        return np.array([], dtype=float)
    return arr


def bar_rects(
    values: Sequence[float],
    x: float,
    y: float,
    width: float,
    height: float,
    gap: float = 4.0,
) -> List[Rect]:
    """Bars anchored on the chart baseline, height proportional to value / max."""
    arr = _clean(values)
    if arr.size == 0:
        return []
    peak = arr.max()
    if peak <= 0:
        return []

    slot = width / arr.size
    bar_w = max(slot - gap, 1.0)
    heights = np.clip(arr, 0, None) / peak * height
    baseline = y + height
    return [
        Rect(float(x + i * slot + gap / 2), float(baseline - h), float(bar_w), float(h))
        for i, h in enumerate(heights)
        if h > 0
    ]


def pie_slices(
    values: Sequence[float],
    cx: float,
    cy: float,
    radius: float,
    step_degrees: float = 5.0,
) -> List[List[List[Point]]]:
    """Slices as fans of triangles from the center.

    Each slice spans an angle proportional to value / total and is split into
    triangles of at most ``step_degrees`` so curved edges stay smooth.
    """
    arr = _clean(values)
    if arr.size == 0:
        return []
    arr = np.clip(arr, 0, None)
    total = arr.sum()
    if total <= 0:
        return []

    slices: List[List[List[Point]]] = []
    start = -np.pi / 2
    step = np.radians(step_degrees)
    for value in arr:
        sweep = value / total * 2 * np.pi
        if sweep <= 0:
            slices.append([])
            continue
        count = max(int(np.ceil(sweep / step)), 1)
        angles = np.linspace(start, start + sweep, count + 1)
        xs = cx + radius * np.cos(angles)
        ys = cy + radius * np.sin(angles)
        slices.append(
            [
                [(cx, cy), (float(xs[i]), float(ys[i])), (float(xs[i + 1]), float(ys[i + 1]))]
                for i in range(count)
            ]
        )
        start += sweep
    return slices


def line_points(
    values: Sequence[float],
    x: float,
    y: float,
    width: float,
    height: float,
) -> List[Point]:
    """Points spread evenly across ``width``, scaled between min and max."""
    arr = _clean(values)
    if arr.size == 0:
        return []
    low, high = arr.min(), arr.max()
    span = high - low
    scaled = np.full(arr.size, 0.5) if span == 0 else (arr - low) / span
    if arr.size == 1:
        xs = np.array([x + width / 2])
    else:
        xs = x + np.arange(arr.size) * (width / (arr.size - 1))
    ys = y + height - scaled * height
    return [(float(px), float(py)) for px, py in zip(xs, ys)]
