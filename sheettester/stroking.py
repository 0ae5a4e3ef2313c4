"""Stroke outlining.

Turns a path plus a :class:`~sheettester.paint.Stroke` into the filled
device-space region the stroke covers. Widths, caps, joins and dashes are
interpreted in user space, so a scaled or sheared transform distorts the pen
exactly like it distorts the path. Hairlines (width 0) are outlined in device
space and stay one pixel wide.
"""

from __future__ import annotations

import numpy as np
from shapely.geometry import LinearRing, LineString, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from .geometry import AffineTransform
from .paint import LineCap, LineJoin, Stroke
from .shapes import Path, transform_geometry

_CAP_STYLES = {
    LineCap.BUTT: "flat",
    LineCap.ROUND: "round",
    LineCap.SQUARE: "square",
}

_JOIN_STYLES = {
    LineJoin.MITER: "mitre",
    LineJoin.ROUND: "round",
    LineJoin.BEVEL: "bevel",
}


def dash_polyline(points: np.ndarray, dash: tuple[float, ...],
                  phase: float = 0.0) -> list[np.ndarray]:
    """Split a polyline into its "on" dash segments.

    Args:
        points: (N, 2) polyline
        dash: Alternating on/off lengths, starting with "on"
        phase: Offset into the dash pattern

    Returns:
        List of (M, 2) polylines, one per visible dash
    """
    total = float(sum(dash))
    pos = phase % total
    idx = 0
    while pos >= dash[idx]:
        pos -= dash[idx]
        idx = (idx + 1) % len(dash)
    remaining = dash[idx] - pos
    on = idx % 2 == 0

    pieces: list[np.ndarray] = []
    current: list[np.ndarray] = [points[0]] if on else []
    for p0, p1 in zip(points[:-1], points[1:]):
        seg = float(np.hypot(*(p1 - p0)))
        t = 0.0
        while seg - t > remaining:
            t += remaining
            pt = p0 + (p1 - p0) * (t / seg)
            if on:
                current.append(pt)
                if len(current) >= 2:
                    pieces.append(np.array(current))
                current = []
            else:
                current = [pt]
            on = not on
            idx = (idx + 1) % len(dash)
            remaining = dash[idx]
        remaining -= seg - t
        if on:
            current.append(p1)
    if on and len(current) >= 2:
        pieces.append(np.array(current))
    return pieces


def _centerlines(path: Path, stroke: Stroke, scale: float) -> list[BaseGeometry]:
    lines: list[BaseGeometry] = []
    for sp in path.flatten(scale):
        pts = sp.points
        if stroke.dash is not None:
            if sp.closed:
                pts = np.vstack([pts, pts[:1]])
            lines.extend(LineString(p) for p in dash_polyline(pts, stroke.dash, stroke.dash_phase))
        elif sp.closed and len(pts) >= 3:
            lines.append(LinearRing(pts))
        else:
            lines.append(LineString(pts))
    return lines


def _buffer(lines: list[BaseGeometry], half_width: float, stroke: Stroke) -> BaseGeometry:
    parts = [
        line.buffer(half_width,
                    quad_segs=8,
                    cap_style=_CAP_STYLES[stroke.cap],
                    join_style=_JOIN_STYLES[stroke.join],
                    mitre_limit=stroke.miter_limit)
        for line in lines
        if line.length > 0
    ]
    if not parts:
        return Polygon()
    return unary_union(parts)


def stroke_outline(path: Path, stroke: Stroke,
                   transform: AffineTransform) -> BaseGeometry:
    """Device space region covered by stroking ``path``.

    Args:
        path: Path in user space
        stroke: Stroke attributes
        transform: User to device transform

    Returns:
        shapely geometry in device space (possibly empty)
    """
    if stroke.is_hairline:
        device_path = path.transformed(transform)
        hairline = Stroke(width=1.0, cap=LineCap.BUTT, join=stroke.join,
                          dash=stroke.dash, dash_phase=stroke.dash_phase)
        return _buffer(_centerlines(device_path, hairline, 1.0), 0.5, hairline)
    outline = _buffer(_centerlines(path, stroke, transform.scale_factor),
                      stroke.width / 2, stroke)
    return transform_geometry(outline, transform)


__all__ = ["dash_polyline", "stroke_outline"]
