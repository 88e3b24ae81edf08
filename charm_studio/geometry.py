"""
Path geometry for placing charms on a bracelet outline.

A placement is stored as a path parameter `t` (0 = start of the path,
1 = its end) plus a perpendicular offset in millimetres. Everything here
turns those logical values into view-box pixels. Arc length is approximated
by flattening curves into a shapely `LineString`; the same line answers both
`point_at` and `length`, so `t = 1` always lands on the physical end of the
bracelet.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple, Union

import numpy as np
from shapely.geometry import LineString

from charm_studio.errors import InvalidGeometry

CURVE_SAMPLES = 32


@dataclass(slots=True, frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, k: float) -> "Point":
        return Point(self.x * k, self.y * k)


@dataclass(slots=True, frozen=True)
class Pose:
    x: float
    y: float
    angle_deg: float


# --- unit conversion ---


def px_per_mm(view_box_length_px: float, physical_length_mm: float) -> float:
    if physical_length_mm <= 0:
        raise InvalidGeometry("physical_length_mm must be greater than 0")
    return view_box_length_px / physical_length_mm


def mm_to_px(mm: float, physical_length_mm: float, view_box_length_px: float) -> float:
    return mm * px_per_mm(view_box_length_px, physical_length_mm)


def px_to_mm(px: float, physical_length_mm: float, view_box_length_px: float) -> float:
    ratio = px_per_mm(view_box_length_px, physical_length_mm)
    if ratio == 0:
        raise InvalidGeometry("view_box_length_px must be greater than 0")
    return px / ratio


# --- segments ---


@dataclass(slots=True, frozen=True)
class Line:
    start: Point
    end: Point

    def point(self, u: float) -> Point:
        return Point(self.start.x + (self.end.x - self.start.x) * u, self.start.y + (self.end.y - self.start.y) * u)

    def derivative(self, u: float) -> Point:
        return self.end - self.start


@dataclass(slots=True, frozen=True)
class QuadraticBezier:
    start: Point
    control: Point
    end: Point

    def point(self, u: float) -> Point:
        a = (1 - u) ** 2
        b = 2 * (1 - u) * u
        c = u**2
        return Point(
            a * self.start.x + b * self.control.x + c * self.end.x,
            a * self.start.y + b * self.control.y + c * self.end.y,
        )

    def derivative(self, u: float) -> Point:
        return (self.control - self.start).scaled(2 * (1 - u)) + (self.end - self.control).scaled(2 * u)


@dataclass(slots=True, frozen=True)
class CubicBezier:
    start: Point
    control1: Point
    control2: Point
    end: Point

    def point(self, u: float) -> Point:
        v = 1 - u
        a, b, c, d = v**3, 3 * v * v * u, 3 * v * u * u, u**3
        return Point(
            a * self.start.x + b * self.control1.x + c * self.control2.x + d * self.end.x,
            a * self.start.y + b * self.control1.y + c * self.control2.y + d * self.end.y,
        )

    def derivative(self, u: float) -> Point:
        v = 1 - u
        return (
            (self.control1 - self.start).scaled(3 * v * v)
            + (self.control2 - self.control1).scaled(6 * v * u)
            + (self.end - self.control2).scaled(3 * u * u)
        )


Segment = Union[Line, QuadraticBezier, CubicBezier]


# --- parsing ---

_TOKEN_RE = re.compile(
    r"(?P<cmd>[MmLlHhVvQqTtCcSsZzAa])"
    r"|(?P<num>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
    r"|(?P<sep>[\s,]+)"
    r"|(?P<bad>.)"
)

_ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "Q": 4, "T": 2, "C": 6, "S": 4, "Z": 0}


def _tokenize(d: str) -> List[Union[str, float]]:
    tokens: List[Union[str, float]] = []
    for m in _TOKEN_RE.finditer(d):
        if m.group("cmd"):
            tokens.append(m.group("cmd"))
        elif m.group("num"):
            tokens.append(float(m.group("num")))
        elif m.group("bad"):
            raise InvalidGeometry(f"Unexpected character {m.group('bad')!r} in path data")
    return tokens


def _parse_segments(d: str) -> List[Segment]:
    tokens = _tokenize(d)
    if not tokens:
        raise InvalidGeometry("Empty path data")
    if not isinstance(tokens[0], str) or tokens[0] not in "Mm":
        raise InvalidGeometry("Path data must start with a move-to command")

    segments: List[Segment] = []
    current = Point(0.0, 0.0)
    subpath_start = current
    last_quad_control = None
    last_cubic_control = None
    cmd = ""
    i = 0

    while i < len(tokens):
        tok = tokens[i]
        if isinstance(tok, str):
            cmd = tok
            i += 1
            if cmd.upper() == "A":
                raise InvalidGeometry("Arc commands are not supported")
        elif not cmd or cmd.upper() == "Z":
            raise InvalidGeometry(f"Number {tok} without a command")

        upper = cmd.upper()
        relative = cmd.islower()
        arity = _ARITY[upper]
        args = tokens[i : i + arity]
        if len(args) < arity or any(isinstance(a, str) for a in args):
            raise InvalidGeometry(f"Command {cmd} expects {arity} numbers")
        i += arity
        nums: List[float] = [float(a) for a in args]

        def absolute(x: float, y: float) -> Point:
            return Point(current.x + x, current.y + y) if relative else Point(x, y)

        quad_control = None
        cubic_control = None

        if upper == "M":
            current = absolute(nums[0], nums[1])
            subpath_start = current
            # extra coordinate pairs after a move-to are line-tos
            cmd = "l" if relative else "L"
        elif upper == "L":
            end = absolute(nums[0], nums[1])
            segments.append(Line(current, end))
            current = end
        elif upper == "H":
            end = Point(current.x + nums[0] if relative else nums[0], current.y)
            segments.append(Line(current, end))
            current = end
        elif upper == "V":
            end = Point(current.x, current.y + nums[0] if relative else nums[0])
            segments.append(Line(current, end))
            current = end
        elif upper == "Q":
            quad_control = absolute(nums[0], nums[1])
            end = absolute(nums[2], nums[3])
            segments.append(QuadraticBezier(current, quad_control, end))
            current = end
        elif upper == "T":
            if last_quad_control is None:
                quad_control = current
            else:
                quad_control = current + (current - last_quad_control)
            end = absolute(nums[0], nums[1])
            segments.append(QuadraticBezier(current, quad_control, end))
            current = end
        elif upper == "C":
            c1 = absolute(nums[0], nums[1])
            cubic_control = absolute(nums[2], nums[3])
            end = absolute(nums[4], nums[5])
            segments.append(CubicBezier(current, c1, cubic_control, end))
            current = end
        elif upper == "S":
            c1 = current if last_cubic_control is None else current + (current - last_cubic_control)
            cubic_control = absolute(nums[0], nums[1])
            end = absolute(nums[2], nums[3])
            segments.append(CubicBezier(current, c1, cubic_control, end))
            current = end
        elif upper == "Z":
            if current != subpath_start:
                segments.append(Line(current, subpath_start))
            current = subpath_start

        last_quad_control = quad_control
        last_cubic_control = cubic_control

    if not segments:
        raise InvalidGeometry("Path data contains no drawable segments")
    return segments


class SvgPath:
    """
    Parsed path, flattened into a shapely `LineString` for arc-length queries.

    Every chord of the flattened line remembers which segment it came from
    and the curve parameters at its ends, so a length fraction can be mapped
    back onto the exact curve for tangents.
    """

    def __init__(self, segments: List[Segment]):
        if not segments:
            raise InvalidGeometry("Path has no segments")
        self.segments = segments

        start = segments[0].point(0.0)
        coords: List[Tuple[float, float]] = [(start.x, start.y)]
        # per chord: segment index, u at chord start, u at chord end
        chords: List[Tuple[int, float, float]] = []
        for idx, seg in enumerate(segments):
            samples = 1 if isinstance(seg, Line) else CURVE_SAMPLES
            for k in range(1, samples + 1):
                p = seg.point(k / samples)
                coords.append((p.x, p.y))
                chords.append((idx, (k - 1) / samples, k / samples))

        self.line = LineString(coords)
        self.length = self.line.length
        if self.length <= 0:
            raise InvalidGeometry("Path has zero length")

        xy = np.asarray(coords)
        self._cumulative = np.concatenate(([0.0], np.cumsum(np.hypot(*np.diff(xy, axis=0).T))))
        self._chords = chords

    @classmethod
    def parse(cls, d: str) -> "SvgPath":
        return cls(_parse_segments(d))

    def locate(self, t: float) -> Tuple[Segment, float]:
        """Segment and local curve parameter at fraction `t` of the length."""
        target = min(max(t, 0.0), 1.0) * self._cumulative[-1]
        k = int(np.searchsorted(self._cumulative, target, side="left"))
        k = min(max(k, 1), len(self._chords))
        start, end = self._cumulative[k - 1], self._cumulative[k]
        frac = (target - start) / (end - start) if end > start else 0.0
        idx, u0, u1 = self._chords[k - 1]
        return self.segments[idx], u0 + (u1 - u0) * min(max(frac, 0.0), 1.0)

    def point_at(self, t: float) -> Point:
        # negative distances count from the end in shapely, so clamp first
        p = self.line.interpolate(min(max(t, 0.0), 1.0), normalized=True)
        return Point(p.x, p.y)

    def tangent_at(self, t: float) -> Point:
        seg, u = self.locate(t)
        d = seg.derivative(u)
        if math.hypot(d.x, d.y) < 1e-12:
            # degenerate control point at a curve end; fall back to the chord
            d = seg.point(min(u + 1e-3, 1.0)) - seg.point(max(u - 1e-3, 0.0))
        return d


PathLike = Union[str, SvgPath]


@lru_cache(maxsize=256)
def parse_path(d: str) -> SvgPath:
    return SvgPath.parse(d)


def _as_path(path: PathLike) -> SvgPath:
    return parse_path(path) if isinstance(path, str) else path


def path_length(path: PathLike) -> float:
    return _as_path(path).length


def point_at_parameter(path: PathLike, t: float) -> Point:
    return _as_path(path).point_at(t)


def tangent_angle(path: PathLike, t: float) -> float:
    d = _as_path(path).tangent_at(t)
    return math.degrees(math.atan2(d.y, d.x))


def normal_vector(path: PathLike, t: float) -> Point:
    d = _as_path(path).tangent_at(t)
    norm = math.hypot(d.x, d.y)
    return Point(-d.y / norm, d.x / norm)


def rotate_point(point: Point, angle_deg: float) -> Point:
    rad = math.radians(angle_deg)
    cos, sin = math.cos(rad), math.sin(rad)
    return Point(point.x * cos - point.y * sin, point.x * sin + point.y * cos)


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def is_point_in_bounds(point: Point, width: float, height: float) -> bool:
    return 0 <= point.x <= width and 0 <= point.y <= height


def place_on_path(
    path: PathLike, t: float, offset_mm: float, length_mm: float, rotation_deg: float = 0.0
) -> Pose:
    """
    Pixel pose of a charm: point on the path at `t`, pushed `offset_mm` along
    the normal, rotated to follow the path plus the charm's own rotation.
    The path length is the view-box length the physical length maps onto.
    """
    p = _as_path(path)
    base = p.point_at(t)
    offset_px = mm_to_px(offset_mm, length_mm, p.length)
    pos = base + normal_vector(p, t).scaled(offset_px)
    return Pose(x=pos.x, y=pos.y, angle_deg=tangent_angle(p, t) + rotation_deg)
