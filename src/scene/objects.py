"""Elementos de escena que no pertenecen al grafo de una estructura.

Anotaciones de texto libres y contactos hidrofóbicos dibujados como
splines que pasan por sus puntos de control.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from geometry.points import Point
from molgraph.boundary import Limits
from molgraph.model import DrawMetrics

# Muestras por tramo del spline de un contacto hidrofóbico.
CURVE_SAMPLES = 8


@dataclass
class Annotation:
    """Texto libre de la escena, opcionalmente ligado a una estructura."""
    id: int
    label: str
    coordinates: Point
    belongs_to: Optional[int] = None
    enabled: bool = True
    draw_limits: Optional[Limits] = None

    def compute_limits(self, metrics: DrawMetrics) -> Limits:
        return Limits.around(
            self.coordinates,
            len(self.label) * metrics.char_width / 2.0,
            metrics.label_height / 2.0,
        )


@dataclass
class ControlPoint:
    coordinates: Point
    enabled: bool = True
    # Pares (structure_id, atom_id) a los que está ligado el punto.
    atom_links: List[Tuple[int, int]] = field(default_factory=list)


@dataclass
class HydrophobicContact:
    """Contacto hidrofóbico dibujado como curva suave."""
    id: int
    control_points: List[ControlPoint]
    belongs_to: Optional[int] = None
    enabled: bool = True
    curve: List[Point] = field(default_factory=list)

    def compute_curve(self, samples: int = CURVE_SAMPLES) -> List[Point]:
        """Interpola los puntos de control con un spline de Catmull-Rom."""
        pts = [cp.coordinates for cp in self.control_points if cp.enabled]
        if len(pts) < 3:
            return list(pts)
        padded = [pts[0]] + pts + [pts[-1]]
        curve: List[Point] = []
        for i in range(1, len(padded) - 2):
            p0, p1, p2, p3 = padded[i - 1], padded[i], padded[i + 1], padded[i + 2]
            for step in range(samples):
                t = step / samples
                curve.append(_catmull_rom(p0, p1, p2, p3, t))
        curve.append(pts[-1])
        return curve

    def enabled_indexes(self) -> List[int]:
        return [idx for idx, cp in enumerate(self.control_points) if cp.enabled]

    def update_curve(self) -> None:
        self.curve = self.compute_curve()

    def compute_limits(self, line_width: float) -> Optional[Limits]:
        limits = Limits.from_points(self.curve)
        if limits is None:
            return None
        return limits.expanded(line_width)


def _catmull_rom(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    t2 = t * t
    t3 = t2 * t
    return tuple(
        0.5 * (
            2 * p1[k]
            + (-p0[k] + p2[k]) * t
            + (2 * p0[k] - 5 * p1[k] + 4 * p2[k] - p3[k]) * t2
            + (-p0[k] + 3 * p1[k] - 3 * p2[k] + p3[k]) * t3
        )
        for k in (0, 1)
    )
