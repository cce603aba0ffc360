"""
Heurísticas de colocación de etiquetas e hidrógenos implícitos.

Las direcciones se expresan en coordenadas de pantalla: `down` apunta hacia
`y` creciente.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Iterable, Optional

from PyQt6.QtCore import QPointF

# Ángulo mínimo libre (grados) para colocar los hidrógenos a la derecha.
MIN_FREE_ANGLE_RIGHT_DEG = 60


class Orientation(str, Enum):
    """Lados posibles de un texto respecto a su átomo."""
    RIGHT = "right"
    LEFT = "left"
    UP = "up"
    DOWN = "down"

    def opposite(self) -> "Orientation":
        return _OPPOSITES[self]

    def direction(self) -> tuple[float, float]:
        """Vector unitario en coordenadas de pantalla."""
        return _DIRECTIONS[self]


_OPPOSITES = {
    Orientation.RIGHT: Orientation.LEFT,
    Orientation.LEFT: Orientation.RIGHT,
    Orientation.UP: Orientation.DOWN,
    Orientation.DOWN: Orientation.UP,
}

_DIRECTIONS = {
    Orientation.RIGHT: (1.0, 0.0),
    Orientation.LEFT: (-1.0, 0.0),
    Orientation.UP: (0.0, -1.0),
    Orientation.DOWN: (0.0, 1.0),
}


def angle_deg(p0: QPointF, p1: QPointF) -> float:
    """Calcula el ángulo en grados (0-360) usando coordenadas matemáticas."""
    dx = p1.x() - p0.x()
    dy = -(p1.y() - p0.y())
    if dx == 0 and dy == 0:
        return 0.0
    return (math.degrees(math.atan2(dy, dx)) + 360.0) % 360.0


def angle_distance_deg(a_deg: float, b_deg: float) -> float:
    """Distancia angular mínima entre dos ángulos."""
    diff = (a_deg - b_deg + 180.0) % 360.0 - 180.0
    return abs(diff)


def _min_free_angle(center: QPointF, direction: Orientation, neighbors: list[QPointF]) -> float:
    dx, dy = direction.direction()
    probe = QPointF(center.x() + dx * 10.0, center.y() + dy * 10.0)
    probe_angle = angle_deg(center, probe)
    return min(
        (angle_distance_deg(probe_angle, angle_deg(center, nb)) for nb in neighbors),
        default=360.0,
    )


def find_side_most_space(
    center: QPointF,
    neighbors: Iterable[QPointF],
    permit_up_down: bool = True,
) -> Orientation:
    """Busca el lado con más espacio libre alrededor de un átomo.

    Args:
        center: Posición del átomo.
        neighbors: Posiciones de los vecinos enlazados.
        permit_up_down: Si es `False` solo se consideran izquierda/derecha.

    Returns:
        La orientación cuyo ángulo mínimo respecto a los vecinos es mayor.
        Sin vecinos se devuelve siempre `RIGHT`.
    """
    nbs = list(neighbors)
    if not nbs:
        return Orientation.RIGHT

    if not permit_up_down:
        if round(_min_free_angle(center, Orientation.RIGHT, nbs)) >= MIN_FREE_ANGLE_RIGHT_DEG:
            return Orientation.RIGHT
        return Orientation.LEFT

    best: Optional[Orientation] = None
    best_angle = 0.0
    for candidate in (Orientation.RIGHT, Orientation.LEFT, Orientation.DOWN, Orientation.UP):
        free = _min_free_angle(center, candidate, nbs)
        if best is None or free > best_angle:
            best = candidate
            best_angle = free
    return best


def hydrogen_orientation(
    center: QPointF,
    neighbors: Iterable[QPointF],
) -> Orientation:
    """Orientación óptima del texto de hidrógenos implícitos.

    Con un único vecino solo se permite izquierda o derecha.
    """
    nbs = list(neighbors)
    return find_side_most_space(center, nbs, permit_up_down=len(nbs) != 1)


def label_orientation(
    center: QPointF,
    neighbors: Iterable[QPointF],
) -> Orientation:
    """Lado de anclaje de una etiqueta de residuo (opuesto al hueco libre)."""
    return find_side_most_space(center, neighbors, permit_up_down=True).opposite()
