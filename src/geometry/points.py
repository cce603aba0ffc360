"""
Utilidades geométricas puras sobre puntos 2D.

Los puntos se representan como tuplas `(x, y)` para que puedan copiarse y
compararse sin coste; todas las funciones son deterministas y no mutan
sus argumentos.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

Point = Tuple[float, float]

# Tolerancia absoluta para considerar dos coordenadas iguales.
COORD_TOLERANCE = 1e-6


def coords_almost_equal(a: Point, b: Point, tol: float = COORD_TOLERANCE) -> bool:
    """Indica si dos puntos coinciden dentro de la tolerancia dada."""
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def distance(a: Point, b: Point) -> float:
    """Distancia euclídea entre dos puntos."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def midpoint(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def add(a: Point, b: Point) -> Point:
    return (a[0] + b[0], a[1] + b[1])


def sub(a: Point, b: Point) -> Point:
    return (a[0] - b[0], a[1] - b[1])


def scale(v: Point, factor: float) -> Point:
    return (v[0] * factor, v[1] * factor)


def unit(v: Point) -> Point:
    """Normaliza un vector; el vector nulo se devuelve tal cual."""
    length = math.hypot(v[0], v[1])
    if length <= 1e-12:
        return (0.0, 0.0)
    return (v[0] / length, v[1] / length)


def normal(v: Point) -> Point:
    """Normal unitaria (giro de 90° a la izquierda) de un vector."""
    ux, uy = unit(v)
    return (-uy, ux)


def mean_point(points: Iterable[Point]) -> Point:
    pts = list(points)
    if not pts:
        return (0.0, 0.0)
    return (
        sum(p[0] for p in pts) / len(pts),
        sum(p[1] for p in pts) / len(pts),
    )


def _cross(o: Point, a: Point, b: Point) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points: Iterable[Point]) -> List[Point]:
    """Calcula la envolvente convexa (monotone chain).

    Args:
        points: Puntos de entrada, en cualquier orden.

    Returns:
        Vértices de la envolvente en orden antihorario, sin repetir el
        primero. Con menos de tres puntos distintos se devuelven tal cual.
    """
    pts = sorted(set(points))
    if len(pts) <= 2:
        return pts
    lower: List[Point] = []
    for p in pts:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    upper: List[Point] = []
    for p in reversed(pts):
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return lower[:-1] + upper[:-1]


def signed_area(polygon: Sequence[Point]) -> float:
    """Área con signo (positiva si el polígono es antihorario)."""
    area = 0.0
    n = len(polygon)
    for i in range(n):
        x0, y0 = polygon[i]
        x1, y1 = polygon[(i + 1) % n]
        area += x0 * y1 - x1 * y0
    return area / 2.0


def polygon_centroid(polygon: Sequence[Point]) -> Point:
    """Centroide de un polígono simple.

    Si el área es (casi) nula se usa la media aritmética de los vértices.
    """
    area = signed_area(polygon)
    if abs(area) <= 1e-12:
        return mean_point(polygon)
    cx = 0.0
    cy = 0.0
    n = len(polygon)
    for i in range(n):
        x0, y0 = polygon[i]
        x1, y1 = polygon[(i + 1) % n]
        factor = x0 * y1 - x1 * y0
        cx += (x0 + x1) * factor
        cy += (y0 + y1) * factor
    return (cx / (6.0 * area), cy / (6.0 * area))


def hull_centroid(points: Iterable[Point]) -> Point:
    """Centroide de la envolvente convexa de un conjunto de puntos."""
    return polygon_centroid(convex_hull(points))


def inward_normals(polygon: Sequence[Point]) -> List[Point]:
    """Normales unitarias de cada lado que apuntan al interior del polígono.

    El lado `i` va del vértice `i` al `i + 1`.
    """
    counter_clockwise = signed_area(polygon) >= 0
    normals: List[Point] = []
    n = len(polygon)
    for i in range(n):
        nx, ny = normal(sub(polygon[(i + 1) % n], polygon[i]))
        if not counter_clockwise:
            nx, ny = -nx, -ny
        normals.append((nx, ny))
    return normals


def as_point(value) -> Point:
    """Convierte un registro `{x, y}` o una secuencia de dos números en punto."""
    if isinstance(value, dict):
        return (float(value["x"]), float(value["y"]))
    x, y = value
    return (float(x), float(y))
