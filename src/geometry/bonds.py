"""
Geometría de dibujo de enlaces: segmentos recortados, cuñas y líneas
paralelas de enlaces múltiples y anillos aromáticos.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from geometry.points import Point, add, normal, scale, sub, unit

Segment = Tuple[Point, Point]


@dataclass(frozen=True)
class EdgeGeometry:
    """Resultado inmutable del cálculo de dibujo de un enlace."""
    start: Point
    end: Point
    wedge: Optional[Tuple[Point, Point, Point]] = None
    hashed: bool = False
    offsets: Tuple[Segment, ...] = ()


def trim_segment(p0: Point, p1: Point, trim_start: float, trim_end: float) -> Optional[Segment]:
    """Recorta un segmento por ambos extremos.

    Returns:
        El segmento recortado o `None` si el recorte lo hace desaparecer.
    """
    length = math.hypot(p1[0] - p0[0], p1[1] - p0[1])
    if length - trim_start - trim_end <= 1e-9:
        return None
    u = unit(sub(p1, p0))
    return add(p0, scale(u, trim_start)), sub(p1, scale(u, trim_end))


def compute_wedge_points(
    p0: Point,
    p1: Point,
    width: float,
) -> tuple[Point, Point, Point]:
    """Calcula los puntos de una cuña (tip, base1, base2).

    Args:
        p0: Punto del vértice (punta de la cuña).
        p1: Punto del centro de la base.
        width: Ancho total de la base.

    Returns:
        Tupla `(tip, base1, base2)` con coordenadas 2D.
    """
    nx, ny = normal(sub(p1, p0))
    if nx == 0.0 and ny == 0.0:
        return p0, p0, p0
    half_w = width / 2.0
    base1 = (p1[0] + nx * half_w, p1[1] + ny * half_w)
    base2 = (p1[0] - nx * half_w, p1[1] - ny * half_w)
    return p0, base1, base2


def parallel_segment(p0: Point, p1: Point, offset: float, shorten: float = 0.0) -> Segment:
    """Segmento paralelo desplazado `offset` hacia la normal izquierda."""
    n = scale(normal(sub(p1, p0)), offset)
    u = scale(unit(sub(p1, p0)), shorten)
    return add(add(p0, n), u), sub(add(p1, n), u)


def compute_edge_geometry(
    p_from: Point,
    p_to: Point,
    type_name: str,
    *,
    trim_from: float = 0.0,
    trim_to: float = 0.0,
    wedge_width: float = 6.0,
    spacing: float = 4.0,
) -> Optional[EdgeGeometry]:
    """Calcula la geometría visible de un enlace.

    Args:
        p_from: Coordenadas del átomo origen.
        p_to: Coordenadas del átomo destino.
        type_name: Valor del tipo de enlace (`single`, `stereoFront`, ...).
        trim_from: Recorte por la etiqueta del átomo origen.
        trim_to: Recorte por la etiqueta del átomo destino.
        wedge_width: Ancho de la base de las cuñas.
        spacing: Separación de las líneas de enlaces múltiples.

    Returns:
        La geometría del enlace, o `None` cuando las etiquetas de ambos
        extremos se solapan y el enlace no debe dibujarse.
    """
    segment = trim_segment(p_from, p_to, trim_from, trim_to)
    if segment is None:
        return None
    start, end = segment

    if type_name.startswith("stereo"):
        reverse = type_name.endswith("Reverse")
        tip, base = (end, start) if reverse else (start, end)
        return EdgeGeometry(
            start=start,
            end=end,
            wedge=compute_wedge_points(tip, base, wedge_width),
            hashed=type_name.startswith("stereoBack"),
        )
    if type_name == "double":
        return EdgeGeometry(start=start, end=end, offsets=(parallel_segment(start, end, spacing),))
    if type_name == "triple":
        return EdgeGeometry(
            start=start,
            end=end,
            offsets=(
                parallel_segment(start, end, spacing),
                parallel_segment(start, end, -spacing),
            ),
        )
    return EdgeGeometry(start=start, end=end)


def ring_inner_line(p0: Point, p1: Point, inward: Point, space: float) -> Segment:
    """Línea interior de un enlace aromático dentro de su anillo.

    Args:
        p0: Primer extremo del enlace.
        p1: Segundo extremo del enlace.
        inward: Normal unitaria hacia el centro del anillo.
        space: Separación respecto al enlace y acortamiento en cada extremo.
    """
    u = scale(unit(sub(p1, p0)), space)
    shift = scale(inward, space)
    return add(add(p0, shift), u), sub(add(p1, shift), u)
