"""Geometría 2D pura usada por el motor de propagación de Ligmap."""

from geometry.points import Point, coords_almost_equal, convex_hull, hull_centroid, polygon_centroid
from geometry.placement import Orientation, find_side_most_space

__all__ = [
    "Point",
    "coords_almost_equal",
    "convex_hull",
    "hull_centroid",
    "polygon_centroid",
    "Orientation",
    "find_side_most_space",
]
