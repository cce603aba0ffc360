"""Pruebas unitarias para las utilidades geométricas."""

import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from PyQt6.QtCore import QPointF

from geometry.bonds import compute_edge_geometry, ring_inner_line, trim_segment
from geometry.placement import Orientation, find_side_most_space, hydrogen_orientation
from geometry.points import (
    as_point,
    convex_hull,
    coords_almost_equal,
    hull_centroid,
    inward_normals,
    polygon_centroid,
)


class PointsTest(unittest.TestCase):
    """Casos de prueba para las funciones de puntos."""

    def test_coords_almost_equal_uses_tolerance(self):
        """Verifica que diferencias por debajo de 1e-6 se consideran iguales."""
        self.assertTrue(coords_almost_equal((1.0, 2.0), (1.0 + 5e-7, 2.0 - 5e-7)))
        self.assertFalse(coords_almost_equal((1.0, 2.0), (1.0 + 1e-5, 2.0)))

    def test_convex_hull_drops_interior_points(self):
        """Verifica que la envolvente ignora los puntos interiores."""
        hull = convex_hull([(0, 0), (4, 0), (4, 4), (0, 4), (2, 2), (1, 3)])
        self.assertEqual(set(hull), {(0, 0), (4, 0), (4, 4), (0, 4)})

    def test_polygon_centroid_of_square(self):
        """Verifica el centroide de un cuadrado en ambos sentidos de giro."""
        square = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]
        self.assertEqual(polygon_centroid(square), (1.0, 1.0))
        self.assertEqual(polygon_centroid(list(reversed(square))), (1.0, 1.0))

    def test_degenerate_polygon_falls_back_to_mean(self):
        """Verifica el centroide de puntos colineales."""
        self.assertEqual(polygon_centroid([(0.0, 0.0), (2.0, 0.0), (4.0, 0.0)]), (2.0, 0.0))

    def test_hull_centroid_ignores_interior_atoms(self):
        """Verifica que un punto interior no desplaza el centro."""
        points = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0), (3.9, 3.9)]
        center = hull_centroid(points)
        self.assertAlmostEqual(center[0], 2.0)
        self.assertAlmostEqual(center[1], 2.0)

    def test_inward_normals_point_to_center(self):
        """Verifica que las normales apuntan al interior en ambos sentidos."""
        square = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]
        for polygon in (square, list(reversed(square))):
            for idx, (nx, ny) in enumerate(inward_normals(polygon)):
                p0 = polygon[idx]
                p1 = polygon[(idx + 1) % 4]
                mid = ((p0[0] + p1[0]) / 2 + nx * 0.1, (p0[1] + p1[1]) / 2 + ny * 0.1)
                self.assertTrue(0 < mid[0] < 2 and 0 < mid[1] < 2)

    def test_as_point_accepts_records(self):
        """Verifica la conversión de registros `{x, y}` y secuencias."""
        self.assertEqual(as_point({"x": 1, "y": 2}), (1.0, 2.0))
        self.assertEqual(as_point([3, 4]), (3.0, 4.0))


class PlacementTest(unittest.TestCase):
    """Casos de prueba para la colocación de hidrógenos y etiquetas."""

    def test_no_neighbors_goes_right(self):
        """Verifica que sin vecinos se elige la derecha."""
        self.assertEqual(find_side_most_space(QPointF(0, 0), []), Orientation.RIGHT)

    def test_left_right_only(self):
        """Verifica el atajo izquierda/derecha con un único vecino."""
        center = QPointF(0, 0)
        self.assertEqual(hydrogen_orientation(center, [QPointF(10, 0)]), Orientation.LEFT)
        self.assertEqual(hydrogen_orientation(center, [QPointF(-10, 0)]), Orientation.RIGHT)
        # 45° por encima de la derecha: menos de 60° libres.
        self.assertEqual(hydrogen_orientation(center, [QPointF(10, -10)]), Orientation.LEFT)

    def test_up_down_allowed_with_two_neighbors(self):
        """Verifica que con dos vecinos laterales se elige arriba o abajo."""
        side = find_side_most_space(QPointF(0, 0), [QPointF(10, 0), QPointF(-10, 0)])
        self.assertIn(side, (Orientation.DOWN, Orientation.UP))

    def test_down_when_neighbors_above(self):
        """Verifica que se elige abajo si los vecinos están por encima."""
        side = find_side_most_space(QPointF(0, 0), [QPointF(10, -10), QPointF(-10, -10)])
        self.assertEqual(side, Orientation.DOWN)

    def test_opposite(self):
        self.assertEqual(Orientation.LEFT.opposite(), Orientation.RIGHT)
        self.assertEqual(Orientation.UP.opposite(), Orientation.DOWN)


class BondGeometryTest(unittest.TestCase):
    """Casos de prueba para la geometría de enlaces."""

    def test_trim_segment_disappears_when_labels_overlap(self):
        """Verifica que un enlace más corto que los recortes no se dibuja."""
        self.assertIsNone(trim_segment((0, 0), (10, 0), 6, 6))
        self.assertEqual(trim_segment((0, 0), (10, 0), 2, 3), ((2.0, 0.0), (7.0, 0.0)))

    def test_stereo_reverse_moves_tip(self):
        """Verifica que la variante inversa coloca la punta en el destino."""
        front = compute_edge_geometry((0, 0), (10, 0), "stereoFront", wedge_width=4)
        reverse = compute_edge_geometry((0, 0), (10, 0), "stereoFrontReverse", wedge_width=4)
        self.assertEqual(front.wedge[0], (0.0, 0.0))
        self.assertEqual(reverse.wedge[0], (10.0, 0.0))
        self.assertFalse(front.hashed)
        self.assertTrue(compute_edge_geometry((0, 0), (10, 0), "stereoBack").hashed)

    def test_double_and_triple_offsets(self):
        """Verifica el número de líneas paralelas."""
        self.assertEqual(len(compute_edge_geometry((0, 0), (10, 0), "double").offsets), 1)
        self.assertEqual(len(compute_edge_geometry((0, 0), (10, 0), "triple").offsets), 2)
        self.assertEqual(compute_edge_geometry((0, 0), (10, 0), "single").offsets, ())

    def test_ring_inner_line_is_shifted_and_shortened(self):
        """Verifica la línea interior de un enlace aromático."""
        start, end = ring_inner_line((0.0, 0.0), (20.0, 0.0), (0.0, 1.0), 5.0)
        self.assertEqual(start, (5.0, 5.0))
        self.assertEqual(end, (15.0, 5.0))


if __name__ == "__main__":
    unittest.main()
