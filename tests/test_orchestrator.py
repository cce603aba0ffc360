"""Pruebas unitarias para SceneDrawer."""

import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

import pytest

from history import changes as ch
from history.errors import NothingToUndoError
from history.step import COLOR_CHANGE, SCENE_CHANGE
from scene.intermolecular import IntermolecularKind
from scene.orchestrator import SceneDrawer
from scene.render import Renderer

from scene_builders import ligand_record, make_drawer, snapshot, two_structure_scene


class RecordingRenderer(Renderer):
    def __init__(self):
        self.calls = []

    def atom_moved(self, structure_id, atom):
        self.calls.append(("atom_moved", structure_id, atom.id))

    def atom_color_changed(self, structure_id, atom):
        self.calls.append(("atom_color_changed", structure_id, atom.id))


class SceneDrawerTest(unittest.TestCase):
    """Casos de prueba para SceneDrawer."""

    def setUp(self):
        self.drawer = make_drawer()
        self.scene = self.drawer.scene

    def test_load_scene(self):
        """Verifica que la carga deja todo activo y la caja global calculada."""
        self.assertEqual(self.scene.structures_in_use, {1, 2})
        self.assertEqual(self.drawer.history.count(), 1)
        self.assertEqual(self.scene.global_limits.x_max, 222.0)
        stackings = self.scene.intermolecular.connections[IntermolecularKind.PI_STACKING]
        self.assertEqual(sorted(stackings), [1, 2, 3])
        self.assertTrue(all(conn.enabled for conn in stackings.values()))
        self.assertEqual(stackings[1].endpoints[0], self.scene.structures[1].rings[1].center)

    def test_add_move_undo_empties_scene(self):
        """Verifica que deshacer movimiento y carga vacía la escena."""
        self.drawer.apply_scene_changes(coordinate_changes={
            "1": {"newCoordinates": {"7": {"x": 150.0, "y": 90.0}}},
        })
        self.drawer.undo()
        self.assertEqual(self.scene.structures[1].atoms[7].coordinates, (140.0, 100.0))
        self.drawer.undo()
        self.assertEqual(self.scene.structures_in_use, set())
        self.assertIsNone(self.scene.global_limits)
        with self.assertRaises(NothingToUndoError):
            self.drawer.undo()

    def test_moves_of_unused_structures_are_ignored(self):
        self.drawer.undo()
        self.assertIsNone(self.drawer.apply_scene_changes(coordinate_changes={
            1: {"newCoordinates": {7: {"x": 150.0, "y": 90.0}}},
        }))

    def test_atom_removal_rescans_global_limits(self):
        """Verifica que borrar el átomo extremo encoge la caja global."""
        self.drawer.apply_scene_changes(remove={"atoms": {2: [1]}})
        residue = self.scene.structures[2]
        self.assertFalse(residue.atoms[1].enabled)
        self.assertFalse(residue.edges[1].enabled)
        self.assertFalse(residue.edges[6].enabled)
        self.assertTrue(residue.rings[1].enabled)
        expected = max(
            limits.x_max for limits in self.scene.element_limits() if limits is not None
        )
        self.assertEqual(self.scene.global_limits.x_max, expected)
        self.assertEqual(residue.boundaries.x_max, max(a.draw_limits.x_max for a in residue.enabled_atoms()))
        self.assertAlmostEqual(residue.boundaries.x_max, 212.0)
        # El anillo conserva átomos, así que sus apilamientos siguen.
        stackings = self.scene.intermolecular.connections[IntermolecularKind.PI_STACKING]
        self.assertTrue(all(conn.enabled for conn in stackings.values()))
        atom_pair = self.scene.intermolecular.get(IntermolecularKind.ATOM_PAIR, 1)
        self.assertFalse(atom_pair.enabled)

    def test_ring_removed_with_all_its_atoms(self):
        """Verifica que un anillo sin átomos arrastra sus apilamientos pi."""
        before = snapshot(self.scene)
        self.drawer.apply_scene_changes(remove={"atoms": {1: [1, 2, 3, 4, 5, 6]}})
        ligand = self.scene.structures[1]
        self.assertIn(1, self.scene.structures_in_use)
        self.assertFalse(ligand.rings[1].enabled)
        self.assertTrue(ligand.atoms[8].enabled)
        stackings = self.scene.intermolecular.connections[IntermolecularKind.PI_STACKING]
        self.assertFalse(any(conn.enabled for conn in stackings.values()))
        self.assertTrue(self.scene.intermolecular.get(IntermolecularKind.ATOM_PAIR, 1).enabled)
        self.assertTrue(self.scene.intermolecular.get(IntermolecularKind.DISTANCE, 1).enabled)

        self.drawer.undo()
        self.assertEqual(snapshot(self.scene), before)

    def test_partial_contact_removal(self):
        """Verifica que se puede borrar solo un punto de control de un contacto."""
        contact = self.scene.hydrophobic_contacts[1]
        before = snapshot(self.scene)
        step = self.drawer.apply_scene_changes(remove={
            "hydrophobicContacts": [{"id": 1, "controlPoints": [2]}],
        })
        self.assertIn(ch.SetControlPointEnabled(1, 2, False), step.changes)
        self.assertNotIn(ch.SetSplineEnabled(1, False), step.changes)
        self.assertTrue(contact.enabled)
        self.assertFalse(contact.control_points[2].enabled)
        self.assertEqual(contact.curve, [(180.0, 140.0), (200.0, 150.0)])
        self.assertEqual(contact.compute_limits(2.0).x_max, 202.0)

        self.assertIsNone(self.drawer.apply_scene_changes(
            spline_coordinate_changes={1: {2: {"x": 0.0, "y": 0.0}}}
        ))

        self.drawer.undo()
        self.assertEqual(snapshot(self.scene), before)

    def test_whole_contact_entry_wins_over_partial(self):
        self.drawer.apply_scene_changes(remove={
            "hydrophobicContacts": [{"id": 1, "controlPoints": [0]}, 1],
        })
        contact = self.scene.hydrophobic_contacts[1]
        self.assertFalse(contact.enabled)
        self.assertTrue(all(cp.enabled for cp in contact.control_points))

    def test_removing_every_control_point_removes_contact(self):
        step = self.drawer.apply_scene_changes(remove={
            "hydrophobicContacts": [{"id": "1", "controlPoints": [0, 1]}, {"id": 1, "controlPoints": [2]}],
        })
        self.assertFalse(self.scene.hydrophobic_contacts[1].enabled)
        self.assertEqual([c for c in step.changes if isinstance(c, ch.SetControlPointEnabled)], [])

    def test_lonely_carbon_is_removed(self):
        """Verifica que un carbono sin enlaces activos se borra con ellos."""
        self.drawer.apply_scene_changes(remove={"edges": {1: [8, 9]}})
        ligand = self.scene.structures[1]
        self.assertFalse(ligand.atoms[8].enabled)
        self.assertTrue(ligand.atoms[9].enabled)
        self.assertTrue(ligand.atoms[4].enabled)
        self.assertTrue(ligand.rings[1].enabled)

    def test_structure_removal(self):
        """Verifica que borrar una estructura arrastra sus dependencias."""
        before = snapshot(self.scene)
        step = self.drawer.apply_scene_changes(remove={"structures": [2]})
        self.assertEqual(self.scene.structures_in_use, {1})
        self.assertFalse(self.scene.hydrophobic_contacts[1].enabled)
        self.assertTrue(self.scene.annotations[1].enabled)
        for kind in IntermolecularKind:
            for conn in self.scene.intermolecular.connections[kind].values():
                self.assertFalse(conn.enabled)
        self.assertEqual(step.actions, {SCENE_CHANGE})
        self.assertLess(self.scene.global_limits.x_max, 222.0)

        self.drawer.undo()
        self.assertEqual(snapshot(self.scene), before)

    def test_removing_every_atom_removes_structure(self):
        self.drawer.apply_scene_changes(remove={"atoms": {2: [1, 2, 3, 4, 5, 6]}})
        self.assertNotIn(2, self.scene.structures_in_use)
        self.assertTrue(self.scene.structures[2].atoms[1].enabled)

    def test_color_change(self):
        """Verifica el paso de color y las colores de los extremos de enlace."""
        step = self.drawer.apply_scene_changes(color_changes={1: {7: "#ff0000"}})
        ligand = self.scene.structures[1]
        self.assertEqual(step.actions, {COLOR_CHANGE})
        self.assertEqual(ligand.atoms[7].color, "#ff0000")
        self.assertEqual((ligand.edges[7].from_color, ligand.edges[7].to_color), (None, "#ff0000"))
        self.assertEqual(len([c for c in step.changes if isinstance(c, ch.SetEdgeColors)]), 1)

        self.drawer.undo()
        self.assertIsNone(ligand.atoms[7].color)
        self.assertEqual((ligand.edges[7].from_color, ligand.edges[7].to_color), (None, None))

    def test_color_and_move_share_a_step(self):
        step = self.drawer.apply_scene_changes(
            color_changes={1: {9: "blue"}},
            coordinate_changes={1: {"newCoordinates": {9: {"x": 45.0, "y": 120.0}}}},
        )
        self.assertEqual(step.actions, {SCENE_CHANGE, COLOR_CHANGE})
        self.assertEqual(self.drawer.history.count(), 2)

    def test_spline_move_and_undo(self):
        """Verifica el movimiento de un punto de control y su deshacer."""
        contact = self.scene.hydrophobic_contacts[1]
        curve = list(contact.curve)
        step = self.drawer.apply_scene_changes(spline_coordinate_changes={1: {"1": {"x": 200.0, "y": 190.0}}})
        kinds = [type(c) for c in step.changes]
        self.assertIn(ch.MoveSplineControlPoint, kinds)
        self.assertIn(ch.RecomputeSplineCurve, kinds)
        self.assertEqual(contact.control_points[1].coordinates, (200.0, 190.0))
        self.assertGreater(self.scene.global_limits.y_max, 190.0)

        self.drawer.undo()
        self.assertEqual(contact.control_points[1].coordinates, (200.0, 150.0))
        self.assertEqual(contact.curve, curve)

    def test_annotation_move_and_undo(self):
        """Verifica el movimiento de una anotación y su caja."""
        annotation = self.scene.annotations[1]
        limits = annotation.draw_limits
        self.drawer.apply_scene_changes(annotation_coordinate_changes={1: {"x": 100.0, "y": -40.0}})
        self.assertEqual(annotation.coordinates, (100.0, -40.0))
        self.assertEqual(annotation.draw_limits.y_min, -46.0)
        self.assertEqual(self.scene.global_limits.y_min, -46.0)

        self.drawer.undo()
        self.assertEqual(annotation.draw_limits, limits)

    def test_new_step_after_undo_purges_added_structures(self):
        """Verifica que descartar una carga deshecha purga sus estructuras."""
        self.drawer.apply_scene_changes(add={"scene": {"structures": [ligand_record()]}})
        self.assertEqual(self.scene.structures_in_use, {1, 2, 3})
        self.drawer.undo()
        self.assertIn(3, self.scene.structures)

        self.drawer.apply_scene_changes(color_changes={1: {7: "red"}})
        self.assertNotIn(3, self.scene.structures)
        self.assertNotIn(3, self.scene.original_structures)

    def test_reset_structure(self):
        """Verifica que restablecer devuelve las coordenadas originales."""
        self.drawer.apply_scene_changes(coordinate_changes={
            1: {"newCoordinates": {7: {"x": 150.0, "y": 90.0}, 9: {"x": 45.0, "y": 120.0}}},
        })
        step = self.drawer.reset_structure(1)
        self.assertIsNotNone(step)
        ligand = self.scene.structures[1]
        self.assertEqual(ligand.atoms[7].coordinates, (140.0, 100.0))
        self.assertEqual(ligand.atoms[9].coordinates, (50.0, 117.32))
        self.assertIsNone(self.drawer.reset_structure(1))

    def test_circle_representation(self):
        """Verifica que una estructura en círculo incluye el círculo en su caja."""
        record = two_structure_scene()
        record["structures"][1]["representation"] = "circle"
        drawer = make_drawer(record)
        residue = drawer.scene.structures[2]
        self.assertIsNotNone(residue.circle)
        self.assertAlmostEqual(residue.circle.center[0], 200.0)
        self.assertGreater(residue.boundaries.x_max, 222.0)

        drawer.undo()
        self.assertIsNone(residue.circle)

    def test_renderer_notifications(self):
        renderer = RecordingRenderer()
        drawer = SceneDrawer(renderer=renderer)
        drawer.load_scene(two_structure_scene())
        drawer.apply_scene_changes(
            color_changes={1: {7: "red"}},
            coordinate_changes={1: {"newCoordinates": {7: {"x": 150.0, "y": 90.0}}}},
        )
        self.assertIn(("atom_moved", 1, 7), renderer.calls)
        self.assertIn(("atom_color_changed", 1, 7), renderer.calls)


def test_empty_action_returns_none():
    """Verifica que una acción vacía no crea un paso."""
    drawer = make_drawer()
    assert drawer.apply_scene_changes() is None
    assert drawer.apply_scene_changes(color_changes={1: {99: "red"}}) is None
    assert drawer.apply_scene_changes(remove={"atoms": {1: [99]}, "hydrophobicContacts": [7]}) is None
    assert drawer.history.count() == 1


def test_negative_control_point_index_is_ignored():
    """Verifica que un índice negativo no mueve el último punto de control."""
    drawer = make_drawer()
    contact = drawer.scene.hydrophobic_contacts[1]
    assert drawer.apply_scene_changes(spline_coordinate_changes={1: {"-1": {"x": 0.0, "y": 0.0}}}) is None
    assert contact.control_points[-1].coordinates == (220.0, 140.0)
    assert drawer.history.count() == 1


def test_protected_initial_load():
    """Verifica que la carga inicial no se deshace si no se permite vaciar la escena."""
    drawer = make_drawer(history_can_clear_scene=False)
    with pytest.raises(NothingToUndoError):
        drawer.undo()
    assert drawer.scene.structures_in_use == {1, 2}


if __name__ == "__main__":
    unittest.main()
