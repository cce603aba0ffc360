"""Pruebas unitarias para la lectura y escritura de escenas."""

import json
import os
import sys
import tempfile
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from chemio import rdkit_io
from chemio.persistence import SceneFormatError, ScenePersistence
from scene.scene import SceneData

from scene_builders import hexagon, make_drawer, ring_bonds, two_structure_scene


class ScenePersistenceTest(unittest.TestCase):
    """Casos de prueba para ScenePersistence."""

    def test_unknown_bond_type(self):
        """Verifica que un tipo de enlace desconocido se rechaza."""
        record = {
            "id": 1,
            "atoms": [
                {"id": 1, "coordinates": {"x": 0, "y": 0}},
                {"id": 2, "coordinates": {"x": 10, "y": 0}},
            ],
            "bonds": [{"id": 1, "from": 1, "to": 2, "type": "quadruple"}],
            "rings": [],
        }
        with self.assertRaises(SceneFormatError):
            ScenePersistence.build_structure(record, 1)

    def test_dangling_bond(self):
        """Verifica que un enlace hacia un átomo inexistente se rechaza."""
        record = {
            "id": 1,
            "atoms": [{"id": 1, "coordinates": {"x": 0, "y": 0}}],
            "bonds": [{"id": 1, "from": 1, "to": 5}],
            "rings": [],
        }
        with self.assertRaises(SceneFormatError):
            ScenePersistence.build_structure(record, 1)

    def test_missing_coordinates(self):
        with self.assertRaises(SceneFormatError):
            ScenePersistence.build_structure({"id": 1, "atoms": [{"id": 1}]}, 1)

    def test_explicit_ring_systems(self):
        record = {
            "id": 1,
            "atoms": hexagon(0.0, 0.0),
            "bonds": ring_bonds(),
            "rings": [{"id": 4, "atoms": [1, 2, 3, 4, 5, 6], "aromatic": True}],
            "ringSystems": [{"id": 7, "memberRingIds": [4]}],
        }
        structure = ScenePersistence.build_structure(record, 3)
        self.assertEqual(structure.id, 3)
        self.assertEqual(structure.ring_systems[7].ring_ids, {4})
        self.assertEqual(structure.rings[4].edge_ids, [1, 2, 3, 4, 5, 6])

    def test_ids_are_remapped_into_existing_scene(self):
        """Verifica que añadir una escena no pisa ids existentes."""
        drawer = make_drawer()
        content = ScenePersistence.build_content(two_structure_scene(), drawer.scene)
        self.assertEqual([s.id for s in content.structures], [3, 4])
        self.assertEqual(content.annotations[0].id, 2)
        self.assertEqual(content.annotations[0].belongs_to, 3)
        pi = [c for c in content.connections if c.kind.value == "piStackings"]
        self.assertEqual([c.id for c in pi], [4, 5, 6])
        self.assertEqual({(c.from_structure, c.to_structure) for c in pi}, {(3, 4)})

    def test_unknown_structure_reference(self):
        data = {"annotations": [{"label": "x", "coordinates": {"x": 0, "y": 0}, "belongsTo": 9}]}
        with self.assertRaises(SceneFormatError):
            ScenePersistence.build_content(data, SceneData())

    def test_scene_to_dict_skips_removed_elements(self):
        """Verifica que la serialización omite lo desactivado."""
        drawer = make_drawer()
        drawer.apply_scene_changes(remove={"edges": {1: [8, 9]}})
        data = ScenePersistence.scene_to_dict(drawer.scene)
        ligand = data["structures"][0]
        self.assertEqual(len(data["structures"]), 2)
        self.assertNotIn(8, [a["id"] for a in ligand["atoms"]])
        self.assertNotIn(8, [b["id"] for b in ligand["bonds"]])
        self.assertEqual(len(data["piStackings"]), 3)
        self.assertEqual(data["annotations"][0]["coordinates"], {"x": 100.0, "y": 60.0})

    def test_save_and_load_file(self):
        drawer = make_drawer()
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "scene.json")
            ScenePersistence.save_file(path, drawer.scene)
            data = ScenePersistence.load_file(path)
        reloaded = make_drawer(data)
        self.assertEqual(reloaded.scene.structures_in_use, {1, 2})
        self.assertEqual(reloaded.scene.global_limits, drawer.scene.global_limits)

    def test_load_file_rejects_non_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "scene.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([1, 2, 3], f)
            with self.assertRaises(SceneFormatError):
                ScenePersistence.load_file(path)


@unittest.skipIf(rdkit_io.Chem is None, "RDKit no disponible")
class RingPerceptionTest(unittest.TestCase):
    """Casos de prueba para la detección de anillos con RDKit."""

    def test_perceive_aromatic_ring(self):
        """Verifica que un benceno sin anillos declarados se detecta."""
        record = {"id": 1, "atoms": hexagon(0.0, 0.0), "bonds": ring_bonds()}
        rings = rdkit_io.perceive_rings(record)
        self.assertEqual(len(rings), 1)
        self.assertEqual(sorted(rings[0]["atoms"]), [1, 2, 3, 4, 5, 6])
        self.assertTrue(rings[0]["aromatic"])

    def test_build_structure_perceives_rings(self):
        """Verifica que la construcción usa la detección si faltan los anillos."""
        record = {
            "id": 1,
            "atoms": hexagon(0.0, 0.0) + [{"id": 7, "element": "O", "coordinates": {"x": 40.0, "y": 0.0}}],
            "bonds": ring_bonds(aromatic=False) + [{"id": 7, "from": 1, "to": 7}],
        }
        structure = ScenePersistence.build_structure(record, 1)
        self.assertEqual(len(structure.rings), 1)
        ring = next(iter(structure.rings.values()))
        self.assertFalse(ring.aromatic)
        self.assertEqual(len(ring.edge_ids), 6)
        self.assertEqual(len(structure.ring_systems), 1)


if __name__ == "__main__":
    unittest.main()
