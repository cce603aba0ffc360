"""Punto de entrada único de las mutaciones de escena.

`SceneDrawer.apply_scene_changes` recibe la petición declarativa de una
acción del usuario (añadir, borrar, mover, recolorear...), delega el
trabajo geométrico en el motor de propagación y agrupa todos los cambios
resultantes en un único paso del historial.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Set

from chemio.persistence import ScenePersistence
from geometry.points import as_point, coords_almost_equal
from history import changes as ch
from history.interpreter import ChangeInterpreter
from history.log import HistoryLog
from history.step import COLOR_CHANGE, SCENE_CHANGE, HistoryStep
from molgraph.boundary import BoundaryUpdateInfo
from molgraph.model import Structure
from propagation.engine import CoordinatePropagator, PropagationResult
from scene.intermolecular import IntermolecularKind, compute_endpoints
from scene.options import DrawerOptions
from scene.removal import RemoveCollector
from scene.render import Renderer
from scene.scene import SceneData

logger = logging.getLogger(__name__)

CIRCLE_REPRESENTATION = "circle"


class SceneDrawer:
    """Coordina escena, motor de propagación e historial.

    Args:
        scene: Escena a editar; se crea una vacía si no se indica.
        options: Opciones del motor (por defecto las de la escena).
        renderer: Capa de dibujo notificada por los cambios.
    """

    def __init__(
        self,
        scene: Optional[SceneData] = None,
        options: Optional[DrawerOptions] = None,
        renderer: Optional[Renderer] = None,
    ) -> None:
        if scene is None:
            scene = SceneData(options)
        self.scene = scene
        self.options = options or scene.options
        self.interpreter = ChangeInterpreter(scene, renderer, self.options.metrics)
        self.history = HistoryLog(self.interpreter, can_clear_scene=self.options.history_can_clear_scene)
        self.propagator = CoordinatePropagator(scene, self.interpreter, self.options)
        self.remove_collector = RemoveCollector(scene)
        self.history.stepsDiscarded.connect(self._purge_discarded)

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------
    def load_scene(self, data: Mapping[str, Any]) -> Optional[HistoryStep]:
        """Añade un registro de escena completo como un paso del historial."""
        return self.apply_scene_changes(add={"scene": data})

    def apply_coordinate_changes(
        self,
        structure_id: int,
        new_atom_coords: Mapping[int, Any],
        is_flip: bool = False,
        structure_maxes: Optional[BoundaryUpdateInfo] = None,
        global_maxes: Optional[BoundaryUpdateInfo] = None,
    ) -> PropagationResult:
        """Propaga un movimiento sin registrarlo en el historial."""
        return self.propagator.apply_coordinate_changes(
            structure_id,
            {int(aid): as_point(p) for aid, p in new_atom_coords.items()},
            is_flip,
            structure_maxes,
            global_maxes,
        )

    def apply_scene_changes(
        self,
        color_changes: Optional[Mapping[Any, Mapping[Any, str]]] = None,
        coordinate_changes: Optional[Mapping[Any, Mapping[str, Any]]] = None,
        spline_coordinate_changes: Optional[Mapping[Any, Mapping[Any, Any]]] = None,
        annotation_coordinate_changes: Optional[Mapping[Any, Any]] = None,
        remove: Optional[Mapping[str, Any]] = None,
        add: Optional[Mapping[str, Any]] = None,
    ) -> Optional[HistoryStep]:
        """Aplica todas las mutaciones de una acción como un solo paso.

        Args:
            color_changes: `structure_id -> {atom_id: color}`.
            coordinate_changes: `structure_id -> {"newCoordinates":
                {atom_id: {x, y}}, "isFlip": bool}`.
            spline_coordinate_changes: `contact_id -> {índice: {x, y}}`.
            annotation_coordinate_changes: `annotation_id -> {x, y}`.
            remove: Petición de borrado (ver `RemoveCollector.collect`).
            add: `{"scene": registro}` con los elementos a añadir.

        Returns:
            El paso registrado, o `None` si la acción no cambió nada.
        """
        step = HistoryStep()
        global_maxes = BoundaryUpdateInfo(self.scene.global_limits)
        structure_maxes: Dict[int, BoundaryUpdateInfo] = {}
        affected: Dict[IntermolecularKind, Set[int]] = {kind: set() for kind in IntermolecularKind}
        scene_changes: List[ch.Change] = []

        if add:
            scene_changes += self._apply_add(add, step, global_maxes)
        if remove:
            scene_changes += self._apply_remove(remove, structure_maxes, global_maxes)
        if coordinate_changes:
            scene_changes += self._apply_coordinates(coordinate_changes, structure_maxes, global_maxes, affected)
        scene_changes += self._update_structure_boundaries(structure_maxes, global_maxes)
        if spline_coordinate_changes:
            scene_changes += self._apply_spline_changes(spline_coordinate_changes, global_maxes)
        if annotation_coordinate_changes:
            scene_changes += self._apply_annotation_changes(annotation_coordinate_changes, global_maxes)
        scene_changes += self._reposition_intermolecular(affected)

        if scene_changes:
            step.add_changes(scene_changes)
            step.add_action(SCENE_CHANGE)
        if color_changes:
            color = self._apply_color_changes(color_changes)
            if color:
                step.add_changes(color)
                step.add_action(COLOR_CHANGE)
        self._set_global_limits(global_maxes, step)

        if not step.has_changes():
            logger.debug("Acción sin cambios, no se registra paso")
            return None
        self.history.commit(step)
        return step

    def undo(self) -> HistoryStep:
        return self.history.undo()

    def redo(self) -> HistoryStep:
        return self.history.redo()

    def reset_structure(self, structure_id: int) -> Optional[HistoryStep]:
        """Devuelve los átomos de una estructura a sus coordenadas originales."""
        original = self.scene.original_structures.get(structure_id)
        if original is None or structure_id not in self.scene.structures_in_use:
            return None
        coords = {atom_id: atom.coordinates for atom_id, atom in original.atoms.items()}
        return self.apply_scene_changes(coordinate_changes={structure_id: {"newCoordinates": coords}})

    # ------------------------------------------------------------------
    # Añadir
    # ------------------------------------------------------------------
    def _apply_add(
        self,
        add: Mapping[str, Any],
        step: HistoryStep,
        global_maxes: BoundaryUpdateInfo,
    ) -> List[ch.Change]:
        scene = self.scene
        content = ScenePersistence.build_content(add.get("scene", {}), scene)
        changes: List[ch.Change] = []

        for structure in content.structures:
            structure.enabled = False
            scene.register_structure(structure)
            changes.append(self._applied(ch.SetStructureInUse(structure.id, True)))
            global_maxes.set_maxes_add(structure.boundaries)
            step.added_structure_ids.append(structure.id)

        for annotation in content.annotations:
            annotation.enabled = False
            scene.annotations[annotation.id] = annotation
            changes.append(self._applied(ch.SetAnnotationEnabled(annotation.id, True)))
            global_maxes.set_maxes_add(annotation.draw_limits)

        for contact in content.hydrophobic_contacts:
            contact.enabled = False
            scene.hydrophobic_contacts[contact.id] = contact
            changes.append(self._applied(ch.SetSplineEnabled(contact.id, True)))
            global_maxes.set_maxes_add(contact.compute_limits(self.options.line_width))

        for conn in content.connections:
            conn.enabled = False
            conn.endpoints = compute_endpoints(conn, scene.structures)
            scene.intermolecular.add(conn)
            changes.append(self._applied(ch.SetIntermolecularEnabled(conn.kind, conn.id, True)))

        # Las representaciones se asignan cuando todo lo añadido ya existe.
        for structure in content.structures:
            if content.representations.get(structure.id) == CIRCLE_REPRESENTATION:
                changes += self._fit_structure_circle(structure, global_maxes)
        return changes

    # ------------------------------------------------------------------
    # Borrar
    # ------------------------------------------------------------------
    def _apply_remove(
        self,
        remove: Mapping[str, Any],
        structure_maxes: Dict[int, BoundaryUpdateInfo],
        global_maxes: BoundaryUpdateInfo,
    ) -> List[ch.Change]:
        scene = self.scene
        removal = self.remove_collector.collect(remove)
        changes: List[ch.Change] = []
        if removal.is_empty():
            logger.debug("Petición de borrado sin elementos activos")
            return changes

        for kind, conn_ids in removal.intermolecular.items():
            for conn_id in sorted(conn_ids):
                changes.append(self._applied(ch.SetIntermolecularEnabled(kind, conn_id, False)))

        for sid in sorted(removal.structures):
            global_maxes.mark_removed(scene.structures[sid].boundaries)
            changes.append(self._applied(ch.SetStructureInUse(sid, False)))

        for sid, edge_ids in removal.edges.items():
            for edge_id in sorted(edge_ids):
                changes.append(self._applied(ch.SetEdgeEnabled(sid, edge_id, False)))

        for sid, atom_ids in removal.atoms.items():
            structure = scene.structures[sid]
            maxes = structure_maxes.setdefault(sid, BoundaryUpdateInfo(structure.boundaries))
            for atom_id in sorted(atom_ids):
                limits = structure.atoms[atom_id].draw_limits
                maxes.mark_removed(limits)
                global_maxes.mark_removed(limits)
                changes.append(self._applied(ch.SetAtomEnabled(sid, atom_id, False)))

        for sid, ring_ids in removal.rings.items():
            for ring_id in sorted(ring_ids):
                changes.append(self._applied(ch.SetRingEnabled(sid, ring_id, False)))

        for ann_id in sorted(removal.annotations):
            global_maxes.mark_removed(scene.annotations[ann_id].draw_limits)
            changes.append(self._applied(ch.SetAnnotationEnabled(ann_id, False)))

        for contact_id in sorted(removal.hydrophobic_contacts):
            contact = scene.hydrophobic_contacts[contact_id]
            global_maxes.mark_removed(contact.compute_limits(self.options.line_width))
            changes.append(self._applied(ch.SetSplineEnabled(contact_id, False)))

        for contact_id, indexes in sorted(removal.control_points.items()):
            contact = scene.hydrophobic_contacts[contact_id]
            old_limits = contact.compute_limits(self.options.line_width)
            for idx in sorted(indexes):
                changes.append(self._applied(ch.SetControlPointEnabled(contact_id, idx, False)))
            global_maxes.update_maxes_by_limits(old_limits, contact.compute_limits(self.options.line_width))
        return changes

    # ------------------------------------------------------------------
    # Coordenadas y cajas
    # ------------------------------------------------------------------
    def _apply_coordinates(
        self,
        coordinate_changes: Mapping[Any, Mapping[str, Any]],
        structure_maxes: Dict[int, BoundaryUpdateInfo],
        global_maxes: BoundaryUpdateInfo,
        affected: Dict[IntermolecularKind, Set[int]],
    ) -> List[ch.Change]:
        changes: List[ch.Change] = []
        for key, request in coordinate_changes.items():
            sid = int(key)
            if sid not in self.scene.structures_in_use:
                logger.debug("Estructura %s fuera de uso, se ignora su movimiento", sid)
                continue
            structure = self.scene.structures[sid]
            maxes = structure_maxes.setdefault(sid, BoundaryUpdateInfo(structure.boundaries))
            result = self.apply_coordinate_changes(
                sid,
                request.get("newCoordinates", {}),
                bool(request.get("isFlip", False)),
                maxes,
                global_maxes,
            )
            changes += result.changes
            for kind, ids in result.affected.items():
                affected[kind] |= ids
        return changes

    def _update_structure_boundaries(
        self,
        structure_maxes: Dict[int, BoundaryUpdateInfo],
        global_maxes: BoundaryUpdateInfo,
    ) -> List[ch.Change]:
        changes: List[ch.Change] = []
        for sid, maxes in structure_maxes.items():
            if sid not in self.scene.structures_in_use or not maxes.changed():
                continue
            structure = self.scene.structures[sid]
            if structure.circle is not None:
                changes += self._fit_structure_circle(structure, global_maxes)
                continue
            old = structure.boundaries
            new = maxes.resolve(atom.draw_limits for atom in structure.enabled_atoms())
            if new == old:
                continue
            changes.append(self._applied(ch.SetStructureBoundaries(sid, old, new)))
            global_maxes.update_maxes_by_limits(old, new)
        return changes

    def _fit_structure_circle(self, structure: Structure, global_maxes: BoundaryUpdateInfo) -> List[ch.Change]:
        """Ajusta el círculo de la estructura a su caja de átomos."""
        changes: List[ch.Change] = []
        atom_limits = structure.atom_boundaries()
        if atom_limits is None:
            return changes
        center = atom_limits.mid
        radius = math.hypot(atom_limits.width, atom_limits.height) / 2.0 + self.options.structure_circle_padding
        circle = structure.circle
        if circle is None or not coords_almost_equal(circle.center, center) or circle.radius != radius:
            changes.append(self._applied(ch.MoveStructureCircle(
                structure.id,
                None if circle is None else circle.center,
                center,
                None if circle is None else circle.radius,
                radius,
            )))
        old = structure.boundaries
        new = structure.calc_boundaries()
        if new != old:
            changes.append(self._applied(ch.SetStructureBoundaries(structure.id, old, new)))
            global_maxes.update_maxes_by_limits(old, new)
        return changes

    def _set_global_limits(self, global_maxes: BoundaryUpdateInfo, step: HistoryStep) -> None:
        if not global_maxes.changed():
            return
        old = self.scene.global_limits
        new = global_maxes.resolve(self.scene.element_limits())
        if new == old:
            return
        step.add_change(self._applied(ch.SetGlobalLimits(old, new)))

    # ------------------------------------------------------------------
    # Splines, anotaciones y conexiones
    # ------------------------------------------------------------------
    def _apply_spline_changes(
        self,
        spline_changes: Mapping[Any, Mapping[Any, Any]],
        global_maxes: BoundaryUpdateInfo,
    ) -> List[ch.Change]:
        changes: List[ch.Change] = []
        tol = self.options.coordinate_tolerance
        for key, points in spline_changes.items():
            contact = self.scene.hydrophobic_contacts.get(int(key))
            if contact is None or not contact.enabled:
                continue
            old_limits = contact.compute_limits(self.options.line_width)
            moved = False
            for idx_key, raw in sorted(points.items(), key=lambda item: int(item[0])):
                idx = int(idx_key)
                if idx < 0 or idx >= len(contact.control_points) or not contact.control_points[idx].enabled:
                    continue
                old = contact.control_points[idx].coordinates
                new = as_point(raw)
                if coords_almost_equal(old, new, tol):
                    continue
                changes.append(self._applied(ch.MoveSplineControlPoint(contact.id, idx, old, new)))
                moved = True
            if moved:
                changes.append(self._applied(ch.RecomputeSplineCurve(contact.id)))
                global_maxes.update_maxes_by_limits(old_limits, contact.compute_limits(self.options.line_width))
        return changes

    def _apply_annotation_changes(
        self,
        annotation_changes: Mapping[Any, Any],
        global_maxes: BoundaryUpdateInfo,
    ) -> List[ch.Change]:
        changes: List[ch.Change] = []
        tol = self.options.coordinate_tolerance
        for key, raw in annotation_changes.items():
            annotation = self.scene.annotations.get(int(key))
            if annotation is None or not annotation.enabled:
                continue
            new = as_point(raw)
            if coords_almost_equal(annotation.coordinates, new, tol):
                continue
            old_limits = annotation.draw_limits
            changes.append(self._applied(ch.MoveAnnotation(annotation.id, annotation.coordinates, new)))
            changes.append(self._applied(ch.RecomputeAnnotationLimits(annotation.id)))
            global_maxes.update_maxes_by_limits(old_limits, annotation.draw_limits)
        return changes

    def _reposition_intermolecular(self, affected: Dict[IntermolecularKind, Set[int]]) -> List[ch.Change]:
        changes: List[ch.Change] = []
        store = self.scene.intermolecular
        for kind, conn_ids in affected.items():
            for conn_id in sorted(conn_ids):
                conn = store.get(kind, conn_id)
                if conn is None or not conn.enabled:
                    continue
                new = compute_endpoints(conn, self.scene.structures)
                if new == conn.endpoints:
                    continue
                changes.append(self._applied(ch.SetIntermolecularEndpoints(kind, conn_id, conn.endpoints, new)))
        return changes

    # ------------------------------------------------------------------
    # Colores
    # ------------------------------------------------------------------
    def _apply_color_changes(self, color_changes: Mapping[Any, Mapping[Any, str]]) -> List[ch.Change]:
        changes: List[ch.Change] = []
        for key, atom_colors in color_changes.items():
            sid = int(key)
            if sid not in self.scene.structures_in_use:
                continue
            structure = self.scene.structures[sid]
            edge_colors: Dict[int, List[Optional[str]]] = {}
            for atom_key, color in atom_colors.items():
                atom = structure.atoms.get(int(atom_key))
                if atom is None or not atom.enabled or atom.color == color:
                    continue
                changes.append(self._applied(ch.SetAtomColor(sid, atom.id, atom.color, color)))
                for _nb, edge_id in structure.neighbors(atom.id):
                    edge = structure.edges[edge_id]
                    colors = edge_colors.setdefault(edge_id, [edge.from_color, edge.to_color])
                    colors[0 if edge.from_id == atom.id else 1] = color
            for edge_id, colors in sorted(edge_colors.items()):
                edge = structure.edges[edge_id]
                changes.append(self._applied(ch.SetEdgeColors(
                    sid, edge_id, (edge.from_color, edge.to_color), (colors[0], colors[1])
                )))
        return changes

    # ------------------------------------------------------------------
    # Utilidades
    # ------------------------------------------------------------------
    def _applied(self, change: ch.Change) -> ch.Change:
        self.interpreter.apply(change)
        return change

    def _purge_discarded(self, steps: List[HistoryStep]) -> None:
        for step in steps:
            for sid in step.added_structure_ids:
                if sid not in self.scene.structures_in_use:
                    self.scene.purge_structure(sid)
