"""Intérprete de las unidades de cambio.

`ChangeInterpreter.apply` y `ChangeInterpreter.revert` despachan según el
`kind` de cada cambio hacia un par de manejadores. Los manejadores mutan el
modelo de la escena y notifican a la capa de dibujo.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from geometry.bonds import Segment
from history import changes as ch
from history.errors import UnknownChangeKindError
from molgraph.model import DrawMetrics, EdgeChangeCase, Ring, StructureCircle
from scene.render import Renderer

Handler = Callable[[object], None]


class ChangeInterpreter:
    """Ejecuta cambios sobre una escena.

    Args:
        scene: Escena mutada (`SceneData` o compatible).
        renderer: Capa de dibujo notificada; por defecto no dibuja nada.
        metrics: Medidas para recalcular geometría derivada.
    """

    def __init__(
        self,
        scene,
        renderer: Optional[Renderer] = None,
        metrics: Optional[DrawMetrics] = None,
    ) -> None:
        self.scene = scene
        self.renderer = renderer or Renderer()
        self.metrics = metrics or DrawMetrics()
        K = ch.ChangeKind
        self._handlers: Dict[ch.ChangeKind, Tuple[Handler, Handler]] = {
            K.MOVE_ATOM: (
                lambda c: self._move_atom(c, c.new),
                lambda c: self._move_atom(c, c.old),
            ),
            K.TOGGLE_STEREO: (
                lambda c: self._set_edge_type(c, c.new),
                lambda c: self._set_edge_type(c, c.old),
            ),
            K.SET_EDGE_GEOMETRY: (
                lambda c: self._set_edge_geometry(c, c.new, c.new_hidden, c.forward),
                lambda c: self._set_edge_geometry(c, c.old, c.old_hidden, c.backward),
            ),
            K.SET_HYDROGEN_ORIENTATION: (
                lambda c: self._set_hydrogens(c, c.new),
                lambda c: self._set_hydrogens(c, c.old),
            ),
            K.SET_LABEL_ORIENTATION: (
                lambda c: self._set_label(c, c.new),
                lambda c: self._set_label(c, c.old),
            ),
            K.UPDATE_AROMATIC_EDGE: (
                lambda c: self._aromatic_edge(c, c.forward, c.new),
                lambda c: self._aromatic_edge(c, c.backward, c.old),
            ),
            K.RECOMPUTE_RING_CENTER: (
                lambda c: self._set_ring_center(c, c.new),
                lambda c: self._set_ring_center(c, c.old),
            ),
            K.SET_RING_SYSTEM_CENTER: (
                lambda c: self._set_ring_system_center(c, c.new),
                lambda c: self._set_ring_system_center(c, c.old),
            ),
            K.RECOMPUTE_DRAW_LIMITS: (self._recompute_draw_limits, self._recompute_draw_limits),
            K.SET_STRUCTURE_BOUNDARIES: (
                lambda c: self._set_structure_boundaries(c, c.new),
                lambda c: self._set_structure_boundaries(c, c.old),
            ),
            K.SET_GLOBAL_LIMITS: (
                lambda c: self._set_global_limits(c.new),
                lambda c: self._set_global_limits(c.old),
            ),
            K.SET_ATOM_ENABLED: (
                lambda c: self._set_atom_enabled(c, c.enabled),
                lambda c: self._set_atom_enabled(c, not c.enabled),
            ),
            K.SET_EDGE_ENABLED: (
                lambda c: self._set_edge_enabled(c, c.enabled),
                lambda c: self._set_edge_enabled(c, not c.enabled),
            ),
            K.SET_RING_ENABLED: (
                lambda c: self._set_ring_enabled(c, c.enabled),
                lambda c: self._set_ring_enabled(c, not c.enabled),
            ),
            K.SET_STRUCTURE_IN_USE: (
                lambda c: self._set_structure_in_use(c, c.in_use),
                lambda c: self._set_structure_in_use(c, not c.in_use),
            ),
            K.SET_ATOM_COLOR: (
                lambda c: self._set_atom_color(c, c.new),
                lambda c: self._set_atom_color(c, c.old),
            ),
            K.SET_EDGE_COLORS: (
                lambda c: self._set_edge_colors(c, c.new),
                lambda c: self._set_edge_colors(c, c.old),
            ),
            K.MOVE_SPLINE_CONTROL_POINT: (
                lambda c: self._move_control_point(c, c.new),
                lambda c: self._move_control_point(c, c.old),
            ),
            K.RECOMPUTE_SPLINE_CURVE: (self._recompute_curve, self._recompute_curve),
            K.SET_CONTROL_POINT_ENABLED: (
                lambda c: self._set_control_point_enabled(c, c.enabled),
                lambda c: self._set_control_point_enabled(c, not c.enabled),
            ),
            K.SET_SPLINE_ENABLED: (
                lambda c: self._set_spline_enabled(c, c.enabled),
                lambda c: self._set_spline_enabled(c, not c.enabled),
            ),
            K.MOVE_ANNOTATION: (
                lambda c: self._move_annotation(c, c.new),
                lambda c: self._move_annotation(c, c.old),
            ),
            K.RECOMPUTE_ANNOTATION_LIMITS: (self._recompute_annotation_limits, self._recompute_annotation_limits),
            K.SET_ANNOTATION_ENABLED: (
                lambda c: self._set_annotation_enabled(c, c.enabled),
                lambda c: self._set_annotation_enabled(c, not c.enabled),
            ),
            K.SET_INTERMOLECULAR_ENDPOINTS: (
                lambda c: self._set_intermolecular_endpoints(c, c.new),
                lambda c: self._set_intermolecular_endpoints(c, c.old),
            ),
            K.SET_INTERMOLECULAR_ENABLED: (
                lambda c: self._set_intermolecular_enabled(c, c.enabled),
                lambda c: self._set_intermolecular_enabled(c, not c.enabled),
            ),
            K.MOVE_STRUCTURE_CIRCLE: (
                lambda c: self._set_circle(c, c.new_center, c.new_radius),
                lambda c: self._set_circle(c, c.old_center, c.old_radius),
            ),
        }

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------
    def apply(self, change: ch.Change) -> None:
        self._lookup(change)[0](change)

    def revert(self, change: ch.Change) -> None:
        self._lookup(change)[1](change)

    def _lookup(self, change) -> Tuple[Handler, Handler]:
        handlers = self._handlers.get(getattr(change, "kind", None))
        if handlers is None:
            raise UnknownChangeKindError(f"Cambio no soportado: {change!r}")
        return handlers

    def run_aromatic_case(
        self,
        structure_id: int,
        ring: Ring,
        edge_id: int,
        case: EdgeChangeCase,
        line: Optional[Segment],
    ) -> None:
        """Aplica un caso de actualización a la línea interior de un enlace."""
        if case == EdgeChangeCase.PASS:
            return
        if case == EdgeChangeCase.REMOVE or line is None:
            ring.inner_lines.pop(edge_id, None)
        else:
            ring.inner_lines[edge_id] = line
        self.renderer.aromatic_line_updated(structure_id, ring, edge_id, case)

    # ------------------------------------------------------------------
    # Manejadores de estructura
    # ------------------------------------------------------------------
    def _structure(self, structure_id: int):
        return self.scene.structures[structure_id]

    def _move_atom(self, c: ch.MoveAtom, coords) -> None:
        structure = self._structure(c.structure_id)
        atom = structure.atoms[c.atom_id]
        atom.coordinates = coords
        structure.update_draw_limits(c.atom_id, self.metrics)
        self.renderer.atom_moved(c.structure_id, atom)

    def _set_edge_type(self, c: ch.ToggleStereo, edge_type) -> None:
        edge = self._structure(c.structure_id).edges[c.edge_id]
        edge.type = edge_type
        self.renderer.edge_type_changed(c.structure_id, edge)

    def _set_edge_geometry(self, c: ch.SetEdgeGeometry, geometry, hidden: bool, case: EdgeChangeCase) -> None:
        edge = self._structure(c.structure_id).edges[c.edge_id]
        edge.geometry = geometry
        edge.hidden = hidden
        if case != EdgeChangeCase.PASS:
            self.renderer.edge_updated(c.structure_id, edge, case)

    def _set_hydrogens(self, c: ch.SetHydrogenOrientation, orientation) -> None:
        structure = self._structure(c.structure_id)
        atom = structure.atoms[c.atom_id]
        atom.hydrogen_orientation = orientation
        atom.temp_hydrogen_orientation = orientation
        structure.update_draw_limits(c.atom_id, self.metrics)
        self.renderer.hydrogens_changed(c.structure_id, atom)

    def _set_label(self, c: ch.SetLabelOrientation, orientation) -> None:
        structure = self._structure(c.structure_id)
        atom = structure.atoms[c.atom_id]
        atom.label_orientation = orientation
        atom.temp_label_orientation = orientation
        structure.update_draw_limits(c.atom_id, self.metrics)
        self.renderer.label_changed(c.structure_id, atom)

    def _aromatic_edge(self, c: ch.UpdateAromaticEdge, case: EdgeChangeCase, line) -> None:
        ring = self._structure(c.structure_id).rings[c.ring_id]
        self.run_aromatic_case(c.structure_id, ring, c.edge_id, case, line)

    def _set_ring_center(self, c: ch.RecomputeRingCenter, center) -> None:
        ring = self._structure(c.structure_id).rings[c.ring_id]
        ring.center = center
        self.renderer.ring_changed(c.structure_id, ring)

    def _set_ring_system_center(self, c: ch.SetRingSystemCenter, center) -> None:
        self._structure(c.structure_id).ring_systems[c.ring_system_id].center = center

    def _recompute_draw_limits(self, c: ch.RecomputeDrawLimits) -> None:
        self._structure(c.structure_id).update_draw_limits(c.atom_id, self.metrics)

    def _set_structure_boundaries(self, c: ch.SetStructureBoundaries, limits) -> None:
        self._structure(c.structure_id).boundaries = limits
        self.renderer.limits_changed(c.structure_id, limits)

    def _set_global_limits(self, limits) -> None:
        self.scene.global_limits = limits
        self.renderer.limits_changed(None, limits)

    def _set_atom_enabled(self, c: ch.SetAtomEnabled, enabled: bool) -> None:
        atom = self._structure(c.structure_id).atoms[c.atom_id]
        atom.enabled = enabled
        self.renderer.atom_visibility_changed(c.structure_id, atom)

    def _set_edge_enabled(self, c: ch.SetEdgeEnabled, enabled: bool) -> None:
        edge = self._structure(c.structure_id).edges[c.edge_id]
        edge.enabled = enabled
        self.renderer.edge_visibility_changed(c.structure_id, edge)

    def _set_ring_enabled(self, c: ch.SetRingEnabled, enabled: bool) -> None:
        ring = self._structure(c.structure_id).rings[c.ring_id]
        ring.enabled = enabled
        self.renderer.ring_changed(c.structure_id, ring)

    def _set_structure_in_use(self, c: ch.SetStructureInUse, in_use: bool) -> None:
        structure = self._structure(c.structure_id)
        structure.enabled = in_use
        if in_use:
            self.scene.structures_in_use.add(c.structure_id)
        else:
            self.scene.structures_in_use.discard(c.structure_id)
        self.renderer.structure_visibility_changed(structure)

    def _set_atom_color(self, c: ch.SetAtomColor, color) -> None:
        atom = self._structure(c.structure_id).atoms[c.atom_id]
        atom.color = color
        self.renderer.atom_color_changed(c.structure_id, atom)

    def _set_edge_colors(self, c: ch.SetEdgeColors, colors) -> None:
        edge = self._structure(c.structure_id).edges[c.edge_id]
        edge.from_color, edge.to_color = colors
        self.renderer.edge_colors_changed(c.structure_id, edge)

    def _set_circle(self, c: ch.MoveStructureCircle, center, radius) -> None:
        structure = self._structure(c.structure_id)
        structure.circle = None if center is None else StructureCircle(center, radius)
        self.renderer.structure_circle_changed(structure)

    # ------------------------------------------------------------------
    # Manejadores de elementos de escena
    # ------------------------------------------------------------------
    def _move_control_point(self, c: ch.MoveSplineControlPoint, coords) -> None:
        contact = self.scene.hydrophobic_contacts[c.contact_id]
        contact.control_points[c.index].coordinates = coords
        contact.update_curve()
        self.renderer.spline_updated(contact)

    def _recompute_curve(self, c: ch.RecomputeSplineCurve) -> None:
        contact = self.scene.hydrophobic_contacts[c.contact_id]
        contact.update_curve()
        self.renderer.spline_updated(contact)

    def _set_control_point_enabled(self, c: ch.SetControlPointEnabled, enabled: bool) -> None:
        contact = self.scene.hydrophobic_contacts[c.contact_id]
        contact.control_points[c.index].enabled = enabled
        contact.update_curve()
        self.renderer.spline_updated(contact)

    def _set_spline_enabled(self, c: ch.SetSplineEnabled, enabled: bool) -> None:
        contact = self.scene.hydrophobic_contacts[c.contact_id]
        contact.enabled = enabled
        self.renderer.spline_updated(contact)

    def _move_annotation(self, c: ch.MoveAnnotation, coords) -> None:
        annotation = self.scene.annotations[c.annotation_id]
        annotation.coordinates = coords
        annotation.draw_limits = annotation.compute_limits(self.metrics)
        self.renderer.annotation_updated(annotation)

    def _recompute_annotation_limits(self, c: ch.RecomputeAnnotationLimits) -> None:
        annotation = self.scene.annotations[c.annotation_id]
        annotation.draw_limits = annotation.compute_limits(self.metrics)

    def _set_annotation_enabled(self, c: ch.SetAnnotationEnabled, enabled: bool) -> None:
        annotation = self.scene.annotations[c.annotation_id]
        annotation.enabled = enabled
        self.renderer.annotation_updated(annotation)

    def _set_intermolecular_endpoints(self, c: ch.SetIntermolecularEndpoints, endpoints) -> None:
        conn = self.scene.intermolecular.get(c.connection_kind, c.connection_id)
        conn.endpoints = endpoints
        self.renderer.intermolecular_updated(conn)

    def _set_intermolecular_enabled(self, c: ch.SetIntermolecularEnabled, enabled: bool) -> None:
        conn = self.scene.intermolecular.get(c.connection_kind, c.connection_id)
        conn.enabled = enabled
        self.renderer.intermolecular_updated(conn)
