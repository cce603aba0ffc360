"""Motor de propagación de cambios de coordenadas.

Dado un conjunto disperso de átomos movidos de una estructura, calcula todo
lo que depende de ellos (enlaces, cuñas, hidrógenos, anclajes de etiquetas,
anillos, sistemas de anillos, cajas de dibujo y conexiones
intermoleculares), aplica cada mutación y la empaqueta como un cambio
reversible. Las fases se ejecutan en orden fijo porque cada una lee el
estado que dejan las anteriores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from geometry.points import Point, as_point, coords_almost_equal
from history import changes as ch
from history.interpreter import ChangeInterpreter
from molgraph.boundary import BoundaryUpdateInfo, Limits
from molgraph.model import Structure
from propagation.edges import MOVE_CASES, EdgeCases, classify_transition
from scene.intermolecular import IntermolecularKind
from scene.options import DrawerOptions, MoveFreedomLevel

logger = logging.getLogger(__name__)


@dataclass
class PropagationResult:
    """Cambios generados y conexiones intermoleculares afectadas."""
    changes: List[ch.Change] = field(default_factory=list)
    moved_atom_ids: Set[int] = field(default_factory=set)
    affected: Dict[IntermolecularKind, Set[int]] = field(
        default_factory=lambda: {kind: set() for kind in IntermolecularKind}
    )

    @property
    def affected_distances(self) -> Set[int]:
        return self.affected[IntermolecularKind.DISTANCE]

    @property
    def affected_interactions(self) -> Set[int]:
        return self.affected[IntermolecularKind.INTERACTION]

    @property
    def affected_atom_pair_interactions(self) -> Set[int]:
        return self.affected[IntermolecularKind.ATOM_PAIR]

    @property
    def affected_pi_stackings(self) -> Set[int]:
        return self.affected[IntermolecularKind.PI_STACKING]

    @property
    def affected_cation_pi_stackings(self) -> Set[int]:
        return self.affected[IntermolecularKind.CATION_PI]


class CoordinatePropagator:
    """Calcula y aplica los cambios derivados de mover átomos.

    Args:
        scene: Escena con las estructuras y el almacén intermolecular.
        interpreter: Intérprete usado para aplicar cada cambio al crearlo.
        options: Opciones de interacción y tolerancia.
    """

    def __init__(self, scene, interpreter: ChangeInterpreter, options: Optional[DrawerOptions] = None) -> None:
        self.scene = scene
        self.interpreter = interpreter
        self.options = options or scene.options

    def apply_coordinate_changes(
        self,
        structure_id: int,
        new_atom_coords: Dict[int, Point],
        is_flip: bool = False,
        structure_maxes: Optional[BoundaryUpdateInfo] = None,
        global_maxes: Optional[BoundaryUpdateInfo] = None,
    ) -> PropagationResult:
        """Propaga nuevas coordenadas de átomos de una estructura.

        Args:
            structure_id: Estructura a la que pertenecen los átomos.
            new_atom_coords: Mapa `atom_id -> (x, y)` con las posiciones
                propuestas (solo los átomos movidos directamente).
            is_flip: Si el movimiento es una reflexión; invierte las cuñas
                incidentes a los átomos dados aunque no cambien de sitio.
            structure_maxes: Registro de la caja de la estructura.
            global_maxes: Registro de la caja global de la escena.

        Returns:
            `PropagationResult` con los cambios (ya aplicados) y los ids de
            conexiones intermoleculares afectadas.

        Side Effects:
            Muta la estructura y los registros de cajas. Átomos inexistentes
            o desactivados se ignoran sin error.
        """
        result = PropagationResult()
        structure = self.scene.structure(structure_id)
        if structure is None:
            logger.debug("Estructura %s inexistente, se ignora", structure_id)
            return result
        if structure_maxes is None:
            structure_maxes = BoundaryUpdateInfo(structure.boundaries)
        if global_maxes is None:
            global_maxes = BoundaryUpdateInfo(self.scene.global_limits)
        changes = result.changes

        moved, old_limits, to_flip, to_reposition = self._move_atoms(
            structure, new_atom_coords, is_flip, changes
        )
        self._flip_stereo(structure, to_flip, changes)
        edge_cases = self._reposition_edges(structure, to_reposition, changes)
        oriented = self._update_hydrogens(structure, moved, old_limits, changes)
        oriented |= self._update_label_anchors(structure, moved, old_limits, changes)
        self._update_aromatic_rings(structure, moved, edge_cases, changes)
        self._update_ring_centers(structure, moved, changes)
        self._update_ring_systems(structure, moved, changes)
        self._update_draw_limits(
            structure, moved | oriented, old_limits, structure_maxes, global_maxes, changes
        )
        self._collect_intermolecular(structure, moved, result)
        result.moved_atom_ids = moved
        return result

    # ------------------------------------------------------------------
    # Fase 1: átomos
    # ------------------------------------------------------------------
    def _move_atoms(
        self,
        structure: Structure,
        new_atom_coords: Dict[int, Point],
        is_flip: bool,
        changes: List[ch.Change],
    ) -> Tuple[Set[int], Dict[int, Optional[Limits]], Set[int], Set[int]]:
        moved: Set[int] = set()
        old_limits: Dict[int, Optional[Limits]] = {}
        to_flip: Set[int] = set()
        to_reposition: Set[int] = set()
        tol = self.options.coordinate_tolerance

        for atom_id, raw in new_atom_coords.items():
            atom = structure.atoms.get(atom_id)
            if atom is None or not atom.enabled:
                continue
            incident = structure.neighbors(atom_id)
            if is_flip:
                to_flip.update(
                    edge_id for _nb, edge_id in incident if structure.edges[edge_id].type.is_stereo
                )
            new = as_point(raw)
            if coords_almost_equal(atom.coordinates, new, tol):
                continue
            old_limits[atom_id] = atom.draw_limits
            change = ch.MoveAtom(structure.id, atom_id, atom.coordinates, new)
            self.interpreter.apply(change)
            changes.append(change)
            moved.add(atom_id)
            to_reposition.update(edge_id for _nb, edge_id in incident)

        to_reposition |= to_flip
        return moved, old_limits, to_flip, to_reposition

    # ------------------------------------------------------------------
    # Fase 2: inversión de cuñas
    # ------------------------------------------------------------------
    def _flip_stereo(self, structure: Structure, to_flip: Set[int], changes: List[ch.Change]) -> None:
        for edge_id in sorted(to_flip):
            edge = structure.edges[edge_id]
            if not structure.edge_is_live(edge):
                continue
            change = ch.ToggleStereo(structure.id, edge_id, edge.type, edge.type.opposite_stereo())
            self.interpreter.apply(change)
            changes.append(change)

    # ------------------------------------------------------------------
    # Fase 3: enlaces
    # ------------------------------------------------------------------
    def _reposition_edges(
        self,
        structure: Structure,
        to_reposition: Set[int],
        changes: List[ch.Change],
    ) -> Dict[int, EdgeCases]:
        metrics = self.interpreter.metrics
        edge_cases: Dict[int, EdgeCases] = {}
        for edge_id in sorted(to_reposition):
            edge = structure.edges[edge_id]
            if not structure.edge_is_live(edge):
                continue
            new = structure.compute_edge_geometry(edge, metrics)
            new_hidden = new is None and (edge.geometry is not None or edge.hidden)
            cases = classify_transition(edge.geometry, edge.hidden, new, new_hidden)
            change = ch.SetEdgeGeometry(
                structure.id,
                edge_id,
                old=edge.geometry,
                new=new,
                old_hidden=edge.hidden,
                new_hidden=new_hidden,
                forward=cases.forward,
                backward=cases.backward,
            )
            self.interpreter.apply(change)
            changes.append(change)
            edge_cases[edge_id] = cases
        return edge_cases

    # ------------------------------------------------------------------
    # Fases 4 y 5: hidrógenos y anclajes de etiquetas
    # ------------------------------------------------------------------
    def _orientation_candidates(self, structure: Structure, moved: Set[int]) -> List[int]:
        candidates = set(moved)
        for atom_id in moved:
            candidates.update(nb_id for nb_id, _edge_id in structure.neighbors(atom_id))
        return sorted(candidates)

    def _update_hydrogens(
        self,
        structure: Structure,
        moved: Set[int],
        old_limits: Dict[int, Optional[Limits]],
        changes: List[ch.Change],
    ) -> Set[int]:
        updated: Set[int] = set()
        for atom_id in self._orientation_candidates(structure, moved):
            atom = structure.atoms[atom_id]
            if not atom.enabled or not atom.needs_hydrogen_placement:
                continue
            new = structure.compute_hydrogen_orientation(atom)
            if new == atom.hydrogen_orientation:
                continue
            old_limits.setdefault(atom_id, atom.draw_limits)
            change = ch.SetHydrogenOrientation(structure.id, atom_id, atom.hydrogen_orientation, new)
            changes.append(change)
            updated.add(atom_id)
            if atom.temp_hydrogen_orientation == new:
                # Ya se muestra así: solo se confirma el estado.
                atom.hydrogen_orientation = new
            else:
                self.interpreter.apply(change)
        return updated

    def _update_label_anchors(
        self,
        structure: Structure,
        moved: Set[int],
        old_limits: Dict[int, Optional[Limits]],
        changes: List[ch.Change],
    ) -> Set[int]:
        updated: Set[int] = set()
        for atom_id in self._orientation_candidates(structure, moved):
            atom = structure.atoms[atom_id]
            if not atom.enabled or not atom.label:
                continue
            new = structure.compute_label_orientation(atom)
            if new == atom.label_orientation:
                continue
            old_limits.setdefault(atom_id, atom.draw_limits)
            change = ch.SetLabelOrientation(structure.id, atom_id, atom.label_orientation, new)
            changes.append(change)
            updated.add(atom_id)
            if atom.temp_label_orientation == new:
                atom.label_orientation = new
            else:
                self.interpreter.apply(change)
        return updated

    # ------------------------------------------------------------------
    # Fase 6: anillos aromáticos
    # ------------------------------------------------------------------
    def _update_aromatic_rings(
        self,
        structure: Structure,
        moved: Set[int],
        edge_cases: Dict[int, EdgeCases],
        changes: List[ch.Change],
    ) -> None:
        metrics = self.interpreter.metrics
        for ring_id in structure.rings_affected_by_atoms(moved, aromatic=True):
            ring = structure.rings[ring_id]
            new_lines = structure.compute_inner_lines(ring, metrics)
            for edge_id in list(ring.edge_ids):
                cases = edge_cases.get(edge_id)
                if cases is None:
                    if ring.next_edge(edge_id) not in edge_cases and ring.previous_edge(edge_id) not in edge_cases:
                        continue
                    cases = MOVE_CASES
                old_line = ring.inner_lines.get(edge_id)
                new_line = new_lines.get(edge_id)
                self.interpreter.run_aromatic_case(structure.id, ring, edge_id, cases.immediate, new_line)
                changes.append(ch.UpdateAromaticEdge(
                    structure.id,
                    ring_id,
                    edge_id,
                    old=old_line,
                    new=new_line,
                    forward=cases.forward,
                    backward=cases.backward,
                ))
            self._recompute_ring_center(structure, ring_id, changes)

    # ------------------------------------------------------------------
    # Fases 7 y 8: centros de anillos y sistemas de anillos
    # ------------------------------------------------------------------
    def _recompute_ring_center(self, structure: Structure, ring_id: int, changes: List[ch.Change]) -> None:
        ring = structure.rings[ring_id]
        change = ch.RecomputeRingCenter(structure.id, ring_id, ring.center, structure.compute_ring_center(ring))
        self.interpreter.apply(change)
        changes.append(change)

    def _update_ring_centers(self, structure: Structure, moved: Set[int], changes: List[ch.Change]) -> None:
        for ring_id in structure.rings_affected_by_atoms(moved, aromatic=False):
            self._recompute_ring_center(structure, ring_id, changes)

    def _update_ring_systems(self, structure: Structure, moved: Set[int], changes: List[ch.Change]) -> None:
        for rs_id in structure.ring_systems_affected_by_atoms(moved):
            ring_system = structure.ring_systems[rs_id]
            change = ch.SetRingSystemCenter(
                structure.id, rs_id, ring_system.center, structure.compute_ring_system_center(ring_system)
            )
            self.interpreter.apply(change)
            changes.append(change)

    # ------------------------------------------------------------------
    # Fase 9: cajas de dibujo
    # ------------------------------------------------------------------
    def _update_draw_limits(
        self,
        structure: Structure,
        atom_ids: Set[int],
        old_limits: Dict[int, Optional[Limits]],
        structure_maxes: BoundaryUpdateInfo,
        global_maxes: BoundaryUpdateInfo,
        changes: List[ch.Change],
    ) -> None:
        for atom_id in sorted(atom_ids):
            change = ch.RecomputeDrawLimits(structure.id, atom_id)
            self.interpreter.apply(change)
            changes.append(change)
            new = structure.atoms[atom_id].draw_limits
            old = old_limits.get(atom_id)
            structure_maxes.update_maxes_by_limits(old, new)
            global_maxes.update_maxes_by_limits(old, new)

    # ------------------------------------------------------------------
    # Fase 10: conexiones intermoleculares
    # ------------------------------------------------------------------
    def _collect_intermolecular(self, structure: Structure, moved: Set[int], result: PropagationResult) -> None:
        data = self.scene.intermolecular.connection_data(structure.id)
        affected = result.affected
        affected[IntermolecularKind.DISTANCE] |= data.all_ids(IntermolecularKind.DISTANCE)
        affected[IntermolecularKind.INTERACTION] |= data.all_ids(IntermolecularKind.INTERACTION)

        if self.options.interaction_mode.is_mirror:
            for kind in (IntermolecularKind.ATOM_PAIR, IntermolecularKind.PI_STACKING, IntermolecularKind.CATION_PI):
                affected[kind] |= data.all_ids(kind)
            return

        ring_ids = set(structure.rings_affected_by_atoms(moved))
        for rs_id in structure.ring_systems_affected_by_atoms(moved):
            ring_ids |= structure.ring_systems[rs_id].ring_ids
        whole = self.options.move_freedom_level == MoveFreedomLevel.STRUCTURES
        affected[IntermolecularKind.ATOM_PAIR] |= data.affected_atom_pairs(moved, whole)
        affected[IntermolecularKind.PI_STACKING] |= data.affected_pi_stackings(ring_ids)
        affected[IntermolecularKind.CATION_PI] |= data.affected_cation_pi_stackings(moved, ring_ids)
