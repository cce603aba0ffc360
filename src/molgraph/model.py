"""Modelo de datos de las estructuras dibujadas en una escena de Ligmap.

Una escena contiene varias estructuras (ligando, residuos, aguas...). Cada
`Structure` es propietaria de sus átomos, enlaces, anillos y sistemas de
anillos, y mantiene la geometría derivada que depende de las coordenadas de
los átomos: cajas de dibujo por átomo, geometría de enlaces, centros de
anillos y líneas interiores de anillos aromáticos. El motor de propagación
lee y modifica estas clases; el resto de la aplicación solo las consulta.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from PyQt6.QtCore import QPointF

from geometry.bonds import EdgeGeometry, Segment, compute_edge_geometry, ring_inner_line
from geometry.placement import Orientation, hydrogen_orientation, label_orientation
from geometry.points import Point, hull_centroid, inward_normals, polygon_centroid
from molgraph.boundary import Limits, rescan_limits


class EdgeType(str, Enum):
    """Tipos de enlace dibujables."""
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    # Cuñas sin resolver: se dibujan como enlaces simples y no se invierten.
    UP = "up"
    DOWN = "down"
    STEREO_FRONT = "stereoFront"
    STEREO_BACK = "stereoBack"
    STEREO_FRONT_REVERSE = "stereoFrontReverse"
    STEREO_BACK_REVERSE = "stereoBackReverse"

    @property
    def is_stereo(self) -> bool:
        return self in _OPPOSITE_STEREO

    def opposite_stereo(self) -> "EdgeType":
        """Invierte delante/detrás conservando el sentido de la cuña."""
        return _OPPOSITE_STEREO.get(self, self)


_OPPOSITE_STEREO = {
    EdgeType.STEREO_FRONT: EdgeType.STEREO_BACK,
    EdgeType.STEREO_BACK: EdgeType.STEREO_FRONT,
    EdgeType.STEREO_FRONT_REVERSE: EdgeType.STEREO_BACK_REVERSE,
    EdgeType.STEREO_BACK_REVERSE: EdgeType.STEREO_FRONT_REVERSE,
}


class EdgeChangeCase(Enum):
    """Cómo debe actualizarse el dibujo de un enlace tras un cambio."""
    REMOVE = 1
    DRAW = 2
    REDRAW = 3
    MOVE = 4
    PASS = 5


@dataclass
class DrawMetrics:
    """Medidas de dibujo usadas para derivar geometría de la escena."""

    # Ancho medio de un carácter de etiqueta.
    char_width: float = 7.0
    # Alto de una línea de texto de etiqueta.
    label_height: float = 12.0
    # Radio de la caja de un átomo sin etiqueta (carbono implícito).
    atom_radius: float = 2.0
    # Separación entre el texto de un átomo y los enlaces que llegan a él.
    label_padding: float = 1.0
    # Ancho de la base de las cuñas estereoquímicas.
    wedge_width: float = 6.0
    # Separación entre líneas de enlaces dobles y triples.
    bond_spacing: float = 4.0
    # Separación de la línea interior de los anillos aromáticos.
    space_to_ring: float = 5.0

    @property
    def label_trim(self) -> float:
        return self.label_height / 2.0 + self.label_padding


@dataclass
class Atom:
    """Átomo de una estructura."""
    id: int
    element: str
    coordinates: Point
    enabled: bool = True
    hydrogen_count: int = 0
    charge: int = 0
    aromatic: bool = False
    # Texto de residuo (p. ej. "Asp 86"); activa la orientación de etiqueta.
    label: Optional[str] = None
    color: Optional[str] = None
    hydrogen_orientation: Optional[Orientation] = None
    label_orientation: Optional[Orientation] = None
    # Orientaciones mostradas durante una interacción aún no confirmada.
    temp_hydrogen_orientation: Optional[Orientation] = None
    temp_label_orientation: Optional[Orientation] = None
    draw_limits: Optional[Limits] = None

    @property
    def x(self) -> float:
        return self.coordinates[0]

    @property
    def y(self) -> float:
        return self.coordinates[1]

    @property
    def shows_label(self) -> bool:
        return self.element != "C" or bool(self.label) or self.charge != 0

    @property
    def needs_hydrogen_placement(self) -> bool:
        return self.element != "C" and self.hydrogen_count > 0

    def text(self) -> str:
        charge = ""
        if self.charge:
            sign = "+" if self.charge > 0 else "-"
            charge = sign if abs(self.charge) == 1 else f"{abs(self.charge)}{sign}"
        return f"{self.element}{charge}"

    def hydrogen_text(self) -> str:
        if not self.needs_hydrogen_placement:
            return ""
        return "H" if self.hydrogen_count == 1 else f"H{self.hydrogen_count}"


@dataclass
class Edge:
    """Enlace entre dos átomos de la misma estructura."""
    id: int
    from_id: int
    to_id: int
    type: EdgeType = EdgeType.SINGLE
    aromatic: bool = False
    enabled: bool = True
    geometry: Optional[EdgeGeometry] = None
    # Ya dibujado pero oculto (p. ej. por solaparse las etiquetas).
    hidden: bool = False
    from_color: Optional[str] = None
    to_color: Optional[str] = None

    def other(self, atom_id: int) -> int:
        return self.to_id if atom_id == self.from_id else self.from_id

    @property
    def drawn(self) -> bool:
        return self.geometry is not None


@dataclass
class Ring:
    """Anillo: ciclo ordenado de átomos y los enlaces que lo cierran."""
    id: int
    atom_ids: List[int]
    aromatic: bool = False
    enabled: bool = True
    edge_ids: List[int] = field(default_factory=list)
    center: Point = (0.0, 0.0)
    inner_lines: Dict[int, Segment] = field(default_factory=dict)

    def next_edge(self, edge_id: int) -> int:
        idx = self.edge_ids.index(edge_id)
        return self.edge_ids[(idx + 1) % len(self.edge_ids)]

    def previous_edge(self, edge_id: int) -> int:
        idx = self.edge_ids.index(edge_id)
        return self.edge_ids[idx - 1]


@dataclass
class RingSystem:
    """Conjunto de anillos fusionados con un centro común."""
    id: int
    ring_ids: Set[int]
    center: Point = (0.0, 0.0)


@dataclass
class StructureCircle:
    """Representación de una estructura como círculo envolvente."""
    center: Point
    radius: float

    @property
    def limits(self) -> Limits:
        return Limits.around(self.center, self.radius, self.radius)


class Structure:
    """Grafo de una estructura con su geometría derivada.

    Los átomos y enlaces nunca se borran: eliminarlos los desactiva
    (`enabled = False`) para que las operaciones de deshacer puedan
    reactivarlos sin reconstruir nada.
    """

    def __init__(self, structure_id: int, name: str = "", structure_type: str = "ligand") -> None:
        self.id = structure_id
        self.name = name
        self.structure_type = structure_type
        self.enabled = True
        self.atoms: Dict[int, Atom] = {}
        self.edges: Dict[int, Edge] = {}
        self.rings: Dict[int, Ring] = {}
        self.ring_systems: Dict[int, RingSystem] = {}
        self.boundaries: Optional[Limits] = None
        self.circle: Optional[StructureCircle] = None
        self._adjacency: Optional[Dict[int, List[Tuple[int, int]]]] = None

    # ------------------------------------------------------------------
    # Construcción
    # ------------------------------------------------------------------
    def add_atom(self, atom: Atom) -> Atom:
        self.atoms[atom.id] = atom
        self._adjacency = None
        return atom

    def add_edge(self, edge: Edge) -> Edge:
        if edge.from_id not in self.atoms or edge.to_id not in self.atoms:
            raise KeyError(f"Edge {edge.id} references unknown atoms")
        self.edges[edge.id] = edge
        self._adjacency = None
        return edge

    def add_ring(self, ring: Ring) -> Ring:
        self.rings[ring.id] = ring
        self.finalize_ring(ring)
        return ring

    def add_ring_system(self, ring_system: RingSystem) -> RingSystem:
        self.ring_systems[ring_system.id] = ring_system
        return ring_system

    def clone(self) -> "Structure":
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Consultas del grafo
    # ------------------------------------------------------------------
    def _build_adjacency(self) -> Dict[int, List[Tuple[int, int]]]:
        adjacency: Dict[int, List[Tuple[int, int]]] = {atom_id: [] for atom_id in self.atoms}
        for edge in self.edges.values():
            adjacency[edge.from_id].append((edge.to_id, edge.id))
            adjacency[edge.to_id].append((edge.from_id, edge.id))
        return adjacency

    def neighbors(self, atom_id: int, enabled_only: bool = True) -> List[Tuple[int, int]]:
        """Vecinos de un átomo como pares `(atom_id, edge_id)`.

        Args:
            atom_id: Átomo consultado.
            enabled_only: Si es `True` se ignoran enlaces o vecinos
                desactivados.
        """
        if self._adjacency is None:
            self._adjacency = self._build_adjacency()
        pairs = self._adjacency.get(atom_id, [])
        if not enabled_only:
            return list(pairs)
        return [
            (nb_id, edge_id)
            for nb_id, edge_id in pairs
            if self.edges[edge_id].enabled and self.atoms[nb_id].enabled
        ]

    def edge_between(self, a_id: int, b_id: int) -> Optional[Edge]:
        for nb_id, edge_id in self.neighbors(a_id, enabled_only=False):
            if nb_id == b_id:
                return self.edges[edge_id]
        return None

    def edge_is_live(self, edge: Edge) -> bool:
        return edge.enabled and self.atoms[edge.from_id].enabled and self.atoms[edge.to_id].enabled

    def enabled_atoms(self) -> List[Atom]:
        return [atom for atom in self.atoms.values() if atom.enabled]

    def rings_affected_by_atoms(self, atom_ids: Iterable[int], aromatic: Optional[bool] = None) -> List[int]:
        """Anillos activos que contienen alguno de los átomos dados.

        Args:
            atom_ids: Átomos de interés.
            aromatic: Filtra por aromaticidad; `None` devuelve ambos tipos.
        """
        ids = set(atom_ids)
        return [
            ring.id
            for ring in self.rings.values()
            if ring.enabled
            and (aromatic is None or ring.aromatic == aromatic)
            and ids.intersection(ring.atom_ids)
        ]

    def ring_systems_affected_by_atoms(self, atom_ids: Iterable[int]) -> List[int]:
        rings = set(self.rings_affected_by_atoms(atom_ids))
        return [rs.id for rs in self.ring_systems.values() if rs.ring_ids & rings]

    # ------------------------------------------------------------------
    # Geometría derivada
    # ------------------------------------------------------------------
    def finalize_ring(self, ring: Ring) -> None:
        """Ordena los átomos del anillo recorriendo el ciclo y asigna enlaces.

        Si los átomos no forman un ciclo cerrado se conserva el orden dado
        y solo se asignan los enlaces que existan entre átomos consecutivos.
        """
        members = set(ring.atom_ids)
        if not ring.atom_ids:
            return
        start = ring.atom_ids[0]
        order = [start]
        edges: List[int] = []
        prev: Optional[int] = None
        current = start
        while True:
            candidates = [
                (nb, eid)
                for nb, eid in sorted(self.neighbors(current, enabled_only=False))
                if nb in members and nb != prev
            ]
            step = next(((nb, eid) for nb, eid in candidates if nb not in order), None)
            if step is None and len(order) > 2:
                step = next(((nb, eid) for nb, eid in candidates if nb == start), None)
            if step is None:
                break
            nb, eid = step
            edges.append(eid)
            if nb == start:
                break
            order.append(nb)
            prev, current = current, nb
        if len(order) == len(members) and len(edges) == len(order):
            ring.atom_ids = order
            ring.edge_ids = edges
            return
        ring.edge_ids = []
        count = len(ring.atom_ids)
        for i in range(count):
            edge = self.edge_between(ring.atom_ids[i], ring.atom_ids[(i + 1) % count])
            if edge is not None:
                ring.edge_ids.append(edge.id)

    def ring_polygon(self, ring: Ring) -> List[Point]:
        return [self.atoms[atom_id].coordinates for atom_id in ring.atom_ids]

    def compute_ring_center(self, ring: Ring) -> Point:
        return polygon_centroid(self.ring_polygon(ring))

    def compute_inner_lines(self, ring: Ring, metrics: DrawMetrics) -> Dict[int, Segment]:
        """Líneas interiores de cada enlace visible de un anillo aromático."""
        if not ring.aromatic or len(ring.atom_ids) < 3:
            return {}
        polygon = self.ring_polygon(ring)
        normals = inward_normals(polygon)
        count = len(ring.atom_ids)
        lines: Dict[int, Segment] = {}
        for idx in range(count):
            edge = self.edge_between(ring.atom_ids[idx], ring.atom_ids[(idx + 1) % count])
            if edge is None or not self.edge_is_live(edge) or edge.geometry is None:
                continue
            lines[edge.id] = ring_inner_line(
                polygon[idx], polygon[(idx + 1) % count], normals[idx], metrics.space_to_ring
            )
        return lines

    def compute_ring_system_center(self, ring_system: RingSystem) -> Point:
        """Centroide de la envolvente convexa de los átomos del sistema."""
        points = [
            self.atoms[atom_id].coordinates
            for ring_id in ring_system.ring_ids
            if ring_id in self.rings
            for atom_id in self.rings[ring_id].atom_ids
        ]
        return hull_centroid(points)

    def _neighbor_points(self, atom_id: int) -> List[QPointF]:
        return [
            QPointF(*self.atoms[nb_id].coordinates)
            for nb_id, _edge_id in self.neighbors(atom_id)
        ]

    def compute_hydrogen_orientation(self, atom: Atom) -> Optional[Orientation]:
        if not atom.needs_hydrogen_placement:
            return None
        return hydrogen_orientation(QPointF(*atom.coordinates), self._neighbor_points(atom.id))

    def compute_label_orientation(self, atom: Atom) -> Optional[Orientation]:
        if not atom.label:
            return None
        return label_orientation(QPointF(*atom.coordinates), self._neighbor_points(atom.id))

    def compute_atom_limits(self, atom: Atom, metrics: DrawMetrics) -> Limits:
        """Caja de dibujo de un átomo con su texto, hidrógenos y etiqueta."""
        if not atom.shows_label:
            return Limits.around(atom.coordinates, metrics.atom_radius, metrics.atom_radius)
        half_h = metrics.label_height / 2.0
        limits = Limits.around(atom.coordinates, len(atom.text()) * metrics.char_width / 2.0, half_h)

        h_text = atom.hydrogen_text()
        if h_text and atom.hydrogen_orientation is not None:
            limits = _extend(limits, atom.hydrogen_orientation, len(h_text) * metrics.char_width, metrics.label_height)

        if atom.label and atom.label_orientation is not None:
            limits = _extend(limits, atom.label_orientation, len(atom.label) * metrics.char_width, metrics.label_height)
        return limits

    def update_draw_limits(self, atom_id: int, metrics: DrawMetrics) -> Limits:
        atom = self.atoms[atom_id]
        atom.draw_limits = self.compute_atom_limits(atom, metrics)
        return atom.draw_limits

    def compute_edge_geometry(self, edge: Edge, metrics: DrawMetrics) -> Optional[EdgeGeometry]:
        source = self.atoms[edge.from_id]
        target = self.atoms[edge.to_id]
        return compute_edge_geometry(
            source.coordinates,
            target.coordinates,
            edge.type.value,
            trim_from=metrics.label_trim if source.shows_label else 0.0,
            trim_to=metrics.label_trim if target.shows_label else 0.0,
            wedge_width=metrics.wedge_width,
            spacing=metrics.bond_spacing,
        )

    def calc_boundaries(self) -> Optional[Limits]:
        """Caja de la estructura: átomos activos y, si existe, su círculo."""
        limits = rescan_limits(atom.draw_limits for atom in self.enabled_atoms())
        if self.circle is not None:
            limits = self.circle.limits.union(limits)
        return limits

    def atom_boundaries(self) -> Optional[Limits]:
        return rescan_limits(atom.draw_limits for atom in self.enabled_atoms())

    def initialize_geometry(self, metrics: DrawMetrics) -> None:
        """Calcula toda la geometría derivada tras cargar la estructura.

        Side Effects:
            Rellena orientaciones, cajas de dibujo, geometría de enlaces,
            centros de anillos, líneas aromáticas y la caja de la estructura.
        """
        for atom in self.atoms.values():
            atom.hydrogen_orientation = self.compute_hydrogen_orientation(atom)
            atom.temp_hydrogen_orientation = atom.hydrogen_orientation
            atom.label_orientation = self.compute_label_orientation(atom)
            atom.temp_label_orientation = atom.label_orientation
            atom.draw_limits = self.compute_atom_limits(atom, metrics)
        for edge in self.edges.values():
            edge.geometry = self.compute_edge_geometry(edge, metrics) if self.edge_is_live(edge) else None
            edge.hidden = edge.geometry is None
        for ring in self.rings.values():
            ring.center = self.compute_ring_center(ring)
            ring.inner_lines = self.compute_inner_lines(ring, metrics)
        for ring_system in self.ring_systems.values():
            ring_system.center = self.compute_ring_system_center(ring_system)
        self.boundaries = self.calc_boundaries()


def _extend(limits: Limits, side: Orientation, length: float, height: float) -> Limits:
    if side == Orientation.RIGHT:
        return Limits(limits.x_min, limits.x_max + length, limits.y_min, limits.y_max)
    if side == Orientation.LEFT:
        return Limits(limits.x_min - length, limits.x_max, limits.y_min, limits.y_max)
    if side == Orientation.DOWN:
        return Limits(limits.x_min, limits.x_max, limits.y_min, limits.y_max + height)
    return Limits(limits.x_min, limits.x_max, limits.y_min - height, limits.y_max)
