"""Conexiones intermoleculares y su índice por estructura.

Cada conexión une dos estructuras: distancias, interacciones genéricas y
pares de átomos se anclan en átomos; los apilamientos pi se anclan en
anillos y los catión-pi van de un átomo a un anillo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from geometry.bonds import Segment
from molgraph.model import Structure

logger = logging.getLogger(__name__)


class IntermolecularKind(str, Enum):
    """Tipos de conexión intermolecular (nombres de los registros de escena)."""
    DISTANCE = "distances"
    INTERACTION = "interactions"
    ATOM_PAIR = "atomPairInteractions"
    PI_STACKING = "piStackings"
    CATION_PI = "cationPiStackings"

    @property
    def from_is_ring(self) -> bool:
        return self == IntermolecularKind.PI_STACKING

    @property
    def to_is_ring(self) -> bool:
        return self in (IntermolecularKind.PI_STACKING, IntermolecularKind.CATION_PI)


@dataclass
class IntermolecularConnection:
    """Una conexión entre elementos de dos estructuras."""
    id: int
    kind: IntermolecularKind
    from_structure: int
    to_structure: int
    from_id: int
    to_id: int
    enabled: bool = True
    endpoints: Optional[Segment] = None


class IntermolecularConnectionData:
    """Índice de las conexiones en las que participa una estructura.

    Responde qué conexiones se ven afectadas al mover un conjunto de átomos
    sin recorrer todas las conexiones de la escena.
    """

    def __init__(self) -> None:
        self.ids: Dict[IntermolecularKind, Set[int]] = {kind: set() for kind in IntermolecularKind}
        self.by_atom: Dict[IntermolecularKind, Dict[int, Set[int]]] = {kind: {} for kind in IntermolecularKind}
        self.by_ring: Dict[IntermolecularKind, Dict[int, Set[int]]] = {kind: {} for kind in IntermolecularKind}

    def add(self, kind: IntermolecularKind, conn_id: int, element_id: int, is_ring: bool) -> None:
        self.ids[kind].add(conn_id)
        index = self.by_ring[kind] if is_ring else self.by_atom[kind]
        index.setdefault(element_id, set()).add(conn_id)

    def discard(self, kind: IntermolecularKind, conn_id: int) -> None:
        self.ids[kind].discard(conn_id)
        for index in (self.by_atom[kind], self.by_ring[kind]):
            for conns in index.values():
                conns.discard(conn_id)

    def all_ids(self, kind: IntermolecularKind) -> Set[int]:
        return set(self.ids[kind])

    def _lookup(self, index: Dict[int, Set[int]], element_ids: Iterable[int]) -> Set[int]:
        found: Set[int] = set()
        for element_id in element_ids:
            found |= index.get(element_id, set())
        return found

    def affected_atom_pairs(self, atom_ids: Iterable[int], whole_structure: bool) -> Set[int]:
        if whole_structure:
            return self.all_ids(IntermolecularKind.ATOM_PAIR)
        return self._lookup(self.by_atom[IntermolecularKind.ATOM_PAIR], atom_ids)

    def affected_pi_stackings(self, ring_ids: Iterable[int]) -> Set[int]:
        return self._lookup(self.by_ring[IntermolecularKind.PI_STACKING], ring_ids)

    def affected_cation_pi_stackings(self, atom_ids: Iterable[int], ring_ids: Iterable[int]) -> Set[int]:
        kind = IntermolecularKind.CATION_PI
        return self._lookup(self.by_atom[kind], atom_ids) | self._lookup(self.by_ring[kind], ring_ids)


class IntermolecularStore:
    """Registro de todas las conexiones intermoleculares de la escena."""

    def __init__(self) -> None:
        self.connections: Dict[IntermolecularKind, Dict[int, IntermolecularConnection]] = {
            kind: {} for kind in IntermolecularKind
        }
        self._per_structure: Dict[int, IntermolecularConnectionData] = {}

    def connection_data(self, structure_id: int) -> IntermolecularConnectionData:
        return self._per_structure.setdefault(structure_id, IntermolecularConnectionData())

    def get(self, kind: IntermolecularKind, conn_id: int) -> Optional[IntermolecularConnection]:
        return self.connections[kind].get(conn_id)

    def add(self, conn: IntermolecularConnection) -> IntermolecularConnection:
        self.connections[conn.kind][conn.id] = conn
        self.connection_data(conn.from_structure).add(conn.kind, conn.id, conn.from_id, conn.kind.from_is_ring)
        self.connection_data(conn.to_structure).add(conn.kind, conn.id, conn.to_id, conn.kind.to_is_ring)
        return conn

    def remove(self, kind: IntermolecularKind, conn_id: int) -> None:
        conn = self.connections[kind].pop(conn_id, None)
        if conn is None:
            return
        for structure_id in (conn.from_structure, conn.to_structure):
            self.connection_data(structure_id).discard(kind, conn_id)

    def involving_structure(self, structure_id: int) -> List[IntermolecularConnection]:
        return [
            conn
            for conns in self.connections.values()
            for conn in conns.values()
            if structure_id in (conn.from_structure, conn.to_structure)
        ]

    def next_id(self, kind: IntermolecularKind) -> int:
        return max(self.connections[kind], default=0) + 1


def compute_endpoints(
    conn: IntermolecularConnection,
    structures: Dict[int, Structure],
) -> Optional[Segment]:
    """Extremos actuales de una conexión: coordenadas de átomo o centro de anillo.

    Returns:
        El segmento, o `None` si alguno de los extremos ya no existe.
    """
    start = _anchor(structures.get(conn.from_structure), conn.from_id, conn.kind.from_is_ring)
    end = _anchor(structures.get(conn.to_structure), conn.to_id, conn.kind.to_is_ring)
    if start is None or end is None:
        logger.debug("Conexión %s %s sin extremos válidos", conn.kind.value, conn.id)
        return None
    return start, end


def _anchor(structure: Optional[Structure], element_id: int, is_ring: bool):
    if structure is None:
        return None
    if is_ring:
        ring = structure.rings.get(element_id)
        return None if ring is None else ring.center
    atom = structure.atoms.get(element_id)
    return None if atom is None else atom.coordinates
