"""Cierre de una petición de borrado.

`RemoveCollector` expande lo que el usuario pidió borrar a todo lo que deja
de tener sentido sin ello: enlaces de átomos borrados, carbonos que se
quedan sin enlaces, estructuras vaciadas, anillos sin átomos y conexiones
o elementos de escena que apuntaban a lo borrado. Los contactos
hidrofóbicos admiten borrar solo algunos de sus puntos de control.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Set

from scene.intermolecular import IntermolecularKind


@dataclass
class RemovalSet:
    """Elementos que se desactivan en un mismo paso."""
    structures: Set[int] = field(default_factory=set)
    atoms: Dict[int, Set[int]] = field(default_factory=dict)
    edges: Dict[int, Set[int]] = field(default_factory=dict)
    rings: Dict[int, Set[int]] = field(default_factory=dict)
    annotations: Set[int] = field(default_factory=set)
    hydrophobic_contacts: Set[int] = field(default_factory=set)
    # Borrado parcial: `contact_id -> índices de puntos de control`.
    control_points: Dict[int, Set[int]] = field(default_factory=dict)
    intermolecular: Dict[IntermolecularKind, Set[int]] = field(
        default_factory=lambda: {kind: set() for kind in IntermolecularKind}
    )

    def is_empty(self) -> bool:
        return not (
            self.structures
            or any(self.atoms.values())
            or any(self.edges.values())
            or any(self.rings.values())
            or self.annotations
            or self.hydrophobic_contacts
            or any(self.control_points.values())
            or any(self.intermolecular.values())
        )


def _ids(values: Iterable[Any]) -> Set[int]:
    return {int(v) for v in values}


class RemoveCollector:
    """Resuelve el cierre de borrado sobre una escena."""

    def __init__(self, scene) -> None:
        self.scene = scene

    def collect(self, request: Mapping[str, Any]) -> RemovalSet:
        """Expande una petición de borrado.

        Args:
            request: Registro con las claves opcionales `structures`,
                `atoms` y `edges` (mapas `structure_id -> ids`),
                `annotations`, `hydrophobicContacts` (ids o registros
                `{id, controlPoints}`) y una lista de ids por cada tipo de
                conexión intermolecular.

        Returns:
            `RemovalSet` con solo elementos activos.
        """
        scene = self.scene
        removal = RemovalSet()
        removal.structures = _ids(request.get("structures", ())) & scene.structures_in_use

        for key, target in (("atoms", removal.atoms), ("edges", removal.edges)):
            for sid, ids in request.get(key, {}).items():
                sid = int(sid)
                if sid in scene.structures_in_use and sid not in removal.structures:
                    target.setdefault(sid, set()).update(_ids(ids))

        for sid in set(removal.atoms) | set(removal.edges):
            self._close_structure(sid, removal)

        for sid in removal.structures:
            removal.atoms.pop(sid, None)
            removal.edges.pop(sid, None)
            removal.rings.pop(sid, None)

        removal.annotations = {
            ann_id
            for ann_id in _ids(request.get("annotations", ()))
            if ann_id in scene.annotations and scene.annotations[ann_id].enabled
        }
        removal.annotations |= {
            ann.id for ann in scene.annotations.values()
            if ann.enabled and ann.belongs_to in removal.structures
        }
        self._collect_contacts(request.get("hydrophobicContacts", ()), removal)
        removal.hydrophobic_contacts |= {
            contact.id for contact in scene.hydrophobic_contacts.values()
            if contact.enabled and contact.belongs_to in removal.structures
        }
        for cid in removal.hydrophobic_contacts:
            removal.control_points.pop(cid, None)
        self._collect_intermolecular(request, removal)
        return removal

    def _close_structure(self, sid: int, removal: RemovalSet) -> None:
        structure = self.scene.structures[sid]
        atoms = {aid for aid in removal.atoms.get(sid, set()) if aid in structure.atoms and structure.atoms[aid].enabled}
        edges = {eid for eid in removal.edges.get(sid, set()) if eid in structure.edges and structure.edges[eid].enabled}

        for atom_id in atoms:
            edges.update(eid for _nb, eid in structure.neighbors(atom_id))

        # Carbonos que se quedan sin ningún enlace activo.
        for edge_id in list(edges):
            edge = structure.edges[edge_id]
            for atom_id in (edge.from_id, edge.to_id):
                atom = structure.atoms[atom_id]
                if atom_id in atoms or not atom.enabled or atom.element != "C" or atom.label:
                    continue
                if all(eid in edges for _nb, eid in structure.neighbors(atom_id)):
                    atoms.add(atom_id)

        remaining = {a.id for a in structure.enabled_atoms()} - atoms
        if not remaining:
            removal.structures.add(sid)
            return

        removal.atoms[sid] = atoms
        removal.edges[sid] = edges
        # Un anillo solo desaparece cuando ya no le queda ningún átomo activo.
        removal.rings[sid] = {
            ring.id
            for ring in structure.rings.values()
            if ring.enabled
            and atoms.intersection(ring.atom_ids)
            and all(aid in atoms or not structure.atoms[aid].enabled for aid in ring.atom_ids)
        }

    def _collect_contacts(self, entries: Iterable[Any], removal: RemovalSet) -> None:
        """Agrupa por id los borrados completos y parciales de contactos.

        Cada entrada es un id (borrado completo) o un registro
        `{"id": ..., "controlPoints": [índices]}`. Un borrado completo del
        mismo contacto prevalece sobre los parciales, y un borrado parcial
        que deja el contacto sin puntos activos se convierte en completo.
        """
        contacts = self.scene.hydrophobic_contacts
        complete: Set[int] = set()
        partial: Dict[int, Set[int]] = {}
        for entry in entries:
            if isinstance(entry, Mapping):
                cid = int(entry["id"])
                points = entry.get("controlPoints")
            else:
                cid, points = int(entry), None
            contact = contacts.get(cid)
            if contact is None or not contact.enabled:
                continue
            if points is None:
                complete.add(cid)
            else:
                partial.setdefault(cid, set()).update(_ids(points))

        for cid, indexes in partial.items():
            if cid in complete:
                continue
            enabled = set(contacts[cid].enabled_indexes())
            indexes &= enabled
            if indexes == enabled:
                complete.add(cid)
            elif indexes:
                removal.control_points[cid] = indexes
        removal.hydrophobic_contacts = complete

    def _collect_intermolecular(self, request: Mapping[str, Any], removal: RemovalSet) -> None:
        store = self.scene.intermolecular
        for kind in IntermolecularKind:
            for conn_id in _ids(request.get(kind.value, ())):
                conn = store.get(kind, conn_id)
                if conn is not None and conn.enabled:
                    removal.intermolecular[kind].add(conn_id)
            for conn in store.connections[kind].values():
                if not conn.enabled:
                    continue
                if self._endpoint_removed(conn.from_structure, conn.from_id, kind.from_is_ring, removal) or \
                        self._endpoint_removed(conn.to_structure, conn.to_id, kind.to_is_ring, removal):
                    removal.intermolecular[kind].add(conn.id)

    @staticmethod
    def _endpoint_removed(sid: int, element_id: int, is_ring: bool, removal: RemovalSet) -> bool:
        if sid in removal.structures:
            return True
        if is_ring:
            return element_id in removal.rings.get(sid, set())
        return element_id in removal.atoms.get(sid, set())
