"""
Lectura y escritura de escenas en formato JSON.

Una escena es un diccionario con `structures` (átomos, enlaces, anillos y
sistemas de anillos), `annotations`, `hydrophobicContacts` y una lista por
cada tipo de conexión intermolecular. Los ids de estructuras, anotaciones,
contactos y conexiones se reasignan al añadirlos a una escena existente
para no colisionar con los ya presentes.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from chemio import rdkit_io
from geometry.points import as_point
from molgraph.model import Atom, Edge, EdgeType, Ring, RingSystem, Structure
from molgraph.rings import deduce_ring_systems
from scene.intermolecular import IntermolecularConnection, IntermolecularKind
from scene.objects import Annotation, ControlPoint, HydrophobicContact

logger = logging.getLogger(__name__)


class SceneFormatError(ValueError):
    """Se lanza cuando un registro de escena está mal formado."""


@dataclass
class SceneContent:
    """Objetos construidos a partir de un registro de escena."""
    structures: List[Structure] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)
    hydrophobic_contacts: List[HydrophobicContact] = field(default_factory=list)
    connections: List[IntermolecularConnection] = field(default_factory=list)
    # Representación inicial pedida por cada estructura (`default`/`circle`).
    representations: Dict[int, str] = field(default_factory=dict)


def _require(record: Mapping[str, Any], key: str, what: str) -> Any:
    if key not in record:
        raise SceneFormatError(f"{what} sin campo '{key}'")
    return record[key]


class ScenePersistence:
    """Conversión entre registros JSON de escena y objetos del modelo."""

    @staticmethod
    def build_structure(record: Mapping[str, Any], structure_id: int) -> Structure:
        """Construye una estructura (sin geometría derivada) desde su registro.

        Args:
            record: Registro con `atoms`, `bonds` y opcionalmente `rings` y
                `ringSystems`.
            structure_id: Id asignado en la escena.

        Raises:
            SceneFormatError: Si faltan campos, el tipo de enlace es
                desconocido o un enlace referencia átomos inexistentes.
        """
        structure = Structure(
            structure_id,
            name=record.get("name", ""),
            structure_type=record.get("type", "ligand"),
        )
        for atom_d in record.get("atoms", []):
            structure.add_atom(Atom(
                id=int(_require(atom_d, "id", "Átomo")),
                element=atom_d.get("element", "C"),
                coordinates=as_point(_require(atom_d, "coordinates", "Átomo")),
                enabled=atom_d.get("enabled", True),
                hydrogen_count=int(atom_d.get("hydrogenCount", 0)),
                charge=int(atom_d.get("charge", 0)),
                aromatic=bool(atom_d.get("aromatic", False)),
                label=atom_d.get("label"),
                color=atom_d.get("color"),
            ))

        for bond_d in record.get("bonds", []):
            try:
                edge_type = EdgeType(bond_d.get("type", "single"))
            except ValueError as exc:
                raise SceneFormatError(f"Tipo de enlace desconocido: {bond_d.get('type')}") from exc
            try:
                structure.add_edge(Edge(
                    id=int(_require(bond_d, "id", "Enlace")),
                    from_id=int(_require(bond_d, "from", "Enlace")),
                    to_id=int(_require(bond_d, "to", "Enlace")),
                    type=edge_type,
                    aromatic=bool(bond_d.get("aromatic", False)),
                    enabled=bond_d.get("enabled", True),
                ))
            except KeyError as exc:
                raise SceneFormatError(str(exc)) from exc

        ring_records = record.get("rings")
        if ring_records is None and record.get("bonds"):
            ring_records = rdkit_io.perceive_rings(record)
        for ring_d in ring_records or []:
            atom_ids = [int(a) for a in _require(ring_d, "atoms", "Anillo")]
            if any(a not in structure.atoms for a in atom_ids):
                raise SceneFormatError(f"Anillo {ring_d.get('id')} con átomos inexistentes")
            structure.add_ring(Ring(
                id=int(_require(ring_d, "id", "Anillo")),
                atom_ids=atom_ids,
                aromatic=bool(ring_d.get("aromatic", False)),
            ))

        system_records = record.get("ringSystems")
        if system_records is None:
            structure.ring_systems = deduce_ring_systems(structure)
        else:
            for rs_d in system_records:
                member_ids = rs_d.get("memberRingIds", rs_d.get("rings", []))
                structure.add_ring_system(RingSystem(
                    id=int(_require(rs_d, "id", "Sistema de anillos")),
                    ring_ids={int(r) for r in member_ids},
                ))
        return structure

    @staticmethod
    def build_content(data: Mapping[str, Any], scene) -> SceneContent:
        """Construye todos los objetos de un registro para añadirlos a `scene`.

        Args:
            data: Registro de escena.
            scene: Escena destino; solo se usa para asignar ids libres y las
                medidas de dibujo. No se modifica.

        Returns:
            `SceneContent` con la geometría derivada ya calculada.
        """
        content = SceneContent()
        metrics = scene.options.metrics
        structure_map: Dict[int, int] = {}
        next_sid = scene.next_structure_id()
        structures_by_id: Dict[int, Structure] = {}
        for record in data.get("structures", []):
            record_id = int(_require(record, "id", "Estructura"))
            structure = ScenePersistence.build_structure(record, next_sid)
            structure.initialize_geometry(metrics)
            structure_map[record_id] = next_sid
            structures_by_id[next_sid] = structure
            content.structures.append(structure)
            content.representations[next_sid] = record.get("representation", "default")
            next_sid += 1

        def map_structure(value: Optional[Any]) -> Optional[int]:
            if value is None:
                return None
            mapped = structure_map.get(int(value))
            if mapped is None and int(value) in scene.structures:
                mapped = int(value)
            if mapped is None:
                raise SceneFormatError(f"Estructura {value} inexistente")
            return mapped

        next_ann = max(scene.annotations, default=0) + 1
        for ann_d in data.get("annotations", []):
            annotation = Annotation(
                id=next_ann,
                label=ann_d.get("label", ""),
                coordinates=as_point(_require(ann_d, "coordinates", "Anotación")),
                belongs_to=map_structure(ann_d.get("belongsTo")),
            )
            annotation.draw_limits = annotation.compute_limits(metrics)
            content.annotations.append(annotation)
            next_ann += 1

        next_contact = max(scene.hydrophobic_contacts, default=0) + 1
        for contact_d in data.get("hydrophobicContacts", []):
            points = [
                ControlPoint(
                    coordinates=as_point(cp),
                    atom_links=[
                        (map_structure(link["structure"]), int(link["atom"]))
                        for link in cp.get("atomLinks", [])
                    ],
                )
                for cp in _require(contact_d, "controlPoints", "Contacto hidrofóbico")
            ]
            contact = HydrophobicContact(
                id=next_contact,
                control_points=points,
                belongs_to=map_structure(contact_d.get("belongsTo")),
            )
            contact.update_curve()
            content.hydrophobic_contacts.append(contact)
            next_contact += 1

        for kind in IntermolecularKind:
            next_conn = scene.intermolecular.next_id(kind)
            for conn_d in data.get(kind.value, []):
                content.connections.append(IntermolecularConnection(
                    id=next_conn,
                    kind=kind,
                    from_structure=map_structure(_require(conn_d, "fromStructure", kind.value)),
                    to_structure=map_structure(_require(conn_d, "toStructure", kind.value)),
                    from_id=int(_require(conn_d, "from", kind.value)),
                    to_id=int(_require(conn_d, "to", kind.value)),
                ))
                next_conn += 1
        logger.debug(
            "Registro de escena con %d estructuras y %d conexiones",
            len(content.structures),
            len(content.connections),
        )
        return content

    @staticmethod
    def scene_to_dict(scene) -> Dict[str, Any]:
        """Serializa los elementos activos de la escena."""
        structures = []
        for structure in scene.live_structures():
            structures.append({
                "id": structure.id,
                "name": structure.name,
                "type": structure.structure_type,
                "representation": "circle" if structure.circle is not None else "default",
                "atoms": [
                    {
                        "id": atom.id,
                        "element": atom.element,
                        "label": atom.label,
                        "coordinates": {"x": atom.x, "y": atom.y},
                        "hydrogenCount": atom.hydrogen_count,
                        "aromatic": atom.aromatic,
                        "charge": atom.charge,
                        "color": atom.color,
                    }
                    for atom in structure.enabled_atoms()
                ],
                "bonds": [
                    {
                        "id": edge.id,
                        "from": edge.from_id,
                        "to": edge.to_id,
                        "type": edge.type.value,
                        "aromatic": edge.aromatic,
                    }
                    for edge in structure.edges.values()
                    if structure.edge_is_live(edge)
                ],
                "rings": [
                    {"id": ring.id, "atoms": list(ring.atom_ids), "aromatic": ring.aromatic}
                    for ring in structure.rings.values()
                    if ring.enabled
                ],
                "ringSystems": [
                    {
                        "id": rs.id,
                        "center": {"x": rs.center[0], "y": rs.center[1]},
                        "memberRingIds": sorted(rs.ring_ids),
                    }
                    for rs in structure.ring_systems.values()
                ],
            })
        data: Dict[str, Any] = {
            "structures": structures,
            "annotations": [
                {
                    "id": ann.id,
                    "label": ann.label,
                    "coordinates": {"x": ann.coordinates[0], "y": ann.coordinates[1]},
                    "belongsTo": ann.belongs_to,
                }
                for ann in scene.annotations.values()
                if ann.enabled
            ],
            "hydrophobicContacts": [
                {
                    "id": contact.id,
                    "belongsTo": contact.belongs_to,
                    "controlPoints": [
                        {
                            "x": cp.coordinates[0],
                            "y": cp.coordinates[1],
                            "atomLinks": [{"structure": s, "atom": a} for s, a in cp.atom_links],
                        }
                        for cp in contact.control_points
                        if cp.enabled
                    ],
                }
                for contact in scene.hydrophobic_contacts.values()
                if contact.enabled
            ],
        }
        for kind in IntermolecularKind:
            data[kind.value] = [
                {
                    "id": conn.id,
                    "fromStructure": conn.from_structure,
                    "toStructure": conn.to_structure,
                    "from": conn.from_id,
                    "to": conn.to_id,
                }
                for conn in scene.intermolecular.connections[kind].values()
                if conn.enabled
            ]
        return data

    @staticmethod
    def load_file(filepath: str) -> Dict[str, Any]:
        """Lee un registro de escena desde disco.

        Raises:
            SceneFormatError: Si el JSON no es un objeto.
        """
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise SceneFormatError("Not a valid scene file")
        return data

    @staticmethod
    def save_file(filepath: str, scene) -> None:
        data = ScenePersistence.scene_to_dict(scene)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
