"""Estado completo de una escena de Ligmap."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from molgraph.boundary import Limits
from molgraph.model import Structure
from scene.intermolecular import IntermolecularStore
from scene.objects import Annotation, HydrophobicContact
from scene.options import DrawerOptions

logger = logging.getLogger(__name__)


class SceneData:
    """Estructuras, elementos de escena y caja global.

    Las estructuras no se eliminan al quitarlas de la escena: salen de
    `structures_in_use` para poder restaurarlas al deshacer. Solo se purgan
    cuando el paso que las creó se descarta del historial.
    """

    def __init__(self, options: Optional[DrawerOptions] = None) -> None:
        self.options = options or DrawerOptions()
        self.structures: Dict[int, Structure] = {}
        self.structures_in_use: Set[int] = set()
        # Copias inmutables tomadas al añadir cada estructura.
        self.original_structures: Dict[int, Structure] = {}
        self.annotations: Dict[int, Annotation] = {}
        self.hydrophobic_contacts: Dict[int, HydrophobicContact] = {}
        self.intermolecular = IntermolecularStore()
        self.global_limits: Optional[Limits] = None

    def structure(self, structure_id: int) -> Optional[Structure]:
        return self.structures.get(structure_id)

    def live_structures(self) -> List[Structure]:
        return [self.structures[sid] for sid in sorted(self.structures_in_use)]

    def next_structure_id(self) -> int:
        return max(self.structures, default=0) + 1

    def register_structure(self, structure: Structure) -> None:
        """Registra una estructura nueva (aún fuera de uso) y su copia original."""
        self.structures[structure.id] = structure
        self.original_structures[structure.id] = structure.clone()

    def purge_structure(self, structure_id: int) -> None:
        """Elimina definitivamente una estructura y todo lo que la referencia."""
        self.structures.pop(structure_id, None)
        self.original_structures.pop(structure_id, None)
        self.structures_in_use.discard(structure_id)
        for conn in self.intermolecular.involving_structure(structure_id):
            self.intermolecular.remove(conn.kind, conn.id)
        for ann_id in [a.id for a in self.annotations.values() if a.belongs_to == structure_id]:
            del self.annotations[ann_id]
        for contact_id in [c.id for c in self.hydrophobic_contacts.values() if c.belongs_to == structure_id]:
            del self.hydrophobic_contacts[contact_id]
        logger.debug("Estructura %s purgada", structure_id)

    def element_limits(self) -> Iterable[Optional[Limits]]:
        """Cajas de todos los elementos visibles de la escena."""
        for structure in self.live_structures():
            yield structure.boundaries
        for annotation in self.annotations.values():
            if annotation.enabled:
                yield annotation.draw_limits
        for contact in self.hydrophobic_contacts.values():
            if contact.enabled:
                yield contact.compute_limits(self.options.line_width)
