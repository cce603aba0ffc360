"""Opciones de configuración del motor de escena."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict

from molgraph.model import DrawMetrics


class InteractionMode(str, Enum):
    MOVEMENT = "movement"
    ROTATION = "rotation"
    BOND_MIRROR = "bondMirror"
    LINE_MIRROR = "lineMirror"
    REMOVAL = "removal"
    SELECTION = "selection"

    @property
    def is_mirror(self) -> bool:
        return self in (InteractionMode.BOND_MIRROR, InteractionMode.LINE_MIRROR)


class MoveFreedomLevel(str, Enum):
    FREE = "free"
    RINGS = "rings"
    STRUCTURES = "structures"


@dataclass
class DrawerOptions:
    """Opciones de control de la propagación y el historial."""

    # Modo de interacción activo; los modos espejo afectan a toda la estructura.
    interaction_mode: InteractionMode = InteractionMode.MOVEMENT
    # Con `structures` las estructuras se mueven enteras.
    move_freedom_level: MoveFreedomLevel = MoveFreedomLevel.FREE
    # Tolerancia absoluta para considerar iguales dos coordenadas.
    coordinate_tolerance: float = 1e-6
    # Grosor de línea de los splines hidrofóbicos (margen de su caja).
    line_width: float = 2.0
    # Margen entre el círculo de una estructura y su caja de átomos.
    structure_circle_padding: float = 5.0
    # Si el primer paso (carga inicial) puede deshacerse.
    history_can_clear_scene: bool = True
    metrics: DrawMetrics = field(default_factory=DrawMetrics)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DrawerOptions":
        """Crea opciones desde un diccionario ignorando claves desconocidas."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        if "interaction_mode" in values:
            values["interaction_mode"] = InteractionMode(values["interaction_mode"])
        if "move_freedom_level" in values:
            values["move_freedom_level"] = MoveFreedomLevel(values["move_freedom_level"])
        if isinstance(values.get("metrics"), dict):
            values["metrics"] = DrawMetrics(**values["metrics"])
        return cls(**values)
