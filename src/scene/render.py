"""Interfaz con la capa de dibujo.

Los cambios del historial notifican cada mutación a un `Renderer`. La capa
gráfica real hereda de esta clase y redefine los métodos que necesite; la
implementación base no hace nada y sirve para trabajar sin interfaz.
"""

from __future__ import annotations

from typing import Optional


class Renderer:
    """Receptor de notificaciones de dibujo (todas opcionales)."""

    def atom_moved(self, structure_id: int, atom) -> None:
        pass

    def atom_visibility_changed(self, structure_id: int, atom) -> None:
        pass

    def atom_color_changed(self, structure_id: int, atom) -> None:
        pass

    def hydrogens_changed(self, structure_id: int, atom) -> None:
        pass

    def label_changed(self, structure_id: int, atom) -> None:
        pass

    def edge_updated(self, structure_id: int, edge, case) -> None:
        pass

    def edge_type_changed(self, structure_id: int, edge) -> None:
        pass

    def edge_visibility_changed(self, structure_id: int, edge) -> None:
        pass

    def edge_colors_changed(self, structure_id: int, edge) -> None:
        pass

    def aromatic_line_updated(self, structure_id: int, ring, edge_id: int, case) -> None:
        pass

    def ring_changed(self, structure_id: int, ring) -> None:
        pass

    def structure_visibility_changed(self, structure) -> None:
        pass

    def structure_circle_changed(self, structure) -> None:
        pass

    def spline_updated(self, contact) -> None:
        pass

    def annotation_updated(self, annotation) -> None:
        pass

    def intermolecular_updated(self, connection) -> None:
        pass

    def limits_changed(self, structure_id: Optional[int], limits) -> None:
        pass
