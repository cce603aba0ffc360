"""Paso del historial: lote ordenado de cambios de una acción del usuario."""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from PyQt6.QtGui import QUndoCommand

from history.changes import Change

SCENE_CHANGE = "sceneChange"
COLOR_CHANGE = "colorChange"


class HistoryStep(QUndoCommand):
    """Cambios de una acción y las etiquetas de acción que los describen.

    `redo` aplica los cambios en orden y `undo` los revierte en orden
    inverso. Los pasos se registran normalmente ya aplicados, así que el
    primer `redo` que hace `QUndoStack.push` se omite.

    Las etiquetas solo sirven para notificar a terceros qué tipo de cambio
    ocurrió; no intervienen al aplicar o revertir el paso.
    """

    def __init__(
        self,
        changes: Optional[Iterable[Change]] = None,
        actions: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__("Scene step")
        self.changes: List[Change] = list(changes or [])
        self.actions: Set[str] = set(actions or [])
        # Estructuras creadas por este paso (se purgan si el paso se descarta).
        self.added_structure_ids: List[int] = []
        self._interpreter = None
        self._skip_first_redo = True
        self._first_redo = True

    def attach(self, interpreter, already_applied: bool = True) -> None:
        """Asigna el intérprete que ejecutará el paso al deshacer y rehacer."""
        self._interpreter = interpreter
        self._skip_first_redo = already_applied
        self._first_redo = True
        self.setText(", ".join(sorted(self.actions)) or "Scene step")

    def add_change(self, change: Change) -> None:
        self.changes.append(change)

    def add_changes(self, changes: Iterable[Change]) -> None:
        self.changes.extend(changes)

    def add_action(self, action: str) -> None:
        self.actions.add(action)

    def has_changes(self) -> bool:
        return bool(self.changes)

    def redo(self) -> None:
        if self._skip_first_redo and self._first_redo:
            self._first_redo = False
            return
        for change in self.changes:
            self._interpreter.apply(change)

    def undo(self) -> None:
        for change in reversed(self.changes):
            self._interpreter.revert(change)
