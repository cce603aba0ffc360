"""Historial de deshacer/rehacer de la escena.

`HistoryLog` envuelve un `QUndoStack` de `HistoryStep` y añade lo que la
escena necesita encima de él: pasos ya aplicados al registrarse, primer
paso protegido, errores explícitos al deshacer o rehacer sin pasos y
avisos de las acciones aplicadas y de los pasos descartados.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtGui import QUndoStack

from history.errors import HistoryError, NothingToRedoError, NothingToUndoError
from history.interpreter import ChangeInterpreter
from history.step import HistoryStep

logger = logging.getLogger(__name__)


class HistoryLog(QObject):
    """Secuencia de pasos con un cursor entre aplicados y deshechos.

    Args:
        interpreter: Ejecuta los cambios al deshacer y rehacer.
        can_clear_scene: Si es `False` el primer paso (la carga inicial de
            la escena) no puede deshacerse.
        parent: QObject padre opcional.
    """

    indexChanged = pyqtSignal(int)
    canUndoChanged = pyqtSignal(bool)
    canRedoChanged = pyqtSignal(bool)
    # Conjunto de etiquetas de acción del paso aplicado o revertido.
    actionsApplied = pyqtSignal(object)
    # Pasos deshechos descartados al confirmar uno nuevo.
    stepsDiscarded = pyqtSignal(object)

    def __init__(
        self,
        interpreter: ChangeInterpreter,
        can_clear_scene: bool = True,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._interpreter = interpreter
        self._can_clear_scene = can_clear_scene
        self.undo_stack = QUndoStack(self)
        self._can_undo = False
        self._can_redo = False
        self.undo_stack.indexChanged.connect(self.indexChanged)
        self.undo_stack.indexChanged.connect(self._on_index_changed)

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def index(self) -> int:
        return self.undo_stack.index()

    def count(self) -> int:
        return self.undo_stack.count()

    def step(self, idx: int) -> HistoryStep:
        return self.undo_stack.command(idx)

    def can_undo(self) -> bool:
        return self.undo_stack.canUndo() and self.index() > (0 if self._can_clear_scene else 1)

    def can_redo(self) -> bool:
        return self.undo_stack.canRedo()

    # ------------------------------------------------------------------
    # Mutación
    # ------------------------------------------------------------------
    def commit(self, step: HistoryStep, already_applied: bool = True) -> List[HistoryStep]:
        """Añade un paso al final y descarta los pasos deshechos.

        Args:
            step: Paso a registrar; no puede estar vacío.
            already_applied: Si es `False` se aplican sus cambios ahora.

        Returns:
            Lista de pasos descartados (la cola rehacible anterior).

        Raises:
            HistoryError: Si el paso no contiene cambios.
        """
        if not step.has_changes():
            raise HistoryError("No se registran pasos vacíos")
        discarded = [self.step(i) for i in range(self.index(), self.count())]
        step.attach(self._interpreter, already_applied)
        self.undo_stack.push(step)
        logger.debug("Paso %d registrado (%d cambios)", self.index(), len(step.changes))
        if discarded:
            logger.debug("Descartados %d pasos deshechos", len(discarded))
            self.stepsDiscarded.emit(discarded)
        self.actionsApplied.emit(set(step.actions))
        return discarded

    push = commit

    def undo(self) -> HistoryStep:
        """Revierte el último paso aplicado, cambio a cambio en orden inverso.

        Raises:
            NothingToUndoError: Si no hay paso que deshacer; en ese caso no
                se toca ningún cambio.
        """
        if not self.can_undo():
            raise NothingToUndoError("No hay pasos que deshacer")
        step = self.step(self.index() - 1)
        self.undo_stack.undo()
        logger.debug("Deshecho paso %d", self.index() + 1)
        self.actionsApplied.emit(set(step.actions))
        return step

    def redo(self) -> HistoryStep:
        """Vuelve a aplicar el siguiente paso deshecho en su orden original.

        Raises:
            NothingToRedoError: Si no hay pasos deshechos pendientes.
        """
        if not self.can_redo():
            raise NothingToRedoError("No hay pasos que rehacer")
        step = self.step(self.index())
        self.undo_stack.redo()
        logger.debug("Rehecho paso %d", self.index())
        self.actionsApplied.emit(set(step.actions))
        return step

    def clear(self) -> None:
        self.undo_stack.clear()

    # ------------------------------------------------------------------
    # Señales
    # ------------------------------------------------------------------
    def _on_index_changed(self, _index: int) -> None:
        can_undo, can_redo = self.can_undo(), self.can_redo()
        if can_undo != self._can_undo:
            self._can_undo = can_undo
            self.canUndoChanged.emit(can_undo)
        if can_redo != self._can_redo:
            self._can_redo = can_redo
            self.canRedoChanged.emit(can_redo)
