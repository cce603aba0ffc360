"""Pruebas unitarias para el historial de cambios."""

import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

import pytest
from PyQt6.QtGui import QUndoCommand

from history.changes import MoveAtom, SetAtomColor, SetAtomEnabled, ToggleStereo
from history.errors import (
    HistoryError,
    NothingToRedoError,
    NothingToUndoError,
    UnknownChangeKindError,
)
from history.interpreter import ChangeInterpreter
from history.log import HistoryLog
from history.step import COLOR_CHANGE, SCENE_CHANGE, HistoryStep
from molgraph.model import Atom, Edge, EdgeType, Structure
from scene.scene import SceneData


def _scene():
    scene = SceneData()
    structure = Structure(1)
    structure.add_atom(Atom(1, "C", (0.0, 0.0)))
    structure.add_atom(Atom(2, "O", (20.0, 0.0)))
    structure.add_edge(Edge(1, 1, 2, EdgeType.STEREO_FRONT))
    scene.register_structure(structure)
    scene.structures_in_use.add(1)
    return scene


def _move(old, new):
    return HistoryStep(changes=[MoveAtom(1, 1, old, new)], actions={SCENE_CHANGE})


class HistoryLogTest(unittest.TestCase):
    """Casos de prueba para HistoryLog."""

    def setUp(self):
        self.scene = _scene()
        self.interpreter = ChangeInterpreter(self.scene)
        self.log = HistoryLog(self.interpreter)

    def _atom(self):
        return self.scene.structures[1].atoms[1]

    def test_undo_on_fresh_log_raises(self):
        """Verifica que deshacer sin pasos lanza NothingToUndoError."""
        with self.assertRaises(NothingToUndoError):
            self.log.undo()
        self.assertEqual(self.log.index(), 0)

    def test_redo_at_tip_raises(self):
        """Verifica que rehacer en la punta lanza NothingToRedoError."""
        self.log.commit(_move((0.0, 0.0), (5.0, 0.0)), already_applied=False)
        with self.assertRaises(NothingToRedoError):
            self.log.redo()

    def test_empty_step_is_rejected(self):
        """Verifica que un paso sin cambios no se registra."""
        with self.assertRaises(HistoryError):
            self.log.commit(HistoryStep())
        self.assertEqual(self.log.count(), 0)

    def test_undo_redo_restore_coordinates(self):
        """Verifica que deshacer y rehacer alternan las coordenadas."""
        self.log.commit(_move((0.0, 0.0), (5.0, 0.0)), already_applied=False)
        self.assertEqual(self._atom().coordinates, (5.0, 0.0))
        self.log.undo()
        self.assertEqual(self._atom().coordinates, (0.0, 0.0))
        self.assertEqual(self._atom().draw_limits.x_max, 2.0)
        self.log.redo()
        self.assertEqual(self._atom().coordinates, (5.0, 0.0))

    def test_undo_runs_in_reverse_order(self):
        """Verifica que dos cambios sobre el mismo átomo se revierten al revés."""
        step = HistoryStep(changes=[
            MoveAtom(1, 1, (0.0, 0.0), (5.0, 0.0)),
            MoveAtom(1, 1, (5.0, 0.0), (9.0, 0.0)),
        ])
        self.log.commit(step, already_applied=False)
        self.assertEqual(self._atom().coordinates, (9.0, 0.0))
        self.log.undo()
        self.assertEqual(self._atom().coordinates, (0.0, 0.0))

    def test_commit_truncates_redo_tail(self):
        """Verifica que confirmar tras deshacer descarta la cola rehacible."""
        first = _move((0.0, 0.0), (5.0, 0.0))
        second = _move((5.0, 0.0), (9.0, 0.0))
        self.log.commit(first, already_applied=False)
        self.log.commit(second, already_applied=False)
        self.log.undo()
        discarded = self.log.commit(_move((5.0, 0.0), (7.0, 0.0)), already_applied=False)
        self.assertEqual(discarded, [second])
        self.assertEqual(self.log.count(), 2)
        self.assertEqual(self.log.index(), 2)
        self.assertFalse(self.log.can_redo())

    def test_signals(self):
        """Verifica las señales de índice, acciones y descarte."""
        indexes, actions, discarded = [], [], []
        self.log.indexChanged.connect(indexes.append)
        self.log.actionsApplied.connect(actions.append)
        self.log.stepsDiscarded.connect(discarded.append)

        self.log.commit(_move((0.0, 0.0), (5.0, 0.0)), already_applied=False)
        self.log.undo()
        self.log.commit(HistoryStep(changes=[SetAtomColor(1, 1, None, "red")], actions={COLOR_CHANGE}),
                        already_applied=False)

        self.assertEqual(indexes, [1, 0, 1])
        self.assertEqual(actions, [{SCENE_CHANGE}, {SCENE_CHANGE}, {COLOR_CHANGE}])
        self.assertEqual(len(discarded), 1)

    def test_first_step_is_protected_when_scene_cannot_be_cleared(self):
        """Verifica que el paso de carga no se deshace si así se configura."""
        log = HistoryLog(self.interpreter, can_clear_scene=False)
        log.commit(_move((0.0, 0.0), (5.0, 0.0)), already_applied=False)
        self.assertFalse(log.can_undo())
        with self.assertRaises(NothingToUndoError):
            log.undo()

    def test_steps_live_on_the_undo_stack(self):
        """Verifica que los pasos se registran como comandos de QUndoStack."""
        step = _move((0.0, 0.0), (5.0, 0.0))
        self.log.commit(step, already_applied=False)
        self.assertIsInstance(step, QUndoCommand)
        self.assertIs(self.log.step(0), step)
        self.assertEqual(self.log.undo_stack.count(), 1)
        self.assertEqual(self.log.undo_stack.text(0), SCENE_CHANGE)

    def test_applied_step_is_not_applied_twice(self):
        """Verifica que un paso ya aplicado no se repite al registrarlo."""
        self.log.commit(_move((0.0, 0.0), (5.0, 0.0)))
        self.assertEqual(self._atom().coordinates, (0.0, 0.0))
        self.log.undo()
        self.assertEqual(self._atom().coordinates, (0.0, 0.0))
        self.log.redo()
        self.assertEqual(self._atom().coordinates, (5.0, 0.0))

    def test_can_undo_signal_with_protected_first_step(self):
        log = HistoryLog(self.interpreter, can_clear_scene=False)
        values = []
        log.canUndoChanged.connect(values.append)
        log.commit(_move((0.0, 0.0), (5.0, 0.0)), already_applied=False)
        self.assertEqual(values, [])
        log.commit(_move((5.0, 0.0), (9.0, 0.0)), already_applied=False)
        log.undo()
        self.assertEqual(values, [True, False])
        self.assertEqual(self._atom().coordinates, (5.0, 0.0))

    def test_clear(self):
        self.log.commit(_move((0.0, 0.0), (5.0, 0.0)), already_applied=False)
        self.log.clear()
        self.assertEqual((self.log.index(), self.log.count()), (0, 0))


class ChangeInterpreterTest(unittest.TestCase):
    """Casos de prueba para ChangeInterpreter."""

    def setUp(self):
        self.scene = _scene()
        self.interpreter = ChangeInterpreter(self.scene)

    def test_toggle_stereo_round_trip(self):
        """Verifica que invertir una cuña y revertir restaura el tipo."""
        change = ToggleStereo(1, 1, EdgeType.STEREO_FRONT, EdgeType.STEREO_BACK)
        edge = self.scene.structures[1].edges[1]
        self.interpreter.apply(change)
        self.assertEqual(edge.type, EdgeType.STEREO_BACK)
        self.interpreter.revert(change)
        self.assertEqual(edge.type, EdgeType.STEREO_FRONT)

    def test_enabled_flag_reverts_to_opposite(self):
        change = SetAtomEnabled(1, 2, False)
        self.interpreter.apply(change)
        self.assertFalse(self.scene.structures[1].atoms[2].enabled)
        self.interpreter.revert(change)
        self.assertTrue(self.scene.structures[1].atoms[2].enabled)


def test_unknown_change_kind_is_rejected():
    """Verifica que un cambio sin manejador lanza UnknownChangeKindError."""
    interpreter = ChangeInterpreter(_scene())
    with pytest.raises(UnknownChangeKindError):
        interpreter.apply(object())


if __name__ == "__main__":
    unittest.main()
