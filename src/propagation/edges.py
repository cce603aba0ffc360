"""Clasificación de la actualización de dibujo de un enlace."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from geometry.bonds import EdgeGeometry
from molgraph.model import EdgeChangeCase


@dataclass(frozen=True)
class EdgeCases:
    """Caso a aplicar ahora, al rehacer y al deshacer."""
    immediate: EdgeChangeCase
    forward: EdgeChangeCase
    backward: EdgeChangeCase


MOVE_CASES = EdgeCases(EdgeChangeCase.MOVE, EdgeChangeCase.MOVE, EdgeChangeCase.MOVE)


def classify(drawn: bool, hidden: bool, target: Optional[EdgeGeometry]) -> EdgeChangeCase:
    """Decide cómo pasar del estado de dibujo actual a la geometría destino.

    Args:
        drawn: Si el enlace está dibujado ahora.
        hidden: Si el enlace se dibujó alguna vez y está oculto.
        target: Geometría destino (`None` si no debe verse).
    """
    if drawn:
        return EdgeChangeCase.MOVE if target is not None else EdgeChangeCase.REMOVE
    if target is None:
        return EdgeChangeCase.PASS
    return EdgeChangeCase.REDRAW if hidden else EdgeChangeCase.DRAW


def classify_transition(
    old: Optional[EdgeGeometry],
    old_hidden: bool,
    new: Optional[EdgeGeometry],
    new_hidden: bool,
) -> EdgeCases:
    """Casos inmediato, de avance y de retroceso entre dos estados."""
    forward = classify(old is not None, old_hidden, new)
    backward = classify(new is not None, new_hidden, old)
    return EdgeCases(immediate=forward, forward=forward, backward=backward)
