"""Cajas envolventes y seguimiento incremental de sus extremos.

`Limits` es una caja inmutable; `BoundaryUpdateInfo` registra cómo cambian
los cuatro extremos de una caja (de una estructura o de la escena) mientras
se procesan los cambios de una acción del usuario. Cuando un extremo puede
haber encogido no se intenta adivinar el nuevo valor: se marca para que un
recálculo completo lo resuelva después.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

from geometry.points import Point

PROPS = ("x_min", "x_max", "y_min", "y_max")


@dataclass(frozen=True)
class Limits:
    """Caja envolvente alineada con los ejes."""
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @classmethod
    def around(cls, center: Point, half_width: float, half_height: float) -> "Limits":
        return cls(
            center[0] - half_width,
            center[0] + half_width,
            center[1] - half_height,
            center[1] + half_height,
        )

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> Optional["Limits"]:
        pts = list(points)
        if not pts:
            return None
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return cls(min(xs), max(xs), min(ys), max(ys))

    def get(self, prop: str) -> float:
        return getattr(self, prop)

    def union(self, other: Optional["Limits"]) -> "Limits":
        if other is None:
            return self
        return Limits(
            min(self.x_min, other.x_min),
            max(self.x_max, other.x_max),
            min(self.y_min, other.y_min),
            max(self.y_max, other.y_max),
        )

    def expanded(self, pad: float) -> "Limits":
        return Limits(self.x_min - pad, self.x_max + pad, self.y_min - pad, self.y_max + pad)

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def mid(self) -> Point:
        return ((self.x_min + self.x_max) / 2.0, (self.y_min + self.y_max) / 2.0)


def rescan_limits(limits: Iterable[Optional[Limits]]) -> Optional[Limits]:
    """Calcula la caja que envuelve todas las cajas dadas (ignora `None`)."""
    result: Optional[Limits] = None
    for lim in limits:
        if lim is None:
            continue
        result = lim if result is None else result.union(lim)
    return result


class ChangeDir(Enum):
    """Estado de un extremo durante una actualización incremental."""
    UNCHANGED = 0
    # El elemento que definía el extremo se alejó de él: hay que recalcular.
    SHRUNK_MAYBE = -1
    # El extremo creció y su valor almacenado ya es el correcto.
    CONFIRMED = 1


@dataclass
class Extreme:
    value: Optional[float]
    change_dir: ChangeDir = ChangeDir.UNCHANGED


class BoundaryUpdateInfo:
    """Registro de cambios de los cuatro extremos de una caja.

    Args:
        limits: Caja de partida (`None` si todavía no hay elementos).
    """

    def __init__(self, limits: Optional[Limits] = None) -> None:
        self.initial = limits
        self.extremes: Dict[str, Extreme] = {
            prop: Extreme(None if limits is None else limits.get(prop)) for prop in PROPS
        }

    @staticmethod
    def largest_is_lim(prop: str) -> bool:
        return prop.endswith("max")

    def update_maxes(self, prop: str, old_val: Optional[float], new_val: float, largest_is_lim: bool) -> None:
        """Actualiza un extremo a partir del valor viejo y nuevo de un elemento.

        Si el valor nuevo supera estrictamente al almacenado se toma
        directamente. Si el elemento definía el extremo y se retira hacia
        dentro, el extremo queda marcado como `SHRUNK_MAYBE`.
        """
        if not self._update_maxes_lim(prop, new_val, largest_is_lim):
            self._update_maxes_neg(prop, old_val, new_val, largest_is_lim)

    def _update_maxes_lim(self, prop: str, new_val: float, largest_is_lim: bool) -> bool:
        extreme = self.extremes[prop]
        if extreme.value is None or (
            new_val > extreme.value if largest_is_lim else new_val < extreme.value
        ):
            extreme.value = new_val
            extreme.change_dir = ChangeDir.CONFIRMED
            return True
        return False

    def _update_maxes_neg(self, prop: str, old_val: Optional[float], new_val: float, largest_is_lim: bool) -> None:
        extreme = self.extremes[prop]
        if old_val is None or extreme.change_dir != ChangeDir.UNCHANGED:
            return
        if old_val != extreme.value:
            return
        less_extreme = new_val < old_val if largest_is_lim else new_val > old_val
        if less_extreme:
            extreme.change_dir = ChangeDir.SHRUNK_MAYBE

    def update_maxes_by_limits(self, old: Optional[Limits], new: Optional[Limits]) -> None:
        """Aplica `update_maxes` a los cuatro extremos de un elemento."""
        if new is None:
            self.mark_removed(old)
            return
        for prop in PROPS:
            self.update_maxes(
                prop,
                None if old is None else old.get(prop),
                new.get(prop),
                self.largest_is_lim(prop),
            )

    def set_maxes_add(self, limits: Optional[Limits]) -> None:
        """Amplía la caja con un elemento recién añadido."""
        if limits is None:
            return
        for prop in PROPS:
            self._update_maxes_lim(prop, limits.get(prop), self.largest_is_lim(prop))

    def mark_removed(self, limits: Optional[Limits]) -> None:
        """Marca los extremos que definía un elemento eliminado."""
        if limits is None:
            return
        for prop in PROPS:
            extreme = self.extremes[prop]
            if extreme.value is not None and limits.get(prop) == extreme.value:
                extreme.change_dir = ChangeDir.SHRUNK_MAYBE

    def needs_rescan(self) -> bool:
        return any(e.change_dir == ChangeDir.SHRUNK_MAYBE for e in self.extremes.values())

    def changed(self) -> bool:
        return any(e.change_dir != ChangeDir.UNCHANGED for e in self.extremes.values())

    def to_limits(self) -> Optional[Limits]:
        """Caja según los valores registrados (válida si no hay que recalcular)."""
        values = [self.extremes[prop].value for prop in PROPS]
        if any(v is None for v in values):
            return None
        return Limits(*values)

    def resolve(self, elements: Iterable[Optional[Limits]]) -> Optional[Limits]:
        """Devuelve la caja final, recalculando desde cero si hace falta.

        Args:
            elements: Cajas de todos los elementos activos; solo se recorren
                cuando algún extremo quedó marcado como `SHRUNK_MAYBE`.
        """
        if self.needs_rescan():
            return rescan_limits(elements)
        return self.to_limits()


__all__ = ["BoundaryUpdateInfo", "ChangeDir", "Limits", "PROPS", "rescan_limits"]
