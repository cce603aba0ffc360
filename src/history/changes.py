"""Unidades de cambio reversibles.

Cada cambio es un registro inmutable que guarda lo necesario para aplicarlo
y revertirlo (normalmente el valor viejo y el nuevo). La ejecución vive en
`history.interpreter`, que despacha según `kind`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from geometry.bonds import EdgeGeometry, Segment
from geometry.placement import Orientation
from geometry.points import Point
from molgraph.boundary import Limits
from molgraph.model import EdgeChangeCase, EdgeType
from scene.intermolecular import IntermolecularKind


class ChangeKind(str, Enum):
    MOVE_ATOM = "moveAtom"
    TOGGLE_STEREO = "toggleStereo"
    SET_EDGE_GEOMETRY = "setEdgeGeometry"
    SET_HYDROGEN_ORIENTATION = "setHydrogenOrientation"
    SET_LABEL_ORIENTATION = "setLabelOrientation"
    UPDATE_AROMATIC_EDGE = "updateAromaticEdge"
    RECOMPUTE_RING_CENTER = "recomputeRingCenter"
    SET_RING_SYSTEM_CENTER = "setRingSystemCenter"
    RECOMPUTE_DRAW_LIMITS = "recomputeDrawLimits"
    SET_STRUCTURE_BOUNDARIES = "setStructureBoundaries"
    SET_GLOBAL_LIMITS = "setGlobalLimits"
    SET_ATOM_ENABLED = "setAtomEnabled"
    SET_EDGE_ENABLED = "setEdgeEnabled"
    SET_RING_ENABLED = "setRingEnabled"
    SET_STRUCTURE_IN_USE = "setStructureInUse"
    SET_ATOM_COLOR = "setAtomColor"
    SET_EDGE_COLORS = "setEdgeColors"
    MOVE_SPLINE_CONTROL_POINT = "moveSplineControlPoint"
    RECOMPUTE_SPLINE_CURVE = "recomputeSplineCurve"
    SET_CONTROL_POINT_ENABLED = "setControlPointEnabled"
    SET_SPLINE_ENABLED = "setSplineEnabled"
    MOVE_ANNOTATION = "moveAnnotation"
    RECOMPUTE_ANNOTATION_LIMITS = "recomputeAnnotationLimits"
    SET_ANNOTATION_ENABLED = "setAnnotationEnabled"
    SET_INTERMOLECULAR_ENDPOINTS = "setIntermolecularEndpoints"
    SET_INTERMOLECULAR_ENABLED = "setIntermolecularEnabled"
    MOVE_STRUCTURE_CIRCLE = "moveStructureCircle"


# --- Estructura: átomos, enlaces y anillos ---------------------------------

@dataclass(frozen=True)
class MoveAtom:
    kind: ClassVar[ChangeKind] = ChangeKind.MOVE_ATOM
    structure_id: int
    atom_id: int
    old: Point
    new: Point


@dataclass(frozen=True)
class ToggleStereo:
    kind: ClassVar[ChangeKind] = ChangeKind.TOGGLE_STEREO
    structure_id: int
    edge_id: int
    old: EdgeType
    new: EdgeType


@dataclass(frozen=True)
class SetEdgeGeometry:
    """Nueva geometría de un enlace y cómo redibujarlo en cada sentido."""
    kind: ClassVar[ChangeKind] = ChangeKind.SET_EDGE_GEOMETRY
    structure_id: int
    edge_id: int
    old: Optional[EdgeGeometry]
    new: Optional[EdgeGeometry]
    old_hidden: bool
    new_hidden: bool
    forward: EdgeChangeCase
    backward: EdgeChangeCase


@dataclass(frozen=True)
class SetHydrogenOrientation:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_HYDROGEN_ORIENTATION
    structure_id: int
    atom_id: int
    old: Optional[Orientation]
    new: Optional[Orientation]


@dataclass(frozen=True)
class SetLabelOrientation:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_LABEL_ORIENTATION
    structure_id: int
    atom_id: int
    old: Optional[Orientation]
    new: Optional[Orientation]


@dataclass(frozen=True)
class UpdateAromaticEdge:
    """Línea interior de un enlace aromático; `forward` y `backward` difieren."""
    kind: ClassVar[ChangeKind] = ChangeKind.UPDATE_AROMATIC_EDGE
    structure_id: int
    ring_id: int
    edge_id: int
    old: Optional[Segment]
    new: Optional[Segment]
    forward: EdgeChangeCase
    backward: EdgeChangeCase


@dataclass(frozen=True)
class RecomputeRingCenter:
    kind: ClassVar[ChangeKind] = ChangeKind.RECOMPUTE_RING_CENTER
    structure_id: int
    ring_id: int
    old: Point
    new: Point


@dataclass(frozen=True)
class SetRingSystemCenter:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_RING_SYSTEM_CENTER
    structure_id: int
    ring_system_id: int
    old: Point
    new: Point


@dataclass(frozen=True)
class RecomputeDrawLimits:
    """Recalcula la caja de dibujo de un átomo (igual en ambos sentidos)."""
    kind: ClassVar[ChangeKind] = ChangeKind.RECOMPUTE_DRAW_LIMITS
    structure_id: int
    atom_id: int


@dataclass(frozen=True)
class SetStructureBoundaries:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_STRUCTURE_BOUNDARIES
    structure_id: int
    old: Optional[Limits]
    new: Optional[Limits]


@dataclass(frozen=True)
class SetGlobalLimits:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_GLOBAL_LIMITS
    old: Optional[Limits]
    new: Optional[Limits]


@dataclass(frozen=True)
class SetAtomEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_ATOM_ENABLED
    structure_id: int
    atom_id: int
    enabled: bool


@dataclass(frozen=True)
class SetEdgeEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_EDGE_ENABLED
    structure_id: int
    edge_id: int
    enabled: bool


@dataclass(frozen=True)
class SetRingEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_RING_ENABLED
    structure_id: int
    ring_id: int
    enabled: bool


@dataclass(frozen=True)
class SetStructureInUse:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_STRUCTURE_IN_USE
    structure_id: int
    in_use: bool


@dataclass(frozen=True)
class SetAtomColor:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_ATOM_COLOR
    structure_id: int
    atom_id: int
    old: Optional[str]
    new: Optional[str]


@dataclass(frozen=True)
class SetEdgeColors:
    """Colores de los dos extremos de un enlace: `(from, to)`."""
    kind: ClassVar[ChangeKind] = ChangeKind.SET_EDGE_COLORS
    structure_id: int
    edge_id: int
    old: Tuple[Optional[str], Optional[str]]
    new: Tuple[Optional[str], Optional[str]]


# --- Elementos de escena ----------------------------------------------------

@dataclass(frozen=True)
class MoveSplineControlPoint:
    kind: ClassVar[ChangeKind] = ChangeKind.MOVE_SPLINE_CONTROL_POINT
    contact_id: int
    index: int
    old: Point
    new: Point


@dataclass(frozen=True)
class RecomputeSplineCurve:
    kind: ClassVar[ChangeKind] = ChangeKind.RECOMPUTE_SPLINE_CURVE
    contact_id: int


@dataclass(frozen=True)
class SetControlPointEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_CONTROL_POINT_ENABLED
    contact_id: int
    index: int
    enabled: bool


@dataclass(frozen=True)
class SetSplineEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_SPLINE_ENABLED
    contact_id: int
    enabled: bool


@dataclass(frozen=True)
class MoveAnnotation:
    kind: ClassVar[ChangeKind] = ChangeKind.MOVE_ANNOTATION
    annotation_id: int
    old: Point
    new: Point


@dataclass(frozen=True)
class RecomputeAnnotationLimits:
    kind: ClassVar[ChangeKind] = ChangeKind.RECOMPUTE_ANNOTATION_LIMITS
    annotation_id: int


@dataclass(frozen=True)
class SetAnnotationEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_ANNOTATION_ENABLED
    annotation_id: int
    enabled: bool


@dataclass(frozen=True)
class SetIntermolecularEndpoints:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_INTERMOLECULAR_ENDPOINTS
    connection_kind: IntermolecularKind
    connection_id: int
    old: Optional[Segment]
    new: Optional[Segment]


@dataclass(frozen=True)
class SetIntermolecularEnabled:
    kind: ClassVar[ChangeKind] = ChangeKind.SET_INTERMOLECULAR_ENABLED
    connection_kind: IntermolecularKind
    connection_id: int
    enabled: bool


@dataclass(frozen=True)
class MoveStructureCircle:
    kind: ClassVar[ChangeKind] = ChangeKind.MOVE_STRUCTURE_CIRCLE
    structure_id: int
    old_center: Optional[Point]
    new_center: Point
    old_radius: Optional[float]
    new_radius: float


Change = Union[
    MoveAtom,
    ToggleStereo,
    SetEdgeGeometry,
    SetHydrogenOrientation,
    SetLabelOrientation,
    UpdateAromaticEdge,
    RecomputeRingCenter,
    SetRingSystemCenter,
    RecomputeDrawLimits,
    SetStructureBoundaries,
    SetGlobalLimits,
    SetAtomEnabled,
    SetEdgeEnabled,
    SetRingEnabled,
    SetStructureInUse,
    SetAtomColor,
    SetEdgeColors,
    MoveSplineControlPoint,
    RecomputeSplineCurve,
    SetControlPointEnabled,
    SetSplineEnabled,
    MoveAnnotation,
    RecomputeAnnotationLimits,
    SetAnnotationEnabled,
    SetIntermolecularEndpoints,
    SetIntermolecularEnabled,
    MoveStructureCircle,
]
