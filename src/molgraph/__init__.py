"""API pública del grafo de estructuras de Ligmap.

Reexpone las clases del modelo y el seguimiento de cajas envolventes.
"""

from molgraph.boundary import BoundaryUpdateInfo, ChangeDir, Limits
from molgraph.model import (
    Atom,
    DrawMetrics,
    Edge,
    EdgeChangeCase,
    EdgeType,
    Ring,
    RingSystem,
    Structure,
    StructureCircle,
)

__all__ = [
    "Atom",
    "BoundaryUpdateInfo",
    "ChangeDir",
    "DrawMetrics",
    "Edge",
    "EdgeChangeCase",
    "EdgeType",
    "Limits",
    "Ring",
    "RingSystem",
    "Structure",
    "StructureCircle",
]
