"""Deducción de sistemas de anillos fusionados.

Dos anillos pertenecen al mismo sistema cuando sus enlaces caen en el mismo
componente biconexo del grafo; los anillos espiro (que solo comparten un
átomo de articulación) quedan en sistemas distintos.
"""

from __future__ import annotations

from typing import Dict, List, Set

from molgraph.model import RingSystem, Structure


def biconnected_edge_components(structure: Structure) -> Dict[int, int]:
    """Asigna a cada enlace activo el índice de su componente biconexo.

    Usa el algoritmo de Hopcroft-Tarjan con una pila explícita para no
    depender del límite de recursión en estructuras grandes.
    """
    disc: Dict[int, int] = {}
    low: Dict[int, int] = {}
    component_of: Dict[int, int] = {}
    edge_stack: List[int] = []
    counter = 0
    component = 0

    for root in structure.atoms:
        if root in disc or not structure.atoms[root].enabled:
            continue
        disc[root] = low[root] = counter
        counter += 1
        # (átomo, enlace por el que se llegó, iterador de vecinos)
        stack = [(root, None, iter(structure.neighbors(root)))]
        while stack:
            atom_id, parent_edge, it = stack[-1]
            advanced = False
            for nb_id, edge_id in it:
                if edge_id == parent_edge:
                    continue
                if nb_id not in disc:
                    edge_stack.append(edge_id)
                    disc[nb_id] = low[nb_id] = counter
                    counter += 1
                    stack.append((nb_id, edge_id, iter(structure.neighbors(nb_id))))
                    advanced = True
                    break
                if disc[nb_id] < disc[atom_id]:
                    edge_stack.append(edge_id)
                    low[atom_id] = min(low[atom_id], disc[nb_id])
            if advanced:
                continue
            stack.pop()
            if not stack:
                continue
            parent_id = stack[-1][0]
            low[parent_id] = min(low[parent_id], low[atom_id])
            if low[atom_id] >= disc[parent_id]:
                while edge_stack:
                    popped = edge_stack.pop()
                    component_of[popped] = component
                    if popped == parent_edge:
                        break
                component += 1
    return component_of


def deduce_ring_systems(structure: Structure) -> Dict[int, RingSystem]:
    """Agrupa los anillos de la estructura en sistemas de anillos.

    Returns:
        Diccionario `id -> RingSystem` con ids consecutivos desde 1.
    """
    component_of = biconnected_edge_components(structure)
    groups: Dict[int, Set[int]] = {}
    for ring in structure.rings.values():
        components = {component_of[eid] for eid in ring.edge_ids if eid in component_of}
        if not components:
            continue
        groups.setdefault(min(components), set()).add(ring.id)

    systems: Dict[int, RingSystem] = {}
    for idx, key in enumerate(sorted(groups, key=lambda k: min(groups[k])), start=1):
        systems[idx] = RingSystem(id=idx, ring_ids=groups[key])
    return systems
