from __future__ import annotations

from typing import Any, Dict, List, Mapping

try:
    from rdkit import Chem
except Exception:  # pragma: no cover - optional dependency at runtime
    Chem = None


def _require_rdkit():
    if Chem is None:
        raise RuntimeError("RDKit no disponible")


_BOND_TYPES = {
    "double": "DOUBLE",
    "triple": "TRIPLE",
}


def structure_record_to_rdkit_with_map(record: Mapping[str, Any]):
    """Construye un `RWMol` a partir de un registro de estructura de escena.

    Returns:
        Tupla `(mol, id_map)` con `id_map[atom_id] = índice RDKit`.
    """
    _require_rdkit()
    rw = Chem.RWMol()
    id_map: Dict[int, int] = {}
    for atom_d in record.get("atoms", []):
        rd_atom = Chem.Atom(atom_d.get("element", "C"))
        rd_atom.SetFormalCharge(int(atom_d.get("charge", 0)))
        rd_atom.SetNoImplicit(False)
        id_map[int(atom_d["id"])] = rw.AddAtom(rd_atom)

    for bond_d in record.get("bonds", []):
        a1 = id_map.get(int(bond_d["from"]))
        a2 = id_map.get(int(bond_d["to"]))
        if a1 is None or a2 is None or rw.GetBondBetweenAtoms(a1, a2) is not None:
            continue
        if bond_d.get("aromatic"):
            rw.GetAtomWithIdx(a1).SetIsAromatic(True)
            rw.GetAtomWithIdx(a2).SetIsAromatic(True)
            bond_type = Chem.BondType.AROMATIC
        else:
            bond_type = getattr(Chem.BondType, _BOND_TYPES.get(bond_d.get("type"), "SINGLE"))
        rw.AddBond(a1, a2, bond_type)
        if bond_type == Chem.BondType.AROMATIC:
            rw.GetBondBetweenAtoms(a1, a2).SetIsAromatic(True)
    mol = rw.GetMol()
    mol.UpdatePropertyCache(strict=False)
    return mol, id_map


def perceive_rings(record: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Detecta los anillos (SSSR) de un registro de estructura sin anillos.

    Args:
        record: Registro de estructura con `atoms` y `bonds`.

    Returns:
        Lista de registros de anillo `{id, atoms, aromatic}`; un anillo es
        aromático si todos sus enlaces lo son.

    Raises:
        RuntimeError: Si RDKit no está instalado.
    """
    mol, id_map = structure_record_to_rdkit_with_map(record)
    idx_to_id = {idx: atom_id for atom_id, idx in id_map.items()}
    rings: List[Dict[str, Any]] = []
    for ring_id, atom_ring in enumerate(Chem.GetSymmSSSR(mol), start=1):
        ring_atoms = list(atom_ring)
        count = len(ring_atoms)
        bonds = [
            mol.GetBondBetweenAtoms(ring_atoms[i], ring_atoms[(i + 1) % count])
            for i in range(count)
        ]
        aromatic = all(bond is not None and bond.GetIsAromatic() for bond in bonds)
        rings.append({
            "id": ring_id,
            "atoms": [idx_to_id[idx] for idx in ring_atoms],
            "aromatic": aromatic,
        })
    return rings
