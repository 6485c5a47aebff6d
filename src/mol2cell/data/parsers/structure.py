"""Core structure data classes.

This module provides growable column stores for atoms and bonds and the
Structure aggregate that owns them together with trajectory frames, the
unit cell and the named assemblies.

Atoms and bonds are held structure-of-arrays: each attribute is a numpy
column and an atom or bond is addressed by its integer row index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import numpy as np

from mol2cell.exceptions import AtomIndexError
from mol2cell.processing.symmetry.unitcell import UnitCell

if TYPE_CHECKING:
    from mol2cell.processing.symmetry.assembly import Assembly


# Sentinel stored in integer columns for values that failed to parse
MISSING_INT = np.iinfo(np.int64).min

# Smallest number of rows added when a store grows
MIN_GROWTH = 64


@dataclass(frozen=True)
class ParseWarning:
    """A recoverable problem found while scanning.

    Attributes:
        line_no: 1-based line number in the input
        record_type: Record section the line belonged to
        message: Human-readable description
    """
    line_no: int
    record_type: str
    message: str


class ColumnStore:
    """Growable structure-of-arrays store.

    Subclasses declare FIELDS as a mapping of column name to numpy dtype.
    Rows are appended with amortized doubling growth; columns are exposed
    as views trimmed to the current count.
    """

    FIELDS: Dict[str, Any] = {}

    def __init__(self, capacity: int = 0):
        self.count = 0
        self._columns: Dict[str, np.ndarray] = {
            name: self._empty(dtype, max(int(capacity), 0))
            for name, dtype in self.FIELDS.items()
        }

    @staticmethod
    def _empty(dtype: Any, size: int) -> np.ndarray:
        if dtype is object:
            column = np.empty(size, dtype=object)
            column[:] = ""
            return column
        return np.zeros(size, dtype=dtype)

    @property
    def capacity(self) -> int:
        """Number of allocated rows."""
        if not self._columns:
            return 0
        return len(next(iter(self._columns.values())))

    def resize(self, capacity: int) -> None:
        """Reallocate all columns to hold exactly `capacity` rows (never below count)."""
        capacity = max(int(capacity), self.count)
        for name, column in self._columns.items():
            resized = self._empty(self.FIELDS[name], capacity)
            resized[:self.count] = column[:self.count]
            self._columns[name] = resized

    def grow_if_full(self) -> None:
        """Ensure there is room for one more row."""
        if self.count >= self.capacity:
            self.resize(max(self.capacity * 2, self.count + MIN_GROWTH))

    def set_field(self, name: str, index: int, value: Any) -> None:
        """Overwrite a single value by row index."""
        if not 0 <= index < self.count:
            raise IndexError(f"Row {index} out of range for store of {self.count}")
        self._columns[name][index] = value

    def column(self, name: str) -> np.ndarray:
        """View of a column trimmed to the current count."""
        return self._columns[name][:self.count]

    def finalize(self) -> None:
        """Release unused capacity."""
        self.resize(self.count)

    def _append(self, values: Dict[str, Any]) -> int:
        self.grow_if_full()
        index = self.count
        for name, value in values.items():
            self._columns[name][index] = value
        self.count += 1
        return index

    def __len__(self) -> int:
        return self.count


class AtomStore(ColumnStore):
    """Column store for atoms."""

    FIELDS = {
        "x": np.float64,
        "y": np.float64,
        "z": np.float64,
        "element": object,
        "atomname": object,
        "serial": np.int64,
        "resno": np.int64,
        "resname": object,
        "partial_charge": np.float32,
        "model_index": np.int32,
    }

    def add_atom(
        self,
        x: float,
        y: float,
        z: float,
        element: str = "",
        atomname: str = "",
        serial: int = 0,
        resno: int = 1,
        resname: str = "",
        partial_charge: float = 0.0,
        model_index: int = 0,
    ) -> int:
        """Append an atom and return its row index."""
        return self._append({
            "x": x,
            "y": y,
            "z": z,
            "element": element,
            "atomname": atomname,
            "serial": serial,
            "resno": resno,
            "resname": resname,
            "partial_charge": partial_charge,
            "model_index": model_index,
        })

    @property
    def coords(self) -> np.ndarray:
        """Atom coordinates as an (N, 3) array."""
        return np.stack(
            [self.column("x"), self.column("y"), self.column("z")], axis=1
        )


class BondStore(ColumnStore):
    """Column store for bonds, bound to the atom store its indices refer to."""

    FIELDS = {
        "atom_index1": np.int64,
        "atom_index2": np.int64,
        "bond_order": np.int8,
    }

    def __init__(self, atom_store: AtomStore, capacity: int = 0):
        super().__init__(capacity)
        self.atom_store = atom_store

    def add_bond(self, atom_index1: int, atom_index2: int, bond_order: int = 1) -> int:
        """Append a bond and return its row index.

        Raises:
            AtomIndexError: If either index is not a row of the atom store.
                The store is left unchanged.
        """
        atom_count = self.atom_store.count
        for index in (atom_index1, atom_index2):
            if not 0 <= index < atom_count:
                raise AtomIndexError(
                    f"Atom index {index} out of range (atom count {atom_count})"
                )
        return self._append({
            "atom_index1": atom_index1,
            "atom_index2": atom_index2,
            "bond_order": bond_order,
        })


@dataclass(frozen=True)
class Atom:
    """Read-only view of one atom row.

    Attributes:
        index: Row index in the atom store
        coords: 3D coordinates in Angstroms
        element: Element symbol (subtype stripped, e.g. 'C' for 'C.ar')
        atomname: Atom name (e.g. 'C1')
        serial: Atom serial number from the file
        resno: Residue number
        resname: Residue name
        partial_charge: Partial charge
        model_index: Model the atom belongs to
    """
    index: int
    coords: np.ndarray
    element: str
    atomname: str
    serial: int
    resno: int
    resname: str
    partial_charge: float
    model_index: int

    @property
    def is_hydrogen(self) -> bool:
        """Check if this is a hydrogen atom."""
        return self.element.upper() == "H"

    def distance_to(self, other: "Atom") -> float:
        """Calculate Euclidean distance to another atom."""
        return float(np.linalg.norm(self.coords - other.coords))


@dataclass(frozen=True)
class Bond:
    """Read-only view of one bond row.

    Attributes:
        index: Row index in the bond store
        atom_index1: First atom row index
        atom_index2: Second atom row index
        bond_order: 0 (not connected) to 3
    """
    index: int
    atom_index1: int
    atom_index2: int
    bond_order: int


@dataclass
class Structure:
    """A parsed structure.

    Attributes:
        name: Name of the input (file name or caller-provided label)
        title: Title from the first MOLECULE record
        id: Identifier from the first MOLECULE record
        atom_store: Atom columns
        bond_store: Bond columns referring to atom_store rows
        frames: Trajectory frames, each a flat (3 * atom count) float32 array
        unitcell: Unit cell, when a complete cell record was read
        biomol_dict: Assemblies by name (e.g. "UNITCELL", "SUPERCELL", "NCS")
        num_models: Number of MOLECULE records seen
        extra_data: Informational header fields
        warnings: Recoverable problems found while parsing
    """
    name: str = ""
    title: str = ""
    id: str = ""
    atom_store: AtomStore = field(default_factory=AtomStore)
    bond_store: Optional[BondStore] = None
    frames: List[np.ndarray] = field(default_factory=list)
    unitcell: Optional[UnitCell] = None
    biomol_dict: Dict[str, "Assembly"] = field(default_factory=dict)
    num_models: int = 0
    extra_data: Dict[str, Any] = field(default_factory=dict)
    warnings: List[ParseWarning] = field(default_factory=list)

    def __post_init__(self):
        if self.bond_store is None:
            self.bond_store = BondStore(self.atom_store)

    @property
    def atom_count(self) -> int:
        """Number of atoms."""
        return self.atom_store.count

    @property
    def bond_count(self) -> int:
        """Number of bonds."""
        return self.bond_store.count

    @property
    def frame_count(self) -> int:
        """Number of trajectory frames."""
        return len(self.frames)

    @property
    def atom_coords(self) -> np.ndarray:
        """Atom coordinates as an (N, 3) array."""
        return self.atom_store.coords

    @property
    def center(self) -> Optional[np.ndarray]:
        """Cartesian centroid of all atoms with finite coordinates."""
        coords = self.atom_coords
        coords = coords[np.all(np.isfinite(coords), axis=1)]
        if len(coords) == 0:
            return None
        return coords.mean(axis=0)

    def get_atom(self, index: int) -> Atom:
        """Get a view of the atom at a row index."""
        if not 0 <= index < self.atom_count:
            raise IndexError(f"Atom {index} out of range for {self.atom_count} atoms")
        store = self.atom_store
        return Atom(
            index=index,
            coords=np.array([
                store.column("x")[index],
                store.column("y")[index],
                store.column("z")[index],
            ]),
            element=str(store.column("element")[index]),
            atomname=str(store.column("atomname")[index]),
            serial=int(store.column("serial")[index]),
            resno=int(store.column("resno")[index]),
            resname=str(store.column("resname")[index]),
            partial_charge=float(store.column("partial_charge")[index]),
            model_index=int(store.column("model_index")[index]),
        )

    def get_bond(self, index: int) -> Bond:
        """Get a view of the bond at a row index."""
        if not 0 <= index < self.bond_count:
            raise IndexError(f"Bond {index} out of range for {self.bond_count} bonds")
        store = self.bond_store
        return Bond(
            index=index,
            atom_index1=int(store.column("atom_index1")[index]),
            atom_index2=int(store.column("atom_index2")[index]),
            bond_order=int(store.column("bond_order")[index]),
        )

    def bond_pairs(self) -> List[Tuple[int, int]]:
        """All bonds as (atom_index1, atom_index2) pairs."""
        return list(zip(
            self.bond_store.column("atom_index1").tolist(),
            self.bond_store.column("atom_index2").tolist(),
        ))

    def finalize_atoms(self) -> None:
        """Trim the atom store to its final size."""
        self.atom_store.finalize()

    def finalize_bonds(self) -> None:
        """Trim the bond store to its final size."""
        self.bond_store.finalize()
