"""Pytest configuration and fixtures for mol2cell tests."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Generator

import numpy as np
import pytest

from mol2cell.data.parsers.structure import Structure
from mol2cell.processing.symmetry.unitcell import UnitCell


# =============================================================================
# Test Data Fixtures
# =============================================================================


SAMPLE_MOL2 = """\
# sample ligand in a P 21 21 21 cell
@<TRIPOS>MOLECULE
TEST
 4 3 1 0 0
SMALL
USER_CHARGES

@<TRIPOS>ATOM
      1 C1          1.0000    2.0000    3.0000 C.3       1  LIG1        0.1000
      2 O1          2.4000    2.0000    3.0000 O.2       1  LIG1       -0.4000
      3 H1          0.6000    3.0000    3.0000 H         1  LIG1        0.1500
      4 N1          0.6000    1.2000    4.0000 N.am      1  LIG1        0.1500
@<TRIPOS>BOND
     1     1     2    2
     2     1     3    1
     3     1     4   am
@<TRIPOS>CRYSIN
   12.1360    9.8350   11.1850   90.0000   90.0000   90.0000    19     1
"""

MULTI_MODEL_MOL2 = """\
@<TRIPOS>MOLECULE
WATER
 3 2
SMALL
NO_CHARGES

@<TRIPOS>ATOM
      1 O1          0.0000    0.0000    0.0000 O.3       1  HOH
      2 H1          0.9570    0.0000    0.0000 H         1  HOH
      3 H2         -0.2400    0.9270    0.0000 H         1  HOH
@<TRIPOS>BOND
     1     1     2    1
     2     1     3    1
@<TRIPOS>MOLECULE
WATER
 3 2
SMALL
NO_CHARGES

@<TRIPOS>ATOM
      1 O1          0.1000    0.2000    0.3000 O.3       1  HOH
      2 H1          1.0570    0.2000    0.3000 H         1  HOH
      3 H2         -0.1400    1.1270    0.3000 H         1  HOH
@<TRIPOS>BOND
     1     1     2    1
     2     1     3    1
"""


@pytest.fixture
def sample_mol2() -> str:
    """A single-model MOL2 document with a CRYSIN cell record."""
    return SAMPLE_MOL2


@pytest.fixture
def multi_model_mol2() -> str:
    """A two-model MOL2 document without a cell."""
    return MULTI_MODEL_MOL2


@pytest.fixture
def sample_envelope() -> str:
    """A CCDC-style JSON envelope around the sample MOL2 document."""
    return json.dumps({
        "mol2": SAMPLE_MOL2,
        "spacegroupOperators": "x,y,z;-x,-y,1/2+z",
        "cellDimensions": "10.0 10.0 10.0 90 90 90",
    })


@pytest.fixture
def p212121_operators():
    """Operators of space group P 21 21 21."""
    return ["x,y,z", "1/2-x,-y,1/2+z", "-x,1/2+y,1/2-z", "1/2+x,1/2-y,-z"]


@pytest.fixture
def sample_structure() -> Structure:
    """A small finalized structure inside an orthorhombic cell."""
    structure = Structure(name="sample")
    coords = np.array([
        [1.0, 2.0, 3.0],
        [2.4, 2.0, 3.0],
        [0.6, 3.0, 3.0],
        [0.6, 1.2, 4.0],
    ])
    for i, (x, y, z) in enumerate(coords):
        structure.atom_store.add_atom(x, y, z, element="C", atomname=f"C{i + 1}", serial=i + 1)
    structure.bond_store.add_bond(0, 1)
    structure.bond_store.add_bond(0, 2)
    structure.unitcell = UnitCell(12.136, 9.835, 11.185, 90.0, 90.0, 90.0, space_group="P 21 21 21")
    structure.finalize_atoms()
    structure.finalize_bonds()
    return structure


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_mol2_file(temp_dir: Path, sample_mol2: str) -> Path:
    """The sample MOL2 document written to disk."""
    path = temp_dir / "sample.mol2"
    path.write_text(sample_mol2)
    return path


@pytest.fixture
def sample_envelope_file(temp_dir: Path, sample_envelope: str) -> Path:
    """The sample envelope written to disk."""
    path = temp_dir / "sample.json"
    path.write_text(sample_envelope)
    return path
