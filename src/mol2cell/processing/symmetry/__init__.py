"""Crystallographic symmetry for parsed structures.

Components:
- Operators: compile "1/2+X,-Y,1/2-Z" style strings into 4x4 transforms
- Unit cell: cell parameters and fractional <-> cartesian transforms
- Assembly: UNITCELL and SUPERCELL transform sets, optionally with NCS
"""

from mol2cell.processing.symmetry.operators import (
    SymmetryOperator,
    OperatorCompiler,
    canonicalize_operator,
    compile_operator,
    parse_operator_list,
)
from mol2cell.processing.symmetry.unitcell import UnitCell
from mol2cell.processing.symmetry.assembly import (
    Assembly,
    AssemblyPart,
    UnitCellAssemblyConfig,
    UnitCellAssemblyBuilder,
    SUPERCELL_SHIFTS,
    build_unitcell_assembly,
    recenter_operator,
)

__all__ = [
    # Operators
    "SymmetryOperator",
    "OperatorCompiler",
    "canonicalize_operator",
    "compile_operator",
    "parse_operator_list",
    # Unit cell
    "UnitCell",
    # Assembly
    "Assembly",
    "AssemblyPart",
    "UnitCellAssemblyConfig",
    "UnitCellAssemblyBuilder",
    "SUPERCELL_SHIFTS",
    "build_unitcell_assembly",
    "recenter_operator",
]
