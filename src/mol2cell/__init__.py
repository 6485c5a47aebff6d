"""mol2cell: MOL2 structure parsing with crystallographic unit-cell assemblies.

This package provides tools for:
- Streaming parsing of Tripos MOL2 files and CCDC JSON-wrapped MOL2 documents
- Column stores for atoms, bonds and trajectory frames
- Compiling space-group operator strings into affine transforms
- Building UNITCELL and SUPERCELL assemblies from a unit cell
"""

from mol2cell.config import Config
from mol2cell.data.parsers.mol2_parser import (
    CCDCMol2Parser,
    Mol2Parser,
    get_parser,
    parse_file,
)
from mol2cell.data.parsers.structure import Structure

__version__ = "0.1.0"
__all__ = [
    "Config",
    "Mol2Parser",
    "CCDCMol2Parser",
    "Structure",
    "get_parser",
    "parse_file",
    "__version__",
]
