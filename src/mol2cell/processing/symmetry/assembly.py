"""Unit-cell and supercell assemblies.

An assembly is a named list of 4x4 cartesian transforms that, applied to
the whole structure, produce its symmetry copies. This module builds two
of them from a structure's unit cell and its space-group operators:

- UNITCELL: one copy per distinct operator, each re-centred so that the
  copy of the structure's centroid falls in the same periodic cell as
  the centroid itself
- SUPERCELL: the UNITCELL copies repeated over the home cell and its 26
  neighbours (3x3x3 cells)

If the structure carries an NCS assembly, every crystallographic transform
is further composed with the identity and each NCS transform.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import numpy as np

from mol2cell.processing.symmetry.operators import OperatorCompiler, SymmetryOperator

if TYPE_CHECKING:
    from mol2cell.data.parsers.structure import Structure
    from mol2cell.processing.symmetry.unitcell import UnitCell


logger = logging.getLogger(__name__)


UNITCELL = "UNITCELL"
SUPERCELL = "SUPERCELL"
NCS = "NCS"

# Neighbour cell shifts of the supercell. The comment gives the usual
# crystallographic cell code where 5 means no shift along that axis.
SUPERCELL_SHIFTS: Tuple[Tuple[int, int, int], ...] = (
    (1, 0, 0),     # 655
    (0, 1, 0),     # 565
    (0, 0, 1),     # 556
    (-1, 0, 0),    # 455
    (0, -1, 0),    # 545
    (0, 0, -1),    # 554
    (1, 1, 0),     # 665
    (1, 0, 1),     # 656
    (0, 1, 1),     # 566
    (-1, -1, 0),   # 445
    (-1, 0, -1),   # 454
    (0, -1, -1),   # 544
    (1, -1, -1),   # 644
    (1, 1, -1),    # 664
    (1, -1, 1),    # 646
    (-1, 1, 1),    # 466
    (-1, -1, 1),   # 446
    (-1, 1, -1),   # 464
    (0, 1, -1),    # 564
    (0, -1, 1),    # 546
    (1, 0, -1),    # 654
    (-1, 0, 1),    # 456
    (1, -1, 0),    # 645
    (-1, 1, 0),    # 465
    (0, 0, 0),     # 555
    (1, 1, 1),     # 666
    (-1, -1, -1),  # 444
)


@dataclass
class AssemblyPart:
    """A list of transforms applied to the whole structure."""
    matrix_list: List[np.ndarray] = field(default_factory=list)

    @property
    def num_transforms(self) -> int:
        """Number of transforms in this part."""
        return len(self.matrix_list)


@dataclass
class Assembly:
    """A named set of symmetry transforms.

    Attributes:
        name: Assembly name (e.g. "UNITCELL")
        parts: Parts, each a list of 4x4 cartesian transforms
    """
    name: str
    parts: List[AssemblyPart] = field(default_factory=list)

    def add_part(self, matrix_list: Sequence[np.ndarray]) -> AssemblyPart:
        """Append a part built from a list of 4x4 matrices."""
        part = AssemblyPart(matrix_list=[np.asarray(m, dtype=np.float64) for m in matrix_list])
        self.parts.append(part)
        return part

    @property
    def num_transforms(self) -> int:
        """Total number of transforms over all parts."""
        return sum(part.num_transforms for part in self.parts)

    def get_matrix_list(self) -> List[np.ndarray]:
        """All transforms of all parts, in order."""
        return [m for part in self.parts for m in part.matrix_list]

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        """Apply every transform to an (N, 3) point set.

        Returns:
            Array of shape (num_transforms, N, 3)
        """
        points = np.asarray(points, dtype=np.float64)
        matrices = self.get_matrix_list()
        if not matrices:
            return np.zeros((0,) + points.shape, dtype=np.float64)
        stacked = np.stack(matrices)
        return np.einsum("kij,nj->kni", stacked[:, :3, :3], points) + stacked[:, None, :3, 3]


def recenter_operator(
    matrix: np.ndarray,
    structure_center_frac: np.ndarray,
    shift: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Re-centre a fractional operator onto the structure's periodic cell.

    The operator is applied to the structure centroid (fractional); the
    integer cell the image lands in is subtracted from the translation and
    the centroid's own cell (plus `shift`) is added back.

    Args:
        matrix: 4x4 fractional operator
        structure_center_frac: Fractional centroid of the structure
        shift: Optional integer cell offset

    Returns:
        New 4x4 fractional matrix
    """
    center = np.asarray(structure_center_frac, dtype=np.float64)
    center_cell = np.floor(center)

    recentered = np.array(matrix, dtype=np.float64)
    image_cell = np.floor(recentered[:3, :3] @ center + recentered[:3, 3])

    position = recentered[:3, 3] - image_cell + center_cell
    if shift is not None:
        position = position + np.asarray(shift, dtype=np.float64)
    recentered[:3, 3] = position
    return recentered


@dataclass
class UnitCellAssemblyConfig:
    """Configuration for unit-cell assembly building.

    Attributes:
        include_supercell: Also build the 3x3x3 SUPERCELL assembly
        apply_ncs: Compose with an existing NCS assembly
    """
    include_supercell: bool = True
    apply_ncs: bool = True


OperatorInput = Union[Mapping[str, SymmetryOperator], Iterable[Union[str, SymmetryOperator]]]


class UnitCellAssemblyBuilder:
    """Builds UNITCELL and SUPERCELL assemblies for a structure.

    Example usage:
        >>> builder = UnitCellAssemblyBuilder()
        >>> builder.build(structure, ["x,y,z", "-x,1/2+y,-z"])
        >>> structure.biomol_dict["UNITCELL"].num_transforms
        2
    """

    def __init__(
        self,
        config: Optional[UnitCellAssemblyConfig] = None,
        compiler: Optional[OperatorCompiler] = None,
    ):
        self.config = config or UnitCellAssemblyConfig()
        self.compiler = compiler or OperatorCompiler()

    def build(
        self,
        structure: "Structure",
        operators: OperatorInput,
    ) -> Optional[Tuple[Assembly, Optional[Assembly]]]:
        """Build and attach the assemblies.

        Args:
            structure: Finalized structure with a unit cell
            operators: Operator strings, compiled operators, or a mapping of
                canonical name to compiled operator

        Returns:
            (unitcell assembly, supercell assembly or None), or None when
            the structure has no unit cell, no operators or no coordinates
        """
        if structure.unitcell is None:
            logger.info("No unit cell, skipping unit cell assemblies")
            return None

        symops = self._compile(operators)
        if not symops:
            logger.warning("No symmetry operators, skipping unit cell assemblies")
            return None

        center = structure.center
        if center is None:
            logger.info("No atom coordinates, skipping unit cell assemblies")
            return None

        start = time.perf_counter()
        uc = structure.unitcell
        center_frac = uc.to_fractional(center)

        ncs_matrices = self._ncs_matrices(structure)

        unitcell = Assembly(UNITCELL)
        unitcell.add_part(self._compose_ncs(
            self.get_matrix_list(uc, symops, center_frac), ncs_matrices
        ))
        structure.biomol_dict[UNITCELL] = unitcell

        supercell = None
        if self.config.include_supercell:
            supercell_matrices: List[np.ndarray] = []
            for shift in SUPERCELL_SHIFTS:
                supercell_matrices.extend(
                    self.get_matrix_list(uc, symops, center_frac, shift)
                )
            supercell = Assembly(SUPERCELL)
            supercell.add_part(self._compose_ncs(supercell_matrices, ncs_matrices))
            structure.biomol_dict[SUPERCELL] = supercell
        else:
            structure.biomol_dict.pop(SUPERCELL, None)

        logger.debug(
            f"Built unit cell assemblies for {structure.name or structure.id}: "
            f"{unitcell.num_transforms} / "
            f"{supercell.num_transforms if supercell else 0} transforms "
            f"in {time.perf_counter() - start:.4f}s"
        )
        return unitcell, supercell

    @staticmethod
    def get_matrix_list(
        unitcell: "UnitCell",
        symops: Mapping[str, SymmetryOperator],
        structure_center_frac: np.ndarray,
        shift: Optional[Sequence[int]] = None,
    ) -> List[np.ndarray]:
        """Cartesian transforms for every operator, re-centred and shifted."""
        matrix_list = []
        for symop in symops.values():
            frac = recenter_operator(symop.matrix, structure_center_frac, shift)
            matrix_list.append(unitcell.frac_to_cart @ frac @ unitcell.cart_to_frac)
        return matrix_list

    def _compile(self, operators: OperatorInput) -> Dict[str, SymmetryOperator]:
        if isinstance(operators, Mapping):
            return dict(operators)

        symops: Dict[str, SymmetryOperator] = {}
        texts: List[str] = []
        for op in operators:
            if isinstance(op, SymmetryOperator):
                symops.setdefault(op.name, op)
            else:
                texts.append(op)
        for name, op in self.compiler.compile_all(texts).items():
            symops.setdefault(name, op)
        return symops

    def _ncs_matrices(self, structure: "Structure") -> Optional[List[np.ndarray]]:
        if not self.config.apply_ncs:
            return None
        ncs = structure.biomol_dict.get(NCS)
        if ncs is None or not ncs.parts:
            return None
        return [np.eye(4, dtype=np.float64)] + list(ncs.parts[0].matrix_list)

    @staticmethod
    def _compose_ncs(
        matrix_list: List[np.ndarray],
        ncs_matrices: Optional[List[np.ndarray]],
    ) -> List[np.ndarray]:
        if ncs_matrices is None:
            return matrix_list
        return [sm @ nm for sm in matrix_list for nm in ncs_matrices]


def build_unitcell_assembly(
    structure: "Structure",
    operators: OperatorInput,
    config: Optional[UnitCellAssemblyConfig] = None,
) -> Optional[Tuple[Assembly, Optional[Assembly]]]:
    """Build UNITCELL/SUPERCELL assemblies with a one-off builder."""
    return UnitCellAssemblyBuilder(config).build(structure, operators)
