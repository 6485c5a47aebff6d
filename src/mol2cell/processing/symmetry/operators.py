"""Compilation of space-group operator strings into affine transforms.

A space-group operator is written as a comma-separated triplet of axis
expressions, e.g. "1/2+X,-Y,1/2-Z". Each component is one row of the
transform: axis letters fill the 3x3 rotation block with +1/-1 and
digits build the fractional translation of that row.

Compiled operators are memoized by their canonical string so that the
same operator listed twice (or in different case/spacing) is compiled once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from mol2cell.exceptions import OperatorSyntaxError


logger = logging.getLogger(__name__)


AXIS_COLUMNS = {"X": 0, "Y": 1, "Z": 2}
DIGITS = "123456789"

# Tolerance for floating point comparisons
ROTATION_TOLERANCE = 1e-6
TRANSLATION_TOLERANCE = 1e-6


@dataclass(frozen=True)
class SymmetryOperator:
    """A compiled symmetry operator.

    The transformation acts on fractional coordinates: x' = R @ x + t.

    Attributes:
        name: Canonical operator string (e.g. "1/2+X,-Y,1/2-Z")
        matrix: 4x4 homogeneous transform (read-only)
    """
    name: str
    matrix: np.ndarray

    @property
    def rotation(self) -> np.ndarray:
        """3x3 signed-permutation block."""
        return self.matrix[:3, :3]

    @property
    def translation(self) -> np.ndarray:
        """Fractional translation vector."""
        return self.matrix[:3, 3]

    @property
    def is_identity(self) -> bool:
        """Check if this is the identity operation."""
        return (
            np.allclose(self.rotation, np.eye(3), atol=ROTATION_TOLERANCE) and
            np.allclose(self.translation, np.zeros(3), atol=TRANSLATION_TOLERANCE)
        )

    def transform_point(self, point: np.ndarray) -> np.ndarray:
        """Apply the operator to a single fractional coordinate."""
        return self.rotation @ np.asarray(point, dtype=np.float64) + self.translation

    def to_matrix_4x4(self) -> np.ndarray:
        """Get a writable copy of the 4x4 matrix."""
        return self.matrix.copy()


def canonicalize_operator(text: str) -> str:
    """Canonical form of an operator: upper case, no whitespace."""
    return ",".join("".join(part.split()).upper() for part in text.split(","))


def compile_operator(text: str) -> SymmetryOperator:
    """Compile a single operator string into a SymmetryOperator.

    Characters are scanned left to right per component. '-' sets the
    negate flag and '+' clears it; '/' marks that the next digit is a
    denominator. An axis letter writes -1 or +1 into the rotation block at
    (row, axis). A digit either sets the row translation to its unsigned
    value or, after '/', divides it; the negate flag only applies to axis
    letters. Unknown characters are logged and skipped.

    Args:
        text: Operator string such as "1/2+X,-Y,1/2-Z"

    Returns:
        The compiled operator

    Raises:
        OperatorSyntaxError: If the operator does not have three components
    """
    name = canonicalize_operator(text)
    components = name.split(",")
    if len(components) != 3:
        raise OperatorSyntaxError(
            f"Operator '{text}' has {len(components)} components, expected 3"
        )

    matrix = np.zeros((4, 4), dtype=np.float64)
    matrix[3, 3] = 1.0

    for row, component in enumerate(components):
        negate = False
        denominator = False

        for char in component:
            if char == "-":
                negate = True
            elif char == "+":
                negate = False
            elif char == "/":
                denominator = True
            elif char in AXIS_COLUMNS:
                matrix[row, AXIS_COLUMNS[char]] = -1.0 if negate else 1.0
            elif char in DIGITS:
                value = int(char)
                if denominator:
                    matrix[row, 3] /= value
                else:
                    matrix[row, 3] = value
            else:
                logger.warning(f"Unknown token '{char}' in operator '{text}'")

    matrix.setflags(write=False)
    return SymmetryOperator(name=name, matrix=matrix)


def parse_operator_list(text: Optional[str]) -> List[str]:
    """Split a ';'-separated operator list, e.g. "x,y,z;-x,-y,1/2+z"."""
    if not text:
        return []
    return [op.strip() for op in text.split(";") if op.strip()]


class OperatorCompiler:
    """Memoizing operator compiler.

    Example usage:
        >>> compiler = OperatorCompiler()
        >>> ops = compiler.compile_all(["x,y,z", "-x,1/2+y,-z"])
    """

    def __init__(self):
        self._cache: Dict[str, SymmetryOperator] = {}

    def compile(self, text: str) -> SymmetryOperator:
        """Compile an operator, reusing a previous result for the same canonical form."""
        key = canonicalize_operator(text)
        operator = self._cache.get(key)
        if operator is None:
            operator = compile_operator(key)
            self._cache[key] = operator
        return operator

    def compile_all(self, operators: Iterable[str]) -> Dict[str, SymmetryOperator]:
        """Compile a list of operators into an ordered dict of distinct operators.

        Duplicates (by canonical form) keep the position of their first
        occurrence. Operators that fail to compile are logged and dropped.
        """
        compiled: Dict[str, SymmetryOperator] = {}
        for text in operators:
            try:
                operator = self.compile(text)
            except OperatorSyntaxError as e:
                logger.warning(str(e))
                continue
            compiled.setdefault(operator.name, operator)
        return compiled

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        """Drop all memoized operators."""
        self._cache.clear()
