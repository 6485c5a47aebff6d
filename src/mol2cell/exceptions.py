"""Exceptions raised by mol2cell."""


class Mol2CellError(Exception):
    """Base class for mol2cell errors."""


class ParseError(Mol2CellError, ValueError):
    """Input cannot be turned into a structure at all (e.g. a broken envelope)."""


class AtomIndexError(Mol2CellError, IndexError):
    """A bond references an atom index that is not in the atom store."""


class OperatorSyntaxError(Mol2CellError, ValueError):
    """A symmetry operator string is not a comma-separated triplet."""
