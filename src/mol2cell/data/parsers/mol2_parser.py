"""MOL2 file parsers.

This module parses Tripos MOL2 documents (http://paulbourke.net/dataformats/mol2/)
in a single streaming pass:
- @<TRIPOS>MOLECULE header (title, atom count)
- @<TRIPOS>ATOM table (coordinates, names, elements, residues, charges)
- @<TRIPOS>BOND table (atom pairs and bond orders)
- @<TRIPOS>CRYSIN cell record (cell parameters, space group)

Two format variants share the same record scanner:
- Mol2Parser: plain MOL2 text; symmetry operators come from the space
  group named in the CRYSIN record
- CCDCMol2Parser: a JSON envelope holding the MOL2 text, the symmetry
  operators and the cell dimensions

Once scanning is done the unit cell is set up and the UNITCELL and
SUPERCELL assemblies are built.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import (
    AsyncIterable,
    Callable,
    Dict,
    IO,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Union,
)

import numpy as np
from pydantic import BaseModel, Field, ValidationError

from mol2cell.config import Config, ParserConfig
from mol2cell.constants.spacegroups import SpaceGroupOperatorTable, lookup_space_group
from mol2cell.data.parsers.structure import MISSING_INT, ParseWarning, Structure
from mol2cell.exceptions import AtomIndexError, ParseError
from mol2cell.processing.symmetry.assembly import UnitCellAssemblyBuilder
from mol2cell.processing.symmetry.operators import OperatorCompiler, parse_operator_list
from mol2cell.processing.symmetry.unitcell import UnitCell
from mol2cell.storage.streaming import (
    AsyncChunkedTextSource,
    ChunkedTextSource,
    FileLineSource,
    LineSource,
    StringLineSource,
    open_line_source,
)


logger = logging.getLogger(__name__)


class RecordType(Enum):
    """Record sections of a MOL2 document."""
    NONE = "NONE"
    MOLECULE = "MOLECULE"
    ATOM = "ATOM"
    BOND = "BOND"
    CRYSIN = "CRYSIN"


RECORD_MARKERS: Dict[str, RecordType] = {
    "@<TRIPOS>MOLECULE": RecordType.MOLECULE,
    "@<TRIPOS>ATOM": RecordType.ATOM,
    "@<TRIPOS>BOND": RecordType.BOND,
    "@<TRIPOS>CRYSIN": RecordType.CRYSIN,
}

# Valid Tripos records this parser does not read
IGNORED_RECORDS = {
    "ALT_TYPE", "ANCHOR_ATOM", "ASSOCIATED_ANNOTATION", "CENTER_OF_MASS",
    "CENTROID", "COMMENT", "DATA_FILE", "DICT", "EXTENSION_POINT", "FF_PBC",
    "FFCON_ANGLE", "FFCON_DIST", "FFCON_MULTI", "FFCON_RANGE", "FFCON_TORSION",
    "LINE", "LSPLANE", "NORMAL", "QSAR_ALIGN_RULE", "RING_CLOSURE",
    "ROTATABLE_BOND", "SEARCH_DIST", "SEARCH_OPTIONS", "SET", "SUBSTRUCTURE",
    "U_FEAT", "UNITY_ATOM_ATTR", "UNITY_BOND_ATTR",
}

BOND_TYPES: Dict[str, int] = {
    "1": 1,
    "2": 2,
    "3": 3,
    "am": 1,  # amide
    "ar": 1,  # aromatic
    "du": 1,  # dummy
    "un": 1,  # unknown
    "nc": 0,  # not connected
}

# Largest atom count accepted from a MOLECULE header
MAX_ATOM_COUNT = 100_000_000

INT64_MIN = int(MISSING_INT)
INT64_MAX = int(np.iinfo(np.int64).max)

# MOLECULE header lines after the atom-count line
MOLECULE_INFO_FIELDS = ("mol_type", "charge_type", "status_bits", "mol_comment")

PostProcessor = Callable[[Structure], None]
Source = Union[str, Path, IO[str], LineSource]


def _parse_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return math.nan


def _parse_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        real = _parse_float(value)
        if not math.isfinite(real) or real != int(real):
            return MISSING_INT
        number = int(real)
    if not INT64_MIN < number <= INT64_MAX:
        return MISSING_INT
    return number


@dataclass
class CellRecord:
    """Cell parameters and space group read from a CRYSIN record."""
    values: List[float]
    space_group: Optional[str] = None


@dataclass
class ScanState:
    """Scratch state carried across lines and chunks by the scanner.

    Attributes:
        record_type: Section the next data line belongs to
        line_no: Number of lines seen so far
        molecule_line_no: Data lines seen since the last MOLECULE marker
        model_index: Current model, -1 before the first MOLECULE marker
        model_atom_index_start: Atom-store row of the current model's first atom
        num_atoms: Atom count declared by the current MOLECULE header
        reference_atom_count: Atom count of the first model (frame size)
        current_frame: Frame receiving trajectory coordinates
        current_coord: Next atom slot in current_frame
        do_frames: Atoms go to frames only (trajectory models after the first)
        cell: Last CRYSIN record
    """
    record_type: RecordType = RecordType.NONE
    line_no: int = 0
    molecule_line_no: int = 0
    model_index: int = -1
    model_atom_index_start: int = 0
    num_atoms: int = 0
    reference_atom_count: Optional[int] = None
    current_frame: Optional[np.ndarray] = None
    current_coord: int = 0
    do_frames: bool = False
    cell: Optional[CellRecord] = None


class RecordScanner:
    """Single-pass MOL2 line scanner filling a Structure.

    Lines may be handed over in chunks of any size; all scratch state lives
    in `state` between calls.
    """

    def __init__(self, structure: Structure, config: Optional[ParserConfig] = None):
        self.structure = structure
        self.config = config or ParserConfig()
        self.state = ScanState()

    def reserve(self, byte_length: int) -> None:
        """Size the atom store from the input length."""
        capacity = round(byte_length / self.config.bytes_per_atom_line)
        if capacity > self.structure.atom_store.capacity:
            self.structure.atom_store.resize(capacity)

    def scan(self, source: LineSource) -> None:
        """Scan every chunk of a line source."""
        for lines in source.chunks():
            self.scan_lines(lines)

    async def scan_async(self, source: AsyncChunkedTextSource) -> None:
        """Scan an async line source, one chunk at a time."""
        async for lines in source.chunks():
            self.scan_lines(lines)

    def scan_lines(self, lines: Iterable[str]) -> None:
        """Scan one chunk of lines."""
        state = self.state
        for raw in lines:
            state.line_no += 1
            line = raw.strip()

            if not line or line[0] == "#":
                continue

            if line[0] == "@":
                self._start_record(line)
            elif state.record_type is RecordType.MOLECULE:
                self._molecule_line(line)
            elif state.record_type is RecordType.ATOM:
                self._atom_line(line)
            elif state.record_type is RecordType.BOND:
                self._bond_line(line)
            elif state.record_type is RecordType.CRYSIN:
                self._crysin_line(line)

    def finish(self) -> Optional[CellRecord]:
        """Close the scan and return the cell record, if any."""
        self.structure.num_models = max(self.state.model_index + 1, 0)
        return self.state.cell

    def _warn(self, message: str) -> None:
        state = self.state
        logger.warning(f"Line {state.line_no}: {message}")
        self.structure.warnings.append(ParseWarning(
            line_no=state.line_no,
            record_type=state.record_type.value,
            message=message,
        ))

    def _start_record(self, line: str) -> None:
        state = self.state
        marker = line.split()[0].upper()
        record_type = RECORD_MARKERS.get(marker)

        if record_type is None:
            state.record_type = RecordType.NONE
            keyword = marker[len("@<TRIPOS>"):] if marker.startswith("@<TRIPOS>") else ""
            if keyword in IGNORED_RECORDS:
                logger.debug(f"Line {state.line_no}: skipping {marker} record")
            else:
                self._warn(f"Unknown record marker '{line}'")
            return

        state.record_type = record_type

        if record_type is RecordType.MOLECULE:
            state.molecule_line_no = 0
            state.model_index += 1
        elif record_type is RecordType.ATOM:
            self._start_atoms()

    def _start_atoms(self) -> None:
        state = self.state
        config = self.config

        if state.model_index < 0:
            self._warn("ATOM record before any MOLECULE record")
            state.model_index = 0

        state.model_atom_index_start = self.structure.atom_store.count

        if not config.as_trajectory:
            return
        if config.first_model_only and state.model_index > 0:
            return

        if state.reference_atom_count is None:
            state.reference_atom_count = state.num_atoms
        elif state.num_atoms != state.reference_atom_count:
            self._warn(
                f"Model {state.model_index} declares {state.num_atoms} atoms, "
                f"frames hold {state.reference_atom_count}"
            )

        state.current_coord = 0
        state.current_frame = np.zeros(state.reference_atom_count * 3, dtype=np.float32)
        self.structure.frames.append(state.current_frame)

        if state.model_index > 0:
            state.do_frames = True

    def _molecule_line(self, line: str) -> None:
        state = self.state
        structure = self.structure
        line_no = state.molecule_line_no

        if line_no == 0:
            if state.model_index == 0:
                structure.title = line
                structure.id = line
        elif line_no == 1:
            # num_atoms [num_bonds [num_subst [num_feat [num_sets]]]]
            num_atoms = _parse_int(line.split()[0])
            if num_atoms == MISSING_INT or not 0 <= num_atoms <= MAX_ATOM_COUNT:
                self._warn(f"Invalid atom count '{line}'")
                num_atoms = 0
            state.num_atoms = num_atoms
        elif line_no - 2 < len(MOLECULE_INFO_FIELDS) and state.model_index == 0:
            structure.extra_data[MOLECULE_INFO_FIELDS[line_no - 2]] = line

        state.molecule_line_no += 1

    def _atom_line(self, line: str) -> None:
        state = self.state
        config = self.config

        if config.first_model_only and state.model_index > 0:
            return

        ls = line.split()
        if len(ls) < 6:
            self._warn(f"Atom record has {len(ls)} fields, expected at least 6")
            return

        x = _parse_float(ls[2])
        y = _parse_float(ls[3])
        z = _parse_float(ls[4])

        if config.as_trajectory:
            frame = state.current_frame
            j = state.current_coord * 3
            if frame is not None and j + 3 <= len(frame):
                frame[j:j + 3] = (x, y, z)
            elif frame is not None:
                self._warn(f"Atom {state.current_coord + 1} exceeds frame size")
            state.current_coord += 1

            if state.do_frames:
                return

        self.structure.atom_store.add_atom(
            x=x,
            y=y,
            z=z,
            element=ls[5].split(".")[0],
            atomname=ls[1],
            serial=_parse_int(ls[0]),
            resno=_parse_int(ls[6]) if len(ls) > 6 else 1,
            resname=ls[7] if len(ls) > 7 else "",
            partial_charge=_parse_float(ls[8]) if len(ls) > 8 else 0.0,
            model_index=state.model_index,
        )

    def _bond_line(self, line: str) -> None:
        state = self.state
        config = self.config

        if config.first_model_only and state.model_index > 0:
            return
        if config.as_trajectory and state.model_index > 0:
            return

        ls = line.split()
        if len(ls) < 4:
            self._warn(f"Bond record has {len(ls)} fields, expected at least 4")
            return

        # ls[0] is the bond id
        serial1 = _parse_int(ls[1])
        serial2 = _parse_int(ls[2])
        if MISSING_INT in (serial1, serial2):
            self._warn(f"Bond record has non-numeric atom ids '{ls[1]}' '{ls[2]}'")
            return

        order = BOND_TYPES.get(ls[3].lower())
        if order is None:
            self._warn(f"Unknown bond type '{ls[3]}'")
            order = 0

        try:
            self.structure.bond_store.add_bond(
                serial1 - 1 + state.model_atom_index_start,
                serial2 - 1 + state.model_atom_index_start,
                order,
            )
        except AtomIndexError as e:
            self._warn(f"Skipping bond {ls[0]}: {e}")

    def _crysin_line(self, line: str) -> None:
        ls = line.split()
        if len(ls) < 6:
            self._warn(f"Cell record has {len(ls)} fields, expected at least 6")
            return

        values = [_parse_float(v) for v in ls[:6]]

        space_group = None
        if len(ls) > 6:
            number = _parse_float(ls[6])
            setting = _parse_float(ls[7]) if len(ls) > 7 else 1
            space_group = lookup_space_group(number, setting)
            if space_group is None:
                self._warn(f"Unknown space group {ls[6]} setting {setting}")

        self.state.cell = CellRecord(values=values, space_group=space_group)


class StructureParser(Protocol):
    """A parser that produces a Structure from a line source."""

    format_name: str

    def produces(self, source: Source, options: Optional[ParserConfig] = None) -> Structure:
        ...


class Mol2Parser:
    """Parser for Tripos MOL2 files.

    Example usage:
        >>> parser = Mol2Parser()
        >>> structure = parser.parse("ligand.mol2")
        >>> structure.atom_count, structure.bond_count
    """

    format_name = "mol2"

    def __init__(
        self,
        config: Optional[Config] = None,
        post_processors: Sequence[PostProcessor] = (),
        operator_table: Optional[SpaceGroupOperatorTable] = None,
    ):
        """Initialize the parser.

        Args:
            config: Parser and assembly settings (defaults if None)
            post_processors: Callables run on the finalized structure, in
                order, before assemblies are built (e.g. chain naming, bond
                inference, secondary structure assignment)
            operator_table: Space-group operators by name
        """
        self.config = config or Config()
        self.post_processors = list(post_processors)
        self.operator_table = operator_table or SpaceGroupOperatorTable(
            self.config.space_group_operators
        )
        self.assembly_builder = UnitCellAssemblyBuilder(
            self.config.assembly.to_builder_config(), OperatorCompiler()
        )

    def produces(self, source: Source, options: Optional[ParserConfig] = None) -> Structure:
        """Parse a source with optional per-call parser options."""
        return self.parse(source, options=options)

    def parse(
        self,
        source: Source,
        name: str = "",
        options: Optional[ParserConfig] = None,
    ) -> Structure:
        """Parse a MOL2 document.

        Args:
            source: Path, open text file, or line source
            name: Label for the structure (defaults to the file name)
            options: Parser options overriding the configured ones

        Returns:
            Parsed Structure
        """
        options = options or self.config.parser
        line_source = self._line_source(source, options)
        structure = Structure(name=name or self._source_name(source))

        start = time.perf_counter()
        scanner = RecordScanner(structure, options)
        scanner.reserve(line_source.byte_length)
        scanner.scan(line_source)
        cell = scanner.finish()

        self._complete(structure, cell, options)
        logger.debug(
            f"Parsed {structure.name or structure.id} in {time.perf_counter() - start:.4f}s"
        )
        return structure

    def parse_string(self, text: str, name: str = "", options: Optional[ParserConfig] = None) -> Structure:
        """Parse a MOL2 document held in memory."""
        options = options or self.config.parser
        return self.parse(StringLineSource(text, options.chunk_size), name=name, options=options)

    async def parse_async(
        self,
        text_chunks: AsyncIterable[Union[str, bytes]],
        name: str = "",
        byte_length: int = 0,
        options: Optional[ParserConfig] = None,
    ) -> Structure:
        """Parse a MOL2 document delivered as an async stream of text chunks.

        Each chunk is scanned to completion before the next one is awaited.
        """
        options = options or self.config.parser
        structure = Structure(name=name)
        scanner = RecordScanner(structure, options)
        scanner.reserve(byte_length)
        await scanner.scan_async(AsyncChunkedTextSource(text_chunks, byte_length))
        cell = scanner.finish()

        self._complete(structure, cell, options)
        return structure

    def _complete(
        self,
        structure: Structure,
        cell: Optional[CellRecord],
        options: ParserConfig,
        cell_dimensions: Optional[str] = None,
        operators: Optional[List[str]] = None,
    ) -> None:
        """Set up the unit cell, finalize, run post-processors, build assemblies."""
        space_group = cell.space_group if cell is not None else None

        unitcell = None
        if cell_dimensions:
            unitcell = UnitCell.from_string(cell_dimensions, space_group=space_group)
            if unitcell is None and cell is not None:
                logger.warning("Invalid cell dimensions, using the CRYSIN record instead")
        if unitcell is None and cell is not None:
            unitcell = UnitCell.from_values(cell.values, space_group=space_group)
        structure.unitcell = unitcell

        structure.finalize_atoms()
        for post_processor in self.post_processors:
            post_processor(structure)
        structure.finalize_bonds()

        if not options.build_assemblies or structure.unitcell is None:
            return

        if not operators:
            operators = self.operator_table.get(structure.unitcell.space_group)
            if operators is None:
                logger.warning(
                    f"No symmetry operators for space group "
                    f"'{structure.unitcell.space_group}', skipping unit cell assemblies"
                )
                return

        self.assembly_builder.build(structure, operators)

    @staticmethod
    def _line_source(source: Source, options: ParserConfig) -> LineSource:
        if isinstance(source, (str, Path)) or hasattr(source, "chunks"):
            return open_line_source(source, options.chunk_size)
        if hasattr(source, "read"):
            return ChunkedTextSource(iter(lambda: source.read(options.chunk_size), ""))
        raise TypeError(f"Unsupported source type: {type(source).__name__}")

    @staticmethod
    def _source_name(source: Source) -> str:
        if isinstance(source, (str, Path)):
            return Path(source).name
        return getattr(source, "name", "") or ""


class CCDCEnvelope(BaseModel):
    """JSON envelope carrying a MOL2 document with its symmetry data."""

    mol2: str
    spacegroup_operators: str = Field(default="", alias="spacegroupOperators")
    cell_dimensions: str = Field(default="", alias="cellDimensions")

    model_config = {"populate_by_name": True}


class CCDCMol2Parser(Mol2Parser):
    """Parser for MOL2 documents wrapped in a CCDC-style JSON envelope.

    The envelope looks like:
        {"mol2": "...", "spacegroupOperators": "x,y,z;-x,-y,1/2+z",
         "cellDimensions": "12.136 9.835 11.185 90 90 90"}

    Cell dimensions and operators are taken from the envelope; the embedded
    CRYSIN record is only used when the envelope cell string is unusable.
    """

    format_name = "ccdcmol2"

    def parse(
        self,
        source: Source,
        name: str = "",
        options: Optional[ParserConfig] = None,
    ) -> Structure:
        options = options or self.config.parser
        text = self._read_text(source, options)
        return self.parse_string(text, name=name or self._source_name(source), options=options)

    def parse_string(self, text: str, name: str = "", options: Optional[ParserConfig] = None) -> Structure:
        """Parse an envelope held in memory."""
        options = options or self.config.parser
        envelope = self.read_envelope(text)
        structure = Structure(name=name)

        start = time.perf_counter()
        scanner = RecordScanner(structure, options)
        scanner.reserve(len(text))
        scanner.scan(StringLineSource(envelope.mol2, options.chunk_size))
        cell = scanner.finish()

        self._complete(
            structure,
            cell,
            options,
            cell_dimensions=envelope.cell_dimensions,
            operators=parse_operator_list(envelope.spacegroup_operators),
        )
        logger.debug(
            f"Parsed {structure.name or structure.id} in {time.perf_counter() - start:.4f}s"
        )
        return structure

    async def parse_async(
        self,
        text_chunks: AsyncIterable[Union[str, bytes]],
        name: str = "",
        byte_length: int = 0,
        options: Optional[ParserConfig] = None,
    ) -> Structure:
        # The envelope has to be complete before it can be decoded
        parts = []
        async for chunk in text_chunks:
            parts.append(chunk.decode("utf-8") if isinstance(chunk, bytes) else chunk)
        return self.parse_string("".join(parts), name=name, options=options)

    @staticmethod
    def read_envelope(text: str) -> CCDCEnvelope:
        """Decode and validate the JSON envelope.

        Raises:
            ParseError: If the text is not a valid envelope
        """
        try:
            return CCDCEnvelope.model_validate_json(text)
        except ValidationError as e:
            raise ParseError(f"Invalid CCDC MOL2 envelope: {e}") from e

    @staticmethod
    def _read_text(source: Source, options: ParserConfig) -> str:
        if isinstance(source, (str, Path)):
            return FileLineSource(source, options.chunk_size).as_text()
        if hasattr(source, "as_text"):
            return source.as_text()
        if hasattr(source, "read"):
            return source.read()
        if hasattr(source, "chunks"):
            return "\n".join(line for lines in source.chunks() for line in lines)
        raise TypeError(f"Unsupported source type: {type(source).__name__}")


PARSERS: Dict[str, type] = {
    Mol2Parser.format_name: Mol2Parser,
    CCDCMol2Parser.format_name: CCDCMol2Parser,
}

SUFFIX_FORMATS = {
    ".mol2": Mol2Parser.format_name,
    ".json": CCDCMol2Parser.format_name,
}


def get_parser(format_name: str, **kwargs) -> Mol2Parser:
    """Create a parser by format name ("mol2" or "ccdcmol2")."""
    try:
        parser_cls = PARSERS[format_name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown format: {format_name} (choose from {', '.join(sorted(PARSERS))})"
        ) from None
    return parser_cls(**kwargs)


def guess_format(path: Union[str, Path]) -> str:
    """Guess the format from a file suffix, ignoring a trailing .gz."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".gz":
        suffix = Path(path.stem).suffix.lower()
    return SUFFIX_FORMATS.get(suffix, Mol2Parser.format_name)


def parse_file(
    path: Union[str, Path],
    format_name: Optional[str] = None,
    config: Optional[Config] = None,
    post_processors: Sequence[PostProcessor] = (),
) -> Structure:
    """Parse a structure file, choosing the parser from the suffix if needed."""
    parser = get_parser(
        format_name or guess_format(path),
        config=config,
        post_processors=post_processors,
    )
    return parser.parse(path)
