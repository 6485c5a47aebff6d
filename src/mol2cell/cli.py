"""Command-line interface for mol2cell.

Provides CLI commands for:
- Parsing MOL2 / CCDC MOL2 files and summarizing the result
- Resolving space-group numbers to names
- Compiling symmetry operators
- Writing the default configuration
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from mol2cell.config import Config
from mol2cell.constants.spacegroups import lookup_space_group
from mol2cell.data.parsers.mol2_parser import PARSERS, get_parser, guess_format
from mol2cell.data.parsers.structure import Structure
from mol2cell.exceptions import Mol2CellError
from mol2cell.processing.symmetry.operators import compile_operator


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def summarize(structure: Structure) -> Dict[str, Any]:
    """Summary of a parsed structure as plain Python types."""
    summary: Dict[str, Any] = {
        "name": structure.name,
        "title": structure.title,
        "models": structure.num_models,
        "atoms": structure.atom_count,
        "bonds": structure.bond_count,
        "frames": structure.frame_count,
        "warnings": len(structure.warnings),
        "unitcell": None,
        "assemblies": {
            name: assembly.num_transforms
            for name, assembly in structure.biomol_dict.items()
        },
    }
    uc = structure.unitcell
    if uc is not None:
        summary["unitcell"] = {
            "a": uc.a,
            "b": uc.b,
            "c": uc.c,
            "alpha": uc.alpha,
            "beta": uc.beta,
            "gamma": uc.gamma,
            "volume": uc.volume,
            "space_group": uc.space_group,
        }
    return summary


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a structure file command."""
    setup_logging(args.verbose)
    logger = logging.getLogger("mol2cell.cli")

    config = Config.from_yaml(args.config) if args.config else Config()
    if args.first_model_only:
        config.parser.first_model_only = True
    if args.trajectory:
        config.parser.as_trajectory = True
    if args.no_assemblies:
        config.parser.build_assemblies = False

    format_name = args.format or guess_format(args.input)
    logger.info(f"Parsing {args.input} as {format_name}")

    parser = get_parser(format_name, config=config)
    try:
        structure = parser.parse(args.input)
    except (Mol2CellError, OSError) as e:
        logger.error(f"Failed to parse {args.input}: {e}")
        return 1

    summary = summarize(structure)
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(f"{summary['title'] or summary['name']}")
        print(f"  Models: {summary['models']}")
        print(f"  Atoms:  {summary['atoms']}")
        print(f"  Bonds:  {summary['bonds']}")
        print(f"  Frames: {summary['frames']}")
        if summary["unitcell"]:
            uc = summary["unitcell"]
            print(
                f"  Cell:   {uc['a']:.3f} {uc['b']:.3f} {uc['c']:.3f} "
                f"{uc['alpha']:.2f} {uc['beta']:.2f} {uc['gamma']:.2f} "
                f"(V = {uc['volume']:.3f}, {uc['space_group'] or 'unknown space group'})"
            )
        for name, count in summary["assemblies"].items():
            print(f"  {name}: {count} transforms")

    if structure.warnings:
        logger.warning(f"{len(structure.warnings)} records could not be read cleanly")
    return 0


def cmd_spacegroup(args: argparse.Namespace) -> int:
    """Resolve a space-group number command."""
    setup_logging(args.verbose)

    name = lookup_space_group(args.number, args.setting)
    if name is None:
        print("undefined")
        return 1
    print(name)
    return 0


def cmd_operator(args: argparse.Namespace) -> int:
    """Compile a symmetry operator command."""
    setup_logging(args.verbose)
    logger = logging.getLogger("mol2cell.cli")

    try:
        operator = compile_operator(args.expression)
    except Mol2CellError as e:
        logger.error(str(e))
        return 1

    print(operator.name)
    with np.printoptions(precision=4, suppress=True):
        print(operator.matrix)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Write the default configuration command."""
    config = Config()
    if args.output:
        config.to_yaml(args.output)
        print(f"Wrote configuration to {args.output}")
    else:
        print(json.dumps(config.to_dict(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="mol2cell",
        description="MOL2 structure parsing with unit-cell assemblies",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        parents=[common],
        help="Parse a MOL2 or CCDC MOL2 (JSON) file",
    )
    parse_parser.add_argument("input", type=Path, help="Input file")
    parse_parser.add_argument(
        "--format",
        choices=sorted(PARSERS),
        help="Input format (guessed from the suffix by default)",
    )
    parse_parser.add_argument(
        "--config", "-c",
        help="Configuration YAML file",
    )
    parse_parser.add_argument(
        "--first-model-only",
        action="store_true",
        help="Only read the first model",
    )
    parse_parser.add_argument(
        "--trajectory",
        action="store_true",
        help="Read models after the first as trajectory frames",
    )
    parse_parser.add_argument(
        "--no-assemblies",
        action="store_true",
        help="Do not build unit cell assemblies",
    )
    parse_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON",
    )
    parse_parser.set_defaults(func=cmd_parse)

    # Space group command
    sg_parser = subparsers.add_parser(
        "spacegroup",
        parents=[common],
        help="Resolve a space-group number and setting to its name",
    )
    sg_parser.add_argument("number", type=int, help="Space-group number (1-238)")
    sg_parser.add_argument("setting", type=int, nargs="?", default=1, help="Setting (1-6)")
    sg_parser.set_defaults(func=cmd_spacegroup)

    # Operator command
    op_parser = subparsers.add_parser(
        "operator",
        parents=[common],
        help="Compile a symmetry operator such as 1/2+x,-y,1/2-z",
    )
    op_parser.add_argument("expression", help="Operator expression")
    op_parser.set_defaults(func=cmd_operator)

    # Config command
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Write the default configuration",
    )
    config_parser.add_argument("--output", "-o", help="Output YAML file")
    config_parser.set_defaults(func=cmd_config)

    # Parse arguments
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
