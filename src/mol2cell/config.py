"""Configuration management for mol2cell.

This module defines the options of the MOL2 parsers and of the unit-cell
assembly builder. Settings can be given in code, loaded from YAML, or
overridden through MOL2CELL_* environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from mol2cell.processing.symmetry.assembly import UnitCellAssemblyConfig


class ParserConfig(BaseModel):
    """Options for a single parse pass."""

    first_model_only: bool = Field(
        default=False,
        description="Skip atom and bond records of every model after the first"
    )
    as_trajectory: bool = Field(
        default=False,
        description="Read models after the first as coordinate frames"
    )
    bytes_per_atom_line: int = Field(
        default=60,
        description="Average atom line size used to estimate initial store capacity"
    )
    chunk_size: int = Field(
        default=1024 * 1024,
        description="Characters of text per chunk when streaming input"
    )
    build_assemblies: bool = Field(
        default=True,
        description="Build UNITCELL/SUPERCELL assemblies when a cell is present"
    )

    @field_validator("bytes_per_atom_line", "chunk_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value


class AssemblyConfig(BaseModel):
    """Options for unit-cell assembly building."""

    include_supercell: bool = Field(
        default=True, description="Build the 3x3x3 SUPERCELL assembly"
    )
    apply_ncs: bool = Field(
        default=True, description="Compose with an NCS assembly when present"
    )

    def to_builder_config(self) -> UnitCellAssemblyConfig:
        """Convert to the builder's dataclass configuration."""
        return UnitCellAssemblyConfig(
            include_supercell=self.include_supercell,
            apply_ncs=self.apply_ncs,
        )


class Config(BaseSettings):
    """Main configuration for mol2cell."""

    parser: ParserConfig = Field(default_factory=ParserConfig)
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig)

    # Extra space-group name -> operator list entries
    space_group_operators: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Additional symmetry operators by space-group name"
    )

    model_config = {"env_prefix": "MOL2CELL_", "env_nested_delimiter": "__"}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump()
