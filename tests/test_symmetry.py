"""Tests for symmetry operators, unit cells and unit-cell assemblies.

Tests cover:
- Operator compilation and memoization
- Space-group name lookup
- Unit cell construction and coordinate transforms
- Re-centring of operators
- UNITCELL / SUPERCELL assembly building, with and without NCS
"""

import math

import numpy as np
import pytest

from mol2cell.constants.spacegroups import (
    SPACE_GROUP_OPERATORS,
    SpaceGroupOperatorTable,
    lookup_space_group,
)
from mol2cell.data.parsers.structure import Structure
from mol2cell.exceptions import OperatorSyntaxError
from mol2cell.processing.symmetry import (
    SUPERCELL_SHIFTS,
    Assembly,
    OperatorCompiler,
    UnitCell,
    UnitCellAssemblyBuilder,
    UnitCellAssemblyConfig,
    canonicalize_operator,
    compile_operator,
    parse_operator_list,
    recenter_operator,
)


# =============================================================================
# Operator Tests
# =============================================================================


class TestOperatorCompiler:
    """Tests for operator string compilation."""

    def test_screw_axis_operator(self):
        """Test 1/2+X,-Y,1/2-Z compiles to a 2-fold screw along x."""
        op = compile_operator("1/2+X,-Y,1/2-Z")

        np.testing.assert_array_equal(op.rotation, np.diag([1.0, -1.0, -1.0]))
        np.testing.assert_allclose(op.translation, [0.5, 0.0, 0.5])
        np.testing.assert_array_equal(op.matrix[3], [0.0, 0.0, 0.0, 1.0])

    def test_trailing_translation(self):
        """Test translations written after the axis letter."""
        op = compile_operator("x+1/2,y,-z+1/4")

        np.testing.assert_array_equal(op.rotation, np.diag([1.0, 1.0, -1.0]))
        np.testing.assert_allclose(op.translation, [0.5, 0.0, 0.25])

    @pytest.mark.parametrize("text", ["-1/4+X,Y,Z", "X-1/4,Y,Z"])
    def test_translation_digits_unsigned(self, text):
        """Test a '-' before a translation does not negate it."""
        op = compile_operator(text)

        np.testing.assert_allclose(op.translation, [0.25, 0.0, 0.0])
        assert op.rotation[0, 0] == 1.0

    def test_axis_permutation(self):
        """Test operators that swap axes."""
        op = compile_operator("-y,x-y,z+2/3")

        np.testing.assert_array_equal(op.rotation[0], [0.0, -1.0, 0.0])
        np.testing.assert_array_equal(op.rotation[1], [1.0, -1.0, 0.0])
        np.testing.assert_allclose(op.translation[2], 2.0 / 3.0)

    def test_identity(self):
        """Test case and whitespace are ignored."""
        op = compile_operator(" x, Y ,z ")

        assert op.name == "X,Y,Z"
        assert op.is_identity

    def test_transform_point(self):
        """Test applying an operator to a fractional point."""
        op = compile_operator("-x,1/2+y,-z")
        np.testing.assert_allclose(op.transform_point([0.1, 0.2, 0.3]), [-0.1, 0.7, -0.3])

    def test_matrix_is_read_only(self):
        """Test compiled matrices cannot be modified in place."""
        op = compile_operator("x,y,z")

        with pytest.raises(ValueError):
            op.matrix[0, 0] = 2.0

        copy = op.to_matrix_4x4()
        copy[0, 0] = 2.0
        assert op.matrix[0, 0] == 1.0

    def test_wrong_component_count(self):
        """Test operators without three components are rejected."""
        with pytest.raises(OperatorSyntaxError):
            compile_operator("x,y")
        with pytest.raises(ValueError):
            compile_operator("x,y,z,x")

    def test_unknown_characters_are_skipped(self):
        """Test unknown tokens are ignored."""
        op = compile_operator("x*,y,z")
        assert op.is_identity

    def test_signed_permutation(self):
        """Test every tabulated operator has a signed-permutation rotation."""
        for operators in SPACE_GROUP_OPERATORS.values():
            for text in operators:
                rotation = compile_operator(text).rotation

                assert set(np.unique(rotation)) <= {-1.0, 0.0, 1.0}
                np.testing.assert_array_equal(np.count_nonzero(rotation, axis=0), [1, 1, 1])
                np.testing.assert_array_equal(np.count_nonzero(rotation, axis=1), [1, 1, 1])
                assert abs(np.linalg.det(rotation)) == pytest.approx(1.0)

    def test_canonical_form(self):
        """Test canonicalization."""
        assert canonicalize_operator("1/2 + x, -y ,z") == "1/2+X,-Y,Z"

    def test_parse_operator_list(self):
        """Test ';'-separated operator lists."""
        assert parse_operator_list("x,y,z; -x,-y,1/2+z;") == ["x,y,z", "-x,-y,1/2+z"]
        assert parse_operator_list("") == []
        assert parse_operator_list(None) == []


class TestOperatorMemoization:
    """Tests for the memoizing compiler."""

    def test_same_operator_compiled_once(self):
        """Test equivalent spellings share one compiled operator."""
        compiler = OperatorCompiler()

        first = compiler.compile("x,y,z")
        second = compiler.compile("X, Y, Z")

        assert first is second
        assert len(compiler) == 1

    def test_compile_all_deduplicates(self):
        """Test duplicates keep the position of their first occurrence."""
        compiler = OperatorCompiler()

        symops = compiler.compile_all(["-x,-y,z", "x,y,z", "-X,-Y,Z"])

        assert list(symops) == ["-X,-Y,Z", "X,Y,Z"]

    def test_compile_all_drops_bad_operators(self):
        """Test operators that fail to compile are dropped."""
        compiler = OperatorCompiler()

        symops = compiler.compile_all(["x,y,z", "x,y"])

        assert list(symops) == ["X,Y,Z"]

    def test_deterministic(self):
        """Test repeated compilation gives identical matrices."""
        compiler = OperatorCompiler()
        first = compiler.compile("1/2-x,-y,1/2+z").to_matrix_4x4()
        compiler.clear()
        second = compiler.compile("1/2-x,-y,1/2+z").to_matrix_4x4()

        np.testing.assert_array_equal(first, second)


# =============================================================================
# Space Group Tests
# =============================================================================


class TestSpaceGroups:
    """Tests for space-group name lookup."""

    def test_lookup(self):
        """Test number and setting lookup."""
        assert lookup_space_group(1) == "P 1"
        assert lookup_space_group(14, 1) == "P 21/c"
        assert lookup_space_group(14, 2) == "P 21/a"
        assert lookup_space_group(19, 1) == "P 21 21 21"
        assert lookup_space_group(75, 1) == "P 4"

    def test_aliases(self):
        """Test MOL2 numbers above 230 are remapped."""
        assert lookup_space_group(231, 1) == lookup_space_group(14, 2)
        assert lookup_space_group(238, 1) == lookup_space_group(167, 1)

    def test_undefined(self):
        """Test invalid lookups return None."""
        assert lookup_space_group(0, 1) is None
        assert lookup_space_group(239, 1) is None
        assert lookup_space_group(231, 2) is None
        assert lookup_space_group(19, 2) is None
        assert lookup_space_group(14, 7) is None
        assert lookup_space_group(math.nan, 1) is None

    def test_operator_table(self):
        """Test operator lookup by name with extra registrations."""
        table = SpaceGroupOperatorTable({"P 4": ["x,y,z", "-y,x,z", "-x,-y,z", "y,-x,z"]})

        assert len(table.get("P  21 21 21")) == 4
        assert len(table.get("P 4")) == 4
        assert "P 4" in table
        assert table.get("P 41") is None
        assert table.get(None) is None


# =============================================================================
# Unit Cell Tests
# =============================================================================


class TestUnitCell:
    """Tests for unit cell construction."""

    def test_orthorhombic(self):
        """Test an orthorhombic cell."""
        uc = UnitCell(12.136, 9.835, 11.185, 90.0, 90.0, 90.0)

        assert uc.volume == pytest.approx(12.136 * 9.835 * 11.185)
        np.testing.assert_allclose(
            uc.frac_to_cart[:3, :3], np.diag([12.136, 9.835, 11.185]), atol=1e-9
        )
        np.testing.assert_allclose(uc.frac_to_cart @ uc.cart_to_frac, np.eye(4), atol=1e-12)

    def test_monoclinic_volume(self):
        """Test the volume of a monoclinic cell."""
        uc = UnitCell(10.0, 12.0, 14.0, 90.0, 105.0, 90.0)
        expected = 10.0 * 12.0 * 14.0 * math.sin(math.radians(105.0))

        assert uc.volume == pytest.approx(expected)

    def test_a_along_x(self):
        """Test a lies along x and b in the xy plane."""
        uc = UnitCell(8.0, 9.0, 10.0, 80.0, 95.0, 110.0)

        np.testing.assert_allclose(uc.to_cartesian([1.0, 0.0, 0.0]), [8.0, 0.0, 0.0], atol=1e-9)
        assert uc.to_cartesian([0.0, 1.0, 0.0])[2] == pytest.approx(0.0)
        point = np.array([1.5, -2.0, 3.25])
        np.testing.assert_allclose(uc.to_cartesian(uc.to_fractional(point)), point)

    def test_from_values_rejects_invalid(self):
        """Test incomplete or non-physical parameters give no cell."""
        assert UnitCell.from_values([10.0, 10.0, 10.0, 90.0, 90.0]) is None
        assert UnitCell.from_values([10.0, math.nan, 10.0, 90.0, 90.0, 90.0]) is None
        assert UnitCell.from_values([10.0, -1.0, 10.0, 90.0, 90.0, 90.0]) is None
        assert UnitCell.from_values([10.0, 10.0, 10.0, 10.0, 10.0, 150.0]) is None

    def test_from_string(self):
        """Test parsing a cell dimension string."""
        uc = UnitCell.from_string("10, 11, 12, 90, 90, 90", space_group="P 1")

        assert uc.parameters == (10.0, 11.0, 12.0, 90.0, 90.0, 90.0)
        assert uc.space_group == "P 1"
        assert UnitCell.from_string("10 11 12") is None
        assert UnitCell.from_string("a b c d e f") is None
        assert UnitCell.from_string("") is None


# =============================================================================
# Assembly Tests
# =============================================================================


class TestRecentering:
    """Tests for operator re-centring."""

    def test_identity_unchanged(self):
        """Test the identity stays the identity for any centroid."""
        identity = np.eye(4)

        for center in ([0.3, 0.4, 0.5], [1.3, -0.6, 2.5]):
            np.testing.assert_allclose(recenter_operator(identity, center), identity)

    def test_image_lands_in_centroid_cell(self):
        """Test the re-centred image of the centroid shares its cell."""
        center = np.array([1.2, -0.3, 0.45])
        op = compile_operator("1/2-x,-y,1/2+z")

        recentered = recenter_operator(op.matrix, center)
        image = recentered[:3, :3] @ center + recentered[:3, 3]

        np.testing.assert_array_equal(np.floor(image), np.floor(center))
        np.testing.assert_array_equal(recentered[:3, :3], op.rotation)

    def test_idempotent(self):
        """Test re-centring twice changes nothing."""
        center = np.array([0.1, 0.7, 0.35])
        op = compile_operator("-x,1/2+y,1/2-z")

        once = recenter_operator(op.matrix, center)
        twice = recenter_operator(once, center)

        np.testing.assert_allclose(twice, once)

    def test_shift(self):
        """Test a cell shift is added to the translation."""
        center = np.array([0.1, 0.2, 0.3])
        op = compile_operator("-x,-y,z")

        base = recenter_operator(op.matrix, center)
        shifted = recenter_operator(op.matrix, center, (1, 0, -1))

        np.testing.assert_allclose(shifted[:3, 3], base[:3, 3] + [1.0, 0.0, -1.0])


class TestUnitCellAssemblyBuilder:
    """Tests for UNITCELL and SUPERCELL assembly building."""

    def test_assembly_sizes(self, sample_structure, p212121_operators):
        """Test one transform per operator and 27 cells in the supercell."""
        unitcell, supercell = UnitCellAssemblyBuilder().build(sample_structure, p212121_operators)

        assert unitcell.num_transforms == 4
        assert supercell.num_transforms == 4 * 27
        assert len(SUPERCELL_SHIFTS) == 27
        assert sample_structure.biomol_dict["UNITCELL"] is unitcell
        assert sample_structure.biomol_dict["SUPERCELL"] is supercell

    def test_duplicate_operators(self, sample_structure, p212121_operators):
        """Test duplicate operators contribute one transform."""
        operators = p212121_operators + ["X, Y, Z", "1/2+x,1/2-y,-z"]

        unitcell, _ = UnitCellAssemblyBuilder().build(sample_structure, operators)

        assert unitcell.num_transforms == 4

    def test_identity_first(self, sample_structure, p212121_operators):
        """Test the identity operator yields the identity transform."""
        unitcell, _ = UnitCellAssemblyBuilder().build(sample_structure, p212121_operators)

        np.testing.assert_allclose(unitcell.get_matrix_list()[0], np.eye(4), atol=1e-9)

    def test_copies_stay_in_home_cell(self, sample_structure, p212121_operators):
        """Test every UNITCELL copy of the centroid lies in the centroid's cell."""
        uc = sample_structure.unitcell
        center = sample_structure.center
        unitcell, _ = UnitCellAssemblyBuilder().build(sample_structure, p212121_operators)

        images = unitcell.transform_points(center[None, :])[:, 0, :]
        cells = np.floor(uc.to_fractional(images))

        assert images.shape == (4, 3)
        np.testing.assert_array_equal(cells, np.tile(np.floor(uc.to_fractional(center)), (4, 1)))

    def test_supercell_shift_order(self, sample_structure, p212121_operators):
        """Test supercell blocks follow the neighbour shift order."""
        uc = sample_structure.unitcell
        center = sample_structure.center
        unitcell, supercell = UnitCellAssemblyBuilder().build(sample_structure, p212121_operators)
        matrices = supercell.get_matrix_list()

        home = SUPERCELL_SHIFTS.index((0, 0, 0))
        for plain, shifted in zip(unitcell.get_matrix_list(), matrices[home * 4:(home + 1) * 4]):
            np.testing.assert_allclose(shifted, plain)

        first_block = Assembly("first")
        first_block.add_part(matrices[:4])
        images = first_block.transform_points(center[None, :])[:, 0, :]
        cells = np.floor(uc.to_fractional(images))
        np.testing.assert_array_equal(cells, np.tile(SUPERCELL_SHIFTS[0], (4, 1)))

    def test_without_supercell(self, sample_structure, p212121_operators):
        """Test the supercell can be switched off."""
        builder = UnitCellAssemblyBuilder(UnitCellAssemblyConfig(include_supercell=False))

        unitcell, supercell = builder.build(sample_structure, p212121_operators)

        assert supercell is None
        assert "SUPERCELL" not in sample_structure.biomol_dict

    def test_ncs_composition(self, sample_structure, p212121_operators):
        """Test every transform is composed with identity and each NCS transform."""
        ncs_transform = np.eye(4)
        ncs_transform[:3, 3] = [0.5, 0.0, 0.0]
        ncs = Assembly("NCS")
        ncs.add_part([ncs_transform])
        sample_structure.biomol_dict["NCS"] = ncs

        plain, _ = UnitCellAssemblyBuilder(
            UnitCellAssemblyConfig(apply_ncs=False)
        ).build(sample_structure, p212121_operators)
        plain_matrices = plain.get_matrix_list()

        unitcell, supercell = UnitCellAssemblyBuilder().build(sample_structure, p212121_operators)
        matrices = unitcell.get_matrix_list()

        assert unitcell.num_transforms == 4 * 2
        assert supercell.num_transforms == 4 * 27 * 2
        for k, sm in enumerate(plain_matrices):
            np.testing.assert_allclose(matrices[2 * k], sm)
            np.testing.assert_allclose(matrices[2 * k + 1], sm @ ncs_transform)

    def test_precompiled_operators(self, sample_structure):
        """Test compiled operators are accepted as input."""
        symops = OperatorCompiler().compile_all(["x,y,z", "-x,-y,z"])

        unitcell, _ = UnitCellAssemblyBuilder().build(sample_structure, symops)

        assert unitcell.num_transforms == 2

    def test_skipped_without_cell(self, p212121_operators):
        """Test nothing is built without a unit cell."""
        structure = Structure()
        structure.atom_store.add_atom(1.0, 2.0, 3.0)

        assert UnitCellAssemblyBuilder().build(structure, p212121_operators) is None
        assert structure.biomol_dict == {}

    def test_skipped_without_operators(self, sample_structure):
        """Test nothing is built without operators."""
        assert UnitCellAssemblyBuilder().build(sample_structure, []) is None
        assert sample_structure.biomol_dict == {}

    def test_skipped_without_coordinates(self, p212121_operators):
        """Test nothing is built when no atom has finite coordinates."""
        structure = Structure()
        structure.atom_store.add_atom(math.nan, 0.0, 0.0)
        structure.unitcell = UnitCell(10.0, 10.0, 10.0, 90.0, 90.0, 90.0)

        assert UnitCellAssemblyBuilder().build(structure, p212121_operators) is None
