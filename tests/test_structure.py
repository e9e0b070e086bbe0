import math

import numpy as np
import pytest

import socpgen.cones as cone_lib
import socpgen.structure as structure_lib
from socpgen.structure import ConeStructure, ConeStructureError, \
    DegenerateSize, InvalidFraction, InvalidFractionSum, UsageError

FRACTIONS = [(0.0, 0.0), (0.1, 0.3), (0.33, 0.2), (0.0, 1.0), (1.0, 0.0),
             (0.5, 0.5), (0.25, 0.75), (0.05, 0.9)]


def test_example_parameters():
    params = structure_lib.derive_parameters(100, 0.1, 0.3)
    assert params.n == 100
    assert params.rows_total == 300
    assert params.nnz_per_col == 10
    assert params.zero_rows == 30
    assert params.linear_rows == 90
    assert params.remaining == 180
    assert params.max_block == 53


def test_example_partition():
    params, structure = structure_lib.cone_structure(100, 0.1, 0.3, seed=0)
    assert structure.rows_total == 300
    assert structure.soc_rows == 180
    assert all(1 <= q <= 53 for q in structure.soc_blocks)


def test_default_fractions():
    params = structure_lib.derive_parameters(100)
    assert params == structure_lib.derive_parameters(100, 0.1, 0.3)


def test_max_block_size():
    assert structure_lib.max_block_size(300) == 53
    assert structure_lib.max_block_size(3) == 3
    for rows in range(2, 2000, 7):
        assert structure_lib.max_block_size(rows) == \
            math.ceil(rows / math.log(rows))


def test_max_block_size_degenerate():
    for rows in [1, 0, -3]:
        with pytest.raises(DegenerateSize):
            structure_lib.max_block_size(rows)


def test_single_variable():
    params, structure = structure_lib.cone_structure(1, seed=0)
    assert params.rows_total == 3
    assert params.max_block == 3
    assert params.zero_rows == 0
    assert params.linear_rows == 0
    assert structure.soc_blocks == [3]


def test_row_conservation():
    rng = np.random.default_rng(0)
    for n in list(range(1, 60)) + [100, 333, 1000]:
        for p_f, p_l in FRACTIONS:
            params, structure = structure_lib.cone_structure(
                n, p_f, p_l, seed=rng)
            assert structure.zero_rows + structure.linear_rows + \
                sum(structure.soc_blocks) == 3 * n
            assert structure.zero_rows == math.floor(3 * n * p_f)
            assert structure.linear_rows == math.floor(3 * n * p_l)


def test_block_bound():
    for seed in range(20):
        params, structure = structure_lib.cone_structure(
            500, 0.1, 0.3, seed=seed)
        assert len(structure.soc_blocks) > 0
        for q in structure.soc_blocks:
            assert isinstance(q, int)
            assert 1 <= q <= params.max_block


def test_determinism():
    _, first = structure_lib.cone_structure(500, 0.1, 0.3, seed=7)
    _, second = structure_lib.cone_structure(500, 0.1, 0.3, seed=7)
    assert first.soc_blocks == second.soc_blocks
    assert first == second

    _, other = structure_lib.cone_structure(1000, 0.1, 0.3, seed=8)
    _, again = structure_lib.cone_structure(1000, 0.1, 0.3, seed=9)
    assert other.soc_blocks != again.soc_blocks


def test_generator_is_consumed():
    rng = np.random.default_rng(3)
    first = structure_lib.partition_soc(1000, 20, rng=rng)
    second = structure_lib.partition_soc(1000, 20, rng=rng)
    assert first != second
    assert first == structure_lib.partition_soc(1000, 20, rng=3)


def test_rejects_fraction_sum():
    with pytest.raises(InvalidFractionSum, match=r"p_f \+ p_l > 1.0"):
        structure_lib.derive_parameters(10, 0.7, 0.5)
    with pytest.raises(InvalidFractionSum):
        structure_lib.cone_structure(10, 0.7, 0.5, seed=0)


def test_fraction_sum_checked_first(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("partition attempted")
    monkeypatch.setattr(structure_lib, "partition_soc", fail)
    with pytest.raises(InvalidFractionSum):
        structure_lib.cone_structure(0, 0.7, 0.5)


def test_rejects_bad_fraction():
    with pytest.raises(InvalidFraction, match="p_f"):
        structure_lib.derive_parameters(10, -0.1, 0.3)
    with pytest.raises(InvalidFraction, match="p_l"):
        structure_lib.derive_parameters(10, 0.1, float("nan"))


def test_rejects_bad_n():
    for n in [0, -4]:
        with pytest.raises(UsageError, match="positive"):
            structure_lib.derive_parameters(n)
    for n in [2.5, "10", True]:
        with pytest.raises(UsageError, match="integer"):
            structure_lib.derive_parameters(n)
    assert structure_lib.derive_parameters(np.int64(10)).rows_total == 30


def test_errors_are_value_errors():
    assert issubclass(InvalidFractionSum, ConeStructureError)
    assert issubclass(DegenerateSize, ValueError)
    assert issubclass(UsageError, ValueError)


def test_no_second_order_rows():
    params, structure = structure_lib.cone_structure(10, 0.5, 0.5, seed=0)
    assert params.remaining == 0
    assert structure.soc_blocks == []
    assert structure.num_soc == 0
    assert structure.rows_covered == 30


def test_first_block_fits():
    # 12 rows, max_block = ceil(12 / ln 12) = 5, 12 - 3 - 4 = 5 rows left
    params, structure = structure_lib.cone_structure(4, 0.25, 0.4, seed=0)
    assert params.max_block == 5
    assert params.remaining == 5
    assert structure.soc_blocks == [5]


def test_partition_soc():
    assert structure_lib.partition_soc(0, 5, rng=0) == []
    assert structure_lib.partition_soc(5, 5, rng=0) == [5]
    assert structure_lib.partition_soc(3, 5, rng=0) == [3]
    assert structure_lib.partition_soc(7, 1, rng=0) == [1] * 7
    blocks = structure_lib.partition_soc(10000, 17, rng=0)
    assert sum(blocks) == 10000
    assert min(blocks) >= 1
    assert max(blocks) <= 17


def test_partition_soc_invalid():
    with pytest.raises(ValueError, match="nonnegative"):
        structure_lib.partition_soc(-1, 5)
    with pytest.raises(ValueError, match="positive"):
        structure_lib.partition_soc(5, 0)


def test_validate():
    ConeStructure(10, 2, 3, [5], 5).validate()
    with pytest.raises(ConeStructureError, match="outside"):
        ConeStructure(10, 2, 3, [5, 0], 5).validate()
    with pytest.raises(ConeStructureError, match="outside"):
        ConeStructure(10, 2, 2, [6], 5).validate()
    with pytest.raises(ConeStructureError, match="cover 9 rows out of 10"):
        ConeStructure(10, 2, 3, [4], 5).validate()
    with pytest.raises(ConeStructureError, match="take 11 rows"):
        ConeStructure(10, 6, 5, [], 5).validate()
    with pytest.raises(ConeStructureError, match="negative"):
        ConeStructure(10, -1, 6, [5], 5).validate()


def test_cone_dict():
    structure = ConeStructure(10, 2, 3, [2, 3], 5)
    assert structure.cone_dict() == {
        cone_lib.ZERO: 2, cone_lib.POS: 3, cone_lib.SOC: [2, 3]}
    assert cone_lib.cone_dims(structure.cone_dict()) == 10


def test_summary():
    structure = ConeStructure(12, 1, 3, [5, 3], 5)
    assert structure.summary() == "\n".join([
        "Cone information:",
        "Zero cone rows: 1",
        "LP cone rows: 3",
        "Number of second-order cones: 2, covering 8 rows, with sizes",
        "[5, 3]",
        "Number of rows covered is 12 out of 12.",
    ])
