import math
import numbers
from collections import namedtuple

import numpy as np

import socpgen.cones as cone_lib


class ConeStructureError(ValueError):
    pass


class InvalidFractionSum(ConeStructureError):
    pass


class InvalidFraction(ConeStructureError):
    pass


class DegenerateSize(ConeStructureError):
    pass


class UsageError(ValueError):
    pass


def default_rng(seed=None):
    """Returns a numpy Generator; `seed` may already be one."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


class Parameters(namedtuple("Parameters", [
        "n", "rows_total", "nnz_per_col", "zero_rows", "linear_rows",
        "max_block"])):
    """Sizing of a random cone program with n variables."""
    __slots__ = ()

    @property
    def remaining(self):
        """Rows left for the second-order cones."""
        return self.rows_total - self.zero_rows - self.linear_rows


def max_block_size(rows_total):
    """Largest second-order cone allowed for `rows_total` rows,
    ceil(rows_total / ln(rows_total)).

    Raises:
        DegenerateSize: if rows_total <= 1, where the logarithm is
            zero or undefined.
    """
    if rows_total <= 1:
        raise DegenerateSize(
            "rows_total = %d is too small to bound the cone sizes; "
            "need at least 2 rows" % rows_total)
    return int(math.ceil(rows_total / math.log(rows_total)))


def derive_parameters(n, p_f=0.1, p_l=0.3):
    """Derives the row counts of a random SOCP with n variables.

    The problem has 3n rows; a fraction p_f of them belongs to the zero
    cone and a fraction p_l to the nonnegative orthant. The rest are
    shared among second-order cones of size at most `max_block`.

    Args:
        n: number of variables, a positive integer.
        p_f: fraction of rows in the zero cone.
        p_l: fraction of rows in the nonnegative cone.

    Returns:
        A `Parameters` record.

    Raises:
        InvalidFractionSum: if p_f + p_l > 1.
        InvalidFraction: if a fraction lies outside [0, 1].
        UsageError: if n is not a positive integer.
    """
    if p_f + p_l > 1.0:
        raise InvalidFractionSum("p_f + p_l > 1.0 (got %g + %g)" % (p_f, p_l))
    for name, p in (("p_f", p_f), ("p_l", p_l)):
        if not 0.0 <= p <= 1.0:
            raise InvalidFraction("%s must lie in [0, 1], got %g" % (name, p))
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise UsageError("n must be an integer, got %r" % (n,))
    if n <= 0:
        raise UsageError("n must be positive, got %d" % n)

    n = int(n)
    rows_total = 3 * n
    return Parameters(
        n=n,
        rows_total=rows_total,
        nnz_per_col=int(math.ceil(math.sqrt(n))),
        zero_rows=int(math.floor(rows_total * p_f)),
        linear_rows=int(math.floor(rows_total * p_l)),
        max_block=max_block_size(rows_total))


def partition_soc(remaining, max_block, rng=None):
    """Splits `remaining` rows into second-order cones.

    Cone sizes are drawn uniformly from [1, max_block] while more than
    max_block rows are left; the leftover (if any) becomes the last cone.

    Args:
        remaining: number of rows to cover, >= 0.
        max_block: largest cone size, >= 1.
        rng: numpy Generator or seed.

    Returns:
        list of cone sizes summing to `remaining`.
    """
    if remaining < 0:
        raise ValueError("remaining must be nonnegative, got %d" % remaining)
    if max_block < 1:
        raise ValueError("max_block must be positive, got %d" % max_block)
    rng = default_rng(rng)

    blocks = []
    while remaining > max_block:
        size = int(rng.integers(1, max_block, endpoint=True))
        blocks.append(size)
        remaining -= size
    if remaining > 0:
        blocks.append(int(remaining))
    return blocks


class ConeStructure(object):
    """Layout of the rows of a random SOCP among the zero cone, the
    nonnegative cone and a sequence of second-order cones."""

    def __init__(self, rows_total, zero_rows, linear_rows, soc_blocks,
                 max_block):
        self.rows_total = rows_total
        self.zero_rows = zero_rows
        self.linear_rows = linear_rows
        self.soc_blocks = list(soc_blocks)
        self.max_block = max_block

    def __repr__(self):
        return ("ConeStructure(rows_total=%d, zero_rows=%d, linear_rows=%d, "
                "soc_blocks=%r, max_block=%d)" % (
                    self.rows_total, self.zero_rows, self.linear_rows,
                    self.soc_blocks, self.max_block))

    def __eq__(self, other):
        if not isinstance(other, ConeStructure):
            return NotImplemented
        return (self.rows_total, self.zero_rows, self.linear_rows,
                self.soc_blocks, self.max_block) == (
                    other.rows_total, other.zero_rows, other.linear_rows,
                    other.soc_blocks, other.max_block)

    @property
    def soc_rows(self):
        return sum(self.soc_blocks)

    @property
    def num_soc(self):
        return len(self.soc_blocks)

    @property
    def rows_covered(self):
        return self.zero_rows + self.linear_rows + self.soc_rows

    def cone_dict(self):
        """SCS-style cone dictionary."""
        return {
            cone_lib.ZERO: self.zero_rows,
            cone_lib.POS: self.linear_rows,
            cone_lib.SOC: list(self.soc_blocks),
        }

    def validate(self):
        """Raises ConeStructureError if an invariant does not hold."""
        if self.zero_rows < 0 or self.linear_rows < 0:
            raise ConeStructureError(
                "negative cone rows: zero=%d, linear=%d" % (
                    self.zero_rows, self.linear_rows))
        if self.zero_rows + self.linear_rows > self.rows_total:
            raise ConeStructureError(
                "zero and linear cones take %d rows out of %d" % (
                    self.zero_rows + self.linear_rows, self.rows_total))
        for i, size in enumerate(self.soc_blocks):
            if not 1 <= size <= self.max_block:
                raise ConeStructureError(
                    "second-order cone %d has size %d, outside [1, %d]" % (
                        i, size, self.max_block))
        if self.rows_covered != self.rows_total:
            raise ConeStructureError(
                "cones cover %d rows out of %d" % (
                    self.rows_covered, self.rows_total))
        return self

    def summary(self):
        lines = [
            "Cone information:",
            "Zero cone rows: %d" % self.zero_rows,
            "LP cone rows: %d" % self.linear_rows,
            "Number of second-order cones: %d, covering %d rows, "
            "with sizes" % (self.num_soc, self.soc_rows),
            "[%s]" % ", ".join(str(q) for q in self.soc_blocks),
            "Number of rows covered is %d out of %d." % (
                self.rows_covered, self.rows_total),
        ]
        return "\n".join(lines)


def cone_structure(n, p_f=0.1, p_l=0.3, seed=None):
    """Builds the cone layout of a random SOCP with n variables.

    Args:
        n: number of variables.
        p_f: fraction of the 3n rows in the zero cone.
        p_l: fraction of the 3n rows in the nonnegative cone.
        seed: numpy Generator, int seed, or None.

    Returns:
        (params, structure): the `Parameters` and a validated
        `ConeStructure`.
    """
    params = derive_parameters(n, p_f, p_l)
    blocks = partition_soc(params.remaining, params.max_block, rng=seed)
    structure = ConeStructure(
        rows_total=params.rows_total,
        zero_rows=params.zero_rows,
        linear_rows=params.linear_rows,
        soc_blocks=blocks,
        max_block=params.max_block)
    return params, structure.validate()
