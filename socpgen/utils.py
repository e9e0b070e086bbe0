import numpy as np
from scipy import sparse

import socpgen.cones as cone_lib
from socpgen.structure import default_rng


class ConeProgram(object):
    """Problem data of a cone program together with a known solution.

    The program is
        min.        c^T x
        subject to  Ax + s = b
                    s \\in K
    and (x_star, y_star, s_star) is a primal-dual optimal triple.
    """

    def __init__(self, A, b, c, cone_dict, x_star, y_star, s_star):
        self.A = A
        self.b = b
        self.c = c
        self.cone_dict = cone_dict
        self.x_star = x_star
        self.y_star = y_star
        self.s_star = s_star

    @property
    def shape(self):
        return self.A.shape

    @property
    def primal_optimum(self):
        return float(self.c @ self.x_star)

    @property
    def dual_optimum(self):
        return float(-self.b @ self.y_star)

    def data(self):
        """Problem data in the format expected by scs.solve."""
        return {"A": self.A, "b": self.b, "c": self.c}


def random_sparse(m, n, nnz_per_col, randomness, rng=None):
    """Returns an m-by-n CSC matrix with nnz_per_col nonzeros in each
    column, at distinct uniformly chosen rows.

    `randomness` is a function that returns a random vector
    with a prescribed length.
    """
    rng = default_rng(rng)
    nnz_per_col = min(nnz_per_col, m)
    rows = [rng.choice(m, size=nnz_per_col, replace=False) for _ in range(n)]
    rows = np.concatenate(rows) if rows else np.zeros(0, dtype=int)
    cols = np.repeat(np.arange(n), nnz_per_col)
    values = randomness(n * nnz_per_col)
    return sparse.csc_matrix((values, (rows, cols)), shape=(m, n))


def random_cone_prog(params, structure, rng=None):
    """Returns a random, primal and dual feasible cone program.

    A is `params.rows_total` by `params.n` with `params.nnz_per_col`
    nonzeros per column. The optimal point is built first: s* is the
    projection of a Gaussian vector z onto K and y* = s* - z, so that
    s* is in K, y* is in K^*, and s*^T y* = 0. Then b = A x* + s* and
    c = -A^T y* make (x*, y*, s*) satisfy the optimality conditions.

    Args:
        params: `Parameters` from `derive_parameters`.
        structure: validated `ConeStructure`.
        rng: numpy Generator or seed.

    Returns:
        A `ConeProgram`.
    """
    rng = default_rng(rng)
    m, n = params.rows_total, params.n
    if structure.rows_total != m:
        raise ValueError(
            "structure covers %d rows but the problem has %d" % (
                structure.rows_total, m))

    cone_dict = structure.cone_dict()
    cone_list = cone_lib.parse_cone_dict(cone_dict)

    A = random_sparse(m, n, params.nnz_per_col, rng.standard_normal, rng=rng)
    z = rng.standard_normal(m)
    s_star = cone_lib.pi(z, cone_list, dual=False)
    y_star = s_star - z
    x_star = rng.standard_normal(n)
    b = A @ x_star + s_star
    c = -A.T @ y_star
    return ConeProgram(A, b, c, cone_dict, x_star, y_star, s_star)


def storage_report(params):
    """Returns lines describing the size and storage cost of A."""
    m, n, col_nnz = params.rows_total, params.n, params.nnz_per_col
    nnz = n * min(col_nnz, m)
    gb = float(2 ** 30)
    value_bytes = np.dtype(np.float64).itemsize
    index_bytes = np.dtype(np.int32).itemsize
    return [
        "A is %d by %d, with %d nonzeros per column." % (m, n, col_nnz),
        "A has %d nonzeros (%f%% dense)." % (nnz, 100.0 * nnz / (m * n)),
        "Nonzeros of A take %f GB of storage." % (nnz * value_bytes / gb),
        "Row idxs of A take %f GB of storage." % (nnz * index_bytes / gb),
        "Col ptrs of A take %f GB of storage." % (
            (n + 1) * index_bytes / gb),
    ]
