import multiprocessing as mp
import warnings
from collections import namedtuple
from multiprocessing.pool import ThreadPool

import ecos
import numpy as np
import scs
from threadpoolctl import threadpool_limits

import socpgen.cones as cone_lib


class SolverError(Exception):
    pass


class SolverSettings(namedtuple("SolverSettings", [
        "max_iterations", "tolerance", "relaxation", "equality_scaling",
        "rescale_factor", "indirect_cg_rate", "verbose", "normalize",
        "warm_start"])):
    """Tuning parameters handed to the conic solver.

    The defaults are the ones used to benchmark SCS on random SOCPs:
    2500 iterations, tolerance 1e-3, relaxation 1.8, x equality scaling
    1e-3, rescaling by 5 when normalizing, CG tolerance decaying like
    (1/iter)^2, verbose output, data normalization, no warm start.

    A starting point passed to `solve` is always used; warm_start only
    makes one mandatory.
    """
    __slots__ = ()

    def replace(self, **kwargs):
        """Returns a copy with some options changed; unknown options
        raise ValueError."""
        return self._replace(**kwargs)

    def to_scs_kwargs(self):
        kwargs = {
            "max_iters": self.max_iterations,
            "alpha": self.relaxation,
            "rho_x": self.equality_scaling,
            "scale": self.rescale_factor,
            "verbose": self.verbose,
            "normalize": self.normalize,
        }
        # SCS 3.* replaced eps by eps_abs, eps_rel and dropped cg_rate
        if cone_lib.SCS_MAJOR >= 3:
            kwargs["eps_abs"] = self.tolerance
            kwargs["eps_rel"] = self.tolerance
        else:
            kwargs["eps"] = self.tolerance
            kwargs["cg_rate"] = self.indirect_cg_rate
        return kwargs

    def to_ecos_kwargs(self):
        return {
            "max_iters": self.max_iterations,
            "abstol": self.tolerance,
            "reltol": self.tolerance,
            "feastol": self.tolerance,
            "verbose": self.verbose,
        }


DEFAULT_SETTINGS = SolverSettings(
    max_iterations=2500,
    tolerance=1e-3,
    relaxation=1.8,
    equality_scaling=1e-3,
    rescale_factor=5,
    indirect_cg_rate=2,
    verbose=True,
    normalize=True,
    warm_start=False)


def solve(program, settings=None, solve_method="SCS", warm_start=None,
          raise_on_error=True, **kwargs):
    """Solves a random cone program.

    Args:
      program: A `ConeProgram` from `socpgen.utils.random_cone_prog`.
      settings: (optional) `SolverSettings`; defaults to DEFAULT_SETTINGS.
      solve_method: (optional) Name of solver to use; SCS or ECOS.
      warm_start: (optional) A tuple (x, y, s) at which to warm-start SCS;
          it is used whenever given, and required when
          settings.warm_start is set.
      raise_on_error: (optional) if False, a failed SCS solve returns its
          result instead of raising.
      kwargs: (optional) Keyword arguments to send to the solver; they
          override the translated settings.

    Returns:
        A dict with keys "x", "y", "s" and "info".

    Raises:
        SolverError: if the cone program is infeasible or unbounded.
    """
    if settings is None:
        settings = DEFAULT_SETTINGS

    if settings.warm_start and warm_start is None:
        raise ValueError("warm_start is set but no (x, y, s) was given.")

    if solve_method == "SCS":
        solver_kwargs = settings.to_scs_kwargs()
        solver_kwargs.update(kwargs)
        return _solve_scs(program, warm_start, raise_on_error, solver_kwargs)
    elif solve_method == "ECOS":
        if warm_start is not None:
            raise ValueError("ECOS does not support warm starting.")
        solver_kwargs = settings.to_ecos_kwargs()
        solver_kwargs.update(kwargs)
        return _solve_ecos(program, solver_kwargs)
    else:
        raise ValueError("Solver %s not supported." % solve_method)


def _solve_scs(program, warm_start, raise_on_error, kwargs):
    data = program.data()
    if warm_start is not None:
        data["x"] = warm_start[0]
        data["y"] = warm_start[1]
        data["s"] = warm_start[2]

    result = scs.solve(data, program.cone_dict, **kwargs)

    status = result["info"]["status"]
    inaccurate_status = {"Solved/Inaccurate",
                         "solved (inaccurate - reached max_iters)"}
    if status in inaccurate_status and "acceleration_lookback" not in kwargs:
        # anderson acceleration is sometimes unstable
        result = scs.solve(
            data, program.cone_dict, acceleration_lookback=0, **kwargs)
        status = result["info"]["status"]

    if status in inaccurate_status:
        warnings.warn("Solved/Inaccurate.")
    elif status.lower() != "solved":
        if raise_on_error:
            raise SolverError("Solver scs returned status %s" % status)
    return result


def _ecos_row_order(cone_dict):
    """Returns (perm, dims): a row permutation and ECOS cone dimensions.

    ECOS takes second-order cones of dimension >= 2; a one-row
    second-order cone is the nonnegative ray, so those rows move to the
    end of the linear block.
    """
    len_eq = cone_dict.get(cone_lib.EQ_DIM, 0)
    len_lin = cone_dict.get(cone_lib.POS, 0)
    soc = list(cone_dict.get(cone_lib.SOC, []))
    offsets = len_eq + len_lin + np.cumsum([0] + soc[:-1])

    rays = [o for o, q in zip(offsets, soc) if q == 1]
    blocks = [np.arange(o, o + q) for o, q in zip(offsets, soc) if q > 1]
    perm = np.concatenate(
        [np.arange(len_eq + len_lin), np.array(rays, dtype=int)] + blocks)
    dims = {}
    if len_lin + len(rays) > 0:
        dims["l"] = len_lin + len(rays)
    if len(blocks) > 0:
        dims["q"] = [q for q in soc if q > 1]
    return perm.astype(int), dims


def _solve_ecos(program, kwargs):
    A, b, c = program.A, program.b, program.c
    cone_dict = program.cone_dict
    len_eq = cone_dict.get(cone_lib.EQ_DIM, 0)
    perm, cone_dict_ecos = _ecos_row_order(cone_dict)
    A_perm = A[perm].tocsc()
    b_perm = b[perm]

    G_ecos = A_perm[len_eq:]
    if 0 in G_ecos.shape:
        G_ecos = None
    H_ecos = b_perm[len_eq:].flatten()
    if 0 in H_ecos.shape:
        H_ecos = None
    A_ecos = A_perm[:len_eq]
    if 0 in A_ecos.shape:
        A_ecos = None
    B_ecos = b_perm[:len_eq].flatten()
    if 0 in B_ecos.shape:
        B_ecos = None

    if A_ecos is not None and A_ecos.nnz == 0 and np.prod(A_ecos.shape) > 0:
        raise ValueError("ECOS cannot handle sparse data with nnz == 0.")

    solution = ecos.solve(c, G_ecos, H_ecos, cone_dict_ecos, A_ecos, B_ecos,
                          **kwargs)
    x = solution["x"]
    y = np.zeros(b.size)
    y[perm] = np.append(solution["y"], solution["z"])
    s = b - A @ x

    status = solution["info"]["exitFlag"]
    STATUS_LOOKUP = {0: "Optimal", 1: "Infeasible", 2: "Unbounded",
                     10: "Optimal Inaccurate", 11: "Infeasible Inaccurate",
                     12: "Unbounded Inaccurate"}

    if status == 10:
        warnings.warn("Solved/Inaccurate.")
    elif status < 0:
        raise SolverError("Solver ecos errored.")
    if status not in [0, 10]:
        raise SolverError("Solver ecos returned status %s" %
                          STATUS_LOOKUP[status])

    # Report ECOS info in the SCS format
    ECOS2SCS_STATUS_MAP = {0: "Solved", 1: "Infeasible", 2: "Unbounded",
                           10: "Solved/Inaccurate",
                           11: "Infeasible/Inaccurate",
                           12: "Unbounded/Inaccurate"}
    info = {"status": ECOS2SCS_STATUS_MAP.get(status, "Failure"),
            "solve_time": solution["info"]["timing"]["tsolve"],
            "setup_time": solution["info"]["timing"]["tsetup"],
            "iter": solution["info"]["iter"],
            "pobj": solution["info"]["pcost"]}
    return {"x": x, "y": y, "s": s, "info": info}


def solve_wrapper(program, settings, solve_method, kwargs):
    """A wrapper around solve for the batch function."""
    return solve(program, settings=settings, solve_method=solve_method,
                 **kwargs)


def solve_batch(programs, settings=None, n_jobs=-1, solve_method="SCS",
                **kwargs):
    """
    Solves a batch of cone programs. Uses a ThreadPool to solve
    the programs in parallel.

    Args:
        programs - A list of `ConeProgram`s.
        settings - `SolverSettings` shared by every solve.
        n_jobs - Number of jobs. n_jobs = 1 means serial and
            n_jobs = -1 defaults to the number of CPUs (default=-1).
        solve_method - SCS or ECOS.
        kwargs - kwargs sent to the solver.

    Returns:
        A list of result dicts, in the order of `programs`.
    """
    batch_size = len(programs)
    if batch_size == 0:
        return []
    if n_jobs == -1:
        n_jobs = mp.cpu_count()
    n_jobs = min(batch_size, n_jobs)

    if n_jobs == 1:
        return [solve(program, settings=settings, solve_method=solve_method,
                      **kwargs) for program in programs]

    pool = ThreadPool(processes=n_jobs)
    args = [(program, settings, solve_method, kwargs) for program in programs]
    with threadpool_limits(limits=1):
        results = pool.starmap(solve_wrapper, args)
    pool.close()
    return results
