"""Command line entry point: generate and solve a random SOCP.

    minimize    c'x
    subject to  Ax <=_K b

where K is a product of zero, linear and second-order cones. A is 3n by n
with about sqrt(n) nonzeros per column. The data is built so that the
problem is primal and dual feasible, and thus bounded.
"""
import argparse
import sys
import time

import socpgen.cone_program as cone_prog
from socpgen import utils
from socpgen.structure import ConeStructureError, UsageError, \
    InvalidFractionSum, cone_structure, default_rng

USAGE = """usage:\t{prog} n p_f p_l s
\tcreates an SOCP with n variables where p_f fraction of rows correspond
\tto equality constraints, p_l fraction of rows correspond to LP constraints,
\tand the remaining percentage of rows are involved in second-order
\tcone constraints. the random number generator is seeded with s.
\tnote that p_f + p_l should be less than or equal to 1, and that
\tp_f should be less than .33, since that corresponds to as many equality
\tconstraints as variables.

usage:\t{prog} n p_f p_l
\tdefaults the seed to the system time

usage:\t{prog} n
\tdefaults to using p_f = 0.1 and p_l = 0.3
"""

DEFAULT_P_F = 0.1
DEFAULT_P_L = 0.3
SOLVERS = ("SCS", "ECOS")


def build_parser(prog="socpgen"):
    parser = argparse.ArgumentParser(
        prog=prog, usage=USAGE.format(prog=prog), add_help=False)
    parser.add_argument("values", nargs="*")
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("--solver", type=str.upper, default="SCS")
    parser.add_argument("--no-solve", action="store_true")
    parser.add_argument("--quiet", action="store_true")
    return parser


def parse_values(values):
    """Maps the positional arguments `n [p_f p_l [seed]]` to
    (n, p_f, p_l, seed); returns None for any other count."""
    if len(values) not in (1, 3, 4):
        return None
    try:
        n = int(values[0])
    except ValueError:
        raise UsageError("n must be an integer, got %r" % values[0])
    p_f, p_l, seed = DEFAULT_P_F, DEFAULT_P_L, int(time.time())
    if len(values) >= 3:
        try:
            p_f = float(values[1])
            p_l = float(values[2])
        except ValueError:
            raise UsageError("p_f and p_l must be numbers, got %r and %r"
                             % (values[1], values[2]))
    if len(values) == 4:
        try:
            seed = int(values[3])
        except ValueError:
            raise UsageError("seed must be an integer, got %r" % values[3])
        if seed < 0:
            raise UsageError("seed must be a nonnegative integer, got %d"
                             % seed)
    return n, p_f, p_l, seed


def report_optimum(program, out):
    print("true pri opt = %4f" % program.primal_optimum, file=out)
    print("true dua opt = %4f" % program.dual_optimum, file=out)


def run(n, p_f, p_l, seed, solve_method="SCS", do_solve=True, verbose=True,
        out=None):
    """Generates the instance, prints its report and solves it."""
    out = sys.stdout if out is None else out
    print("seed : %d" % seed, file=out)
    rng = default_rng(seed)
    params, structure = cone_structure(n, p_f, p_l, seed=rng)

    print("", file=out)
    for line in utils.storage_report(params):
        print(line, file=out)
    print("", file=out)
    print(structure.summary(), file=out)
    print("", file=out)

    program = utils.random_cone_prog(params, structure, rng=rng)
    report_optimum(program, out)
    if not do_solve:
        return program, None

    settings = cone_prog.DEFAULT_SETTINGS.replace(verbose=verbose)
    result = cone_prog.solve(program, settings=settings,
                             solve_method=solve_method)
    print("%s status: %s" % (solve_method.lower(), result["info"]["status"]),
          file=out)
    print("solver pri obj = %4f" % float(program.c @ result["x"]), file=out)
    report_optimum(program, out)
    return program, result


def main(argv=None):
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    try:
        values = None
        if not (args.help or unknown or args.solver not in SOLVERS):
            values = parse_values(args.values)
        if values is None:
            print(USAGE.format(prog=parser.prog), end="")
            return 0
        n, p_f, p_l, seed = values
        run(n, p_f, p_l, seed, solve_method=args.solver,
            do_solve=not args.no_solve, verbose=not args.quiet)
    except InvalidFractionSum:
        print("error: p_f + p_l > 1.0!")
        return 1
    except (ConeStructureError, UsageError, cone_prog.SolverError) as e:
        print("error: %s" % e)
        return 1
    return 0
