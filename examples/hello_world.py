import numpy as np

import socpgen

np.set_printoptions(precision=5, suppress=True)

# A random SOCP with 100 variables and 300 rows: 10% of the rows are
# equality constraints, 30% are linear inequalities, and the rest are
# split into second-order cones.
rng = np.random.default_rng(0)
params, structure = socpgen.cone_structure(100, p_f=0.1, p_l=0.3, seed=rng)
print(structure.summary())

program = socpgen.utils.random_cone_prog(params, structure, rng=rng)

settings = socpgen.DEFAULT_SETTINGS.replace(verbose=False)
result = socpgen.solve(program, settings)

print("status =", result["info"]["status"])
print("c'x    =", program.c @ result["x"])
print("p*     =", program.primal_optimum)
print("d*     =", program.dual_optimum)
print("x - x* =", result["x"][:5] - program.x_star[:5])
