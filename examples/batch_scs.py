import time

import numpy as np

import socpgen

n = 500
batch_size = 16

programs = []
for seed in range(batch_size):
    rng = np.random.default_rng(seed)
    params, structure = socpgen.cone_structure(n, seed=rng)
    programs += [socpgen.utils.random_cone_prog(params, structure, rng=rng)]

settings = socpgen.DEFAULT_SETTINGS.replace(verbose=False)


def time_function(f, N=1):
    result = []
    for i in range(N):
        tic = time.time()
        f()
        toc = time.time()
        result += [toc - tic]
    return np.mean(result), np.std(result)


for n_jobs in range(1, 8):
    def f_forward():
        return socpgen.solve_batch(programs, settings, n_jobs=n_jobs)

    mean, std = time_function(f_forward)
    print("%03d | %4.4f +/- %2.2f" % (n_jobs, mean, std))

results = socpgen.solve_batch(programs, settings)
gaps = [abs(p.c @ r["x"] - p.primal_optimum) for p, r in zip(programs, results)]
print("largest optimality gap: %.2e" % max(gaps))
