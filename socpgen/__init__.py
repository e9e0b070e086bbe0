__version__ = "0.1.0"

from socpgen.structure import cone_structure, derive_parameters, \
    partition_soc, max_block_size, ConeStructure, Parameters, \
    ConeStructureError, InvalidFractionSum, InvalidFraction, \
    DegenerateSize, UsageError
from socpgen.cone_program import solve, solve_batch, SolverSettings, \
    DEFAULT_SETTINGS, SolverError
from socpgen.cones import ZERO, POS, SOC
from socpgen import utils
