import numpy as np
import scs

SCS_MAJOR = int(scs.__version__.split(".")[0])

if SCS_MAJOR >= 3:
    EQ_DIM = "z"
else:
    EQ_DIM = "f"

ZERO = EQ_DIM
POS = "l"
SOC = "q"

# The ordering of CONES matches SCS.
CONES = [ZERO, POS, SOC]


def parse_cone_dict(cone_dict):
    """Parses SCS-style cone dictionary."""
    return [(cone, cone_dict[cone]) for cone in CONES if cone in cone_dict]


def cone_dims(cone_dict):
    """Returns the number of rows spanned by an SCS-style cone dictionary."""
    total = 0
    for cone, sz in parse_cone_dict(cone_dict):
        sz = sz if isinstance(sz, (tuple, list)) else (sz,)
        total += sum(sz)
    return total


def _proj(x, cone, dual=False):
    """Returns the projection of x onto a cone or its dual cone."""
    if cone == ZERO:
        return x if dual else np.zeros(x.shape)
    elif cone == POS:
        return np.maximum(x, 0)
    elif cone == SOC:
        t = x[0]
        z = x[1:]
        norm_z = np.linalg.norm(z, 2)
        if norm_z <= t or np.isclose(norm_z, t, atol=1e-8):
            return x
        elif norm_z <= -t:
            return np.zeros(x.shape)
        else:
            return 0.5 * (1 + t / norm_z) * np.append(norm_z, z)
    else:
        raise NotImplementedError("%s not implemented" % cone)


def pi(x, cones, dual=False):
    """Projects x onto product of cones (or their duals)
    Args:
        x: NumPy array
        cones: list of (cone name, size)
        dual: whether to project onto the dual cone
    Returns:
        NumPy array that is the projection of `x` onto the (dual) cones
    """
    projection = np.zeros(x.shape)
    offset = 0
    for cone, sz in cones:
        sz = sz if isinstance(sz, (tuple, list)) else (sz,)
        if sum(sz) == 0:
            continue
        for dim in sz:
            if dim == 0:
                continue
            projection[offset:offset + dim] = _proj(
                x[offset:offset + dim], cone, dual=dual)
            offset += dim
    return projection


def in_cone(x, cones, dual=False, atol=1e-8):
    """Returns True if x lies (up to atol) in the product of cones."""
    return np.allclose(x, pi(x, cones, dual=dual), atol=atol)
