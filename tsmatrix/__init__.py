import os.path
from importlib.metadata import distribution
from site import getsitepackages

from . import backend, config, core  # noqa: F401
from .backend import (  # noqa: F401
    Backend,
    Context,
    backend_info,
    get_backends,
    get_device_count,
)
from .core import (  # noqa: F401
    DegenerateQuery,
    DimensionMismatch,
    InsufficientData,
    InvalidWindow,
)
from .mass import mass  # noqa: F401
from .motifs import find_best_n_discords, find_best_n_motifs  # noqa: F401
from .occurrences import find_best_n_occurrences  # noqa: F401
from .stomp import stomp  # noqa: F401

try:
    _dist = distribution("tsmatrix")
    # Normalize case for Windows systems
    dist_loc = os.path.normcase(getsitepackages()[0])
    here = os.path.normcase(__file__)
    if not here.startswith(os.path.join(dist_loc, "tsmatrix")):
        # not installed, but there is another version that *is*
        raise ModuleNotFoundError  # pragma: no cover
except ModuleNotFoundError:  # pragma: no cover
    __version__ = "Please install this project with setup.py"
else:  # pragma: no cover
    __version__ = _dist.version
