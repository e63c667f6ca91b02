# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import warnings

_TSMATRIX_DEFAULTS = {
    "TSMATRIX_THREADS_PER_BLOCK": 512,
    "TSMATRIX_DENOM_THRESHOLD": 1e-14,
    "TSMATRIX_TEST_PRECISION": 5,
    "TSMATRIX_EXCL_ZONE_DENOM": 4,
    "TSMATRIX_VAR_RECENTER_RATIO": 1e-3,
    "TSMATRIX_FASTMATH_TRUE": True,
    "TSMATRIX_FASTMATH_FLAGS": {"nsz", "arcp", "contract", "afn", "reassoc"},
}

# Numba JIT-compiled functions capture these values when they are compiled so
# changing `TSMATRIX_DENOM_THRESHOLD` or the fastmath flags afterwards only
# affects pure Python code paths. `TSMATRIX_EXCL_ZONE_DENOM`,
# `TSMATRIX_VAR_RECENTER_RATIO` and `TSMATRIX_THREADS_PER_BLOCK` are read on
# every call.

TSMATRIX_THREADS_PER_BLOCK = _TSMATRIX_DEFAULTS["TSMATRIX_THREADS_PER_BLOCK"]
TSMATRIX_DENOM_THRESHOLD = _TSMATRIX_DEFAULTS["TSMATRIX_DENOM_THRESHOLD"]
TSMATRIX_TEST_PRECISION = _TSMATRIX_DEFAULTS["TSMATRIX_TEST_PRECISION"]
TSMATRIX_EXCL_ZONE_DENOM = _TSMATRIX_DEFAULTS["TSMATRIX_EXCL_ZONE_DENOM"]
TSMATRIX_VAR_RECENTER_RATIO = _TSMATRIX_DEFAULTS["TSMATRIX_VAR_RECENTER_RATIO"]
TSMATRIX_FASTMATH_TRUE = _TSMATRIX_DEFAULTS["TSMATRIX_FASTMATH_TRUE"]
TSMATRIX_FASTMATH_FLAGS = _TSMATRIX_DEFAULTS["TSMATRIX_FASTMATH_FLAGS"]


def _reset(var=None):
    """
    Reset the value of a configuration variable(s) to their default value(s)

    Parameters
    ----------
    var : str, default None
        The name of the configuration variable. If None, then all
        configuration variables are reset to their default values.

    Returns
    -------
    None
    """
    config_vars = [
        k for k, _ in globals().items() if k.isupper() and k.startswith("TSMATRIX")
    ]

    if var is None:
        for config_var in config_vars:
            globals()[config_var] = _TSMATRIX_DEFAULTS[config_var]
    elif var in config_vars:
        globals()[var] = _TSMATRIX_DEFAULTS[var]
    else:
        msg = (
            "Configuration reset was skipped for unrecognized "
            + f"'_TSMATRIX_DEFAULTS[{var}]'"
        )
        warnings.warn(msg)

    return
