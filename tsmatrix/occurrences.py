# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import numpy as np

from . import core, topk
from .mass import mass


def find_best_n_occurrences(Q, T, n, excl_zone=None, context=None):
    """
    Find the ``n`` best occurrences of one or more queries in one or more time
    series

    The distance profile of every query against every time series is computed with
    MASS and its ``n`` smallest distances are extracted. After every occurrence, the
    positions within ``excl_zone`` of it are excluded so that slightly shifted
    copies of the same occurrence are not reported again.

    Parameters
    ----------
    Q : numpy.ndarray
        A query of length ``m`` or a 2-D array of queries with shape
        ``(n_queries, m)``.

    T : numpy.ndarray
        A time series or a 2-D array of time series with shape ``(n_series, n)``.

    n : int
        The number of occurrences to return

    excl_zone : int, default None
        The half width of the exclusion zone around every occurrence. ``None``
        selects ``ceil(m / config.TSMATRIX_EXCL_ZONE_DENOM)``.

    context : Context, default None
        The compute context

    Returns
    -------
    distances : numpy.ndarray
        The distances of the best occurrences in ascending order with shape
        ``(n_series, n_queries, k)``, where ``k <= n``. The query axis is dropped
        when ``Q`` is 1-D and the series axis is dropped when ``T`` is 1-D.

    indices : numpy.ndarray
        The start positions of the best occurrences in their time series

    See Also
    --------
    tsmatrix.mass : Compute the distance profile of a query

    Examples
    --------
    >>> import tsmatrix
    >>> import numpy as np
    >>> distances, indices = tsmatrix.find_best_n_occurrences(
    ...     np.array([1., 3., 2.]),
    ...     np.array([0., 1., 3., 2., 0., 5., 1., 0., 1., 3., 2.]),
    ...     n=2)
    >>> np.sort(indices)
    array([1, 8])
    """
    D = mass(Q, T, context=context)
    m = np.shape(Q)[-1]
    excl_zone = core.check_excl_zone(excl_zone, m)

    I = np.broadcast_to(np.arange(D.shape[-1], dtype=np.int64), D.shape)
    distances, indices, _ = topk.select_extrema(D, I, n, excl_zone)

    return distances, indices
