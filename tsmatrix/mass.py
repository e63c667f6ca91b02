# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import warnings

import numpy as np
from numba import njit, prange

from . import backend, config, core


@njit(parallel=True, fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _mass(m, QT, μ_Q, σ_Q, Q_subseq_isconstant, M_T, Σ_T, T_subseq_isconstant):
    """
    A Numba JIT-compiled and parallelized function for computing the distance
    profiles of a batch of queries against a batch of time series

    Parameters
    ----------
    m : int
        Window size

    QT : numpy.ndarray
        The sliding dot products with shape `(n_series, n_queries, l)`

    μ_Q : numpy.ndarray
        The mean of each query

    σ_Q : numpy.ndarray
        The standard deviation of each query

    Q_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a query is constant (True)

    M_T : numpy.ndarray
        Sliding mean of each time series with shape `(n_series, l)`

    Σ_T : numpy.ndarray
        Sliding standard deviation of each time series with shape `(n_series, l)`

    T_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in a time series is
        constant (True)

    Returns
    -------
    D : numpy.ndarray
        Distance profiles with shape `(n_series, n_queries, l)`
    """
    n_series, n_queries, l = QT.shape
    D = np.empty((n_series, n_queries, l), dtype=np.float64)

    for idx in prange(n_series * n_queries):
        s = idx // n_queries
        q = idx % n_queries
        D_squared = core._calculate_squared_distance_profile(
            m,
            QT[s, q],
            μ_Q[q],
            σ_Q[q],
            M_T[s],
            Σ_T[s],
            Q_subseq_isconstant[q],
            T_subseq_isconstant[s],
        )
        D[s, q, :] = np.sqrt(D_squared)

    return D


def mass(Q, T, context=None):
    """
    Compute the z-normalized distance profile(s) using the MASS algorithm

    Every query in ``Q`` is compared against every subsequence of every time series
    in ``T``. The sliding dot products are computed with an FFT convolution and
    combined with the sliding mean and standard deviation of both sides.

    Parameters
    ----------
    Q : numpy.ndarray
        A query of length ``m`` or a 2-D array of queries with shape
        ``(n_queries, m)``.

    T : numpy.ndarray
        A time series of length ``n`` or a 2-D array of time series with shape
        ``(n_series, n)``.

    context : Context, default None
        The compute context. The FFT runs on the host for every backend.

    Returns
    -------
    distance_profile : numpy.ndarray
        Distance profiles with shape ``(n_series, n_queries, n - m + 1)``. The
        query axis is dropped when ``Q`` is 1-D and the series axis is dropped when
        ``T`` is 1-D.

    Raises
    ------
    InvalidWindow
        If ``m < 2`` or ``m > n``

    DimensionMismatch
        If ``Q`` or ``T`` has more than two dimensions

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0179 \
    <https://www.cs.ucr.edu/~eamonn/PID4481997_extend_Matrix%20Profile_I.pdf>`__

    See Table II

    A constant query matches a constant subsequence at a distance of zero and
    every other subsequence at the maximal distance, ``2 * sqrt(m)``. A
    ``DegenerateQuery`` warning is issued for constant queries. Queries and
    subsequences containing ``np.nan``/``np.inf`` have a distance of ``np.inf``.

    Examples
    --------
    >>> import tsmatrix
    >>> import numpy as np
    >>> tsmatrix.mass(
    ...     np.array([-11.1, 23.4, 79.5, 1001.0]),
    ...     np.array([584., -11., 23., 79., 1001., 0., -19.]))
    array([3.18792463e+00, 1.11297393e-03, 3.23874018e+00, 3.34470195e+00])
    """
    backend.get_context(context)

    Q = core._preprocess(Q)
    T = core._preprocess(T)
    m = Q.shape[-1]

    Q_ndim = Q.ndim
    T_ndim = T.ndim

    Q, μ_Q, σ_Q, Q_subseq_isconstant = core.preprocess(Q, m, copy=False)
    T, M_T, Σ_T, T_subseq_isconstant = core.preprocess(T, m, copy=False)

    Q = np.atleast_2d(Q)
    T = np.atleast_2d(T)
    μ_Q = np.atleast_2d(μ_Q)[:, 0]
    σ_Q = np.atleast_2d(σ_Q)[:, 0]
    Q_subseq_isconstant = np.atleast_2d(Q_subseq_isconstant)[:, 0]
    M_T = np.atleast_2d(M_T)
    Σ_T = np.atleast_2d(Σ_T)
    T_subseq_isconstant = np.atleast_2d(T_subseq_isconstant)

    if np.any(Q_subseq_isconstant):
        msg = (
            "One or more queries are constant and cannot be z-normalized. "
            + "They only match constant subsequences (at a distance of zero) and "
            + f"are at the maximal distance, 2 * sqrt({m}), from all others."
        )
        warnings.warn(msg, core.DegenerateQuery)

    QT = core.sliding_dot_product(Q[np.newaxis, :, :], T[:, np.newaxis, :])

    distance_profile = _mass(
        m,
        np.ascontiguousarray(QT),
        μ_Q,
        σ_Q,
        Q_subseq_isconstant,
        M_T,
        Σ_T,
        T_subseq_isconstant,
    )

    if Q_ndim == 1:
        distance_profile = distance_profile[:, 0]
    if T_ndim == 1:
        distance_profile = distance_profile[0]

    return distance_profile
