# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import logging

import numpy as np
from numba import njit, prange

from . import backend, config, core

logger = logging.getLogger(__name__)


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _compute_PI(
    T_A,
    T_B,
    m,
    μ_Q,
    σ_Q,
    Q_subseq_isconstant,
    M_T,
    Σ_T,
    T_subseq_isconstant,
    QT,
    QT_first,
    excl_zone,
    ignore_trivial,
):
    """
    Compute (Numba JIT-compiled) the matrix profile and matrix profile indices of
    a single pair of time series by sliding the query window row by row

    Parameters
    ----------
    T_A : numpy.ndarray
        The time series or sequence for which to compute the matrix profile

    T_B : numpy.ndarray
        The time series or sequence that will be used to annotate `T_A`. For every
        subsequence in `T_A`, its nearest neighbor in `T_B` will be recorded.

    m : int
        Window size

    μ_Q : numpy.ndarray
        Sliding mean of `T_A`

    σ_Q : numpy.ndarray
        Sliding standard deviation of `T_A`

    Q_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in `T_A` is constant

    M_T : numpy.ndarray
        Sliding mean of `T_B`

    Σ_T : numpy.ndarray
        Sliding standard deviation of `T_B`

    T_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in `T_B` is constant

    QT : numpy.ndarray
        Dot product between `T_A[:m]` and every subsequence of `T_B`. This array is
        updated in place.

    QT_first : numpy.ndarray
        Dot product between `T_B[:m]` and every subsequence of `T_A`

    excl_zone : int
        The half width for the exclusion zone

    ignore_trivial : bool
        Set to `True` if this is a self-join (the exclusion zone is applied)

    Returns
    -------
    P : numpy.ndarray
        Matrix profile

    I : numpy.ndarray
        Matrix profile indices

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0085 \
    <https://www.cs.ucr.edu/~eamonn/STOMP_GPU_final_submission_camera_ready.pdf>`__

    See Table II

    The dot product of the next row is derived from the previous row in constant
    time per position:

    QT[i, j] = QT[i - 1, j - 1] - T_A[i - 1] * T_B[j - 1]
               + T_A[i + m - 1] * T_B[j + m - 1]
    """
    l = T_A.shape[0] - m + 1
    w = T_B.shape[0] - m + 1

    P = np.full(l, np.inf, dtype=np.float64)
    I = np.full(l, -1, dtype=np.int64)

    for i in range(l):
        if i > 0:
            for j in range(w - 1, 0, -1):
                QT[j] = (
                    QT[j - 1]
                    - T_A[i - 1] * T_B[j - 1]
                    + T_A[i + m - 1] * T_B[j + m - 1]
                )
            QT[0] = QT_first[i]

        D = core._calculate_squared_distance_profile(
            m,
            QT,
            μ_Q[i],
            σ_Q[i],
            M_T,
            Σ_T,
            Q_subseq_isconstant[i],
            T_subseq_isconstant,
        )
        if ignore_trivial:
            core._apply_exclusion_zone(D, i, excl_zone, np.inf)

        idx = np.argmin(D)
        if D[idx] < np.inf:
            P[i] = np.sqrt(D[idx])
            I[i] = idx

    return P, I


@njit(parallel=True, fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _stomp(
    T_A,
    T_B,
    m,
    μ_Q,
    σ_Q,
    Q_subseq_isconstant,
    M_T,
    Σ_T,
    T_subseq_isconstant,
    QT,
    QT_first,
    A_idx,
    B_idx,
    excl_zone,
    ignore_trivial,
):
    """
    A Numba JIT-compiled version of STOMP for parallel computation of the matrix
    profile and matrix profile indices of many independent pairs of time series

    Parameters
    ----------
    T_A : numpy.ndarray
        The time series for which to compute the matrix profile, one per row

    T_B : numpy.ndarray
        The time series that will be used to annotate `T_A`, one per row

    m : int
        Window size

    μ_Q : numpy.ndarray
        Sliding mean of each row of `T_A`

    σ_Q : numpy.ndarray
        Sliding standard deviation of each row of `T_A`

    Q_subseq_isconstant : numpy.ndarray
        Rolling isconstant of each row of `T_A`

    M_T : numpy.ndarray
        Sliding mean of each row of `T_B`

    Σ_T : numpy.ndarray
        Sliding standard deviation of each row of `T_B`

    T_subseq_isconstant : numpy.ndarray
        Rolling isconstant of each row of `T_B`

    QT : numpy.ndarray
        The seed dot products of each pair, one per row

    QT_first : numpy.ndarray
        The first column dot products of each pair, one per row

    A_idx : numpy.ndarray
        The row of `T_A` used by each pair

    B_idx : numpy.ndarray
        The row of `T_B` used by each pair

    excl_zone : int
        The half width for the exclusion zone

    ignore_trivial : bool
        Set to `True` if this is a self-join

    Returns
    -------
    P : numpy.ndarray
        Matrix profile of each pair, one per row

    I : numpy.ndarray
        Matrix profile indices of each pair, one per row
    """
    n_pairs = A_idx.shape[0]
    l = T_A.shape[1] - m + 1

    P = np.empty((n_pairs, l), dtype=np.float64)
    I = np.empty((n_pairs, l), dtype=np.int64)

    for p in prange(n_pairs):
        a = A_idx[p]
        b = B_idx[p]
        P_p, I_p = _compute_PI(
            T_A[a],
            T_B[b],
            m,
            μ_Q[a],
            σ_Q[a],
            Q_subseq_isconstant[a],
            M_T[b],
            Σ_T[b],
            T_subseq_isconstant[b],
            QT[p],
            QT_first[p],
            excl_zone,
            ignore_trivial,
        )
        P[p, :] = P_p
        I[p, :] = I_p

    return P, I


def _gpu_stomp_pairs(
    T_A,
    T_B,
    m,
    μ_Q,
    σ_Q,
    Q_subseq_isconstant,
    M_T,
    Σ_T,
    T_subseq_isconstant,
    A_idx,
    B_idx,
    excl_zone,
    ignore_trivial,
    context,
):
    """
    Compute the matrix profile of every pair on the context's CUDA device

    Parameters
    ----------
    See `_stomp`. `context` is the compute context that owns the device.

    Returns
    -------
    P : numpy.ndarray
        Matrix profile of each pair, one per row

    I : numpy.ndarray
        Matrix profile indices of each pair, one per row
    """
    from .gpu_stomp import _gpu_stomp, _gpu_stomp_nbytes

    context.check_device_memory(_gpu_stomp_nbytes(T_A.shape[1], T_B.shape[1], m))

    l = T_A.shape[1] - m + 1
    P = np.empty((A_idx.shape[0], l), dtype=np.float64)
    I = np.empty((A_idx.shape[0], l), dtype=np.int64)
    for p, (a, b) in enumerate(zip(A_idx, B_idx)):
        P[p], I[p] = _gpu_stomp(
            T_A[a],
            T_B[b],
            m,
            μ_Q[a],
            σ_Q[a],
            Q_subseq_isconstant[a],
            M_T[b],
            Σ_T[b],
            T_subseq_isconstant[b],
            excl_zone,
            ignore_trivial,
            device_id=context.get_device_id(),
        )

    return P, I


def stomp(T_A, m, T_B=None, excl_zone=None, context=None):
    """
    Compute the z-normalized matrix profile with the STOMP algorithm

    When ``T_B`` is ``None`` this computes the self-join of every time series in
    ``T_A``, ignoring trivial matches inside the exclusion zone. Otherwise, every
    time series in ``T_A`` is annotated with its nearest neighbors in every time
    series in ``T_B`` (AB-join) and no exclusion zone is applied.

    Parameters
    ----------
    T_A : numpy.ndarray
        The time series or sequence for which to compute the matrix profile. A 2-D
        array holds one independent time series per row.

    m : int
        Window size

    T_B : numpy.ndarray, default None
        The time series or sequence that will be used to annotate ``T_A``. For every
        subsequence in ``T_A``, its nearest neighbor in ``T_B`` will be recorded.
        A 2-D array holds one independent time series per row.

    excl_zone : int, default None
        The half width of the exclusion zone for self-joins. Subsequences ``j``
        with ``|i - j| <= excl_zone`` are never reported as the nearest neighbor of
        subsequence ``i``. ``None`` selects
        ``ceil(m / config.TSMATRIX_EXCL_ZONE_DENOM)``. Ignored for AB-joins.

    context : Context, default None
        The compute context. ``None`` selects the CPU backend.

    Returns
    -------
    P : numpy.ndarray
        The matrix profile. Self-join: shape ``(n_series, l)``. AB-join: shape
        ``(n_B_series, n_A_series, l)``, where ``l = T_A.shape[-1] - m + 1``. The
        series axis of a 1-D input is dropped. Subsequences without any finite
        nearest neighbor have a value of ``np.inf``.

    I : numpy.ndarray
        The matrix profile indices, with the same shape as ``P``. Missing nearest
        neighbors are marked with ``-1``.

    Raises
    ------
    InvalidWindow
        If ``m < 2`` or ``m`` exceeds the length of either time series

    DimensionMismatch
        If ``T_A`` or ``T_B`` has more than two dimensions

    See Also
    --------
    tsmatrix.find_best_n_motifs : Extract the best motifs from a matrix profile
    tsmatrix.find_best_n_discords : Extract the best discords from a matrix profile

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0085 \
    <https://www.cs.ucr.edu/~eamonn/STOMP_GPU_final_submission_camera_ready.pdf>`__

    See Table II

    Unlike STAMP where the exclusion zone is m/2, the default exclusion zone for
    STOMP is m/4 (See Definition 3 and Figure 3).

    Examples
    --------
    >>> import tsmatrix
    >>> import numpy as np
    >>> P, I = tsmatrix.stomp(np.array([584., -11., 23., 79., 1001., 0., -19.]), m=3)
    >>> I
    array([4, 3, 0, 1, 0])
    """
    context = backend.get_context(context)
    ignore_trivial = T_B is None

    if not ignore_trivial and core.are_arrays_equal(np.asarray(T_A), np.asarray(T_B)):
        logger.warning("Arrays T_A, T_B are equal, which implies a self-join.")
        logger.warning("Call `stomp(T_A, m)` to exclude trivial matches.")

    T_A, μ_Q, σ_Q, Q_subseq_isconstant = core.preprocess(T_A, m)
    T_A_ndim = T_A.ndim
    m = int(m)
    excl_zone = core.check_excl_zone(excl_zone, m)
    if ignore_trivial:
        core.check_window_size(
            m, max_size=T_A.shape[-1], n=T_A.shape[-1], excl_zone=excl_zone
        )
        T_B, M_T, Σ_T, T_subseq_isconstant = T_A, μ_Q, σ_Q, Q_subseq_isconstant
    else:
        T_B, M_T, Σ_T, T_subseq_isconstant = core.preprocess(T_B, m)
    T_B_ndim = T_B.ndim

    T_A = np.atleast_2d(T_A)
    μ_Q = np.atleast_2d(μ_Q)
    σ_Q = np.atleast_2d(σ_Q)
    Q_subseq_isconstant = np.atleast_2d(Q_subseq_isconstant)
    T_B = np.atleast_2d(T_B)
    M_T = np.atleast_2d(M_T)
    Σ_T = np.atleast_2d(Σ_T)
    T_subseq_isconstant = np.atleast_2d(T_subseq_isconstant)

    n_A_series = T_A.shape[0]
    n_B_series = T_B.shape[0]
    l = T_A.shape[1] - m + 1

    if ignore_trivial:
        A_idx = np.arange(n_A_series, dtype=np.int64)
        B_idx = A_idx.copy()
    else:
        A_idx = np.tile(np.arange(n_A_series, dtype=np.int64), n_B_series)
        B_idx = np.repeat(np.arange(n_B_series, dtype=np.int64), n_A_series)

    if context.backend == backend.Backend.CUDA:
        with context:
            P, I = _gpu_stomp_pairs(
                T_A,
                T_B,
                m,
                μ_Q,
                σ_Q,
                Q_subseq_isconstant,
                M_T,
                Σ_T,
                T_subseq_isconstant,
                A_idx,
                B_idx,
                excl_zone,
                ignore_trivial,
                context,
            )
    else:
        QT = core.sliding_dot_product(T_A[A_idx, :m], T_B[B_idx])
        QT_first = core.sliding_dot_product(T_B[B_idx, :m], T_A[A_idx])
        P, I = _stomp(
            T_A,
            T_B,
            m,
            μ_Q,
            σ_Q,
            Q_subseq_isconstant,
            M_T,
            Σ_T,
            T_subseq_isconstant,
            np.ascontiguousarray(QT),
            np.ascontiguousarray(QT_first),
            A_idx,
            B_idx,
            excl_zone,
            ignore_trivial,
        )

    if ignore_trivial:
        if T_A_ndim == 1:
            P, I = P[0], I[0]
    else:
        P = P.reshape(n_B_series, n_A_series, l)
        I = I.reshape(n_B_series, n_A_series, l)
        if T_A_ndim == 1:
            P, I = P[:, 0], I[:, 0]
        if T_B_ndim == 1:
            P, I = P[0], I[0]

    return P, I
