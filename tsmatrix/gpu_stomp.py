# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.
import math

import numpy as np
from numba import cuda

from . import config, core


@cuda.jit(
    "(i8, f8[:], f8[:], i8, f8[:], f8[:], f8[:], f8[:], f8[:], f8[:], f8[:],"
    "b1[:], b1[:], b1, i8, f8[:], i8[:], b1)"
)
def _compute_and_update_PI_kernel(
    j,
    T_A,
    T_B,
    m,
    QT_even,
    QT_odd,
    QT_first,
    μ_Q,
    σ_Q,
    M_T,
    Σ_T,
    Q_subseq_isconstant,
    T_subseq_isconstant,
    ignore_trivial,
    excl_zone,
    profile,
    indices,
    compute_QT,
):
    """
    A Numba CUDA kernel to update the matrix profile and matrix profile indices
    with the distances to the `j`th subsequence of `T_B`

    Parameters
    ----------
    j : int
        The index of the subsequence in `T_B`

    T_A : numpy.ndarray
        The time series or sequence for which to compute the matrix profile

    T_B : numpy.ndarray
        The time series or sequence that will be used to annotate `T_A`

    m : int
        Window size

    QT_even : numpy.ndarray
        The QT array (dot product between every subsequence of `T_A` and the
        `j`th subsequence of `T_B`) that is written when `j` is even

    QT_odd : numpy.ndarray
        The QT array that is written when `j` is odd

    QT_first : numpy.ndarray
        Dot product between `T_A[:m]` and every subsequence of `T_B`

    μ_Q : numpy.ndarray
        Sliding mean of `T_A`

    σ_Q : numpy.ndarray
        Sliding standard deviation of `T_A`

    M_T : numpy.ndarray
        Sliding mean of `T_B`

    Σ_T : numpy.ndarray
        Sliding standard deviation of `T_B`

    Q_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in `T_A` is constant

    T_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in `T_B` is constant

    ignore_trivial : bool
        Set to `True` if this is a self-join

    excl_zone : int
        The half width for the exclusion zone

    profile : numpy.ndarray
        The squared matrix profile

    indices : numpy.ndarray
        The matrix profile indices

    compute_QT : bool
        A boolean flag for whether or not to compute QT

    Returns
    -------
    None

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0085 \
    <https://www.cs.ucr.edu/~eamonn/STOMP_GPU_final_submission_camera_ready.pdf>`__

    See Table II, Figure 5, and Figure 6
    """
    start = cuda.grid(1)
    stride = cuda.gridsize(1)

    if j % 2 == 0:
        QT_out = QT_even
        QT_in = QT_odd
    else:
        QT_out = QT_odd
        QT_in = QT_even

    for i in range(start, QT_out.shape[0], stride):
        if compute_QT:
            if i == 0:
                QT_out[0] = QT_first[j]
            else:
                QT_out[i] = (
                    QT_in[i - 1]
                    - T_A[i - 1] * T_B[j - 1]
                    + T_A[i + m - 1] * T_B[j + m - 1]
                )

        if math.isinf(μ_Q[i]) or math.isinf(M_T[j]):
            p_norm = np.inf
        elif Q_subseq_isconstant[i] and T_subseq_isconstant[j]:
            p_norm = 0.0
        elif Q_subseq_isconstant[i] or T_subseq_isconstant[j]:
            p_norm = 4.0 * m
        else:
            denom = (σ_Q[i] * Σ_T[j]) * m
            denom = max(denom, config.TSMATRIX_DENOM_THRESHOLD)
            ρ = (QT_out[i] - (μ_Q[i] * M_T[j]) * m) / denom
            ρ = min(max(ρ, -1.0), 1.0)
            p_norm = max(2 * m * (1.0 - ρ), 0.0)

        if ignore_trivial and abs(i - j) <= excl_zone:
            p_norm = np.inf

        if p_norm < profile[i]:
            profile[i] = p_norm
            indices[i] = j


def _gpu_stomp_nbytes(n_A, n_B, m):
    """
    Estimate the device memory claimed by `_gpu_stomp` for one pair

    Parameters
    ----------
    n_A : int
        The length of `T_A`

    n_B : int
        The length of `T_B`

    m : int
        Window size

    Returns
    -------
    nbytes : int
        The number of bytes
    """
    l_A = n_A - m + 1
    l_B = n_B - m + 1
    itemsize = np.dtype(np.float64).itemsize

    # T_A, T_B, QT_even, QT_odd, QT_first, four sliding statistics and
    # the profile/indices pair, plus one byte per isconstant flag
    n_items = n_A + n_B + 2 * l_A + l_B + 2 * (l_A + l_B) + 2 * l_A

    return n_items * itemsize + (l_A + l_B)


def _gpu_stomp(
    T_A,
    T_B,
    m,
    μ_Q,
    σ_Q,
    Q_subseq_isconstant,
    M_T,
    Σ_T,
    T_subseq_isconstant,
    excl_zone,
    ignore_trivial=True,
    device_id=0,
):
    """
    A Numba CUDA version of STOMP for the computation of the matrix profile and
    matrix profile indices of a single pair of (preprocessed) time series

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

    excl_zone : int
        The half width for the exclusion zone

    ignore_trivial : bool, default True
        Set to `True` if this is a self-join. Otherwise, for AB-join, set this to
        `False`.

    device_id : int, default 0
        The (GPU) device number to use

    Returns
    -------
    profile : numpy.ndarray
        Matrix profile

    indices : numpy.ndarray
        Matrix profile indices

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0085 \
    <https://www.cs.ucr.edu/~eamonn/STOMP_GPU_final_submission_camera_ready.pdf>`__

    See Table II, Figure 5, and Figure 6

    Each kernel launch handles one subsequence of `T_B` and every thread owns one
    subsequence of `T_A`. Consecutive launches alternate between two QT buffers
    so that the dot products of the previous launch remain readable.
    """
    l_A = T_A.shape[0] - m + 1
    l_B = T_B.shape[0] - m + 1

    QT = core.sliding_dot_product(T_B[:m], T_A)
    QT_first = core.sliding_dot_product(T_A[:m], T_B)

    threads_per_block = config.TSMATRIX_THREADS_PER_BLOCK
    blocks_per_grid = math.ceil(l_A / threads_per_block)

    with cuda.gpus[device_id]:
        device_T_A = cuda.to_device(np.ascontiguousarray(T_A))
        device_T_B = cuda.to_device(np.ascontiguousarray(T_B))
        device_QT_even = cuda.to_device(QT)
        device_QT_odd = cuda.to_device(QT)
        device_QT_first = cuda.to_device(QT_first)
        device_μ_Q = cuda.to_device(np.ascontiguousarray(μ_Q))
        device_σ_Q = cuda.to_device(np.ascontiguousarray(σ_Q))
        device_M_T = cuda.to_device(np.ascontiguousarray(M_T))
        device_Σ_T = cuda.to_device(np.ascontiguousarray(Σ_T))
        device_Q_subseq_isconstant = cuda.to_device(
            np.ascontiguousarray(Q_subseq_isconstant)
        )
        device_T_subseq_isconstant = cuda.to_device(
            np.ascontiguousarray(T_subseq_isconstant)
        )

        device_profile = cuda.to_device(np.full(l_A, np.inf, dtype=np.float64))
        device_indices = cuda.to_device(np.full(l_A, -1, dtype=np.int64))

        for j in range(l_B):
            _compute_and_update_PI_kernel[blocks_per_grid, threads_per_block](
                j,
                device_T_A,
                device_T_B,
                m,
                device_QT_even,
                device_QT_odd,
                device_QT_first,
                device_μ_Q,
                device_σ_Q,
                device_M_T,
                device_Σ_T,
                device_Q_subseq_isconstant,
                device_T_subseq_isconstant,
                ignore_trivial,
                excl_zone,
                device_profile,
                device_indices,
                j > 0,
            )

        profile = device_profile.copy_to_host()
        indices = device_indices.copy_to_host()

    profile[:] = np.sqrt(profile)

    return profile, indices
