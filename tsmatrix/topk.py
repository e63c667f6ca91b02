# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import warnings

import numpy as np
from numba import njit, prange

from . import config, core


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _select_extrema(
    P, I, n, excl_zone, maximize, self_join, distances, indices, subseq_indices
):
    """
    Iteratively extract the `n` best extrema of a single (matrix/distance) profile

    Parameters
    ----------
    P : numpy.ndarray
        The profile values

    I : numpy.ndarray
        The index of the subsequence that produced each value of `P`

    n : int
        The maximum number of extrema to extract

    excl_zone : int
        The half width of the exclusion zone applied around each extremum

    maximize : bool
        Extract maxima (`True`) or minima (`False`)

    self_join : bool
        When `True`, the exclusion zone is also applied around `I` of each
        extremum so that the mirrored pair is never reported

    distances : numpy.ndarray
        Output array for the extracted values (filled inplace)

    indices : numpy.ndarray
        Output array for the positions of the extracted values (filled inplace)

    subseq_indices : numpy.ndarray
        Output array for the values of `I` at these positions (filled inplace)

    Returns
    -------
    count : int
        The number of extrema that were found
    """
    l = P.shape[0]

    # Every excluded or non-finite position is set to `np.inf` and maxima are
    # searched for as the minima of the negated profile
    D = np.empty(l, dtype=np.float64)
    for i in range(l):
        if np.isfinite(P[i]):
            if maximize:
                D[i] = -P[i]
            else:
                D[i] = P[i]
        else:
            D[i] = np.inf

    count = 0
    for k in range(n):
        idx = np.argmin(D)
        if D[idx] == np.inf:
            break

        distances[k] = P[idx]
        indices[k] = idx
        subseq_indices[k] = I[idx]
        count += 1

        core._apply_exclusion_zone(D, idx, excl_zone, np.inf)
        if self_join and I[idx] >= 0 and I[idx] < l:
            core._apply_exclusion_zone(D, I[idx], excl_zone, np.inf)

    return count


@njit(parallel=True, fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _select_extrema_batch(P, I, n, excl_zone, maximize, self_join):
    """
    A Numba JIT-compiled and parallelized version of `_select_extrema` for a batch
    of independent profiles (one per row)

    Parameters
    ----------
    P : numpy.ndarray
        The profile values, one profile per row

    I : numpy.ndarray
        The index of the subsequence that produced each value of `P`

    n : int
        The maximum number of extrema to extract per row

    excl_zone : int
        The half width of the exclusion zone

    maximize : bool
        Extract maxima (`True`) or minima (`False`)

    self_join : bool
        Apply the exclusion zone around the mirrored index

    Returns
    -------
    distances : numpy.ndarray
        The extracted values, padded with `np.nan`

    indices : numpy.ndarray
        The positions of the extracted values, padded with `-1`

    subseq_indices : numpy.ndarray
        The values of `I` at these positions, padded with `-1`

    counts : numpy.ndarray
        The number of extrema found for each row
    """
    n_rows = P.shape[0]
    distances = np.full((n_rows, n), np.nan, dtype=np.float64)
    indices = np.full((n_rows, n), -1, dtype=np.int64)
    subseq_indices = np.full((n_rows, n), -1, dtype=np.int64)
    counts = np.zeros(n_rows, dtype=np.int64)

    for row in prange(n_rows):
        counts[row] = _select_extrema(
            P[row],
            I[row],
            n,
            excl_zone,
            maximize,
            self_join,
            distances[row],
            indices[row],
            subseq_indices[row],
        )

    return distances, indices, subseq_indices, counts


def select_extrema(P, I, n, excl_zone, maximize=False, self_join=False):
    """
    Extract the ``n`` best extrema of one or more profiles

    The best remaining value (the minimum, or the maximum when ``maximize`` is
    ``True``) is selected ``n`` times. After every selection, all positions within
    ``excl_zone`` of the selected position are excluded from further selection
    and, when ``self_join`` is ``True``, so are the positions within ``excl_zone``
    of its matching index ``I``. Non-finite values are never selected.

    Parameters
    ----------
    P : numpy.ndarray
        The profile values. The extrema are searched for along the last axis and
        all leading axes are independent batch axes.

    I : numpy.ndarray
        The index of the subsequence that produced each value of ``P``. It must have
        the same shape as ``P``.

    n : int
        The number of extrema to extract

    excl_zone : int
        The half width of the exclusion zone

    maximize : bool, default False
        Extract maxima (``True``) or minima (``False``)

    self_join : bool, default False
        Apply the exclusion zone around the mirrored index as well

    Returns
    -------
    distances : numpy.ndarray
        The extracted values with shape ``P.shape[:-1] + (k,)``. They are sorted
        in ascending order for minima and in descending order for maxima.

    indices : numpy.ndarray
        The positions of the extracted values

    subseq_indices : numpy.ndarray
        The values of ``I`` at these positions

    Notes
    -----
    ``k`` is the largest number of extrema found across all batch elements and
    ``k <= n``. An ``InsufficientData`` warning is issued whenever a batch element
    yields fewer than ``n`` extrema; its missing entries are padded with
    ``np.nan`` (values) and ``-1`` (indices).
    """
    P = np.asarray(P)
    I = np.asarray(I)
    core.check_dtype(P)
    core.check_dtype(I, dtype=np.integer)

    if P.ndim < 1 or P.shape != I.shape:
        raise core.DimensionMismatch(
            f"The profile has shape {P.shape} and the profile index has shape "
            + f"{I.shape}. They must be identical and at least 1-dimensional."
        )

    if int(n) != n or n < 1:
        raise ValueError(f"The number of extrema must be a positive integer. Found {n}")
    n = int(n)
    excl_zone = int(excl_zone)

    batch_shape = P.shape[:-1]
    l = P.shape[-1]
    P = np.ascontiguousarray(P.reshape(-1, l), dtype=np.float64)
    I = np.ascontiguousarray(I.reshape(-1, l), dtype=np.int64)

    if l == 0 or P.shape[0] == 0:
        distances = np.full((P.shape[0], 0), np.nan, dtype=np.float64)
        indices = np.full((P.shape[0], 0), -1, dtype=np.int64)
        subseq_indices = np.full((P.shape[0], 0), -1, dtype=np.int64)
        counts = np.zeros(P.shape[0], dtype=np.int64)
    else:
        # Every extremum excludes at least its own position
        n_max = min(n, l)
        distances, indices, subseq_indices, counts = _select_extrema_batch(
            P, I, n_max, excl_zone, maximize, self_join
        )

    if np.any(counts < n):
        msg = (
            f"Only {counts.min() if counts.size else 0} of the requested {n} extrema "
            + "could be extracted. Consider reducing `n` or the exclusion zone."
        )
        warnings.warn(msg, core.InsufficientData)

    k = int(counts.max()) if counts.size else 0
    out_shape = batch_shape + (k,)

    return (
        distances[:, :k].reshape(out_shape),
        indices[:, :k].reshape(out_shape),
        subseq_indices[:, :k].reshape(out_shape),
    )
