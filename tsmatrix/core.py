# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.  # noqa: E501
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import math
import warnings

import numpy as np
from numba import njit, prange
from scipy.signal import fftconvolve

from . import config


class InvalidWindow(ValueError):
    """
    Raised when the window size is out of range relative to the length of the
    time series (or query) that it is applied to
    """


class DimensionMismatch(ValueError):
    """
    Raised when paired input arrays have incompatible shapes or an input array
    has an unsupported number of dimensions
    """


class DegenerateQuery(UserWarning):
    """
    Issued when a query subsequence has zero variance. Distances are still
    returned and follow the constant subsequence convention (see
    `core._calculate_squared_distance`)
    """


class InsufficientData(UserWarning):
    """
    Issued when fewer than the requested number of extrema could be extracted.
    The result is shorter than requested rather than an error.
    """


def check_dtype(a, dtype=np.float64):
    """
    Check if the array type of `a` is of type specified by `dtype` parameter.

    Parameters
    ----------
    a : numpy.ndarray
        NumPy array

    dtype : dtype, default np.float64
        NumPy `dtype`

    Returns
    -------
    None

    Raises
    ------
    TypeError
        If the array type does not match `dtype`
    """
    if dtype is int:
        dtype = np.int64
    if dtype is float:
        dtype = np.float64
    if dtype is bool:
        dtype = np.bool_
    if not np.issubdtype(a.dtype, dtype):
        msg = f"{dtype} dtype expected but found {a.dtype} in input array\n"
        msg += "Please change your input `dtype` with `.astype(dtype)`"
        raise TypeError(msg)

    return True


def are_arrays_equal(a, b):
    """
    Check if two arrays are equal; first by comparing memory addresses,
    and secondly by their values.

    Parameters
    ----------
    a : numpy.ndarray
        NumPy array

    b : numpy.ndarray
        NumPy array

    Returns
    -------
    output : bool
        This is `True` if the arrays are equal and `False` otherwise.
    """
    if id(a) == id(b):
        return True

    if a.shape != b.shape:
        return False

    return bool(((a == b) | (np.isnan(a) & np.isnan(b))).all())


def get_excl_zone(m):
    """
    Get the default exclusion zone half-width for a window size `m`

    Parameters
    ----------
    m : int
        Window size

    Returns
    -------
    excl_zone : int
        `ceil(m / config.TSMATRIX_EXCL_ZONE_DENOM)`
    """
    return int(math.ceil(m / config.TSMATRIX_EXCL_ZONE_DENOM))


def check_excl_zone(excl_zone, m):
    """
    Return a validated exclusion zone, falling back to the default for `m`

    Parameters
    ----------
    excl_zone : int or None
        The requested exclusion zone half-width. `None` selects the default.

    m : int
        Window size

    Returns
    -------
    excl_zone : int
        A non-negative exclusion zone half-width
    """
    if excl_zone is None:
        return get_excl_zone(m)

    if int(excl_zone) != excl_zone or excl_zone < 0:
        raise ValueError(
            f"The exclusion zone must be a non-negative integer. Found {excl_zone}"
        )

    return int(excl_zone)


def check_window_size(m, max_size=None, n=None, excl_zone=None):
    """
    Check the window size and ensure that it is greater than or equal to 2 and, if
    ``max_size`` is provided, ensure that the window size is less than or equal to
    the ``max_size``. Furthermore, if ``n`` is provided, then a self-join is assumed
    and it checks whether all subsequences have at least one non-trivial neighbor.

    Parameters
    ----------
    m : int
        Window size

    max_size : int, default None
        The maximum window size allowed

    n : int, default None
        The length of the time series in the case of a self-join.
        ``n`` should not be supplied (or set to ``None``) in the case of an AB-join.

    excl_zone : int, default None
        The exclusion zone half-width used for the self-join. `None` selects the
        default for `m` (see `core.get_excl_zone`).

    Returns
    -------
    None

    Raises
    ------
    InvalidWindow
        If ``m < 2`` or ``m > max_size``
    """
    if int(m) != m:
        raise InvalidWindow(f"The window size must be an integer. Found {m}")

    if m < 2:
        raise InvalidWindow(
            "All window sizes must be greater than or equal to two. "
            + "A window of one sample has a standard deviation of zero and "
            + "cannot be z-normalized."
        )

    if max_size is not None and m > max_size:
        raise InvalidWindow(
            f"The window size must be less than or equal to {max_size}. Found {m}"
        )

    if n is not None:
        # The central-most subsequence has its farthest neighbor `l // 2`
        # positions away. If that neighbor falls inside the exclusion zone then
        # at least one subsequence has no non-trivial neighbor at all.
        if excl_zone is None:
            excl_zone = get_excl_zone(m)
        l = n - m + 1
        if l // 2 <= excl_zone:
            msg = (
                f"The window size, 'm = {m}', may be too large and could lead to "
                + "meaningless results. Consider reducing 'm' where necessary"
            )
            warnings.warn(msg)


def check_ndim(a, max_ndim=2):
    """
    Check that `a` has at least one and at most `max_ndim` dimensions

    Parameters
    ----------
    a : numpy.ndarray
        NumPy array

    max_ndim : int, default 2
        The maximum number of dimensions allowed

    Returns
    -------
    None

    Raises
    ------
    DimensionMismatch
        If `a` is a scalar or has more than `max_ndim` dimensions
    """
    if a.ndim < 1 or a.ndim > max_ndim:
        raise DimensionMismatch(
            f"Input array is {a.ndim}-dimensional but must have between 1 and "
            + f"{max_ndim} dimensions (rows are independent time series)"
        )


@njit(fastmath=config.TSMATRIX_FASTMATH_TRUE)
def _sliding_dot_product(Q, T):
    """
    A Numba JIT-compiled implementation of the sliding window dot product.

    Parameters
    ----------
    Q : numpy.ndarray
        Query array or subsequence

    T : numpy.ndarray
        Time series or sequence

    Returns
    -------
    out : numpy.ndarray
        Sliding dot product between `Q` and `T`.
    """
    m = Q.shape[0]
    l = T.shape[0] - m + 1
    out = np.empty(l)
    for i in range(l):
        out[i] = np.dot(Q, T[i : i + m])

    return out


def sliding_dot_product(Q, T):
    """
    Use FFT convolution to calculate the sliding window dot product along the
    last axis.

    Parameters
    ----------
    Q : numpy.ndarray
        Query array or subsequence. Leading axes must broadcast against `T`.

    T : numpy.ndarray
        Time series or sequence

    Returns
    -------
    output : numpy.ndarray
        Sliding dot product between `Q` and `T` with shape
        ``broadcast(Q.shape[:-1], T.shape[:-1]) + (n - m + 1,)``

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0179 \
    <https://www.cs.ucr.edu/~eamonn/PID4481997_extend_Matrix%20Profile_I.pdf>`__

    See Table I, Figure 4

    Following the inverse FFT, Fig. 4 states that only cells [m-1:n]
    contain valid dot products

    Padding is done automatically in fftconvolve step
    """
    n = T.shape[-1]
    m = Q.shape[-1]
    Qr = np.flip(Q, axis=-1)  # Reverse/flip Q
    QT = fftconvolve(Qr, T, axes=-1)

    return QT[..., m - 1 : n]


def rolling_isfinite(a, w):
    """
    Compute the rolling `isfinite` along the last axis of `a`

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    output : numpy.ndarray
        Rolling window `isfinite`. A window is `True` only when all of its
        values are finite.
    """
    a_isfinite = np.isfinite(a)
    n = a.shape[-1]
    count = np.zeros(a.shape[:-1] + (n + 1,), dtype=np.int64)
    np.cumsum(~a_isfinite, axis=-1, out=count[..., 1:])

    return (count[..., w:] - count[..., : n - w + 1]) == 0


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _rolling_isconstant(a, w):
    """
    Compute the rolling isconstant for 1-D array.

    This is accomplished by comparing the min and max within each window and
    assigning `True` when the min and max are equal and `False` otherwise. If
    a subsequence contains at least one NaN, then the subsequence is not constant.

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    output : numpy.ndarray
        Rolling window isconstant.
    """
    l = a.shape[0] - w + 1
    out = np.empty(l, dtype=np.bool_)
    for i in range(l):
        out[i] = np.ptp(a[i : i + w]) == 0

    return out


def rolling_isconstant(a, w):
    """
    Compute the rolling isconstant for 1-D and 2-D arrays (along the last axis).

    Parameters
    ----------
    a : numpy.ndarray
        The input array

    w : int
        The rolling window size

    Returns
    -------
    a_subseq_isconstant : numpy.ndarray
        Rolling window isconstant
    """
    axis = a.ndim - 1
    a_subseq_isconstant = np.apply_along_axis(
        lambda a_row, w: _rolling_isconstant(a_row, w), axis=axis, arr=a, w=w
    )

    return np.logical_and(a_subseq_isconstant, rolling_isfinite(a, w))


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _welford_nanvar(a, w, a_subseq_isfinite, recenter_ratio):
    """
    Compute the rolling variance for a 1-D array using a modified version of
    Welford's algorithm.

    The running mean and variance are recomputed exactly from the window itself
    at the start of every block of `w` windows, after every non-finite window,
    and whenever the running variance falls below `recenter_ratio` times the
    largest variance seen since the last exact window. Rolling errors are
    proportional to that largest variance so this bounds the relative error
    while keeping the total cost linear in the length of `a`.

    Parameters
    ----------
    a : numpy.ndarray
        The input array. Non-finite values must already be replaced.

    w : int
        The rolling window size

    a_subseq_isfinite : numpy.ndarray
        A boolean array that describes whether each subequence of length `w` within
        `a` is finite.

    recenter_ratio : float
        The relative drop in variance that triggers an exact recomputation

    Returns
    -------
    all_variances : numpy.ndarray
        Rolling window variance. Windows that are not finite have a variance of
        zero.
    """
    l = a.shape[0] - w + 1
    all_variances = np.zeros(l, dtype=np.float64)
    prev_mean = 0.0
    prev_var = 0.0
    peak_var = 0.0

    for start_idx in range(l):
        if not a_subseq_isfinite[start_idx]:
            continue

        prev_start_idx = start_idx - 1
        stop_idx = start_idx + w  # Exclusive index value
        last_idx = start_idx + w - 1  # Last inclusive index value

        if start_idx % w == 0 or not a_subseq_isfinite[prev_start_idx]:
            curr_mean = np.mean(a[start_idx:stop_idx])
            curr_var = np.var(a[start_idx:stop_idx])
            peak_var = curr_var
        else:
            curr_mean = prev_mean + (a[last_idx] - a[prev_start_idx]) / w
            curr_var = (
                prev_var
                + (a[last_idx] - a[prev_start_idx])
                * (a[last_idx] - curr_mean + a[prev_start_idx] - prev_mean)
                / w
            )
            peak_var = max(peak_var, curr_var)
            if curr_var < peak_var * recenter_ratio:
                curr_mean = np.mean(a[start_idx:stop_idx])
                curr_var = np.var(a[start_idx:stop_idx])
                peak_var = curr_var

        all_variances[start_idx] = max(curr_var, 0.0)

        prev_mean = curr_mean
        prev_var = curr_var

    return all_variances


@njit(parallel=True, fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _rolling_nanvar(a, w, a_subseq_isfinite, recenter_ratio):
    """
    Apply `_welford_nanvar` to every row of a 2-D array in parallel
    """
    out = np.empty((a.shape[0], a.shape[1] - w + 1), dtype=np.float64)
    for row in prange(a.shape[0]):
        out[row] = _welford_nanvar(a[row], w, a_subseq_isfinite[row], recenter_ratio)

    return out


def compute_mean_std(T, m):
    """
    Compute the sliding mean and standard deviation for the array `T` with
    a window size of `m`

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence. The sliding window moves along the last axis.

    m : int
        Window size

    Returns
    -------
    M_T : numpy.ndarray
        Sliding mean. All windows containing a nan/inf value have a mean of np.inf

    Σ_T : numpy.ndarray
        Sliding standard deviation. All windows containing a nan/inf value have a
        standard deviation of zero.

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0179 \
    <https://www.cs.ucr.edu/~eamonn/PID4481997_extend_Matrix%20Profile_I.pdf>`__

    See Table II

    DOI: 10.1145/2339530.2339576

    See Page 4

    The sliding mean comes from a single cumulative sum over each row after it
    is shifted by its (finite) mean. The variance is carried from window to
    window with Welford's update (see `core._welford_nanvar`) rather than
    differenced from a cumulative sum of squares, which cancels catastrophically
    wherever the variance of a window is small next to the scale of the series.
    """
    T = np.asarray(T, dtype=np.float64)
    n = T.shape[-1]
    l = n - m + 1

    T_isfinite = np.isfinite(T)
    T_subseq_isfinite = rolling_isfinite(T, m)

    T_finite = np.where(T_isfinite, T, 0.0)
    count = T_isfinite.sum(axis=-1, keepdims=True)
    shift = np.zeros(T.shape[:-1] + (1,), dtype=np.float64)
    np.divide(T_finite.sum(axis=-1, keepdims=True), count, out=shift, where=count > 0)
    T_shifted = np.where(T_isfinite, T_finite - shift, 0.0)

    cumsum_T = np.zeros(T.shape[:-1] + (n + 1,), dtype=np.float64)
    np.cumsum(T_shifted, axis=-1, out=cumsum_T[..., 1:])
    M_T = (cumsum_T[..., m:] - cumsum_T[..., :l]) / m + shift

    Σ_T_squared = _rolling_nanvar(
        np.atleast_2d(T_finite),
        m,
        np.atleast_2d(T_subseq_isfinite),
        config.TSMATRIX_VAR_RECENTER_RATIO,
    ).reshape(M_T.shape)
    Σ_T = np.sqrt(Σ_T_squared)

    M_T[~T_subseq_isfinite] = np.inf
    Σ_T[~T_subseq_isfinite] = 0

    return M_T, Σ_T


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _calculate_squared_distance(
    m, QT, μ_Q, σ_Q, M_T, Σ_T, Q_subseq_isconstant, T_subseq_isconstant
):
    """
    Compute a single squared distance given all scalar inputs.

    Parameters
    ----------
    m : int
        Window size

    QT : float
        Pre-computed dot product between `Q` and the ith subsequence in `T`, each with
        length `m`

    μ_Q : float
        Mean of `Q`

    σ_Q : float
        Standard deviation of `Q`

    M_T : float
        Mean of the ith subsequence in `T`

    Σ_T : float
        Standard deviation of the ith subsequence in `T`

    Q_subseq_isconstant : bool
        A boolean value that indicates whether the subsequence `Q` is constant (True)

    T_subseq_isconstant : bool
        A boolean value that indicates whether the ith subsequence in `T` is
        constant (True)

    Returns
    -------
    D_squared : float
        Squared distance

    Notes
    -----
    `DOI: 10.1109/ICDM.2016.0179 \
    <https://www.cs.ucr.edu/~eamonn/PID4481997_extend_Matrix%20Profile_I.pdf>`__

    See Equation on Page 4

    Constant subsequences have no z-normalized form. Two constant subsequences
    are at a distance of zero while a constant subsequence and a non-constant
    subsequence are at the maximal z-normalized distance, `2 * sqrt(m)`, which
    corresponds to a Pearson correlation of -1.
    """
    if np.isinf(M_T) or np.isinf(μ_Q):
        D_squared = np.inf
    elif Q_subseq_isconstant and T_subseq_isconstant:
        D_squared = 0.0
    elif Q_subseq_isconstant or T_subseq_isconstant:
        D_squared = 4.0 * m
    else:
        denom = (σ_Q * Σ_T) * m
        denom = max(denom, config.TSMATRIX_DENOM_THRESHOLD)

        ρ = (QT - (μ_Q * M_T) * m) / denom
        ρ = min(max(ρ, -1.0), 1.0)

        D_squared = max(2 * m * (1.0 - ρ), 0.0)

    return D_squared


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _calculate_squared_distance_profile(
    m, QT, μ_Q, σ_Q, M_T, Σ_T, Q_subseq_isconstant, T_subseq_isconstant
):
    """
    Compute the squared distance profile

    Parameters
    ----------
    m : int
        Window size

    QT : numpy.ndarray
        Dot product between `Q` and `T`

    μ_Q : float
        Mean of `Q`

    σ_Q : float
        Standard deviation of `Q`

    M_T : numpy.ndarray
        Sliding mean of `T`

    Σ_T : numpy.ndarray
        Sliding standard deviation of `T`

    Q_subseq_isconstant : bool
        A boolean value that indicates whether the subsequence `Q` is constant (True)

    T_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in `T` is constant (True)

    Returns
    -------
    D_squared : numpy.ndarray
        Squared distance profile
    """
    k = M_T.shape[0]
    D_squared = np.empty(k, dtype=np.float64)

    for i in range(k):
        D_squared[i] = _calculate_squared_distance(
            m,
            QT[i],
            μ_Q,
            σ_Q,
            M_T[i],
            Σ_T[i],
            Q_subseq_isconstant,
            T_subseq_isconstant[i],
        )

    return D_squared


@njit(fastmath=config.TSMATRIX_FASTMATH_FLAGS)
def _apply_exclusion_zone(a, idx, excl_zone, val):
    """
    Apply an exclusion zone to an array (inplace), i.e. set all values
    to `val` in a window around a given index.

    All values in a in [idx - excl_zone, idx + excl_zone] (endpoints included)
    will be set to `val`.

    Parameters
    ----------
    a : numpy.ndarray
        The array you want to apply the exclusion zone to

    idx : int
        The index around which the window should be centered

    excl_zone : int
        Size of the exclusion zone.

    val : float or bool
        The elements within the exclusion zone will be set to this value

    Returns
    -------
    None
    """
    zone_start = max(0, idx - excl_zone)
    zone_stop = min(a.shape[-1], idx + excl_zone)
    a[..., zone_start : zone_stop + 1] = val


def _preprocess(T, copy=True):
    """
    Creates a copy of the time series when `copy` is True, converts to
    `numpy.ndarray`, and checks the `dtype` and the number of dimensions

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence

    copy : bool, default True
        A boolean value that indicates whether the process should be done on
        input `T` (False) or its copy (True).

    Returns
    -------
    T : numpy.ndarray
        Modified time series
    """
    T = np.array(T, copy=True) if copy else np.asarray(T)
    check_dtype(T)
    check_ndim(T)

    return T


def preprocess(T, m, copy=True):
    """
    Creates a copy of the time series where all NaN and inf values
    are replaced with zero. Also computes mean and standard deviation
    for every subsequence. Every subsequence that contains at least
    one NaN or inf value, will have a mean of np.inf and a standard deviation
    of zero (see `core.compute_mean_std`). Also, compute the rolling
    isconstant, a boolean array that indicates if a subsequence is
    constant (True) or False. A subsequence is constant if it contains
    finite values that are identical.

    Parameters
    ----------
    T : numpy.ndarray
        Time series or sequence

    m : int
        Window size

    copy : bool, default True
        A boolean value that indicates whether the process should be done on
        input `T` (False) or its copy (True).

    Returns
    -------
    T : numpy.ndarray
        Modified time series

    M_T : numpy.ndarray
        Rolling mean

    Σ_T : numpy.ndarray
        Rolling standard deviation

    T_subseq_isconstant : numpy.ndarray
        A boolean array that indicates whether a subsequence in `T`
        is constant (True)
    """
    T = _preprocess(T, copy)
    check_window_size(m, max_size=T.shape[-1])

    T[np.isinf(T)] = np.nan

    T_subseq_isconstant = rolling_isconstant(T, m)
    M_T, Σ_T = compute_mean_std(T, m)
    T[np.isnan(T)] = 0

    return T, M_T, Σ_T, T_subseq_isconstant
