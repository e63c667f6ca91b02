# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

from . import core, topk


def _find_best_n(P, I, m, n, self_join, excl_zone, maximize):
    """
    Extract the best `n` minima or maxima from a matrix profile

    Parameters
    ----------
    P : numpy.ndarray
        Matrix profile

    I : numpy.ndarray
        Matrix profile indices

    m : int
        Window size used to compute the matrix profile

    n : int
        The number of extrema to extract

    self_join : bool
        `True` if the matrix profile comes from a self-join

    excl_zone : int
        The half width of the exclusion zone. `None` selects the default for `m`.

    maximize : bool
        Extract maxima (discords) instead of minima (motifs)

    Returns
    -------
    distances : numpy.ndarray
        The extracted matrix profile values

    indices : numpy.ndarray
        The positions of the extracted values

    subseq_indices : numpy.ndarray
        The matrix profile indices at these positions
    """
    core.check_window_size(m)
    excl_zone = core.check_excl_zone(excl_zone, m)

    return topk.select_extrema(
        P, I, n, excl_zone, maximize=maximize, self_join=self_join
    )


def find_best_n_motifs(P, I, m, n, self_join=False, excl_zone=None):
    """
    Extract the best ``n`` motifs from a previously computed matrix profile

    Parameters
    ----------
    P : numpy.ndarray
        The matrix profile. Motifs are searched for along the last axis and all
        leading axes are independent batch axes (see ``tsmatrix.stomp``).

    I : numpy.ndarray
        The matrix profile indices

    m : int
        Window size used to compute the matrix profile

    n : int
        The number of motifs to extract

    self_join : bool, default False
        ``True`` if the matrix profile comes from a self-join. The neighborhood of
        the matching subsequence of every motif is then excluded as well so that
        the mirrored pair is not reported as another motif.

    excl_zone : int, default None
        The half width of the exclusion zone around every motif. ``None`` selects
        ``ceil(m / config.TSMATRIX_EXCL_ZONE_DENOM)``.

    Returns
    -------
    motif_distances : numpy.ndarray
        The matrix profile values of the motifs in ascending order

    motif_indices : numpy.ndarray
        The positions of the motifs in the profiled time series

    subseq_indices : numpy.ndarray
        The positions of the nearest neighbor of every motif (the other member of
        the motif pair)

    See Also
    --------
    tsmatrix.find_best_n_discords : Extract the best discords

    Examples
    --------
    >>> import tsmatrix
    >>> import numpy as np
    >>> P, I = tsmatrix.stomp(np.array([584., -11., 23., 79., 1001., 0., -19.]), m=3)
    >>> motif_distances, motif_indices, subseq_indices = tsmatrix.find_best_n_motifs(
    ...     P, I, m=3, n=1, self_join=True)
    >>> np.round(motif_distances, 3)
    array([0.116])
    """
    return _find_best_n(P, I, m, n, self_join, excl_zone, maximize=False)


def find_best_n_discords(P, I, m, n, self_join=False, excl_zone=None):
    """
    Extract the best ``n`` discords from a previously computed matrix profile

    Parameters
    ----------
    P : numpy.ndarray
        The matrix profile. Discords are searched for along the last axis and all
        leading axes are independent batch axes (see ``tsmatrix.stomp``).

    I : numpy.ndarray
        The matrix profile indices

    m : int
        Window size used to compute the matrix profile

    n : int
        The number of discords to extract

    self_join : bool, default False
        ``True`` if the matrix profile comes from a self-join. The neighborhood of
        the nearest neighbor of every discord is then excluded as well.

    excl_zone : int, default None
        The half width of the exclusion zone around every discord. ``None``
        selects ``ceil(m / config.TSMATRIX_EXCL_ZONE_DENOM)``.

    Returns
    -------
    discord_distances : numpy.ndarray
        The matrix profile values of the discords in descending order

    discord_indices : numpy.ndarray
        The positions of the discords in the profiled time series

    subseq_indices : numpy.ndarray
        The positions of the nearest neighbor of every discord

    See Also
    --------
    tsmatrix.find_best_n_motifs : Extract the best motifs

    Examples
    --------
    >>> import tsmatrix
    >>> import numpy as np
    >>> P, I = tsmatrix.stomp(np.array([584., -11., 23., 79., 1001., 0., -19.]), m=3)
    >>> tsmatrix.find_best_n_discords(P, I, m=3, n=1, self_join=True)[1]
    array([2])
    """
    return _find_best_n(P, I, m, n, self_join, excl_zone, maximize=True)
