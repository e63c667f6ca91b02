import logging
import warnings

import naive
import numpy as np
import numpy.testing as npt
import pytest

import tsmatrix
from tsmatrix import config, core

test_data = [
    (
        np.array([9, 8100, -60, 7], dtype=np.float64),
        np.array([584, -11, 23, 79, 1001, 0, -19], dtype=np.float64),
    ),
    (
        np.random.uniform(-1000, 1000, [8]).astype(np.float64),
        np.random.uniform(-1000, 1000, [64]).astype(np.float64),
    ),
]

window_size = [8, 16, 32]
substitution_locations = [0, -1, slice(1, 3), [0, 3]]
substitution_values = [np.nan, np.inf]


def test_stomp_int_input():
    with pytest.raises(TypeError):
        tsmatrix.stomp(np.arange(10), 5)


@pytest.mark.parametrize("T_A, T_B", test_data)
def test_stomp_self_join(T_A, T_B):
    m = 3
    ref_P, ref_I = naive.stomp(T_B, m)
    comp_P, comp_I = tsmatrix.stomp(T_B, m)

    npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
    npt.assert_almost_equal(ref_I, comp_I)


@pytest.mark.parametrize("T_A, T_B", test_data)
@pytest.mark.parametrize("m", window_size)
def test_stomp_self_join_larger_window(T_A, T_B, m):
    if len(T_B) > m:
        ref_P, ref_I = naive.stomp(T_B, m)
        comp_P, comp_I = tsmatrix.stomp(T_B, m)

        npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
        npt.assert_almost_equal(ref_I, comp_I)


@pytest.mark.parametrize("T_A, T_B", test_data)
def test_stomp_A_B_join(T_A, T_B):
    m = 3
    ref_P, ref_I = naive.stomp(T_A, m, T_B=T_B)
    comp_P, comp_I = tsmatrix.stomp(T_A, m, T_B)

    npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
    npt.assert_almost_equal(ref_I, comp_I)


@pytest.mark.parametrize("T_A, T_B", test_data)
def test_stomp_B_A_join(T_A, T_B):
    m = 3
    ref_P, ref_I = naive.stomp(T_B, m, T_B=T_A)
    comp_P, comp_I = tsmatrix.stomp(T_B, m, T_A)

    npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
    npt.assert_almost_equal(ref_I, comp_I)


def test_stomp_self_join_excl_zone():
    T = np.random.uniform(-1000, 1000, [64])
    m = 8

    for excl_zone in [0, 1, 5, 10]:
        ref_P, ref_I = naive.stomp(T, m, excl_zone=excl_zone)
        comp_P, comp_I = tsmatrix.stomp(T, m, excl_zone=excl_zone)

        npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
        npt.assert_almost_equal(ref_I, comp_I)


def test_stomp_self_join_never_trivial():
    T = np.random.rand(128)
    m = 10
    excl_zone = core.get_excl_zone(m)

    P, I = tsmatrix.stomp(T, m)

    l = T.shape[0] - m + 1
    assert P.shape == (l,)
    assert I.shape == (l,)
    assert np.all(np.abs(I - np.arange(l)) > excl_zone)
    assert np.all((I >= 0) & (I < l))
    assert np.all(P >= 0)
    assert np.all(P <= 2.0 * np.sqrt(m) + 1e-7)


def test_stomp_exact_repeat():
    x = np.random.rand(32)
    T = np.concatenate([x, x])
    m = 8

    P, I = tsmatrix.stomp(T, m)

    for i in range(32 - m + 1):
        assert P[i] < 1e-3
        assert I[i] == i + 32


def test_stomp_self_join_idempotent():
    T = np.random.uniform(-1000, 1000, [64])
    T[10] = np.nan
    T_copy = T.copy()
    m = 8

    ref_P, ref_I = tsmatrix.stomp(T, m)
    comp_P, comp_I = tsmatrix.stomp(T, m)

    npt.assert_array_equal(T, T_copy)
    npt.assert_array_equal(ref_P, comp_P)
    npt.assert_array_equal(ref_I, comp_I)


@pytest.mark.parametrize("T_A, T_B", test_data)
@pytest.mark.parametrize("substitute", substitution_values)
@pytest.mark.parametrize("substitution_location", substitution_locations)
def test_stomp_nan_inf_self_join(T_A, T_B, substitute, substitution_location):
    m = 3
    T_B_sub = T_B.copy()
    T_B_sub[substitution_location] = substitute

    ref_P, ref_I = naive.stomp(T_B_sub, m)
    comp_P, comp_I = tsmatrix.stomp(T_B_sub, m)

    naive.replace_inf(ref_P)
    naive.replace_inf(comp_P)
    npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
    npt.assert_almost_equal(ref_I, comp_I)


@pytest.mark.parametrize("T_A, T_B", test_data)
@pytest.mark.parametrize("substitute", substitution_values)
@pytest.mark.parametrize("substitution_location", substitution_locations)
def test_stomp_nan_inf_A_B_join(T_A, T_B, substitute, substitution_location):
    m = 3
    T_A_sub = T_A.copy()
    T_A_sub[substitution_location] = substitute

    ref_P, ref_I = naive.stomp(T_A_sub, m, T_B=T_B)
    comp_P, comp_I = tsmatrix.stomp(T_A_sub, m, T_B)

    naive.replace_inf(ref_P)
    naive.replace_inf(comp_P)
    npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
    npt.assert_almost_equal(ref_I, comp_I)


def test_stomp_all_nan():
    T = np.full(16, np.nan)
    m = 4

    P, I = tsmatrix.stomp(T, m)

    assert np.all(np.isinf(P))
    assert np.all(I == -1)


def test_stomp_constant_subsequences():
    T = np.random.uniform(-1000, 1000, [64])
    T[0:10] = 5.0
    T[40:50] = -3.0
    m = 4

    ref_P, ref_I = naive.stomp(T, m)
    comp_P, comp_I = tsmatrix.stomp(T, m)

    npt.assert_almost_equal(ref_P, comp_P, decimal=config.TSMATRIX_TEST_PRECISION)
    # Every constant subsequence has a constant nearest neighbor
    npt.assert_almost_equal(comp_P[0:7], 0.0)
    npt.assert_almost_equal(comp_P[40:47], 0.0)


def test_stomp_batch_self_join():
    T = np.random.uniform(-1000, 1000, [3, 64])
    T[1, 20] = np.nan
    m = 8

    comp_P, comp_I = tsmatrix.stomp(T, m)

    assert comp_P.shape == (3, 64 - m + 1)
    assert comp_I.shape == (3, 64 - m + 1)
    for i in range(T.shape[0]):
        ref_P, ref_I = naive.stomp(T[i], m)
        naive.replace_inf(ref_P)
        P = comp_P[i].copy()
        naive.replace_inf(P)
        npt.assert_almost_equal(ref_P, P, decimal=config.TSMATRIX_TEST_PRECISION)
        npt.assert_almost_equal(ref_I, comp_I[i])


def test_stomp_batch_A_B_join():
    T_A = np.random.uniform(-1000, 1000, [3, 32])
    T_B = np.random.uniform(-1000, 1000, [2, 48])
    m = 8

    comp_P, comp_I = tsmatrix.stomp(T_A, m, T_B)

    assert comp_P.shape == (2, 3, 32 - m + 1)
    assert comp_I.shape == (2, 3, 32 - m + 1)
    for b in range(T_B.shape[0]):
        for a in range(T_A.shape[0]):
            ref_P, ref_I = naive.stomp(T_A[a], m, T_B=T_B[b])
            npt.assert_almost_equal(
                ref_P, comp_P[b, a], decimal=config.TSMATRIX_TEST_PRECISION
            )
            npt.assert_almost_equal(ref_I, comp_I[b, a])
            assert np.all(comp_I[b, a] < 48 - m + 1)


def test_stomp_A_B_join_shapes():
    m = 8
    T_A = np.random.rand(32)
    T_B = np.random.rand(48)

    assert tsmatrix.stomp(T_A, m, T_B)[0].shape == (25,)
    assert tsmatrix.stomp(T_A[np.newaxis], m, T_B)[0].shape == (1, 25)
    assert tsmatrix.stomp(T_A, m, T_B[np.newaxis])[0].shape == (1, 25)
    assert tsmatrix.stomp(np.random.rand(4, 32), m, T_B)[0].shape == (4, 25)
    assert tsmatrix.stomp(T_A, m, np.random.rand(5, 48))[0].shape == (5, 25)


def test_stomp_A_B_join_equal_arrays_logs_warning(caplog):
    T = np.random.rand(64)

    with caplog.at_level(logging.WARNING, logger="tsmatrix"):
        tsmatrix.stomp(T, 8, T.copy())

    assert "self-join" in caplog.text


def test_stomp_invalid_window():
    T = np.random.rand(16)

    with pytest.raises(core.InvalidWindow):
        tsmatrix.stomp(T, 1)

    with pytest.raises(core.InvalidWindow):
        tsmatrix.stomp(T, 17)

    with pytest.raises(core.InvalidWindow):
        tsmatrix.stomp(T, 8, np.random.rand(7))


def test_stomp_window_too_large_warning():
    with pytest.warns(UserWarning):
        tsmatrix.stomp(np.random.rand(10), 7)


def test_stomp_window_too_large_warning_uses_excl_zone():
    T = np.random.rand(20)
    m = 8

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        tsmatrix.stomp(T, m)

    with pytest.warns(UserWarning):
        P, I = tsmatrix.stomp(T, m, excl_zone=6)

    # The central subsequence has no neighbor outside the exclusion zone
    assert np.isinf(P[6])
    assert I[6] == -1


def test_stomp_dimension_mismatch():
    with pytest.raises(core.DimensionMismatch):
        tsmatrix.stomp(np.random.rand(2, 2, 16), 4)


def test_stomp_invalid_excl_zone():
    with pytest.raises(ValueError):
        tsmatrix.stomp(np.random.rand(16), 4, excl_zone=-1)


def test_stomp_A_B_join_with_itself():
    T = np.random.uniform(-1000, 1000, [64])
    m = 8

    P, I = tsmatrix.stomp(T, m, T.copy())

    assert np.all(P < 1e-3)
    npt.assert_array_equal(I, np.arange(64 - m + 1))
