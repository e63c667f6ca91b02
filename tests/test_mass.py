import naive
import numpy as np
import numpy.testing as npt
import pytest

import tsmatrix
from tsmatrix import config, core

test_data = [
    (
        np.array([-1, 1, 2], dtype=np.float64),
        np.array(range(5), dtype=np.float64),
    ),
    (
        np.array([9, 8100, -60], dtype=np.float64),
        np.array([584, -11, 23, 79, 1001, 0, -19], dtype=np.float64),
    ),
    (np.random.uniform(-1000, 1000, [8]), np.random.uniform(-1000, 1000, [64])),
]

substitution_locations = [0, -1, slice(1, 3)]
substitution_values = [np.nan, np.inf]


@pytest.mark.parametrize("Q, T", test_data)
def test_mass(Q, T):
    m = Q.shape[0]
    ref = naive.distance_profile(Q, T, m)
    comp = tsmatrix.mass(Q, T)

    npt.assert_almost_equal(ref, comp, decimal=config.TSMATRIX_TEST_PRECISION)


def test_mass_int_input():
    with pytest.raises(TypeError):
        tsmatrix.mass(np.arange(3), np.arange(10))


def test_mass_does_not_modify_input():
    Q = np.random.rand(8)
    T = np.random.rand(64)
    T[5] = np.nan
    Q_copy = Q.copy()
    T_copy = T.copy()

    tsmatrix.mass(Q, T)

    npt.assert_array_equal(Q, Q_copy)
    npt.assert_array_equal(T, T_copy)


@pytest.mark.parametrize("Q, T", test_data)
@pytest.mark.parametrize("substitute", substitution_values)
@pytest.mark.parametrize("substitution_location", substitution_locations)
def test_mass_Q_nan_inf(Q, T, substitute, substitution_location):
    Q = Q.copy()
    Q[substitution_location] = substitute

    comp = tsmatrix.mass(Q, T)

    assert comp.shape == (T.shape[0] - Q.shape[0] + 1,)
    assert np.all(np.isinf(comp))


@pytest.mark.parametrize("Q, T", test_data)
@pytest.mark.parametrize("substitute", substitution_values)
@pytest.mark.parametrize("substitution_location", substitution_locations)
def test_mass_T_nan_inf(Q, T, substitute, substitution_location):
    m = Q.shape[0]
    T = T.copy()
    T[substitution_location] = substitute

    ref = naive.distance_profile(Q, T, m)
    comp = tsmatrix.mass(Q, T)

    naive.replace_inf(ref)
    naive.replace_inf(comp)
    npt.assert_almost_equal(ref, comp, decimal=config.TSMATRIX_TEST_PRECISION)


def test_mass_constant_query():
    m = 4
    Q = np.full(m, 3.0)
    T = np.random.uniform(-1000, 1000, [64])
    T[10:20] = 7.0

    with pytest.warns(core.DegenerateQuery):
        comp = tsmatrix.mass(Q, T)

    ref = naive.distance_profile(Q, T, m)
    npt.assert_almost_equal(ref, comp)
    # Windows fully inside T[10:20] are constant
    npt.assert_almost_equal(comp[10:17], 0.0)
    npt.assert_almost_equal(comp[0], 2.0 * np.sqrt(m))


def test_mass_constant_subsequence():
    m = 8
    Q = np.random.rand(m)
    T = np.random.rand(64)
    T[20:40] = -1.0

    comp = tsmatrix.mass(Q, T)

    npt.assert_almost_equal(comp[20:33], 2.0 * np.sqrt(m))


def test_mass_exact_match():
    T = np.random.rand(256)
    m = 16
    Q = T[100 : 100 + m].copy()

    comp = tsmatrix.mass(Q, T)

    assert comp[100] < 1e-3
    assert np.argmin(comp) == 100


def test_mass_level_shift():
    rng = np.random.default_rng(0)
    T = np.concatenate([1e6 + rng.normal(0, 1, 1500), rng.normal(0, 1, 1500)])
    m = 32
    Q = T[2000 : 2000 + m].copy()

    ref = naive.distance_profile(Q, T, m)
    comp = tsmatrix.mass(Q, T)

    # The FFT dot product against a series at this scale bounds the precision
    npt.assert_almost_equal(ref, comp, decimal=3)
    assert comp[2000] < 1e-3
    assert np.argmin(comp) == 2000


def test_mass_mixed_scale():
    rng = np.random.default_rng(0)
    t = np.linspace(0, 20 * np.pi, 2000)
    T = np.concatenate(
        [
            rng.normal(0, 1e4, 2000),
            1e-3 * np.sin(t) + 1e-4 * rng.normal(0, 1, 2000),
        ]
    )
    m = 50
    Q = T[3000 : 3000 + m].copy()

    ref = naive.distance_profile(Q, T, m)
    comp = tsmatrix.mass(Q, T)

    assert np.all(comp <= 2.0 * np.sqrt(m) + 1e-7)
    npt.assert_almost_equal(ref, comp, decimal=2)
    assert comp[3000] < 1e-2
    assert np.argmin(comp) == 3000


def test_mass_moderate_mixed_scale():
    rng = np.random.default_rng(1)
    t = np.linspace(0, 20 * np.pi, 1000)
    T = np.concatenate(
        [rng.normal(0, 1e2, 1000), np.sin(t) + 0.1 * rng.normal(0, 1, 1000)]
    )
    m = 50
    Q = T[1500 : 1500 + m].copy()

    ref = naive.distance_profile(Q, T, m)
    comp = tsmatrix.mass(Q, T)

    npt.assert_almost_equal(ref, comp, decimal=config.TSMATRIX_TEST_PRECISION)


def test_mass_batch():
    m = 8
    Q = np.random.uniform(-1000, 1000, [3, m])
    T = np.random.uniform(-1000, 1000, [2, 64])
    T[1, 30] = np.nan

    comp = tsmatrix.mass(Q, T)

    assert comp.shape == (2, 3, 64 - m + 1)
    ref = naive.mass(Q, T)
    naive.replace_inf(ref)
    naive.replace_inf(comp)
    npt.assert_almost_equal(ref, comp, decimal=config.TSMATRIX_TEST_PRECISION)


def test_mass_batch_shapes():
    m = 8
    Q = np.random.rand(m)
    T = np.random.rand(64)

    assert tsmatrix.mass(Q, T).shape == (57,)
    assert tsmatrix.mass(Q[np.newaxis], T).shape == (1, 57)
    assert tsmatrix.mass(Q, T[np.newaxis]).shape == (1, 57)
    assert tsmatrix.mass(Q[np.newaxis], T[np.newaxis]).shape == (1, 1, 57)
    assert tsmatrix.mass(np.random.rand(4, m), T).shape == (4, 57)
    assert tsmatrix.mass(Q, np.random.rand(5, 64)).shape == (5, 57)


def test_mass_query_same_length_as_series():
    T = np.random.rand(16)

    comp = tsmatrix.mass(T, T)

    assert comp.shape == (1,)
    assert comp[0] < 1e-3


def test_mass_invalid_window():
    with pytest.raises(core.InvalidWindow):
        tsmatrix.mass(np.random.rand(1), np.random.rand(10))

    with pytest.raises(core.InvalidWindow):
        tsmatrix.mass(np.random.rand(11), np.random.rand(10))


def test_mass_dimension_mismatch():
    with pytest.raises(core.DimensionMismatch):
        tsmatrix.mass(np.random.rand(2, 2, 4), np.random.rand(10))

    with pytest.raises(core.DimensionMismatch):
        tsmatrix.mass(np.random.rand(4), np.random.rand(2, 2, 10))


def test_mass_context():
    Q = np.random.rand(8)
    T = np.random.rand(64)

    ref = tsmatrix.mass(Q, T)
    comp = tsmatrix.mass(Q, T, context=tsmatrix.Context())
    npt.assert_almost_equal(ref, comp)

    with pytest.raises(TypeError):
        tsmatrix.mass(Q, T, context="cpu")
