import lifelines
import numpy as np
import pytest

import quantile_mean as qm


example_x = [0.1, 0.3, 0.5, 0.7, 0.9]


def test_ecdf_integrates_to_sample_mean():
    rng = np.random.default_rng(0)
    for size in [1, 2, 7, 100]:
        sample = rng.normal(size=size)
        x, cdf = qm.empirical_cdf(sample)
        assert np.all(np.diff(x) >= 0)
        assert cdf[0] == 0 and cdf[-1] == 1
        assert np.isclose(qm.integrate_cdf(x, cdf), np.mean(sample))


def test_ecdf_does_not_sort_in_place():
    sample = np.array([3., 1., 2.])
    qm.empirical_cdf(sample)
    assert np.all(sample == [3, 1, 2])


def test_sort_censored_keeps_records_together():
    x, c = qm.sort_censored([3, 1, 2, 1], [True, False, False, True])
    assert np.all(x == [1, 1, 2, 3])
    # events before censorings on ties
    assert np.all(c == [False, True, False, True])
    with pytest.raises(ValueError):
        qm.sort_censored([1, 2, 3], [True, False])


def test_kaplan_meier_small_example():
    x, c, survival = qm.kaplan_meier([3, 1, 2], [True, False, False])
    assert np.all(x == [1, 2, 3])
    assert np.all(c == [False, False, True])
    assert np.allclose(survival, [1, 2/3, 1/3, 1/3])


def test_kaplan_meier_no_censoring_is_ecdf():
    sample = np.random.default_rng(1).uniform(size=20)
    x, c, cdf = qm.kaplan_meier_cdf(sample, np.zeros(20, dtype=bool))
    x_e, cdf_e = qm.empirical_cdf(sample)
    assert np.all(x == x_e)
    assert np.allclose(cdf, cdf_e)


def test_kaplan_meier_all_censored():
    x, c, survival = qm.kaplan_meier([0.2, 0.1, 0.4], [True]*3)
    assert np.all(survival == 1)


def test_kaplan_meier_vs_lifelines():
    rng = np.random.default_rng(2)
    sample = rng.exponential(size=50)
    censored = rng.uniform(size=50) < 0.3
    x, c, survival = qm.kaplan_meier(sample, censored)
    kmf = lifelines.KaplanMeierFitter() \
        .fit(sample, event_observed=~censored)
    expected = kmf.survival_function_at_times(x).values
    assert np.allclose(survival[1:], expected)
    assert np.all(np.diff(survival) <= 0)


def test_quantile_adjusted_cdf_passes_through_anchor():
    rng = np.random.default_rng(3)
    for q in [0.1, 0.5, 0.9]:
        sample = rng.uniform(size=31)
        x, cdf = qm.empirical_cdf(sample)
        cdf_q = qm.quantile_adjusted_cdf(x, cdf, 0.4, q)
        r = np.searchsorted(x, 0.4)
        # left limit is exactly q, first step right of the anchor starts at q
        assert np.isclose(cdf_q[r], q)
        assert cdf_q[r + 1] > q
        assert cdf_q[0] == 0 and np.isclose(cdf_q[-1], 1)
        assert np.all(np.diff(cdf_q) >= 0)


def test_quantile_adjusted_cdf_example():
    x, cdf = qm.empirical_cdf(example_x)
    r = np.searchsorted(x, 0.5)
    # F-hat at xq counts values strictly below xq
    assert np.isclose(cdf[r], 0.4)
    cdf_q = qm.quantile_adjusted_cdf(x, cdf, 0.5, 0.5)
    assert np.allclose(cdf_q, [0, 0.25, 0.5, 2/3, 5/6, 1])


@pytest.mark.parametrize('xq', [-1, 0.1, 2])
def test_quantile_adjusted_cdf_degenerate(xq):
    x, cdf = qm.empirical_cdf(example_x)
    # 0.1 is the minimum, so nothing lies strictly below it either
    cdf_q = qm.quantile_adjusted_cdf(x, cdf, xq, 0.3)
    assert np.all(cdf_q == cdf)
    assert cdf_q is not cdf


def test_quantile_adjusted_kaplan_meier_cdf_keeps_censored_mass_zero():
    sample = [0.1, 0.2, 0.3, 0.6, 0.8, 0.9]
    censored = [False, True, False, False, True, False]
    x, c, cdf = qm.kaplan_meier_cdf(sample, censored)
    cdf_q = qm.quantile_adjusted_cdf(x, cdf, 0.5, 0.4)
    mass = np.diff(cdf_q)
    assert np.all(mass[c] == 0)
    assert np.isclose(np.sum(mass[x < 0.5]), 0.4)


@pytest.mark.parametrize('q', [0, 1, -0.5, 1.5, np.nan])
def test_quantile_level_checked(q):
    x, cdf = qm.empirical_cdf(example_x)
    with pytest.raises(ValueError):
        qm.quantile_adjusted_cdf(x, cdf, 0.5, q)
