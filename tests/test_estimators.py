import itertools

import numpy as np
import pytest

import quantile_mean as qm
from quantile_mean.stats import estimators as est


example_x = [0.1, 0.3, 0.5, 0.7, 0.9]


def brute_force_pairwise(x, xq, q):
    a = (np.asarray(x) <= xq).astype(float) - q
    total = 0
    for i, j in itertools.permutations(range(len(x)), 2):
        total += x[i]*(1 - a[i]*a[j]/(q*(1 - q)))
    return total/(len(x)*(len(x) - 1))


def test_projection_example():
    assert np.isclose(qm.projection_mean(example_x, 0.5, 0.5), 0.45)


def test_quantile_adjusted_example():
    # same reweighting as the projection when there are no ties at xq
    assert np.isclose(qm.quantile_adjusted_mean(example_x, 0.5, 0.5), 0.45)


def test_quantile_adjusted_matches_projection():
    rng = np.random.default_rng(0)
    for q in [0.2, 0.5, 0.7]:
        x = rng.uniform(size=40)
        assert np.isclose(qm.quantile_adjusted_mean(x, 0.45, q),
                          qm.projection_mean(x, 0.45, q))


@pytest.mark.parametrize('xq', [-10, 10])
def test_anchor_outside_sample_is_sample_mean(xq):
    x = np.random.default_rng(1).uniform(size=25)
    assert np.isclose(qm.projection_mean(x, xq, 0.3), np.mean(x))
    assert np.isclose(qm.quantile_adjusted_mean(x, xq, 0.3), np.mean(x))


def test_kaplan_meier_mean_example():
    x = [1, 2, 3]
    censored = [False, False, True]
    # mass 1/3 on each of 1 and 2, none placed on 3 directly
    assert np.isclose(qm.kaplan_meier_mean(x, censored), 1)
    # changing the censored value does not change its direct contribution
    assert np.isclose(qm.kaplan_meier_mean([1, 2, 300], censored), 1)


def test_kaplan_meier_mean_uncensored_is_sample_mean():
    x = np.random.default_rng(2).exponential(size=30)
    assert np.isclose(qm.kaplan_meier_mean(x, np.zeros(30, dtype=bool)),
                      np.mean(x))


def test_kaplan_meier_mean_uses_aligned_flags():
    # flags belong to the unsorted sample
    x = [3, 1, 2]
    censored = [True, False, False]
    assert np.isclose(qm.kaplan_meier_mean(x, censored), 1)


def test_observed_mean_ignores_flags():
    x = [1, 2, 3]
    assert qm.observed_mean(x, [False, False, True]) == pytest.approx(2)
    assert qm.observed_mean(x, [True]*3) == pytest.approx(2)
    with pytest.raises(ValueError):
        qm.observed_mean(x, [True])


def test_kaplan_meier_mean_all_censored():
    assert qm.kaplan_meier_mean([0.1, 0.2], [True, True]) == 0


def test_kaplan_meier_quantile_mean():
    x = np.random.default_rng(3).uniform(size=50)
    none = np.zeros(50, dtype=bool)
    assert np.isclose(qm.kaplan_meier_quantile_mean(x, none, 0.5, 0.5),
                      qm.quantile_adjusted_mean(x, 0.5, 0.5))
    censored = np.zeros(50, dtype=bool)
    censored[::7] = True
    res = qm.kaplan_meier_quantile_mean(x, censored, 0.5, 0.5)
    assert np.isfinite(res)


def test_kaplan_meier_quantile_mean_anchor_on_order_statistic():
    x = [0.1, 0.2, 0.3, 0.6, 0.8, 0.9]
    censored = [False, True, False, False, True, False]
    between = qm.kaplan_meier_quantile_mean(x, censored, 0.45, 0.4)
    on = qm.kaplan_meier_quantile_mean(x, censored, 0.6, 0.4)
    # 0.6 is right of both anchors, so both split the sample the same way
    assert np.isclose(between, on)
    # mass 0.4 split 4:5 over (0.1, 0.3), mass 0.6 split 1:2 over (0.6, 0.9)
    expected = 0.4*(0.1*(1/6) + 0.3*(5/24))/0.375 \
        + 0.6*(0.6*(5/24) + 0.9*(5/12))/0.625
    assert np.isclose(between, expected)


def test_kaplan_meier_quantile_mean_degenerate():
    x = [0.1, 0.2, 0.3]
    censored = [True, False, False]
    # only a censored value below xq, so no mass to rescale on that side
    assert np.isclose(qm.kaplan_meier_quantile_mean(x, censored, 0.15, 0.5),
                      qm.kaplan_meier_mean(x, censored))


def test_pairwise_matches_brute_force():
    rng = np.random.default_rng(4)
    for q in [0.1, 0.5, 0.8]:
        x = rng.uniform(size=12)
        assert np.isclose(qm.pairwise_quantile_mean(x, 0.5, q),
                          brute_force_pairwise(x, 0.5, q))


def test_pairwise_order_invariant():
    rng = np.random.default_rng(5)
    x = rng.uniform(size=33)
    shuffled = rng.permutation(x)
    assert np.isclose(qm.pairwise_quantile_mean(x, 0.3, 0.3),
                      qm.pairwise_quantile_mean(shuffled, 0.3, 0.3))


def test_pairwise_needs_two_observations():
    with pytest.raises(ValueError):
        qm.pairwise_quantile_mean([0.5], 0.5, 0.5)


@pytest.mark.parametrize('f', [qm.quantile_adjusted_mean, qm.projection_mean,
                               qm.pairwise_quantile_mean])
@pytest.mark.parametrize('q', [0, 1])
def test_invalid_quantile_level(f, q):
    with pytest.raises(ValueError):
        f(example_x, 0.5, q)


def test_estimators_leave_input_alone():
    x = np.array([0.9, 0.1, 0.5, 0.3])
    censored = np.array([False, True, False, False])
    for name in est.ESTIMATORS:
        est.evaluate(name, x, censored, xq=0.4, q=0.5)
    assert np.all(x == [0.9, 0.1, 0.5, 0.3])
    assert np.all(censored == [False, True, False, False])


def test_evaluate():
    assert est.evaluate('mean', example_x) == pytest.approx(0.5)
    assert est.evaluate('projection', example_x, xq=0.5, q=0.5) \
        == pytest.approx(0.45)
    with pytest.raises(ValueError):
        est.evaluate('kaplan_meier', example_x)
    with pytest.raises(ValueError):
        est.evaluate('pairwise', example_x)
    with pytest.raises(ValueError):
        est.evaluate('median', example_x)
    assert set(est.QUANTILE_ESTIMATORS) == {
        'quantile', 'projection', 'kaplan_meier_quantile', 'pairwise'
    }
