"""
Point estimators of the mean using auxiliary information.

Two kinds of side information are supported. A known quantile ("anchor")
:math:`P(X \\leq X_q) = q`, and right censoring flags marking observations that
are only known to be upper bounds. Each estimator returns a single float.

None of the estimators modify their input arrays.
"""
import numpy as np

from .distributions import (
    _as_sample, check_quantile_level, empirical_cdf, integrate_cdf,
    kaplan_meier, kaplan_meier_cdf, quantile_adjusted_cdf
)


def sample_mean(x):
    """Arithmetic mean, the baseline every other estimator reduces to."""
    return float(np.mean(_as_sample(x)))


def observed_mean(x, censored):
    """Naive mean of an observed sample, treating censored bounds as exact.

    The censoring flags are not used. This is what the sample mean does to
    censored data, the baseline the Kaplan-Meier estimators improve on.
    """
    censored = np.asarray(censored, dtype=bool)
    x = _as_sample(x)
    if censored.shape != x.shape:
        raise ValueError("Censoring indicators must align with the sample.")
    return float(np.mean(x))


def quantile_adjusted_mean(x, xq, q):
    """Mean of the eCDF after forcing it through the anchor (xq, q).

    Falls back to the sample mean if every observation lies on one side of
    *xq*.
    """
    x, cdf = empirical_cdf(x)
    return integrate_cdf(x, quantile_adjusted_cdf(x, cdf, xq, q))


def projection_mean(x, xq, q):
    """Kullback-Leibler projection of the eCDF onto distributions with
    quantile (xq, q).

    The projection weights each observation left of the anchor by
    :math:`q/r` and each one right of it by :math:`(1 - q)/(N - r)`, so the
    estimate is :math:`q \\bar{X}_{<} + (1 - q)\\bar{X}_{\\geq}`.

    Parameters
    ----------
    x : (N,) array_like
        The sample.
    xq : float
        Value of the known quantile.
    q : float
        Level of the known quantile.

    Returns
    -------
    float
        The estimate. Equal to the sample mean if either side of the anchor is
        empty.
    """
    check_quantile_level(q)
    x = _as_sample(x)
    below = x < xq
    r = np.count_nonzero(below)
    if r == 0 or r == len(x):
        return float(np.mean(x))
    return float(q*np.mean(x[below]) + (1 - q)*np.mean(x[~below]))


def kaplan_meier_mean(x, censored):
    r"""Mean of the Kaplan-Meier estimate of the distribution.

    Each uncensored order statistic gets the mass
    :math:`h_i = S_{i-1} - S_i`. Censored observations get none directly,
    they only shape the survival curve by leaving the risk set.

    If the largest observation is censored the masses sum to less than one and
    the estimate is biased low. This is returned as-is.
    """
    x, c, survival = kaplan_meier(x, censored)
    mass = -np.diff(survival)
    return float(np.sum(x[~c]*mass[~c]))


def kaplan_meier_quantile_mean(x, censored, xq, q):
    """Mean of the Kaplan-Meier eCDF after forcing it through (xq, q).

    The anchor is located among the sorted observed values, so *xq* may fall
    between two order statistics or exactly on one (in which case that
    observation counts as right of the anchor). If the Kaplan-Meier eCDF is
    zero or one just left of *xq*, this is the same as
    :func:`kaplan_meier_mean`.
    """
    x, c, cdf = kaplan_meier_cdf(x, censored)
    return integrate_cdf(x, quantile_adjusted_cdf(x, cdf, xq, q))


def pairwise_quantile_mean(x, xq, q):
    r"""U-statistic correction of the sample mean using the anchor (xq, q).

    .. math::

        \frac{1}{N(N-1)} \sum_{i \neq j} X_i \left[
            1 - \frac{(1[X_i \leq X_q] - q)(1[X_j \leq X_q] - q)}{q(1 - q)}
        \right]

    The sum over :math:`j \neq i` of the second factor only depends on
    :math:`\sum_j (1[X_j \leq X_q] - q)`, so the double sum is evaluated in
    linear time. The result does not depend on the order of *x*.
    """
    check_quantile_level(q)
    x = _as_sample(x)
    num_obs = len(x)
    if num_obs < 2:
        raise ValueError("Pairwise estimator needs at least two observations.")
    a = (x <= xq).astype(float) - q
    others = np.sum(a) - a
    kernel_sums = (num_obs - 1) - a*others/(q*(1 - q))
    return float(np.sum(x*kernel_sums)/(num_obs*(num_obs - 1)))


# name -> (estimator, uses (xq, q), uses censoring)
ESTIMATORS = {
    'mean': (sample_mean, False, False),
    'observed_mean': (observed_mean, False, True),
    'quantile': (quantile_adjusted_mean, True, False),
    'projection': (projection_mean, True, False),
    'kaplan_meier': (kaplan_meier_mean, False, True),
    'kaplan_meier_quantile': (kaplan_meier_quantile_mean, True, True),
    'pairwise': (pairwise_quantile_mean, True, False),
}

QUANTILE_ESTIMATORS = [name for name, (_, uses_anchor, _) in ESTIMATORS.items()
                       if uses_anchor]


def evaluate(name, x, censored=None, xq=None, q=None):
    """Evaluate a registered estimator, passing it only what it uses."""
    try:
        f, uses_anchor, uses_censoring = ESTIMATORS[name]
    except KeyError:
        raise ValueError(f"Unknown estimator {name!r}, expected one of "
                         f"{list(ESTIMATORS)}.")
    args = [x]
    if uses_censoring:
        if censored is None:
            raise ValueError(f"Estimator {name!r} needs censoring indicators.")
        args.append(censored)
    if uses_anchor:
        if xq is None or q is None:
            raise ValueError(f"Estimator {name!r} needs a quantile anchor.")
        args.extend([xq, q])
    return f(*args)
