"""
Empirical distribution functions over order statistics.

Every function here works on the positions of a sorted sample rather than on
the unique values of the sample. For a sample of size N, a "cdf" is always an
array of length N + 1 where ``cdf[0] == 0`` is the value left of the smallest
observation and ``cdf[i]`` is the value at the i-th order statistic. This makes
integrating against the sample a single dot product, see
:func:`integrate_cdf`.

Censoring indicators are carried through sorts together with the values they
belong to, so that the i-th flag always describes the i-th order statistic.
"""
import numpy as np


def _as_sample(sample):
    x = np.array(sample, dtype=float)
    if x.ndim != 1:
        raise ValueError("Sample must be one dimensional.")
    if x.size == 0:
        raise ValueError("Sample must contain at least one observation.")
    return x


def sort_censored(sample, censored):
    """Sort (value, censored) records together.

    Ties are broken by putting uncensored observations before censored ones,
    the usual convention that an event at time t happens before a censoring at
    time t.

    Parameters
    ----------
    sample : (N,) array_like
        Observed values.
    censored : (N,) array_like of bool
        Whether each value of *sample* is censored (only an upper bound).

    Returns
    -------
    x : (N,) array_like
        The sorted values.
    c : (N,) array_like of bool
        The censoring flags, reordered in lock-step with *x*.
    """
    x = _as_sample(sample)
    c = np.asarray(censored, dtype=bool)
    if c.shape != x.shape:
        raise ValueError("Censoring indicators must align with the sample, got "
                         f"{c.shape} indicators for {x.shape} observations.")
    # lexsort sorts by the last key first
    i = np.lexsort((c, x))
    return x[i], c[i]


def empirical_cdf(sample):
    """Plain eCDF at the order statistics of *sample*.

    Parameters
    ----------
    sample : (N,) array_like
        Values of the data. Not modified.

    Returns
    -------
    x : (N,) array_like
        Sorted copy of the data.
    cdf : (N+1,) array_like
        ``cdf[i] = i/N``.
    """
    x = np.sort(_as_sample(sample))
    num_obs = len(x)
    return x, np.arange(num_obs + 1)/float(num_obs)


def kaplan_meier(sample, censored):
    r"""Kaplan-Meier (product-limit) survival function at the order statistics.

    For sorted observations :math:`X_{(1)} \leq \dots \leq X_{(N)}` with
    censoring flags :math:`I_k`,

    .. math::

        S_i = \prod_{k=1}^{i} \left(\frac{N - k}{N - k + 1}\right)^{1 - I_k},
        \quad S_0 = 1.

    Parameters
    ----------
    sample : (N,) array_like
        Observed values (for censored entries, the observed bound).
    censored : (N,) array_like of bool
        True where the observation is censored.

    Returns
    -------
    x : (N,) array_like
        Sorted values.
    c : (N,) array_like of bool
        Censoring flags aligned with *x*.
    survival : (N+1,) array_like
        Non-increasing, starts at one. Only reaches zero if the largest
        observation is uncensored.

    Notes
    -----
    If every observation is censored the survival function never drops. This
    is a valid (if uninformative) estimate, not an error.
    """
    x, c = sort_censored(sample, censored)
    num_obs = len(x)
    at_risk = num_obs - np.arange(num_obs)  # N - k + 1 for k = 1..N
    factors = np.where(c, 1.0, (at_risk - 1)/at_risk)
    survival = np.ones(num_obs + 1)
    survival[1:] = np.cumprod(factors)
    return x, c, survival


def kaplan_meier_cdf(sample, censored):
    """Same as :func:`kaplan_meier`, but returns ``1 - survival``."""
    x, c, survival = kaplan_meier(sample, censored)
    return x, c, 1 - survival


def quantile_adjusted_cdf(x, cdf, xq, q):
    r"""Rescale an eCDF so that it passes through the anchor :math:`(X_q, q)`.

    Probability mass left of the anchor is scaled to sum to *q* and mass right
    of it to sum to :math:`1 - q`, keeping the relative spacing on each side:

    .. math::

        G_i = \begin{cases}
            q F_i / \hat{F} & X_{(i)} < X_q \\
            q + (1 - q)(F_i - \hat{F})/(1 - \hat{F}) & \text{otherwise}
        \end{cases}

    where :math:`\hat{F}` is the value of the eCDF just left of :math:`X_q`.

    Parameters
    ----------
    x : (N,) array_like
        Sorted sample, as returned by :func:`empirical_cdf` or
        :func:`kaplan_meier_cdf`.
    cdf : (N+1,) array_like
        The eCDF at the order statistics, ``cdf[0] == 0``.
    xq : float
        Value of the known quantile.
    q : float
        Level of the known quantile, strictly between zero and one.

    Returns
    -------
    cdf_q : (N+1,) array_like
        The adjusted eCDF. If :math:`\hat{F}` is zero or one (every observation
        on one side of the anchor, or no uncensored mass on one side), the
        adjustment is undefined and an unmodified copy of *cdf* is returned.
    """
    check_quantile_level(q)
    x = np.asarray(x, dtype=float)
    cdf = np.array(cdf, dtype=float)
    if cdf.shape != (len(x) + 1,):
        raise ValueError("Need one cdf value per order statistic plus cdf[0].")
    # number of observations strictly left of the anchor
    r = np.searchsorted(x, xq, side='left')
    F_hat = cdf[r]
    if F_hat <= 0 or F_hat >= 1:
        return cdf
    cdf_q = np.empty_like(cdf)
    cdf_q[:r+1] = q*cdf[:r+1]/F_hat
    cdf_q[r+1:] = q + (1 - q)*(cdf[r+1:] - F_hat)/(1 - F_hat)
    return cdf_q


def integrate_cdf(x, cdf):
    """Mean of the (possibly defective) distribution with jumps at *x*.

    Computes :math:`\\sum_i (F_i - F_{i-1}) X_{(i)}`. If the eCDF does not
    reach one, the missing mass simply contributes nothing.
    """
    return float(np.dot(np.diff(cdf), x))


def check_quantile_level(q):
    if not 0 < q < 1:
        raise ValueError(f"Quantile level must be in (0, 1), got q={q}.")
