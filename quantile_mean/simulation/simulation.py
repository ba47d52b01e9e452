import numbers
import warnings
from multiprocessing import Pool, cpu_count

import numpy as np
import pandas as pd
import scipy.stats

from ..stats import estimators as est
from .stats import EstimateAccumulator


DEFAULT_DISTRIBUTION = scipy.stats.uniform()
DEFAULT_SAMPLE_SIZES = np.arange(20, 201, 10)
DEFAULT_QUANTILES = np.linspace(0.02, 0.98, 49)
DEFAULT_NUM_REPLICATES = 1000
DEFAULT_CENSORED_FRACTION = 0.1
DEFAULT_OBSERVATION_COEFFICIENT = 0.8
DEFAULT_MAX_RETRIES = 100
DEFAULT_CHUNKSIZE = 250
# largest tolerated multiplier 1/(q(1-q)) in the pairwise correction before
# warning that the estimator will be very noisy
MAX_PAIRWISE_FACTOR = 100


class ConfigurationError(ValueError):
    pass


class RetryLimitExceeded(RuntimeError):
    pass


def check_configuration(sample_sizes, quantiles, num_replicates,
                        censored_fraction, observation_coefficient,
                        max_retries=DEFAULT_MAX_RETRIES,
                        chunksize=DEFAULT_CHUNKSIZE):
    """Raise a ConfigurationError for anything that would break a study.

    Called before any sampling happens, so that a run either produces every
    requested configuration or nothing at all.
    """
    sample_sizes = np.atleast_1d(sample_sizes)
    quantiles = np.atleast_1d(quantiles)
    if sample_sizes.size == 0 or quantiles.size == 0:
        raise ConfigurationError("Need at least one sample size and one "
                                 "quantile level.")
    if not np.all(np.equal(np.mod(sample_sizes, 1), 0)):
        raise ConfigurationError(f"Sample sizes must be integers, got "
                                 f"{sample_sizes}.")
    if np.any(sample_sizes < 2):
        raise ConfigurationError("Every sample size must be at least 2, got "
                                 f"{sample_sizes}.")
    # written so that nan fails too
    if not np.all((quantiles > 0) & (quantiles < 1)):
        raise ConfigurationError("Quantile levels must be in (0, 1), got "
                                 f"{quantiles}.")
    if not 0 <= censored_fraction < 1:
        raise ConfigurationError("Censored fraction must be in [0, 1), got "
                                 f"{censored_fraction}.")
    num_censored = censored_fraction*sample_sizes
    if not np.all(np.isclose(num_censored, np.round(num_censored))):
        raise ConfigurationError(
            f"Censored fraction {censored_fraction} does not censor a whole "
            f"number of observations for sample sizes {sample_sizes}."
        )
    if not observation_coefficient > 0:
        raise ConfigurationError("Observation coefficient must be positive, "
                                 f"got {observation_coefficient}.")
    for name, value in [('num_replicates', num_replicates),
                        ('max_retries', max_retries),
                        ('chunksize', chunksize)]:
        if not isinstance(value, numbers.Integral) or isinstance(value, bool):
            raise ConfigurationError(f"{name} must be an integer, got "
                                     f"{value!r}.")
    if num_replicates < 2:
        raise ConfigurationError("Need at least two replicates to estimate a "
                                 "variance.")
    if max_retries < 1:
        raise ConfigurationError("max_retries must be at least 1.")
    if chunksize < 1:
        raise ConfigurationError("chunksize must be at least 1.")


def censoring_mask(n, censored_fraction, random_state=None):
    """Mark exactly ``round(censored_fraction*n)`` of *n* observations as
    censored, chosen uniformly without replacement."""
    rng = np.random.default_rng(random_state)
    num_censored = int(np.round(censored_fraction*n))
    mask = np.zeros((n,), dtype=bool)
    mask[rng.choice(n, size=num_censored, replace=False)] = True
    return mask


def draw_replication(n, distribution=DEFAULT_DISTRIBUTION,
                     censored_fraction=DEFAULT_CENSORED_FRACTION,
                     observation_coefficient=DEFAULT_OBSERVATION_COEFFICIENT,
                     random_state=None):
    """Simulate one sample along with a censored observation of it.

    Parameters
    ----------
    n : int
        Sample size.
    distribution : scipy.stats.rv_frozen
        Any frozen continuous distribution from :mod:`scipy.stats`.
    censored_fraction : float
        Fraction of the sample that is censored.
    observation_coefficient : float
        Censored values are observed as ``observation_coefficient*x``, i.e.
        only a bound on the true value is recorded.
    random_state : Optional[np.random.Generator or int]
        Source of randomness.

    Returns
    -------
    x : (n,) array_like
        The true sample.
    censored : (n,) array_like of bool
        Which entries are censored.
    observed : (n,) array_like
        What was observed: *x* with the censored entries shrunk.
    """
    rng = np.random.default_rng(random_state)
    x = np.asarray(distribution.rvs(size=n, random_state=rng), dtype=float)
    censored = censoring_mask(n, censored_fraction, random_state=rng)
    observed = np.where(censored, observation_coefficient*x, x)
    return x, censored, observed


def estimate_replication(x, censored, observed, xq, q, estimators):
    """Evaluate each named estimator on one replication.

    Estimators registered as using censoring (including the naive
    ``observed_mean`` baseline) see the observed sample and its censoring
    flags. The rest see the true sample, i.e. what they would estimate
    without any censoring; running them on the observed sample as well would
    only duplicate ``observed_mean`` for the plain mean.
    """
    res = {}
    for name in estimators:
        _, _, uses_censoring = est.ESTIMATORS[name]
        if uses_censoring:
            res[name] = est.evaluate(name, observed, censored, xq=xq, q=q)
        else:
            res[name] = est.evaluate(name, x, xq=xq, q=q)
    return res


def run_replicates(n, q, num_replicates, estimators,
                   distribution=DEFAULT_DISTRIBUTION,
                   censored_fraction=DEFAULT_CENSORED_FRACTION,
                   observation_coefficient=DEFAULT_OBSERVATION_COEFFICIENT,
                   max_retries=DEFAULT_MAX_RETRIES, random_state=None,
                   warn=True):
    """Accumulate estimates from *num_replicates* independent replications.

    A replication where any estimator is not finite is thrown away and
    redrawn, at most *max_retries* times in a row. The number of redraws is
    kept in ``acc.redrawn``, and reported with a warning unless *warn* is
    False (worker processes leave the reporting to :func:`run_study`).

    Returns
    -------
    acc : EstimateAccumulator
        The statistics of this batch of replications.
    """
    rng = np.random.default_rng(random_state)
    xq = distribution.ppf(q)
    acc = EstimateAccumulator(estimators)
    for i in range(num_replicates):
        for attempt in range(max_retries + 1):
            x, censored, observed = draw_replication(
                n, distribution, censored_fraction, observation_coefficient,
                random_state=rng
            )
            with np.errstate(divide='ignore', invalid='ignore'):
                res = estimate_replication(x, censored, observed, xq, q,
                                           estimators)
            if np.all(np.isfinite(list(res.values()))):
                break
            acc.redrawn += 1
        else:
            bad = [name for name, val in res.items() if not np.isfinite(val)]
            raise RetryLimitExceeded(
                f"Estimators {bad} were not finite for {max_retries + 1} draws "
                f"in a row (N={n}, q={q}, xq={xq})."
            )
        acc.add(res)
    if warn:
        _warn_redrawn(acc, n, q)
    return acc


def _warn_redrawn(acc, n, q):
    if acc.redrawn > 0:
        warnings.warn(f"Redrew {acc.redrawn} replications with non-finite "
                      f"estimates (N={n}, q={q}).")


def _run_chunk(args):
    """Picklable entry point for the worker pool."""
    n, q, num_replicates, estimators, kwargs, seed_seq = args
    return run_replicates(n, q, num_replicates, estimators,
                          random_state=np.random.default_rng(seed_seq),
                          warn=False, **kwargs)


def _chunk_sizes(num_replicates, chunksize):
    num_full, rest = divmod(num_replicates, chunksize)
    return num_full*[chunksize] + ([rest] if rest else [])


def run_study(configurations, num_replicates=DEFAULT_NUM_REPLICATES,
              estimators=None, distribution=DEFAULT_DISTRIBUTION,
              true_mean=None, censored_fraction=DEFAULT_CENSORED_FRACTION,
              observation_coefficient=DEFAULT_OBSERVATION_COEFFICIENT,
              max_retries=DEFAULT_MAX_RETRIES, scale_by_n=False, seed=None,
              processes=1, chunksize=DEFAULT_CHUNKSIZE):
    """Bias, variance and MSE of each estimator for each (N, q) requested.

    Every configuration's replications are split into chunks of at most
    *chunksize*, each with its own random stream spawned from *seed*. Chunks
    run in a :class:`multiprocessing.Pool` (or in-process for
    ``processes=1``) and are merged per configuration afterwards, so the
    output for a given *seed* does not depend on *processes*.

    Parameters
    ----------
    configurations : List[Tuple[int, float]]
        (sample size, quantile level) pairs to simulate.
    num_replicates : int
        Replications per configuration (M).
    estimators : List[str]
        Names from :data:`quantile_mean.stats.ESTIMATORS`. Defaults to all.
    distribution : scipy.stats.rv_frozen
        Distribution to sample. The anchor is ``distribution.ppf(q)``.
    true_mean : float
        Defaults to ``distribution.mean()``.
    censored_fraction : float
        Fraction of each sample that is censored (Q).
    observation_coefficient : float
        Censored values are recorded as this multiple of the true value (OC).
    max_retries : int
        Maximum number of redraws of a single replication.
    scale_by_n : bool
        Multiply variance and MSE by the sample size.
    seed : Optional[int]
        Seed for the whole study.
    processes : Optional[int]
        Size of the worker pool. None means one per cpu.
    chunksize : int
        Replications per task.

    Returns
    -------
    df : pd.DataFrame
        Indexed by ``['N', 'q', 'estimator']``, with columns ``['bias',
        'variance', 'mse', 'replications']``.
    """
    configurations = list(configurations)
    if estimators is None:
        estimators = list(est.ESTIMATORS)
    estimators = list(estimators)
    if len(estimators) == 0:
        raise ConfigurationError("Need at least one estimator.")
    unknown = set(estimators) - set(est.ESTIMATORS)
    if unknown:
        raise ConfigurationError(f"Unknown estimators: {sorted(unknown)}.")
    check_configuration(
        [n for n, _ in configurations], [q for _, q in configurations],
        num_replicates, censored_fraction, observation_coefficient,
        max_retries, chunksize
    )
    configurations = [(int(n), float(q)) for n, q in configurations]
    if 'pairwise' in estimators:
        worst_q = max((q for _, q in configurations), key=lambda q: 1/(q*(1 - q)))
        if 1/(worst_q*(1 - worst_q)) > MAX_PAIRWISE_FACTOR:
            warnings.warn(f"Pairwise estimator is very noisy at q={worst_q}.")
    if true_mean is None:
        true_mean = distribution.mean()
    if processes is None:
        processes = cpu_count()

    kwargs = {
        'distribution': distribution,
        'censored_fraction': censored_fraction,
        'observation_coefficient': observation_coefficient,
        'max_retries': max_retries,
    }
    seed_seqs = np.random.SeedSequence(seed).spawn(len(configurations))
    tasks = []
    for i, ((n, q), seed_seq) in enumerate(zip(configurations, seed_seqs)):
        sizes = _chunk_sizes(num_replicates, chunksize)
        for size, chunk_seq in zip(sizes, seed_seq.spawn(len(sizes))):
            tasks.append((i, (n, q, size, estimators, kwargs, chunk_seq)))

    if processes == 1:
        results = [_run_chunk(args) for _, args in tasks]
    else:
        with Pool(processes=processes) as pool:
            lazy_res = [pool.apply_async(_run_chunk, (args, ))
                        for _, args in tasks]
            results = [res.get() for res in lazy_res]

    accumulators = [EstimateAccumulator(estimators) for _ in configurations]
    for (i, _), acc in zip(tasks, results):
        accumulators[i].merge(acc)

    dfs = []
    for (n, q), acc in zip(configurations, accumulators):
        _warn_redrawn(acc, n, q)
        df = acc.summarize(true_mean, scale=n if scale_by_n else 1)
        df['N'] = n
        df['q'] = q
        dfs.append(df.reset_index())
    return pd.concat(dfs, ignore_index=True).set_index(['N', 'q', 'estimator'])


def study_by_sample_size(sample_sizes=DEFAULT_SAMPLE_SIZES, q=0.5,
                         estimators=None, **kwargs):
    """Run every estimator over a range of sample sizes at a fixed quantile.

    All keyword arguments are forwarded to :func:`run_study`.
    """
    configurations = [(n, q) for n in np.atleast_1d(sample_sizes)]
    return run_study(configurations, estimators=estimators, **kwargs)


def study_by_quantile(n=100, quantiles=DEFAULT_QUANTILES, estimators=None,
                      **kwargs):
    """Run the quantile-based estimators over a grid of quantile levels.

    The anchor is recomputed from the distribution's quantile function at each
    level. All keyword arguments are forwarded to :func:`run_study`.
    """
    if estimators is None:
        estimators = est.QUANTILE_ESTIMATORS
    configurations = [(n, q) for q in np.atleast_1d(quantiles)]
    return run_study(configurations, estimators=estimators, **kwargs)
