r"""Monte-Carlo comparison of mean estimators

This module measures how much a known quantile, and knowledge of which
observations are censored, help when estimating the mean of a distribution.

For each configuration, a sample size :math:`N` and a quantile level
:math:`q`, we draw :math:`M` independent samples from a known distribution
(uniform on :math:`[0, 1]` by default), mark a fixed fraction of each sample as
censored, and record censored values as a fixed multiple (the "observation
coefficient") of their true value. The anchor :math:`X_q` is the true quantile
of the distribution at level :math:`q`.

Each estimator in :data:`quantile_mean.stats.ESTIMATORS` is evaluated on every
replication, and we report its bias, variance and MSE. The two standard
sweeps are over sample size at a fixed :math:`q`

.. code-block:: python

    >>> df = study_by_sample_size(np.arange(20, 201, 10), q=0.5,
    ...                           num_replicates=5000, scale_by_n=True)
    >>> df.xs('pairwise', level='estimator')['mse']

and over quantile level at a fixed :math:`N`, for only the estimators that use
the anchor

.. code-block:: python

    >>> df = study_by_quantile(100, np.linspace(0.02, 0.98, 49))

Replications are independent, so they are farmed out to a
:class:`multiprocessing.Pool` in chunks (pass ``processes=None`` to use every
cpu), each chunk with its own random stream. A replication where any estimator
comes out non-finite is redrawn, a bounded number of times.
"""
from .simulation import *
from .stats import *
