import numpy as np
import pandas as pd


class EstimateAccumulator:
    """Running mean and sum of squared deviations of each estimator.

    Uses Welford's update for single estimates and the pairwise update of Chan,
    Golub & LeVeque for merging two accumulators, so that chunks of
    replications run in different processes can be combined in any order.

    Parameters
    ----------
    names : List[str]
        The estimators being tracked.

    Attributes
    ----------
    redrawn : int
        Replications thrown away because some estimate was not finite. Summed
        on merge.
    """

    def __init__(self, names):
        self.names = list(names)
        self.count = 0
        self.mean = np.zeros(len(self.names))
        self.m2 = np.zeros(len(self.names))
        self.redrawn = 0

    def add(self, estimates):
        """Accumulate one replication, a dict of name -> estimate."""
        res = np.array([estimates[name] for name in self.names], dtype=float)
        if not np.all(np.isfinite(res)):
            raise ValueError("Refusing to accumulate non-finite estimates: "
                             f"{dict(zip(self.names, res))}")
        self.count += 1
        delta = res - self.mean
        self.mean += delta/self.count
        self.m2 += delta*(res - self.mean)

    def merge(self, other):
        """Fold *other* into this accumulator (in place) and return self."""
        if other.names != self.names:
            raise ValueError("Can only merge accumulators tracking the same "
                             "estimators.")
        self.redrawn += other.redrawn
        if other.count == 0:
            return self
        count = self.count + other.count
        delta = other.mean - self.mean
        self.mean = self.mean + delta*other.count/count
        self.m2 = self.m2 + other.m2 + delta**2*self.count*other.count/count
        self.count = count
        return self

    def summarize(self, true_mean, scale=1):
        """Bias, variance and MSE of each estimator.

        Parameters
        ----------
        true_mean : float
            The mean of the distribution that was sampled.
        scale : float
            Multiplies the variance and MSE, e.g. the sample size, to compare
            estimators across sample sizes on the same footing.

        Returns
        -------
        df : pd.DataFrame
            Indexed by estimator, with columns ``['bias', 'variance', 'mse',
            'replications']``.
        """
        if self.count < 2:
            raise ValueError("Need at least two replications to estimate a "
                             "variance.")
        bias = self.mean - true_mean
        # M2/n is the (biased) second central moment about the sample mean
        mse = self.m2/self.count + bias**2
        variance = self.m2/(self.count - 1)
        df = pd.DataFrame({
            'bias': bias,
            'variance': scale*variance,
            'mse': scale*mse,
            'replications': self.count,
        }, index=pd.Index(self.names, name='estimator'))
        return df
