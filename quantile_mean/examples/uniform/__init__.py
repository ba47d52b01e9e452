"""Parameters of the reference study: uniform(0, 1) samples, median anchor,
ten percent of each sample censored."""
import numpy as np
import scipy.stats

distribution = scipy.stats.uniform()
true_mean = 0.5

q = 0.5  # anchor level for the sample size sweep
num_replicates = 10_000  # M
censored_fraction = 0.1  # Q
observation_coefficient = 0.8  # OC
sample_sizes = np.arange(20, 201, 10)  # n1..n2

# for the quantile sweep
n = 100
quantiles = np.linspace(0.02, 0.98, 49)
