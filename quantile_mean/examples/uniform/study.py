"""Run both sweeps of the uniform study and save the tables and figures."""
import os
import datetime
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from ... import simulation as sim
from ... import plotting as qplt
from . import (distribution, true_mean, q, num_replicates, censored_fraction,
               observation_coefficient, sample_sizes, n, quantiles)

script_name = os.path.basename(__file__)


def _log(msg):
    print(script_name + ": " + datetime.datetime.now().isoformat() + ": "
          + msg)


def run_uniform_study(output_dir='./uniform-study', processes=None, seed=0):
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    shared = dict(
        num_replicates=num_replicates, distribution=distribution,
        true_mean=true_mean, censored_fraction=censored_fraction,
        observation_coefficient=observation_coefficient, scale_by_n=True,
        processes=processes, seed=seed,
    )

    _log('Running sample size sweep!')
    by_n = sim.study_by_sample_size(sample_sizes, q=q, **shared)
    by_n.to_csv(output_dir / 'by_sample_size.csv')
    _log('completed sample size sweep')

    _log('Running quantile sweep!')
    by_q = sim.study_by_quantile(n, quantiles, **shared)
    by_q.to_csv(output_dir / 'by_quantile.csv')
    _log('completed quantile sweep')

    for statistic in ['bias', 'variance', 'mse']:
        fig, axs = plt.subplots(ncols=2, figsize=(10, 4))
        qplt.plot_by_sample_size(by_n, statistic, ax=axs[0])
        qplt.plot_by_quantile(by_q, statistic, ax=axs[1])
        if statistic != 'bias':
            # variance and mse are scaled by N
            axs[0].set_ylabel('$N \\times$ ' + axs[0].get_ylabel())
            axs[1].set_ylabel('$N \\times$ ' + axs[1].get_ylabel())
        fig.tight_layout()
        fig.savefig(output_dir / f'{statistic}.png')
        plt.close(fig)
    _log('Saved figures to ' + str(output_dir))
    return by_n, by_q


if __name__ == '__main__':
    by_n, by_q = run_uniform_study()
    print(by_n['mse'].unstack('estimator'))
    print(by_q['mse'].unstack('estimator'))
