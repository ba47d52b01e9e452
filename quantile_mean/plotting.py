"""
Plots comparing the estimators, from the output of
:func:`quantile_mean.simulation.run_study` and friends.
"""
import matplotlib.pyplot as plt
import seaborn as sns

from .stats import ESTIMATORS

estimator_colors = dict(zip(ESTIMATORS, sns.color_palette('colorblind')))
estimator_labels = {
    'mean': 'Sample mean',
    'observed_mean': 'Sample mean, censored data',
    'quantile': 'Quantile-adjusted eCDF',
    'projection': 'KL projection',
    'kaplan_meier': 'Kaplan-Meier',
    'kaplan_meier_quantile': 'Kaplan-Meier, quantile-adjusted',
    'pairwise': 'Pairwise (U-statistic)',
}
# censoring-aware estimators see a different sample, make that visible
estimator_linestyles = {name: '-.' if uses_censoring else '-'
                        for name, (_, _, uses_censoring) in ESTIMATORS.items()}
statistic_labels = {'bias': 'Bias', 'variance': 'Variance', 'mse': 'MSE'}


def _plot_vs(stats, level, statistic, ax):
    if statistic not in statistic_labels:
        raise ValueError(f"statistic must be one of {list(statistic_labels)}")
    if ax is None:
        fig, ax = plt.subplots()
    for name, df in stats.groupby(level='estimator', sort=False):
        df = df.reset_index().sort_values(level)
        ax.plot(df[level], df[statistic], color=estimator_colors.get(name),
                ls=estimator_linestyles.get(name, '-'),
                label=estimator_labels.get(name, name))
    ax.set_ylabel(statistic_labels[statistic])
    ax.legend(frameon=False)
    return ax


def plot_by_sample_size(stats, statistic='mse', ax=None):
    """One line per estimator of *statistic* against sample size.

    Parameters
    ----------
    stats : pd.DataFrame
        Output of :func:`quantile_mean.simulation.study_by_sample_size`.
    statistic : str
        'bias', 'variance' or 'mse'.
    ax : Optional[matplotlib.axes.Axes]
        Where to plot. A new figure is made by default.
    """
    ax = _plot_vs(stats, 'N', statistic, ax)
    ax.set_xlabel('Sample size, $N$')
    return ax


def plot_by_quantile(stats, statistic='mse', ax=None):
    """Same as :func:`plot_by_sample_size`, but against quantile level."""
    ax = _plot_vs(stats, 'q', statistic, ax)
    ax.set_xlabel('Quantile level, $q$')
    ax.set_xlim([0, 1])
    return ax
