"""Estimating a mean with help from a known quantile and censoring flags."""
from .stats import *
from . import simulation

__version__ = "0.1.0"
