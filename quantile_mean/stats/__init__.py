"""
Estimators of a mean that use a known quantile and/or censoring flags, along
with the empirical distribution functions they are built from.
"""
from .distributions import *
from .estimators import *
