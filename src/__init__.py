"""
Champion Baselines

Online aggregation of per-champion-per-patch match statistics and
scoring of individual games against those baselines.
"""

__version__ = "0.1.0"
