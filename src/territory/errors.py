"""Exception types raised by the optimization engine."""

from __future__ import annotations


class OptimizationError(Exception):
    """Base class for engine failures."""


class InputError(OptimizationError, ValueError):
    """The caller supplied no optimizable data or an invalid configuration.

    Raised before any clustering starts. Callers should report it as a data
    problem ("fix your data"), not as a degraded run.
    """


class ProviderError(OptimizationError):
    """A travel-time provider could not produce a matrix for a daily batch.

    Never fatal to an optimization run: the affected batch keeps its
    proximity order.
    """
