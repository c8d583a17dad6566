#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

from numpy import typing as npt

IntArray = npt.NDArray[int]
FloatArray = npt.NDArray[float]


class InvalidInputShape(ValueError):
    """Input arrays or matrices have mutually inconsistent dimensions."""


class SolveFailed(RuntimeError):
    """Sparse factorization or solve of the saddle-point system failed."""
