#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

import logging
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np
from numpy import typing as npt
from scipy.sparse import bmat, csc_matrix, spmatrix
from scipy.sparse import linalg as sparse_linalg

from fieldparam.common import FloatArray, InvalidInputShape, SolveFailed
from fieldparam.io_utils import timer

logger = logging.getLogger(__name__)


def augment_with_constraints(matrix: spmatrix, constraints: spmatrix, rhs: npt.ArrayLike,
                             constraint_rhs: npt.ArrayLike = None) -> Tuple[csc_matrix, FloatArray]:
    """Embed linear equality constraints C x = d into a symmetric system H x = rhs using Lagrange multipliers.

    :param matrix: n by n symmetric matrix H.
    :param constraints: m by n constraint matrix C.
    :param rhs: n right-hand side values.
    :param constraint_rhs: m constraint values d or None for homogeneous constraints.
    :return: (n + m) by (n + m) saddle-point matrix [[H, C^T], [C, 0]] and right-hand side [rhs, d].
    """
    rhs = np.asarray(rhs, dtype=float)
    n, m = matrix.shape[0], constraints.shape[0]
    if matrix.shape != (n, n):
        raise InvalidInputShape(f'System matrix must be square, not {matrix.shape}.')
    if rhs.shape != (n,):
        raise InvalidInputShape(f'Right-hand side does not match system size: {rhs.shape} != {(n,)}.')
    if constraints.shape[1] != n:
        raise InvalidInputShape(f'Constraint column count does not match system size: {constraints.shape[1]} != {n}.')
    if constraint_rhs is None:
        constraint_rhs = np.zeros(m)
    constraint_rhs = np.asarray(constraint_rhs, dtype=float)
    if constraint_rhs.shape != (m,):
        raise InvalidInputShape(f'Constraint values do not match constraint count: {constraint_rhs.shape} != {(m,)}.')
    if m == 0:
        return csc_matrix(matrix), rhs.copy()
    kkt = bmat([[matrix, constraints.T], [constraints, None]], format='csc')
    return kkt, np.concatenate([rhs, constraint_rhs])


class SaddlePointSolver(ABC):
    """Direct sparse solver for a quadratic energy under linear equality constraints."""

    def __init__(self):
        super(SaddlePointSolver, self).__init__()
        self._singular_tol = 1.e-12
        self._residual_tol = 1.e-8

    def set_singular_tol(self, value: float) -> None:
        """Set relative pivot magnitude below which the system is considered singular.

        :param value: Ratio of the smallest to the largest absolute pivot.
        :return: None
        """
        self._singular_tol = value

    def set_residual_tol(self, value: float) -> None:
        """Set relative residual above which a solution is rejected.

        :param value: Maximal ratio of residual norm to right-hand side norm.
        :return: None
        """
        self._residual_tol = value

    @abstractmethod
    def eval_energy(self) -> spmatrix:
        pass

    @abstractmethod
    def eval_rhs(self) -> FloatArray:
        pass

    @abstractmethod
    def eval_constraints(self) -> spmatrix:
        pass

    def solve_saddle_point(self) -> Tuple[FloatArray, FloatArray]:
        """Factorize and solve the constrained system.

        :return: Solution values and Lagrange multipliers.
        """
        energy, constraints = self.eval_energy(), self.eval_constraints()
        kkt, b = augment_with_constraints(energy, constraints, self.eval_rhs())
        n = energy.shape[0]
        logger.debug('Saddle-point system: %d unknowns, %d constraints, %d nonzeros.', n, constraints.shape[0],
                     kkt.nnz)
        try:
            with timer('factorization'):
                lu = sparse_linalg.splu(kkt)
        except RuntimeError as exc:
            logger.warning('Factorization failed: %s', exc)
            raise SolveFailed(f'Factorization failed: {exc}') from exc
        pivots = np.abs(lu.U.diagonal())
        if pivots.min() <= self._singular_tol * pivots.max():
            ratio = pivots.min() / pivots.max() if pivots.max() else 0.
            logger.warning('Factorization is numerically singular (pivot ratio %.3e).', ratio)
            raise SolveFailed(f'Saddle-point system is numerically singular: pivot ratio {ratio:.3e}.')
        with timer('solve'):
            x = lu.solve(b)
        if not np.isfinite(x).all():
            logger.warning('Solution is not finite.')
            raise SolveFailed('Solution contains non-finite values.')
        residual = np.linalg.norm(kkt @ x - b) / max(np.linalg.norm(b), 1.)
        if self._residual_tol < residual:
            logger.warning('Solution residual %.3e exceeds tolerance %.3e.', residual, self._residual_tol)
            raise SolveFailed(f'Solution residual {residual:.3e} exceeds tolerance {self._residual_tol:.3e}.')
        return x[:n], x[n:]
