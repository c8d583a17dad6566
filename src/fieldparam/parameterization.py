#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

import logging
from typing import Optional
from warnings import warn

import numpy as np
from numpy import typing as npt
from scipy.sparse import csr_matrix, spmatrix

from fieldparam.common import FloatArray, InvalidInputShape
from fieldparam.comp_utils import assemble_energy, face_differentials, field_degree
from fieldparam.solver import SaddlePointSolver

logger = logging.getLogger(__name__)


class SeamlessParameterization(SaddlePointSolver):
    """Seam-aware parameterization of a triangle mesh integrating a per-face N-directional field.

    Unknowns are N functions per vertex copy. Corners map to vertex copies through the vertex-to-corner matrix, so
    corners on opposite sides of a cut get independent values. Linear constraints C x = 0 (e.g. seam relations and
    pinned values) are enforced with Lagrange multipliers. Inputs are only checked for consistent dimensions.
    """

    @property
    def degree(self) -> int:
        return self._n

    @property
    def face_count(self) -> int:
        return len(self._faces)

    @property
    def unknown_count(self) -> int:
        return self._vt2c.shape[1]

    @property
    def constraint_count(self) -> int:
        return self._constraints.shape[0]

    @property
    def differential(self) -> csr_matrix:
        return self._d0

    @property
    def weights(self) -> csr_matrix:
        return self._m1

    @property
    def target_gradients(self) -> FloatArray:
        return self._gamma

    @property
    def energy_matrix(self) -> csr_matrix:
        return self._energy

    @property
    def rhs(self) -> FloatArray:
        return self._rhs

    @property
    def vertex_values(self) -> Optional[FloatArray]:
        return self._x

    @property
    def multipliers(self) -> Optional[FloatArray]:
        return self._multipliers

    @property
    def corner_uv(self) -> Optional[FloatArray]:
        return self._corner_uv

    def __init__(self, vertices: npt.ArrayLike, faces: npt.ArrayLike, face_edges: npt.ArrayLike,
                 raw_field: npt.ArrayLike, edge_weights: npt.ArrayLike, vt2c: spmatrix,
                 constraints: spmatrix = None, singular_tol: float = 1.e-12, residual_tol: float = 1.e-8):
        """Validate inputs and assemble the energy.

        :param vertices: #V by 3 ArrayLike of vertex coordinates.
        :param faces: #F by 3 ArrayLike of vertex indices of triangular faces, CCW.
        :param face_edges: #F by 3 edge indices, local edge j going from corner j to corner j + 1.
        :param raw_field: #F by 3N field, CCW ordered, in xyzxyz raw format.
        :param edge_weights: #E non-negative smoothness weights per edge.
        :param vt2c: (3N * #F) by #unknowns vertex-to-corner map.
        :param constraints: #C by #unknowns constraint matrix or None for no constraints.
        :param singular_tol: Relative pivot magnitude below which the system is considered singular.
        :param residual_tol: Relative residual above which a solution is rejected.
        """
        super(SeamlessParameterization, self).__init__()
        self.set_singular_tol(singular_tol)
        self.set_residual_tol(residual_tol)

        self._vertices = np.array(vertices, dtype=float)
        if self._vertices.ndim != 2 or self._vertices.shape[1] != 3:
            raise InvalidInputShape(f'Vertices must have dimensions (#V, 3), not {self._vertices.shape}.')
        self._faces = np.array(faces, dtype=int)
        if self._faces.ndim != 2 or self._faces.shape[1] != 3:
            raise InvalidInputShape(f'Faces must have dimensions (#F, 3), not {self._faces.shape}.')
        if len(self._faces) == 0:
            raise InvalidInputShape('Mesh must have at least one face.')
        if self._faces.min() < 0 or len(self._vertices) <= self._faces.max():
            raise InvalidInputShape(f'Faces reference vertices outside of [0, {len(self._vertices)}).')

        raw_field = np.array(raw_field, dtype=float)
        self._n = field_degree(raw_field)
        if raw_field.shape[0] != self.face_count:
            raise InvalidInputShape(f'Raw field row count does not match face count:'
                                    f' {raw_field.shape[0]} != {self.face_count}.')

        face_edges = np.array(face_edges, dtype=int)
        if face_edges.shape != self._faces.shape:
            raise InvalidInputShape(f'Face edges do not match faces: {face_edges.shape} != {self._faces.shape}.')
        if face_edges.min() < 0:
            raise InvalidInputShape('Face edges must be non-negative.')
        edge_weights = np.array(edge_weights, dtype=float)
        if edge_weights.ndim != 1:
            raise InvalidInputShape('Edge weights must be represented by a 1D array.')
        if edge_weights.size != (edge_count := face_edges.max() + 1):
            raise InvalidInputShape(f'Edge weights do not match edge count: {edge_weights.size} != {edge_count}.')
        if (edge_weights < 0.).any():
            warn('Some edge weights are negative.')

        self._vt2c = csr_matrix(vt2c, dtype=float)
        if self._vt2c.shape[0] != (corner_rows := 3 * self._n * self.face_count):
            raise InvalidInputShape(f'Vertex-to-corner map row count does not match corner functions count:'
                                    f' {self._vt2c.shape[0]} != {corner_rows}.')
        if self.unknown_count == 0:
            raise InvalidInputShape('Vertex-to-corner map must have at least one column.')
        if constraints is None:
            constraints = csr_matrix((0, self.unknown_count))
        self._constraints = csr_matrix(constraints, dtype=float)
        if self._constraints.shape[1] != self.unknown_count:
            raise InvalidInputShape(f'Constraint column count does not match unknown count:'
                                    f' {self._constraints.shape[1]} != {self.unknown_count}.')

        self._d0, self._m1, self._gamma = face_differentials(self._vertices, self._faces, face_edges, raw_field,
                                                             edge_weights, self._n)
        self._energy, self._rhs = assemble_energy(self._d0, self._m1, self._vt2c, self._gamma)
        logger.debug('Assembled energy: %d faces, N = %d, %d unknowns, %d nonzeros.', self.face_count, self._n,
                     self.unknown_count, self._energy.nnz)
        self._x: Optional[FloatArray] = None
        self._multipliers: Optional[FloatArray] = None
        self._corner_uv: Optional[FloatArray] = None

    def eval_energy(self) -> csr_matrix:
        return self._energy

    def eval_rhs(self) -> FloatArray:
        return self._rhs

    def eval_constraints(self) -> csr_matrix:
        return self._constraints

    def solve(self) -> FloatArray:
        """Solve for vertex copy values and distribute them to corners.

        :return: (3 * #F) by N corner parameter values, row 3 * f + j for corner j of face f.
        """
        self._x, self._multipliers, self._corner_uv = None, None, None
        x, multipliers = self.solve_saddle_point()
        self._x, self._multipliers = x, multipliers
        self._corner_uv = (self._vt2c @ x).reshape(-1, self._n)
        return self._corner_uv


def parameterize(vertices: npt.ArrayLike, faces: npt.ArrayLike, face_edges: npt.ArrayLike, raw_field: npt.ArrayLike,
                 edge_weights: npt.ArrayLike, vt2c: spmatrix, constraints: spmatrix = None) -> FloatArray:
    """Compute per-corner parameter values integrating a raw directional field.

    :param vertices: #V by 3 vertex coordinates.
    :param faces: #F by 3 vertex indices of triangular faces.
    :param face_edges: #F by 3 edge indices.
    :param raw_field: #F by 3N field in xyzxyz raw format.
    :param edge_weights: #E smoothness weights per edge.
    :param vt2c: Vertex-to-corner map.
    :param constraints: Constraint matrix or None.
    :return: (3 * #F) by N corner parameter values.
    """
    return SeamlessParameterization(vertices, faces, face_edges, raw_field, edge_weights, vt2c, constraints).solve()
