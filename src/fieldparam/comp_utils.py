#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

from typing import Tuple

import numpy as np
from scipy.sparse import csr_matrix, spdiags, spmatrix

from fieldparam.common import FloatArray, IntArray, InvalidInputShape
from fieldparam.mesh_utils import corner_function_index


def field_degree(raw_field: FloatArray) -> int:
    """Infer the number of vectors per face of a raw directional field.

    :param raw_field: #F by 3N field in xyzxyz raw format.
    :return: N.
    """
    if raw_field.ndim != 2:
        raise InvalidInputShape(f'Raw field must have array dimension 2, not {raw_field.ndim}.')
    if raw_field.shape[1] == 0 or raw_field.shape[1] % 3:
        raise InvalidInputShape(f'Raw field column count must be a positive multiple of 3, not {raw_field.shape[1]}.')
    return raw_field.shape[1] // 3


def compute_edge_vectors(vertices: FloatArray, faces: IntArray) -> FloatArray:
    """Compute face edge vectors. Local edge j goes from corner j to corner j + 1.

    :param vertices: #V by 3 vertex coordinates.
    :param faces: #F by 3 vertex indices of triangular faces.
    :return: #F by 3 by 3 edge vectors.
    """
    return vertices[np.roll(faces, shift=-1, axis=1)] - vertices[faces]


def compute_target_gradients(vertices: FloatArray, faces: IntArray, raw_field: FloatArray,
                             n: int = None) -> FloatArray:
    """Project every field vector of a face onto each of its edge vectors.

    :param vertices: #V by 3 vertex coordinates.
    :param faces: #F by 3 vertex indices of triangular faces.
    :param raw_field: #F by 3N field in xyzxyz raw format.
    :param n: Number of vectors per face or None to infer it from the field.
    :return: 3N * #F target differences, indexed as the rows of the differential operator.
    """
    if n is None:
        n = field_degree(raw_field)
    field = raw_field.reshape(len(faces), n, 3)
    return np.einsum('fjd,fkd->fjk', compute_edge_vectors(vertices, faces), field).ravel()


def differential_operator(face_count: int, n: int) -> csr_matrix:
    """Build the per-face discrete exterior derivative acting independently on each of n corner functions.

    Row (f, j, k) holds -1 at corner j and +1 at corner j + 1 of face f for function k.

    :param face_count: Number of faces.
    :param n: Number of functions per corner.
    :return: Square (3n * #F) sparse matrix.
    """
    fid, local, func = np.meshgrid(np.arange(face_count), np.arange(3), np.arange(n), indexing='ij')
    rows = corner_function_index(fid, local, func, n).ravel()
    heads = corner_function_index(fid, (local + 1) % 3, func, n).ravel()
    data = np.concatenate([-np.ones(rows.size), np.ones(rows.size)])
    row_ind = np.concatenate([rows, rows])
    col_ind = np.concatenate([rows, heads])
    size = 3 * n * face_count
    return csr_matrix((data, (row_ind, col_ind)), shape=(size, size))


def edge_weight_matrix(face_edges: IntArray, edge_weights: FloatArray, n: int) -> csr_matrix:
    """Build the diagonal weight matrix matching the rows of the differential operator.

    :param face_edges: #F by 3 face edges.
    :param edge_weights: #E weights per edge.
    :param n: Number of functions per corner.
    :return: Square (3n * #F) diagonal sparse matrix.
    """
    diag = np.repeat(edge_weights[face_edges].ravel(), n)
    return csr_matrix(spdiags(diag, 0, diag.size, diag.size))


def face_differentials(vertices: FloatArray, faces: IntArray, face_edges: IntArray, raw_field: FloatArray,
                       edge_weights: FloatArray, n: int = None) -> Tuple[csr_matrix, csr_matrix, FloatArray]:
    """Build the differential operator, its weights, and the target differences of the raw field.

    :param vertices: #V by 3 vertex coordinates.
    :param faces: #F by 3 vertex indices of triangular faces.
    :param face_edges: #F by 3 face edges.
    :param raw_field: #F by 3N field in xyzxyz raw format.
    :param edge_weights: #E weights per edge.
    :param n: Number of vectors per face or None to infer it from the field.
    :return: d0, M1, and gamma.
    """
    if n is None:
        n = field_degree(raw_field)
    d0 = differential_operator(len(faces), n)
    m1 = edge_weight_matrix(face_edges, edge_weights, n)
    gamma = compute_target_gradients(vertices, faces, raw_field, n)
    return d0, m1, gamma


def assemble_energy(d0: spmatrix, m1: spmatrix, vt2c: spmatrix, gamma: FloatArray) -> Tuple[csr_matrix, FloatArray]:
    """Assemble the smoothness energy over vertex copy unknowns.

    Minimizes sum of M1 * (d0 @ vt2c @ x - gamma) ** 2, the normal equations of which are EtE @ x = rhs. The weights
    enter the right-hand side as well, rhs = vt2c^T @ d0^T @ M1 @ gamma, so a zero weight drops the edge entirely.

    :param d0: Differential operator.
    :param m1: Diagonal weight matrix.
    :param vt2c: Vertex to corner map.
    :param gamma: Target differences.
    :return: EtE and rhs.
    """
    e = csr_matrix(d0 @ vt2c)
    et = csr_matrix(e.T)
    return csr_matrix(et @ m1 @ e), et @ (m1 @ gamma)
