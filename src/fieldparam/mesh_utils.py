#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

from typing import Tuple, Union

import numpy as np
from numpy import typing as npt
from scipy.sparse import csr_matrix

from fieldparam.common import IntArray, InvalidInputShape


def corner_function_index(face: Union[int, npt.ArrayLike], local: Union[int, npt.ArrayLike],
                          function: Union[int, npt.ArrayLike], n: int) -> Union[int, IntArray]:
    """Flatten (face, local corner or edge, function) into a linear index of per-corner unknowns.

    :param face: Face index or array of face indices.
    :param local: Local corner (or local edge starting at that corner) in 0..2.
    :param function: Function index in 0..n-1.
    :param n: Number of functions per corner.
    :return: Linear index 3n * face + n * local + function, broadcast over the arguments.
    """
    return 3 * n * np.asarray(face) + n * np.asarray(local) + np.asarray(function)


def compute_face_edges(faces: IntArray) -> Tuple[IntArray, IntArray]:
    """Compute mesh edges and face-edge navigation. Local edge j of a face goes from its corner j to corner j + 1.

    :param faces: #F by 3 vertex indices of triangular faces.
    :return: #E by 2 sorted edges and #F by 3 face edges.
    """
    faces = np.asarray(faces, dtype=int)
    direct_edges = np.r_[faces[:, :2], faces[:, 1:], faces[:, (2, 0)]]
    edges, edge_inverse = np.unique(np.sort(direct_edges), axis=0, return_inverse=True)
    face_edges = edge_inverse.reshape(3, -1).T
    return edges, face_edges


def vertex_to_corner_matrix(cut_faces: npt.ArrayLike, n: int, copy_count: int = None) -> csr_matrix:
    """Build the map from per-vertex-copy functions to per-corner functions.

    Corners referencing the same vertex copy share unknowns, corners referencing different copies (across a cut) do
    not. Passing the mesh faces themselves gives a seamless map.

    :param cut_faces: #F by 3 vertex copy indices per face corner.
    :param n: Number of functions per vertex.
    :param copy_count: Number of vertex copies or None to infer from the faces.
    :return: (3n * #F) by (n * #copies) sparse matrix with a single unit entry per row.
    """
    cut_faces = np.asarray(cut_faces, dtype=int)
    if cut_faces.ndim != 2 or cut_faces.shape[1] != 3:
        raise InvalidInputShape(f'Cut faces must have dimensions (#F, 3), not {cut_faces.shape}.')
    if copy_count is None:
        copy_count = int(cut_faces.max()) + 1 if cut_faces.size else 0
    if cut_faces.size and (cut_faces.min() < 0 or copy_count <= cut_faces.max()):
        raise InvalidInputShape(f'Cut faces reference vertex copies outside of [0, {copy_count}).')
    face_count = len(cut_faces)
    fid, local, func = np.meshgrid(np.arange(face_count), np.arange(3), np.arange(n), indexing='ij')
    row_ind = corner_function_index(fid, local, func, n).ravel()
    col_ind = (n * cut_faces[:, :, np.newaxis] + func).ravel()
    return csr_matrix((np.ones(row_ind.size), (row_ind, col_ind)), shape=(3 * n * face_count, n * copy_count))


def pin_constraints(copy_ids: npt.ArrayLike, n: int, copy_count: int) -> csr_matrix:
    """Build constraint rows fixing all functions of the given vertex copies to zero.

    :param copy_ids: Vertex copy indices to pin.
    :param n: Number of functions per vertex.
    :param copy_count: Number of vertex copies.
    :return: (n * #pinned) by (n * #copies) sparse constraint matrix.
    """
    copy_ids = np.atleast_1d(np.asarray(copy_ids, dtype=int))
    if copy_ids.ndim != 1:
        raise InvalidInputShape('Pinned vertex copies must be represented by a 1D array.')
    if copy_ids.size and (copy_ids.min() < 0 or copy_count <= copy_ids.max()):
        raise InvalidInputShape(f'Pinned vertex copies outside of [0, {copy_count}).')
    col_ind = (n * copy_ids[:, np.newaxis] + np.arange(n)[np.newaxis, :]).ravel()
    return csr_matrix((np.ones(col_ind.size), (np.arange(col_ind.size), col_ind)),
                      shape=(col_ind.size, n * copy_count))
