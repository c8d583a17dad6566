import os.path

import numpy as np
import pytest
from scipy.sparse import spdiags

from fieldparam.common import InvalidInputShape
from fieldparam.comp_utils import (assemble_energy, compute_edge_vectors, compute_target_gradients,
                                   differential_operator, edge_weight_matrix, face_differentials, field_degree)
from fieldparam.io_utils import read_obj
from fieldparam.mesh_utils import compute_face_edges, vertex_to_corner_matrix
from tests import TEST_DATA_FOLDER


def test_field_degree():
    assert field_degree(np.zeros((5, 3))) == 1
    assert field_degree(np.zeros((5, 12))) == 4
    with pytest.raises(InvalidInputShape):
        field_degree(np.zeros((5, 4)))
    with pytest.raises(InvalidInputShape):
        field_degree(np.zeros((5, 0)))
    with pytest.raises(InvalidInputShape):
        field_degree(np.zeros(6))


def test_differential_operator():
    n = 2
    d0 = differential_operator(3, n)
    assert d0.shape == (18, 18)
    dense = d0.toarray()
    assert ((dense == 1.).sum(axis=1) == 1).all()
    assert ((dense == -1.).sum(axis=1) == 1).all()
    assert (d0.getnnz(axis=1) == 2).all()
    # Differences of corner values within each face, per function.
    values = np.arange(18.) ** 2
    corners = values.reshape(3, 3, n)
    expected = np.roll(corners, shift=-1, axis=1) - corners
    assert np.allclose(d0 @ values, expected.ravel())


def test_edge_weight_matrix():
    face_edges = np.array([[0, 1, 2], [2, 3, 4]])
    edge_weights = np.array([1., 2., 3., 4., 5.])
    m1 = edge_weight_matrix(face_edges, edge_weights, 2)
    assert m1.shape == (12, 12)
    assert m1.nnz == 12
    assert np.allclose(m1.diagonal(), [1., 1., 2., 2., 3., 3., 3., 3., 4., 4., 5., 5.])


def test_target_gradients():
    vertices = np.array([[0., 0., 0.], [2., 0., 0.], [0., 1., 0.]])
    faces = np.array([[0, 1, 2]])
    raw_field = np.array([[1., 0., 0., 0., 1., 0.]])
    edge_vectors = compute_edge_vectors(vertices, faces)
    assert np.allclose(edge_vectors[0], [[2., 0., 0.], [-2., 1., 0.], [0., -1., 0.]])
    gamma = compute_target_gradients(vertices, faces, raw_field)
    assert np.allclose(gamma, [2., 0., -2., 1., 0., -1.])
    assert np.allclose(compute_target_gradients(vertices, faces, raw_field, n=2), gamma)


def test_energy_symmetric_semidefinite():
    vertices, faces = read_obj(os.path.join(TEST_DATA_FOLDER, 'bump.obj'))
    edges, face_edges = compute_face_edges(faces)
    rng = np.random.default_rng(7)
    raw_field = rng.normal(size=(len(faces), 6))
    edge_weights = rng.uniform(0., 2., len(edges))
    d0, m1, gamma = face_differentials(vertices, faces, face_edges, raw_field, edge_weights)
    assert d0.shape == m1.shape == (48, 48)
    assert gamma.shape == (48,)
    energy, rhs = assemble_energy(d0, m1, vertex_to_corner_matrix(faces, 2), gamma)
    assert energy.shape == (18, 18)
    assert rhs.shape == (18,)
    dense = energy.toarray()
    assert np.allclose(dense, dense.T)
    assert np.linalg.eigvalsh(dense).min() > -1.e-10


def test_zero_weight_disables_edge():
    vertices, faces = read_obj(os.path.join(TEST_DATA_FOLDER, 'bump.obj'))
    edges, face_edges = compute_face_edges(faces)
    rng = np.random.default_rng(5)
    raw_field = rng.normal(size=(len(faces), 6))
    edge_weights = rng.uniform(0.5, 2., len(edges))
    edge_weights[face_edges[0, 1]] = 0.
    d0, m1, gamma = face_differentials(vertices, faces, face_edges, raw_field, edge_weights)
    weights = m1.diagonal()
    # Interior edge shared by two faces, two functions each.
    assert np.count_nonzero(weights == 0.) == 4
    kept = np.flatnonzero(weights)
    vt2c = vertex_to_corner_matrix(faces, 2)
    energy, rhs = assemble_energy(d0, m1, vt2c, gamma)
    e = d0[kept] @ vt2c
    assert np.allclose(energy.toarray(), (e.T @ spdiags(weights[kept], 0, kept.size, kept.size) @ e).toarray())
    assert np.allclose(rhs, e.T @ (weights[kept] * gamma[kept]))
