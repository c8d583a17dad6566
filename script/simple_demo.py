import logging

import numpy as np

from fieldparam.io_utils import read_obj, write_obj
from fieldparam.mesh_utils import compute_face_edges, pin_constraints, vertex_to_corner_matrix
from fieldparam.parameterization import parameterize

logging.basicConfig(level=logging.DEBUG)

vertices, faces = read_obj('../tests/data/bump.obj')
edges, face_edges = compute_face_edges(faces)
raw_field = np.tile([1., 0., 0., 0., 1., 0.], (len(faces), 1))  # Two orthogonal directions per face.
corner_uv = parameterize(vertices, faces, face_edges, raw_field, np.ones(len(edges)),
                         vertex_to_corner_matrix(faces, 2), pin_constraints([0], 2, len(vertices)))
write_obj('bump_with_uv.obj', vertices, faces, corner_uv)
