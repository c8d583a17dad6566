#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

import logging
import time
from collections import deque
from typing import Tuple

import numpy as np
from numpy import typing as npt

logger = logging.getLogger(__name__)


class timer:
    name: str
    time_start: float

    def __init__(self, name: str = None):
        self.name = name

    def __enter__(self):
        self.time_start = time.time()

    def __exit__(self, exc_type, exc_value, exc_traceback):
        logger.debug('[%s] Elapsed: %.6f sec.', self.name, time.time() - self.time_start)


def read_obj(file_path: str) -> Tuple[npt.NDArray, npt.NDArray]:
    """Read an OBJ file. Texture and normal indices of face records are ignored.

    :param file_path: File path.
    :return: NumPy array of vertex coordinates and NumPy array of vertex indices per face.
    """
    vertices, faces = deque(), deque()
    with open(file_path) as fin:
        for line in fin.readlines():
            if not line or not (words := line.split()):
                continue
            if words[0] == 'v':
                vertices.append(list(map(float, words[1:4])))
            elif words[0] == 'f':
                faces.append([int(word.split('/')[0]) for word in words[1:]])
    return np.array(vertices), np.array(faces, dtype=int) - 1


def write_obj(file_path: str, vertices: npt.ArrayLike, faces: npt.ArrayLike, corner_uv: npt.ArrayLike = None):
    """Write an OBJ file, optionally with one texture coordinate per face corner.

    :param file_path: File path.
    :param vertices: Array of vertices.
    :param faces: Array of faces.
    :param corner_uv: (3 * #F) by N array of corner parameter values, N in 1..3.
    :return: None.
    """
    faces = np.asarray(faces, dtype=int)
    if corner_uv is not None:
        corner_uv = np.asarray(corner_uv, dtype=float)
        if corner_uv.ndim != 2 or corner_uv.shape[0] != faces.size or not 1 <= corner_uv.shape[1] <= 3:
            raise ValueError(f'Corner values must have dimensions ({faces.size}, 1..3), not {corner_uv.shape}.')
    with open(file_path, 'wt') as fout:
        for vertex in vertices:
            fout.write(f'v {vertex[0]:.15} {vertex[1]:.15} {vertex[2]:.15}\n')
        if corner_uv is None:
            for face in faces:
                f0, f1, f2 = face + 1
                fout.write(f'f {f0} {f1} {f2}\n')
        else:
            for uv in corner_uv:
                fout.write('vt ' + ' '.join(f'{value:.15}' for value in uv) + '\n')
            for face, uv_face in zip(faces, np.arange(faces.size).reshape(-1, 3)):
                f0, f1, f2 = face + 1
                g0, g1, g2 = uv_face + 1
                fout.write(f'f {f0}/{g0} {f1}/{g1} {f2}/{g2}\n')
