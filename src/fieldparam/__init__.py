#  MIT License
#  Copyright (c) 2022. Ruslan Guseinov.

from fieldparam.common import InvalidInputShape, SolveFailed
from fieldparam.parameterization import SeamlessParameterization, parameterize
