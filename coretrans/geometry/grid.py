# Copyright 2024 DeepMind Technologies Limited
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The mesh descriptor of the 1D finite volume grid."""

import functools

import numpy as np
import pydantic

from coretrans.config import model_base


class Grid1D(model_base.BaseModelFrozen):
  """Uniform 1D grid on the unit interval.

  Attributes:
    n_cells: Number of cells.
  """

  n_cells: pydantic.PositiveInt

  @property
  def dx(self) -> float:
    return 1.0 / self.n_cells

  @functools.cached_property
  def face_centers(self) -> np.ndarray:
    """Coordinates of face centers."""
    return np.linspace(0.0, 1.0, self.n_cells + 1)

  @functools.cached_property
  def cell_centers(self) -> np.ndarray:
    """Coordinates of cell centers."""
    return np.linspace(self.dx * 0.5, 1.0 - self.dx * 0.5, self.n_cells)
