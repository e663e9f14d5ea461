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

"""Opaque surrogate predictors used by the neural network transport model.

A predictor maps a dictionary of named input features, one array of shape
(n,) per feature, to a dictionary of named gyroBohm-normalized fluxes. The
predictor may be backed by a non-reentrant runtime, so callers must serialize
access to it.
"""

import abc
from collections.abc import Mapping
import functools
from typing import Final, TypeAlias

import jax
import numpy as np

from coretrans import errors
from coretrans import jax_utils

ModelOutput: TypeAlias = Mapping[str, np.ndarray]
InputsAndRanges: TypeAlias = Mapping[str, Mapping[str, float]]

# Feature names in the order expected by QLKNN models.
QLKNN_INPUT_NAMES: Final[tuple[str, ...]] = (
    'Ati',
    'Ate',
    'Ane',
    'Ani',
    'q',
    'smag',
    'x',
    'Ti_Te',
    'LogNuStar',
    'normni',
)

QLKNN_OUTPUT_NAMES: Final[tuple[str, ...]] = (
    'efiITG',
    'efeITG',
    'pfeITG',
    'efiTEM',
    'efeTEM',
    'pfeTEM',
    'efeETG',
)

SUPPORTED_PLATFORMS: Final[tuple[str, ...]] = ('cpu', 'gpu', 'tpu')


class SurrogatePredictor(abc.ABC):
  """Base class for surrogate transport predictors."""

  def __init__(self, path: str, name: str):
    self.path = path
    self.name = name

  @property
  @abc.abstractmethod
  def input_names(self) -> tuple[str, ...]:
    """Names of the input features, in the order the model consumes them."""

  @abc.abstractmethod
  def predict(self, inputs: Mapping[str, np.ndarray]) -> ModelOutput:
    """Predicts the normalized fluxes for the given features."""


class QLKNNPredictor(SurrogatePredictor):
  """A predictor wrapping a QLKNN model from the fusion_surrogates library.

  Raises:
    UnsupportedPlatformError: If the JAX backend is not supported.
    ModelLoadError: If the model cannot be loaded.
  """

  def __init__(self, path: str = '', name: str = ''):
    platform = jax.default_backend()
    if platform not in SUPPORTED_PLATFORMS:
      raise errors.UnsupportedPlatformError(platform, SUPPORTED_PLATFORMS)
    # pylint: disable=g-import-not-at-top
    from fusion_surrogates.qlknn import qlknn_model
    # pylint: enable=g-import-not-at-top

    try:
      if path:
        self._model = qlknn_model.QLKNNModel.load_model_from_path(path, name)
      elif name:
        self._model = qlknn_model.QLKNNModel.load_model_from_name(name)
      else:
        self._model = qlknn_model.QLKNNModel.load_default_model()
    except (OSError, ValueError, KeyError) as e:
      raise errors.ModelLoadError(
          f'Failed to load QLKNN model: {e}', path=path or None
      ) from e
    super().__init__(path=self._model.path, name=self._model.name)

  @property
  def inputs_and_ranges(self) -> InputsAndRanges:
    return self._model.inputs_and_ranges

  @property
  def input_names(self) -> tuple[str, ...]:
    return tuple(self.inputs_and_ranges.keys())

  def predict(self, inputs: Mapping[str, np.ndarray]) -> ModelOutput:
    stacked = np.stack(
        [np.asarray(inputs[key]) for key in self.input_names], axis=-1
    ).astype(jax_utils.get_np_dtype())
    predictions = self._model.predict(stacked)
    return {key: np.asarray(value) for key, value in predictions.items()}


# Load failures keyed by (path, name). `functools.cache` does not memoize
# exceptions, so these are kept separately.
_LOAD_FAILURES: dict[tuple[str, str], errors.SurrogateModelError] = {}


@functools.cache
def _load_qlknn_predictor(path: str, name: str) -> QLKNNPredictor:
  return QLKNNPredictor(path=path, name=name)


def get_qlknn_predictor(path: str = '', name: str = '') -> QLKNNPredictor:
  """Loads a QLKNN predictor once per (path, name).

  A failed load is remembered: later calls with the same (path, name) re-raise
  the original error without attempting to load the model again.

  Args:
    path: Path to the model file. Empty to load by name.
    name: Name of the model. Empty together with path for the default model.

  Returns:
    The cached predictor.

  Raises:
    SurrogateModelError: If this or an earlier load of the model failed.
  """
  key = (path, name)
  if key in _LOAD_FAILURES:
    raise _LOAD_FAILURES[key]
  try:
    return _load_qlknn_predictor(path, name)
  except errors.SurrogateModelError as e:
    _LOAD_FAILURES[key] = e
    raise
