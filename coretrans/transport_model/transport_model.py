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

"""Base class of the models predicting turbulent transport coefficients."""

import abc
import dataclasses

from absl import logging
from jax import numpy as jnp
import numpy as np

from coretrans import constants
from coretrans import errors
from coretrans import jax_utils
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.transport_model import runtime_params as transport_runtime_params_lib

_DIFFUSIVITIES = ('chi_face_ion', 'chi_face_el', 'd_face_el')


class TransportModel(abc.ABC):
  """Computes chi_i, chi_e, D_e and V_e on the face grid.

  Subclasses implement `_call_implementation`, `__hash__` and `__eq__`, and
  set `self._frozen = True` as the last statement of `__init__`. Once frozen,
  attributes can no longer be assigned, so equal models can share caches.

  `__call__` guards the raw prediction: non-finite values raise
  `CriticalNumericalError`, negative diffusivities are logged and set to zero,
  a chi_max / chi_min above 1e4 in the prediction is logged as a warning, and
  every coefficient is clipped to the bounds of the runtime params.
  """

  def __setattr__(self, attr, value):
    if getattr(self, '_frozen', False):
      raise AttributeError(
          f'Cannot set {attr!r}: {type(self).__name__} is frozen.'
      )
    return super().__setattr__(attr, value)

  def __call__(
      self,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> state.TransportCoefficients:
    if not getattr(self, '_frozen', False):
      raise RuntimeError(
          f'{type(self).__name__}.__init__ must set self._frozen = True.'
      )
    params = dynamic_runtime_params_slice.transport
    coeffs = self._call_implementation(
        params, dynamic_runtime_params_slice, geo, core_profiles
    )
    self._check_finite(coeffs)
    coeffs = self._clamp_negative_diffusivities(coeffs)
    # Range of the unclipped prediction.
    self._warn_on_dynamic_range(coeffs)
    return self._clip(params, coeffs)

  @abc.abstractmethod
  def _call_implementation(
      self,
      transport_dynamic_runtime_params: transport_runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> state.TransportCoefficients:
    """Unclipped coefficients of the model."""

  @abc.abstractmethod
  def __hash__(self) -> int:
    ...

  @abc.abstractmethod
  def __eq__(self, other) -> bool:
    ...

  def _check_finite(self, coeffs: state.TransportCoefficients) -> None:
    for field in dataclasses.fields(coeffs):
      if not jax_utils.is_finite(getattr(coeffs, field.name)):
        raise errors.CriticalNumericalError(
            f'{type(self).__name__} produced non-finite values.',
            quantity=field.name,
        )

  def _clamp_negative_diffusivities(
      self, coeffs: state.TransportCoefficients
  ) -> state.TransportCoefficients:
    """Sets negative diffusivities to zero. The convection keeps its sign."""
    updates = {}
    for name in _DIFFUSIVITIES:
      value = np.asarray(getattr(coeffs, name))
      negative = value < 0.0
      if negative.any():
        logging.error(
            '%s produced %d negative values of %s (min %.3e). Clamping to 0.',
            type(self).__name__,
            int(negative.sum()),
            name,
            float(value.min()),
        )
        updates[name] = jnp.maximum(getattr(coeffs, name), 0.0)
    return dataclasses.replace(coeffs, **updates) if updates else coeffs

  def _clip(
      self,
      params: transport_runtime_params_lib.DynamicRuntimeParams,
      coeffs: state.TransportCoefficients,
  ) -> state.TransportCoefficients:
    bounds = {
        'chi_face_ion': (params.chi_min, params.chi_max),
        'chi_face_el': (params.chi_min, params.chi_max),
        'd_face_el': (params.D_e_min, params.D_e_max),
        'v_face_el': (params.V_e_min, params.V_e_max),
    }
    return dataclasses.replace(
        coeffs,
        **{
            name: jnp.clip(getattr(coeffs, name), low, high)
            for name, (low, high) in bounds.items()
        },
    )

  def _warn_on_dynamic_range(self, coeffs: state.TransportCoefficients):
    chi = np.concatenate(
        [np.asarray(coeffs.chi_face_ion), np.asarray(coeffs.chi_face_el)]
    )
    chi_min, chi_max = float(chi.min()), float(chi.max())
    floor = max(chi_min, constants.DIFFUSIVITY_FLOOR)
    if chi_max > constants.CHI_DYNAMIC_RANGE_WARNING * floor:
      logging.warning(
          'Large dynamic range in heat diffusivity from %s: chi_max=%.3e,'
          ' chi_min=%.3e.',
          type(self).__name__,
          chi_max,
          chi_min,
      )
