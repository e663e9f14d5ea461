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

"""A transport model that uses a QLKNN surrogate predictor.

The predictor is opaque: it consumes ten dimensionless features per face and
returns gyroBohm-normalized fluxes. Whenever it cannot produce a valid
prediction, the model logs the failure and returns the Bohm-GyroBohm result
for that call instead.
"""

from collections.abc import Mapping
import dataclasses
import threading

from absl import logging
import chex
import jax
from jax import numpy as jnp
import numpy as np

from coretrans import array_typing
from coretrans import constants
from coretrans import errors
from coretrans import math_utils
from coretrans import state
from coretrans.config import runtime_params_slice
from coretrans.geometry import geometry
from coretrans.physics import formulas
from coretrans.transport_model import bohm_gyrobohm
from coretrans.transport_model import runtime_params as runtime_params_lib
from coretrans.transport_model import surrogate
from coretrans.transport_model import transport_model

# The predictor may wrap a non-reentrant runtime. Every call goes through this
# lock, whichever model instance makes it.
_PREDICTOR_LOCK = threading.Lock()

# Collisionality prefactor of nu* = q R / eps^1.5 * C Z_eff n_e lnLambda / T_e^2
# with n_e in m^-3 and T_e in eV.
_NU_STAR_PREFACTOR = 6.92e-15


# pylint: disable=invalid-name
@chex.dataclass(frozen=True)
class DynamicRuntimeParams(runtime_params_lib.DynamicRuntimeParams):
  """Runtime params of the QLKNN model.

  Attributes:
    min_chi: Floor applied to all predicted diffusivities [m^2/s].
    fallback: Parameters of the Bohm-GyroBohm model used on predictor failure.
  """

  min_chi: float
  fallback: bohm_gyrobohm.DynamicRuntimeParams


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class QLKNNInputs:
  """Dimensionless QLKNN input features on the face grid."""

  Ati: array_typing.FloatVectorFace
  Ate: array_typing.FloatVectorFace
  Ane: array_typing.FloatVectorFace
  Ani: array_typing.FloatVectorFace
  q: array_typing.FloatVectorFace
  smag: array_typing.FloatVectorFace
  x: array_typing.FloatVectorFace
  Ti_Te: array_typing.FloatVectorFace
  LogNuStar: array_typing.FloatVectorFace
  normni: array_typing.FloatVectorFace

  def as_dict(self) -> dict[str, np.ndarray]:
    return {
        field.name: np.asarray(getattr(self, field.name))
        for field in dataclasses.fields(self)
    }


def normalized_logarithmic_gradient(
    value_face: chex.Array,
    dr: chex.Numeric,
    reference_length: chex.Numeric,
) -> jax.Array:
  """Returns -L_ref * grad(f) / f on the face grid."""
  return -reference_length * math_utils.gradient(value_face, dr) / value_face


def compute_inputs(
    Z_eff: chex.Numeric,
    geo: geometry.Geometry,
    core_profiles: state.CoreProfiles,
) -> QLKNNInputs:
  """Computes the ten QLKNN input features on the face grid.

  Args:
    Z_eff: Effective ion charge.
    geo: Geometry of the torus.
    core_profiles: Core plasma profiles.

  Returns:
    The input features.
  """
  T_i = jnp.maximum(core_profiles.T_i.face_value(), constants.TEMPERATURE_FLOOR)
  T_e = jnp.maximum(core_profiles.T_e.face_value(), constants.TEMPERATURE_FLOOR)
  n_e = jnp.maximum(core_profiles.n_e.face_value(), constants.DENSITY_FLOOR)
  q = jnp.asarray(geo.q_face)
  r = jnp.asarray(geo.rho_face)
  dr = geo.drho
  R = geo.R_major

  Ati = normalized_logarithmic_gradient(T_i, dr, R)
  Ate = normalized_logarithmic_gradient(T_e, dr, R)
  Ane = normalized_logarithmic_gradient(n_e, dr, R)
  smag = r / q * math_utils.gradient(q, dr)
  x = r / R

  log_lambda = 15.2 - 0.5 * jnp.log(n_e / 1e20) + jnp.log(T_e / 1000.0)
  epsilon = jnp.maximum(x, constants.CONSTANTS.eps)
  nu_star = (
      q * R / epsilon**1.5
      * _NU_STAR_PREFACTOR * Z_eff * n_e * log_lambda / T_e**2
  )

  return QLKNNInputs(
      Ati=Ati,
      Ate=Ate,
      Ane=Ane,
      Ani=Ane,
      q=q,
      smag=smag,
      x=x,
      Ti_Te=T_i / T_e,
      LogNuStar=jnp.log10(nu_star),
      normni=jnp.ones_like(x),
  )


def _validated_outputs(
    outputs: Mapping[str, np.ndarray], n_faces: int
) -> dict[str, np.ndarray]:
  """Checks the predictor contract and flattens the outputs to (n_faces,)."""
  if not isinstance(outputs, Mapping):
    raise errors.MalformedPredictionError(
        f'Expected a mapping of outputs, got {type(outputs).__name__}.'
    )
  validated = {}
  for name in surrogate.QLKNN_OUTPUT_NAMES:
    if name not in outputs:
      raise errors.MalformedPredictionError(f'Missing output {name}.')
    value = np.asarray(outputs[name])
    if value.size != n_faces:
      raise errors.MalformedPredictionError(
          f'Output {name} has shape {value.shape}, expected ({n_faces},).'
      )
    value = value.reshape(n_faces)
    if not np.all(np.isfinite(value)):
      raise errors.MalformedPredictionError(
          f'Output {name} contains non-finite values.'
      )
    validated[name] = value
  return validated


class QLKNNTransportModel(transport_model.TransportModel):
  """Calculates turbulent transport coefficients with a QLKNN predictor.

  Attributes:
    path: Path to the model. Takes precedence over `name`.
    name: Name of a model registered in fusion_surrogates.
  """

  def __init__(
      self,
      path: str = '',
      name: str = '',
      predictor: surrogate.SurrogatePredictor | None = None,
  ):
    super().__init__()
    self.path = path
    self.name = name
    self._predictor = predictor
    # Error types already reported at WARNING level by this instance.
    self._reported_failures: set[str] = set()
    self._frozen = True

  def _get_predictor(self) -> surrogate.SurrogatePredictor:
    if self._predictor is not None:
      return self._predictor
    return surrogate.get_qlknn_predictor(self.path, self.name)

  def _predict(self, inputs: QLKNNInputs) -> dict[str, np.ndarray]:
    with _PREDICTOR_LOCK:
      predictor = self._get_predictor()
      outputs = predictor.predict(inputs.as_dict())
    return _validated_outputs(outputs, n_faces=np.shape(inputs.x)[0])

  def _call_implementation(
      self,
      transport_dynamic_runtime_params: runtime_params_lib.DynamicRuntimeParams,
      dynamic_runtime_params_slice: runtime_params_slice.DynamicRuntimeParamsSlice,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> state.TransportCoefficients:
    """Calculates the transport coefficients, falling back on failure.

    Args:
      transport_dynamic_runtime_params: Input runtime parameters for this
        transport model.
      dynamic_runtime_params_slice: Input runtime parameters at the current
        time.
      geo: Geometry of the torus.
      core_profiles: Core plasma profiles.

    Returns:
      coeffs: transport coefficients
    """
    assert isinstance(transport_dynamic_runtime_params, DynamicRuntimeParams)
    composition = dynamic_runtime_params_slice.plasma_composition
    inputs = compute_inputs(composition.Z_eff, geo, core_profiles)

    try:
      outputs = self._predict(inputs)
    # SurrogateModelError and any error raised inside the opaque predictor.
    except Exception as e:  # pylint: disable=broad-exception-caught
      return self._fallback(
          e, transport_dynamic_runtime_params, composition.A_i, geo,
          core_profiles,
      )

    chi_GB = formulas.gyrobohm_diffusivity(
        core_profiles.T_e.face_value(), composition.A_i, geo.B_0, geo.a_minor
    )
    min_chi = transport_dynamic_runtime_params.min_chi

    def to_physical(*names: str) -> jax.Array:
      normalized = sum(outputs[name] for name in names)
      return jnp.maximum(jnp.abs(jnp.asarray(normalized)) * chi_GB, min_chi)

    chi_i = to_physical('efiITG', 'efiTEM')
    return state.TransportCoefficients(
        chi_face_ion=chi_i,
        chi_face_el=to_physical('efeITG', 'efeTEM', 'efeETG'),
        d_face_el=to_physical('pfeITG', 'pfeTEM'),
        v_face_el=jnp.zeros_like(chi_i),
    )

  def _fallback(
      self,
      error: Exception,
      transport_dynamic_runtime_params: DynamicRuntimeParams,
      A_i: chex.Numeric,
      geo: geometry.Geometry,
      core_profiles: state.CoreProfiles,
  ) -> state.TransportCoefficients:
    error_type = type(error).__name__
    if error_type in self._reported_failures:
      log = logging.debug
    else:
      self._reported_failures.add(error_type)
      log = logging.warning
    log(
        'QLKNN prediction failed (%s: %s). Falling back to Bohm-GyroBohm'
        ' transport for this call.',
        error_type,
        error,
    )
    return bohm_gyrobohm.bohm_gyrobohm_coefficients(
        transport_dynamic_runtime_params.fallback, A_i, geo, core_profiles
    )

  def __hash__(self) -> int:
    return hash(('QLKNNTransportModel', self.path, self.name, self._predictor))

  def __eq__(self, other) -> bool:
    return (
        isinstance(other, QLKNNTransportModel)
        and self.path == other.path
        and self.name == other.name
        and self._predictor is other._predictor
    )
