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

"""Scalar outputs derived from the state after each simulation step."""

import dataclasses

import jax
from jax import numpy as jnp

from coretrans import array_typing
from coretrans import constants
from coretrans import math_utils
from coretrans import state
from coretrans.geometry import geometry
from coretrans.physics import formulas
from coretrans.physics import units
from coretrans.sources import source_profiles

# pylint: disable=invalid-name

# Relative drift of the particle or energy content above which the monitor
# reports it.
DEFAULT_DRIFT_TOLERANCE = 0.005


@dataclasses.dataclass(frozen=True)
class PostProcessedOutputs:
  """Scalar diagnostics of a single state.

  These values are not used by the solver. They are computed once per
  accepted step for reporting and for monitoring the global balances.

  Attributes:
    T_i_core: Ion temperature in the innermost cell [eV].
    T_e_core: Electron temperature in the innermost cell [eV].
    n_e_core: Electron density in the innermost cell [m^-3].
    T_i_volume_avg: Volume average ion temperature [eV].
    T_e_volume_avg: Volume average electron temperature [eV].
    n_e_volume_avg: Volume average electron density [m^-3].
    n_e_line_avg: Line average electron density over rho_norm [m^-3].
    N_e: Total number of electrons in the plasma.
    W_thermal_i: Ion thermal stored energy [J].
    W_thermal_e: Electron thermal stored energy [J].
    W_thermal_total: Total thermal stored energy [J].
    P_fusion: Fusion heating power deposited in the plasma [MW].
    P_alpha: Alpha particle power [MW].
    P_aux: Auxiliary heating power [MW].
    P_ohmic: Ohmic heating power [MW].
    P_radiation: Power lost to radiation sinks [MW], positive for a loss.
    P_loss: Heating power balancing the transport losses, alpha + auxiliary +
      Ohmic [MW].
    Q_fusion: Fusion gain, P_fusion / (P_aux + P_ohmic).
    tau_E: Thermal energy confinement time W_thermal_total / P_loss [s].
    I_p: Toroidal plasma current from the poloidal flux [A].
    beta_tor: Volume-averaged toroidal beta (thermal).
    beta_N: Normalized toroidal beta in percent, beta_tor a B_0 / I_p[MA].
  """

  T_i_core: float
  T_e_core: float
  n_e_core: float
  T_i_volume_avg: float
  T_e_volume_avg: float
  n_e_volume_avg: float
  n_e_line_avg: float
  N_e: float
  W_thermal_i: float
  W_thermal_e: float
  W_thermal_total: float
  P_fusion: float
  P_alpha: float
  P_aux: float
  P_ohmic: float
  P_radiation: float
  P_loss: float
  Q_fusion: float
  tau_E: float
  I_p: float
  beta_tor: float
  beta_N: float


def calculate_stored_thermal_energy(
    core_profiles: state.CoreProfiles,
    geo: geometry.Geometry,
) -> tuple[jax.Array, jax.Array, jax.Array]:
  """Returns the ion, electron and total thermal energy 3/2 int p dV [J]."""
  n_e = core_profiles.n_e.value
  eV_to_J = constants.CONSTANTS.eV_to_J
  W_i = 1.5 * math_utils.volume_integration(
      n_e * core_profiles.T_i.value * eV_to_J, geo
  )
  W_e = 1.5 * math_utils.volume_integration(
      n_e * core_profiles.T_e.value * eV_to_J, geo
  )
  return W_i, W_e, W_i + W_e


def calculate_beta_tor(
    core_profiles: state.CoreProfiles,
    geo: geometry.Geometry,
) -> jax.Array:
  """Volume-averaged thermal pressure over the on-axis magnetic pressure."""
  pressure = formulas.thermal_pressure(
      core_profiles.n_e.value,
      core_profiles.T_i.value,
      core_profiles.T_e.value,
  )
  magnetic_pressure_on_axis = geo.B_0**2 / (2 * constants.CONSTANTS.mu_0)
  return math_utils.safe_divide(
      math_utils.volume_average(pressure, geo), magnetic_pressure_on_axis
  )


def calculate_plasma_current(
    core_profiles: state.CoreProfiles,
    geo: geometry.Geometry,
) -> jax.Array:
  """Total toroidal current [A], the area integral of j(psi)."""
  j_tor = formulas.current_density_from_psi(core_profiles.psi.value, geo)
  return math_utils.area_integration(j_tor, geo)


def make_post_processed_outputs(
    core_profiles: state.CoreProfiles,
    core_sources: source_profiles.SourceTerms,
    geo: geometry.Geometry,
) -> PostProcessedOutputs:
  """Calculates the post-processed outputs of a state.

  The power terms are taken from the per-source metadata, so a source counts
  towards the category it was registered with.

  Args:
    core_profiles: Plasma profiles of the state.
    core_sources: Source terms evaluated on `core_profiles`.
    geo: Geometry of the plasma.

  Returns:
    The post-processed outputs.
  """
  W_i, W_e, W_total = calculate_stored_thermal_energy(core_profiles, geo)
  metadata = core_sources.metadata
  P_fusion = units.w_to_mw(metadata.fusion_power)
  P_alpha = units.w_to_mw(metadata.alpha_power)
  P_aux = units.w_to_mw(metadata.auxiliary_power)
  P_ohmic = units.w_to_mw(metadata.ohmic_power)
  # Ploss does not subtract the radiated power, as in the confinement
  # databases the scaling laws are fitted to.
  P_loss = P_alpha + P_aux + P_ohmic
  Q_fusion = math_utils.safe_divide(P_fusion, P_aux + P_ohmic)
  tau_E = math_utils.safe_divide(W_total, P_loss * 1e6)

  I_p = calculate_plasma_current(core_profiles, geo)
  beta_tor = calculate_beta_tor(core_profiles, geo)
  beta_N = 1e8 * beta_tor * math_utils.safe_divide(
      geo.a_minor * geo.B_0, jnp.abs(I_p)
  )

  return PostProcessedOutputs(
      T_i_core=float(core_profiles.T_i.value[0]),
      T_e_core=float(core_profiles.T_e.value[0]),
      n_e_core=float(core_profiles.n_e.value[0]),
      T_i_volume_avg=float(
          math_utils.volume_average(core_profiles.T_i.value, geo)
      ),
      T_e_volume_avg=float(
          math_utils.volume_average(core_profiles.T_e.value, geo)
      ),
      n_e_volume_avg=float(
          math_utils.volume_average(core_profiles.n_e.value, geo)
      ),
      n_e_line_avg=float(
          math_utils.cell_integration(core_profiles.n_e.value, geo)
      ),
      N_e=float(math_utils.volume_integration(core_profiles.n_e.value, geo)),
      W_thermal_i=float(W_i),
      W_thermal_e=float(W_e),
      W_thermal_total=float(W_total),
      P_fusion=float(P_fusion),
      P_alpha=float(P_alpha),
      P_aux=float(P_aux),
      P_ohmic=float(P_ohmic),
      P_radiation=float(-units.w_to_mw(metadata.radiation_power)),
      P_loss=float(P_loss),
      Q_fusion=float(Q_fusion),
      tau_E=float(tau_E),
      I_p=float(I_p),
      beta_tor=float(beta_tor),
      beta_N=float(beta_N),
  )


def relative_drift(
    current: array_typing.FloatScalar, reference: array_typing.FloatScalar
) -> float:
  """|current - reference| / reference, zero for a non-positive reference."""
  reference = float(reference)
  if reference <= 0.0:
    return 0.0
  return abs(float(current) - reference) / reference


@dataclasses.dataclass(frozen=True)
class ConservationDrift:
  """Drift of the global particle and energy content from a reference.

  Attributes:
    particle_drift: Relative drift of the total electron number.
    energy_drift: Relative drift of the total thermal energy.
  """

  particle_drift: float
  energy_drift: float

  def exceeds(self, tolerance: float = DEFAULT_DRIFT_TOLERANCE) -> bool:
    return self.particle_drift > tolerance or self.energy_drift > tolerance


def conservation_drift(
    outputs: PostProcessedOutputs,
    reference: PostProcessedOutputs,
) -> ConservationDrift:
  """Drift of `outputs` relative to `reference`, usually the initial state."""
  return ConservationDrift(
      particle_drift=relative_drift(outputs.N_e, reference.N_e),
      energy_drift=relative_drift(
          outputs.W_thermal_total, reference.W_thermal_total
      ),
  )
