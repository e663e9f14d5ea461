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

"""Physics calculations shared by the transport, source and fvm modules.

Temperatures are in eV and densities in m^-3 unless noted otherwise.
"""

import chex
import jax
from jax import numpy as jnp

from coretrans import array_typing
from coretrans import constants
from coretrans import math_utils
from coretrans.geometry import geometry

# pylint: disable=invalid-name

_SPITZER_PREFACTOR = 5.2e-5
_TRAPPED_FRACTION_COEFF = 1.46
_BOOTSTRAP_MAX = 1e7


def coulomb_log_ei(
    n_e: array_typing.FloatVector,
    T_e: array_typing.FloatVector,
) -> jax.Array:
  """Electron-ion Coulomb logarithm, clamped to [10, 25].

  lnLambda = 24 - ln(sqrt(n_e[cm^-3]) / T_e[eV]).

  Args:
    n_e: Electron density [m^-3].
    T_e: Electron temperature [eV].

  Returns:
    The Coulomb logarithm.
  """
  n_e_cm3 = jnp.maximum(n_e, constants.DENSITY_FLOOR) / 1e6
  T_e = jnp.maximum(T_e, constants.TEMPERATURE_FLOOR)
  log_lambda = 24.0 - jnp.log(jnp.sqrt(n_e_cm3) / T_e)
  return jnp.clip(
      log_lambda, constants.LOG_LAMBDA_MIN, constants.LOG_LAMBDA_MAX
  )


def electron_ion_collision_frequency(
    n_e: array_typing.FloatVector,
    T_e: array_typing.FloatVector,
    Z_eff: chex.Numeric,
    log_lambda: array_typing.FloatVector,
) -> jax.Array:
  """nu_ei = 2.91e-6 n_e[cm^-3] Z_eff lnLambda T_e^-1.5 [s^-1]."""
  n_e_cm3 = n_e / 1e6
  T_e = jnp.maximum(T_e, constants.TEMPERATURE_FLOOR)
  return 2.91e-6 * n_e_cm3 * Z_eff * log_lambda / T_e**1.5


def spitzer_resistivity(
    T_e: array_typing.FloatVector,
    epsilon: array_typing.FloatVector,
    Z_eff: chex.Numeric,
    log_lambda: chex.Numeric,
) -> jax.Array:
  """Neoclassically corrected Spitzer resistivity [Ohm m].

  eta = 5.2e-5 Z_eff lnLambda / T_e^1.5 * (1 + 1.46 sqrt(epsilon)).

  Args:
    T_e: Electron temperature [eV].
    epsilon: Local inverse aspect ratio.
    Z_eff: Effective ion charge.
    log_lambda: Coulomb logarithm.

  Returns:
    The resistivity on the grid of the inputs.
  """
  T_e = jnp.maximum(T_e, constants.TEMPERATURE_FLOOR)
  eta_spitzer = _SPITZER_PREFACTOR * Z_eff * log_lambda / T_e**1.5
  return eta_spitzer * (1.0 + _TRAPPED_FRACTION_COEFF * jnp.sqrt(epsilon))


def thermal_pressure(
    n_e: array_typing.FloatVector,
    T_i: array_typing.FloatVector,
    T_e: array_typing.FloatVector,
) -> jax.Array:
  """Total thermal pressure n_e (T_i + T_e) e [Pa] (quasi-neutral plasma)."""
  return n_e * (T_i + T_e) * constants.CONSTANTS.eV_to_J


def bootstrap_current(
    n_e: array_typing.FloatVectorCell,
    T_i: array_typing.FloatVectorCell,
    T_e: array_typing.FloatVectorCell,
    geo: geometry.Geometry,
) -> jax.Array:
  """Approximate bootstrap current density [A/m^2] on the cell grid.

  j_bs = (1 - epsilon) (-dp/dr) / B_0, clipped to [0, 1e7].

  Args:
    n_e: Electron density [m^-3].
    T_i: Ion temperature [eV].
    T_e: Electron temperature [eV].
    geo: Geometry of the plasma.

  Returns:
    Bootstrap current density on the cell grid.
  """
  pressure = thermal_pressure(n_e, T_i, T_e)
  dp_dr = math_utils.gradient(pressure, geo.drho)
  j_bs = (1.0 - geo.epsilon) * (-dp_dr) / geo.B_0
  return jnp.clip(j_bs, 0.0, _BOOTSTRAP_MAX)


def gyrobohm_diffusivity(
    T_e: array_typing.FloatVector,
    A_i: chex.Numeric,
    B_0: chex.Numeric,
    a_minor: chex.Numeric,
) -> jax.Array:
  """GyroBohm diffusivity scale chi_GB [m^2/s].

  chi_GB = (T_e e)^1.5 sqrt(m_i) / ((e B_0)^2 a).

  Args:
    T_e: Electron temperature [eV].
    A_i: Main ion mass number [amu].
    B_0: Toroidal magnetic field [T].
    a_minor: Minor radius [m].

  Returns:
    chi_GB on the grid of `T_e`.
  """
  q_e = constants.CONSTANTS.q_e
  m_i = A_i * constants.CONSTANTS.m_amu
  T_e = jnp.maximum(T_e, constants.TEMPERATURE_FLOOR)
  return (T_e * q_e) ** 1.5 * jnp.sqrt(m_i) / ((q_e * B_0) ** 2 * a_minor)


def initial_poloidal_flux_face(geo: geometry.Geometry) -> jax.Array:
  """Poloidal flux [Wb] on the face grid consistent with the geometry q.

  dpsi/drho_norm = 2 pi B_0 a^2 rho_norm / q, integrated from the axis with the
  trapezoidal rule.

  Args:
    geo: Geometry of the plasma.

  Returns:
    psi on the face grid, zero on the magnetic axis.
  """
  rho_face_norm = jnp.asarray(geo.rho_face_norm)
  dpsi = (
      2 * jnp.pi * geo.B_0 * geo.a_minor**2 * rho_face_norm
      / jnp.asarray(geo.q_face)
  )
  increments = 0.5 * (dpsi[1:] + dpsi[:-1]) * geo.drho_norm
  return jnp.concatenate([jnp.zeros(1), jnp.cumsum(increments)])


def current_density_from_psi(
    psi: array_typing.FloatVectorCell,
    geo: geometry.Geometry,
) -> jax.Array:
  """Toroidal current density [A/m^2] from the poloidal flux profile.

  j = 1 / (mu_0 r) d/dr (r B_p), with B_p = dpsi/dr / (2 pi R).

  Args:
    psi: Poloidal flux on the cell grid [Wb].
    geo: Geometry of the plasma.

  Returns:
    Current density on the cell grid.
  """
  r = jnp.asarray(geo.rho)
  b_pol = math_utils.gradient(psi, geo.drho) / (2 * jnp.pi * geo.R_major)
  return math_utils.gradient(r * b_pol, geo.drho) / (
      constants.CONSTANTS.mu_0 * r
  )


def fast_ion_fractional_heating(
    birth_energy: float,
    T_e: array_typing.FloatVector,
    fast_ion_mass: float,
) -> jax.Array:
  """Returns the fraction of fast ion heating that goes to the thermal ions.

  From eq. 5 and eq. 26 in Mikkelsen Nucl. Tech. Fusion 237 4 1983.

  Args:
    birth_energy: Birth energy of the fast ions [keV].
    T_e: Electron temperature [keV].
    fast_ion_mass: Mass of the fast ions [amu].

  Returns:
    The fraction of heating that goes to the ions.
  """
  critical_energy = 10 * fast_ion_mass * T_e  # Eq. 5.
  x_squared = birth_energy / critical_energy
  x = jnp.sqrt(x_squared)
  return (
      2
      * (
          (1 / 6) * jnp.log((1.0 - x + x_squared) / (1.0 + 2.0 * x + x_squared))
          + (jnp.arctan((2.0 * x - 1.0) / jnp.sqrt(3)) + jnp.pi / 6)
          / jnp.sqrt(3)
      )
      / x_squared
  )
