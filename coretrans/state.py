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

"""Classes defining the coretrans state that evolves over time."""

import dataclasses
import enum

from absl import logging
import chex
import jax
from jax import numpy as jnp
import numpy as np
import typing_extensions

from coretrans import array_typing
from coretrans import constants
from coretrans import jax_utils
from coretrans.fvm import cell_variable
from coretrans.geometry import geometry

# Names of the CoreProfiles fields that can be evolved by the solver, in the
# order in which they are stacked in the block system.
EVOLVABLE_NAMES = ('T_i', 'T_e', 'psi', 'n_e')


# pylint: disable=invalid-name
@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True, eq=False)
class CoreProfiles:
  """The plasma profiles at one time.

  Each profile is a CellVariable over the radial cell grid that carries its own
  boundary conditions: zero gradient on the magnetic axis and a Dirichlet value
  at the plasma edge. A new instance is produced every accepted step.

  Attributes:
    T_i: Ion temperature [eV].
    T_e: Electron temperature [eV].
    n_e: Electron density [m^-3].
    psi: Poloidal flux [Wb].
  """

  T_i: cell_variable.CellVariable
  T_e: cell_variable.CellVariable
  n_e: cell_variable.CellVariable
  psi: cell_variable.CellVariable

  def __getitem__(self, name: str) -> cell_variable.CellVariable:
    return getattr(self, name)

  @classmethod
  def from_values(
      cls,
      geo: geometry.Geometry,
      T_i: array_typing.FloatVectorCell,
      T_e: array_typing.FloatVectorCell,
      n_e: array_typing.FloatVectorCell,
      psi: array_typing.FloatVectorCell,
      T_i_edge: array_typing.FloatScalar,
      T_e_edge: array_typing.FloatScalar,
      n_e_edge: array_typing.FloatScalar,
      psi_edge: array_typing.FloatScalar,
  ) -> typing_extensions.Self:
    """Builds CoreProfiles from cell values and Dirichlet edge values."""

    def make(value, edge):
      value = jax_utils.asarray(value)
      if value.shape != (geo.n_cells,):
        raise ValueError(
            f'Expected profile of shape ({geo.n_cells},), got {value.shape}.'
        )
      return cell_variable.CellVariable(
          value=value,
          dr=jax_utils.asarray(geo.drho_norm),
          right_face_constraint=jax_utils.asarray(edge),
          right_face_grad_constraint=None,
      )

    return cls(
        T_i=make(T_i, T_i_edge),
        T_e=make(T_e, T_e_edge),
        n_e=make(n_e, n_e_edge),
        psi=make(psi, psi_edge),
    )

  def replace_values(self, **values: chex.Array) -> typing_extensions.Self:
    """Returns a copy with the cell values of the named profiles replaced."""
    updates = {}
    for name, value in values.items():
      if name not in EVOLVABLE_NAMES:
        raise KeyError(f'Unknown profile name: {name}')
      updates[name] = self[name].replace_value(jax_utils.asarray(value))
    return dataclasses.replace(self, **updates)

  def replace_edge_values(
      self, **edges: array_typing.FloatScalar
  ) -> typing_extensions.Self:
    """Returns a copy with new Dirichlet edge values for the named profiles."""
    updates = {
        name: dataclasses.replace(
            self[name], right_face_constraint=jax_utils.asarray(edge)
        )
        for name, edge in edges.items()
    }
    return dataclasses.replace(self, **updates)

  @property
  def pressure_thermal(self) -> jax.Array:
    """Total thermal pressure [Pa] on the cell grid."""
    return (
        self.n_e.value
        * (self.T_i.value + self.T_e.value)
        * constants.CONSTANTS.eV_to_J
    )

  def negative_temperature_or_density(self) -> bool:
    """Whether T_i, T_e or n_e has a negative cell value."""
    profiles_to_check = (self.T_i, self.T_e, self.n_e)
    return bool(
        np.any(
            np.array([
                np.any(np.less(np.asarray(x.value), -constants.CONSTANTS.eps))
                for x in profiles_to_check
            ])
        )
    )

  def has_nan(self) -> bool:
    return any(
        np.any(np.isnan(np.asarray(leaf))) for leaf in jax.tree.leaves(self)
    )

  def __str__(self) -> str:
    return f"""
      CoreProfiles(
        T_i={self.T_i},
        T_e={self.T_e},
        n_e={self.n_e},
        psi={self.psi},
      )
    """


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class TransportCoefficients:
  """Coefficients for the plasma transport on the face grid.

  Attributes:
    chi_face_ion: Ion heat diffusivity [m^2/s]. Non-negative.
    chi_face_el: Electron heat diffusivity [m^2/s]. Non-negative.
    d_face_el: Electron particle diffusivity [m^2/s]. Non-negative.
    v_face_el: Electron particle convection velocity [m/s]. Signed.
  """

  chi_face_ion: jax.Array
  chi_face_el: jax.Array
  d_face_el: jax.Array
  v_face_el: jax.Array

  def __post_init__(self):
    shapes = {
        np.shape(self.chi_face_ion),
        np.shape(self.chi_face_el),
        np.shape(self.d_face_el),
        np.shape(self.v_face_el),
    }
    if len(shapes) != 1:
      raise ValueError(
          f'All transport coefficients must share one shape, got {shapes}.'
      )

  def chi_max(self, geo: geometry.Geometry) -> jax.Array:
    """Maximum heat diffusivity in normalized radius units [s^-1].

    Args:
      geo: Geometry of the torus.

    Returns:
      chi_max: Maximum value of chi.
    """
    return jnp.maximum(
        jnp.max(self.chi_face_ion * geo.g1_over_vpr2_face),
        jnp.max(self.chi_face_el * geo.g1_over_vpr2_face),
    )

  @classmethod
  def zeros(cls, geo: geometry.Geometry) -> typing_extensions.Self:
    """Returns a TransportCoefficients with all zeros."""
    shape = geo.rho_face_norm.shape
    return cls(
        chi_face_ion=jnp.zeros(shape),
        chi_face_el=jnp.zeros(shape),
        d_face_el=jnp.zeros(shape),
        v_face_el=jnp.zeros(shape),
    )


@jax.tree_util.register_dataclass
@dataclasses.dataclass(frozen=True)
class SolverNumericOutputs:
  """Diagnostics of one solver call.

  Attributes:
    inner_solver_iterations: Number of Newton iterations performed.
    residual_norm: Mean absolute residual at the returned solution.
    solver_error_state: 0 when the residual met the tolerance, 1 when the
      solve failed, 2 when only the coarse tolerance was met. State 2 is
      accepted with a warning.
    sawtooth_crash: True if the step corresponds to a sawtooth crash.
  """

  inner_solver_iterations: array_typing.IntScalar = 0
  residual_norm: array_typing.FloatScalar = 0.0
  solver_error_state: array_typing.IntScalar = 0
  sawtooth_crash: array_typing.BoolScalar = False

  @property
  def converged(self) -> bool:
    return int(self.solver_error_state) != 1


@enum.unique
class SimError(enum.Enum):
  """Why a simulation stopped before t_final, or NO_ERROR."""

  NO_ERROR = 0
  NAN_DETECTED = 1
  NEGATIVE_CORE_PROFILES = 2
  REACHED_MIN_DT = 3

  def log_error(self):
    """Logs an explanation of the error. Does nothing for NO_ERROR."""
    messages = {
        SimError.NEGATIVE_CORE_PROFILES: (
            'Simulation stopped: a temperature or density became negative.'
        ),
        SimError.NAN_DETECTED: (
            'Simulation stopped: NaN found in the state. The history holds'
            ' every state up to the last valid step.'
        ),
        SimError.REACHED_MIN_DT: (
            'Simulation stopped: dt fell below min_dt before a step'
            ' converged. This often means the solver was driving a'
            ' temperature or density towards zero; inspect the last valid'
            ' state of the history.'
        ),
    }
    if self in messages:
      logging.error(messages[self])
