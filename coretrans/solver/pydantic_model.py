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

"""Pydantic configs choosing between the linear and Newton solvers."""

import abc
from typing import Annotated, Any, Literal

import chex
import pydantic
import typing_extensions

from coretrans.config import model_base
from coretrans.solver import linear_theta_method
from coretrans.solver import newton_raphson
from coretrans.solver import runtime_params
from coretrans.solver import solver as solver_lib
from coretrans.sources import source_models as source_models_lib
from coretrans.transport_model import transport_model as transport_model_lib

# pylint: disable=invalid-name


class BaseSolver(model_base.BaseModelFrozen, abc.ABC):
  """Options shared by both theta-method solvers.

  Attributes:
    theta_implicit: Weight of the end of step operator. 0 is forward Euler,
      0.5 Crank-Nicolson and 1 backward Euler.
    n_corrector_steps: Corrector passes of the linear solver after its
      predictor. 0 gives a single linear solve.
    n_max_iterations: Newton iteration limit.
    residual_tol: Newton converges when the mean absolute scaled residual falls
      below this.
    residual_coarse_tol: An unconverged Newton solve whose residual is below
      this is accepted with `solver_error_state=2`.
    delta_reduction_factor: Shrink factor of the Newton step per rejected line
      search trial.
    tau_min: Line search gives up below this step fraction.
  """

  theta_implicit: Annotated[
      model_base.UnitInterval, model_base.TIME_INVARIANT
  ] = 1.0
  n_corrector_steps: pydantic.NonNegativeInt = 1
  n_max_iterations: pydantic.NonNegativeInt = 30
  residual_tol: pydantic.PositiveFloat = 1e-5
  residual_coarse_tol: pydantic.PositiveFloat = 1e-2
  delta_reduction_factor: model_base.OpenUnitInterval = 0.5
  tau_min: model_base.OpenUnitInterval = 0.01

  def build_runtime_params(
      self, t: chex.Numeric
  ) -> runtime_params.DynamicRuntimeParams:
    del t
    return runtime_params.DynamicRuntimeParams(
        maxiter=self.n_max_iterations,
        tol=self.residual_tol,
        coarse_tol=self.residual_coarse_tol,
        delta_reduction_factor=self.delta_reduction_factor,
        tau_min=self.tau_min,
        n_corrector_steps=self.n_corrector_steps,
    )

  @abc.abstractmethod
  def build_solver(
      self,
      transport_model: transport_model_lib.TransportModel,
      source_models: source_models_lib.SourceModels,
  ) -> solver_lib.Solver:
    ...


class LinearThetaMethod(BaseSolver):
  """Predictor-corrector solver with coefficients lagged by one pass."""

  solver_type: Literal['linear'] = 'linear'

  @pydantic.model_validator(mode='before')
  @classmethod
  def drop_newton_options(cls, data: Any) -> Any:
    # A config switched from newton_raphson may still carry log_iterations.
    if isinstance(data, dict):
      data = dict(data)
      data.pop('log_iterations', None)
    return data

  def build_solver(
      self,
      transport_model: transport_model_lib.TransportModel,
      source_models: source_models_lib.SourceModels,
  ) -> linear_theta_method.LinearThetaMethod:
    return linear_theta_method.LinearThetaMethod(
        transport_model=transport_model, source_models=source_models
    )


class NewtonRaphsonThetaMethod(BaseSolver):
  """Newton-Raphson solver with a backtracking line search.

  Attributes:
    log_iterations: Log the residual of every Newton iteration.
  """

  solver_type: Literal['newton_raphson'] = 'newton_raphson'
  log_iterations: bool = False

  @pydantic.model_validator(mode='after')
  def _check_tolerances(self) -> typing_extensions.Self:
    if self.residual_coarse_tol < self.residual_tol:
      raise ValueError(
          f'residual_coarse_tol={self.residual_coarse_tol} is tighter than'
          f' residual_tol={self.residual_tol}.'
      )
    return self

  def build_solver(
      self,
      transport_model: transport_model_lib.TransportModel,
      source_models: source_models_lib.SourceModels,
  ) -> newton_raphson.NewtonRaphsonThetaMethod:
    return newton_raphson.NewtonRaphsonThetaMethod(
        transport_model=transport_model,
        source_models=source_models,
        log_iterations=self.log_iterations,
    )


SolverConfig = Annotated[
    LinearThetaMethod | NewtonRaphsonThetaMethod,
    pydantic.Field(discriminator='solver_type'),
]
