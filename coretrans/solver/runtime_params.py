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

"""Runtime params for the solver."""

import chex


@chex.dataclass(frozen=True)
class DynamicRuntimeParams:
  """Input params for the solver which can change between steps.

  Attributes:
    maxiter: Maximum number of Newton iterations.
    tol: Tolerance on the mean absolute residual for convergence.
    coarse_tol: Tolerance below which an unconverged solve is still accepted,
      with a warning.
    delta_reduction_factor: Factor multiplying the Newton step size on every
      rejected line search trial.
    tau_min: Smallest step size fraction tried by the line search.
    n_corrector_steps: Number of corrector steps of the linear solver.
  """

  maxiter: int = 30
  tol: float = 1e-5
  coarse_tol: float = 1e-2
  delta_reduction_factor: float = 0.5
  tau_min: float = 0.01
  n_corrector_steps: int = 1
