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

from absl.testing import absltest
from absl.testing import parameterized
from jax import numpy as jnp
import numpy as np

from coretrans.fvm import block_1d_coeffs
from coretrans.fvm import cell_variable
from coretrans.fvm import discrete_system
from coretrans.solver import linear_theta_method


def _zero_flux_variable(value):
  return cell_variable.CellVariable(value=value, dr=jnp.array(0.1))


class FVMTest(parameterized.TestCase):

  def test_face_values_and_gradients(self):
    var = cell_variable.CellVariable(
        value=jnp.array([1.0, 2.0, 3.0]),
        dr=jnp.array(1.0),
        right_face_constraint=jnp.array(4.0),
        right_face_grad_constraint=None,
    )
    np.testing.assert_allclose(var.face_value(), [1.0, 1.5, 2.5, 4.0])
    np.testing.assert_allclose(var.face_grad(), [0.0, 1.0, 1.0, 2.0])
    np.testing.assert_allclose(var.cell_plus_boundaries(), [1, 1, 2, 3, 4])
    np.testing.assert_allclose(var.dirichlet_right_value, 4.0)

  def test_over_constrained_variable_raises(self):
    with self.assertRaises(ValueError):
      cell_variable.CellVariable(
          value=jnp.ones(3),
          dr=jnp.array(1.0),
          right_face_constraint=jnp.array(1.0),
      )

  @parameterized.parameters(0.0, 0.5, 1.0)
  def test_diffusion_conserves_zero_flux_content(self, theta_implicit):
    n = 10
    value = jnp.exp(-(jnp.linspace(0.0, 1.0, n) ** 2) / 0.05)
    x = (_zero_flux_variable(value),)
    coeffs = block_1d_coeffs.Block1DCoeffs(
        transient_in_cell=(jnp.ones(n),),
        transient_out_cell=(jnp.ones(n),),
        d_face=(jnp.full(n + 1, 0.01),),
    )
    for _ in range(20):
      new_value = linear_theta_method.implicit_solve_block(
          jnp.array(0.1), x, x, coeffs, coeffs, theta_implicit
      )
      x = (x[0].replace_value(new_value),)
    np.testing.assert_allclose(
        jnp.sum(x[0].value), jnp.sum(value), rtol=1e-10
    )
    # Diffusion flattens the profile.
    self.assertLess(
        float(jnp.max(x[0].value) - jnp.min(x[0].value)),
        float(jnp.max(value) - jnp.min(value)),
    )

  @parameterized.parameters(1.0, -1.0)
  def test_convection_conserves_zero_flux_content(self, velocity):
    n = 8
    value = jnp.linspace(1.0, 2.0, n)
    x = (_zero_flux_variable(value),)
    coeffs = block_1d_coeffs.Block1DCoeffs(
        transient_in_cell=(jnp.ones(n),),
        transient_out_cell=(jnp.ones(n),),
        d_face=(jnp.full(n + 1, 1e-3),),
        v_face=(jnp.full(n + 1, velocity),),
    )
    new_value = linear_theta_method.implicit_solve_block(
        jnp.array(0.01), x, x, coeffs, coeffs
    )
    np.testing.assert_allclose(jnp.sum(new_value), jnp.sum(value), rtol=1e-10)

  def test_zero_operator_keeps_values(self):
    n = 5
    value = jnp.arange(1.0, n + 1.0)
    x = (_zero_flux_variable(value),)
    coeffs = block_1d_coeffs.Block1DCoeffs(
        transient_in_cell=(jnp.ones(n),),
        transient_out_cell=(jnp.ones(n),),
    )
    c_mat, c = discrete_system.calc_c(x, coeffs)
    np.testing.assert_allclose(c_mat, np.zeros((n, n)))
    np.testing.assert_allclose(c, np.zeros(n))
    new_value = linear_theta_method.implicit_solve_block(
        jnp.array(1.0), x, x, coeffs, coeffs
    )
    np.testing.assert_allclose(new_value, value)

  def test_explicit_source(self):
    n = 4
    x = (_zero_flux_variable(jnp.zeros(n)),)
    coeffs = block_1d_coeffs.Block1DCoeffs(
        transient_in_cell=(jnp.ones(n),),
        transient_out_cell=(jnp.full(n, 2.0),),
        source_cell=(jnp.ones(n),),
    )
    new_value = linear_theta_method.implicit_solve_block(
        jnp.array(0.5), x, x, coeffs, coeffs
    )
    # 2 dx/dt = 1
    np.testing.assert_allclose(new_value, np.full(n, 0.25))


if __name__ == '__main__':
  absltest.main()
