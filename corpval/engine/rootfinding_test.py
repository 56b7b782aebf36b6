import pytest

from corpval.engine.rootfinding import newton_irr
from corpval.engine.rootfinding import npv
from corpval.engine.rootfinding import npv_derivative
from corpval.engine.rootfinding import solve_irr
from corpval.errors import NonConvergenceError


class TestNPV:
  """Tests for npv and its derivative."""

  def test_zero_rate(self):
    assert npv(0.0, [-100.0, 60.0, 60.0]) == pytest.approx(20.0)

  def test_discounting(self):
    """-100 + 110 / 1.1 = 0."""
    assert npv(0.10, [-100.0, 110.0]) == pytest.approx(0.0, abs=1e-12)

  def test_derivative(self):
    """d/dr 110 / (1 + r) at 10% = -110 / 1.21."""
    assert npv_derivative(0.10, [-100.0, 110.0]) == pytest.approx(-90.909,
                                                                  abs=1e-3)


class TestSolveIRR:
  """Tests for the Newton-Raphson IRR solver."""

  def test_known_irr(self):
    """20 coupons on 100 plus 100 back: IRR is exactly 20%."""
    cash_flows = [-100.0, 20.0, 20.0, 20.0, 20.0, 120.0]

    irr = solve_irr(cash_flows)

    assert irr == pytest.approx(0.20, abs=1e-6)
    assert abs(npv(irr, cash_flows)) < 1e-6

  def test_negative_irr(self):
    """Getting 90 back on 100 after one year is a -10% return."""
    assert solve_irr([-100.0, 90.0]) == pytest.approx(-0.10, abs=1e-6)

  def test_iterations_reported(self):
    result = newton_irr([-100.0, 20.0, 20.0, 20.0, 20.0, 120.0])

    assert result.iterations > 0
    assert result.root == pytest.approx(0.20, abs=1e-6)

  def test_no_sign_change(self):
    """All-positive flows have no root; the solver must not return one."""
    with pytest.raises(NonConvergenceError):
      solve_irr([100.0, 10.0, 10.0])

  def test_single_cash_flow(self):
    """A lone t=0 flow has zero slope everywhere."""
    with pytest.raises(NonConvergenceError, match='derivative too small'):
      solve_irr([5.0])

  def test_iteration_cap(self):
    with pytest.raises(NonConvergenceError,
                       match='maximum iterations') as excinfo:
      newton_irr([-100.0, 20.0, 20.0, 20.0, 20.0, 120.0], max_iter=1)

    assert excinfo.value.iterations == 1
    assert excinfo.value.last_rate is not None

  def test_empty(self):
    with pytest.raises(NonConvergenceError):
      solve_irr([])
