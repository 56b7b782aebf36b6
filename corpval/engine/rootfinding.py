"""Newton-Raphson solver for the internal rate of return."""

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import math

from corpval.errors import NonConvergenceError

logger = logging.getLogger(__name__)

DEFAULT_GUESS = 0.15
TOLERANCE = 1e-6
MAX_ITERATIONS = 1000


@dataclass(frozen=True)
class RootResult:
  root: float
  iterations: int


def npv(rate: float, cash_flows: Sequence[float]) -> float:
  """Net present value of cash_flows (index 0 = today) at rate."""
  return sum(cf / (1.0 + rate)**i for i, cf in enumerate(cash_flows))


def npv_derivative(rate: float, cash_flows: Sequence[float]) -> float:
  """d NPV / d rate."""
  return sum(-i * cf / (1.0 + rate)**(i + 1) for i, cf in enumerate(cash_flows))


def newton_irr(
    cash_flows: Sequence[float],
    guess: float = DEFAULT_GUESS,
    tol: float = TOLERANCE,
    max_iter: int = MAX_ITERATIONS,
) -> RootResult:
  """
  Solve NPV(rate) = 0 with Newton-Raphson.

  The rate is not bounded between iterations. Cash-flow patterns without a
  sign change usually drive the slope towards zero and fail loudly.

  Args:
    cash_flows: Cash flows, index 0 at t=0
    guess: Starting rate
    tol: Convergence threshold on |NPV| and minimum |NPV'|
    max_iter: Iteration cap

  Returns:
    RootResult with the rate and the number of Newton steps taken

  Raises:
    NonConvergenceError: Flat derivative, iteration cap reached, or the
      rate left the representable range
  """
  if not cash_flows:
    raise NonConvergenceError('IRR undefined for an empty cash-flow stream')

  rate = guess
  for iteration in range(max_iter):
    try:
      value = npv(rate, cash_flows)
      slope = npv_derivative(rate, cash_flows)
    except (OverflowError, ZeroDivisionError) as e:
      raise NonConvergenceError(f'IRR calculation failed: {e}',
                                iterations=iteration,
                                last_rate=rate) from e

    if not (math.isfinite(value) and math.isfinite(slope)):
      raise NonConvergenceError('IRR calculation failed: NPV is not finite',
                                iterations=iteration,
                                last_rate=rate)

    if abs(value) < tol:
      return RootResult(root=rate, iterations=iteration)

    if abs(slope) < tol:
      raise NonConvergenceError('IRR calculation failed: derivative too small',
                                iterations=iteration,
                                last_rate=rate)

    rate -= value / slope

  raise NonConvergenceError(
      'IRR calculation failed: maximum iterations reached',
      iterations=max_iter,
      last_rate=rate)


def solve_irr(
    cash_flows: Sequence[float],
    guess: float = DEFAULT_GUESS,
) -> float:
  """Internal rate of return of cash_flows (see newton_irr)."""
  result = newton_irr(cash_flows, guess=guess)
  logger.debug('IRR converged to %.6f after %d iterations', result.root,
               result.iterations)
  return result.root
