'''
Exception taxonomy for the valuation engines.

InvalidAssumptionError and LBOCalculationError are the errors callers see
from a point estimate. DivisionGuardError and NonConvergenceError are raised
by low-level helpers and are either handled (optional derived fields are
omitted) or wrapped before they leave an engine.
'''

import math
from typing import Optional


class ValuationError(Exception):
  '''Base class for every error raised by corpval.'''


class InvalidAssumptionError(ValuationError, ValueError):
  '''Inputs are malformed or outside the domain of the model.'''


class DivisionGuardError(ValuationError, ZeroDivisionError):
  '''A denominator that can legitimately be zero was zero.'''

  def __init__(self, field: str):
    super().__init__(f'{field}: denominator is zero')
    self.field = field


class NonConvergenceError(ValuationError, ArithmeticError):
  '''Root finder failed to converge.'''

  def __init__(self, message: str, iterations: int = 0,
               last_rate: Optional[float] = None):
    super().__init__(message)
    self.iterations = iterations
    self.last_rate = last_rate


class LBOCalculationError(ValuationError):
  '''LBO point estimate could not be completed.'''


def guarded_div(numerator: float, denominator: float, field: str) -> float:
  '''
  Divide, raising DivisionGuardError instead of producing inf/nan.

  Args:
    numerator: Dividend
    denominator: Divisor
    field: Name of the derived field, used in the error message

  Returns:
    numerator / denominator

  Raises:
    DivisionGuardError: If denominator is zero or not finite
  '''
  if denominator == 0 or not math.isfinite(denominator):
    raise DivisionGuardError(field)
  return numerator / denominator


def optional_div(numerator: float, denominator: float,
                 field: str) -> Optional[float]:
  '''Like guarded_div, but returns None for an omitted field.'''
  try:
    return guarded_div(numerator, denominator, field)
  except DivisionGuardError:
    return None
