"""
Pure DCF math engine.

This module contains pure functions for DCF calculations. No pandas, no I/O,
no randomness: the same inputs always produce the same DCFResult.

Key functions:
  calculate_dcf: Main entry point, enterprise value and value per share
  project_cash_flows: Yearly free cash flow and its present value
  compute_terminal_value: Gordon growth terminal value
  calculate_wacc / calculate_cost_of_equity: Discount rate helpers
"""

import logging
from typing import List, Optional

from corpval.domain.types import CostOfCapitalParams
from corpval.domain.types import DCFResult
from corpval.domain.types import FinancialSnapshot
from corpval.domain.types import ProjectionAssumptions
from corpval.domain.types import YearRecord
from corpval.errors import InvalidAssumptionError
from corpval.scenarios.config import DCFConfig

logger = logging.getLogger(__name__)


def compute_terminal_value(
    final_fcf: float,
    terminal_growth_rate: float,
    discount_rate: float,
) -> float:
  """
  Compute the (undiscounted) terminal value using the Gordon Growth Model.

  Args:
    final_fcf: Free cash flow in the final explicit year
    terminal_growth_rate: Perpetual growth rate
    discount_rate: Cost of capital

  Returns:
    final_fcf * (1 + g) / (r - g)

  Raises:
    InvalidAssumptionError: If discount_rate <= terminal_growth_rate
  """
  if discount_rate <= terminal_growth_rate:
    raise InvalidAssumptionError(
        f'discount_rate ({discount_rate}) must exceed terminal growth '
        f'({terminal_growth_rate}) for a finite terminal value')
  return final_fcf * (1.0 + terminal_growth_rate) / (discount_rate -
                                                      terminal_growth_rate)


def project_cash_flows(
    base_revenue: float,
    assumptions: ProjectionAssumptions,
    discount_rate: float,
    tax_rate: float,
) -> List[YearRecord]:
  """
  Project free cash flow for each explicit year.

  Revenue compounds year over year from base_revenue. Depreciation, capex
  and working capital change are taken as currency amounts.

  Args:
    base_revenue: Year 0 revenue
    assumptions: Per-year operating assumptions
    discount_rate: Cost of capital used for each year's present value
    tax_rate: Tax rate applied to EBIT

  Returns:
    YearRecord per year, year ascending starting at 1
  """
  records = []
  revenue = base_revenue

  for year in range(1, assumptions.years + 1):
    i = year - 1
    depreciation = assumptions.depreciation[i]

    revenue *= (1.0 + assumptions.revenue_growth[i])
    ebitda = revenue * assumptions.ebitda_margin[i]
    ebit = ebitda - depreciation
    nopat = ebit * (1.0 - tax_rate)
    fcf = (nopat + depreciation - assumptions.capex[i] -
           assumptions.working_capital_change[i])
    pv = fcf / ((1.0 + discount_rate)**year)

    records.append(
        YearRecord(
            year=year,
            revenue=revenue,
            ebitda=ebitda,
            ebit=ebit,
            nopat=nopat,
            free_cash_flow=fcf,
            present_value=pv,
        ))

  return records


def calculate_dcf(
    snapshot: FinancialSnapshot,
    assumptions: ProjectionAssumptions,
    params: CostOfCapitalParams,
    config: Optional[DCFConfig] = None,
) -> DCFResult:
  """
  Compute a DCF valuation.

  Stage 1: explicit forecast of free cash flow, discounted yearly
  Stage 2: Gordon growth terminal value, discounted from year N

  Intrinsic value per share is omitted (None) when shares_outstanding is
  zero; upside is omitted when there is no intrinsic value or no positive
  current price.

  Args:
    snapshot: Baseline company figures
    assumptions: Per-year assumptions, one value per projection year
    params: Discount rate, terminal growth and tax rate
    config: Engine configuration (default: DCFConfig.default())

  Returns:
    DCFResult

  Raises:
    InvalidAssumptionError: Invalid rate pair, horizon mismatch, negative
      shares, non-finite inputs or a discount rate too large to compound
  """
  if config is None:
    config = DCFConfig.default()

  params.validate()
  snapshot.validate()
  assumptions.validate(config.projection_years)

  n_years = config.projection_years
  try:
    records = project_cash_flows(
        base_revenue=snapshot.revenue,
        assumptions=assumptions,
        discount_rate=params.discount_rate,
        tax_rate=params.tax_rate,
    )
    terminal_value = compute_terminal_value(
        final_fcf=records[-1].free_cash_flow,
        terminal_growth_rate=params.terminal_growth_rate,
        discount_rate=params.discount_rate,
    )
    terminal_pv = terminal_value / ((1.0 + params.discount_rate)**n_years)
  except OverflowError as e:
    raise InvalidAssumptionError(
        f'discount_rate {params.discount_rate} is out of range: {e}') from e
  present_value = sum(r.present_value for r in records) + terminal_pv

  intrinsic_value = None
  if snapshot.shares_outstanding > 0:
    intrinsic_value = present_value / snapshot.shares_outstanding

  upside = None
  if intrinsic_value is not None and snapshot.current_price > 0:
    upside = ((intrinsic_value - snapshot.current_price) /
              snapshot.current_price)

  logger.debug('DCF r=%.4f g=%.4f: PV=%.2f IV=%s', params.discount_rate,
               params.terminal_growth_rate, present_value, intrinsic_value)

  return DCFResult(
      projected_cash_flows=tuple(records),
      terminal_value=terminal_value,
      terminal_present_value=terminal_pv,
      present_value=present_value,
      intrinsic_value=intrinsic_value,
      upside=upside,
      shares_outstanding=snapshot.shares_outstanding,
      current_price=snapshot.current_price,
      params=params,
      projection_years=n_years,
  )


def calculate_wacc(
    market_value_equity: float,
    market_value_debt: float,
    cost_of_equity: float,
    cost_of_debt: float,
    tax_rate: float,
) -> float:
  """
  Weighted average cost of capital with after-tax cost of debt.

  Raises:
    InvalidAssumptionError: If total capital is zero
  """
  total_value = market_value_equity + market_value_debt
  if total_value == 0:
    raise InvalidAssumptionError('WACC undefined: total capital is zero')
  equity_weight = market_value_equity / total_value
  debt_weight = market_value_debt / total_value
  return (equity_weight * cost_of_equity +
          debt_weight * cost_of_debt * (1.0 - tax_rate))


def calculate_cost_of_equity(
    risk_free_rate: float,
    beta: float,
    market_risk_premium: float,
) -> float:
  """CAPM cost of equity: rf + beta * MRP."""
  return risk_free_rate + beta * market_risk_premium
