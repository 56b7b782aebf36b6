"""
LBO returns engine.

Runs a simplified leveraged buyout for a DealStructure and returns every
output in a single LBOResult:
  - Sources and uses at close
  - Yearly projection (year 0..hold period) with cash sweep debt paydown
  - Exit analysis: exit EV, exit equity, IRR, total multiple
  - Credit metrics time series and hold-period summary
  - Pass/fail key metrics against LBOConfig thresholds

Two behaviours differ from a textbook model:
revenue in year y is base * (1 + growth[y - 1]) ** y rather than a chained
product, and the tranche-blended interest rate leaves the revolver out and
does not normalize its weights.
"""

import logging
from typing import Optional

from corpval.domain.types import DealStructure
from corpval.domain.types import InterestRates
from corpval.domain.types import KeyMetrics
from corpval.domain.types import LBOCreditSummary
from corpval.domain.types import LBOResult
from corpval.domain.types import LBOReturns
from corpval.domain.types import SourcesAndUses
from corpval.domain.types import YearCreditMetrics
from corpval.domain.types import YearProjection
from corpval.engine.rootfinding import solve_irr
from corpval.errors import DivisionGuardError
from corpval.errors import InvalidAssumptionError
from corpval.errors import LBOCalculationError
from corpval.errors import NonConvergenceError
from corpval.errors import guarded_div
from corpval.errors import optional_div
from corpval.scenarios.config import LBOConfig

logger = logging.getLogger(__name__)

# Leverage that scales the risk-adjusted return to 1.0x.
RISK_ADJUSTMENT_LEVERAGE = 6.0

TRANCHE_WEIGHTS = {
    'term_loan_a': 0.3,
    'term_loan_b': 0.5,
    'subordinated': 0.2,
}


def blended_interest_rate(rates: InterestRates, default_rate: float) -> float:
  """
  Interest rate applied to the whole debt balance.

  Uses rates.weighted when set and non-zero, otherwise the fixed 30/50/20
  blend of Term Loan A, Term Loan B and subordinated rates when all three
  are set and the blend is non-zero, otherwise default_rate.
  """
  if rates.weighted:
    return rates.weighted

  tranche_rates = {name: getattr(rates, name) for name in TRANCHE_WEIGHTS}
  if all(r is not None for r in tranche_rates.values()):
    blend = sum(TRANCHE_WEIGHTS[name] * rate
                for name, rate in tranche_rates.items())
    if blend:
      return blend

  return default_rate


def calculate_interest_expense(
    debt: float,
    rates: InterestRates,
    default_rate: float = 0.08,
) -> float:
  """Annual interest on debt at the blended rate."""
  return debt * blended_interest_rate(rates, default_rate)


def build_sources_and_uses(deal: DealStructure) -> SourcesAndUses:
  """Pair financing sources against the purchase price and fees."""
  total_debt = deal.total_debt
  equity = deal.equity_contribution
  return SourcesAndUses(
      revolver=deal.revolver,
      term_loan_a=deal.term_loan_a,
      term_loan_b=deal.term_loan_b,
      subordinated_debt=deal.subordinated_debt,
      total_debt=total_debt,
      equity_contribution=equity,
      total_sources=total_debt + equity,
      enterprise_value=deal.enterprise_value,
      fees=deal.fees,
      total_uses=deal.enterprise_value + deal.fees,
  )


def _base_revenue(deal: DealStructure) -> float:
  if deal.base_revenue is not None:
    return deal.base_revenue
  try:
    return guarded_div(deal.ebitda, deal.ebitda_margin[0], 'base_revenue')
  except DivisionGuardError as e:
    raise InvalidAssumptionError(
        'base_revenue is required when the year 0 EBITDA margin is zero'
    ) from e


def project_years(
    deal: DealStructure,
    hold_period: int,
    default_interest_rate: float,
) -> list[YearProjection]:
  """
  Project the income statement, free cash flow and debt for years 0..N.

  Interest accrues on the debt outstanding at the start of the year;
  debt_paydown_rate of positive free cash flow repays debt and the rest goes
  to the sponsor. Debt never increases and never goes below zero.

  Raises:
    LBOCalculationError: If EBITDA is zero or revenue overflows in any year
  """
  base_revenue = _base_revenue(deal)
  capex_pct = deal.capex_path(hold_period)
  wc_change = deal.working_capital_path(hold_period)

  projections = []
  current_debt = deal.total_debt

  for year in range(hold_period + 1):
    if year == 0:
      revenue = base_revenue
    else:
      try:
        revenue = base_revenue * (1.0 + deal.revenue_growth[year - 1])**year
      except OverflowError as e:
        raise LBOCalculationError(f'revenue overflows in year {year}') from e

    ebitda = revenue * deal.ebitda_margin[year]
    capex = revenue * capex_pct[year]
    depreciation = capex
    ebit = ebitda - depreciation
    interest = calculate_interest_expense(current_debt, deal.interest_rates,
                                          default_interest_rate)
    ebt = ebit - interest
    taxes = max(0.0, ebt * deal.tax_rate)
    net_income = ebt - taxes

    fcf = net_income + depreciation - capex - wc_change[year]
    debt_paydown = max(0.0, fcf * deal.debt_paydown_rate)
    cash_to_sponsor = fcf - debt_paydown

    current_debt = max(0.0, current_debt - debt_paydown)

    try:
      debt_to_ebitda = guarded_div(current_debt, ebitda, 'debt_to_ebitda')
    except DivisionGuardError as e:
      raise LBOCalculationError(f'EBITDA is zero in year {year}') from e

    projections.append(
        YearProjection(
            year=year,
            revenue=revenue,
            ebitda=ebitda,
            ebit=ebit,
            interest=interest,
            net_income=net_income,
            free_cash_flow=fcf,
            debt_balance=current_debt,
            debt_paydown=debt_paydown,
            cash_to_sponsor=cash_to_sponsor,
            credit_metrics=YearCreditMetrics(
                debt_to_ebitda=debt_to_ebitda,
                ebitda_to_interest=optional_div(ebitda, interest,
                                                'ebitda_to_interest'),
                fcf_to_debt=optional_div(fcf, current_debt, 'fcf_to_debt'),
            ),
        ))

  return projections


def calculate_lbo(
    deal: DealStructure,
    config: Optional[LBOConfig] = None,
) -> LBOResult:
  """
  Run the LBO model.

  Args:
    deal: Deal parameters and per-year operating assumptions
    config: Thresholds and hold period (default: LBOConfig.default())

  Returns:
    LBOResult

  Raises:
    InvalidAssumptionError: Malformed deal (array lengths, negative
      tranches, non-positive enterprise value)
    LBOCalculationError: IRR did not converge, EBITDA is zero in some year,
      or the sponsor contributes no equity
  """
  if config is None:
    config = LBOConfig.default()

  deal.validate(config.hold_period)

  sources_and_uses = build_sources_and_uses(deal)
  total_debt = sources_and_uses.total_debt
  equity = sources_and_uses.equity_contribution
  if equity <= 0:
    raise LBOCalculationError(
        f'equity contribution must be positive, got {equity:.2f}')

  projections = project_years(deal, config.hold_period,
                              config.default_interest_rate)

  # Exit
  exit_year = projections[-1]
  exit_ebitda = exit_year.ebitda
  exit_ev = exit_ebitda * deal.exit_multiple
  exit_debt = exit_year.debt_balance
  exit_equity = exit_ev - exit_debt

  # Returns (year 0 cash stays in the business)
  interim = [p.cash_to_sponsor for p in projections[1:]]
  total_distributed = sum(interim)
  total_returned = total_distributed + exit_equity
  total_multiple = total_returned / equity

  cash_flows = [-equity] + interim
  cash_flows[-1] += exit_equity
  try:
    irr = solve_irr(cash_flows)
  except NonConvergenceError as e:
    raise LBOCalculationError(f'IRR did not converge: {e}') from e

  returns = LBOReturns(
      entry_equity=equity,
      exit_equity_value=exit_equity,
      exit_enterprise_value=exit_ev,
      total_cash_distributed=total_distributed,
      total_cash_returned=total_returned,
      total_multiple=total_multiple,
      irr=irr,
      exit_multiple=deal.exit_multiple,
      exit_ebitda=exit_ebitda,
  )

  # Credit metrics
  max_leverage = max(p.credit_metrics.debt_to_ebitda for p in projections)
  coverages = [
      p.credit_metrics.ebitda_to_interest
      for p in projections
      if p.credit_metrics.ebitda_to_interest is not None
  ]
  debt_paydown = total_debt - exit_debt

  credit_metrics = LBOCreditSummary(
      entry_debt_to_ebitda=optional_div(total_debt, deal.ebitda,
                                        'entry_debt_to_ebitda'),
      max_debt_to_ebitda=max_leverage,
      min_ebitda_to_interest=min(coverages) if coverages else None,
      debt_paydown_over_hold_period=debt_paydown,
      debt_paydown_percent=optional_div(debt_paydown, total_debt,
                                        'debt_paydown_percent'),
  )

  key_metrics = KeyMetrics(
      meets_target_irr=irr >= config.target_irr,
      leverage_within_limits=max_leverage <= config.max_debt_multiple,
      adequate_equity_buffer=(equity / deal.enterprise_value >=
                              config.min_equity_contribution),
      risk_adjusted_return=optional_div(
          irr, max_leverage / RISK_ADJUSTMENT_LEVERAGE, 'risk_adjusted_return'),
  )

  logger.debug('LBO exit %.1fx: IRR=%.4f MOIC=%.2fx max leverage=%.2fx',
               deal.exit_multiple, irr, total_multiple, max_leverage)

  return LBOResult(
      sources_and_uses=sources_and_uses,
      projections=tuple(projections),
      returns=returns,
      credit_metrics=credit_metrics,
      key_metrics=key_metrics,
  )
