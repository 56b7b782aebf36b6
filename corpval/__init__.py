'''
Corporate-finance valuation engines.

Two side-effect-free calculators, Discounted Cash Flow (DCF) and Leveraged
Buyout (LBO) returns, with two-way sensitivity grids and Monte Carlo
simulation built on repeated evaluation of the point estimates.

Usage:
  from corpval.domain.types import CostOfCapitalParams
  from corpval.domain.types import FinancialSnapshot
  from corpval.domain.types import ProjectionAssumptions
  from corpval.engine.dcf import calculate_dcf

  snapshot = FinancialSnapshot(revenue=1000, shares_outstanding=100,
                               current_price=150)
  assumptions = ProjectionAssumptions.flat(5, revenue_growth=0.05,
                                           ebitda_margin=0.20)
  params = CostOfCapitalParams(discount_rate=0.10, terminal_growth_rate=0.025)
  result = calculate_dcf(snapshot, assumptions, params)
'''
