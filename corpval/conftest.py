import pytest

from corpval.domain.types import CostOfCapitalParams
from corpval.domain.types import DealStructure
from corpval.domain.types import FinancialSnapshot
from corpval.domain.types import ProjectionAssumptions


@pytest.fixture
def snapshot() -> FinancialSnapshot:
  """Company with revenue 1,000, 100 shares trading at 150."""
  return FinancialSnapshot(revenue=1000.0,
                           shares_outstanding=100.0,
                           current_price=150.0)


@pytest.fixture
def flat_assumptions() -> ProjectionAssumptions:
  """
  Five years of 5% growth and 20% EBITDA margin.

  Depreciation and capex are 3% and 4% of each year's revenue, no working
  capital change.
  """
  revenues = [1000.0 * 1.05**year for year in range(1, 6)]
  return ProjectionAssumptions(
      revenue_growth=[0.05] * 5,
      ebitda_margin=[0.20] * 5,
      depreciation=[0.03 * r for r in revenues],
      capex=[0.04 * r for r in revenues],
      working_capital_change=[0.0] * 5,
  )


@pytest.fixture
def base_params() -> CostOfCapitalParams:
  """10% discount rate, 2.5% terminal growth, 25% tax."""
  return CostOfCapitalParams(discount_rate=0.10,
                             terminal_growth_rate=0.025,
                             tax_rate=0.25)


@pytest.fixture
def base_deal() -> DealStructure:
  """
  1,000 EV buyout of a business with 100 EBITDA on 500 revenue.

  500 of debt (200 TLA, 200 TLB, 100 sub), 20 of fees, 10x exit,
  5% growth and 20% margin throughout, 3% capex.
  """
  return DealStructure(
      enterprise_value=1000.0,
      ebitda=100.0,
      revolver=0.0,
      term_loan_a=200.0,
      term_loan_b=200.0,
      subordinated_debt=100.0,
      exit_multiple=10.0,
      fees=20.0,
      revenue_growth=(0.05,) * 5,
      ebitda_margin=(0.20,) * 6,
      base_revenue=500.0,
  )
