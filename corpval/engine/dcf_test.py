import dataclasses

import pytest

from corpval.domain.types import CostOfCapitalParams
from corpval.domain.types import FinancialSnapshot
from corpval.domain.types import ProjectionAssumptions
from corpval.engine.dcf import calculate_cost_of_equity
from corpval.engine.dcf import calculate_dcf
from corpval.engine.dcf import calculate_wacc
from corpval.engine.dcf import compute_terminal_value
from corpval.engine.dcf import project_cash_flows
from corpval.errors import InvalidAssumptionError
from corpval.scenarios.config import DCFConfig


class TestComputeTerminalValue:
  """Tests for compute_terminal_value function."""

  def test_normal_case(self):
    """Gordon growth.

    Manual calculation:
    TV = 100 * 1.025 / (0.10 - 0.025) = 102.5 / 0.075 = 1366.667
    """
    tv = compute_terminal_value(100.0, 0.025, 0.10)

    assert tv == pytest.approx(1366.667, abs=0.001)

  def test_zero_growth(self):
    """TV = 100 / 0.10 = 1000."""
    assert compute_terminal_value(100.0, 0.0, 0.10) == pytest.approx(1000.0)

  def test_growth_exceeds_discount_rate(self):
    with pytest.raises(InvalidAssumptionError):
      compute_terminal_value(100.0, 0.03, 0.02)

  def test_growth_equals_discount_rate(self):
    with pytest.raises(InvalidAssumptionError):
      compute_terminal_value(100.0, 0.10, 0.10)


class TestProjectCashFlows:
  """Tests for project_cash_flows function."""

  def test_first_year(self, flat_assumptions):
    """Year 1 of the flat scenario.

    Manual calculation:
    Revenue = 1000 * 1.05 = 1050
    EBITDA = 1050 * 0.20 = 210
    EBIT = 210 - 31.5 = 178.5
    NOPAT = 178.5 * 0.75 = 133.875
    FCF = 133.875 + 31.5 - 42 - 0 = 123.375
    PV = 123.375 / 1.1 = 112.159
    """
    records = project_cash_flows(1000.0, flat_assumptions, 0.10, 0.25)
    first = records[0]

    assert first.year == 1
    assert first.revenue == pytest.approx(1050.0)
    assert first.ebitda == pytest.approx(210.0)
    assert first.ebit == pytest.approx(178.5)
    assert first.nopat == pytest.approx(133.875)
    assert first.free_cash_flow == pytest.approx(123.375)
    assert first.present_value == pytest.approx(112.159, abs=0.001)

  def test_revenue_compounds(self, flat_assumptions):
    """Year 5 revenue = 1000 * 1.05^5 = 1276.28."""
    records = project_cash_flows(1000.0, flat_assumptions, 0.10, 0.25)

    assert [r.year for r in records] == [1, 2, 3, 4, 5]
    assert records[-1].revenue == pytest.approx(1276.28, abs=0.01)

  def test_negative_growth(self):
    """10% decline each year, no D&A or capex.

    Manual calculation:
    Year 1: Revenue=90, EBITDA=18, FCF=18*0.75=13.5
    Year 2: Revenue=81, EBITDA=16.2, FCF=12.15
    """
    assumptions = ProjectionAssumptions.flat(2,
                                             revenue_growth=-0.10,
                                             ebitda_margin=0.20)

    records = project_cash_flows(100.0, assumptions, 0.10, 0.25)

    assert records[0].free_cash_flow == pytest.approx(13.5)
    assert records[1].revenue == pytest.approx(81.0)
    assert records[1].free_cash_flow == pytest.approx(12.15)

  def test_working_capital_reduces_fcf(self):
    """FCF = 20 * 0.75 - 5 = 10."""
    assumptions = ProjectionAssumptions.flat(1,
                                             revenue_growth=0.0,
                                             ebitda_margin=0.20,
                                             working_capital_change=5.0)

    records = project_cash_flows(100.0, assumptions, 0.10, 0.25)

    assert records[0].free_cash_flow == pytest.approx(10.0)


class TestCalculateDCF:
  """Tests for calculate_dcf function."""

  def test_flat_scenario(self, snapshot, flat_assumptions, base_params):
    """Five years, FCF_y = 117.5 * 1.05^y.

    Manual calculation:
    PV explicit = sum(117.5 * (1.05/1.1)^y, y=1..5) = 512.08
    FCF5 = 149.963, TV = 149.963 * 1.025 / 0.075 = 2049.50
    TV PV = 2049.50 / 1.1^5 = 1272.58
    PV = 1784.65, IV = 17.8465, upside = (17.8465 - 150) / 150 = -0.88102
    """
    result = calculate_dcf(snapshot, flat_assumptions, base_params)

    assert len(result.projected_cash_flows) == 5
    assert result.terminal_value == pytest.approx(2049.50, abs=0.01)
    assert result.terminal_present_value == pytest.approx(1272.58, abs=0.01)
    assert result.present_value == pytest.approx(1784.65, abs=0.01)
    assert result.intrinsic_value == pytest.approx(17.8465, abs=0.001)
    assert result.upside == pytest.approx(-0.88102, abs=1e-4)
    assert result.projection_years == 5
    assert result.params == base_params

  def test_present_value_is_sum_of_parts(self, snapshot, flat_assumptions,
                                         base_params):
    result = calculate_dcf(snapshot, flat_assumptions, base_params)

    explicit = sum(r.present_value for r in result.projected_cash_flows)
    assert result.present_value == pytest.approx(explicit +
                                                 result.terminal_present_value)

  def test_deterministic(self, snapshot, flat_assumptions, base_params):
    first = calculate_dcf(snapshot, flat_assumptions, base_params)
    second = calculate_dcf(snapshot, flat_assumptions, base_params)

    assert first == second

  def test_growth_above_discount_rate(self, snapshot, flat_assumptions):
    params = CostOfCapitalParams(discount_rate=0.02, terminal_growth_rate=0.03)

    with pytest.raises(InvalidAssumptionError):
      calculate_dcf(snapshot, flat_assumptions, params)

  def test_discount_rate_too_large(self, snapshot, flat_assumptions):
    """(1 + 1e200)^2 cannot be represented."""
    params = CostOfCapitalParams(discount_rate=1e200,
                                 terminal_growth_rate=0.025)

    with pytest.raises(InvalidAssumptionError, match='out of range'):
      calculate_dcf(snapshot, flat_assumptions, params)

  def test_zero_shares(self, flat_assumptions, base_params):
    """No shares: enterprise value only, per-share fields omitted."""
    snap = FinancialSnapshot(revenue=1000.0,
                             shares_outstanding=0.0,
                             current_price=150.0)

    result = calculate_dcf(snap, flat_assumptions, base_params)

    assert result.present_value == pytest.approx(1784.65, abs=0.01)
    assert result.intrinsic_value is None
    assert result.upside is None

  def test_zero_price(self, snapshot, flat_assumptions, base_params):
    snap = dataclasses.replace(snapshot, current_price=0.0)

    result = calculate_dcf(snap, flat_assumptions, base_params)

    assert result.intrinsic_value == pytest.approx(17.8465, abs=0.001)
    assert result.upside is None

  def test_negative_shares(self, snapshot, flat_assumptions, base_params):
    snap = dataclasses.replace(snapshot, shares_outstanding=-10.0)

    with pytest.raises(InvalidAssumptionError):
      calculate_dcf(snap, flat_assumptions, base_params)

  def test_horizon_mismatch(self, snapshot, flat_assumptions, base_params):
    config = DCFConfig(projection_years=7)

    with pytest.raises(InvalidAssumptionError, match='expected 7'):
      calculate_dcf(snapshot, flat_assumptions, base_params, config)

  def test_custom_horizon(self, snapshot, base_params):
    assumptions = ProjectionAssumptions.flat(3,
                                             revenue_growth=0.05,
                                             ebitda_margin=0.20)

    result = calculate_dcf(snapshot, assumptions, base_params,
                           DCFConfig(projection_years=3))

    assert len(result.projected_cash_flows) == 3
    assert result.projection_years == 3

  def test_higher_discount_rate_lowers_value(self, snapshot, flat_assumptions,
                                             base_params):
    low = calculate_dcf(snapshot, flat_assumptions, base_params)
    high = calculate_dcf(snapshot, flat_assumptions,
                         dataclasses.replace(base_params, discount_rate=0.12))

    assert high.intrinsic_value < low.intrinsic_value

  def test_to_dict(self, snapshot, flat_assumptions, base_params):
    data = calculate_dcf(snapshot, flat_assumptions, base_params).to_dict()

    assert data['projection_years'] == 5
    assert data['params']['discount_rate'] == 0.10
    assert len(data['projected_cash_flows']) == 5


class TestCostOfCapital:
  """Tests for WACC and CAPM helpers."""

  def test_wacc(self):
    """0.6 * 0.10 + 0.4 * 0.05 * 0.75 = 0.06 + 0.015 = 0.075."""
    assert calculate_wacc(600.0, 400.0, 0.10, 0.05,
                          0.25) == pytest.approx(0.075)

  def test_wacc_no_capital(self):
    with pytest.raises(InvalidAssumptionError):
      calculate_wacc(0.0, 0.0, 0.10, 0.05, 0.25)

  def test_cost_of_equity(self):
    """0.04 + 1.2 * 0.05 = 0.10."""
    assert calculate_cost_of_equity(0.04, 1.2, 0.05) == pytest.approx(0.10)
