'''
Domain types for the DCF and LBO engines.

Every type here is an immutable value: engines take them as arguments and
return new ones, and variations (sensitivity cells, Monte Carlo draws) are
built with dataclasses.replace instead of mutating shared state.
'''

from dataclasses import asdict, dataclass, field
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from corpval.errors import InvalidAssumptionError


def _as_tuple(values: Sequence[float]) -> Tuple[float, ...]:
  return tuple(float(v) for v in values)


def _check_finite(name: str, value: float) -> None:
  if not math.isfinite(value):
    raise InvalidAssumptionError(f'{name} must be finite, got {value}')


@dataclass(frozen=True)
class FinancialSnapshot:
  '''
  Baseline figures for one company at one point in time.

  Attributes:
    revenue: Latest annual revenue (year 0 of the projection)
    shares_outstanding: Diluted shares outstanding
    current_price: Market price per share
    total_debt: Gross debt
    cash: Cash and equivalents
  '''
  revenue: float
  shares_outstanding: float
  current_price: float
  total_debt: float = 0.0
  cash: float = 0.0

  def validate(self) -> None:
    '''Raise InvalidAssumptionError for out-of-domain figures.'''
    for name in ('revenue', 'shares_outstanding', 'current_price',
                 'total_debt', 'cash'):
      _check_finite(name, getattr(self, name))
    if self.shares_outstanding < 0:
      raise InvalidAssumptionError(
          f'shares_outstanding cannot be negative: {self.shares_outstanding}')
    if self.current_price < 0:
      raise InvalidAssumptionError(
          f'current_price cannot be negative: {self.current_price}')


@dataclass(frozen=True)
class ProjectionAssumptions:
  '''
  Per-year operating assumptions for the explicit forecast period.

  All five sequences are indexed by projection year (index 0 = year 1).
  Growth and margin are fractions; depreciation, capex and working capital
  change are currency amounts.
  '''
  revenue_growth: Tuple[float, ...]
  ebitda_margin: Tuple[float, ...]
  depreciation: Tuple[float, ...]
  capex: Tuple[float, ...]
  working_capital_change: Tuple[float, ...]

  def __post_init__(self):
    for name in self._fields():
      object.__setattr__(self, name, _as_tuple(getattr(self, name)))

  @staticmethod
  def _fields() -> Tuple[str, ...]:
    return ('revenue_growth', 'ebitda_margin', 'depreciation', 'capex',
            'working_capital_change')

  @property
  def years(self) -> int:
    '''Length of the forecast (length of revenue_growth).'''
    return len(self.revenue_growth)

  @classmethod
  def flat(
      cls,
      years: int,
      revenue_growth: float,
      ebitda_margin: float,
      depreciation: float = 0.0,
      capex: float = 0.0,
      working_capital_change: float = 0.0,
  ) -> 'ProjectionAssumptions':
    '''Build assumptions with the same value in every year.'''
    return cls(
        revenue_growth=(revenue_growth,) * years,
        ebitda_margin=(ebitda_margin,) * years,
        depreciation=(depreciation,) * years,
        capex=(capex,) * years,
        working_capital_change=(working_capital_change,) * years,
    )

  def validate(self, n_years: int) -> None:
    '''
    Check that every sequence covers exactly n_years.

    Raises:
      InvalidAssumptionError: On length mismatch or non-finite values
    '''
    if n_years < 1:
      raise InvalidAssumptionError(f'projection horizon must be >= 1: {n_years}')
    for name in self._fields():
      values = getattr(self, name)
      if len(values) != n_years:
        raise InvalidAssumptionError(
            f'{name} has {len(values)} values, expected {n_years}')
      for i, v in enumerate(values):
        _check_finite(f'{name}[{i}]', v)


@dataclass(frozen=True)
class CostOfCapitalParams:
  '''
  Discounting parameters for the DCF.

  Attributes:
    discount_rate: Cost of capital (WACC), as a fraction
    terminal_growth_rate: Perpetual growth after the explicit period
    tax_rate: Tax rate applied to EBIT
  '''
  discount_rate: float
  terminal_growth_rate: float
  tax_rate: float = 0.25

  def validate(self) -> None:
    '''
    Raises:
      InvalidAssumptionError: If discount_rate <= terminal_growth_rate
    '''
    _check_finite('discount_rate', self.discount_rate)
    _check_finite('terminal_growth_rate', self.terminal_growth_rate)
    _check_finite('tax_rate', self.tax_rate)
    if self.discount_rate <= self.terminal_growth_rate:
      raise InvalidAssumptionError(
          f'discount_rate ({self.discount_rate}) must exceed '
          f'terminal_growth_rate ({self.terminal_growth_rate})')
    if self.discount_rate <= -1.0:
      raise InvalidAssumptionError(
          f'discount_rate must be > -100%: {self.discount_rate}')


@dataclass(frozen=True)
class YearRecord:
  '''One projected year of the DCF.'''
  year: int
  revenue: float
  ebitda: float
  ebit: float
  nopat: float
  free_cash_flow: float
  present_value: float


@dataclass(frozen=True)
class DCFResult:
  '''
  DCF point estimate.

  Attributes:
    projected_cash_flows: Yearly records, year ascending
    terminal_value: Undiscounted Gordon growth terminal value
    terminal_present_value: Terminal value discounted to today
    present_value: Sum of discounted cash flows plus terminal PV
    intrinsic_value: present_value per share (None without shares)
    upside: Intrinsic value vs current price (None without a price)
    shares_outstanding: Shares used for the per-share value
    current_price: Price used for upside
    params: Cost of capital parameters used
    projection_years: Length of the explicit period
  '''
  projected_cash_flows: Tuple[YearRecord, ...]
  terminal_value: float
  terminal_present_value: float
  present_value: float
  intrinsic_value: Optional[float]
  upside: Optional[float]
  shares_outstanding: float
  current_price: float
  params: CostOfCapitalParams
  projection_years: int

  def to_dict(self) -> Dict[str, Any]:
    '''Convert to a plain dictionary (nested records become dicts).'''
    return asdict(self)


@dataclass(frozen=True)
class InterestRates:
  '''
  Interest rate inputs for the LBO.

  weighted, when set, overrides the tranche blend.
  '''
  weighted: Optional[float] = None
  term_loan_a: Optional[float] = None
  term_loan_b: Optional[float] = None
  subordinated: Optional[float] = None


@dataclass(frozen=True)
class DealStructure:
  '''
  Deal parameters for an LBO.

  Per-year arrays are indexed by projection year. revenue_growth covers
  years 1..hold_period; ebitda_margin, capex_pct_revenue and
  working_capital_change cover years 0..hold_period. capex_pct_revenue and
  working_capital_change default to 3% and 0 in every year when omitted.

  Attributes:
    enterprise_value: Purchase enterprise value
    ebitda: Entry EBITDA
    revolver: Revolver draw at close
    term_loan_a: Term Loan A principal
    term_loan_b: Term Loan B principal
    subordinated_debt: Subordinated notes principal
    exit_multiple: Exit EV/EBITDA multiple
    fees: Transaction fees funded by equity
    revenue_growth: Yearly revenue growth, years 1..hold_period
    ebitda_margin: Yearly EBITDA margin, years 0..hold_period
    capex_pct_revenue: Yearly capex as fraction of revenue
    working_capital_change: Yearly change in working capital (currency)
    base_revenue: Year 0 revenue (derived from ebitda / margin when None)
    tax_rate: Tax rate on positive EBT
    debt_paydown_rate: Share of positive FCF used to repay debt
    interest_rates: Interest rate inputs
  '''
  enterprise_value: float
  ebitda: float
  revolver: float = 0.0
  term_loan_a: float = 0.0
  term_loan_b: float = 0.0
  subordinated_debt: float = 0.0
  exit_multiple: float = 10.0
  fees: float = 0.0
  revenue_growth: Tuple[float, ...] = ()
  ebitda_margin: Tuple[float, ...] = ()
  capex_pct_revenue: Optional[Tuple[float, ...]] = None
  working_capital_change: Optional[Tuple[float, ...]] = None
  base_revenue: Optional[float] = None
  tax_rate: float = 0.25
  debt_paydown_rate: float = 0.50
  interest_rates: InterestRates = field(default_factory=InterestRates)

  def __post_init__(self):
    for name in ('revenue_growth', 'ebitda_margin', 'capex_pct_revenue',
                 'working_capital_change'):
      values = getattr(self, name)
      if values is not None:
        object.__setattr__(self, name, _as_tuple(values))

  @property
  def total_debt(self) -> float:
    '''Sum of the four debt tranches.'''
    return (self.revolver + self.term_loan_a + self.term_loan_b +
            self.subordinated_debt)

  @property
  def equity_contribution(self) -> float:
    '''Sponsor equity: purchase price less debt, plus fees.'''
    return self.enterprise_value - self.total_debt + self.fees

  def capex_path(self, hold_period: int) -> Tuple[float, ...]:
    if self.capex_pct_revenue is None:
      return (0.03,) * (hold_period + 1)
    return self.capex_pct_revenue

  def working_capital_path(self, hold_period: int) -> Tuple[float, ...]:
    if self.working_capital_change is None:
      return (0.0,) * (hold_period + 1)
    return self.working_capital_change

  def validate(self, hold_period: int) -> None:
    '''
    Check tranche amounts and per-year array lengths.

    Raises:
      InvalidAssumptionError: On negative tranches, a non-positive enterprise
        value, non-finite values or arrays that do not match the hold period
    '''
    if hold_period < 1:
      raise InvalidAssumptionError(f'hold_period must be >= 1: {hold_period}')
    for name in ('enterprise_value', 'ebitda', 'revolver', 'term_loan_a',
                 'term_loan_b', 'subordinated_debt', 'exit_multiple', 'fees',
                 'tax_rate', 'debt_paydown_rate'):
      _check_finite(name, getattr(self, name))
    for name in ('revolver', 'term_loan_a', 'term_loan_b', 'subordinated_debt',
                 'fees'):
      if getattr(self, name) < 0:
        raise InvalidAssumptionError(f'{name} cannot be negative')
    if self.enterprise_value <= 0:
      raise InvalidAssumptionError(
          f'enterprise_value must be positive: {self.enterprise_value}')

    expected = {
        'revenue_growth': (self.revenue_growth, hold_period),
        'ebitda_margin': (self.ebitda_margin, hold_period + 1),
        'capex_pct_revenue': (self.capex_path(hold_period), hold_period + 1),
        'working_capital_change':
            (self.working_capital_path(hold_period), hold_period + 1),
    }
    for name, (values, length) in expected.items():
      if len(values) != length:
        raise InvalidAssumptionError(
            f'{name} has {len(values)} values, expected {length}')
      for i, v in enumerate(values):
        _check_finite(f'{name}[{i}]', v)

    if self.base_revenue is not None:
      _check_finite('base_revenue', self.base_revenue)
      if self.base_revenue <= 0:
        raise InvalidAssumptionError(
            f'base_revenue must be positive: {self.base_revenue}')


@dataclass(frozen=True)
class SourcesAndUses:
  '''Capital structure at close.'''
  revolver: float
  term_loan_a: float
  term_loan_b: float
  subordinated_debt: float
  total_debt: float
  equity_contribution: float
  total_sources: float
  enterprise_value: float
  fees: float
  total_uses: float


@dataclass(frozen=True)
class YearCreditMetrics:
  '''
  Leverage and coverage for one year.

  Ratios whose denominator is zero (no interest, no debt) are None.
  '''
  debt_to_ebitda: float
  ebitda_to_interest: Optional[float]
  fcf_to_debt: Optional[float]


@dataclass(frozen=True)
class YearProjection:
  '''One projected year of the LBO (year 0 is the closing year).'''
  year: int
  revenue: float
  ebitda: float
  ebit: float
  interest: float
  net_income: float
  free_cash_flow: float
  debt_balance: float
  debt_paydown: float
  cash_to_sponsor: float
  credit_metrics: YearCreditMetrics


@dataclass(frozen=True)
class LBOReturns:
  '''Sponsor returns at exit.'''
  entry_equity: float
  exit_equity_value: float
  exit_enterprise_value: float
  total_cash_distributed: float
  total_cash_returned: float
  total_multiple: float
  irr: float
  exit_multiple: float
  exit_ebitda: float


@dataclass(frozen=True)
class LBOCreditSummary:
  '''Credit metrics across the hold period.'''
  entry_debt_to_ebitda: Optional[float]
  max_debt_to_ebitda: float
  min_ebitda_to_interest: Optional[float]
  debt_paydown_over_hold_period: float
  debt_paydown_percent: Optional[float]


@dataclass(frozen=True)
class KeyMetrics:
  '''Pass/fail checks against the LBO configuration.'''
  meets_target_irr: bool
  leverage_within_limits: bool
  adequate_equity_buffer: bool
  risk_adjusted_return: Optional[float]


@dataclass(frozen=True)
class LBOResult:
  '''LBO point estimate.'''
  sources_and_uses: SourcesAndUses
  projections: Tuple[YearProjection, ...]
  returns: LBOReturns
  credit_metrics: LBOCreditSummary
  key_metrics: KeyMetrics

  @property
  def max_leverage(self) -> float:
    return self.credit_metrics.max_debt_to_ebitda

  def to_dict(self) -> Dict[str, Any]:
    '''Convert to a plain dictionary (nested records become dicts).'''
    return asdict(self)


@dataclass(frozen=True)
class Distribution:
  '''Normal distribution parameters.'''
  mean: float
  std: float

  def __post_init__(self):
    _check_finite('mean', self.mean)
    _check_finite('std', self.std)
    if self.std < 0:
      raise InvalidAssumptionError(f'std cannot be negative: {self.std}')


@dataclass(frozen=True)
class LBODistributions:
  '''Optional distributions for the LBO Monte Carlo.'''
  exit_multiple: Optional[Distribution] = None
  revenue_growth: Optional[Distribution] = None
  ebitda_margin: Optional[Distribution] = None


@dataclass(frozen=True)
class SummaryStatistics:
  '''
  Reduction of a sample of outcomes.

  Attributes:
    count: Number of values the statistics were computed over
    mean: Arithmetic mean
    median: 50th percentile
    std: Population standard deviation
    percentile10: 10th percentile (linear interpolation)
    percentile90: 90th percentile (linear interpolation)
    min: Smallest value
    max: Largest value
  '''
  count: int
  mean: float
  median: float
  std: float
  percentile10: float
  percentile90: float
  min: float
  max: float


@dataclass(frozen=True)
class DCFSample:
  '''Scalar outcomes of one DCF Monte Carlo draw.'''
  intrinsic_value: Optional[float]
  upside: Optional[float]
  present_value: float
  discount_rate: float
  terminal_growth_rate: float


@dataclass(frozen=True)
class LBOSample:
  '''Scalar outcomes of one LBO Monte Carlo draw.'''
  irr: float
  total_multiple: float
  max_leverage: float
  exit_equity_value: float


@dataclass(frozen=True)
class DCFSimulationSummary:
  '''
  Aggregated DCF Monte Carlo output.

  Attributes:
    simulations: Number of draws that evaluated successfully
    requested: Number of draws requested
    intrinsic_value: Statistics over positive intrinsic values
    upside: Statistics over defined upsides
    probability_of_positive_upside: Share of defined upsides above zero
    samples: First successful draws, in draw order
  '''
  simulations: int
  requested: int
  intrinsic_value: Optional[SummaryStatistics]
  upside: Optional[SummaryStatistics]
  probability_of_positive_upside: Optional[float]
  samples: List[DCFSample] = field(default_factory=list)

  def to_dict(self) -> Dict[str, Any]:
    return asdict(self)


@dataclass(frozen=True)
class LBOSimulationSummary:
  '''
  Aggregated LBO Monte Carlo output.

  Attributes:
    simulations: Number of draws that evaluated successfully
    requested: Number of draws requested
    irr: Statistics over finite IRRs
    total_multiple: Statistics over finite multiples
    max_leverage: Statistics over finite peak leverage
    probability_of_target_irr: Share of IRRs at or above the target
    samples: First successful draws, in draw order
  '''
  simulations: int
  requested: int
  irr: Optional[SummaryStatistics]
  total_multiple: Optional[SummaryStatistics]
  max_leverage: Optional[SummaryStatistics]
  probability_of_target_irr: Optional[float]
  samples: List[LBOSample] = field(default_factory=list)

  def to_dict(self) -> Dict[str, Any]:
    return asdict(self)


@dataclass(frozen=True)
class DCFSensitivityRow:
  '''One cell of the discount rate x terminal growth grid.'''
  discount_rate: float
  terminal_growth_rate: float
  intrinsic_value: Optional[float]
  upside: Optional[float]


@dataclass(frozen=True)
class LBOSensitivityRow:
  '''One cell of the exit multiple x revenue growth grid.'''
  exit_multiple: float
  revenue_growth: float
  irr: float
  total_multiple: float
  max_leverage: float
