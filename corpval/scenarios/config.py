"""
Engine configuration for DCF and LBO runs.

DCFConfig and LBOConfig hold every default the engines use (horizon,
thresholds, grid axes, Monte Carlo dispersion). They are validated once at
construction and serialize to JSON for reproducibility.
"""

from dataclasses import asdict
from dataclasses import dataclass
import json
from typing import Any

from corpval.errors import InvalidAssumptionError


def _require(condition: bool, message: str) -> None:
  if not condition:
    raise InvalidAssumptionError(message)


@dataclass(frozen=True)
class DCFConfig:
  """
  Configuration for DCF valuation, sensitivity and Monte Carlo.

  Attributes:
    projection_years: Explicit forecast horizon
    simulations: Default Monte Carlo draw count
    preview_size: Raw samples kept in a Monte Carlo summary
    sensitivity_discount_rates: Default discount rate axis
    sensitivity_terminal_growth_rates: Default terminal growth axis
    growth_std: Per-year revenue growth dispersion
    margin_std: Per-year EBITDA margin dispersion
    depreciation_std: Per-year depreciation dispersion (currency)
    capex_std: Per-year capex dispersion (currency)
    working_capital_std: Per-year working capital change dispersion
    discount_rate_std: Discount rate shock dispersion
    terminal_growth_std: Terminal growth shock dispersion
    min_discount_rate: Floor applied to drawn discount rates
    min_terminal_growth: Floor applied to drawn terminal growth
    max_terminal_growth: Cap applied to drawn terminal growth
  """
  projection_years: int = 5
  simulations: int = 10_000
  preview_size: int = 100
  sensitivity_discount_rates: tuple[float, ...] = (0.08, 0.09, 0.10, 0.11,
                                                   0.12)
  sensitivity_terminal_growth_rates: tuple[float, ...] = (0.015, 0.020, 0.025,
                                                          0.030, 0.035)
  growth_std: float = 0.02
  margin_std: float = 0.03
  depreciation_std: float = 0.01
  capex_std: float = 0.01
  working_capital_std: float = 0.005
  discount_rate_std: float = 0.04
  terminal_growth_std: float = 0.02
  min_discount_rate: float = 0.05
  min_terminal_growth: float = 0.0
  max_terminal_growth: float = 0.05

  def __post_init__(self):
    object.__setattr__(self, 'sensitivity_discount_rates',
                       tuple(self.sensitivity_discount_rates))
    object.__setattr__(self, 'sensitivity_terminal_growth_rates',
                       tuple(self.sensitivity_terminal_growth_rates))

    _require(self.projection_years >= 1,
             f'projection_years must be >= 1: {self.projection_years}')
    _require(self.simulations >= 0,
             f'simulations cannot be negative: {self.simulations}')
    _require(self.preview_size >= 0,
             f'preview_size cannot be negative: {self.preview_size}')
    for name in ('growth_std', 'margin_std', 'depreciation_std', 'capex_std',
                 'working_capital_std', 'discount_rate_std',
                 'terminal_growth_std'):
      _require(getattr(self, name) >= 0, f'{name} cannot be negative')
    _require(self.min_terminal_growth <= self.max_terminal_growth,
             'min_terminal_growth must not exceed max_terminal_growth')

  @classmethod
  def default(cls) -> 'DCFConfig':
    """Five-year horizon, 10,000 simulations."""
    return cls()

  def to_dict(self) -> dict[str, Any]:
    """Convert to dictionary."""
    return asdict(self)

  def to_json(self) -> str:
    """Serialize to JSON string."""
    return json.dumps(self.to_dict(), indent=2)

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> 'DCFConfig':
    """Create from dictionary."""
    return cls(**data)

  @classmethod
  def from_json(cls, json_str: str) -> 'DCFConfig':
    """Create from JSON string."""
    return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class LBOConfig:
  """
  Configuration for LBO returns, sensitivity and Monte Carlo.

  Attributes:
    target_irr: Hurdle IRR for meets_target_irr and the Monte Carlo
      probability
    hold_period: Years from close to exit
    max_debt_multiple: Leverage ceiling (debt / EBITDA)
    min_equity_contribution: Equity / enterprise value floor
    default_interest_rate: Rate used when no usable rates are supplied
    simulations: Default Monte Carlo draw count
    preview_size: Raw samples kept in a Monte Carlo summary
    sensitivity_exit_multiples: Default exit multiple axis
    sensitivity_revenue_growth_rates: Default flat revenue growth axis
  """
  target_irr: float = 0.20
  hold_period: int = 5
  max_debt_multiple: float = 6.0
  min_equity_contribution: float = 0.30
  default_interest_rate: float = 0.08
  simulations: int = 5_000
  preview_size: int = 100
  sensitivity_exit_multiples: tuple[float, ...] = (8.0, 9.0, 10.0, 11.0, 12.0)
  sensitivity_revenue_growth_rates: tuple[float, ...] = (0.03, 0.05, 0.07,
                                                         0.09, 0.11)

  def __post_init__(self):
    object.__setattr__(self, 'sensitivity_exit_multiples',
                       tuple(self.sensitivity_exit_multiples))
    object.__setattr__(self, 'sensitivity_revenue_growth_rates',
                       tuple(self.sensitivity_revenue_growth_rates))

    _require(self.hold_period >= 1,
             f'hold_period must be >= 1: {self.hold_period}')
    _require(self.max_debt_multiple > 0,
             f'max_debt_multiple must be positive: {self.max_debt_multiple}')
    _require(0 <= self.min_equity_contribution <= 1,
             'min_equity_contribution must be within [0, 1]')
    _require(self.default_interest_rate >= 0,
             'default_interest_rate cannot be negative')
    _require(self.simulations >= 0,
             f'simulations cannot be negative: {self.simulations}')
    _require(self.preview_size >= 0,
             f'preview_size cannot be negative: {self.preview_size}')

  @classmethod
  def default(cls) -> 'LBOConfig':
    """20% target IRR, five-year hold, 6.0x leverage ceiling."""
    return cls()

  def to_dict(self) -> dict[str, Any]:
    """Convert to dictionary."""
    return asdict(self)

  def to_json(self) -> str:
    """Serialize to JSON string."""
    return json.dumps(self.to_dict(), indent=2)

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> 'LBOConfig':
    """Create from dictionary."""
    return cls(**data)

  @classmethod
  def from_json(cls, json_str: str) -> 'LBOConfig':
    """Create from JSON string."""
    return cls.from_dict(json.loads(json_str))
