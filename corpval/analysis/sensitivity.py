"""
Two-way sensitivity analysis for DCF and LBO.

DCF: discount rate (outer) x terminal growth rate (inner) -> intrinsic
value and upside.
LBO: exit multiple (outer) x flat revenue growth (inner) -> IRR, total
multiple and peak leverage.

Each cell re-runs the point estimate with its pair substituted into a copy
of the base inputs. A cell that raises is logged and left out; the rest of
the grid is still returned.

Usage:
  builder = DCFSensitivityTableBuilder(snapshot, assumptions, params)
  rows = builder.rows()
  table = builder.build()   # DataFrame, discount rate x terminal growth
"""

from collections.abc import Sequence
from dataclasses import asdict
from dataclasses import replace
import logging
from typing import Optional

import pandas as pd

from corpval.domain.types import CostOfCapitalParams
from corpval.domain.types import DCFSensitivityRow
from corpval.domain.types import DealStructure
from corpval.domain.types import FinancialSnapshot
from corpval.domain.types import LBOSensitivityRow
from corpval.domain.types import ProjectionAssumptions
from corpval.engine.dcf import calculate_dcf
from corpval.engine.lbo import calculate_lbo
from corpval.errors import InvalidAssumptionError
from corpval.errors import ValuationError
from corpval.scenarios.config import DCFConfig
from corpval.scenarios.config import LBOConfig

logger = logging.getLogger(__name__)


def sensitivity_frame(
    rows: Sequence[object],
    index: str,
    columns: str,
    values: str,
) -> pd.DataFrame:
  """
  Pivot sensitivity rows into a 2D table.

  Row and column order follow the order in which values first appear in
  rows (the enumeration order of the grid). Skipped cells are NaN.

  Args:
    rows: DCFSensitivityRow or LBOSensitivityRow records
    index: Field used for the table index
    columns: Field used for the table columns
    values: Field shown in the cells

  Returns:
    DataFrame indexed by `index` with one column per `columns` value
  """
  if not rows:
    return pd.DataFrame()

  df = pd.DataFrame([asdict(r) for r in rows])
  table = df.pivot(index=index, columns=columns, values=values)
  table = table.reindex(index=pd.unique(df[index]),
                        columns=pd.unique(df[columns]))
  table.index.name = index
  table.columns.name = columns
  return table


def _check_axis(name: str, values: Sequence[float]) -> None:
  if not values:
    raise InvalidAssumptionError(f'{name} cannot be empty')


class DCFSensitivityTableBuilder:
  """
  Build discount rate x terminal growth sensitivity tables.

  Snapshot, projection assumptions and tax rate stay fixed; only the rate
  pair varies from cell to cell.
  """

  def __init__(
      self,
      snapshot: FinancialSnapshot,
      assumptions: ProjectionAssumptions,
      params: CostOfCapitalParams,
      config: Optional[DCFConfig] = None,
  ):
    """
    Initialize sensitivity table builder.

    Args:
      snapshot: Baseline company figures
      assumptions: Per-year operating assumptions
      params: Base cost of capital (tax rate is reused in every cell)
      config: Engine configuration (default: DCFConfig.default())
    """
    self.snapshot = snapshot
    self.assumptions = assumptions
    self.params = params
    self.config = config or DCFConfig.default()

  def rows(
      self,
      discount_rates: Optional[Sequence[float]] = None,
      terminal_growth_rates: Optional[Sequence[float]] = None,
  ) -> list[DCFSensitivityRow]:
    """
    Evaluate every (discount rate, terminal growth) pair.

    Args:
      discount_rates: Outer axis (default: config axis, 8%..12%)
      terminal_growth_rates: Inner axis (default: config axis, 1.5%..3.5%)

    Returns:
      One row per successful cell, discount-rate-major order

    Raises:
      InvalidAssumptionError: If an axis is empty or the snapshot or
        assumptions are malformed
    """
    if discount_rates is None:
      discount_rates = self.config.sensitivity_discount_rates
    if terminal_growth_rates is None:
      terminal_growth_rates = self.config.sensitivity_terminal_growth_rates
    _check_axis('discount_rates', discount_rates)
    _check_axis('terminal_growth_rates', terminal_growth_rates)
    self.snapshot.validate()
    self.assumptions.validate(self.config.projection_years)

    logger.info('Building DCF sensitivity grid: %d x %d', len(discount_rates),
                len(terminal_growth_rates))

    results = []
    skipped = 0
    for r in discount_rates:
      for g in terminal_growth_rates:
        cell_params = replace(self.params,
                              discount_rate=r,
                              terminal_growth_rate=g)
        try:
          dcf = calculate_dcf(self.snapshot, self.assumptions, cell_params,
                              self.config)
        except (ValuationError, ArithmeticError) as e:
          skipped += 1
          logger.debug('Skipping DCF cell r=%.4f g=%.4f: %s', r, g, e)
          continue
        results.append(
            DCFSensitivityRow(
                discount_rate=r,
                terminal_growth_rate=g,
                intrinsic_value=dcf.intrinsic_value,
                upside=dcf.upside,
            ))

    if skipped:
      logger.warning('DCF sensitivity: skipped %d of %d cells', skipped,
                     len(discount_rates) * len(terminal_growth_rates))
    return results

  def build(
      self,
      discount_rates: Optional[Sequence[float]] = None,
      terminal_growth_rates: Optional[Sequence[float]] = None,
      values: str = 'intrinsic_value',
  ) -> pd.DataFrame:
    """Sensitivity table with discount rates as index, growth as columns."""
    return sensitivity_frame(self.rows(discount_rates, terminal_growth_rates),
                             index='discount_rate',
                             columns='terminal_growth_rate',
                             values=values)


class LBOSensitivityTableBuilder:
  """
  Build exit multiple x revenue growth sensitivity tables.

  Each revenue growth value is applied to every year of the hold period.
  """

  def __init__(self, deal: DealStructure, config: Optional[LBOConfig] = None):
    """
    Initialize sensitivity table builder.

    Args:
      deal: Base deal
      config: Thresholds and hold period (default: LBOConfig.default())
    """
    self.deal = deal
    self.config = config or LBOConfig.default()

  def rows(
      self,
      exit_multiples: Optional[Sequence[float]] = None,
      revenue_growth_rates: Optional[Sequence[float]] = None,
  ) -> list[LBOSensitivityRow]:
    """
    Evaluate every (exit multiple, revenue growth) pair.

    Args:
      exit_multiples: Outer axis (default: config axis, 8x..12x)
      revenue_growth_rates: Inner axis (default: config axis, 3%..11%)

    Returns:
      One row per successful cell, exit-multiple-major order

    Raises:
      InvalidAssumptionError: If an axis is empty or the parts of the deal
        shared by every cell are malformed
    """
    if exit_multiples is None:
      exit_multiples = self.config.sensitivity_exit_multiples
    if revenue_growth_rates is None:
      revenue_growth_rates = self.config.sensitivity_revenue_growth_rates
    _check_axis('exit_multiples', exit_multiples)
    _check_axis('revenue_growth_rates', revenue_growth_rates)
    hold_period = self.config.hold_period
    shared = replace(self.deal, revenue_growth=(0.0,) * hold_period)
    shared.validate(hold_period)

    logger.info('Building LBO sensitivity grid: %d x %d', len(exit_multiples),
                len(revenue_growth_rates))

    results = []
    skipped = 0
    for exit_multiple in exit_multiples:
      for growth in revenue_growth_rates:
        cell_deal = replace(self.deal,
                            exit_multiple=exit_multiple,
                            revenue_growth=(growth,) * hold_period)
        try:
          lbo = calculate_lbo(cell_deal, self.config)
        except (ValuationError, ArithmeticError) as e:
          skipped += 1
          logger.debug('Skipping LBO cell exit=%.2fx growth=%.4f: %s',
                       exit_multiple, growth, e)
          continue
        results.append(
            LBOSensitivityRow(
                exit_multiple=exit_multiple,
                revenue_growth=growth,
                irr=lbo.returns.irr,
                total_multiple=lbo.returns.total_multiple,
                max_leverage=lbo.max_leverage,
            ))

    if skipped:
      logger.warning('LBO sensitivity: skipped %d of %d cells', skipped,
                     len(exit_multiples) * len(revenue_growth_rates))
    return results

  def build(
      self,
      exit_multiples: Optional[Sequence[float]] = None,
      revenue_growth_rates: Optional[Sequence[float]] = None,
      values: str = 'irr',
  ) -> pd.DataFrame:
    """Sensitivity table with exit multiples as index, growth as columns."""
    return sensitivity_frame(self.rows(exit_multiples, revenue_growth_rates),
                             index='exit_multiple',
                             columns='revenue_growth',
                             values=values)


def dcf_sensitivity(
    snapshot: FinancialSnapshot,
    assumptions: ProjectionAssumptions,
    params: CostOfCapitalParams,
    discount_rates: Optional[Sequence[float]] = None,
    terminal_growth_rates: Optional[Sequence[float]] = None,
    config: Optional[DCFConfig] = None,
) -> list[DCFSensitivityRow]:
  """Discount rate x terminal growth grid (see DCFSensitivityTableBuilder)."""
  builder = DCFSensitivityTableBuilder(snapshot, assumptions, params, config)
  return builder.rows(discount_rates, terminal_growth_rates)


def lbo_sensitivity(
    deal: DealStructure,
    exit_multiples: Optional[Sequence[float]] = None,
    revenue_growth_rates: Optional[Sequence[float]] = None,
    config: Optional[LBOConfig] = None,
) -> list[LBOSensitivityRow]:
  """Exit multiple x revenue growth grid (see LBOSensitivityTableBuilder)."""
  builder = LBOSensitivityTableBuilder(deal, config)
  return builder.rows(exit_multiples, revenue_growth_rates)
