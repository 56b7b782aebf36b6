"""
Monte Carlo simulation of DCF values and LBO returns.

Draws are generated up front from one seeded generator, so a seed
reproduces a run regardless of how the draws are evaluated. Evaluation is
sequential by default. With workers > 1 it runs on a thread pool, or on a
process pool with use_processes=True. Evaluation is pure Python and holds
the GIL, so only the process pool gives a real speedup; threads keep the
same results without the cost of pickling draws.
Draws that fail to evaluate are logged and dropped; statistics cover only
the draws that succeeded and `simulations` reports that count.

DCF: per-year growth, margin, depreciation, capex and working capital
change plus the discount rate and terminal growth are perturbed with
normal noise (dispersion and clamps from DCFConfig).

LBO: exit multiple, per-year revenue growth and per-year EBITDA margin are
drawn from the distributions supplied; anything without a distribution
keeps its base value.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from functools import partial
import logging
from typing import Optional, TypeVar

import numpy as np

from corpval.analysis.sampling import clamp
from corpval.analysis.sampling import finite_values
from corpval.analysis.sampling import make_rng
from corpval.analysis.sampling import normal_path
from corpval.analysis.sampling import normal_random
from corpval.analysis.sampling import share_at_or_above
from corpval.analysis.sampling import summarize
from corpval.domain.types import CostOfCapitalParams
from corpval.domain.types import DCFSample
from corpval.domain.types import DCFSimulationSummary
from corpval.domain.types import DealStructure
from corpval.domain.types import FinancialSnapshot
from corpval.domain.types import LBODistributions
from corpval.domain.types import LBOSample
from corpval.domain.types import LBOSimulationSummary
from corpval.domain.types import ProjectionAssumptions
from corpval.engine.dcf import calculate_dcf
from corpval.engine.lbo import calculate_lbo
from corpval.errors import InvalidAssumptionError
from corpval.errors import ValuationError
from corpval.scenarios.config import DCFConfig
from corpval.scenarios.config import LBOConfig

logger = logging.getLogger(__name__)

D = TypeVar('D')
S = TypeVar('S')


def _evaluate_all(
    evaluate: Callable[[D], Optional[S]],
    draws: Sequence[D],
    workers: int,
    use_processes: bool = False,
) -> list[S]:
  """Evaluate draws in draw order and keep the successful samples."""
  if workers < 1:
    raise InvalidAssumptionError(f'workers must be >= 1: {workers}')

  if workers == 1:
    outcomes = [evaluate(d) for d in draws]
  else:
    executor_cls = ProcessPoolExecutor if use_processes else ThreadPoolExecutor
    with executor_cls(max_workers=workers) as executor:
      outcomes = list(executor.map(evaluate, draws))
  return [s for s in outcomes if s is not None]


def _log_skipped(label: str, requested: int, succeeded: int) -> None:
  if succeeded < requested:
    logger.warning('%s Monte Carlo: %d of %d draws failed and were skipped',
                   label, requested - succeeded, requested)


def draw_dcf_inputs(
    rng: np.random.Generator,
    assumptions: ProjectionAssumptions,
    params: CostOfCapitalParams,
    config: DCFConfig,
) -> tuple[ProjectionAssumptions, CostOfCapitalParams]:
  """
  Perturb DCF assumptions and rates for one draw.

  Depreciation and capex are folded to non-negative values. The discount
  rate is floored and terminal growth is clamped to the configured range.
  """
  drawn = ProjectionAssumptions(
      revenue_growth=normal_path(rng, assumptions.revenue_growth,
                                 config.growth_std),
      ebitda_margin=normal_path(rng, assumptions.ebitda_margin,
                                config.margin_std),
      depreciation=normal_path(rng,
                               assumptions.depreciation,
                               config.depreciation_std,
                               absolute=True),
      capex=normal_path(rng,
                        assumptions.capex,
                        config.capex_std,
                        absolute=True),
      working_capital_change=normal_path(rng,
                                         assumptions.working_capital_change,
                                         config.working_capital_std),
  )

  discount_rate = max(
      config.min_discount_rate,
      params.discount_rate + normal_random(rng, 0.0, config.discount_rate_std))
  terminal_growth = clamp(
      params.terminal_growth_rate +
      normal_random(rng, 0.0, config.terminal_growth_std),
      config.min_terminal_growth,
      config.max_terminal_growth,
  )
  drawn_params = replace(params,
                         discount_rate=discount_rate,
                         terminal_growth_rate=terminal_growth)
  return drawn, drawn_params


def _evaluate_dcf_draw(
    snapshot: FinancialSnapshot,
    config: DCFConfig,
    draw: tuple[ProjectionAssumptions, CostOfCapitalParams],
) -> Optional[DCFSample]:
  drawn_assumptions, drawn_params = draw
  try:
    result = calculate_dcf(snapshot, drawn_assumptions, drawn_params, config)
  except (ValuationError, ArithmeticError) as e:
    logger.debug('DCF draw failed: %s', e)
    return None
  return DCFSample(
      intrinsic_value=result.intrinsic_value,
      upside=result.upside,
      present_value=result.present_value,
      discount_rate=drawn_params.discount_rate,
      terminal_growth_rate=drawn_params.terminal_growth_rate,
  )


def dcf_monte_carlo(
    snapshot: FinancialSnapshot,
    assumptions: ProjectionAssumptions,
    params: CostOfCapitalParams,
    simulations: Optional[int] = None,
    seed: Optional[int] = None,
    workers: int = 1,
    config: Optional[DCFConfig] = None,
    use_processes: bool = False,
) -> DCFSimulationSummary:
  """
  Simulate the distribution of DCF intrinsic value and upside.

  Args:
    snapshot: Baseline company figures
    assumptions: Base per-year assumptions (centres of the draws)
    params: Base cost of capital
    simulations: Number of draws (default: config.simulations, 10,000)
    seed: Random seed
    workers: Parallel evaluators (1 evaluates in-line)
    config: Engine configuration (default: DCFConfig.default())
    use_processes: Evaluate on a process pool instead of threads

  Returns:
    DCFSimulationSummary over the successful draws

  Raises:
    InvalidAssumptionError: If the base inputs are invalid
  """
  if config is None:
    config = DCFConfig.default()
  if simulations is None:
    simulations = config.simulations
  if simulations < 0:
    raise InvalidAssumptionError(
        f'simulations cannot be negative: {simulations}')

  snapshot.validate()
  assumptions.validate(config.projection_years)
  params.validate()

  logger.info('Running DCF Monte Carlo: %d draws, seed=%s', simulations, seed)

  rng = make_rng(seed)
  draws = [
      draw_dcf_inputs(rng, assumptions, params, config)
      for _ in range(simulations)
  ]

  samples = _evaluate_all(partial(_evaluate_dcf_draw, snapshot, config), draws,
                          workers, use_processes)
  _log_skipped('DCF', simulations, len(samples))

  intrinsic_values = finite_values((s.intrinsic_value for s in samples),
                                   positive=True)
  upsides = finite_values(s.upside for s in samples)

  summary = DCFSimulationSummary(
      simulations=len(samples),
      requested=simulations,
      intrinsic_value=summarize(intrinsic_values),
      upside=summarize(upsides),
      probability_of_positive_upside=share_at_or_above(upsides,
                                                       0.0,
                                                       strict=True),
      samples=samples[:config.preview_size],
  )
  logger.info('DCF Monte Carlo finished: %d successful draws',
              summary.simulations)
  return summary


def draw_lbo_deal(
    rng: np.random.Generator,
    deal: DealStructure,
    distributions: LBODistributions,
    hold_period: int,
) -> DealStructure:
  """Replace the distributed inputs of deal with one random draw."""
  changes = {}
  if distributions.exit_multiple is not None:
    changes['exit_multiple'] = normal_random(rng,
                                             distributions.exit_multiple.mean,
                                             distributions.exit_multiple.std)
  if distributions.revenue_growth is not None:
    dist = distributions.revenue_growth
    changes['revenue_growth'] = tuple(
        normal_random(rng, dist.mean, dist.std) for _ in range(hold_period))
  if distributions.ebitda_margin is not None:
    dist = distributions.ebitda_margin
    changes['ebitda_margin'] = tuple(
        normal_random(rng, dist.mean, dist.std)
        for _ in range(hold_period + 1))
  return replace(deal, **changes)


def validate_base_deal(
    deal: DealStructure,
    distributions: LBODistributions,
    hold_period: int,
) -> None:
  """
  Validate the inputs every draw shares.

  Distributed fields are replaced by their means before validation, so a
  base deal may leave them empty.

  Raises:
    InvalidAssumptionError: If the fixed part of the deal is malformed
  """
  changes = {}
  if distributions.exit_multiple is not None:
    changes['exit_multiple'] = distributions.exit_multiple.mean
  if distributions.revenue_growth is not None:
    changes['revenue_growth'] = ((distributions.revenue_growth.mean,) *
                                 hold_period)
  if distributions.ebitda_margin is not None:
    changes['ebitda_margin'] = ((distributions.ebitda_margin.mean,) *
                                (hold_period + 1))
  replace(deal, **changes).validate(hold_period)


def _evaluate_lbo_draw(config: LBOConfig,
                       drawn: DealStructure) -> Optional[LBOSample]:
  try:
    result = calculate_lbo(drawn, config)
  except (ValuationError, ArithmeticError) as e:
    logger.debug('LBO draw failed: %s', e)
    return None
  return LBOSample(
      irr=result.returns.irr,
      total_multiple=result.returns.total_multiple,
      max_leverage=result.max_leverage,
      exit_equity_value=result.returns.exit_equity_value,
  )


def lbo_monte_carlo(
    deal: DealStructure,
    distributions: Optional[LBODistributions] = None,
    simulations: Optional[int] = None,
    seed: Optional[int] = None,
    workers: int = 1,
    config: Optional[LBOConfig] = None,
    use_processes: bool = False,
) -> LBOSimulationSummary:
  """
  Simulate the distribution of LBO returns.

  Args:
    deal: Base deal
    distributions: Distributions for exit multiple, revenue growth and
      EBITDA margin (each optional)
    simulations: Number of draws (default: config.simulations, 5,000)
    seed: Random seed
    workers: Parallel evaluators (1 evaluates in-line)
    config: Thresholds and hold period (default: LBOConfig.default())
    use_processes: Evaluate on a process pool instead of threads

  Returns:
    LBOSimulationSummary over the successful draws

  Raises:
    InvalidAssumptionError: If the base deal is malformed
  """
  if config is None:
    config = LBOConfig.default()
  if distributions is None:
    distributions = LBODistributions()
  if simulations is None:
    simulations = config.simulations
  if simulations < 0:
    raise InvalidAssumptionError(
        f'simulations cannot be negative: {simulations}')

  validate_base_deal(deal, distributions, config.hold_period)

  logger.info('Running LBO Monte Carlo: %d draws, seed=%s', simulations, seed)

  rng = make_rng(seed)
  draws = [
      draw_lbo_deal(rng, deal, distributions, config.hold_period)
      for _ in range(simulations)
  ]

  samples = _evaluate_all(partial(_evaluate_lbo_draw, config), draws, workers,
                          use_processes)
  _log_skipped('LBO', simulations, len(samples))

  irrs = finite_values(s.irr for s in samples)
  multiples = finite_values(s.total_multiple for s in samples)
  leverages = finite_values(s.max_leverage for s in samples)

  summary = LBOSimulationSummary(
      simulations=len(samples),
      requested=simulations,
      irr=summarize(irrs),
      total_multiple=summarize(multiples),
      max_leverage=summarize(leverages),
      probability_of_target_irr=share_at_or_above(irrs, config.target_irr),
      samples=samples[:config.preview_size],
  )
  logger.info('LBO Monte Carlo finished: %d successful draws',
              summary.simulations)
  return summary
