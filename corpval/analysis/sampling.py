'''
Random draws and sample reduction shared by the Monte Carlo simulations.

Normal variates come from the Box-Muller transform applied to uniforms from
a numpy Generator, so a seed reproduces a whole simulation.
'''

import math
from typing import Iterable, List, Optional

import numpy as np

from corpval.domain.types import SummaryStatistics


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
  '''Random generator for a simulation (seeded for reproducibility).'''
  return np.random.default_rng(seed)


def normal_random(rng: np.random.Generator, mean: float, std: float) -> float:
  '''
  Draw one normal variate with the Box-Muller transform.

  z = sqrt(-2 ln u1) * cos(2 pi u2), value = mean + z * std

  Args:
    rng: Source of uniform(0, 1) draws
    mean: Distribution mean
    std: Distribution standard deviation

  Returns:
    mean + z * std
  '''
  # Generator.random() is [0, 1); flip it so ln(u1) is always defined.
  u1 = 1.0 - rng.random()
  u2 = rng.random()
  z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
  return mean + z * std


def normal_path(
    rng: np.random.Generator,
    means: Iterable[float],
    std: float,
    absolute: bool = False,
) -> List[float]:
  '''
  One independent normal draw per year around each year's mean.

  Args:
    rng: Random generator
    means: Per-year centres
    std: Common standard deviation
    absolute: Fold draws to non-negative values

  Returns:
    List of draws, same length as means
  '''
  draws = [normal_random(rng, m, std) for m in means]
  if absolute:
    return [abs(d) for d in draws]
  return draws


def clamp(value: float, lower: float, upper: float) -> float:
  return max(lower, min(upper, value))


def finite_values(values: Iterable[Optional[float]],
                  positive: bool = False) -> np.ndarray:
  '''Drop None and NaN/inf entries (and non-positive ones if asked).'''
  arr = np.array([np.nan if v is None else v for v in values], dtype=float)
  mask = np.isfinite(arr)
  if positive:
    mask &= arr > 0
  return arr[mask]


def summarize(values: np.ndarray) -> Optional[SummaryStatistics]:
  '''
  Reduce a sample to summary statistics.

  Standard deviation is the population one (ddof=0) and percentiles use
  linear interpolation.

  Returns:
    SummaryStatistics, or None for an empty sample
  '''
  if values.size == 0:
    return None
  return SummaryStatistics(
      count=int(values.size),
      mean=float(np.mean(values)),
      median=float(np.median(values)),
      std=float(np.std(values)),
      percentile10=float(np.percentile(values, 10)),
      percentile90=float(np.percentile(values, 90)),
      min=float(np.min(values)),
      max=float(np.max(values)),
  )


def share_at_or_above(values: np.ndarray, threshold: float,
                      strict: bool = False) -> Optional[float]:
  '''Fraction of values >= threshold (> with strict); None when empty.'''
  if values.size == 0:
    return None
  hits = values > threshold if strict else values >= threshold
  return float(np.count_nonzero(hits)) / values.size
