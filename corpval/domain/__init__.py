"""Domain types for the valuation engines."""

from corpval.domain.types import CostOfCapitalParams
from corpval.domain.types import DCFResult
from corpval.domain.types import DCFSample
from corpval.domain.types import DCFSensitivityRow
from corpval.domain.types import DCFSimulationSummary
from corpval.domain.types import DealStructure
from corpval.domain.types import Distribution
from corpval.domain.types import FinancialSnapshot
from corpval.domain.types import InterestRates
from corpval.domain.types import KeyMetrics
from corpval.domain.types import LBOCreditSummary
from corpval.domain.types import LBODistributions
from corpval.domain.types import LBOResult
from corpval.domain.types import LBOReturns
from corpval.domain.types import LBOSample
from corpval.domain.types import LBOSensitivityRow
from corpval.domain.types import LBOSimulationSummary
from corpval.domain.types import ProjectionAssumptions
from corpval.domain.types import SourcesAndUses
from corpval.domain.types import SummaryStatistics
from corpval.domain.types import YearCreditMetrics
from corpval.domain.types import YearProjection
from corpval.domain.types import YearRecord

__all__ = [
    'FinancialSnapshot',
    'ProjectionAssumptions',
    'CostOfCapitalParams',
    'YearRecord',
    'DCFResult',
    'InterestRates',
    'DealStructure',
    'SourcesAndUses',
    'YearCreditMetrics',
    'YearProjection',
    'LBOReturns',
    'LBOCreditSummary',
    'KeyMetrics',
    'LBOResult',
    'Distribution',
    'LBODistributions',
    'SummaryStatistics',
    'DCFSample',
    'LBOSample',
    'DCFSimulationSummary',
    'LBOSimulationSummary',
    'DCFSensitivityRow',
    'LBOSensitivityRow',
]
