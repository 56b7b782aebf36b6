"""Sensitivity grids and Monte Carlo simulations over the engines."""

from corpval.analysis.monte_carlo import dcf_monte_carlo
from corpval.analysis.monte_carlo import lbo_monte_carlo
from corpval.analysis.sampling import normal_random
from corpval.analysis.sensitivity import DCFSensitivityTableBuilder
from corpval.analysis.sensitivity import LBOSensitivityTableBuilder
from corpval.analysis.sensitivity import dcf_sensitivity
from corpval.analysis.sensitivity import lbo_sensitivity
from corpval.analysis.sensitivity import sensitivity_frame

__all__ = [
    'dcf_monte_carlo',
    'lbo_monte_carlo',
    'normal_random',
    'DCFSensitivityTableBuilder',
    'LBOSensitivityTableBuilder',
    'dcf_sensitivity',
    'lbo_sensitivity',
    'sensitivity_frame',
]
