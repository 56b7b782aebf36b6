"""DCF and LBO calculation engines with pure math functions."""

from corpval.engine.dcf import calculate_cost_of_equity
from corpval.engine.dcf import calculate_dcf
from corpval.engine.dcf import calculate_wacc
from corpval.engine.dcf import compute_terminal_value
from corpval.engine.dcf import project_cash_flows
from corpval.engine.lbo import calculate_interest_expense
from corpval.engine.lbo import calculate_lbo
from corpval.engine.rootfinding import npv
from corpval.engine.rootfinding import solve_irr

__all__ = [
    'calculate_dcf',
    'project_cash_flows',
    'compute_terminal_value',
    'calculate_wacc',
    'calculate_cost_of_equity',
    'calculate_lbo',
    'calculate_interest_expense',
    'npv',
    'solve_irr',
]
