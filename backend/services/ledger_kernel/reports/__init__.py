"""
Ledger Kernel Report Generators
"""
from .cogs import CogsReport, CogsGenerator
from .profit_loss import ProfitLossReport, ProfitLossGenerator
from .trial_balance import TrialBalanceReport, TrialBalanceRow, TrialBalanceGenerator
from .balance_sheet import BalanceSheetReport, BalanceSheetGenerator
from .capital_change import CapitalChangeReport, CapitalChangeGenerator
from .cash_flow import CashFlowReport, CashFlowLine, CashFlowGenerator
from .general_ledger import AccountReport, LedgerLine, GeneralLedgerGenerator
from .common import AccountLine

__all__ = [
    "AccountLine",
    "CogsReport",
    "CogsGenerator",
    "ProfitLossReport",
    "ProfitLossGenerator",
    "TrialBalanceReport",
    "TrialBalanceRow",
    "TrialBalanceGenerator",
    "BalanceSheetReport",
    "BalanceSheetGenerator",
    "CapitalChangeReport",
    "CapitalChangeGenerator",
    "CashFlowReport",
    "CashFlowLine",
    "CashFlowGenerator",
    "AccountReport",
    "LedgerLine",
    "GeneralLedgerGenerator",
]
