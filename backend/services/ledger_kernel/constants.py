"""
Ledger Kernel Constants
"""
from enum import Enum


class AccountType(str, Enum):
    """Chart of Accounts types"""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    COST = "COST"
    RECEIVABLE = "RECEIVABLE"
    PAYABLE = "PAYABLE"
    CONTRA_ASSET = "CONTRA_ASSET"
    CONTRA_LIABILITY = "CONTRA_LIABILITY"
    CONTRA_EQUITY = "CONTRA_EQUITY"
    CONTRA_REVENUE = "CONTRA_REVENUE"
    CONTRA_EXPENSE = "CONTRA_EXPENSE"


# Balance orientation used by every report (debit - credit vs credit - debit).
# PAYABLE belongs to neither set: computing its balance raises.
DEBIT_NORMAL_TYPES = frozenset({
    AccountType.EXPENSE,
    AccountType.COST,
    AccountType.CONTRA_LIABILITY,
    AccountType.CONTRA_EQUITY,
    AccountType.CONTRA_REVENUE,
    AccountType.RECEIVABLE,
    AccountType.ASSET,
})

CREDIT_NORMAL_TYPES = frozenset({
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.INCOME,
    AccountType.CONTRA_ASSET,
    AccountType.CONTRA_EXPENSE,
})

# Account types listed on the trial balance worksheet
TRIAL_BALANCE_TYPES = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.EXPENSE,
    AccountType.COST,
    AccountType.RECEIVABLE,
    AccountType.CONTRA_REVENUE,
)

PROFIT_TYPES = (AccountType.REVENUE, AccountType.INCOME, AccountType.CONTRA_REVENUE)
LOSS_TYPES = (AccountType.EXPENSE,)


class RefType(str, Enum):
    """Kinds of document a posting reference can point to"""
    TRANSACTION = "transaction"
    JOURNAL = "journal"
    SALES = "sales"
    PURCHASE = "purchase"
    RETURN = "return"
    STOCK_OPNAME = "stock-opname"
    CLOSING_BOOK = "closing-book"
    NET_SURPLUS = "net-surplus"


class ClosingBookStatus(str, Enum):
    """Closing book lifecycle"""
    DRAFT = "DRAFT"
    RELEASED = "RELEASED"


class CashflowGroup(str, Enum):
    """Cash-flow group tags carried by accounts"""
    FIXED_ASSET = "fixed_asset"
    CURRENT_ASSET = "current_asset"
    CASH_BANK = "cash_bank"


class CashflowCategory(str, Enum):
    """Cash-flow statement sections"""
    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


class ReportType(str, Enum):
    """Reports the kernel can generate"""
    COGS = "COGS"
    PROFIT_LOSS = "PROFIT_LOSS"
    TRIAL_BALANCE = "TRIAL_BALANCE"
    BALANCE_SHEET = "BALANCE_SHEET"
    CAPITAL_CHANGE = "CAPITAL_CHANGE"
    CASH_FLOW = "CASH_FLOW"
    GENERAL_LEDGER = "GENERAL_LEDGER"
