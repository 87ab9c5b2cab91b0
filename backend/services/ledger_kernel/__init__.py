"""
Ledger Kernel
=============

Double-entry ledger and period-closing engine:
- Append-only ledger postings grouped by transaction code
- One sign rule per account type for every balance
- COGS, Profit & Loss, Trial Balance, Balance Sheet, Capital Change and
  Cash Flow reports derived from the ledger
- Atomic, re-runnable closing books

Core Principles:
- Postings of one code always balance (validated before any write)
- Pairs are edited and deleted as a unit
- Reports are read-only and repeatable
- Closing regenerates by deleting its own postings first

Usage:
    from ledger_kernel import LedgerFacade, PostgresLedgerStore

    store = await PostgresLedgerStore.connect()
    facade = LedgerFacade(store)
    report = await facade.generate_report(ReportType.PROFIT_LOSS, company_id, start, end)
"""

__version__ = "1.0.0"
__author__ = "MilkyHoop Team"

# Constants
from .constants import (
    AccountType,
    RefType,
    ClosingBookStatus,
    CashflowGroup,
    CashflowCategory,
    ReportType,
)

# Exceptions
from .exceptions import (
    LedgerError,
    ValidationError,
    NotFoundError,
    AccountNotFound,
    PostingNotFound,
    ClosingBookNotFound,
    ConfigurationError,
    InventoryAccountNotFound,
    StockOpnameAccountNotFound,
    CogsClosingAccountNotFound,
    ConsistencyError,
    UnhandledAccountType,
    ClosingBookError,
)

# Models
from .models import (
    Account,
    AccountFilter,
    WellKnownAccounts,
    Posting,
    PostingPair,
    PostingFilter,
    Reference,
    ClosingBook,
    ClosingSettings,
    ClosingSummary,
    CashflowSetting,
)

# Storage
from .store import LedgerStore, MemoryLedgerStore, PostgresLedgerStore, create_schema

# Services
from .services import (
    signed_balance,
    running_balance,
    AccountRegistry,
    LedgerService,
    ReferenceResolver,
)
from .services.closing_book_service import ClosingBookService

# Reports
from .reports import (
    CogsReport,
    CogsGenerator,
    ProfitLossReport,
    ProfitLossGenerator,
    TrialBalanceReport,
    TrialBalanceGenerator,
    BalanceSheetReport,
    BalanceSheetGenerator,
    CapitalChangeReport,
    CapitalChangeGenerator,
    CashFlowReport,
    CashFlowGenerator,
    AccountReport,
    GeneralLedgerGenerator,
)

# Integration (main entry point)
from .integration import LedgerFacade

# Validators
from .validators import DoubleEntryValidator

from .config import settings, configure_logging

__all__ = [
    # Version
    "__version__",

    # Constants
    "AccountType",
    "RefType",
    "ClosingBookStatus",
    "CashflowGroup",
    "CashflowCategory",
    "ReportType",

    # Exceptions
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "AccountNotFound",
    "PostingNotFound",
    "ClosingBookNotFound",
    "ConfigurationError",
    "InventoryAccountNotFound",
    "StockOpnameAccountNotFound",
    "CogsClosingAccountNotFound",
    "ConsistencyError",
    "UnhandledAccountType",
    "ClosingBookError",

    # Models
    "Account",
    "AccountFilter",
    "WellKnownAccounts",
    "Posting",
    "PostingPair",
    "PostingFilter",
    "Reference",
    "ClosingBook",
    "ClosingSettings",
    "ClosingSummary",
    "CashflowSetting",

    # Storage
    "LedgerStore",
    "MemoryLedgerStore",
    "PostgresLedgerStore",
    "create_schema",

    # Services
    "signed_balance",
    "running_balance",
    "AccountRegistry",
    "LedgerService",
    "ReferenceResolver",
    "ClosingBookService",

    # Reports
    "CogsReport",
    "CogsGenerator",
    "ProfitLossReport",
    "ProfitLossGenerator",
    "TrialBalanceReport",
    "TrialBalanceGenerator",
    "BalanceSheetReport",
    "BalanceSheetGenerator",
    "CapitalChangeReport",
    "CapitalChangeGenerator",
    "CashFlowReport",
    "CashFlowGenerator",
    "AccountReport",
    "GeneralLedgerGenerator",

    # Integration
    "LedgerFacade",

    # Validators
    "DoubleEntryValidator",

    # Config
    "settings",
    "configure_logging",
]
