"""
Ledger Kernel Models
"""
from .account import Account, AccountFilter, WellKnownAccounts
from .posting import Posting, PostingPair, PostingFilter, Reference
from .closing_book import (
    ClosingBook,
    ClosingSettings,
    ClosingSummary,
    CashflowSetting,
)

__all__ = [
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
]
