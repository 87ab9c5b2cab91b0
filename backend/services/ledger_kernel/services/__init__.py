"""
Ledger Kernel Services

ClosingBookService depends on the report generators and is imported from
`ledger_kernel.services.closing_book_service` directly.
"""
from .balance_calculator import signed_balance, running_balance, is_debit_normal
from .account_registry import AccountRegistry
from .ledger_service import LedgerService, build_pair, classify, generate_code
from .reference_resolver import ReferenceResolver

__all__ = [
    "signed_balance",
    "running_balance",
    "is_debit_normal",
    "AccountRegistry",
    "LedgerService",
    "build_pair",
    "classify",
    "generate_code",
    "ReferenceResolver",
]
