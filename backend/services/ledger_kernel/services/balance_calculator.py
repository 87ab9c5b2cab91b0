"""
Balance Calculator
==================

Single source of the debit/credit sign rule. Every report derives balances
through `signed_balance`; no report re-implements the account-type switch.

Debit-normal (debit - credit):
    EXPENSE, COST, CONTRA_LIABILITY, CONTRA_EQUITY, CONTRA_REVENUE,
    RECEIVABLE, ASSET
Credit-normal (credit - debit):
    LIABILITY, EQUITY, REVENUE, INCOME, CONTRA_ASSET, CONTRA_EXPENSE
"""
from decimal import Decimal
from typing import Iterable, List, Tuple

from ..constants import AccountType, DEBIT_NORMAL_TYPES, CREDIT_NORMAL_TYPES
from ..exceptions import UnhandledAccountType
from ..models.posting import Posting


def is_debit_normal(account_type: AccountType) -> bool:
    """
    Check the natural side of an account type.

    Raises:
        UnhandledAccountType: type has no balance rule
    """
    if account_type in DEBIT_NORMAL_TYPES:
        return True
    if account_type in CREDIT_NORMAL_TYPES:
        return False
    raise UnhandledAccountType(account_type)


def signed_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """
    Signed balance of an account from its aggregated debit and credit.

    Args:
        account_type: AccountType of the account
        debit: Total debit
        credit: Total credit

    Returns:
        debit - credit for debit-normal types, credit - debit otherwise

    Raises:
        UnhandledAccountType: type has no balance rule (e.g. PAYABLE)
    """
    if is_debit_normal(account_type):
        return debit - credit
    return credit - debit


def running_balance(
    account_type: AccountType,
    postings: Iterable[Posting],
    opening: Decimal = Decimal("0"),
) -> List[Tuple[Posting, Decimal]]:
    """
    Fold an ordered posting sequence for one account into running balances.

    Args:
        account_type: AccountType of the account
        postings: Postings ordered by date
        opening: Balance immediately before the first posting

    Returns:
        List of (posting, balance after posting)
    """
    balance = opening
    rows = []
    for posting in postings:
        balance += signed_balance(account_type, posting.debit, posting.credit)
        rows.append((posting, balance))
    return rows
