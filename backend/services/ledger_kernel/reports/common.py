"""
Shared report building blocks
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from ..config import settings
from ..models.account import Account
from ..models.posting import PostingFilter
from ..store.base import LedgerStore

ZERO = Decimal("0")


def quantize(value: Decimal) -> Decimal:
    """Round to the ledger's monetary precision (half up)"""
    exponent = Decimal(1).scaleb(-settings.ledger.DECIMAL_PLACES)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class AccountLine:
    """Single account line in a report"""
    account_code: str
    account_name: str
    amount: Decimal = ZERO
    account_id: Optional[UUID] = None
    is_cogs: bool = False

    def to_dict(self) -> Dict:
        return {
            "account_id": str(self.account_id) if self.account_id else None,
            "account_code": self.account_code,
            "account_name": self.account_name,
            "amount": float(self.amount),
            "is_cogs": self.is_cogs,
        }

    @classmethod
    def for_account(cls, account: Account, amount: Decimal) -> "AccountLine":
        return cls(
            account_code=account.code,
            account_name=account.name,
            amount=amount,
            account_id=account.id,
        )


def lines_to_dict(lines: List[AccountLine]) -> List[Dict]:
    return [line.to_dict() for line in lines]


async def account_totals(
    store: LedgerStore,
    company_id: str,
    account: Account,
    **bounds,
) -> Tuple[Decimal, Decimal]:
    """(debit, credit) of one account; bounds are PostingFilter fields"""
    return await store.sum_postings(PostingFilter(
        company_id=company_id,
        account_ids=[account.id],
        **bounds,
    ))
