"""
Ledger Posting Models
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Sequence
from uuid import UUID, uuid4

from ..constants import RefType


@dataclass(frozen=True)
class Reference:
    """Typed pointer from a posting to another posting or a business document"""
    kind: RefType
    id: UUID

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "id": str(self.id)}


@dataclass
class Posting:
    """
    One debit-or-credit ledger line.

    Postings sharing a `code` form one balanced business event and point
    at each other through `ref`. `secondary_ref` points at the originating
    document (sale, purchase, closing book, ...).
    """
    account_id: UUID
    date: date
    company_id: str
    code: str = ""
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    description: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[str] = None
    id: UUID = field(default_factory=uuid4)

    ref: Optional[Reference] = None
    secondary_ref: Optional[Reference] = None

    # Derived from the account type when posted
    is_income: bool = False
    is_expense: bool = False
    is_equity: bool = False
    is_account_payable: bool = False
    is_account_receivable: bool = False

    # Business flags set by the posting caller
    is_purchase: bool = False
    is_purchase_cost: bool = False
    is_return: bool = False
    is_discount: bool = False
    is_opening_balance: bool = False
    is_tax: bool = False

    created_at: Optional[datetime] = None

    # Joined fields
    account_code: Optional[str] = None
    account_name: Optional[str] = None

    @property
    def is_closing_entry(self) -> bool:
        """Generated by a closing book"""
        return (
            self.secondary_ref is not None
            and self.secondary_ref.kind == RefType.CLOSING_BOOK
        )

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "code": self.code,
            "date": self.date.isoformat(),
            "account_id": str(self.account_id),
            "account_code": self.account_code,
            "account_name": self.account_name,
            "company_id": self.company_id,
            "debit": float(self.debit),
            "credit": float(self.credit),
            "amount": float(self.amount),
            "description": self.description,
            "notes": self.notes,
            "ref": self.ref.to_dict() if self.ref else None,
            "secondary_ref": self.secondary_ref.to_dict() if self.secondary_ref else None,
            "is_closing_entry": self.is_closing_entry,
        }


@dataclass
class PostingPair:
    """
    Both sides of a two-line ledger event. Edited and deleted as a unit.
    """
    debit: Posting
    credit: Posting

    @property
    def code(self) -> str:
        return self.debit.code

    @property
    def amount(self) -> Decimal:
        return self.debit.debit

    @property
    def is_balanced(self) -> bool:
        return self.debit.debit == self.credit.credit

    def postings(self) -> List[Posting]:
        return [self.debit, self.credit]

    @classmethod
    def from_postings(cls, postings: Sequence[Posting]) -> "PostingPair":
        """Rebuild a pair from the two postings sharing a code."""
        debits = [p for p in postings if p.debit > 0]
        credits = [p for p in postings if p.credit > 0]
        if len(postings) != 2 or len(debits) != 1 or len(credits) != 1:
            raise ValueError(
                f"Expected one debit and one credit posting, got {len(postings)} postings"
            )
        return cls(debit=debits[0], credit=credits[0])


@dataclass
class PostingFilter:
    """
    Query vocabulary shared by all store backends.

    Date bounds: `date_from` and `date_to` are inclusive, `date_before`
    is exclusive. Boolean flags left as None are ignored. By default
    closing entries are included; set `is_closing_entry=False` to skip them.
    """
    company_id: Optional[str] = None
    account_ids: Optional[Sequence[UUID]] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    date_before: Optional[date] = None

    is_purchase: Optional[bool] = None
    is_purchase_cost: Optional[bool] = None
    is_return: Optional[bool] = None
    is_discount: Optional[bool] = None
    is_opening_balance: Optional[bool] = None
    is_tax: Optional[bool] = None
    is_closing_entry: Optional[bool] = None

    secondary_ref: Optional[Reference] = None
    positive_debit: bool = False

    FLAGS = (
        "is_purchase",
        "is_purchase_cost",
        "is_return",
        "is_discount",
        "is_opening_balance",
        "is_tax",
    )

    def matches(self, posting: Posting) -> bool:
        if self.company_id is not None and posting.company_id != self.company_id:
            return False
        if self.account_ids is not None and posting.account_id not in self.account_ids:
            return False
        if self.date_from is not None and posting.date < self.date_from:
            return False
        if self.date_to is not None and posting.date > self.date_to:
            return False
        if self.date_before is not None and posting.date >= self.date_before:
            return False
        for flag in self.FLAGS:
            wanted = getattr(self, flag)
            if wanted is not None and getattr(posting, flag) != wanted:
                return False
        if self.is_closing_entry is not None and posting.is_closing_entry != self.is_closing_entry:
            return False
        if self.secondary_ref is not None and posting.secondary_ref != self.secondary_ref:
            return False
        if self.positive_debit and not posting.debit > 0:
            return False
        return True
