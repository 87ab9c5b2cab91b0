"""
General Ledger (Buku Besar) Account Report Generator
====================================================

Posting history of one account for a period with running balances,
seeded by the balance before the period start.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..exceptions import ValidationError
from ..models.account import Account
from ..models.posting import Posting, PostingFilter
from ..services.account_registry import AccountRegistry
from ..services.balance_calculator import running_balance, signed_balance
from ..services.reference_resolver import ReferenceResolver
from ..store.base import LedgerStore
from .common import ZERO


@dataclass
class LedgerLine:
    """Single posting in the account report"""
    posting: Posting
    balance: Decimal = ZERO
    counter_account_code: Optional[str] = None
    counter_account_name: Optional[str] = None
    document: Optional[Any] = None

    def to_dict(self) -> Dict:
        data = self.posting.to_dict()
        data["balance"] = float(self.balance)
        data["counter_account_code"] = self.counter_account_code
        data["counter_account_name"] = self.counter_account_name
        return data


@dataclass
class AccountReport:
    """
    Account report

    total_balance = balance_before + current_balance + balance_after
    """
    account: Account
    start_date: date
    end_date: date
    balance_before: Decimal = ZERO
    current_balance: Decimal = ZERO
    balance_after: Decimal = ZERO
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    lines: List[LedgerLine] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def total_balance(self) -> Decimal:
        return self.balance_before + self.current_balance + self.balance_after

    @property
    def closing_balance(self) -> Decimal:
        """Balance at the end of the period"""
        return self.balance_before + self.current_balance

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "account": self.account.to_dict(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "balance_before": float(self.balance_before),
            "current_balance": float(self.current_balance),
            "balance_after": float(self.balance_after),
            "total_balance": float(self.total_balance),
            "total_debit": float(self.total_debit),
            "total_credit": float(self.total_credit),
            "transactions": [line.to_dict() for line in self.lines],
            "generated_at": self.generated_at.isoformat(),
        }


class GeneralLedgerGenerator:
    """Generates the posting history of a single account"""

    def __init__(
        self,
        store: LedgerStore,
        registry: AccountRegistry = None,
        resolver: ReferenceResolver = None,
    ):
        self.store = store
        self.registry = registry or AccountRegistry(store)
        self.resolver = resolver or ReferenceResolver(store)

    async def generate(
        self,
        account_id: UUID,
        start_date: Optional[date],
        end_date: Optional[date],
        company_id: Optional[str] = None,
    ) -> AccountReport:
        """
        Generate account report.

        Args:
            account_id: Account to report on
            start_date: First day of the period (required)
            end_date: Last day of the period (required, inclusive)
            company_id: Optional company filter

        Returns:
            AccountReport with running balances

        Raises:
            ValidationError: date range missing or inverted
            AccountNotFound: unknown account
        """
        errors = []
        if start_date is None:
            errors.append("start_date is required")
        if end_date is None:
            errors.append("end_date is required")
        if not errors and start_date > end_date:
            errors.append("start_date must not be after end_date")
        if errors:
            raise ValidationError("Invalid account report range", errors=errors)

        account = await self.registry.get_account_by_id(account_id)
        report = AccountReport(account=account, start_date=start_date, end_date=end_date)

        def criteria(**bounds) -> PostingFilter:
            return PostingFilter(company_id=company_id, account_ids=[account.id], **bounds)

        debit, credit = await self.store.sum_postings(criteria(date_before=start_date))
        report.balance_before = signed_balance(account.type, debit, credit)

        postings = await self.store.query_postings(
            criteria(date_from=start_date, date_to=end_date)
        )
        for posting, balance in running_balance(account.type, postings, report.balance_before):
            line = LedgerLine(posting=posting, balance=balance)
            counter = await self.resolver.resolve_optional(posting.ref)
            if isinstance(counter, Posting):
                line.counter_account_code = counter.account_code
                line.counter_account_name = counter.account_name
            line.document = await self.resolver.resolve_optional(posting.secondary_ref)
            report.lines.append(line)
            report.total_debit += posting.debit
            report.total_credit += posting.credit
        report.current_balance = signed_balance(
            account.type, report.total_debit, report.total_credit
        )

        debit, credit = await self.store.sum_postings(
            criteria(date_from=end_date + timedelta(days=1))
        )
        report.balance_after = signed_balance(account.type, debit, credit)
        return report
