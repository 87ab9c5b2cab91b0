"""
Cash Flow (Arus Kas) Report Generator
=====================================

Direct method over configured cash-flow sub-groups. For each sub-group the
generator takes the period postings of accounts tagged with that sub-group
and sums the counter-postings that landed in a cash/bank account:

- Aktivitas Operasi (operating)
- Aktivitas Investasi (investing)
- Aktivitas Pendanaan (financing)
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Set
from uuid import UUID

from ..constants import CashflowCategory, CashflowGroup, RefType
from ..models.account import AccountFilter
from ..models.closing_book import CashflowSetting
from ..models.posting import PostingFilter
from ..services.account_registry import AccountRegistry
from ..services.balance_calculator import signed_balance
from ..store.base import LedgerStore
from .common import ZERO, quantize


@dataclass
class CashFlowLine:
    """One configured sub-group"""
    name: str
    amount: Decimal = ZERO
    entries: int = 0

    def to_dict(self) -> Dict:
        return {"name": self.name, "amount": float(self.amount), "entries": self.entries}


@dataclass
class CashFlowReport:
    """Cash Flow Report (Laporan Arus Kas)"""
    company_id: str
    start_date: date
    end_date: date

    operating: List[CashFlowLine] = field(default_factory=list)
    total_operating: Decimal = ZERO
    investing: List[CashFlowLine] = field(default_factory=list)
    total_investing: Decimal = ZERO
    financing: List[CashFlowLine] = field(default_factory=list)
    total_financing: Decimal = ZERO

    beginning_cash: Decimal = ZERO
    ending_cash: Decimal = ZERO
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def net_change(self) -> Decimal:
        return self.total_operating + self.total_investing + self.total_financing

    @property
    def is_balanced(self) -> bool:
        """Sub-group flows explain the movement in cash"""
        return quantize(self.beginning_cash + self.net_change - self.ending_cash) == 0

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "company_id": self.company_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "operating": [line.to_dict() for line in self.operating],
            "total_operating": float(self.total_operating),
            "investing": [line.to_dict() for line in self.investing],
            "total_investing": float(self.total_investing),
            "financing": [line.to_dict() for line in self.financing],
            "total_financing": float(self.total_financing),
            "net_change": float(self.net_change),
            "beginning_cash": float(self.beginning_cash),
            "ending_cash": float(self.ending_cash),
            "is_balanced": self.is_balanced,
            "generated_at": self.generated_at.isoformat(),
        }


class CashFlowGenerator:
    """Generates Cash Flow statement from ledger postings"""

    def __init__(self, store: LedgerStore, registry: AccountRegistry = None):
        self.store = store
        self.registry = registry or AccountRegistry(store)

    async def generate(
        self,
        company_id: str,
        start_date: date,
        end_date: date,
        setting: CashflowSetting,
    ) -> CashFlowReport:
        """
        Generate Cash Flow report.

        Args:
            company_id: Company (tenant) id
            start_date: Start date of reporting period
            end_date: End date of reporting period (inclusive)
            setting: Sub-group names per section

        Returns:
            CashFlowReport
        """
        report = CashFlowReport(
            company_id=company_id, start_date=start_date, end_date=end_date
        )

        cash_accounts = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            cashflow_sub_group=CashflowGroup.CASH_BANK.value,
            is_active=None,
        ))
        cash_ids = {a.id for a in cash_accounts}

        for category, names in setting.categories():
            lines = [await self._line(company_id, start_date, end_date, name, cash_ids)
                     for name in names]
            total = sum((line.amount for line in lines), ZERO)
            if category == CashflowCategory.OPERATING:
                report.operating, report.total_operating = lines, total
            elif category == CashflowCategory.INVESTING:
                report.investing, report.total_investing = lines, total
            else:
                report.financing, report.total_financing = lines, total

        for account in cash_accounts:
            debit, credit = await self.store.sum_postings(PostingFilter(
                company_id=company_id, account_ids=[account.id], date_before=start_date
            ))
            report.beginning_cash += signed_balance(account.type, debit, credit)
            debit, credit = await self.store.sum_postings(PostingFilter(
                company_id=company_id, account_ids=[account.id], date_to=end_date
            ))
            report.ending_cash += signed_balance(account.type, debit, credit)

        return report

    async def _line(
        self,
        company_id: str,
        start_date: date,
        end_date: date,
        name: str,
        cash_ids: Set[UUID],
    ) -> CashFlowLine:
        line = CashFlowLine(name=name)
        if not cash_ids:
            return line

        accounts = await self.store.find_accounts(AccountFilter(
            company_id=company_id, cashflow_sub_group=name, is_active=None
        ))
        if not accounts:
            return line

        postings = await self.store.query_postings(PostingFilter(
            company_id=company_id,
            account_ids=[a.id for a in accounts],
            date_from=start_date,
            date_to=end_date,
        ))
        counter_ids = list(dict.fromkeys(
            p.ref.id for p in postings
            if p.ref is not None and p.ref.kind == RefType.TRANSACTION
        ))
        for counter in await self.store.get_postings(counter_ids):
            if counter.account_id in cash_ids:
                line.amount += counter.debit - counter.credit
                line.entries += 1
        return line
