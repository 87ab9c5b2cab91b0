"""
Profit & Loss (Laba Rugi) Report Generator
==========================================

Generates the Profit & Loss statement:
- Pendapatan (revenue, income and contra-revenue accounts, credit - debit)
- Harga Pokok Penjualan (synthetic line from the COGS engine)
- Laba Kotor (gross profit)
- Beban (expense accounts, debit - credit)
- Laba Bersih (net profit)

Closing-book postings are excluded, so the statement always reports the
pre-closing result and is stable across closing regeneration.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from ..config import settings
from ..constants import AccountType, PROFIT_TYPES, LOSS_TYPES
from ..models.account import AccountFilter, WellKnownAccounts
from ..models.posting import PostingFilter
from ..services.account_registry import AccountRegistry
from ..store.base import LedgerStore
from .cogs import CogsGenerator, CogsReport
from .common import ZERO, AccountLine, account_totals, iso, lines_to_dict


@dataclass
class ProfitLossReport:
    """
    Profit & Loss Report (Laporan Laba Rugi)

    Structure:
    - profit: revenue lines plus one COGS line (is_cogs, amount = -COGS)
    - gross_profit = revenue - COGS
    - loss: expense lines
    - net_profit = gross_profit - total_expense
    - income_tax: tax recognised by a closing book in the period
    - net_profit_after_tax = net_profit - income_tax
    """
    company_id: str
    start_date: Optional[date]
    end_date: date

    profit: List[AccountLine] = field(default_factory=list)
    total_revenue: Decimal = ZERO
    cogs: Decimal = ZERO
    gross_profit: Decimal = ZERO

    loss: List[AccountLine] = field(default_factory=list)
    total_expense: Decimal = ZERO

    net_profit: Decimal = ZERO
    income_tax: Decimal = ZERO
    net_profit_after_tax: Decimal = ZERO

    # Sisa Hasil Usaha distributed through net-surplus equity accounts
    net_surplus: List[AccountLine] = field(default_factory=list)
    total_net_surplus: Decimal = ZERO

    cogs_report: Optional[CogsReport] = None
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def revenue_lines(self) -> List[AccountLine]:
        return [line for line in self.profit if not line.is_cogs]

    @property
    def cogs_lines(self) -> List[AccountLine]:
        return [line for line in self.profit if line.is_cogs]

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "company_id": self.company_id,
            "start_date": iso(self.start_date),
            "end_date": self.end_date.isoformat(),
            "profit": lines_to_dict(self.profit),
            "total_revenue": float(self.total_revenue),
            "cogs": float(self.cogs),
            "gross_profit": float(self.gross_profit),
            "loss": lines_to_dict(self.loss),
            "total_expense": float(self.total_expense),
            "net_profit": float(self.net_profit),
            "income_tax": float(self.income_tax),
            "net_profit_after_tax": float(self.net_profit_after_tax),
            "net_surplus": lines_to_dict(self.net_surplus),
            "total_net_surplus": float(self.total_net_surplus),
            "cogs_report": self.cogs_report.to_dict() if self.cogs_report else None,
            "generated_at": self.generated_at.isoformat(),
        }


class ProfitLossGenerator:
    """
    Generates Profit & Loss report from ledger postings.

    Revenue accounts are summed credit - debit, expense accounts
    debit - credit. COGS comes from the COGS engine, never from a COGS
    account balance.
    """

    def __init__(self, store: LedgerStore, registry: AccountRegistry = None):
        self.store = store
        self.registry = registry or AccountRegistry(store)
        self.cogs_generator = CogsGenerator(store, self.registry)

    async def generate(
        self,
        company_id: str,
        start_date: Optional[date],
        end_date: date,
        accounts: Optional[WellKnownAccounts] = None,
    ) -> ProfitLossReport:
        """
        Generate P&L report for the specified period.

        Args:
            company_id: Company (tenant) id
            start_date: Start date of reporting period, None for all history
            end_date: End date of reporting period (inclusive)
            accounts: Pre-resolved well-known accounts

        Returns:
            ProfitLossReport with all sections populated
        """
        if accounts is None:
            accounts = await self.registry.resolve_well_known(company_id)

        cogs_report = await self.cogs_generator.generate(
            company_id, start_date, end_date, accounts
        )
        report = ProfitLossReport(
            company_id=company_id,
            start_date=start_date,
            end_date=end_date,
            cogs_report=cogs_report,
        )
        period = dict(date_from=start_date, date_to=end_date, is_closing_entry=False)

        # Revenue
        revenue_accounts = await self.store.find_accounts(
            AccountFilter(company_id=company_id, types=PROFIT_TYPES, is_active=None)
        )
        for account in revenue_accounts:
            debit, credit = await account_totals(self.store, company_id, account, **period)
            amount = credit - debit
            if amount == 0:
                continue
            report.profit.append(AccountLine.for_account(account, amount))
            report.total_revenue += amount

        report.cogs = cogs_report.cogs
        report.profit.append(AccountLine(
            account_code="",
            account_name=settings.ledger.COGS_LINE_NAME,
            amount=-cogs_report.cogs,
            account_id=(
                accounts.cogs_closing_account.id if accounts.cogs_closing_account else None
            ),
            is_cogs=True,
        ))
        report.gross_profit = report.total_revenue - report.cogs

        # Expenses
        expense_accounts = await self.store.find_accounts(
            AccountFilter(company_id=company_id, types=LOSS_TYPES, is_active=None)
        )
        for account in expense_accounts:
            debit, credit = await account_totals(self.store, company_id, account, **period)
            amount = debit - credit
            if amount == 0:
                continue
            report.loss.append(AccountLine.for_account(account, amount))
            report.total_expense += amount

        report.net_profit = report.gross_profit - report.total_expense

        # Income tax recognised by closing books in the period
        if expense_accounts:
            debit, credit = await self.store.sum_postings(PostingFilter(
                company_id=company_id,
                account_ids=[a.id for a in expense_accounts],
                date_from=start_date,
                date_to=end_date,
                is_tax=True,
                is_closing_entry=True,
            ))
            report.income_tax = debit - credit
        report.net_profit_after_tax = report.net_profit - report.income_tax

        # Net surplus distribution
        surplus_accounts = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            types=(AccountType.EQUITY,),
            is_net_surplus_account=True,
            is_active=None,
        ))
        for account in surplus_accounts:
            debit, credit = await account_totals(
                self.store, company_id, account, date_from=start_date, date_to=end_date
            )
            amount = debit - credit
            report.net_surplus.append(AccountLine.for_account(account, amount))
            report.total_net_surplus += amount

        return report
