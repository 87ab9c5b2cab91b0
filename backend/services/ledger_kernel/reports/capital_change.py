"""
Capital Change (Perubahan Modal) Report Generator
=================================================

    Opening balance
  + Profit / loss for the period (after tax)
  + Capital changes (equity credits)
  - Prive (equity debits)
  = Ending balance
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from ..constants import AccountType
from ..models.account import AccountFilter, WellKnownAccounts
from ..models.posting import PostingFilter
from ..services.account_registry import AccountRegistry
from ..store.base import LedgerStore
from .common import ZERO
from .profit_loss import ProfitLossGenerator


@dataclass
class CapitalChangeReport:
    """Statement of changes in equity"""
    company_id: str
    start_date: date
    end_date: date
    opening_balance: Decimal = ZERO
    profit_loss: Decimal = ZERO
    capital_change_balance: Decimal = ZERO
    prived_balance: Decimal = ZERO
    ending_balance: Decimal = ZERO
    generated_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "company_id": self.company_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "opening_balance": float(self.opening_balance),
            "profit_loss": float(self.profit_loss),
            "capital_change_balance": float(self.capital_change_balance),
            "prived_balance": float(-self.prived_balance),
            "ending_balance": float(self.ending_balance),
            "generated_at": self.generated_at.isoformat(),
        }


class CapitalChangeGenerator:
    """
    Generates the capital change statement from equity postings.

    Opening balance is the opening-balance capital plus everything equity
    accumulated before the period (closed profits included). Closing
    entries inside the period are left out: the period result enters
    through the profit / loss line instead.
    """

    def __init__(self, store: LedgerStore, registry: AccountRegistry = None):
        self.store = store
        self.registry = registry or AccountRegistry(store)
        self.profit_loss_generator = ProfitLossGenerator(store, self.registry)

    async def generate(
        self,
        company_id: str,
        start_date: date,
        end_date: date,
        accounts: Optional[WellKnownAccounts] = None,
    ) -> CapitalChangeReport:
        """
        Generate capital change report for the period.

        Args:
            company_id: Company (tenant) id
            start_date: Start date of reporting period
            end_date: End date of reporting period (inclusive)
            accounts: Pre-resolved well-known accounts

        Returns:
            CapitalChangeReport
        """
        report = CapitalChangeReport(
            company_id=company_id, start_date=start_date, end_date=end_date
        )
        equity_accounts = await self.store.find_accounts(AccountFilter(
            company_id=company_id, types=(AccountType.EQUITY,), is_active=None
        ))
        equity_ids = [a.id for a in equity_accounts]

        async def equity_sum(**criteria):
            return await self.store.sum_postings(PostingFilter(
                company_id=company_id, account_ids=equity_ids, **criteria
            ))

        if equity_ids:
            # Opening balance capital through the end date
            _, credit = await equity_sum(is_opening_balance=True, date_to=end_date)
            report.opening_balance = credit

            # Equity accumulated before the period
            debit, credit = await equity_sum(is_opening_balance=False, date_before=start_date)
            report.opening_balance += credit - debit

            # Movements within the period
            debit, credit = await equity_sum(
                is_opening_balance=False,
                is_closing_entry=False,
                date_from=start_date,
                date_to=end_date,
            )
            report.capital_change_balance = credit
            report.prived_balance = debit

        profit_loss = await self.profit_loss_generator.generate(
            company_id, start_date, end_date, accounts
        )
        report.profit_loss = profit_loss.net_profit_after_tax

        report.ending_balance = (
            report.opening_balance
            + report.profit_loss
            + report.capital_change_balance
            - report.prived_balance
        )
        return report
