"""
Balance Sheet (Neraca) Report Generator
=======================================

Assets = Liabilities + Equity, as of the end date:
- Aset Tetap: ASSET / CONTRA_ASSET accounts in cash-flow group fixed_asset
- Aset Lancar: remaining ASSET accounts, RECEIVABLE accounts and the
  ending inventory from the COGS engine
- Kewajiban: LIABILITY and PAYABLE accounts
- Ekuitas: EQUITY / CONTRA_EQUITY accounts, Laba Ditahan (profit not yet
  closed into equity) and SHU Dibagikan (net surplus distributed)

Totals are compared, never forced. A mismatch is reported as a
ConsistencyError warning.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from ..config import settings
from ..constants import AccountType, CashflowGroup
from ..exceptions import ConsistencyError
from ..models.account import AccountFilter, WellKnownAccounts
from ..models.posting import PostingFilter
from ..services.account_registry import AccountRegistry
from ..services.balance_calculator import signed_balance
from ..store.base import LedgerStore
from .cogs import CogsGenerator
from .common import ZERO, AccountLine, account_totals, iso, lines_to_dict, quantize
from .profit_loss import ProfitLossGenerator

logger = logging.getLogger(__name__)


@dataclass
class BalanceSheetReport:
    """Balance Sheet Report (Laporan Posisi Keuangan)"""
    company_id: str
    start_date: Optional[date]
    end_date: date

    fixed_assets: List[AccountLine] = field(default_factory=list)
    total_fixed: Decimal = ZERO
    current_assets: List[AccountLine] = field(default_factory=list)
    total_current: Decimal = ZERO
    total_assets: Decimal = ZERO

    liabilities: List[AccountLine] = field(default_factory=list)
    total_liability: Decimal = ZERO
    equity: List[AccountLine] = field(default_factory=list)
    total_equity: Decimal = ZERO
    total_liabilities_and_equity: Decimal = ZERO

    warnings: List[Dict] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def difference(self) -> Decimal:
        return self.total_assets - self.total_liabilities_and_equity

    @property
    def is_balanced(self) -> bool:
        return quantize(self.difference) == 0

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "company_id": self.company_id,
            "start_date": iso(self.start_date),
            "end_date": self.end_date.isoformat(),
            "fixed_assets": lines_to_dict(self.fixed_assets),
            "total_fixed": float(self.total_fixed),
            "current_assets": lines_to_dict(self.current_assets),
            "total_current": float(self.total_current),
            "total_assets": float(self.total_assets),
            "liabilities": lines_to_dict(self.liabilities),
            "total_liability": float(self.total_liability),
            "equity": lines_to_dict(self.equity),
            "total_equity": float(self.total_equity),
            "total_liabilities_and_equity": float(self.total_liabilities_and_equity),
            "is_balanced": self.is_balanced,
            "warnings": self.warnings,
            "generated_at": self.generated_at.isoformat(),
        }


class BalanceSheetGenerator:
    """
    Generates Balance Sheet from ledger postings.

    Asset lines use the ASSET sign rule, liability and equity lines the
    LIABILITY rule, so contra accounts reduce their section.
    """

    def __init__(self, store: LedgerStore, registry: AccountRegistry = None):
        self.store = store
        self.registry = registry or AccountRegistry(store)
        self.cogs_generator = CogsGenerator(store, self.registry)
        self.profit_loss_generator = ProfitLossGenerator(store, self.registry)

    async def generate(
        self,
        company_id: str,
        end_date: date,
        start_date: Optional[date] = None,
        accounts: Optional[WellKnownAccounts] = None,
    ) -> BalanceSheetReport:
        """
        Generate Balance Sheet as of end_date.

        Args:
            company_id: Company (tenant) id
            end_date: Balance sheet date (inclusive)
            start_date: Reporting period start, carried on the report only
            accounts: Pre-resolved well-known accounts

        Returns:
            BalanceSheetReport with assets, liabilities and equity
        """
        if accounts is None:
            accounts = await self.registry.resolve_well_known(company_id)

        report = BalanceSheetReport(
            company_id=company_id, start_date=start_date, end_date=end_date
        )
        as_of = dict(date_to=end_date)
        inventory = accounts.inventory_account

        # Fixed assets
        fixed = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            types=(AccountType.ASSET, AccountType.CONTRA_ASSET),
            cashflow_group=CashflowGroup.FIXED_ASSET.value,
            is_active=None,
        ))
        fixed_ids = {a.id for a in fixed}
        for account in fixed:
            debit, credit = await account_totals(self.store, company_id, account, **as_of)
            amount = signed_balance(AccountType.ASSET, debit, credit)
            report.fixed_assets.append(AccountLine.for_account(account, amount))
            report.total_fixed += amount

        # Current assets
        current = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            types=(AccountType.ASSET, AccountType.RECEIVABLE),
            is_active=None,
        ))
        for account in current:
            if account.id in fixed_ids or account.id == inventory.id:
                continue
            debit, credit = await account_totals(self.store, company_id, account, **as_of)
            amount = signed_balance(AccountType.ASSET, debit, credit)
            report.current_assets.append(AccountLine.for_account(account, amount))
            report.total_current += amount

        cogs_report = await self.cogs_generator.generate(company_id, None, end_date, accounts)
        report.current_assets.append(
            AccountLine.for_account(inventory, cogs_report.ending_inventory)
        )
        report.total_current += cogs_report.ending_inventory
        report.total_assets = report.total_fixed + report.total_current

        # Liabilities
        liabilities = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            types=(AccountType.LIABILITY, AccountType.PAYABLE),
            is_active=None,
        ))
        for account in liabilities:
            debit, credit = await account_totals(self.store, company_id, account, **as_of)
            amount = signed_balance(AccountType.LIABILITY, debit, credit)
            report.liabilities.append(AccountLine.for_account(account, amount))
            report.total_liability += amount

        # Equity
        equity = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            types=(AccountType.EQUITY, AccountType.CONTRA_EQUITY),
            is_active=None,
        ))
        for account in equity:
            if account.is_net_surplus_account:
                continue
            debit, credit = await account_totals(self.store, company_id, account, **as_of)
            amount = signed_balance(AccountType.LIABILITY, debit, credit)
            report.equity.append(AccountLine.for_account(account, amount))
            report.total_equity += amount

        # Profit not yet moved into equity by closing books
        profit_loss = await self.profit_loss_generator.generate(
            company_id, None, end_date, accounts
        )
        claim_ids = [a.id for a in liabilities] + [a.id for a in equity]
        closed = ZERO
        if claim_ids:
            debit, credit = await self.store.sum_postings(PostingFilter(
                company_id=company_id,
                account_ids=claim_ids,
                date_to=end_date,
                is_closing_entry=True,
            ))
            closed = credit - debit
        unclosed = profit_loss.net_profit - closed
        report.equity.append(AccountLine(
            account_code="",
            account_name=settings.ledger.RETAINED_EARNINGS_LINE_NAME,
            amount=unclosed,
        ))
        report.total_equity += unclosed

        if profit_loss.net_surplus:
            report.equity.append(AccountLine(
                account_code="",
                account_name=settings.ledger.NET_SURPLUS_LINE_NAME,
                amount=-profit_loss.total_net_surplus,
                account_id=profit_loss.net_surplus[-1].account_id,
            ))
            report.total_equity -= profit_loss.total_net_surplus

        report.total_liabilities_and_equity = report.total_liability + report.total_equity

        if not report.is_balanced:
            error = ConsistencyError(
                f"Balance sheet for company {company_id} at {end_date} is off by "
                f"{report.difference}",
                details={
                    "total_assets": str(report.total_assets),
                    "total_liabilities_and_equity": str(report.total_liabilities_and_equity),
                },
            )
            logger.warning(error.message)
            report.warnings.append(error.to_dict())

        return report
