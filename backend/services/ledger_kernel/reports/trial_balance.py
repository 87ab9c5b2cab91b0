"""
Trial Balance (Neraca Saldo) Worksheet Generator
================================================

Three columns per account:
- trial_balance: everything through the end date
- adjustment: movements within the period
- balance_sheet: everything before the end date
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from ..constants import AccountType, TRIAL_BALANCE_TYPES
from ..models.account import Account, AccountFilter
from ..services.account_registry import AccountRegistry
from ..services.balance_calculator import signed_balance
from ..store.base import LedgerStore
from .common import ZERO, account_totals, quantize

# Every balance-sheet account counts toward the totals, listed on the
# worksheet or not. Contra accounts net into their side.
ASSET_SIDE = (AccountType.ASSET, AccountType.CONTRA_ASSET, AccountType.RECEIVABLE)
CLAIM_SIDE = (
    AccountType.LIABILITY,
    AccountType.PAYABLE,
    AccountType.CONTRA_LIABILITY,
    AccountType.EQUITY,
    AccountType.CONTRA_EQUITY,
)


@dataclass
class TrialBalanceRow:
    """Single row in one worksheet column"""
    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    balance: Decimal = ZERO

    def to_dict(self) -> Dict:
        return {
            "account_id": str(self.account_id),
            "account_code": self.account_code,
            "account_name": self.account_name,
            "account_type": self.account_type.value,
            "debit": float(self.debit),
            "credit": float(self.credit),
            "balance": float(self.balance),
        }


@dataclass
class TrialBalanceReport:
    """Trial balance worksheet"""
    company_id: str
    start_date: date
    end_date: date
    trial_balance: List[TrialBalanceRow] = field(default_factory=list)
    adjustment: List[TrialBalanceRow] = field(default_factory=list)
    balance_sheet: List[TrialBalanceRow] = field(default_factory=list)

    # Totals of the trial_balance column
    total_assets: Decimal = ZERO
    total_liabilities_equity: Decimal = ZERO
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def difference(self) -> Decimal:
        return self.total_assets - self.total_liabilities_equity

    @property
    def is_balanced(self) -> bool:
        """Assets equal liabilities and equity at monetary precision"""
        return quantize(self.difference) == 0

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "company_id": self.company_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "trial_balance": [r.to_dict() for r in self.trial_balance],
            "adjustment": [r.to_dict() for r in self.adjustment],
            "balance_sheet": [r.to_dict() for r in self.balance_sheet],
            "total_assets": float(self.total_assets),
            "total_liabilities_equity": float(self.total_liabilities_equity),
            "is_balanced": self.is_balanced,
            "generated_at": self.generated_at.isoformat(),
        }


class TrialBalanceGenerator:
    """Generates the trial balance worksheet"""

    def __init__(self, store: LedgerStore, registry: AccountRegistry = None):
        self.store = store
        self.registry = registry or AccountRegistry(store)

    async def _row(self, company_id: str, account: Account, **bounds) -> TrialBalanceRow:
        debit, credit = await account_totals(self.store, company_id, account, **bounds)
        return TrialBalanceRow(
            account_id=account.id,
            account_code=account.code,
            account_name=account.name,
            account_type=account.type,
            debit=debit,
            credit=credit,
            balance=signed_balance(account.type, debit, credit),
        )

    async def generate(
        self,
        company_id: str,
        start_date: date,
        end_date: date,
    ) -> TrialBalanceReport:
        """
        Generate trial balance worksheet.

        Args:
            company_id: Company (tenant) id
            start_date: Start of the adjustment period
            end_date: End of the period (inclusive)

        Returns:
            TrialBalanceReport with the three columns
        """
        report = TrialBalanceReport(
            company_id=company_id, start_date=start_date, end_date=end_date
        )

        for account_type in TRIAL_BALANCE_TYPES:
            accounts = await self.store.find_accounts(AccountFilter(
                company_id=company_id, types=(account_type,), is_active=None
            ))
            for account in accounts:
                if account.is_cogs_closing_account:
                    continue

                report.trial_balance.append(
                    await self._row(company_id, account, date_to=end_date)
                )
                report.adjustment.append(await self._row(
                    company_id, account, date_from=start_date, date_to=end_date
                ))
                report.balance_sheet.append(await self._row(
                    company_id, account, date_before=end_date
                ))

        report.total_assets = await self._side_total(
            company_id, end_date, ASSET_SIDE, AccountType.ASSET
        )
        report.total_liabilities_equity = await self._side_total(
            company_id, end_date, CLAIM_SIDE, AccountType.LIABILITY
        )
        return report

    async def _side_total(
        self,
        company_id: str,
        end_date: date,
        types: tuple,
        rule: AccountType,
    ) -> Decimal:
        """Sum one side of the balance sheet through the end date under one sign rule"""
        accounts = await self.store.find_accounts(AccountFilter(
            company_id=company_id, types=types, is_active=None
        ))
        total = ZERO
        for account in accounts:
            debit, credit = await account_totals(
                self.store, company_id, account, date_to=end_date
            )
            total += signed_balance(rule, debit, credit)
        return total
