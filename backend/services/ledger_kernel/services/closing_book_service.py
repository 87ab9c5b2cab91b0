"""
Closing Book Service
====================

Period closing (tutup buku):

1. Delete the postings a previous run of this closing book generated
2. Compute Profit & Loss for the period
3. Close revenue accounts into the income summary (Ikhtisar Laba Rugi)
4. Close COGS into the income summary
5. Close expense accounts into the income summary
6. Recognise income tax and close the tax expense (positive profit only)
7. Close the income summary remainder into retained earnings (Laba Ditahan)
8. Mark the closing book RELEASED with a summary

Steps 1-8 run in one store transaction: either every posting lands or
none does. Step 9 (report snapshots) runs afterwards and may be re-run
with `refresh_snapshots`.
"""
import asyncio
import logging
import weakref
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from ..config import settings
from ..constants import ClosingBookStatus, RefType
from ..exceptions import (
    AccountNotFound,
    ClosingBookError,
    ClosingBookNotFound,
    CogsClosingAccountNotFound,
    ConfigurationError,
    LedgerError,
    ValidationError,
)
from ..models.account import Account, WellKnownAccounts
from ..models.closing_book import (
    CashflowSetting,
    ClosingBook,
    ClosingSettings,
    ClosingSummary,
)
from ..models.posting import Posting, PostingFilter, PostingPair, Reference
from ..reports.balance_sheet import BalanceSheetGenerator
from ..reports.capital_change import CapitalChangeGenerator
from ..reports.cash_flow import CashFlowGenerator
from ..reports.common import ZERO, quantize
from ..reports.profit_loss import ProfitLossGenerator, ProfitLossReport
from ..reports.trial_balance import TrialBalanceGenerator
from ..store.base import LedgerStore
from ..validators.double_entry_validator import DoubleEntryValidator
from .account_registry import AccountRegistry
from .ledger_service import build_pair, classify, generate_code

logger = logging.getLogger(__name__)


class _ClosingAccounts:
    """Accounts a closing run writes to, validated up front"""

    def __init__(
        self,
        well_known: WellKnownAccounts,
        income_summary: Account,
        retained_earnings: Account,
        tax_expense: Optional[Account] = None,
        tax_payable: Optional[Account] = None,
    ):
        self.well_known = well_known
        self.income_summary = income_summary
        self.retained_earnings = retained_earnings
        self.tax_expense = tax_expense
        self.tax_payable = tax_payable

    @property
    def cogs_closing(self) -> Account:
        return self.well_known.cogs_closing_account


class ClosingBookService:
    """
    Closing book CRUD and generation.

    Usage:
        service = ClosingBookService(store)
        book = await service.create_closing_book(company_id, date(2026, 1, 1), date(2026, 1, 31))
        book = await service.generate(book.id, ClosingSettings(
            income_summary_account_id=income_summary.id,
            retained_earnings_account_id=retained_earnings.id,
            cashflow=CashflowSetting(operating=["sales"]),
        ))
    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AccountRegistry = None,
        validator: DoubleEntryValidator = None,
    ):
        self.store = store
        self.registry = registry or AccountRegistry(store)
        self.validator = validator or DoubleEntryValidator()
        # A lock lives only while a task holds or waits on it
        self._locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    # CRUD

    async def create_closing_book(
        self,
        company_id: str,
        start_date: date,
        end_date: date,
        description: Optional[str] = None,
        user_id: Optional[str] = None,
        cashflow_setting: Optional[CashflowSetting] = None,
    ) -> ClosingBook:
        """Create a DRAFT closing book for a period"""
        if start_date is None or end_date is None:
            raise ValidationError("start_date and end_date are required")
        if start_date > end_date:
            raise ValidationError(
                "start_date must not be after end_date",
                errors=[f"{start_date.isoformat()} > {end_date.isoformat()}"]
            )
        closing_book = ClosingBook(
            company_id=company_id,
            start_date=start_date,
            end_date=end_date,
            description=description,
            user_id=user_id,
            cashflow_setting=cashflow_setting,
        )
        await self.store.save_closing_book(closing_book)
        logger.info(
            f"Created closing book {closing_book.id} for company {company_id} "
            f"({start_date} - {end_date})"
        )
        return closing_book

    async def get_closing_book(self, closing_book_id: UUID) -> ClosingBook:
        closing_book = await self.store.get_closing_book(closing_book_id)
        if closing_book is None:
            raise ClosingBookNotFound(
                f"Closing book {closing_book_id} not found",
                details={"closing_book_id": str(closing_book_id)}
            )
        return closing_book

    async def list_closing_books(
        self, company_id: str, status: Optional[ClosingBookStatus] = None
    ) -> List[ClosingBook]:
        return await self.store.list_closing_books(company_id, status)

    async def delete_closing_book(self, closing_book_id: UUID) -> int:
        """
        Delete a closing book and every posting it generated.

        Returns:
            Number of postings removed
        """
        async with self._lock_for(closing_book_id):
            async with self.store.transaction() as tx:
                closing_book = await tx.get_closing_book(closing_book_id, for_update=True)
                if closing_book is None:
                    raise ClosingBookNotFound(
                        f"Closing book {closing_book_id} not found",
                        details={"closing_book_id": str(closing_book_id)}
                    )
                deleted = await tx.delete_postings_by_secondary_ref(
                    Reference(RefType.CLOSING_BOOK, closing_book_id)
                )
                await tx.delete_closing_book(closing_book_id)
        logger.info(f"Deleted closing book {closing_book_id} and {deleted} postings")
        return deleted

    # Generation

    def _lock_for(self, closing_book_id: UUID) -> asyncio.Lock:
        return self._locks.setdefault(closing_book_id, asyncio.Lock())

    async def generate(
        self,
        closing_book_id: UUID,
        closing_settings: ClosingSettings,
    ) -> ClosingBook:
        """
        Generate (or regenerate) the closing postings of a closing book.

        Args:
            closing_book_id: Closing book to generate
            closing_settings: Accounts, tax and cash-flow setting

        Returns:
            RELEASED ClosingBook with summary and snapshots

        Raises:
            ClosingBookNotFound: unknown closing book
            ValidationError: no cash-flow setting available
            ConfigurationError: a required account is missing
            ClosingBookError: a generation step failed (nothing was written)
        """
        async with self._lock_for(closing_book_id):
            closing_book = await self.get_closing_book(closing_book_id)
            cashflow = closing_settings.cashflow or closing_book.cashflow_setting
            if cashflow is None:
                raise ValidationError(
                    "Cash flow group setting is required",
                    details={"closing_book_id": str(closing_book_id)}
                )
            accounts = await self._resolve_accounts(closing_book.company_id, closing_settings)

            logger.info(
                f"Generating closing book {closing_book_id} for company "
                f"{closing_book.company_id} ({closing_book.start_date} - {closing_book.end_date})"
            )

            step = "lock"
            try:
                async with self.store.transaction() as tx:
                    closing_book = await tx.get_closing_book(closing_book_id, for_update=True)
                    if closing_book is None:
                        raise ClosingBookNotFound(f"Closing book {closing_book_id} not found")
                    ref = Reference(RefType.CLOSING_BOOK, closing_book.id)

                    step = "reset"
                    deleted = await tx.delete_postings_by_secondary_ref(ref)
                    if deleted:
                        logger.info(f"Removed {deleted} postings of previous closing run")

                    step = "profit_loss"
                    profit_loss = await ProfitLossGenerator(tx, AccountRegistry(tx)).generate(
                        closing_book.company_id,
                        closing_book.start_date,
                        closing_book.end_date,
                        accounts.well_known,
                    )

                    builder = _PairBuilder(closing_book, closing_settings, accounts)

                    step = "close_revenue"
                    for line in profit_loss.revenue_lines:
                        builder.close_into_summary(
                            line.account_id, quantize(line.amount),
                            settings.ledger.NOTE_CLOSE_REVENUE,
                        )

                    step = "close_cogs"
                    for line in profit_loss.cogs_lines:
                        builder.close_into_summary(
                            accounts.cogs_closing.id, quantize(line.amount),
                            settings.ledger.NOTE_CLOSE_COGS,
                        )

                    step = "close_expense"
                    for line in profit_loss.loss:
                        builder.close_into_summary(
                            line.account_id, -quantize(line.amount),
                            settings.ledger.NOTE_CLOSE_EXPENSE,
                        )

                    step = "tax"
                    tax = ZERO
                    if closing_settings.has_tax and profit_loss.net_profit > 0:
                        tax = quantize(
                            profit_loss.net_profit * closing_settings.tax_percentage / 100
                        )
                        builder.pair(
                            accounts.tax_expense.id, accounts.tax_payable.id, tax,
                            settings.ledger.NOTE_RECOGNIZE_TAX, is_tax=True,
                        )
                        builder.close_into_summary(
                            accounts.tax_expense.id, -tax, settings.ledger.NOTE_CLOSE_TAX,
                        )

                    step = "close_summary"
                    builder.close_summary()

                    step = "persist"
                    postings = builder.postings()
                    account_map = await AccountRegistry(tx).accounts_by_id(closing_book.company_id)
                    for posting in postings:
                        classify(posting, account_map[posting.account_id])
                    if postings:
                        is_valid, errors = self.validator.validate_postings(postings)
                        if not is_valid:
                            raise ValidationError("Closing postings do not balance", errors=errors)
                        await tx.insert_postings(postings)

                    step = "release"
                    closing_book.status = ClosingBookStatus.RELEASED
                    closing_book.released_at = datetime.utcnow()
                    closing_book.cashflow_setting = cashflow
                    if closing_settings.user_id:
                        closing_book.user_id = closing_settings.user_id
                    if closing_settings.description:
                        closing_book.description = closing_settings.description
                    closing_book.summary = ClosingSummary(
                        total_income=profit_loss.gross_profit,
                        total_expense=profit_loss.total_expense,
                        income_tax=tax,
                        tax_percentage=closing_settings.tax_percentage,
                        net_income=profit_loss.net_profit - tax,
                        income_summary_account_id=accounts.income_summary.id,
                        retained_earnings_account_id=accounts.retained_earnings.id,
                        tax_expense_account_id=(
                            accounts.tax_expense.id if accounts.tax_expense else None
                        ),
                        tax_payable_account_id=(
                            accounts.tax_payable.id if accounts.tax_payable else None
                        ),
                    )
                    closing_book.profit_loss = profit_loss.to_dict()
                    await tx.save_closing_book(closing_book)
            except Exception as e:
                logger.error(f"Closing book {closing_book_id} failed at step {step}: {e}")
                raise ClosingBookError(closing_book_id, step, e) from e

            logger.info(
                f"Closing book {closing_book_id} released with {len(postings)} postings, "
                f"net income {closing_book.summary.net_income}"
            )

            try:
                closing_book = await self._store_snapshots(closing_book, cashflow, accounts.well_known)
            except LedgerError as e:
                logger.warning(f"Snapshots for closing book {closing_book_id} not stored: {e}")

            return closing_book

    async def refresh_snapshots(self, closing_book_id: UUID) -> ClosingBook:
        """
        Recompute and store the report snapshots of a closing book.

        Raises:
            ClosingBookNotFound: unknown closing book
            ValidationError: closing book has no cash-flow setting
        """
        async with self._lock_for(closing_book_id):
            closing_book = await self.get_closing_book(closing_book_id)
            if closing_book.cashflow_setting is None:
                raise ValidationError(
                    "Cash flow group setting is required",
                    details={"closing_book_id": str(closing_book_id)}
                )
            well_known = await self.registry.resolve_well_known(closing_book.company_id)
            return await self._store_snapshots(
                closing_book, closing_book.cashflow_setting, well_known
            )

    async def _store_snapshots(
        self,
        closing_book: ClosingBook,
        cashflow: CashflowSetting,
        well_known: WellKnownAccounts,
    ) -> ClosingBook:
        company_id = closing_book.company_id
        start, end = closing_book.start_date, closing_book.end_date

        profit_loss = await ProfitLossGenerator(self.store, self.registry).generate(
            company_id, start, end, well_known
        )
        balance_sheet = await BalanceSheetGenerator(self.store, self.registry).generate(
            company_id, end, start, well_known
        )
        trial_balance = await TrialBalanceGenerator(self.store, self.registry).generate(
            company_id, start, end
        )
        capital_change = await CapitalChangeGenerator(self.store, self.registry).generate(
            company_id, start, end, well_known
        )
        cash_flow = await CashFlowGenerator(self.store, self.registry).generate(
            company_id, start, end, cashflow
        )
        postings = await self.store.query_postings(PostingFilter(
            secondary_ref=Reference(RefType.CLOSING_BOOK, closing_book.id)
        ))

        closing_book.profit_loss = profit_loss.to_dict()
        closing_book.balance_sheet = balance_sheet.to_dict()
        closing_book.trial_balance = trial_balance.to_dict()
        closing_book.capital_change = capital_change.to_dict()
        closing_book.cash_flow = cash_flow.to_dict()
        closing_book.postings = [p.to_dict() for p in postings]
        await self.store.save_closing_book(closing_book)
        return closing_book

    async def _resolve_accounts(
        self, company_id: str, closing_settings: ClosingSettings
    ) -> _ClosingAccounts:
        """Validate every account the closing writes to, before any write"""
        well_known = await self.registry.resolve_well_known(company_id)
        if well_known.cogs_closing_account is None:
            raise CogsClosingAccountNotFound(
                f"COGS closing account not found for company {company_id}",
                details={"company_id": company_id}
            )

        async def required(account_id: Optional[UUID], label: str) -> Account:
            if account_id is None:
                raise ConfigurationError(
                    f"{label} account is required for closing",
                    details={"company_id": company_id, "account": label}
                )
            try:
                account = await self.registry.get_account_by_id(account_id)
            except AccountNotFound as e:
                raise ConfigurationError(
                    f"{label} account {account_id} not found",
                    details={"company_id": company_id, "account": label}
                ) from e
            if account.company_id != company_id:
                raise ConfigurationError(
                    f"{label} account {account.code} does not belong to company {company_id}",
                    details={"company_id": company_id, "account": label}
                )
            return account

        accounts = _ClosingAccounts(
            well_known=well_known,
            income_summary=await required(
                closing_settings.income_summary_account_id, "Income summary"
            ),
            retained_earnings=await required(
                closing_settings.retained_earnings_account_id, "Retained earnings"
            ),
        )
        if closing_settings.has_tax:
            accounts.tax_expense = await required(
                closing_settings.tax_expense_account_id, "Tax expense"
            )
            accounts.tax_payable = await required(
                closing_settings.tax_payable_account_id, "Tax payable"
            )
        return accounts


class _PairBuilder:
    """Collects the closing pairs of one run"""

    def __init__(
        self,
        closing_book: ClosingBook,
        closing_settings: ClosingSettings,
        accounts: _ClosingAccounts,
    ):
        self.closing_book = closing_book
        self.closing_settings = closing_settings
        self.accounts = accounts
        self.pairs: List[PostingPair] = []
        # credit - debit posted to the income summary so far
        self.summary_net = ZERO

    def pair(
        self,
        debit_account_id: UUID,
        credit_account_id: UUID,
        amount: Decimal,
        notes: str,
        **flags,
    ) -> Optional[PostingPair]:
        if amount == 0:
            return None
        pair = build_pair(
            self.closing_book.company_id,
            self.closing_book.end_date,
            debit_account_id,
            credit_account_id,
            amount,
            code=generate_code("CLS"),
            description=self.closing_settings.description or self.closing_book.description,
            notes=notes,
            user_id=self.closing_settings.user_id or self.closing_book.user_id,
            secondary_ref=Reference(RefType.CLOSING_BOOK, self.closing_book.id),
            **flags,
        )
        summary_id = self.accounts.income_summary.id
        if debit_account_id == summary_id:
            self.summary_net -= amount
        if credit_account_id == summary_id:
            self.summary_net += amount
        self.pairs.append(pair)
        return pair

    def close_into_summary(self, account_id: UUID, balance: Decimal, notes: str) -> None:
        """
        Zero an account against the income summary.

        `balance` is the account's credit - debit movement: positive
        balances are debited away, negative ones credited away.
        """
        summary_id = self.accounts.income_summary.id
        if balance > 0:
            self.pair(account_id, summary_id, balance, notes)
        elif balance < 0:
            self.pair(summary_id, account_id, -balance, notes)

    def close_summary(self) -> None:
        """Move whatever the income summary holds into retained earnings"""
        summary_id = self.accounts.income_summary.id
        retained_id = self.accounts.retained_earnings.id
        note = settings.ledger.NOTE_CLOSE_SUMMARY
        if self.summary_net > 0:
            self.pair(summary_id, retained_id, self.summary_net, note)
        elif self.summary_net < 0:
            self.pair(retained_id, summary_id, -self.summary_net, note)

    def postings(self) -> List[Posting]:
        return [p for pair in self.pairs for p in pair.postings()]
