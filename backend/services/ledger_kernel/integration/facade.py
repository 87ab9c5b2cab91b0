"""
Ledger Facade
=============

Simplified, unified interface to the Ledger Kernel for the surrounding
ERP modules. Every method returns plain dicts ready for JSON.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from ..constants import ClosingBookStatus, ReportType
from ..exceptions import ValidationError
from ..models.closing_book import CashflowSetting, ClosingSettings
from ..models.posting import Reference
from ..reports import (
    CogsGenerator,
    ProfitLossGenerator,
    TrialBalanceGenerator,
    BalanceSheetGenerator,
    CapitalChangeGenerator,
    CashFlowGenerator,
    GeneralLedgerGenerator,
)
from ..services import AccountRegistry, LedgerService, ReferenceResolver
from ..services.closing_book_service import ClosingBookService
from ..store.base import LedgerStore


class LedgerFacade:
    """
    Unified facade for the Ledger Kernel.

    Provides simplified methods for:
    - Recording and editing postings
    - Generating reports
    - Managing closing books
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self._initialized = False

    async def _ensure_initialized(self):
        """Lazily initialize all services."""
        if not self._initialized:
            self.registry = AccountRegistry(self.store)
            self.resolver = ReferenceResolver(self.store)
            self.ledger = LedgerService(self.store, self.registry)
            self.closing = ClosingBookService(self.store, self.registry)

            self.cogs = CogsGenerator(self.store, self.registry)
            self.profit_loss = ProfitLossGenerator(self.store, self.registry)
            self.trial_balance = TrialBalanceGenerator(self.store, self.registry)
            self.balance_sheet = BalanceSheetGenerator(self.store, self.registry)
            self.capital_change = CapitalChangeGenerator(self.store, self.registry)
            self.cash_flow = CashFlowGenerator(self.store, self.registry)
            self.general_ledger = GeneralLedgerGenerator(
                self.store, self.registry, self.resolver
            )

            self._initialized = True

    # ==================== Postings ====================

    async def record_transfer(
        self,
        company_id: str,
        posting_date: date,
        source_account_id: UUID,
        destination_account_id: UUID,
        amount: Decimal,
        **kwargs,
    ) -> Dict:
        """Record a two-sided posting: source credited, destination debited."""
        await self._ensure_initialized()
        pair = await self.ledger.record_transfer(
            company_id, posting_date, source_account_id, destination_account_id,
            amount, **kwargs
        )
        return {
            "code": pair.code,
            "amount": float(pair.amount),
            "postings": [p.to_dict() for p in pair.postings()],
        }

    async def get_postings(self, code: str) -> List[Dict]:
        """Get every posting of one transaction code."""
        await self._ensure_initialized()
        return [p.to_dict() for p in await self.ledger.find_by_code(code)]

    async def update_transaction(
        self,
        code: str,
        amount: Optional[Decimal] = None,
        posting_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Dict:
        """Edit both sides of a transaction pair."""
        await self._ensure_initialized()
        pair = await self.ledger.update_pair(
            code, amount=amount, posting_date=posting_date, description=description
        )
        return {
            "code": pair.code,
            "amount": float(pair.amount),
            "postings": [p.to_dict() for p in pair.postings()],
        }

    async def delete_transaction(self, code: str) -> Dict:
        """Delete every side of a transaction."""
        await self._ensure_initialized()
        deleted = await self.ledger.delete_pair(code)
        return {"code": code, "deleted": deleted}

    async def delete_document_postings(self, ref: Reference) -> Dict:
        """Reverse a business document by deleting the postings it created."""
        await self._ensure_initialized()
        deleted = await self.ledger.delete_by_secondary_ref(ref)
        return {"ref": ref.to_dict(), "deleted": deleted}

    async def get_cash_bank_total(self, company_id: str) -> float:
        await self._ensure_initialized()
        return float(await self.ledger.cash_bank_total(company_id))

    # ==================== Reports ====================

    async def generate_report(
        self,
        report_type: ReportType,
        company_id: str,
        start_date: Optional[date],
        end_date: date,
        cashflow: Optional[CashflowSetting] = None,
        account_id: Optional[UUID] = None,
    ) -> Dict:
        """
        Generate any report for a period.

        Args:
            report_type: ReportType to generate
            company_id: Company (tenant) id
            start_date: Period start (may be None for COGS / P&L / balance sheet)
            end_date: Period end (inclusive)
            cashflow: Sub-group setting, required for CASH_FLOW
            account_id: Account, required for GENERAL_LEDGER

        Returns:
            Report as dict
        """
        await self._ensure_initialized()
        report_type = ReportType(report_type)

        if report_type == ReportType.COGS:
            report = await self.cogs.generate(company_id, start_date, end_date)
        elif report_type == ReportType.PROFIT_LOSS:
            report = await self.profit_loss.generate(company_id, start_date, end_date)
        elif report_type == ReportType.BALANCE_SHEET:
            report = await self.balance_sheet.generate(company_id, end_date, start_date)
        elif report_type == ReportType.GENERAL_LEDGER:
            if account_id is None:
                raise ValidationError("account_id is required for the account report")
            report = await self.general_ledger.generate(
                account_id, start_date, end_date, company_id
            )
        else:
            if start_date is None:
                raise ValidationError(f"start_date is required for {report_type.value}")
            if report_type == ReportType.TRIAL_BALANCE:
                report = await self.trial_balance.generate(company_id, start_date, end_date)
            elif report_type == ReportType.CAPITAL_CHANGE:
                report = await self.capital_change.generate(company_id, start_date, end_date)
            else:
                if cashflow is None:
                    raise ValidationError("Cash flow group setting is required")
                report = await self.cash_flow.generate(
                    company_id, start_date, end_date, cashflow
                )

        return report.to_dict()

    # ==================== Closing Book ====================

    async def create_closing_book(
        self,
        company_id: str,
        start_date: date,
        end_date: date,
        description: Optional[str] = None,
        user_id: Optional[str] = None,
        cashflow: Optional[CashflowSetting] = None,
    ) -> Dict:
        await self._ensure_initialized()
        closing_book = await self.closing.create_closing_book(
            company_id, start_date, end_date, description, user_id, cashflow
        )
        return closing_book.to_dict()

    async def generate_closing_book(
        self,
        closing_book_id: UUID,
        closing_settings: ClosingSettings,
    ) -> Dict:
        """
        Generate (or regenerate) a closing book.

        Returns:
            Released closing book with summary and snapshots
        """
        await self._ensure_initialized()
        closing_book = await self.closing.generate(closing_book_id, closing_settings)
        return closing_book.to_dict()

    async def get_closing_book(self, closing_book_id: UUID) -> Dict:
        await self._ensure_initialized()
        return (await self.closing.get_closing_book(closing_book_id)).to_dict()

    async def list_closing_books(
        self,
        company_id: str,
        status: Optional[ClosingBookStatus] = None,
    ) -> List[Dict]:
        await self._ensure_initialized()
        books = await self.closing.list_closing_books(company_id, status)
        return [
            {
                "id": str(b.id),
                "start_date": b.start_date.isoformat(),
                "end_date": b.end_date.isoformat(),
                "status": b.status.value,
                "description": b.description,
                "summary": b.summary.to_dict() if b.summary else None,
            }
            for b in books
        ]

    async def delete_closing_book(self, closing_book_id: UUID) -> Dict:
        await self._ensure_initialized()
        deleted = await self.closing.delete_closing_book(closing_book_id)
        return {"id": str(closing_book_id), "deleted_postings": deleted}

    async def refresh_closing_book_snapshots(self, closing_book_id: UUID) -> Dict:
        await self._ensure_initialized()
        return (await self.closing.refresh_snapshots(closing_book_id)).to_dict()
