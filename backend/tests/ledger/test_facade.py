"""
Ledger Facade Tests
===================

Tests for the dict-returning interface used by the surrounding modules.
"""

import pytest
from decimal import Decimal
from uuid import UUID, uuid4

from ledger_kernel.constants import ClosingBookStatus, RefType, ReportType
from ledger_kernel.exceptions import PostingNotFound, ValidationError
from ledger_kernel.models import Reference

from .conftest import TEST_COMPANY_ID, JAN_1, JAN_31, record_sale_example, record_trading_month


class TestFacadePostings:
    """Test posting operations through the facade"""

    @pytest.mark.asyncio
    async def test_record_transfer(self, facade, setup_coa):
        result = await facade.record_transfer(
            TEST_COMPANY_ID, JAN_1,
            setup_coa["1-10100"].id, setup_coa["1-10200"].id, Decimal("250000"),
        )

        assert result["amount"] == 250000.0
        assert len(result["postings"]) == 2
        postings = await facade.get_postings(result["code"])
        assert {p["account_code"] for p in postings} == {"1-10100", "1-10200"}

    @pytest.mark.asyncio
    async def test_update_and_delete(self, facade, setup_coa):
        result = await facade.record_transfer(
            TEST_COMPANY_ID, JAN_1,
            setup_coa["1-10100"].id, setup_coa["1-10200"].id, Decimal("250000"),
        )

        updated = await facade.update_transaction(
            result["code"], amount=Decimal("300000"), description="Setor ke bank"
        )
        deleted = await facade.delete_transaction(result["code"])

        assert updated["amount"] == 300000.0
        assert all(p["description"] == "Setor ke bank" for p in updated["postings"])
        assert deleted == {"code": result["code"], "deleted": 2}
        with pytest.raises(PostingNotFound):
            await facade.delete_transaction(result["code"])

    @pytest.mark.asyncio
    async def test_delete_document_postings(self, facade, ledger, setup_coa):
        sale = Reference(RefType.SALES, uuid4())
        await ledger.post_pair(
            TEST_COMPANY_ID, JAN_1,
            debit_account_id=setup_coa["1-10100"].id,
            credit_account_id=setup_coa["4-10100"].id,
            amount=Decimal("100"),
            secondary_ref=sale,
        )

        result = await facade.delete_document_postings(sale)

        assert result["deleted"] == 2
        assert result["ref"] == {"type": "sales", "id": str(sale.id)}

    @pytest.mark.asyncio
    async def test_cash_bank_total(self, facade, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)

        assert await facade.get_cash_bank_total(TEST_COMPANY_ID) == 13400000.0


class TestFacadeReports:
    """Test report dispatch"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("report_type,key,expected", [
        (ReportType.COGS, "cogs", 3000000.0),
        (ReportType.PROFIT_LOSS, "net_profit", 500000.0),
        (ReportType.BALANCE_SHEET, "is_balanced", True),
        (ReportType.TRIAL_BALANCE, "end_date", "2026-01-31"),
        (ReportType.CAPITAL_CHANGE, "ending_balance", 10500000.0),
    ])
    async def test_generate_report(self, facade, ledger, setup_coa, report_type, key, expected):
        await record_trading_month(ledger, setup_coa)

        data = await facade.generate_report(report_type, TEST_COMPANY_ID, JAN_1, JAN_31)

        assert data[key] == expected

    @pytest.mark.asyncio
    async def test_report_type_by_value(self, facade, ledger, setup_coa):
        await record_sale_example(ledger, setup_coa)

        data = await facade.generate_report("PROFIT_LOSS", TEST_COMPANY_ID, None, JAN_31)

        assert data["start_date"] is None
        assert data["net_profit"] == 400000.0

    @pytest.mark.asyncio
    async def test_cash_flow(self, facade, ledger, setup_coa, cashflow_setting):
        await record_trading_month(ledger, setup_coa)

        data = await facade.generate_report(
            ReportType.CASH_FLOW, TEST_COMPANY_ID, JAN_1, JAN_31, cashflow=cashflow_setting
        )

        assert data["total_financing"] == 10000000.0
        assert data["ending_cash"] == 13400000.0

    @pytest.mark.asyncio
    async def test_general_ledger(self, facade, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)

        data = await facade.generate_report(
            ReportType.GENERAL_LEDGER, TEST_COMPANY_ID, JAN_1, JAN_31,
            account_id=setup_coa["1-10200"].id,
        )

        assert data["account"]["code"] == "1-10200"
        assert len(data["transactions"]) == 3
        assert data["total_balance"] == 3500000.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("report_type,start_date,kwargs", [
        (ReportType.CASH_FLOW, JAN_1, {}),
        (ReportType.GENERAL_LEDGER, JAN_1, {}),
        (ReportType.TRIAL_BALANCE, None, {}),
        (ReportType.CAPITAL_CHANGE, None, {}),
    ])
    async def test_missing_arguments(self, facade, setup_coa, report_type, start_date, kwargs):
        with pytest.raises(ValidationError):
            await facade.generate_report(
                report_type, TEST_COMPANY_ID, start_date, JAN_31, **kwargs
            )


class TestFacadeClosingBook:
    """Test closing book lifecycle through the facade"""

    @pytest.mark.asyncio
    async def test_lifecycle(self, facade, ledger, setup_coa, closing_settings):
        await record_sale_example(ledger, setup_coa)

        created = await facade.create_closing_book(
            TEST_COMPANY_ID, JAN_1, JAN_31, description="Januari 2026"
        )
        closing_book_id = UUID(created["id"])
        assert created["status"] == "DRAFT"

        generated = await facade.generate_closing_book(closing_book_id, closing_settings)
        assert generated["status"] == "RELEASED"
        assert Decimal(generated["summary"]["net_income"]) == Decimal("400000")
        assert len(generated["postings"]) == 6

        listed = await facade.list_closing_books(
            TEST_COMPANY_ID, ClosingBookStatus.RELEASED
        )
        assert [b["id"] for b in listed] == [str(closing_book_id)]

        refreshed = await facade.refresh_closing_book_snapshots(closing_book_id)
        assert refreshed["profit_loss"]["net_profit"] == 400000.0

        fetched = await facade.get_closing_book(closing_book_id)
        assert fetched["cashflow_setting"]["operating"] == ["sales", "operational"]

        deleted = await facade.delete_closing_book(closing_book_id)
        assert deleted == {"id": str(closing_book_id), "deleted_postings": 6}
        assert await facade.list_closing_books(TEST_COMPANY_ID) == []

    @pytest.mark.asyncio
    async def test_balance_sheet_round_trip(self, facade, ledger, setup_coa, closing_settings):
        """Deleting a closing book restores the pre-closing balances"""
        await record_trading_month(ledger, setup_coa)
        before = await facade.generate_report(
            ReportType.TRIAL_BALANCE, TEST_COMPANY_ID, JAN_1, JAN_31
        )
        created = await facade.create_closing_book(TEST_COMPANY_ID, JAN_1, JAN_31)

        await facade.generate_closing_book(UUID(created["id"]), closing_settings)
        await facade.delete_closing_book(UUID(created["id"]))
        after = await facade.generate_report(
            ReportType.TRIAL_BALANCE, TEST_COMPANY_ID, JAN_1, JAN_31
        )

        assert [r["balance"] for r in after["trial_balance"]] == [
            r["balance"] for r in before["trial_balance"]
        ]
