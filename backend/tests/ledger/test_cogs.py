"""
COGS (Harga Pokok Penjualan) Tests
==================================

Tests for deriving cost of goods sold from tagged inventory postings.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from ledger_kernel.constants import AccountType
from ledger_kernel.exceptions import InventoryAccountNotFound, StockOpnameAccountNotFound
from ledger_kernel.models import Account
from ledger_kernel.reports import CogsGenerator

from .conftest import (
    TEST_COMPANY_ID,
    JAN_1,
    JAN_31,
    FEB_1,
    FEB_28,
    post,
    record_sale_example,
    record_trading_month,
)


@pytest.fixture
def cogs(store, registry):
    return CogsGenerator(store, registry)


def assert_identity(report):
    """COGS = beginning + net purchases - ending - stock opname"""
    assert report.cogs == (
        report.beginning_inventory
        + report.net_purchases
        - report.ending_inventory
        - report.stock_opname_adjustment
    )


class TestCogsComponents:
    """Test every COGS component"""

    @pytest.mark.asyncio
    async def test_trading_month(self, cogs, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)

        report = await cogs.generate(TEST_COMPANY_ID, JAN_1, JAN_31)

        assert report.beginning_inventory == 0
        assert report.purchases == Decimal("4000000")
        assert report.freight == Decimal("100000")
        assert report.total_purchases == Decimal("4100000")
        assert report.net_purchases == Decimal("4100000")
        assert report.goods_available == Decimal("4100000")
        assert report.ending_inventory == Decimal("1100000")
        assert report.cogs == Decimal("3000000")
        assert report.warnings == []
        assert report.inventory_account_code == "1-10600"
        assert_identity(report)

    @pytest.mark.asyncio
    async def test_returns_and_discounts_reduce_purchases(self, cogs, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)
        await post(ledger, setup_coa, "2-10100", "1-10600", 200_000, date(2026, 1, 20),
                   is_return=True)
        await post(ledger, setup_coa, "2-10100", "1-10600", 50_000, date(2026, 1, 20),
                   is_discount=True)

        report = await cogs.generate(TEST_COMPANY_ID, JAN_1, JAN_31)

        assert report.purchase_returns == Decimal("200000")
        assert report.purchase_discounts == Decimal("50000")
        assert report.total_purchase_discounts == Decimal("250000")
        assert report.net_purchases == Decimal("3850000")
        assert report.ending_inventory == Decimal("850000")
        assert report.cogs == Decimal("3000000")
        assert_identity(report)

    @pytest.mark.asyncio
    async def test_stock_opname_loss(self, cogs, ledger, setup_coa):
        """Shrinkage found at stock opname lowers inventory but not COGS"""
        await record_trading_month(ledger, setup_coa)
        await post(ledger, setup_coa, "5-90100", "1-10600", 50_000, JAN_31)

        report = await cogs.generate(TEST_COMPANY_ID, JAN_1, JAN_31)

        assert report.ending_inventory == Decimal("1050000")
        assert report.stock_opname_adjustment == Decimal("50000")
        assert report.cogs == Decimal("3000000")
        assert_identity(report)

    @pytest.mark.asyncio
    async def test_beginning_inventory_carries_over(self, cogs, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)
        await post(ledger, setup_coa, "5-10100", "1-10600", 500_000, date(2026, 2, 10))

        report = await cogs.generate(TEST_COMPANY_ID, FEB_1, FEB_28)

        assert report.beginning_inventory == Decimal("1100000")
        assert report.purchases == 0
        assert report.ending_inventory == Decimal("600000")
        assert report.cogs == Decimal("500000")
        assert_identity(report)

    @pytest.mark.asyncio
    async def test_all_history(self, cogs, ledger, setup_coa):
        """A missing start date covers everything through the end date"""
        await record_trading_month(ledger, setup_coa)
        await post(ledger, setup_coa, "5-10100", "1-10600", 500_000, date(2026, 2, 10))

        report = await cogs.generate(TEST_COMPANY_ID, None, FEB_28)

        assert report.start_date is None
        assert report.beginning_inventory == 0
        assert report.ending_inventory == Decimal("600000")
        assert report.cogs == Decimal("3500000")

    @pytest.mark.asyncio
    async def test_end_day_is_included(self, cogs, ledger, setup_coa):
        await post(ledger, setup_coa, "1-10600", "2-10100", 1000, JAN_31, is_purchase=True)

        report = await cogs.generate(TEST_COMPANY_ID, JAN_1, JAN_31)

        assert report.purchases == Decimal("1000")
        assert report.ending_inventory == Decimal("1000")
        assert report.cogs == 0

    @pytest.mark.asyncio
    async def test_negative_ending_inventory_is_reported(self, cogs, ledger, setup_coa):
        """Cost posted without stock yields a warning, not a correction"""
        await record_sale_example(ledger, setup_coa)

        report = await cogs.generate(TEST_COMPANY_ID, JAN_1, JAN_31)

        assert report.ending_inventory == Decimal("-600000")
        assert report.cogs == Decimal("600000")
        assert len(report.warnings) == 1
        assert report.warnings[0]["error"] == "CONSISTENCY_ERROR"

    @pytest.mark.asyncio
    async def test_to_dict(self, cogs, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)

        data = (await cogs.generate(TEST_COMPANY_ID, JAN_1, JAN_31)).to_dict()

        assert data["cogs"] == 3000000.0
        assert data["start_date"] == "2026-01-01"
        assert data["inventory_account"]["code"] == "1-10600"


class TestCogsConfiguration:
    """Test missing well-known accounts fail loudly"""

    @pytest.mark.asyncio
    async def test_missing_inventory_account(self, cogs, store):
        with pytest.raises(InventoryAccountNotFound):
            await cogs.generate("company-without-accounts", JAN_1, JAN_31)

    @pytest.mark.asyncio
    async def test_missing_stock_opname_account(self, cogs, store):
        await store.add_account(Account(
            id=uuid4(),
            company_id="company-partial",
            code="1-10600",
            name="Persediaan Barang",
            type=AccountType.ASSET,
            is_inventory_account=True,
        ))

        with pytest.raises(StockOpnameAccountNotFound) as exc_info:
            await cogs.generate("company-partial", JAN_1, JAN_31)

        assert exc_info.value.details == {"company_id": "company-partial"}
