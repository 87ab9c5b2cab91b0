"""
Ledger Service Tests
====================

Tests for recording, editing and reading ledger postings.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from ledger_kernel.constants import AccountType, RefType
from ledger_kernel.exceptions import AccountNotFound, PostingNotFound, ValidationError
from ledger_kernel.models import Account, Posting, Reference
from ledger_kernel.services import build_pair, generate_code

from .conftest import TEST_COMPANY_ID, JAN_1, JAN_31, post, record_trading_month


class TestPostPair:
    """Test posting two-sided pairs"""

    @pytest.mark.asyncio
    async def test_pair_sides_reference_each_other(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10400", "4-10100", 1_000_000)

        debit, credit = pair.debit, pair.credit
        assert pair.is_balanced
        assert pair.code.startswith("TRX-")
        assert debit.code == credit.code
        assert debit.ref == Reference(RefType.TRANSACTION, credit.id)
        assert credit.ref == Reference(RefType.TRANSACTION, debit.id)

    @pytest.mark.asyncio
    async def test_derived_flags_from_account_type(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10400", "4-10100", 1_000_000)

        stored = await ledger.get_pair(pair.code)

        assert stored.debit.is_account_receivable
        assert not stored.debit.is_income
        assert stored.credit.is_income
        assert stored.debit.amount == Decimal("1000000")
        assert stored.credit.amount == Decimal("1000000")

    @pytest.mark.asyncio
    async def test_expense_and_equity_flags(self, ledger, setup_coa):
        expense = await post(ledger, setup_coa, "5-20100", "1-10100", 100)
        equity = await post(ledger, setup_coa, "1-10100", "3-10000", 100)

        assert (await ledger.find(expense.debit.id)).is_expense
        assert (await ledger.find(equity.credit.id)).is_equity

    @pytest.mark.asyncio
    async def test_business_flags_on_both_sides(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10600", "2-10100", 500, is_purchase=True)

        stored = await ledger.get_pair(pair.code)

        assert stored.debit.is_purchase
        assert stored.credit.is_purchase
        assert not stored.debit.is_return

    @pytest.mark.asyncio
    async def test_unknown_flag_rejected(self, ledger, setup_coa):
        with pytest.raises(ValidationError):
            await post(ledger, setup_coa, "1-10600", "2-10100", 500, is_gift=True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100])
    async def test_non_positive_amount_rejected(self, ledger, store, setup_coa, amount):
        with pytest.raises(ValidationError):
            await post(ledger, setup_coa, "1-10100", "3-10000", amount)

        assert await ledger.range(setup_coa["1-10100"].id) == []

    @pytest.mark.asyncio
    async def test_unknown_account_rejected(self, ledger, setup_coa):
        with pytest.raises(AccountNotFound):
            await ledger.post_pair(
                TEST_COMPANY_ID, JAN_1,
                debit_account_id=uuid4(),
                credit_account_id=setup_coa["3-10000"].id,
                amount=Decimal("100"),
            )

        assert await ledger.range(setup_coa["3-10000"].id) == []

    @pytest.mark.asyncio
    async def test_account_of_other_company_rejected(self, ledger, store, setup_coa):
        foreign = Account(
            id=uuid4(),
            company_id="other-company",
            code="1-10100",
            name="Kas",
            type=AccountType.ASSET,
        )
        await store.add_account(foreign)

        with pytest.raises(ValidationError):
            await ledger.post_pair(
                TEST_COMPANY_ID, JAN_1,
                debit_account_id=foreign.id,
                credit_account_id=setup_coa["3-10000"].id,
                amount=Decimal("100"),
            )

    @pytest.mark.asyncio
    async def test_explicit_code_and_secondary_ref(self, ledger, setup_coa):
        sale = Reference(RefType.SALES, uuid4())
        pair = await post(
            ledger, setup_coa, "1-10400", "4-10100", 100,
            code="SAL-0001", secondary_ref=sale, description="Penjualan #1",
        )

        postings = await ledger.find_by_code("SAL-0001")

        assert pair.code == "SAL-0001"
        assert len(postings) == 2
        assert all(p.secondary_ref == sale for p in postings)
        assert all(p.description == "Penjualan #1" for p in postings)


class TestTransferAndAmount:
    """Test transfer and signed-amount helpers"""

    @pytest.mark.asyncio
    async def test_transfer_credits_source(self, ledger, setup_coa):
        cash, bank = setup_coa["1-10100"], setup_coa["1-10200"]
        await post(ledger, setup_coa, "1-10100", "3-10000", 1000)

        pair = await ledger.record_transfer(
            TEST_COMPANY_ID, JAN_1, cash.id, bank.id, Decimal("400")
        )

        assert pair.credit.account_id == cash.id
        assert pair.debit.account_id == bank.id
        assert await ledger.account_balance(cash.id) == Decimal("600")
        assert await ledger.account_balance(bank.id) == Decimal("400")

    @pytest.mark.asyncio
    async def test_positive_amount_increases_debit_normal(self, ledger, setup_coa):
        cash, capital = setup_coa["1-10100"], setup_coa["3-10000"]

        pair = await ledger.record_amount(
            TEST_COMPANY_ID, JAN_1, cash.id, capital.id, Decimal("500")
        )

        assert pair.debit.account_id == cash.id
        assert await ledger.account_balance(cash.id) == Decimal("500")
        assert await ledger.account_balance(capital.id) == Decimal("500")

    @pytest.mark.asyncio
    async def test_negative_amount_decreases_debit_normal(self, ledger, setup_coa):
        cash, rent = setup_coa["1-10100"], setup_coa["5-20200"]

        pair = await ledger.record_amount(
            TEST_COMPANY_ID, JAN_1, cash.id, rent.id, Decimal("-300")
        )

        assert pair.credit.account_id == cash.id
        assert pair.amount == Decimal("300")
        assert await ledger.account_balance(cash.id) == Decimal("-300")
        assert await ledger.account_balance(rent.id) == Decimal("300")

    @pytest.mark.asyncio
    async def test_positive_amount_increases_credit_normal(self, ledger, setup_coa):
        payable, inventory = setup_coa["2-10100"], setup_coa["1-10600"]

        pair = await ledger.record_amount(
            TEST_COMPANY_ID, JAN_1, payable.id, inventory.id, Decimal("750")
        )

        assert pair.credit.account_id == payable.id
        assert await ledger.account_balance(payable.id) == Decimal("750")

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, ledger, setup_coa):
        with pytest.raises(ValidationError):
            await ledger.record_amount(
                TEST_COMPANY_ID, JAN_1,
                setup_coa["1-10100"].id, setup_coa["3-10000"].id, Decimal("0"),
            )


class TestEditAndDelete:
    """Test pairs are edited and deleted as a unit"""

    @pytest.mark.asyncio
    async def test_update_amount_changes_both_sides(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10400", "4-10100", 1000)

        updated = await ledger.update_pair(pair.code, amount=Decimal("1500"))
        stored = await ledger.get_pair(pair.code)

        assert updated.amount == Decimal("1500")
        assert stored.debit.debit == Decimal("1500")
        assert stored.credit.credit == Decimal("1500")
        assert stored.debit.amount == Decimal("1500")
        assert stored.is_balanced
        assert await ledger.account_balance(setup_coa["4-10100"].id) == Decimal("1500")

    @pytest.mark.asyncio
    async def test_update_date_and_text(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10400", "4-10100", 1000, JAN_1)

        await ledger.update_pair(
            pair.code, posting_date=JAN_31, description="Koreksi", notes="catatan"
        )
        stored = await ledger.get_pair(pair.code)

        for posting in stored.postings():
            assert posting.date == JAN_31
            assert posting.description == "Koreksi"
            assert posting.notes == "catatan"
            assert posting.amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_update_rejects_non_positive(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10400", "4-10100", 1000)

        with pytest.raises(ValidationError):
            await ledger.update_pair(pair.code, amount=Decimal("0"))

        assert (await ledger.get_pair(pair.code)).amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_update_unknown_code(self, ledger, setup_coa):
        with pytest.raises(PostingNotFound):
            await ledger.update_pair("TRX-MISSING", amount=Decimal("1"))

    @pytest.mark.asyncio
    async def test_multi_line_code_is_not_a_pair(self, ledger, setup_coa):
        code = generate_code()
        postings = [
            Posting(account_id=setup_coa["1-10100"].id, date=JAN_1,
                    company_id=TEST_COMPANY_ID, code=code, debit=Decimal("1000")),
            Posting(account_id=setup_coa["4-10100"].id, date=JAN_1,
                    company_id=TEST_COMPANY_ID, code=code, credit=Decimal("600")),
            Posting(account_id=setup_coa["2-10400"].id, date=JAN_1,
                    company_id=TEST_COMPANY_ID, code=code, credit=Decimal("400")),
        ]
        await ledger.post(postings)

        with pytest.raises(ValidationError):
            await ledger.update_pair(code, amount=Decimal("10"))
        with pytest.raises(ValidationError):
            await ledger.get_pair(code)

    @pytest.mark.asyncio
    async def test_delete_pair(self, ledger, setup_coa):
        pair = await post(ledger, setup_coa, "1-10400", "4-10100", 1000)

        assert await ledger.delete_pair(pair.code) == 2
        assert await ledger.find_by_code(pair.code) == []
        assert await ledger.account_balance(setup_coa["1-10400"].id) == 0

        with pytest.raises(PostingNotFound):
            await ledger.delete_pair(pair.code)

    @pytest.mark.asyncio
    async def test_delete_by_code_is_lenient(self, ledger, setup_coa):
        assert await ledger.delete_by_code("TRX-MISSING") == 0

    @pytest.mark.asyncio
    async def test_delete_by_secondary_ref(self, ledger, setup_coa):
        """Reversing a document removes every posting it generated"""
        purchase = Reference(RefType.PURCHASE, uuid4())
        await post(ledger, setup_coa, "1-10600", "2-10100", 800,
                   secondary_ref=purchase, is_purchase=True)
        await post(ledger, setup_coa, "1-10600", "1-10100", 50,
                   secondary_ref=purchase, is_purchase=True, is_purchase_cost=True)
        kept = await post(ledger, setup_coa, "1-10100", "3-10000", 1000)

        deleted = await ledger.delete_by_secondary_ref(purchase)

        assert deleted == 4
        assert await ledger.account_balance(setup_coa["1-10600"].id) == 0
        assert len(await ledger.find_by_code(kept.code)) == 2


class TestReads:
    """Test lookups and balances"""

    @pytest.mark.asyncio
    async def test_find_unknown_posting(self, ledger, setup_coa):
        with pytest.raises(PostingNotFound):
            await ledger.find(uuid4())

    @pytest.mark.asyncio
    async def test_range_ordered_by_date(self, ledger, setup_coa):
        cash = setup_coa["1-10100"]
        await post(ledger, setup_coa, "1-10100", "3-10000", 300, JAN_31)
        await post(ledger, setup_coa, "1-10100", "3-10000", 100, JAN_1)
        await post(ledger, setup_coa, "1-10100", "3-10000", 200, date(2026, 1, 15))

        postings = await ledger.range(cash.id, TEST_COMPANY_ID)
        january_first_half = await ledger.range(
            cash.id, TEST_COMPANY_ID, date_from=JAN_1, date_to=date(2026, 1, 15)
        )

        assert [p.debit for p in postings] == [Decimal("100"), Decimal("200"), Decimal("300")]
        assert len(january_first_half) == 2

    @pytest.mark.asyncio
    async def test_account_balance_bounds(self, ledger, setup_coa):
        revenue = setup_coa["4-10100"]
        await post(ledger, setup_coa, "1-10400", "4-10100", 100, date(2025, 12, 20))
        await post(ledger, setup_coa, "1-10400", "4-10100", 200, JAN_1)
        await post(ledger, setup_coa, "1-10400", "4-10100", 400, JAN_31)

        assert await ledger.account_balance(revenue.id) == Decimal("700")
        assert await ledger.account_balance(revenue.id, date_before=JAN_1) == Decimal("100")
        assert await ledger.account_balance(
            revenue.id, date_from=JAN_1, date_to=JAN_31
        ) == Decimal("600")

    @pytest.mark.asyncio
    async def test_cash_bank_total(self, ledger, setup_coa):
        await record_trading_month(ledger, setup_coa)

        total = await ledger.cash_bank_total(TEST_COMPANY_ID)
        before_sale = await ledger.cash_bank_total(TEST_COMPANY_ID, as_of=date(2026, 1, 3))

        # Kas 9,900,000 + Bank 3,500,000
        assert total == Decimal("13400000")
        assert before_sale == Decimal("9900000")

    def test_build_pair_does_not_store(self):
        pair = build_pair(TEST_COMPANY_ID, JAN_1, uuid4(), uuid4(), Decimal("5"))

        assert pair.is_balanced
        assert pair.debit.id != pair.credit.id
        assert pair.debit.secondary_ref is None
