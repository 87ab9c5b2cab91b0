"""
Ledger Service
==============

Write and read operations on ledger postings:
- Post balanced posting batches (validated before any write)
- Post / edit / delete two-sided posting pairs as one unit
- Point, code and range lookups
- Account balances
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from ..constants import AccountType, CashflowGroup, RefType
from ..exceptions import PostingNotFound, ValidationError
from ..models.account import Account, AccountFilter
from ..models.posting import Posting, PostingFilter, PostingPair, Reference
from ..store.base import LedgerStore
from ..validators.double_entry_validator import DoubleEntryValidator
from .account_registry import AccountRegistry
from .balance_calculator import is_debit_normal, signed_balance

logger = logging.getLogger(__name__)

BUSINESS_FLAGS = (
    "is_purchase",
    "is_purchase_cost",
    "is_return",
    "is_discount",
    "is_opening_balance",
    "is_tax",
)


def generate_code(prefix: str = "TRX") -> str:
    """Shared code for the postings of one ledger event"""
    return f"{prefix}-{uuid4().hex[:12].upper()}"


def classify(posting: Posting, account: Account) -> Posting:
    """Set the derived flags of a posting from its account type"""
    posting.is_income = account.type in (
        AccountType.REVENUE, AccountType.INCOME, AccountType.CONTRA_REVENUE
    )
    posting.is_expense = account.type in (
        AccountType.EXPENSE, AccountType.COST, AccountType.CONTRA_EXPENSE
    )
    posting.is_equity = account.type in (AccountType.EQUITY, AccountType.CONTRA_EQUITY)
    posting.is_account_payable = account.type == AccountType.PAYABLE
    posting.is_account_receivable = account.type == AccountType.RECEIVABLE
    return posting


def build_pair(
    company_id: str,
    posting_date: date,
    debit_account_id: UUID,
    credit_account_id: UUID,
    amount: Decimal,
    code: Optional[str] = None,
    description: Optional[str] = None,
    notes: Optional[str] = None,
    user_id: Optional[str] = None,
    secondary_ref: Optional[Reference] = None,
    **flags,
) -> PostingPair:
    """
    Build (without storing) a debit/credit pair that reference each other.
    """
    unknown = set(flags) - set(BUSINESS_FLAGS)
    if unknown:
        raise ValidationError(f"Unknown posting flags: {', '.join(sorted(unknown))}")

    code = code or generate_code()
    common = dict(
        company_id=company_id,
        date=posting_date,
        code=code,
        amount=amount,
        description=description,
        notes=notes,
        user_id=user_id,
        secondary_ref=secondary_ref,
        **flags,
    )
    debit = Posting(account_id=debit_account_id, debit=amount, **common)
    credit = Posting(account_id=credit_account_id, credit=amount, **common)
    debit.ref = Reference(RefType.TRANSACTION, credit.id)
    credit.ref = Reference(RefType.TRANSACTION, debit.id)
    return PostingPair(debit=debit, credit=credit)


class LedgerService:
    """
    Entry point for recording ledger events.

    Usage:
        ledger = LedgerService(store)
        pair = await ledger.post_pair(
            company_id, date(2026, 1, 5),
            debit_account_id=receivable.id,
            credit_account_id=revenue.id,
            amount=Decimal("1000000"),
        )
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

    # Writes

    async def post(self, postings: Sequence[Posting]) -> List[Posting]:
        """
        Insert a batch of postings.

        Every code group must balance; derived flags and `amount` are filled
        in from the accounts. Nothing is written if any check fails.

        Raises:
            ValidationError: batch breaks a double-entry rule
            AccountNotFound: a posting references an unknown account
        """
        is_valid, errors = self.validator.validate_postings(postings)
        if not is_valid:
            raise ValidationError("Postings are not a valid double entry", errors=errors)

        accounts: Dict[UUID, Account] = {}
        for posting in postings:
            if posting.account_id not in accounts:
                accounts[posting.account_id] = await self.registry.get_account_by_id(
                    posting.account_id
                )
            account = accounts[posting.account_id]
            if account.company_id != posting.company_id:
                raise ValidationError(
                    f"Account {account.code} does not belong to company {posting.company_id}"
                )
            classify(posting, account)
            posting.amount = posting.debit if posting.debit > 0 else posting.credit

        async with self.store.transaction() as tx:
            await tx.insert_postings(postings)

        logger.info(
            f"Posted {len(postings)} postings "
            f"({', '.join(self.validator.group_by_code(postings))})"
        )
        return list(postings)

    async def post_pair(
        self,
        company_id: str,
        posting_date: date,
        debit_account_id: UUID,
        credit_account_id: UUID,
        amount: Decimal,
        **kwargs,
    ) -> PostingPair:
        """
        Post one debit and one credit of the same amount.

        Args:
            company_id: Company (tenant) id
            posting_date: Posting date
            debit_account_id: Account debited
            credit_account_id: Account credited
            amount: Positive amount
            **kwargs: code, description, notes, user_id, secondary_ref and
                business flags (is_purchase, is_tax, ...)

        Returns:
            Stored PostingPair
        """
        if amount <= 0:
            raise ValidationError("Amount must be positive", errors=[f"amount={amount}"])
        pair = build_pair(
            company_id, posting_date, debit_account_id, credit_account_id, amount, **kwargs
        )
        await self.post(pair.postings())
        return pair

    async def record_transfer(
        self,
        company_id: str,
        posting_date: date,
        source_account_id: UUID,
        destination_account_id: UUID,
        amount: Decimal,
        **kwargs,
    ) -> PostingPair:
        """Move an amount between accounts: source credited, destination debited"""
        return await self.post_pair(
            company_id,
            posting_date,
            debit_account_id=destination_account_id,
            credit_account_id=source_account_id,
            amount=amount,
            **kwargs,
        )

    async def record_amount(
        self,
        company_id: str,
        posting_date: date,
        account_id: UUID,
        counter_account_id: UUID,
        amount: Decimal,
        **kwargs,
    ) -> PostingPair:
        """
        Record a signed movement on an account.

        A positive amount lands on the side that increases the account
        (debit for debit-normal types), a negative amount on the other
        side. The counter account takes the opposite side.
        """
        if amount == 0:
            raise ValidationError("Amount must not be zero")
        account = await self.registry.get_account_by_id(account_id)
        increases_on_debit = is_debit_normal(account.type)
        if (amount > 0) == increases_on_debit:
            debit_id, credit_id = account_id, counter_account_id
        else:
            debit_id, credit_id = counter_account_id, account_id
        return await self.post_pair(
            company_id, posting_date, debit_id, credit_id, abs(amount), **kwargs
        )

    async def update_pair(
        self,
        code: str,
        amount: Optional[Decimal] = None,
        posting_date: Optional[date] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PostingPair:
        """
        Edit both sides of a pair together.

        Raises:
            PostingNotFound: no postings with this code
            ValidationError: code is not a two-sided pair, or amount <= 0
        """
        if amount is not None and amount <= 0:
            raise ValidationError("Amount must be positive", errors=[f"amount={amount}"])

        async with self.store.transaction() as tx:
            pair = await self._load_pair(tx, code)
            if amount is not None:
                pair.debit.debit = amount
                pair.credit.credit = amount
            for posting in pair.postings():
                if amount is not None:
                    posting.amount = amount
                if posting_date is not None:
                    posting.date = posting_date
                if description is not None:
                    posting.description = description
                if notes is not None:
                    posting.notes = notes
                await tx.update_posting(posting)

        logger.info(f"Updated posting pair {code}")
        return pair

    async def delete_pair(self, code: str) -> int:
        """
        Delete every posting sharing a code.

        Raises:
            PostingNotFound: no postings with this code
        """
        async with self.store.transaction() as tx:
            deleted = await tx.delete_postings_by_code(code)
            if deleted == 0:
                raise PostingNotFound(
                    f"No postings with code {code}",
                    details={"code": code}
                )
        logger.info(f"Deleted {deleted} postings with code {code}")
        return deleted

    async def delete_by_code(self, code: str) -> int:
        """Delete every posting sharing a code; 0 when none exist"""
        async with self.store.transaction() as tx:
            return await tx.delete_postings_by_code(code)

    async def delete_by_secondary_ref(self, ref: Reference) -> int:
        """Delete every posting generated by a business document"""
        async with self.store.transaction() as tx:
            deleted = await tx.delete_postings_by_secondary_ref(ref)
        logger.info(f"Deleted {deleted} postings for {ref.kind.value} {ref.id}")
        return deleted

    # Reads

    async def find(self, posting_id: UUID) -> Posting:
        posting = await self.store.get_posting(posting_id)
        if posting is None:
            raise PostingNotFound(
                f"Posting {posting_id} not found",
                details={"posting_id": str(posting_id)}
            )
        return posting

    async def find_by_code(self, code: str) -> List[Posting]:
        return await self.store.get_postings_by_code(code)

    async def get_pair(self, code: str) -> PostingPair:
        return await self._load_pair(self.store, code)

    async def range(
        self,
        account_id: UUID,
        company_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Posting]:
        """Postings of one account ordered by date ascending"""
        return await self.store.query_postings(PostingFilter(
            company_id=company_id,
            account_ids=[account_id],
            date_from=date_from,
            date_to=date_to,
        ))

    async def account_balance(
        self,
        account_id: UUID,
        company_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        date_before: Optional[date] = None,
    ) -> Decimal:
        """Signed balance of an account over optional date bounds"""
        account = await self.registry.get_account_by_id(account_id)
        debit, credit = await self.store.sum_postings(PostingFilter(
            company_id=company_id,
            account_ids=[account_id],
            date_from=date_from,
            date_to=date_to,
            date_before=date_before,
        ))
        return signed_balance(account.type, debit, credit)

    async def cash_bank_total(self, company_id: str, as_of: Optional[date] = None) -> Decimal:
        """Sum of balances of cash/bank tagged accounts"""
        accounts = await self.store.find_accounts(AccountFilter(
            company_id=company_id,
            cashflow_sub_group=CashflowGroup.CASH_BANK.value,
        ))
        total = Decimal("0")
        for account in accounts:
            debit, credit = await self.store.sum_postings(PostingFilter(
                company_id=company_id,
                account_ids=[account.id],
                date_to=as_of,
            ))
            total += signed_balance(account.type, debit, credit)
        return total

    async def unbalanced_codes(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[str]:
        """Audit: codes whose postings do not balance"""
        postings = await self.store.query_postings(PostingFilter(
            company_id=company_id, date_from=date_from, date_to=date_to
        ))
        return self.validator.unbalanced_codes(postings)

    @staticmethod
    async def _load_pair(store: LedgerStore, code: str) -> PostingPair:
        postings = await store.get_postings_by_code(code)
        if not postings:
            raise PostingNotFound(f"No postings with code {code}", details={"code": code})
        try:
            return PostingPair.from_postings(postings)
        except ValueError as e:
            raise ValidationError(
                f"Postings with code {code} are not a two-sided pair", errors=[str(e)]
            ) from e
