"""
Double-Entry Bookkeeping Validator
==================================

Validates that a batch of postings follows double-entry rules before it
reaches the ledger store.
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from ..models.posting import Posting
from ..config import settings


class DoubleEntryValidator:
    """
    Validator for double-entry bookkeeping rules.

    Rules enforced per transaction code:
    1. Every code groups at least 2 postings
    2. Amounts must be non-negative
    3. Each posting has either debit or credit (exactly one non-zero)
    4. Sum of debits must equal sum of credits
    """

    def __init__(self, tolerance: float = None):
        """
        Initialize validator.

        Args:
            tolerance: Acceptable difference between debit and credit totals
                      (default from settings)
        """
        self.tolerance = Decimal(str(tolerance or settings.ledger.BALANCE_TOLERANCE))

    def group_by_code(self, postings: Sequence[Posting]) -> Dict[str, List[Posting]]:
        groups: Dict[str, List[Posting]] = OrderedDict()
        for posting in postings:
            groups.setdefault(posting.code, []).append(posting)
        return groups

    def validate_postings(
        self,
        postings: Sequence[Posting]
    ) -> Tuple[bool, List[str]]:
        """
        Validate a batch of postings.

        Args:
            postings: Postings to insert, possibly spanning several codes

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not postings:
            errors.append("At least one posting is required")
            return False, errors

        for code, group in self.group_by_code(postings).items():
            label = code or "<no code>"
            if not code:
                errors.append("Posting code is required")

            # Rule 1: At least 2 postings
            if len(group) < 2:
                errors.append(
                    f"Transaction {label} must have at least 2 postings "
                    f"for double-entry bookkeeping"
                )

            # Rules 2-3
            for idx, posting in enumerate(group, 1):
                if posting.debit < 0:
                    errors.append(f"Transaction {label} line {idx}: Debit cannot be negative")
                if posting.credit < 0:
                    errors.append(f"Transaction {label} line {idx}: Credit cannot be negative")
                if posting.debit > 0 and posting.credit > 0:
                    errors.append(
                        f"Transaction {label} line {idx}: "
                        f"A posting cannot have both debit and credit"
                    )
                if posting.debit == 0 and posting.credit == 0:
                    errors.append(
                        f"Transaction {label} line {idx}: "
                        f"A posting must have either debit or credit"
                    )

            # Rule 4: Debits must equal credits
            total_debit, total_credit, difference = self.calculate_totals(group)
            if difference >= self.tolerance:
                errors.append(
                    f"Transaction {label} is not balanced: "
                    f"Total Debit={total_debit:,.2f}, Total Credit={total_credit:,.2f}, "
                    f"Difference={difference:,.2f}"
                )

        return len(errors) == 0, errors

    def calculate_totals(
        self,
        postings: Sequence[Posting]
    ) -> Tuple[Decimal, Decimal, Decimal]:
        """
        Calculate totals from postings.

        Returns:
            Tuple of (total_debit, total_credit, difference)
        """
        total_debit = sum((p.debit for p in postings), Decimal("0"))
        total_credit = sum((p.credit for p in postings), Decimal("0"))
        difference = abs(total_debit - total_credit)

        return total_debit, total_credit, difference

    def is_balanced(self, postings: Sequence[Posting]) -> bool:
        """Quick check if postings are balanced within tolerance"""
        total_debit, total_credit, difference = self.calculate_totals(postings)
        return difference < self.tolerance

    def unbalanced_codes(self, postings: Sequence[Posting]) -> List[str]:
        """Codes whose postings do not balance; used for ledger audits"""
        return [
            code for code, group in self.group_by_code(postings).items()
            if not self.is_balanced(group)
        ]
