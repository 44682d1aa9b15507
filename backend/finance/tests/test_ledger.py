"""
Tests for ledger posting and sequential transaction codes.
"""
from decimal import Decimal

import pytest

from core_backend.exceptions import ResourceNotFoundError, ValidationError
from finance.models import FinanceCategory, FinanceTransaction
from finance.services import LedgerService

Direction = FinanceTransaction.Direction
ReferenceType = FinanceTransaction.ReferenceType


@pytest.fixture
def income_category(db):
    return LedgerService.get_default_category("Order revenue", FinanceCategory.CategoryType.INCOME)


@pytest.fixture
def expense_category(db):
    return LedgerService.get_default_category("Other expense", FinanceCategory.CategoryType.EXPENSE)


@pytest.mark.django_db
class TestLedgerService:

    def test_default_category_is_created_once(self, income_category):
        again = LedgerService.get_default_category("Order revenue", FinanceCategory.CategoryType.INCOME)
        assert again.id == income_category.id
        assert income_category.is_system

    @pytest.mark.parametrize("direction,reference_type,payment_method,prefix", [
        (Direction.INCOME, ReferenceType.ORDER, FinanceTransaction.PaymentMethod.CASH, "TTHD"),
        (Direction.EXPENSE, ReferenceType.ORDER, FinanceTransaction.PaymentMethod.CASH, "PCHD"),
        (Direction.EXPENSE, ReferenceType.PURCHASE_ORDER, FinanceTransaction.PaymentMethod.CASH, "PCPN"),
        (Direction.EXPENSE, ReferenceType.PAYROLL, FinanceTransaction.PaymentMethod.BANK, "PCPL"),
        (Direction.INCOME, "", FinanceTransaction.PaymentMethod.CASH, "PTTM"),
        (Direction.EXPENSE, "", FinanceTransaction.PaymentMethod.BANK, "PCNH"),
    ])
    def test_code_prefix(self, income_category, expense_category, direction, reference_type, payment_method, prefix):
        category = income_category if direction == Direction.INCOME else expense_category

        entry = LedgerService.post_transaction(
            category=category,
            amount=Decimal("1000"),
            direction=direction,
            payment_method=payment_method,
            reference_type=reference_type,
            reference_id=1 if reference_type else "",
        )

        assert entry.code == f"{prefix}000001"

    def test_codes_are_sequential_per_prefix(self, income_category, expense_category):
        codes = [
            LedgerService.post_transaction(
                category=income_category, amount=Decimal("1000"), direction=Direction.INCOME,
                reference_type=ReferenceType.ORDER, reference_id=n,
            ).code
            for n in (1, 2)
        ]
        expense = LedgerService.post_transaction(
            category=expense_category, amount=Decimal("500"), direction=Direction.EXPENSE,
            reference_type=ReferenceType.ORDER, reference_id=1,
        )

        assert codes == ["TTHD000001", "TTHD000002"]
        assert expense.code == "PCHD000001"

    def test_amount_must_be_positive(self, income_category):
        with pytest.raises(ValidationError):
            LedgerService.post_transaction(
                category=income_category, amount=Decimal("0"), direction=Direction.INCOME
            )

    def test_direction_must_match_category(self, income_category):
        with pytest.raises(ValidationError):
            LedgerService.post_transaction(
                category=income_category, amount=Decimal("1000"), direction=Direction.EXPENSE
            )

    def test_cancel_keeps_the_entry(self, income_category):
        entry = LedgerService.post_transaction(
            category=income_category, amount=Decimal("1000"), direction=Direction.INCOME
        )

        LedgerService.cancel_transaction(entry.id)

        entry.refresh_from_db()
        assert entry.status == FinanceTransaction.Status.CANCELLED
        with pytest.raises(ValidationError):
            LedgerService.cancel_transaction(entry.id)

    def test_cancel_unknown_entry(self, db):
        with pytest.raises(ResourceNotFoundError):
            LedgerService.cancel_transaction(12345)

    def test_entries_for_reference(self, income_category, expense_category):
        LedgerService.post_transaction(
            category=income_category, amount=Decimal("1000"), direction=Direction.INCOME,
            reference_type=ReferenceType.ORDER, reference_id=7,
        )
        LedgerService.post_transaction(
            category=expense_category, amount=Decimal("300"), direction=Direction.EXPENSE,
            reference_type=ReferenceType.ORDER, reference_id=7,
        )

        assert LedgerService.entries_for(ReferenceType.ORDER, 7).count() == 2
        assert LedgerService.entries_for(ReferenceType.ORDER, 7, Direction.EXPENSE).get().amount == Decimal("300")
