from decimal import Decimal

import pytest

from swapapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from swapapi.models.wallet import Wallet as WalletModel, WalletLedgerEntry
from swapapi.services.wallet_service import WalletService


@pytest.fixture
def service(db):
    return WalletService(db)


class TestDebitAndCredit:
    def test_debit_within_balance(self, service, seed, fund, db):
        # Arrange
        fund(seed.driver.id, 100000)

        # Act
        with service.unit_of_work.begin():
            result = service.debit(seed.driver.id, Decimal("40000"), "test", "ref_debit_1")

        # Assert
        assert result.delta_amount == Decimal("-40000")
        assert result.balance_after == Decimal("60000")
        assert service.wallet_repo.get_balance(seed.driver.id) == Decimal("60000")

    def test_debit_above_balance_changes_nothing(self, service, seed, fund, db):
        fund(seed.driver.id, 100000)

        with pytest.raises(InsufficientFundsError):
            with service.unit_of_work.begin():
                service.debit(seed.driver.id, Decimal("100000.01"), "test", "ref_debit_2")

        assert service.wallet_repo.get_balance(seed.driver.id) == Decimal("100000")
        assert db.query(WalletLedgerEntry).filter_by(ref_id="ref_debit_2").count() == 0

    def test_debit_of_exact_balance_reaches_zero(self, service, seed, fund):
        fund(seed.driver.id, 50000)
        with service.unit_of_work.begin():
            result = service.debit(seed.driver.id, 50000, "test", "ref_debit_3")
        assert result.balance_after == Decimal("0")

    def test_negative_amounts_are_rejected(self, service, seed):
        with pytest.raises(ValidationError):
            service.debit(seed.driver.id, Decimal("-1"), "test", "ref_neg_1")
        with pytest.raises(ValidationError):
            service.credit(seed.driver.id, "-5", "test", "ref_neg_2")
        with pytest.raises(ValidationError):
            service.credit(seed.driver.id, "abc", "test", "ref_neg_3")

    def test_reference_cannot_be_reused(self, service, seed, fund):
        fund(seed.driver.id, 100000)
        with service.unit_of_work.begin():
            service.debit(seed.driver.id, 1000, "test", "ref_once")

        with pytest.raises(ConflictError):
            with service.unit_of_work.begin():
                service.debit(seed.driver.id, 1000, "test", "ref_once")

    def test_wallet_is_created_on_first_access(self, service, seed, db):
        balance = service.get_balance(seed.other_driver.id)

        assert balance.balance == Decimal("0")
        assert balance.currency == "VND"
        assert db.query(WalletModel).filter_by(user_id=seed.other_driver.id).count() == 1


class TestLedger:
    def test_ledger_is_newest_first_and_paginated(self, service, seed, fund):
        fund(seed.driver.id, 1000)
        fund(seed.driver.id, 2000)
        with service.unit_of_work.begin():
            service.debit(seed.driver.id, 500, "coffee", "ref_ledger_1")

        ledger = service.get_ledger(seed.driver.id, limit=2)

        assert ledger.balance == Decimal("2500")
        assert ledger.total_count == 3
        assert ledger.has_next is True
        assert [e.delta_amount for e in ledger.entries] == [Decimal("-500"), Decimal("2000")]
        assert ledger.entries[0].balance_after == Decimal("2500")

    def test_limit_is_capped(self, service, seed):
        ledger = service.get_ledger(seed.driver.id, limit=1000)
        assert ledger.entries == []
        assert ledger.has_next is False


class TestAdminCreditAndIntegrity:
    def test_admin_credit(self, service, seed):
        result = service.admin_credit(seed.admin, seed.driver.id, Decimal("250000"), "cash top-up")

        assert result.balance_after == Decimal("250000")
        assert result.ref_id.startswith(f"admin_credit_{seed.driver.id}_")

    def test_admin_credit_requires_admin(self, service, seed):
        with pytest.raises(AuthorizationError):
            service.admin_credit(seed.staff, seed.driver.id, Decimal("1"), "nope")

    def test_admin_credit_unknown_user(self, service, seed):
        with pytest.raises(NotFoundError):
            service.admin_credit(seed.admin, 9999, Decimal("1"), "ghost")

    def test_admin_credit_rejects_zero(self, service, seed):
        with pytest.raises(ValidationError):
            service.admin_credit(seed.admin, seed.driver.id, Decimal("0"), "zero")

    def test_ledger_sums_to_balance(self, service, seed, fund):
        fund(seed.driver.id, 600000)
        with service.unit_of_work.begin():
            service.debit(seed.driver.id, 123456, "test", "ref_integrity_1")
        service.admin_credit(seed.admin, seed.driver.id, 1000, "bonus")

        report = service.verify_integrity(seed.driver.id)

        assert report.status == "OK"
        assert report.balance == Decimal("477544")
        assert report.ledger_sum == report.balance
        assert report.entry_count == 3

    def test_mismatch_is_reported(self, service, seed, fund, db):
        fund(seed.driver.id, 1000)
        db.query(WalletModel).filter_by(user_id=seed.driver.id).update(
            {"balance": Decimal("5000")}
        )
        db.commit()

        assert service.verify_integrity(seed.driver.id).status == "MISMATCH"
