from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from swapapi.core.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from swapapi.models.payment import Payment as PaymentModel
from swapapi.models.subscription import UserSubscription as SubscriptionModel
from swapapi.models.wallet import WalletLedgerEntry
from swapapi.schemas.wallet import Wallet
from swapapi.services.subscription_service import SubscriptionService
from swapapi.services.wallet_service import WalletService

UTC = timezone.utc


@pytest.fixture
def service(db):
    return SubscriptionService(db)


def balance_of(db, user_id):
    return WalletService(db).wallet_repo.get_balance(user_id)


class TestSubscribe:
    def test_insufficient_balance_leaves_everything_untouched(self, service, seed, fund, db):
        """500,000 in the wallet, package costs 590,000"""
        # Arrange
        fund(seed.driver.id, 500000)

        # Act
        with pytest.raises(InsufficientFundsError):
            service.subscribe(seed.driver, seed.basic.id)

        # Assert
        assert balance_of(db, seed.driver.id) == Decimal("500000")
        assert db.query(SubscriptionModel).count() == 0
        assert db.query(PaymentModel).count() == 0

    def test_successful_purchase(self, service, seed, fund, db):
        """600,000 in the wallet, package costs 590,000"""
        fund(seed.driver.id, 600000)

        purchase = service.subscribe(seed.driver, seed.basic.id, auto_renew=True)

        assert purchase.balance_after == Decimal("10000")
        assert balance_of(db, seed.driver.id) == Decimal("10000")

        subscription = purchase.subscription
        assert subscription.status == "active"
        assert subscription.remaining_swaps == 2
        assert subscription.auto_renew is True
        assert subscription.end_date - subscription.start_date == timedelta(days=30)

        payment = purchase.payment
        assert payment.amount == Decimal("590000")
        assert payment.payment_method == "wallet"
        assert payment.payment_status == "completed"
        assert payment.subscription_id == subscription.id
        assert payment.transaction_id is None

        assert db.query(SubscriptionModel).filter_by(status="active").count() == 1
        assert db.query(PaymentModel).count() == 1
        assert WalletService(db).verify_integrity(seed.driver.id).status == "OK"

    def test_unlimited_package_has_no_swap_count(self, service, seed, fund):
        fund(seed.driver.id, 1000000)
        purchase = service.subscribe(seed.driver, seed.unlimited.id)
        assert purchase.subscription.remaining_swaps is None

    def test_duplicate_active_subscription_conflicts(self, service, seed, fund, db):
        fund(seed.driver.id, 2000000)
        service.subscribe(seed.driver, seed.basic.id)

        with pytest.raises(ConflictError):
            service.subscribe(seed.driver, seed.basic.id)

        assert balance_of(db, seed.driver.id) == Decimal("1410000")

    def test_lapsed_subscription_does_not_block_repurchase(self, service, seed, fund, db):
        fund(seed.driver.id, 2000000)
        first = service.subscribe(seed.driver, seed.basic.id)

        later = datetime.now(UTC) + timedelta(days=31)
        with patch("swapapi.services.subscription_service.now_utc", return_value=later):
            second = service.subscribe(seed.driver, seed.basic.id)

        db.expire_all()
        assert db.get(SubscriptionModel, first.subscription.id).status == "expired"
        assert second.subscription.status == "active"

    def test_missing_or_inactive_package(self, service, seed, fund):
        fund(seed.driver.id, 1000000)
        with pytest.raises(NotFoundError):
            service.subscribe(seed.driver, seed.retired.id)
        with pytest.raises(NotFoundError):
            service.subscribe(seed.driver, 9999)

    def test_failure_after_debit_rolls_back_every_write(self, service, seed, fund, db):
        fund(seed.driver.id, 600000)
        ledger_before = db.query(WalletLedgerEntry).count()

        with patch.object(
            service.payment_repo,
            "create",
            side_effect=OperationalError("INSERT INTO payments", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(InternalError) as exc:
                service.subscribe(seed.driver, seed.basic.id)

        assert "disk" not in str(exc.value)
        assert balance_of(db, seed.driver.id) == Decimal("600000")
        assert db.query(SubscriptionModel).count() == 0
        assert db.query(PaymentModel).count() == 0
        assert db.query(WalletLedgerEntry).count() == ledger_before

    def test_racing_purchase_loses_at_the_debit(self, service, seed, fund, db):
        """Two purchases that both pass the pre-checks: only one debit can succeed"""
        fund(seed.driver.id, 600000)
        service.subscribe(seed.driver, seed.basic.id)

        # The second request read the wallet and subscriptions before the first committed
        stale_wallet = Wallet(id=1, user_id=seed.driver.id, balance=Decimal("600000"))
        with patch.object(
            service.subscription_repo, "find_active_for_package", return_value=None
        ), patch.object(service.wallet_service, "ensure_wallet", return_value=stale_wallet):
            with pytest.raises(InsufficientFundsError):
                service.subscribe(seed.driver, seed.basic.id)

        assert balance_of(db, seed.driver.id) == Decimal("10000")
        assert db.query(SubscriptionModel).count() == 1
        assert db.query(PaymentModel).count() == 1


class TestCancelListGet:
    def test_cancel_active_subscription(self, service, seed, fund, db):
        fund(seed.driver.id, 600000)
        purchase = service.subscribe(seed.driver, seed.basic.id)

        cancelled = service.cancel(seed.driver, purchase.subscription.id)

        assert cancelled.status == "cancelled"
        assert cancelled.auto_renew is False
        # No refund
        assert balance_of(db, seed.driver.id) == Decimal("10000")

    def test_cancel_after_end_date_marks_expired(self, service, seed, fund):
        fund(seed.driver.id, 600000)
        purchase = service.subscribe(seed.driver, seed.basic.id)

        later = datetime.now(UTC) + timedelta(days=40)
        with patch("swapapi.services.subscription_service.now_utc", return_value=later):
            result = service.cancel(seed.driver, purchase.subscription.id)

        assert result.status == "expired"

    def test_cancel_twice_conflicts(self, service, seed, fund):
        fund(seed.driver.id, 600000)
        purchase = service.subscribe(seed.driver, seed.basic.id)
        service.cancel(seed.driver, purchase.subscription.id)

        with pytest.raises(ConflictError):
            service.cancel(seed.driver, purchase.subscription.id)

    def test_cancel_someone_elses_subscription(self, service, seed, fund):
        fund(seed.driver.id, 600000)
        purchase = service.subscribe(seed.driver, seed.basic.id)

        with pytest.raises(NotFoundError):
            service.cancel(seed.other_driver, purchase.subscription.id)

    def test_list_and_detail(self, service, seed, fund):
        fund(seed.driver.id, 2000000)
        first = service.subscribe(seed.driver, seed.basic.id)
        second = service.subscribe(seed.driver, seed.unlimited.id)
        service.cancel(seed.driver, first.subscription.id)

        page = service.list(seed.driver)
        active = service.list(seed.driver, status="ACTIVE")
        detail = service.get(seed.driver, first.subscription.id)

        assert page.pagination.total == 2
        assert [s.id for s in page.items] == [second.subscription.id, first.subscription.id]
        assert [s.id for s in active.items] == [second.subscription.id]
        assert detail.package.name == "Basic Monthly"
        assert [p.amount for p in detail.payments] == [Decimal("590000")]

    def test_list_rejects_unknown_status(self, service, seed):
        with pytest.raises(ValidationError):
            service.list(seed.driver, status="paused")

    def test_detail_of_foreign_subscription(self, service, seed, fund):
        fund(seed.driver.id, 600000)
        purchase = service.subscribe(seed.driver, seed.basic.id)
        with pytest.raises(NotFoundError):
            service.get(seed.other_driver, purchase.subscription.id)
