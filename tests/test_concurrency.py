"""
Concurrent units of work against one SQLite file.

Each worker opens its own session, as request handlers do. The engine starts
every transaction with BEGIN IMMEDIATE, so the checks inside a unit of work
see all writes committed by the units that ran before it.
"""

import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from swapapi.core.exceptions import ConflictError, InsufficientFundsError
from swapapi.models.payment import Payment as PaymentModel
from swapapi.models.staff_schedule import StaffSchedule as ScheduleModel
from swapapi.models.subscription import UserSubscription as SubscriptionModel
from swapapi.services.staff_schedule_service import StaffScheduleService
from swapapi.services.subscription_service import SubscriptionService
from swapapi.services.wallet_service import WalletService

UTC = timezone.utc


def run_concurrently(session_factory, jobs):
    """Run each job(db) in its own thread and session; return results or exceptions"""
    barrier = threading.Barrier(len(jobs))
    outcomes = [None] * len(jobs)

    def worker(index, job):
        db = session_factory()
        try:
            barrier.wait()
            outcomes[index] = job(db)
        except Exception as e:
            outcomes[index] = e
        finally:
            db.close()

    threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_overlapping_shift_creates_one_wins(session_factory, seed, db):
    db.close()

    def create(start_hour, end_hour):
        def job(session):
            return StaffScheduleService(session).create(
                seed.admin,
                seed.staff.id,
                datetime(2030, 1, 15, start_hour, tzinfo=UTC),
                datetime(2030, 1, 15, end_hour, tzinfo=UTC),
            )

        return job

    outcomes = run_concurrently(session_factory, [create(8, 16), create(15, 23)])

    conflicts = [o for o in outcomes if isinstance(o, ConflictError)]
    created = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(conflicts) == 1
    assert len(created) == 1
    assert db.query(ScheduleModel).count() == 1


def test_concurrent_debits_never_overdraw(session_factory, seed, fund, db):
    fund(seed.driver.id, 100)
    db.close()

    def debit(n):
        def job(session):
            service = WalletService(session)
            with service.unit_of_work.begin():
                return service.debit(seed.driver.id, Decimal("30"), "race", f"race_{n}")

        return job

    outcomes = run_concurrently(session_factory, [debit(n) for n in range(5)])

    succeeded = [o for o in outcomes if not isinstance(o, Exception)]
    refused = [o for o in outcomes if isinstance(o, InsufficientFundsError)]
    assert len(succeeded) == 3
    assert len(refused) == 2

    wallets = WalletService(db)
    assert wallets.wallet_repo.get_balance(seed.driver.id) == Decimal("10")
    assert wallets.verify_integrity(seed.driver.id).status == "OK"


@pytest.mark.parametrize("same_package", [False, True])
def test_concurrent_purchases_debit_once(session_factory, seed, fund, db, same_package):
    fund(seed.driver.id, 600000)
    db.close()
    packages = [seed.basic.id, seed.basic.id if same_package else seed.twin.id]

    def subscribe(package_id):
        def job(session):
            return SubscriptionService(session).subscribe(seed.driver, package_id)

        return job

    outcomes = run_concurrently(session_factory, [subscribe(p) for p in packages])

    failures = [o for o in outcomes if isinstance(o, Exception)]
    assert len(failures) == 1
    # A serialized loser sees either the winner's subscription or the drained wallet
    assert isinstance(failures[0], (InsufficientFundsError, ConflictError))
    if not same_package:
        assert isinstance(failures[0], InsufficientFundsError)

    wallets = WalletService(db)
    assert wallets.wallet_repo.get_balance(seed.driver.id) == Decimal("10000")
    assert db.query(SubscriptionModel).count() == 1
    assert db.query(PaymentModel).count() == 1
