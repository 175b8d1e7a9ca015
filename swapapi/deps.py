"""Per-request service construction for the routers."""

from typing import Callable

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from swapapi.containers import Container
from swapapi.database.session import get_db
from swapapi.services.booking_service import BookingService
from swapapi.services.staff_schedule_service import StaffScheduleService
from swapapi.services.subscription_service import SubscriptionService
from swapapi.services.wallet_service import WalletService


@inject
def get_staff_schedule_service(
    db: Session = Depends(get_db),
    factory: Callable[..., StaffScheduleService] = Depends(
        Provide[Container.services.staff_schedule_service.provider]
    ),
) -> StaffScheduleService:
    return factory(db=db)


@inject
def get_wallet_service(
    db: Session = Depends(get_db),
    factory: Callable[..., WalletService] = Depends(
        Provide[Container.services.wallet_service.provider]
    ),
) -> WalletService:
    return factory(db=db)


@inject
def get_subscription_service(
    db: Session = Depends(get_db),
    factory: Callable[..., SubscriptionService] = Depends(
        Provide[Container.services.subscription_service.provider]
    ),
) -> SubscriptionService:
    return factory(db=db)


@inject
def get_booking_service(
    db: Session = Depends(get_db),
    factory: Callable[..., BookingService] = Depends(
        Provide[Container.services.booking_service.provider]
    ),
) -> BookingService:
    return factory(db=db)
