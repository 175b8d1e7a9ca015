# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .booking_repository import BookingRepository
from .payment_repository import PaymentRepository
from .service_package_repository import ServicePackageRepository
from .staff_schedule_repository import StaffScheduleRepository
from .station_repository import BatteryRepository, StationRepository
from .subscription_repository import SubscriptionRepository
from .swap_transaction_repository import SwapTransactionRepository
from .user_repository import UserRepository
from .vehicle_repository import VehicleRepository
from .wallet_repository import WalletLedgerRepository, WalletRepository

__all__ = [
    "BaseRepository",
    "BatteryRepository",
    "BookingRepository",
    "PaymentRepository",
    "ServicePackageRepository",
    "StaffScheduleRepository",
    "StationRepository",
    "SubscriptionRepository",
    "SwapTransactionRepository",
    "UserRepository",
    "VehicleRepository",
    "WalletLedgerRepository",
    "WalletRepository",
]
