from .common import Actor, BaseResponse, Page, PaginationMeta
from .booking import Booking, BookingCompletion
from .staff_schedule import StaffSchedule
from .subscription import SubscriptionPurchase, UserSubscription
from .wallet import WalletBalanceResponse, WalletLedgerResponse
