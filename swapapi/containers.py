from dependency_injector import containers, providers

from swapapi.config import Settings
from swapapi.database.connection import SessionLocal
from swapapi.services.booking_service import BookingService
from swapapi.services.staff_schedule_service import StaffScheduleService
from swapapi.services.subscription_service import SubscriptionService
from swapapi.services.wallet_service import WalletService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class RepositoryModule(containers.DeclarativeContainer):
    """Database access. Request sessions come from swapapi.database.session.get_db."""

    session_factory = providers.Object(SessionLocal)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    Services are built per request; the request-scoped ``db`` session is
    passed in by ``swapapi.deps`` when the factory is called.
    """

    config = providers.DependenciesContainer()
    repositories = providers.DependenciesContainer()

    staff_schedule_service = providers.Factory(StaffScheduleService, settings=config.config)
    wallet_service = providers.Factory(WalletService, settings=config.config)
    subscription_service = providers.Factory(SubscriptionService, settings=config.config)
    booking_service = providers.Factory(BookingService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=["swapapi.deps", "swapapi.routers.health_router"],
    )

    config = providers.Container(ConfigModule)
    repositories = providers.Container(RepositoryModule)
    services = providers.Container(
        ServiceModule, config=config, repositories=repositories
    )
