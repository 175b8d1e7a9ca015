import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from swapapi.containers import Container
from swapapi.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
@inject
def health_check(
    session_factory: sessionmaker = Depends(
        Provide[Container.repositories.session_factory]
    ),
) -> HealthCheckResponse:
    """Health check endpoint. Reports the database as unreachable instead of failing."""
    try:
        with session_factory() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database ping failed: {str(e)}")
        return HealthCheckResponse(
            status="degraded", database="unreachable", error=type(e).__name__
        )
    return HealthCheckResponse()
