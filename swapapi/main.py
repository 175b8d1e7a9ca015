import logging
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

load_dotenv("swapapi/.env")

from swapapi import containers  # noqa: E402
from swapapi.config import settings  # noqa: E402
from swapapi.core.exception_handlers import register_exception_handlers  # noqa: E402
from swapapi.logging_config import setup_logging  # noqa: E402
from swapapi.routers import (  # noqa: E402
    booking_router,
    health_router,
    staff_schedule_router,
    subscription_router,
    wallet_router,
)

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("swapapi")

app = FastAPI(title=settings.PROJECT_NAME)
app.container = containers.Container()  # type: ignore

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response: {response.status_code}")
    return response


app.include_router(health_router.router)

api_prefix = settings.API_V1_STR
app.include_router(staff_schedule_router.router, prefix=api_prefix)
app.include_router(staff_schedule_router.admin_router, prefix=api_prefix)
app.include_router(subscription_router.router, prefix=api_prefix)
app.include_router(booking_router.router, prefix=api_prefix)
app.include_router(booking_router.staff_router, prefix=api_prefix)
app.include_router(wallet_router.router, prefix=api_prefix)
app.include_router(wallet_router.admin_router, prefix=api_prefix)

handler = Mangum(app)
