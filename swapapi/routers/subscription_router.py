"""
Subscription API (drivers)

- GET /subscriptions: own subscriptions, newest first
- GET /subscriptions/{id}: detail with package and payments
- POST /subscriptions/{id}/cancel: cancel an active subscription (no refund)
- POST /packages/{id}/subscribe: buy a package with wallet funds
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from swapapi.core.auth_middleware import require_driver
from swapapi.deps import get_subscription_service
from swapapi.schemas.common import Actor, BaseResponse
from swapapi.schemas.subscription import SubscribeRequest
from swapapi.services.subscription_service import SubscriptionService

router = APIRouter(tags=["subscriptions"])


@router.get("/subscriptions", response_model=BaseResponse)
def list_subscriptions(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_driver),
    service: SubscriptionService = Depends(get_subscription_service),
) -> Any:
    result = service.list(actor, status=status_filter, page=page, limit=limit)
    return BaseResponse(success=True, data=result)


@router.get("/subscriptions/{subscription_id}", response_model=BaseResponse)
def get_subscription(
    subscription_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_driver),
    service: SubscriptionService = Depends(get_subscription_service),
) -> Any:
    return BaseResponse(success=True, data=service.get(actor, subscription_id))


@router.post("/subscriptions/{subscription_id}/cancel", response_model=BaseResponse)
def cancel_subscription(
    subscription_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_driver),
    service: SubscriptionService = Depends(get_subscription_service),
) -> Any:
    subscription = service.cancel(actor, subscription_id)
    return BaseResponse(success=True, message="Subscription cancelled", data=subscription)


@router.post(
    "/packages/{package_id}/subscribe",
    response_model=BaseResponse,
    status_code=status.HTTP_201_CREATED,
)
def subscribe_to_package(
    package_id: int = Path(..., ge=1),
    payload: Optional[SubscribeRequest] = Body(None),
    actor: Actor = Depends(require_driver),
    service: SubscriptionService = Depends(get_subscription_service),
) -> Any:
    """
    Purchase a package. The wallet debit, the subscription and the payment
    record are created together or not at all.

    HTTP Status:
        201: subscribed
        400: insufficient wallet balance (BALANCE_001)
        404: package missing or inactive
        409: an active subscription to the package already exists
    """
    auto_renew = payload.auto_renew if payload else False
    purchase = service.subscribe(actor, package_id, auto_renew=auto_renew)
    return BaseResponse(success=True, message="Subscription purchased", data=purchase)
