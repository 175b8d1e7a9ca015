"""
Wallet API

- GET /wallet/balance: own balance
- GET /wallet/ledger: own ledger, newest first
- POST /admin/wallets/{user_id}/credit: admin top-up
- GET /admin/wallets/{user_id}/integrity: ledger sum vs stored balance
"""

from typing import Any

from fastapi import APIRouter, Depends, Path, Query

from swapapi.core.auth_middleware import require_admin, require_driver
from swapapi.deps import get_wallet_service
from swapapi.schemas.common import Actor, BaseResponse
from swapapi.schemas.wallet import AdminCreditRequest
from swapapi.services.wallet_service import WalletService

router = APIRouter(prefix="/wallet", tags=["wallet"])
admin_router = APIRouter(prefix="/admin/wallets", tags=["admin-wallets"])


@router.get("/balance", response_model=BaseResponse)
def get_my_balance(
    actor: Actor = Depends(require_driver),
    service: WalletService = Depends(get_wallet_service),
) -> Any:
    return BaseResponse(success=True, data=service.get_balance(actor.id))


@router.get("/ledger", response_model=BaseResponse)
def get_my_ledger(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_driver),
    service: WalletService = Depends(get_wallet_service),
) -> Any:
    return BaseResponse(
        success=True, data=service.get_ledger(actor.id, limit=limit, offset=offset)
    )


@admin_router.post("/{user_id}/credit", response_model=BaseResponse)
def credit_wallet(
    payload: AdminCreditRequest,
    user_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
) -> Any:
    result = service.admin_credit(actor, user_id, payload.amount, payload.reason)
    return BaseResponse(success=True, message="Wallet credited", data=result)


@admin_router.get("/{user_id}/integrity", response_model=BaseResponse)
def check_wallet_integrity(
    user_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
) -> Any:
    return BaseResponse(success=True, data=service.verify_integrity(user_id))
