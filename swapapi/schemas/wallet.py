from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class Wallet(BaseModel):
    id: int
    user_id: int
    balance: Decimal

    class Config:
        from_attributes = True


class WalletBalanceResponse(BaseModel):
    user_id: int
    balance: Decimal
    currency: str


class WalletLedgerEntry(BaseModel):
    id: int
    user_id: int
    delta_amount: Decimal
    balance_after: Decimal
    reason: str
    ref_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def transaction_type(self) -> str:
        return "CREDIT" if self.delta_amount >= 0 else "DEBIT"


class WalletLedgerResponse(BaseModel):
    balance: Decimal = Field(..., description="Current balance")
    entries: List[WalletLedgerEntry]
    total_count: int
    has_next: bool


class WalletTransactionResult(BaseModel):
    """Outcome of a single debit or credit"""

    user_id: int
    delta_amount: Decimal
    balance_after: Decimal
    ref_id: str


class AdminCreditRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount to add to the wallet")
    reason: str = Field(..., min_length=1, max_length=255)


class WalletIntegrityResponse(BaseModel):
    user_id: int
    balance: Decimal
    ledger_sum: Decimal
    entry_count: int
    status: str  # OK | MISMATCH
