"""
Pydantic schemas for payment updates, refunds and financial summaries.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from rentals.models.booking import BookingStatus, PaymentStatus


class PaymentUpdate(BaseModel):
    """At least one field must be supplied."""
    
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=255)
    payment_notes: Optional[str] = Field(None, max_length=2000)
    
    @model_validator(mode="after")
    def require_one_field(self):
        if not any(
            value is not None
            for value in (self.payment_status, self.payment_method, self.payment_reference, self.payment_notes)
        ):
            raise ValueError("At least one payment field must be provided")
        return self


class RefundRequest(BaseModel):
    refund_amount: Decimal = Field(..., gt=0, examples=[150.00])
    refund_reason: str = Field(..., min_length=3, max_length=2000)
    refund_method: str = Field("original_payment", max_length=50)


class PaymentHistoryResponse(BaseModel):
    id: str
    booking_id: str
    previous_status: PaymentStatus
    new_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    updated_by_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class RefundResponse(BaseModel):
    id: str
    booking_id: str
    refund_amount: float
    refund_reason: str
    refund_method: str
    processed_by_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class RefundResult(BaseModel):
    refund: RefundResponse
    booking_status: BookingStatus
    payment_status: PaymentStatus
    total_refunded: float


class FinancialSummary(BaseModel):
    booking_id: str
    base_price: float
    cleaning_fee: float
    service_fee: float
    security_deposit: float
    total_amount: float
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    total_refunded: float
    net_amount: float
    refunds: List[RefundResponse]
