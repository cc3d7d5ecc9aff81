"""
Booking price calculation.

All amounts are Decimal values quantized to cents with ROUND_HALF_UP.
The security deposit is quoted alongside the total but is never part of it.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union
from rentals.config import settings

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Convert a number to a Decimal rounded to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    price_per_night: Decimal
    guests: int
    base_price: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    security_deposit: Decimal
    total_amount: Decimal
    
    def to_dict(self) -> Dict[str, Union[int, float]]:
        return {
            "nights": self.nights,
            "price_per_night": float(self.price_per_night),
            "guests": self.guests,
            "base_price": float(self.base_price),
            "cleaning_fee": float(self.cleaning_fee),
            "service_fee": float(self.service_fee),
            "security_deposit": float(self.security_deposit),
            "total_amount": float(self.total_amount),
        }


def count_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def calculate_price(
    price_per_night: Number,
    nights: int,
    guests: int,
    cleaning_fee: Number = 0,
    security_deposit: Number = 0,
    service_fee_rate: Number = None
) -> PriceQuote:
    """
    Quote a stay.
    
    The nightly rate is charged per guest:
        base_price   = price_per_night * nights * guests
        service_fee  = base_price * service_fee_rate
        total_amount = base_price + cleaning_fee + service_fee
    
    Args:
        price_per_night: Nightly rate per guest
        nights: Number of nights, at least 1
        guests: Number of guests, at least 1
        cleaning_fee: Flat cleaning fee
        security_deposit: Refundable deposit, reported only
        service_fee_rate: Fraction of base_price charged as platform fee
        
    Returns:
        PriceQuote with every component rounded to cents
        
    Raises:
        ValueError: If nights or guests are below 1
    """
    if nights < 1:
        raise ValueError("A stay must be at least one night")
    if guests < 1:
        raise ValueError("At least one guest is required")
    
    rate = Decimal(str(settings.service_fee_rate if service_fee_rate is None else service_fee_rate))
    nightly = to_money(price_per_night)
    cleaning = to_money(cleaning_fee or 0)
    deposit = to_money(security_deposit or 0)
    
    base_price = to_money(nightly * nights * guests)
    service_fee = to_money(base_price * rate)
    total_amount = to_money(base_price + cleaning + service_fee)
    
    return PriceQuote(
        nights=nights,
        price_per_night=nightly,
        guests=guests,
        base_price=base_price,
        cleaning_fee=cleaning,
        service_fee=service_fee,
        security_deposit=deposit,
        total_amount=total_amount,
    )
