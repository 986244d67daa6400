"""
Exchange calculator routes.
The calculator rate is configured separately from the rate used when
expenses are recorded; both are reported by /exchange/rates.
"""

from fastapi import APIRouter, Query, Request
from typing import Any, Dict

from tripplanner.core.config import settings
from tripplanner.core.currency import KRW, THB, ExchangeCalculator
from tripplanner.core.rate_limiting import limiter, READ_LIMIT

router = APIRouter(prefix="/exchange", tags=["exchange"])


@router.get("/rates", response_model=Dict[str, Any])
def get_rates():
    return {
        "base": THB,
        "quote": KRW,
        "expense": settings.expense_thb_to_krw_rate,
        "calculator": settings.calculator_thb_to_krw_rate,
    }


@router.get("/convert", response_model=Dict[str, Any])
@limiter.limit(READ_LIMIT)
def convert(
    request: Request,
    amount: str = Query(..., description="Amount to convert"),
    from_currency: str = Query(THB, alias="from", description="THB or KRW"),
):
    """THB -> KRW multiplies by the calculator rate; KRW -> THB divides (2 decimals)."""
    calculator = ExchangeCalculator(settings.calculator_thb_to_krw_rate)
    return calculator.convert(amount, from_currency)
