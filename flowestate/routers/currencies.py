"""
Currency catalog endpoint.
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict

from flowestate.services.currency import CurrencyService
from flowestate.utils.dependencies import get_currency_service

router = APIRouter(prefix="/currencies", tags=["Currencies"])


@router.get("", summary="List active currencies")
async def list_currencies(currency_service: CurrencyService = Depends(get_currency_service)) -> Dict[str, Any]:
    currencies, default = await currency_service.list_currencies()
    return {
        "currencies": [currency.to_dict() for currency in currencies],
        "default": default.to_dict() if default else None,
    }
