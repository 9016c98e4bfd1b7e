# =============================================================================
# core/brasil_api.py  -  BrasilAPI public-data lookups
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps https://brasilapi.com.br: postal codes (CEP), company registry
#   (CNPJ), phone area codes (DDD), national holidays, banks, PIX
#   participants, currency rates and IBGE municipalities.  No API key.
#
# INPUT COERCION:
#   Callers often pass codes as numbers ("CEP 01001000" arrives as an int).
#   Every code accepts str or int; formatting characters such as "-", "."
#   and "/" are stripped before the digit-count check.
#
# NOT FOUND:
#   A 404 on a lookup is a normal answer ("that CEP does not exist"), so it
#   comes back as {"error": "... not found"} instead of an exception.
# =============================================================================

import re
from typing import Any, Optional, Union

import httpx

from core.errors import ToolValidationError
from core.http import RestClient

BASE_URL = "https://brasilapi.com.br/api"

Code = Union[str, int]


def digits_only(value: Code, field: str, length: Optional[int] = None) -> str:
    """Strip everything but digits and check the expected length."""
    if isinstance(value, int) and length is not None:
        # An int has lost its leading zeros (CEP 01001000 arrives as 1001000).
        value = str(value).zfill(length)
    digits = re.sub(r"\D", "", str(value))
    if not digits:
        raise ToolValidationError("must contain digits", field=field)
    if length is not None and len(digits) != length:
        raise ToolValidationError(f"expected {length} digits, got {len(digits)}", field=field)
    return digits


class BrasilApiClient(RestClient):
    """Async client for BrasilAPI."""

    def __init__(self, base_url: str = BASE_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(base_url, transport=transport)

    async def cep(self, cep: str) -> Any:
        return await self.get(f"/cep/v2/{cep}", not_found="CEP not found")

    async def cnpj(self, cnpj: str) -> Any:
        return await self.get(f"/cnpj/v1/{cnpj}", not_found="CNPJ not found")

    async def ddd(self, ddd: str) -> Any:
        return await self.get(f"/ddd/v1/{ddd}", not_found="DDD not found")

    async def holidays(self, year: str) -> Any:
        return await self.get(f"/feriados/v1/{year}")

    async def bank(self, code: str) -> Any:
        return await self.get(f"/banks/v1/{code}", not_found="Bank not found")

    async def banks(self) -> Any:
        return await self.get("/banks/v1")

    async def pix_participants(self) -> Any:
        return await self.get("/pix/v1/participants")

    async def exchange_rate(self, currency: str) -> Any:
        return await self.get(f"/taxas/v1/{currency}", not_found="Currency not found")

    async def municipality(self, ibge_code: str, providers: str = "IBGE") -> Any:
        return await self.get(
            f"/ibge/municipios/v1/{ibge_code}",
            params={"providers": providers},
            not_found="Municipality not found",
        )
