# =============================================================================
# tools/brasil_api_server.py  -  FastMCP server for BrasilAPI lookups
# =============================================================================
#
# TOOLS:
#   brasil_cep, brasil_cnpj, brasil_ddd, brasil_feriados, brasil_banco,
#   brasil_bancos, brasil_pix_participantes, brasil_cotacao,
#   brasil_ibge_municipio
#
# All tools share ONE quota ("brasil-api"): BrasilAPI throttles per client,
# not per endpoint.  Default 2 calls/s and 60 calls/min.
#
# RUNNING THIS SERVER:
#   python -m tools.brasil_api_server
# =============================================================================

from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from core.brasil_api import BrasilApiClient, Code, digits_only
from core.config import load_adapter_settings
from core.errors import ToolValidationError
from core.governor import RequestGovernor
from core.models import AdapterSettings
from tools.common import execute_tool, log_request, make_governor, respond, serve

ADAPTER = "brasil-api"


def build_server(
    settings: AdapterSettings,
    client: BrasilApiClient,
    governor: Optional[RequestGovernor] = None,
) -> FastMCP:
    """Create the FastMCP server with every BrasilAPI tool registered."""
    governor = governor or make_governor(settings)
    mcp = FastMCP(ADAPTER)

    async def run(tool_name: str, operation, validate=None) -> str:
        outcome = await execute_tool(
            tool_name, governor, settings.category(tool_name), operation, validate
        )
        return respond(outcome)

    @mcp.tool()
    async def brasil_cep(cep: Code) -> str:
        """Look up a Brazilian postal code (CEP).

        Returns street, neighborhood, city, state and location data.

        Args:
            cep: The CEP, digits only or formatted as 00000-000.
        """
        log_request("brasil_cep", cep=cep)

        def checked():
            return digits_only(cep, "cep", 8)

        return await run("brasil_cep", lambda: client.cep(checked()), validate=checked)

    @mcp.tool()
    async def brasil_cnpj(cnpj: Code) -> str:
        """Fetch registry data for a Brazilian company by CNPJ.

        Returns legal name, trade name, registration status, opening date,
        address and more.

        Args:
            cnpj: The CNPJ, digits only or formatted as 00.000.000/0000-00.
        """
        log_request("brasil_cnpj", cnpj=cnpj)

        def checked():
            return digits_only(cnpj, "cnpj", 14)

        return await run("brasil_cnpj", lambda: client.cnpj(checked()), validate=checked)

    @mcp.tool()
    async def brasil_ddd(ddd: Code) -> str:
        """List the state and cities that use a Brazilian phone area code (DDD).

        Args:
            ddd: Two-digit area code, e.g. 11, 21, 31.
        """
        log_request("brasil_ddd", ddd=ddd)

        def checked():
            return digits_only(ddd, "ddd", 2)

        return await run("brasil_ddd", lambda: client.ddd(checked()), validate=checked)

    @mcp.tool()
    async def brasil_feriados(ano: Code) -> str:
        """List Brazil's national holidays for a year.

        Args:
            ano: The year, YYYY (e.g. 2024).
        """
        log_request("brasil_feriados", ano=ano)

        def checked():
            return digits_only(ano, "ano", 4)

        return await run("brasil_feriados", lambda: client.holidays(checked()), validate=checked)

    @mcp.tool()
    async def brasil_banco(codigo: Code) -> str:
        """Get a Brazilian bank by its code (e.g. 001, 237, 341).

        Args:
            codigo: The bank's COMPE code.
        """
        log_request("brasil_banco", codigo=codigo)

        def checked():
            return digits_only(codigo, "codigo")

        return await run("brasil_banco", lambda: client.bank(checked()), validate=checked)

    @mcp.tool()
    async def brasil_bancos() -> str:
        """List every Brazilian bank with its codes and names."""
        log_request("brasil_bancos")
        return await run("brasil_bancos", client.banks)

    @mcp.tool()
    async def brasil_pix_participantes() -> str:
        """List the institutions participating in the PIX payment system."""
        log_request("brasil_pix_participantes")
        return await run("brasil_pix_participantes", client.pix_participants)

    @mcp.tool()
    async def brasil_cotacao(moeda: str) -> str:
        """Get today's rate for a currency or index against the Brazilian real.

        Args:
            moeda: Currency or rate code (e.g. USD, EUR, CDI, SELIC).
        """
        log_request("brasil_cotacao", moeda=moeda)
        code = (moeda or "").strip().upper()

        def validate():
            if not code.isalpha():
                raise ToolValidationError("must be a currency code such as USD", field="moeda")

        return await run("brasil_cotacao", lambda: client.exchange_rate(code), validate)

    @mcp.tool()
    async def brasil_ibge_municipio(codigo_ibge: Code, provedores: str = "IBGE") -> str:
        """Look up a Brazilian municipality by IBGE code.

        Args:
            codigo_ibge: The municipality's IBGE code (or a state code such
                as SP to list its municipalities).
            provedores: Data providers, comma separated (default IBGE).
        """
        log_request("brasil_ibge_municipio", codigo_ibge=codigo_ibge, provedores=provedores)
        code = str(codigo_ibge).strip()

        def validate():
            if not code.isalnum():
                raise ToolValidationError("must be an IBGE code or state code", field="codigo_ibge")

        return await run(
            "brasil_ibge_municipio",
            lambda: client.municipality(code.upper(), provedores),
            validate,
        )

    return mcp


def create_server() -> FastMCP:
    load_dotenv()
    return build_server(load_adapter_settings(ADAPTER), BrasilApiClient())


def main() -> None:
    serve(create_server, "Brasil API")


if __name__ == "__main__":
    main()
