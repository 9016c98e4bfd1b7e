# =============================================================================
# tools/ploomes_crm_server.py  -  FastMCP server for Ploomes CRM
# =============================================================================
#
# TOOLS (one group per CRM entity):
#   clients     ploomes_list_clients, ploomes_get_client,
#               ploomes_create_client, ploomes_update_client
#   deals       ploomes_list_deals, ploomes_get_deal,
#               ploomes_create_deal, ploomes_update_deal
#   contacts    ploomes_list_contacts, ploomes_get_contact,
#               ploomes_create_contact
#   activities  ploomes_list_activities, ploomes_create_activity
#
# QUOTA: 5 calls/s and 300 calls/min, shared by all tools.  Ploomes can be
# slow on filtered list queries, so the per-call deadline defaults to 30 s.
#
# CREDENTIALS:
#   PLOOMES_API_KEY, or pass --api-key=<key> on the command line.
# =============================================================================

from typing import Annotated, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from core.config import cli_option, load_adapter_settings, require_env
from core.errors import ToolValidationError
from core.governor import RequestGovernor
from core.models import AdapterSettings
from core.ploomes_crm import PloomesClient, compact
from tools.common import execute_tool, log_request, make_governor, not_blank, respond, serve

ADAPTER = "ploomes-crm"

EntityId = Annotated[int, Field(gt=0, description="Numeric Ploomes id")]
Page = Annotated[Optional[int], Field(ge=1, description="Page number, starting at 1")]
PageSize = Annotated[Optional[int], Field(ge=1, le=300, description="Records per page")]


def _any_field(**values):
    """Validator requiring at least one field that would survive compact()."""
    def validate():
        if not compact(values):
            raise ToolValidationError(
                f"provide at least one of: {', '.join(values)}"
            )
    return validate


def build_server(
    settings: AdapterSettings,
    client: PloomesClient,
    governor: Optional[RequestGovernor] = None,
) -> FastMCP:
    """Create the FastMCP server with every Ploomes CRM tool registered."""
    governor = governor or make_governor(settings)
    mcp = FastMCP(ADAPTER)

    async def run(tool_name: str, operation, validate=None) -> str:
        outcome = await execute_tool(
            tool_name, governor, settings.category(tool_name), operation, validate
        )
        return respond(outcome)

    # =========================================================================
    # Clients
    # =========================================================================
    @mcp.tool()
    async def ploomes_list_clients(
        filter: Optional[str] = None, page: Page = None, page_size: PageSize = None
    ) -> str:
        """List the clients registered in Ploomes CRM, with filtering and paging.

        Args:
            filter: OData filter expression, e.g. "Name eq 'ACME'".
            page: Page number (starts at 1).
            page_size: Records per page.
        """
        log_request("ploomes_list_clients", filter=filter, page=page, page_size=page_size)
        return await run("ploomes_list_clients", lambda: client.list_clients(filter, page, page_size))

    @mcp.tool()
    async def ploomes_get_client(id: EntityId) -> str:
        """Get the details of one client by id."""
        log_request("ploomes_get_client", id=id)
        return await run("ploomes_get_client", lambda: client.get_client(id))

    @mcp.tool()
    async def ploomes_create_client(
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        """Create a new client in Ploomes CRM.

        Args:
            name: Client name.
            email: Client e-mail.
            phone: Client phone number.
            notes: Free-text notes about the client.
        """
        log_request("ploomes_create_client", name=name, email=email, phone=phone, notes=notes)
        return await run(
            "ploomes_create_client",
            lambda: client.create_client(name, email, phone, notes),
            not_blank(name=name),
        )

    @mcp.tool()
    async def ploomes_update_client(
        id: EntityId,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        """Update an existing client.  Only the fields given are changed."""
        log_request("ploomes_update_client", id=id, name=name, email=email, phone=phone, notes=notes)
        return await run(
            "ploomes_update_client",
            lambda: client.update_client(id, name, email, phone, notes),
            _any_field(name=name, email=email, phone=phone, notes=notes),
        )

    # =========================================================================
    # Deals
    # =========================================================================
    @mcp.tool()
    async def ploomes_list_deals(
        filter: Optional[str] = None,
        client_id: Optional[int] = None,
        page: Page = None,
        page_size: PageSize = None,
    ) -> str:
        """List deals / opportunities, optionally for one client.

        Args:
            filter: OData filter expression.
            client_id: Only deals of this client.
            page: Page number (starts at 1).
            page_size: Records per page.
        """
        log_request("ploomes_list_deals", filter=filter, client_id=client_id, page=page, page_size=page_size)
        return await run(
            "ploomes_list_deals",
            lambda: client.list_deals(filter, client_id, page, page_size),
        )

    @mcp.tool()
    async def ploomes_get_deal(id: EntityId) -> str:
        """Get the details of one deal by id."""
        log_request("ploomes_get_deal", id=id)
        return await run("ploomes_get_deal", lambda: client.get_deal(id))

    @mcp.tool()
    async def ploomes_create_deal(
        title: str,
        client_id: EntityId,
        amount: Optional[float] = None,
        stage_id: Optional[int] = None,
    ) -> str:
        """Create a new deal / opportunity.

        Args:
            title: Deal title.
            client_id: Id of the client the deal belongs to.
            amount: Deal value.
            stage_id: Id of the sales funnel stage.
        """
        log_request("ploomes_create_deal", title=title, client_id=client_id, amount=amount, stage_id=stage_id)
        return await run(
            "ploomes_create_deal",
            lambda: client.create_deal(title, client_id, amount, stage_id),
            not_blank(title=title),
        )

    @mcp.tool()
    async def ploomes_update_deal(
        id: EntityId,
        title: Optional[str] = None,
        amount: Optional[float] = None,
        stage_id: Optional[int] = None,
    ) -> str:
        """Update an existing deal.  Only the fields given are changed."""
        log_request("ploomes_update_deal", id=id, title=title, amount=amount, stage_id=stage_id)
        return await run(
            "ploomes_update_deal",
            lambda: client.update_deal(id, title, amount, stage_id),
            _any_field(title=title, amount=amount, stage_id=stage_id),
        )

    # =========================================================================
    # Contacts
    # =========================================================================
    @mcp.tool()
    async def ploomes_list_contacts(client_id: EntityId, page: Page = None, page_size: PageSize = None) -> str:
        """List the contacts (people) of one client."""
        log_request("ploomes_list_contacts", client_id=client_id, page=page, page_size=page_size)
        return await run(
            "ploomes_list_contacts",
            lambda: client.list_contacts(client_id, page, page_size),
        )

    @mcp.tool()
    async def ploomes_get_contact(id: EntityId) -> str:
        """Get the details of one contact by id."""
        log_request("ploomes_get_contact", id=id)
        return await run("ploomes_get_contact", lambda: client.get_contact(id))

    @mcp.tool()
    async def ploomes_create_contact(
        client_id: EntityId,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        role: Optional[str] = None,
    ) -> str:
        """Create a contact for a client.

        Args:
            client_id: Id of the client.
            name: Contact name.
            email: Contact e-mail.
            phone: Contact phone.
            role: Job title / role of the contact.
        """
        log_request("ploomes_create_contact", client_id=client_id, name=name, email=email, phone=phone, role=role)
        return await run(
            "ploomes_create_contact",
            lambda: client.create_contact(client_id, name, email, phone, role),
            not_blank(name=name),
        )

    # =========================================================================
    # Activities
    # =========================================================================
    @mcp.tool()
    async def ploomes_list_activities(
        client_id: Optional[int] = None,
        deal_id: Optional[int] = None,
        page: Page = None,
        page_size: PageSize = None,
    ) -> str:
        """List activities, optionally filtered by client and/or deal."""
        log_request("ploomes_list_activities", client_id=client_id, deal_id=deal_id, page=page, page_size=page_size)
        return await run(
            "ploomes_list_activities",
            lambda: client.list_activities(client_id, deal_id, page, page_size),
        )

    @mcp.tool()
    async def ploomes_create_activity(
        title: str,
        start_date: str,
        type_id: EntityId,
        description: Optional[str] = None,
        end_date: Optional[str] = None,
        client_id: Optional[int] = None,
        deal_id: Optional[int] = None,
    ) -> str:
        """Create an activity (task, call, meeting).

        Args:
            title: Activity title.
            start_date: Start date, ISO 8601.
            type_id: Id of the activity type.
            description: Activity description.
            end_date: End date, ISO 8601.
            client_id: Related client id.
            deal_id: Related deal id.
        """
        log_request(
            "ploomes_create_activity", title=title, start_date=start_date, type_id=type_id,
            description=description, end_date=end_date, client_id=client_id, deal_id=deal_id,
        )
        return await run(
            "ploomes_create_activity",
            lambda: client.create_activity(
                title, start_date, type_id, description, end_date, client_id, deal_id
            ),
            not_blank(title=title, start_date=start_date),
        )

    return mcp


def load_api_key() -> str:
    """--api-key=... on the command line, else PLOOMES_API_KEY."""
    key = cli_option("api-key")
    if key:
        return key
    return require_env("PLOOMES_API_KEY")["PLOOMES_API_KEY"]


def create_server() -> FastMCP:
    load_dotenv()
    return build_server(load_adapter_settings(ADAPTER), PloomesClient(load_api_key()))


def main() -> None:
    serve(create_server, "Ploomes CRM")


if __name__ == "__main__":
    main()
