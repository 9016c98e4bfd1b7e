# =============================================================================
# core/ploomes_crm.py  -  Ploomes CRM public API (OData v4)
# =============================================================================
#
# ENTITY MAP (tool vocabulary → Ploomes resource):
#   client    → /Contacts       (companies and people the CRM sells to)
#   deal      → /Deals          (opportunities in the sales funnel)
#   contact   → /ContactInfos   (people attached to a client)
#   activity  → /Activities     (tasks, calls, meetings)
#
# PAGING:
#   Tools speak in pages; OData speaks in $skip/$top.
#     $skip = (page - 1) * (page_size or 10)      $top = page_size
#
# AUTH:
#   The API key travels in the `user-key` header.
# =============================================================================

from typing import Any, Optional

import httpx

from core.http import RestClient

BASE_URL = "https://public-api2.ploomes.com"
DEFAULT_PAGE_SIZE = 10


def odata_params(
    filters: Optional[list[str]] = None,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> dict[str, str]:
    """Build $filter / $skip / $top query parameters."""
    params = {}
    filters = [f for f in (filters or []) if f]
    if filters:
        params["$filter"] = " and ".join(filters)
    if page:
        params["$skip"] = str((page - 1) * (page_size or DEFAULT_PAGE_SIZE))
    if page_size:
        params["$top"] = str(page_size)
    return params


def compact(payload: dict) -> dict:
    """Drop unset fields; Ploomes treats explicit nulls as 'clear this'."""
    return {
        k: v for k, v in payload.items()
        if v is not None and not (isinstance(v, str) and not v.strip())
    }


class PloomesClient(RestClient):
    """Async client for the Ploomes CRM API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url,
            headers={"user-key": api_key, "Content-Type": "application/json"},
            transport=transport,
        )

    # --- Clients (/Contacts) ---
    async def list_clients(self, filter: Optional[str] = None, page=None, page_size=None) -> Any:
        return await self.get("/Contacts", params=odata_params([filter], page, page_size))

    async def get_client(self, client_id: int) -> Any:
        return await self.get(f"/Contacts({client_id})", not_found="Client not found")

    async def create_client(self, name: str, email=None, phone=None, notes=None) -> Any:
        payload = compact({"Name": name, "Email": email, "Phone": phone, "Notes": notes})
        return await self.post("/Contacts", json=payload)

    async def update_client(self, client_id: int, name=None, email=None, phone=None, notes=None) -> Any:
        payload = compact({"Name": name, "Email": email, "Phone": phone, "Notes": notes})
        result = await self.patch(
            f"/Contacts({client_id})", json=payload, not_found="Client not found", expect_body=False
        )
        return result or {"message": "Client updated successfully"}

    # --- Deals (/Deals) ---
    async def list_deals(self, filter=None, client_id=None, page=None, page_size=None) -> Any:
        filters = [filter, f"ContactId eq {client_id}" if client_id else None]
        return await self.get("/Deals", params=odata_params(filters, page, page_size))

    async def get_deal(self, deal_id: int) -> Any:
        return await self.get(f"/Deals({deal_id})", not_found="Deal not found")

    async def create_deal(self, title: str, client_id: int, amount=None, stage_id=None) -> Any:
        payload = compact({"Title": title, "ContactId": client_id, "Amount": amount, "StageId": stage_id})
        return await self.post("/Deals", json=payload)

    async def update_deal(self, deal_id: int, title=None, amount=None, stage_id=None) -> Any:
        payload = compact({"Title": title, "Amount": amount, "StageId": stage_id})
        result = await self.patch(
            f"/Deals({deal_id})", json=payload, not_found="Deal not found", expect_body=False
        )
        return result or {"message": "Deal updated successfully"}

    # --- Contacts (/ContactInfos) ---
    async def list_contacts(self, client_id: int, page=None, page_size=None) -> Any:
        params = odata_params([f"ContactId eq {client_id}"], page, page_size)
        return await self.get("/ContactInfos", params=params)

    async def get_contact(self, contact_id: int) -> Any:
        return await self.get(f"/ContactInfos({contact_id})", not_found="Contact not found")

    async def create_contact(self, client_id: int, name: str, email=None, phone=None, role=None) -> Any:
        payload = compact({"ContactId": client_id, "Name": name, "Email": email, "Phone": phone, "Role": role})
        return await self.post("/ContactInfos", json=payload)

    # --- Activities (/Activities) ---
    async def list_activities(self, client_id=None, deal_id=None, page=None, page_size=None) -> Any:
        filters = [
            f"ContactId eq {client_id}" if client_id else None,
            f"DealId eq {deal_id}" if deal_id else None,
        ]
        return await self.get("/Activities", params=odata_params(filters, page, page_size))

    async def create_activity(
        self,
        title: str,
        start_date: str,
        type_id: int,
        description=None,
        end_date=None,
        client_id=None,
        deal_id=None,
    ) -> Any:
        payload = compact({
            "Title": title,
            "StartDate": start_date,
            "ActivityTypeId": type_id,
            "Description": description,
            "EndDate": end_date,
            "ContactId": client_id,
            "DealId": deal_id,
        })
        return await self.post("/Activities", json=payload)
