"""Tests for the Ploomes CRM client."""

import json

import pytest
from pytest_httpx import HTTPXMock

from core.errors import UpstreamError
from core.ploomes_crm import BASE_URL, PloomesClient, compact, odata_params


@pytest.fixture
def client():
    return PloomesClient("secret-key")


class TestOData:
    def test_paging(self):
        assert odata_params(page=3, page_size=20) == {"$skip": "40", "$top": "20"}

    def test_page_without_size_uses_default(self):
        assert odata_params(page=2) == {"$skip": "10"}

    def test_filters_joined_with_and(self):
        params = odata_params(["Name eq 'ACME'", None, "ContactId eq 7"])
        assert params == {"$filter": "Name eq 'ACME' and ContactId eq 7"}

    def test_compact_drops_unset_fields(self):
        assert compact({"Name": "ACME", "Email": None, "Phone": ""}) == {"Name": "ACME"}

    def test_compact_drops_blank_strings_keeps_zero(self):
        assert compact({"Title": "   ", "Amount": 0}) == {"Amount": 0}


class TestPloomesClient:
    @pytest.mark.asyncio
    async def test_list_deals_for_client(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(
            url=f"{BASE_URL}/Deals?$filter=ContactId eq 42&$skip=0&$top=5",
            match_headers={"user-key": "secret-key"},
            json={"value": [{"Id": 1, "Title": "Renewal"}]},
        )

        result = await client.list_deals(client_id=42, page=1, page_size=5)

        assert result["value"][0]["Title"] == "Renewal"

    @pytest.mark.asyncio
    async def test_create_client_maps_fields(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(method="POST", url=f"{BASE_URL}/Contacts", json={"value": [{"Id": 9}]})

        await client.create_client("ACME", email="sales@acme.test")

        body = json.loads(httpx_mock.get_request().content)
        assert body == {"Name": "ACME", "Email": "sales@acme.test"}

    @pytest.mark.asyncio
    async def test_update_deal_confirms(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(method="PATCH", url=f"{BASE_URL}/Deals(5)", status_code=204)

        result = await client.update_deal(5, amount=1500.0)

        assert result == {"message": "Deal updated successfully"}
        assert json.loads(httpx_mock.get_request().content) == {"Amount": 1500.0}

    @pytest.mark.asyncio
    async def test_get_contact_not_found(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=f"{BASE_URL}/ContactInfos(77)", status_code=404)

        assert await client.get_contact(77) == {"error": "Contact not found"}

    @pytest.mark.asyncio
    async def test_unauthorized(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=f"{BASE_URL}/Activities", status_code=401, text="Invalid user-key")

        with pytest.raises(UpstreamError, match="API error: 401 Unauthorized"):
            await client.list_activities()
