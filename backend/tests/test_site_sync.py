"""Tests for pulling the remote system-info document into a site."""
from datetime import date

import httpx
import pytest
from sqlalchemy import func, select

from conftest import mock_client
from sitedesk.models import SiteContract, SiteServerInfo
from sitedesk.services.site_sync import (
    build_system_info_url,
    contract_updates,
    server_info_updates,
    site_info_updates,
    sync_site_data,
)

FULL_PAYLOAD = {
    "wordpress": {"version": "6.4.2", "is_multisite": False},
    "php": {
        "version": "8.2.12",
        "memory_limit": "256M",
        "max_execution_time": "300",
        "post_max_size": "64M",
        "upload_max_filesize": "64M",
    },
    "mysql": {"version": "8.0.35", "server_info": "MySQL Community Server"},
    "server": {"server_ip": "10.0.0.5", "server_hostname": "web-01"},
    "contract": {
        "start_date": "2024-01-01",
        "end_date": "2025-12-31",
        "capacity": "10GB",
        "storage": {"usage_gb": 3.5},
    },
}


def _json_handler(payload, calls, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status, json=payload)

    return handler


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestPayloadMapping:
    def test_url_trims_trailing_slashes(self):
        class Stub:
            url = "https://example.com///"
            api_token = "tok"

        assert build_system_info_url(Stub()) == "https://example.com/wp-json/teamtreize/v1/system-info/tok"

    def test_missing_keys_produce_no_updates(self):
        assert site_info_updates({}) == {}
        assert server_info_updates({"php": {}}) == {}
        assert contract_updates({"wordpress": {"version": "6.0"}}) == {}

    def test_multisite_string_zero_is_false(self):
        assert site_info_updates({"wordpress": {"is_multisite": "0"}}) == {"is_multisite": False}
        assert site_info_updates({"wordpress": {"is_multisite": 1}}) == {"is_multisite": True}

    def test_max_execution_time_is_coerced_to_int(self):
        assert server_info_updates({"php": {"max_execution_time": "300"}}) == {"php_max_execution_time": 300}

    def test_non_numeric_max_execution_time_is_skipped(self):
        assert server_info_updates({"php": {"max_execution_time": "unlimited"}}) == {}

    @pytest.mark.parametrize("raw", ["inf", "-inf", "nan", float("inf"), "99999999999"])
    def test_unrepresentable_max_execution_time_is_skipped(self, raw):
        updates = server_info_updates({"php": {"version": "8.2", "max_execution_time": raw}})
        assert updates == {"php_version": "8.2"}

    def test_capacity_also_sets_storage_limit(self):
        updates = contract_updates({"contract": {"capacity": "20GB"}})
        assert updates == {"contract_capacity": "20GB", "contract_storage_limit": "20GB"}

    def test_usage_is_stringified(self):
        updates = contract_updates({"contract": {"storage": {"usage_gb": 4.0}}})
        assert updates == {"contract_storage_usage": "4"}


@pytest.mark.asyncio
class TestSyncSiteData:
    async def test_disabled_site_makes_no_request(self, db, make_site):
        site = await make_site(sync_enabled=False, api_token="tok")
        calls = []
        async with mock_client(_json_handler(FULL_PAYLOAD, calls)) as client:
            assert await sync_site_data(db, site, client) is False

        assert calls == []
        assert site.last_sync is None
        assert await _count(db, SiteServerInfo) == 0

    async def test_missing_token_makes_no_request(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="")
        calls = []
        async with mock_client(_json_handler(FULL_PAYLOAD, calls)) as client:
            assert await sync_site_data(db, site, client) is False
        assert calls == []

    async def test_full_payload_updates_all_three_destinations(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="secret-token")
        calls = []
        async with mock_client(_json_handler(FULL_PAYLOAD, calls)) as client:
            assert await sync_site_data(db, site, client) is True

        assert len(calls) == 1
        assert str(calls[0].url) == (
            "https://site1.example.com/wp-json/teamtreize/v1/system-info/secret-token"
        )
        assert site.wordpress_version == "6.4.2"
        assert site.is_multisite is False
        assert site.last_sync is not None

        server_info = (await db.execute(select(SiteServerInfo))).scalar_one()
        assert server_info.php_version == "8.2.12"
        assert server_info.php_max_execution_time == 300
        assert server_info.server_hostname == "web-01"

        contract = (await db.execute(select(SiteContract))).scalar_one()
        assert contract.contract_start_date == date(2024, 1, 1)
        assert contract.contract_end_date == date(2025, 12, 31)
        assert contract.contract_capacity == "10GB"
        assert contract.contract_storage_limit == "10GB"
        assert contract.contract_storage_usage == "3.5"

    async def test_partial_payload_leaves_other_fields_untouched(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok")
        db.add(SiteServerInfo(site_id=site.id, php_version="7.4", server_ip="1.2.3.4"))
        db.add(SiteContract(site_id=site.id, contract_capacity="5GB"))
        await db.commit()

        payload = {"wordpress": {"version": "6.5"}}
        async with mock_client(_json_handler(payload, [])) as client:
            assert await sync_site_data(db, site, client) is True

        assert site.wordpress_version == "6.5"
        server_info = (await db.execute(select(SiteServerInfo))).scalar_one()
        assert server_info.php_version == "7.4"
        assert server_info.server_ip == "1.2.3.4"
        contract = (await db.execute(select(SiteContract))).scalar_one()
        assert contract.contract_capacity == "5GB"

    async def test_repeated_sync_keeps_one_row_per_site(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok")
        async with mock_client(_json_handler(FULL_PAYLOAD, [])) as client:
            await sync_site_data(db, site, client)
            await sync_site_data(db, site, client)

        assert await _count(db, SiteServerInfo) == 1
        assert await _count(db, SiteContract) == 1

    async def test_http_error_writes_nothing(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok")
        site_id = site.id
        async with mock_client(_json_handler({"error": "boom"}, [], status=500)) as client:
            assert await sync_site_data(db, site, client) is False

        assert await _count(db, SiteServerInfo) == 0
        assert await _count(db, SiteContract) == 0
        refreshed = await db.get(type(site), site_id)
        assert refreshed.last_sync is None
        assert refreshed.wordpress_version is None

    async def test_non_json_body_is_a_failure(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok")

        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        async with mock_client(handler) as client:
            assert await sync_site_data(db, site, client) is False
        assert await _count(db, SiteServerInfo) == 0

    async def test_connection_error_is_a_failure(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok")

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            assert await sync_site_data(db, site, client) is False
        assert await _count(db, SiteServerInfo) == 0

    async def test_empty_url_makes_no_request(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok", url="")
        calls = []
        async with mock_client(_json_handler(FULL_PAYLOAD, calls)) as client:
            assert await sync_site_data(db, site, client) is False

        assert calls == []
        assert site.last_sync is None
        assert await _count(db, SiteServerInfo) == 0
        assert await _count(db, SiteContract) == 0

    async def test_wordpress_only_payload_keeps_multisite(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok", is_multisite=True)

        async with mock_client(_json_handler({"wordpress": {"version": "6.8.2"}}, [])) as client:
            assert await sync_site_data(db, site, client) is True

        assert site.wordpress_version == "6.8.2"
        assert site.is_multisite is True

    async def test_infinite_execution_time_keeps_rest_of_payload(self, db, make_site):
        site = await make_site(sync_enabled=True, api_token="tok")
        payload = {"wordpress": {"version": "6.8.2"}, "php": {"version": "8.2", "max_execution_time": "inf"}}

        async with mock_client(_json_handler(payload, [])) as client:
            assert await sync_site_data(db, site, client) is True

        assert site.wordpress_version == "6.8.2"
        server_info = (await db.execute(select(SiteServerInfo))).scalar_one()
        assert server_info.php_version == "8.2"
        assert server_info.php_max_execution_time is None
