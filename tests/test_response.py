"""Tests for the response envelope and reference expansion."""

from __future__ import annotations

import gc

import httpx
import pytest
from fakes import BASE_URL, FakeDevice

from icontrol_rest import (
    COORDINATION_HEADER,
    ApiFailure,
    IControlRest,
    IControlResponse,
    IControlRestClient,
    OperationError,
    is_reference_field,
    reference_uri,
)

# =============================================================================
# Predicate Tests
# =============================================================================


class TestReferenceHelpers:
    """Tests for is_reference_field and reference_uri."""

    def test_reference_field(self) -> None:
        assert is_reference_field("poolReference", {"link": "https://h/mgmt/tm/ltm/pool/p1"})

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("pool", {"link": "https://h/x"}),
            ("poolReference", {"name": "p1"}),
            ("poolReference", "https://h/x"),
            ("poolReference", None),
            ("referenceList", {"link": "https://h/x"}),
        ],
    )
    def test_not_reference_field(self, key: str, value: object) -> None:
        assert not is_reference_field(key, value)

    def test_reference_uri_keeps_query(self) -> None:
        assert reference_uri("https://host/mgmt/tm/ltm/pool/p1?ver=1") == "/mgmt/tm/ltm/pool/p1?ver=1"

    def test_reference_uri_without_query(self) -> None:
        assert reference_uri("https://localhost/mgmt/tm/ltm/pool/~Common~p1") == "/mgmt/tm/ltm/pool/~Common~p1"


# =============================================================================
# Expansion Tests
# =============================================================================


async def _get(client: IControlRestClient, device: FakeDevice, body: dict) -> IControlResponse:
    device.route("GET", "/mgmt/tm/ltm/virtual/vs1", body=body)
    return await client.request("GET", "/mgmt/tm/ltm/virtual/vs1")


class TestExpand:
    """Tests for IControlResponse.expand."""

    @pytest.mark.asyncio
    async def test_expand_single_reference(self, device: FakeDevice, client: IControlRestClient) -> None:
        """One GET per reference; the reference itself is kept."""
        pool = {"kind": "tm:ltm:pool:poolstate", "name": "p1"}
        device.route("GET", "/mgmt/tm/ltm/pool/p1?ver=1", body=pool)
        reference = {"link": "https://host/mgmt/tm/ltm/pool/p1?ver=1"}
        response = await _get(client, device, {"poolReference": reference})

        await response.expand()

        assert response.data == {"poolReference": reference, "pool": pool}
        fetches = device.requests[1:]
        assert len(fetches) == 1
        assert fetches[0].method == "GET"
        assert fetches[0].url.raw_path == b"/mgmt/tm/ltm/pool/p1?ver=1"
        assert str(fetches[0].url).startswith(BASE_URL)

    @pytest.mark.asyncio
    async def test_expand_ignores_transaction(self, device: FakeDevice, client: IControlRestClient) -> None:
        device.route("GET", "/mgmt/tm/ltm/pool/p1", body={"name": "p1"})
        response = await _get(client, device, {"poolReference": {"link": "https://host/mgmt/tm/ltm/pool/p1"}})
        client.set_transaction_id("55")

        await response.expand()

        assert COORDINATION_HEADER not in device.last.headers

    @pytest.mark.asyncio
    async def test_expand_in_field_order(self, device: FakeDevice, client: IControlRestClient) -> None:
        """Multiple references are fetched sequentially in payload order."""
        device.route("GET", "/b", body={"b": 1})
        device.route("GET", "/a", body={"a": 1})
        response = await _get(
            client,
            device,
            {
                "name": "vs1",
                "profilesReference": {"link": "https://host/b", "isSubcollection": True},
                "policiesReference": {"link": "https://host/a", "isSubcollection": True},
            },
        )

        await response.expand()

        assert [r.url.path for r in device.requests[1:]] == ["/b", "/a"]
        assert response.data["profiles"] == {"b": 1}
        assert response.data["policies"] == {"a": 1}
        assert response.data["name"] == "vs1"

    @pytest.mark.asyncio
    async def test_non_matching_fields_untouched(self, device: FakeDevice, client: IControlRestClient) -> None:
        body = {"name": "vs1", "pool": "/Common/p2", "sourceAddressTranslation": {"type": "automap"}}
        response = await _get(client, device, dict(body))

        await response.expand()

        assert response.data == body
        assert len(device.requests) == 1

    @pytest.mark.asyncio
    async def test_bare_reference_field(self, device: FakeDevice, client: IControlRestClient) -> None:
        """A field named just Reference expands into the empty key."""
        device.route("GET", "/x", body={"x": 1})
        response = await _get(client, device, {"Reference": {"link": "https://host/x"}})

        await response.expand()

        assert response.data[""] == {"x": 1}

    @pytest.mark.asyncio
    async def test_expand_explicit_payload(self, device: FakeDevice, client: IControlRestClient) -> None:
        """A given mapping is expanded instead of response.data."""
        device.route("GET", "/mgmt/tm/ltm/pool/p1", body={"name": "p1"})
        response = await _get(client, device, {"name": "vs1"})
        item = {"poolReference": {"link": "https://host/mgmt/tm/ltm/pool/p1"}}

        await response.expand(item)

        assert item["pool"] == {"name": "p1"}
        assert "pool" not in response.data

    @pytest.mark.asyncio
    async def test_expand_failure_propagates(self, device: FakeDevice, client: IControlRestClient) -> None:
        response = await _get(client, device, {"poolReference": {"link": "https://host/missing"}})

        with pytest.raises(ApiFailure) as exc_info:
            await response.expand()

        assert exc_info.value.http_status == 404

    @pytest.mark.asyncio
    async def test_expand_after_client_gone(self, device: FakeDevice, api: IControlRest) -> None:
        """The response only holds a weak reference to its client."""
        device.route("GET", "/mgmt/tm/ltm/virtual/vs1", body={"poolReference": {"link": "https://host/p"}})
        response = await api.client().request("GET", "/mgmt/tm/ltm/virtual/vs1")
        gc.collect()

        assert response.client is None
        with pytest.raises(OperationError):
            await response.expand()

    @pytest.mark.asyncio
    async def test_expand_with_client_kept(self, device: FakeDevice, api: IControlRest) -> None:
        """Holding the client keeps expansion working after get_virtual."""
        device.route(
            "GET",
            "/mgmt/tm/ltm/virtual/vs1?expandSubcollections=false",
            body={"poolReference": {"link": "https://host/p"}},
        )
        device.route("GET", "/p", body={"name": "p"})
        client = api.client()
        response = await client.ltm.get_virtual("vs1")
        gc.collect()

        await response.expand()

        assert response.data["pool"] == {"name": "p"}

    @pytest.mark.asyncio
    async def test_expand_non_dict_payload(self, device: FakeDevice, client: IControlRestClient) -> None:
        device.route_handler("GET", "/list", lambda request: httpx.Response(200, json=[1, 2]))
        response = await client.request("GET", "/list")

        await response.expand()

        assert response.data == [1, 2]
