"""Resource operations: thin URI wrappers over IControlRestClient.request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import IControlRestClient
    from .response import IControlResponse

LTM_PATH = "/mgmt/tm/ltm"
GTM_PATH = "/mgmt/tm/gtm"


def escape_resource_path(path: str) -> str:
    """Escape a partition path for use in a URI (/Common/p1 -> ~Common~p1)."""
    return path.replace("/", "~")


def resource_path_to_name(path: str) -> str:
    """Last segment of a partition path (/Common/p1 -> p1)."""
    return path.split("/")[-1]


def _expand_query(client: IControlRestClient) -> str:
    return f"expandSubcollections={'true' if client.expand_subcollections else 'false'}"


@dataclass
class LtmAPI:
    """Local traffic manager: pools, virtual servers, monitors, policies."""

    _client: IControlRestClient

    async def create_pool(self, data: dict[str, Any]) -> IControlResponse:
        """Create an LTM pool."""
        return await self._client.request("POST", f"{LTM_PATH}/pool", data=data)

    async def update_pool(self, name: str, data: dict[str, Any]) -> IControlResponse:
        """Update pool ``name`` with the given fields."""
        return await self._client.request("PATCH", f"{LTM_PATH}/pool/{name}", data=data)

    async def get_pool(self, name: str) -> IControlResponse:
        """Get pool ``name``."""
        return await self._client.request("GET", f"{LTM_PATH}/pool/{name}?{_expand_query(self._client)}")

    async def get_pool_members(self, name: str) -> IControlResponse:
        """Members of pool ``name``."""
        return await self._client.request(
            "GET", f"{LTM_PATH}/pool/{name}/members?{_expand_query(self._client)}"
        )

    async def get_virtual(self, name: str) -> IControlResponse:
        """Virtual server ``name``.

        The payload links its pool, policies and profiles through
        ``poolReference``/``policiesReference``/``profilesReference``;
        use IControlResponse.expand() to fetch them, keeping this client
        alive until it finishes (the response holds it weakly).
        """
        return await self._client.request("GET", f"{LTM_PATH}/virtual/{name}?{_expand_query(self._client)}")

    async def create_virtual(self, data: dict[str, Any]) -> IControlResponse:
        """Create a virtual server."""
        return await self._client.request("POST", f"{LTM_PATH}/virtual", data=data)

    async def create_virtual_address(self, data: dict[str, Any]) -> IControlResponse:
        """Create a virtual address."""
        return await self._client.request("POST", f"{LTM_PATH}/virtual-address", data=data)

    async def get_monitors_by_type(self, monitor_type: str) -> IControlResponse:
        """List monitors of type ``monitor_type`` (http, https, tcp, ...)."""
        return await self._client.request(
            "GET", f"{LTM_PATH}/monitor/{monitor_type}?{_expand_query(self._client)}"
        )

    async def create_monitor(self, data: dict[str, Any]) -> IControlResponse:
        """Create a monitor under the type of its parent (``defaultsFrom``).

        Raises:
            ValueError: If data has no ``defaultsFrom``
        """
        defaults_from = data.get("defaultsFrom")
        if not defaults_from:
            raise ValueError("create_monitor requires a parent monitor (data['defaultsFrom'])")
        parent = resource_path_to_name(defaults_from)
        return await self._client.request("POST", f"{LTM_PATH}/monitor/{parent}", data=data)

    async def update_monitor(self, parent_type: str, name: str, data: dict[str, Any]) -> IControlResponse:
        """Update monitor ``name`` of type ``parent_type``."""
        return await self._client.request("PATCH", f"{LTM_PATH}/monitor/{parent_type}/{name}", data=data)

    async def create_policy(self, data: dict[str, Any]) -> IControlResponse:
        """Create a (draft) policy."""
        return await self._client.request("POST", f"{LTM_PATH}/policy", data=data)

    async def publish_policy(self, draft_name: str) -> IControlResponse:
        """Publish a draft policy."""
        return await self._client.request(
            "POST", f"{LTM_PATH}/policy", data={"command": "publish", "name": draft_name}
        )

    async def create_policy_rule(self, policy_name: str, data: dict[str, Any]) -> IControlResponse:
        """Add a rule to policy ``policy_name``."""
        return await self._client.request("POST", f"{LTM_PATH}/policy/{policy_name}/rules", data=data)


@dataclass
class GtmAPI:
    """Global traffic manager: wide IPs and their pools."""

    _client: IControlRestClient

    async def create_wideip(self, wideip_type: str, data: dict[str, Any]) -> IControlResponse:
        """Create a wide IP of record type ``wideip_type`` (a, aaaa, cname, ...)."""
        return await self._client.request("POST", f"{GTM_PATH}/wideip/{wideip_type}", data=data)

    async def create_pool(self, pool_type: str, data: dict[str, Any]) -> IControlResponse:
        """Create a GTM pool of record type ``pool_type``."""
        return await self._client.request("POST", f"{GTM_PATH}/pool/{pool_type}", data=data)
