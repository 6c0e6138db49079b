import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000/api"
DEFAULT_TIMEOUT = 10.0


class ApiError(RuntimeError):
    """Raised when a navstation API call failed (transport error or non-2xx status)."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"API error {status_code}: {detail}" if status_code else f"API error: {detail}")
        self.status_code = status_code
        self.detail = detail


class AuthenticationFailed(ApiError):
    """Login rejected, or the token is missing/expired."""


class ReorderRejected(ApiError):
    """The server refused a reorder batch; none of it was applied."""


def _order_payload(orders: List[Dict[str, Any]]) -> List[Dict[str, int]]:
    return [{"id": int(o["id"]), "order_num": int(o["order_num"])} for o in orders]


class NavigationClient:
    """
    Async client for the /api surface.

    login() keeps the returned bearer token and sends it on every later request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "NavigationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = await self._client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise ApiError(0, str(e)) from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            if response.status_code == 401:
                raise AuthenticationFailed(401, detail)
            raise ApiError(response.status_code, detail)
        return response.json()

    # Auth

    async def auth_status(self) -> bool:
        data = await self._request("GET", "auth/status")
        return bool(data.get("auth_enabled"))

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        data = await self._request("POST", "login", json={"username": username, "password": password})
        if not data.get("success") or not data.get("token"):
            raise AuthenticationFailed(401, data.get("message") or "Login failed")
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self.token = None

    # Groups

    async def get_groups(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "groups")

    async def get_groups_with_sites(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "groups-with-sites")

    async def get_group(self, group_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"groups/{group_id}")

    async def create_group(self, group: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "groups", json=group)

    async def update_group(self, group_id: int, group: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._request("PUT", f"groups/{group_id}", json=group)

    async def delete_group(self, group_id: int) -> bool:
        data = await self._request("DELETE", f"groups/{group_id}")
        return bool(data.get("success"))

    # Sites

    async def get_sites(self, group_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"groupId": group_id} if group_id is not None else None
        return await self._request("GET", "sites", params=params)

    async def get_site(self, site_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"sites/{site_id}")

    async def create_site(self, site: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "sites", json=site)

    async def update_site(self, site_id: int, site: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._request("PUT", f"sites/{site_id}", json=site)

    async def delete_site(self, site_id: int) -> bool:
        data = await self._request("DELETE", f"sites/{site_id}")
        return bool(data.get("success"))

    # Ordering

    async def update_group_order(self, orders: List[Dict[str, Any]]) -> None:
        """Persist a group reorder batch; ReorderRejected if the server applied none of it."""
        data = await self._request("PUT", "group-orders", json=_order_payload(orders))
        if not data.get("success"):
            raise ReorderRejected(200, "Group order was not saved")

    async def update_site_order(self, orders: List[Dict[str, Any]], group_id: Optional[int] = None) -> None:
        params = {"groupId": group_id} if group_id is not None else None
        data = await self._request("PUT", "site-orders", json=_order_payload(orders), params=params)
        if not data.get("success"):
            raise ReorderRejected(200, "Site order was not saved")

    # Configs

    async def get_configs(self) -> Dict[str, str]:
        return await self._request("GET", "configs")

    async def get_config(self, key: str) -> Optional[str]:
        data = await self._request("GET", f"configs/{key}")
        return data["value"] if data else None

    async def set_config(self, key: str, value: str) -> bool:
        data = await self._request("PUT", f"configs/{key}", json={"value": value})
        return bool(data.get("success"))

    async def delete_config(self, key: str) -> bool:
        data = await self._request("DELETE", f"configs/{key}")
        return bool(data.get("success"))


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return detail if isinstance(detail, str) else str(detail)
    return response.reason_phrase
