import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from navstation.client.api_client import ReorderRejected

_SEED_TIME = "2024-01-01T00:00:00+00:00"

MOCK_GROUPS = [
    {"id": 1, "name": "Everyday Tools", "order_num": 0, "created_at": _SEED_TIME, "updated_at": _SEED_TIME},
    {"id": 2, "name": "Developer Resources", "order_num": 1, "created_at": _SEED_TIME, "updated_at": _SEED_TIME},
]

MOCK_SITES = [
    {
        "id": 1, "group_id": 1, "name": "Google", "url": "https://www.google.com",
        "icon": "google.png", "description": "Search engine", "notes": "", "order_num": 0,
        "created_at": _SEED_TIME, "updated_at": _SEED_TIME,
    },
    {
        "id": 2, "group_id": 1, "name": "GitHub", "url": "https://github.com",
        "icon": "github.png", "description": "Code hosting", "notes": "", "order_num": 1,
        "created_at": _SEED_TIME, "updated_at": _SEED_TIME,
    },
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ordered(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [dict(r) for r in sorted(rows, key=lambda r: (r["order_num"], r["id"]))]


class MockNavigationClient:
    """
    In-memory stand-in for NavigationClient with the same async interface.

    Every instance starts from its own copy of the seed data; reorder batches are
    all-or-nothing like the real API. latency simulates the network round trip.
    """

    def __init__(
        self,
        groups: Optional[List[Dict[str, Any]]] = None,
        sites: Optional[List[Dict[str, Any]]] = None,
        latency: float = 0.0,
    ):
        self.groups = copy.deepcopy(MOCK_GROUPS if groups is None else groups)
        self.sites = copy.deepcopy(MOCK_SITES if sites is None else sites)
        self.latency = latency
        self.configs: Dict[str, str] = {}
        self.token: Optional[str] = None
        self.calls: List[str] = []

    async def _tick(self, name: str) -> None:
        self.calls.append(name)
        await asyncio.sleep(self.latency)

    async def aclose(self) -> None:
        pass

    def _next_id(self, rows: List[Dict[str, Any]]) -> int:
        return max([r["id"] for r in rows] or [0]) + 1

    # Auth

    async def auth_status(self) -> bool:
        await self._tick("auth_status")
        return False

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        await self._tick("login")
        self.token = "mock-token"
        return {"success": True, "token": self.token, "message": "Mock login"}

    def logout(self) -> None:
        self.token = None

    # Groups

    async def get_groups(self) -> List[Dict[str, Any]]:
        await self._tick("get_groups")
        return _ordered(self.groups)

    async def get_groups_with_sites(self) -> List[Dict[str, Any]]:
        await self._tick("get_groups_with_sites")
        return [
            {**g, "sites": _ordered([s for s in self.sites if s["group_id"] == g["id"]])}
            for g in _ordered(self.groups)
        ]

    async def get_group(self, group_id: int) -> Optional[Dict[str, Any]]:
        await self._tick("get_group")
        return next((dict(g) for g in self.groups if g["id"] == group_id), None)

    async def create_group(self, group: Dict[str, Any]) -> Dict[str, Any]:
        await self._tick("create_group")
        order_num = group.get("order_num")
        if order_num is None:
            order_num = max([g["order_num"] for g in self.groups] or [-1]) + 1
        now = _now()
        row = {"id": self._next_id(self.groups), "name": group["name"], "order_num": order_num,
               "created_at": now, "updated_at": now}
        self.groups.append(row)
        return dict(row)

    async def update_group(self, group_id: int, group: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        await self._tick("update_group")
        for row in self.groups:
            if row["id"] == group_id:
                row.update({k: v for k, v in group.items() if k in ("name", "order_num") and v is not None})
                row["updated_at"] = _now()
                return dict(row)
        return None

    async def delete_group(self, group_id: int) -> bool:
        await self._tick("delete_group")
        before = len(self.groups)
        self.groups = [g for g in self.groups if g["id"] != group_id]
        self.sites = [s for s in self.sites if s["group_id"] != group_id]
        return len(self.groups) < before

    # Sites

    async def get_sites(self, group_id: Optional[int] = None) -> List[Dict[str, Any]]:
        await self._tick("get_sites")
        if group_id is not None:
            return _ordered([s for s in self.sites if s["group_id"] == group_id])
        return [dict(s) for s in sorted(self.sites, key=lambda s: (s["group_id"], s["order_num"], s["id"]))]

    async def get_site(self, site_id: int) -> Optional[Dict[str, Any]]:
        await self._tick("get_site")
        return next((dict(s) for s in self.sites if s["id"] == site_id), None)

    async def create_site(self, site: Dict[str, Any]) -> Dict[str, Any]:
        await self._tick("create_site")
        order_num = site.get("order_num")
        if order_num is None:
            siblings = [s["order_num"] for s in self.sites if s["group_id"] == site["group_id"]]
            order_num = max(siblings or [-1]) + 1
        now = _now()
        row = {
            "id": self._next_id(self.sites),
            "group_id": site["group_id"],
            "name": site["name"],
            "url": site["url"],
            "icon": site.get("icon") or "",
            "description": site.get("description") or "",
            "notes": site.get("notes") or "",
            "order_num": order_num,
            "created_at": now,
            "updated_at": now,
        }
        self.sites.append(row)
        return dict(row)

    async def update_site(self, site_id: int, site: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        await self._tick("update_site")
        allowed = ("group_id", "name", "url", "icon", "description", "notes", "order_num")
        for row in self.sites:
            if row["id"] == site_id:
                changes = {k: v for k, v in site.items() if k in allowed and v is not None}
                target = changes.get("group_id")
                if target is not None and target != row["group_id"] and "order_num" not in changes:
                    siblings = [s["order_num"] for s in self.sites if s["group_id"] == target]
                    changes["order_num"] = max(siblings or [-1]) + 1
                row.update(changes)
                row["updated_at"] = _now()
                return dict(row)
        return None

    async def delete_site(self, site_id: int) -> bool:
        await self._tick("delete_site")
        before = len(self.sites)
        self.sites = [s for s in self.sites if s["id"] != site_id]
        return len(self.sites) < before

    # Ordering

    async def update_group_order(self, orders: List[Dict[str, Any]]) -> None:
        await self._tick("update_group_order")
        self._apply(self.groups, orders, "Group order was not saved")

    async def update_site_order(self, orders: List[Dict[str, Any]], group_id: Optional[int] = None) -> None:
        await self._tick("update_site_order")
        if orders and group_id is None:
            first = next((s for s in self.sites if s["id"] == orders[0]["id"]), None)
            if first is None:
                raise ReorderRejected(200, "Site order was not saved")
            group_id = first["group_id"]
        scope = [s for s in self.sites if s["group_id"] == group_id]
        self._apply(scope, orders, "Site order was not saved")

    def _apply(self, scope: List[Dict[str, Any]], orders: List[Dict[str, Any]], message: str) -> None:
        if not orders:
            return
        by_id = {row["id"]: row for row in scope}
        ids = [o["id"] for o in orders]
        if len(set(ids)) != len(ids) or any(i not in by_id for i in ids):
            raise ReorderRejected(200, message)
        now = _now()
        for o in orders:
            by_id[o["id"]]["order_num"] = o["order_num"]
            by_id[o["id"]]["updated_at"] = now
        for position, row in enumerate(sorted(scope, key=lambda r: (r["order_num"], r["id"]))):
            row["order_num"] = position

    # Configs

    async def get_configs(self) -> Dict[str, str]:
        await self._tick("get_configs")
        return dict(self.configs)

    async def get_config(self, key: str) -> Optional[str]:
        await self._tick("get_config")
        return self.configs.get(key)

    async def set_config(self, key: str, value: str) -> bool:
        await self._tick("set_config")
        self.configs[key] = value
        return True

    async def delete_config(self, key: str) -> bool:
        await self._tick("delete_config")
        return self.configs.pop(key, None) is not None
