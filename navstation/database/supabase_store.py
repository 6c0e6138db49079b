import logging
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from navstation.core.exceptions import BatchError, NavigationError, StoreError, ValidationError
from navstation.database.base import (
    GROUP_COLUMNS, SITE_COLUMNS, SITE_TEXT_FIELDS,
    EntityStore, OrderAssignment, Scope, utc_now,
)

logger = logging.getLogger(__name__)

_GROUP_FIELDS = ", ".join(GROUP_COLUMNS)
_SITE_FIELDS = ", ".join(SITE_COLUMNS)


def _site(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    site = dict(row)
    for key in SITE_TEXT_FIELDS:
        if site.get(key) is None:
            site[key] = ""
    return site


class SupabaseStore(EntityStore):
    """
    EntityStore on a Supabase (Postgres) project.

    Single-row writes are atomic in PostgREST. Reorder batches go through the
    apply_order() SQL function (see supabase_schema.sql) so the whole batch runs in
    one database transaction.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _run(self, what: str, fn):
        try:
            return fn()
        except NavigationError:
            raise
        except Exception as e:
            logger.exception("Supabase %s failed: %s", what, e)
            raise StoreError(f"Failed to {what}") from e

    def init_schema(self) -> None:
        # Tables are created from supabase_schema.sql; only verify they are reachable.
        if not self.ping():
            raise StoreError("Supabase tables are not reachable; apply supabase_schema.sql first")

    def ping(self) -> bool:
        try:
            self.supabase.table("groups").select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.warning(f"Supabase ping failed: {e}")
            return False

    # Groups

    def list_groups(self) -> List[Dict[str, Any]]:
        return self.list_scope(Scope.groups())

    def get_group(self, group_id: int) -> Optional[Dict[str, Any]]:
        def fetch():
            result = self.supabase.table("groups").select(_GROUP_FIELDS).eq("id", group_id).limit(1).execute()
            return result.data[0] if result.data else None
        return self._run("load group", fetch)

    def create_group(self, name: str, order_num: Optional[int]) -> Dict[str, Any]:
        def insert():
            position = order_num
            if position is None:
                position = self._next_order(Scope.groups())
            now = utc_now()
            result = self.supabase.table("groups").insert({
                "name": name,
                "order_num": position,
                "created_at": now,
                "updated_at": now,
            }).execute()
            if not result.data:
                raise StoreError("Failed to create group")
            return result.data[0]
        return self._run("create group", insert)

    def update_group(self, group_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        update_data = {k: fields[k] for k in ("name", "order_num") if fields.get(k) is not None}
        update_data["updated_at"] = utc_now()

        def update():
            result = self.supabase.table("groups").update(update_data).eq("id", group_id).execute()
            return result.data[0] if result.data else None
        return self._run("update group", update)

    def delete_group(self, group_id: int) -> bool:
        # sites.group_id is declared ON DELETE CASCADE
        def delete():
            result = self.supabase.table("groups").delete().eq("id", group_id).execute()
            return len(result.data or []) > 0
        return self._run("delete group", delete)

    # Sites

    def list_sites(self, group_id: Optional[int] = None) -> List[Dict[str, Any]]:
        if group_id is not None:
            return self.list_scope(Scope.sites(group_id))

        def fetch():
            result = self.supabase.table("sites").select(_SITE_FIELDS)\
                .order("group_id")\
                .order("order_num")\
                .order("id")\
                .execute()
            return [_site(row) for row in result.data or []]
        return self._run("list sites", fetch)

    def get_site(self, site_id: int) -> Optional[Dict[str, Any]]:
        def fetch():
            result = self.supabase.table("sites").select(_SITE_FIELDS).eq("id", site_id).limit(1).execute()
            return _site(result.data[0]) if result.data else None
        return self._run("load site", fetch)

    def create_site(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        group_id = fields["group_id"]

        def insert():
            if self.get_group(group_id) is None:
                raise ValidationError(f"Group {group_id} does not exist")
            order_num = fields.get("order_num")
            if order_num is None:
                order_num = self._next_order(Scope.sites(group_id))
            now = utc_now()
            result = self.supabase.table("sites").insert({
                "group_id": group_id,
                "name": fields["name"],
                "url": fields["url"],
                "icon": fields.get("icon") or "",
                "description": fields.get("description") or "",
                "notes": fields.get("notes") or "",
                "order_num": order_num,
                "created_at": now,
                "updated_at": now,
            }).execute()
            if not result.data:
                raise StoreError("Failed to create site")
            return _site(result.data[0])
        return self._run("create site", insert)

    def update_site(self, site_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        allowed = ("group_id", "name", "url", "icon", "description", "notes", "order_num")
        update_data = {k: fields[k] for k in allowed if fields.get(k) is not None}

        def update():
            current = self.get_site(site_id)
            if current is None:
                return None
            new_group = update_data.get("group_id")
            if new_group is not None and new_group != current["group_id"]:
                if self.get_group(new_group) is None:
                    raise ValidationError(f"Group {new_group} does not exist")
                if "order_num" not in update_data:
                    update_data["order_num"] = self._next_order(Scope.sites(new_group))
            update_data["updated_at"] = utc_now()
            result = self.supabase.table("sites").update(update_data).eq("id", site_id).execute()
            return _site(result.data[0]) if result.data else None
        return self._run("update site", update)

    def delete_site(self, site_id: int) -> bool:
        def delete():
            result = self.supabase.table("sites").delete().eq("id", site_id).execute()
            return len(result.data or []) > 0
        return self._run("delete site", delete)

    # Ordering

    def list_scope(self, scope: Scope) -> List[Dict[str, Any]]:
        def fetch():
            if scope.table == "groups":
                query = self.supabase.table("groups").select(_GROUP_FIELDS)
            else:
                query = self.supabase.table("sites").select(_SITE_FIELDS).eq("group_id", scope.group_id)
            result = query.order("order_num").order("id").execute()
            rows = result.data or []
            return rows if scope.table == "groups" else [_site(r) for r in rows]
        return self._run(f"list {scope}", fetch)

    def max_order_num(self, scope: Scope) -> Optional[int]:
        return self._run(f"read max order of {scope}", lambda: self._max_order(scope))

    def apply_order(self, scope: Scope, assignments: Sequence[OrderAssignment]) -> None:
        payload = [{"id": a.id, "order_num": a.order_num} for a in assignments]
        try:
            self.supabase.rpc("apply_order", {
                "scope_table": scope.table,
                "scope_group_id": scope.group_id,
                "assignments": payload,
            }).execute()
        except Exception as e:
            if "reorder rejected" in str(e).lower():
                raise BatchError(str(e)) from e
            logger.exception("Supabase reorder of %s failed: %s", scope, e)
            raise StoreError(f"Failed to reorder {scope}") from e

    # Configs

    def list_configs(self) -> Dict[str, str]:
        def fetch():
            result = self.supabase.table("configs").select("key, value").order("key").execute()
            return {row["key"]: row["value"] for row in result.data or []}
        return self._run("list configs", fetch)

    def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        def fetch():
            result = self.supabase.table("configs")\
                .select("key, value, created_at, updated_at")\
                .eq("key", key)\
                .limit(1)\
                .execute()
            return result.data[0] if result.data else None
        return self._run("load config", fetch)

    def set_config(self, key: str, value: str) -> None:
        def upsert():
            self.supabase.table("configs").upsert({
                "key": key,
                "value": value,
                "updated_at": utc_now(),
            }, on_conflict="key").execute()
        self._run("save config", upsert)

    def delete_config(self, key: str) -> bool:
        def delete():
            result = self.supabase.table("configs").delete().eq("key", key).execute()
            return len(result.data or []) > 0
        return self._run("delete config", delete)

    # Helpers

    def _max_order(self, scope: Scope) -> Optional[int]:
        query = self.supabase.table(scope.table).select("order_num")
        if scope.table == "sites":
            query = query.eq("group_id", scope.group_id)
        result = query.order("order_num", desc=True).limit(1).execute()
        return result.data[0]["order_num"] if result.data else None

    def _next_order(self, scope: Scope) -> int:
        current = self._max_order(scope)
        return 0 if current is None else current + 1
