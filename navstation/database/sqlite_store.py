import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from navstation.core.exceptions import BatchError, StoreError, ValidationError
from navstation.database.base import (
    GROUP_COLUMNS, SITE_COLUMNS, SITE_TEXT_FIELDS,
    EntityStore, OrderAssignment, Scope, utc_now,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS groups (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  order_num INTEGER NOT NULL,
  created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS sites (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  group_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  url TEXT NOT NULL,
  icon TEXT NOT NULL DEFAULT '',
  description TEXT NOT NULL DEFAULT '',
  notes TEXT NOT NULL DEFAULT '',
  order_num INTEGER NOT NULL,
  created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (group_id) REFERENCES groups(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_sites_group_order ON sites(group_id, order_num);

CREATE TABLE IF NOT EXISTS configs (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

_GROUP_SELECT = f"SELECT {', '.join(GROUP_COLUMNS)} FROM groups"
_SITE_SELECT = f"SELECT {', '.join(SITE_COLUMNS)} FROM sites"


def ensure_parent_dir(path: str) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)


def _site_row(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    site = dict(row)
    for key in SITE_TEXT_FIELDS:
        if site.get(key) is None:
            site[key] = ""
    return site


def _scope_filter(scope: Scope) -> tuple:
    if scope.table == "groups":
        return "groups", "", ()
    if scope.table == "sites":
        return "sites", " WHERE group_id = ?", (scope.group_id,)
    raise ValueError(f"Unknown scope table: {scope.table}")


class SQLiteStore(EntityStore):
    """EntityStore on a local SQLite file; one connection per call, one transaction per write."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        ensure_parent_dir(self.db_path)
        conn = sqlite3.connect(self.db_path, timeout=10, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
        except sqlite3.Error as e:
            logger.exception("SQLite write failed: %s", e)
            raise StoreError("Database write failed") from e

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._connect() as conn:
                yield conn
        except sqlite3.Error as e:
            logger.exception("SQLite read failed: %s", e)
            raise StoreError("Database read failed") from e

    def init_schema(self) -> None:
        with self._read() as conn:
            conn.executescript(SCHEMA)
        logger.info("SQLite schema ready at %s", self.db_path)

    def ping(self) -> bool:
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False

    # Groups

    def list_groups(self) -> List[Dict[str, Any]]:
        return self.list_scope(Scope.groups())

    def get_group(self, group_id: int) -> Optional[Dict[str, Any]]:
        with self._read() as conn:
            row = conn.execute(f"{_GROUP_SELECT} WHERE id = ?", (group_id,)).fetchone()
        return dict(row) if row else None

    def create_group(self, name: str, order_num: Optional[int]) -> Dict[str, Any]:
        now = utc_now()
        with self._transaction() as conn:
            if order_num is None:
                order_num = self._next_order(conn, Scope.groups())
            cur = conn.execute(
                "INSERT INTO groups (name, order_num, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (name, order_num, now, now),
            )
            row = conn.execute(f"{_GROUP_SELECT} WHERE id = ?", (cur.lastrowid,)).fetchone()
        return dict(row)

    def update_group(self, group_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._transaction() as conn:
            if not self._update_row(conn, "groups", group_id, fields, ("name", "order_num")):
                return None
            row = conn.execute(f"{_GROUP_SELECT} WHERE id = ?", (group_id,)).fetchone()
        return dict(row)

    def delete_group(self, group_id: int) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM groups WHERE id = ?", (group_id,))
            deleted = cur.rowcount > 0
        return deleted

    # Sites

    def list_sites(self, group_id: Optional[int] = None) -> List[Dict[str, Any]]:
        if group_id is not None:
            return self.list_scope(Scope.sites(group_id))
        with self._read() as conn:
            rows = conn.execute(f"{_SITE_SELECT} ORDER BY group_id, order_num, id").fetchall()
        return [_site_row(r) for r in rows]

    def get_site(self, site_id: int) -> Optional[Dict[str, Any]]:
        with self._read() as conn:
            row = conn.execute(f"{_SITE_SELECT} WHERE id = ?", (site_id,)).fetchone()
        return _site_row(row)

    def create_site(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        group_id = fields["group_id"]
        with self._transaction() as conn:
            self._require_group(conn, group_id)
            order_num = fields.get("order_num")
            if order_num is None:
                order_num = self._next_order(conn, Scope.sites(group_id))
            cur = conn.execute(
                "INSERT INTO sites (group_id, name, url, icon, description, notes, order_num, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    group_id,
                    fields["name"],
                    fields["url"],
                    fields.get("icon") or "",
                    fields.get("description") or "",
                    fields.get("notes") or "",
                    order_num,
                    now,
                    now,
                ),
            )
            row = conn.execute(f"{_SITE_SELECT} WHERE id = ?", (cur.lastrowid,)).fetchone()
        return _site_row(row)

    def update_site(self, site_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        fields = dict(fields)
        with self._transaction() as conn:
            current = conn.execute("SELECT group_id FROM sites WHERE id = ?", (site_id,)).fetchone()
            if current is None:
                return None
            new_group = fields.get("group_id")
            if new_group is not None and new_group != current["group_id"]:
                self._require_group(conn, new_group)
                if fields.get("order_num") is None:
                    fields["order_num"] = self._next_order(conn, Scope.sites(new_group))
            allowed = ("group_id", "name", "url", "icon", "description", "notes", "order_num")
            self._update_row(conn, "sites", site_id, fields, allowed)
            row = conn.execute(f"{_SITE_SELECT} WHERE id = ?", (site_id,)).fetchone()
        return _site_row(row)

    def delete_site(self, site_id: int) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM sites WHERE id = ?", (site_id,))
            deleted = cur.rowcount > 0
        return deleted

    # Ordering

    def list_scope(self, scope: Scope) -> List[Dict[str, Any]]:
        table, where, params = _scope_filter(scope)
        select = _GROUP_SELECT if table == "groups" else _SITE_SELECT
        with self._read() as conn:
            rows = conn.execute(f"{select}{where} ORDER BY order_num, id", params).fetchall()
        if table == "groups":
            return [dict(r) for r in rows]
        return [_site_row(r) for r in rows]

    def max_order_num(self, scope: Scope) -> Optional[int]:
        table, where, params = _scope_filter(scope)
        with self._read() as conn:
            row = conn.execute(f"SELECT MAX(order_num) AS m FROM {table}{where}", params).fetchone()
        return row["m"]

    def apply_order(self, scope: Scope, assignments: Sequence[OrderAssignment]) -> None:
        table, where, params = _scope_filter(scope)
        now = utc_now()
        with self._transaction() as conn:
            members = {r["id"] for r in conn.execute(f"SELECT id FROM {table}{where}", params)}
            for a in assignments:
                if a.id not in members:
                    raise BatchError(f"{table} row {a.id} is not part of {scope}", entity_id=a.id)
            for a in assignments:
                conn.execute(
                    f"UPDATE {table} SET order_num = ?, updated_at = ? WHERE id = ?",
                    (a.order_num, now, a.id),
                )
            rows = conn.execute(f"SELECT id, order_num FROM {table}{where} ORDER BY order_num, id", params).fetchall()
            for position, row in enumerate(rows):
                if row["order_num"] != position:
                    conn.execute(
                        f"UPDATE {table} SET order_num = ?, updated_at = ? WHERE id = ?",
                        (position, now, row["id"]),
                    )

    # Configs

    def list_configs(self) -> Dict[str, str]:
        with self._read() as conn:
            rows = conn.execute("SELECT key, value FROM configs ORDER BY key").fetchall()
        return {r["key"]: r["value"] for r in rows}

    def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        with self._read() as conn:
            row = conn.execute(
                "SELECT key, value, created_at, updated_at FROM configs WHERE key = ?", (key,)
            ).fetchone()
        return dict(row) if row else None

    def set_config(self, key: str, value: str) -> None:
        now = utc_now()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO configs (key, value, created_at, updated_at) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, value, now, now),
            )

    def delete_config(self, key: str) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM configs WHERE key = ?", (key,))
            deleted = cur.rowcount > 0
        return deleted

    # Helpers

    def _next_order(self, conn: sqlite3.Connection, scope: Scope) -> int:
        table, where, params = _scope_filter(scope)
        row = conn.execute(f"SELECT MAX(order_num) AS m FROM {table}{where}", params).fetchone()
        return 0 if row["m"] is None else int(row["m"]) + 1

    def _require_group(self, conn: sqlite3.Connection, group_id: int) -> None:
        if conn.execute("SELECT 1 FROM groups WHERE id = ?", (group_id,)).fetchone() is None:
            raise ValidationError(f"Group {group_id} does not exist")

    def _update_row(
        self,
        conn: sqlite3.Connection,
        table: str,
        row_id: int,
        fields: Dict[str, Any],
        allowed: Sequence[str],
    ) -> bool:
        sets = ["updated_at = ?"]
        params: List[Any] = [utc_now()]
        for key in allowed:
            if key in fields and fields[key] is not None:
                sets.append(f"{key} = ?")
                params.append(fields[key])
        params.append(row_id)
        cur = conn.execute(f"UPDATE {table} SET {', '.join(sets)} WHERE id = ?", params)
        return cur.rowcount > 0
