"""
Tests for SupabaseStore against a mocked supabase client.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from navstation.core.exceptions import BatchError, StoreError, ValidationError
from navstation.database.base import OrderAssignment, Scope
from navstation.database.supabase_store import SupabaseStore


class FakeQuery:
    """PostgREST-style builder: every filter returns the query, execute() returns the canned rows."""

    def __init__(self, data=None, error=None):
        self.data = data if data is not None else []
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data)


@pytest.fixture
def supabase():
    return MagicMock()


@pytest.fixture
def store(supabase):
    return SupabaseStore(supabase)


class TestReads:
    def test_get_group_missing(self, store, supabase):
        supabase.table.return_value = FakeQuery([])
        assert store.get_group(7) is None
        supabase.table.assert_called_with("groups")

    def test_get_site_fills_text_defaults(self, store, supabase):
        row = {"id": 1, "group_id": 1, "name": "A", "url": "https://a.example",
               "icon": None, "description": None, "notes": None, "order_num": 0}
        supabase.table.return_value = FakeQuery([row])
        site = store.get_site(1)
        assert (site["icon"], site["description"], site["notes"]) == ("", "", "")

    def test_list_scope_orders_by_position_then_id(self, store, supabase):
        query = FakeQuery([])
        supabase.table.return_value = query
        store.list_scope(Scope.sites(3))
        assert ("eq", ("group_id", 3), {}) in query.calls
        orders = [args for name, args, _ in query.calls if name == "order"]
        assert orders == [("order_num",), ("id",)]

    def test_backend_failure_becomes_store_error(self, store, supabase):
        supabase.table.return_value = FakeQuery(error=RuntimeError("connection reset"))
        with pytest.raises(StoreError):
            store.list_groups()

    def test_ping(self, store, supabase):
        supabase.table.return_value = FakeQuery([])
        assert store.ping() is True
        supabase.table.return_value = FakeQuery(error=RuntimeError("down"))
        assert store.ping() is False


class TestWrites:
    def test_create_group_appends(self, store, supabase):
        max_query = FakeQuery([{"order_num": 4}])
        insert_query = FakeQuery([{"id": 9, "name": "A", "order_num": 5}])
        supabase.table.side_effect = [max_query, insert_query]

        group = store.create_group("A", None)

        assert group["order_num"] == 5
        inserted = [args[0] for name, args, _ in insert_query.calls if name == "insert"][0]
        assert inserted["order_num"] == 5

    def test_create_site_in_missing_group(self, store, supabase):
        supabase.table.return_value = FakeQuery([])
        with pytest.raises(ValidationError):
            store.create_site({"group_id": 1, "name": "A", "url": "https://a.example"})

    def test_delete_reports_whether_a_row_went(self, store, supabase):
        supabase.table.return_value = FakeQuery([{"id": 1}])
        assert store.delete_group(1) is True
        supabase.table.return_value = FakeQuery([])
        assert store.delete_site(1) is False

    def test_set_config_upserts_on_key(self, store, supabase):
        query = FakeQuery([])
        supabase.table.return_value = query
        store.set_config("title", "Home")
        name, args, kwargs = next(c for c in query.calls if c[0] == "upsert")
        assert args[0]["key"] == "title" and args[0]["value"] == "Home"
        assert kwargs == {"on_conflict": "key"}


class TestApplyOrder:
    def test_sends_whole_batch_to_rpc(self, store, supabase):
        supabase.rpc.return_value = FakeQuery([])
        store.apply_order(Scope.sites(2), [OrderAssignment(5, 0), OrderAssignment(4, 1)])
        supabase.rpc.assert_called_once_with("apply_order", {
            "scope_table": "sites",
            "scope_group_id": 2,
            "assignments": [{"id": 5, "order_num": 0}, {"id": 4, "order_num": 1}],
        })

    def test_rejection_becomes_batch_error(self, store, supabase):
        supabase.rpc.return_value = FakeQuery(error=RuntimeError("reorder rejected: id 9 not in scope"))
        with pytest.raises(BatchError):
            store.apply_order(Scope.groups(), [OrderAssignment(9, 0)])

    def test_other_failure_becomes_store_error(self, store, supabase):
        supabase.rpc.return_value = FakeQuery(error=RuntimeError("timeout"))
        with pytest.raises(StoreError):
            store.apply_order(Scope.groups(), [OrderAssignment(1, 0)])
