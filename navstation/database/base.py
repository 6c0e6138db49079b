from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

GROUP_COLUMNS = ("id", "name", "order_num", "created_at", "updated_at")
SITE_COLUMNS = (
    "id", "group_id", "name", "url", "icon", "description", "notes",
    "order_num", "created_at", "updated_at",
)
SITE_TEXT_FIELDS = ("icon", "description", "notes")


@dataclass(frozen=True)
class Scope:
    """Sibling set an ordering is defined over: all groups, or the sites of one group."""
    table: str
    group_id: Optional[int] = None

    @classmethod
    def groups(cls) -> "Scope":
        return cls("groups")

    @classmethod
    def sites(cls, group_id: int) -> "Scope":
        return cls("sites", int(group_id))

    def __str__(self) -> str:
        if self.table == "groups":
            return "groups"
        return f"sites(group_id={self.group_id})"


@dataclass(frozen=True)
class OrderAssignment:
    id: int
    order_num: int


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class EntityStore(ABC):
    """
    Persistent groups / sites / configs.

    Every method is one logical transaction: callers never observe a half-applied
    multi-row write. Lookups by id return None (or False for deletes) when the row
    does not exist.
    """

    @abstractmethod
    def init_schema(self) -> None: ...

    @abstractmethod
    def ping(self) -> bool: ...

    # Groups
    @abstractmethod
    def list_groups(self) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_group(self, group_id: int) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def create_group(self, name: str, order_num: Optional[int]) -> Dict[str, Any]:
        """Insert a group; order_num=None appends it after the current last group."""

    @abstractmethod
    def update_group(self, group_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def delete_group(self, group_id: int) -> bool:
        """Delete a group and, by cascade, all of its sites."""

    # Sites
    @abstractmethod
    def list_sites(self, group_id: Optional[int] = None) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_site(self, site_id: int) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def create_site(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a site; a missing order_num appends it within its group."""

    @abstractmethod
    def update_site(self, site_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a site; moving it to another group without order_num appends it there."""

    @abstractmethod
    def delete_site(self, site_id: int) -> bool: ...

    # Ordering primitives
    @abstractmethod
    def list_scope(self, scope: Scope) -> List[Dict[str, Any]]:
        """Rows of the scope sorted by (order_num, id)."""

    @abstractmethod
    def max_order_num(self, scope: Scope) -> Optional[int]: ...

    @abstractmethod
    def apply_order(self, scope: Scope, assignments: Sequence[OrderAssignment]) -> None:
        """
        Write order_num for every assignment, then compact the scope to 0..n-1.

        All-or-nothing: raises BatchError and writes nothing if any id is not a
        member of the scope.
        """

    # Configs
    @abstractmethod
    def list_configs(self) -> Dict[str, str]: ...

    @abstractmethod
    def get_config(self, key: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def set_config(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete_config(self, key: str) -> bool: ...

    def close(self) -> None:
        pass
