import logging
from typing import List, Optional

from navstation.database.base import EntityStore
from navstation.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupWithSitesResponse
)
from navstation.modules.sites.schemas import SiteResponse

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, store: EntityStore):
        self.store = store

    def list_groups(self) -> List[GroupResponse]:
        """All groups ordered by order_num, then id"""
        return [GroupResponse(**row) for row in self.store.list_groups()]

    def list_groups_with_sites(self) -> List[GroupWithSitesResponse]:
        """Groups in order, each with its sites in order"""
        by_group = {}
        for row in self.store.list_sites():
            by_group.setdefault(row["group_id"], []).append(SiteResponse(**row))
        for sites in by_group.values():
            sites.sort(key=lambda s: (s.order_num, s.id))
        return [
            GroupWithSitesResponse(**row, sites=by_group.get(row["id"], []))
            for row in self.store.list_groups()
        ]

    def get_group(self, group_id: int) -> Optional[GroupResponse]:
        row = self.store.get_group(group_id)
        return GroupResponse(**row) if row else None

    def create_group(self, group_data: GroupCreate) -> GroupResponse:
        row = self.store.create_group(group_data.name, group_data.order_num)
        logger.info(f"Created group {row['id']} '{row['name']}' at position {row['order_num']}")
        return GroupResponse(**row)

    def update_group(self, group_id: int, group_data: GroupUpdate) -> Optional[GroupResponse]:
        row = self.store.update_group(group_id, group_data.model_dump(exclude_none=True))
        return GroupResponse(**row) if row else None

    def delete_group(self, group_id: int) -> bool:
        """Delete group and, by cascade, its sites"""
        deleted = self.store.delete_group(group_id)
        if deleted:
            logger.info(f"Deleted group {group_id} and its sites")
        return deleted
