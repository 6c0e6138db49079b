import logging
from typing import List, Optional

from navstation.database.base import EntityStore
from navstation.modules.sites.schemas import SiteCreate, SiteUpdate, SiteResponse

logger = logging.getLogger(__name__)


class SiteService:
    def __init__(self, store: EntityStore):
        self.store = store

    def list_sites(self, group_id: Optional[int] = None) -> List[SiteResponse]:
        """Sites of one group in order, or all sites grouped by group_id"""
        return [SiteResponse(**row) for row in self.store.list_sites(group_id)]

    def get_site(self, site_id: int) -> Optional[SiteResponse]:
        row = self.store.get_site(site_id)
        return SiteResponse(**row) if row else None

    def create_site(self, site_data: SiteCreate) -> SiteResponse:
        row = self.store.create_site(site_data.model_dump())
        logger.info(f"Created site {row['id']} in group {row['group_id']} at position {row['order_num']}")
        return SiteResponse(**row)

    def update_site(self, site_id: int, site_data: SiteUpdate) -> Optional[SiteResponse]:
        row = self.store.update_site(site_id, site_data.model_dump(exclude_none=True))
        return SiteResponse(**row) if row else None

    def delete_site(self, site_id: int) -> bool:
        return self.store.delete_site(site_id)
