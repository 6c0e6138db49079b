from fastapi import APIRouter, Depends, Query
from navstation.core.dependencies import get_store, require_auth
from navstation.database.base import EntityStore
from navstation.modules.sites.schemas import SiteCreate, SiteUpdate, SiteResponse
from navstation.modules.sites.service import SiteService
from typing import List, Optional

router = APIRouter(prefix="/sites", tags=["sites"], dependencies=[Depends(require_auth)])


def get_site_service(store: EntityStore = Depends(get_store)) -> SiteService:
    return SiteService(store)


@router.get("", response_model=List[SiteResponse])
async def list_sites(
    group_id: Optional[int] = Query(None, alias="groupId"),
    service: SiteService = Depends(get_site_service)
):
    """List sites, filtered to one group when groupId is given"""
    return service.list_sites(group_id)


@router.get("/{site_id}", response_model=Optional[SiteResponse])
async def get_site(site_id: int, service: SiteService = Depends(get_site_service)):
    """Get site by ID (null when it does not exist)"""
    return service.get_site(site_id)


@router.post("", response_model=SiteResponse)
async def create_site(site_data: SiteCreate, service: SiteService = Depends(get_site_service)):
    """Create a site in an existing group; appended to the group without order_num"""
    return service.create_site(site_data)


@router.put("/{site_id}", response_model=Optional[SiteResponse])
async def update_site(
    site_id: int,
    site_data: SiteUpdate,
    service: SiteService = Depends(get_site_service)
):
    """Edit fields or move the site to another group (null when it does not exist)"""
    return service.update_site(site_id, site_data)


@router.delete("/{site_id}")
async def delete_site(site_id: int, service: SiteService = Depends(get_site_service)):
    """Delete a site"""
    return {"success": service.delete_site(site_id)}
