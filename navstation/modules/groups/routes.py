from fastapi import APIRouter, Depends
from navstation.core.dependencies import get_store, require_auth
from navstation.database.base import EntityStore
from navstation.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupWithSitesResponse
)
from navstation.modules.groups.service import GroupService
from typing import List, Optional

router = APIRouter(tags=["groups"], dependencies=[Depends(require_auth)])


def get_group_service(store: EntityStore = Depends(get_store)) -> GroupService:
    return GroupService(store)


@router.get("/groups", response_model=List[GroupResponse])
async def list_groups(service: GroupService = Depends(get_group_service)):
    """List all groups ordered by order_num"""
    return service.list_groups()


@router.get("/groups-with-sites", response_model=List[GroupWithSitesResponse])
async def list_groups_with_sites(service: GroupService = Depends(get_group_service)):
    """List all groups in order, each with its ordered sites"""
    return service.list_groups_with_sites()


@router.get("/groups/{group_id}", response_model=Optional[GroupResponse])
async def get_group(group_id: int, service: GroupService = Depends(get_group_service)):
    """Get group by ID (null when it does not exist)"""
    return service.get_group(group_id)


@router.post("/groups", response_model=GroupResponse)
async def create_group(group_data: GroupCreate, service: GroupService = Depends(get_group_service)):
    """Create a group; without order_num it is appended after the last group"""
    return service.create_group(group_data)


@router.put("/groups/{group_id}", response_model=Optional[GroupResponse])
async def update_group(
    group_id: int,
    group_data: GroupUpdate,
    service: GroupService = Depends(get_group_service)
):
    """Rename or reposition a group (null when it does not exist)"""
    return service.update_group(group_id, group_data)


@router.delete("/groups/{group_id}")
async def delete_group(group_id: int, service: GroupService = Depends(get_group_service)):
    """Delete a group together with its sites"""
    return {"success": service.delete_group(group_id)}
