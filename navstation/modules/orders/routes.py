from fastapi import APIRouter, Depends, Query
from navstation.core.dependencies import get_ordering_engine, require_auth
from navstation.core.exceptions import BatchError
from navstation.core.ordering import OrderingEngine
from navstation.modules.orders.schemas import OrderItem, OrderResult
from typing import List, Optional

router = APIRouter(tags=["orders"], dependencies=[Depends(require_auth)])


@router.put("/group-orders", response_model=OrderResult)
async def update_group_orders(
    items: List[OrderItem],
    engine: OrderingEngine = Depends(get_ordering_engine)
):
    """Apply a group reorder batch atomically; success=false means nothing was written"""
    try:
        engine.reorder_groups(items)
    except BatchError:
        return OrderResult(success=False)
    return OrderResult(success=True)


@router.put("/site-orders", response_model=OrderResult)
async def update_site_orders(
    items: List[OrderItem],
    group_id: Optional[int] = Query(None, alias="groupId"),
    engine: OrderingEngine = Depends(get_ordering_engine)
):
    """Apply a site reorder batch atomically; every site must belong to one group"""
    try:
        engine.reorder_sites(items, group_id=group_id)
    except BatchError:
        return OrderResult(success=False)
    return OrderResult(success=True)
