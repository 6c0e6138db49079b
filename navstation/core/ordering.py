"""
Ordering engine for groups (one global scope) and sites (one scope per group).

A reorder is a full or partial replacement of the scope's order_num assignment,
applied by the store as one all-or-nothing batch and followed by compaction to a
dense 0..n-1 sequence. Batches are validated fail-closed: a duplicate id, or an id
outside the scope, rejects the whole batch and nothing is written.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from navstation.core.exceptions import BatchError
from navstation.database.base import EntityStore, OrderAssignment, Scope

logger = logging.getLogger(__name__)


def to_assignments(items: Iterable[Any]) -> List[OrderAssignment]:
    """Accept OrderAssignment, pydantic models or dicts with id/order_num."""
    out = []
    for item in items:
        if isinstance(item, OrderAssignment):
            out.append(item)
        elif isinstance(item, dict):
            out.append(OrderAssignment(id=int(item["id"]), order_num=int(item["order_num"])))
        else:
            out.append(OrderAssignment(id=int(item.id), order_num=int(item.order_num)))
    return out


def assignments_from_ids(ids: Iterable[int]) -> List[OrderAssignment]:
    """Position is the index in the list."""
    return [OrderAssignment(id=int(entity_id), order_num=i) for i, entity_id in enumerate(ids)]


class OrderingEngine:
    def __init__(self, store: EntityStore):
        self.store = store

    def list_ordered(self, scope: Scope) -> List[Dict[str, Any]]:
        """Members of the scope by ascending order_num, ties broken by id."""
        return self.store.list_scope(scope)

    def append_position(self, scope: Scope) -> int:
        """Position that sorts after every current member: max(order_num) + 1, or 0 when empty."""
        current = self.store.max_order_num(scope)
        return 0 if current is None else int(current) + 1

    def reorder(self, scope: Scope, assignments: Iterable[Any]) -> None:
        """
        Apply order_num assignments to members of scope as a single batch.

        Raises BatchError when the batch is rejected; in that case no row changed.
        An empty batch is a successful no-op.
        """
        batch = to_assignments(assignments)
        if not batch:
            logger.debug(f"Empty reorder batch for {scope}; nothing to do")
            return
        seen = set()
        for a in batch:
            if a.id in seen:
                logger.warning(f"Rejected reorder of {scope}: id {a.id} listed twice")
                raise BatchError(f"Duplicate id {a.id} in reorder batch", entity_id=a.id)
            seen.add(a.id)
        try:
            self.store.apply_order(scope, batch)
        except BatchError as e:
            logger.warning(f"Rejected reorder of {scope}: {e.message}")
            raise
        logger.info(f"Reordered {scope}: {len(batch)} assignment(s)")

    def reorder_groups(self, assignments: Iterable[Any]) -> None:
        self.reorder(Scope.groups(), assignments)

    def resolve_site_scope(self, assignments: List[OrderAssignment], group_id: Optional[int] = None) -> Scope:
        """
        Scope for a site batch: the explicit group, else the group of the first listed site.

        The store still checks every listed site against the resolved group inside the
        batch transaction, so a batch spanning two groups is rejected there.
        """
        if group_id is not None:
            return Scope.sites(group_id)
        first = self.store.get_site(assignments[0].id)
        if first is None:
            logger.warning(f"Rejected site reorder: site {assignments[0].id} does not exist")
            raise BatchError(f"Site {assignments[0].id} does not exist", entity_id=assignments[0].id)
        return Scope.sites(first["group_id"])

    def reorder_sites(self, assignments: Iterable[Any], group_id: Optional[int] = None) -> None:
        batch = to_assignments(assignments)
        if not batch:
            return
        self.reorder(self.resolve_site_scope(batch, group_id), batch)
