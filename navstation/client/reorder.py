"""
Staged drag-and-drop reordering for the dashboard.

The controller keeps the committed groups/sites as last fetched from the API and,
while a reorder session is open, a separate staged copy of exactly one scope:
the group list (GroupReordering) or the sites of one group (SiteReordering).
Drags permute only the staged copy. Save sends the staged order as one batch and
re-fetches; Cancel drops the staged copy without talking to the server.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from navstation.client.api_client import ApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class GroupReordering:
    staged: Tuple[Dict[str, Any], ...]


@dataclass(frozen=True)
class SiteReordering:
    group_id: int
    staged: Tuple[Dict[str, Any], ...]


ReorderMode = Union[Idle, GroupReordering, SiteReordering]


class ReorderStateError(RuntimeError):
    """The requested action is not allowed in the current mode."""


class ReorderSaveError(RuntimeError):
    """Persisting the staged order failed; the controller is back to Idle with fresh data."""


def array_move(items: Tuple[Any, ...], old_index: int, new_index: int) -> Tuple[Any, ...]:
    """Move items[old_index] to new_index, shifting the elements in between."""
    n = len(items)
    if not (0 <= old_index < n and 0 <= new_index < n):
        raise IndexError(f"move {old_index} -> {new_index} out of range for {n} item(s)")
    moved = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return tuple(moved)


class ReorderController:
    """
    Three-state machine: Idle, GroupReordering(staged), SiteReordering(group_id, staged).

    `client` is a NavigationClient or MockNavigationClient; the host picks which.
    Network calls are the only suspension points, and committed data is replaced
    in one assignment once a fetch completes.
    """

    def __init__(self, client):
        self.client = client
        self.mode: ReorderMode = Idle()
        self.groups: List[Dict[str, Any]] = []
        self.dragging = False
        self.error: Optional[str] = None
        self._save_task: Optional[asyncio.Task] = None

    # Committed data

    async def refresh(self) -> None:
        """Fetch committed groups and sites."""
        groups = await self.client.get_groups()
        sites = await self.client.get_sites()
        by_group: Dict[int, List[Dict[str, Any]]] = {}
        for site in sites:
            by_group.setdefault(site["group_id"], []).append(site)
        for members in by_group.values():
            members.sort(key=lambda s: (s["order_num"], s["id"]))
        self.groups = [{**g, "sites": by_group.get(g["id"], [])} for g in groups]

    def committed_group(self, group_id: int) -> Optional[Dict[str, Any]]:
        return next((g for g in self.groups if g["id"] == group_id), None)

    # What the view renders

    @property
    def is_idle(self) -> bool:
        return isinstance(self.mode, Idle)

    @property
    def is_saving(self) -> bool:
        return self._save_task is not None and not self._save_task.done()

    @property
    def can_save(self) -> bool:
        return not self.is_idle and not self.dragging and not self.is_saving

    def can_start_site_reorder(self, group_id: int) -> bool:
        return self.is_idle and self.committed_group(group_id) is not None

    def displayed_groups(self) -> List[Dict[str, Any]]:
        if isinstance(self.mode, GroupReordering):
            return list(self.mode.staged)
        return list(self.groups)

    def displayed_sites(self, group_id: int) -> List[Dict[str, Any]]:
        """Staged sites for the group being reordered; other groups' sites are hidden meanwhile."""
        if isinstance(self.mode, SiteReordering):
            return list(self.mode.staged) if self.mode.group_id == group_id else []
        group = self.committed_group(group_id)
        return list(group["sites"]) if group else []

    # Transitions

    def start_group_reorder(self) -> None:
        self._require_idle()
        self.error = None
        self.mode = GroupReordering(staged=tuple(dict(g) for g in self.groups))

    def start_site_reorder(self, group_id: int) -> None:
        self._require_idle()
        group = self.committed_group(group_id)
        if group is None:
            raise ReorderStateError(f"Unknown group {group_id}")
        self.error = None
        self.mode = SiteReordering(group_id=group_id, staged=tuple(dict(s) for s in group["sites"]))

    def begin_drag(self) -> None:
        self._require_editable()
        self.dragging = True

    def end_drag(self, old_index: int, new_index: Optional[int]) -> None:
        """Finish a drag; new_index None means it was dropped outside the list."""
        self._require_session()
        self.dragging = False
        if new_index is not None and new_index != old_index:
            self.move(old_index, new_index)

    def move(self, old_index: int, new_index: int) -> None:
        self._require_editable()
        if isinstance(self.mode, GroupReordering):
            self.mode = GroupReordering(staged=array_move(self.mode.staged, old_index, new_index))
        else:
            self.mode = SiteReordering(
                group_id=self.mode.group_id,
                staged=array_move(self.mode.staged, old_index, new_index),
            )

    def staged_assignments(self) -> List[Dict[str, int]]:
        self._require_session()
        return [{"id": item["id"], "order_num": i} for i, item in enumerate(self.mode.staged)]

    async def save(self) -> None:
        """
        Persist the staged order, then re-fetch and return to Idle.

        Raises ReorderSaveError if the server did not apply the batch; committed
        data is re-fetched either way so the view never shows an unsaved order.
        """
        if self.is_idle:
            raise ReorderStateError("No reorder in progress")
        if self.dragging:
            raise ReorderStateError("Cannot save while a drag is in progress")
        if self.is_saving:
            raise ReorderStateError("A save is already in progress")
        self._save_task = asyncio.ensure_future(self._persist(self.mode))
        try:
            await self._save_task
        finally:
            self._save_task = None

    async def _persist(self, mode: ReorderMode) -> None:
        assignments = [{"id": item["id"], "order_num": i} for i, item in enumerate(mode.staged)]
        try:
            try:
                if isinstance(mode, GroupReordering):
                    await self.client.update_group_order(assignments)
                else:
                    await self.client.update_site_order(assignments, group_id=mode.group_id)
            except Exception as e:
                detail = e.detail if isinstance(e, ApiError) else str(e) or e.__class__.__name__
                logger.warning(f"Saving order failed: {detail}")
                self.error = detail
                try:
                    await self.refresh()
                except Exception as refresh_error:
                    logger.warning(f"Refresh after failed save also failed: {refresh_error}")
                raise ReorderSaveError(detail) from e
            await self.refresh()
        finally:
            self._leave_session()

    async def cancel(self) -> None:
        """
        Drop the staged order without any server call.

        If a save is already in flight its outcome decides the state, so this waits
        for it instead of discarding an order that may have been committed.
        """
        if self._save_task is not None and not self._save_task.done():
            await asyncio.wait({self._save_task})
            return
        self._leave_session()

    def _leave_session(self) -> None:
        self.mode = Idle()
        self.dragging = False

    def _require_idle(self) -> None:
        if not self.is_idle:
            raise ReorderStateError("Another reorder session is already open")

    def _require_session(self) -> None:
        if self.is_idle:
            raise ReorderStateError("No reorder in progress")

    def _require_editable(self) -> None:
        self._require_session()
        if self.is_saving:
            raise ReorderStateError("The staged order is being saved")
