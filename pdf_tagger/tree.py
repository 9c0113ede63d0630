"""Structure tree builder.

Nodes live in an arena (a list) and refer to their parent by handle, so the
cursor can climb in O(1) without owning references. Marked-content regions
are allocated from the page service one leaf at a time, and at most one
region is open on the page at any moment.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional, Protocol

from .errors import CursorUnderflow, RegionAllocationFailure, RegionStateError
from .types import Rectangle, Role, StructureNode

logger = logging.getLogger(__name__)

ROOT = 0


class PageService(Protocol):
    def page_width(self) -> float: ...

    def page_height(self) -> float: ...

    def next_region_id(self) -> int: ...

    def begin_region(self, role: str, region_id: int) -> None: ...

    def end_region(self) -> None: ...

    def attach_structure_root(self, tree: "TagTreeBuilder") -> None: ...


class Canvas(Protocol):
    def draw_outline(self, rect: Rectangle) -> None: ...


class TagTreeBuilder:
    def __init__(self, page: PageService):
        self.page = page
        self.nodes: List[StructureNode] = [StructureNode(handle=ROOT, role=Role.DOCUMENT, parent=None)]
        self._cursor = ROOT
        self._active_region: Optional[int] = None
        self._last_region: Optional[int] = None
        self._pending_region: Optional[int] = None
        self.canvas_failures = 0

    # -- cursor -----------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def root(self) -> int:
        return ROOT

    def move_to(self, handle: int) -> None:
        self._check_handle(handle)
        self._cursor = handle

    def move_to_parent(self) -> None:
        parent = self.nodes[self._cursor].parent
        if parent is None:
            raise CursorUnderflow("cursor is already at the Document root")
        self._cursor = parent

    def move_to_root(self) -> None:
        self._cursor = ROOT

    # -- construction -----------------------------------------------------

    def add_child(
        self,
        role: Role,
        text: Optional[str] = None,
        block_id: Optional[str] = None,
        rect: Optional[Rectangle] = None,
    ) -> int:
        """Append a new node as the last child of the cursor and return its handle."""
        if self._active_region is not None:
            raise RegionStateError(
                f"cannot open {role.value} while region {self._active_region} is active", block_id=block_id
            )
        handle = len(self.nodes)
        self.nodes.append(
            StructureNode(handle=handle, role=role, parent=self._cursor, text=text, block_id=block_id, rect=rect)
        )
        self.nodes[self._cursor].children.append(handle)
        return handle

    def allocate_region(self, block_id: Optional[str] = None) -> int:
        try:
            region_id = self.page.next_region_id()
        except Exception as exc:
            raise RegionAllocationFailure(f"page refused a region id: {exc}", block_id=block_id) from exc
        if not isinstance(region_id, int) or isinstance(region_id, bool):
            raise RegionAllocationFailure(f"page returned a non-integer region id {region_id!r}", block_id=block_id)
        if self._last_region is not None and region_id <= self._last_region:
            raise RegionAllocationFailure(
                f"region id {region_id} does not follow {self._last_region}", block_id=block_id
            )
        self._last_region = region_id
        self._pending_region = region_id
        return region_id

    def add_leaf(
        self,
        role: Role,
        region_id: int,
        rect: Rectangle,
        text: Optional[str] = None,
        block_id: Optional[str] = None,
        canvas: Optional[Canvas] = None,
    ) -> int:
        """Create a content leaf under the cursor and emit its marked-content region."""
        if region_id is None or region_id != self._pending_region:
            raise RegionStateError(f"region id {region_id} was not freshly allocated", block_id=block_id)
        handle = self.add_child(role, text=text, block_id=block_id, rect=rect)
        self._pending_region = None
        self.nodes[handle].region_id = region_id

        self.page.begin_region(role.value, region_id)
        self._active_region = region_id
        try:
            self._draw(canvas, rect)
        finally:
            self.page.end_region()
            self._active_region = None
        logger.debug("tagged %s mcid=%d under %s", role.value, region_id, self.nodes[self._cursor].role.value)
        return handle

    def outline(self, rect: Rectangle, canvas: Optional[Canvas] = None) -> None:
        """Draw a debug outline outside of any region (container blocks)."""
        self._draw(canvas, rect)

    def _draw(self, canvas: Optional[Canvas], rect: Rectangle) -> None:
        if canvas is None:
            return
        try:
            canvas.draw_outline(rect)
        except Exception as exc:
            self.canvas_failures += 1
            logger.warning("debug outline failed at %s: %s", rect.as_tuple(), exc)

    def attach(self) -> None:
        self.page.attach_structure_root(self)

    # -- inspection -------------------------------------------------------

    def node(self, handle: int) -> StructureNode:
        self._check_handle(handle)
        return self.nodes[handle]

    def children(self, handle: int) -> List[StructureNode]:
        return [self.nodes[h] for h in self.node(handle).children]

    def walk(self, handle: int = ROOT) -> Iterator[StructureNode]:
        """Depth-first, reading order."""
        stack = [handle]
        while stack:
            n = self.nodes[stack.pop()]
            yield n
            stack.extend(reversed(n.children))

    def find(self, role: Role) -> List[StructureNode]:
        return [n for n in self.walk() if n.role == role]

    def region_ids(self) -> List[int]:
        return [n.region_id for n in self.walk() if n.region_id is not None]

    def to_dict(self, handle: int = ROOT) -> Dict[str, Any]:
        n = self.node(handle)
        out: Dict[str, Any] = {"role": n.role.value}
        if n.text:
            out["text"] = n.text
        if n.region_id is not None:
            out["mcid"] = n.region_id
        if n.block_id:
            out["block_id"] = n.block_id
        if n.rect is not None:
            out["rect"] = list(n.rect.as_tuple())
        if n.children:
            out["children"] = [self.to_dict(c) for c in n.children]
        return out

    def _check_handle(self, handle: int) -> None:
        if not 0 <= handle < len(self.nodes):
            raise IndexError(f"no structure node with handle {handle}")
