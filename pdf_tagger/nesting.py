"""Table/row/list bookkeeping across the block stream.

The tracker owns no state of its own: each call takes the current
``NestingContext`` and returns the next one, creating container nodes in the
tree builder as a side effect. Callers thread the context through the pass.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

from .roles import is_list_item
from .tree import TagTreeBuilder
from .types import Block, NestingContext, Role

logger = logging.getLogger(__name__)


class NestingTracker:
    def __init__(
        self,
        builder: TagTreeBuilder,
        synthesize_orphan_cells: bool = True,
        close_list_on_paragraph: bool = False,
    ):
        self.builder = builder
        self.synthesize_orphan_cells = synthesize_orphan_cells
        self.close_list_on_paragraph = close_list_on_paragraph

    def _open_at_root(self, role: Role, block: Optional[Block] = None) -> int:
        self.builder.move_to_root()
        handle = self.builder.add_child(
            role,
            block_id=block.id if block is not None else None,
        )
        return handle

    # -- tables -----------------------------------------------------------

    def open_table(self, ctx: NestingContext, block: Optional[Block] = None) -> Tuple[NestingContext, int]:
        if ctx.in_table:
            return ctx, ctx.current_table
        handle = self._open_at_root(Role.TABLE, block)
        logger.debug("opened Table #%d", handle)
        return replace(ctx, current_table=handle, current_row=None, current_row_index=None), handle

    def attach_cell(self, ctx: NestingContext, block: Block) -> Tuple[NestingContext, int]:
        """Return the TR a cell belongs to, opening table/row as needed."""
        if not ctx.in_table:
            if not self.synthesize_orphan_cells:
                logger.debug("cell %s outside any table, attached at root", block.id)
                return ctx, self.builder.root
            ctx, _ = self.open_table(ctx)
            logger.debug("synthetic Table #%d for orphan cell %s", ctx.current_table, block.id)

        if ctx.current_row is None or block.row_index != ctx.current_row_index:
            self.builder.move_to(ctx.current_table)
            row = self.builder.add_child(Role.TR)
            ctx = replace(ctx, current_row=row, current_row_index=block.row_index)
        return ctx, ctx.current_row

    def close_table(self, ctx: NestingContext) -> NestingContext:
        return replace(ctx, current_table=None, current_row=None, current_row_index=None)

    # -- lists ------------------------------------------------------------

    def open_list(self, ctx: NestingContext, block: Optional[Block] = None) -> Tuple[NestingContext, int]:
        handle = self._open_at_root(Role.L, block)
        logger.debug("opened L #%d", handle)
        return replace(ctx, current_list=handle), handle

    def attach_line(self, ctx: NestingContext, block: Block) -> Tuple[NestingContext, int, Role]:
        """Return (context, parent, leaf role) for a LINE block.

        Item text inside an open list becomes LI > LBody; anything else is a
        root-level paragraph.
        """
        if ctx.in_list and is_list_item(block.text):
            self.builder.move_to(ctx.current_list)
            item = self.builder.add_child(Role.LI)
            return ctx, item, Role.LBODY
        if ctx.in_list and self.close_list_on_paragraph:
            ctx = self.close_list(ctx)
        return ctx, self.builder.root, Role.P

    def close_list(self, ctx: NestingContext) -> NestingContext:
        return replace(ctx, current_list=None)

    def close_all(self, ctx: NestingContext) -> NestingContext:
        return NestingContext()
