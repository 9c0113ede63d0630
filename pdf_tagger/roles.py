from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .constants import (
    BULLET_ITEM_RE,
    CELL,
    HEADER_2_MARKER,
    HEADER_3_MARKER,
    LAYOUT_FIGURE,
    LAYOUT_LIST,
    LINE,
    NUMBERED_ITEM_RE,
    ROLE_TABLE,
    SECTION_HEADER,
    TABLE,
    WORD,
)
from .types import SKIP, Block, Classification, Role


def is_list_item(text: Optional[str]) -> bool:
    """Leading-marker heuristic: "- item", "• item", "3. item"."""
    t = (text or "").strip()
    if not t:
        return False
    return bool(BULLET_ITEM_RE.match(t) or NUMBERED_ITEM_RE.match(t))


def heading_role(text: Optional[str]) -> Role:
    t = (text or "").upper()
    if HEADER_3_MARKER in t:
        return Role.H3
    if HEADER_2_MARKER in t:
        return Role.H2
    return Role.H1


def build_role_table(overrides: Optional[Mapping[str, str]] = None) -> Mapping[str, Role]:
    """Merge ``{block_type: role_name}`` overrides into the default table."""
    if not overrides:
        return ROLE_TABLE
    merged = dict(ROLE_TABLE)
    for block_type, role_name in overrides.items():
        merged[block_type.upper()] = Role(role_name)
    return MappingProxyType(merged)


class RoleClassifier:
    """Context-free mapping from a block to its structure role."""

    def __init__(self, role_table: Mapping[str, Role] = ROLE_TABLE):
        self.role_table = role_table

    def classify(self, block: Block) -> Classification:
        bt = block.block_type
        if bt == SECTION_HEADER:
            return heading_role(block.text)
        if bt == LINE:
            return Role.P
        if bt == TABLE:
            return Role.TABLE
        if bt == CELL:
            return Role.TH if block.is_header_cell else Role.TD
        if bt == LAYOUT_LIST:
            return Role.L
        if bt == LAYOUT_FIGURE:
            return Role.FIGURE
        if bt == WORD:
            return SKIP
        return self.role_table.get(bt.upper(), Role.P)
