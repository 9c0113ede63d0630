"""Textract JSON loading and structure-tree writers."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import COLUMN_HEADER
from .errors import MalformedBlock
from .types import Block, BoundingBox

RawBlock = Mapping[str, Any]


def load_textract_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def textract_blocks(doc: Union[Dict[str, Any], List[RawBlock]], page: Optional[int] = 1) -> List[RawBlock]:
    """Raw blocks for one page, in document order.

    Accepts either a full Textract response or a bare ``Blocks`` list. Blocks
    without a ``Page`` key (single-page synchronous responses) always match.
    """
    blocks = doc.get("Blocks", []) if isinstance(doc, dict) else list(doc)
    if page is None:
        return list(blocks)
    return [b for b in blocks if not isinstance(b, Mapping) or b.get("Page", page) == page]


def _optional_int(raw: RawBlock, key: str) -> Optional[int]:
    v = raw.get(key)
    if v is None:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        raise MalformedBlock(f"{key} is not an integer: {v!r}", block_id=raw.get("Id"))


def block_from_textract(raw: RawBlock) -> Block:
    """Convert one Textract block dict into a validated ``Block``."""
    if not isinstance(raw, Mapping):
        raise MalformedBlock(f"block is not an object: {type(raw).__name__}")
    block_id = raw.get("Id")
    block_type = raw.get("BlockType")
    if not block_type or not isinstance(block_type, str):
        raise MalformedBlock("missing BlockType", block_id=block_id)

    geometry = raw.get("Geometry")
    bbox_raw = geometry.get("BoundingBox") if isinstance(geometry, Mapping) else None
    if not isinstance(bbox_raw, Mapping):
        raise MalformedBlock(f"{block_type} block has no Geometry.BoundingBox", block_id=block_id)
    try:
        bbox = BoundingBox(
            left=float(bbox_raw["Left"]),
            top=float(bbox_raw["Top"]),
            width=float(bbox_raw["Width"]),
            height=float(bbox_raw["Height"]),
        )
    except KeyError as exc:
        raise MalformedBlock(f"BoundingBox missing {exc.args[0]}", block_id=block_id) from exc
    except (TypeError, ValueError) as exc:
        raise MalformedBlock(f"BoundingBox is not numeric: {exc}", block_id=block_id) from exc

    text = raw.get("Text")
    entity_types = raw.get("EntityTypes") or []
    return Block(
        block_type=block_type,
        bbox=bbox,
        text=text if isinstance(text, str) else None,
        row_index=_optional_int(raw, "RowIndex"),
        column_index=_optional_int(raw, "ColumnIndex"),
        is_header_cell=COLUMN_HEADER in entity_types,
        id=block_id,
    ).validate()


def coerce_block(item: Union[Block, RawBlock]) -> Block:
    if isinstance(item, Block):
        return item.validate()
    return block_from_textract(item)


def write_structure_json(tree: Dict[str, Any], summary: Dict[str, Any], out_path: str):
    os.makedirs(os.path.dirname(os.path.abspath(out_path)), exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump({"summary": summary, "structure": tree}, f, ensure_ascii=False, indent=2)
