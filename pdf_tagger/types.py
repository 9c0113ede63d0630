from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import MalformedBlock


class Role(str, Enum):
    """Standard structure types written into the tag tree."""

    DOCUMENT = "Document"
    PART = "Part"
    ART = "Art"
    SECT = "Sect"
    DIV = "Div"
    P = "P"
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    H4 = "H4"
    H5 = "H5"
    H6 = "H6"
    BLOCK_QUOTE = "BlockQuote"
    QUOTE = "Quote"
    CAPTION = "Caption"
    NOTE = "Note"
    REFERENCE = "Reference"
    BIB_ENTRY = "BibEntry"
    CODE = "Code"
    LINK = "Link"
    ANNOT = "Annot"
    FORMULA = "Formula"
    FORM = "Form"
    TOC = "TOC"
    TOCI = "TOCI"
    INDEX = "Index"
    L = "L"
    LI = "LI"
    LBL = "Lbl"
    LBODY = "LBody"
    TABLE = "Table"
    TR = "TR"
    TH = "TH"
    TD = "TD"
    THEAD = "THead"
    TBODY = "TBody"
    TFOOT = "TFoot"
    FIGURE = "Figure"
    SPAN = "Span"
    SOUND = "Sound"
    MOVIE = "Movie"
    ARTIFACT = "Artifact"

    @property
    def is_container(self) -> bool:
        return self in (Role.TABLE, Role.L)

    @property
    def is_cell(self) -> bool:
        return self in (Role.TD, Role.TH)


class Skip(Enum):
    """Classifier result for blocks that produce no structure node."""

    SKIP = "skip"


SKIP = Skip.SKIP
Classification = Union[Role, Skip]


@dataclass(frozen=True)
class BoundingBox:
    """Textract geometry: fractions of page width/height, top-left origin."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class Rectangle:
    """Page-space rectangle, bottom-left origin, y increasing upward."""

    x: float
    y: float
    width: float
    height: float

    def as_tuple(self):
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class Block:
    """One layout/OCR detection; read-only for the tagger."""

    block_type: str
    bbox: Optional[BoundingBox]
    text: Optional[str] = None
    row_index: Optional[int] = None
    column_index: Optional[int] = None
    is_header_cell: bool = False
    id: Optional[str] = None

    def validate(self) -> "Block":
        if not self.block_type or not isinstance(self.block_type, str):
            raise MalformedBlock("block has no type", block_id=self.id)
        if self.bbox is None:
            raise MalformedBlock(f"{self.block_type} block has no bounding box", block_id=self.id)
        for name in ("left", "top", "width", "height"):
            v = getattr(self.bbox, name)
            if isinstance(v, bool) or not isinstance(v, (int, float)) or math.isnan(v):
                raise MalformedBlock(f"bounding box field {name!r} is not a number", block_id=self.id)
        return self


@dataclass
class StructureNode:
    handle: int
    role: Role
    parent: Optional[int]
    children: List[int] = field(default_factory=list)
    text: Optional[str] = None
    region_id: Optional[int] = None
    block_id: Optional[str] = None
    rect: Optional[Rectangle] = None


@dataclass(frozen=True)
class NestingContext:
    """Open table/row/list handles for the current pass."""

    current_table: Optional[int] = None
    current_row: Optional[int] = None
    current_row_index: Optional[int] = None
    current_list: Optional[int] = None

    @property
    def in_table(self) -> bool:
        return self.current_table is not None

    @property
    def in_list(self) -> bool:
        return self.current_list is not None


@dataclass
class TagSummary:
    tagged: int = 0
    skipped: int = 0
    errored: int = 0
    containers: int = 0
    regions: int = 0
    canvas_failures: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def record_error(self, index: int, exc: Exception, block_id: Optional[str] = None):
        self.errored += 1
        self.errors.append({
            "index": index,
            "block_id": block_id,
            "error": type(exc).__name__,
            "message": str(exc),
        })

    def as_dict(self) -> Dict[str, Any]:
        return {
            "tagged": self.tagged,
            "skipped": self.skipped,
            "errored": self.errored,
            "containers": self.containers,
            "regions": self.regions,
            "canvas_failures": self.canvas_failures,
            "errors": list(self.errors),
        }
