from __future__ import annotations

import re
from types import MappingProxyType

from .types import Role

# Textract block types the classifier handles directly.
PAGE = "PAGE"
LINE = "LINE"
WORD = "WORD"
TABLE = "TABLE"
CELL = "CELL"
MERGED_CELL = "MERGED_CELL"
SECTION_HEADER = "LAYOUT_SECTION_HEADER"
LAYOUT_LIST = "LAYOUT_LIST"
LAYOUT_FIGURE = "LAYOUT_FIGURE"

HEADER_3_MARKER = "HEADER 3"
HEADER_2_MARKER = "HEADER 2"

COLUMN_HEADER = "COLUMN_HEADER"

DEFAULT_IGNORED_TYPES = (PAGE, MERGED_CELL)

BULLETS = {"•", "‣", "◦", "∙", "·", "●", "○", "▪", "▫", "–", "—", "-", "*"}
BULLET_ITEM_RE = re.compile("^[" + re.escape("".join(sorted(BULLETS))) + r"]\s+")
NUMBERED_ITEM_RE = re.compile(r"^\d+\.\s+")

_GENERIC_ROLES = (
    Role.DOCUMENT, Role.PART, Role.ART, Role.SECT, Role.DIV, Role.SPAN,
    Role.CAPTION, Role.BLOCK_QUOTE, Role.QUOTE, Role.NOTE, Role.REFERENCE,
    Role.BIB_ENTRY, Role.CODE, Role.LINK, Role.ANNOT, Role.FORMULA,
    Role.FORM, Role.TOC, Role.TOCI, Role.INDEX, Role.SOUND, Role.MOVIE,
    Role.ARTIFACT, Role.THEAD, Role.TBODY, Role.TFOOT, Role.LBL,
)

ROLE_TABLE = MappingProxyType({
    **{r.value.upper(): r for r in _GENERIC_ROLES},
    "LAYOUT_TITLE": Role.H1,
    "LAYOUT_TEXT": Role.P,
    "LAYOUT_KEY_VALUE": Role.DIV,
    "LAYOUT_HEADER": Role.ARTIFACT,
    "LAYOUT_FOOTER": Role.ARTIFACT,
    "LAYOUT_PAGE_NUMBER": Role.ARTIFACT,
    "TABLE_TITLE": Role.CAPTION,
    "TABLE_FOOTER": Role.CAPTION,
})

# Roles outside the PDF 1.7 standard set, mapped in the RoleMap.
NONSTANDARD_ROLE_MAP = MappingProxyType({
    Role.SOUND: "NonStruct",
    Role.MOVIE: "NonStruct",
    Role.ARTIFACT: "NonStruct",
})
