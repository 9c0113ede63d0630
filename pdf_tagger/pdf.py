"""pikepdf-backed page service: marked content, debug outlines, structure tree."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

import pikepdf
from pikepdf import Array, Dictionary, Name, String

from .constants import NONSTANDARD_ROLE_MAP
from .errors import RegionStateError
from .types import Rectangle, StructureNode

logger = logging.getLogger(__name__)

# Non-standard roles are written as /Span marked content; /Artifact BDC would hide the text.
_MC_TAGS = {role.value: "Span" for role in NONSTANDARD_ROLE_MAP}


def pdf_name(s: str) -> Name:
    return Name(s if s.startswith("/") else "/" + s)


def ensure_markinfo(pdf: pikepdf.Pdf):
    mi = pdf.Root.get(Name.MarkInfo, None)
    if mi is None:
        mi = Dictionary()
        pdf.Root[Name.MarkInfo] = pdf.make_indirect(mi)
    mi[Name.Marked] = True
    return mi


def ensure_struct_tree_root(pdf: pikepdf.Pdf):
    root = pdf.Root
    if Name.StructTreeRoot in root:
        return root[Name.StructTreeRoot]
    st = Dictionary()
    st[Name.Type] = Name.StructTreeRoot
    st[Name.K] = Array()
    root[Name.StructTreeRoot] = pdf.make_indirect(st)
    return root[Name.StructTreeRoot]


def _role_map(st, roles):
    rm = st.get(Name.RoleMap, None)
    if rm is None:
        rm = Dictionary()
        st[Name.RoleMap] = rm
    for role in roles:
        target = NONSTANDARD_ROLE_MAP.get(role)
        if target:
            rm[pdf_name(role.value)] = pdf_name(target)
    st[Name.RoleMap] = rm


def used_mcids(page) -> Set[int]:
    """MCIDs already opened by inline ``BDC`` property lists on ``page``."""
    found = set()
    for operands, _op in pikepdf.parse_content_stream(page, "BDC"):
        if len(operands) < 2 or not isinstance(operands[1], Dictionary):
            continue
        mcid = operands[1].get(Name.MCID, None)
        if mcid is not None:
            found.add(int(mcid))
    return found


def _parent_tree_slot(nums, key: int) -> Optional[int]:
    """Index of ``key`` in a flat ParentTree ``Nums`` array."""
    for i in range(0, len(nums) - 1, 2):
        if int(nums[i]) == key:
            return i
    return None


class PdfPageTarget:
    """One page of an open ``pikepdf.Pdf``, seen as the tagger's page service.

    Content operators are buffered and appended as a new content stream when
    the structure root is attached; the original page content is wrapped in
    ``q``/``Q`` so our operators start from the default graphics state.
    Also usable as the debug canvas: outlines are stroked inside the active
    region, or as an artifact when no region is open.

    A page that is already tagged keeps its ``/StructParents`` key; new MCIDs
    continue after the highest one in its content or ParentTree entry.
    """

    def __init__(
        self,
        pdf: pikepdf.Pdf,
        page_index: int = 0,
        title: Optional[str] = None,
        lang: Optional[str] = "en-US",
        line_width: float = 0.1,
        first_mcid: Optional[int] = None,
    ):
        if not 0 <= page_index < len(pdf.pages):
            raise IndexError(f"page {page_index + 1} out of range (document has {len(pdf.pages)})")
        self.pdf = pdf
        self.page_index = page_index
        self.page = pdf.pages[page_index]
        self.title = title
        self.lang = lang
        self.line_width = line_width

        x0, y0, x1, y1 = [float(v) for v in self.page.mediabox]
        self._origin = (min(x0, x1), min(y0, y1))
        self._width = abs(x1 - x0)
        self._height = abs(y1 - y0)

        sp = self.page.obj.get(Name.StructParents, None)
        self._struct_key: Optional[int] = int(sp) if sp is not None else None
        if first_mcid is None:
            first_mcid = self._first_free_mcid()

        self._next_mcid = first_mcid
        self._active: Optional[int] = None
        self._ops: List[str] = []
        self.regions: Dict[int, str] = {}

    def _existing_entry(self) -> List[object]:
        if self._struct_key is None:
            return []
        st = self.pdf.Root.get(Name.StructTreeRoot, None)
        pt = st.get(Name.ParentTree, None) if st is not None else None
        nums = pt.get(Name.Nums, None) if pt is not None else None
        if nums is None:
            return []
        slot = _parent_tree_slot(nums, self._struct_key)
        if slot is None or not isinstance(nums[slot + 1], Array):
            return []
        return list(nums[slot + 1])

    def _first_free_mcid(self) -> int:
        if self._struct_key is None:
            return 0
        used = used_mcids(self.page) if Name.Contents in self.page.obj else set()
        return max(max(used) + 1 if used else 0, len(self._existing_entry()))

    # -- page service -----------------------------------------------------

    def page_width(self) -> float:
        return self._width

    def page_height(self) -> float:
        return self._height

    def next_region_id(self) -> int:
        mcid = self._next_mcid
        self._next_mcid += 1
        return mcid

    def begin_region(self, role: str, region_id: int) -> None:
        if self._active is not None:
            raise RegionStateError(f"region {self._active} still open when {region_id} began")
        if region_id in self.regions:
            raise RegionStateError(f"region {region_id} already emitted on page {self.page_index + 1}")
        tag = _MC_TAGS.get(role, role)
        self._ops.append(f"/{tag} <</MCID {region_id}>> BDC")
        self._active = region_id
        self.regions[region_id] = role

    def end_region(self) -> None:
        if self._active is None:
            raise RegionStateError("no region to end")
        self._ops.append("EMC")
        self._active = None

    # -- debug canvas -----------------------------------------------------

    def draw_outline(self, rect: Rectangle) -> None:
        ox, oy = self._origin
        path = (
            f"q {self.line_width:.2f} w "
            f"{rect.x + ox:.2f} {rect.y + oy:.2f} {rect.width:.2f} {rect.height:.2f} re S Q"
        )
        if self._active is None:
            self._ops.extend(["/Artifact BMC", path, "EMC"])
        else:
            self._ops.append(path)

    # -- output -----------------------------------------------------------

    def content_bytes(self) -> bytes:
        return ("\n".join(self._ops) + "\n").encode("ascii") if self._ops else b""

    def _flush_content(self):
        content = self.content_bytes()
        if not content:
            return
        pdf = self.pdf
        page_obj = self.page.obj
        cur = page_obj.get(Name.Contents, None)
        if cur is None:
            page_obj[Name.Contents] = Array([pdf.make_indirect(pdf.make_stream(content))])
        else:
            existing = list(cur) if isinstance(cur, Array) else [cur]
            fixed = Array([pdf.make_indirect(pdf.make_stream(b"q\n"))])
            for s in existing:
                fixed.append(s if s.is_indirect else pdf.make_indirect(s))
            fixed.append(pdf.make_indirect(pdf.make_stream(b"\nQ\n" + content)))
            page_obj[Name.Contents] = fixed
        self._ops = []

    def _make_elem(self, tree, node: StructureNode, parent, by_mcid: Dict[int, object]):
        page_obj = self.page.obj
        el = Dictionary()
        el[Name.Type] = Name.StructElem
        el[Name.S] = pdf_name(node.role.value)
        el[Name.P] = parent
        el[Name.Pg] = page_obj
        if node.text:
            el[Name.ActualText] = String(node.text)
        el = self.pdf.make_indirect(el)

        kids = Array()
        if node.region_id is not None:
            mcr = Dictionary()
            mcr[Name.Type] = Name.MCR
            mcr[Name.Pg] = page_obj
            mcr[Name.MCID] = node.region_id
            kids.append(mcr)
            by_mcid[node.region_id] = el
        for child in tree.children(node.handle):
            kids.append(self._make_elem(tree, child, el, by_mcid))
        if len(kids):
            el[Name.K] = kids
        return el

    def attach_structure_root(self, tree) -> None:
        """Write ``tree`` as this page's structure and flush marked content."""
        if self._active is not None:
            raise RegionStateError(f"region {self._active} still open at end of page")
        self._flush_content()

        pdf = self.pdf
        st = ensure_struct_tree_root(pdf)
        kids = st.get(Name.K, None)
        if kids is None or not isinstance(kids, Array):
            kids = Array([kids]) if kids is not None else Array()
            st[Name.K] = kids

        by_mcid: Dict[int, object] = {}
        doc_el = self._make_elem(tree, tree.node(tree.root), st, by_mcid)
        if self.title:
            doc_el[Name.T] = String(self.title)
        kids.append(doc_el)
        st[Name.K] = kids
        _role_map(st, {n.role for n in tree.walk()} & set(NONSTANDARD_ROLE_MAP))

        next_key = int(st.get(Name.ParentTreeNextKey, 0))
        key = self._struct_key if self._struct_key is not None else next_key
        page_obj = self.page.obj
        page_obj[Name.StructParents] = key
        page_obj[Name.Tabs] = Name.S

        pt = st.get(Name.ParentTree, None)
        if pt is None:
            pt = pdf.make_indirect(Dictionary(Nums=Array()))
            st[Name.ParentTree] = pt
        nums = pt.get(Name.Nums, None)
        if nums is None:
            nums = Array()

        # Extend the page's existing entry; earlier MCIDs keep their elements.
        by_index = self._existing_entry()
        for mcid in sorted(by_mcid):
            while len(by_index) <= mcid:
                by_index.append(None)
            by_index[mcid] = by_mcid[mcid]
        slot = _parent_tree_slot(nums, key)
        if slot is None:
            nums.append(key)
            nums.append(Array(by_index))
        else:
            nums[slot + 1] = Array(by_index)
        pt[Name.Nums] = nums
        st[Name.ParentTreeNextKey] = max(next_key, key + 1)
        self._struct_key = key

        ensure_markinfo(pdf)
        if self.lang:
            pdf.Root[Name.Lang] = String(self.lang)
        if self.title:
            pdf.docinfo[Name.Title] = String(self.title)
            vp = pdf.Root.get(Name.ViewerPreferences, None)
            if vp is None:
                vp = Dictionary()
                pdf.Root[Name.ViewerPreferences] = pdf.make_indirect(vp)
            vp[Name.DisplayDocTitle] = True
        logger.debug(
            "page %d: %d structure elements, %d marked regions",
            self.page_index + 1, len(tree.nodes), len(by_mcid),
        )
