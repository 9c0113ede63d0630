"""
Tag tree builder: cursor discipline and region allocation.

Run: python -m pytest tests/test_tree.py -v
"""

import pytest

from fakes import BrokenCanvas, FakePage, RecordingCanvas
from pdf_tagger.errors import CursorUnderflow, RegionAllocationFailure, RegionStateError
from pdf_tagger.tree import TagTreeBuilder
from pdf_tagger.types import Rectangle, Role

RECT = Rectangle(10, 20, 30, 40)


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def builder(page):
    return TagTreeBuilder(page)


class TestCursor:

    def test_starts_at_document_root(self, builder):
        assert builder.cursor == builder.root
        assert builder.node(builder.root).role == Role.DOCUMENT

    def test_move_to_parent_at_root_underflows(self, builder):
        builder.add_child(Role.P)
        before = builder.to_dict()
        with pytest.raises(CursorUnderflow):
            builder.move_to_parent()
        assert builder.to_dict() == before
        assert builder.cursor == builder.root

    def test_move_into_child_and_back(self, builder):
        table = builder.add_child(Role.TABLE)
        builder.move_to(table)
        row = builder.add_child(Role.TR)
        builder.move_to(row)
        builder.move_to_parent()
        assert builder.cursor == table
        builder.move_to_root()
        assert builder.cursor == builder.root

    def test_unknown_handle(self, builder):
        with pytest.raises(IndexError):
            builder.move_to(42)


class TestConstruction:

    def test_children_append_in_order(self, builder):
        a = builder.add_child(Role.H1)
        b = builder.add_child(Role.P)
        c = builder.add_child(Role.FIGURE)
        assert builder.node(builder.root).children == [a, b, c]
        assert [n.parent for n in builder.children(builder.root)] == [0, 0, 0]

    def test_leaf_gets_region_and_pairs_events(self, builder, page):
        rid = builder.allocate_region()
        h = builder.add_leaf(Role.P, rid, RECT, text="hello")
        assert builder.node(h).region_id == 0
        assert builder.node(h).text == "hello"
        assert page.events == [("begin", "P", 0), ("end",)]

    def test_region_ids_increase(self, builder):
        for _ in range(3):
            builder.add_leaf(Role.P, builder.allocate_region(), RECT)
        assert builder.region_ids() == [0, 1, 2]

    def test_leaf_requires_fresh_region(self, builder):
        rid = builder.allocate_region()
        builder.add_leaf(Role.P, rid, RECT)
        with pytest.raises(RegionStateError):
            builder.add_leaf(Role.P, rid, RECT)

    def test_leaf_without_allocation(self, builder):
        with pytest.raises(RegionStateError):
            builder.add_leaf(Role.P, 7, RECT)

    def test_canvas_sees_outline_inside_region(self, builder):
        canvas = RecordingCanvas()
        builder.add_leaf(Role.P, builder.allocate_region(), RECT, canvas=canvas)
        assert canvas.rects == [RECT]

    def test_canvas_failure_is_counted_not_raised(self, builder, page):
        builder.add_leaf(Role.P, builder.allocate_region(), RECT, canvas=BrokenCanvas())
        assert builder.canvas_failures == 1
        assert page.events[-1] == ("end",)

    def test_attach_hands_tree_to_page(self, builder, page):
        builder.attach()
        assert page.attached is builder


class TestAllocation:

    def test_collaborator_error_wrapped(self):
        builder = TagTreeBuilder(FakePage(fail_on={1}))
        with pytest.raises(RegionAllocationFailure):
            builder.allocate_region(block_id="b1")

    def test_non_increasing_id_rejected(self):
        page = FakePage()
        page.next_region_id = lambda: 5
        builder = TagTreeBuilder(page)
        assert builder.allocate_region() == 5
        with pytest.raises(RegionAllocationFailure):
            builder.allocate_region()


class TestInspection:

    def test_to_dict_and_find(self, builder):
        table = builder.add_child(Role.TABLE)
        builder.move_to(table)
        row = builder.add_child(Role.TR)
        builder.move_to(row)
        builder.add_leaf(Role.TD, builder.allocate_region(), RECT, text="x", block_id="c1")
        d = builder.to_dict()
        assert d["role"] == "Document"
        cell = d["children"][0]["children"][0]["children"][0]
        assert cell == {"role": "TD", "text": "x", "mcid": 0, "block_id": "c1", "rect": [10, 20, 30, 40]}
        assert [n.role for n in builder.walk()] == [Role.DOCUMENT, Role.TABLE, Role.TR, Role.TD]
        assert len(builder.find(Role.TD)) == 1
