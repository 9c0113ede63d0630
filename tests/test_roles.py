"""
Role classification and list-item detection.

Run: python -m pytest tests/test_roles.py -v
"""

import pytest

from fakes import blk
from pdf_tagger.constants import ROLE_TABLE
from pdf_tagger.roles import RoleClassifier, build_role_table, heading_role, is_list_item
from pdf_tagger.types import SKIP, Role


@pytest.fixture
def classifier():
    return RoleClassifier()


class TestHeadings:

    @pytest.mark.parametrize("text,expected", [
        ("Header 3: Methods", Role.H3),
        ("section header 2", Role.H2),
        ("HEADER 2 and HEADER 3", Role.H3),
        ("Introduction", Role.H1),
        (None, Role.H1),
    ])
    def test_level_from_text(self, classifier, text, expected):
        assert classifier.classify(blk("LAYOUT_SECTION_HEADER", text)) == expected

    def test_heading_role_is_case_insensitive(self):
        assert heading_role("header 2") == Role.H2


class TestBlockTypes:

    def test_line_is_paragraph_even_with_item_text(self, classifier):
        assert classifier.classify(blk("LINE", "- item")) == Role.P

    def test_table_and_list_are_containers(self, classifier):
        assert classifier.classify(blk("TABLE")) == Role.TABLE
        assert classifier.classify(blk("LAYOUT_LIST")) == Role.L
        assert Role.TABLE.is_container and Role.L.is_container
        assert not Role.P.is_container

    def test_cells(self, classifier):
        assert classifier.classify(blk("CELL", row=1)) == Role.TD
        assert classifier.classify(blk("CELL", row=1, header=True)) == Role.TH

    def test_figure(self, classifier):
        assert classifier.classify(blk("LAYOUT_FIGURE")) == Role.FIGURE

    def test_word_is_skipped(self, classifier):
        assert classifier.classify(blk("WORD", "hello")) is SKIP

    def test_role_table_lookup_uses_upper_case(self, classifier):
        assert classifier.classify(blk("caption")) == Role.CAPTION
        assert classifier.classify(blk("BlockQuote")) == Role.BLOCK_QUOTE
        assert classifier.classify(blk("LAYOUT_TITLE")) == Role.H1

    def test_unknown_type_falls_back_to_paragraph(self, classifier):
        assert classifier.classify(blk("KEY_VALUE_SET")) == Role.P


class TestRoleTable:

    def test_default_table_is_read_only(self):
        with pytest.raises(TypeError):
            ROLE_TABLE["NEW"] = Role.DIV

    def test_overrides_merge_and_freeze(self):
        table = build_role_table({"signature": "Figure"})
        assert table["SIGNATURE"] == Role.FIGURE
        assert table["CAPTION"] == Role.CAPTION
        assert "SIGNATURE" not in ROLE_TABLE
        with pytest.raises(TypeError):
            table["X"] = Role.P

    def test_injected_table(self):
        c = RoleClassifier(build_role_table({"SIGNATURE": "Figure"}))
        assert c.classify(blk("SIGNATURE")) == Role.FIGURE

    def test_unknown_role_name_rejected(self):
        with pytest.raises(ValueError):
            build_role_table({"SIGNATURE": "Picture"})


class TestListItems:

    @pytest.mark.parametrize("text", ["- item one", "3. third item", "• bullet", "* star", "  12.  padded"])
    def test_markers(self, text):
        assert is_list_item(text)

    @pytest.mark.parametrize("text", ["Regular paragraph", "-nospace", "3.14 is pi", "", None, "1) paren"])
    def test_non_items(self, text):
        assert not is_list_item(text)
