"""
Textract parsing, structure JSON output and YAML configuration.

Run: python -m pytest tests/test_io.py -v
"""

import json

import pytest

from fakes import FakePage, textract
from pdf_tagger.config import TaggerConfig, load_config
from pdf_tagger.errors import MalformedBlock
from pdf_tagger.io import (
    block_from_textract,
    coerce_block,
    load_textract_json,
    textract_blocks,
    write_structure_json,
)
from pdf_tagger.pipeline import tag_page
from pdf_tagger.types import Block, BoundingBox


class TestBlockFromTextract:

    def test_line(self):
        b = block_from_textract(textract("LINE", "Hello", left=0.2, top=0.3, width=0.4, height=0.05, Id="l1"))
        assert b.block_type == "LINE"
        assert b.text == "Hello"
        assert b.id == "l1"
        assert b.bbox == BoundingBox(0.2, 0.3, 0.4, 0.05)

    def test_cell_attributes(self):
        raw = textract("CELL", RowIndex=2, ColumnIndex=3, EntityTypes=["COLUMN_HEADER"])
        b = block_from_textract(raw)
        assert (b.row_index, b.column_index, b.is_header_cell) == (2, 3, True)

    def test_cell_without_entity_types(self):
        b = block_from_textract(textract("CELL", RowIndex=1))
        assert b.is_header_cell is False

    @pytest.mark.parametrize("raw", [
        {"Geometry": {"BoundingBox": {"Left": 0, "Top": 0, "Width": 1, "Height": 1}}},
        {"BlockType": "LINE"},
        {"BlockType": "LINE", "Geometry": {}},
        {"BlockType": "LINE", "Geometry": {"BoundingBox": {"Left": 0, "Top": 0, "Width": 1}}},
        {"BlockType": "LINE", "Geometry": {"BoundingBox": {"Left": "x", "Top": 0, "Width": 1, "Height": 1}}},
        {"BlockType": "LINE", "Geometry": {"BoundingBox": {"Left": "nan", "Top": 0, "Width": 1, "Height": 1}}},
        {"BlockType": "CELL", "RowIndex": "first",
         "Geometry": {"BoundingBox": {"Left": 0, "Top": 0, "Width": 1, "Height": 1}}},
        ["not", "a", "block"],
    ])
    def test_malformed(self, raw):
        with pytest.raises(MalformedBlock):
            block_from_textract(raw)

    def test_coerce_validates_block_objects(self):
        with pytest.raises(MalformedBlock):
            coerce_block(Block(block_type="LINE", bbox=None, id="x"))
        ok = Block(block_type="LINE", bbox=BoundingBox(0, 0, 1, 1))
        assert coerce_block(ok) is ok


class TestTextractDocument:

    def test_filters_by_page(self):
        doc = {"Blocks": [
            textract("LINE", "p1", Page=1),
            textract("LINE", "p2", Page=2),
            textract("LINE", "no page key"),
        ]}
        texts = [b.get("Text") for b in textract_blocks(doc, page=1)]
        assert texts == ["p1", "no page key"]
        assert len(textract_blocks(doc, page=None)) == 3

    def test_bare_list(self):
        assert len(textract_blocks([textract("LINE", "x")])) == 1

    def test_load_json(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({"Blocks": [textract("LINE", "x")]}), encoding="utf-8")
        assert load_textract_json(str(path))["Blocks"][0]["Text"] == "x"

    def test_write_structure_json(self, tmp_path):
        result = tag_page([textract("LINE", "hello")], FakePage())
        out = tmp_path / "nested" / "structure.json"
        write_structure_json(result.tree.to_dict(), result.summary.as_dict(), str(out))
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["summary"]["tagged"] == 1
        assert data["structure"]["children"][0]["text"] == "hello"


class TestConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == TaggerConfig()
        assert load_config(None) == TaggerConfig()

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "tagging:\n"
            "  page: 2\n"
            "  draw_outlines: false\n"
            "  synthesize_orphan_cells: false\n"
            "  close_list_on_paragraph: true\n"
            "  ignored_block_types: [page, merged_cell, key_value_set]\n"
            "  role_overrides:\n"
            "    SIGNATURE: Figure\n"
            "output:\n"
            "  title: Annual Report\n"
            "  preview: true\n"
            "logging:\n"
            "  level: DEBUG\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.page == 2
        assert cfg.draw_outlines is False
        assert cfg.synthesize_orphan_cells is False
        assert cfg.close_list_on_paragraph is True
        assert cfg.ignored_block_types == ("PAGE", "MERGED_CELL", "KEY_VALUE_SET")
        assert cfg.role_overrides == {"SIGNATURE": "Figure"}
        assert cfg.title == "Annual Report"
        assert cfg.preview is True
        assert cfg.log_level == "DEBUG"
        assert cfg.lang == "en-US"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == TaggerConfig()
