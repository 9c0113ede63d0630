from .pipeline import tag_page, tag_pdf, TagResult
from .io import load_textract_json, textract_blocks, block_from_textract, write_structure_json
from .config import TaggerConfig, load_config

__all__ = [
    "tag_page",
    "tag_pdf",
    "TagResult",
    "load_textract_json",
    "textract_blocks",
    "block_from_textract",
    "write_structure_json",
    "TaggerConfig",
    "load_config",
]
