"""
Configuration for pdf_tagger runs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import yaml

from .constants import DEFAULT_IGNORED_TYPES


@dataclass
class TaggerConfig:
    """Options for one tagging run."""
    page: int = 1  # 1-based, matches Textract's "Page" field
    draw_outlines: bool = True
    outline_width: float = 0.1
    synthesize_orphan_cells: bool = True
    close_list_on_paragraph: bool = False
    ignored_block_types: Tuple[str, ...] = DEFAULT_IGNORED_TYPES
    role_overrides: Dict[str, str] = field(default_factory=dict)
    title: Optional[str] = None
    lang: str = "en-US"
    preview: bool = False
    preview_zoom: float = 2.0
    preview_max_side: Optional[int] = 3800
    structure_json: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_config(config_path: Optional[Union[str, Path]]) -> TaggerConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to a YAML file; None or a missing file gives defaults

    Returns:
        TaggerConfig instance
    """
    if config_path is None:
        return TaggerConfig()
    config_path = Path(config_path)
    if not config_path.exists():
        return TaggerConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    defaults = TaggerConfig()
    tagging = data.get('tagging', {})
    output = data.get('output', {})
    logging_data = data.get('logging', {})

    ignored = tagging.get('ignored_block_types', defaults.ignored_block_types)

    return TaggerConfig(
        page=int(tagging.get('page', defaults.page)),
        draw_outlines=bool(tagging.get('draw_outlines', defaults.draw_outlines)),
        outline_width=float(tagging.get('outline_width', defaults.outline_width)),
        synthesize_orphan_cells=bool(tagging.get('synthesize_orphan_cells', defaults.synthesize_orphan_cells)),
        close_list_on_paragraph=bool(tagging.get('close_list_on_paragraph', defaults.close_list_on_paragraph)),
        ignored_block_types=tuple(str(t).upper() for t in ignored),
        role_overrides=dict(tagging.get('role_overrides') or {}),
        title=output.get('title', defaults.title),
        lang=output.get('lang', defaults.lang),
        preview=bool(output.get('preview', defaults.preview)),
        preview_zoom=float(output.get('preview_zoom', defaults.preview_zoom)),
        preview_max_side=output.get('preview_max_side', defaults.preview_max_side),
        structure_json=bool(output.get('structure_json', defaults.structure_json)),
        log_level=logging_data.get('level', defaults.log_level),
        log_file=logging_data.get('file', defaults.log_file),
    )
