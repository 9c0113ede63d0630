"""Tagging pipeline: Textract blocks in, structure tree and marked content out."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import fitz
import pikepdf

from .config import TaggerConfig
from .constants import LINE
from .errors import BlockError, MalformedBlock
from .geometry import to_page_rect
from .io import RawBlock, coerce_block, load_textract_json, textract_blocks, write_structure_json
from .nesting import NestingTracker
from .pdf import PdfPageTarget
from .preview import CanvasGroup, PreviewCanvas
from .roles import RoleClassifier, build_role_table
from .tree import Canvas, PageService, TagTreeBuilder
from .types import SKIP, Block, NestingContext, Role, TagSummary

logger = logging.getLogger(__name__)


@dataclass
class TagResult:
    summary: TagSummary
    tree: TagTreeBuilder


class PipelineDriver:
    """Runs one forward pass over a page's blocks.

    The driver only sequences the classifier, tracker and builder; the
    nesting context is a local value handed from step to step.
    """

    def __init__(
        self,
        page: PageService,
        canvas: Optional[Canvas] = None,
        config: Optional[TaggerConfig] = None,
        classifier: Optional[RoleClassifier] = None,
    ):
        self.config = config or TaggerConfig()
        self.page = page
        self.canvas = canvas
        self.classifier = classifier or RoleClassifier(build_role_table(self.config.role_overrides))
        self.builder = TagTreeBuilder(page)
        self.tracker = NestingTracker(
            self.builder,
            synthesize_orphan_cells=self.config.synthesize_orphan_cells,
            close_list_on_paragraph=self.config.close_list_on_paragraph,
        )
        self.ignored = {t.upper() for t in self.config.ignored_block_types}
        self.page_width = float(page.page_width())
        self.page_height = float(page.page_height())

    def run(self, blocks: Iterable[Union[Block, RawBlock]]) -> TagResult:
        summary = TagSummary()
        ctx = NestingContext()

        for i, item in enumerate(blocks):
            try:
                block = coerce_block(item)
            except MalformedBlock as exc:
                summary.record_error(i, exc, exc.block_id)
                logger.warning("block %d (%s) skipped: %s", i, exc.block_id or "no id", exc)
                continue

            if block.block_type.upper() in self.ignored:
                summary.skipped += 1
                continue
            role = self.classifier.classify(block)
            if role is SKIP:
                summary.skipped += 1
                continue

            ctx = self._close_finished(ctx, block, role)
            try:
                ctx = self._tag_block(ctx, block, role, summary)
            except BlockError as exc:
                summary.record_error(i, exc, exc.block_id or block.id)
                logger.warning("block %d (%s %s) not tagged: %s", i, block.block_type, block.id or "", exc)
            finally:
                self.builder.move_to_root()

        ctx = self.tracker.close_all(ctx)
        summary.canvas_failures = self.builder.canvas_failures
        self.builder.attach()
        logger.info(
            "tagged %d blocks (%d containers, %d regions), skipped %d, errored %d",
            summary.tagged, summary.containers, summary.regions, summary.skipped, summary.errored,
        )
        return TagResult(summary=summary, tree=self.builder)

    def _close_finished(self, ctx: NestingContext, block: Block, role: Role) -> NestingContext:
        """End any open table/list the incoming block does not continue."""
        if ctx.in_table and not role.is_cell:
            logger.debug("closing Table #%d before %s", ctx.current_table, block.block_type)
            ctx = self.tracker.close_table(ctx)
        if ctx.in_list and block.block_type != LINE:
            logger.debug("closing L #%d before %s", ctx.current_list, block.block_type)
            ctx = self.tracker.close_list(ctx)
        return ctx

    def _tag_block(self, ctx: NestingContext, block: Block, role: Role, summary: TagSummary) -> NestingContext:
        rect = to_page_rect(block.bbox, self.page_width, self.page_height)

        if role.is_container:
            if role == Role.TABLE:
                ctx, handle = self.tracker.open_table(ctx, block)
            else:
                ctx, handle = self.tracker.open_list(ctx, block)
            self.builder.node(handle).rect = rect
            self.builder.outline(rect, self.canvas)
            summary.containers += 1
            summary.tagged += 1
            return ctx

        # Allocate first so a refused id leaves no empty row or list item behind.
        region_id = self.builder.allocate_region(block.id)
        if role.is_cell:
            ctx, parent = self.tracker.attach_cell(ctx, block)
        elif block.block_type == LINE:
            ctx, parent, role = self.tracker.attach_line(ctx, block)
        else:
            parent = self.builder.root

        self.builder.move_to(parent)
        self.builder.add_leaf(role, region_id, rect, text=block.text, block_id=block.id, canvas=self.canvas)
        summary.regions += 1
        summary.tagged += 1
        return ctx


def tag_page(
    blocks: Iterable[Union[Block, RawBlock]],
    page: PageService,
    canvas: Optional[Canvas] = None,
    config: Optional[TaggerConfig] = None,
    classifier: Optional[RoleClassifier] = None,
) -> TagResult:
    """Tag one page and attach the resulting structure root to it."""
    return PipelineDriver(page, canvas=canvas, config=config, classifier=classifier).run(blocks)


def tag_pdf(
    pdf_path: str,
    blocks_path: str,
    out_path: str,
    config: Optional[TaggerConfig] = None,
) -> TagResult:
    """Tag one page of ``pdf_path`` from a Textract JSON file and save ``out_path``."""
    config = config or TaggerConfig()
    doc = load_textract_json(blocks_path)
    raw_blocks = textract_blocks(doc, page=config.page)
    logger.info("%s: %d blocks for page %d", os.path.basename(blocks_path), len(raw_blocks), config.page)

    preview_doc = fitz.open(pdf_path) if config.preview else None
    try:
        with pikepdf.open(pdf_path) as pdf:
            target = PdfPageTarget(
                pdf,
                page_index=config.page - 1,
                title=config.title,
                lang=config.lang,
                line_width=config.outline_width,
            )
            canvases = []
            if config.draw_outlines:
                canvases.append(target)
            preview = None
            if preview_doc is not None:
                preview = PreviewCanvas(
                    preview_doc.load_page(config.page - 1),
                    zoom=config.preview_zoom,
                    max_side=config.preview_max_side,
                )
                canvases.append(preview)
            canvas = CanvasGroup(*canvases) if canvases else None

            result = tag_page(raw_blocks, target, canvas=canvas, config=config)

            out_dir = os.path.dirname(os.path.abspath(out_path))
            os.makedirs(out_dir, exist_ok=True)
            pdf.save(out_path)
        logger.info("wrote tagged PDF %s", out_path)

        stem = os.path.splitext(out_path)[0]
        if preview is not None:
            preview.render(stem + ".preview.png")
    finally:
        if preview_doc is not None:
            preview_doc.close()

    if config.structure_json:
        write_structure_json(result.tree.to_dict(), result.summary.as_dict(), stem + ".structure.json")
    return result
