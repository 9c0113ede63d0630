#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import os

from pdf_tagger import load_config, tag_pdf
from pdf_tagger.log import setup_logger

logger = logging.getLogger("pdf_tagger.cli")


def build_config(args: argparse.Namespace):
    config = load_config(args.config)
    if args.page is not None:
        config.page = args.page
    if args.no_outlines:
        config.draw_outlines = False
    if args.outline_width is not None:
        config.outline_width = args.outline_width
    if args.no_orphan_tables:
        config.synthesize_orphan_cells = False
    if args.close_list_on_paragraph:
        config.close_list_on_paragraph = True
    if args.title:
        config.title = args.title
    if args.lang:
        config.lang = args.lang
    if args.preview:
        config.preview = True
    if args.preview_zoom is not None:
        config.preview_zoom = args.preview_zoom
    if args.structure_json:
        config.structure_json = True
    if args.debug:
        config.log_level = "DEBUG"
    if args.log_file:
        config.log_file = args.log_file
    return config


def run_single(pdf_path: str, json_path: str, out_path: str, config) -> bool:
    result = tag_pdf(pdf_path, json_path, out_path, config=config)
    s = result.summary
    print(f"Source: {os.path.basename(pdf_path)} | Tagged: {s.tagged} | Errored: {s.errored} | Skipped: {s.skipped}")
    print(f"Wrote output to: {os.path.abspath(out_path)}")
    return s.errored == 0


def run_batch(input_dir: str, output_root: str, config) -> int:
    os.makedirs(output_root, exist_ok=True)
    pdfs = [os.path.join(input_dir, n) for n in os.listdir(input_dir) if n.lower().endswith(".pdf")]
    pdfs.sort()
    if not pdfs:
        print(f"[batch] No PDFs found under: {input_dir}")
        return 0
    print(f"[batch] Found {len(pdfs)} PDFs under: {input_dir}")
    failed = 0
    for pdf_path in pdfs:
        stem = os.path.splitext(os.path.basename(pdf_path))[0]
        json_path = os.path.join(input_dir, stem + ".json")
        if not os.path.isfile(json_path):
            logger.warning("no Textract JSON for %s, expected %s", pdf_path, json_path)
            failed += 1
            continue
        out_path = os.path.join(output_root, f"{stem}_tagged.pdf")
        print(f"[batch] Processing: {pdf_path} -> {out_path}")
        try:
            if not run_single(pdf_path, json_path, out_path, config):
                failed += 1
        except Exception:
            logger.exception("tagging failed for %s", pdf_path)
            failed += 1
    return failed


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Tag a PDF page from Textract layout blocks")

    ap.add_argument("pdf", nargs="?", help="Path to a single PDF")
    ap.add_argument("json", nargs="?", help="Textract JSON for the PDF (default: <pdf stem>.json)")
    ap.add_argument("--out", help="Output PDF (default: ./outputs/<pdf_stem>_tagged.pdf)")
    ap.add_argument("--config", help="YAML configuration file")
    ap.add_argument("--batch", action="store_true", help="Process all PDF/JSON pairs under --input-dir")
    ap.add_argument("--input-dir", default="/data", help="Batch input directory")
    ap.add_argument("--output-root", default="/outputs", help="Batch output root directory")

    ap.add_argument("--page", type=int, help="1-based page to tag")
    ap.add_argument("--no-outlines", action="store_true", help="Do not stroke debug outlines into the PDF")
    ap.add_argument("--outline-width", type=float)
    ap.add_argument("--no-orphan-tables", action="store_true",
                    help="Attach cells seen outside a TABLE at the root instead of a synthetic table")
    ap.add_argument("--close-list-on-paragraph", action="store_true",
                    help="A non-item LINE ends the open list")
    ap.add_argument("--title")
    ap.add_argument("--lang")

    ap.add_argument("--preview", action="store_true", help="Write <out>.preview.png with region outlines")
    ap.add_argument("--preview-zoom", type=float)
    ap.add_argument("--structure-json", action="store_true", help="Write <out>.structure.json")
    ap.add_argument("--log-file")
    ap.add_argument("--debug", action="store_true")
    return ap


def main():
    ap = build_arg_parser()
    args = ap.parse_args()
    config = build_config(args)
    setup_logger("pdf_tagger", log_file=config.log_file, level=config.log_level)

    if args.batch:
        failed = run_batch(args.input_dir, args.output_root, config)
        raise SystemExit(1 if failed else 0)
    if not args.pdf:
        ap.error("Please provide a PDF path or use --batch.")
    pdf_path = args.pdf
    if not os.path.isfile(pdf_path):
        ap.error(f"PDF does not exist: {pdf_path}")
    json_path = args.json or os.path.splitext(pdf_path)[0] + ".json"
    if not os.path.isfile(json_path):
        ap.error(f"Textract JSON does not exist: {json_path}")
    stem = os.path.splitext(os.path.basename(pdf_path))[0]
    out_path = args.out or os.path.join("./outputs", f"{stem}_tagged.pdf")
    ok = run_single(pdf_path, json_path, out_path, config)
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    main()
