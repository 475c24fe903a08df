#!/usr/bin/env python
"""
sheet-remap – CLI entry point.

Usage:
    # Reorder / sort / group the columns of one sheet
    python -m sheet_remap.main reshuffle <excel_file> [--headers A B C] [--sort Amount:desc]
        [--footer Amount] [--group-by Region --subtotal Amount]

    # Split one sheet into a summary sheet plus one sheet per category
    python -m sheet_remap.main split <excel_file> --category Region
        [--detail-footer Amount] [--summary-footer Amount] [--link Amount=Amount]

    # Stack the rows of two workbooks under one header order
    python -m sheet_remap.main merge <base_file> <source_file> [--headers A B C]
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from openpyxl import Workbook

from sheet_remap.category_split import SplitPlan, split_by_category
from sheet_remap.config import load_config
from sheet_remap.merge import merge_workbooks
from sheet_remap.reshuffle import CategoryGrouping, reshuffle_sheet
from sheet_remap.workbook_io import default_output_name, get_sheet, load_source_workbook, save_workbook

logger = logging.getLogger("sheet_remap")


def setup_logging(level_str: str = "INFO"):
    """Configure logging."""
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def _parse_links(pairs):
    links = {}
    for pair in pairs or []:
        summary, sep, detail = pair.partition("=")
        if not sep or not summary.strip() or not detail.strip():
            raise ValueError(f"--link expects SUMMARY=DETAIL, got {pair!r}")
        links[summary.strip()] = detail.strip()
    return links


def _output_path(args, config, input_file, suffix):
    if args.output:
        return args.output
    name = default_output_name(input_file, suffix) + ".xlsx"
    return os.path.join(config["output_dir"], name)


def run_reshuffle(args, config):
    wb = load_source_workbook(args.excel_file)
    src_ws = get_sheet(wb, args.sheet)
    out_wb = Workbook()
    dest_ws = out_wb.active
    dest_ws.title = src_ws.title
    grouping = None
    if args.group_by:
        grouping = CategoryGrouping(header=args.group_by, summary_headers=args.subtotal or [])
    reshuffle_sheet(
        src_ws, dest_ws,
        header_order=args.headers,
        sort_rules=args.sort,
        footer_headers=args.footer,
        footer_function=args.footer_function,
        grouping=grouping,
        config=config,
    )
    return save_workbook(out_wb, _output_path(args, config, args.excel_file, "reshuffled"))


def run_split(args, config):
    wb = load_source_workbook(args.excel_file)
    src_ws = get_sheet(wb, args.sheet)
    function = args.footer_function or config["footer_function"]
    plan = SplitPlan(
        category_header=args.category,
        detail_headers=args.detail_headers or [],
        summary_headers=args.summary_headers or [args.category],
        detail_footers={h: function for h in args.detail_footer or []},
        summary_footers={h: function for h in args.summary_footer or []},
        footer_links=_parse_links(args.link),
        summary_title=args.title,
    )
    out_wb, _report = split_by_category(src_ws, plan, config=config)
    return save_workbook(out_wb, _output_path(args, config, args.excel_file, "split"))


def run_merge(args, config):
    out_wb, _report = merge_workbooks(
        args.base_file, args.source_file,
        base_sheet=args.base_sheet,
        source_sheet=args.source_sheet,
        header_order=args.headers,
        footer_headers=args.footer,
        config=config,
    )
    return save_workbook(out_wb, _output_path(args, config, args.base_file, "merged"))


def _add_common(p):
    p.add_argument("--config", default=None, help="Path to config YAML file")
    p.add_argument("--output", default=None,
                   help="Output workbook path (default: <output_dir>/<name>_<suffix>_<timestamp>.xlsx)")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    p.add_argument("--header-row", type=int, default=None,
                   help="1-based header row of the source sheet(s)")
    p.add_argument("--footer-function", default=None, help="SUM or AVERAGE")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Rebuild spreadsheet tables under a new layout, keeping formulas working"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ---- reshuffle ----
    p_re = sub.add_parser("reshuffle", help="Reorder, sort and group the columns of one sheet")
    p_re.add_argument("excel_file", help="Path to the input Excel file (.xlsx)")
    p_re.add_argument("--sheet", default=None, help="Sheet to read (default: first sheet)")
    p_re.add_argument("--headers", nargs="*", default=None,
                      help="Output column order (default: source order)")
    p_re.add_argument("--sort", nargs="*", default=None,
                      help="Sort keys, e.g. Region Amount:desc")
    p_re.add_argument("--footer", nargs="*", default=None, help="Headers to total")
    p_re.add_argument("--group-by", default=None, help="Category header for in-sheet groups")
    p_re.add_argument("--subtotal", nargs="*", default=None,
                      help="Headers subtotalled per group")
    _add_common(p_re)

    # ---- split ----
    p_sp = sub.add_parser("split", help="Split one sheet into per-category sheets plus a summary")
    p_sp.add_argument("excel_file", help="Path to the input Excel file (.xlsx)")
    p_sp.add_argument("--category", required=True, help="Header whose values name the sheets")
    p_sp.add_argument("--sheet", default=None, help="Sheet to read (default: first sheet)")
    p_sp.add_argument("--detail-headers", nargs="*", default=None,
                      help="Columns of each category sheet (default: all)")
    p_sp.add_argument("--summary-headers", nargs="*", default=None,
                      help="Columns of the summary sheet (default: the category header)")
    p_sp.add_argument("--detail-footer", nargs="*", default=None,
                      help="Headers totalled at the bottom of each category sheet")
    p_sp.add_argument("--summary-footer", nargs="*", default=None,
                      help="Headers totalled on the summary sheet")
    p_sp.add_argument("--link", nargs="*", default=None,
                      help="SUMMARY=DETAIL pairs: summary column reads the detail footer")
    p_sp.add_argument("--title", default=None, help="Summary sheet title")
    _add_common(p_sp)

    # ---- merge ----
    p_me = sub.add_parser("merge", help="Stack the rows of two workbooks")
    p_me.add_argument("base_file", help="Workbook whose rows come first")
    p_me.add_argument("source_file", help="Workbook whose rows are appended")
    p_me.add_argument("--base-sheet", default=None)
    p_me.add_argument("--source-sheet", default=None)
    p_me.add_argument("--headers", nargs="*", default=None,
                      help="Output column order (default: union of both header rows)")
    p_me.add_argument("--footer", nargs="*", default=None, help="Headers to total")
    _add_common(p_me)

    return parser


COMMANDS = {
    "reshuffle": run_reshuffle,
    "split": run_split,
    "merge": run_merge,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config, overrides={
            "log_level": args.log_level,
            "header_row": args.header_row,
        })
    except (ValueError, OSError) as e:
        setup_logging(args.log_level or "INFO")
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    setup_logging(config["log_level"])
    try:
        out = COMMANDS[args.command](args, config)
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)
    logger.info("Wrote %s", out)
    return out


if __name__ == "__main__":
    main()
