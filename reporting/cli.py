from __future__ import annotations

"""
Command-line access to the annotation store and the town report.

Examples:
  # Add an anonymised point near Cape Town
  jia-map add --lat -33.9 --lon 18.4 --note "clinic referral"

  # Per-town summary on screen
  jia-map summary

  # Write jia_town_summary.csv into ./reports (or print it with --stdout)
  jia-map export --out reports
"""

import argparse
import sys
import warnings
from typing import List, Optional

from common.config import load_config, rates_from_config
from common.errors import InvalidCoordinate, PersistenceWriteWarning
from common.logging_setup import setup_logging
from reporting.aggregate import summarize_all
from reporting.export import FileSink, display_line, export, write_report
from store.annotations import store_from_config


def _cmd_add(args, P) -> int:
    store = store_from_config(P)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", PersistenceWriteWarning)
        try:
            ann = store.add(args.lat, args.lon, note=args.note)
        except InvalidCoordinate as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
    town = store.resolver.get(ann.town_id)
    print(f"Added annotation {ann.id} -> {town.name if town else ann.town_id}")
    for w in caught:
        if issubclass(w.category, PersistenceWriteWarning):
            print(f"warning: not saved to disk: {w.message}", file=sys.stderr)
            return 1
    return 0


def _cmd_list(args, P) -> int:
    store = store_from_config(P)
    for ann in store.all():
        town = store.resolver.get(ann.town_id)
        name = town.name if town else "?"
        print(f"{ann.id}\t{name}\t{ann.note}")
    return 0


def _cmd_summary(args, P) -> int:
    store = store_from_config(P)
    rates = rates_from_config(P)
    decimals = int(P["display"]["decimals"])
    for s in summarize_all(store.resolver.towns, store.all(), rates):
        print(display_line(s, rates, decimals))
    return 0


def _cmd_export(args, P) -> int:
    store = store_from_config(P)
    blob = export(store.resolver.towns, store.all(), rates_from_config(P), int(P["report"]["decimals"]))
    if args.stdout:
        print(blob)
        return 0
    path = write_report(blob, FileSink(args.out), filename=P["report"]["filename"])
    print(f"Wrote {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="jia-map", description="JIA town mapping: annotations and town report")
    ap.add_argument("--config", default=None, help="YAML config (default: $JIA_CONFIG or config/params.yaml)")
    sub = ap.add_subparsers(dest="command", required=True)

    p_add = sub.add_parser("add", help="Add an anonymised point (snapped to the nearest town)")
    p_add.add_argument("--lat", type=float, required=True)
    p_add.add_argument("--lon", type=float, required=True)
    p_add.add_argument("--note", default="", help="Short non-identifying note")
    p_add.set_defaults(func=_cmd_add)

    p_list = sub.add_parser("list", help="List stored annotations")
    p_list.set_defaults(func=_cmd_list)

    p_sum = sub.add_parser("summary", help="Observed vs expected cases per town")
    p_sum.set_defaults(func=_cmd_summary)

    p_exp = sub.add_parser("export", help="Write the town summary report")
    p_exp.add_argument("--out", default=".", help="Directory to write the report into")
    p_exp.add_argument("--stdout", action="store_true", help="Print the report instead of writing a file")
    p_exp.set_defaults(func=_cmd_export)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    P = load_config(args.config)
    setup_logging(P.get("logging", {}).get("level", "INFO"))
    return int(args.func(args, P))


if __name__ == "__main__":
    sys.exit(main())
