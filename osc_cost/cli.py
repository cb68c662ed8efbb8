#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
osc-cost – CLI

Flow:
- Reads an inventory snapshot (raw Outscale API records) or resources
  previously written with --format json.
- Loads the price catalog: a local file, the cached/downloaded public
  catalog of the region, or the catalog embedded in the snapshot.
- Resolves and prices every resource, optionally aggregates by type.
- Optionally compares the estimate with billed consumption (drift).
- Prints hour / month / year totals, JSON lines, a table or Markdown.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from . import __version__
from .config import CATALOG_DIR, DEFAULT_LOG_LEVEL, DEFAULT_REGION, get_currency
from .core.digest import compute_digests, compute_drift, merge_consumption
from .core.resources import Resources
from .errors import CatalogError, DriftError, InventoryError, OscCostError
from .inventory import Inventory
from .pricing.catalog import Catalog, ensure_catalog, load_catalog
from .reporting.format import render_drifts_json, render_drifts_markdown, render_json, render_markdown, render_total
from .reporting.tables import render_drifts_human, render_human
from .resolvers.loader import default_license_table
from .resolvers.registry import build_default_registry
from .utils.trace import TraceLogger, build_trace_logger

console = Console(stderr=True)
_LOGGER = logging.getLogger("osc_cost")

OUTPUT_FORMATS = ["hour", "month", "year", "json", "human", "markdown"]
DRIFT_FORMATS = ("json", "human", "markdown")


# --------------------------------------------------------------------
# Argument parsing
# --------------------------------------------------------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="osc-cost",
        description=(
            "Estimate the cost of Outscale resources from the public price catalog\n"
            "and compare the estimate with billed consumption."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--inventory",
        type=str,
        default=None,
        help="Inventory snapshot (JSON) with the raw records of the account.",
    )
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Resources written by a previous run with --format json (JSON lines).",
    )

    parser.add_argument(
        "--catalog",
        type=str,
        default=None,
        help="Catalog file (JSONL cache or ReadPublicCatalog JSON). Overrides the snapshot catalog.",
    )
    parser.add_argument(
        "--fetch-catalog",
        action="store_true",
        help=f"Use the public catalog of the region, downloaded once and cached under {CATALOG_DIR}/.",
    )
    parser.add_argument(
        "--refresh-catalog",
        action="store_true",
        help="Download the public catalog again even if a cached copy exists.",
    )
    parser.add_argument(
        "--region",
        type=str,
        default=None,
        help=f"Region of the account (default: snapshot region, then {DEFAULT_REGION}).",
    )

    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="hour",
        help="Output format. Drift supports json, human and markdown only.",
    )
    parser.add_argument(
        "--aggregate",
        action="store_true",
        help="Aggregate resources by type before output.",
    )
    parser.add_argument(
        "--need-default-resource",
        action="store_true",
        help="Emit one zero-priced resource for each type the account has none of.",
    )
    parser.add_argument(
        "--skip-resource",
        action="append",
        default=[],
        metavar="TYPE",
        help="Do not price this resource type (e.g. Vm, Oos). Can be repeated.",
    )
    parser.add_argument(
        "--use-dedicated-instance",
        action="store_true",
        help="The account runs on dedicated hosts (adds the dedicated instance surcharge).",
    )

    drift = parser.add_argument_group("drift")
    drift.add_argument(
        "--compute-drift",
        action="store_true",
        help="Compare the estimate with billed consumption between --from-date and --to-date.",
    )
    drift.add_argument("--from-date", type=str, default=None, help="Start of the window (YYYY-MM-DD).")
    drift.add_argument("--to-date", type=str, default=None, help="End of the window (YYYY-MM-DD).")
    drift.add_argument(
        "--consumption",
        type=str,
        default=None,
        help="Consumption entries (JSON). Default: ConsumptionEntries of the snapshot.",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the output to this file instead of stdout.",
    )
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=DEFAULT_LOG_LEVEL.upper(),
        help="Logging level for internal messages (skipped resources are WARNING).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Shortcut for --log-level DEBUG.",
    )
    parser.add_argument(
        "--trace-path",
        type=str,
        default=None,
        help="Write a JSONL trace of the run (phases and skipped resources) to this file.",
    )
    parser.add_argument(
        "--help-resources",
        action="store_true",
        help="List the resources and licenses osc-cost knows how to price.",
    )

    args = parser.parse_args(argv)

    if not args.help_resources and not args.inventory and not args.input:
        parser.error("one of --inventory or --input is required")
    if args.compute_drift:
        if not args.from_date or not args.to_date:
            parser.error("--compute-drift requires --from-date and --to-date")
        if args.format not in DRIFT_FORMATS:
            parser.error(f"--compute-drift supports --format {', '.join(DRIFT_FORMATS)}")
    return args


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------
def managed_resources_help() -> str:
    lines = ["The following resources are managed by osc-cost:"]
    for resource_type in build_default_registry().resource_types():
        lines.append(f"- {resource_type}")
    lines.append("Licenses (included in Vm prices):")
    for rule in default_license_table().rules.values():
        if rule.kind == "free":
            continue
        lines.append(f"  - {rule.label} ({rule.code})")
    return "\n".join(lines) + "\n"


def _load_catalog(args: argparse.Namespace, region: str, inventory: Optional[Inventory]) -> Optional[Catalog]:
    if args.catalog:
        return load_catalog(args.catalog)
    if args.fetch_catalog or args.refresh_catalog:
        path = ensure_catalog(CATALOG_DIR, region, refresh=args.refresh_catalog)
        return load_catalog(path)
    if inventory is not None and inventory.catalog_entries:
        return inventory.build_catalog()
    return None


def _load_consumption(args: argparse.Namespace, inventory: Optional[Inventory]) -> List[Dict[str, Any]]:
    if not args.consumption:
        return inventory.consumption_entries if inventory is not None else []
    try:
        with open(args.consumption, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as ex:
        raise InventoryError(f"Cannot read consumption {args.consumption}: {ex}") from ex
    if isinstance(data, dict):
        data = data.get("ConsumptionEntries") or []
    if not isinstance(data, list):
        raise InventoryError(f"Unrecognized consumption document in {args.consumption}")
    return data


def _render(resources: Resources, fmt: str) -> str:
    if fmt in ("hour", "month", "year"):
        return render_total(resources, fmt) + "\n"
    if fmt == "json":
        return render_json(resources)
    if fmt == "human":
        return render_human(resources)
    return render_markdown(resources)


def run(args: argparse.Namespace, trace: Optional[TraceLogger] = None) -> str:
    inventory: Optional[Inventory] = None
    if args.input:
        try:
            with open(args.input, "r", encoding="utf-8") as f:
                resources = Resources.from_jsonl(f)
        except OSError as ex:
            raise InventoryError(f"Cannot read resources {args.input}: {ex}") from ex
        if args.inventory:
            inventory = Inventory.load(args.inventory)
    else:
        inventory = Inventory.load(args.inventory)

    region = args.region or (inventory.region if inventory is not None else None) or DEFAULT_REGION
    catalog = _load_catalog(args, region, inventory)

    if trace is not None:
        trace.log(
            "setup",
            {
                "osc_cost_version": __version__,
                "region": region,
                "currency": get_currency(region),
                "catalog_entries": len(catalog) if catalog is not None else 0,
                "skip_resources": args.skip_resource,
            },
        )

    if not args.input:
        if catalog is None:
            raise CatalogError("No catalog: pass --catalog, --fetch-catalog or a snapshot with a Catalog")
        ctx = inventory.context(
            catalog,
            need_default_resource=args.need_default_resource,
            skip_resources=args.skip_resource,
            use_dedicated_instance=args.use_dedicated_instance,
            trace=trace,
        )
        ctx.region = region
        resources = inventory.to_resources(ctx)

    resources.compute()
    if trace is not None:
        trace.log(
            "computed",
            {
                "resources": len(resources),
                "cost_per_hour": sum(r.price_per_hour or 0.0 for r in resources),
                "skipped": trace.skipped_summary(),
            },
        )

    if args.aggregate:
        resources = resources.aggregate()

    if not args.compute_drift:
        return _render(resources, args.format)

    if catalog is None:
        raise CatalogError("Drift needs a catalog to price consumption")
    entries = _load_consumption(args, inventory)
    if not entries:
        raise DriftError("No consumption entries to compare with")
    vm_types = inventory.vm_types_by_name if inventory is not None else {}
    digests = compute_digests(merge_consumption(entries), catalog, vm_types)
    drifts = compute_drift(digests, resources.aggregate(), args.from_date, args.to_date)
    if trace is not None:
        trace.log("drift", {"from_date": args.from_date, "to_date": args.to_date, "drifts": [d.to_dict() for d in drifts]})

    if args.format == "json":
        return render_drifts_json(drifts)
    if args.format == "human":
        return render_drifts_human(drifts)
    return render_drifts_markdown(drifts)


# --------------------------------------------------------------------
# Entry point
# --------------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    level = "DEBUG" if args.debug else args.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    _LOGGER.debug("CLI arguments: %s", args)

    if args.help_resources:
        sys.stdout.write(managed_resources_help())
        return

    trace = build_trace_logger(args.trace_path) if args.trace_path else None

    try:
        output = run(args, trace)
    except OscCostError as ex:
        _LOGGER.error("%s", ex)
        console.print(f"[red]osc-cost: {ex}[/red]")
        sys.exit(1)

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output, encoding="utf-8")
        console.print(f"[green]Output written to {out_path}[/green]")
    else:
        sys.stdout.write(output)


if __name__ == "__main__":
    main()
