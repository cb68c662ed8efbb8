"""Terminal tables rendered with rich."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table

from .format import summarize
from ..core.digest import Drifts
from ..core.resources import Resources

TABLE_WIDTH = 100


def _money(value: float, currency: str) -> str:
    return f"{value:,.2f}{currency}"


def _render(*renderables) -> str:
    console = Console(width=TABLE_WIDTH, force_terminal=False, color_system=None)
    with console.capture() as capture:
        for r in renderables:
            console.print(r)
    return capture.get()


def render_human(resources: Resources) -> str:
    account_id, currency, aggregates = summarize(resources)
    totals = Resources(list(aggregates))

    summary = Table(title="Summary", box=box.ROUNDED, show_header=False, title_justify="left")
    summary.add_column("Field")
    summary.add_column("Value")
    summary.add_row("Account Id", account_id)
    summary.add_row("Total price per hour", _money(totals.cost_per_hour(), currency))
    summary.add_row("Total price per month", _money(totals.cost_per_month(), currency))
    summary.add_row("Total price per year", _money(totals.cost_per_year(), currency))

    details = Table(title="Details", box=box.ROUNDED, title_justify="left")
    details.add_column("Resource Type")
    details.add_column("Count", justify="right")
    details.add_column("Total price per hour", justify="right")
    details.add_column("Total price per month", justify="right")
    details.add_column("Total price per year", justify="right")
    for agg in aggregates:
        details.add_row(
            agg.aggregated_resource_type,
            str(agg.count),
            _money(agg.get_price_per_hour(), currency),
            _money(agg.get_price_per_month(), currency),
            _money(agg.get_price_per_month() * 12, currency),
        )

    return _render(summary, details)


def render_drifts_human(drifts: Drifts) -> str:
    table = Table(box=box.ROUNDED)
    table.add_column("Resource Type")
    table.add_column("Osc-cost", justify="right")
    table.add_column("Digest", justify="right")
    table.add_column("Drift", justify="right")
    for drift in drifts:
        table.add_row(
            drift.category,
            f"{drift.osc_cost_price:.2f}",
            f"{drift.digest_price:.2f}",
            f"{drift.drift}%",
        )
    return _render(table)
