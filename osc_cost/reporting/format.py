import logging
from typing import Any, List, Tuple

from ..config import get_currency
from ..core.digest import Drifts
from ..core.resources import Aggregate, Resources

_LOGGER = logging.getLogger(__name__)

PERIODS = ("hour", "month", "year")


def _format_currency(value: float, currency: str) -> str:
    return f"{value:,.2f} {currency}"


def _md_escape(v: Any) -> str:
    s = "" if v is None else str(v)
    # Escape pipes so Markdown tables don't break
    return s.replace("|", "\\|").replace("\n", " ").strip()


def render_total(resources: Resources, period: str) -> str:
    """Total cost of all resources for one period, as a bare number."""
    if period == "hour":
        return f"{resources.cost_per_hour()}"
    if period == "month":
        return f"{resources.cost_per_month()}"
    if period == "year":
        return f"{resources.cost_per_year()}"
    raise ValueError(f"Unknown period: {period}")


def render_json(resources: Resources) -> str:
    """One JSON object per line, tagged with resource_type."""
    return resources.to_jsonl()


def render_drifts_json(drifts: Drifts) -> str:
    return drifts.to_jsonl()


def summarize(resources: Resources) -> Tuple[str, str, List[Aggregate]]:
    """Aggregate if needed; return (account_id, currency, aggregates)."""
    aggregated = resources.aggregate()
    account_id = ""
    currency = ""
    rows: List[Aggregate] = []
    for resource in aggregated:
        if not isinstance(resource, Aggregate):
            _LOGGER.warning("Got a resource which is not an Aggregate for table output")
            continue
        if not currency and resource.region:
            currency = get_currency(resource.region)
        if not account_id and resource.account_id:
            account_id = resource.account_id
        rows.append(resource)
    return account_id, currency or get_currency(None), rows


def render_markdown(resources: Resources) -> str:
    account_id, currency, aggregates = summarize(resources)
    totals = Resources(list(aggregates))

    summary = [
        "| | |",
        "|---|---|",
        f"| Account Id | {_md_escape(account_id)} |",
        f"| Total price per hour | {_format_currency(totals.cost_per_hour(), currency)} |",
        f"| Total price per month | {_format_currency(totals.cost_per_month(), currency)} |",
        f"| Total price per year | {_format_currency(totals.cost_per_year(), currency)} |",
    ]

    details = [
        "| Resource Type | Count | Total price per hour | Total price per month | Total price per year |",
        "|---|---|---|---|---|",
    ]
    for agg in aggregates:
        details.append(
            "| {rt} | {count} | {hour} | {month} | {year} |".format(
                rt=_md_escape(agg.aggregated_resource_type),
                count=agg.count,
                hour=_format_currency(agg.get_price_per_hour(), currency),
                month=_format_currency(agg.get_price_per_month(), currency),
                year=_format_currency(agg.get_price_per_month() * 12, currency),
            )
        )

    return "Summary:\n" + "\n".join(summary) + "\n\nDetails:\n" + "\n".join(details) + "\n"


def render_drifts_markdown(drifts: Drifts) -> str:
    rows = [
        "| Resource Type | Osc-cost | Digest | Drift |",
        "|---|---|---|---|",
    ]
    for drift in drifts:
        rows.append(
            "| {rt} | {osc:.2f} | {digest:.2f} | {drift}% |".format(
                rt=_md_escape(drift.category),
                osc=drift.osc_cost_price,
                digest=drift.digest_price,
                drift=drift.drift,
            )
        )
    return "\n".join(rows) + "\n"

