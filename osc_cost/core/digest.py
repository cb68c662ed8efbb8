"""Billing consumption digests and drift against the current estimate.

The account consumption (ReadConsumptionAccount) reports usage per catalog
entry. Each entry is priced with the catalog and classified into the same
categories the aggregator produces, so the billed amount of a period can be
compared with ``price_per_hour * hours`` of the current snapshot.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .resources import Aggregate, Resource
from ..errors import DriftError, InventoryError
from ..pricing.catalog import Catalog, entry_id
from ..resolvers.loader import default_license_table, default_vm_families
from ..resolvers.types import LicenseTable, VmFamily
from ..resolvers.vms import parse_tina_type, vcpu_of

_LOGGER = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"

# (match, pattern, category); match is "prefix" or "exact". First match wins.
ENTRY_RULES: List[Tuple[str, str, str]] = [
    ("prefix", "TinaOS-FCU/BoxUsage", "Vm"),
    ("prefix", "TinaOS-FCU/CustomCore", "Vm"),
    ("prefix", "TinaOS-FCU/CustomRam", "Vm"),
    ("prefix", "TinaOS-FCU/ProductUsage", "Vm"),
    ("prefix", "TinaOS-FCU/BSU", "Volume"),
    ("exact", "TinaOS-FCU/ConnectionUsage/CreateVpnConnection", "Vpn"),
    ("prefix", "TinaOS-FCU/ElasticIP", "PublicIp"),
    ("exact", "TinaOS-FCU/NatGatewayUsage/CreateNatGateway", "NatServices"),
    ("exact", "TinaOS-FCU/Snapshot:Usage/Snapshot", "Snapshot"),
    ("prefix", "TinaOS-FCU/Gpu:", "FlexibleGpu"),
    ("exact", "TinaOS-FCU/UseDedicated/RunDedicatedInstances", "DedicatedInstance"),
    ("prefix", "TinaOS-OOS", "Oos"),
    ("prefix", "TinaOS-OSU", "Oos"),
    ("exact", "TinaOS-LBU/LBU:Usage/CreateLoadBalancer", "LoadBalancer"),
]

PRODUCT_USAGE_RE = re.compile(r"^TinaOS-FCU/ProductUsage:(.+)/RunInstances-(\d+)-OD")
TINA_BOX_USAGE_PREFIX = "TinaOS-FCU/BoxUsage:tina"
BOX_TYPE_RE = re.compile(r":(.+)/")
# Billed tina types without a performance suffix run at "high".
DEFAULT_TINA_PERFORMANCE = "2"


def classify_entry_id(key: str) -> Optional[str]:
    for match, pattern, category in ENTRY_RULES:
        if match == "exact" and key == pattern:
            return category
        if match == "prefix" and key.startswith(pattern):
            return category
    _LOGGER.warning("Consumption entry '%s' does not match any resource type", key)
    return None


@dataclass
class Digest:
    price: Optional[float] = None

    def add(self, price: float) -> None:
        self.price = (self.price or 0.0) + price


def _parse_value(raw: Any, *, key: str) -> float:
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        raise InventoryError(f"Consumption Value must be a number for '{key}', got {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as ex:
        raise InventoryError(f"Consumption Value must be a number for '{key}', got {raw!r}") from ex


@dataclass
class ConsumptionEntry:
    service: str
    type: str
    operation: str
    value: float = 0.0
    title: str = ""
    category: str = ""
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    account_id: Optional[str] = None
    paying_account_id: Optional[str] = None

    @property
    def key(self) -> str:
        return entry_id(self.service, self.type, self.operation)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Optional["ConsumptionEntry"]:
        service = raw.get("Service")
        type_ = raw.get("Type")
        operation = raw.get("Operation")
        if not service or not type_ or not operation:
            return None
        return cls(
            service=service,
            type=type_,
            operation=operation,
            value=_parse_value(raw.get("Value"), key=entry_id(service, type_, operation)),
            title=raw.get("Title") or "",
            category=raw.get("Category") or "",
            from_date=raw.get("FromDate"),
            to_date=raw.get("ToDate"),
            account_id=raw.get("AccountId"),
            paying_account_id=raw.get("PayingAccountId"),
        )


def merge_consumption(raw_entries: Iterable[Mapping[str, Any]]) -> Dict[str, ConsumptionEntry]:
    """Fold consumption entries by catalog key, summing their values."""
    merged: Dict[str, ConsumptionEntry] = {}
    for raw in raw_entries:
        entry = ConsumptionEntry.from_dict(raw)
        if entry is None:
            _LOGGER.warning("Consumption entry without Service/Type/Operation ignored: %s", dict(raw))
            continue
        current = merged.get(entry.key)
        if current is None:
            merged[entry.key] = entry
        else:
            current.value += entry.value
    _LOGGER.info("Merged %d consumption entries", len(merged))
    return merged


def _product_usage_price(
    key: str,
    entry: ConsumptionEntry,
    catalog: Catalog,
    vm_types: Mapping[str, Mapping[str, Any]],
    licenses: LicenseTable,
    families: Mapping[str, VmFamily],
) -> Optional[float]:
    m = PRODUCT_USAGE_RE.match(key)
    if m is None:
        _LOGGER.warning("Cannot extract VM type from '%s'", key)
        return None
    vm_type, code = m.group(1), m.group(2)

    cores = vcpu_of(vm_type, vm_types, families)
    if cores is None:
        _LOGGER.warning("Cannot extract cores from VM type '%s' (%s)", vm_type, key)
        return None

    rule = licenses.get(code)
    if rule is None:
        _LOGGER.warning("Product code %s is not managed (%s)", code, key)
        return None

    unit_price = catalog.get(entry_id("TinaOS-FCU", "ProductUsage", f"RunInstances-{code}-OD"))
    if unit_price is None:
        return None
    return rule.factor(cores) * entry.value * unit_price


def _tina_box_usage_price(key: str, entry: ConsumptionEntry, catalog: Catalog) -> Optional[float]:
    m = BOX_TYPE_RE.search(key)
    parsed = parse_tina_type(m.group(1)) if m else None
    if parsed is None:
        _LOGGER.warning("Cannot extract tina type from '%s'", key)
        return None
    generation, vcpu, ram_gb, performance = parsed
    performance = performance or DEFAULT_TINA_PERFORMANCE

    ram_price = catalog.get("TinaOS-FCU/CustomRam/RunInstances-OD")
    core_price = catalog.get(f"TinaOS-FCU/CustomCore:v{generation}-p{performance}/RunInstances-OD")
    if ram_price is None or core_price is None:
        return None
    return entry.value * (ram_gb * ram_price + vcpu * core_price)


def compute_digests(
    consumption: Mapping[str, ConsumptionEntry],
    catalog: Catalog,
    vm_types: Optional[Mapping[str, Mapping[str, Any]]] = None,
    licenses: Optional[LicenseTable] = None,
    families: Optional[Mapping[str, VmFamily]] = None,
) -> Dict[str, Digest]:
    """Price merged consumption entries and sum them per category.

    License usage is reported per VM type and product code, and tina VM
    usage as box hours, so both are re-priced with the license factors and
    the core/ram rates. Everything else is ``value * unit_price``.
    """
    vm_types = vm_types or {}
    licenses = licenses or default_license_table()
    families = families if families is not None else default_vm_families()

    digests: Dict[str, Digest] = {}
    for key, entry in consumption.items():
        if key.startswith("TinaOS-FCU/ProductUsage"):
            price = _product_usage_price(key, entry, catalog, vm_types, licenses, families)
            category: Optional[str] = "Vm"
        elif key.startswith(TINA_BOX_USAGE_PREFIX):
            price = _tina_box_usage_price(key, entry, catalog)
            category = "Vm"
        else:
            price = catalog.get(key)
            category = classify_entry_id(key) if price is not None else None
            if price is not None:
                price = entry.value * price

        if price is None or category is None:
            _LOGGER.warning("Skipping consumption entry '%s'", key)
            continue
        digests.setdefault(category, Digest()).add(price)
    return digests


@dataclass
class Drift:
    category: str
    osc_cost_price: float
    digest_price: float
    drift: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Drifts:
    drifts: List[Drift] = field(default_factory=list)

    def __iter__(self) -> Iterator[Drift]:
        return iter(self.drifts)

    def __len__(self) -> int:
        return len(self.drifts)

    def get(self, category: str) -> Optional[Drift]:
        for d in self.drifts:
            if d.category == category:
                return d
        return None

    def to_jsonl(self) -> str:
        return "".join(json.dumps(d.to_dict(), ensure_ascii=False) + "\n" for d in self.drifts)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError) as ex:
        raise DriftError(f"Invalid date {value!r}, expected YYYY-MM-DD") from ex


def window_hours(from_date: str, to_date: str) -> float:
    """Hours between two calendar days (whole days only)."""
    start = parse_date(from_date)
    end = parse_date(to_date)
    if end < start:
        raise DriftError(f"to_date {to_date} is before from_date {from_date}")
    return float((end - start).days * 24)


def compute_drift(
    digests: Mapping[str, Digest],
    resources: Iterable[Resource],
    from_date: str,
    to_date: str,
) -> Drifts:
    """Compare billed digests with the current estimate projected over the window.

    ``resources`` must be aggregated. drift is the relative gap in percent,
    ``(projected - billed) * 100 / billed``; a category billed 0 but
    estimated above 0 drifts 100%.
    """
    diff = window_hours(from_date, to_date)
    drifts: List[Drift] = []

    for resource in resources:
        if not isinstance(resource, Aggregate):
            _LOGGER.warning("Cannot compute drift on non aggregated resource %s", resource.resource_type)
            continue

        category = resource.aggregated_resource_type
        digest = digests.get(category)

        if digest is None:
            projected = (resource.price_per_hour or 0.0) * diff
            if not projected:
                continue
            drifts.append(Drift(category, projected, 0.0, 100))
            continue

        if digest.price is None:
            _LOGGER.warning("The digest price for %s has not been computed", category)
            continue
        if resource.price_per_hour is None:
            _LOGGER.warning("The estimated price for %s has not been computed", category)
            continue

        projected = resource.price_per_hour * diff
        if digest.price == 0:
            if projected == 0:
                continue
            drifts.append(Drift(category, projected, 0.0, 100))
            continue

        drift = int(round((projected - digest.price) * 100 / digest.price))
        drifts.append(Drift(category, projected, digest.price, drift))

    return Drifts(drifts)
