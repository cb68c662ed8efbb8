"""Inventory snapshot: raw records of an account, as read from the Outscale API.

The snapshot is a JSON document that keeps the API field names, e.g.::

    {
      "AccountId": "123456789012",
      "Region": "eu-west-2",
      "FetchDate": "2024-01-02T10:00:00+00:00",
      "Catalog": {"Entries": [...]},
      "VmTypes": [{"VmTypeName": "m4.large", "VcoreCount": 2, "MemorySize": 8}],
      "Vms": [...], "Volumes": [...], "Snapshots": [...], "PublicIps": [...],
      "NatServices": [...], "FlexibleGpus": [...], "LoadBalancers": [...],
      "VpnConnections": [...], "Buckets": [{"Name": "b", "Objects": [{"Size": 1}]}],
      "UseDedicatedInstance": false,
      "ConsumptionEntries": [...]
    }

Every collection is optional.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Dict, Iterable, List, Optional

from .errors import InventoryError
from .pricing.catalog import Catalog
from .resolvers.base import ResolutionContext
from .resolvers.registry import ResolverRegistry, build_default_registry
from .resolvers.vms import vms_by_id
from .core.resources import Resources
from .utils.trace import TraceLogger

_LOGGER = logging.getLogger(__name__)

COLLECTIONS = {
    "vms": "Vms",
    "volumes": "Volumes",
    "snapshots": "Snapshots",
    "public_ips": "PublicIps",
    "nat_services": "NatServices",
    "flexible_gpus": "FlexibleGpus",
    "load_balancers": "LoadBalancers",
    "vpn_connections": "VpnConnections",
    "buckets": "Buckets",
    "consumption_entries": "ConsumptionEntries",
}


def _records(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise InventoryError(f"'{key}' must be a list of objects")
    return value


@dataclass
class Inventory:
    account_id: Optional[str] = None
    region: Optional[str] = None
    fetch_date: Optional[datetime] = None
    catalog_entries: List[Dict[str, Any]] = field(default_factory=list)
    vm_types: List[Dict[str, Any]] = field(default_factory=list)
    vms: List[Dict[str, Any]] = field(default_factory=list)
    volumes: List[Dict[str, Any]] = field(default_factory=list)
    snapshots: List[Dict[str, Any]] = field(default_factory=list)
    public_ips: List[Dict[str, Any]] = field(default_factory=list)
    nat_services: List[Dict[str, Any]] = field(default_factory=list)
    flexible_gpus: List[Dict[str, Any]] = field(default_factory=list)
    load_balancers: List[Dict[str, Any]] = field(default_factory=list)
    vpn_connections: List[Dict[str, Any]] = field(default_factory=list)
    buckets: List[Dict[str, Any]] = field(default_factory=list)
    use_dedicated_instance: bool = False
    consumption_entries: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Inventory":
        if not isinstance(data, dict):
            raise InventoryError("Inventory snapshot must be a JSON object")

        fetch_date = None
        raw_date = data.get("FetchDate")
        if raw_date:
            try:
                fetch_date = datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
            except ValueError as ex:
                raise InventoryError(f"Invalid FetchDate {raw_date!r}: {ex}") from ex

        catalog = data.get("Catalog")
        if isinstance(catalog, dict):
            catalog_entries = _records(catalog, "Entries")
        else:
            catalog_entries = _records(data, "CatalogEntries")

        kwargs = {attr: _records(data, key) for attr, key in COLLECTIONS.items()}
        return cls(
            account_id=data.get("AccountId"),
            region=data.get("Region"),
            fetch_date=fetch_date,
            catalog_entries=catalog_entries,
            vm_types=_records(data, "VmTypes"),
            use_dedicated_instance=bool(data.get("UseDedicatedInstance", False)),
            **kwargs,
        )

    @classmethod
    def load(cls, path: str) -> "Inventory":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as ex:
            raise InventoryError(f"Cannot read inventory {path}: {ex}") from ex
        except json.JSONDecodeError as ex:
            raise InventoryError(f"Invalid JSON in inventory {path}: {ex}") from ex
        inventory = cls.from_dict(data)
        _LOGGER.info(
            "Loaded inventory for account '%s' in %s: %s",
            inventory.account_id,
            inventory.region,
            ", ".join(f"{len(getattr(inventory, a))} {k}" for a, k in COLLECTIONS.items() if getattr(inventory, a)),
        )
        return inventory

    @cached_property
    def vm_types_by_name(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for vm_type in self.vm_types:
            name = vm_type.get("VmTypeName")
            if not name:
                _LOGGER.warning("VM type has no VmTypeName, ignored")
                continue
            out[name] = vm_type
        return out

    @cached_property
    def billed_vms(self) -> Dict[str, Dict[str, Any]]:
        return vms_by_id(self.vms)

    def read_date_rfc3339(self) -> str:
        date = self.fetch_date or datetime.now(timezone.utc)
        return date.isoformat()

    def build_catalog(self) -> Catalog:
        return Catalog.build(self.catalog_entries)

    def context(
        self,
        catalog: Optional[Catalog] = None,
        *,
        need_default_resource: bool = False,
        skip_resources: Iterable[str] = (),
        use_dedicated_instance: bool = False,
        trace: Optional[TraceLogger] = None,
    ) -> ResolutionContext:
        return ResolutionContext(
            catalog=catalog if catalog is not None else self.build_catalog(),
            account_id=self.account_id,
            region=self.region,
            read_date_rfc3339=self.read_date_rfc3339(),
            vm_types=self.vm_types_by_name,
            need_default_resource=need_default_resource,
            skip_resources=frozenset(skip_resources),
            use_dedicated_instance=use_dedicated_instance or self.use_dedicated_instance,
            trace=trace,
        )

    def to_resources(
        self,
        ctx: Optional[ResolutionContext] = None,
        registry: Optional[ResolverRegistry] = None,
    ) -> Resources:
        """Resolve every record into an unpriced resource; call compute() next."""
        ctx = ctx or self.context()
        registry = registry or build_default_registry()
        resources = registry.resolve(self, ctx)
        _LOGGER.info("Resolved %d resources", len(resources))
        return resources
