from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Protocol, Sequence, Type

from .loader import default_license_table, default_vm_families
from .types import LicenseTable, VmFamily
from .. import __version__
from ..core.resources import Resource
from ..pricing.catalog import Catalog, entry_id
from ..utils.trace import TraceLogger

_LOGGER = logging.getLogger("osc_cost.resolvers")

FCU_SERVICE = "TinaOS-FCU"


@dataclass
class ResolutionContext:
    """Everything a resolver needs besides the raw records.

    Passed explicitly to every resolver; there is no module-level state.
    """

    catalog: Catalog
    account_id: Optional[str] = None
    region: Optional[str] = None
    read_date_rfc3339: Optional[str] = None
    vm_types: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    licenses: LicenseTable = field(default_factory=default_license_table)
    vm_families: Dict[str, VmFamily] = field(default_factory=default_vm_families)
    need_default_resource: bool = False
    skip_resources: FrozenSet[str] = frozenset()
    use_dedicated_instance: bool = False
    logger: logging.Logger = _LOGGER
    trace: Optional[TraceLogger] = None

    def envelope(self) -> Dict[str, Any]:
        return {
            "osc_cost_version": __version__,
            "account_id": self.account_id,
            "read_date_rfc3339": self.read_date_rfc3339,
            "region": self.region,
        }

    def price(self, service: str, type_: str, operation: str) -> Optional[float]:
        return self.catalog.lookup(service, type_, operation)

    def skip(
        self,
        resource_type: str,
        resource_id: Optional[str],
        reason: str,
        *,
        key: Optional[str] = None,
    ) -> None:
        """Report a resource that will not appear in the output."""
        self.logger.warning(
            "Skipping %s '%s': %s (catalog key: %s)",
            resource_type,
            resource_id or "",
            reason,
            key or "-",
        )
        if self.trace is not None:
            self.trace.resource_skipped(resource_type, resource_id, reason, key)


class Resolver(Protocol):
    """Turns raw records of one kind into unpriced resources."""

    resource_type: str

    def records(self, inventory: Any) -> Sequence[Mapping[str, Any]]: ...

    def resolve(self, inventory: Any, ctx: ResolutionContext) -> List[Resource]: ...


class BaseResolver:
    """Per-record resolution with the placeholder policy applied once per kind."""

    resource_type: str = ""
    resource_class: Type[Resource] = Resource
    inventory_attr: str = ""

    def records(self, inventory: Any) -> Sequence[Mapping[str, Any]]:
        return getattr(inventory, self.inventory_attr, None) or []

    def resolve(self, inventory: Any, ctx: ResolutionContext) -> List[Resource]:
        records = self.records(inventory)
        out: List[Resource] = []
        if not records and ctx.need_default_resource:
            out.append(self.resource_class.placeholder(**ctx.envelope()))
        for record in records:
            resource = self.resolve_one(record, inventory, ctx)
            if resource is not None:
                out.append(resource)
        ctx.logger.debug("%s: %d records, %d resources", self.resource_type, len(records), len(out))
        return out

    def resolve_one(
        self,
        record: Mapping[str, Any],
        inventory: Any,
        ctx: ResolutionContext,
    ) -> Optional[Resource]:
        return None


__all__ = ["BaseResolver", "FCU_SERVICE", "ResolutionContext", "Resolver", "entry_id"]
