"""Priced resources.

Every resource kind is a dataclass carrying a ``resource_type`` tag and the
common envelope (version, account, read date, region, id, prices). Resolvers
fill the pricing inputs; ``compute()`` turns them into ``price_per_hour`` and
``price_per_month``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar, Dict, Iterable, Iterator, List, Optional, Type

from ..config import HOURS_PER_MONTH
from ..errors import ComputeError, InventoryError, ResourceNotComputedError

_LOGGER = logging.getLogger(__name__)


@dataclass
class Resource:
    resource_type: ClassVar[str] = ""

    osc_cost_version: Optional[str] = None
    account_id: Optional[str] = None
    read_date_rfc3339: Optional[str] = None
    region: Optional[str] = None
    resource_id: Optional[str] = None
    price_per_hour: Optional[float] = None
    price_per_month: Optional[float] = None

    @property
    def category(self) -> str:
        """Label used to group this resource when aggregating."""
        return self.resource_type

    def compute(self) -> None:
        raise NotImplementedError

    def get_price_per_hour(self) -> float:
        if self.price_per_hour is None:
            raise ResourceNotComputedError(f"{self.resource_type} '{self.resource_id}' has no price per hour")
        return self.price_per_hour

    def get_price_per_month(self) -> float:
        if self.price_per_month is None:
            raise ResourceNotComputedError(f"{self.resource_type} '{self.resource_id}' has no price per month")
        return self.price_per_month

    def _require(self, name: str) -> Any:
        value = getattr(self, name)
        if value is None:
            raise ComputeError(self.resource_type, self.resource_id, name)
        return value

    @classmethod
    def placeholder(cls, **envelope: Any) -> "Resource":
        """Zero-priced stand-in emitted when a kind has no resource at all."""
        return cls(resource_id="", price_per_hour=0.0, price_per_month=0.0, **envelope)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"resource_type": self.resource_type}
        out.update(asdict(self))
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resource":
        tag = data.get("resource_type")
        klass = RESOURCE_TYPES.get(tag) if isinstance(tag, str) else None
        if klass is None:
            raise ValueError(f"Unknown resource_type: {tag!r}")
        known = {f.name for f in fields(klass)}
        return klass(**{k: v for k, v in data.items() if k in known})


class _FlatRateResource(Resource):
    """Hourly-rate resource: whichever of hour/month is set gives the other."""

    def compute(self) -> None:
        if self.price_per_hour is not None:
            self.price_per_month = self.price_per_hour * HOURS_PER_MONTH
        elif self.price_per_month is not None:
            self.price_per_hour = self.price_per_month / HOURS_PER_MONTH
        else:
            raise ComputeError(self.resource_type, self.resource_id, "price_per_hour")


@dataclass
class Vm(Resource):
    resource_type: ClassVar[str] = "Vm"

    vm_type: Optional[str] = None
    vm_vcpu_gen: Optional[str] = None
    vm_core_performance: Optional[str] = None
    vm_image: Optional[str] = None
    nested_virtualization: Optional[bool] = None
    license_codes: str = ""
    vm_vcpu: Optional[int] = None
    vm_ram_gb: Optional[float] = None
    price_vcpu_per_hour: float = 0.0
    price_ram_gb_per_hour: float = 0.0
    price_box_per_hour: float = 0.0
    price_license_per_ram_gb_per_hour: float = 0.0
    price_license_per_cpu_per_hour: float = 0.0
    price_license_per_vm_per_hour: float = 0.0

    def compute(self) -> None:
        vcpu = self._require("vm_vcpu")
        ram_gb = self._require("vm_ram_gb")
        price_per_hour = 0.0
        price_per_hour += vcpu * self.price_vcpu_per_hour
        price_per_hour += ram_gb * self.price_ram_gb_per_hour
        price_per_hour += vcpu * self.price_license_per_cpu_per_hour
        price_per_hour += ram_gb * self.price_license_per_ram_gb_per_hour
        price_per_hour += self.price_license_per_vm_per_hour
        price_per_hour += self.price_box_per_hour
        self.price_per_hour = price_per_hour
        self.price_per_month = price_per_hour * HOURS_PER_MONTH

    @classmethod
    def placeholder(cls, **envelope: Any) -> "Vm":
        return cls(resource_id="", price_per_hour=0.0, price_per_month=0.0, vm_vcpu=0, vm_ram_gb=0.0, **envelope)


@dataclass
class Volume(Resource):
    resource_type: ClassVar[str] = "Volume"

    volume_type: Optional[str] = None
    volume_size: Optional[int] = None
    volume_iops: Optional[int] = None
    price_gb_per_month: float = 0.0
    price_iops_per_month: float = 0.0

    def compute(self) -> None:
        size = self._require("volume_size")
        price_per_month = size * self.price_gb_per_month
        price_per_month += (self.volume_iops or 0) * self.price_iops_per_month
        self.price_per_month = price_per_month
        self.price_per_hour = price_per_month / HOURS_PER_MONTH

    @classmethod
    def placeholder(cls, **envelope: Any) -> "Volume":
        return cls(resource_id="", price_per_hour=0.0, price_per_month=0.0, volume_size=0, volume_iops=0, **envelope)


@dataclass
class Snapshot(Resource):
    resource_type: ClassVar[str] = "Snapshot"

    volume_size_gib: Optional[int] = None
    price_gb_per_month: float = 0.0

    def compute(self) -> None:
        price_per_month = self._require("volume_size_gib") * self.price_gb_per_month
        self.price_per_month = price_per_month
        self.price_per_hour = price_per_month / HOURS_PER_MONTH

    @classmethod
    def placeholder(cls, **envelope: Any) -> "Snapshot":
        return cls(resource_id="", price_per_hour=0.0, price_per_month=0.0, volume_size_gib=0, **envelope)


@dataclass
class ObjectStorageBucket(Resource):
    resource_type: ClassVar[str] = "Oos"

    size_gb: Optional[float] = None
    number_files: int = 0
    price_gb_per_month: float = 0.0

    def compute(self) -> None:
        price_per_month = self._require("size_gb") * self.price_gb_per_month
        self.price_per_month = price_per_month
        self.price_per_hour = price_per_month / HOURS_PER_MONTH

    @classmethod
    def placeholder(cls, **envelope: Any) -> "ObjectStorageBucket":
        return cls(resource_id="", price_per_hour=0.0, price_per_month=0.0, size_gb=0.0, **envelope)


@dataclass
class PublicIp(Resource):
    """Exactly one of the three rates is set by the resolver."""

    resource_type: ClassVar[str] = "PublicIp"

    price_non_attached: Optional[float] = None
    price_first_ip: Optional[float] = None
    price_next_ips: Optional[float] = None

    def compute(self) -> None:
        if self.price_non_attached is not None:
            price_per_hour = self.price_non_attached
        elif self.price_first_ip is not None:
            price_per_hour = self.price_first_ip
        elif self.price_next_ips is not None:
            price_per_hour = self.price_next_ips
        else:
            raise ComputeError(self.resource_type, self.resource_id, "price_non_attached")
        self.price_per_hour = price_per_hour
        self.price_per_month = price_per_hour * HOURS_PER_MONTH

    @classmethod
    def placeholder(cls, **envelope: Any) -> "PublicIp":
        return cls(resource_id="", price_per_hour=0.0, price_per_month=0.0, price_non_attached=0.0, **envelope)


@dataclass
class NatService(Resource):
    resource_type: ClassVar[str] = "NatServices"

    price_product_per_nat_service_per_hour: Optional[float] = None

    def compute(self) -> None:
        price_per_hour = self._require("price_product_per_nat_service_per_hour")
        self.price_per_hour = price_per_hour
        self.price_per_month = price_per_hour * HOURS_PER_MONTH

    @classmethod
    def placeholder(cls, **envelope: Any) -> "NatService":
        return cls(
            resource_id="",
            price_per_hour=0.0,
            price_per_month=0.0,
            price_product_per_nat_service_per_hour=0.0,
            **envelope,
        )


@dataclass
class FlexibleGpu(_FlatRateResource):
    resource_type: ClassVar[str] = "FlexibleGpu"

    model_name: Optional[str] = None


@dataclass
class LoadBalancer(_FlatRateResource):
    resource_type: ClassVar[str] = "LoadBalancer"


@dataclass
class Vpn(_FlatRateResource):
    resource_type: ClassVar[str] = "Vpn"


@dataclass
class DedicatedInstance(_FlatRateResource):
    resource_type: ClassVar[str] = "DedicatedInstance"


@dataclass
class Aggregate(Resource):
    """Per-category sum produced by ``Resources.aggregate()``."""

    resource_type: ClassVar[str] = "Aggregate"

    aggregated_resource_type: str = ""
    count: int = 0

    @property
    def category(self) -> str:
        return self.aggregated_resource_type

    def compute(self) -> None:
        # Already summed.
        return None


RESOURCE_TYPES: Dict[str, Type[Resource]] = {
    klass.resource_type: klass
    for klass in (
        Vm,
        Volume,
        PublicIp,
        Snapshot,
        NatService,
        FlexibleGpu,
        LoadBalancer,
        Vpn,
        ObjectStorageBucket,
        DedicatedInstance,
        Aggregate,
    )
}


@dataclass
class Resources:
    resources: List[Resource] = field(default_factory=list)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.resources)

    def __len__(self) -> int:
        return len(self.resources)

    def append(self, resource: Resource) -> None:
        self.resources.append(resource)

    def extend(self, resources: Iterable[Resource]) -> None:
        self.resources.extend(resources)

    def compute(self) -> None:
        for resource in self.resources:
            resource.compute()

    def cost_per_hour(self) -> float:
        return sum(r.get_price_per_hour() for r in self.resources)

    def cost_per_month(self) -> float:
        return sum(r.get_price_per_month() for r in self.resources)

    def cost_per_year(self) -> float:
        return self.cost_per_month() * 12

    def aggregate(self) -> "Resources":
        from .aggregate import aggregate

        return aggregate(self)

    def to_jsonl(self) -> str:
        return "".join(json.dumps(r.to_dict(), ensure_ascii=False) + "\n" for r in self.resources)

    @classmethod
    def from_jsonl(cls, lines: Iterable[str]) -> "Resources":
        """Read resources back from JSON lines (blank lines ignored)."""
        out: List[Resource] = []
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                out.append(Resource.from_dict(json.loads(line)))
            except (json.JSONDecodeError, TypeError, ValueError) as ex:
                raise InventoryError(f"Invalid resource on line {lineno}: {ex}") from ex
        _LOGGER.debug("Read %d resources from JSON lines", len(out))
        return cls(out)
