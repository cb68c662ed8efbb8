from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .base import FCU_SERVICE, BaseResolver, ResolutionContext
from .types import LicenseTable, VmFamily
from ..core.resources import Vm
from ..pricing.catalog import entry_id

# format: tinav5.c20r40p1
#              │  ││ ││ │
#              │  ││ ││ └── vcpu performance
#              │  ││ └┴── ram quantity (GiB)
#              │  └┴── number of vcores
#              └── generation
TINA_TYPE_RE = re.compile(r"^tinav(\d+)\.c(\d+)r(\d+)(p(\d+))?$")

# https://docs.outscale.com/en/userguide/Instance-Types.html#_characteristics
PERFORMANCE_CODES = {
    "medium": "3",
    "high": "2",
    "highest": "1",
}

PRICED_STATES = frozenset({"running", "stopping", "shutting-down"})
IGNORED_STATES = frozenset({"pending", "stopped", "terminated", "quarantine"})


def is_priced_state(state: Optional[str]) -> bool:
    return state is None or state in PRICED_STATES


def parse_tina_type(vm_type: str) -> Optional[Tuple[str, int, int, Optional[str]]]:
    """Split a self-describing type into (generation, vcpu, ram_gb, performance).

    performance is None when the type has no ``p<n>`` suffix.
    """
    m = TINA_TYPE_RE.match(vm_type or "")
    if m is None:
        return None
    return m.group(1), int(m.group(2)), int(m.group(3)), m.group(5)


def vm_family(vm_type: str) -> str:
    # m4.4xlarge -> m4
    return vm_type.split(".", 1)[0]


def parse_box_type(
    vm_type: str,
    vm_types: Mapping[str, Mapping[str, Any]],
    families: Mapping[str, VmFamily],
    ctx: Optional[ResolutionContext] = None,
) -> Optional[Tuple[str, int, float, str]]:
    """Resolve an AWS-compatible type into (generation, vcpu, ram_gb, performance).

    vcpu and ram come from the account's VM type table. The family only
    provides generation/performance for display; an unknown family is not
    fatal.
    """
    log = ctx.logger if ctx is not None else None
    vm_type_obj = vm_types.get(vm_type)
    if vm_type_obj is None:
        if log:
            log.warning("VM type '%s' is not in the VM type table", vm_type)
        return None
    vcpu = vm_type_obj.get("VcoreCount")
    ram_gb = vm_type_obj.get("MemorySize")
    if vcpu is None:
        if log:
            log.warning("vcpu is not defined for VM type '%s'", vm_type)
        return None
    if ram_gb is None:
        if log:
            log.warning("ram is not defined for VM type '%s'", vm_type)
        return None

    family = families.get(vm_family(vm_type))
    if family is None:
        if log:
            log.warning("Unknown VM family for '%s'", vm_type)
        generation, performance = "", ""
    else:
        generation, performance = family.generation, family.performance
    return generation, int(vcpu), float(ram_gb), performance


def vcpu_of(
    vm_type: str,
    vm_types: Mapping[str, Mapping[str, Any]],
    families: Mapping[str, VmFamily],
    ctx: Optional[ResolutionContext] = None,
) -> Optional[int]:
    if vm_type.startswith("tina"):
        parsed = parse_tina_type(vm_type)
        return parsed[1] if parsed else None
    box = parse_box_type(vm_type, vm_types, families, ctx)
    return box[1] if box else None


def license_key(code: str) -> Tuple[str, str, str]:
    return FCU_SERVICE, "ProductUsage", f"RunInstances-{code}-OD"


@dataclass
class VmSpec:
    """Intermediate resolution state for one VM."""

    vm_type: str
    generation: str = ""
    performance: str = ""
    vcpu: int = 0
    ram_gb: float = 0.0
    product_codes: List[str] = field(default_factory=list)
    price_vcpu_per_hour: float = 0.0
    price_ram_gb_per_hour: float = 0.0
    price_box_per_hour: float = 0.0
    price_license_per_ram_gb_per_hour: float = 0.0
    price_license_per_cpu_per_hour: float = 0.0
    price_license_per_vm_per_hour: float = 0.0


def apply_licenses(spec: VmSpec, licenses: LicenseTable, ctx: ResolutionContext, vm_id: str = "") -> None:
    """Accumulate license prices into the per-cpu and per-VM addends.

    A per-core license costs factor * unit_price for the whole VM; dividing
    by vcpu lets the VM formula (which multiplies the per-cpu rate by vcpu)
    reproduce that total. An unknown code or a catalog miss skips the code,
    not the VM.
    """
    for code in spec.product_codes:
        rule = licenses.get(code)
        if rule is None:
            ctx.logger.warning("VM '%s': product code %s is not managed", vm_id, code)
            continue
        if rule.kind == "free":
            continue
        price = ctx.price(*license_key(code))
        if price is None:
            continue
        if rule.kind == "per_vm":
            spec.price_license_per_vm_per_hour += price
        else:
            spec.price_license_per_cpu_per_hour += rule.factor(spec.vcpu) * price / spec.vcpu


class VmResolver(BaseResolver):
    resource_type = "Vm"
    resource_class = Vm
    inventory_attr = "vms"

    def resolve_spec(self, record: Mapping[str, Any], ctx: ResolutionContext) -> Optional[VmSpec]:
        vm_id = record.get("VmId")
        vm_type = record.get("VmType")
        if not vm_type:
            ctx.skip(self.resource_type, vm_id, "no VmType")
            return None

        spec = VmSpec(vm_type=vm_type, product_codes=list(record.get("ProductCodes") or []))

        if vm_type.startswith("tina"):
            parsed = parse_tina_type(vm_type)
            if parsed is None:
                ctx.skip(self.resource_type, vm_id, f"cannot parse VM type '{vm_type}'")
                return None
            spec.generation, spec.vcpu, spec.ram_gb, suffix = parsed

            performance_name = record.get("Performance")
            if performance_name is not None:
                performance = PERFORMANCE_CODES.get(performance_name)
                if performance is None:
                    ctx.skip(self.resource_type, vm_id, f"unknown performance '{performance_name}'")
                    return None
                if suffix is not None and suffix != performance:
                    ctx.skip(
                        self.resource_type,
                        vm_id,
                        f"performance '{performance_name}' does not match VM type '{vm_type}'",
                    )
                    return None
            elif suffix is not None:
                performance = suffix
            else:
                ctx.skip(self.resource_type, vm_id, f"no performance for VM type '{vm_type}'")
                return None
            spec.performance = performance
        else:
            box = parse_box_type(vm_type, ctx.vm_types, ctx.vm_families, ctx)
            if box is None:
                ctx.skip(self.resource_type, vm_id, f"cannot resolve VM type '{vm_type}'")
                return None
            spec.generation, spec.vcpu, spec.ram_gb, spec.performance = box

        if spec.vcpu <= 0:
            ctx.skip(self.resource_type, vm_id, f"VM type '{vm_type}' has no vcpu")
            return None

        apply_licenses(spec, ctx.licenses, ctx, vm_id or "")

        if vm_type.startswith("tina"):
            core_key = (FCU_SERVICE, f"CustomCore:v{spec.generation}-p{spec.performance}", "RunInstances-OD")
            price_vcpu = ctx.price(*core_key)
            if price_vcpu is None:
                ctx.skip(self.resource_type, vm_id, "no vcpu price", key=entry_id(*core_key))
                return None
            ram_key = (FCU_SERVICE, "CustomRam", "RunInstances-OD")
            price_ram = ctx.price(*ram_key)
            if price_ram is None:
                ctx.skip(self.resource_type, vm_id, "no ram price", key=entry_id(*ram_key))
                return None
            spec.price_vcpu_per_hour = price_vcpu
            spec.price_ram_gb_per_hour = price_ram
        else:
            box_key = (FCU_SERVICE, f"BoxUsage:{vm_type}", "RunInstances-OD")
            price_box = ctx.price(*box_key)
            if price_box is None:
                ctx.skip(self.resource_type, vm_id, "no box price", key=entry_id(*box_key))
                return None
            spec.price_box_per_hour = price_box

        return spec

    def resolve_one(self, record, inventory, ctx):
        vm_id = record.get("VmId")
        state = record.get("State")
        if state in IGNORED_STATES:
            ctx.logger.debug("VM '%s' is %s, not billed", vm_id, state)
            return None
        if not is_priced_state(state):
            ctx.skip(self.resource_type, vm_id, f"unmanaged state '{state}'")
            return None
        if not vm_id:
            ctx.skip(self.resource_type, None, "VM has no VmId")
            return None

        spec = self.resolve_spec(record, ctx)
        if spec is None:
            return None

        return Vm(
            resource_id=vm_id,
            vm_type=spec.vm_type,
            vm_vcpu_gen=spec.generation,
            vm_core_performance=record.get("Performance"),
            vm_image=record.get("ImageId"),
            nested_virtualization=record.get("NestedVirtualization"),
            license_codes=",".join(spec.product_codes),
            vm_vcpu=spec.vcpu,
            vm_ram_gb=spec.ram_gb,
            price_vcpu_per_hour=spec.price_vcpu_per_hour,
            price_ram_gb_per_hour=spec.price_ram_gb_per_hour,
            price_box_per_hour=spec.price_box_per_hour,
            price_license_per_ram_gb_per_hour=spec.price_license_per_ram_gb_per_hour,
            price_license_per_cpu_per_hour=spec.price_license_per_cpu_per_hour,
            price_license_per_vm_per_hour=spec.price_license_per_vm_per_hour,
            **ctx.envelope(),
        )


def vms_by_id(records: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Billed VMs indexed by VmId, as public IP resolution sees them."""
    return {
        r["VmId"]: r
        for r in records
        if r.get("VmId") and is_priced_state(r.get("State"))
    }
