from .base import BaseResolver, ResolutionContext, Resolver
from .loader import load_license_table, load_vm_families
from .registry import ResolverRegistry, build_default_registry
from .types import LicenseRule, LicenseTable, VmFamily
from .vms import VmSpec, parse_box_type, parse_tina_type

__all__ = [
    "BaseResolver",
    "ResolutionContext",
    "Resolver",
    "ResolverRegistry",
    "build_default_registry",
    "load_license_table",
    "load_vm_families",
    "LicenseRule",
    "LicenseTable",
    "VmFamily",
    "VmSpec",
    "parse_box_type",
    "parse_tina_type",
]
