from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import ResolutionContext, Resolver
from .dedicated_instances import DedicatedInstanceResolver
from .flexible_gpus import FlexibleGpuResolver
from .load_balancers import LoadBalancerResolver
from .nat_services import NatServiceResolver
from .oos import ObjectStorageResolver
from .public_ips import PublicIpResolver
from .snapshots import SnapshotResolver
from .volumes import VolumeResolver
from .vms import VmResolver
from .vpn import VpnResolver
from ..core.resources import Resource, Resources


@dataclass
class ResolverRegistry:
    """Resolvers by resource type, run in registration order."""

    resolvers: Dict[str, Resolver] = field(default_factory=dict)

    def register(self, resolver: Resolver) -> None:
        self.resolvers[resolver.resource_type] = resolver

    def get(self, resource_type: str) -> Optional[Resolver]:
        return self.resolvers.get(resource_type)

    def resource_types(self) -> List[str]:
        return list(self.resolvers)

    def resolve(self, inventory: Any, ctx: ResolutionContext) -> Resources:
        out: List[Resource] = []
        for resource_type, resolver in self.resolvers.items():
            if resource_type in ctx.skip_resources:
                ctx.logger.info("Skipping all %s resources", resource_type)
                continue
            out.extend(resolver.resolve(inventory, ctx))
        return Resources(out)


def build_default_registry() -> ResolverRegistry:
    reg = ResolverRegistry()
    reg.register(VmResolver())
    reg.register(VolumeResolver())
    reg.register(SnapshotResolver())
    reg.register(PublicIpResolver())
    reg.register(NatServiceResolver())
    reg.register(FlexibleGpuResolver())
    reg.register(LoadBalancerResolver())
    reg.register(VpnResolver())
    reg.register(ObjectStorageResolver())
    reg.register(DedicatedInstanceResolver())
    return reg
