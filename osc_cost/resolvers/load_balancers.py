from __future__ import annotations

from .base import BaseResolver
from ..core.resources import LoadBalancer
from ..pricing.catalog import entry_id

LBU_KEY = ("TinaOS-LBU", "LBU:Usage", "CreateLoadBalancer")


class LoadBalancerResolver(BaseResolver):
    resource_type = "LoadBalancer"
    resource_class = LoadBalancer
    inventory_attr = "load_balancers"

    def resolve_one(self, record, inventory, ctx):
        name = record.get("LoadBalancerName")
        if not name:
            ctx.skip(self.resource_type, None, "no LoadBalancerName")
            return None
        price_per_hour = ctx.price(*LBU_KEY)
        if price_per_hour is None:
            ctx.skip(self.resource_type, name, "no load balancer price", key=entry_id(*LBU_KEY))
            return None
        return LoadBalancer(resource_id=name, price_per_hour=price_per_hour, **ctx.envelope())
