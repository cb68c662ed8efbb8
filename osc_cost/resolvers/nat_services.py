from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import NatService
from ..pricing.catalog import entry_id

NAT_KEY = (FCU_SERVICE, "NatGatewayUsage", "CreateNatGateway")


class NatServiceResolver(BaseResolver):
    resource_type = "NatServices"
    resource_class = NatService
    inventory_attr = "nat_services"

    def resolve_one(self, record, inventory, ctx):
        nat_service_id = record.get("NatServiceId")
        if not nat_service_id:
            ctx.skip(self.resource_type, None, "no NatServiceId")
            return None
        price_per_hour = ctx.price(*NAT_KEY)
        if price_per_hour is None:
            ctx.skip(self.resource_type, nat_service_id, "no NAT price", key=entry_id(*NAT_KEY))
            return None
        return NatService(
            resource_id=nat_service_id,
            price_product_per_nat_service_per_hour=price_per_hour,
            **ctx.envelope(),
        )
