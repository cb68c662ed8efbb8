from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import Vpn
from ..pricing.catalog import entry_id

VPN_KEY = (FCU_SERVICE, "ConnectionUsage", "CreateVpnConnection")


class VpnResolver(BaseResolver):
    resource_type = "Vpn"
    resource_class = Vpn
    inventory_attr = "vpn_connections"

    def resolve_one(self, record, inventory, ctx):
        vpn_id = record.get("VpnConnectionId") or ""
        price_per_hour = ctx.price(*VPN_KEY)
        if price_per_hour is None:
            ctx.skip(self.resource_type, vpn_id, "no VPN price", key=entry_id(*VPN_KEY))
            return None
        return Vpn(resource_id=vpn_id, price_per_hour=price_per_hour, **ctx.envelope())
