from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import PublicIp
from ..pricing.catalog import entry_id

IDLE_KEY = (FCU_SERVICE, "ElasticIP:IdleAddress", "AssociateAddressVPC")
ADDITIONAL_KEY = (FCU_SERVICE, "ElasticIP:AdditionalAddress", "AssociateAddressVPC")


class PublicIpResolver(BaseResolver):
    """
    Public IPs are billed in one of three states:
    - not attached: idle address rate
    - attached and the main IP of its VM: free
    - attached to a VM that already has its main IP: additional address rate
    """

    resource_type = "PublicIp"
    resource_class = PublicIp
    inventory_attr = "public_ips"

    def resolve_one(self, record, inventory, ctx):
        public_ip_id = record.get("PublicIpId")
        public_ip = record.get("PublicIp")
        if not public_ip:
            ctx.skip(self.resource_type, public_ip_id, "no PublicIp address")
            return None

        link_id = record.get("LinkPublicIpId")
        vm_id = record.get("VmId")

        price_non_attached = None
        price_first_ip = None
        price_next_ips = None

        if not link_id and not vm_id:
            price_non_attached = ctx.price(*IDLE_KEY)
            if price_non_attached is None:
                ctx.skip(self.resource_type, public_ip_id, "no idle address price", key=entry_id(*IDLE_KEY))
                return None
        elif link_id and not vm_id:
            # Linked to a NIC or a NAT service: billed with that resource.
            ctx.logger.debug("Public IP '%s' is linked without a VM, not billed", public_ip_id)
            return None
        elif not link_id:
            ctx.skip(self.resource_type, public_ip_id, f"has VmId '{vm_id}' but no LinkPublicIpId")
            return None
        else:
            vm = inventory.billed_vms.get(vm_id)
            if vm is None:
                ctx.skip(self.resource_type, public_ip_id, f"VM '{vm_id}' not found")
                return None
            vm_public_ip = vm.get("PublicIp")
            if not vm_public_ip:
                ctx.skip(self.resource_type, public_ip_id, f"VM '{vm_id}' has no public IP")
                return None
            if vm_public_ip == public_ip:
                # First public IP of a VM is free.
                price_first_ip = 0.0
            else:
                price_next_ips = ctx.price(*ADDITIONAL_KEY)
                if price_next_ips is None:
                    ctx.skip(
                        self.resource_type,
                        public_ip_id,
                        "no additional address price",
                        key=entry_id(*ADDITIONAL_KEY),
                    )
                    return None

        return PublicIp(
            resource_id=public_ip_id or public_ip,
            price_non_attached=price_non_attached,
            price_first_ip=price_first_ip,
            price_next_ips=price_next_ips,
            **ctx.envelope(),
        )
