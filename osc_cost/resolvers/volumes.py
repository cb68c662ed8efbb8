from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import Volume
from ..pricing.catalog import entry_id

IOPS_VOLUME_TYPES = frozenset({"io1"})


class VolumeResolver(BaseResolver):
    """BSU volumes: monthly rate per GiB, plus per provisioned IOPS for io1."""

    resource_type = "Volume"
    resource_class = Volume
    inventory_attr = "volumes"

    def resolve_one(self, record, inventory, ctx):
        volume_id = record.get("VolumeId")
        volume_type = record.get("VolumeType")
        if not volume_type:
            ctx.skip(self.resource_type, volume_id, "no VolumeType")
            return None

        size = record.get("Size")
        if size is None:
            ctx.skip(self.resource_type, volume_id, "no Size")
            return None

        iops = record.get("Iops")
        if iops is None:
            if volume_type in IOPS_VOLUME_TYPES:
                ctx.logger.warning("Volume '%s': no Iops on %s volume, counting 0", volume_id, volume_type)
            iops = 0

        gb_key = (FCU_SERVICE, f"BSU:VolumeUsage:{volume_type}", "CreateVolume")
        price_gb_per_month = ctx.price(*gb_key)
        if price_gb_per_month is None:
            ctx.skip(self.resource_type, volume_id, "no storage price", key=entry_id(*gb_key))
            return None

        price_iops_per_month = 0.0
        if volume_type in IOPS_VOLUME_TYPES:
            iops_key = (FCU_SERVICE, f"BSU:VolumeIOPS:{volume_type}", "CreateVolume")
            price = ctx.price(*iops_key)
            if price is None:
                ctx.skip(self.resource_type, volume_id, "no iops price", key=entry_id(*iops_key))
                return None
            price_iops_per_month = price

        return Volume(
            resource_id=volume_id,
            volume_type=volume_type,
            volume_size=int(size),
            volume_iops=int(iops),
            price_gb_per_month=price_gb_per_month,
            price_iops_per_month=price_iops_per_month,
            **ctx.envelope(),
        )
