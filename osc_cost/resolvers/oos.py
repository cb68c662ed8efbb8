from __future__ import annotations

from .base import BaseResolver
from ..core.resources import ObjectStorageBucket
from ..pricing.catalog import entry_id

OOS_KEY = ("TinaOS-OOS", "enterprise", "OOSStorage")
BYTES_PER_GIB = 2 ** 30


def bucket_size_gb(objects) -> float:
    return sum(int(o.get("Size") or 0) for o in objects) / BYTES_PER_GIB


class ObjectStorageResolver(BaseResolver):
    """OOS buckets, billed on the total size of their objects."""

    resource_type = "Oos"
    resource_class = ObjectStorageBucket
    inventory_attr = "buckets"

    def resolve_one(self, record, inventory, ctx):
        name = record.get("Name")
        if not name:
            ctx.skip(self.resource_type, None, "bucket has no Name")
            return None
        price_gb_per_month = ctx.price(*OOS_KEY)
        if price_gb_per_month is None:
            ctx.skip(self.resource_type, name, "no storage price", key=entry_id(*OOS_KEY))
            return None
        objects = record.get("Objects") or []
        return ObjectStorageBucket(
            resource_id=name,
            size_gb=bucket_size_gb(objects),
            number_files=len(objects),
            price_gb_per_month=price_gb_per_month,
            **ctx.envelope(),
        )
