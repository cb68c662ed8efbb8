from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import Snapshot
from ..pricing.catalog import entry_id

SNAPSHOT_KEY = (FCU_SERVICE, "Snapshot:Usage", "Snapshot")


class SnapshotResolver(BaseResolver):
    """Snapshots are billed on the size of their source volume.

    Snapshots are incremental, so this is an upper bound.
    """

    resource_type = "Snapshot"
    resource_class = Snapshot
    inventory_attr = "snapshots"

    def resolve_one(self, record, inventory, ctx):
        snapshot_id = record.get("SnapshotId")
        size = record.get("VolumeSize")
        if size is None:
            ctx.skip(self.resource_type, snapshot_id, "no VolumeSize")
            return None

        price_gb_per_month = ctx.price(*SNAPSHOT_KEY)
        if price_gb_per_month is None:
            ctx.skip(self.resource_type, snapshot_id, "no snapshot price", key=entry_id(*SNAPSHOT_KEY))
            return None

        return Snapshot(
            resource_id=snapshot_id,
            volume_size_gib=int(size),
            price_gb_per_month=price_gb_per_month,
            **ctx.envelope(),
        )
