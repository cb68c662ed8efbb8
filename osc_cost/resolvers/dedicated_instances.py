from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import DedicatedInstance
from ..pricing.catalog import entry_id

DEDICATED_KEY = (FCU_SERVICE, "UseDedicated", "RunDedicatedInstances")


class DedicatedInstanceResolver(BaseResolver):
    """Account-wide surcharge for running on dedicated hosts.

    Not a collection: one resource when the account uses dedicated instances.
    """

    resource_type = "DedicatedInstance"
    resource_class = DedicatedInstance

    def resolve(self, inventory, ctx):
        if not ctx.use_dedicated_instance:
            ctx.logger.debug("Account does not use dedicated instances")
            return []
        price_per_hour = ctx.price(*DEDICATED_KEY)
        if price_per_hour is None:
            ctx.skip(self.resource_type, None, "no dedicated instance price", key=entry_id(*DEDICATED_KEY))
            return []
        return [DedicatedInstance(price_per_hour=price_per_hour, **ctx.envelope())]
