from __future__ import annotations

from .base import FCU_SERVICE, BaseResolver
from ..core.resources import FlexibleGpu
from ..pricing.catalog import entry_id

# A GPU attached to a VM is billed at the attach rate, a GPU only reserved
# for the account at the allocate rate.
GPU_STATE_USAGE = {
    "attached": "attach",
    "attaching": "attach",
    "allocated": "allocate",
    "detaching": "allocate",
}


def gpu_key(model_name: str, usage: str):
    return FCU_SERVICE, f"Gpu:{usage}:{model_name}", "AllocateGpu"


class FlexibleGpuResolver(BaseResolver):
    resource_type = "FlexibleGpu"
    resource_class = FlexibleGpu
    inventory_attr = "flexible_gpus"

    def resolve_one(self, record, inventory, ctx):
        gpu_id = record.get("FlexibleGpuId")
        model_name = record.get("ModelName")
        if not model_name:
            ctx.skip(self.resource_type, gpu_id, "no ModelName")
            return None
        state = record.get("State")
        usage = GPU_STATE_USAGE.get(state)
        if usage is None:
            ctx.skip(self.resource_type, gpu_id, f"unmanaged state '{state}'")
            return None

        key = gpu_key(model_name, usage)
        price_per_hour = ctx.price(*key)
        if price_per_hour is None:
            ctx.skip(self.resource_type, gpu_id, f"no price for {model_name} in state {state}", key=entry_id(*key))
            return None

        return FlexibleGpu(
            resource_id=gpu_id,
            price_per_hour=price_per_hour,
            model_name=model_name,
            **ctx.envelope(),
        )
