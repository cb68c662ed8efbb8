from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional

LICENSE_KINDS = ("free", "per_vm", "per_core")


@dataclass(frozen=True)
class LicenseRule:
    """How one product code is billed."""

    code: str
    kind: str  # "free" | "per_vm" | "per_core"
    label: str = ""
    divisor: int = 2
    floor: int = 0

    def factor(self, vcpu: float) -> float:
        """Number of license units billed for a VM with ``vcpu`` cores.

        per_core: ceil((vcpu + 1) / divisor), at least ``floor``.
        """
        if self.kind == "free":
            return 0.0
        if self.kind == "per_vm":
            return 1.0
        units = math.ceil((vcpu + 1) / self.divisor)
        return float(max(units, self.floor))


@dataclass(frozen=True)
class LicenseTable:
    rules: Dict[str, LicenseRule] = field(default_factory=dict)

    def get(self, code: str) -> Optional[LicenseRule]:
        return self.rules.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self.rules


@dataclass(frozen=True)
class VmFamily:
    name: str
    generation: str
    performance: str
