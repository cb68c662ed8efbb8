"""Loader for the bundled pricing definitions.

Reads YAML files from osc_cost/resolvers/definitions:
- licenses.yaml: product code -> billing shape
- vm_families.yaml: AWS-compatible family -> (generation, performance)

Invalid definitions raise DefinitionError (a ValueError) with a readable
message, so a broken data change fails the first test run instead of
mispricing VMs.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .types import LICENSE_KINDS, LicenseRule, LicenseTable, VmFamily
from ..errors import DefinitionError

DEFINITIONS_DIR = Path(__file__).resolve().parent / "definitions"


def _as_list(x: Any) -> List[Any]:
    if x is None:
        return []
    if isinstance(x, list):
        return x
    return [x]


def _require(obj: Dict[str, Any], key: str, *, ctx: str) -> Any:
    if key not in obj:
        raise DefinitionError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _load_one(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise DefinitionError(f"Definition file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise DefinitionError(f"Top-level YAML must be a mapping in {path}")
    return data


def _parse_license(it: Any, *, ctx: str) -> LicenseRule:
    if not isinstance(it, dict):
        raise DefinitionError(f"license must be an object in {ctx}")
    # Codes are zero-padded strings; an unquoted 0002 in YAML would load as int.
    code = str(_require(it, "code", ctx=ctx)).strip()
    if not code:
        raise DefinitionError(f"license code cannot be empty in {ctx}")
    kind = str(_require(it, "kind", ctx=ctx)).strip().lower()
    if kind not in LICENSE_KINDS:
        raise DefinitionError(f"Unknown license kind '{kind}' in {ctx} (expected one of {LICENSE_KINDS})")

    divisor = it.get("divisor", 2)
    floor = it.get("floor", 0)
    if not isinstance(divisor, int) or isinstance(divisor, bool) or divisor <= 0:
        raise DefinitionError(f"divisor must be a positive integer in {ctx}")
    if not isinstance(floor, int) or isinstance(floor, bool) or floor < 0:
        raise DefinitionError(f"floor must be a non-negative integer in {ctx}")

    return LicenseRule(
        code=code,
        kind=kind,
        label=str(it.get("label") or ""),
        divisor=divisor,
        floor=floor,
    )


def load_license_table(path: Path | None = None) -> LicenseTable:
    p = path or (DEFINITIONS_DIR / "licenses.yaml")
    data = _load_one(p)
    ctx = f"definition({p.name})"
    rules: Dict[str, LicenseRule] = {}
    for i, it in enumerate(_as_list(_require(data, "licenses", ctx=ctx))):
        rule = _parse_license(it, ctx=f"{ctx}.licenses[{i}]")
        if rule.code in rules:
            raise DefinitionError(f"Duplicate license code '{rule.code}' in {ctx}")
        rules[rule.code] = rule
    return LicenseTable(rules=rules)


def load_vm_families(path: Path | None = None) -> Dict[str, VmFamily]:
    p = path or (DEFINITIONS_DIR / "vm_families.yaml")
    data = _load_one(p)
    ctx = f"definition({p.name})"
    families = _require(data, "families", ctx=ctx)
    if not isinstance(families, dict):
        raise DefinitionError(f"families must be a mapping in {ctx}")

    out: Dict[str, VmFamily] = {}
    for name, spec in families.items():
        fctx = f"{ctx}.families.{name}"
        if not isinstance(spec, dict):
            raise DefinitionError(f"family must be an object in {fctx}")
        out[str(name)] = VmFamily(
            name=str(name),
            generation=str(_require(spec, "generation", ctx=fctx)),
            performance=str(_require(spec, "performance", ctx=fctx)),
        )
    return out


@lru_cache(maxsize=1)
def default_license_table() -> LicenseTable:
    return load_license_table()


@lru_cache(maxsize=1)
def default_vm_families() -> Dict[str, VmFamily]:
    return load_vm_families()
