# osc_cost/pricing/catalog.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .public_catalog import fetch_public_catalog
from ..errors import CatalogError

META_SUFFIX = ".meta"
_LOGGER = logging.getLogger(__name__)


def entry_id(service: str, type_: str, operation: str) -> str:
    """Composite catalog key, e.g. ``TinaOS-FCU/CustomRam/RunInstances-OD``."""
    return f"{service}/{type_}/{operation}"


@dataclass(frozen=True)
class CatalogEntry:
    service: str
    type: str
    operation: str
    unit_price: Optional[float]
    title: str = ""
    subregion_name: str = ""

    @property
    def key(self) -> str:
        return entry_id(self.service, self.type, self.operation)


def _parse_unit_price(raw: Any, *, ctx: str) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise CatalogError(f"UnitPrice must be a number in {ctx}, got {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as ex:
        raise CatalogError(f"UnitPrice must be a number in {ctx}, got {raw!r}") from ex


class Catalog:
    """Price list indexed by ``service/type/operation``.

    Built once, read-only afterwards. Lookups are exact and case-sensitive;
    a miss returns None and logs a warning, it never raises.
    """

    def __init__(self, entries: Optional[Dict[str, CatalogEntry]] = None):
        self._entries: Dict[str, CatalogEntry] = dict(entries or {})

    @classmethod
    def build(cls, raw_entries: Iterable[Any]) -> "Catalog":
        if raw_entries is None or isinstance(raw_entries, (str, bytes, dict)):
            raise CatalogError("Catalog entries must be a list of objects")

        entries: Dict[str, CatalogEntry] = {}
        dropped = 0
        for i, raw in enumerate(raw_entries):
            ctx = f"catalog entry #{i}"
            if not isinstance(raw, dict):
                raise CatalogError(f"{ctx} must be an object, got {type(raw).__name__}")
            service = raw.get("Service")
            type_ = raw.get("Type")
            operation = raw.get("Operation")
            if not service or not type_ or not operation:
                dropped += 1
                continue
            entry = CatalogEntry(
                service=str(service),
                type=str(type_),
                operation=str(operation),
                unit_price=_parse_unit_price(raw.get("UnitPrice"), ctx=ctx),
                title=str(raw.get("Title") or ""),
                subregion_name=str(raw.get("SubregionName") or ""),
            )
            # Last write wins on duplicate keys.
            entries[entry.key] = entry

        if dropped:
            _LOGGER.debug("Dropped %d catalog entries without Service/Type/Operation", dropped)
        _LOGGER.debug("Catalog built with %d entries", len(entries))
        return cls(entries)

    def get(self, key: str) -> Optional[float]:
        entry = self._entries.get(key)
        if entry is None or entry.unit_price is None:
            _LOGGER.warning("Cannot find price for '%s' in catalog", key)
            return None
        return entry.unit_price

    def lookup(self, service: str, type_: str, operation: str) -> Optional[float]:
        return self.get(entry_id(service, type_, operation))

    def entry(self, key: str) -> Optional[CatalogEntry]:
        return self._entries.get(key)

    def entries(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# --------------------------------------------------------------------
# Local JSONL cache
# --------------------------------------------------------------------
def _catalog_filename(region: str) -> str:
    return f"catalog__{region.strip().lower()}.jsonl"


def catalog_path(base_dir: str, region: str) -> str:
    return os.path.join(base_dir, _catalog_filename(region))


def _meta_path(jsonl_path: str) -> str:
    """
    Path of the .meta file next to the JSONL catalog,
    e.g. catalog__eu-west-2.jsonl.meta
    """
    return jsonl_path + META_SUFFIX


def _existing_item_count(jsonl_path: str) -> Optional[int]:
    meta_path = _meta_path(jsonl_path)
    if os.path.exists(meta_path):
        try:
            with open(meta_path, "r", encoding="utf-8") as f:
                meta = json.load(f)
            if "item_count" in meta:
                return int(meta.get("item_count") or 0)
        except (OSError, ValueError) as ex:
            _LOGGER.debug("Ignoring unreadable catalog meta %s: %s", meta_path, ex)

    if not os.path.exists(jsonl_path):
        return None

    with open(jsonl_path, "r", encoding="utf-8") as f:
        return sum(1 for line in f if line.strip())


def ensure_catalog(base_dir: str, region: str, refresh: bool = False) -> str:
    """
    Create or refresh the local catalog file for ``region``.

    - If the JSONL file exists, is not empty and refresh=False, it is reused.
    - Otherwise every entry of the public catalog is downloaded and written
      one per line, together with a .meta file.

    Returns the path of the JSONL file. A failed download raises CatalogError
    and leaves any previous file untouched.
    """
    os.makedirs(base_dir, exist_ok=True)
    fp = catalog_path(base_dir, region)

    current_count = _existing_item_count(fp)
    if current_count and current_count > 0 and not refresh:
        _LOGGER.debug("Reusing cached catalog %s (%d entries)", fp, current_count)
        return fp

    rows = fetch_public_catalog(region)

    item_count = 0
    with open(fp, "w", encoding="utf-8") as f:
        for r in rows:
            f.write(json.dumps(r, ensure_ascii=False) + "\n")
            item_count += 1

    meta: Dict[str, Any] = {
        "region": region,
        "item_count": item_count,
        "fetched_at": datetime.now(timezone.utc).isoformat(),
        "source": "ReadPublicCatalog",
    }
    if item_count == 0:
        meta["warning"] = "no_items_returned"
        _LOGGER.warning("Public catalog for region '%s' returned 0 entries", region)
    else:
        _LOGGER.info("Catalog for region '%s' written to %s with %d entries", region, fp, item_count)

    with open(_meta_path(fp), "w", encoding="utf-8") as f:
        json.dump(meta, f, ensure_ascii=False, indent=2)

    return fp


def _entries_from_document(data: Any, path: str) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("Catalog"), dict):
            data = data["Catalog"]
        entries = data.get("Entries")
        if isinstance(entries, list):
            return entries
    raise CatalogError(f"Unrecognized catalog document in {path}")


def load_catalog(path: str) -> Catalog:
    """
    Load a catalog from disk.

    Accepts a JSONL cache written by ensure_catalog (corrupt lines are
    skipped) or a JSON document: a list of entries, ``{"Entries": [...]}``
    or a ReadPublicCatalog response ``{"Catalog": {"Entries": [...]}}``.
    """
    if not os.path.exists(path):
        raise CatalogError(f"Catalog file not found: {path}")

    if path.endswith(".jsonl"):
        rows: List[Any] = []
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    rows.append(json.loads(line))
                except json.JSONDecodeError:
                    _LOGGER.warning("Skipping corrupt catalog line %d in %s", lineno, path)
        return Catalog.build(rows)

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as ex:
            raise CatalogError(f"Invalid JSON catalog {path}: {ex}") from ex
    return Catalog.build(_entries_from_document(data, path))
