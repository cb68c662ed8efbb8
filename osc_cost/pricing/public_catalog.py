# osc_cost/pricing/public_catalog.py
import logging
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console

from .http_policy import HttpRetryPolicy
from ..config import HTTP_MAX_RETRIES, HTTP_TIMEOUT_SECONDS, PUBLIC_CATALOG_URL
from ..errors import CatalogError

console = Console(stderr=True)
_LOGGER = logging.getLogger(__name__)


def public_catalog_url(region: str) -> str:
    return PUBLIC_CATALOG_URL.format(region=region)


def fetch_public_catalog(
    region: str,
    retry_policy: Optional[HttpRetryPolicy] = None,
    debug: bool = False,
) -> List[Dict[str, Any]]:
    """
    Download every entry of the Outscale public catalog for ``region``.

    ReadPublicCatalog is an unauthenticated POST that returns
    ``{"Catalog": {"Entries": [...]}}`` in a single page. Throttling
    (429) and transient gateway errors are retried with back-off; any
    other failure raises CatalogError.
    """
    if not region:
        raise CatalogError("A region is required to download the public catalog")

    url = public_catalog_url(region)
    policy = retry_policy or HttpRetryPolicy(max_retries=HTTP_MAX_RETRIES)

    timeout = httpx.Timeout(HTTP_TIMEOUT_SECONDS, connect=10.0)
    client = httpx.Client(timeout=timeout)

    if debug:
        console.print(f"[cyan]fetch_public_catalog: region='{region}', url={url}[/cyan]")

    try:
        attempt = 0
        while True:
            try:
                resp = client.post(url, json={})
            except httpx.HTTPError as ex:
                raise CatalogError(f"Cannot reach {url}: {ex}") from ex

            if policy.should_retry(resp.status_code, attempt):
                _LOGGER.warning(
                    "ReadPublicCatalog returned %s for region '%s', retry %d/%d",
                    resp.status_code,
                    region,
                    attempt + 1,
                    policy.max_retries,
                )
                policy.wait(attempt, resp.headers.get("Retry-After"))
                attempt += 1
                continue

            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as ex:
                raise CatalogError(
                    f"ReadPublicCatalog failed for region '{region}': HTTP {resp.status_code}"
                ) from ex
            try:
                data = resp.json()
            except ValueError as ex:
                raise CatalogError(f"ReadPublicCatalog returned invalid JSON for region '{region}'") from ex
            break
    finally:
        client.close()

    catalog = data.get("Catalog") if isinstance(data, dict) else None
    entries = (catalog or {}).get("Entries")
    if not isinstance(entries, list):
        raise CatalogError(f"Unexpected ReadPublicCatalog response for region '{region}'")

    if debug:
        console.print(f"[cyan]fetch_public_catalog: {len(entries)} entries[/cyan]")
    return entries
