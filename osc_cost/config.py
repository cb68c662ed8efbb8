#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for osc-cost.

Every value below can be overridden with an environment variable so the tool
can be driven from CI jobs or cron without touching the command line.

Prices in the Outscale public catalog are expressed per hour (compute,
addresses, gateways) or per month (storage). The tool normalizes everything to
an hourly and a monthly figure using HOURS_PER_MONTH.
"""

import os

# ---------------------------------------------------------------------
# Outscale public catalog
# ---------------------------------------------------------------------
# ReadPublicCatalog does not require authentication. The region is
# substituted into the URL template at call time.
PUBLIC_CATALOG_URL = os.getenv(
    "OSC_COST_PUBLIC_CATALOG_URL",
    "https://api.{region}.outscale.com/api/v1/ReadPublicCatalog",
)

# ---------------------------------------------------------------------
# Defaults: region
# ---------------------------------------------------------------------
# DEFAULT_REGION:
# - Used when neither the CLI nor the inventory snapshot names a region.
# - Example value: "eu-west-2"
DEFAULT_REGION = os.getenv("OSC_COST_DEFAULT_REGION", "eu-west-2")

# ---------------------------------------------------------------------
# Standard monthly hours (used for cost calculations)
# ---------------------------------------------------------------------
# HOURS_PER_MONTH:
# - 365 days / 12 months, always-on.
# - 730 = 365 * 24 / 12
HOURS_PER_MONTH = 365 * 24 / 12

# ---------------------------------------------------------------------
# Local catalog cache
# ---------------------------------------------------------------------
# CATALOG_DIR:
# - Directory where downloaded public catalogs are stored as JSONL
#   (one entry per line, plus a .meta side file).
CATALOG_DIR = os.getenv("OSC_COST_CATALOG_DIR", "catalog")

# ---------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------
# HTTP_TIMEOUT_SECONDS: read timeout for catalog downloads.
# HTTP_MAX_RETRIES: retries on throttling and gateway errors before giving up.
HTTP_TIMEOUT_SECONDS = float(os.getenv("OSC_COST_HTTP_TIMEOUT", "30"))
HTTP_MAX_RETRIES = int(os.getenv("OSC_COST_HTTP_MAX_RETRIES", "5"))

# ---------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------
# DEFAULT_LOG_LEVEL:
# - Default for --log-level. Skipped resources are reported at WARNING,
#   so the default keeps them visible.
DEFAULT_LOG_LEVEL = os.getenv("OSC_COST_LOG_LEVEL", "WARNING")

# ---------------------------------------------------------------------
# Currency symbols per region
# ---------------------------------------------------------------------
# Outscale bills each region in a single currency. Unknown regions fall
# back to euro.
REGION_CURRENCIES = {
    "eu-west-2": "€",
    "cloudgouv-eu-west-1": "€",
    "ap-northeast-1": "¥",
    "us-east-2": "$",
    "us-west-1": "$",
}
DEFAULT_CURRENCY_SYMBOL = "€"


def get_currency(region):
    """Return the currency symbol used to bill ``region``."""
    return REGION_CURRENCIES.get((region or "").strip(), DEFAULT_CURRENCY_SYMBOL)
