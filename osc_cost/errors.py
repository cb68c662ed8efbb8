"""Exceptions raised by osc-cost.

Resolution failures are not exceptions: resolvers log a warning and drop the
record. The errors below abort a run (or flag a programming error).
"""

from __future__ import annotations


class OscCostError(Exception):
    """Base class for every error the CLI reports with exit status 1."""


class CatalogError(OscCostError):
    """The price catalog could not be downloaded or is malformed."""


class DefinitionError(OscCostError, ValueError):
    """A bundled definition file (licenses, VM families) is invalid."""


class InventoryError(OscCostError):
    """The inventory snapshot or a resource file cannot be read."""


class ComputeError(OscCostError):
    """compute() was called on a resource that is missing a required field."""

    def __init__(self, resource_type: str, resource_id, field: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.field = field
        super().__init__(
            f"{resource_type} '{resource_id}': cannot compute price, '{field}' is not set"
        )


class ResourceNotComputedError(OscCostError):
    """A price was read from a resource that was never computed."""


class DriftError(OscCostError):
    """The drift window is invalid."""
