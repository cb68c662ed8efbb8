"""osc-cost: Outscale cost estimation and billing drift analysis."""

__version__ = "0.4.0"
