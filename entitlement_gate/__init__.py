"""Entitlement gate: webhook-driven product and subscription access."""

__version__ = "0.1.0"
