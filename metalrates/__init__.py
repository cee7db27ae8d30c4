"""Scheduled, cached live gold/silver rates for the storefront."""

__version__ = "0.1.0"
