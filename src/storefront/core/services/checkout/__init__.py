"""Checkout: pricing, order placement and payment review."""
