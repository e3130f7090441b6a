"""Proxy-aware HTTP requests."""
