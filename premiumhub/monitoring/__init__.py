"""Prometheus metrics for scrapes, cache lookups and upstream health."""
