"""Wiring between configuration, HTTP clients and the reconciliation engine."""
