"""Domain models and rules for the balance sync.

The brokerage balance, ledger records and sync errors are plain pydantic
models and exceptions with no HTTP coupling, so the reconciliation rules can
be exercised against in-memory fakes.
"""
