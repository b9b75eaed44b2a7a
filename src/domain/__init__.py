"""Domain models and pure logic for the custodian simulator.

This package contains the in-memory (Pydantic) models describing custodians,
their assets and transactions, together with the side-effect free pieces
built on them: the forex table, the transaction classifier and the holdings
aggregation. Storage and HTTP concerns live elsewhere.
"""

__all__ = [
    "aggregation",
    "forex",
    "models",
    "transactions",
]
