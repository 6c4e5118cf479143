"""
Obligation Kernel - financial document lifecycle engine.

Tracks payables, sales invoices, quotes and membership charges through:
- Role-gated approval (approve/reject, decided exactly once)
- Evidence-backed payment collection with a hard balance ceiling
- Invoice emission gated on full, verified payment
- Optimistic concurrency and a hash-chained audit trail
"""

__version__ = "0.1.0"
