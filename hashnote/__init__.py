"""
hashnote — anchor short text messages on an EVM ledger.

A message is hashed (keccak-256), the hash is submitted as a transaction,
and later reads reconcile the stored status with the chain.

Subpackages:
    - ``hashnote.ledger`` — ledger clients (simulated, read-only, signing),
      JSON-RPC transport, transaction building and signing.
    - ``hashnote.messages`` — message model, storage, reconciliation and
      the anchoring service.
    - ``hashnote.diagnostics`` — health report, RPC connectivity and sender
      balance checks, exposed on the command line by ``hashnote.cli``.
"""

__version__ = "0.1.0"
