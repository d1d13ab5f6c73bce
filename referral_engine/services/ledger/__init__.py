"""Ledger crediting."""

from referral_engine.services.ledger.ledger_writer import (
    LedgerWriter,
    balance_fields,
    quantize_amount,
)

__all__ = [
    "LedgerWriter",
    "balance_fields",
    "quantize_amount",
]
