"""Ledger — таблица балансов, total supply и delegates."""

from .ledger import MAX_MEMO_BYTES, Ledger, normalize_memo

__all__ = [
    "Ledger",
    "MAX_MEMO_BYTES",
    "normalize_memo",
]
