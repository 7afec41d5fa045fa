"""Order-independent key for a pair of users.

Used as the storage-level uniqueness key for "one pending request per pair"
and "one direct conversation per pair".
"""
from __future__ import annotations


def pair_key(user_a: int, user_b: int) -> str:
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"
