"""
Share range of a namespace at a height.

Only rows that actually hold shares count: the range starts at the smallest
absolute share index reported by their proofs and spans the total number of
their shares. A namespace with no shares at the height yields (0, 0).
"""

from __future__ import annotations

from typing import Iterable, Tuple

from .types import NamespaceRow


def calculate_share_range(rows: Iterable[NamespaceRow]) -> Tuple[int, int]:
    """Return (start_index, data_len) for the given namespace rows."""
    start_index = None
    data_len = 0
    for row in rows:
        if not row.shares:
            continue
        idx = int(row.proof.start_idx())
        start_index = idx if start_index is None else min(start_index, idx)
        data_len += len(row.shares)
    if start_index is None:
        return 0, 0
    return start_index, data_len


__all__ = ["calculate_share_range"]
