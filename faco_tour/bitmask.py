from __future__ import annotations

import numpy as np


class Bitmask:
    """Fixed-size membership mask, one flag per node (numpy uint8 storage)."""

    def __init__(self, size: int = 0):
        self._bits = np.zeros(int(size), dtype=np.uint8)

    def __len__(self) -> int:
        return int(self._bits.shape[0])

    def resize(self, size: int) -> None:
        # Keeps the common prefix, new flags start cleared
        size = int(size)
        if size < 0:
            raise ValueError(f"Bitmask size must be non-negative, got {size}")
        bits = np.zeros(size, dtype=np.uint8)
        keep = min(size, self._bits.shape[0])
        bits[:keep] = self._bits[:keep]
        self._bits = bits

    def clear(self) -> None:
        self._bits.fill(0)

    def set_all(self) -> None:
        self._bits.fill(1)

    def set_bit(self, i: int) -> None:
        self._bits[self._check(i)] = 1

    def clear_bit(self, i: int) -> None:
        self._bits[self._check(i)] = 0

    def get_bit(self, i: int) -> bool:
        return bool(self._bits[self._check(i)])

    def count(self) -> int:
        return int(np.count_nonzero(self._bits))

    def as_array(self) -> np.ndarray:
        """Read-only view of the flags, for vectorised lookups."""
        view = self._bits.view()
        view.flags.writeable = False
        return view

    def _check(self, i: int) -> int:
        i = int(i)
        if i < 0 or i >= self._bits.shape[0]:
            raise ValueError(f"Bit index {i} out of range for mask of size {self._bits.shape[0]}")
        return i
