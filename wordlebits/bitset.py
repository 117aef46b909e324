"""
bitset.py

Fixed-size bit-packed set over answer indices, stored as a numpy uint64 array.
The element count is kept alongside the blocks: `add` bumps it and `&`
computes it while intersecting, so `len()` never rescans the blocks.
"""

from __future__ import annotations

from typing import Iterable, Iterator

import numpy as np

_ONE = np.uint64(1)


class SizeMismatchError(ValueError):
    """Two bitsets over different index spaces were combined."""


def _num_blocks(size: int) -> int:
    return (size + 63) // 64


class Bitset:
    __slots__ = ("_blocks", "_size", "_count")

    def __init__(self, size: int, blocks: np.ndarray | None = None, count: int | None = None) -> None:
        if not isinstance(size, (int, np.integer)) or size < 0:
            raise ValueError("size must be a non-negative integer")
        self._size = int(size)
        n = _num_blocks(self._size)
        if blocks is None:
            self._blocks = np.zeros(n, dtype=np.uint64)
            self._count = 0
            return
        blocks = np.ascontiguousarray(blocks, dtype=np.uint64)
        if blocks.shape != (n,):
            raise ValueError(f"expected {n} blocks for size {size}, got shape {blocks.shape}")
        tail = self._size % 64
        if tail and blocks[-1] >> np.uint64(tail):
            raise ValueError(f"bits set beyond size {size}")
        self._blocks = blocks
        self._count = int(np.bitwise_count(blocks).sum()) if count is None else int(count)

    # ---------- Construction helpers ----------

    @classmethod
    def from_indices(cls, size: int, indices: Iterable[int] | np.ndarray) -> "Bitset":
        if not isinstance(indices, np.ndarray):
            indices = list(indices)
        idx = np.unique(np.asarray(indices, dtype=np.int64))
        if idx.size and (idx[0] < 0 or idx[-1] >= size):
            raise IndexError(f"index out of range for bitset of size {size}")
        blocks = np.zeros(_num_blocks(size), dtype=np.uint64)
        np.bitwise_or.at(blocks, idx >> 6, _ONE << (idx & 63).astype(np.uint64))
        return cls(size, blocks, count=int(idx.size))

    @classmethod
    def full(cls, size: int) -> "Bitset":
        blocks = np.full(_num_blocks(size), np.iinfo(np.uint64).max, dtype=np.uint64)
        tail = size % 64
        if tail:
            blocks[-1] = np.uint64((1 << tail) - 1)
        return cls(size, blocks, count=size)

    def add(self, index: int) -> None:
        """Insert `index`. Only used while a set is being built."""
        if index < 0 or index >= self._size:
            raise IndexError(f"index out of range: {index}")
        bit = _ONE << np.uint64(index & 63)
        block = index >> 6
        if not self._blocks[block] & bit:
            self._blocks[block] |= bit
            self._count += 1

    # ---------- Set protocol ----------

    @property
    def size(self) -> int:
        """Size of the index space (not the number of members)."""
        return self._size

    @property
    def blocks(self) -> np.ndarray:
        view = self._blocks.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return self._count

    def __contains__(self, index: object) -> bool:
        if not isinstance(index, (int, np.integer)) or index < 0 or index >= self._size:
            return False
        return bool(self._blocks[int(index) >> 6] & (_ONE << np.uint64(int(index) & 63)))

    def __and__(self, other: "Bitset") -> "Bitset":
        if not isinstance(other, Bitset):
            return NotImplemented
        if other._size != self._size:
            raise SizeMismatchError(f"cannot intersect bitsets of size {self._size} and {other._size}")
        blocks = np.bitwise_and(self._blocks, other._blocks)
        return Bitset(self._size, blocks, count=int(np.bitwise_count(blocks).sum()))

    def indices(self) -> np.ndarray:
        """Member indices in ascending order."""
        bits = np.unpackbits(self._blocks.astype("<u8").view(np.uint8), bitorder="little")
        return np.flatnonzero(bits[: self._size])

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices().tolist())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._size == other._size and bool(np.array_equal(self._blocks, other._blocks))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Bitset(size={self._size}, count={self._count})"
