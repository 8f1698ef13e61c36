"""Growable byte buffers used for render input and output."""

from __future__ import annotations


class BufferFreedError(RuntimeError):
    """Raised when a buffer is used after it was freed."""


class Buffer:
    """Byte buffer whose capacity grows in multiples of ``unit``."""

    def __init__(self, unit: int) -> None:
        if unit <= 0:
            raise ValueError("buffer unit must be a positive integer")
        self.unit = unit
        self.capacity = unit
        self._data = bytearray()
        self._freed = False

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def data(self) -> bytes:
        self._check()
        return bytes(self._data)

    @property
    def freed(self) -> bool:
        return self._freed

    def grow(self, needed: int) -> None:
        self._check()
        if needed <= self.capacity:
            return
        units = -(-needed // self.unit)
        self.capacity = units * self.unit

    def put(self, chunk: bytes) -> None:
        self.grow(len(self._data) + len(chunk))
        self._data.extend(chunk)

    def puts(self, text: str) -> None:
        self.put(text.encode("utf-8"))

    def set(self, chunk: bytes) -> None:
        self.reset()
        self.put(chunk)

    def reset(self) -> None:
        self._check()
        self._data.clear()

    def free(self) -> None:
        self._data = bytearray()
        self._freed = True

    def _check(self) -> None:
        if self._freed:
            raise BufferFreedError("buffer used after free")

    def __enter__(self) -> "Buffer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.free()

    def __repr__(self) -> str:
        return (
            f"Buffer(unit={self.unit}, size={self.size}, "
            f"capacity={self.capacity})"
        )
